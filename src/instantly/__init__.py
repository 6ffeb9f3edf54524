"""Client library for the Instantly cold-email REST API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("instantly-client")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "unknown"

from .client import InstantlyClient
from .config import DEFAULT_CONFIG, ClientConfig, RateLimit
from .exceptions import (
    ConfigurationError,
    DecodeError,
    HTTPStatusError,
    InstantlyError,
    LeadNotFoundError,
    MissingCredentialsError,
    MultipleLeadsError,
    StatusError,
    TransportError,
)
from .models import CampaignSchedule, Lead, LeadStatus, Timing, Weekday

__all__ = [
    "__version__",
    "InstantlyClient",
    "ClientConfig",
    "RateLimit",
    "DEFAULT_CONFIG",
    "InstantlyError",
    "ConfigurationError",
    "MissingCredentialsError",
    "TransportError",
    "HTTPStatusError",
    "DecodeError",
    "StatusError",
    "LeadNotFoundError",
    "MultipleLeadsError",
    "CampaignSchedule",
    "Lead",
    "LeadStatus",
    "Timing",
    "Weekday",
]
