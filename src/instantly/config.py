from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

import requests

from .exceptions import ConfigurationError

_logger = logging.getLogger(__name__)

DEFAULT_HOST = "api.instantly.ai"
DEFAULT_API_VERSION = 1
DEFAULT_TIMEOUT = 30.0


# ----------------------------------------------------------------------
# Rate limit setting
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class RateLimit:
    """Token bucket setting: ``rate`` tokens every ``per`` seconds, capacity ``burst``.

    The platform allows at most 10 requests per second, hence the default.
    """

    rate: int = 10
    per: float = 1.0
    burst: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.rate, bool) or not isinstance(self.rate, int) or self.rate < 1:
            raise ConfigurationError(f"rate must be a positive integer, got {self.rate!r}")
        if self.per <= 0:
            raise ConfigurationError(f"per must be positive, got {self.per!r}")
        if isinstance(self.burst, bool) or not isinstance(self.burst, int) or self.burst < 1:
            raise ConfigurationError(f"burst must be a positive integer, got {self.burst!r}")

    @property
    def tokens_per_second(self) -> float:
        return self.rate / self.per


# ----------------------------------------------------------------------
# Client configuration
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class ClientConfig:
    """Construction-time settings for :class:`instantly.client.InstantlyClient`."""

    host: str = DEFAULT_HOST
    api_version: int = DEFAULT_API_VERSION
    rate_limit: RateLimit = field(default_factory=RateLimit)

    # Optional: bring your own session (proxies, adapters, mocks in tests)
    session: Optional[requests.Session] = field(default=None, compare=False, repr=False)

    # Seconds per request; None leaves it to the session
    timeout: Optional[float] = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        _validate_host(self.host)
        if (
            isinstance(self.api_version, bool)
            or not isinstance(self.api_version, int)
            or self.api_version < 1
        ):
            raise ConfigurationError(f"api_version must be >= 1, got {self.api_version!r}")
        if not isinstance(self.rate_limit, RateLimit):
            raise ConfigurationError("rate_limit must be a RateLimit instance")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout!r}")

    @property
    def base_url(self) -> str:
        return f"https://{self.host}/api/v{self.api_version}/"

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Load configuration from environment variables."""
        try:
            api_version = int(os.getenv("INSTANTLY_API_VERSION", str(DEFAULT_API_VERSION)))
            rate = int(os.getenv("INSTANTLY_RATE_LIMIT", "10"))
            timeout = float(os.getenv("INSTANTLY_TIMEOUT", str(DEFAULT_TIMEOUT)))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting in environment: {e}") from e

        cfg = cls(
            host=os.getenv("INSTANTLY_HOST", DEFAULT_HOST),
            api_version=api_version,
            rate_limit=RateLimit(rate=rate),
            timeout=timeout,
        )
        _logger.debug("Loaded config from environment: %r", cfg)
        return cfg


def _validate_host(host: str) -> None:
    """Host must be a bare authority: ``name`` or ``name:port``."""
    if not isinstance(host, str) or not host or any(c.isspace() for c in host):
        raise ConfigurationError(f"invalid host: {host!r}")

    try:
        parts = urlsplit(f"https://{host}")
        parts.port  # raises ValueError on a malformed port
    except ValueError as e:
        raise ConfigurationError(f"invalid host: {host!r} ({e})") from e

    if parts.netloc != host or parts.path or parts.query or parts.fragment:
        raise ConfigurationError(f"invalid host: {host!r}")
    if not parts.hostname or "@" in host:
        raise ConfigurationError(f"invalid host: {host!r}")


DEFAULT_CONFIG = ClientConfig()
