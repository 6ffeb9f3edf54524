from __future__ import annotations

from typing import Optional


class InstantlyError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(InstantlyError, ValueError):
    """Raised when client configuration is invalid."""


class MissingCredentialsError(ConfigurationError):
    """Raised when the required Instantly env vars are not present."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__("Missing required environment variables: " + ", ".join(missing))


class TransportError(InstantlyError):
    """Request could not be built, sent, or its body read."""


class HTTPStatusError(TransportError):
    """The API answered with an HTTP error status."""

    def __init__(self, message: str, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class DecodeError(InstantlyError):
    """Response body is not JSON of the expected shape."""


class StatusError(InstantlyError):
    """The API returned HTTP 200 with a non-"success" status string."""

    def __init__(self, action: str, status: Optional[str]):
        self.action = action
        self.status = status
        super().__init__(f"failed to {action}: status={status!r}")


class LeadLookupError(InstantlyError):
    """A lookup by unique key did not yield exactly one lead."""

    def __init__(self, campaign_id: str, email: str, count: int):
        self.campaign_id = campaign_id
        self.email = email
        self.count = count
        super().__init__(self._describe())

    def _describe(self) -> str:
        return f"{self.count} leads found for {self.email} in campaign {self.campaign_id}"


class LeadNotFoundError(LeadLookupError):
    def _describe(self) -> str:
        return f"no lead found for {self.email} in campaign {self.campaign_id}"


class MultipleLeadsError(LeadLookupError):
    def _describe(self) -> str:
        return (
            f"expected one lead for {self.email} in campaign {self.campaign_id}, "
            f"got {self.count}"
        )
