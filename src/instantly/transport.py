from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import requests

from .config import DEFAULT_CONFIG, ClientConfig
from .exceptions import HTTPStatusError, TransportError
from .logging_config import install_key_filter
from .rate_limiter import TokenBucket

_logger = logging.getLogger(__name__)

QueryParams = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]

_REDACTED = "***"


class Transport:
    """HTTP dispatch for the Instantly API.

    Reads are GETs with ``api_key`` in the query string, writes are JSON
    POSTs with ``api_key`` merged into the top-level body. Every call waits
    on the shared token bucket first.
    """

    def __init__(
        self,
        api_key: str,
        config: Optional[ClientConfig] = None,
        *,
        limiter: Optional[TokenBucket] = None,
    ) -> None:
        self.config = config or DEFAULT_CONFIG
        self._api_key = api_key
        self.session = self.config.session or requests.Session()
        self.limiter = limiter or TokenBucket(self.config.rate_limit)
        install_key_filter()

    def __repr__(self) -> str:
        return f"Transport(base_url={self.config.base_url!r})"

    # --------------------------- Public methods -----------------------

    def build_url(self, path: str) -> str:
        return self.config.base_url + path.lstrip("/")

    def read(self, path: str, params: Optional[QueryParams] = None) -> bytes:
        """GET ``path`` with ``api_key`` first, then ``params`` in the order given."""
        query: List[Tuple[str, str]] = [("api_key", self._api_key)]
        for key, value in _pairs(params):
            if str(key) == "api_key":
                raise TransportError(f"failed to build query for {path}: api_key is set by the client")
            query.append((str(key), _query_value(value)))
        return self._request("GET", path, params=query)

    def write(self, path: str, body: Optional[Mapping[str, Any]] = None) -> bytes:
        """POST ``body`` as JSON with ``api_key`` added at the top level."""
        if body is None:
            body = {}
        if not isinstance(body, Mapping):
            raise TransportError(
                f"failed to build request body for {path}: expected a mapping, "
                f"got {type(body).__name__}"
            )

        payload: Dict[str, Any] = dict(body)
        payload["api_key"] = self._api_key
        try:
            data = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise TransportError(f"failed to marshal body for {path}: {e}") from e

        return self._request(
            "POST",
            path,
            data=data.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    # --------------------------- HTTP wrapper -------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[List[Tuple[str, str]]] = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> bytes:
        url = self.build_url(path)
        self.limiter.acquire()

        _logger.debug("%s %s", method, url)
        try:
            r = self.session.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            msg = self._redact(f"failed to execute request {method} {path}: {e}")
            _logger.debug("%s", msg)
            raise TransportError(msg) from None
        except ValueError as e:
            raise TransportError(self._redact(f"failed to create request {method} {path}: {e}")) from None

        try:
            content = r.content
        except requests.RequestException as e:
            raise TransportError(self._redact(f"failed to read response body for {path}: {e}")) from None

        if r.status_code >= 400:
            body = self._redact(content.decode("utf-8", errors="replace")[:800])
            _logger.debug("HTTP %s for %s %s: %s", r.status_code, method, path, body)
            raise HTTPStatusError(
                f"HTTP {r.status_code} for {method} {path}",
                status_code=r.status_code,
                body=body,
            )
        return content

    def _redact(self, text: str) -> str:
        if self._api_key:
            text = text.replace(self._api_key, _REDACTED)
        return text


def _pairs(params: Optional[QueryParams]) -> Iterable[Tuple[str, Any]]:
    if params is None:
        return ()
    if isinstance(params, Mapping):
        return params.items()
    return params


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
