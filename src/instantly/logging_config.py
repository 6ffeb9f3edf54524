from __future__ import annotations

import logging
import re
from typing import Optional

_DEFAULT_FMT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DEFAULT_DATEFMT = "%H:%M:%S"

# api_key=... in query strings, "api_key": "..." in JSON bodies
_API_KEY_RE = re.compile(r'(api_key(?:=|"\s*:\s*"))[^&\s"]+')


class ApiKeyFilter(logging.Filter):
    """Scrub API key values from log records.

    urllib3 logs full request lines at DEBUG, query string included.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _API_KEY_RE.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def install_key_filter(logger_name: str = "urllib3.connectionpool") -> None:
    """Attach :class:`ApiKeyFilter` to ``logger_name`` once; independent of handler setup."""
    logger = logging.getLogger(logger_name)
    if not any(isinstance(f, ApiKeyFilter) for f in logger.filters):
        logger.addFilter(ApiKeyFilter())


def configure_logging(level: Optional[int]) -> None:
    """Configure root logging once; safe to call multiple times."""
    lvl = level if level is not None else logging.WARNING
    root = logging.getLogger()

    if root.handlers:
        # Logging already configured elsewhere - just adjust the level.
        root.setLevel(lvl)
    else:
        logging.basicConfig(
            level=lvl,
            format=_DEFAULT_FMT,
            datefmt=_DEFAULT_DATEFMT,
        )

    for handler in root.handlers:
        if not any(isinstance(f, ApiKeyFilter) for f in handler.filters):
            handler.addFilter(ApiKeyFilter())

    install_key_filter()

    # Always tone down noisy urllib3 header parsing warnings
    urllib3_conn_logger = logging.getLogger("urllib3.connection")
    if urllib3_conn_logger.level == logging.NOTSET or urllib3_conn_logger.level < logging.ERROR:
        urllib3_conn_logger.setLevel(logging.ERROR)
