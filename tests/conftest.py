import json
from unittest.mock import MagicMock

import pytest
import requests

from instantly.client import InstantlyClient
from instantly.config import ClientConfig
from instantly.rate_limiter import TokenBucket
from instantly.transport import Transport

API_KEY = "sk-test-123"


class FakeClock:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_response(payload=None, *, status_code=200, raw=None):
    """Build a MagicMock shaped like requests.Response."""
    r = MagicMock(spec=requests.Response)
    r.status_code = status_code
    if raw is None:
        raw = json.dumps(payload).encode("utf-8")
    r.content = raw
    return r


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    """Session whose every request answers {"status": "success"} unless reconfigured."""
    s = MagicMock(spec=requests.Session)
    s.request.return_value = make_response({"status": "success"})
    return s


@pytest.fixture
def transport(session, clock):
    cfg = ClientConfig(session=session)
    limiter = TokenBucket(cfg.rate_limit, clock=clock, sleep=clock.sleep)
    return Transport(API_KEY, cfg, limiter=limiter)


@pytest.fixture
def client(transport):
    return InstantlyClient(API_KEY, transport=transport)


@pytest.fixture
def respond(session):
    """Set the JSON body returned by the next requests."""

    def _respond(payload=None, *, status_code=200, raw=None):
        session.request.return_value = make_response(payload, status_code=status_code, raw=raw)

    return _respond


@pytest.fixture
def api_key():
    return API_KEY


@pytest.fixture
def sent(session):
    """Return (method, url, params, json_body) for a recorded request."""

    def _sent(index=-1):
        call = session.request.call_args_list[index]
        method, url = call.args[:2]
        params = call.kwargs.get("params")
        data = call.kwargs.get("data")
        body = json.loads(data) if data else None
        return method, url, params, body

    return _sent
