"""Tests for instantly.transport."""

import json
import logging
from unittest.mock import MagicMock, PropertyMock

import pytest
import requests

from instantly.config import ClientConfig
from instantly.exceptions import HTTPStatusError, TransportError
from instantly.rate_limiter import TokenBucket
from instantly.transport import Transport


class TestBuildUrl:
    def test_default_host(self, transport):
        assert transport.build_url("campaign/list") == "https://api.instantly.ai/api/v1/campaign/list"

    def test_custom_host_and_version(self, session, api_key):
        cfg = ClientConfig(host="localhost:8443", api_version=2, session=session)
        t = Transport(api_key, cfg)

        assert t.build_url("/lead/get") == "https://localhost:8443/api/v2/lead/get"

    def test_uses_own_session_when_none_configured(self, api_key):
        t = Transport(api_key)

        assert isinstance(t.session, requests.Session)

    def test_repr_hides_api_key(self, transport, api_key):
        assert api_key not in repr(transport)


class TestRead:
    def test_get_with_api_key_first(self, transport, sent, api_key):
        body = transport.read("campaign/summary", [("campaign_id", "c1")])

        method, url, params, data = sent()
        assert method == "GET"
        assert url == "https://api.instantly.ai/api/v1/campaign/summary"
        assert params == [("api_key", api_key), ("campaign_id", "c1")]
        assert data is None
        assert body == b'{"status": "success"}'

    def test_params_keep_supplied_order(self, transport, sent):
        transport.read("x", [("z", "1"), ("a", "2"), ("m", "3")])

        _, _, params, _ = sent()
        assert [k for k, _ in params] == ["api_key", "z", "a", "m"]

    def test_mapping_params_and_value_conversion(self, transport, sent, api_key):
        transport.read("account/list", {"limit": 10, "skip": 0, "flag": True})

        _, _, params, _ = sent()
        assert params == [("api_key", api_key), ("limit", "10"), ("skip", "0"), ("flag", "true")]

    def test_no_params(self, transport, sent, api_key):
        transport.read("authenticate")

        _, _, params, _ = sent()
        assert params == [("api_key", api_key)]

    def test_emitted_query_string(self, transport, session, api_key):
        """Check the URL requests would actually send."""
        transport.read("lead/get", [("campaign_id", "c1"), ("email", "a+b@x.io")])

        call = session.request.call_args
        prepared = requests.Request(call.args[0], call.args[1], params=call.kwargs["params"]).prepare()
        assert prepared.url == (
            "https://api.instantly.ai/api/v1/lead/get"
            f"?api_key={api_key}&campaign_id=c1&email=a%2Bb%40x.io"
        )
        assert prepared.url.count("api_key=") == 1

    @pytest.mark.parametrize("params", [[("api_key", "other")], {"api_key": "other"}])
    def test_caller_api_key_rejected(self, transport, session, params):
        with pytest.raises(TransportError, match="api_key"):
            transport.read("x", params)

        session.request.assert_not_called()

    def test_timeout_passed_through(self, session, api_key):
        t = Transport(api_key, ClientConfig(session=session, timeout=5.0))
        t.read("authenticate")

        assert session.request.call_args.kwargs["timeout"] == 5.0


class TestWrite:
    def test_post_json_with_api_key(self, transport, session, sent, api_key):
        transport.write("campaign/launch", {"campaign_id": "c1"})

        method, url, params, body = sent()
        assert method == "POST"
        assert url == "https://api.instantly.ai/api/v1/campaign/launch"
        assert params is None
        assert body == {"campaign_id": "c1", "api_key": api_key}
        headers = session.request.call_args.kwargs["headers"]
        assert headers["Content-Type"] == "application/json"

    @pytest.mark.parametrize("body", [None, {}])
    def test_api_key_present_for_empty_body(self, transport, sent, api_key, body):
        transport.write("blocklist/add", body)

        _, _, _, sent_body = sent()
        assert sent_body == {"api_key": api_key}

    def test_existing_fields_preserved(self, transport, sent, api_key):
        original = {"entries": ["a@x.io"], "nested": {"k": 1}, "flag": False}
        transport.write("blocklist/add", original)

        _, _, _, sent_body = sent()
        assert sent_body == {**original, "api_key": api_key}
        # Caller's mapping is left alone
        assert "api_key" not in original

    def test_non_mapping_body_raises(self, transport, session):
        with pytest.raises(TransportError):
            transport.write("lead/add", ["not", "a", "mapping"])  # type: ignore[arg-type]
        session.request.assert_not_called()

    def test_unserializable_body_raises(self, transport, session):
        with pytest.raises(TransportError, match="marshal"):
            transport.write("lead/add", {"when": object()})
        session.request.assert_not_called()


class TestErrors:
    def test_network_error_becomes_transport_error(self, transport, session, api_key):
        session.request.side_effect = requests.ConnectionError(
            f"refused: https://api.instantly.ai/api/v1/x?api_key={api_key}"
        )

        with pytest.raises(TransportError) as exc_info:
            transport.read("x")

        assert "refused" in str(exc_info.value)
        assert api_key not in str(exc_info.value)

    def test_timeout_becomes_transport_error(self, transport, session):
        session.request.side_effect = requests.Timeout("read timed out")

        with pytest.raises(TransportError):
            transport.write("x", {})

    def test_body_read_failure(self, transport, session):
        r = MagicMock(spec=requests.Response)
        r.status_code = 200
        type(r).content = PropertyMock(
            side_effect=requests.exceptions.ChunkedEncodingError("connection cut")
        )
        session.request.return_value = r

        with pytest.raises(TransportError, match="read response body"):
            transport.read("x")

    def test_http_error_status(self, transport, respond, api_key):
        respond({"error": f"bad key {api_key}"}, status_code=401)

        with pytest.raises(HTTPStatusError) as exc_info:
            transport.read("authenticate")

        err = exc_info.value
        assert err.status_code == 401
        assert isinstance(err, TransportError)
        assert "bad key" in err.body
        assert api_key not in err.body
        assert api_key not in str(err)

    def test_http_200_with_failure_status_is_returned_as_is(self, transport, respond):
        respond({"status": "failed"})

        assert json.loads(transport.write("campaign/launch", {})) == {"status": "failed"}


class TestRateLimiting:
    def test_every_call_acquires_a_token(self, session, api_key):
        limiter = MagicMock(spec=TokenBucket)
        t = Transport(api_key, ClientConfig(session=session), limiter=limiter)

        t.read("a")
        t.write("b", {})
        t.read("c")

        assert limiter.acquire.call_count == 3

    def test_calls_are_spaced_by_the_limiter(self, transport, clock):
        for _ in range(5):
            transport.read("campaign/list")

        assert clock.now == pytest.approx(0.4)

    def test_one_limiter_per_transport(self, session, api_key):
        cfg = ClientConfig(session=session)

        assert Transport(api_key, cfg).limiter is not Transport(api_key, cfg).limiter


def test_api_key_never_logged(transport, session, api_key, caplog):
    session.request.side_effect = requests.ConnectionError(f"boom api_key={api_key}")

    with caplog.at_level(logging.DEBUG, logger="instantly"):
        with pytest.raises(TransportError):
            transport.read("campaign/list", [("x", "1")])

    assert caplog.records
    assert api_key not in caplog.text


def test_urllib3_request_line_is_scrubbed(transport, api_key, caplog):
    pool_logger = logging.getLogger("urllib3.connectionpool")

    with caplog.at_level(logging.DEBUG, logger="urllib3.connectionpool"):
        pool_logger.debug('%s "GET /api/v1/campaign/list?api_key=%s HTTP/1.1" 200', "host", api_key)

    assert "api_key=***" in caplog.text
    assert api_key not in caplog.text
