import logging

from instantly.logging_config import ApiKeyFilter, configure_logging, install_key_filter


def test_configure_logging_levels(caplog):
    # None: keep default WARNING (>=20)
    configure_logging(None)
    logger = logging.getLogger("instantly.test")
    logger.warning("warn")
    assert any("warn" in rec.message for rec in caplog.records)

    # INFO lowers threshold
    caplog.clear()
    configure_logging(logging.INFO)
    logger.info("info-ok")
    assert any("info-ok" in rec.message for rec in caplog.records)

    # DEBUG includes debug
    caplog.clear()
    configure_logging(logging.DEBUG)
    logger.debug("dbg")
    assert any("dbg" in rec.message for rec in caplog.records)


def test_configure_logging_quiets_urllib3_connection():
    configure_logging(logging.DEBUG)
    assert logging.getLogger("urllib3.connection").level == logging.ERROR


def test_filter_installed_once():
    configure_logging(logging.INFO)
    configure_logging(logging.INFO)

    for handler in logging.getLogger().handlers:
        assert sum(isinstance(f, ApiKeyFilter) for f in handler.filters) == 1


def _record(msg, *args):
    return logging.LogRecord("urllib3.connectionpool", logging.DEBUG, __file__, 1, msg, args, None)


def test_filter_scrubs_query_string():
    record = _record('%s "GET /api/v1/campaign/list?api_key=%s&x=1 HTTP/1.1" 200', "host", "sk-123")

    assert ApiKeyFilter().filter(record) is True
    assert record.getMessage() == 'host "GET /api/v1/campaign/list?api_key=***&x=1 HTTP/1.1" 200'


def test_filter_scrubs_json_body():
    record = _record('body: {"campaign_id": "c1", "api_key": "sk-123"}')

    ApiKeyFilter().filter(record)

    assert "sk-123" not in record.getMessage()
    assert '"api_key": "***"' in record.getMessage()


def test_filter_leaves_other_records_alone():
    record = _record("GET %s", "/api/v1/campaign/list")

    ApiKeyFilter().filter(record)

    assert record.args == ("/api/v1/campaign/list",)


def test_install_key_filter_is_idempotent():
    install_key_filter("instantly.test.pool")
    install_key_filter("instantly.test.pool")

    filters = logging.getLogger("instantly.test.pool").filters
    assert sum(isinstance(f, ApiKeyFilter) for f in filters) == 1
