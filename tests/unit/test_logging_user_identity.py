import logging

from esdash.core.logging import (
    _install_log_record_factory,
    clear_current_user,
    set_current_user,
    user_from_headers,
)


def test_user_from_headers_prefers_grafana_login():
    assert user_from_headers({"X-Grafana-User": "admin", "X-User-Id": "u1"}) == "admin"
    assert user_from_headers({"X-User-Id": "u1"}) == "u1"
    assert user_from_headers({}) == "anonymous"


def test_log_records_carry_current_user():
    _install_log_record_factory()
    set_current_user("alice")
    try:
        record = logging.getLogRecordFactory()("esdash", logging.INFO, __file__, 1, "msg", (), None)
        assert record.user_id == "alice"
    finally:
        clear_current_user()
    record = logging.getLogRecordFactory()("esdash", logging.INFO, __file__, 1, "msg", (), None)
    assert record.user_id == ""
