"""
Tests for structured logging helpers.
"""
import json
import logging

from zapbroker.infra.logging_cfg import ThrottledFilter, log_event, redact


def make_record(msg):
    return logging.LogRecord("zapbroker", logging.WARNING, __file__, 1, msg, None, None)


class TestRedact:

    def test_sensitive_fields_masked(self):
        out = redact({"password": "pw", "new_password": "x", "signature": "abc", "operation": "assets"})
        assert out == {"password": "***", "new_password": "***", "signature": "***", "operation": "assets"}

    def test_none_left_alone(self):
        assert redact({"secret": None}) == {"secret": None}


class TestLogEvent:

    def test_emits_json_line(self, caplog):
        logger = logging.getLogger("logevent_test")
        with caplog.at_level(logging.INFO, logger="logevent_test"):
            log_event(logger, "api_request", operation="markets", status=200, secret="s")
        data = json.loads(caplog.records[0].getMessage())
        assert data == {"event": "api_request", "operation": "markets", "status": 200, "secret": "***"}

    def test_below_level_skipped(self, caplog):
        logger = logging.getLogger("logevent_test_quiet")
        with caplog.at_level(logging.WARNING, logger="logevent_test_quiet"):
            log_event(logger, "api_request", level=logging.DEBUG)
        assert caplog.records == []


class TestThrottledFilter:

    def test_repeats_suppressed_per_operation(self):
        f = ThrottledFilter(cooldown_sec=60.0)
        msg_a = json.dumps({"event": "http_network_error", "operation": "assets"})
        msg_b = json.dumps({"event": "http_network_error", "operation": "markets"})
        assert f.filter(make_record(msg_a))
        assert not f.filter(make_record(msg_a))
        assert f.filter(make_record(msg_b))

    def test_other_events_pass(self):
        f = ThrottledFilter(cooldown_sec=60.0)
        msg = json.dumps({"event": "order_updated_applied", "token": "1"})
        assert f.filter(make_record(msg))
        assert f.filter(make_record(msg))
        assert f.filter(make_record("plain text"))
