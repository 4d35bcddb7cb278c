"""
Tests for the activity logger.
"""

from structlog.testing import capture_logs

from daybook.audit import ActivityLogger, create_correlation_id


class TestActivityLogger:

    def test_severity_picks_log_level(self):
        with capture_logs() as logs:
            logger = ActivityLogger()
            logger.log_ledger_loaded(3)
            logger.log_ledger_load_failed("bad json")
            logger.log_ledger_save_failed("disk full")
            logger.log_transaction_rejected("", "food")

        assert [entry["log_level"] for entry in logs] == ["info", "warning", "error", "debug"]
        assert all(entry["event"] == "activity_event" for entry in logs)
        assert logs[0]["details"] == {"count": 3}

    def test_correlation_id_is_carried(self):
        correlation_id = create_correlation_id()
        with capture_logs() as logs:
            ActivityLogger().log_weather_failed("timeout", correlation_id)

        assert logs[0]["event_type"] == "weather_failed"
        assert logs[0]["correlation_id"] == str(correlation_id)
        assert logs[0]["error_message"] == "timeout"

    def test_external_service_error(self):
        with capture_logs() as logs:
            ActivityLogger().log_external_service_error("gemini_image", "quota")

        assert logs[0]["log_level"] == "error"
        assert logs[0]["details"] == {"service": "gemini_image"}
        assert logs[0]["correlation_id"] is None
