"""Tests for structured logging."""

import json
import logging

import pytest

from kmsjwk.core.logging import (
    HumanFormatter,
    StructuredFormatter,
    StructuredLogger,
    get_logger,
    log_context,
    log_operation,
    mask_sensitive,
    setup_logging,
)


def make_record(msg: str = "Key created", level: int = logging.INFO, **fields) -> logging.LogRecord:
    record = logging.LogRecord("kmsjwk.test", level, __file__, 1, msg, (), None)
    if fields:
        record.extra_fields = fields
    return record


class TestMaskSensitive:
    """Tests for key material masking."""

    def test_private_members_masked(self):
        """JWK private members are redacted."""
        masked = mask_sensitive({"d": "secret", "p": "1", "dq": "2", "x": "pub", "kid": "k1"})

        assert masked["d"] == "[REDACTED]"
        assert masked["p"] == "[REDACTED]"
        assert masked["dq"] == "[REDACTED]"
        assert masked["x"] == "pub"
        assert masked["kid"] == "k1"

    def test_substring_match(self):
        """Long sensitive names match as substrings."""
        masked = mask_sensitive({"private_key_pem": "...", "api_token": "t", "key_type": "ED25519"})

        assert masked["private_key_pem"] == "[REDACTED]"
        assert masked["api_token"] == "[REDACTED]"
        assert masked["key_type"] == "ED25519"

    def test_short_names_not_substrings(self):
        """Short names only match exactly."""
        masked = mask_sensitive({"duration_ms": 1.5, "operation": "convert"})
        assert masked == {"duration_ms": 1.5, "operation": "convert"}

    def test_nested(self):
        """Nested dictionaries are masked."""
        masked = mask_sensitive({"jwk": {"kty": "EC", "d": "abc"}})
        assert masked == {"jwk": {"kty": "EC", "d": "[REDACTED]"}}


class TestFormatters:
    """Tests for log formatters."""

    def test_structured_formatter(self):
        """JSON output carries fields and masks key material."""
        output = json.loads(StructuredFormatter().format(make_record(key_type="ED25519", d="x")))

        assert output["level"] == "INFO"
        assert output["logger"] == "kmsjwk.test"
        assert output["message"] == "Key created"
        assert output["key_type"] == "ED25519"
        assert output["d"] == "[REDACTED]"
        assert "source" not in output

    def test_structured_formatter_warning_source(self):
        """Warnings include their source location."""
        output = json.loads(StructuredFormatter().format(make_record(level=logging.WARNING)))
        assert output["source"]["line"] == 1

    def test_correlation_id(self):
        """Records inside log_context carry the correlation id."""
        with log_context(correlation_id="abc-123"):
            output = json.loads(StructuredFormatter().format(make_record()))
        assert output["correlation_id"] == "abc-123"

        output = json.loads(StructuredFormatter().format(make_record()))
        assert "correlation_id" not in output

    def test_human_formatter(self):
        """Human output lists masked fields after the message."""
        output = HumanFormatter().format(make_record(key_id="k1", seed="s"))

        assert "[kmsjwk.test] Key created" in output
        assert "key_id=k1" in output
        assert "seed=[REDACTED]" in output


class TestLoggers:
    """Tests for logger setup."""

    def test_get_logger(self):
        """get_logger returns a StructuredLogger."""
        assert isinstance(get_logger("kmsjwk.tests.structured"), StructuredLogger)

    def test_keyword_fields(self, caplog):
        """Keyword arguments become extra fields."""
        logger = get_logger("kmsjwk.tests.fields")
        with caplog.at_level(logging.DEBUG, logger="kmsjwk"):
            logger.info("converted", key_type="ED25519")

        assert caplog.records[-1].extra_fields == {"key_type": "ED25519"}

    def test_setup_logging(self):
        """setup_logging installs one handler on the package logger."""
        setup_logging(json_output=True, level="debug")
        setup_logging(json_output=True, level="debug")

        package_logger = logging.getLogger("kmsjwk")
        assert package_logger.level == logging.DEBUG
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0].formatter, StructuredFormatter)
        assert package_logger.propagate is False

    def test_setup_logging_from_settings(self, monkeypatch):
        """Defaults come from settings."""
        monkeypatch.setenv("KMSJWK_LOG_LEVEL", "warning")
        setup_logging()

        package_logger = logging.getLogger("kmsjwk")
        assert package_logger.level == logging.WARNING
        assert isinstance(package_logger.handlers[0].formatter, HumanFormatter)


class TestLogOperation:
    """Tests for the log_operation decorator."""

    def test_success(self, caplog):
        """Successful calls log completion with timing."""

        @log_operation("double")
        def double(value):
            return value * 2

        with caplog.at_level(logging.DEBUG):
            assert double(2) == 4

        record = next(r for r in caplog.records if r.getMessage() == "double completed")
        assert record.extra_fields["operation"] == "double"
        assert "duration_ms" in record.extra_fields

    def test_failure_propagates(self, caplog):
        """Failures are logged and re-raised."""

        @log_operation("explode")
        def explode():
            raise ValueError("boom")

        with caplog.at_level(logging.DEBUG):
            with pytest.raises(ValueError, match="boom"):
                explode()

        record = next(r for r in caplog.records if r.getMessage() == "explode failed")
        assert record.extra_fields["error"] == "boom"
        assert record.extra_fields["error_type"] == "ValueError"
