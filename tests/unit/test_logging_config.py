"""Tests for structured logging helpers."""

import io
import json
from unittest.mock import Mock

import pytest
import structlog

from synthfeed.logging.config import (
    configure_logging,
    get_feed_logger,
    get_logger,
    log_candle_rollover,
    log_regime_change,
)


class TestLoggingHelpers:
    """Test subsystem loggers and event helpers."""

    def setup_method(self):
        configure_logging(level="DEBUG", format_json=True)

    def teardown_method(self):
        structlog.reset_defaults()

    def test_candle_rollover_binds_context(self):
        logger = Mock()
        bound = logger.bind.return_value

        log_candle_rollover(logger, "EUR/USD", 60, 1_699_999_980, 1_700_000_040)

        logger.bind.assert_called_once_with(
            symbol="EUR/USD",
            interval=60,
            closed_time=1_699_999_980,
            opened_time=1_700_000_040,
        )
        bound.info.assert_called_once_with("Candle rollover")

    def test_candle_rollover_extra_context(self):
        logger = Mock()
        bound = logger.bind.return_value

        log_candle_rollover(logger, "EUR/USD", 60, 0, 60, context={"missed": 3})

        bound.bind.assert_called_once_with(context={"missed": 3})
        bound.bind.return_value.info.assert_called_once_with("Candle rollover")

    def test_regime_change(self):
        logger = Mock()

        log_regime_change(logger, "BTC/USD", 300, None, "uptrend", 1_699_999_800, 12)

        logger.debug.assert_called_once_with(
            "Regime change",
            symbol="BTC/USD",
            interval=300,
            from_regime="none",
            to_regime="uptrend",
            candle_time=1_699_999_800,
            duration=12,
        )

    def test_loggers_accept_events(self):
        get_logger("synthfeed.test").info("plain event", value=1)
        get_feed_logger("synthfeed.test").warning("feed event", subscription_id="sub-1")

    def test_json_output_to_stream(self):
        stream = io.StringIO()
        configure_logging(level="INFO", format_json=True, stream=stream)

        get_feed_logger("synthfeed.test.json").info("seeded", history=500)
        get_feed_logger("synthfeed.test.json").debug("filtered out")

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert len(lines) == 1
        assert lines[0]["event"] == "seeded"
        assert lines[0]["history"] == 500
        assert lines[0]["subsystem"] == "feed_driver"
        assert lines[0]["level"] == "info"

    def test_unknown_level_rejected(self):
        with pytest.raises(ValueError):
            configure_logging(level="VERBOSE")
