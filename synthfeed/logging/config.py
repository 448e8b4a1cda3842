"""
Centralized logging configuration for the SynthFeed engine.

Every component logs through structlog. The pure oracle functions never log
since they sit on the per-tick hot path; the candle synthesizer and the feed
driver use the subsystem loggers defined here, and the event helpers keep
field names identical across call sites.
"""
import logging
import sys
from typing import Any, Optional, TextIO

import structlog
from structlog.types import FilteringBoundLogger

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure structlog for the engine and its feed driver.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, render one JSON object per line; otherwise console output
        include_timestamp: Include an ISO timestamp in each entry
        include_caller: Include caller filename and line number
        extra_processors: Additional structlog processors, run before rendering
        stream: Output stream, defaults to stdout

    Raises:
        ValueError: If level is not a standard logging level name
    """
    if level.upper() not in _LEVELS:
        raise ValueError(f"Unknown log level {level!r}, expected one of {', '.join(_LEVELS)}")
    log_level = getattr(logging, level.upper())

    # Repeated calls replace the previous root handler
    logging.basicConfig(
        level=log_level,
        stream=stream or sys.stdout,
        format="%(message)s",
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream is None))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_feed_logger(name: str) -> FilteringBoundLogger:
    """Get a logger bound to the feed driver subsystem."""
    return structlog.get_logger(name, subsystem="feed_driver")


def get_synth_logger(name: str) -> FilteringBoundLogger:
    """Get a logger bound to the candle synthesizer subsystem."""
    return structlog.get_logger(name, subsystem="candle_synth")


def log_regime_change(
    logger: FilteringBoundLogger,
    symbol: str,
    interval: int,
    from_regime: Optional[str],
    to_regime: str,
    candle_time: int,
    duration: int,
) -> None:
    """
    Log a regime roll inside the candle synthesizer.

    Args:
        logger: Structlog logger instance
        symbol: Symbol being synthesized
        interval: Candle interval in seconds
        from_regime: Regime being replaced (None at the start of a chain)
        to_regime: Newly rolled regime
        candle_time: Boundary time of the candle that triggered the roll
        duration: Number of candles the new regime lasts
    """
    logger.debug(
        "Regime change",
        symbol=symbol,
        interval=interval,
        from_regime=from_regime or "none",
        to_regime=to_regime,
        candle_time=candle_time,
        duration=duration,
    )


def log_candle_rollover(
    logger: FilteringBoundLogger,
    symbol: str,
    interval: int,
    closed_time: int,
    opened_time: int,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a candle boundary crossing in a running feed.

    Args:
        logger: Structlog logger instance
        symbol: Subscribed symbol
        interval: Candle interval in seconds
        closed_time: Boundary time of the candle that closed
        opened_time: Boundary time of the candle that opened
        context: Additional context data
    """
    bound_logger = logger.bind(
        symbol=symbol,
        interval=interval,
        closed_time=closed_time,
        opened_time=opened_time,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Candle rollover")
