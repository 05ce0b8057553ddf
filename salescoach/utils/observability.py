"""
Engine Logging
loguru setup plus structured helpers for metric computations, detector runs
and persisted results. Every helper binds its fields so JSON sinks keep them.
"""
import sys
from loguru import logger
from typing import Any, Dict, Optional
from salescoach.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[environment]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)


def configure_logging(level: Optional[str] = None):
    """
    Install the engine's loguru sink on stderr.

    Console format for development, serialized JSON records when
    `enable_structured_logging` is set. `level` overrides the configured one.
    """
    settings = get_settings()
    level = level or settings.log_level

    logger.remove()
    logger.configure(extra={"environment": settings.environment})

    if settings.enable_structured_logging:
        logger.add(sys.stderr, format="{message}", level=level, serialize=True)
    else:
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    logger.info(
        f"Logging configured: level={level}, structured={settings.enable_structured_logging}, "
        f"environment={settings.environment}"
    )


def log_metric_computation(
    metric: str,
    owner_id: str,
    value: float,
    duration_ms: float | None = None,
    **context
):
    """
    Structured logging for a single metric computation.

    Args:
        metric: Metric name (e.g., "conversion_rate", "bcr")
        owner_id: Salesperson the metric was computed for
        value: Computed value
        duration_ms: Computation time in milliseconds
        **context: Additional context (window, account_id, sample sizes)

    Example:
        >>> log_metric_computation(
        ...     metric="conversion_rate",
        ...     owner_id="user-1",
        ...     value=42,
        ...     duration_ms=12.5,
        ...     account_id="acc-9"
        ... )
    """
    log_data = {
        "event_type": "metric_computation",
        "metric": metric,
        "owner_id": owner_id,
        "value": value,
    }

    if duration_ms is not None:
        log_data["duration_ms"] = round(duration_ms, 2)

    log_data.update(context)

    logger.bind(**log_data).info(f"Metric {metric} = {value} for {owner_id}")


def log_detector_run(
    detector: str,
    owner_id: str,
    signal_count: int,
    success: bool = True,
    error: str | None = None
):
    """
    Structured logging for a coaching-signal detector run.

    Args:
        detector: Detector name (e.g., "behavior_lack")
        owner_id: Salesperson being analyzed
        signal_count: Number of signals emitted
        success: Whether the detector completed
        error: Failure description when it did not
    """
    log_data = {
        "event_type": "detector_run",
        "detector": detector,
        "owner_id": owner_id,
        "signal_count": signal_count,
        "success": success,
    }

    if error:
        log_data["error"] = error

    level = "info" if success else "error"
    logger.bind(**log_data).log(
        level.upper(),
        f"Detector {detector} | {signal_count} signals"
    )


def log_business_event(
    event_type: str,
    owner_id: str,
    **details: Dict[str, Any]
):
    """
    Log business-critical events for analytics.

    Examples:
        - Outcome persisted for a period
        - Coaching signals saved
        - Signal resolved by a manager

    Args:
        event_type: Type of event (e.g., "outcome_saved")
        owner_id: The salesperson involved
        **details: Event-specific data
    """
    log_data = {
        "event_type": event_type,
        "owner_id": owner_id,
        **details
    }

    logger.bind(**log_data).success(f"Business Event: {event_type}")
