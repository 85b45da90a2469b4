from .log_utils import (
    LogUtilsMixin, logger, configure_logging, PercentProgress,
    PROGRESS_PERCENTAGE_STEP, LOG_FORMAT)


__all__ = [
    "LogUtilsMixin", "logger", "configure_logging", "PercentProgress",
    "PROGRESS_PERCENTAGE_STEP", "LOG_FORMAT",
]
