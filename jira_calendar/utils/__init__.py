"""Utility modules for the visit calendar"""

from .logger import (
    get_logger,
    log_api_usage,
    setup_logging,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "log_api_usage",
]
