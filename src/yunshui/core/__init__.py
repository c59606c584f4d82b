"""Core module - Logging, error types and error monitoring."""

from yunshui.core.logger import setup_logger
from yunshui.core.exceptions import NotFoundError, StorageError, ValidationError, YunshuiError

__all__ = ["setup_logger", "YunshuiError", "NotFoundError", "ValidationError", "StorageError"]
