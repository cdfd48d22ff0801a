from .adapter import Logger
from .setup import setup_logging
from .utils import get_logger, get_alias, log_stack_warning

__all__ = [
    "Logger",
    "setup_logging",
    "get_logger",
    "get_alias",
    "log_stack_warning"
]
