import logging
import copy

from .utils import get_alias

RESET = "\033[0m"
DIM = "\033[2m"
CYAN = "\033[36m"
WHITE = "\033[37m"

LEVEL_COLORS = {
    "DEBUG": "\033[38;5;252m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;31m",
}

ALIAS_COLORS = {
    "DEBUG": "\033[38;5;248m",
    "INFO": "\033[38;5;71m",
    "WARNING": "\033[38;5;179m",
    "ERROR": "\033[38;5;167m",
    "CRITICAL": "\033[38;5;167m",
}

CONTEXT_KEYS = ("model", "operation")


class LogFormatter(logging.Formatter):
    """Formatter that shortens logger names and renders structured context.

    Records gain an ``alias`` attribute (the short logger name) and a ``prefix``
    built from the ``model`` and ``operation`` context fields, e.g.
    ``[Customer.find_many]``. With ``colored=True`` level, alias, prefix and message
    are wrapped in ANSI colour codes. The incoming record is copied before mutation
    so other handlers see it untouched.
    """
    def __init__(self, *args, colored: bool = False, **kwargs):
        super().__init__(*args, **kwargs)
        self.colored = colored

    def format(self, record: logging.LogRecord) -> str:
        record = copy.copy(record)
        record.alias = get_alias(record.name)
        record.prefix = self._build_prefix(record)

        if self.colored:
            level_color = LEVEL_COLORS.get(record.levelname, "")
            alias_color = ALIAS_COLORS.get(record.levelname, "")
            record.levelname = f"{level_color}{record.levelname:<8}{RESET}"
            record.alias = f"{alias_color}{record.alias:<8}{RESET}"
            record.prefix = f"{CYAN}{record.prefix}{RESET}" if record.prefix else ""
            record.msg = f"{WHITE}{record.msg}{RESET}"

        formatted = super().format(record)

        if self.colored and (asctime := getattr(record, "asctime", None)):
            formatted = formatted.replace(asctime, f"{DIM}{asctime}{RESET}", 1)

        return formatted

    @staticmethod
    def _build_prefix(record: logging.LogRecord) -> str:
        if prefix := getattr(record, "prefix", None):
            return f"[{prefix}] "

        parts = [str(value) for key in CONTEXT_KEYS if (value := getattr(record, key, None))]

        return f"[{'.'.join(parts)}] " if parts else ""
