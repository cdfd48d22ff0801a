import logging


class Logger(logging.LoggerAdapter):
    """Logger adapter carrying structured context.

    Context given at construction (or through ``bind``) is merged with the per-call
    ``extra`` mapping; per-call keys win.
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs

    def bind(self, **context) -> "Logger":
        """Return a new adapter sharing the base logger with additional context."""
        return Logger(self.logger, extra={**self.extra, **context})
