import logging
from inspect import FrameInfo
from pathlib import Path

from .adapter import Logger

EXTERNAL_NAMESPACES = ("sqlalchemy", "asyncpg")


def get_logger(name: str, **kwargs) -> Logger:
    """Return a contextual Logger adapter.

    The adapter wraps the logger for ``name`` (so the module path is kept in the
    record) and attaches ``kwargs`` as structured context on every entry. Handler
    routing happens by alias in ``logging.yaml``: ``cellar.database.crud.r`` is
    configured through the ``cellar.database`` logger.

    Args:
        name:
            Fully qualified logger name.
        **kwargs:
            Context fields injected into every log entry.

    Returns:
        Logger adapter instance.
    """
    return Logger(logging.getLogger(name), extra=kwargs)


def get_alias(name: str) -> str:
    """Derive a short alias from a fully qualified logger name.

    ``cellar.services.wine`` becomes ``services``; external namespaces such as
    ``sqlalchemy.engine.Engine`` collapse to their root package.
    """
    if "." not in name:
        return name

    path = name.split(".")

    if name.startswith(EXTERNAL_NAMESPACES):
        return path[0]

    return path[1]


def log_stack_warning(logger: Logger, stack: list[FrameInfo], message: str, frame: int = 1):
    """Emit a warning tagged with the caller's function, relative path and line.

    Args:
        logger:
            Logger adapter used to emit the warning.
        stack:
            ``inspect.stack()`` of the caller.
        message:
            Warning message body.
        frame:
            Stack frame index to report (default: the caller).
    """
    from cellar.config import PROJECT_ROOT

    caller_frame = stack[frame]
    filename = Path(caller_frame.filename).resolve()

    try:
        relative_path = filename.relative_to(PROJECT_ROOT)
    except ValueError:
        relative_path = filename

    logger.warning(f"{message} | Called from: {caller_frame.function} ({relative_path}:{caller_frame.lineno})")
