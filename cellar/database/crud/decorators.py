import inspect
from functools import wraps
from typing import Callable, Awaitable, Any, ParamSpec, TypeVar, AsyncContextManager, Protocol
from contextvars import ContextVar

from sqlalchemy.ext.asyncio import AsyncSession

from cellar.logging import get_logger, log_stack_warning
from cellar.database.models import ModelClass
from cellar.exceptions import QueryValidationError
from .protocol import DatabaseProtocol

P = ParamSpec("P")
T = TypeVar("T")
logger = get_logger(__name__)

_active_session: ContextVar[AsyncSession | None] = ContextVar(
    "active_session",
    default=None,
)


def session_manager(
    session_resolver: "SessionResolver" = None,
    autoflush_allowed: bool = True
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Manage ``AsyncSession`` lifecycle for coroutine-based CRUD operations.

    Session resolution order:
        1. Explicitly passed ``session``
        2. Currently active ``ContextVar`` session
        3. Newly created session via ``session_resolver``

    The active session is stored in a ``ContextVar`` so nested CRUD calls made by
    the wrapped method reuse it instead of opening a second transaction.

    Args:
        session_resolver:
            Callable that returns an ``AsyncSession`` context manager. Defaults to the
            object's ``session()`` method.
        autoflush_allowed:
            If False, enforces that the session has autoflush disabled.

    Raises:
        RuntimeError:
            If autoflush constraints are violated.
    """
    if session_resolver is None:
        session_resolver = _default_session_resolver

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(self, *args: P.args, **kwargs: P.kwargs) -> T:
            passed_session = kwargs.get("session")
            current_session = _active_session.get()

            if passed_session is not None:
                _enforce_autoflush(passed_session, autoflush_allowed, func)
                token = _active_session.set(passed_session)

                try:
                    return await func(self, *args, **kwargs)
                finally:
                    _active_session.reset(token)

            if current_session is not None:
                _enforce_autoflush(current_session, autoflush_allowed, func)
                log_stack_warning(logger, inspect.stack(), f"Func '{func.__name__}' called w/o session inside active session context")
                kwargs["session"] = current_session
                return await func(self, *args, **kwargs)

            async with session_resolver(self, autoflush=autoflush_allowed) as session:
                _enforce_autoflush(session, autoflush_allowed, func)
                token = _active_session.set(session)

                try:
                    kwargs["session"] = session
                    return await func(self, *args, **kwargs)
                finally:
                    _active_session.reset(token)

        return wrapper

    return decorator


def ensure_required(many: bool = False) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Validate presence of required model columns before a create runs.

    The wrapped coroutine takes ``(model_class, session, data)``; ``data`` is one
    dict, or a sequence of dicts when ``many`` is True. Foreign key columns are
    never required since a nested relation write may fill them.

    Raises:
        QueryValidationError:
            If required columns are missing.
    """
    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(model_class: ModelClass, session: AsyncSession, data: Any, *args: P.args, **kwargs: P.kwargs) -> T:
            required_columns = model_class.required_columns

            def get_missing(d_: dict) -> list[str]:
                return [col for col in required_columns if col not in d_]

            if not many:
                if not isinstance(data, dict):
                    raise QueryValidationError(model_class.model_name, f"data must be a dict, got {type(data).__name__}")

                if missing_columns := get_missing(data):
                    raise QueryValidationError(model_class.model_name, f"missing required columns: {', '.join(missing_columns)}")
            else:
                for i, d in enumerate(data):
                    if not isinstance(d, dict):
                        raise QueryValidationError(model_class.model_name, f"item #{i} must be a dict, got {type(d).__name__}")

                    if missing_columns := get_missing(d):
                        raise QueryValidationError(
                            model_class.model_name,
                            f"missing required columns at index {i}: {', '.join(missing_columns)}"
                        )

            return await func(model_class, session, data, *args, **kwargs)

        return wrapper

    return decorator


class SessionResolver(Protocol):
    """Protocol for resolving an AsyncSession context manager.

    Implementations return an async context manager yielding an ``AsyncSession``,
    which keeps the CRUD decorators decoupled from how the database is wired.
    """
    def __call__(
        self,
        obj: Any,
        *,
        autoflush: bool = True,
    ) -> AsyncContextManager[AsyncSession]: ...


class DbSessionResolver(SessionResolver):
    """SessionResolver that delegates to ``obj.db.session()``.

    Used by objects holding the database handle on a ``db`` attribute (seeders,
    repositories) rather than being the database themselves.
    """
    def __call__(
        self,
        obj: Any,
        *,
        autoflush: bool = True
    ) -> AsyncContextManager[AsyncSession]:
        return obj.db.session(autoflush=autoflush)


db_session_resolver = DbSessionResolver()


def _default_session_resolver(
    obj: DatabaseProtocol,
    *,
    autoflush: bool = True
) -> AsyncContextManager[AsyncSession]:
    return obj.session(autoflush=autoflush)


def _enforce_autoflush(
    session: AsyncSession,
    autoflush_allowed: bool,
    func: Callable[..., Any]
):
    if not autoflush_allowed and session.autoflush:
        raise RuntimeError(f"{func.__name__} requires autoflush=False but received session with autoflush=True.")
