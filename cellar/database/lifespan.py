from typing import Callable, Awaitable, ParamSpec, TypeVar, Concatenate
from functools import wraps

from .db import PostgresqlDB

P = ParamSpec("P")
R = TypeVar("R")


def db_lifespan(func: Callable[Concatenate[PostgresqlDB, P], Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Ensure a PostgresqlDB lifecycle around an async function.

    If no PostgresqlDB instance is among the positional arguments one is created
    and prepended; its engine is disposed after completion. A passed-in instance
    is left open for the caller.
    """
    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        if any(isinstance(a, PostgresqlDB) for a in args):
            return await func(*args, **kwargs)

        db = PostgresqlDB()

        try:
            return await func(db, *args, **kwargs)
        finally:
            await db.close()

    return wrapper
