from contextlib import asynccontextmanager
from typing import AsyncIterator, Any

from sqlalchemy import event
from sqlalchemy.sql import select, text
from sqlalchemy.pool.base import ConnectionPoolEntry
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncEngine, AsyncSession
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError

from cellar.config import DATABASE_URL, POSTGRESQL_CONFIGURATION, DATABASE_ECHO, DATABASE_POOL_SIZE
from cellar.logging import get_logger
from .crud import CRUD
from .delegates import Delegates
from . import events

logger = get_logger(__name__)


def resolve_database_uri(database_url: str | None = DATABASE_URL) -> URL:
    """Build the engine URL; a full ``DATABASE_URL`` wins over ``POSTGRESQL_*`` parts.

    Plain ``postgresql://`` URLs are switched to the asyncpg driver.
    """
    if database_url:
        url = make_url(database_url)

        if url.drivername in ("postgresql", "postgres"):
            url = url.set(drivername="postgresql+asyncpg")

        return url

    return URL.create(**POSTGRESQL_CONFIGURATION)


class Transaction(Delegates):
    """Delegates bound to one session; everything commits or rolls back together."""
    def __init__(self, db: "PostgresqlDB", session: AsyncSession):
        self.db = db
        self.session = session

    @property
    def _delegate_db(self) -> "PostgresqlDB":
        return self.db

    @property
    def _delegate_session(self) -> AsyncSession:
        return self.session

    async def query_raw(self, sql: str, **params: Any) -> list[dict[str, Any]]:
        return await self.db.query_raw(sql, session=self.session, **params)

    async def execute_raw(self, sql: str, **params: Any) -> int:
        return await self.db.execute_raw(sql, session=self.session, **params)


class PostgresqlDB(CRUD, Delegates):
    """Asynchronous PostgreSQL database client.

    Wraps SQLAlchemy's ``AsyncEngine`` and provides:
        - Engine lifecycle management
        - Async session factory and transactional session context
        - Per-model delegates (``db.customer.find_many(...)``)
        - Interactive transactions and raw SQL escape hatches

    Integrates all ``CRUD`` operations for a fully-featured database interface.
    """
    def __init__(self, database_url: str = None):
        """Initialize the async engine and register connection hooks."""
        self.uri = resolve_database_uri(database_url or DATABASE_URL)
        self.engine: AsyncEngine = create_async_engine(
            self.uri,
            echo=DATABASE_ECHO,
            pool_size=DATABASE_POOL_SIZE,
            pool_pre_ping=True
        )
        self._session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

        @event.listens_for(self.engine.sync_engine, "first_connect")
        def on_connect(dbapi_connection: Any, connection_record: ConnectionPoolEntry):
            logger.info(f"Connected to PostgreSQL at '{self.uri.render_as_string(hide_password=True)}'")

    def async_session_generator(self) -> async_sessionmaker[AsyncSession]:
        """Return the async session factory (``expire_on_commit=False``)."""
        return self._session_factory

    async def close(self):
        """Dispose of the underlying engine and release pooled connections."""
        await self.engine.dispose()

    async def test_connection(self):
        """Verify database connectivity with a ``SELECT 1``.

        Raises:
            SQLAlchemyError:
                If the connection or query fails.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(select(1))
        except SQLAlchemyError:
            logger.error(f"Could not connect to PostgreSQL at '{self.uri.render_as_string(hide_password=True)}'")
            raise

    @asynccontextmanager
    async def session(self, autoflush: bool = True) -> AsyncIterator[AsyncSession]:
        """Provide a transactional async session context.

        Commits on successful exit and rolls back on exception.

        Args:
            autoflush:
                Whether SQLAlchemy should autoflush pending changes.

        Yields:
            AsyncSession: Active transactional session.
        """
        new_async_session = self.async_session_generator()

        async with new_async_session(autoflush=autoflush) as session_:
            try:
                yield session_
                await session_.commit()
            except Exception:
                await session_.rollback()
                raise

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """Run several delegate calls in one all-or-nothing transaction.

        Example:
            async with db.transaction() as tx:
                consigned = await tx.consigned.create({...})
                await tx.wine_on_consigned.create_many([...])
        """
        async with self.session() as session:
            logger.debug("Transaction started")
            yield Transaction(self, session)

        logger.debug("Transaction committed")

    async def query_raw(self, sql: str, session: AsyncSession = None, **params: Any) -> list[dict[str, Any]]:
        """Run a raw query with named (``:name``) parameters and return row mappings."""
        if session is not None:
            result = await session.execute(text(sql), params)
            return [dict(row) for row in result.mappings().all()]

        async with self.session() as session_:
            result = await session_.execute(text(sql), params)
            return [dict(row) for row in result.mappings().all()]

    async def execute_raw(self, sql: str, session: AsyncSession = None, **params: Any) -> int:
        """Run a raw statement with named parameters and return the affected row count."""
        if session is not None:
            return (await session.execute(text(sql), params)).rowcount

        async with self.session() as session_:
            return (await session_.execute(text(sql), params)).rowcount
