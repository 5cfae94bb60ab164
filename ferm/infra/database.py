"""Async database access for the plot and inventory tables.

Provides:
- Async SQLAlchemy engine and session factory owned by a Database instance
- Transaction scope that commits on success and rolls back on any error
- Startup verification with bounded retries
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ferm.config import Settings
from ferm.infra.logging import get_logger
from ferm.infra.retry import retry_async
from ferm.models import Base

logger = get_logger(__name__)

# Type alias for dependency injection
DatabaseSession = AsyncSession


class Database:
    """Owns one async engine and its session factory.

    Lifecycle: construct, ``connect()`` (or let the first ``transaction()``
    create the engine lazily), ``close()`` on shutdown.
    """

    def __init__(self, url: str, **engine_options: Any) -> None:
        self.url = url
        self._engine_options = engine_options
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        options: dict[str, Any] = {"echo": settings.debug}
        if settings.database_url.startswith("postgresql"):
            options.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_pool_max_overflow,
                pool_pre_ping=True,  # Verify connections before use
                pool_recycle=1800,  # Recycle connections after 30 min
            )
        return cls(settings.database_url, **options)

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the async database engine."""
        if self._engine is None:
            logger.info("Creating database engine", dialect=self.url.split(":", 1)[0])
            self._engine = create_async_engine(self.url, **self._engine_options)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Session scoped to one logical operation.

        Commits when the block exits normally, rolls back and re-raises on
        any exception. Row locks taken inside are released either way.

        Example:
            async with db.transaction() as session:
                plot = await session.scalar(select(Plot).with_for_update())
        """
        session = self.session_factory()

        try:
            yield session
            await session.commit()

        except Exception as e:
            await session.rollback()
            logger.debug("Transaction rolled back", error_type=type(e).__name__)
            raise

        finally:
            await session.close()

    async def verify(self) -> bool:
        """Verify database connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            await self._ping()
            return True
        except Exception as e:
            logger.error("Database connection failed", error=str(e))
            return False

    async def connect(self, attempts: int = 1, delay_seconds: float = 0.0) -> None:
        """Ping the database with bounded retries.

        Raises:
            TransientInfraError: If the database stays unreachable
        """
        await retry_async(
            self._ping,
            attempts=attempts,
            delay_seconds=delay_seconds,
            target="database",
        )
        logger.info("Database connection verified")

    async def _ping(self) -> None:
        async with self.transaction() as session:
            await session.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        """Create missing tables. Used by local setup and tests."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close the engine and all pooled connections."""
        if self._engine is not None:
            logger.info("Closing database engine")
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
