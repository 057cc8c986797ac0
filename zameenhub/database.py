"""
Database connection and session management.
Handles async database operations with SQLAlchemy and connection pooling.

The engine and session factory live on a ``Database`` object that is built
once by the application factory and handed to request handlers through
dependencies.
"""

from sqlalchemy.ext.asyncio import AsyncSession, AsyncEngine, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import event, text, DateTime, Uuid, func
from starlette.requests import HTTPConnection
from typing import AsyncGenerator, Optional
from datetime import datetime, timezone
import logging
import uuid

from zameenhub.config import Settings

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """
    Base class for all database models.
    Includes common fields: id, created_at, updated_at.
    """

    # Primary key with UUID
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    # Timestamp fields with automatic management
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False
    )

    def __repr__(self) -> str:
        """String representation of the model."""
        return f"<{self.__class__.__name__}(id={self.id})>"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the async engine and session factory for one application instance.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: AsyncEngine = self._create_engine(settings)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @staticmethod
    def _create_engine(settings: Settings) -> AsyncEngine:
        if settings.is_sqlite:
            engine = create_async_engine(settings.database_url, echo=settings.debug)
            event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
            return engine

        return create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,  # Validate connections before use
            pool_recycle=3600,  # Recycle connections after 1 hour
            pool_timeout=settings.db_pool_timeout,
            connect_args={
                "server_settings": {
                    "application_name": "zameenhub_api",
                }
            }
        )

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session and roll back on error."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        """
        Test database connectivity.
        Returns True if connection is successful, False otherwise.
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
                logger.info("Database connection successful")
                return True
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            return False

    async def create_tables(self) -> None:
        """Create all database tables."""
        # Register every model on the metadata before creating
        import zameenhub.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created successfully")

    async def drop_tables(self) -> None:
        """
        Drop all database tables.
        This should only be used in testing or development.
        """
        if self.settings.is_production:
            raise RuntimeError("Cannot drop tables in production environment")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            logger.info("Database tables dropped successfully")

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")


async def get_db(connection: HTTPConnection) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.
    Yields an async session from the application's Database and closes it after use.
    """
    database: Optional[Database] = getattr(connection.app.state, "database", None)
    if database is None:
        raise RuntimeError("Database is not configured on the application")

    async for session in database.session():
        yield session
