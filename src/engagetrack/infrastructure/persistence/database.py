"""Database abstraction layer using SQLAlchemy 2.0 async.

This module provides the database session management and engine configuration
for SQLAlchemy with async support. SQLite (aiosqlite) is the default driver;
any async SQLAlchemy URL works.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from engagetrack.core.config import get_settings
from engagetrack.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class DatabaseManager:
    """Database connection and session manager.

    This class manages the async database engine and session factory.
    It provides context managers for database sessions and handles
    connection pooling.
    """

    def __init__(self, engine: AsyncEngine | None = None) -> None:
        """Initialize the database manager.

        Args:
            engine: Pre-built engine to use instead of one built from settings.
        """
        self.settings = get_settings()
        self._engine = engine
        self._session_factory = None

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the database engine.

        Returns:
            AsyncEngine: SQLAlchemy async engine instance.
        """
        if self._engine is None:
            is_sqlite = self.settings.database_url.startswith("sqlite")
            pool_options = (
                {}
                if is_sqlite
                else {
                    "pool_size": self.settings.db_pool_size,
                    "max_overflow": self.settings.db_max_overflow,
                    "pool_timeout": self.settings.db_pool_timeout,
                    "pool_recycle": self.settings.db_pool_recycle,
                }
            )
            self._engine = create_async_engine(
                self.settings.database_url,
                echo=self.settings.db_echo,
                connect_args={"check_same_thread": False} if is_sqlite else {},
                **pool_options,
            )
            logger.info(
                "Database engine created",
                database_url=self._engine.url.render_as_string(hide_password=True),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get or create the session factory.

        Returns:
            async_sessionmaker: SQLAlchemy async session factory.
        """
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            logger.debug("Database session factory created")
        return self._session_factory

    async def create_tables(self) -> None:
        """Create all database tables.

        Should be called on application startup for development.
        In production, use migrations instead.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created")

    async def drop_tables(self) -> None:
        """Drop all database tables.

        WARNING: This will delete all data. Only use in testing!
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            logger.warning("Database tables dropped")

    async def disconnect(self) -> None:
        """Close the database engine and all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a session that rolls back on error and is always closed.

        Yields:
            AsyncSession: SQLAlchemy async session.
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def check_connection(self) -> bool:
        """Check if database connection is working.

        Returns:
            bool: True if connection is successful, False otherwise.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                logger.debug("Database connection check successful")
                return True
        except Exception as e:
            logger.error("Database connection check failed", error=str(e))
            return False


# Global database manager instance
_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    """Get the global database manager instance.

    Returns:
        DatabaseManager: Global database manager instance.
    """
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for FastAPI to get database session.

    Yields:
        AsyncSession: SQLAlchemy async session.
    """
    db = get_db_manager()
    async with db.session() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Dependency for services that open their own sessions per unit of work."""
    return get_db_manager().session_factory


async def init_database() -> None:
    """Initialize the database.

    This function should be called on application startup.
    It creates tables if they don't exist (development mode) and bootstraps
    the first SUPER_ADMIN from configuration.
    """
    # Import all models to ensure they are registered with Base.metadata
    from engagetrack.infrastructure.persistence.models import (  # noqa: F401
        RoleAuditLogModel,
        UserModel,
        UserRoleModel,
    )

    db = get_db_manager()
    settings = get_settings()

    # Create database directory if using a SQLite file
    if settings.database_url.startswith("sqlite") and ":memory:" not in settings.database_url:
        db_path = settings.database_url.split(":///")[-1]
        db_dir = Path(db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Database directory created", path=str(db_dir))

    if not await db.check_connection():
        logger.error("Database connection failed")
        raise RuntimeError("Failed to connect to database")

    # Create tables in development (use migrations in production)
    if settings.is_development:
        logger.info("Development mode: Creating database tables")
        await db.create_tables()
    else:
        logger.info("Production mode: Skipping auto-create, use migrations")

    await _create_superadmin_from_env(db)


async def _create_superadmin_from_env(db: DatabaseManager) -> None:
    """Create the first SUPER_ADMIN from configuration if none exists.

    Args:
        db: Database manager instance.
    """
    from engagetrack.domain.services.superadmin_service import (
        SuperadminBootstrapError,
        SuperadminService,
    )

    settings = get_settings()

    if not settings.superadmin_email:
        logger.debug("Superadmin environment variables not configured, skipping")
        return

    async with db.session() as session:
        if await SuperadminService.has_superadmin(session):
            logger.info(
                "Superadmin already exists, skipping environment-based creation",
                email=settings.superadmin_email,
            )
            return

        try:
            user_id, created = await SuperadminService.ensure_superadmin(
                email=settings.superadmin_email,
                session=session,
                full_name=settings.superadmin_name,
            )
        except SuperadminBootstrapError as e:
            logger.error(
                "Failed to create superadmin from environment variables",
                error=str(e),
                email=settings.superadmin_email,
            )
            # Don't raise - allow application to start
            return

    logger.info(
        "Superadmin bootstrapped from environment variables",
        user_id=user_id,
        created=created,
        email=settings.superadmin_email,
    )


async def close_database() -> None:
    """Close the database connection.

    This function should be called on application shutdown.
    """
    db = get_db_manager()
    await db.disconnect()
