"""Database singleton: async connection pool via SQLAlchemy (PostgreSQL or SQLite)."""

import logging
from typing import Optional
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


# SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Manages the async connection pool. Call connect() once at startup."""

    def __init__(self):
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    # Used by: main.py lifespan (startup), seed_demo_data.py, tests
    async def connect(self, database_url: str, echo: bool = False) -> None:
        if self._engine is not None:
            logger.warning("Database already connected")
            return

        logger.info("Connecting to database...")

        self._engine = create_async_engine(database_url, echo=echo)
        if self._engine.dialect.name == "sqlite":
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        logger.info(f"Database connected ({self._engine.dialect.name})")

    # Used by: main.py lifespan (startup), seed_demo_data.py, tests. No migrations, only missing tables
    async def create_tables(self) -> None:
        if self._engine is None:
            raise RuntimeError("Database not connected")

        # registers every table on Base.metadata
        from ..db import tables  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    # Used by: main.py lifespan (shutdown)
    async def disconnect(self) -> None:
        if self._engine is None:
            return

        logger.info("Disconnecting from database...")
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    # Used by: all data managers
    def session(self) -> AsyncSession:
        """Use as: async with db.session() as session: ..."""
        if self._session_factory is None:
            raise RuntimeError("Database not connected")
        return self._session_factory()


_db: Optional[DatabaseManager] = None


def get_database() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager()
    return _db
