from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text, event
from typing import AsyncGenerator, Optional, Dict, Any
import asyncio
import logging
import time
from datetime import datetime, timezone

from app.core.config import settings

logger = logging.getLogger(__name__)


class AsyncDatabaseManager:
    """
    Manages async database connections and sessions.

    Owns the engine, its connection pool and the session factory, and
    disposes of them on shutdown.
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.async_database_url
        self.async_engine = None
        self.async_session_factory = None
        self._is_initialized = False
        self._initialize_engine()

    def _engine_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "echo": settings.DB_ECHO,
            "pool_pre_ping": settings.DB_POOL_PRE_PING,
        }
        if self.database_url.startswith("postgresql"):
            options.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                connect_args={
                    "server_settings": {"application_name": "pivot_backend"},
                    "timeout": settings.DB_POOL_TIMEOUT,
                },
            )
        return options

    def _initialize_engine(self):
        """Create the async engine and session factory."""
        try:
            if not self.database_url:
                raise ValueError("Async database URL is not configured")

            logger.info(f"Initializing async database engine with URL: {self.database_url[:30]}...")
            logger.info(f"Environment: {settings.ENVIRONMENT}")

            self.async_engine = create_async_engine(self.database_url, **self._engine_options())
            self._setup_pool_events()

            self.async_session_factory = async_sessionmaker(
                bind=self.async_engine,
                class_=AsyncSession,
                expire_on_commit=False,  # Keep objects accessible after commit
                autoflush=False,
            )

            self._is_initialized = True
            logger.info(
                f"Async database engine initialized - pool size: {settings.DB_POOL_SIZE}, "
                f"timeout: {settings.DB_POOL_TIMEOUT}s, recycle: {settings.DB_POOL_RECYCLE}s"
            )

        except Exception as e:
            logger.error(f"Failed to initialize async database engine: {e}")
            raise

    def _setup_pool_events(self):
        """Log pool checkouts and invalidations."""
        if not self.async_engine:
            return

        @event.listens_for(self.async_engine.sync_engine, "checkout")
        def on_checkout(dbapi_connection, connection_record, connection_proxy):
            logger.debug("Connection checked out from pool")

        @event.listens_for(self.async_engine.sync_engine, "invalidate")
        def on_invalidate(dbapi_connection, connection_record, exception):
            logger.warning(f"Database connection invalidated: {exception}")

    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get an async database session with proper lifecycle management.

        The session is rolled back on any exception and always closed.

        Raises:
            RuntimeError: If the database manager is not initialized
        """
        if not self._is_initialized:
            raise RuntimeError("AsyncDatabaseManager is not initialized")

        async with self.async_session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database error in session: {e}")
                raise
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def test_connection(self) -> bool:
        """Run `SELECT 1`; False when the database is unreachable."""
        try:
            async with self.async_session_factory() as session:
                await session.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    async def get_connection_info(self) -> dict:
        """Get information about the current connection pool."""
        if not self.async_engine:
            return {"status": "not_initialized"}

        pool = self.async_engine.pool
        try:
            return {
                "pool_size": pool.size(),
                "checked_in": pool.checkedin(),
                "checked_out": pool.checkedout(),
                "overflow": pool.overflow(),
                "status": "initialized",
            }
        except AttributeError:
            # StaticPool/NullPool (SQLite) do not expose counters
            return {
                "status": "initialized",
                "pool_type": type(pool).__name__,
            }

    async def close(self):
        """Dispose of the engine and all pooled connections."""
        if self.async_engine:
            try:
                await self.async_engine.dispose()
                logger.info("Async database engine disposed successfully")
            except Exception as e:
                logger.error(f"Error disposing async database engine: {e}")
            finally:
                self._is_initialized = False
                self.async_engine = None
                self.async_session_factory = None


# Global async database manager instance (singleton pattern)
_async_db_manager: Optional[AsyncDatabaseManager] = None
_manager_lock = asyncio.Lock()


async def get_async_db_manager() -> AsyncDatabaseManager:
    """Get or create the global async database manager instance."""
    global _async_db_manager

    if _async_db_manager is None:
        async with _manager_lock:
            if _async_db_manager is None:
                _async_db_manager = AsyncDatabaseManager()
                logger.info("Created new AsyncDatabaseManager singleton instance")

    return _async_db_manager


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection.

    One session per request, taken from the pool, rolled back on error and
    closed after the response.
    """
    manager = await get_async_db_manager()
    async for session in manager.get_async_session():
        yield session


async def startup_async_database():
    """Initialize the database manager and verify connectivity."""
    try:
        logger.info("Starting async database initialization...")
        manager = await get_async_db_manager()

        connection_test = await manager.test_connection()
        if not connection_test:
            raise RuntimeError("Failed to establish database connection during startup")

        pool_info = await manager.get_connection_info()
        logger.info(f"Async database startup completed. Pool info: {pool_info}")

    except Exception as e:
        logger.error(f"Failed to initialize async database during startup: {e}")
        raise


async def shutdown_async_database():
    """Dispose of the global database manager."""
    global _async_db_manager

    try:
        logger.info("Starting async database shutdown...")
        if _async_db_manager is not None:
            await _async_db_manager.close()
            _async_db_manager = None
        logger.info("Async database shutdown completed successfully")
    except Exception as e:
        logger.error(f"Error during async database shutdown: {e}")


async def check_async_database_health() -> dict:
    """
    Check database connectivity and pool status.

    Returns:
        dict: `status`, `connection_test`, `pool_info`, `response_time_ms`,
        `timestamp` and `error`
    """
    start_time = time.time()
    health_status = {
        "status": "unhealthy",
        "connection_test": False,
        "pool_info": {},
        "response_time_ms": 0,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "error": None,
    }

    try:
        manager = await get_async_db_manager()
        connection_test = await manager.test_connection()
        health_status["connection_test"] = connection_test

        if not connection_test:
            health_status["error"] = "Database connection test failed"
        else:
            health_status["pool_info"] = await manager.get_connection_info()
            health_status["status"] = "healthy"

    except Exception as e:
        health_status["error"] = str(e)
        logger.error(f"Database health check failed: {e}")

    health_status["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
    return health_status
