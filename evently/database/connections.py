"""Database connection management for Evently.

A single ``DatabaseManager`` per process caches the PostgreSQL pool, or the
in-flight attempt to create it, so repeated module initialization (hot
reload, warm serverless restarts) never opens a second pool.
"""

import asyncio
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, Dict, Optional
import asyncpg
import redis.asyncio as redis
import structlog

from evently.database.schema import SCHEMA_STATEMENTS
from evently.errors import ConfigurationError
from evently.models.config import EventlyConfig


logger = structlog.get_logger(__name__)


class ConnectionState(str, Enum):
    """Lifecycle of the cached connection."""

    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class DatabaseManager:
    """Caches one PostgreSQL pool and an optional Redis client."""

    def __init__(self, config: EventlyConfig):
        """
        Initialize database manager with configuration.

        Args:
            config: Application configuration containing database settings
        """
        self.config = config
        self.logger = logger.bind(component="database_manager")

        self._pool: Optional[asyncpg.Pool] = None
        self._connecting: Optional[asyncio.Task] = None
        self._redis_client: Optional[redis.Redis] = None

        # Number of physical connection attempts started
        self.connection_attempts = 0

        self._postgres_pool_config = {
            "min_size": max(1, config.db_pool_size // 2),
            "max_size": config.db_pool_size,
            "max_inactive_connection_lifetime": 300,
            "timeout": config.db_pool_timeout,
            "command_timeout": 60,
            "server_settings": {
                "application_name": "evently",
                "timezone": "UTC"
            }
        }

        self._redis_pool_config = {
            "max_connections": config.redis_pool_size,
            "retry_on_timeout": True,
            "health_check_interval": 30
        }

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        if self._pool is not None:
            return ConnectionState.CONNECTED
        if self._connecting is not None:
            return ConnectionState.CONNECTING
        return ConnectionState.UNCONNECTED

    async def get_connection(self) -> asyncpg.Pool:
        """
        Return the shared PostgreSQL pool, creating it on first use.

        Callers arriving while the pool is being created await the same
        attempt. A failed attempt is forgotten so the next call starts a
        fresh one; every caller waiting on it receives the same error.

        Returns:
            asyncpg.Pool: The cached pool

        Raises:
            ConfigurationError: If no database URL is configured
        """
        if self._pool is not None:
            return self._pool

        if self._connecting is None:
            if not self.config.database_url:
                raise ConfigurationError(
                    "Please define the DATABASE_URL environment variable"
                )
            self._connecting = asyncio.ensure_future(self._connect())

        # Shielded so one cancelled caller does not cancel the attempt for the rest
        return await asyncio.shield(self._connecting)

    async def _connect(self) -> asyncpg.Pool:
        """Create the PostgreSQL pool and record the outcome."""
        self.connection_attempts += 1
        self.logger.info("Creating PostgreSQL connection pool",
                         database_url=self._mask_password(self.config.database_url),
                         attempt=self.connection_attempts)
        try:
            pool = await asyncpg.create_pool(
                self.config.database_url,
                **self._postgres_pool_config
            )
            self._pool = pool
        except Exception as e:
            self.logger.error("Failed to create PostgreSQL connection pool", error=str(e))
            raise
        finally:
            # Also reached on cancellation; cleanup() may already have detached this attempt
            if self._connecting is asyncio.current_task():
                self._connecting = None

        self.logger.info("PostgreSQL connection pool created successfully")
        return pool

    @asynccontextmanager
    async def get_postgres_connection(self):
        """
        Get a PostgreSQL connection from the pool.

        Yields:
            asyncpg.Connection: Database connection
        """
        pool = await self.get_connection()

        async with pool.acquire() as connection:
            try:
                yield connection
            except Exception as e:
                self.logger.error("Database operation error", error=str(e))
                raise

    @asynccontextmanager
    async def get_postgres_transaction(self):
        """
        Get a PostgreSQL transaction from the pool.

        Yields:
            asyncpg.Connection: Database connection with active transaction
        """
        async with self.get_postgres_connection() as conn:
            async with conn.transaction():
                yield conn

    def get_redis_client(self) -> Optional[redis.Redis]:
        """
        Get the Redis client used as a read cache.

        Returns:
            redis.Redis client, or None when no REDIS_URL is configured
        """
        if not self.config.cache_enabled:
            return None

        if self._redis_client is None:
            self.logger.info("Creating Redis connection", redis_url=self._mask_password(self.config.redis_url))
            self._redis_client = redis.from_url(
                self.config.redis_url,
                **self._redis_pool_config,
                decode_responses=True
            )
        return self._redis_client

    async def ensure_schema(self) -> None:
        """Create tables and indexes that do not exist yet."""
        async with self.get_postgres_connection() as conn:
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)
        self.logger.info("Database schema ensured", statements=len(SCHEMA_STATEMENTS))

    async def cleanup(self) -> None:
        """Abandon any pending connection attempt, then close the Redis client and the PostgreSQL pool."""
        self.logger.info("Cleaning up database connections")

        if self._connecting is not None:
            attempt, self._connecting = self._connecting, None
            attempt.cancel()
            await asyncio.wait([attempt])
            if not attempt.cancelled() and attempt.exception() is not None:
                self.logger.info("Pending connection attempt had failed", error=str(attempt.exception()))
            else:
                self.logger.info("Pending connection attempt abandoned")

        if self._redis_client:
            try:
                await self._redis_client.aclose()
                self.logger.info("Redis client closed")
            except Exception as e:
                self.logger.error("Error closing Redis client", error=str(e))
            finally:
                self._redis_client = None

        if self._pool:
            try:
                await self._pool.close()
                self.logger.info("PostgreSQL pool closed")
            except Exception as e:
                self.logger.error("Error closing PostgreSQL pool", error=str(e))
            finally:
                self._pool = None

    async def health_check(self) -> Dict[str, Any]:
        """Perform health check on all database connections."""
        health = {
            "postgres": {"status": "unknown"},
            "redis": {"status": "unknown"},
            "overall": "unknown"
        }

        try:
            async with self.get_postgres_connection() as conn:
                await conn.fetchval("SELECT 1")
            health["postgres"] = {"status": "healthy"}
        except Exception as e:
            health["postgres"] = {"status": "unhealthy", "error": str(e)}

        redis_client = self.get_redis_client()
        if redis_client is None:
            health["redis"] = {"status": "disabled"}
        else:
            try:
                await redis_client.ping()
                health["redis"] = {"status": "healthy"}
            except Exception as e:
                health["redis"] = {"status": "unhealthy", "error": str(e)}

        postgres_healthy = health["postgres"]["status"] == "healthy"
        redis_ok = health["redis"]["status"] in ("healthy", "disabled")

        if postgres_healthy and redis_ok:
            health["overall"] = "healthy"
        elif postgres_healthy:
            health["overall"] = "degraded"
        else:
            health["overall"] = "unhealthy"

        return health

    def _mask_password(self, database_url: str) -> str:
        """Mask password in database URL for logging."""
        try:
            if "://" in database_url and "@" in database_url:
                scheme, rest = database_url.split("://", 1)
                if "@" in rest:
                    auth, host_part = rest.split("@", 1)
                    if ":" in auth:
                        user, _ = auth.split(":", 1)
                        return f"{scheme}://{user}:***@{host_part}"
            return database_url
        except Exception:
            return "***"


# Process-wide database manager, built on first use
_database_manager: Optional[DatabaseManager] = None


def get_database_manager(config: Optional[EventlyConfig] = None) -> DatabaseManager:
    """
    Get the process-wide database manager, constructing it on first use.

    Configuration is read once, when the manager is first constructed. No
    connection is opened until ``get_connection()`` is awaited.

    Args:
        config: Configuration to use on first construction; ignored afterwards

    Returns:
        DatabaseManager: The shared database manager
    """
    global _database_manager

    if _database_manager is None:
        _database_manager = DatabaseManager(config or EventlyConfig())

    return _database_manager


def reset_database_manager() -> None:
    """Forget the shared manager without closing it. For tests only."""
    global _database_manager
    _database_manager = None


async def cleanup_database_manager() -> None:
    """Close and forget the shared database manager."""
    global _database_manager

    if _database_manager is not None:
        await _database_manager.cleanup()
        _database_manager = None
