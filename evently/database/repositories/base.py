"""Base repository class for common database operations."""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Iterable, List, Optional, TypeVar
import asyncpg
import structlog

from evently.database.connections import DatabaseManager


logger = structlog.get_logger(__name__)

T = TypeVar('T')


def quote_column(name: str) -> str:
    """Quote a column identifier; ``date`` and ``time`` are SQL keywords."""
    return '"' + name.replace('"', '""') + '"'


class BaseRepository(ABC, Generic[T]):
    """Base repository class providing common database operations."""

    def __init__(self, db_manager: DatabaseManager, table_name: str):
        """
        Initialize base repository.

        Args:
            db_manager: Database manager instance
            table_name: Name of the database table
        """
        self.db_manager = db_manager
        self.table_name = table_name
        self.logger = logger.bind(component=f"{table_name}_repository")

    @abstractmethod
    def _row_to_model(self, row: asyncpg.Record) -> T:
        """Convert database row to model instance."""
        pass

    async def find_by_id(self, id_value: int) -> Optional[T]:
        """
        Find a record by its ID.

        Args:
            id_value: The ID to search for

        Returns:
            Model instance if found, None otherwise
        """
        try:
            async with self.db_manager.get_postgres_connection() as conn:
                query = f"SELECT * FROM {self.table_name} WHERE id = $1"
                row = await conn.fetchrow(query, id_value)

                if row:
                    return self._row_to_model(row)
                return None

        except Exception as e:
            self.logger.error("Error finding record by ID",
                              table=self.table_name, id=id_value, error=str(e))
            raise

    async def exists(self, id_value: int) -> bool:
        """
        Check if a record exists by ID.

        Args:
            id_value: ID to check

        Returns:
            True if record exists, False otherwise
        """
        try:
            query = f"SELECT 1 FROM {self.table_name} WHERE id = $1 LIMIT 1"

            async with self.db_manager.get_postgres_connection() as conn:
                result = await conn.fetchval(query, id_value)
                return result is not None

        except Exception as e:
            self.logger.error("Error checking record existence",
                              table=self.table_name, id=id_value, error=str(e))
            raise

    async def count(self, where_clause: str = "", params: Optional[List[Any]] = None) -> int:
        """
        Count records in the table.

        Args:
            where_clause: Optional WHERE clause (without WHERE keyword)
            params: Parameters for the WHERE clause

        Returns:
            Number of records
        """
        try:
            params = params or []

            if where_clause:
                query = f"SELECT COUNT(*) FROM {self.table_name} WHERE {where_clause}"
            else:
                query = f"SELECT COUNT(*) FROM {self.table_name}"

            async with self.db_manager.get_postgres_connection() as conn:
                return await conn.fetchval(query, *params)

        except Exception as e:
            self.logger.error("Error counting records",
                              table=self.table_name, error=str(e))
            raise

    async def delete(self, id_value: int) -> bool:
        """
        Delete a record by ID.

        Args:
            id_value: ID of the record to delete

        Returns:
            True if record was deleted, False if not found
        """
        try:
            query = f"DELETE FROM {self.table_name} WHERE id = $1"

            async with self.db_manager.get_postgres_connection() as conn:
                result = await conn.execute(query, id_value)

                deleted = result.split()[-1] == "1"  # "DELETE 1" or "DELETE 0"

                if deleted:
                    self.logger.info("Record deleted",
                                     table=self.table_name, id=id_value)

                return deleted

        except Exception as e:
            self.logger.error("Error deleting record",
                              table=self.table_name, id=id_value, error=str(e))
            raise

    async def find_by_criteria(self,
                               where_clause: str,
                               params: Optional[List[Any]] = None,
                               order_by: str = "id",
                               limit: int = 1000,
                               offset: int = 0) -> List[T]:
        """
        Find records matching criteria.

        Args:
            where_clause: WHERE clause (without WHERE keyword)
            params: Parameters for the WHERE clause
            order_by: ORDER BY clause
            limit: Maximum number of records
            offset: Number of records to skip

        Returns:
            List of matching model instances
        """
        try:
            params = params or []

            query = f"""
                SELECT * FROM {self.table_name}
                WHERE {where_clause}
                ORDER BY {order_by}
                LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
            """

            async with self.db_manager.get_postgres_connection() as conn:
                rows = await conn.fetch(query, *params, limit, offset)

                return [self._row_to_model(row) for row in rows]

        except Exception as e:
            self.logger.error("Error finding records by criteria",
                              table=self.table_name, error=str(e))
            raise

    def _insert_query(self, columns: Iterable[str]) -> str:
        columns = list(columns)
        placeholders = [f"${i+1}" for i in range(len(columns))]
        return f"""
            INSERT INTO {self.table_name} ({', '.join(quote_column(c) for c in columns)})
            VALUES ({', '.join(placeholders)})
            RETURNING *
        """

    def _update_query(self, columns: Iterable[str]) -> str:
        set_clauses = [f"{quote_column(col)} = ${i+2}" for i, col in enumerate(columns)]
        return f"""
            UPDATE {self.table_name}
            SET {', '.join(set_clauses)}
            WHERE id = $1
            RETURNING *
        """

    async def _insert(self, conn: asyncpg.Connection, data: Dict[str, Any]) -> asyncpg.Record:
        """Insert one row on an open connection and return it."""
        return await conn.fetchrow(self._insert_query(data.keys()), *data.values())

    async def _update(self, conn: asyncpg.Connection, id_value: int,
                      data: Dict[str, Any]) -> Optional[asyncpg.Record]:
        """Update one row by ID on an open connection and return it, or None."""
        return await conn.fetchrow(self._update_query(data.keys()), id_value, *data.values())

    # Cache methods
    async def cache_set(self, key: str, value: Any, expiry: Optional[int] = None) -> None:
        """
        Set a value in the Redis cache. No-op when caching is disabled.

        Args:
            key: Cache key
            value: Value to cache
            expiry: Expiry time in seconds, defaults to the configured TTL
        """
        try:
            redis_client = self.db_manager.get_redis_client()
            if redis_client is None:
                return

            if isinstance(value, (dict, list)):
                value = json.dumps(value, default=str)

            await redis_client.setex(key, expiry or self.db_manager.config.cache_ttl_seconds, value)

        except Exception as e:
            self.logger.warning("Cache set failed", key=key, error=str(e))

    async def cache_get(self, key: str) -> Optional[Any]:
        """
        Get a value from the Redis cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found or caching is disabled
        """
        try:
            redis_client = self.db_manager.get_redis_client()
            if redis_client is None:
                return None

            value = await redis_client.get(key)

            if value is None:
                return None

            # Try to parse as JSON
            try:
                return json.loads(value)
            except (json.JSONDecodeError, TypeError):
                return value

        except Exception as e:
            self.logger.warning("Cache get failed", key=key, error=str(e))
            return None

    async def cache_delete(self, *keys: str) -> None:
        """
        Delete values from the Redis cache.

        Args:
            keys: Cache keys to delete
        """
        if not keys:
            return

        try:
            redis_client = self.db_manager.get_redis_client()
            if redis_client is None:
                return

            await redis_client.delete(*keys)

        except Exception as e:
            self.logger.warning("Cache delete failed", keys=list(keys), error=str(e))
