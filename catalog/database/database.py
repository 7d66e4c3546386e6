import asyncio
import json
import asyncpg
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional
from ..config import Config
from ..utils.exceptions import StorageTimeoutError, StorageTransactionError

class Database:
    """Connection pool and transaction boundary for the catalog"""

    def __init__(self, dsn: Optional[str] = None, timeout: Optional[float] = None):
        self.dsn = dsn or Config.DATABASE_URL
        self.timeout = timeout if timeout is not None else Config.TRANSACTION_TIMEOUT
        self.pool: Optional[asyncpg.Pool] = None
        self.logger = logging.getLogger(__name__)

    async def connect(self):
        """Open the pool and apply pending migrations"""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=Config.DB_POOL_MIN_SIZE,
                max_size=Config.DB_POOL_MAX_SIZE,
                init=self._init_connection
            )

            await self._run_migrations()

            self.logger.info("Connected to database")
        except Exception as e:
            self.logger.error(f"Database connection failed: {e}")
            raise

    async def close(self):
        """Close the pool"""
        if self.pool:
            await self.pool.close()
            self.logger.info("Database connection closed")

    @staticmethod
    async def _init_connection(conn):
        """Decode jsonb columns to Python objects"""
        await conn.set_type_codec(
            "jsonb",
            encoder=json.dumps,
            decoder=json.loads,
            schema="pg_catalog"
        )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """One connection, one transaction.

        Commits when the block exits normally and rolls back on any
        exception. Driver failures are re-raised as StorageTransactionError
        (StorageTimeoutError when the timeout is hit); domain errors raised
        inside the block propagate unchanged.
        """
        try:
            async with self.pool.acquire(timeout=self.timeout) as conn:
                async with conn.transaction():
                    await conn.execute(
                        f"SET LOCAL statement_timeout = {int(self.timeout * 1000)}"
                    )
                    yield conn
        except (asyncpg.exceptions.QueryCanceledError, asyncio.TimeoutError) as e:
            self.logger.error(f"Transaction timed out after {self.timeout}s: {e}")
            raise StorageTimeoutError(
                f"Storage operation timed out after {self.timeout} seconds"
            ) from e
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            self.logger.error(f"Transaction aborted: {e}")
            raise StorageTransactionError(f"Storage transaction failed: {e}") from e

    async def _run_migrations(self):
        """Apply .sql files from the migrations directory once each"""
        try:
            migrations_path = Path(__file__).parent / "migrations"

            async with self.pool.acquire() as conn:
                await conn.execute("""
                    CREATE TABLE IF NOT EXISTS migrations (
                        id SERIAL PRIMARY KEY,
                        name VARCHAR(255) NOT NULL,
                        applied_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                for migration_file in sorted(migrations_path.glob("*.sql")):
                    migration_name = migration_file.name

                    is_applied = await conn.fetchval(
                        "SELECT COUNT(*) FROM migrations WHERE name = $1",
                        migration_name
                    )

                    if not is_applied:
                        async with conn.transaction():
                            await conn.execute(migration_file.read_text())
                            await conn.execute(
                                "INSERT INTO migrations (name) VALUES ($1)",
                                migration_name
                            )

                        self.logger.info(f"Applied migration {migration_name}")

        except Exception as e:
            self.logger.error(f"Migration failed: {e}")
            raise
