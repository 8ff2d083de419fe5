"""
Postgres Connection Pool Manager

Manages the single async connection pool the runner executes scripts on:
creation with retry, liveness probing, checkout/release, and replacement on
reconnect.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

import asyncpg
from asyncpg import Pool
from asyncpg.exceptions import (
    TooManyConnectionsError,
    CannotConnectNowError,
)

from backend.config import settings
from backend.core.errors import ConfigError, DatabaseConnectionError, NotConnected

logger = logging.getLogger(__name__)

_DSN_SCHEMES = ("postgres", "postgresql")


def validate_dsn(dsn: Optional[str]) -> str:
    """
    Check that a connection string is present and looks like a Postgres URI.

    Raises:
        ConfigError: if the DSN is empty or uses another scheme
    """
    value = (dsn or "").strip()
    if not value:
        raise ConfigError("Connection string is required.")
    scheme = value.split("://", 1)[0].lower() if "://" in value else ""
    if scheme not in _DSN_SCHEMES:
        raise ConfigError(
            "Connection string must be a postgres:// or postgresql:// URI."
        )
    return value


def mask_dsn(dsn: str) -> str:
    """Hide the password component of a DSN for logging."""
    try:
        parts = urlsplit(dsn)
    except ValueError:
        return "<unparseable dsn>"
    if "@" not in parts.netloc:
        return dsn
    userinfo, host = parts.netloc.rsplit("@", 1)
    if ":" not in userinfo:
        return dsn
    user = userinfo.split(":", 1)[0]
    return urlunsplit(parts._replace(netloc=f"{user}:***@{host}"))


class PostgresConnectionPool:
    """
    Async connection pool for one DSN with retry on transient startup errors.
    """

    def __init__(
        self,
        dsn: str,
        min_size: int = 1,
        max_size: int = 10,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        acquire_timeout: Optional[float] = 30.0,
        probe_timeout: Optional[float] = 10.0,
        command_timeout: Optional[float] = None,
    ):
        """
        Initialize Postgres connection pool.

        Args:
            dsn: postgres:// connection URI
            min_size: Minimum pool size
            max_size: Maximum pool size
            max_retries: Max retry attempts for transient failures
            retry_delay: Delay between retries in seconds
            acquire_timeout: Max seconds to wait for a free connection
            probe_timeout: Timeout for the liveness probe
            command_timeout: Default statement timeout passed to asyncpg
        """
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.acquire_timeout = acquire_timeout
        self.probe_timeout = probe_timeout
        self.command_timeout = command_timeout

        self._pool: Optional[Pool] = None

        logger.info(
            f"Postgres pool configured: {mask_dsn(dsn)}, size={min_size}-{max_size}"
        )

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    async def initialize(self):
        """Create the underlying asyncpg pool."""
        if self._pool is not None:
            return

        logger.info("Creating Postgres connection pool...")

        for attempt in range(self.max_retries):
            try:
                self._pool = await asyncpg.create_pool(
                    dsn=self.dsn,
                    min_size=self.min_size,
                    max_size=self.max_size,
                    command_timeout=self.command_timeout,
                )
                logger.info(
                    f"Postgres pool ready (size: {self.min_size}-{self.max_size})"
                )
                return

            except (CannotConnectNowError, TooManyConnectionsError) as e:
                if attempt < self.max_retries - 1:
                    logger.warning(
                        f"Pool creation attempt {attempt + 1} failed, retrying: {e}"
                    )
                    await asyncio.sleep(self.retry_delay * (attempt + 1))
                else:
                    logger.error(
                        f"Failed to create pool after {self.max_retries} attempts"
                    )
                    raise

    async def probe(self) -> bool:
        """
        Run the liveness probe.

        Returns:
            bool: True if `SELECT 1` round-trips
        """
        if self._pool is None:
            return False
        result = await self._pool.fetchval("SELECT 1", timeout=self.probe_timeout)
        return result == 1

    async def acquire(self):
        """Check out one connection; pair every call with `release()`."""
        if self._pool is None:
            raise NotConnected("Pool is closed")
        try:
            return await self._pool.acquire(timeout=self.acquire_timeout)
        except asyncio.TimeoutError as e:
            raise DatabaseConnectionError(
                f"Timed out after {self.acquire_timeout}s waiting for a connection"
            ) from e
        except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            raise DatabaseConnectionError(f"Failed to acquire connection: {e}") from e

    async def release(self, conn):
        if self._pool is None:
            return
        await self._pool.release(conn)

    def get_pool_stats(self) -> Dict[str, Any]:
        """
        Get connection pool statistics.

        Returns:
            Dict with pool statistics
        """
        if self._pool is None:
            return {
                "initialized": False,
                "size": 0,
                "free": 0,
            }

        return {
            "initialized": True,
            "min_size": self.min_size,
            "max_size": self.max_size,
            "size": self._pool.get_size(),
            "free": self._pool.get_idle_size(),
            "in_use": self._pool.get_size() - self._pool.get_idle_size(),
        }

    async def close(self):
        """Close the pool, waiting for checked-out connections to be released."""
        if self._pool is not None:
            logger.info("Closing Postgres connection pool...")
            # asyncpg's close waits for checked-out connections, which are
            # handed back through release(), so the pool stays set until then.
            try:
                await self._pool.close()
            finally:
                self._pool = None
            logger.info("Postgres pool closed")


PoolFactory = Callable[[str], PostgresConnectionPool]


def default_pool_factory(dsn: str) -> PostgresConnectionPool:
    return PostgresConnectionPool(
        dsn=dsn,
        min_size=settings.POOL_MIN_SIZE,
        max_size=settings.POOL_MAX_SIZE,
        max_retries=settings.POOL_CREATE_RETRIES,
        retry_delay=settings.POOL_RETRY_DELAY,
        acquire_timeout=settings.POOL_ACQUIRE_TIMEOUT,
        probe_timeout=settings.PROBE_TIMEOUT,
        command_timeout=settings.COMMAND_TIMEOUT,
    )


class PoolManager:
    """
    Owns the one active pool.

    Transitions:
      - empty -> connected: `connect()` builds a pool and probes it
      - connected -> connected: `connect()` closes the old pool, then builds
        and probes the new one
      - any -> empty: failed probe, or `close()`

    `connect()` and the acquisition step of `checkout()` share a lock, so a
    checkout either finishes acquiring from the old pool before it is drained
    or waits until the replacement is live.
    """

    def __init__(self, pool_factory: Optional[PoolFactory] = None):
        self._pool_factory = pool_factory or default_pool_factory
        self._pool: Optional[PostgresConnectionPool] = None
        self._lock = asyncio.Lock()

    def is_connected(self) -> bool:
        return self._pool is not None

    async def connect(self, dsn: Optional[str]) -> None:
        """
        Establish (or replace) the pool for `dsn`.

        Raises:
            ConfigError: missing/malformed DSN
            DatabaseConnectionError: pool creation or liveness probe failed
        """
        dsn = validate_dsn(dsn)

        async with self._lock:
            if self._pool is not None:
                old = self._pool
                self._pool = None
                await old.close()
                logger.info("Existing pool closed.")

            logger.info("Initializing database pool for %s", mask_dsn(dsn))
            try:
                pool = self._pool_factory(dsn)
            except ValueError as e:
                raise ConfigError(f"Invalid connection string: {e}") from e

            try:
                await pool.initialize()
                alive = await pool.probe()
            except ValueError as e:
                await pool.close()
                raise ConfigError(f"Invalid connection string: {e}") from e
            except Exception as e:
                logger.error("Error initializing pool: %s", e)
                await pool.close()
                raise DatabaseConnectionError(
                    f"Failed to connect to database: {e}"
                ) from e

            if not alive:
                await pool.close()
                raise DatabaseConnectionError("Liveness probe returned no result.")

            self._pool = pool
            logger.info("Database pool initialized successfully.")

    @asynccontextmanager
    async def checkout(self) -> AsyncIterator[Any]:
        """
        Check out one connection for exclusive use.

        Usage:
            async with manager.checkout() as conn:
                await conn.execute(script)

        Raises:
            NotConnected: no pool has been established
            DatabaseConnectionError: acquiring a connection failed
        """
        async with self._lock:
            pool = self._pool
            if pool is None:
                raise NotConnected()
            conn = await pool.acquire()
        logger.debug("Client checked out from pool.")
        try:
            yield conn
        finally:
            await pool.release(conn)
            logger.debug("Client released back to pool.")

    def get_pool_stats(self) -> Dict[str, Any]:
        if self._pool is None:
            return {"initialized": False, "size": 0, "free": 0}
        return self._pool.get_pool_stats()

    async def close(self):
        """Drain and drop the active pool (application shutdown)."""
        async with self._lock:
            if self._pool is not None:
                pool = self._pool
                self._pool = None
                await pool.close()
