"""
Pooled aiosqlite connections for the inventory database.

Every connection runs in WAL mode with foreign keys enforced. Code that
reads stock and then writes based on what it read must go through
get_write_transaction, which holds the SQLite write lock from its first
statement.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

# Run on every new connection; busy_timeout is added per pool
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


class ConnectionPool:
    """Fixed set of connections, each lent to one task at a time."""

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._opened: list[aiosqlite.Connection] = []
        self._open_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return bool(self._opened)

    async def open(self) -> None:
        """Create the connections; calling it again is a no-op."""
        async with self._open_lock:
            if self._opened:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            for _ in range(self.pool_size):
                conn = await self._connect()
                self._opened.append(conn)
                self._idle.put_nowait(conn)

            logger.info(
                "sqlite_pool_opened",
                db_path=str(self.db_path),
                size=self.pool_size,
            )

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        for pragma in CONNECTION_PRAGMAS:
            await conn.execute(pragma)
        await conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout)}")
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection; it returns to the pool when the block exits."""
        if not self._opened:
            await self.open()

        conn = await self._idle.get()
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(
        self, immediate: bool = False
    ) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection inside a transaction.

        Commits when the block exits cleanly, rolls back when it raises.
        With immediate=True the write lock is taken by BEGIN IMMEDIATE
        before the block runs; a second writer waits up to busy_timeout.
        """
        async with self.acquire() as conn:
            if immediate:
                await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except Exception:
                await conn.rollback()
                raise
            await conn.commit()

    async def close(self) -> None:
        """Close every connection the pool opened."""
        async with self._open_lock:
            while self._opened:
                await self._opened.pop().close()
            self._idle = asyncio.Queue()
            logger.info("sqlite_pool_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Process-wide pool built from storage settings."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
        await _pool.open()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Read-only work: borrow a pooled connection."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncIterator[aiosqlite.Connection]:
    """Inserts that depend on no prior read."""
    pool = await get_pool()
    async with pool.transaction() as conn:
        yield conn


@asynccontextmanager
async def get_write_transaction() -> AsyncIterator[aiosqlite.Connection]:
    """
    Read-check-write sequences (check-out commits, adjustments).

    No other writer can interleave between the read and the write.
    """
    pool = await get_pool()
    async with pool.transaction(immediate=True) as conn:
        yield conn
