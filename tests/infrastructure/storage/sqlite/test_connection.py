"""Unit tests for SQLite connection pool."""

import asyncio
from pathlib import Path

import aiosqlite
import pytest

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    get_connection,
    get_transaction,
    get_write_transaction,
)


class TestConnectionPoolInit:
    """Tests for ConnectionPool initialization."""

    def test_defaults(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        assert pool.pool_size == 5
        assert pool.busy_timeout == 30000
        assert pool.is_open is False

    async def test_open_creates_directory(self, tmp_path: Path):
        pool = ConnectionPool(tmp_path / "nested" / "dir" / "test.db", pool_size=1)
        try:
            await pool.open()
            assert (tmp_path / "nested" / "dir").is_dir()
        finally:
            await pool.close()

    async def test_connection_pragmas(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        try:
            async with pool.acquire() as conn:
                cursor = await conn.execute("PRAGMA journal_mode")
                assert (await cursor.fetchone())[0] == "wal"
                cursor = await conn.execute("PRAGMA foreign_keys")
                assert (await cursor.fetchone())[0] == 1
                assert conn.row_factory is aiosqlite.Row
        finally:
            await pool.close()


class TestConnectionPoolTransaction:
    async def test_commit_on_success(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        try:
            async with pool.transaction() as conn:
                await conn.execute("CREATE TABLE t (v INTEGER)")
                await conn.execute("INSERT INTO t VALUES (1)")
            async with pool.acquire() as conn:
                cursor = await conn.execute("SELECT COUNT(*) FROM t")
                assert (await cursor.fetchone())[0] == 1
        finally:
            await pool.close()

    async def test_rollback_on_error(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        try:
            async with pool.transaction() as conn:
                await conn.execute("CREATE TABLE t (v INTEGER)")

            with pytest.raises(RuntimeError):
                async with pool.transaction(immediate=True) as conn:
                    await conn.execute("INSERT INTO t VALUES (1)")
                    raise RuntimeError("abort")

            async with pool.acquire() as conn:
                cursor = await conn.execute("SELECT COUNT(*) FROM t")
                assert (await cursor.fetchone())[0] == 0
        finally:
            await pool.close()

    async def test_immediate_transactions_serialize(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=2, busy_timeout=5000)
        order: list[str] = []
        try:
            async with pool.transaction() as conn:
                await conn.execute("CREATE TABLE t (v INTEGER)")

            async def writer(name: str) -> None:
                async with pool.transaction(immediate=True) as conn:
                    order.append(f"{name}-start")
                    await asyncio.sleep(0.05)
                    await conn.execute("INSERT INTO t VALUES (1)")
                    order.append(f"{name}-end")

            await asyncio.gather(writer("a"), writer("b"))

            # Neither writer started while the other held the lock
            assert order[0].split("-")[0] == order[1].split("-")[0]
            assert order[2].split("-")[0] == order[3].split("-")[0]
        finally:
            await pool.close()


class TestModuleHelpers:
    async def test_helpers_use_global_pool(self, pooled_db: Path):
        async with get_transaction() as conn:
            await conn.execute("INSERT INTO lots (lot_code) VALUES ('L-1')")
        async with get_write_transaction() as conn:
            await conn.execute("INSERT INTO lots (lot_code) VALUES ('L-2')")
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM lots")
            assert (await cursor.fetchone())[0] == 2
