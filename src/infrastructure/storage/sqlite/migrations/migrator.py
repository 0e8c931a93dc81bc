"""
Versioned SQL migrations for the inventory database.

Files named ``vNNN_<name>.sql`` in this directory are applied in version
order. Each one runs in its own transaction together with its row in
``schema_migrations``, so a failing script leaves no partial schema behind.
Editing a file after it was applied is refused.
"""

import asyncio
import hashlib
import re
import time
from dataclasses import dataclass
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings
from src.core.exceptions import MigrationError

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
FILENAME_PATTERN = re.compile(r"v(\d+)_(.+)\.sql")

REQUIRED_TABLES = [
    "drugs",
    "lots",
    "inventory_units",
    "inventory_transactions",
    "schema_migrations",
]


@dataclass
class Migration:
    """One migration script on disk."""

    version: str
    name: str
    sql: str

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.sql.encode()).hexdigest()[:16]

    @classmethod
    def load(cls, path: Path) -> "Migration":
        match = FILENAME_PATTERN.fullmatch(path.name)
        if match is None:
            raise ValueError(f"not a migration filename: {path.name}")
        return cls(
            version=match.group(1),
            name=match.group(2),
            sql=path.read_text(encoding="utf-8"),
        )


@dataclass
class MigrationResult:
    """Outcome of applying one migration."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations(directory: Path | None = None) -> list[Migration]:
    """Migration scripts in version order; misnamed files are skipped."""
    found = []
    for path in (directory or MIGRATIONS_DIR).glob("v*.sql"):
        try:
            found.append(Migration.load(path))
        except ValueError as e:
            logger.warning("migration_file_skipped", path=str(path), error=str(e))
    return sorted(found, key=lambda m: int(m.version))


async def applied_checksums(conn: aiosqlite.Connection) -> dict[str, str]:
    """Version → checksum for every recorded migration (empty on a new database)."""
    cursor = await conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'schema_migrations'"
    )
    if await cursor.fetchone() is None:
        return {}
    cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await applied_checksums(conn)
    return max(applied, key=int) if applied else None


async def apply_migration(conn: aiosqlite.Connection, migration: Migration) -> MigrationResult:
    """Run one script and record it, atomically."""
    started = time.monotonic()
    try:
        # executescript commits any open transaction first; the explicit
        # BEGIN keeps the script and its bookkeeping row together
        await conn.executescript(f"BEGIN;\n{migration.sql}")
        await conn.execute(
            """
            INSERT INTO schema_migrations (version, name, checksum, execution_time_ms)
            VALUES (?, ?, ?, ?)
            """,
            (
                migration.version,
                migration.name,
                migration.checksum,
                int((time.monotonic() - started) * 1000),
            ),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, error=str(e))
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=int((time.monotonic() - started) * 1000),
            error=str(e),
        )

    elapsed = int((time.monotonic() - started) * 1000)
    logger.info(
        "migration_applied",
        version=migration.version,
        name=migration.name,
        execution_time_ms=elapsed,
    )
    return MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=elapsed,
    )


async def run_migrations(
    db_path: Path | None = None,
    directory: Path | None = None,
) -> list[MigrationResult]:
    """
    Apply every pending migration.

    Returns one result per migration attempted; already-applied versions
    are not listed. Stops at the first failure.

    Raises:
        MigrationError: an applied migration's file has changed since.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)

    results: list[MigrationResult] = []
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA foreign_keys=ON")

        applied = await applied_checksums(conn)
        for migration in discover_migrations(directory):
            recorded = applied.get(migration.version)
            if recorded is not None:
                if recorded != migration.checksum:
                    raise MigrationError(
                        migration.version,
                        "file changed after it was applied "
                        f"(recorded {recorded}, found {migration.checksum})",
                    )
                continue

            result = await apply_migration(conn, migration)
            results.append(result)
            if not result.success:
                break

    logger.info(
        "migrations_complete",
        db_path=str(db_path),
        applied=[r.version for r in results if r.success],
    )
    return results


async def verify_schema(db_path: Path | None = None) -> dict[str, bool]:
    """
    Check name → passed, for the checks the service relies on.

    required_tables, integrity, foreign_keys, and unit_quantities
    (0 <= available_quantity <= total_quantity on every unit).
    """
    db_path = db_path or get_settings().storage.db_path

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {row[0] for row in await cursor.fetchall()}

        cursor = await conn.execute("PRAGMA integrity_check")
        integrity = (await cursor.fetchone())[0]

        cursor = await conn.execute("PRAGMA foreign_key_check")
        fk_violations = await cursor.fetchall()

        bad_units = 0
        if "inventory_units" in tables:
            cursor = await conn.execute(
                """
                SELECT COUNT(*) FROM inventory_units
                WHERE available_quantity < 0 OR available_quantity > total_quantity
                """
            )
            bad_units = (await cursor.fetchone())[0]

    return {
        "required_tables": set(REQUIRED_TABLES) <= tables,
        "integrity": integrity == "ok",
        "foreign_keys": not fk_violations,
        "unit_quantities": "inventory_units" in tables and bad_units == 0,
    }


def main() -> None:
    """medtrack-migrate: apply pending migrations, or --verify the schema."""
    import argparse

    parser = argparse.ArgumentParser(description="MedTrack database migrations")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    parser.add_argument("--verify", action="store_true", help="Check schema integrity only")
    args = parser.parse_args()

    if args.verify:
        checks = asyncio.run(verify_schema(args.db_path))
        for name, passed in checks.items():
            print(f"[{'PASS' if passed else 'FAIL'}] {name}")
        raise SystemExit(0 if all(checks.values()) else 1)

    results = asyncio.run(run_migrations(args.db_path))
    if not results:
        print("Schema is up to date")
    for result in results:
        status = "OK" if result.success else "FAILED"
        print(f"[{status}] v{result.version} {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"       {result.error}")
    raise SystemExit(0 if all(r.success for r in results) else 1)


if __name__ == "__main__":
    main()
