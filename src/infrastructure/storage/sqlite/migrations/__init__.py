"""Database migrations module."""

from src.infrastructure.storage.sqlite.migrations.migrator import (
    Migration,
    MigrationResult,
    apply_migration,
    applied_checksums,
    current_version,
    discover_migrations,
    run_migrations,
    verify_schema,
)

__all__ = [
    "Migration",
    "MigrationResult",
    "apply_migration",
    "applied_checksums",
    "current_version",
    "discover_migrations",
    "run_migrations",
    "verify_schema",
]
