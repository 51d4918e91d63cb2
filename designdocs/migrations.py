"""
designdocs/migrations.py -- Schema migration framework.

A :class:`MigrationRegistry` holds an ordered list of :class:`Migration`
objects, each upgrading entity data across a ``from_version ->
to_version`` range for some (or all) entity types.  The store runs the
applicable chain on every file it loads whose ``schema_version`` lags the
current one.

Registries are plain objects: build one at startup (usually through
:func:`default_registry`) and hand it to the store.  Tests that need
isolation simply construct their own.

Usage:
    from designdocs.migrations import Migration, MigrationRegistry

    registry = MigrationRegistry()
    registry.register(Migration(
        id="002-rename-goal",
        from_version="1.0.0",
        to_version="1.1.0",
        entity_types=["workflow"],
        description="Rename goal -> objective",
        migrate=lambda data, entity_type: {**data, "objective": data.get("goal")},
    ))
    result = registry.migrate_entity_with_result(data, "workflow", "1.0.0", "1.1.0")
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Optional, Union

from designdocs.errors import MigrationError
from designdocs.versioning import (
    CURRENT_SCHEMA_VERSION,
    LEGACY_VERSION,
    compare_versions,
    parse_version,
)

logger = logging.getLogger(__name__)

MigrateFn = Callable[[dict, str], dict]


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------

class Migration:
    """A single data transformation between two schema versions.

    Parameters
    ----------
    id : str
        Unique, sortable identifier (e.g. ``"001-add-schema-version"``).
    from_version, to_version : str
        The schema range this migration upgrades.
    entity_types : list[str] or "all"
        Entity types the migration applies to.
    description : str
        Human-readable summary.
    migrate : callable
        ``migrate(data, entity_type) -> dict``.  Receives a private copy
        of the data and returns the upgraded mapping.
    """

    __slots__ = ("id", "from_version", "to_version", "entity_types", "description", "migrate")

    def __init__(
        self,
        id: str,
        from_version: str,
        to_version: str,
        entity_types: Union[list[str], str],
        description: str,
        migrate: MigrateFn,
    ):
        self.id = id
        self.from_version = from_version
        self.to_version = to_version
        self.entity_types = entity_types
        self.description = description
        self.migrate = migrate

    def applies_to(self, entity_type: str) -> bool:
        return self.entity_types == "all" or entity_type in self.entity_types

    def __repr__(self) -> str:
        return (
            f"Migration({self.id!r}, {self.from_version} -> {self.to_version}, "
            f"types={self.entity_types!r})"
        )


class MigrationResult:
    """Outcome of :meth:`MigrationRegistry.migrate_entity_with_result`.

    Attributes
    ----------
    success : bool
    data : dict
        The migrated data, or the caller's original data on failure.
    migrations_applied : int
        Number of steps that completed (before the failure, if any).
    migration_ids : list[str]
        Ids of the completed steps, in order.
    error : str or None
    """

    __slots__ = ("success", "data", "migrations_applied", "migration_ids", "error")

    def __init__(self, success, data, migrations_applied, migration_ids, error=None):
        self.success = success
        self.data = data
        self.migrations_applied = migrations_applied
        self.migration_ids = migration_ids
        self.error = error

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "migrations_applied": self.migrations_applied,
            "migration_ids": list(self.migration_ids),
            "error": self.error,
        }


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class MigrationRegistry:
    """Ordered collection of migrations with chain resolution."""

    def __init__(self, migrations: Optional[list[Migration]] = None):
        self._migrations: list[Migration] = []
        for migration in migrations or []:
            self.register(migration)

    def __len__(self) -> int:
        return len(self._migrations)

    def __iter__(self):
        return iter(list(self._migrations))

    def register(self, migration: Migration) -> None:
        """Add *migration*, keeping the list sorted by from_version then id.

        Raises
        ------
        ValueError
            If a migration with the same id is already registered.
        """
        if self.get_migration(migration.id) is not None:
            raise ValueError(f"Migration '{migration.id}' is already registered")
        self._migrations.append(migration)
        self._migrations.sort(key=lambda m: (parse_version(m.from_version), m.id))
        logger.debug("Registered %r", migration)

    def get_migration(self, migration_id: str) -> Optional[Migration]:
        for migration in self._migrations:
            if migration.id == migration_id:
                return migration
        return None

    def clear(self) -> None:
        self._migrations.clear()

    def get_migrations_for_upgrade(
        self,
        from_version: str,
        to_version: str,
        entity_type: str,
    ) -> list[Migration]:
        """Return the ordered chain needed to go from *from_version* to *to_version*.

        Empty when ``from_version >= to_version``.
        """
        if compare_versions(from_version, to_version) >= 0:
            return []
        return [
            m for m in self._migrations
            if compare_versions(m.from_version, from_version) >= 0
            and compare_versions(m.to_version, to_version) <= 0
            and m.applies_to(entity_type)
        ]

    def has_pending_migrations(
        self,
        stored_version: Optional[str],
        entity_type: str,
        target_version: str = CURRENT_SCHEMA_VERSION,
    ) -> bool:
        chain = self.get_migrations_for_upgrade(
            stored_version or LEGACY_VERSION, target_version, entity_type
        )
        return bool(chain)

    def migrate_entity(
        self,
        data: dict,
        entity_type: str,
        from_version: Optional[str] = None,
        to_version: str = CURRENT_SCHEMA_VERSION,
    ) -> dict:
        """Apply the upgrade chain to a copy of *data* and return it.

        *from_version* defaults to the data's own ``schema_version``
        (``"0.0.0"`` when absent).  The caller's mapping is never mutated.

        Raises
        ------
        MigrationError
            If any step raises; the error names the failing migration.
        """
        if from_version is None:
            from_version = data.get("schema_version") or LEGACY_VERSION
        current = copy.deepcopy(data)
        for migration in self.get_migrations_for_upgrade(from_version, to_version, entity_type):
            try:
                current = migration.migrate(copy.deepcopy(current), entity_type)
            except Exception as exc:
                raise MigrationError(migration.id, exc) from exc
            if not isinstance(current, dict):
                raise MigrationError(migration.id, TypeError(_not_a_mapping(current)))
        return current

    def migrate_entity_with_result(
        self,
        data: dict,
        entity_type: str,
        from_version: Optional[str] = None,
        to_version: str = CURRENT_SCHEMA_VERSION,
    ) -> MigrationResult:
        """Like :meth:`migrate_entity` but reports instead of raising.

        On failure the returned ``data`` is the caller's original object and
        ``migrations_applied`` counts the steps completed before the error.
        """
        if from_version is None:
            from_version = data.get("schema_version") or LEGACY_VERSION
        chain = self.get_migrations_for_upgrade(from_version, to_version, entity_type)
        current = copy.deepcopy(data)
        applied: list[str] = []
        for migration in chain:
            try:
                current = migration.migrate(copy.deepcopy(current), entity_type)
            except Exception as exc:
                logger.warning(
                    "Migration %s failed for %s '%s': %s",
                    migration.id, entity_type, data.get("id"), exc,
                )
                return MigrationResult(
                    False, data, len(applied), applied,
                    f"Migration {migration.id} failed: {exc}",
                )
            if not isinstance(current, dict):
                logger.warning(
                    "Migration %s for %s '%s': %s",
                    migration.id, entity_type, data.get("id"), _not_a_mapping(current),
                )
                return MigrationResult(
                    False, data, len(applied), applied,
                    f"Migration {migration.id} {_not_a_mapping(current)}",
                )
            applied.append(migration.id)
        return MigrationResult(True, current, len(applied), applied)


def _not_a_mapping(value) -> str:
    return f"returned {type(value).__name__}, expected a mapping"


# ---------------------------------------------------------------------------
# Built-in migrations
# ---------------------------------------------------------------------------

def _add_schema_version(data: dict, entity_type: str) -> dict:
    if not data.get("schema_version"):
        data["schema_version"] = "1.0.0"
    return data


ADD_SCHEMA_VERSION = Migration(
    id="001-add-schema-version",
    from_version="0.0.0",
    to_version="1.0.0",
    entity_types="all",
    description="Stamp schema_version on entities written before version tracking",
    migrate=_add_schema_version,
)

BUILTIN_MIGRATIONS = (ADD_SCHEMA_VERSION,)


def default_registry() -> MigrationRegistry:
    """Return a fresh registry pre-loaded with the built-in migrations."""
    return MigrationRegistry(list(BUILTIN_MIGRATIONS))
