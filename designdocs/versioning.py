"""
designdocs/versioning.py -- Version metadata and schema compatibility checks.

Every entity carries four metadata fields: ``version`` (its own content
version, patch-bumped on each update), ``schema_version`` (the shape of
the data), ``created_at`` and ``updated_at``.  This module stamps them on
write and classifies stored-vs-current schema versions on read.

Usage:
    from designdocs.versioning import check_schema_version, stamp_new

    verdict = check_schema_version(entity.get("schema_version"))
    if verdict["needs_migration"]:
        ...
"""

from __future__ import annotations

import re
from typing import Any, Optional

from designdocs.utils import now_iso

CURRENT_SCHEMA_VERSION = "1.0.0"
MINIMUM_COMPATIBLE_VERSION = "1.0.0"
INITIAL_VERSION = "1.0.0"
LEGACY_VERSION = "0.0.0"

_SEMVER_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


# ---------------------------------------------------------------------------
# Parsing and comparison
# ---------------------------------------------------------------------------

def parse_version(version: Optional[str]) -> tuple[int, int, int]:
    """Parse ``"major.minor.patch"``.  Anything else parses as ``(0, 0, 0)``."""
    if not isinstance(version, str):
        return (0, 0, 0)
    match = _SEMVER_RE.match(version.strip())
    if not match:
        return (0, 0, 0)
    return (int(match.group(1)), int(match.group(2)), int(match.group(3)))


def compare_versions(a: Optional[str], b: Optional[str]) -> int:
    """Return -1, 0 or 1 as *a* is older than, equal to, or newer than *b*."""
    pa, pb = parse_version(a), parse_version(b)
    if pa < pb:
        return -1
    if pa > pb:
        return 1
    return 0


def is_valid_version(version: Any) -> bool:
    return isinstance(version, str) and bool(_SEMVER_RE.match(version))


def bump_patch(version: Optional[str]) -> str:
    """Increment the patch component of *version*.

    A missing version (legacy file) becomes ``"1.0.0"``; a malformed one
    restarts from ``"1.0.1"``.
    """
    if version is None:
        return INITIAL_VERSION
    if not is_valid_version(version):
        return "1.0.1"
    major, minor, patch = parse_version(version)
    return f"{major}.{minor}.{patch + 1}"


# ---------------------------------------------------------------------------
# Schema compatibility
# ---------------------------------------------------------------------------

def check_schema_version(
    stored: Optional[str],
    current: str = CURRENT_SCHEMA_VERSION,
    minimum: str = MINIMUM_COMPATIBLE_VERSION,
) -> dict[str, Any]:
    """Classify a stored schema version against the running one.

    Parameters
    ----------
    stored : str or None
        The entity's ``schema_version``.  ``None`` means the field was
        absent (legacy file) and is treated as ``"0.0.0"``.
    current, minimum : str
        Overridable for tests; default to the module constants.

    Returns
    -------
    dict
        ``{"is_compatible", "needs_migration", "is_newer", "severity",
        "message"}`` where severity is one of info / warning / error.
    """
    stored = stored or LEGACY_VERSION

    if compare_versions(stored, current) > 0:
        return _verdict(
            False, False, True, "error",
            f"Entity schema version {stored} is newer than supported version "
            f"{current}. This entity was created by a newer release; "
            f"please upgrade.",
        )

    if compare_versions(stored, current) == 0:
        return _verdict(True, False, False, "info", "Schema version is current.")

    if compare_versions(stored, minimum) >= 0:
        return _verdict(
            True, False, False, "info",
            f"Schema version {stored} is compatible (current: {current}).",
        )

    if parse_version(stored) == (0, 0, 0):
        return _verdict(
            True, True, False, "warning",
            "Entity has no schema_version (legacy file). "
            "Consider re-saving to add version tracking.",
        )

    if parse_version(stored)[0] < parse_version(minimum)[0]:
        return _verdict(
            False, True, False, "error",
            f"Entity schema version {stored} is below minimum compatible "
            f"version {minimum}. Migration required.",
        )

    return _verdict(
        True, True, False, "warning",
        f"Entity schema version {stored} is older than current {current}. "
        f"Migration recommended.",
    )


def _verdict(compatible, needs_migration, newer, severity, message) -> dict[str, Any]:
    return {
        "is_compatible": compatible,
        "needs_migration": needs_migration,
        "is_newer": newer,
        "severity": severity,
        "message": message,
    }


def create_schema_warning(
    entity_type: str,
    entity_id: str,
    stored: Optional[str],
) -> Optional[dict[str, Any]]:
    """Return a structured warning for *stored*, or None if nothing is wrong."""
    verdict = check_schema_version(stored)
    if verdict["is_compatible"] and not verdict["needs_migration"]:
        return None
    return {
        "entity_type": entity_type,
        "entity_id": entity_id,
        "stored_version": stored or LEGACY_VERSION,
        "current_version": CURRENT_SCHEMA_VERSION,
        "severity": verdict["severity"],
        "message": verdict["message"],
    }


def format_schema_warning(warning: dict[str, Any]) -> str:
    """Render a schema warning as a single ``[Schema]``-tagged line."""
    return (
        f"[Schema] {warning['entity_type']} '{warning['entity_id']}' "
        f"(v{warning['stored_version']} -> v{warning['current_version']}): "
        f"{warning['message']}"
    )


# ---------------------------------------------------------------------------
# Stamping on write
# ---------------------------------------------------------------------------

def stamp_new(data: dict) -> dict:
    """Return a copy of *data* carrying fresh version metadata."""
    now = now_iso()
    stamped = dict(data)
    stamped["version"] = INITIAL_VERSION
    stamped["schema_version"] = CURRENT_SCHEMA_VERSION
    stamped["created_at"] = now
    stamped["updated_at"] = now
    return stamped


def stamp_update(current: dict, merged: dict) -> dict:
    """Return a copy of *merged* with metadata advanced from *current*.

    Bumps ``version`` from the current value, refreshes ``updated_at`` and
    backfills ``schema_version`` / ``created_at`` on legacy entities.
    """
    stamped = dict(merged)
    stamped["version"] = bump_patch(current.get("version"))
    stamped["updated_at"] = now_iso()
    if not current.get("schema_version"):
        stamped["schema_version"] = CURRENT_SCHEMA_VERSION
    else:
        stamped["schema_version"] = current["schema_version"]
    if not current.get("created_at"):
        stamped["created_at"] = stamped["updated_at"]
    else:
        stamped["created_at"] = current["created_at"]
    return stamped


def stamp_touch(entity: dict) -> dict:
    """Return a copy of *entity* with ``updated_at`` refreshed.

    Used when the store rewrites an entity whose authored content did not
    change (a back-reference array was adjusted).  ``version`` is left
    alone unless missing; legacy entities get the full metadata set.
    """
    stamped = dict(entity)
    now = now_iso()
    stamped["updated_at"] = now
    if not stamped.get("version"):
        stamped["version"] = INITIAL_VERSION
    if not stamped.get("schema_version"):
        stamped["schema_version"] = CURRENT_SCHEMA_VERSION
    if not stamped.get("created_at"):
        stamped["created_at"] = now
    return stamped
