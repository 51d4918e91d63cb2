"""
designdocs/store.py -- Entity store for design documents.

Scans a design directory (one subfolder per entity type, one YAML file per
entity) into typed in-memory indices and keeps them consistent through
every create / update / delete.  Back-reference arrays (for example
``capability.used_by_workflows``) are recomputed inside each mutation so
the files on disk always agree with the forward references.

Every public mutation returns an :class:`OperationResult`; errors from the
codec, the schema layer or reference checks are converted at this
boundary and never propagate to callers.

Usage:
    from designdocs.store import DesignDocsStore

    store = DesignDocsStore("/path/to/design")
    result = store.create("capability", {"id": "csv-import", ...})
    if not result.success:
        print(result.error_kind, result.error)
    store.update("workflow", "W01", {"requires_capabilities": ["csv-import"]})
    report = store.validate()
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from designdocs import analysis, consistency_checker, diagram, scaffold
from designdocs.errors import (
    DependentsExistError,
    DesignDocsError,
    EntityExistsError,
    EntityNotFoundError,
    EntityReferenceError,
    EntityValidationError,
    InvalidRelationshipError,
)
from designdocs.migrations import MigrationRegistry, default_registry
from designdocs.models.entities import EntityType
from designdocs.models.factory import validate_entity
from designdocs.models.validators import (
    back_references_from,
    check_references,
    find_relation,
    relations_from,
    relations_to,
)
from designdocs.utils import (
    read_all,
    remove_entity_file,
    safe_write_yaml,
    write_entity,
)
from designdocs.versioning import (
    CURRENT_SCHEMA_VERSION,
    create_schema_warning,
    stamp_new,
    stamp_touch,
    stamp_update,
)

logger = logging.getLogger(__name__)

# Fields the store owns; caller-supplied values are ignored on write
METADATA_FIELDS = ("version", "schema_version", "created_at", "updated_at")

Listener = Callable[[str, Optional[str]], None]


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

class OperationResult:
    """Outcome of a store mutation.

    Attributes
    ----------
    success : bool
    error : str or None
        Human-readable failure message.
    error_kind : str or None
        One of ``validation``, ``reference``, ``not_found``, ``conflict``,
        ``dependents`` or ``io``.
    warnings : list[str]
        Non-blocking notes (e.g. dangling references left by a forced delete).
    entity : dict or None
        A copy of the written entity, when there is one.
    """

    __slots__ = ("success", "error", "error_kind", "warnings", "entity")

    def __init__(self, success, error=None, error_kind=None, warnings=None, entity=None):
        self.success = success
        self.error = error
        self.error_kind = error_kind
        self.warnings = warnings or []
        self.entity = entity

    @classmethod
    def ok(cls, entity=None, warnings=None) -> "OperationResult":
        return cls(True, entity=entity, warnings=warnings)

    @classmethod
    def failure(cls, error: str, error_kind: str) -> "OperationResult":
        return cls(False, error=error, error_kind=error_kind)

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        if self.success:
            return f"OperationResult(success=True, warnings={self.warnings!r})"
        return f"OperationResult(success=False, {self.error_kind}: {self.error!r})"

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            result["error"] = self.error
            result["error_kind"] = self.error_kind
        if self.warnings:
            result["warnings"] = list(self.warnings)
        if self.entity is not None:
            result["entity"] = self.entity
        return result


class LoadError:
    """A file skipped during a directory scan."""

    __slots__ = ("path", "entity_type", "entity_id", "message")

    def __init__(self, path, entity_type, entity_id, message):
        self.path = str(path)
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.message = message

    def __repr__(self) -> str:
        return f"LoadError({self.path!r}, {self.message!r})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "message": self.message,
        }


# ---------------------------------------------------------------------------
# List filters and summaries
# ---------------------------------------------------------------------------

def _contains(field: str):
    return lambda entity, value: value in (entity.get(field) or [])


def _equals(field: str):
    return lambda entity, value: entity.get(field) == value


_FILTERS: dict[EntityType, dict[str, Callable[[dict, Any], bool]]] = {
    EntityType.WORKFLOW: {
        "category": _equals("category"),
        "status": _equals("status"),
        "validated": lambda e, v: bool(e.get("validated", False)) == bool(v),
        "persona": _contains("personas"),
        "capability": _contains("requires_capabilities"),
        "component": _contains("suggested_components"),
    },
    EntityType.CAPABILITY: {
        "category": _equals("category"),
        "status": _equals("status"),
        "workflow": _contains("used_by_workflows"),
    },
    EntityType.PERSONA: {
        "expertise": lambda e, v: (e.get("characteristics") or {}).get("expertise") == v,
        "workflow": _contains("workflows"),
    },
    EntityType.COMPONENT: {
        "category": _equals("category"),
        "status": _equals("status"),
        "capability": _contains("implements_capabilities"),
    },
    EntityType.TOKENS: {
        "extends": _equals("extends"),
    },
    EntityType.VIEW: {
        "status": _equals("status"),
        "layout_type": lambda e, v: (e.get("layout") or {}).get("type") == v,
        "workflow": _contains("workflows"),
        "has_route": lambda e, v: bool(e.get("routes")) == bool(v),
    },
    EntityType.INTERACTION: {
        "status": _equals("status"),
        "applies_to": _contains("applies_to"),
    },
    EntityType.TEST_RESULT: {
        "workflow_id": _equals("workflow_id"),
        "persona_id": _equals("persona_id"),
        "test_type": _equals("test_type"),
        "status": _equals("status"),
        "confidence": _equals("confidence"),
        "has_issues": lambda e, v: bool(e.get("issues")) == bool(v),
    },
}


def _summary(entity_type: EntityType, entity: dict) -> dict[str, Any]:
    """Compact listing row for *entity*."""
    if entity_type == EntityType.WORKFLOW:
        return {
            "id": entity["id"],
            "name": entity["name"],
            "category": entity["category"],
            "status": entity.get("status", "draft"),
            "validated": entity.get("validated", False),
            "capability_count": len(entity.get("requires_capabilities", [])),
        }
    if entity_type == EntityType.CAPABILITY:
        return {
            "id": entity["id"],
            "name": entity["name"],
            "category": entity["category"],
            "status": entity.get("status", "planned"),
            "workflow_count": len(entity.get("used_by_workflows", [])),
        }
    if entity_type == EntityType.PERSONA:
        return {
            "id": entity["id"],
            "name": entity["name"],
            "role": entity["role"],
            "expertise": entity["characteristics"]["expertise"],
            "workflow_count": len(entity.get("workflows", [])),
        }
    if entity_type == EntityType.COMPONENT:
        return {
            "id": entity["id"],
            "name": entity["name"],
            "category": entity["category"],
            "status": entity.get("status", "planned"),
        }
    if entity_type == EntityType.TOKENS:
        return {"id": entity["id"], "name": entity["name"], "extends": entity.get("extends")}
    if entity_type == EntityType.VIEW:
        return {
            "id": entity["id"],
            "name": entity["name"],
            "status": entity.get("status", "draft"),
            "layout_type": entity["layout"]["type"],
            "route_count": len(entity.get("routes", [])),
        }
    if entity_type == EntityType.INTERACTION:
        return {
            "id": entity["id"],
            "name": entity["name"],
            "status": entity.get("status", "draft"),
            "applies_to": list(entity.get("applies_to", [])),
        }
    return {
        "id": entity["id"],
        "workflow_id": entity["workflow_id"],
        "persona_id": entity["persona_id"],
        "test_type": entity["test_type"],
        "date": entity["date"],
        "status": entity["status"],
        "confidence": entity.get("confidence", "medium"),
        "issue_count": len(entity.get("issues", [])),
    }


def _ref_summary(entity_type: EntityType, entity: dict) -> dict[str, Any]:
    return {"id": entity["id"], "name": entity.get("name", entity["id"]), "type": entity_type.value}


def _known_type(entity_type) -> Optional[EntityType]:
    """Parse *entity_type*, or return None for an unknown name."""
    try:
        return EntityType.parse(entity_type)
    except ValueError:
        logger.debug("Unknown entity type %r", entity_type)
        return None



# ---------------------------------------------------------------------------
# DesignDocsStore
# ---------------------------------------------------------------------------

class DesignDocsStore:
    """In-memory index of all design entities, backed by YAML files.

    Parameters
    ----------
    base_path : str or pathlib.Path
        Directory holding ``workflows/``, ``capabilities/`` and the other
        per-type subfolders.  Missing subfolders are created on first write.
    registry : MigrationRegistry, optional
        Migrations applied to lagging files at load time.  Defaults to
        :func:`designdocs.migrations.default_registry`.

    Notes
    -----
    The store performs no locking.  Callers that share one instance across
    threads must serialise every call (reads, mutations and refresh).
    """

    def __init__(self, base_path, registry: Optional[MigrationRegistry] = None):
        self.root = Path(base_path).resolve()
        self.registry = registry if registry is not None else default_registry()

        self._index: dict[EntityType, dict[str, dict]] = {t: {} for t in EntityType}
        # Backing file of each entity; hand-named files are rewritten in place
        self._paths: dict[tuple[EntityType, str], Path] = {}
        self._schema_warnings: dict[tuple[EntityType, str], dict] = {}
        self.load_errors: list[LoadError] = []
        self._listeners: list[Listener] = []

        self._load()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def directory_for(self, entity_type) -> Path:
        return self.root / EntityType.parse(entity_type).directory

    def _load(self) -> None:
        """Scan every type directory into fresh indices."""
        self._index = {t: {} for t in EntityType}
        self._paths = {}
        self._schema_warnings = {}
        self.load_errors = []

        for entity_type in EntityType:
            documents, failures = read_all(self.directory_for(entity_type))
            for path, message in failures:
                self.load_errors.append(LoadError(path, entity_type.value, path.stem, message))
            for path, raw in documents:
                self._load_document(entity_type, path, raw)

        logger.debug(
            "Loaded %d entities from %s (%d skipped)",
            sum(len(ix) for ix in self._index.values()), self.root, len(self.load_errors),
        )

    def _load_document(self, entity_type: EntityType, path: Path, raw: dict) -> None:
        entity_id = raw.get("id") if isinstance(raw.get("id"), str) else path.stem

        if entity_id in self._index[entity_type]:
            self._skip(path, entity_type, entity_id,
                       f"Duplicate {entity_type.value} id '{entity_id}' "
                       f"(already loaded from {self._paths[(entity_type, entity_id)].name})")
            return

        stored_version = raw.get("schema_version")
        warning = create_schema_warning(entity_type.value, entity_id, stored_version)

        data = raw
        migration = self.registry.migrate_entity_with_result(raw, entity_type.value)
        if migration.success:
            data = migration.data
        else:
            warning = {
                "entity_type": entity_type.value,
                "entity_id": entity_id,
                "stored_version": stored_version or "0.0.0",
                "current_version": CURRENT_SCHEMA_VERSION,
                "severity": "error",
                "message": migration.error,
            }

        result = validate_entity(entity_type, data)
        if not result.passed:
            self._skip(path, entity_type, entity_id, "; ".join(result.errors))
            return

        self._index[entity_type][entity_id] = result.data()
        self._paths[(entity_type, entity_id)] = path
        if warning is not None:
            self._schema_warnings[(entity_type, entity_id)] = warning

    def _skip(self, path, entity_type: EntityType, entity_id: str, message: str) -> None:
        logger.warning("Skipping %s: %s", path, message)
        self.load_errors.append(LoadError(path, entity_type.value, entity_id, message))

    def refresh(self, kind: str = "refresh", path: Optional[str] = None) -> None:
        """Discard the in-memory indices and rescan the directory.

        Parameters
        ----------
        kind : str
            Change kind forwarded to listeners (``"add"``, ``"change"``,
            ``"unlink"`` from a file watcher, or ``"refresh"``).
        path : str, optional
            The file that triggered the refresh, if known.
        """
        self._load()
        logger.info("Store refreshed (%s %s)", kind, path or self.root)
        for listener in list(self._listeners):
            listener(kind, path)

    def add_listener(self, listener: Listener) -> None:
        """Register ``listener(kind, path)`` to be called after each refresh."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def exists(self, entity_type, entity_id: str) -> bool:
        entity_type = _known_type(entity_type)
        return entity_type is not None and entity_id in self._index[entity_type]

    def count(self, entity_type) -> int:
        entity_type = _known_type(entity_type)
        return len(self._index[entity_type]) if entity_type is not None else 0

    def entity_map(self, entity_type) -> dict[str, dict]:
        """The live id -> entity mapping for *entity_type*.

        For in-package analysis code; callers must not mutate it.  An
        unknown type yields an empty mapping.
        """
        entity_type = _known_type(entity_type)
        return self._index[entity_type] if entity_type is not None else {}

    def get(self, entity_type, entity_id: str) -> Optional[dict]:
        """Return a copy of the entity, or None if it (or its type) does not exist."""
        entity_type = _known_type(entity_type)
        if entity_type is None:
            return None
        entity = self._index[entity_type].get(entity_id)
        return copy.deepcopy(entity) if entity is not None else None

    def get_resolved(self, entity_type, entity_id: str) -> Optional[dict]:
        """Like :meth:`get` but adds a ``_resolved`` map of referenced entities.

        List relations resolve to lists of ``{id, name, type}`` (unknown ids
        are omitted); scalar ``*_id`` relations resolve to a single summary
        or None.  ``_resolved["referenced_by"]`` lists the dependents.
        """
        entity_type = _known_type(entity_type)
        entity = self.get(entity_type, entity_id) if entity_type is not None else None
        if entity is None:
            return None

        resolved: dict[str, Any] = {}
        for relation in relations_from(entity_type):
            targets = self._index[relation.target]
            found = [
                _ref_summary(relation.target, targets[ref_id])
                for ref_id in dict.fromkeys(relation.ids(entity))
                if ref_id in targets
            ]
            if relation.field.endswith("_id"):
                resolved[relation.field[:-3]] = found[0] if found else None
            elif relation.field in ("interaction_pattern", "extends"):
                resolved[relation.field] = found[0] if found else None
            else:
                resolved[relation.field.replace(".", "_")] = found
        resolved["referenced_by"] = self.get_dependents(entity_type, entity_id)
        entity["_resolved"] = resolved
        return entity

    def list(self, entity_type, **filters) -> list[dict]:
        """Return summary rows for *entity_type*, filtered in memory.

        Filters with a value of None are ignored.  Supported names per type
        are listed in ``_FILTERS``; an unknown name raises TypeError.  An
        unknown entity type lists nothing.
        """
        entity_type = _known_type(entity_type)
        if entity_type is None:
            return []
        available = _FILTERS[entity_type]
        active = {k: v for k, v in filters.items() if v is not None}
        unknown = set(active) - set(available)
        if unknown:
            raise TypeError(
                f"Unknown {entity_type.value} filter(s): {', '.join(sorted(unknown))}"
            )

        rows = []
        for entity in self._index[entity_type].values():
            if all(available[name](entity, value) for name, value in active.items()):
                rows.append(_summary(entity_type, entity))
        return rows

    def get_schema_warnings(self) -> list[dict]:
        """Structured schema-version warnings for every loaded entity."""
        return [dict(w) for w in self._schema_warnings.values()]

    # ------------------------------------------------------------------
    # Relationship queries
    # ------------------------------------------------------------------

    def get_dependencies(self, entity_type, entity_id: str) -> list[dict]:
        """Forward references held by an entity, with an ``exists`` flag each."""
        entity_type = _known_type(entity_type)
        entity = self._index[entity_type].get(entity_id) if entity_type is not None else None
        if entity is None:
            return []
        deps = []
        for relation in relations_from(entity_type):
            for ref_id in dict.fromkeys(relation.ids(entity)):
                deps.append({
                    "entity_type": relation.target.value,
                    "id": ref_id,
                    "field": relation.field,
                    "relationship": relation.label,
                    "exists": ref_id in self._index[relation.target],
                })
        return deps

    def get_dependents(self, entity_type, entity_id: str) -> list[dict]:
        """Entities whose forward references point at ``(entity_type, entity_id)``.

        Computed from the forward fields across the whole corpus, not from
        back-reference arrays, so hand-edited files cannot hide dependents.
        """
        entity_type = _known_type(entity_type)
        dependents: list[dict] = []
        if entity_type is None:
            return dependents
        for relation in relations_to(entity_type):
            for owner_id, owner in self._index[relation.owner].items():
                if relation.owner == entity_type and owner_id == entity_id:
                    continue
                if entity_id in relation.ids(owner):
                    dependents.append({
                        "entity_type": relation.owner.value,
                        "id": owner_id,
                        "field": relation.field,
                        "relationship": relation.label,
                    })
        return dependents

    # ------------------------------------------------------------------
    # Mutations (public boundary)
    # ------------------------------------------------------------------

    def create(self, entity_type, data: dict) -> OperationResult:
        """Validate, reference-check and persist a new entity."""
        return self._guard(self._create, entity_type, data)

    def update(self, entity_type, entity_id: str, changes: dict) -> OperationResult:
        """Merge *changes* onto an entity, bump its version and persist."""
        return self._guard(self._update, entity_type, entity_id, changes)

    def delete(self, entity_type, entity_id: str, force: bool = False) -> OperationResult:
        """Remove an entity; refuses while dependents exist unless *force*."""
        return self._guard(self._delete, entity_type, entity_id, force)

    def link(self, from_type, from_id: str, to_type, to_id: str, relationship: str) -> OperationResult:
        """Add ``to_id`` to the forward field named by *relationship*."""
        return self._guard(self._link, from_type, from_id, to_type, to_id, relationship, True)

    def unlink(self, from_type, from_id: str, to_type, to_id: str, relationship: str) -> OperationResult:
        """Remove ``to_id`` from the forward field named by *relationship*."""
        return self._guard(self._link, from_type, from_id, to_type, to_id, relationship, False)

    def _guard(self, func, *args) -> OperationResult:
        try:
            return func(*args)
        except DesignDocsError as exc:
            logger.info("%s rejected: %s", func.__name__.lstrip("_"), exc)
            return OperationResult.failure(str(exc), exc.kind)
        except ValueError as exc:
            # EntityType.parse on an unknown type name
            return OperationResult.failure(str(exc), "validation")
        except OSError as exc:
            logger.error("%s failed writing to disk: %s", func.__name__.lstrip("_"), exc)
            return OperationResult.failure(f"Failed to write entity: {exc}", "io")

    # ------------------------------------------------------------------
    # Mutation internals
    # ------------------------------------------------------------------

    def _create(self, entity_type, data: dict) -> OperationResult:
        entity_type = EntityType.parse(entity_type)
        incoming = {k: v for k, v in dict(data).items() if k not in METADATA_FIELDS}

        result = validate_entity(entity_type, stamp_new(incoming))
        if not result.passed:
            raise EntityValidationError(result.errors)
        entity = result.data()
        entity_id = entity["id"]

        if entity_id in self._index[entity_type]:
            raise EntityExistsError(entity_type.value, entity_id, entity_type.label)

        errors = check_references(entity_type, entity, self.exists)
        if errors:
            raise EntityReferenceError(errors)

        self._persist(entity_type, entity)
        self._sync_back_references(entity_type, entity_id, {}, entity)
        logger.info("Created %s '%s'", entity_type.value, entity_id)
        return OperationResult.ok(entity=copy.deepcopy(entity))

    def _update(self, entity_type, entity_id: str, changes: dict) -> OperationResult:
        entity_type = EntityType.parse(entity_type)
        current = self._index[entity_type].get(entity_id)
        if current is None:
            raise EntityNotFoundError(entity_type.value, entity_id, entity_type.label)

        changes = {k: v for k, v in dict(changes).items() if k not in METADATA_FIELDS}
        if "id" in changes and changes.pop("id") != entity_id:
            raise EntityValidationError(["id: ID cannot be changed after creation"])

        merged = {**current, **changes}
        result = validate_entity(entity_type, stamp_update(current, merged))
        if not result.passed:
            raise EntityValidationError(result.errors)
        entity = result.data()

        errors = check_references(
            entity_type, entity, self.exists, back_reference_fields=set(changes)
        )
        if errors:
            raise EntityReferenceError(errors)

        self._persist(entity_type, entity)
        self._sync_back_references(entity_type, entity_id, current, entity)
        logger.info("Updated %s '%s' to v%s", entity_type.value, entity_id, entity["version"])
        return OperationResult.ok(entity=copy.deepcopy(entity))

    def _delete(self, entity_type, entity_id: str, force: bool) -> OperationResult:
        entity_type = EntityType.parse(entity_type)
        current = self._index[entity_type].get(entity_id)
        if current is None:
            raise EntityNotFoundError(entity_type.value, entity_id, entity_type.label)

        dependents = self.get_dependents(entity_type, entity_id)
        described = [
            f"{EntityType(d['entity_type']).label} '{d['id']}' ({d['field']})"
            for d in dependents
        ]
        if dependents and not force:
            raise DependentsExistError(entity_type.value, entity_id, described)

        path = self._paths.get((entity_type, entity_id))
        if path is None:
            removed = remove_entity_file(self.directory_for(entity_type), entity_id)
        else:
            try:
                path.unlink()
                removed = True
            except FileNotFoundError:
                removed = False
        self._paths.pop((entity_type, entity_id), None)
        if not removed:
            logger.warning("Backing file for %s '%s' was already gone", entity_type.value, entity_id)

        del self._index[entity_type][entity_id]
        self._schema_warnings.pop((entity_type, entity_id), None)
        self._sync_back_references(entity_type, entity_id, current, {})

        warnings = [
            f"{desc} now references deleted {entity_type.value} '{entity_id}'"
            for desc in described
        ]
        for warning in warnings:
            logger.warning(warning)
        logger.info("Deleted %s '%s'", entity_type.value, entity_id)
        return OperationResult.ok(warnings=warnings)

    def _link(self, from_type, from_id, to_type, to_id, relationship, add) -> OperationResult:
        from_type = EntityType.parse(from_type)
        to_type = EntityType.parse(to_type)
        relation = find_relation(from_type, to_type, relationship)
        if relation is None:
            raise InvalidRelationshipError(relationship, from_type.value, to_type.value)

        current = self._index[from_type].get(from_id)
        if current is None:
            raise EntityNotFoundError(from_type.value, from_id, from_type.label)
        if add and to_id not in self._index[to_type]:
            raise EntityReferenceError([f"{to_type.label} '{to_id}' does not exist"])

        ids = list(current.get(relation.field) or [])
        if add == (to_id in ids):
            # Already in the requested state
            return OperationResult.ok(entity=copy.deepcopy(current))
        if add:
            ids.append(to_id)
        else:
            ids.remove(to_id)
        return self._update(from_type, from_id, {relation.field: ids})

    def _persist(self, entity_type: EntityType, entity: dict) -> None:
        """Write *entity* to disk, then publish it to the index."""
        key = (entity_type, entity["id"])
        path = self._paths.get(key)
        if path is None:
            path = write_entity(self.directory_for(entity_type), entity["id"], entity)
        else:
            safe_write_yaml(path, entity)
        self._paths[key] = path
        # The file now carries current metadata
        self._schema_warnings.pop(key, None)
        self._index[entity_type][entity["id"]] = entity

    def _sync_back_references(self, entity_type: EntityType, entity_id: str, old: dict, new: dict) -> None:
        """Bring every back-reference array in line with a changed entity.

        *old* / *new* are the entity before and after the mutation (empty
        for a create / delete respectively).
        """
        for backref in back_references_from(entity_type):
            before = set(backref.relation.ids(old))
            after = set(backref.relation.ids(new))
            for holder_id in sorted(before | after):
                holder = self._index[backref.holder].get(holder_id)
                if holder is None:
                    continue
                listed = list(holder.get(backref.field) or [])
                if holder_id in after and entity_id not in listed:
                    listed.append(entity_id)
                elif holder_id not in after and entity_id in listed:
                    listed.remove(entity_id)
                else:
                    continue
                updated = stamp_touch(holder)
                updated[backref.field] = listed
                self._persist(backref.holder, updated)

    # ------------------------------------------------------------------
    # Analysis facade
    # ------------------------------------------------------------------

    def validate(self) -> dict[str, Any]:
        return consistency_checker.validate(self)

    def find_orphans(self, entity_type=None) -> dict[str, list[dict]]:
        return consistency_checker.find_orphans(self, entity_type)

    def find_gaps(self) -> dict[str, list[dict]]:
        return consistency_checker.find_gaps(self)

    def coverage_report(self) -> dict[str, Any]:
        return analysis.coverage_report(self)

    def test_coverage(self) -> dict[str, Any]:
        return analysis.test_coverage(self)

    def suggest_priority(self, focus: str = "capability", limit: Optional[int] = None) -> dict[str, Any]:
        return analysis.suggest_priority(self, focus, limit)

    def export_diagram(self, focus: str = "all", depth: int = 1) -> str:
        return diagram.export_diagram(self, focus, depth)

    def generate_tests(self, workflow_id: str, format: str = "unit") -> str:
        return scaffold.generate_tests(self, workflow_id, format)
