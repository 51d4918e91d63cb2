"""
designdocs/errors.py -- Exception taxonomy for the design-docs store.

The store raises these internally and converts them to
:class:`designdocs.store.OperationResult` objects at its public boundary,
so callers of the store never see them propagate.  Lower-level helpers
(codec, models, migrations) raise them directly.

Usage:
    from designdocs.errors import EntityNotFoundError

    try:
        ...
    except EntityNotFoundError as exc:
        print(exc.entity_type, exc.entity_id)
"""

from __future__ import annotations


class DesignDocsError(Exception):
    """Base class for every error raised by the designdocs package."""

    #: Short machine-readable category used by ``OperationResult.error_kind``.
    kind = "error"


class EntityValidationError(DesignDocsError, ValueError):
    """Input data failed schema validation.

    Parameters
    ----------
    messages : list[str]
        One human-readable message per offending field.
    """

    kind = "validation"

    def __init__(self, messages: list[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages) or "Validation failed")


class EntityReferenceError(DesignDocsError, ValueError):
    """A relation field points at an entity that does not exist."""

    kind = "reference"

    def __init__(self, messages: list[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class EntityNotFoundError(DesignDocsError, LookupError):
    """The targeted entity id is not present in the store."""

    kind = "not_found"

    def __init__(self, entity_type: str, entity_id: str, label: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{label or entity_type.capitalize()} '{entity_id}' not found")


class EntityExistsError(DesignDocsError, ValueError):
    """An entity with the same id already exists."""

    kind = "conflict"

    def __init__(self, entity_type: str, entity_id: str, label: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{label or entity_type.capitalize()} '{entity_id}' already exists")


class DependentsExistError(DesignDocsError, ValueError):
    """Deletion refused because other entities still reference the target."""

    kind = "dependents"

    def __init__(self, entity_type: str, entity_id: str, dependents: list[str]):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.dependents = list(dependents)
        super().__init__(
            f"Cannot delete {entity_type} '{entity_id}': referenced by "
            + ", ".join(self.dependents)
            + ". Use force=True to delete anyway."
        )


class InvalidRelationshipError(DesignDocsError, ValueError):
    """link/unlink called with an unsupported (from, to, relationship) triple."""

    kind = "validation"

    def __init__(self, relationship: str, from_type: str, to_type: str):
        super().__init__(
            f"Invalid relationship '{relationship}' between {from_type} and {to_type}"
        )


class MigrationError(DesignDocsError):
    """A migration step raised while upgrading entity data."""

    kind = "migration"

    def __init__(self, migration_id: str, cause: BaseException):
        self.migration_id = migration_id
        self.cause = cause
        super().__init__(f"Migration {migration_id} failed: {cause}")
