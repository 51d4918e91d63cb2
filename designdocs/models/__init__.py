"""
designdocs/models -- Typed entity schemas, validation, and relation tables.

Usage::

    from designdocs.models import EntityType, validate_entity

    result = validate_entity(EntityType.WORKFLOW, data)
"""

from designdocs.models.entities import (
    ENTITY_MODELS,
    STORE_DIRS,
    DesignEntity,
    EntityType,
    model_for,
)
from designdocs.models.factory import ValidationResult, to_storage, validate_entity
from designdocs.models.validators import (
    BACK_REFERENCES,
    RELATIONS,
    BackReference,
    Relation,
    check_references,
)

__all__ = [
    "ENTITY_MODELS",
    "STORE_DIRS",
    "DesignEntity",
    "EntityType",
    "model_for",
    "ValidationResult",
    "to_storage",
    "validate_entity",
    "BACK_REFERENCES",
    "RELATIONS",
    "BackReference",
    "Relation",
    "check_references",
]
