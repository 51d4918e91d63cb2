"""
designdocs/models/factory.py -- Validation entry point for entity data.

Wraps the per-type Pydantic models from :mod:`designdocs.models.entities`
behind a single ``validate_entity(entity_type, data)`` call that returns a
:class:`ValidationResult` instead of raising, with Pydantic's error dicts
rewritten into one friendly message per field.

Key design decisions:
    - Messages raised from our own validators (e.g. the id pattern check)
      are passed through verbatim so callers can match on text such as
      ``"ID must match pattern kebab-case"``.
    - The normalised mapping (defaults filled, ``None`` fields dropped,
      aliases restored) is what the store persists; see :func:`to_storage`.

Usage::

    from designdocs.models.factory import validate_entity

    result = validate_entity("capability", data)
    if not result.passed:
        print(result.errors)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from designdocs.models.entities import DesignEntity, EntityType, model_for

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Validation result
# ------------------------------------------------------------------

class ValidationResult:
    """Result of validating entity data against its Pydantic model.

    Attributes
    ----------
    passed : bool
        Whether validation succeeded.
    errors : list[str]
        Human-readable error messages (empty if passed).
    entity : DesignEntity | None
        The validated model instance (only set if passed).
    """

    __slots__ = ("passed", "errors", "entity")

    def __init__(
        self,
        passed: bool,
        errors: list[str],
        entity: DesignEntity | None,
    ):
        self.passed = passed
        self.errors = errors
        self.entity = entity

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "errors": self.errors,
        }

    def data(self) -> dict[str, Any]:
        """The normalised mapping for a passed result."""
        if self.entity is None:
            raise ValueError("No validated entity available")
        return to_storage(self.entity)


def to_storage(entity: DesignEntity) -> dict[str, Any]:
    """Dump a validated model to the plain mapping written to disk."""
    return entity.model_dump(mode="json", by_alias=True, exclude_none=True)


def validate_entity(entity_type, data: dict) -> ValidationResult:
    """Validate *data* as an entity of *entity_type*.

    Parameters
    ----------
    entity_type : EntityType or str
        The entity kind (``"workflow"``, ``EntityType.VIEW``, ...).
    data : dict
        Raw field values.

    Returns
    -------
    ValidationResult
    """
    model = model_for(entity_type)
    try:
        instance = model.model_validate(data)
    except ValidationError as exc:
        errors = [_humanize_pydantic_error(err, data) for err in exc.errors()]
        logger.debug(
            "Validation failed for %s '%s': %s",
            EntityType.parse(entity_type).value, data.get("id") if isinstance(data, dict) else None, errors,
        )
        return ValidationResult(passed=False, errors=errors, entity=None)
    return ValidationResult(passed=True, errors=[], entity=instance)


# ------------------------------------------------------------------
# Error humanization
# ------------------------------------------------------------------

def _humanize_pydantic_error(err: dict, entity_data: dict) -> str:
    """Convert a single Pydantic error dict to a human-friendly message.

    Pydantic error dicts look like::

        {
            "type": "literal_error",
            "loc": ("category",),
            "msg": "Input should be 'data', 'visualization', ...",
            "input": "bogus",
        }
    """
    loc = err.get("loc", ())
    msg = err.get("msg", "Validation error")
    err_type = err.get("type", "")

    field_path = ".".join(str(part) for part in loc if part != "__root__")
    if not field_path:
        field_path = "(root)"

    if isinstance(entity_data, dict):
        entity_name = entity_data.get("name", entity_data.get("id", "this entity"))
    else:
        entity_name = "this entity"

    if err_type == "missing":
        return (
            f"The field '{field_path}' is required for '{entity_name}' "
            f"but was not provided."
        )
    elif err_type == "value_error":
        # Our own validators: keep the message text intact
        ctx_error = err.get("ctx", {}).get("error")
        text = str(ctx_error) if ctx_error else msg.removeprefix("Value error, ")
        return f"{field_path}: {text}"
    elif err_type == "literal_error":
        return f"The field '{field_path}' has an invalid value. {msg}."
    elif err_type in ("too_short", "string_too_short"):
        return f"The field '{field_path}' must not be empty. {msg}."
    elif "type" in err_type:
        return f"The field '{field_path}' has the wrong type. {msg}."
    else:
        return f"Field '{field_path}': {msg}."
