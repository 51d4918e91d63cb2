"""
designdocs/models/validators.py -- Relation table and reference checks.

Every cross-entity link in the data model is declared once here as a
:class:`Relation` (forward, authoritative) or a :class:`BackReference`
(denormalised cache kept in sync by the store).  The store, the
consistency checker, the relationship graph and the diagram renderer all
walk these tables instead of hard-coding field names.

Usage:
    from designdocs.models.validators import check_references

    errors = check_references("workflow", data, lookup)
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional

from designdocs.models.entities import EntityType

# (referenced_id, context suffix for error messages)
RefPair = tuple[str, str]
Lookup = Callable[[EntityType, str], bool]


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------

def _list_field(field: str) -> Callable[[dict], list[RefPair]]:
    def extract(data: dict) -> list[RefPair]:
        return [(v, "") for v in data.get(field) or [] if isinstance(v, str) and v]
    return extract


def _scalar_field(field: str, suffix: str = "") -> Callable[[dict], list[RefPair]]:
    def extract(data: dict) -> list[RefPair]:
        value = data.get(field)
        return [(value, suffix)] if isinstance(value, str) and value else []
    return extract


def _zone_components(data: dict) -> list[RefPair]:
    refs: list[RefPair] = []
    layout = data.get("layout") or {}
    for zone in layout.get("zones") or []:
        for comp_id in zone.get("components") or []:
            refs.append((comp_id, f" (in zone '{zone.get('id', '?')}')"))
    return refs


def _issue_field(field: str) -> Callable[[dict], list[RefPair]]:
    def extract(data: dict) -> list[RefPair]:
        refs: list[RefPair] = []
        for issue in data.get("issues") or []:
            for ref_id in issue.get(field) or []:
                refs.append((ref_id, ""))
        return refs
    return extract


# ---------------------------------------------------------------------------
# Relation tables
# ---------------------------------------------------------------------------

class Relation:
    """A forward reference from *owner* entities to *target* entities.

    Attributes
    ----------
    owner, target : EntityType
    field : str
        Top-level field holding the reference(s); nested paths use a dotted
        description (``"layout.zones.components"``) for display only.
    label : str
        Edge label used by diagrams and link/unlink (``"requires"``).
    noun : str
        How the target is named in validation messages.
    extract : callable
        ``extract(data) -> [(id, context_suffix), ...]``.
    """

    __slots__ = ("owner", "field", "target", "label", "noun", "extract")

    def __init__(self, owner, field, target, label, noun, extract=None):
        self.owner = owner
        self.field = field
        self.target = target
        self.label = label
        self.noun = noun
        self.extract = extract or _list_field(field)

    def ids(self, data: dict) -> list[str]:
        return [ref_id for ref_id, _ in self.extract(data)]

    def __repr__(self) -> str:
        return f"Relation({self.owner.value}.{self.field} -[{self.label}]-> {self.target.value})"


class BackReference:
    """Denormalised inverse of a :class:`Relation`.

    ``holder.field`` lists the ids of ``relation.owner`` entities whose
    ``relation.field`` contains the holder's id.
    """

    __slots__ = ("holder", "field", "relation")

    def __init__(self, holder, field, relation):
        self.holder = holder
        self.field = field
        self.relation = relation

    @property
    def source(self) -> EntityType:
        return self.relation.owner


W, C, P, K = EntityType.WORKFLOW, EntityType.CAPABILITY, EntityType.PERSONA, EntityType.COMPONENT

WORKFLOW_CAPABILITIES = Relation(W, "requires_capabilities", C, "requires", "capability")
WORKFLOW_PERSONAS = Relation(W, "personas", P, "uses", "persona")
WORKFLOW_COMPONENTS = Relation(W, "suggested_components", K, "suggests", "component")
COMPONENT_CAPABILITIES = Relation(K, "implements_capabilities", C, "implements", "capability")
COMPONENT_DEPENDENCIES = Relation(K, "dependencies", K, "depends", "component dependency")

RELATIONS: tuple[Relation, ...] = (
    WORKFLOW_CAPABILITIES,
    WORKFLOW_PERSONAS,
    WORKFLOW_COMPONENTS,
    COMPONENT_CAPABILITIES,
    COMPONENT_DEPENDENCIES,
    Relation(K, "interaction_pattern", EntityType.INTERACTION, "follows",
             "interaction pattern", _scalar_field("interaction_pattern")),
    Relation(EntityType.TOKENS, "extends", EntityType.TOKENS, "extends",
             "base tokens", _scalar_field("extends", " (extends reference)")),
    Relation(EntityType.VIEW, "workflows", W, "serves", "workflow"),
    Relation(EntityType.VIEW, "layout.zones.components", K, "contains",
             "component", _zone_components),
    Relation(EntityType.TEST_RESULT, "workflow_id", W, "tests", "workflow",
             _scalar_field("workflow_id")),
    Relation(EntityType.TEST_RESULT, "persona_id", P, "tests", "persona",
             _scalar_field("persona_id")),
    Relation(EntityType.TEST_RESULT, "issues.affected_components", K, "affects",
             "component", _issue_field("affected_components")),
    Relation(EntityType.TEST_RESULT, "issues.affected_capabilities", C, "affects",
             "capability", _issue_field("affected_capabilities")),
)

BACK_REFERENCES: tuple[BackReference, ...] = (
    BackReference(C, "used_by_workflows", WORKFLOW_CAPABILITIES),
    BackReference(P, "workflows", WORKFLOW_PERSONAS),
    BackReference(K, "used_in_workflows", WORKFLOW_COMPONENTS),
    BackReference(C, "implemented_by_components", COMPONENT_CAPABILITIES),
)

# Relationships that link()/unlink() may edit, keyed by (from, to, label)
LINKABLE: dict[tuple[EntityType, EntityType, str], Relation] = {
    (r.owner, r.target, r.label): r
    for r in (
        WORKFLOW_CAPABILITIES,
        WORKFLOW_PERSONAS,
        WORKFLOW_COMPONENTS,
        COMPONENT_CAPABILITIES,
        COMPONENT_DEPENDENCIES,
    )
}


def relations_from(entity_type: EntityType) -> list[Relation]:
    return [r for r in RELATIONS if r.owner == entity_type]


def relations_to(entity_type: EntityType) -> list[Relation]:
    return [r for r in RELATIONS if r.target == entity_type]


def back_references_on(entity_type: EntityType) -> list[BackReference]:
    return [b for b in BACK_REFERENCES if b.holder == entity_type]


def back_references_from(entity_type: EntityType) -> list[BackReference]:
    return [b for b in BACK_REFERENCES if b.source == entity_type]


def iter_references(entity_type: EntityType, data: dict) -> Iterator[tuple[Relation, str, str]]:
    """Yield ``(relation, referenced_id, context_suffix)`` for every forward ref."""
    for relation in relations_from(entity_type):
        for ref_id, suffix in relation.extract(data):
            yield relation, ref_id, suffix


# ---------------------------------------------------------------------------
# Reference checks
# ---------------------------------------------------------------------------

def check_references(
    entity_type,
    data: dict,
    exists: Lookup,
    back_reference_fields=None,
) -> list[str]:
    """Return one message per referenced id in *data* that does not exist.

    Covers forward relations and any back-reference arrays supplied by the
    caller.  Messages read ``"Capability 'x' does not exist"``, with a
    context suffix for nested references.

    Parameters
    ----------
    entity_type : EntityType or str
        Type of the entity owning *data*.
    data : dict
        The entity's (merged) field values.
    exists : callable
        ``exists(target_type, id) -> bool`` against the store's indices.
    back_reference_fields : iterable of str, optional
        Restrict the back-reference check to these fields (e.g. only the
        fields an update actually touches).  ``None`` checks them all.
    """
    entity_type = EntityType.parse(entity_type)
    errors: list[str] = []
    seen: set[tuple[EntityType, str, str]] = set()

    for relation, ref_id, suffix in iter_references(entity_type, data):
        key = (relation.target, ref_id, suffix)
        if key in seen:
            continue
        seen.add(key)
        if not exists(relation.target, ref_id):
            errors.append(f"{relation.target.label} '{ref_id}' does not exist{suffix}")

    for backref in back_references_on(entity_type):
        if back_reference_fields is not None and backref.field not in back_reference_fields:
            continue
        for ref_id in data.get(backref.field) or []:
            key = (backref.source, ref_id, "")
            if key in seen:
                continue
            seen.add(key)
            if not exists(backref.source, ref_id):
                errors.append(f"{backref.source.label} '{ref_id}' does not exist")

    return errors


def find_relation(from_type, to_type, label: str) -> Optional[Relation]:
    """Return the linkable relation for ``(from_type, to_type, label)`` or None."""
    return LINKABLE.get((EntityType.parse(from_type), EntityType.parse(to_type), label))
