"""
designdocs/consistency_checker.py -- Corpus-wide consistency validation

Runs a full pass over the store and sorts findings into two buckets:

    Errors   (validity-breaking): forward references to entities that do
             not exist, for every relation field on every entity type.
    Warnings (advisory):          orphaned capabilities / personas /
             components, back-reference arrays that disagree with the
             forward references, schema-version drift (``[Schema]``) and
             files skipped at load time (``[Load]``).

Also provides the orphan and gap reports used by the analysis tools.

Usage:
    from designdocs.consistency_checker import ConsistencyChecker

    cc = ConsistencyChecker(store)
    result = cc.validate()
    # result["valid"]    -> True/False
    # result["errors"]   -> ["Workflow W01 references non-existent capability 'x'", ...]
    # result["warnings"] -> [...]
"""

import logging

from designdocs.graph_builder import RelationshipGraph, node_key
from designdocs.models.entities import EntityType
from designdocs.models.validators import BACK_REFERENCES, iter_references
from designdocs.versioning import format_schema_warning

logger = logging.getLogger(__name__)

# Workflow categories holding this many workflows or fewer count as gaps
LOW_COVERAGE_THRESHOLD = 1

ORPHAN_TYPES = (EntityType.CAPABILITY, EntityType.PERSONA, EntityType.COMPONENT)

_ORPHAN_KEYS = {
    EntityType.CAPABILITY: "capabilities",
    EntityType.PERSONA: "personas",
    EntityType.COMPONENT: "components",
}

# How each back-reference field reads in a warning
_BACKREF_PHRASES = {
    "used_by_workflows": "to be used by",
    "workflows": "to be used by",
    "used_in_workflows": "to be used in",
    "implemented_by_components": "to be implemented by",
}


class ConsistencyChecker:
    """Structural validation over every entity in a store.

    Parameters
    ----------
    store : DesignDocsStore
    """

    def __init__(self, store):
        self.store = store
        self._graph = None

    @property
    def graph(self) -> RelationshipGraph:
        if self._graph is None:
            self._graph = RelationshipGraph(self.store).build_graph()
        return self._graph

    # ------------------------------------------------------------------
    # Full pass
    # ------------------------------------------------------------------

    def validate(self) -> dict:
        """Run every check and return ``{"valid", "errors", "warnings"}``."""
        errors = self.check_references()
        warnings = []
        warnings.extend(self.check_orphans())
        warnings.extend(self.check_bidirectional())
        warnings.extend(self.check_schema_versions())
        warnings.extend(self.check_load_errors())

        logger.debug("Validation: %d errors, %d warnings", len(errors), len(warnings))
        return {
            "valid": not errors,
            "errors": errors,
            "warnings": warnings,
        }

    # ------------------------------------------------------------------
    # Individual checks
    # ------------------------------------------------------------------

    def check_references(self) -> list[str]:
        """One error per forward reference whose target does not exist."""
        errors = []
        for entity_type in EntityType:
            for entity_id, entity in self.store.entity_map(entity_type).items():
                for relation, ref_id, suffix in iter_references(entity_type, entity):
                    if not self.store.exists(relation.target, ref_id):
                        errors.append(
                            f"{entity_type.label} {entity_id} references non-existent "
                            f"{relation.noun} '{ref_id}'{suffix}"
                        )
        return errors

    def check_orphans(self) -> list[str]:
        orphans = self.find_orphans()
        warnings = []
        for entity_type in ORPHAN_TYPES:
            for entry in orphans[_ORPHAN_KEYS[entity_type]]:
                warnings.append(f"{entity_type.label} '{entry['id']}' is not used by any workflow")
        return warnings

    def check_bidirectional(self) -> list[str]:
        """Compare every back-reference array against the forward references.

        Forward references are authoritative: a back-reference listing an
        entity that does not (or no longer) exists, or that does not point
        back, is reported; so is a forward reference missing from the
        target's back-reference array.
        """
        warnings = []
        for backref in BACK_REFERENCES:
            relation = backref.relation
            holders = self.store.entity_map(backref.holder)
            sources = self.store.entity_map(backref.source)
            phrase = _BACKREF_PHRASES.get(backref.field, "to be referenced by")

            for holder_id, holder in holders.items():
                for source_id in holder.get(backref.field) or []:
                    source = sources.get(source_id)
                    if source is None:
                        warnings.append(
                            f"{backref.holder.label} '{holder_id}' claims {phrase} "
                            f"{backref.source.value} '{source_id}' but that "
                            f"{backref.source.value} does not exist"
                        )
                    elif holder_id not in relation.ids(source):
                        warnings.append(
                            f"{backref.holder.label} '{holder_id}' claims {phrase} "
                            f"{backref.source.value} '{source_id}' but "
                            f"{backref.source.value} doesn't reference it"
                        )

            for source_id, source in sources.items():
                for holder_id in relation.ids(source):
                    holder = holders.get(holder_id)
                    if holder is not None and source_id not in (holder.get(backref.field) or []):
                        warnings.append(
                            f"{backref.source.label} '{source_id}' references "
                            f"{backref.holder.value} '{holder_id}' but its "
                            f"{backref.field} does not list it"
                        )
        return warnings

    def check_schema_versions(self) -> list[str]:
        return [format_schema_warning(w) for w in self.store.get_schema_warnings()]

    def check_load_errors(self) -> list[str]:
        return [f"[Load] {err.path}: {err.message}" for err in self.store.load_errors]

    # ------------------------------------------------------------------
    # Orphans and gaps
    # ------------------------------------------------------------------

    def find_orphans(self, entity_type=None) -> dict[str, list[dict]]:
        """Capabilities, personas and components no workflow references.

        Parameters
        ----------
        entity_type : EntityType or str, optional
            Restrict the report to one of the three types; the other lists
            are returned empty.  Any other type, or an unknown name, yields
            three empty lists.
        """
        result: dict[str, list[dict]] = {key: [] for key in _ORPHAN_KEYS.values()}
        if entity_type is None:
            wanted = ORPHAN_TYPES
        else:
            try:
                wanted = (EntityType.parse(entity_type),)
            except ValueError:
                logger.debug("find_orphans: unknown entity type %r", entity_type)
                return result
        for orphan_type in wanted:
            if orphan_type not in _ORPHAN_KEYS:
                continue
            entities = self.store.entity_map(orphan_type)
            for entity_id, entity in entities.items():
                node = node_key(orphan_type, entity_id)
                if not self.graph.dependents_of(node, EntityType.WORKFLOW):
                    result[_ORPHAN_KEYS[orphan_type]].append(
                        {"id": entity_id, "name": entity["name"]}
                    )
        return result

    def find_gaps(self) -> dict[str, list[dict]]:
        """Missing links that point at unfinished design work."""
        workflows = self.store.entity_map(EntityType.WORKFLOW)
        capabilities = self.store.entity_map(EntityType.CAPABILITY)

        without_caps = [
            {"id": wid, "name": wf["name"]}
            for wid, wf in workflows.items()
            if not wf.get("requires_capabilities")
        ]
        without_personas = [
            {"id": wid, "name": wf["name"]}
            for wid, wf in workflows.items()
            if not wf.get("personas")
        ]

        implemented = set()
        for component in self.store.entity_map(EntityType.COMPONENT).values():
            implemented.update(component.get("implements_capabilities") or [])
        caps_without_components = [
            {"id": cid, "name": cap["name"]}
            for cid, cap in capabilities.items()
            if cid not in implemented
        ]

        category_count: dict[str, int] = {}
        for wf in workflows.values():
            category_count[wf["category"]] = category_count.get(wf["category"], 0) + 1
        few = [
            {"category": category, "workflow_count": count}
            for category, count in sorted(category_count.items())
            if count <= LOW_COVERAGE_THRESHOLD
        ]

        return {
            "workflows_without_capabilities": without_caps,
            "workflows_without_personas": without_personas,
            "capabilities_without_components": caps_without_components,
            "categories_with_few_workflows": few,
        }


# ---------------------------------------------------------------------------
# Module-level shortcuts (used by DesignDocsStore)
# ---------------------------------------------------------------------------

def validate(store) -> dict:
    return ConsistencyChecker(store).validate()


def find_orphans(store, entity_type=None) -> dict[str, list[dict]]:
    return ConsistencyChecker(store).find_orphans(entity_type)


def find_gaps(store) -> dict[str, list[dict]]:
    return ConsistencyChecker(store).find_gaps()
