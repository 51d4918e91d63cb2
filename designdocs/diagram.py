"""
designdocs/diagram.py -- Mermaid export of entity relationships

Renders either the whole corpus (one subgraph per entity type, every
resolvable forward reference as a labelled edge) or the neighbourhood of a
single entity up to a hop limit.

Usage:
    from designdocs.diagram import export_diagram

    print(export_diagram(store))                        # everything
    print(export_diagram(store, focus="W01", depth=2))  # one workflow
"""

import logging

from designdocs.graph_builder import RelationshipGraph, node_key
from designdocs.models.entities import EntityType

logger = logging.getLogger(__name__)

# Subgraph order and titles for the full diagram; test results are omitted
SUBGRAPHS = (
    (EntityType.WORKFLOW, "Workflows"),
    (EntityType.CAPABILITY, "Capabilities"),
    (EntityType.PERSONA, "Personas"),
    (EntityType.COMPONENT, "Components"),
    (EntityType.TOKENS, "Tokens"),
    (EntityType.VIEW, "Views"),
    (EntityType.INTERACTION, "Interactions"),
)


def _label(name: str) -> str:
    return str(name).replace('"', "#quot;")


def _node_line(entity_id: str, name: str, indent: str = "    ") -> str:
    return f'{indent}{entity_id}["{entity_id}: {_label(name)}"]'


def _edge_line(source_id: str, target_id: str, label: str) -> str:
    return f"    {source_id} -->|{label}| {target_id}"


def export_diagram(store, focus: str = "all", depth: int = 1) -> str:
    """Return Mermaid ``graph TD`` source.

    Parameters
    ----------
    store : DesignDocsStore
    focus : str
        ``"all"`` or the id of any entity.
    depth : int
        Hops to follow from *focus*; ignored for ``"all"``.

    Returns
    -------
    str
        The diagram, or ``"%% Error: Entity '<id>' not found"`` when
        *focus* matches nothing.
    """
    if focus == "all":
        return _full_diagram(store)
    return _focused_diagram(store, focus, depth)


def _full_diagram(store) -> str:
    graph = RelationshipGraph(store).build_graph(types=[t for t, _ in SUBGRAPHS]).graph
    lines = ["graph TD"]

    for entity_type, title in SUBGRAPHS:
        lines.append("")
        lines.append(f"    subgraph {title}")
        for entity_id, entity in store.entity_map(entity_type).items():
            lines.append(_node_line(entity_id, entity.get("name", entity_id), indent="        "))
        lines.append("    end")

    lines.append("")
    for source, target, data in graph.edges(data=True):
        lines.append(_edge_line(source[1], target[1], data["relationship_type"]))
    return "\n".join(lines)


def _find_focus(store, entity_id: str):
    for entity_type in EntityType:
        if store.exists(entity_type, entity_id):
            return entity_type
    return None


def _focused_diagram(store, focus: str, depth: int) -> str:
    entity_type = _find_focus(store, focus)
    if entity_type is None:
        return f"%% Error: Entity '{focus}' not found"

    rg = RelationshipGraph(store).build_graph()
    distances, edges = rg.neighbors_within(node_key(entity_type, focus), max(depth, 0))

    lines = ["graph TD"]
    for node in distances:
        lines.append(_node_line(node[1], rg.graph.nodes[node]["name"]))
    lines.append("")
    for source, target, label in edges:
        lines.append(_edge_line(source[1], target[1], label))

    logger.debug("Diagram for %s '%s' (depth %d): %d nodes", entity_type.value, focus, depth, len(distances))
    return "\n".join(lines)
