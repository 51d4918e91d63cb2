"""
designdocs/graph_builder.py -- In-Memory Relationship Graph (NetworkX)

Builds a directed graph of every entity in a :class:`DesignDocsStore` and
the forward references between them.  Each entity is a node keyed by
``(entity_type, id)``; each resolvable reference is an edge labelled with
its relationship (``requires``, ``uses``, ``implements`` ...).  References
whose target does not exist are collected in :attr:`dangling` instead.

Used by the consistency checker (orphan detection) and the diagram
renderer (neighbourhood traversal).

Usage:
    from designdocs.graph_builder import RelationshipGraph

    rg = RelationshipGraph(store)
    rg.build_graph()
    nearby = rg.neighbors_within(("workflow", "W01"), depth=2)
    stats = rg.get_stats()
"""

import logging
from collections import deque

import networkx as nx

from designdocs.models.entities import EntityType
from designdocs.models.validators import COMPONENT_CAPABILITIES, iter_references

logger = logging.getLogger(__name__)

Node = tuple[str, str]


def node_key(entity_type, entity_id: str) -> Node:
    return (EntityType.parse(entity_type).value, entity_id)


# ---------------------------------------------------------------------------
# RelationshipGraph
# ---------------------------------------------------------------------------

class RelationshipGraph:
    """Directed graph of design entities and their forward references.

    Parameters
    ----------
    store : DesignDocsStore
        The store whose in-memory indices are read.  The graph is a
        snapshot; call :meth:`build_graph` again after mutations.
    """

    def __init__(self, store):
        self.store = store
        self.graph: nx.DiGraph = nx.DiGraph()
        # (source node, field, missing target node) for unresolved references
        self.dangling: list[tuple[Node, str, Node]] = []

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build_graph(self, types=None) -> "RelationshipGraph":
        """Rebuild nodes and edges from the store.

        Parameters
        ----------
        types : iterable of EntityType, optional
            Restrict the graph to these entity types.  Edges to excluded
            types are dropped (and not reported as dangling).
        """
        self.graph.clear()
        self.dangling = []
        included = set(types) if types is not None else set(EntityType)

        # Pass 1: nodes
        for entity_type in included:
            for entity_id, entity in self.store.entity_map(entity_type).items():
                self.graph.add_node(
                    node_key(entity_type, entity_id),
                    entity_type=entity_type.value,
                    name=entity.get("name", entity_id),
                    status=entity.get("status"),
                )

        # Pass 2: edges
        for entity_type in included:
            for entity_id, entity in self.store.entity_map(entity_type).items():
                source = node_key(entity_type, entity_id)
                for relation, ref_id, _ in iter_references(entity_type, entity):
                    if relation.target not in included:
                        continue
                    target = node_key(relation.target, ref_id)
                    if target in self.graph:
                        self.graph.add_edge(
                            source,
                            target,
                            relationship_type=relation.label,
                            source_field=relation.field,
                        )
                    else:
                        self.dangling.append((source, relation.field, target))

        logger.debug(
            "Relationship graph: %d nodes, %d edges, %d dangling",
            self.graph.number_of_nodes(), self.graph.number_of_edges(), len(self.dangling),
        )
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def dependencies_of(self, node: Node) -> list[Node]:
        """Nodes *node* points at."""
        if node not in self.graph:
            return []
        return list(self.graph.successors(node))

    def dependents_of(self, node: Node, entity_type=None) -> list[Node]:
        """Nodes pointing at *node*, optionally only those of *entity_type*."""
        if node not in self.graph:
            return []
        preds = list(self.graph.predecessors(node))
        if entity_type is not None:
            wanted = EntityType.parse(entity_type).value
            preds = [p for p in preds if p[0] == wanted]
        return preds

    def traversal_neighbors(self, node: Node) -> list[tuple[Node, Node, dict]]:
        """Edges followed when walking outward from *node*.

        Forward references are followed as-is.  A capability additionally
        reaches the components that implement it, since that link is only
        recorded on the component side.
        """
        edges = [(node, target, data) for _, target, data in self.graph.out_edges(node, data=True)]
        if node[0] == EntityType.CAPABILITY.value:
            for source, _, data in self.graph.in_edges(node, data=True):
                if data.get("source_field") == COMPONENT_CAPABILITIES.field:
                    edges.append((source, node, data))
        return edges

    def neighbors_within(self, start: Node, depth: int = 1) -> tuple[dict[Node, int], list[tuple[Node, Node, str]]]:
        """Breadth-first walk from *start* up to *depth* hops.

        Returns
        -------
        tuple
            ``(distances, edges)`` where *distances* maps each reached node
            to its hop count and *edges* lists ``(source, target, label)``
            for every edge followed, in discovery order.
        """
        if start not in self.graph:
            return {}, []

        distances: dict[Node, int] = {start: 0}
        edges: list[tuple[Node, Node, str]] = []
        seen_edges: set[tuple[Node, Node, str]] = set()
        queue = deque([start])

        while queue:
            node = queue.popleft()
            if distances[node] >= depth:
                continue
            for source, target, data in self.traversal_neighbors(node):
                other = target if source == node else source
                edge = (source, target, data.get("relationship_type", ""))
                if edge not in seen_edges:
                    seen_edges.add(edge)
                    edges.append(edge)
                if other not in distances:
                    distances[other] = distances[node] + 1
                    queue.append(other)

        return distances, edges

    def get_orphans(self, entity_type, referrer_type=EntityType.WORKFLOW) -> list[Node]:
        """Nodes of *entity_type* with no inbound edge from *referrer_type*."""
        wanted = EntityType.parse(entity_type).value
        return [
            node for node, attrs in self.graph.nodes(data=True)
            if attrs.get("entity_type") == wanted
            and not self.dependents_of(node, referrer_type)
        ]

    def get_most_connected(self, n: int = 10) -> list[tuple[Node, int]]:
        """The *n* nodes with the highest total degree."""
        degrees = sorted(self.graph.degree(), key=lambda pair: (-pair[1], pair[0]))
        return degrees[:n]

    def get_stats(self) -> dict:
        """Summary counts for the graph."""
        by_type: dict[str, int] = {}
        for _, attrs in self.graph.nodes(data=True):
            by_type[attrs["entity_type"]] = by_type.get(attrs["entity_type"], 0) + 1
        by_relationship: dict[str, int] = {}
        for _, _, attrs in self.graph.edges(data=True):
            label = attrs["relationship_type"]
            by_relationship[label] = by_relationship.get(label, 0) + 1
        return {
            "node_count": self.graph.number_of_nodes(),
            "edge_count": self.graph.number_of_edges(),
            "dangling_count": len(self.dangling),
            "nodes_by_type": by_type,
            "edges_by_relationship": by_relationship,
            "weakly_connected_components": (
                nx.number_weakly_connected_components(self.graph)
                if self.graph.number_of_nodes() else 0
            ),
        }
