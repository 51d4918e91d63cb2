"""
designdocs -- YAML-backed store and consistency engine for design documents.

Submodules:
    store                DesignDocsStore: load, CRUD, back-reference upkeep.
    models               Pydantic v2 schemas and the relation tables.
    versioning           Version metadata stamping and schema-version checks.
    migrations           MigrationRegistry and the built-in migrations.
    graph_builder        NetworkX relationship graph.
    consistency_checker  validate(), orphans and gaps.
    analysis             Coverage and priority reports.
    diagram              Mermaid export.
    scaffold             Test skeletons from success criteria.
    config               Data-path resolution and logging setup.
"""

from designdocs.config import resolve_data_path, setup_logging
from designdocs.migrations import MigrationRegistry
from designdocs.models.entities import EntityType
from designdocs.store import DesignDocsStore, OperationResult

__version__ = "0.4.0"

__all__ = [
    "DesignDocsStore",
    "EntityType",
    "MigrationRegistry",
    "OperationResult",
    "resolve_data_path",
    "setup_logging",
    "__version__",
]
