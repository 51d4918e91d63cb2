"""
Shared pytest fixtures for the designdocs test suite.

Provides:
    - project_root: path to the real project root
    - design_entities: the sample corpus as {directory: [entity dicts]}
    - temp_design: a temporary design directory populated from design_entities
    - store: a DesignDocsStore loaded from temp_design
    - empty_store: a DesignDocsStore over an empty directory
    - write_yaml: helper fixture to drop a raw YAML file into a design directory
    - sample_capability_data / sample_workflow_data: valid creation inputs
"""

import copy
import sys
from pathlib import Path

import pytest
import yaml

# ---------------------------------------------------------------------------
# Ensure designdocs/ is importable regardless of where pytest is invoked
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Add project root to sys.path so that `from designdocs.xxx import ...` works.
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from designdocs.migrations import default_registry  # noqa: E402
from designdocs.store import DesignDocsStore  # noqa: E402


STAMP = {
    "version": "1.0.0",
    "schema_version": "1.0.0",
    "created_at": "2025-01-01T00:00:00.000Z",
    "updated_at": "2025-01-01T00:00:00.000Z",
}

# Back-reference arrays below agree with the forward references, so the
# corpus validates with only orphan warnings (cap-3, admin-ada, viz-panel).
SAMPLE_CORPUS = {
    "capabilities": [
        {
            "id": "cap-1",
            "name": "CSV Import",
            "category": "data",
            "description": "Load tabular data from CSV files",
            "status": "implemented",
            "used_by_workflows": ["W01", "W02"],
            "implemented_by_components": ["csv-loader"],
        },
        {
            "id": "cap-2",
            "name": "Graph Rendering",
            "category": "visualization",
            "description": "Draw nodes and edges on a canvas",
            "status": "planned",
            "algorithms": ["force-directed"],
            "used_by_workflows": ["W01"],
            "implemented_by_components": ["viz-panel"],
        },
        {
            "id": "cap-3",
            "name": "PNG Export",
            "category": "export",
            "description": "Save the current view as an image",
            "status": "planned",
        },
    ],
    "personas": [
        {
            "id": "analyst-alex",
            "name": "Alex the Analyst",
            "role": "Data analyst",
            "characteristics": {"expertise": "intermediate"},
            "goals": ["Find clusters quickly"],
            "workflows": ["W01", "W02"],
        },
        {
            "id": "admin-ada",
            "name": "Ada the Admin",
            "role": "Administrator",
            "characteristics": {"expertise": "expert"},
            "goals": ["Keep the workspace tidy"],
        },
    ],
    "components": [
        {
            "id": "csv-loader",
            "name": "CSV Loader",
            "category": "dialog",
            "description": "File picker with a column mapping step",
            "status": "implemented",
            "implements_capabilities": ["cap-1"],
            "used_in_workflows": ["W01"],
        },
        {
            "id": "viz-panel",
            "name": "Visualization Panel",
            "category": "display",
            "description": "Main graph canvas",
            "status": "planned",
            "implements_capabilities": ["cap-2"],
            "dependencies": ["csv-loader"],
            "interaction_pattern": "hover-reveal",
        },
    ],
    "workflows": [
        {
            "id": "W01",
            "name": "Explore a dataset",
            "category": "analysis",
            "status": "designed",
            "goal": "Understand the structure of an imported network",
            "personas": ["analyst-alex"],
            "requires_capabilities": ["cap-1", "cap-2"],
            "suggested_components": ["csv-loader"],
            "starting_state": {
                "data_type": "csv",
                "node_count": 500,
                "edge_density": 0.1,
                "user_expertise": "intermediate",
            },
            "success_criteria": [
                {"metric": "time_to_first_graph", "target": "< 30s"},
                {"metric": "task completion rate", "target": 0.9},
            ],
        },
        {
            "id": "W02",
            "name": "First import",
            "category": "onboarding",
            "goal": "Get data into the tool",
            "personas": ["analyst-alex"],
            "requires_capabilities": ["cap-1"],
        },
    ],
    "tokens": [
        {
            "id": "base-tokens",
            "name": "Base Tokens",
            "colors": {"neutral": {"100": "#f5f5f5", "500": "#737373", "900": "#171717"}},
            "typography": {"fonts": {"sans": "Inter"}, "sizes": {"base": "16px"}},
        },
    ],
    "views": [
        {
            "id": "main-view",
            "name": "Main View",
            "status": "designed",
            "workflows": ["W01"],
            "layout": {
                "type": "sidebar-left",
                "zones": [
                    {"id": "canvas", "position": "main", "components": ["viz-panel"]},
                ],
            },
            "routes": [{"path": "/"}],
        },
    ],
    "interactions": [
        {
            "id": "hover-reveal",
            "name": "Hover Reveal",
            "interaction": {
                "states": [{"id": "idle"}, {"id": "hover"}],
                "transitions": [{"from": "idle", "to": "hover", "trigger": "mouseenter"}],
            },
            "applies_to": ["display"],
        },
    ],
    "test-results": [
        {
            "id": "TR-W01-analyst-alex-001",
            "workflow_id": "W01",
            "persona_id": "analyst-alex",
            "test_type": "simulated",
            "date": "2025-01-15",
            "status": "partial",
            "issues": [
                {
                    "severity": "major",
                    "description": "Legend hides the graph",
                    "affected_components": ["viz-panel"],
                },
            ],
        },
    ],
}


def write_entity_yaml(root, directory, data, filename=None):
    """Write *data* as ``<root>/<directory>/<id>.yaml`` and return the path."""
    folder = Path(root) / directory
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / (filename or f"{data['id']}.yaml")
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def project_root():
    """Return the absolute path to the real project root directory."""
    return str(PROJECT_ROOT)


@pytest.fixture
def design_entities():
    """Return a deep copy of the sample corpus, keyed by directory name."""
    return copy.deepcopy(SAMPLE_CORPUS)


@pytest.fixture
def temp_design(tmp_path, design_entities):
    """Create a temporary design directory holding the sample corpus.

    Every file carries current version metadata.  Returns the path to the
    design root.
    """
    root = tmp_path / "design"
    root.mkdir()
    for directory, entities in design_entities.items():
        for entity in entities:
            write_entity_yaml(root, directory, {**entity, **STAMP})
    return root


@pytest.fixture
def write_yaml():
    """Return the raw-file helper: ``write_yaml(root, directory, data, filename=None)``."""
    return write_entity_yaml


@pytest.fixture
def store(temp_design):
    """A store loaded from the sample corpus with a fresh migration registry."""
    return DesignDocsStore(temp_design, registry=default_registry())


@pytest.fixture
def empty_store(tmp_path):
    """A store over an empty design directory."""
    root = tmp_path / "empty-design"
    root.mkdir()
    return DesignDocsStore(root, registry=default_registry())


@pytest.fixture
def sample_capability_data():
    """Return a valid capability creation input (no metadata)."""
    return {
        "id": "graph-layout",
        "name": "Graph Layout",
        "category": "visualization",
        "description": "Position nodes using a layout algorithm",
        "algorithms": ["fruchterman-reingold"],
    }


@pytest.fixture
def sample_workflow_data():
    """Return a valid workflow creation input referencing the sample corpus."""
    return {
        "id": "W03",
        "name": "Share findings",
        "category": "reporting",
        "goal": "Send a snapshot to a colleague",
        "personas": ["admin-ada"],
        "requires_capabilities": ["cap-3"],
        "success_criteria": [{"metric": "export_time", "target": "< 5s"}],
    }
