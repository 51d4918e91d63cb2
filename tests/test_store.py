"""
Tests for designdocs/store.py -- Entity store CRUD and back-reference upkeep.

Validates:
    - Directory scan builds per-type indices; malformed files are skipped
    - create() stamps metadata, rejects bad ids, duplicates and dangling refs
    - update() bumps the version, merges, and leaves state alone on failure
    - delete() refuses while dependents exist unless forced
    - Back-reference arrays follow every create / update / delete / link
    - list() filters, get_resolved(), dependency queries
    - refresh() round-trips and notifies listeners
"""

from pathlib import Path

import pytest
import yaml

from designdocs.migrations import default_registry
from designdocs.store import DesignDocsStore, OperationResult


def _read(path):
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class TestLoading:
    """Tests for the initial directory scan."""

    def test_loads_every_type(self, store):
        """Each sample entity should be indexed under its type."""
        assert store.count("workflow") == 2
        assert store.count("capability") == 3
        assert store.count("persona") == 2
        assert store.count("component") == 2
        assert store.count("tokens") == 1
        assert store.count("view") == 1
        assert store.count("interaction") == 1
        assert store.count("test_result") == 1
        assert store.load_errors == []

    def test_directory_names_accepted_as_types(self, store):
        """Plural directory names should resolve to entity types."""
        assert store.count("capabilities") == 3
        assert store.count("test-results") == 1

    def test_missing_root_yields_empty_store(self, tmp_path):
        """A directory that does not exist yet should load as empty."""
        s = DesignDocsStore(tmp_path / "nowhere", registry=default_registry())
        assert s.count("workflow") == 0
        assert s.load_errors == []

    def test_unparsable_file_is_skipped(self, temp_design):
        """Broken YAML should be reported, not abort the scan."""
        (temp_design / "workflows" / "broken.yaml").write_text("id: [unclosed\n", encoding="utf-8")
        s = DesignDocsStore(temp_design, registry=default_registry())
        assert s.count("workflow") == 2
        assert len(s.load_errors) == 1
        assert s.load_errors[0].path.endswith("broken.yaml")

    def test_schema_invalid_file_is_skipped(self, temp_design, write_yaml):
        """A file failing its model should be skipped with a LoadError."""
        write_yaml(temp_design, "workflows", {
            "id": "W09", "name": "Bad", "category": "bogus", "goal": "x",
        })
        s = DesignDocsStore(temp_design, registry=default_registry())
        assert not s.exists("workflow", "W09")
        assert s.load_errors[0].entity_id == "W09"
        assert "category" in s.load_errors[0].message

    def test_duplicate_id_is_skipped(self, temp_design, write_yaml):
        """A second file claiming an existing id should be skipped."""
        write_yaml(temp_design, "capabilities", {
            "id": "cap-1", "name": "Dup", "category": "data", "description": "dup",
        }, filename="zz-cap-1-copy.yaml")
        s = DesignDocsStore(temp_design, registry=default_registry())
        assert s.get("capability", "cap-1")["name"] == "CSV Import"
        assert "Duplicate" in s.load_errors[0].message

    def test_yml_extension_is_loaded(self, temp_design, write_yaml):
        """Hand-named .yml files should be picked up too."""
        write_yaml(temp_design, "capabilities", {
            "id": "cap-yml", "name": "Yml", "category": "data", "description": "d",
        }, filename="cap-yml.yml")
        s = DesignDocsStore(temp_design, registry=default_registry())
        assert s.exists("capability", "cap-yml")

    def test_legacy_file_loads_with_schema_warning(self, temp_design, write_yaml):
        """A file with no version metadata should load and be flagged."""
        write_yaml(temp_design, "capabilities", {
            "id": "legacy-cap", "name": "Legacy", "category": "data", "description": "old",
        })
        s = DesignDocsStore(temp_design, registry=default_registry())
        assert s.exists("capability", "legacy-cap")
        warnings = s.get_schema_warnings()
        assert len(warnings) == 1
        assert warnings[0]["entity_id"] == "legacy-cap"
        assert warnings[0]["stored_version"] == "0.0.0"
        assert warnings[0]["severity"] == "warning"
        # The built-in migration stamps schema_version in memory
        assert s.get("capability", "legacy-cap")["schema_version"] == "1.0.0"

    def test_failed_migration_keeps_raw_data(self, temp_design, write_yaml):
        """A raising migration should leave the entity loaded and flagged as an error."""
        from designdocs.migrations import Migration, MigrationRegistry

        def explode(data, entity_type):
            raise RuntimeError("boom")

        registry = MigrationRegistry([
            Migration("001-explode", "0.0.0", "1.0.0", "all", "always fails", explode),
        ])
        write_yaml(temp_design, "capabilities", {
            "id": "legacy-cap", "name": "Legacy", "category": "data", "description": "old",
        })
        s = DesignDocsStore(temp_design, registry=registry)
        assert s.exists("capability", "legacy-cap")
        assert "schema_version" not in s.get("capability", "legacy-cap")
        warning = s.get_schema_warnings()[0]
        assert warning["severity"] == "error"
        assert "001-explode" in warning["message"]

    def test_migration_returning_none_does_not_abort_load(self, temp_design, write_yaml):
        """A migration that forgets to return its data fails that file only."""
        from designdocs.migrations import Migration, MigrationRegistry

        def forgot_return(data, entity_type):
            data["schema_version"] = "1.0.0"

        registry = MigrationRegistry([
            Migration("001-forgot-return", "0.0.0", "1.0.0", "all", "no return", forgot_return),
        ])
        write_yaml(temp_design, "capabilities", {
            "id": "legacy-cap", "name": "Legacy", "category": "data", "description": "old",
        })
        s = DesignDocsStore(temp_design, registry=registry)
        assert s.count("capability") == 4
        assert "schema_version" not in s.get("capability", "legacy-cap")
        warning = s.get_schema_warnings()[0]
        assert warning["severity"] == "error"
        assert warning["message"] == (
            "Migration 001-forgot-return returned NoneType, expected a mapping"
        )


# ---------------------------------------------------------------------------
# Read access
# ---------------------------------------------------------------------------

class TestReadAccess:
    """Tests for get / list / get_resolved / dependency queries."""

    def test_get_returns_copy(self, store):
        """Mutating a returned entity must not touch the index."""
        entity = store.get("capability", "cap-1")
        entity["name"] = "Changed"
        assert store.get("capability", "cap-1")["name"] == "CSV Import"

    def test_get_missing_returns_none(self, store):
        """An unknown id should return None."""
        assert store.get("workflow", "W99") is None

    def test_list_without_filters(self, store):
        """Listing should return one summary row per entity."""
        rows = store.list("workflow")
        assert {r["id"] for r in rows} == {"W01", "W02"}
        w01 = next(r for r in rows if r["id"] == "W01")
        assert w01["capability_count"] == 2

    def test_list_filters(self, store):
        """Equality and containment filters should narrow the rows."""
        assert [r["id"] for r in store.list("capability", status="implemented")] == ["cap-1"]
        assert {r["id"] for r in store.list("workflow", capability="cap-1")} == {"W01", "W02"}
        assert [r["id"] for r in store.list("persona", expertise="expert")] == ["admin-ada"]
        assert [r["id"] for r in store.list("view", has_route=True)] == ["main-view"]
        assert [r["id"] for r in store.list("test_result", has_issues=True)] == [
            "TR-W01-analyst-alex-001"
        ]

    def test_unknown_type_reads_are_empty(self, store):
        """Read methods should answer for an unknown type name without raising."""
        assert store.get("gadget", "x") is None
        assert store.get_resolved("gadget", "x") is None
        assert store.exists("gadget", "x") is False
        assert store.count("gadget") == 0
        assert store.list("gadget") == []
        assert store.get_dependencies("gadget", "x") == []
        assert store.get_dependents("gadget", "x") == []
        assert store.find_orphans("gadget") == {
            "capabilities": [], "personas": [], "components": [],
        }

    def test_list_none_filter_ignored(self, store):
        """A filter passed as None should be ignored."""
        assert len(store.list("workflow", category=None)) == 2

    def test_list_unknown_filter_raises(self, store):
        """An unknown filter name is a programming error."""
        with pytest.raises(TypeError):
            store.list("workflow", colour="red")

    def test_get_resolved(self, store):
        """Resolved references should carry names and the dependents list."""
        w01 = store.get_resolved("workflow", "W01")
        resolved = w01["_resolved"]
        assert [c["id"] for c in resolved["requires_capabilities"]] == ["cap-1", "cap-2"]
        assert resolved["requires_capabilities"][1]["name"] == "Graph Rendering"
        referrers = {(d["entity_type"], d["id"]) for d in resolved["referenced_by"]}
        assert ("view", "main-view") in referrers
        assert ("test_result", "TR-W01-analyst-alex-001") in referrers

    def test_get_resolved_scalar_reference(self, store):
        """A scalar relation should resolve to a single summary."""
        resolved = store.get_resolved("component", "viz-panel")["_resolved"]
        assert resolved["interaction_pattern"]["id"] == "hover-reveal"

    def test_get_dependencies_flags_missing(self, store):
        """Dependencies should report whether each target exists."""
        store.entity_map("workflow")["W02"]["requires_capabilities"].append("ghost")
        deps = store.get_dependencies("workflow", "W02")
        by_id = {d["id"]: d for d in deps}
        assert by_id["cap-1"]["exists"] is True
        assert by_id["ghost"]["exists"] is False

    def test_get_dependents_from_forward_fields(self, store):
        """Dependents should be computed from forward references."""
        dependents = store.get_dependents("capability", "cap-2")
        assert {(d["entity_type"], d["id"], d["field"]) for d in dependents} == {
            ("workflow", "W01", "requires_capabilities"),
            ("component", "viz-panel", "implements_capabilities"),
        }


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------

class TestCreate:
    """Tests for DesignDocsStore.create."""

    def test_create_then_get_round_trips(self, empty_store, sample_capability_data):
        """get() after create() should equal the input plus metadata."""
        result = empty_store.create("capability", sample_capability_data)
        assert isinstance(result, OperationResult)
        assert result.success is True
        stored = empty_store.get("capability", "graph-layout")
        for key, value in sample_capability_data.items():
            assert stored[key] == value
        assert stored["version"] == "1.0.0"
        assert stored["schema_version"] == "1.0.0"
        assert stored["created_at"] == stored["updated_at"]
        assert stored["created_at"].endswith("Z")

    def test_create_writes_file(self, empty_store, sample_capability_data):
        """The entity should land in <type dir>/<id>.yaml."""
        empty_store.create("capability", sample_capability_data)
        path = empty_store.root / "capabilities" / "graph-layout.yaml"
        assert path.exists()
        assert _read(path)["name"] == "Graph Layout"

    def test_caller_metadata_is_ignored(self, empty_store, sample_capability_data):
        """Version fields supplied by the caller should be overwritten."""
        data = dict(sample_capability_data, version="9.9.9", created_at="yesterday")
        empty_store.create("capability", data)
        stored = empty_store.get("capability", "graph-layout")
        assert stored["version"] == "1.0.0"
        assert stored["created_at"] != "yesterday"

    def test_invalid_id_rejected(self, empty_store, sample_capability_data):
        """A non-kebab-case id should fail validation before any write."""
        data = dict(sample_capability_data, id="Graph_Layout")
        result = empty_store.create("capability", data)
        assert result.success is False
        assert result.error_kind == "validation"
        assert "ID must match pattern kebab-case" in result.error
        assert not (empty_store.root / "capabilities").exists()

    def test_workflow_id_pattern(self, store, sample_workflow_data):
        """Workflow ids must look like W01."""
        result = store.create("workflow", dict(sample_workflow_data, id="workflow-3"))
        assert result.error_kind == "validation"
        assert "W01, W99" in result.error

    def test_duplicate_rejected(self, store):
        """Creating an existing id should be a conflict."""
        result = store.create("capability", {
            "id": "cap-1", "name": "Again", "category": "data", "description": "d",
        })
        assert result.success is False
        assert result.error_kind == "conflict"
        assert result.error == "Capability 'cap-1' already exists"

    def test_dangling_reference_rejected(self, store, sample_workflow_data):
        """A missing referenced id should name the type and the id."""
        data = dict(sample_workflow_data, requires_capabilities=["does-not-exist"])
        result = store.create("workflow", data)
        assert result.success is False
        assert result.error_kind == "reference"
        assert "Capability 'does-not-exist' does not exist" in result.error
        assert not store.exists("workflow", "W03")
        assert not (store.root / "workflows" / "W03.yaml").exists()

    def test_nested_reference_checked(self, store):
        """Zone component ids in a view should be reference-checked."""
        result = store.create("view", {
            "id": "side-view",
            "name": "Side",
            "layout": {"type": "split", "zones": [
                {"id": "left", "position": "main", "components": ["ghost-panel"]},
            ]},
        })
        assert result.error_kind == "reference"
        assert "Component 'ghost-panel' does not exist (in zone 'left')" in result.error

    def test_create_pushes_back_references(self, store, sample_workflow_data):
        """New forward references should appear in the targets' back-reference arrays."""
        result = store.create("workflow", sample_workflow_data)
        assert result.success is True
        assert store.get("capability", "cap-3")["used_by_workflows"] == ["W03"]
        assert store.get("persona", "admin-ada")["workflows"] == ["W03"]
        on_disk = _read(store.root / "capabilities" / "cap-3.yaml")
        assert on_disk["used_by_workflows"] == ["W03"]

    @pytest.mark.parametrize("entity_type, data", [
        ("workflow", {
            "id": "W10", "name": "Compare runs", "category": "analysis",
            "goal": "Spot differences between two imports",
        }),
        ("capability", {
            "id": "diffing", "name": "Diffing", "category": "data",
            "description": "Compare two datasets",
        }),
        ("persona", {
            "id": "researcher-rae", "name": "Rae", "role": "Researcher",
            "characteristics": {"expertise": "novice"}, "goals": ["Publish figures"],
        }),
        ("component", {
            "id": "diff-table", "name": "Diff Table", "category": "display",
            "description": "Side-by-side table of changes",
        }),
        ("tokens", {
            "id": "dark-tokens", "name": "Dark Tokens", "extends": "base-tokens",
            "colors": {"neutral": {"500": "#525252"}},
            "typography": {"fonts": {"sans": "Inter"}, "sizes": {"base": "15px"}},
        }),
        ("view", {
            "id": "compare-view", "name": "Compare View",
            "layout": {"type": "split", "zones": [
                {"id": "left", "position": "main", "components": ["viz-panel"]},
            ]},
            "routes": [{"path": "/compare"}],
        }),
        ("interaction", {
            "id": "drag-pan", "name": "Drag to pan",
            "interaction": {
                "states": [],
                "transitions": [{"from": "idle", "to": "panning"}],
                "microinteractions": [],
            },
        }),
        ("test_result", {
            "id": "TR-W01-analyst-alex-002", "workflow_id": "W01",
            "persona_id": "analyst-alex", "test_type": "real",
            "date": "2025-02-01", "status": "passed",
        }),
    ])
    def test_every_type_round_trips(self, store, entity_type, data):
        """create() then get() returns the input plus metadata, before and after refresh."""
        result = store.create(entity_type, data)
        assert result.success is True, result.error
        stored = store.get(entity_type, data["id"])
        for key, value in data.items():
            assert stored[key] == value
        assert stored["version"] == "1.0.0"
        assert stored["schema_version"] == "1.0.0"
        assert stored["created_at"] == stored["updated_at"]

        store.refresh()
        assert store.get(entity_type, data["id"]) == stored
        assert store.load_errors == []

    def test_dangling_extends_rejected(self, store):
        """Tokens extending a missing token set should fail with a reference error."""
        result = store.create("tokens", {
            "id": "dark-tokens", "name": "Dark Tokens", "extends": "missing-tokens",
            "colors": {"neutral": {"500": "#525252"}},
            "typography": {"sizes": {"base": "15px"}},
        })
        assert result.success is False
        assert result.error_kind == "reference"
        assert result.error == "Tokens 'missing-tokens' does not exist (extends reference)"
        assert not store.exists("tokens", "dark-tokens")
        assert not (store.root / "tokens" / "dark-tokens.yaml").exists()

    def test_unknown_type_is_validation_error(self, store):
        """An unknown entity type should come back as a result, not raise."""
        result = store.create("gadget", {"id": "x"})
        assert result.success is False
        assert result.error_kind == "validation"


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------

class TestUpdate:
    """Tests for DesignDocsStore.update."""

    def test_version_bumps_on_each_update(self, store):
        """Every successful update should patch-increment the version."""
        store.update("capability", "cap-3", {"description": "Save as PNG"})
        assert store.get("capability", "cap-3")["version"] == "1.0.1"
        store.update("capability", "cap-3", {"status": "in-progress"})
        stored = store.get("capability", "cap-3")
        assert stored["version"] == "1.0.2"
        assert stored["description"] == "Save as PNG"
        assert stored["created_at"] == "2025-01-01T00:00:00.000Z"
        assert stored["updated_at"] != "2025-01-01T00:00:00.000Z"

    def test_not_found(self, store):
        """Updating a missing id should be not_found."""
        result = store.update("workflow", "W99", {"name": "x"})
        assert result.error_kind == "not_found"
        assert result.error == "Workflow 'W99' not found"

    def test_rejected_update_leaves_state(self, store):
        """A dangling reference should leave index, file and version untouched."""
        before = store.get("workflow", "W01")
        path = store.root / "workflows" / "W01.yaml"
        file_before = path.read_text(encoding="utf-8")

        result = store.update("workflow", "W01", {"requires_capabilities": ["does-not-exist"]})

        assert result.error_kind == "reference"
        assert "does-not-exist" in result.error
        assert store.get("workflow", "W01") == before
        assert path.read_text(encoding="utf-8") == file_before

    def test_invalid_value_rejected(self, store):
        """A bad enum value should fail validation."""
        result = store.update("capability", "cap-1", {"status": "finished"})
        assert result.error_kind == "validation"
        assert store.get("capability", "cap-1")["version"] == "1.0.0"

    def test_id_cannot_change(self, store):
        """Renaming through update is not allowed."""
        result = store.update("capability", "cap-1", {"id": "cap-one"})
        assert result.error_kind == "validation"
        assert store.exists("capability", "cap-1")

    def test_same_id_in_changes_is_accepted(self, store):
        """Passing the unchanged id should be harmless."""
        result = store.update("capability", "cap-1", {"id": "cap-1", "name": "CSV In"})
        assert result.success is True

    def test_back_references_follow_changes(self, store):
        """Removing and adding forward refs should update both sides."""
        store.update("workflow", "W01", {"requires_capabilities": ["cap-1", "cap-3"]})
        assert store.get("capability", "cap-2")["used_by_workflows"] == []
        assert store.get("capability", "cap-3")["used_by_workflows"] == ["W01"]
        assert store.validate()["valid"] is True

    def test_holder_version_not_bumped(self, store):
        """Back-reference upkeep should not bump the holder's content version."""
        store.update("workflow", "W02", {"requires_capabilities": ["cap-1", "cap-3"]})
        cap3 = store.get("capability", "cap-3")
        assert cap3["version"] == "1.0.0"
        assert cap3["updated_at"] != "2025-01-01T00:00:00.000Z"

    def test_legacy_holder_backfilled_on_back_reference_write(self, temp_design, write_yaml):
        """A legacy holder rewritten for its back-references gains full metadata."""
        write_yaml(temp_design, "capabilities", {
            "id": "legacy-cap", "name": "Legacy", "category": "data", "description": "old",
        })
        s = DesignDocsStore(temp_design, registry=default_registry())
        result = s.create("workflow", {
            "id": "W50", "name": "Reuse legacy", "category": "analysis",
            "goal": "Exercise an old capability", "requires_capabilities": ["legacy-cap"],
        })
        assert result.success is True

        on_disk = _read(temp_design / "capabilities" / "legacy-cap.yaml")
        assert on_disk["used_by_workflows"] == ["W50"]
        assert on_disk["version"] == "1.0.0"
        assert on_disk["schema_version"] == "1.0.0"
        assert on_disk["created_at"]
        assert on_disk["updated_at"]

        s.update("workflow", "W50", {"requires_capabilities": []})
        assert _read(temp_design / "capabilities" / "legacy-cap.yaml")["version"] == "1.0.0"

    def test_legacy_entity_gets_backfilled(self, temp_design, write_yaml):
        """Updating a legacy entity should add the missing metadata and clear its warning."""
        write_yaml(temp_design, "capabilities", {
            "id": "legacy-cap", "name": "Legacy", "category": "data", "description": "old",
        })
        s = DesignDocsStore(temp_design, registry=default_registry())
        result = s.update("capability", "legacy-cap", {"description": "refreshed"})
        assert result.success is True
        stored = s.get("capability", "legacy-cap")
        assert stored["version"] == "1.0.0"
        assert stored["schema_version"] == "1.0.0"
        assert stored["created_at"]
        assert s.get_schema_warnings() == []

    def test_unknown_fields_survive(self, store):
        """Extra keys from a newer release should be kept on save."""
        store.update("capability", "cap-1", {"owner_team": "graph"})
        assert _read(store.root / "capabilities" / "cap-1.yaml")["owner_team"] == "graph"


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------

class TestDelete:
    """Tests for DesignDocsStore.delete."""

    def test_refuses_with_dependents(self, store):
        """A referenced capability should not be deleted without force."""
        result = store.delete("capability", "cap-2")
        assert result.success is False
        assert result.error_kind == "dependents"
        assert "Workflow 'W01'" in result.error
        assert store.exists("capability", "cap-2")

    def test_force_delete_warns(self, store):
        """Forced deletion should succeed and name the now-dangling references."""
        result = store.delete("capability", "cap-2", force=True)
        assert result.success is True
        assert not store.exists("capability", "cap-2")
        assert not (store.root / "capabilities" / "cap-2.yaml").exists()
        assert any("Workflow 'W01'" in w and "cap-2" in w for w in result.warnings)

        report = store.validate()
        assert report["valid"] is False
        assert any("W01" in e and "cap-2" in e for e in report["errors"])

    def test_unreferenced_delete(self, store):
        """An entity nothing points at should delete cleanly."""
        result = store.delete("capability", "cap-3")
        assert result.success is True
        assert result.warnings == []

    def test_delete_cleans_back_references(self, store):
        """Deleting a workflow should drop it from the back-reference arrays."""
        store.delete("workflow", "W02")
        assert store.get("capability", "cap-1")["used_by_workflows"] == ["W01"]
        assert store.get("persona", "analyst-alex")["workflows"] == ["W01"]

    def test_failed_unlink_keeps_backing_file(self, temp_design, write_yaml, monkeypatch):
        """A delete that cannot remove the file leaves the entity fully intact."""
        write_yaml(temp_design, "capabilities", {
            "id": "hand-cap", "name": "Hand named", "category": "data", "description": "x",
        }, filename="hand-named.yaml")
        s = DesignDocsStore(temp_design, registry=default_registry())

        def read_only(self, missing_ok=False):
            raise PermissionError("read-only file system")

        monkeypatch.setattr(Path, "unlink", read_only)
        result = s.delete("capability", "hand-cap")
        assert result.success is False
        assert result.error_kind == "io"
        assert s.exists("capability", "hand-cap")

        monkeypatch.undo()
        assert s.delete("capability", "hand-cap").success is True
        assert not (temp_design / "capabilities" / "hand-named.yaml").exists()

    def test_not_found(self, store):
        """Deleting a missing id should be not_found."""
        assert store.delete("persona", "nobody").error_kind == "not_found"


# ---------------------------------------------------------------------------
# link / unlink
# ---------------------------------------------------------------------------

class TestLink:
    """Tests for link and unlink."""

    def test_link_adds_forward_and_back_reference(self, store):
        """Linking should edit the forward field and the inverse array."""
        result = store.link("workflow", "W02", "capability", "cap-3", "requires")
        assert result.success is True
        assert store.get("workflow", "W02")["requires_capabilities"] == ["cap-1", "cap-3"]
        assert store.get("capability", "cap-3")["used_by_workflows"] == ["W02"]

    def test_link_is_idempotent(self, store):
        """Linking an existing pair should not bump the version."""
        store.link("workflow", "W02", "capability", "cap-1", "requires")
        assert store.get("workflow", "W02")["version"] == "1.0.0"

    def test_unlink(self, store):
        """Unlinking should remove both sides."""
        store.unlink("component", "viz-panel", "capability", "cap-2", "implements")
        assert store.get("component", "viz-panel")["implements_capabilities"] == []
        assert store.get("capability", "cap-2")["implemented_by_components"] == []

    def test_invalid_relationship(self, store):
        """An unsupported triple should be rejected."""
        result = store.link("workflow", "W01", "persona", "analyst-alex", "requires")
        assert result.error_kind == "validation"
        assert "Invalid relationship 'requires'" in result.error

    def test_link_to_missing_target(self, store):
        """Linking to an unknown id should be a reference error."""
        result = store.link("workflow", "W01", "capability", "ghost", "requires")
        assert result.error_kind == "reference"


# ---------------------------------------------------------------------------
# refresh
# ---------------------------------------------------------------------------

class TestRefresh:
    """Tests for refresh and listeners."""

    def test_refresh_round_trip(self, store, sample_capability_data):
        """Data written by the store should read back identically after a rescan."""
        store.create("capability", sample_capability_data)
        store.update("workflow", "W02", {"requires_capabilities": ["cap-1", "graph-layout"]})
        before = {t: dict(store.entity_map(t)) for t in ("workflow", "capability")}
        store.refresh()
        assert store.get("capability", "graph-layout") == before["capability"]["graph-layout"]
        assert store.get("workflow", "W02") == before["workflow"]["W02"]

    def test_refresh_picks_up_external_edit(self, store, write_yaml):
        """A file added behind the store's back should appear after refresh."""
        write_yaml(store.root, "personas", {
            "id": "new-nia", "name": "Nia", "role": "Student",
            "characteristics": {"expertise": "novice"}, "goals": ["learn"],
        })
        assert not store.exists("persona", "new-nia")
        store.refresh("add")
        assert store.exists("persona", "new-nia")

    def test_listeners_notified(self, store):
        """Listeners should receive the change kind and path."""
        seen = []
        listener = lambda kind, path: seen.append((kind, path))  # noqa: E731
        store.add_listener(listener)
        store.refresh("change", "workflows/W01.yaml")
        store.remove_listener(listener)
        store.refresh()
        assert seen == [("change", "workflows/W01.yaml")]


class TestOperationResult:
    """Tests for the OperationResult value object."""

    def test_to_dict(self):
        """Only populated fields should be serialised."""
        assert OperationResult.ok().to_dict() == {"success": True}
        failed = OperationResult.failure("nope", "io").to_dict()
        assert failed == {"success": False, "error": "nope", "error_kind": "io"}

    def test_truthiness(self):
        """A result should be truthy only on success."""
        assert OperationResult.ok()
        assert not OperationResult.failure("x", "validation")
