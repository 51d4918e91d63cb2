"""
designdocs/analysis.py -- Coverage reporting and priority ranking

Read-only aggregations over a :class:`DesignDocsStore`:

    coverage_report()   -- per-type coverage tables plus status breakdowns
    test_coverage()     -- workflow x persona cross-tab of recorded test results
    suggest_priority()  -- which capability to build next, or which workflow
                           is closest to ready

Nothing here writes to disk.

Usage:
    from designdocs import analysis

    report = analysis.coverage_report(store)
    top = analysis.suggest_priority(store, focus="capability", limit=5)
    for rec in top["recommendations"]:
        print(rec["id"], rec["reasoning"])
"""

import logging

from designdocs.models.entities import (
    IMPLEMENTATION_STATUSES,
    WORKFLOW_STATUSES,
    EntityType,
)

logger = logging.getLogger(__name__)

PRIORITY_FOCUSES = ("capability", "workflow")

IMPLEMENTED = "implemented"
DEPRECATED = "deprecated"


def _status_counts(entities, statuses, default="planned") -> dict[str, int]:
    counts = {status: 0 for status in statuses}
    for entity in entities:
        status = entity.get("status", default)
        if status in counts:
            counts[status] += 1
    return counts


# ---------------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------------

def coverage_report(store) -> dict:
    """Aggregate coverage across workflows, capabilities, personas and components.

    Parameters
    ----------
    store : DesignDocsStore

    Returns
    -------
    dict
        ``summary`` (totals and capability ``implementation_status``),
        ``capability_coverage``, ``persona_coverage``, ``component_coverage``,
        ``workflow_coverage``, ``persona_coverage_count``,
        ``component_status``, ``workflow_status`` and ``test_coverage``.
    """
    workflows = store.entity_map(EntityType.WORKFLOW)
    capabilities = store.entity_map(EntityType.CAPABILITY)
    personas = store.entity_map(EntityType.PERSONA)
    components = store.entity_map(EntityType.COMPONENT)

    # Inbound counts from forward fields only
    cap_workflows: dict[str, int] = {}
    persona_workflows: dict[str, int] = {}
    comp_workflows: dict[str, int] = {}
    for wf in workflows.values():
        for cap_id in set(wf.get("requires_capabilities") or []):
            cap_workflows[cap_id] = cap_workflows.get(cap_id, 0) + 1
        for persona_id in set(wf.get("personas") or []):
            persona_workflows[persona_id] = persona_workflows.get(persona_id, 0) + 1
        for comp_id in set(wf.get("suggested_components") or []):
            comp_workflows[comp_id] = comp_workflows.get(comp_id, 0) + 1

    cap_components: dict[str, int] = {}
    for comp in components.values():
        for cap_id in set(comp.get("implements_capabilities") or []):
            cap_components[cap_id] = cap_components.get(cap_id, 0) + 1

    capability_coverage = [
        {
            "id": cap_id,
            "name": cap["name"],
            "status": cap.get("status", "planned"),
            "workflow_count": cap_workflows.get(cap_id, 0),
            "component_count": cap_components.get(cap_id, 0),
        }
        for cap_id, cap in capabilities.items()
    ]

    persona_coverage = [
        {
            "id": persona_id,
            "name": persona["name"],
            "workflow_count": persona_workflows.get(persona_id, 0),
        }
        for persona_id, persona in personas.items()
    ]

    component_coverage = [
        {
            "id": comp_id,
            "name": comp["name"],
            "status": comp.get("status", "planned"),
            "capability_count": len(comp.get("implements_capabilities") or []),
            "workflow_count": comp_workflows.get(comp_id, 0),
        }
        for comp_id, comp in components.items()
    ]

    workflow_coverage = []
    for wf_id, wf in workflows.items():
        # Unknown capability ids are a validation error, not a readiness gap
        missing = [
            cap_id for cap_id in wf.get("requires_capabilities") or []
            if cap_id in capabilities and capabilities[cap_id].get("status") != IMPLEMENTED
        ]
        workflow_coverage.append({
            "id": wf_id,
            "name": wf["name"],
            "category": wf["category"],
            "status": wf.get("status", "draft"),
            "capabilities_ready": not missing,
            "missing_capabilities": missing,
        })

    return {
        "summary": {
            "total_workflows": len(workflows),
            "total_capabilities": len(capabilities),
            "total_personas": len(personas),
            "total_components": len(components),
            "implementation_status": _status_counts(capabilities.values(), IMPLEMENTATION_STATUSES),
        },
        "capability_coverage": capability_coverage,
        "persona_coverage": persona_coverage,
        "component_coverage": component_coverage,
        "workflow_coverage": workflow_coverage,
        "persona_coverage_count": sum(1 for p in persona_coverage if p["workflow_count"] > 0),
        "component_status": _status_counts(components.values(), IMPLEMENTATION_STATUSES),
        "workflow_status": _status_counts(workflows.values(), WORKFLOW_STATUSES, default="draft"),
        "test_coverage": test_coverage(store),
    }


def test_coverage(store) -> dict:
    """Cross-tabulate recorded test results over every workflow x persona pair.

    Test results naming a workflow or persona that no longer exists are
    left out of the table.  ``real_test_count`` / ``simulated_test_count``
    count the pairs that have at least one test of that type.
    """
    workflows = store.entity_map(EntityType.WORKFLOW)
    personas = store.entity_map(EntityType.PERSONA)

    by_pair: dict[tuple[str, str], list[dict]] = {}
    for result in store.entity_map(EntityType.TEST_RESULT).values():
        pair = (result["workflow_id"], result["persona_id"])
        if pair[0] in workflows and pair[1] in personas:
            by_pair.setdefault(pair, []).append(result)

    entries = []
    untested = []
    for wf_id, wf in workflows.items():
        for persona_id, persona in personas.items():
            names = {
                "workflow_id": wf_id,
                "workflow_name": wf["name"],
                "persona_id": persona_id,
                "persona_name": persona["name"],
            }
            results = by_pair.get((wf_id, persona_id))
            if not results:
                untested.append(names)
                continue
            latest = max(results, key=lambda r: (r["date"], r["id"]))
            types = {r["test_type"] for r in results}
            entries.append({
                **names,
                "test_count": len(results),
                "latest_test": {
                    "id": latest["id"],
                    "date": latest["date"],
                    "status": latest["status"],
                    "test_type": latest["test_type"],
                },
                "has_real_test": "real" in types,
                "has_simulated_test": "simulated" in types,
            })

    possible = len(workflows) * len(personas)
    return {
        "total_workflows": len(workflows),
        "total_personas": len(personas),
        "possible_combinations": possible,
        "tested_combinations": len(entries),
        "coverage_percentage": round(100.0 * len(entries) / possible, 1) if possible else 0.0,
        "real_test_count": sum(1 for e in entries if e["has_real_test"]),
        "simulated_test_count": sum(1 for e in entries if e["has_simulated_test"]),
        "entries": entries,
        "untested": untested,
    }


# ---------------------------------------------------------------------------
# Priority
# ---------------------------------------------------------------------------

def _capability_recommendations(workflows, capabilities) -> list[dict]:
    recommendations = []
    for cap_id, cap in capabilities.items():
        if cap.get("status") in (IMPLEMENTED, DEPRECATED):
            continue
        unblocked = [
            wf_id for wf_id, wf in workflows.items()
            if cap_id in (wf.get("requires_capabilities") or [])
        ]
        recommendations.append({
            "id": cap_id,
            "name": cap["name"],
            "reasoning": (
                f"Implementing {cap['name']} would unblock {len(unblocked)} "
                f"workflow(s): {', '.join(unblocked) or 'none'}"
            ),
            "workflows_unblocked": unblocked,
            "score": len(unblocked),
        })
    recommendations.sort(key=lambda r: (-r["score"], r["id"]))
    return recommendations


def _workflow_recommendations(workflows, capabilities) -> list[dict]:
    ranked = []
    for wf_id, wf in workflows.items():
        if wf.get("status") == IMPLEMENTED:
            continue
        required = list(dict.fromkeys(wf.get("requires_capabilities") or []))
        ready = [c for c in required if capabilities.get(c, {}).get("status") == IMPLEMENTED]
        outstanding = [c for c in required if c not in ready]
        if required and not ready:
            continue
        readiness = len(ready) / len(required) if required else 1.0

        if outstanding:
            reasoning = (
                f"{wf['name']} is blocked by {len(outstanding)} capability(ies): "
                f"{', '.join(outstanding)}"
            )
        else:
            reasoning = f"{wf['name']} is ready to implement - all required capabilities are implemented"

        ranked.append({
            "id": wf_id,
            "name": wf["name"],
            "reasoning": reasoning,
            "readiness": round(readiness, 4),
            "missing_capabilities": outstanding,
            "score": readiness,
        })
    ranked.sort(key=lambda r: (-r["score"], len(r["missing_capabilities"]), r["id"]))
    return ranked


def suggest_priority(store, focus: str = "capability", limit=None) -> dict:
    """Rank what to build next.

    Parameters
    ----------
    store : DesignDocsStore
    focus : str
        ``"capability"`` ranks unimplemented capabilities by how many
        workflows require them.  ``"workflow"`` ranks unimplemented
        workflows by the share of their required capabilities already
        implemented; workflows with nothing ready are left out.
    limit : int, optional
        Truncate the recommendation list.

    Returns
    -------
    dict
        ``{"focus", "recommendations", "summary"}``, or ``{"error": ...}``
        for an unknown focus.
    """
    if focus not in PRIORITY_FOCUSES:
        return {"error": f"Unknown focus '{focus}'. Expected one of: {', '.join(PRIORITY_FOCUSES)}"}

    workflows = store.entity_map(EntityType.WORKFLOW)
    capabilities = store.entity_map(EntityType.CAPABILITY)

    if focus == "capability":
        recommendations = _capability_recommendations(workflows, capabilities)
    else:
        recommendations = _workflow_recommendations(workflows, capabilities)
    if limit is not None:
        recommendations = recommendations[:max(limit, 0)]

    unimplemented = {
        cap_id for cap_id, cap in capabilities.items()
        if cap.get("status") not in (IMPLEMENTED, DEPRECATED)
    }
    blocked = [
        wf_id for wf_id, wf in workflows.items()
        if any(
            c in capabilities and capabilities[c].get("status") != IMPLEMENTED
            for c in wf.get("requires_capabilities") or []
        )
    ]
    logger.debug("Priority (%s): %d recommendations", focus, len(recommendations))
    return {
        "focus": focus,
        "recommendations": recommendations,
        "summary": {
            "total_unimplemented": len(unimplemented),
            "total_blocked_workflows": len(blocked),
        },
    }
