"""
designdocs/scaffold.py -- Test skeletons from workflow success criteria

Turns each success criterion of a workflow into a stub test so that the
design's acceptance targets start life as (failing-to-be-written) code.

Two idioms:

    unit  -- a pytest module with plain assertions
    e2e   -- a pytest-playwright module driving the ``page`` fixture; the
             workflow's starting state is echoed as setup comments

Usage:
    from designdocs.scaffold import generate_tests

    source = generate_tests(store, "W01", format="e2e")
"""

import logging
import re

from designdocs.models.entities import EntityType

logger = logging.getLogger(__name__)

FORMATS = ("unit", "e2e")

_NON_IDENT = re.compile(r"[^0-9a-zA-Z]+")


def _docstring_text(text) -> str:
    return str(text).replace("\\", "\\\\").replace('"', '\\"')


def _comment_text(text) -> str:
    # Comments end at the first newline
    return " ".join(str(text).split())


def _test_name(metric: str, taken: set) -> str:
    base = "test_" + (_NON_IDENT.sub("_", str(metric)).strip("_").lower() or "criterion")
    name = base
    n = 2
    while name in taken:
        name = f"{base}_{n}"
        n += 1
    taken.add(name)
    return name


def _class_name(workflow: dict) -> str:
    words = _NON_IDENT.split(workflow.get("name", ""))
    return "Test" + workflow["id"] + "".join(w[:1].upper() + w[1:] for w in words if w)


def _header(workflow: dict, title: str) -> list[str]:
    return [
        '"""',
        f"{title} for workflow {workflow['id']}: {_docstring_text(workflow['name'])}",
        "",
        f"Goal: {_docstring_text(workflow['goal'])}",
        '"""',
        "",
    ]


def _unit_tests(workflow: dict) -> list[str]:
    lines = _header(workflow, "Tests")
    lines += ["import pytest", "", ""]
    lines.append(f"class {_class_name(workflow)}:")
    lines.append(f'    """{workflow["id"]}: {_docstring_text(workflow["name"])}"""')

    criteria = workflow.get("success_criteria") or []
    if not criteria:
        lines += [
            "",
            '    @pytest.mark.skip(reason="No success criteria defined")',
            "    def test_add_success_criteria(self):",
            '        """Add success criteria to the workflow to generate test cases."""',
        ]
        return lines

    taken = set()
    for criterion in criteria:
        metric = criterion["metric"]
        target = criterion["target"]
        lines += [
            "",
            f"    def {_test_name(metric, taken)}(self):",
            f'        """{_docstring_text(metric)} should meet target: {_docstring_text(target)}"""',
            "        # TODO: Implement test for this success criterion",
            f"        # Metric: {_comment_text(metric)}",
            f"        # Target: {_comment_text(target)}",
            "        assert True  # Placeholder",
        ]
    return lines


def _e2e_tests(workflow: dict) -> list[str]:
    lines = _header(workflow, "E2E tests")
    lines += [
        "import re",
        "",
        "import pytest",
        "from playwright.sync_api import Page, expect",
        "",
    ]

    starting_state = {k: v for k, v in (workflow.get("starting_state") or {}).items() if v is not None}
    if starting_state:
        lines.append("# Starting state:")
        for key, value in starting_state.items():
            lines.append(f"#   - {key}: {_comment_text(value)}")
    lines.append("")
    lines.append("")

    lines.append(f"class {_class_name(workflow)}:")
    lines.append(f'    """{workflow["id"]}: {_docstring_text(workflow["name"])}"""')

    criteria = workflow.get("success_criteria") or []
    if not criteria:
        lines += [
            "",
            '    @pytest.mark.skip(reason="No success criteria defined")',
            "    def test_add_success_criteria(self, page: Page):",
            '        """Add success criteria to the workflow to generate test cases."""',
        ]
        return lines

    taken = set()
    for criterion in criteria:
        metric = criterion["metric"]
        target = criterion["target"]
        lines += [
            "",
            f"    def {_test_name(metric, taken)}(self, page: Page):",
            f'        """{_docstring_text(metric)}: {_docstring_text(target)}"""',
            "        # TODO: Implement test for this success criterion",
            f"        # Metric: {_comment_text(metric)}",
            f"        # Target: {_comment_text(target)}",
            "",
            "        # Navigate to the application",
            '        page.goto("/")',
            "",
            "        # Add test assertions here",
            '        expect(page).to_have_title(re.compile("Expected Title"))',
        ]
    return lines


def generate_tests(store, workflow_id: str, format: str = "unit") -> str:
    """Return the source of a test module for *workflow_id*.

    A missing workflow or unknown *format* yields a one-line
    ``# Error: ...`` string rather than an exception.
    """
    workflow = store.entity_map(EntityType.WORKFLOW).get(workflow_id)
    if workflow is None:
        return f"# Error: Workflow '{workflow_id}' not found"
    if format not in FORMATS:
        return f"# Error: Unknown test format '{format}'. Expected one of: {', '.join(FORMATS)}"

    lines = _e2e_tests(workflow) if format == "e2e" else _unit_tests(workflow)
    logger.debug("Generated %s tests for workflow '%s'", format, workflow_id)
    return "\n".join(lines) + "\n"
