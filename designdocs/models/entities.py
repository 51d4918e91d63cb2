"""
designdocs/models/entities.py -- Pydantic models for every design entity type.

One concrete model per :class:`EntityType`.  Each model declares its own
id pattern, required domain fields, enumerations (as ``Literal`` unions)
and nested shapes.  Version metadata and relational arrays are optional
with empty defaults so that a minimal hand-written YAML file validates.

Unknown keys are kept (``extra="allow"``) so that files written by a newer
release survive a load/save cycle untouched.

Usage::

    from designdocs.models.entities import EntityType, model_for

    Workflow = model_for(EntityType.WORKFLOW)
    wf = Workflow.model_validate({"id": "W01", "name": "Import", ...})
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, ClassVar, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ------------------------------------------------------------------
# Entity type enumeration
# ------------------------------------------------------------------

class EntityType(str, Enum):
    """Closed set of entity kinds managed by the store."""

    WORKFLOW = "workflow"
    CAPABILITY = "capability"
    PERSONA = "persona"
    COMPONENT = "component"
    TOKENS = "tokens"
    VIEW = "view"
    INTERACTION = "interaction"
    TEST_RESULT = "test_result"

    @property
    def directory(self) -> str:
        return STORE_DIRS[self]

    @property
    def label(self) -> str:
        """Capitalised name used in user-facing messages."""
        return TYPE_LABELS[self]

    @classmethod
    def parse(cls, value) -> "EntityType":
        """Accept an ``EntityType``, its value, or a plural directory name."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "_")
        for member in cls:
            if text in (member.value, member.directory.replace("-", "_")):
                return member
        raise ValueError(f"Unknown entity type '{value}'")


STORE_DIRS: dict[EntityType, str] = {
    EntityType.WORKFLOW: "workflows",
    EntityType.CAPABILITY: "capabilities",
    EntityType.PERSONA: "personas",
    EntityType.COMPONENT: "components",
    EntityType.TOKENS: "tokens",
    EntityType.VIEW: "views",
    EntityType.INTERACTION: "interactions",
    EntityType.TEST_RESULT: "test-results",
}

TYPE_LABELS: dict[EntityType, str] = {
    EntityType.WORKFLOW: "Workflow",
    EntityType.CAPABILITY: "Capability",
    EntityType.PERSONA: "Persona",
    EntityType.COMPONENT: "Component",
    EntityType.TOKENS: "Tokens",
    EntityType.VIEW: "View",
    EntityType.INTERACTION: "Interaction",
    EntityType.TEST_RESULT: "Test result",
}


# ------------------------------------------------------------------
# Id patterns
# ------------------------------------------------------------------

KEBAB_CASE_RE = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")
WORKFLOW_ID_RE = re.compile(r"^W\d{1,3}$")
TEST_RESULT_ID_RE = re.compile(r"^TR-W\d{1,3}-[a-z][a-z0-9-]*-\d{3}$")

KEBAB_CASE_MESSAGE = "ID must match pattern kebab-case (e.g., data-import)"
WORKFLOW_ID_MESSAGE = "ID must match pattern W01, W99, etc."
TEST_RESULT_ID_MESSAGE = (
    "ID must match pattern TR-W<workflow>-<persona>-<NNN> "
    "(e.g., TR-W01-analyst-alex-001)"
)


# ------------------------------------------------------------------
# Shared building blocks
# ------------------------------------------------------------------

class _Part(BaseModel):
    """Base for nested objects: permissive about extra keys."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Bibliography(_Part):
    author: Optional[str] = None
    date: Optional[str] = None
    publisher: Optional[str] = None
    version: Optional[str] = None


class Source(_Part):
    title: str = Field(min_length=1)
    url: Optional[str] = None
    summary: Optional[str] = None
    bibliography: Optional[Bibliography] = None


class DesignEntity(BaseModel):
    """Fields common to every stored entity."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    ID_PATTERN: ClassVar[re.Pattern] = KEBAB_CASE_RE
    ID_MESSAGE: ClassVar[str] = KEBAB_CASE_MESSAGE

    id: str

    # Version metadata -- optional on read, stamped by the store on write
    version: Optional[str] = None
    schema_version: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    sources: list[Source] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def _check_id_pattern(cls, value: str) -> str:
        if not cls.ID_PATTERN.match(value):
            raise ValueError(cls.ID_MESSAGE)
        return value


# ------------------------------------------------------------------
# Workflow
# ------------------------------------------------------------------

WorkflowCategory = Literal[
    "onboarding", "analysis", "exploration", "reporting",
    "collaboration", "administration",
]
WorkflowStatus = Literal[
    "draft", "designed", "validated", "implementing", "implemented", "deprecated",
]
WORKFLOW_STATUSES = (
    "draft", "designed", "validated", "implementing", "implemented", "deprecated",
)


class StartingState(_Part):
    data_type: Optional[str] = None
    node_count: Optional[Union[int, str]] = None
    edge_density: Optional[Union[float, str]] = None
    user_expertise: Optional[str] = None


class SuccessCriterion(_Part):
    metric: str = Field(min_length=1)
    target: Union[int, float, str]


class Workflow(DesignEntity):
    ID_PATTERN: ClassVar[re.Pattern] = WORKFLOW_ID_RE
    ID_MESSAGE: ClassVar[str] = WORKFLOW_ID_MESSAGE

    name: str = Field(min_length=1)
    category: WorkflowCategory
    status: WorkflowStatus = "draft"
    validated: bool = False
    goal: str = Field(min_length=1)
    personas: list[str] = Field(default_factory=list)
    requires_capabilities: list[str] = Field(default_factory=list)
    suggested_components: list[str] = Field(default_factory=list)
    starting_state: Optional[StartingState] = None
    success_criteria: list[SuccessCriterion] = Field(default_factory=list)


# ------------------------------------------------------------------
# Capability
# ------------------------------------------------------------------

CapabilityCategory = Literal[
    "data", "visualization", "analysis", "interaction",
    "export", "collaboration", "performance",
]
ImplementationStatus = Literal["planned", "in-progress", "implemented", "deprecated"]
IMPLEMENTATION_STATUSES = ("planned", "in-progress", "implemented", "deprecated")


class Capability(DesignEntity):
    name: str = Field(min_length=1)
    category: CapabilityCategory
    description: str = Field(min_length=1)
    status: ImplementationStatus = "planned"
    algorithms: list[str] = Field(default_factory=list)
    requirements: list[str] = Field(default_factory=list)
    # Back-references maintained by the store
    used_by_workflows: list[str] = Field(default_factory=list)
    implemented_by_components: list[str] = Field(default_factory=list)


# ------------------------------------------------------------------
# Persona
# ------------------------------------------------------------------

class Characteristics(_Part):
    expertise: Literal["novice", "intermediate", "expert"]
    time_pressure: Optional[str] = None
    graph_literacy: Optional[str] = None
    domain_knowledge: Optional[str] = None


class PersonaContext(_Part):
    frequency: Optional[Literal["daily", "weekly", "monthly", "as-needed"]] = None
    devices: list[str] = Field(default_factory=list)
    voluntary: Optional[bool] = None


class Persona(DesignEntity):
    name: str = Field(min_length=1)
    role: str = Field(min_length=1)
    quote: Optional[str] = None
    bio: Optional[str] = None
    characteristics: Characteristics
    motivations: list[str] = Field(default_factory=list)
    behaviors: list[str] = Field(default_factory=list)
    goals: list[str] = Field(min_length=1)
    frustrations: list[str] = Field(default_factory=list)
    context: Optional[PersonaContext] = None
    # Back-reference maintained by the store
    workflows: list[str] = Field(default_factory=list)


# ------------------------------------------------------------------
# Component
# ------------------------------------------------------------------

ComponentCategory = Literal["dialog", "control", "display", "layout", "utility", "navigation"]


class Component(DesignEntity):
    name: str = Field(min_length=1)
    category: ComponentCategory
    description: str = Field(min_length=1)
    status: ImplementationStatus = "planned"
    implements_capabilities: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    props: dict[str, str] = Field(default_factory=dict)
    interaction_pattern: Optional[str] = None
    # Back-reference maintained by the store
    used_in_workflows: list[str] = Field(default_factory=list)


# ------------------------------------------------------------------
# Design tokens
# ------------------------------------------------------------------

class SemanticColor(_Part):
    base: str
    light: Optional[str] = None
    dark: Optional[str] = None
    contrast: Optional[str] = None


class Colors(_Part):
    neutral: dict[str, str]
    primary: Optional[dict[str, str]] = None
    secondary: Optional[dict[str, str]] = None
    accent: Optional[dict[str, str]] = None
    success: Optional[SemanticColor] = None
    warning: Optional[SemanticColor] = None
    error: Optional[SemanticColor] = None
    info: Optional[SemanticColor] = None
    semantic: Optional[dict[str, str]] = None

    @field_validator("neutral")
    @classmethod
    def _neutral_has_midpoint(cls, value: dict[str, str]) -> dict[str, str]:
        if "500" not in value:
            raise ValueError("neutral color scale must define a '500' shade")
        return value


class Typography(_Part):
    fonts: dict[str, str] = Field(default_factory=dict)
    sizes: dict[str, str]
    weights: Optional[dict[str, Any]] = None
    line_heights: Optional[dict[str, Any]] = None
    styles: Optional[dict[str, Any]] = None

    @field_validator("sizes")
    @classmethod
    def _sizes_have_base(cls, value: dict[str, str]) -> dict[str, str]:
        if "base" not in value:
            raise ValueError("typography sizes must define a 'base' size")
        return value


class Tokens(DesignEntity):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    extends: Optional[str] = None
    colors: Colors
    typography: Typography
    spacing: Optional[dict[str, Any]] = None
    radii: Optional[dict[str, str]] = None
    shadows: Optional[dict[str, str]] = None
    motion: Optional[dict[str, Any]] = None
    breakpoints: Optional[dict[str, str]] = None
    z_index: Optional[dict[str, int]] = None


# ------------------------------------------------------------------
# View
# ------------------------------------------------------------------

LayoutType = Literal[
    "single-column", "sidebar-left", "sidebar-right", "dual-sidebar",
    "holy-grail", "dashboard", "split", "stacked", "custom",
]
ZonePosition = Literal[
    "header", "footer", "sidebar", "sidebar-left", "sidebar-right",
    "main", "aside", "nav", "content", "overlay",
]
ViewStateType = Literal[
    "default", "empty", "loading", "error", "success",
    "partial", "offline", "forbidden", "not-found",
]


class Zone(_Part):
    id: str = Field(min_length=1)
    position: ZonePosition
    components: list[str] = Field(default_factory=list)
    width: Optional[str] = None
    height: Optional[str] = None
    visibility: Optional[str] = None
    sticky: Optional[bool] = None


class Layout(_Part):
    type: LayoutType
    zones: list[Zone] = Field(min_length=1)
    max_width: Optional[str] = None
    centered: Optional[bool] = None
    grid_columns: Optional[int] = None


class ViewState(_Part):
    id: str = Field(min_length=1)
    type: ViewStateType
    description: Optional[str] = None
    zones: Optional[dict[str, Any]] = None


class Route(_Part):
    path: str = Field(min_length=1)
    title: Optional[str] = None
    params: Optional[dict[str, str]] = None
    requires_auth: Optional[bool] = None


class View(DesignEntity):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    status: Literal["draft", "designed", "implementing", "implemented", "deprecated"] = "draft"
    workflows: list[str] = Field(default_factory=list)
    layout: Layout
    states: list[ViewState] = Field(default_factory=list)
    routes: list[Route] = Field(default_factory=list)
    data_requirements: list[Any] = Field(default_factory=list)


# ------------------------------------------------------------------
# Interaction pattern
# ------------------------------------------------------------------

class Transition(_Part):
    from_state: str = Field(alias="from")
    to: str
    trigger: Optional[str] = None
    animation: Optional[dict[str, Any]] = None


class Feedback(_Part):
    type: str
    description: Optional[str] = None


class Microinteraction(_Part):
    id: str = Field(min_length=1)
    trigger: dict[str, Any]
    rules: list[Any] = Field(default_factory=list)
    feedback: list[Feedback] = Field(min_length=1)


class InteractionSpec(_Part):
    states: list[dict[str, Any]] = Field(default_factory=list)
    transitions: list[Transition] = Field(default_factory=list)
    microinteractions: list[Microinteraction] = Field(default_factory=list)
    accessibility: Optional[dict[str, Any]] = None


class Interaction(DesignEntity):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    status: Literal["draft", "designed", "implementing", "implemented", "deprecated"] = "draft"
    interaction: InteractionSpec
    # Component categories (not ids) this pattern applies to
    applies_to: list[str] = Field(default_factory=list)


# ------------------------------------------------------------------
# Test result
# ------------------------------------------------------------------

class CriterionResult(_Part):
    criterion: str
    target: Optional[str] = None
    actual: Optional[str] = None
    passed: bool
    notes: Optional[str] = None


class TestIssue(_Part):
    __test__ = False  # keep pytest from collecting this class

    severity: Literal["critical", "major", "minor"]
    description: str = Field(min_length=1)
    workflow_step: Optional[str] = None
    persona_factor: Optional[str] = None
    affected_components: list[str] = Field(default_factory=list)
    affected_capabilities: list[str] = Field(default_factory=list)
    recommendation: Optional[str] = None
    evidence: Optional[str] = None


class TestResult(DesignEntity):
    __test__ = False

    ID_PATTERN: ClassVar[re.Pattern] = TEST_RESULT_ID_RE
    ID_MESSAGE: ClassVar[str] = TEST_RESULT_ID_MESSAGE

    workflow_id: str = Field(min_length=1)
    persona_id: str = Field(min_length=1)
    test_type: Literal["simulated", "real"]
    date: str = Field(min_length=1)
    status: Literal["passed", "failed", "partial"]
    confidence: Literal["high", "medium", "low"] = "medium"
    success_criteria_results: list[CriterionResult] = Field(default_factory=list)
    issues: list[TestIssue] = Field(default_factory=list)
    summary: Optional[str] = None
    participants: Optional[int] = None
    quotes: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


# ------------------------------------------------------------------
# Dispatch
# ------------------------------------------------------------------

ENTITY_MODELS: dict[EntityType, type[DesignEntity]] = {
    EntityType.WORKFLOW: Workflow,
    EntityType.CAPABILITY: Capability,
    EntityType.PERSONA: Persona,
    EntityType.COMPONENT: Component,
    EntityType.TOKENS: Tokens,
    EntityType.VIEW: View,
    EntityType.INTERACTION: Interaction,
    EntityType.TEST_RESULT: TestResult,
}


def model_for(entity_type) -> type[DesignEntity]:
    return ENTITY_MODELS[EntityType.parse(entity_type)]
