"""Case data models - Kill-chain-indexed investigation workspace.

Key Models:
- Case: Root case entity owning artifacts, checklist and chat history
- CaseStatus: Lifecycle status (New → In Progress → Closed)
- Artifact: One piece of evidence or derived insight attached to a case
- ArtifactType: Closed discriminator selecting the artifact's content model
- ChecklistItem: Investigation step with independent completion state
- ChatMessage: Append-only case assistant transcript entry

Architecture:
- All models are frozen; every mutation builds a new value (copy-on-write)
- Artifact content is a tagged union keyed by the sibling artifact_type field
- Derived artifact types (CASE_INDEX, GLOBAL_SUMMARY, GLOBAL_IOC_LIST) are
  maintained by the derived index engine, never authored directly
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from sentinel_core_lib.models.analysis import (
    AnalysisResult,
    ChecklistStep,
    IndicatorOfCompromise,
    KillChainPhase,
)
from sentinel_core_lib.models.common import generate_id, utc_now


# ============================================================
# Status & Types
# ============================================================

class CaseStatus(str, Enum):
    """
    Case lifecycle status.

    Lifecycle Flow:
      NEW → IN_PROGRESS → CLOSED
    """

    NEW = "New"
    IN_PROGRESS = "In Progress"
    CLOSED = "Closed"


class ArtifactType(str, Enum):
    """Artifact discriminator. Determines the shape of Artifact.content."""

    AI_ANALYSIS = "AI_ANALYSIS"
    ANALYST_NOTE = "ANALYST_NOTE"
    TOOL_INFO = "TOOL_INFO"
    TOOL_OUTPUT = "TOOL_OUTPUT"
    EVIDENCE_FILE = "EVIDENCE_FILE"
    CASE_INDEX = "CASE_INDEX"
    GLOBAL_SUMMARY = "GLOBAL_SUMMARY"
    GLOBAL_IOC_LIST = "GLOBAL_IOC_LIST"

    @property
    def is_derived(self) -> bool:
        """Check if artifacts of this type are computed by the index engine"""
        return self in DERIVED_ARTIFACT_TYPES

    @property
    def is_global(self) -> bool:
        """Check if this is one of the case-wide singleton types"""
        return self in GLOBAL_ARTIFACT_TYPES


GLOBAL_ARTIFACT_TYPES = frozenset({ArtifactType.GLOBAL_SUMMARY, ArtifactType.GLOBAL_IOC_LIST})
DERIVED_ARTIFACT_TYPES = GLOBAL_ARTIFACT_TYPES | {ArtifactType.CASE_INDEX}


# ============================================================
# Artifact Content Variants
# ============================================================

class TextContent(BaseModel):
    """ANALYST_NOTE, CASE_INDEX and GLOBAL_SUMMARY content"""

    text: str

    class Config:
        frozen = True


class ToolInfoContent(BaseModel):
    """TOOL_INFO content: a tool available to the investigation"""

    tool_name: str = Field(min_length=1)
    version: Optional[str] = None
    configuration: Optional[str] = None

    class Config:
        frozen = True


class ToolOutputContent(BaseModel):
    """TOOL_OUTPUT content: captured output of one tool run"""

    tool_name: str = Field(min_length=1)
    command: Optional[str] = None
    output: str

    class Config:
        frozen = True


class EvidenceFileContent(BaseModel):
    """EVIDENCE_FILE content: uploaded file text"""

    file_name: str = Field(min_length=1)
    file_type: str = "text/plain"
    content: str

    class Config:
        frozen = True


class IocListContent(BaseModel):
    """GLOBAL_IOC_LIST content: every extracted IoC grouped by phase"""

    iocs_by_phase: Dict[KillChainPhase, List[IndicatorOfCompromise]] = Field(default_factory=dict)

    class Config:
        frozen = True

    @property
    def total(self) -> int:
        return sum(len(iocs) for iocs in self.iocs_by_phase.values())


ArtifactContent = Union[
    AnalysisResult,
    TextContent,
    ToolInfoContent,
    ToolOutputContent,
    EvidenceFileContent,
    IocListContent,
]

ARTIFACT_CONTENT_MODELS: Dict[ArtifactType, Type[BaseModel]] = {
    ArtifactType.AI_ANALYSIS: AnalysisResult,
    ArtifactType.ANALYST_NOTE: TextContent,
    ArtifactType.TOOL_INFO: ToolInfoContent,
    ArtifactType.TOOL_OUTPUT: ToolOutputContent,
    ArtifactType.EVIDENCE_FILE: EvidenceFileContent,
    ArtifactType.CASE_INDEX: TextContent,
    ArtifactType.GLOBAL_SUMMARY: TextContent,
    ArtifactType.GLOBAL_IOC_LIST: IocListContent,
}


# ============================================================
# Artifacts
# ============================================================

class ArtifactDraft(BaseModel):
    """
    Artifact fields supplied by the caller.
    The store assigns artifact_id and created_at when the draft is added.
    """

    artifact_type: ArtifactType
    title: str
    content: ArtifactContent
    kill_chain_phase: KillChainPhase = KillChainPhase.UNCATEGORIZED

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def resolve_content_model(cls, data: Any) -> Any:
        """Build content with the model selected by artifact_type"""
        if not isinstance(data, dict):
            return data
        content = data.get("content")
        raw_type = data.get("artifact_type")
        if raw_type is None or isinstance(content, BaseModel) or not isinstance(content, dict):
            return data
        content_model = ARTIFACT_CONTENT_MODELS[ArtifactType(raw_type)]
        return {**data, "content": content_model.model_validate(content)}

    @model_validator(mode="after")
    def content_matches_type(self):
        """Ensure content is exactly the variant declared by artifact_type"""
        expected = ARTIFACT_CONTENT_MODELS[self.artifact_type]
        if type(self.content) is not expected:
            raise ValueError(
                f"{self.artifact_type.value} artifacts require {expected.__name__} content, "
                f"got {type(self.content).__name__}"
            )
        return self


class Artifact(ArtifactDraft):
    """A discrete piece of evidence or derived insight attached to a case"""

    artifact_id: str = Field(
        default_factory=lambda: generate_id("art"),
        description="Unique artifact identifier",
    )

    created_at: datetime = Field(
        default_factory=utc_now,
        description="Capture time; refreshed when a derived artifact is recomputed",
    )

    @property
    def text(self) -> Optional[str]:
        """Plain text of text-bearing artifacts, None for structured content"""
        if isinstance(self.content, TextContent):
            return self.content.text
        return None


# ============================================================
# Checklist & Chat
# ============================================================

class ChecklistItem(ChecklistStep):
    """Investigation step with analyst-controlled completion flag"""

    completed: bool = False

    class Config:
        frozen = True


class ChatSender(str, Enum):
    USER = "user"
    AI = "ai"


class ChatMessage(BaseModel):
    """One case assistant transcript entry"""

    message_id: str = Field(default_factory=lambda: generate_id("msg"))
    sender: ChatSender
    text: str
    timestamp: datetime = Field(default_factory=utc_now)

    class Config:
        frozen = True


# ============================================================
# Case
# ============================================================

class NewCaseDetails(BaseModel):
    """Input of the create-case form"""

    name: str
    description: str = ""
    summary: Optional[str] = None
    notes: Optional[str] = None
    tool_name: Optional[str] = None
    tool_version: Optional[str] = None
    tool_config: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v):
        """Ensure name is not just whitespace"""
        if not v or not v.strip():
            raise ValueError("Case name cannot be empty")
        return v.strip()


class Case(BaseModel):
    """
    Root investigation entity.

    The case is replaced as a whole on every change; nothing mutates a Case
    in place. Storage order of artifacts is insertion order, with newly
    created derived artifacts placed first.
    """

    case_id: str = Field(
        default_factory=lambda: generate_id("case"),
        description="Stable case identifier, never reused",
    )

    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    status: CaseStatus = CaseStatus.NEW

    created_at: datetime = Field(default_factory=utc_now)

    artifacts: List[Artifact] = Field(default_factory=list)
    checklist: List[ChecklistItem] = Field(default_factory=list)
    chat_history: List[ChatMessage] = Field(default_factory=list)

    class Config:
        frozen = True

    # ============================================================
    # Lookups
    # ============================================================
    def get_artifact(self, artifact_id: str) -> Optional[Artifact]:
        for artifact in self.artifacts:
            if artifact.artifact_id == artifact_id:
                return artifact
        return None

    def artifacts_of_type(self, artifact_type: ArtifactType) -> List[Artifact]:
        return [a for a in self.artifacts if a.artifact_type == artifact_type]

    def phase_index(self, phase: KillChainPhase) -> Optional[Artifact]:
        """CASE_INDEX artifact for a phase, if one has been computed"""
        for artifact in self.artifacts:
            if artifact.artifact_type == ArtifactType.CASE_INDEX and artifact.kill_chain_phase == phase:
                return artifact
        return None

    def evidence_artifacts(self) -> List[Artifact]:
        """All artifacts except the case-wide GLOBAL_* singletons"""
        return [a for a in self.artifacts if not a.artifact_type.is_global]

    @property
    def global_summary(self) -> Optional[Artifact]:
        found = self.artifacts_of_type(ArtifactType.GLOBAL_SUMMARY)
        return found[0] if found else None

    @property
    def global_ioc_list(self) -> Optional[Artifact]:
        found = self.artifacts_of_type(ArtifactType.GLOBAL_IOC_LIST)
        return found[0] if found else None

    @property
    def artifact_count_by_phase(self) -> Dict[str, int]:
        """Count non-derived artifacts by phase for analytics"""
        counts: Dict[str, int] = {}
        for artifact in self.artifacts:
            if artifact.artifact_type.is_derived:
                continue
            phase = artifact.kill_chain_phase.value
            counts[phase] = counts.get(phase, 0) + 1
        return counts
