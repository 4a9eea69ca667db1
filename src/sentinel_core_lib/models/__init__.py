"""
Shared data models for the Sentinel case workspace.

This package provides the Pydantic models used by every component so that
cases, artifacts and oracle payloads have a single definition.
"""

from sentinel_core_lib.models.analysis import (
    AnalysisResult,
    ChecklistStep,
    IndicatorOfCompromise,
    IocType,
    KillChainPhase,
    MitreAttack,
    PhasedIndicator,
    Severity,
    SplitChunk,
    TimelineEvent,
    UserAgentSecurityAnalysis,
)
from sentinel_core_lib.models.case import (
    # Core case model
    Case,
    CaseStatus,
    NewCaseDetails,

    # Artifacts
    Artifact,
    ArtifactDraft,
    ArtifactType,
    ArtifactContent,
    ARTIFACT_CONTENT_MODELS,
    DERIVED_ARTIFACT_TYPES,
    GLOBAL_ARTIFACT_TYPES,

    # Content variants
    TextContent,
    ToolInfoContent,
    ToolOutputContent,
    EvidenceFileContent,
    IocListContent,

    # Checklist & chat
    ChecklistItem,
    ChatMessage,
    ChatSender,
)
from sentinel_core_lib.models.threat_intel import (
    SCAN_SUCCESS,
    ScanResult,
    ScanSpeed,
    ScanType,
    SpeedTier,
    UserAgentAnalysisResult,
)

__all__ = [
    # Analysis
    "AnalysisResult", "ChecklistStep", "IndicatorOfCompromise", "IocType",
    "KillChainPhase", "MitreAttack", "PhasedIndicator", "Severity",
    "SplitChunk", "TimelineEvent", "UserAgentSecurityAnalysis",
    # Core case
    "Case", "CaseStatus", "NewCaseDetails",
    # Artifacts
    "Artifact", "ArtifactDraft", "ArtifactType", "ArtifactContent",
    "ARTIFACT_CONTENT_MODELS", "DERIVED_ARTIFACT_TYPES", "GLOBAL_ARTIFACT_TYPES",
    # Content variants
    "TextContent", "ToolInfoContent", "ToolOutputContent",
    "EvidenceFileContent", "IocListContent",
    # Checklist & chat
    "ChecklistItem", "ChatMessage", "ChatSender",
    # Threat intel
    "SCAN_SUCCESS", "ScanResult", "ScanSpeed", "ScanType", "SpeedTier",
    "UserAgentAnalysisResult",
]
