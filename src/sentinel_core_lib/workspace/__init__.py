"""Case workspace: state container, case registry and user-facing flows"""

from .state import CaseWorkspace
from .case_registry import CaseRegistry, initial_artifact_drafts
from .analysis_flow import (
    ANALYSIS_ARTIFACT_TITLE,
    AUTO_CASE_DESCRIPTION,
    AnalysisFlow,
    AnalysisState,
    EvidenceUpload,
    untitled_case_name,
)
from .conversation import CHAT_FALLBACK_REPLY, ConversationService
from .bootstrap import WorkspaceServices, build_services, open_workspace

__all__ = [
    "CaseWorkspace",
    "CaseRegistry",
    "initial_artifact_drafts",
    "ANALYSIS_ARTIFACT_TITLE",
    "AUTO_CASE_DESCRIPTION",
    "AnalysisFlow",
    "AnalysisState",
    "EvidenceUpload",
    "untitled_case_name",
    "CHAT_FALLBACK_REPLY",
    "ConversationService",
    "WorkspaceServices",
    "build_services",
    "open_workspace",
]
