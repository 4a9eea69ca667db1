"""Sentinel Core Library

Case workspace, derived index engine, enrichment oracle and threat
intelligence side tools for the Sentinel investigation workspace.
"""

__version__ = "0.1.0"

# Export shared models first (no dependencies)
from sentinel_core_lib.models import (
    Artifact, ArtifactDraft, ArtifactType, Case, CaseStatus,
    KillChainPhase, NewCaseDetails,
)

from sentinel_core_lib.exceptions import (
    SentinelError,
    InputValidationError,
    CaseNotFoundError,
    AnalysisInProgressError,
    OracleError,
    OracleResponseError,
    LLMProviderError,
    ThreatIntelLookupError,
    PersistenceError,
)


# Lazy import for the workspace to keep model-only consumers free of
# provider and Redis imports
def __getattr__(name):
    """Lazy import for workspace entry points."""
    if name in ("open_workspace", "WorkspaceServices", "CaseWorkspace"):
        from sentinel_core_lib import workspace
        return getattr(workspace, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    # Models
    "Artifact", "ArtifactDraft", "ArtifactType", "Case", "CaseStatus",
    "KillChainPhase", "NewCaseDetails",
    # Errors
    "SentinelError", "InputValidationError", "CaseNotFoundError",
    "AnalysisInProgressError", "OracleError", "OracleResponseError",
    "LLMProviderError", "ThreatIntelLookupError", "PersistenceError",
    # Workspace (lazy loaded)
    "open_workspace", "WorkspaceServices", "CaseWorkspace",
]
