"""Foreground analysis flow.

One submission at a time: raw event text or uploaded files go to the oracle,
and a successful analysis lands as an AI_ANALYSIS artifact in the active
case (or in a freshly created one). The flow keeps the outcome so a caller
can render the latest result or error.

States: IDLE -> SUBMITTING -> SUCCEEDED | FAILED
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Sequence

from sentinel_core_lib.core.preprocessing import concatenate_files
from sentinel_core_lib.exceptions import (
    AnalysisInProgressError,
    InputValidationError,
    OracleError,
)
from sentinel_core_lib.infrastructure.llm import EnrichmentOracle
from sentinel_core_lib.models import (
    AnalysisResult,
    Artifact,
    ArtifactDraft,
    ArtifactType,
    KillChainPhase,
)

from .case_registry import CaseRegistry

logger = logging.getLogger(__name__)

ANALYSIS_ARTIFACT_TITLE = "AI Initial Analysis"
AUTO_CASE_DESCRIPTION = "Case automatically created from a new investigation."


def untitled_case_name(today: Optional[date] = None) -> str:
    """Name of a case opened implicitly by a new analysis"""
    today = today or date.today()
    return f"Untitled Analysis - {today.isoformat()}"


class AnalysisState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class EvidenceUpload:
    """A text file handed to the analysis flow"""

    file_name: str
    content: str
    file_type: str = "text/plain"


class AnalysisFlow:
    """Submits event logs for AI analysis and files the result"""

    def __init__(self, registry: CaseRegistry, oracle: EnrichmentOracle):
        self.registry = registry
        self.oracle = oracle

        self.state = AnalysisState.IDLE
        self.error: Optional[str] = None
        self.result: Optional[AnalysisResult] = None
        self.case_id: Optional[str] = None

    @property
    def is_submitting(self) -> bool:
        return self.state == AnalysisState.SUBMITTING

    def build_event_log(self, text: str = "", files: Sequence[EvidenceUpload] = ()) -> str:
        """Files win over text; each file is wrapped in boundary markers"""
        if files:
            return concatenate_files(files)
        return text

    async def submit(
        self, text: str = "", files: Sequence[EvidenceUpload] = ()
    ) -> Optional[Artifact]:
        """Analyze the input and attach the result.

        Returns:
            The new AI_ANALYSIS artifact, or None when the oracle failed
            (the message is kept in ``self.error``)

        Raises:
            InputValidationError: No text and no files
            AnalysisInProgressError: A submission is already running
        """
        if not files and not (text and text.strip()):
            raise InputValidationError("Event log or at least one file is required")
        if self.is_submitting:
            raise AnalysisInProgressError("An analysis is already in progress")

        event_log = self.build_event_log(text, files)
        self.state = AnalysisState.SUBMITTING
        self.error = None
        self.result = None

        try:
            analysis = await self.oracle.analyze_event(event_log)
            artifact = self._file_result(analysis)
        except OracleError as e:
            logger.error(f"Event analysis failed: {e}")
            self.state = AnalysisState.FAILED
            self.error = str(e)
            return None
        except asyncio.CancelledError:
            logger.info("Event analysis cancelled")
            self.state = AnalysisState.IDLE
            raise
        except Exception as e:
            logger.exception("Filing the event analysis failed")
            self.state = AnalysisState.FAILED
            self.error = str(e)
            raise

        self.result = analysis
        self.state = AnalysisState.SUCCEEDED
        return artifact

    def reset(self) -> None:
        """Back to IDLE, clearing the last outcome"""
        if self.is_submitting:
            raise AnalysisInProgressError("Cannot reset while an analysis is in progress")
        self.state = AnalysisState.IDLE
        self.error = None
        self.result = None
        self.case_id = None

    def _file_result(self, analysis: AnalysisResult) -> Artifact:
        draft = ArtifactDraft(
            artifact_type=ArtifactType.AI_ANALYSIS,
            title=ANALYSIS_ARTIFACT_TITLE,
            content=analysis,
            kill_chain_phase=KillChainPhase.RECONNAISSANCE,
        )

        active = self.registry.workspace.active_case
        if active is not None:
            artifact = self.registry.add_artifact_to_case(active.case_id, draft)
            case_id = active.case_id
        else:
            case, artifact = self.registry.create_case_with_artifact(
                untitled_case_name(), AUTO_CASE_DESCRIPTION, draft
            )
            case_id = case.case_id

        self.registry.replace_checklist(case_id, analysis.investigation_checklist)
        self.registry.select_case(case_id)
        self.case_id = case_id
        logger.info(f"Analysis filed as {artifact.artifact_id} in case {case_id}")
        return artifact
