"""Case Registry - user-facing case mutations.

Every mutation is applied to the workspace first, synchronously, and only
then are the derived index recomputations it makes stale handed to the
scheduler.

Trigger rules:
- create case: global summary + global IoCs
- add artifact: phase of the new artifact + both globals
- update with phase change: old phase + new phase + both globals
- update without phase change: both globals
- split: each distinct replacement phase + both globals
- checklist edits: nothing
"""

import logging
from typing import Any, Iterable, List, Mapping, Tuple

from sentinel_core_lib.core.indexing.scheduler import (
    RecomputeRequest,
    RecomputeScheduler,
    global_requests,
    phase_requests,
)
from sentinel_core_lib.models import (
    Artifact,
    ArtifactDraft,
    ArtifactType,
    Case,
    ChecklistStep,
    NewCaseDetails,
    SplitChunk,
    TextContent,
    ToolInfoContent,
)
from sentinel_core_lib.store import (
    ArtifactUpdate,
    add_artifact,
    replace_checklist,
    split_artifact,
    toggle_checklist_item,
    update_artifact,
)

from .state import CaseWorkspace

logger = logging.getLogger(__name__)


def initial_artifact_drafts(details: NewCaseDetails) -> List[ArtifactDraft]:
    """Artifacts seeded from the optional fields of the create-case form"""
    drafts: List[ArtifactDraft] = []

    if details.summary and details.summary.strip():
        drafts.append(ArtifactDraft(
            artifact_type=ArtifactType.ANALYST_NOTE,
            title="Initial Incident Summary",
            content=TextContent(text=details.summary),
        ))

    if details.notes and details.notes.strip():
        drafts.append(ArtifactDraft(
            artifact_type=ArtifactType.ANALYST_NOTE,
            title="Initial Notes",
            content=TextContent(text=details.notes),
        ))

    if details.tool_name and details.tool_name.strip():
        drafts.append(ArtifactDraft(
            artifact_type=ArtifactType.TOOL_INFO,
            title=f"Tool: {details.tool_name}",
            content=ToolInfoContent(
                tool_name=details.tool_name,
                version=details.tool_version,
                configuration=details.tool_config,
            ),
        ))

    return drafts


class CaseRegistry:
    """Case and artifact mutations with their recompute triggers"""

    def __init__(self, workspace: CaseWorkspace, scheduler: RecomputeScheduler):
        self.workspace = workspace
        self.scheduler = scheduler

    # ============================================================
    # Cases
    # ============================================================

    def create_case(self, details: NewCaseDetails) -> Case:
        """Create, insert and select a case built from the form fields"""
        artifacts = [Artifact(**dict(draft)) for draft in initial_artifact_drafts(details)]
        case = Case(name=details.name, description=details.description, artifacts=artifacts)

        self.workspace.insert_case(case)
        self.workspace.select_case(case.case_id)
        logger.info(f"Created case {case.case_id} '{case.name}' with {len(artifacts)} initial artifact(s)")

        self._trigger(global_requests(case.case_id))
        return case

    def create_case_with_artifact(
        self, name: str, description: str, draft: ArtifactDraft
    ) -> Tuple[Case, Artifact]:
        """Create and select a case holding a single artifact"""
        case, artifact = add_artifact(Case(name=name, description=description), draft)

        self.workspace.insert_case(case)
        self.workspace.select_case(case.case_id)
        logger.info(f"Created case {case.case_id} '{case.name}' from {artifact.artifact_type.value}")

        self._trigger(
            phase_requests(case.case_id, [artifact.kill_chain_phase]) + global_requests(case.case_id)
        )
        return case, artifact

    def select_case(self, case_id: str) -> Case:
        return self.workspace.select_case(case_id)

    def clear_selection(self) -> None:
        self.workspace.clear_selection()

    # ============================================================
    # Artifacts
    # ============================================================

    def add_artifact_to_case(self, case_id: str, draft: ArtifactDraft) -> Artifact:
        case = self.workspace.require_case(case_id)
        updated, artifact = add_artifact(case, draft)
        self.workspace.replace_case(updated)

        self._trigger(
            phase_requests(case_id, [artifact.kill_chain_phase]) + global_requests(case_id)
        )
        return artifact

    def update_artifact_in_case(
        self, case_id: str, artifact_id: str, updates: Mapping[str, Any]
    ) -> ArtifactUpdate:
        """Merge updates into one artifact.

        Only a phase change makes phase indexes stale; content edits refresh
        the globals alone.
        """
        case = self.workspace.require_case(case_id)
        updated, result = update_artifact(case, artifact_id, updates)
        if result.found:
            self.workspace.replace_case(updated)
        else:
            logger.warning(f"Artifact {artifact_id} not found in case {case_id}; nothing updated")

        self._trigger(phase_requests(case_id, result.affected_phases) + global_requests(case_id))
        return result

    def split_artifact_in_case(
        self, case_id: str, original_artifact_id: str, replacements: Iterable[SplitChunk]
    ) -> List[Artifact]:
        """Replace one artifact with one analyst note per chunk"""
        chunks = list(replacements)
        case = self.workspace.require_case(case_id)
        updated, new_artifacts = split_artifact(case, original_artifact_id, chunks)
        self.workspace.replace_case(updated)
        logger.info(
            f"Split artifact {original_artifact_id} of case {case_id} into {len(new_artifacts)} note(s)"
        )

        self._trigger(
            phase_requests(case_id, [chunk.phase for chunk in chunks]) + global_requests(case_id)
        )
        return new_artifacts

    # ============================================================
    # Checklist
    # ============================================================

    def toggle_checklist_item(self, case_id: str, step: int) -> Case:
        case = self.workspace.require_case(case_id)
        return self.workspace.replace_case(toggle_checklist_item(case, step))

    def replace_checklist(self, case_id: str, steps: Iterable[ChecklistStep]) -> Case:
        case = self.workspace.require_case(case_id)
        return self.workspace.replace_case(replace_checklist(case, steps))

    # ============================================================
    # Helpers
    # ============================================================

    def _trigger(self, requests: List[RecomputeRequest]) -> None:
        self.scheduler.submit(requests)
