"""Derived Index Engine

Purpose: Keep the derived artifacts of a case in step with its evidence

Derived artifacts:
- CASE_INDEX: one summary per indexed kill chain phase
- GLOBAL_SUMMARY: executive summary of the whole case
- GLOBAL_IOC_LIST: every extracted IoC grouped by phase

Each recomputation reads a snapshot of the case when it starts, awaits the
oracle, then upserts into whatever the case looks like when the answer
arrives. Concurrent writers to the same derived artifact resolve as last
write wins. The engine keeps no state of its own.
"""

import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from sentinel_core_lib.core.preprocessing import build_case_context, build_checklist_context
from sentinel_core_lib.infrastructure.llm import EnrichmentOracle
from sentinel_core_lib.models import (
    ArtifactType,
    Case,
    ChecklistItem,
    IndicatorOfCompromise,
    IocListContent,
    KillChainPhase,
    PhasedIndicator,
    TextContent,
)
from sentinel_core_lib.store import replace_checklist, upsert_derived_content
from .scheduler import RecomputeKind, RecomputeRequest

if TYPE_CHECKING:
    from sentinel_core_lib.workspace.state import CaseWorkspace

logger = logging.getLogger(__name__)

GLOBAL_SUMMARY_TITLE = "Global Attack Summary"
GLOBAL_IOC_TITLE = "Global IoC Repository"


def phase_index_title(phase: KillChainPhase) -> str:
    return f"{phase.value} Phase Summary"


def group_iocs_by_phase(iocs: List[PhasedIndicator]) -> Dict[KillChainPhase, List[IndicatorOfCompromise]]:
    """Group extracted IoCs by phase, keeping the first IoC seen per value"""
    grouped: Dict[KillChainPhase, List[IndicatorOfCompromise]] = {}
    for ioc in iocs:
        bucket = grouped.setdefault(ioc.kill_chain_phase, [])
        if any(existing.value == ioc.value for existing in bucket):
            continue
        bucket.append(IndicatorOfCompromise(type=ioc.type, value=ioc.value))
    return grouped


class DerivedIndexEngine:
    """Recomputes derived artifacts through the enrichment oracle"""

    def __init__(self, workspace: "CaseWorkspace", oracle: EnrichmentOracle):
        self.workspace = workspace
        self.oracle = oracle

    async def run(self, request: RecomputeRequest) -> None:
        """Dispatch one recompute request"""
        if request.kind == RecomputeKind.PHASE_INDEX:
            await self.recompute_phase_index(request.case_id, request.phase)
        elif request.kind == RecomputeKind.GLOBAL_SUMMARY:
            await self.recompute_global_summary(request.case_id)
        elif request.kind == RecomputeKind.GLOBAL_IOCS:
            await self.recompute_global_iocs(request.case_id)
        else:
            raise ValueError(f"Unknown recompute kind: {request.kind}")

    # ============================================================
    # Background recomputations
    # ============================================================

    async def recompute_phase_index(self, case_id: str, phase: KillChainPhase) -> None:
        """Rebuild the CASE_INDEX artifact of one phase"""
        if not phase.is_indexed:
            return

        snapshot = self._snapshot(case_id)
        if snapshot is None:
            return

        members = [
            a for a in snapshot.artifacts
            if a.kill_chain_phase == phase and a.artifact_type != ArtifactType.CASE_INDEX
        ]
        summary = await self.oracle.summarize_phase(members)

        self._write(
            case_id,
            lambda case: upsert_derived_content(
                case,
                ArtifactType.CASE_INDEX,
                phase_index_title(phase),
                TextContent(text=summary),
                phase=phase,
            ),
        )
        logger.info(f"Phase index '{phase.value}' updated for case {case_id} ({len(members)} artifact(s))")

    async def recompute_global_summary(self, case_id: str) -> None:
        """Rebuild the GLOBAL_SUMMARY artifact"""
        snapshot = self._snapshot(case_id)
        if snapshot is None:
            return

        context = build_case_context(snapshot, snapshot.evidence_artifacts())
        summary = await self.oracle.summarize_case(context)

        self._write(
            case_id,
            lambda case: upsert_derived_content(
                case, ArtifactType.GLOBAL_SUMMARY, GLOBAL_SUMMARY_TITLE, TextContent(text=summary)
            ),
        )
        logger.info(f"Global summary updated for case {case_id}")

    async def recompute_global_iocs(self, case_id: str) -> None:
        """Rebuild the GLOBAL_IOC_LIST artifact"""
        snapshot = self._snapshot(case_id)
        if snapshot is None:
            return

        iocs = await self.oracle.extract_iocs(snapshot.evidence_artifacts())
        content = IocListContent(iocs_by_phase=group_iocs_by_phase(iocs))

        self._write(
            case_id,
            lambda case: upsert_derived_content(
                case, ArtifactType.GLOBAL_IOC_LIST, GLOBAL_IOC_TITLE, content
            ),
        )
        logger.info(f"Global IoC list updated for case {case_id} ({content.total} IoC(s))")

    # ============================================================
    # Foreground
    # ============================================================

    async def suggest_next_steps(self, case_id: str) -> List[ChecklistItem]:
        """Ask the oracle for next steps and replace the case checklist.

        Raises:
            CaseNotFoundError: Unknown case id
            OracleError: The oracle call failed
        """
        snapshot = self.workspace.require_case(case_id)
        steps = await self.oracle.suggest_next_steps(build_checklist_context(snapshot))

        current = self.workspace.require_case(case_id)
        updated = self.workspace.replace_case(replace_checklist(current, steps))
        return updated.checklist

    # ============================================================
    # Helpers
    # ============================================================

    def _snapshot(self, case_id: str) -> Optional[Case]:
        case = self.workspace.get_case(case_id)
        if case is None:
            logger.warning(f"Recompute skipped: case {case_id} not found")
        return case

    def _write(self, case_id: str, mutate: Callable[[Case], Case]) -> None:
        """Apply mutate to the latest case value, if the case still exists"""
        current = self.workspace.get_case(case_id)
        if current is None:
            logger.warning(f"Recompute result dropped: case {case_id} no longer exists")
            return
        self.workspace.replace_case(mutate(current))
