"""Artifact Store - pure, case-scoped artifact operations.

Every function takes a Case and returns a new Case; the input value is never
modified. Callers (the case registry and the derived index engine) are
responsible for swapping the new value into the workspace.

Operations:
- add_artifact(): append a new artifact built from a draft
- update_artifact(): merge a partial update, reporting phase movement
- split_artifact(): replace one artifact with N analyst notes
- upsert_derived_artifact(): lookup-then-create-or-update for derived types
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from sentinel_core_lib.models import (
    Artifact,
    ArtifactDraft,
    ArtifactType,
    Case,
    KillChainPhase,
    SplitChunk,
    TextContent,
)
from sentinel_core_lib.models.common import utc_now

logger = logging.getLogger(__name__)

ArtifactPredicate = Callable[[Artifact], bool]

# Fields an update may never overwrite
_IDENTITY_FIELDS = frozenset({"artifact_id", "created_at"})


@dataclass(frozen=True)
class ArtifactUpdate:
    """Outcome of update_artifact(), used to decide which indexes go stale"""

    artifact_id: str
    found: bool
    previous_phase: Optional[KillChainPhase] = None
    new_phase: Optional[KillChainPhase] = None
    artifact: Optional[Artifact] = field(default=None, compare=False)

    @property
    def phase_changed(self) -> bool:
        return self.found and self.previous_phase != self.new_phase

    @property
    def affected_phases(self) -> List[KillChainPhase]:
        """Phases whose index membership changed (old first, then new)"""
        if not self.phase_changed:
            return []
        return [self.previous_phase, self.new_phase]


def add_artifact(case: Case, draft: ArtifactDraft) -> Tuple[Case, Artifact]:
    """Append a new artifact.

    Args:
        case: Case to extend
        draft: Artifact fields; id and capture time are assigned here

    Returns:
        (updated case, created artifact)
    """
    artifact = Artifact(**dict(draft))
    updated = case.model_copy(update={"artifacts": [*case.artifacts, artifact]})
    return updated, artifact


def update_artifact(
    case: Case, artifact_id: str, updates: Mapping[str, Any]
) -> Tuple[Case, ArtifactUpdate]:
    """Merge a partial update into one artifact.

    Unknown ids leave the case unchanged. The merged artifact is validated
    again, so changing artifact_type requires matching content.

    Args:
        case: Case holding the artifact
        artifact_id: Artifact to update
        updates: Field values to merge (artifact_id/created_at are ignored)

    Returns:
        (updated case, ArtifactUpdate describing the phase movement)
    """
    existing = case.get_artifact(artifact_id)
    if existing is None:
        logger.debug(f"update_artifact: {artifact_id} not in case {case.case_id}, no-op")
        return case, ArtifactUpdate(artifact_id=artifact_id, found=False)

    merged: Dict[str, Any] = dict(existing)
    merged.update({k: v for k, v in updates.items() if k not in _IDENTITY_FIELDS})
    updated_artifact = Artifact.model_validate(merged)

    artifacts = [
        updated_artifact if a.artifact_id == artifact_id else a
        for a in case.artifacts
    ]
    result = ArtifactUpdate(
        artifact_id=artifact_id,
        found=True,
        previous_phase=existing.kill_chain_phase,
        new_phase=updated_artifact.kill_chain_phase,
        artifact=updated_artifact,
    )
    return case.model_copy(update={"artifacts": artifacts}), result


def split_artifact(
    case: Case, original_artifact_id: str, replacements: Iterable[SplitChunk]
) -> Tuple[Case, List[Artifact]]:
    """Atomically remove one artifact and append an analyst note per chunk.

    When the original id is absent the notes are still appended.

    Returns:
        (updated case, the new notes in replacement order)
    """
    new_artifacts = [
        Artifact(
            artifact_type=ArtifactType.ANALYST_NOTE,
            title=chunk.title,
            content=TextContent(text=chunk.summary),
            kill_chain_phase=chunk.phase,
        )
        for chunk in replacements
    ]

    if case.get_artifact(original_artifact_id) is None:
        logger.warning(
            f"split_artifact: original {original_artifact_id} not in case {case.case_id}; "
            f"adding {len(new_artifacts)} replacement(s) anyway"
        )

    remaining = [a for a in case.artifacts if a.artifact_id != original_artifact_id]
    updated = case.model_copy(update={"artifacts": [*remaining, *new_artifacts]})
    return updated, new_artifacts


def upsert_derived_artifact(
    case: Case,
    match: ArtifactPredicate,
    build_if_absent: Callable[[], Artifact],
    update_if_present: Callable[[Artifact], Artifact],
) -> Case:
    """Update the unique artifact selected by ``match``, or create it.

    This is where the "at most one" invariants for CASE_INDEX (per phase),
    GLOBAL_SUMMARY and GLOBAL_IOC_LIST are enforced. New artifacts are
    placed first. If several artifacts match, the first one is updated and
    the others are dropped.
    """
    matches = [a for a in case.artifacts if match(a)]

    if not matches:
        created = build_if_absent()
        return case.model_copy(update={"artifacts": [created, *case.artifacts]})

    keep = matches[0]
    if len(matches) > 1:
        logger.warning(
            f"upsert_derived_artifact: {len(matches)} matches for "
            f"{keep.artifact_type.value} in case {case.case_id}; collapsing duplicates"
        )
    duplicate_ids = {a.artifact_id for a in matches[1:]}
    replacement = update_if_present(keep)

    artifacts = [
        replacement if a.artifact_id == keep.artifact_id else a
        for a in case.artifacts
        if a.artifact_id not in duplicate_ids
    ]
    return case.model_copy(update={"artifacts": artifacts})


# ============================================================
# Derived artifact helpers
# ============================================================

def derived_match(artifact_type: ArtifactType, phase: Optional[KillChainPhase] = None) -> ArtifactPredicate:
    """Identity predicate of a derived artifact.

    CASE_INDEX is keyed by (type, phase); the GLOBAL_* types by type alone.
    """
    if artifact_type == ArtifactType.CASE_INDEX:
        if phase is None:
            raise ValueError("CASE_INDEX identity requires a phase")
        return lambda a: a.artifact_type == artifact_type and a.kill_chain_phase == phase
    return lambda a: a.artifact_type == artifact_type


def upsert_derived_content(
    case: Case,
    artifact_type: ArtifactType,
    title: str,
    content: Any,
    phase: KillChainPhase = KillChainPhase.UNCATEGORIZED,
) -> Case:
    """Upsert a derived artifact, replacing content and refreshing its timestamp"""
    if not artifact_type.is_derived:
        raise ValueError(f"{artifact_type.value} is not a derived artifact type")

    def build() -> Artifact:
        return Artifact(
            artifact_type=artifact_type,
            title=title,
            content=content,
            kill_chain_phase=phase,
        )

    def refresh(existing: Artifact) -> Artifact:
        return existing.model_copy(update={"content": content, "created_at": utc_now()})

    return upsert_derived_artifact(case, derived_match(artifact_type, phase), build, refresh)
