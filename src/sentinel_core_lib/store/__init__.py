"""Pure case-scoped store operations"""

from sentinel_core_lib.store.artifact_store import (
    ArtifactUpdate,
    add_artifact,
    derived_match,
    split_artifact,
    update_artifact,
    upsert_derived_artifact,
    upsert_derived_content,
)
from sentinel_core_lib.store.checklist import replace_checklist, toggle_checklist_item

__all__ = [
    "ArtifactUpdate",
    "add_artifact",
    "derived_match",
    "split_artifact",
    "update_artifact",
    "upsert_derived_artifact",
    "upsert_derived_content",
    "replace_checklist",
    "toggle_checklist_item",
]
