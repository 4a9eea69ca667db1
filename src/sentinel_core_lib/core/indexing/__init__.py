"""Derived index recomputation"""

from .derived_index import (
    GLOBAL_IOC_TITLE,
    GLOBAL_SUMMARY_TITLE,
    DerivedIndexEngine,
    group_iocs_by_phase,
    phase_index_title,
)
from .scheduler import (
    RecomputeKind,
    RecomputeRequest,
    RecomputeScheduler,
    global_requests,
    phase_requests,
)

__all__ = [
    "GLOBAL_IOC_TITLE",
    "GLOBAL_SUMMARY_TITLE",
    "DerivedIndexEngine",
    "group_iocs_by_phase",
    "phase_index_title",
    "RecomputeKind",
    "RecomputeRequest",
    "RecomputeScheduler",
    "global_requests",
    "phase_requests",
]
