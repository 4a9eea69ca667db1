"""Recompute requests and the fire-and-forget scheduler that runs them.

Mutations never await enrichment. The case registry turns each mutation into
a list of RecomputeRequest values and hands them to RecomputeScheduler, which
starts one task per request on the running loop. Requests submitted while no
loop is running are queued and started by the next submit() or drain().
Tasks are independent and unordered; a failing task is logged and forgotten.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Deque, Iterable, List, Optional, Set

from sentinel_core_lib.models import KillChainPhase

if TYPE_CHECKING:
    from .derived_index import DerivedIndexEngine

logger = logging.getLogger(__name__)


class RecomputeKind(str, Enum):
    PHASE_INDEX = "phase_index"
    GLOBAL_SUMMARY = "global_summary"
    GLOBAL_IOCS = "global_iocs"


@dataclass(frozen=True)
class RecomputeRequest:
    """Names one derived artifact of one case to rebuild"""

    case_id: str
    kind: RecomputeKind
    phase: Optional[KillChainPhase] = None

    def __post_init__(self):
        if self.kind == RecomputeKind.PHASE_INDEX and self.phase is None:
            raise ValueError("phase_index requests require a phase")

    @classmethod
    def phase_index(cls, case_id: str, phase: KillChainPhase) -> "RecomputeRequest":
        return cls(case_id=case_id, kind=RecomputeKind.PHASE_INDEX, phase=phase)

    @classmethod
    def global_summary(cls, case_id: str) -> "RecomputeRequest":
        return cls(case_id=case_id, kind=RecomputeKind.GLOBAL_SUMMARY)

    @classmethod
    def global_iocs(cls, case_id: str) -> "RecomputeRequest":
        return cls(case_id=case_id, kind=RecomputeKind.GLOBAL_IOCS)


def global_requests(case_id: str) -> List[RecomputeRequest]:
    """Both case-wide recomputations"""
    return [RecomputeRequest.global_summary(case_id), RecomputeRequest.global_iocs(case_id)]


def phase_requests(case_id: str, phases: Iterable[KillChainPhase]) -> List[RecomputeRequest]:
    """One phase index request per distinct phase, first occurrence order"""
    seen: List[KillChainPhase] = []
    for phase in phases:
        if phase not in seen:
            seen.append(phase)
    return [RecomputeRequest.phase_index(case_id, phase) for phase in seen]


class RecomputeScheduler:
    """Runs recompute requests as background tasks"""

    def __init__(self, engine: "DerivedIndexEngine"):
        self.engine = engine
        self._tasks: Set[asyncio.Task] = set()
        self._queued: Deque[RecomputeRequest] = deque()

    def submit(self, requests: Iterable[RecomputeRequest]) -> List[asyncio.Task]:
        """Start one task per request, or queue them when no loop is running"""
        self._queued.extend(requests)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop; {len(self._queued)} recompute request(s) queued")
            return []
        return self._start_queued(loop)

    def _start_queued(self, loop: asyncio.AbstractEventLoop) -> List[asyncio.Task]:
        started = []
        while self._queued:
            request = self._queued.popleft()
            task = loop.create_task(self._run(request))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            started.append(task)
        return started

    async def _run(self, request: RecomputeRequest) -> None:
        try:
            await self.engine.run(request)
        except Exception:
            logger.exception(
                f"Recompute {request.kind.value} failed for case {request.case_id}"
                + (f" ({request.phase.value})" if request.phase else "")
            )

    @property
    def pending(self) -> int:
        return len(self._tasks) + len(self._queued)

    async def drain(self) -> None:
        """Wait until every submitted recomputation has finished"""
        while self._tasks or self._queued:
            self._start_queued(asyncio.get_running_loop())
            await asyncio.gather(*list(self._tasks))
