"""Case workspace - the single owner of all cases.

CaseWorkspace holds the case collection, the active case selection and the
subscription list. Every change is a whole-case replacement made
synchronously, so no other task ever observes a half-applied mutation.

Persistence:
- load() reads the collection once at startup
- each change schedules one coalesced autosave on the running loop
- flush()/close() write any pending change
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from sentinel_core_lib.exceptions import CaseNotFoundError
from sentinel_core_lib.infrastructure.persistence import CaseRepository
from sentinel_core_lib.models import Case

logger = logging.getLogger(__name__)

CaseListener = Callable[[Case], None]


class CaseWorkspace:
    """In-memory case collection with optional autosave"""

    def __init__(self, repository: Optional[CaseRepository] = None, autosave: bool = True):
        self.repository = repository
        self.autosave = autosave and repository is not None

        # Most recent first
        self._cases: Dict[str, Case] = {}
        self._active_case_id: Optional[str] = None
        self._listeners: List[CaseListener] = []

        self._dirty = False
        self._save_task: Optional[asyncio.Task] = None

    # ============================================================
    # Lifecycle
    # ============================================================

    async def load(self) -> int:
        """Replace the collection with the persisted one. Returns the case count."""
        if self.repository is None:
            return len(self._cases)
        cases = await self.repository.load()
        self._cases = {case.case_id: case for case in cases}
        self._active_case_id = None
        return len(self._cases)

    async def flush(self) -> None:
        """Wait for the pending autosave and write anything still unsaved"""
        if self._save_task is not None and not self._save_task.done():
            await self._save_task
        if self._dirty and self.repository is not None:
            self._dirty = False
            await self.repository.save(self.cases)

    async def close(self) -> None:
        await self.flush()
        self._listeners.clear()

    # ============================================================
    # Reads
    # ============================================================

    @property
    def cases(self) -> List[Case]:
        """All cases, most recently created first"""
        return list(self._cases.values())

    def get_case(self, case_id: str) -> Optional[Case]:
        return self._cases.get(case_id)

    def require_case(self, case_id: str) -> Case:
        case = self._cases.get(case_id)
        if case is None:
            raise CaseNotFoundError(case_id)
        return case

    def __contains__(self, case_id: str) -> bool:
        return case_id in self._cases

    def __len__(self) -> int:
        return len(self._cases)

    # ============================================================
    # Writes
    # ============================================================

    def insert_case(self, case: Case) -> Case:
        """Add a new case at the front of the collection"""
        self._cases = {case.case_id: case, **self._cases}
        self._changed(case)
        return case

    def replace_case(self, case: Case) -> Case:
        """Swap in a new value for an existing case"""
        if case.case_id not in self._cases:
            raise CaseNotFoundError(case.case_id)
        self._cases[case.case_id] = case
        self._changed(case)
        return case

    # ============================================================
    # Selection
    # ============================================================

    @property
    def active_case_id(self) -> Optional[str]:
        return self._active_case_id

    @property
    def active_case(self) -> Optional[Case]:
        if self._active_case_id is None:
            return None
        return self._cases.get(self._active_case_id)

    def select_case(self, case_id: str) -> Case:
        case = self.require_case(case_id)
        self._active_case_id = case_id
        return case

    def clear_selection(self) -> None:
        self._active_case_id = None

    # ============================================================
    # Subscriptions
    # ============================================================

    def subscribe(self, listener: CaseListener) -> Callable[[], None]:
        """Call listener with every new case value. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self, case: Case) -> None:
        for listener in list(self._listeners):
            try:
                listener(case)
            except Exception:
                logger.exception(f"Case listener failed for case {case.case_id}")
        self._schedule_save()

    # ============================================================
    # Autosave
    # ============================================================

    def _schedule_save(self) -> None:
        if self.repository is None:
            return
        self._dirty = True
        if not self.autosave:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the change is written by the next flush()
            return
        if self._save_task is None or self._save_task.done():
            self._save_task = loop.create_task(self._autosave())

    async def _autosave(self) -> None:
        # Yield once so that mutations made in the same step share one write
        await asyncio.sleep(0)
        while self._dirty:
            self._dirty = False
            await self.repository.save(self.cases)
