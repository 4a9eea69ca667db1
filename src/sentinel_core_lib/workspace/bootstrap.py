"""Workspace bootstrap - wires the services around one CaseWorkspace.

Example:
    ```python
    services = await open_workspace()
    case = services.registry.create_case(NewCaseDetails(name="Phishing wave"))
    ...
    await services.close()
    ```
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sentinel_core_lib.config import Settings, get_settings
from sentinel_core_lib.core.indexing import DerivedIndexEngine, RecomputeScheduler
from sentinel_core_lib.infrastructure.llm import EnrichmentOracle
from sentinel_core_lib.infrastructure.llm.providers import ProviderRegistry
from sentinel_core_lib.infrastructure.persistence import (
    BlobStore,
    CaseRepository,
    RedisBlobStore,
)
from sentinel_core_lib.infrastructure.redis_setup import get_redis_client

from .analysis_flow import AnalysisFlow
from .case_registry import CaseRegistry
from .conversation import ConversationService
from .state import CaseWorkspace

logger = logging.getLogger(__name__)


@dataclass
class WorkspaceServices:
    """Everything a front end needs to drive one workspace"""

    workspace: CaseWorkspace
    oracle: EnrichmentOracle
    engine: DerivedIndexEngine
    scheduler: RecomputeScheduler
    registry: CaseRegistry
    analysis: AnalysisFlow
    conversation: ConversationService
    blob_store: Optional[BlobStore] = None

    async def close(self) -> None:
        """Let in-flight recomputations land, then persist"""
        await self.scheduler.drain()
        await self.workspace.close()
        if isinstance(self.blob_store, RedisBlobStore):
            await self.blob_store.close()
        logger.info("Workspace closed")


def build_services(
    workspace: CaseWorkspace,
    oracle: EnrichmentOracle,
    blob_store: Optional[BlobStore] = None,
) -> WorkspaceServices:
    """Wire engine, scheduler and the user-facing services"""
    engine = DerivedIndexEngine(workspace, oracle)
    scheduler = RecomputeScheduler(engine)
    registry = CaseRegistry(workspace, scheduler)
    return WorkspaceServices(
        workspace=workspace,
        oracle=oracle,
        engine=engine,
        scheduler=scheduler,
        registry=registry,
        analysis=AnalysisFlow(registry, oracle),
        conversation=ConversationService(workspace, oracle),
        blob_store=blob_store,
    )


async def open_workspace(
    settings: Optional[Settings] = None,
    blob_store: Optional[BlobStore] = None,
    oracle: Optional[EnrichmentOracle] = None,
    autosave: bool = True,
) -> WorkspaceServices:
    """Connect persistence, load the saved cases and build the services.

    Args:
        settings: Settings to use (defaults to get_settings())
        blob_store: Blob store to use instead of connecting to Redis
        oracle: Oracle to use instead of one over the settings' providers
        autosave: Persist after every change
    """
    settings = settings or get_settings()

    if blob_store is None:
        blob_store = RedisBlobStore(await get_redis_client(settings.redis))

    repository = CaseRepository(blob_store, key=settings.persistence_key)
    workspace = CaseWorkspace(repository, autosave=autosave)
    count = await workspace.load()
    logger.info(f"Workspace opened with {count} case(s)")

    if oracle is None:
        oracle = EnrichmentOracle(ProviderRegistry(settings=settings))

    return build_services(workspace, oracle, blob_store=blob_store)
