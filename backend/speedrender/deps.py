"""FastAPI dependencies (service construction from settings)."""
from __future__ import annotations

from functools import lru_cache

from .config import get_settings
from .services.firestore import FirestoreService
from .services.orchestration.render_service import RenderOrchestrationService


@lru_cache(maxsize=1)
def get_render_service() -> RenderOrchestrationService:
    """Build the orchestrator once per process from the cached settings.

    Tests override this dependency with an orchestrator wired to fakes.
    """
    return RenderOrchestrationService.from_settings(get_settings())


@lru_cache(maxsize=1)
def get_project_store() -> FirestoreService:
    settings = get_settings()
    return FirestoreService(
        collection=settings.PROJECTS_COLLECTION,
        project=settings.GCP_PROJECT,
        database=settings.FIRESTORE_DATABASE_ID,
    )
