"""Health check route reporting the state of the registry store."""

from fastapi import APIRouter, Depends

from ...schemas.url import HealthResponse
from ...services.registry import RegistryService, get_registry_service

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
def health_check(service: RegistryService = Depends(get_registry_service)) -> HealthResponse:
    """Report the record count and storage backend.

    The status is ``degraded`` while the latest snapshot save has failed;
    records are still served from memory in that state.
    """
    store = service.store
    return HealthResponse(
        status="degraded" if store.last_save_failed else "healthy",
        records=len(store),
        storage=store.backend.kind,
    )
