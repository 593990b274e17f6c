"""Provider usage statistics."""
from fastapi import APIRouter, Depends

from creative_studio.api.deps import get_generation_service
from creative_studio.schemas.provider import ProviderStatsResponse
from creative_studio.services.multimedia_generation_service import MultimediaGenerationService

router = APIRouter()


@router.get("/stats", response_model=list[ProviderStatsResponse])
def provider_stats(service: MultimediaGenerationService = Depends(get_generation_service)):
    return service.provider_service.get_provider_stats()
