"""Generation queue endpoints: queue, poll, cancel, and retry."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from creative_studio.api.deps import get_generation_service
from creative_studio.schemas.common import Priority
from creative_studio.schemas.generation import (
    BatchGenerationRequest,
    BatchQueuedResponse,
    BatchStatusResponse,
    GenerationQueuedResponse,
    ImageToVideoRequest,
    QueueItem,
    QueueStats,
    TextToImageRequest,
)
from creative_studio.services.exceptions import ValidationError
from creative_studio.services.multimedia_generation_service import MultimediaGenerationService

router = APIRouter()


def _queued_response(service: MultimediaGenerationService, queue_id: str) -> GenerationQueuedResponse:
    item = service.get_queue_status(queue_id)
    return GenerationQueuedResponse(
        queue_id=item.id,
        status=item.status,
        estimated_completion=item.estimated_completion,
    )


# Handlers are async so queue_generation runs on the event loop that owns the queue.

@router.post("/images", response_model=GenerationQueuedResponse, status_code=202)
async def queue_image(
    request: TextToImageRequest,
    priority: Priority = Priority.NORMAL,
    enhance: bool = False,
    service: MultimediaGenerationService = Depends(get_generation_service),
):
    """Queue a text-to-image generation.

    With ``enhance=true`` the prompt is first rewritten for the request's
    territory, brand guidelines, and cultural context.
    """
    if enhance:
        if request.territory is None:
            raise ValidationError("Territory is required to enhance a prompt")
        enhancement = service.enhance_prompt_for_territory(
            request.prompt,
            request.territory,
            request.brand_guidelines,
            request.image_type,
            request.cultural_context,
        )
        request = request.model_copy(update={
            "prompt": enhancement.enhanced_prompt,
            "negative_prompt": enhancement.negative_prompt,
        })
    queue_id = service.queue_generation(request, priority)
    return _queued_response(service, queue_id)


@router.post("/videos", response_model=GenerationQueuedResponse, status_code=202)
async def queue_video(
    request: ImageToVideoRequest,
    priority: Priority = Priority.NORMAL,
    service: MultimediaGenerationService = Depends(get_generation_service),
):
    """Queue an image-to-video generation."""
    queue_id = service.queue_generation(request, priority)
    return _queued_response(service, queue_id)


@router.post("/batch", response_model=BatchQueuedResponse, status_code=202)
async def queue_batch(
    batch: BatchGenerationRequest,
    service: MultimediaGenerationService = Depends(get_generation_service),
):
    batch_id, queue_ids = service.queue_batch(batch.requests, batch.priority)
    return BatchQueuedResponse(batch_id=batch_id, queue_ids=queue_ids)


@router.get("/batch/{batch_id}", response_model=BatchStatusResponse)
async def get_batch_status(
    batch_id: str,
    service: MultimediaGenerationService = Depends(get_generation_service),
):
    status = service.get_batch_status(batch_id)
    if status is None:
        raise HTTPException(status_code=404, detail="Batch not found")
    return status


@router.get("", response_model=list[QueueItem])
async def list_generations(service: MultimediaGenerationService = Depends(get_generation_service)):
    return service.get_all_queue_items()


@router.get("/stats", response_model=QueueStats)
async def queue_stats(service: MultimediaGenerationService = Depends(get_generation_service)):
    return service.get_queue_stats()


@router.get("/{queue_id}", response_model=QueueItem)
async def get_generation(
    queue_id: str,
    service: MultimediaGenerationService = Depends(get_generation_service),
):
    """Poll a queued generation; the asset is on ``result`` once complete."""
    item = service.get_queue_status(queue_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Generation not found")
    return item


@router.delete("/{queue_id}", response_model=QueueItem)
async def cancel_generation(
    queue_id: str,
    service: MultimediaGenerationService = Depends(get_generation_service),
):
    if service.get_queue_status(queue_id) is None:
        raise HTTPException(status_code=404, detail="Generation not found")
    if not service.cancel_generation(queue_id):
        raise HTTPException(status_code=409, detail="Only queued or processing generations can be cancelled")
    return service.get_queue_status(queue_id)


@router.post("/{queue_id}/retry", response_model=QueueItem)
async def retry_generation(
    queue_id: str,
    service: MultimediaGenerationService = Depends(get_generation_service),
):
    if not service.retry_generation(queue_id):
        raise HTTPException(status_code=404, detail="Generation not found")
    return service.get_queue_status(queue_id)
