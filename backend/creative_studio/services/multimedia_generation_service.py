"""Generation queue façade: validation, queuing, and the processing loop.

``queue_generation`` validates and stores a request and returns its id
without awaiting anything. A single asyncio task (the processing loop)
then drains the queue:

  1. pick queued items by priority (high > normal > low), then FIFO
  2. fill up to ``max_concurrent`` slots, one task per item
  3. wait for any task to finish (or a new item to arrive) and repeat
  4. exit once nothing is queued or in flight; the next queue call restarts it

Each item task calls ``AIProviderService``; failures are recorded on the
item and re-queued by ``GenerationQueue`` while its retry budget lasts.
Callers poll ``get_queue_status`` for the outcome.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from typing import Sequence

from creative_studio.schemas.common import (
    QUALITY_MULTIPLIERS,
    MediaType,
    Priority,
    QueueStatus,
)
from creative_studio.schemas.generation import (
    BatchStatusResponse,
    BrandGuidelines,
    ImageToVideoRequest,
    PromptEnhancement,
    QueueItem,
    QueueStats,
    TextToImageRequest,
    Territory,
)
from creative_studio.schemas.provider import MultimediaGenerationConfig
from creative_studio.services.ai_provider_service import AIProviderService
from creative_studio.services.exceptions import ValidationError
from creative_studio.services.generation_queue import GenerationQueue, utcnow
from creative_studio.services.prompt_enhancer import enhance_prompt_for_territory
from creative_studio.utils.prompts import PLATFORM_MAX_DURATION

logger = logging.getLogger(__name__)

# Heuristic durations used for estimated_completion
IMAGE_BASE_SECONDS = 45
VIDEO_BASE_SECONDS = 180
VIDEO_BASE_DURATION = 5

MIN_VIDEO_DURATION = 1
MAX_VIDEO_DURATION = 60

# Progress reported once an item has been handed to the provider service
DISPATCH_PROGRESS = 5


def validate_request(request: TextToImageRequest | ImageToVideoRequest) -> None:
    """Reject malformed requests before anything is queued.

    Raises
    ------
    ValidationError : missing prompt, territory or source image, or an out-of-range duration
    """
    if isinstance(request, TextToImageRequest):
        if not request.prompt or not request.prompt.strip():
            raise ValidationError("Prompt is required")
        if request.territory is None:
            raise ValidationError("Territory is required for image generation")
        return

    if not request.source_image_url:
        raise ValidationError("Source image URL is required")
    if not MIN_VIDEO_DURATION <= request.duration <= MAX_VIDEO_DURATION:
        raise ValidationError(
            f"Duration must be between {MIN_VIDEO_DURATION} and {MAX_VIDEO_DURATION} seconds"
        )
    platform_max = PLATFORM_MAX_DURATION.get(request.platform_optimization)
    if platform_max is not None and request.duration > platform_max:
        raise ValidationError(
            f"Duration exceeds {request.platform_optimization.value} maximum of {platform_max} seconds"
        )
    if request.fps is not None and request.fps <= 0:
        raise ValidationError("fps must be positive")


def estimate_generation_seconds(request: TextToImageRequest | ImageToVideoRequest) -> float:
    multiplier = QUALITY_MULTIPLIERS[request.quality]
    if isinstance(request, TextToImageRequest):
        return IMAGE_BASE_SECONDS * multiplier
    return VIDEO_BASE_SECONDS * (request.duration / VIDEO_BASE_DURATION) * multiplier


class MultimediaGenerationService:
    """Owns a ``GenerationQueue`` and the loop that drains it."""

    def __init__(
        self,
        config: MultimediaGenerationConfig,
        provider_service: AIProviderService,
        queue: GenerationQueue | None = None,
    ):
        self.config = config
        self.provider_service = provider_service
        self.queue = queue or GenerationQueue()
        self._tasks: dict[str, asyncio.Task] = {}
        self._loop_task: asyncio.Task | None = None
        self._wakeup: asyncio.Event | None = None

    @property
    def max_concurrent(self) -> int:
        return self.config.batch_processing.max_concurrent

    # ── Inbound API ────────────────────────────────────────────────────

    @staticmethod
    def enhance_prompt_for_territory(
        prompt: str,
        territory: Territory,
        brand_guidelines: BrandGuidelines,
        image_type,
        cultural_context,
    ) -> PromptEnhancement:
        return enhance_prompt_for_territory(prompt, territory, brand_guidelines, image_type, cultural_context)

    def queue_generation(
        self,
        request: TextToImageRequest | ImageToVideoRequest,
        priority: Priority = Priority.NORMAL,
        *,
        batch_id: str | None = None,
        not_before: datetime | None = None,
    ) -> str:
        """Validate and enqueue *request*; returns the queue id immediately.

        Raises
        ------
        ValidationError : request rejected, nothing was queued
        """
        validate_request(request)
        priority = Priority(priority)

        now = utcnow()
        start = max(now, not_before) if not_before else now
        media_type = MediaType.IMAGE if isinstance(request, TextToImageRequest) else MediaType.VIDEO
        item = QueueItem(
            id=f"gen_{uuid.uuid4().hex}",
            type=media_type,
            estimated_completion=start + timedelta(seconds=estimate_generation_seconds(request)),
            request=request,
            max_retries=self.provider_service.get_retry_limit(media_type, request.provider),
            priority=priority,
            batch_id=batch_id,
            not_before=not_before,
            created_at=now,
            updated_at=now,
        )
        self.queue.add(item)
        logger.info("Queued %s generation %s (priority=%s)", media_type.value, item.id, priority.value)
        self._kick()
        return item.id

    def queue_batch(
        self,
        requests: Sequence[TextToImageRequest | ImageToVideoRequest],
        priority: Priority = Priority.NORMAL,
    ) -> tuple[str, list[str]]:
        """Queue *requests* as one batch, released in chunks of ``batch_size``
        spaced ``delay_between_batches`` seconds apart.

        Every request is validated before any is queued.
        """
        if not requests:
            raise ValidationError("Batch must contain at least one request")
        for request in requests:
            validate_request(request)

        batch = self.config.batch_processing
        batch_id = f"batch_{uuid.uuid4().hex}"
        now = utcnow()
        queue_ids = []
        for index, request in enumerate(requests):
            chunk = index // batch.batch_size
            not_before = now + timedelta(seconds=chunk * batch.delay_between_batches) if chunk else None
            queue_ids.append(
                self.queue_generation(request, priority, batch_id=batch_id, not_before=not_before)
            )
        logger.info("Queued batch %s with %d requests", batch_id, len(queue_ids))
        return batch_id, queue_ids

    def get_queue_status(self, queue_id: str) -> QueueItem | None:
        return self.queue.get(queue_id)

    def get_all_queue_items(self) -> list[QueueItem]:
        return self.queue.items()

    def get_batch_status(self, batch_id: str) -> BatchStatusResponse | None:
        items = self.queue.items(batch_id=batch_id)
        if not items:
            return None
        counts = {status: 0 for status in QueueStatus}
        for item in items:
            counts[item.status] += 1
        return BatchStatusResponse(
            batch_id=batch_id,
            total=len(items),
            complete=counts[QueueStatus.COMPLETE],
            failed=counts[QueueStatus.ERROR],
            cancelled=counts[QueueStatus.CANCELLED],
            pending=counts[QueueStatus.QUEUED] + counts[QueueStatus.PROCESSING],
            items=items,
        )

    def get_queue_stats(self) -> QueueStats:
        queued = self.queue.count(QueueStatus.QUEUED)
        if queued <= self.max_concurrent:
            health = "healthy"
        elif queued <= self.max_concurrent * 3:
            health = "busy"
        else:
            health = "overloaded"
        return QueueStats(
            total_queued=queued,
            total_processing=self.queue.count(QueueStatus.PROCESSING),
            total_complete=self.queue.count(QueueStatus.COMPLETE),
            total_error=self.queue.count(QueueStatus.ERROR),
            total_cancelled=self.queue.count(QueueStatus.CANCELLED),
            max_concurrent=self.max_concurrent,
            queue_health=health,
        )

    def cancel_generation(self, queue_id: str) -> bool:
        """Cancel a queued or processing item. In-flight provider calls are
        cancelled best-effort; a result that still arrives is discarded.
        """
        if not self.queue.cancel(queue_id):
            return False
        task = self._tasks.get(queue_id)
        if task is not None and not task.done():
            task.cancel()
        logger.info("Cancelled generation %s", queue_id)
        return True

    def retry_generation(self, queue_id: str) -> bool:
        """Re-queue a failed or cancelled item. False if the id is unknown.

        Raises
        ------
        ValidationError : item is not retryable or its manual retries are spent
        """
        if not self.queue.requeue(queue_id):
            return False
        logger.info("Retrying generation %s", queue_id)
        self._kick()
        return True

    async def join(self) -> None:
        """Wait until the processing loop has nothing left to do."""
        while self._loop_task is not None and not self._loop_task.done():
            await self._loop_task

    async def shutdown(self) -> None:
        """Stop the loop and cancel every in-flight item."""
        tasks = list(self._tasks.values())
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        for queue_id in list(self._tasks):
            self.queue.cancel(queue_id)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._loop_task = None
        logger.info("Generation service stopped (%d tasks cancelled)", len(tasks))

    # ── Processing loop ────────────────────────────────────────────────

    def _kick(self) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No event loop in this thread; items wait for the next kick.
            return
        if self._wakeup is None:
            self._wakeup = asyncio.Event()
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self._process_queue(), name="generation-queue")
        else:
            self._wakeup.set()

    async def _process_queue(self) -> None:
        logger.debug("Queue processing loop started")
        while True:
            # A task cancelled before it first ran never reaches its own cleanup
            for queue_id, task in list(self._tasks.items()):
                if task.done():
                    self._tasks.pop(queue_id, None)

            now = utcnow()
            free_slots = self.max_concurrent - len(self._tasks)
            for queue_id in self.queue.select_next(free_slots, now):
                self._dispatch(queue_id)

            next_ready = self.queue.next_deferred_time(now)
            if not self._tasks and next_ready is None:
                break

            self._wakeup.clear()
            waiter = asyncio.ensure_future(self._wakeup.wait())
            timeout = (next_ready - now).total_seconds() if next_ready else None
            try:
                await asyncio.wait(
                    {*self._tasks.values(), waiter},
                    timeout=timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                waiter.cancel()
        logger.debug("Queue processing loop idle")

    def _dispatch(self, queue_id: str) -> None:
        if not self.queue.mark_processing(queue_id):
            return
        self._tasks[queue_id] = asyncio.create_task(
            self._process_item(queue_id), name=f"generation-{queue_id}",
        )

    async def _process_item(self, queue_id: str) -> None:
        item = self.queue.get(queue_id)

        def on_progress(percentage: int) -> None:
            self.queue.update_progress(queue_id, percentage)

        try:
            on_progress(DISPATCH_PROGRESS)
            if item.type == MediaType.IMAGE:
                asset = await self.provider_service.generate_image(item.request, on_progress)
            else:
                asset = await self.provider_service.generate_video(item.request, on_progress)
        except asyncio.CancelledError:
            logger.info("Generation %s cancelled while in flight", queue_id)
            raise
        except Exception as e:
            # Recorded on the item; the loop and other items carry on.
            logger.warning("Generation %s attempt %d failed: %s", queue_id, item.retry_count + 1, e)
            self.queue.mark_failed(queue_id, str(e))
        else:
            if self.queue.mark_complete(queue_id, asset):
                logger.info("Generation %s complete (%s via %s)", queue_id, asset.type.value, asset.provider.value)
            else:
                logger.info("Discarding late result for %s", queue_id)
        finally:
            self._tasks.pop(queue_id, None)
