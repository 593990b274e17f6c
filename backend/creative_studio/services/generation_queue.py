"""In-memory store of generation queue items.

``GenerationQueue`` owns every ``QueueItem`` and is the only code that
mutates one. Callers outside the store only ever see deep copies, so a
snapshot handed to an HTTP response cannot change under it.

Status transitions enforced here:

  queued → processing → complete
  queued → processing → queued        (automatic retry, retry_count + 1)
  queued → processing → error         (retry budget spent)
  queued | processing → cancelled
  error | cancelled → queued          (manual retry)
"""
from __future__ import annotations

import itertools
import logging
from datetime import datetime, timezone
from typing import Callable

from creative_studio.schemas.common import PRIORITY_ORDER, QueueStatus
from creative_studio.schemas.generation import GeneratedAsset, QueueItem
from creative_studio.services.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Progress never reaches 100 before the asset is stored
MAX_IN_FLIGHT_PROGRESS = 99

CANCELLABLE_STATUSES = {QueueStatus.QUEUED, QueueStatus.PROCESSING}
RETRYABLE_STATUSES = {QueueStatus.ERROR, QueueStatus.CANCELLED}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationQueue:
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._items: dict[str, QueueItem] = {}
        self._sequence: dict[str, int] = {}
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    # ── Reads (snapshots) ──────────────────────────────────────────────

    def get(self, item_id: str) -> QueueItem | None:
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item is not None else None

    def items(self, batch_id: str | None = None) -> list[QueueItem]:
        """Snapshots in insertion order, optionally limited to one batch."""
        return [
            item.model_copy(deep=True)
            for item in self._items.values()
            if batch_id is None or item.batch_id == batch_id
        ]

    def count(self, status: QueueStatus) -> int:
        return sum(1 for item in self._items.values() if item.status == status)

    def select_next(self, limit: int, now: datetime | None = None) -> list[str]:
        """Ids of up to *limit* dispatchable queued items, highest priority
        first and FIFO within a priority.
        """
        if limit <= 0:
            return []
        now = now or self._clock()
        ready = [
            item for item in self._items.values()
            if item.status == QueueStatus.QUEUED
            and (item.not_before is None or item.not_before <= now)
        ]
        ready.sort(key=lambda item: (-PRIORITY_ORDER[item.priority], self._sequence[item.id]))
        return [item.id for item in ready[:limit]]

    def next_deferred_time(self, now: datetime | None = None) -> datetime | None:
        """Earliest ``not_before`` among queued items that are not yet ready."""
        now = now or self._clock()
        pending = [
            item.not_before for item in self._items.values()
            if item.status == QueueStatus.QUEUED
            and item.not_before is not None
            and item.not_before > now
        ]
        return min(pending) if pending else None

    # ── Mutations ──────────────────────────────────────────────────────

    def add(self, item: QueueItem) -> None:
        if item.id in self._items:
            raise ValueError(f"Duplicate queue id {item.id}")
        self._items[item.id] = item.model_copy(deep=True)
        self._sequence[item.id] = next(self._counter)

    def mark_processing(self, item_id: str) -> bool:
        item = self._items[item_id]
        if item.status != QueueStatus.QUEUED:
            return False
        now = self._clock()
        item.status = QueueStatus.PROCESSING
        item.progress = 0
        item.started_at = now
        item.updated_at = now
        return True

    def update_progress(self, item_id: str, percentage: int) -> int | None:
        """Raise progress of a processing item; lower values are ignored."""
        item = self._items.get(item_id)
        if item is None or item.status != QueueStatus.PROCESSING:
            return None
        clamped = max(0, min(int(percentage), MAX_IN_FLIGHT_PROGRESS))
        if clamped > item.progress:
            item.progress = clamped
            item.updated_at = self._clock()
        return item.progress

    def mark_complete(self, item_id: str, asset: GeneratedAsset) -> bool:
        """Store *asset*. Returns False (and drops it) if the item is no longer processing."""
        item = self._items.get(item_id)
        if item is None or item.status != QueueStatus.PROCESSING:
            return False
        now = self._clock()
        item.status = QueueStatus.COMPLETE
        item.progress = 100
        item.result = asset
        item.error = None
        item.completed_at = now
        item.updated_at = now
        return True

    def mark_failed(self, item_id: str, message: str) -> QueueStatus | None:
        """Record a failed attempt; re-queue while the retry budget lasts.

        Returns the resulting status, or None if the item was not processing
        (e.g. cancelled while the attempt was in flight).
        """
        item = self._items.get(item_id)
        if item is None or item.status != QueueStatus.PROCESSING:
            return None
        now = self._clock()
        item.last_error = message
        item.updated_at = now
        if item.retry_count < item.max_retries:
            item.retry_count += 1
            item.status = QueueStatus.QUEUED
            item.progress = 0
            item.error = None
            logger.info("Item %s re-queued (retry %d/%d)", item_id, item.retry_count, item.max_retries)
        else:
            item.status = QueueStatus.ERROR
            item.error = message
            item.completed_at = now
            logger.warning("Item %s failed permanently: %s", item_id, message)
        return item.status

    def cancel(self, item_id: str) -> bool:
        item = self._items.get(item_id)
        if item is None or item.status not in CANCELLABLE_STATUSES:
            return False
        now = self._clock()
        item.status = QueueStatus.CANCELLED
        item.completed_at = now
        item.updated_at = now
        return True

    def requeue(self, item_id: str) -> bool:
        """Manual retry of a failed or cancelled item with a fresh retry budget.

        Raises
        ------
        ValidationError : item is not failed/cancelled, or manual retries are spent
        """
        item = self._items.get(item_id)
        if item is None:
            return False
        if item.status not in RETRYABLE_STATUSES:
            raise ValidationError(f"Only failed or cancelled items can be retried (status: {item.status.value})")
        if item.manual_retry_count >= item.max_retries:
            raise ValidationError(f"Retry limit of {item.max_retries} reached for {item_id}")
        now = self._clock()
        item.manual_retry_count += 1
        item.retry_count = 0
        item.status = QueueStatus.QUEUED
        item.progress = 0
        item.error = None
        item.result = None
        item.not_before = None
        item.started_at = None
        item.completed_at = None
        item.updated_at = now
        # Back of the line within its priority
        self._sequence[item_id] = next(self._counter)
        return True
