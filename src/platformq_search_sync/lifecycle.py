"""
Record lifecycle hooks

Maps record write / delete / publish / unpublish events onto index and
remove calls for the affected stage(s). Nothing is remembered between calls.
"""

import logging
from enum import Enum

from prometheus_client import Counter

from .config import Settings
from .models import Stage
from .records import SearchableRecord
from .service import SearchIndexService

logger = logging.getLogger(__name__)

lifecycle_events = Counter('platformq_search_lifecycle_events_total', 'Record lifecycle events handled', ['event', 'outcome'])


class LifecycleEvent(Enum):
    """Record events the host framework reports"""
    AFTER_WRITE = "after_write"
    AFTER_DELETE = "after_delete"
    AFTER_PUBLISH = "after_publish"
    AFTER_UNPUBLISH = "after_unpublish"


class LifecycleSync:
    """Reacts to record lifecycle events by updating the search index.

    Index failures propagate to the caller of the hook, since they mean the
    index no longer matches the record store.
    """

    def __init__(self, service: SearchIndexService, disabled: bool = False):
        self.service = service
        self.disabled = disabled

    @classmethod
    def from_settings(cls, service: SearchIndexService, settings: Settings) -> "LifecycleSync":
        return cls(service, disabled=settings.INDEXING_DISABLED)

    async def handle(self, event: LifecycleEvent, record: SearchableRecord):
        handlers = {
            LifecycleEvent.AFTER_WRITE: self.after_write,
            LifecycleEvent.AFTER_DELETE: self.after_delete,
            LifecycleEvent.AFTER_PUBLISH: self.after_publish,
            LifecycleEvent.AFTER_UNPUBLISH: self.after_unpublish,
        }
        await handlers[event](record)

    async def after_write(self, record: SearchableRecord):
        """Index the record in the stage it was written to"""
        if self._skip(LifecycleEvent.AFTER_WRITE, record, requires_auto_index=True):
            return
        await self._run(LifecycleEvent.AFTER_WRITE, self.service.index(record, record.current_stage()))

    async def after_delete(self, record: SearchableRecord):
        """Remove the record's document for the stage it was deleted from"""
        if self._skip(LifecycleEvent.AFTER_DELETE, record):
            return
        await self._run(LifecycleEvent.AFTER_DELETE, self.service.remove(record, record.current_stage()))

    async def after_publish(self, record: SearchableRecord):
        if self._skip(LifecycleEvent.AFTER_PUBLISH, record, requires_auto_index=True):
            return
        await self._run(LifecycleEvent.AFTER_PUBLISH, self.service.index(record, Stage.LIVE))

    async def after_unpublish(self, record: SearchableRecord):
        """Drop the live document and reindex the draft one.

        The record still exists in draft, so it stays searchable there while
        disappearing from live results.
        """
        if self._skip(LifecycleEvent.AFTER_UNPUBLISH, record):
            return
        await self._run(LifecycleEvent.AFTER_UNPUBLISH, self._unpublish(record))

    async def _unpublish(self, record: SearchableRecord):
        await self.service.remove(record, Stage.LIVE)
        await self.service.index(record, Stage.DRAFT)

    def _skip(self, event: LifecycleEvent, record: SearchableRecord, requires_auto_index: bool = False) -> bool:
        if self.disabled:
            logger.debug(f"Indexing disabled, ignoring {event.value} for {record!r}")
            lifecycle_events.labels(event=event.value, outcome='disabled').inc()
            return True
        if requires_auto_index and not record.auto_index():
            logger.debug(f"{record!r} does not auto index, ignoring {event.value}")
            lifecycle_events.labels(event=event.value, outcome='skipped').inc()
            return True
        return False

    async def _run(self, event: LifecycleEvent, operation):
        try:
            await operation
        except Exception as e:
            lifecycle_events.labels(event=event.value, outcome='failed').inc()
            logger.error(f"Search index update for {event.value} failed: {e}")
            raise
        lifecycle_events.labels(event=event.value, outcome='success').inc()
