"""Search index service: the entry point for indexing records and searching them"""

import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence, Union

from prometheus_client import Counter, Histogram

from .adapters import ElasticsearchIndexClient, IndexClient
from .buffer import BulkBuffer
from .config import Settings, get_settings
from .documents import DocumentBuilder
from .exceptions import BulkFlushError
from .manager import IndexManager
from .mapping import SchemaMapper
from .models import Document, Stage
from .records import SearchableRecord
from .results import ResultList
from .storage import StorageBackend

logger = logging.getLogger(__name__)

# Prometheus metrics
index_operations = Counter('platformq_search_index_operations_total', 'Total search index operations', ['operation', 'type'])
index_operation_duration = Histogram('platformq_search_index_operation_duration_seconds', 'Search index operation duration', ['operation'])
index_operation_errors = Counter('platformq_search_index_errors_total', 'Search index operation errors', ['operation', 'type', 'error_type'])


class SearchIndexService:
    """Keeps one search index in step with the records of a storage backend"""

    def __init__(
        self,
        client: IndexClient,
        storage: StorageBackend,
        index_name: str,
        mapper: Optional[SchemaMapper] = None,
        builder: Optional[DocumentBuilder] = None,
        refresh_on_write: bool = True
    ):
        self.client = client
        self.storage = storage
        self.index_name = index_name
        self.mapper = mapper or SchemaMapper(storage)
        self.builder = builder or DocumentBuilder(self.mapper)
        self.refresh_on_write = refresh_on_write
        self.buffer = BulkBuffer()
        self.manager = IndexManager(self)

    async def search(
        self,
        query: Union[str, Dict[str, Any]],
        fields: Optional[Sequence[str]] = None,
        size: int = 10,
        offset: int = 0
    ) -> ResultList:
        """Search the index.

        With ``fields`` the query text is matched against each of them;
        otherwise a string runs as a query string query and a dict is sent
        as is.
        """
        if fields:
            body = {"multi_match": {"query": query, "fields": list(fields)}}
        elif isinstance(query, str):
            body = {"query_string": {"query": query}}
        else:
            body = query

        with index_operation_duration.labels(operation='search').time():
            response = await self.client.search(self.index_name, body, size=size, offset=offset)

        return ResultList.from_response(body, response)

    async def index(self, record: SearchableRecord, stage: Optional[Stage] = None, buffer: Optional[BulkBuffer] = None):
        """Create or update the document of ``record`` for ``stage``.

        Defaults to the record's current stage. While ``buffer`` (or the
        service's own bulk session) is active the document is queued instead
        of sent.
        """
        stage = stage or record.current_stage()
        buffer = buffer or self.buffer
        document = self.builder.build(record, stage)

        if buffer.is_active():
            buffer.add(document.type_name, document)
            logger.debug(f"Buffered document {document.id}")
            return

        # Older copies left over from a failed flush must not overwrite this one later
        if self.buffer.discard(document.type_name, document.id):
            logger.debug(f"Dropped stale buffered document {document.id}")

        await self._send(document)

    async def remove(self, record: SearchableRecord, stage: Optional[Stage] = None) -> bool:
        """Delete the document of ``record`` for ``stage``"""
        stage = stage or record.current_stage()
        type_name = record.record_type.index_type_name
        document_id = self.builder.document_id(record, stage)

        if self.buffer.discard(type_name, document_id):
            logger.debug(f"Dropped buffered document {document_id}")

        with index_operation_duration.labels(operation='remove').time():
            try:
                removed = await self.client.delete_document(self.index_name, type_name, document_id)
                if self.refresh_on_write:
                    await self.client.refresh_index(self.index_name)
            except Exception as e:
                index_operation_errors.labels(operation='remove', type=type_name, error_type=type(e).__name__).inc()
                logger.error(f"Failed to remove document {document_id}: {e}")
                raise

        index_operations.labels(operation='remove', type=type_name).inc()
        return removed

    def start_bulk_index(self):
        """Begin buffering documents instead of sending them one by one"""
        self.buffer.start()

    async def end_bulk_index(self) -> int:
        """Send everything buffered since ``start_bulk_index``"""
        return await self._flush(self.buffer)

    @asynccontextmanager
    async def bulk(self):
        """Independent bulk session for one producer.

        Yields a buffer to pass to ``index``; it is flushed when the block
        exits without error::

            async with service.bulk() as session:
                await service.index(record, buffer=session)
        """
        buffer = BulkBuffer()
        buffer.start()
        yield buffer
        await self._flush(buffer)

    async def define(self):
        await self.manager.define()

    async def refresh(self) -> int:
        return await self.manager.refresh()

    async def close(self):
        await self.client.close()

    async def _send(self, document: Document):
        with index_operation_duration.labels(operation='index').time():
            try:
                await self.client.upsert_document(self.index_name, document.type_name, document)
                if self.refresh_on_write:
                    await self.client.refresh_index(self.index_name)
            except Exception as e:
                index_operation_errors.labels(operation='index', type=document.type_name, error_type=type(e).__name__).inc()
                logger.error(f"Failed to index document {document.id}: {e}")
                raise

        index_operations.labels(operation='index', type=document.type_name).inc()

    async def _flush(self, buffer: BulkBuffer) -> int:
        """Deliver buffered batches type by type.

        On failure the failing batch and every batch after it go back into
        ``buffer`` so a later flush can retry them.
        """
        batches = buffer.flush()
        pending: List = list(batches.items())
        delivered = 0

        for position, (type_name, documents) in enumerate(pending):
            with index_operation_duration.labels(operation='bulk').time():
                try:
                    delivered += await self.client.upsert_documents(self.index_name, type_name, documents)
                except Exception as e:
                    buffer.restore(OrderedDict(pending[position:]))
                    index_operation_errors.labels(operation='bulk', type=type_name, error_type=type(e).__name__).inc()
                    logger.error(f"Bulk index of {len(documents)} {type_name} documents failed, {buffer.pending_count()} documents kept for retry: {e}")
                    raise BulkFlushError(type_name, e) from e

            index_operations.labels(operation='bulk', type=type_name).inc(len(documents))

        if pending and self.refresh_on_write:
            await self.client.refresh_index(self.index_name)

        if pending:
            logger.info(f"Bulk indexed {delivered} documents across {len(pending)} types")
        return delivered


def create_search_service(
    storage: StorageBackend,
    settings: Optional[Settings] = None,
    client: Optional[IndexClient] = None
) -> SearchIndexService:
    """Build a service from settings, connecting to Elasticsearch unless ``client`` is given"""
    settings = settings or get_settings()
    logging.getLogger("platformq_search_sync").setLevel(settings.LOG_LEVEL.upper())

    if client is None:
        client = ElasticsearchIndexClient.from_settings(settings)

    logger.info(f"Search index service for {settings.SERVICE_NAME} using index {settings.ES_INDEX_NAME}")
    return SearchIndexService(
        client=client,
        storage=storage,
        index_name=settings.ES_INDEX_NAME,
        refresh_on_write=settings.REFRESH_ON_WRITE
    )
