"""Elasticsearch v8 index client"""

import logging
from typing import Any, Dict, List

from elasticsearch import ApiError, AsyncElasticsearch, NotFoundError, TransportError
from elasticsearch.helpers import BulkIndexError, async_bulk
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from .base import IndexClient
from ..config import Settings
from ..exceptions import IndexOperationError, TransientIndexError
from ..models import Document, FieldMapping

logger = logging.getLogger(__name__)

# Elasticsearch 8 has no mapping types; the type name lives in this field
TYPE_FIELD = "DocumentType"

# Legacy value types the engine no longer accepts
TYPE_TRANSLATIONS = {
    "string": "text",
}


def is_transient(error: BaseException) -> bool:
    """Connection failures, timeouts, throttling and 5xx responses"""
    if isinstance(error, TransportError):
        return True
    if isinstance(error, ApiError):
        status = getattr(error, "status_code", None) or 0
        return status == 429 or status >= 500
    return False


class ElasticsearchIndexClient(IndexClient):
    """Elasticsearch-specific index client with retries on transient failures"""

    def __init__(
        self,
        client: AsyncElasticsearch,
        chunk_size: int = 500,
        retry_attempts: int = 3,
        retry_wait_max: int = 10
    ):
        self.client = client
        self.chunk_size = chunk_size
        self.retry_attempts = retry_attempts
        self.retry_wait_max = retry_wait_max

    @classmethod
    def from_settings(cls, settings: Settings) -> "ElasticsearchIndexClient":
        host = settings.ES_HOST
        if "://" not in host:
            host = f"{'https' if settings.ES_USE_SSL else 'http'}://{host}"

        es_client = AsyncElasticsearch(
            hosts=[host],
            basic_auth=(
                settings.ES_USERNAME,
                settings.ES_PASSWORD or ""
            ) if settings.ES_USERNAME else None,
            verify_certs=settings.ES_VERIFY_CERTS,
            request_timeout=settings.ES_TIMEOUT
        )

        return cls(
            es_client,
            chunk_size=settings.BULK_CHUNK_SIZE,
            retry_attempts=settings.RETRY_ATTEMPTS,
            retry_wait_max=settings.RETRY_WAIT_MAX
        )

    async def index_exists(self, index_name: str) -> bool:
        response = await self._call("index_exists", self.client.indices.exists, index=index_name)
        return bool(response)

    async def create_index(self, index_name: str):
        try:
            await self._call(
                "create_index",
                self.client.indices.create,
                index=index_name,
                mappings={"properties": {TYPE_FIELD: {"type": "keyword"}}}
            )
            logger.info(f"Created index {index_name}")
        except IndexOperationError as e:
            # Another process created it between the existence check and now
            if getattr(e.__cause__, "error", None) == "resource_already_exists_exception":
                logger.info(f"Index {index_name} already exists")
                return
            raise

    async def apply_mapping(self, index_name: str, type_name: str, mappings: Dict[str, FieldMapping]):
        properties = {TYPE_FIELD: {"type": "keyword"}}
        for name, mapping in mappings.items():
            entry = mapping.to_dict()
            # An untyped property would become an object field; leave it to dynamic mapping
            if "type" not in entry:
                continue
            entry["type"] = TYPE_TRANSLATIONS.get(entry["type"], entry["type"])
            properties[name] = entry

        await self._call(
            "apply_mapping",
            self.client.indices.put_mapping,
            index=index_name,
            properties=properties,
            date_detection=False
        )
        logger.info(f"Applied mapping for {type_name} to {index_name} ({len(mappings)} fields)")

    async def upsert_document(self, index_name: str, type_name: str, document: Document):
        await self._call(
            "upsert_document",
            self.client.index,
            index=index_name,
            id=document.id,
            document=self._source(type_name, document)
        )
        logger.debug(f"Indexed document {document.id}")

    async def upsert_documents(self, index_name: str, type_name: str, documents: List[Document]) -> int:
        if not documents:
            return 0

        actions = [
            {
                "_op_type": "index",
                "_index": index_name,
                "_id": document.id,
                "_source": self._source(type_name, document),
            }
            for document in documents
        ]

        try:
            success, _ = await self._call(
                "upsert_documents",
                async_bulk,
                client=self.client,
                actions=actions,
                chunk_size=self.chunk_size,
                raise_on_error=True
            )
        except BulkIndexError as e:
            logger.error(f"Bulk index of {type_name} rejected {len(e.errors)} documents")
            raise IndexOperationError("upsert_documents", f"{len(e.errors)} of {len(documents)} {type_name} documents rejected") from e

        logger.debug(f"Bulk indexed {success} {type_name} documents")
        return success

    async def delete_document(self, index_name: str, type_name: str, document_id: str) -> bool:
        try:
            await self._call("delete_document", self.client.delete, index=index_name, id=document_id)
        except IndexOperationError as e:
            if isinstance(e.__cause__, NotFoundError):
                logger.debug(f"Document {document_id} was not in {index_name}")
                return False
            raise
        logger.debug(f"Deleted document {document_id}")
        return True

    async def refresh_index(self, index_name: str):
        await self._call("refresh_index", self.client.indices.refresh, index=index_name)

    async def search(self, index_name: str, query: Dict[str, Any], size: int = 10, offset: int = 0) -> Dict[str, Any]:
        response = await self._call(
            "search",
            self.client.search,
            index=index_name,
            query=query,
            size=size,
            from_=offset
        )
        return getattr(response, "body", response)

    async def close(self):
        await self.client.close()

    async def _call(self, operation: str, func, **kwargs) -> Any:
        """Run an engine call, retrying transient failures with exponential backoff"""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=0.5, max=self.retry_wait_max),
            retry=retry_if_exception(is_transient),
            reraise=True
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await func(**kwargs)
        except (TransportError, ApiError) as e:
            if is_transient(e):
                logger.error(f"Elasticsearch {operation} failed after {self.retry_attempts} attempts: {e}")
                raise TransientIndexError(operation, str(e)) from e
            raise IndexOperationError(operation, str(e)) from e

    @staticmethod
    def _source(type_name: str, document: Document) -> Dict[str, Any]:
        source = document.to_source()
        source[TYPE_FIELD] = type_name
        return source
