"""PlatformQ Search Sync

Keeps a search index consistent with versioned records: mapping derivation,
document construction, bulk reindexing and draft/live lifecycle handling.
"""

from .models import Stage, FieldType, FieldMapping, RecordType, Document, index_type_name
from .records import SearchableRecord, SearchableModel, StorageField
from .storage import StorageBackend, InMemoryStorage
from .mapping import SchemaMapper
from .documents import DocumentBuilder
from .buffer import BulkBuffer
from .manager import IndexManager
from .service import SearchIndexService, create_search_service
from .lifecycle import LifecycleSync, LifecycleEvent
from .results import ResultList, SearchHit
from .adapters import IndexClient, ElasticsearchIndexClient
from .config import Settings, get_settings
from .exceptions import (
    SearchSyncError,
    IndexOperationError,
    TransientIndexError,
    BulkFlushError,
    UnknownRecordTypeError
)

__version__ = "0.1.0"

__all__ = [
    "Stage",
    "FieldType",
    "FieldMapping",
    "RecordType",
    "Document",
    "index_type_name",
    "SearchableRecord",
    "SearchableModel",
    "StorageField",
    "StorageBackend",
    "InMemoryStorage",
    "SchemaMapper",
    "DocumentBuilder",
    "BulkBuffer",
    "IndexManager",
    "SearchIndexService",
    "create_search_service",
    "LifecycleSync",
    "LifecycleEvent",
    "ResultList",
    "SearchHit",
    "IndexClient",
    "ElasticsearchIndexClient",
    "Settings",
    "get_settings",
    "SearchSyncError",
    "IndexOperationError",
    "TransientIndexError",
    "BulkFlushError",
    "UnknownRecordTypeError"
]
