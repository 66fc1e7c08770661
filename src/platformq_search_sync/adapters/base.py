"""Base interface for search engine clients"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..models import Document, FieldMapping


class IndexClient(ABC):
    """Abstract base class for index clients

    Implementations own transport concerns, retries included, and raise
    ``TransientIndexError`` once the engine stays unavailable.
    """

    @abstractmethod
    async def index_exists(self, index_name: str) -> bool:
        pass

    @abstractmethod
    async def create_index(self, index_name: str):
        pass

    @abstractmethod
    async def apply_mapping(self, index_name: str, type_name: str, mappings: Dict[str, FieldMapping]):
        """Send the field mappings of one record type"""
        pass

    @abstractmethod
    async def upsert_document(self, index_name: str, type_name: str, document: Document):
        pass

    @abstractmethod
    async def upsert_documents(self, index_name: str, type_name: str, documents: List[Document]) -> int:
        """Create or replace ``documents``, returning how many were written"""
        pass

    @abstractmethod
    async def delete_document(self, index_name: str, type_name: str, document_id: str) -> bool:
        """Delete a document, returning False when it did not exist"""
        pass

    @abstractmethod
    async def refresh_index(self, index_name: str):
        """Make recent writes visible to search"""
        pass

    @abstractmethod
    async def search(self, index_name: str, query: Dict[str, Any], size: int = 10, offset: int = 0) -> Dict[str, Any]:
        """Run ``query`` and return the raw engine response"""
        pass

    async def close(self):
        pass
