"""
Pytest configuration and shared fixtures
"""

import pytest
from typing import Any, Dict, List

from platformq_search_sync import (
    Document,
    FieldMapping,
    IndexClient,
    InMemoryStorage,
    LifecycleSync,
    SearchableModel,
    SearchIndexService,
    StorageField,
    TransientIndexError,
)


class Article(SearchableModel):
    """Hierarchical, unstaged record type"""
    __identifier__ = "Article"
    __searchable__ = ("Title", "Content", "Rating", "Location")
    __hierarchical__ = True

    Title = StorageField("Varchar(255)")
    Content = StorageField("HTMLText")
    Rating = StorageField("Decimal(5,2)")
    Location = StorageField("GeoPoint")
    ParentID = StorageField("Int", default=0)


class Page(SearchableModel):
    """Staged record type with a members-only flag"""
    __identifier__ = "App\\Pages\\Page"
    __searchable__ = ("Title", "PublishedOn")
    __staged__ = True

    Title = StorageField("Varchar(255)")
    PublishedOn = StorageField("Datetime")
    ShowInSearch = StorageField("Boolean", default=1)
    MembersOnly = StorageField("Boolean", default=0)

    def can_view(self, viewer=None):
        return viewer is not None or not self.MembersOnly


class NewsPage(Page):
    """Subclass indexed under the Page record type"""
    __identifier__ = "App\\Pages\\NewsPage"

    Author = StorageField("Varchar(100)")


class ManualPage(Page):
    """Page variant that opts out of automatic indexing"""
    __identifier__ = "App\\Pages\\ManualPage"

    def auto_index(self):
        return False


class InMemoryIndexClient(IndexClient):
    """Index client keeping indices in dictionaries"""

    def __init__(self):
        self.indices: Dict[str, Dict[str, Any]] = {}
        self.failing_types = set()
        self.refresh_count = 0
        self.bulk_calls: List[str] = []

    async def index_exists(self, index_name: str) -> bool:
        return index_name in self.indices

    async def create_index(self, index_name: str):
        self.indices[index_name] = {"mappings": {}, "documents": {}}

    async def apply_mapping(self, index_name: str, type_name: str, mappings: Dict[str, FieldMapping]):
        self._index(index_name)["mappings"][type_name] = {
            name: mapping.to_dict() for name, mapping in mappings.items()
        }

    async def upsert_document(self, index_name: str, type_name: str, document: Document):
        self._index(index_name)["documents"][document.id] = {
            "type": type_name,
            "source": document.to_source(),
        }

    async def upsert_documents(self, index_name: str, type_name: str, documents: List[Document]) -> int:
        self.bulk_calls.append(type_name)
        if type_name in self.failing_types:
            raise TransientIndexError("upsert_documents", "engine unavailable")
        for document in documents:
            await self.upsert_document(index_name, type_name, document)
        return len(documents)

    async def delete_document(self, index_name: str, type_name: str, document_id: str) -> bool:
        return self._index(index_name)["documents"].pop(document_id, None) is not None

    async def refresh_index(self, index_name: str):
        self.refresh_count += 1

    async def search(self, index_name: str, query: Dict[str, Any], size: int = 10, offset: int = 0) -> Dict[str, Any]:
        documents = list(self._index(index_name)["documents"].items())
        return {
            "took": 1,
            "hits": {
                "total": {"value": len(documents), "relation": "eq"},
                "hits": [
                    {"_id": doc_id, "_score": 1.0, "_source": {**doc["source"], "DocumentType": doc["type"]}}
                    for doc_id, doc in documents[offset:offset + size]
                ],
            },
        }

    def documents(self, index_name: str = "test_index") -> Dict[str, Dict[str, Any]]:
        return self.indices.get(index_name, {}).get("documents", {})

    def _index(self, index_name: str) -> Dict[str, Any]:
        # Writes to a missing index create it, as Elasticsearch does
        return self.indices.setdefault(index_name, {"mappings": {}, "documents": {}})


@pytest.fixture
def storage():
    """Storage with the test record types registered"""
    store = InMemoryStorage()
    for model_class in (Article, Page, NewsPage):
        store.register(model_class)
    return store


@pytest.fixture
def index_client():
    return InMemoryIndexClient()


@pytest.fixture
def service(index_client, storage):
    return SearchIndexService(index_client, storage, "test_index")


@pytest.fixture
def lifecycle(service):
    return LifecycleSync(service)


@pytest.fixture
def article_tree(storage):
    """Article#7 at the root with Article#42 beneath it"""
    root = storage.save(Article(ID=7, Title="Guides", ParentID=0))
    child = storage.save(Article(ID=42, Title="Indexing records", Content="<p>Body</p>", ParentID=7))
    return root, child
