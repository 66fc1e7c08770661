"""In-memory buffering of documents during bulk index sessions"""

from collections import OrderedDict
from typing import Dict, List

from .models import Document


class BulkBuffer:
    """Per-type queues of documents awaiting transmission.

    Owned by a single producer; concurrent producers each use their own
    buffer.
    """

    def __init__(self):
        self._buffer: "OrderedDict[str, List[Document]]" = OrderedDict()
        self._active = False

    def start(self):
        self._active = True

    def is_active(self) -> bool:
        return self._active

    def add(self, type_name: str, document: Document):
        """Queue ``document``, replacing any pending copy with the same id"""
        self.discard(type_name, document.id)
        self._buffer.setdefault(type_name, []).append(document)

    def discard(self, type_name: str, document_id: str) -> int:
        """Drop pending copies of a document, returning how many were dropped"""
        documents = self._buffer.get(type_name)
        if not documents:
            return 0
        kept = [document for document in documents if document.id != document_id]
        if kept:
            self._buffer[type_name] = kept
        else:
            del self._buffer[type_name]
        return len(documents) - len(kept)

    def pending_count(self) -> int:
        return sum(len(documents) for documents in self._buffer.values())

    def flush(self) -> Dict[str, List[Document]]:
        """Drain every buffered document, grouped by type, and stop buffering"""
        batches = self._buffer
        self._buffer = OrderedDict()
        self._active = False
        return batches

    def restore(self, batches: Dict[str, List[Document]]):
        """Put undelivered batches back ahead of anything buffered since the flush"""
        restored = OrderedDict()
        for type_name, documents in batches.items():
            restored[type_name] = list(documents)
        for type_name, documents in self._buffer.items():
            restored.setdefault(type_name, []).extend(documents)
        self._buffer = restored
