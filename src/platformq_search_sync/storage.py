"""Storage collaborator interface and an in-memory implementation"""

import copy
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

from .exceptions import UnknownRecordTypeError
from .models import RecordType, Stage
from .records import SearchableModel, SearchableRecord

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """What the indexing pipeline asks of the record store"""

    @abstractmethod
    def list_indexable_types(self) -> List[RecordType]:
        """All record types carrying the searchable capability"""
        pass

    @abstractmethod
    def all_records_of(self, record_type: RecordType, stage: Stage = Stage.DRAFT) -> Iterable[SearchableRecord]:
        """Every record of ``record_type`` as it exists in ``stage``"""
        pass

    @abstractmethod
    def storage_schema(self, record_type: RecordType) -> Dict[str, str]:
        """Field name to storage type, e.g. ``{"Title": "Varchar(255)"}``"""
        pass


class InMemoryStorage(StorageBackend):
    """Dictionary-backed store for ``SearchableModel`` records.

    Keeps one table per stage. Records are written to the draft stage and
    copied to the live stage on publish.
    """

    def __init__(self):
        self._models: Dict[str, List[Type[SearchableModel]]] = defaultdict(list)
        self._tables: Dict[Stage, Dict[Tuple[str, Any], SearchableModel]] = {
            Stage.DRAFT: {},
            Stage.LIVE: {},
        }
        self._next_id: Dict[str, int] = defaultdict(int)

    def register(self, model_class: Type[SearchableModel]) -> RecordType:
        record_type = model_class.get_record_type()
        if model_class not in self._models[record_type.identifier]:
            self._models[record_type.identifier].append(model_class)
            logger.debug(f"Registered {model_class.__name__} under {record_type.identifier}")
        return record_type

    def list_indexable_types(self) -> List[RecordType]:
        return [classes[0].get_record_type() for classes in self._models.values()]

    def all_records_of(self, record_type: RecordType, stage: Stage = Stage.DRAFT) -> List[SearchableRecord]:
        self._base_model(record_type)
        return [
            record for (identifier, _), record in self._tables[stage].items()
            if identifier == record_type.identifier
        ]

    def storage_schema(self, record_type: RecordType) -> Dict[str, str]:
        return self._base_model(record_type).storage_schema()

    def get(self, record_type: RecordType, record_id: Any, stage: Stage = Stage.DRAFT) -> Optional[SearchableModel]:
        return self._tables[stage].get((record_type.identifier, record_id))

    def save(self, record: SearchableModel) -> SearchableModel:
        """Write ``record`` to the draft stage, assigning an ID if needed"""
        record_type = self.register(type(record))
        now = datetime.utcnow()

        if record.ID is None:
            self._next_id[record_type.identifier] += 1
            record.ID = self._next_id[record_type.identifier]
        else:
            self._next_id[record_type.identifier] = max(self._next_id[record_type.identifier], record.ID)

        if record.Created is None:
            record.Created = now
        record.LastEdited = now

        record._storage = self
        record._stage = Stage.DRAFT
        self._tables[Stage.DRAFT][(record_type.identifier, record.ID)] = record
        return record

    def publish(self, record: SearchableModel) -> SearchableModel:
        """Copy the draft version of ``record`` to the live stage"""
        live = copy.copy(record)
        live._stage = Stage.LIVE
        self._tables[Stage.LIVE][(record.record_type.identifier, record.ID)] = live
        return live

    def unpublish(self, record: SearchableModel) -> SearchableModel:
        """Remove ``record`` from the live stage, returning its draft version"""
        key = (record.record_type.identifier, record.ID)
        self._tables[Stage.LIVE].pop(key, None)
        return self._tables[Stage.DRAFT].get(key, record)

    def delete(self, record: SearchableModel, stage: Stage = Stage.DRAFT):
        self._tables[stage].pop((record.record_type.identifier, record.ID), None)

    def _base_model(self, record_type: RecordType) -> Type[SearchableModel]:
        classes = self._models.get(record_type.identifier)
        if not classes:
            raise UnknownRecordTypeError(record_type.identifier)
        return classes[0].base_model()
