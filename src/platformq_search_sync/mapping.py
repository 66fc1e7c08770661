"""Derives search index field mappings from record storage schemas"""

import logging
from dataclasses import replace
from typing import Callable, Dict, List

from .models import DATE_FORMAT, FieldMapping, FieldType, RecordType
from .storage import StorageBackend

logger = logging.getLogger(__name__)

MappingMutator = Callable[[RecordType, Dict[str, FieldMapping]], Dict[str, FieldMapping]]

# Storage type (parameters stripped) -> index value type
STORAGE_TYPE_MAPPINGS = {
    "Boolean": FieldType.INTEGER,
    "Decimal": FieldType.DOUBLE,
    "Double": FieldType.DOUBLE,
    "Enum": FieldType.STRING,
    "Float": FieldType.FLOAT,
    "HTMLText": FieldType.STRING,
    "HTMLVarchar": FieldType.STRING,
    "Int": FieldType.INTEGER,
    "SS_Datetime": FieldType.DATE,
    "Datetime": FieldType.DATE,
    "DBDatetime": FieldType.DATE,
    "Date": FieldType.DATE,
    "Text": FieldType.STRING,
    "Varchar": FieldType.STRING,
    "Year": FieldType.INTEGER,
    "MultiValueField": FieldType.STRING,
}

SYNTHETIC_FIELDS = (
    ("LastEdited", FieldType.DATE),
    ("Created", FieldType.DATE),
    ("ID", FieldType.INTEGER),
    ("ParentID", FieldType.INTEGER),
    ("Sort", FieldType.INTEGER),
    ("Name", FieldType.STRING),
    ("MenuTitle", FieldType.STRING),
    ("ShowInSearch", FieldType.INTEGER),
    ("ClassName", FieldType.STRING),
    ("ClassNameHierarchy", FieldType.STRING),
    ("StageTag", FieldType.KEYWORD),
    ("PublicView", FieldType.BOOLEAN),
)


def base_storage_type(storage_type: str) -> str:
    """``Varchar(255)`` -> ``Varchar``"""
    return storage_type.split("(", 1)[0].strip()


class SchemaMapper:
    """Builds the field mapping of each record type once and caches it"""

    def __init__(self, storage: StorageBackend, mutators: List[MappingMutator] = None):
        self.storage = storage
        self.mutators = list(mutators or [])
        self._cache: Dict[RecordType, Dict[str, FieldMapping]] = {}

    def register_mutator(self, mutator: MappingMutator):
        """Add a hook that may append or override entries before they are finalized"""
        self.mutators.append(mutator)
        self.clear_cache()

    def clear_cache(self):
        self._cache.clear()

    def derive_mapping(self, record_type: RecordType) -> Dict[str, FieldMapping]:
        """Mapping of ``record_type``; callers get their own copy of the cached entries"""
        if record_type not in self._cache:
            self._cache[record_type] = self._build_mapping(record_type)
        return {name: replace(mapping) for name, mapping in self._cache[record_type].items()}

    def _build_mapping(self, record_type: RecordType) -> Dict[str, FieldMapping]:
        schema = self.storage.storage_schema(record_type)
        result: Dict[str, FieldMapping] = {}

        for name in record_type.searchable_fields:
            mapping = FieldMapping(name=name)
            if name in schema:
                storage_type = base_storage_type(schema[name])
                mapping.field_type = STORAGE_TYPE_MAPPINGS.get(storage_type)
                if mapping.field_type is None:
                    logger.debug(f"No index type for {record_type.identifier}.{name} ({storage_type}), using engine default")
            else:
                logger.debug(f"{record_type.identifier}.{name} is not a stored field, using engine default")
            result[name] = mapping

        for name, field_type in SYNTHETIC_FIELDS:
            result[name] = FieldMapping(name=name, field_type=field_type)

        if record_type.hierarchical:
            result["ParentsHierarchy"] = FieldMapping(name="ParentsHierarchy", field_type=FieldType.LONG)

        for name, mapping in result.items():
            if mapping.field_type == FieldType.DATE:
                mapping.format = DATE_FORMAT

        content = result.get("Content")
        if content is not None and content.field_type is not None:
            content.store = False

        for mutator in self.mutators:
            result = mutator(record_type, result)

        return result
