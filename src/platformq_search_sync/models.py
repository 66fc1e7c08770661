"""Core data model for the record-to-document indexing pipeline"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


DATE_FORMAT = "yyyy-MM-dd HH:mm:ss"

_NAMESPACE_SEPARATORS = re.compile(r"[\\./:]")


class Stage(Enum):
    """Versioning stages a record can exist in"""
    DRAFT = "Stage"
    LIVE = "Live"


class FieldType(Enum):
    """Value types understood by the search index"""
    STRING = "string"
    INTEGER = "integer"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    DATE = "date"
    KEYWORD = "keyword"


def index_type_name(identifier: str) -> str:
    """Normalize a type identifier into an engine-safe token.

    ``app.pages.Article`` and ``App\\Pages\\Article`` become
    ``app_pages_Article`` and ``App_Pages_Article``.
    """
    return _NAMESPACE_SEPARATORS.sub("_", identifier)


@dataclass
class FieldMapping:
    """Declared value type and storage hints for one index field"""
    name: str
    field_type: Optional[FieldType] = None
    store: Optional[bool] = None
    format: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Render the mapping entry, omitting unset hints"""
        entry = {}
        if self.field_type is not None:
            entry["type"] = self.field_type.value
        if self.format is not None:
            entry["format"] = self.format
        if self.store is not None:
            entry["store"] = self.store
        return entry


@dataclass(frozen=True)
class RecordType:
    """A class of indexable records"""
    identifier: str
    searchable_fields: Tuple[str, ...] = ()
    hierarchical: bool = False
    staged: bool = False

    @property
    def index_type_name(self) -> str:
        return index_type_name(self.identifier)


@dataclass
class Document:
    """Point-in-time representation of one record at one stage.

    ``fields`` keeps insertion order for readability only; neither the engine
    nor mapping application depends on it.
    """
    id: str
    stage: Stage
    type_name: str
    fields: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def make_id(type_name: str, record_id: Any, stage: Stage) -> str:
        return f"{type_name}_{record_id}_{stage.value}"

    def to_source(self) -> Dict[str, Any]:
        """Document body as sent to the engine"""
        source = {}
        for name, value in self.fields.items():
            if isinstance(value, list):
                value = [_serialize(v) for v in value]
            else:
                value = _serialize(value)
            source[name] = value
        return source


def _serialize(value: Any) -> Any:
    if isinstance(value, Stage):
        return value.value
    if hasattr(value, "strftime"):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return value
