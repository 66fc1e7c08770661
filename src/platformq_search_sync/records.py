"""Record capability surface and a declarative model layer implementing it"""

from abc import ABCMeta, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from .models import RecordType, Stage


class SearchableRecord(metaclass=ABCMeta):
    """Capabilities the indexing pipeline needs from a stored record"""

    @property
    @abstractmethod
    def record_type(self) -> RecordType:
        """The indexable type this record is filed under"""
        pass

    @property
    @abstractmethod
    def record_id(self) -> Any:
        pass

    @property
    @abstractmethod
    def type_identifier(self) -> str:
        """Identifier of the record's concrete type"""
        pass

    @abstractmethod
    def has_field(self, name: str) -> bool:
        pass

    @abstractmethod
    def field_value(self, name: str) -> Any:
        pass

    @abstractmethod
    def parent(self) -> Optional["SearchableRecord"]:
        pass

    def can_public_view(self) -> bool:
        """Whether an anonymous visitor may view this record"""
        return True

    def supports_staging(self) -> bool:
        return self.record_type.staged

    def current_stage(self) -> Stage:
        return Stage.DRAFT

    def ancestry_type_names(self) -> List[str]:
        """Type identifiers from the most general type to the concrete one"""
        return [self.type_identifier]

    def auto_index(self) -> bool:
        """Whether lifecycle events index this record automatically"""
        return True

    def can_show_in_search(self) -> bool:
        if self.has_field("ShowInSearch"):
            return bool(self.field_value("ShowInSearch"))
        return True


class StorageField:
    """Stored field declaration, e.g. ``StorageField("Varchar(255)")``"""

    def __init__(self, storage_type: str, default: Any = None):
        self.name = ""  # Set by metaclass
        self.storage_type = storage_type
        self.default = default

    def __repr__(self):
        return f"<StorageField {self.name}: {self.storage_type}>"


class ModelMeta(ABCMeta):
    """Metaclass collecting field declarations, inherited ones included"""

    def __new__(mcs, name, bases, namespace):
        fields = {}
        for base in reversed(bases):
            fields.update(getattr(base, "_fields", {}))

        for key, value in list(namespace.items()):
            if isinstance(value, StorageField):
                value.name = key
                fields[key] = value
                # Instances carry the value, not the declaration
                del namespace[key]

        namespace["_fields"] = fields
        return super().__new__(mcs, name, bases, namespace)


class SearchableModel(SearchableRecord, metaclass=ModelMeta):
    """Base class for declaratively defined searchable records.

    The first class in a hierarchy that declares ``__searchable__`` owns the
    record type; subclasses are indexed under it and only differ in
    ``ClassName`` and ``ClassNameHierarchy``::

        class Article(SearchableModel):
            __identifier__ = "Article"
            __searchable__ = ("Title", "Content")
            __hierarchical__ = True

            Title = StorageField("Varchar(255)")
            Content = StorageField("HTMLText")
            ParentID = StorageField("Int", default=0)
    """

    __identifier__: Optional[str] = None
    __searchable__: Tuple[str, ...] = ()
    __staged__: bool = False
    __hierarchical__: bool = False

    ID = StorageField("Int")
    Created = StorageField("SS_Datetime")
    LastEdited = StorageField("SS_Datetime")

    def __init__(self, **kwargs):
        for field_name, field_def in self._fields.items():
            value = kwargs.pop(field_name, None)
            if value is None:
                value = field_def.default() if callable(field_def.default) else field_def.default
            setattr(self, field_name, value)

        # Store any extra attributes
        for key, value in kwargs.items():
            setattr(self, key, value)

        self._storage = None
        self._stage = Stage.DRAFT

    @classmethod
    def identifier(cls) -> str:
        return cls.__dict__.get("__identifier__") or f"{cls.__module__}.{cls.__qualname__}"

    @classmethod
    def base_model(cls) -> type:
        """The most general class declaring ``__searchable__``"""
        for klass in reversed(cls.__mro__):
            if (isinstance(klass, ModelMeta) and klass is not SearchableModel
                    and "__searchable__" in klass.__dict__):
                return klass
        return cls

    @classmethod
    def get_record_type(cls) -> RecordType:
        base = cls.base_model()
        return RecordType(
            identifier=base.identifier(),
            searchable_fields=tuple(base.__searchable__),
            hierarchical=base.__hierarchical__ or "ParentID" in base._fields,
            staged=base.__staged__,
        )

    @classmethod
    def storage_schema(cls) -> Dict[str, str]:
        return {name: f.storage_type for name, f in cls._fields.items()}

    @property
    def record_type(self) -> RecordType:
        return type(self).get_record_type()

    @property
    def record_id(self) -> Any:
        return self.ID

    @property
    def type_identifier(self) -> str:
        return type(self).identifier()

    def has_field(self, name: str) -> bool:
        if name in self._fields:
            return True
        return not name.startswith("_") and name in self.__dict__

    def field_value(self, name: str) -> Any:
        return getattr(self, name, None)

    def parent(self) -> Optional[SearchableRecord]:
        parent_id = self.field_value("ParentID")
        if not parent_id or self._storage is None:
            return None
        return self._storage.get(self.record_type, parent_id, stage=self._stage)

    def can_view(self, viewer: Any = None) -> bool:
        """View permission for ``viewer``; ``None`` is the anonymous visitor"""
        return True

    def can_public_view(self) -> bool:
        return self.can_view(None)

    def supports_staging(self) -> bool:
        return type(self).base_model().__staged__

    def current_stage(self) -> Stage:
        return self._stage

    def ancestry_type_names(self) -> List[str]:
        return [
            klass.identifier()
            for klass in reversed(type(self).__mro__)
            if isinstance(klass, ModelMeta) and klass is not SearchableModel
        ]

    def __repr__(self):
        return f"<{type(self).__name__} ID={self.ID} stage={self._stage.value}>"
