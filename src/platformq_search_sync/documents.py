"""Builds index documents from records"""

import logging
from typing import Any, Callable, Dict, List

from .mapping import SchemaMapper
from .models import Document, FieldType, Stage, index_type_name
from .records import SearchableRecord

logger = logging.getLogger(__name__)

DocumentMutator = Callable[[SearchableRecord, Stage, Dict[str, Any]], Dict[str, Any]]

NUMERIC_TYPES = (FieldType.INTEGER, FieldType.LONG)


class DocumentBuilder:
    """Turns a record snapshot into the document for one stage.

    ``build`` reads the record and never writes to it.
    """

    def __init__(self, mapper: SchemaMapper, mutators: List[DocumentMutator] = None):
        self.mapper = mapper
        self.mutators = list(mutators or [])

    def register_mutator(self, mutator: DocumentMutator):
        """Add a hook that may change the field set before the document is finalized"""
        self.mutators.append(mutator)

    @staticmethod
    def document_id(record: SearchableRecord, stage: Stage) -> str:
        return Document.make_id(record.record_type.index_type_name, record.record_id, stage)

    def build(self, record: SearchableRecord, stage: Stage) -> Document:
        record_type = record.record_type
        fields: Dict[str, Any] = {}

        for name, mapping in self.mapper.derive_mapping(record_type).items():
            if record.has_field(name):
                value = record.field_value(name)
                # Boolean storage is indexed as a number
                if isinstance(value, bool) and mapping.field_type in NUMERIC_TYPES:
                    value = int(value)
                fields[name] = value

        if record.supports_staging():
            fields["StageTag"] = [stage.value]
        else:
            fields["StageTag"] = [Stage.DRAFT.value, Stage.LIVE.value]

        fields["PublicView"] = record.can_public_view()

        if record_type.hierarchical:
            fields["ParentsHierarchy"] = self.parents_hierarchy(record)

        if "ClassNameHierarchy" not in fields:
            classes = record.ancestry_type_names() or [record.type_identifier]
            fields["ClassNameHierarchy"] = [index_type_name(name) for name in classes]

        if "ClassName" not in fields:
            fields["ClassName"] = record.type_identifier

        for mutator in self.mutators:
            fields = mutator(record, stage, fields)

        return Document(
            id=self.document_id(record, stage),
            stage=stage,
            type_name=record_type.index_type_name,
            fields=fields,
        )

    def parents_hierarchy(self, record: SearchableRecord) -> List[int]:
        """IDs of the record's ancestors, nearest parent first"""
        parents = []
        seen = {record.record_id}
        current = record

        while current is not None and current.field_value("ParentID"):
            parent_id = int(current.field_value("ParentID"))
            if parent_id in seen:
                logger.warning(
                    f"Parent cycle at {record.record_type.identifier}#{current.record_id} "
                    f"-> {parent_id}, truncating ParentsHierarchy of #{record.record_id}"
                )
                break
            parents.append(parent_id)
            seen.add(parent_id)
            current = current.parent()

        return parents
