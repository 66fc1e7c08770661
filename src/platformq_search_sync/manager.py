"""Index definition and full resynchronization"""

import logging
from typing import TYPE_CHECKING, List

from .models import RecordType, Stage

if TYPE_CHECKING:
    from .service import SearchIndexService

logger = logging.getLogger(__name__)


class IndexManager:
    """Creates the index, applies mappings and reindexes every record.

    ``refresh`` walks the whole record store and belongs in a background job.
    It only upserts, so a failed run can be repeated from scratch.
    """

    def __init__(self, service: "SearchIndexService"):
        self.service = service

    def indexed_types(self) -> List[RecordType]:
        return self.service.storage.list_indexable_types()

    async def define(self):
        """Create the index if needed and apply the mapping of every indexed type"""
        client = self.service.client
        index_name = self.service.index_name

        if not await client.index_exists(index_name):
            await client.create_index(index_name)

        record_types = self.indexed_types()
        for record_type in record_types:
            mappings = self.service.mapper.derive_mapping(record_type)
            await client.apply_mapping(index_name, record_type.index_type_name, mappings)

        logger.info(f"Defined index {index_name} for {len(record_types)} record types")

    async def refresh(self) -> int:
        """Reindex every record of every indexed type, returning the number of documents sent"""
        storage = self.service.storage
        queued = 0

        async with self.service.bulk() as session:
            for record_type in self.indexed_types():
                stages = [Stage.DRAFT, Stage.LIVE] if record_type.staged else [Stage.DRAFT]
                for stage in stages:
                    for record in storage.all_records_of(record_type, stage):
                        await self.service.index(record, stage, buffer=session)
                        queued += 1
                logger.debug(f"Queued {record_type.identifier} for reindex")

        logger.info(f"Reindexed {queued} documents into {self.service.index_name}")
        return queued
