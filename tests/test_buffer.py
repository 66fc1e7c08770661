"""
Tests for the bulk buffer
"""

from platformq_search_sync import BulkBuffer, Document, Stage


def doc(type_name, record_id, stage=Stage.DRAFT):
    return Document(id=Document.make_id(type_name, record_id, stage), stage=stage, type_name=type_name)


class TestBulkBuffer:
    """Test BulkBuffer"""

    def test_inactive_until_started(self):
        buffer = BulkBuffer()
        assert not buffer.is_active()

        buffer.start()
        assert buffer.is_active()

    def test_flush_groups_by_type_in_order(self):
        buffer = BulkBuffer()
        buffer.start()
        buffer.add("Article", doc("Article", 1))
        buffer.add("Page", doc("Page", 1))
        buffer.add("Article", doc("Article", 2))

        batches = buffer.flush()

        assert list(batches) == ["Article", "Page"]
        assert [d.id for d in batches["Article"]] == ["Article_1_Stage", "Article_2_Stage"]
        assert buffer.pending_count() == 0
        assert not buffer.is_active()

    def test_restore_puts_batches_ahead(self):
        buffer = BulkBuffer()
        buffer.add("Article", doc("Article", 1))
        batches = buffer.flush()
        buffer.add("Article", doc("Article", 2))
        buffer.add("Page", doc("Page", 1))

        buffer.restore(batches)

        assert buffer.pending_count() == 3
        remaining = buffer.flush()
        assert [d.id for d in remaining["Article"]] == ["Article_1_Stage", "Article_2_Stage"]
        assert list(remaining) == ["Article", "Page"]

    def test_add_replaces_pending_copy(self):
        buffer = BulkBuffer()
        first = doc("Article", 1)
        second = doc("Article", 1)

        buffer.add("Article", first)
        buffer.add("Article", second)

        assert buffer.pending_count() == 1
        assert buffer.flush()["Article"][0] is second

    def test_discard(self):
        buffer = BulkBuffer()
        buffer.add("Article", doc("Article", 1))
        buffer.add("Article", doc("Article", 1, Stage.LIVE))

        assert buffer.discard("Article", "Article_1_Live") == 1
        assert buffer.discard("Page", "Page_1_Live") == 0
        assert [d.id for d in buffer.flush()["Article"]] == ["Article_1_Stage"]
