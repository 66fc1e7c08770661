"""
Tests for document construction
"""

from platformq_search_sync import DocumentBuilder, SchemaMapper, Stage, StorageField

from .conftest import Article, NewsPage, Page


def make_builder(storage):
    return DocumentBuilder(SchemaMapper(storage))


class TestDocumentBuilder:
    """Test DocumentBuilder.build"""

    def test_hierarchical_record(self, storage, article_tree):
        _, child = article_tree

        document = make_builder(storage).build(child, Stage.LIVE)

        assert document.id == "Article_42_Live"
        assert document.type_name == "Article"
        assert document.stage == Stage.LIVE
        assert document.fields["Title"] == "Indexing records"
        assert document.fields["ParentID"] == 7
        assert document.fields["ParentsHierarchy"] == [7]
        assert document.fields["ClassName"] == "Article"
        assert document.fields["ClassNameHierarchy"] == ["Article"]
        assert document.fields["PublicView"] is True

    def test_unstaged_record_tagged_with_both_stages(self, storage, article_tree):
        root, _ = article_tree

        document = make_builder(storage).build(root, Stage.DRAFT)

        assert document.fields["StageTag"] == ["Stage", "Live"]
        assert document.fields["ParentsHierarchy"] == []

    def test_staged_record_tagged_with_its_stage(self, storage):
        page = storage.save(Page(Title="About"))
        builder = make_builder(storage)

        assert builder.build(page, Stage.DRAFT).fields["StageTag"] == ["Stage"]
        assert builder.build(page, Stage.LIVE).fields["StageTag"] == ["Live"]

    def test_only_mapped_fields_copied(self, storage):
        page = storage.save(NewsPage(Title="Launch", Author="Jo"))

        document = make_builder(storage).build(page, Stage.DRAFT)

        assert "Author" not in document.fields
        assert document.fields["ShowInSearch"] == 1
        assert "ParentsHierarchy" not in document.fields

    def test_subclass_indexed_under_base_type(self, storage):
        page = storage.save(NewsPage(Title="Launch"))

        document = make_builder(storage).build(page, Stage.LIVE)

        assert document.type_name == "App_Pages_Page"
        assert document.id == f"App_Pages_Page_{page.ID}_Live"
        assert document.fields["ClassName"] == "App\\Pages\\NewsPage"
        assert document.fields["ClassNameHierarchy"] == ["App_Pages_Page", "App_Pages_NewsPage"]

    def test_public_view_reflects_anonymous_access(self, storage):
        page = storage.save(Page(Title="Members", MembersOnly=1))

        document = make_builder(storage).build(page, Stage.LIVE)

        assert document.fields["PublicView"] is False

    def test_build_leaves_record_untouched(self, storage, article_tree):
        _, child = article_tree
        before = dict(vars(child))

        make_builder(storage).build(child, Stage.DRAFT)

        assert vars(child) == before

    def test_document_mutator(self, storage, article_tree):
        _, child = article_tree
        builder = make_builder(storage)

        def add_summary(record, stage, fields):
            fields["Summary"] = f"{record.Title} ({stage.value})"
            return fields

        builder.register_mutator(add_summary)

        assert builder.build(child, Stage.LIVE).fields["Summary"] == "Indexing records (Live)"

    def test_boolean_indexed_as_integer(self, storage):
        page = storage.save(Page(Title="About", ShowInSearch=True, MembersOnly=False))

        document = make_builder(storage).build(page, Stage.LIVE)

        assert document.fields["ShowInSearch"] == 1
        assert type(document.fields["ShowInSearch"]) is int
        assert document.fields["PublicView"] is True

    def test_parent_field_on_subclass_ignored(self, storage):
        class NestedPage(Page):
            __identifier__ = "App\\Pages\\NestedPage"

            ParentID = StorageField("Int", default=0)

        storage.save(Page(ID=1, Title="Root"))
        page = storage.save(NestedPage(ID=2, Title="Child", ParentID=1))

        document = make_builder(storage).build(page, Stage.DRAFT)

        assert document.fields["ParentID"] == 1
        assert "ParentsHierarchy" not in document.fields


class TestParentsHierarchy:
    """Test ancestor resolution"""

    def test_nearest_parent_first(self, storage):
        storage.save(Article(ID=1, Title="Root"))
        storage.save(Article(ID=2, Title="Section", ParentID=1))
        leaf = storage.save(Article(ID=3, Title="Leaf", ParentID=2))

        assert make_builder(storage).parents_hierarchy(leaf) == [2, 1]

    def test_missing_parent_ends_walk(self, storage):
        orphan = storage.save(Article(ID=5, Title="Orphan", ParentID=99))

        assert make_builder(storage).parents_hierarchy(orphan) == [99]

    def test_self_parent_terminates(self, storage):
        record = storage.save(Article(ID=5, Title="Loop", ParentID=5))

        assert make_builder(storage).parents_hierarchy(record) == []

    def test_cycle_terminates(self, storage):
        first = storage.save(Article(ID=1, Title="A", ParentID=2))
        storage.save(Article(ID=2, Title="B", ParentID=1))

        assert make_builder(storage).parents_hierarchy(first) == [2]
