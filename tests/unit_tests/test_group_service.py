"""
Unit Tests for the GroupService.
Groups live in a mongomock collection, blobs in the in-memory bucket.
"""

import pytest

from database.schemas import FileMetaSchema
from file_groups.main import create_app
from file_groups.services import GroupService, get_group_service


def upload(file_service, name: str, content: bytes = b"data", content_type: str = "text/plain") -> FileMetaSchema:
    """Store a blob and return the metadata a caller would attach to a group"""
    file_id = file_service.upload(content, name=name, content_type=content_type)
    return FileMetaSchema(id=file_id, name=name, size=len(content), type=content_type)


class TestCreateAndLookup:
    """Test group creation, merging and lookups"""

    def test_create_group(self, group_service, file_service):
        meta = upload(file_service, "a.txt")

        group = group_service.create_or_merge("holidays", [meta])

        assert group.name == "holidays"
        assert group.id
        assert group.files == [meta]
        assert group.groups == []

    def test_create_group_without_files(self, group_service):
        group = group_service.create_or_merge("empty")
        assert group.files == []

    def test_create_accepts_plain_dicts(self, group_service):
        group = group_service.create_or_merge("dicts", [{"id": "f1", "name": "a.txt", "size": 1, "type": "text/plain"}])
        assert group.files[0].id == "f1"

    def test_create_same_name_merges_files_in_order(self, group_service, file_service):
        """Two creations under one name leave one group holding both file lists"""
        first = [upload(file_service, "1.txt"), upload(file_service, "2.txt")]
        second = [upload(file_service, "3.txt")]

        created = group_service.create_or_merge("g", first)
        merged = group_service.create_or_merge("g", second)

        assert merged.id == created.id
        assert len(group_service.list()) == 1
        assert [f.id for f in group_service.get("g").files] == [f.id for f in first + second]

    def test_merge_writes_to_the_group_found_by_name(self, adapter, group_service, file_service):
        """Another group named after the target's id does not receive the merged files"""
        adapter.groups.insert_one({"id": "b-id", "name": "a-id", "files": [], "groups": []})
        adapter.groups.insert_one({"id": "a-id", "name": "alpha", "files": [], "groups": []})
        meta = upload(file_service, "a.txt")

        merged = group_service.create_or_merge("alpha", [meta])

        assert merged.id == "a-id"
        assert merged.files == [meta]
        assert adapter.groups.find_one({"id": "a-id"})["files"] == [meta.model_dump()]
        assert adapter.groups.find_one({"id": "b-id"})["files"] == []

    def test_get_by_id_or_name(self, group_service):
        group = group_service.create_or_merge("by-name")

        assert group_service.get(group.id).name == "by-name"
        assert group_service.get("by-name").id == group.id

    def test_get_missing_returns_none(self, group_service):
        assert group_service.get("nope") is None

    def test_get_does_not_leak_mongo_id(self, adapter, group_service):
        group_service.create_or_merge("clean")
        raw = adapter.groups.find_one({"name": "clean"})

        assert "_id" in raw
        assert "_id" not in group_service.get("clean").model_dump()

    def test_list_returns_all_groups(self, group_service):
        for name in ("a", "b", "c"):
            group_service.create_or_merge(name)

        assert sorted(g.name for g in group_service.list()) == ["a", "b", "c"]

    def test_files_of(self, group_service, file_service):
        meta = upload(file_service, "a.txt")
        group_service.create_or_merge("with-files", [meta])

        assert group_service.files_of("with-files") == [meta]
        assert group_service.files_of("missing") == []


class TestMembership:
    """Test adding and removing files"""

    @pytest.fixture(autouse=True)
    def setup_group(self, group_service, file_service):
        self.groups = group_service
        self.files = file_service
        self.group = group_service.create_or_merge("members")

    def test_add_file(self):
        meta = upload(self.files, "a.txt")

        assert self.groups.add_file(self.group.id, meta) is True
        assert self.groups.files_of(self.group.id) == [meta]

    def test_add_file_twice_is_noop(self):
        meta = upload(self.files, "a.txt")

        assert self.groups.add_file(self.group.id, meta) is True
        assert self.groups.add_file(self.group.id, meta) is False
        assert len(self.groups.files_of(self.group.id)) == 1

    def test_add_file_to_missing_group(self):
        meta = upload(self.files, "a.txt")
        assert self.groups.add_file("missing", meta) is False

    def test_add_files_does_not_check_duplicates(self):
        """Bulk adds can leave the same id twice in a group"""
        meta = upload(self.files, "a.txt")
        self.groups.add_file(self.group.id, meta)

        self.groups.add_files(self.group.id, [meta])

        ids = [f.id for f in self.groups.files_of(self.group.id)]
        assert ids == [meta.id, meta.id]

    def test_add_files_to_missing_group_is_silent(self, adapter):
        meta = upload(self.files, "a.txt")

        assert self.groups.add_files("missing", [meta]) is None
        assert adapter.groups.count_documents({}) == 1

    def test_remove_file_deletes_blob_and_entry(self):
        keep = upload(self.files, "keep.txt")
        drop = upload(self.files, "drop.txt")
        self.groups.add_files(self.group.id, [keep, drop])

        assert self.groups.remove_file(self.group.id, drop.id) is True

        assert self.groups.files_of(self.group.id) == [keep]
        assert not self.files.exists(drop.id)
        assert self.files.exists(keep.id)

    def test_remove_file_from_missing_group(self):
        meta = upload(self.files, "a.txt")

        assert self.groups.remove_file("missing", meta.id) is False
        assert self.files.exists(meta.id)


class TestRename:
    """Test group and file renames"""

    def test_rename_group(self, group_service):
        group = group_service.create_or_merge("old")

        assert group_service.rename(group.id, "new") is True
        assert group_service.get(group.id).name == "new"
        assert group_service.get("old") is None

    def test_rename_group_allows_duplicate_names(self, group_service):
        first = group_service.create_or_merge("one")
        group_service.create_or_merge("two")

        group_service.rename(first.id, "two")
        assert [g.name for g in group_service.list()] == ["two", "two"]

    def test_rename_missing_group(self, group_service):
        assert group_service.rename("missing", "name") is False

    def test_rename_file_updates_blob_and_group_entry(self, group_service, file_service):
        meta = upload(file_service, "photo.jpeg", content_type="image/jpeg")
        group = group_service.create_or_merge("pics", [meta])

        new_name = group_service.rename_file(group.id, meta.id, "sunset")

        assert new_name == "sunset.jpeg"
        assert file_service.get(meta.id).filename == "sunset.jpeg"
        assert group_service.files_of(group.id)[0].name == "sunset.jpeg"

    def test_rename_file_only_touches_matching_entry(self, group_service, file_service):
        a = upload(file_service, "a.txt")
        b = upload(file_service, "b.txt")
        group = group_service.create_or_merge("pair", [a, b])

        group_service.rename_file(group.id, b.id, "bee")

        assert [f.name for f in group_service.files_of(group.id)] == ["a.txt", "bee.txt"]

    def test_direct_file_rename_leaves_group_entry_stale(self, group_service, file_service):
        """Renaming through the file service alone does not update group copies"""
        meta = upload(file_service, "photo.jpeg", content_type="image/jpeg")
        group = group_service.create_or_merge("pics", [meta])

        file_service.rename(meta.id, "sunset")

        assert file_service.get(meta.id).filename == "sunset.jpeg"
        assert group_service.files_of(group.id)[0].name == "photo.jpeg"

    def test_rename_missing_file(self, group_service):
        group = group_service.create_or_merge("g")
        assert group_service.rename_file(group.id, "missing", "x") is None


class TestDelete:
    """Test cascading group deletion"""

    def test_delete_group_removes_files_and_record(self, group_service, file_service):
        metas = [upload(file_service, f"{i}.txt") for i in range(3)]
        group = group_service.create_or_merge("doomed", metas)

        result = group_service.delete(group.id)

        assert result.found is True
        assert result.group_deleted is True
        assert result.deleted_file_ids == [m.id for m in metas]
        assert result.failed_file_ids == []
        assert all(not file_service.exists(m.id) for m in metas)
        assert group_service.get(group.id) is None

    def test_delete_group_by_name(self, group_service, file_service):
        group = group_service.create_or_merge("named", [upload(file_service, "a.txt")])

        result = group_service.delete("named")

        assert result.group_id == group.id
        assert result.group_deleted
        assert group_service.get(group.id) is None

    def test_delete_missing_group(self, group_service):
        result = group_service.delete("missing")

        assert result.found is False
        assert result.group_deleted is False

    def test_delete_empty_group(self, group_service):
        group = group_service.create_or_merge("empty")

        assert group_service.delete(group.id).group_deleted is True
        assert group_service.list() == []

    def test_delete_tolerates_already_deleted_blob(self, group_service, file_service):
        meta = upload(file_service, "a.txt")
        group = group_service.create_or_merge("g", [meta])
        file_service.delete(meta.id)

        assert group_service.delete(group.id).group_deleted is True

    def test_partial_failure_keeps_group_and_reports_ids(self, bucket, group_service, file_service):
        """A failed blob deletion keeps the group record and is reported"""
        ok_before, broken, ok_after = (upload(file_service, f"{i}.txt") for i in range(3))
        group = group_service.create_or_merge("fragile", [ok_before, broken, ok_after])
        bucket.fail_delete_ids.add(broken.id)

        result = group_service.delete(group.id)

        assert result.partial_failure
        assert result.group_deleted is False
        assert result.failed_file_ids == [broken.id]
        assert result.deleted_file_ids == [ok_before.id, ok_after.id]
        assert broken.id in result.errors
        assert group_service.get(group.id) is not None
        assert file_service.exists(broken.id)
        assert not file_service.exists(ok_after.id)

    def test_delete_can_be_retried_after_failure(self, bucket, group_service, file_service):
        meta = upload(file_service, "a.txt")
        group = group_service.create_or_merge("retry", [meta])
        bucket.fail_delete_ids.add(meta.id)
        assert group_service.delete(group.id).group_deleted is False

        bucket.fail_delete_ids.clear()

        assert group_service.delete(group.id).group_deleted is True
        assert not file_service.exists(meta.id)


class TestFactory:
    """Test building the services from one adapter"""

    def test_get_group_service_shares_the_adapter(self, adapter, settings):
        service = get_group_service(adapter, settings)

        assert isinstance(service, GroupService)
        assert service.collection is adapter.groups
        assert service.files.bucket is adapter.bucket
        assert service.files.strict_uploads is settings.strict_uploads

    def test_get_group_service_reuses_given_file_service(self, adapter, settings, file_service):
        assert get_group_service(adapter, settings, file_service).files is file_service

    def test_create_app_builds_services_from_adapter(self, adapter, settings):
        app = create_app(settings=settings, adapter=adapter)

        assert app.state.group_service.files is app.state.file_service
        assert app.state.file_service.bucket is adapter.bucket
        assert app.state.group_service.collection is adapter.groups
