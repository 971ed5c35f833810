"""
Group service for named collections of file references.
Groups embed a copy of each file's metadata; blob removal and renames are
delegated to the FileService.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Union

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from database.schemas import (
    FileMetaSchema,
    GroupDeleteResult,
    GroupSchema,
    to_file_meta,
    validate_document,
)
from file_groups.services.file_service import FileService, get_file_service
from file_groups.utils.decorators import log_execution_time

logger = logging.getLogger(__name__)

FileLike = Union[FileMetaSchema, Dict[str, Any]]

_NO_MONGO_ID = {"_id": 0}


class GroupService:
    """Service for managing groups and their embedded file metadata"""

    def __init__(self, collection: Collection, file_service: FileService):
        self.collection = collection
        self.files = file_service

    def _find_raw(self, identifier: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one(
            {"$or": [{"id": identifier}, {"name": identifier}]},
            projection=_NO_MONGO_ID,
        )

    def _push_files(self, group_id: str, entries: List[Dict[str, Any]]) -> None:
        if not entries:
            return
        for entry in entries:
            validate_document('file_meta', entry)
        self.collection.update_one({"id": group_id}, {"$push": {"files": {"$each": entries}}})

    def create_or_merge(self, name: str, files: Iterable[FileLike] = ()) -> GroupSchema:
        """Create a group, or append the files to the group already using this name.

        Lookup by name is a find-or-create: two concurrent creations under the
        same name can both insert.
        """
        entries = [to_file_meta(f) for f in files]

        existing = self.collection.find_one({"name": name}, projection=_NO_MONGO_ID)
        if existing:
            self._push_files(existing["id"], entries)
            merged = self.collection.find_one({"id": existing["id"]}, projection=_NO_MONGO_ID)
            logger.info(f"Merged {len(entries)} files into existing group {name} ({existing['id']})")
            return GroupSchema(**(merged or existing))

        group = {
            "id": str(uuid.uuid4()),
            "name": name,
            "files": entries,
            "groups": [],
        }
        validate_document('groups', group)

        try:
            # insert_one mutates its argument with an _id
            self.collection.insert_one(dict(group))
        except PyMongoError as e:
            logger.error(f"Error creating group {name}: {e}")
            raise

        logger.info(f"Created group {name} with ID: {group['id']}")
        return GroupSchema(**group)

    def get(self, identifier: str) -> Optional[GroupSchema]:
        """Look a group up by id or by name, first match wins"""
        group = self._find_raw(identifier)
        if not group:
            return None
        return GroupSchema(**group)

    def list(self) -> List[GroupSchema]:
        return [GroupSchema(**group) for group in self.collection.find({}, projection=_NO_MONGO_ID)]

    def files_of(self, group_name: str) -> List[FileMetaSchema]:
        group = self.get(group_name)
        if not group:
            return []
        return group.files

    @log_execution_time
    def delete(self, group_id: str) -> GroupDeleteResult:
        """Delete a group and all of its files.

        Blobs are deleted one at a time. The group record is only removed when
        every blob deletion succeeded; otherwise it is kept and the failed ids
        are reported.
        """
        group = self._find_raw(group_id)
        if not group:
            return GroupDeleteResult(group_id=group_id, found=False)

        result = GroupDeleteResult(group_id=group["id"])
        for entry in group.get("files", []):
            file_id = entry["id"]
            try:
                self.files.delete(file_id)
                result.deleted_file_ids.append(file_id)
            except PyMongoError as e:
                logger.error(f"Error deleting file {file_id} of group {group['id']}: {e}")
                result.failed_file_ids.append(file_id)
                result.errors[file_id] = str(e)

        if result.failed_file_ids:
            logger.warning(
                f"Group {group['id']} kept: {len(result.failed_file_ids)} of "
                f"{len(group.get('files', []))} file deletions failed"
            )
            return result

        self.collection.delete_one({"id": group["id"]})
        result.group_deleted = True
        logger.info(f"Deleted group {group['id']} and {len(result.deleted_file_ids)} files")
        return result

    def rename(self, group_id: str, name: str) -> bool:
        """Set the group's name, without any uniqueness check"""
        result = self.collection.update_one({"id": group_id}, {"$set": {"name": name}})
        return result.matched_count > 0

    def remove_file(self, group_id: str, file_id: str) -> bool:
        """Delete the blob and drop its entry; False when the group is missing"""
        group = self._find_raw(group_id)
        if not group:
            return False

        self.files.delete(file_id)
        self.collection.update_one({"id": group["id"]}, {"$pull": {"files": {"id": file_id}}})
        return True

    def add_file(self, group_id: str, file: FileLike) -> bool:
        """Append one entry; False when the group is missing or already has this id"""
        group = self._find_raw(group_id)
        if not group:
            return False

        entry = to_file_meta(file)
        if any(f["id"] == entry["id"] for f in group.get("files", [])):
            return False

        validate_document('file_meta', entry)
        self.collection.update_one({"id": group["id"]}, {"$push": {"files": entry}})
        return True

    def add_files(self, group_id: str, files: Iterable[FileLike]) -> None:
        """Append entries in bulk. Duplicate ids are not checked."""
        group = self._find_raw(group_id)
        if not group:
            return

        self._push_files(group["id"], [to_file_meta(f) for f in files])

    def rename_file(self, group_id: str, file_id: str, name: str) -> Optional[str]:
        """Rename the blob and set the group's entry name to the derived name"""
        new_name = self.files.rename(file_id, name)
        if new_name is None:
            return None

        self.collection.update_one(
            {"id": group_id, "files.id": file_id},
            {"$set": {"files.$.name": new_name}},
        )
        return new_name


def get_group_service(adapter=None, settings=None, file_service=None) -> GroupService:
    """Build a group service sharing one adapter with its file service"""
    if settings is None:
        from file_groups.config.settings import get_settings
        settings = get_settings()
    if adapter is None:
        from database.mongo_adapter import get_mongo_adapter
        adapter = get_mongo_adapter(settings)
    return GroupService(adapter.groups, file_service or get_file_service(adapter, settings))
