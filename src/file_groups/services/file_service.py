"""
File service for blob operations against a GridFS bucket.
Each blob is keyed by a generated uuid4 used as the GridFS `_id`.
"""

import logging
import os
import uuid
from typing import Iterable, List, Optional

from gridfs import GridFSBucket
from gridfs.errors import NoFile
from pymongo.errors import PyMongoError

from database.schemas import FileMetaSchema, StoredFileSchema

logger = logging.getLogger(__name__)

# Payloads are written to the upload stream in segments of this size
UPLOAD_SEGMENT_SIZE = 1024 * 1024 * 16
# Hard cap on list results, there is no pagination cursor
LIST_LIMIT = 100


class FileService:
    """Service for storing and retrieving blobs with attached metadata"""

    def __init__(self, bucket: GridFSBucket, strict_uploads: bool = False,
                 segment_size: int = UPLOAD_SEGMENT_SIZE):
        self.bucket = bucket
        self.strict_uploads = strict_uploads
        self.segment_size = segment_size

    def _find_one(self, file_id: str):
        cursor = self.bucket.find({"_id": file_id}, limit=1)
        return next(iter(cursor), None)

    @staticmethod
    def _to_meta(grid_out) -> FileMetaSchema:
        meta = grid_out.metadata or {}
        return FileMetaSchema(
            id=str(grid_out._id),
            name=meta.get('name', grid_out.filename),
            size=meta.get('size', grid_out.length),
            type=meta.get('type') or 'application/octet-stream',
        )

    def upload(self, data: bytes, name: str, content_type: Optional[str] = None,
               size: Optional[int] = None) -> str:
        """Store a payload and return its generated identifier.

        Write failures are logged and the partial upload aborted. They are only
        raised when the service runs with ``strict_uploads``; otherwise the
        caller receives an id for a blob that may not exist.
        """
        file_id = str(uuid.uuid4())
        metadata = {
            "name": name,
            "size": size if size is not None else len(data),
            "type": content_type or "application/octet-stream",
        }

        stream = self.bucket.open_upload_stream_with_id(file_id, file_id, metadata=metadata)
        try:
            for offset in range(0, len(data), self.segment_size):
                stream.write(data[offset:offset + self.segment_size])
            stream.close()
            logger.info(f"File uploaded: {name} {metadata['type']} {metadata['size']}")
        except PyMongoError as e:
            logger.error(f"Error uploading file {name} as {file_id}: {e}")
            stream.abort()
            if self.strict_uploads:
                raise

        return file_id

    def get(self, file_id: str) -> Optional[StoredFileSchema]:
        """Read a blob whole into memory, or None when no blob matches"""
        grid_out = self._find_one(file_id)
        if grid_out is None:
            return None

        try:
            data = self.bucket.open_download_stream(grid_out._id).read()
        except PyMongoError as e:
            logger.error(f"Error reading file {file_id}: {e}")
            raise

        meta = self._to_meta(grid_out)
        return StoredFileSchema(**meta.model_dump(), filename=grid_out.filename, data=data)

    def get_metadata(self, file_id: str) -> Optional[FileMetaSchema]:
        grid_out = self._find_one(file_id)
        if grid_out is None:
            return None
        return self._to_meta(grid_out)

    def exists(self, file_id: str) -> bool:
        return self._find_one(file_id) is not None

    def list(self) -> List[FileMetaSchema]:
        """Metadata of stored files, at most LIST_LIMIT entries"""
        return [self._to_meta(grid_out) for grid_out in self.bucket.find({}, limit=LIST_LIMIT)]

    def delete(self, file_id: str) -> None:
        """Remove a blob and its chunks, no-op when absent"""
        grid_out = self._find_one(file_id)
        logger.info(f"Deleting file {file_id} (found={grid_out is not None})")
        if grid_out is None:
            return

        try:
            self.bucket.delete(grid_out._id)
        except NoFile:
            # Removed concurrently between lookup and delete
            logger.warning(f"File {file_id} vanished before delete")

    def delete_many(self, file_ids: Iterable[str]) -> List[str]:
        """Delete matching blobs one at a time, returns the ids that were deleted"""
        ids = list(file_ids)
        if not ids:
            return []

        deleted = []
        for grid_out in list(self.bucket.find({"_id": {"$in": ids}}, limit=LIST_LIMIT)):
            self.bucket.delete(grid_out._id)
            deleted.append(str(grid_out._id))

        logger.info(f"Deleted {len(deleted)} of {len(ids)} requested files")
        return deleted

    def rename(self, file_id: str, new_base_name: str) -> Optional[str]:
        """Rename the stored filename, keeping the original extension.

        Only the bucket filename changes; ``metadata.name`` keeps the name the
        file was uploaded with.
        """
        grid_out = self._find_one(file_id)
        if grid_out is None:
            return None

        original_name = (grid_out.metadata or {}).get('name') or grid_out.filename
        extension = os.path.splitext(original_name)[1]
        new_name = f"{new_base_name}{extension}"

        self.bucket.rename(grid_out._id, new_name)
        logger.info(f"Renamed file {file_id} to {new_name}")
        return new_name


def get_file_service(adapter=None, settings=None) -> FileService:
    """Build a file service on the adapter's bucket"""
    if settings is None:
        from file_groups.config.settings import get_settings
        settings = get_settings()
    if adapter is None:
        from database.mongo_adapter import get_mongo_adapter
        adapter = get_mongo_adapter(settings)
    return FileService(adapter.bucket, strict_uploads=settings.strict_uploads)
