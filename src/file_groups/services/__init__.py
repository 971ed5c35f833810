"""
File Groups services

Blob storage on a GridFS bucket and named groups of file metadata stored as
documents. Both services take their database handles at construction.
"""

from .file_service import FileService, get_file_service, LIST_LIMIT, UPLOAD_SEGMENT_SIZE
from .group_service import GroupService, get_group_service

__all__ = [
    'FileService', 'get_file_service',
    'GroupService', 'get_group_service',
    'LIST_LIMIT', 'UPLOAD_SEGMENT_SIZE'
]
