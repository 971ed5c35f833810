"""
Document schemas for the file groups database.
Pydantic models describe stored documents, JSON schemas validate them at runtime.
"""

from typing import Dict, Any, List, Optional
import jsonschema
from pydantic import BaseModel, ConfigDict, Field


class FileMetaSchema(BaseModel):
    """Descriptive record of a stored blob, embedded in group documents"""
    id: str = Field(..., description="Blob identifier (uuid4)")
    name: str = Field(..., description="File name as uploaded")
    size: int = Field(..., ge=0, description="Payload size in bytes")
    type: str = Field("application/octet-stream", description="MIME type")

    model_config = ConfigDict(extra="ignore")


class StoredFileSchema(FileMetaSchema):
    """A blob read back whole from the bucket"""
    filename: str = Field(..., description="Current stored filename in the bucket")
    data: bytes = Field(..., description="Raw payload")


class GroupSchema(BaseModel):
    """Schema for group documents"""
    id: str = Field(..., description="Unique group identifier (uuid4)")
    name: str = Field(..., min_length=1, description="User supplied group name")
    files: List[FileMetaSchema] = Field(default_factory=list, description="Embedded file metadata, insertion order")
    groups: List[Dict[str, Any]] = Field(default_factory=list, description="Nested groups, never populated")

    model_config = ConfigDict(extra="ignore")


class GroupDeleteResult(BaseModel):
    """Outcome of a cascading group delete"""
    group_id: str
    found: bool = True
    group_deleted: bool = False
    deleted_file_ids: List[str] = Field(default_factory=list)
    failed_file_ids: List[str] = Field(default_factory=list)
    errors: Dict[str, str] = Field(default_factory=dict, description="Error message per failed file id")

    @property
    def partial_failure(self) -> bool:
        return bool(self.failed_file_ids)


# JSON Schema validators (for runtime validation)
FILE_META_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string"},
        "size": {"type": "integer", "minimum": 0},
        "type": {"type": "string"}
    },
    "required": ["id", "name", "size", "type"]
}

GROUP_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string", "minLength": 1},
        "files": {"type": "array", "items": FILE_META_JSON_SCHEMA},
        "groups": {"type": "array"}
    },
    "required": ["id", "name", "files", "groups"],
    "additionalProperties": False
}


def validate_file_meta_document(document: Dict[str, Any]) -> None:
    """Validate an embedded file metadata entry against the schema"""
    jsonschema.validate(document, FILE_META_JSON_SCHEMA)


def validate_group_document(document: Dict[str, Any]) -> None:
    """Validate a group document against the schema"""
    jsonschema.validate(document, GROUP_JSON_SCHEMA)


# Validator mapping for easy access
DOCUMENT_VALIDATORS = {
    'groups': validate_group_document,
    'file_meta': validate_file_meta_document
}


def validate_document(collection: str, document: Dict[str, Any]) -> None:
    """Validate a document for the given collection, raising ValueError on mismatch"""
    validator = DOCUMENT_VALIDATORS.get(collection)
    if validator is None:
        return
    try:
        validator(document)
    except jsonschema.ValidationError as e:
        raise ValueError(f"Document validation failed: {e.message}") from e


def to_file_meta(file: Any) -> Optional[Dict[str, Any]]:
    """Coerce a FileMetaSchema, a dict or a StoredFileSchema into a plain metadata dict"""
    if file is None:
        return None
    if isinstance(file, BaseModel):
        file = file.model_dump()
    return {
        "id": file["id"],
        "name": file["name"],
        "size": int(file["size"]),
        "type": file.get("type") or "application/octet-stream",
    }
