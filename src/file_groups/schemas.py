####################################
# --- Request/response schemas --- #
####################################

from typing import List

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator
)

from database.schemas import FileMetaSchema, GroupSchema, GroupDeleteResult

MAX_LIST_FILES = 100


class PostFileResponse(BaseModel):
    """Response model for `POST /v1/files`."""
    id: str = Field(description="Identifier of the stored blob.")
    name: str
    size: int
    type: str
    message: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "0b9f9c1e-2d8f-4f0c-9a57-3f4e0f1a2b3c",
                "name": "holiday.png",
                "size": 512,
                "type": "image/png",
                "message": "File uploaded",
            }
        }
    )


class GetFilesResponse(BaseModel):
    """Response model for `GET /v1/files`. Capped, there is no page token."""
    files: List[FileMetaSchema] = Field(max_length=MAX_LIST_FILES)


class RenameRequest(BaseModel):
    """Body of the rename endpoints."""
    name: str = Field(description="New name. For files, the base name without extension.")

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v


class RenameFileResponse(BaseModel):
    """Response model for the file rename endpoints."""
    id: str
    filename: str = Field(description="Stored filename after the rename, extension included.")


class GetGroupsResponse(BaseModel):
    """Response model for `GET /v1/groups`."""
    groups: List[GroupSchema]


class GroupFilesResponse(BaseModel):
    """Response model for `GET /v1/groups/{identifier}/files`."""
    files: List[FileMetaSchema]


class AddFileResponse(BaseModel):
    """Response model for `POST /v1/groups/{group_id}/files`."""
    added: bool
    file: FileMetaSchema


class DeleteGroupResponse(GroupDeleteResult):
    """Response model for `DELETE /v1/groups/{group_id}`."""
