import logging
from typing import List, Optional

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Path,
    Response,
    UploadFile,
    status
)
from fastapi.responses import JSONResponse

from database.schemas import FileMetaSchema, GroupSchema
from file_groups.dependencies import get_files, get_groups
from file_groups.schemas import (
    AddFileResponse,
    DeleteGroupResponse,
    GetGroupsResponse,
    GroupFilesResponse,
    RenameFileResponse,
    RenameRequest,
)
from file_groups.services import FileService, GroupService

logger = logging.getLogger(__name__)

router = APIRouter()


async def _store_upload(files: FileService, upload: UploadFile) -> FileMetaSchema:
    """Persist an uploaded file and return the metadata to embed in a group."""
    data = await upload.read()
    name = upload.filename or "unnamed"
    content_type = upload.content_type or "application/octet-stream"
    file_id = files.upload(data, name=name, content_type=content_type, size=len(data))
    return FileMetaSchema(id=file_id, name=name, size=len(data), type=content_type)


def _group_or_404(groups: GroupService, identifier: str) -> GroupSchema:
    group = groups.get(identifier)
    if group is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group not found: {identifier}")
    return group


@router.post("/groups", response_model=GroupSchema, status_code=status.HTTP_201_CREATED)
async def create_group(
    name: str = Form(..., min_length=1),
    uploads: Optional[List[UploadFile]] = File(None),
    files: FileService = Depends(get_files),
    groups: GroupService = Depends(get_groups),
):
    """
    Create a group from uploaded files.

    When a group with this name already exists the files are appended to it.
    """
    metas = [await _store_upload(files, upload) for upload in uploads or []]
    return groups.create_or_merge(name, metas)


@router.get("/groups", response_model=GetGroupsResponse)
async def list_groups(groups: GroupService = Depends(get_groups)):
    return GetGroupsResponse(groups=groups.list())


@router.get("/groups/{identifier}", response_model=GroupSchema)
async def get_group(
    identifier: str = Path(..., description="Group id or name"),
    groups: GroupService = Depends(get_groups),
):
    return _group_or_404(groups, identifier)


@router.get("/groups/{identifier}/files", response_model=GroupFilesResponse)
async def get_group_files(
    identifier: str = Path(..., description="Group id or name"),
    groups: GroupService = Depends(get_groups),
):
    """Embedded file metadata of a group, empty when the group is missing."""
    return GroupFilesResponse(files=groups.files_of(identifier))


@router.patch("/groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def rename_group(
    body: RenameRequest,
    group_id: str = Path(...),
    groups: GroupService = Depends(get_groups),
):
    if not groups.rename(group_id, body.name):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group not found: {group_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/groups/{group_id}",
    response_model=DeleteGroupResponse,
    responses={
        status.HTTP_404_NOT_FOUND: {"description": "Group not found"},
        status.HTTP_409_CONFLICT: {"model": DeleteGroupResponse, "description": "Some files could not be deleted"},
    },
)
async def delete_group(
    group_id: str = Path(...),
    groups: GroupService = Depends(get_groups),
):
    """
    Delete a group and every file in it.

    If any file deletion fails the group is kept and the response lists the
    failed file ids.
    """
    result = groups.delete(group_id)
    if not result.found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group not found: {group_id}")

    body = DeleteGroupResponse(**result.model_dump())
    if result.partial_failure:
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump())
    return body


@router.post("/groups/{group_id}/files", response_model=AddFileResponse)
async def add_file_to_group(
    response: Response,
    upload: UploadFile,
    group_id: str = Path(...),
    files: FileService = Depends(get_files),
    groups: GroupService = Depends(get_groups),
):
    """Upload a file and add it to an existing group."""
    _group_or_404(groups, group_id)

    meta = await _store_upload(files, upload)
    added = groups.add_file(group_id, meta)
    if added:
        response.status_code = status.HTTP_201_CREATED
    return AddFileResponse(added=added, file=meta)


@router.delete("/groups/{group_id}/files/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_file_from_group(
    group_id: str = Path(...),
    file_id: str = Path(...),
    groups: GroupService = Depends(get_groups),
):
    """Delete a file and drop it from the group."""
    if not groups.remove_file(group_id, file_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Group not found: {group_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/groups/{group_id}/files/{file_id}", response_model=RenameFileResponse)
async def rename_group_file(
    body: RenameRequest,
    group_id: str = Path(...),
    file_id: str = Path(...),
    groups: GroupService = Depends(get_groups),
):
    """Rename a file and update the group's copy of its name."""
    new_name = groups.rename_file(group_id, file_id, body.name)
    if new_name is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"File not found: {file_id}")
    return RenameFileResponse(id=file_id, filename=new_name)
