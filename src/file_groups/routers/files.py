import logging
from urllib.parse import quote

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Path,
    Response,
    UploadFile,
    status
)

from file_groups.dependencies import get_files
from file_groups.schemas import (
    GetFilesResponse,
    PostFileResponse,
    RenameFileResponse,
    RenameRequest,
)
from file_groups.services import FileService

logger = logging.getLogger(__name__)

router = APIRouter()


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and the UTF-8 name per RFC 5987."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("\"", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.post("/files", response_model=PostFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file_content: UploadFile,
    files: FileService = Depends(get_files),
) -> PostFileResponse:
    """Store an uploaded file and return its generated identifier."""
    data = await file_content.read()
    name = file_content.filename or "unnamed"
    content_type = file_content.content_type or "application/octet-stream"

    file_id = files.upload(data, name=name, content_type=content_type, size=len(data))
    return PostFileResponse(
        id=file_id,
        name=name,
        size=len(data),
        type=content_type,
        message=f"File uploaded as {file_id}",
    )


@router.get("/files", response_model=GetFilesResponse)
async def list_files(files: FileService = Depends(get_files)):
    """
    List stored file metadata.

    At most 100 entries are returned; there is no pagination.
    """
    return GetFilesResponse(files=files.list())


@router.get(
    "/files/{file_id}",
    responses={
        status.HTTP_200_OK: {"content": {"application/octet-stream": {}}},
        status.HTTP_404_NOT_FOUND: {"description": "File not found"},
    },
    response_class=Response,
)
async def download_file(
    file_id: str = Path(..., description="Identifier returned by the upload"),
    files: FileService = Depends(get_files),
) -> Response:
    """Return the whole file payload."""
    stored = files.get(file_id)
    if stored is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"File not found: {file_id}")

    return Response(
        content=stored.data,
        media_type=stored.type,
        headers={"Content-Disposition": content_disposition(stored.name)},
    )


@router.head("/files/{file_id}", status_code=status.HTTP_200_OK)
async def file_exists(
    file_id: str = Path(...),
    files: FileService = Depends(get_files),
):
    """Existence check without a body."""
    if not files.exists(file_id):
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return Response(status_code=status.HTTP_200_OK)


@router.delete("/files/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(
    file_id: str = Path(...),
    files: FileService = Depends(get_files),
):
    """Delete a file. Deleting a missing file is not an error."""
    files.delete(file_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/files/{file_id}", response_model=RenameFileResponse)
async def rename_file(
    body: RenameRequest,
    file_id: str = Path(...),
    files: FileService = Depends(get_files),
):
    """Rename the stored file, keeping its extension. Group entries are not touched."""
    new_name = files.rename(file_id, body.name)
    if new_name is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"File not found: {file_id}")
    return RenameFileResponse(id=file_id, filename=new_name)
