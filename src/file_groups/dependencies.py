from fastapi import Request

from file_groups.services import FileService, GroupService


def get_files(request: Request) -> FileService:
    """File service dependency."""
    return request.app.state.file_service


def get_groups(request: Request) -> GroupService:
    """Group service dependency."""
    return request.app.state.group_service
