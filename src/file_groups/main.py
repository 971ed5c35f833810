from textwrap import dedent
import logging
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute
from fastapi.middleware.cors import CORSMiddleware

from database.mongo_adapter import MongoAdapter, get_mongo_adapter
from file_groups.config.settings import Settings, configure_logging
from file_groups.errors import (
    handle_broad_exceptions,
    handle_pydantic_validation_errors,
)
from file_groups.routers.files import router as files_router
from file_groups.routers.groups import router as groups_router
from file_groups.routers.health import router as health_router
from file_groups.services import (
    FileService,
    GroupService,
    get_file_service,
    get_group_service,
)

# Set up logging
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    adapter: Optional[MongoAdapter] = None,
    file_service: Optional[FileService] = None,
    group_service: Optional[GroupService] = None,
) -> FastAPI:
    """Create a FastAPI application.

    Services can be passed in directly; otherwise they are built on a
    MongoAdapter created from the settings.
    """
    settings = settings or Settings()
    configure_logging(settings)

    app = FastAPI(
        title="File Groups API",
        summary="Store files in GridFS and organize them into named groups",
        version="v1",
        description=dedent(
            """\
        | Resource | Notes |
        | --- | --- |
        | `/v1/files` | Blobs with name, size and type metadata. Listing is capped at 100. |
        | `/v1/groups` | Named groups embedding file metadata. Deleting a group deletes its files. |
        """
        ),
        docs_url="/",  # its easier to find the docs when they live on the base url
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if file_service is None or group_service is None:
        adapter = adapter or get_mongo_adapter(settings)
        logger.info("creating db indexes")
        adapter.init_collections()
        file_service = file_service or get_file_service(adapter, settings)
        group_service = group_service or get_group_service(adapter, settings, file_service)

    app.state.settings = settings
    app.state.adapter = adapter
    app.state.file_service = file_service
    app.state.group_service = group_service

    app.include_router(files_router, prefix="/v1", tags=["files"])
    app.include_router(groups_router, prefix="/v1", tags=["groups"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
