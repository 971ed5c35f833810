import pytest
from fastapi.testclient import TestClient

from file_groups.config.settings import Settings
from file_groups.main import create_app
from tests.fixtures.db_client import (  # noqa: F401
    TEST_URI,
    adapter,
    bucket,
    file_service,
    group_service,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(mongodb_uri=TEST_URI, log_level="DEBUG")


@pytest.fixture
def client(settings, adapter, file_service, group_service) -> TestClient:
    app = create_app(
        settings=settings,
        adapter=adapter,
        file_service=file_service,
        group_service=group_service,
    )
    with TestClient(app) as client:
        yield client
