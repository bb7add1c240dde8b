import pytest

from repo_records import RecordRepo
from service_records import RecordService


@pytest.fixture
def repo(tmp_path):
    return RecordRepo(str(tmp_path / "mdb_data.json"))


@pytest.fixture
def svc(repo):
    return RecordService(repo, latest_limit=10)


@pytest.fixture
def client(svc):
    from fastapi.testclient import TestClient

    from main import app, get_service

    app.dependency_overrides[get_service] = lambda: svc
    yield TestClient(app)
    app.dependency_overrides.clear()
