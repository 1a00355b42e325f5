import sqlite3

import httpx
import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import build_services, create_app
from routers.classify import get_services

SUPABASE_URL = "https://project.supabase.co"
CLASSIFIER_URL = "https://classifier.test/workflow/detect-and-classify"
STORAGE_IMAGE_URL = f"{SUPABASE_URL}/storage/v1/object/public/animal-images/abc.jpg"
PLAIN_IMAGE_URL = "https://images.example.com/dogs/rex.jpg"


class FakeUpstream:
    """Routes every outbound request of the service to a configurable handler."""

    def __init__(self):
        self.requests = []
        self.storage = lambda request: httpx.Response(
            200, content=b"storage-bytes", headers={"content-type": "image/jpeg"}
        )
        self.image = lambda request: httpx.Response(
            200, content=b"http-bytes", headers={"content-type": "image/png"}
        )
        self.classifier = lambda request: httpx.Response(200, json={"predictions": []})
        self.rest = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if str(request.url).startswith(CLASSIFIER_URL):
            return self.classifier(request)
        if request.url.host == "project.supabase.co" and path.startswith("/rest/v1/"):
            return self.rest(request)
        if request.url.host == "project.supabase.co" and path.startswith("/storage/v1/object/") \
                and not path.startswith("/storage/v1/object/public/"):
            return self.storage(request)
        return self.image(request)

    def calls(self, kind: str):
        kinds = {
            "classifier": lambda r: str(r.url).startswith(CLASSIFIER_URL),
            "storage": lambda r: r.url.path.startswith("/storage/v1/object/")
            and not r.url.path.startswith("/storage/v1/object/public/"),
            "rest": lambda r: r.url.path.startswith("/rest/v1/"),
        }
        if kind == "image":
            matched = set()
            for check in kinds.values():
                matched.update(id(r) for r in self.requests if check(r))
            return [r for r in self.requests if id(r) not in matched]
        return [r for r in self.requests if kinds[kind](r)]

    def classify_with(self, predictions):
        self.classifier = lambda request: httpx.Response(200, json={"predictions": predictions})


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def http_client(upstream):
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "breed_classification.db"


@pytest.fixture
def settings(db_path):
    return Settings(
        CLASSIFIER_API_KEY="test-classifier-key",
        CLASSIFIER_URL=CLASSIFIER_URL,
        SUPABASE_URL=SUPABASE_URL,
        SUPABASE_SERVICE_ROLE_KEY="service-role-key",
        DATASTORE_BACKEND="sqlite",
        SQLITE_PATH=str(db_path),
        MODEL_VERSION="resnet-50-v1.0",
    )


@pytest.fixture
def services(settings, http_client):
    return build_services(settings, http_client)


@pytest.fixture
def app(settings, services):
    app = create_app(settings)
    app.dependency_overrides[get_services] = lambda: services
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def fetch_rows(db_path):
    def _fetch(table):
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        try:
            return [dict(row) for row in conn.execute(f"SELECT * FROM {table}")]
        finally:
            conn.close()
    return _fetch
