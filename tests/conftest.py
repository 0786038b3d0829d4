import pytest
from datetime import date
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from models.auth import User
from models.daily_log import Annotation, DailyLogSave, Resource
from models.project import ProjectCreate, Stakeholder


class FakeBlobStore:
    """In-memory stand-in for the Cloudinary store."""

    def __init__(self):
        self.blobs = {}
        self.fail_on = set()
        self.fail_delete = False
        self.deleted = []

    async def upload(self, path, content, filename):
        if filename in self.fail_on:
            raise RuntimeError(f"upload of {filename} refused")
        url = f"https://res.cloudinary.com/demo/image/upload/v1/{path}"
        self.blobs[url] = content
        return url

    async def delete(self, url):
        if self.fail_delete:
            raise RuntimeError("storage offline")
        self.blobs.pop(url, None)
        self.deleted.append(url)

    async def list_urls(self, prefix):
        return [url for url in self.blobs if f"/{prefix}" in url]


@pytest.fixture
def db():
    return AsyncMongoMockClient()["giornale_test"]


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def user():
    return User(id="uid-1", email="direttore@cantiere.it", display_name="Ing. Mario Rossi")


@pytest.fixture
def dl(user):
    return Stakeholder(id=user.id, name=user.display_name, role="Direttore dei Lavori (DL)")


@pytest.fixture
async def project(db, user):
    from controllers.project_controller import add_project
    return await add_project(db, ProjectCreate(name="Scuola Media", client="Comune", contractor="Impresa Rossi"), user)


@pytest.fixture
def march_first():
    return date(2024, 3, 1)


def make_resource(**overrides) -> Resource:
    fields = {"type": "Manodopera", "description": "Operaio", "name": "Mario Rossi", "quantity": 2}
    fields.update(overrides)
    return Resource(**fields)


def make_annotation(author, **overrides) -> Annotation:
    fields = {"author": author, "type": "Descrizione Lavori Svolti", "content": "Getto del solaio"}
    fields.update(overrides)
    return Annotation(**fields)


def make_log(annotations=None, resources=None, **overrides) -> DailyLogSave:
    return DailyLogSave(annotations=annotations or [], resources=resources or [], **overrides)


@pytest.fixture
def api(db, user, blob_store):
    from server import app
    from database import get_db
    from core.auth import get_current_user
    from core.storage import get_blob_store

    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    yield TestClient(app)
    app.dependency_overrides.clear()
