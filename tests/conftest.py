import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from database.mongo import get_database
from main_async import app
from utils.cloudinary_helper import get_media_store


class FakeMediaStore:
    """Records uploads and deletes instead of talking to Cloudinary"""

    def __init__(self):
        self.uploads = []
        self.deleted = []
        self.fail_upload = False
        self.fail_delete = False

    async def upload(self, data: bytes, filename: str = "") -> str:
        if self.fail_upload:
            raise RuntimeError("cloudinary unavailable")
        url = (
            "https://res.cloudinary.com/demo/image/upload/"
            f"v1700000000/Recipedia-Images/recipe-{len(self.uploads) + 1}.jpg"
        )
        self.uploads.append(url)
        return url

    async def delete(self, url: str) -> bool:
        if self.fail_delete:
            raise RuntimeError("cloudinary unavailable")
        self.deleted.append(url)
        return True


@pytest.fixture
def db():
    return AsyncMongoMockClient()["recipedia_test"]


@pytest.fixture
def media():
    return FakeMediaStore()


@pytest.fixture
def client(db, media):
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_media_store] = lambda: media
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register an account and return (auth headers, user id)"""
    def _register(username, email=None, password="secret123"):
        res = client.post(
            "/api/auth/register",
            json={"username": username, "email": email or f"{username}@example.com", "password": password},
        )
        assert res.status_code == 201, res.text
        body = res.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]["id"]
    return _register


@pytest.fixture
def create_recipe(client):
    def _create(headers, title="Pasta", category="Dinner", ingredients=("pasta", "salt"), **extra):
        data = {
            "title": title,
            "instructions": "Boil.",
            "category": category,
            "ingredients": list(ingredients),
            **extra,
        }
        res = client.post("/api/recipes", data=data, headers=headers)
        assert res.status_code == 201, res.text
        return res.json()
    return _create
