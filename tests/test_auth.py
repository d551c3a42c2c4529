from datetime import timedelta

from bson import ObjectId

from auth.jwt_handler import create_token, decode_token
from core.auth.dependencies import can_modify_recipe, is_admin


def test_token_round_trip():
    user_id = str(ObjectId())
    assert decode_token(create_token(user_id)) == user_id


def test_expired_or_garbage_token_is_rejected():
    assert decode_token(create_token("abc", expires_delta=timedelta(seconds=-5))) is None
    assert decode_token("not-a-jwt") is None


def test_owner_or_admin_rule():
    owner, other = ObjectId(), ObjectId()
    recipe = {"_id": ObjectId(), "createdBy": owner}

    assert can_modify_recipe({"_id": owner, "role": "user"}, recipe)
    assert not can_modify_recipe({"_id": other, "role": "user"}, recipe)
    assert can_modify_recipe({"_id": other, "role": "admin"}, recipe)
    assert not is_admin({"_id": other, "email": "admin@gmail.com"})


def test_register_login_and_me(client):
    res = client.post(
        "/api/auth/register",
        json={"username": "chef", "email": "Chef@Example.com", "password": "secret123"},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["user"]["email"] == "chef@example.com"
    assert body["user"]["role"] == "user"
    assert "password_hash" not in body["user"]

    res = client.post("/api/auth/login", json={"email": "chef@example.com", "password": "secret123"})
    assert res.status_code == 200
    token = res.json()["token"]

    res = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert res.json()["username"] == "chef"


def test_duplicate_registration_rejected(client, register):
    register("chef")
    res = client.post(
        "/api/auth/register",
        json={"username": "chef2", "email": "chef@example.com", "password": "secret123"},
    )
    assert res.status_code == 400
    assert res.json() == {"message": "User already exists"}


def test_invalid_registration_payload_is_400(client):
    res = client.post("/api/auth/register", json={"username": "chef", "email": "nope", "password": "1"})
    assert res.status_code == 400
    assert "message" in res.json()


def test_wrong_password(client, register):
    register("chef")
    res = client.post("/api/auth/login", json={"email": "chef@example.com", "password": "wrong-pass"})
    assert res.status_code == 401
    assert res.json() == {"message": "Invalid email or password"}


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401
    res = client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
    assert res.status_code == 401
    assert "message" in res.json()


def test_token_for_deleted_user_is_rejected(client):
    headers = {"Authorization": f"Bearer {create_token(str(ObjectId()))}"}
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_admin_emails_get_admin_role(client, monkeypatch):
    monkeypatch.setenv("ADMIN_EMAILS", "boss@example.com, other@example.com")
    res = client.post(
        "/api/auth/register",
        json={"username": "boss", "email": "boss@example.com", "password": "secret123"},
    )
    assert res.json()["user"]["role"] == "admin"
