from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt

from contentgen.tests.fakes import PASSWORD
from contentgen.utils import security


def _register(client, email=None, username=None, password=PASSWORD):
    email = email or f"user_{uuid4().hex[:8]}@example.com"
    username = username or f"user_{uuid4().hex[:8]}"
    r = client.post("/auth/register",
                    json={"username": username, "email": email, "password": password})
    return email, r


def test_register_login_me_happy_path(client):
    email, r = _register(client)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert isinstance(body["userId"], int)

    r = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    user = body["user"]
    assert user["email"] == email
    assert user["subscriptionType"] == "free"
    assert user["generationsLimit"] == 5
    assert user["generationsToday"] == 0
    assert "password" not in user and "password_hash" not in user

    claims = jwt.decode(body["token"], "test-secret", algorithms=["HS256"])
    assert claims["email"] == email
    assert int(claims["sub"]) == user["id"]

    r = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert r.status_code == 200
    assert r.json()["user"]["email"] == email


def test_register_duplicate_email(client):
    email, r = _register(client)
    assert r.status_code == 201
    _, r = _register(client, email=email)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "User already exists"}


def test_register_email_is_case_insensitive(client):
    email, _ = _register(client)
    _, r = _register(client, email=email.upper())
    assert r.status_code == 400


def test_register_validation_errors(client):
    _, r = _register(client, password="alllowercase1")
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert any(e["field"] == "password" for e in body["errors"])

    _, r = _register(client, username="no spaces!")
    assert r.status_code == 400
    assert any(e["field"] == "username" for e in r.json()["errors"])


def test_wrong_password_and_unknown_email_look_identical(client):
    email, _ = _register(client)

    wrong = client.post("/auth/login", json={"email": email, "password": "Wrong1234"})
    unknown = client.post("/auth/login",
                          json={"email": f"nobody_{uuid4().hex[:8]}@example.com",
                                "password": PASSWORD})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {
        "success": False, "message": "Invalid credentials"}


def test_unknown_email_still_pays_for_a_hash_check(client, monkeypatch):
    email, _ = _register(client)
    dummy_calls = []
    monkeypatch.setattr(security.pwd_context, "dummy_verify",
                        lambda *args, **kwargs: dummy_calls.append(1))

    r = client.post("/auth/login",
                    json={"email": f"nobody_{uuid4().hex[:8]}@example.com", "password": PASSWORD})
    assert r.status_code == 401
    assert dummy_calls == [1]

    r = client.post("/auth/login", json={"email": email, "password": "Wrong1234"})
    assert r.status_code == 401
    assert dummy_calls == [1]


def test_me_requires_token(client):
    r = client.get("/auth/me")
    assert r.status_code == 401
    assert r.json() == {"success": False, "message": "Access token required"}


def test_me_rejects_garbage_token(client):
    r = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid token"


def test_me_rejects_expired_token(client, make_user):
    user_id, _ = make_user()
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    token = jwt.encode({"sub": str(user_id), "exp": past, "iat": past - timedelta(hours=24)},
                       "test-secret", algorithm="HS256")
    r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Token expired"


def test_token_for_deleted_user_is_rejected(client):
    token = jwt.encode({"sub": "999999", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
                       "test-secret", algorithm="HS256")
    r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
