from datetime import datetime, timedelta, timezone

import requests
from jose import jwt

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME, JWT_SECRET, USER


def test_register_then_duplicate(client):
    resp = client.post("/api/auth/register", json=USER)
    assert resp.status_code == 201
    assert isinstance(resp.get_json()["userId"], int)

    resp = client.post("/api/auth/register", json=USER)
    assert resp.status_code == 400
    assert resp.get_json()["message"].startswith("User already exists")


def test_register_duplicate_mobile(client):
    client.post("/api/auth/register", json=USER)
    resp = client.post("/api/auth/register", json={**USER, "email": "b@x.com"})
    assert resp.status_code == 400


def test_register_missing_field(client):
    payload = {k: v for k, v in USER.items() if k != "city"}
    resp = client.post("/api/auth/register", json=payload)
    assert resp.status_code == 400
    assert "city" in resp.get_json()["message"]


def test_register_rejected_captcha(client, http):
    http.captcha_success = False
    resp = client.post("/api/auth/register", json=USER)
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Captcha verification failed"


def test_register_captcha_unreachable_fails_closed(client, http):
    http.captcha_error = requests.ConnectionError("no route to host")
    resp = client.post("/api/auth/register", json=USER)
    assert resp.status_code == 400


def test_register_sends_secret_and_token(client, http):
    client.post("/api/auth/register", json=USER)
    url, kwargs = http.calls[0]
    assert "recaptcha" in url
    assert kwargs["data"] == {"secret": "captcha-secret", "response": "captcha-ok"}


def test_user_login(client):
    client.post("/api/auth/register", json=USER)
    resp = client.post("/api/auth/login", json={"email": USER["email"], "password": "p"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["token"]
    assert body["user"]["email"] == USER["email"]
    assert "password" not in body["user"]


def test_user_login_wrong_password(client):
    client.post("/api/auth/register", json=USER)
    resp = client.post("/api/auth/login", json={"email": USER["email"], "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Invalid credentials"


def test_admin_login(client):
    resp = client.post("/api/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    assert resp.get_json()["admin"]["username"] == ADMIN_USERNAME

    resp = client.post("/api/admin/login", json={"username": ADMIN_USERNAME, "password": "wrong"})
    assert resp.status_code == 401


def test_admin_route_requires_token(client):
    assert client.get("/api/admin/books").status_code == 401


def test_admin_route_rejects_user_token(client, user_headers):
    assert client.get("/api/admin/books", headers=user_headers).status_code == 403


def test_admin_route_accepts_admin_token(client, admin_headers):
    assert client.get("/api/admin/books", headers=admin_headers).status_code == 200


def test_user_route_rejects_admin_token(client, admin_headers):
    resp = client.post("/api/orders", json={}, headers=admin_headers)
    assert resp.status_code == 403


def test_garbage_token(client):
    resp = client.get("/api/admin/books", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_wrong_scheme(client):
    resp = client.get("/api/admin/books", headers={"Authorization": "Basic YWRtaW46YWRtaW4="})
    assert resp.status_code == 401


def test_expired_token(client):
    claims = {
        "sub": "1",
        "role": "admin",
        "username": ADMIN_USERNAME,
        "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
    }
    token = jwt.encode(claims, JWT_SECRET, algorithm="HS256")
    resp = client.get("/api/admin/books", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_token_signed_with_other_secret(client):
    claims = {"sub": "1", "role": "admin", "exp": datetime.now(timezone.utc) + timedelta(hours=1)}
    token = jwt.encode(claims, "someone-else", algorithm="HS256")
    resp = client.get("/api/admin/books", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
