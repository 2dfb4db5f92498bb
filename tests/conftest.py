import pytest
import requests

from app import create_app
from models import db
from payments import RAZORPAY_ORDERS_URL

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-pass"
JWT_SECRET = "test-secret"

USER = {
    "name": "A",
    "email": "a@x.com",
    "password": "p",
    "mobile": "1",
    "state": "S",
    "city": "C",
    "captchaToken": "captcha-ok",
}

BOOK = {
    "title": "The Pragmatic Programmer",
    "author": "Andrew Hunt",
    "description": "From journeyman to master",
    "price": 10.0,
    "stock": 5,
    "category": "programming",
}


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeHTTP:
    """Stands in for requests.post: answers reCAPTCHA and Razorpay calls."""

    def __init__(self):
        self.calls = []
        self.captcha_success = True
        self.captcha_error = None
        self.razorpay_status = 200

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if "recaptcha" in url:
            if self.captcha_error:
                raise self.captcha_error
            return FakeResponse({"success": self.captcha_success})
        if url == RAZORPAY_ORDERS_URL:
            if self.razorpay_status >= 300:
                return FakeResponse({"error": "bad request"}, self.razorpay_status)
            body = kwargs["json"]
            return FakeResponse({"id": "order_test_1", "amount": body["amount"], "currency": body["currency"]})
        raise AssertionError(f"unexpected POST to {url}")


@pytest.fixture(autouse=True)
def http(monkeypatch):
    fake = FakeHTTP()
    monkeypatch.setattr(requests, "post", fake.post)
    return fake


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "JWT_SECRET": JWT_SECRET,
        "RECAPTCHA_SECRET_KEY": "captcha-secret",
        "RAZORPAY_KEY_ID": None,
        "RAZORPAY_KEY_SECRET": None,
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "ADMIN_USERNAME": ADMIN_USERNAME,
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers(client):
    resp = client.post("/api/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture
def user_headers(client):
    assert client.post("/api/auth/register", json=USER).status_code == 201
    resp = client.post("/api/auth/login", json={"email": USER["email"], "password": USER["password"]})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture
def create_book(client, admin_headers):
    def _create(**fields):
        resp = client.post("/api/admin/books", json={**BOOK, **fields}, headers=admin_headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()
    return _create
