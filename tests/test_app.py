import logging

import pytest
from pymongo.errors import ServerSelectionTimeoutError

import config
import database


def test_root_is_plain_text(client):
    res = client.get("/")
    assert res.status_code == 200
    assert res.text == "ASH API is running!"
    assert res.headers["content-type"].startswith("text/plain")


@pytest.mark.parametrize("method, path", [
    ("GET", "/nonexistent"),
    ("POST", "/nonexistent/deeper"),
    ("PUT", "/bestproduct"),
    ("GET", "/orders/123"),
])
def test_unmatched_routes_return_json_404(client, method, path):
    res = client.request(method, path)
    assert res.status_code == 404
    assert res.json() == {"error": "Route not found"}


def test_database_check(client, product):
    client.post("/bestproduct", json=product)
    body = client.get("/test").json()
    assert body["connection_status"] == "Connected"
    assert body["database_name"] == "ash_store_test"
    assert "bestproducts" in body["collections"]


def test_images_are_served(monkeypatch, tmp_path, make_client):
    (tmp_path / "shirt.png").write_bytes(b"\x89PNG fake")
    monkeypatch.setattr(config, "IMAGES_DIR", str(tmp_path))
    client = make_client()
    res = client.get("/images/shirt.png")
    assert res.status_code == 200
    assert res.content == b"\x89PNG fake"
    missing = client.get("/images/nothing.png")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Route not found"}


class BrokenCollection:

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise ServerSelectionTimeoutError("mongo-0:27017 connection refused")
        return fail


class BrokenDatabase:
    name = "broken"

    def __getitem__(self, name):
        return BrokenCollection()


def test_store_failure_is_a_generic_500(client, monkeypatch, product, order, caplog):
    monkeypatch.setattr(database, "db", BrokenDatabase())
    with caplog.at_level(logging.ERROR):
        responses = [
            client.get("/allproducts"),
            client.post("/allproducts", json=product),
            client.get("/orders"),
            client.post("/orders", json=order),
        ]
    for res in responses:
        assert res.status_code == 500
        assert res.json() == {"error": "Server error"}
    assert "connection refused" in caplog.text


def test_missing_database_is_a_generic_500(client, monkeypatch):
    monkeypatch.setattr(database, "db", None)
    res = client.get("/collections")
    assert res.status_code == 500
    assert res.json() == {"error": "Server error"}


class DenyAll:

    def authorize(self, request):
        return False


class HeaderKey:

    def __init__(self, key):
        self.key = key

    def authorize(self, request):
        return request.headers.get("x-admin-key") == self.key


def test_denied_requests_are_forbidden(make_client, product, order):
    client = make_client(authorizer=DenyAll())
    assert client.get("/bestproduct").status_code == 200
    res = client.post("/bestproduct", json=product)
    assert res.status_code == 403
    assert res.json() == {"error": "Forbidden"}
    assert client.delete("/bestproduct/anything").status_code == 403
    assert client.get("/orders").status_code == 403
    assert client.put("/orders/anything", json={"status": "completed"}).status_code == 403
    assert client.delete("/orders/anything").status_code == 403


def test_authorizer_can_be_substituted(make_client, product):
    client = make_client(authorizer=HeaderKey("s3cret"))
    assert client.post("/collections", json=product).status_code == 403
    res = client.post("/collections", json=product, headers={"X-Admin-Key": "s3cret"})
    assert res.status_code == 201
