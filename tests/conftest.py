import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from main import create_app


@pytest.fixture
def db(monkeypatch):
    mock_db = mongomock.MongoClient().get_database("ash_store_test")
    monkeypatch.setattr(database, "db", mock_db)
    return mock_db


@pytest.fixture
def make_client(db):
    def _make(**kwargs):
        return TestClient(create_app(**kwargs))
    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def product():
    return {
        "name": "Linen Shirt",
        "price": 49.5,
        "imageUrl": "/images/linen-shirt.png",
        "category": "Shirts",
    }


@pytest.fixture
def order():
    return {
        "customer": {"name": "Sara", "address": "12 Palm Street", "phone": "0555123456"},
        "cart": [
            {"id": 1, "title": "Linen Shirt", "price": "49.5", "quantity": 2},
            {"id": 7, "title": "Canvas Belt", "price": "15", "quantity": 1},
        ],
        "total": 114,
    }
