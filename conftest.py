import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from api import create_app
from store import BookStore

SEED_BOOKS = [
    {"id": 1, "author": "Chinua Achebe", "title": "Things Fall Apart", "year": 1958},
    {"id": 2, "author": "Hans Christian Andersen", "title": "Fairy tales"},
    {"id": 3, "author": "Dante Alighieri", "title": "The Divine Comedy"},
]


def write_books(path, books) -> str:
    path.write_text(json.dumps(books), encoding="utf-8")
    return str(path)


@pytest.fixture
def books_file(tmp_path):
    # Unique backing file per test, seeded with three books
    return write_books(tmp_path / "books.json", SEED_BOOKS)


@pytest.fixture
def empty_books_file(tmp_path):
    return write_books(tmp_path / "books.json", [])


@pytest.fixture
def store(books_file):
    s = BookStore(books_file)
    asyncio.run(s.load())
    return s


@pytest.fixture
def client(books_file):
    app = create_app(BookStore(books_file))
    # Entering the client runs the lifespan, which loads the store
    with TestClient(app) as test_client:
        yield test_client
