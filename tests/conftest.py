"""Shared fixtures: an in-memory stand-in for the books table."""
import uuid
from datetime import datetime, timezone

import pytest

from bookshelf.errors import StoreError
from bookshelf.gateway import BookGateway
from bookshelf.models import Book
from bookshelf.staleness import StaleViews


class InMemoryStore:
    """Implements the store interface with a dict; `fail` simulates an outage."""

    def __init__(self):
        self.rows = {}
        self.fail = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise StoreError("connection refused", "08006")

    def select_books(self):
        self._check()
        return sorted(self.rows.values(), key=lambda book: book.title)

    def select_book(self, book_id):
        self._check()
        return self.rows.get(book_id)

    def insert_book(self, book):
        self._check()
        row = book.to_row()
        stored = Book(
            id=str(uuid.uuid4()),
            created_at=datetime.now(timezone.utc),
            **row
        )
        self.rows[stored.id] = stored
        return stored

    def update_book(self, book_id, book):
        self._check()
        existing = self.rows.get(book_id)
        if existing is None:
            return None
        updated = Book(id=existing.id, created_at=existing.created_at, **book.to_row())
        self.rows[book_id] = updated
        return updated

    def delete_book(self, book_id):
        self._check()
        return 1 if self.rows.pop(book_id, None) else 0

    def close(self):
        self.closed = True


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def signals():
    return StaleViews()


@pytest.fixture
def gateway(store, signals):
    return BookGateway(store, signals)
