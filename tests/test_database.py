"""Tests for the PostgreSQL store, with the connection pool mocked out."""
from datetime import datetime, timezone
from unittest import mock

import psycopg2
import pytest
from psycopg2 import errors

from bookshelf.database import Database
from bookshelf.errors import ErrorKind, StoreError
from bookshelf.gateway import BookGateway
from bookshelf.models import BookInput

ROW = (
    "6f1c2a52-8a0e-4c1e-9f5b-0d2c5e2b8a11",
    "Dune",
    "Frank Herbert",
    ["sci-fi"],
    None,
    datetime(2024, 5, 1, tzinfo=timezone.utc),
)


@pytest.fixture
def conn():
    connection = mock.MagicMock()
    connection.closed = 0
    cursor = connection.cursor.return_value.__enter__.return_value
    cursor.fetchone.return_value = ROW
    cursor.fetchall.return_value = [ROW]
    cursor.rowcount = 1
    return connection


@pytest.fixture
def cursor(conn):
    return conn.cursor.return_value.__enter__.return_value


@pytest.fixture
def db(conn):
    with mock.patch("psycopg2.pool.SimpleConnectionPool") as pool_cls:
        pool_cls.return_value.getconn.return_value = conn
        yield Database("postgresql://test")


def test_select_books_builds_book_objects(db, cursor, conn):
    """Test that rows map onto Book fields in column order."""
    books = db.select_books()

    assert len(books) == 1
    assert books[0].id == ROW[0]
    assert books[0].tags == ["sci-fi"]
    assert "ORDER BY title ASC" in cursor.execute.call_args[0][0]
    conn.commit.assert_called_once()
    db.connection_pool.putconn.assert_called_once_with(conn, close=False)


def test_select_book_missing_returns_none(db, cursor):
    """Test that an empty result is None, not an error."""
    cursor.fetchone.return_value = None

    assert db.select_book(ROW[0]) is None


def test_malformed_id_is_treated_as_missing(db, cursor, conn):
    """Test that an invalid uuid rolls back and reports no row."""
    cursor.execute.side_effect = errors.InvalidTextRepresentation("bad uuid")

    assert db.select_book("not-a-uuid") is None
    assert db.update_book("not-a-uuid", BookInput("T", "A", [], None)) is None
    assert db.delete_book("not-a-uuid") == 0
    assert conn.rollback.call_count == 3


def test_insert_passes_normalized_values(db, cursor):
    """Test the insert statement parameters and RETURNING row."""
    book = db.insert_book(BookInput("Dune", "Frank Herbert", ["sci-fi"], None))

    sql, params = cursor.execute.call_args[0]
    assert "INSERT INTO books" in sql
    assert "RETURNING" in sql
    assert params == ("Dune", "Frank Herbert", ["sci-fi"], None)
    assert book.created_at == ROW[5]


def test_update_without_row_returns_none(db, cursor):
    """Test that an empty RETURNING means no row matched."""
    cursor.fetchone.return_value = None

    assert db.update_book(ROW[0], BookInput("Dune", "F", [], None)) is None
    sql, params = cursor.execute.call_args[0]
    assert sql.strip().startswith("UPDATE books")
    assert params[-1] == ROW[0]


def test_delete_returns_rowcount(db, cursor):
    """Test that delete reports how many rows went away."""
    cursor.rowcount = 0

    assert db.delete_book(ROW[0]) == 0


def test_driver_errors_become_store_errors(db, cursor, conn):
    """Test that psycopg2 errors are rolled back and wrapped."""
    cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection")

    with pytest.raises(StoreError):
        db.select_books()

    conn.rollback.assert_called_once()
    db.connection_pool.putconn.assert_called_once_with(conn, close=False)


def test_pool_exhaustion_is_a_store_error(db):
    """Test that failing to get a connection is wrapped too."""
    db.connection_pool.getconn.side_effect = psycopg2.pool.PoolError("connection pool exhausted")

    with pytest.raises(StoreError):
        db.delete_book(ROW[0])


def test_connect_failure_is_a_store_error():
    """Test that an unreachable server fails at construction."""
    with mock.patch("psycopg2.pool.SimpleConnectionPool",
                    side_effect=psycopg2.OperationalError("could not connect")):
        with pytest.raises(StoreError):
            Database("postgresql://nowhere")


def test_context_manager_closes_pool(db):
    """Test that leaving the context closes every pooled connection."""
    with db:
        pass

    db.connection_pool.closeall.assert_called_once()


def test_failed_rollback_still_raises_store_error(db, cursor, conn):
    """Test that a rollback failing on a dead connection keeps the original error."""
    cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection")
    conn.rollback.side_effect = psycopg2.InterfaceError("connection already closed")

    with pytest.raises(StoreError):
        db.select_books()

    result = BookGateway(db).list_books()
    assert result.error.kind is ErrorKind.STORE_UNAVAILABLE


def test_closed_connection_is_discarded(db, cursor, conn):
    """Test that a dropped connection skips rollback and is closed by the pool."""
    def drop(*args):
        conn.closed = 2
        raise psycopg2.OperationalError("server closed the connection")

    cursor.execute.side_effect = drop

    with pytest.raises(StoreError):
        db.delete_book(ROW[0])

    conn.rollback.assert_not_called()
    db.connection_pool.putconn.assert_called_once_with(conn, close=True)
