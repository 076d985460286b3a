"""PostgreSQL store for the books table."""
import psycopg2
from psycopg2 import errors, pool
from typing import Any, Optional, List
import logging

from bookshelf.errors import StoreError
from bookshelf.models import Book, BookInput

logger = logging.getLogger(__name__)

BOOK_COLUMNS = "id::text, title, author, tags, cover_url, created_at"


class Database:
    """PostgreSQL database with connection pooling."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        try:
            self.connection_pool = psycopg2.pool.SimpleConnectionPool(
                min_conn,
                max_conn,
                connection_string
            )
        except psycopg2.Error as e:
            logger.error(f"Failed to connect to database: {e}")
            raise StoreError("Failed to create connection pool", e.pgcode) from e

        if self.connection_pool:
            logger.info("Database connection pool created successfully")
        else:
            raise StoreError("Failed to create connection pool")

    def init_schema(self):
        """Create the books table if it doesn't exist."""
        def create(cur):
            cur.execute("""
                CREATE TABLE IF NOT EXISTS books (
                    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                    title TEXT NOT NULL CHECK (btrim(title) <> ''),
                    author TEXT NOT NULL CHECK (btrim(author) <> ''),
                    tags TEXT[] NOT NULL DEFAULT '{}',
                    cover_url TEXT,
                    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
                )
            """)
            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_books_title
                ON books (title)
            """)

        self._run("initialize schema", create)
        logger.info("Database schema initialized successfully")

    def _run(self, action: str, work, missing: Any = None):
        """
        Run `work(cursor)` in its own transaction.

        Args:
            action: Description used in log and error messages
            work: Callable receiving a cursor; its return value is passed through
            missing: Returned instead when the id in the statement is not a valid uuid

        Returns:
            Whatever `work` returned

        Raises:
            StoreError: on any other driver failure (the transaction is rolled back)
        """
        try:
            conn = self.connection_pool.getconn()
        except psycopg2.Error as e:
            logger.error(f"Failed to {action}: {e}")
            raise StoreError(f"Failed to {action}", getattr(e, "pgcode", None)) from e

        try:
            with conn.cursor() as cur:
                result = work(cur)
            conn.commit()
            return result
        except errors.InvalidTextRepresentation:
            # Malformed id: no row can match it
            self._rollback(conn)
            return missing
        except psycopg2.Error as e:
            self._rollback(conn)
            logger.error(f"Failed to {action}: {e}")
            raise StoreError(f"Failed to {action}", e.pgcode) from e
        finally:
            # A dropped connection must not go back into the pool
            self.connection_pool.putconn(conn, close=bool(conn.closed))

    @staticmethod
    def _rollback(conn):
        """Roll back unless the connection is already gone."""
        if conn.closed:
            return
        try:
            conn.rollback()
        except psycopg2.Error as e:
            logger.warning(f"Rollback failed: {e}")

    def select_books(self) -> List[Book]:
        """Get all books ordered by title."""
        def select(cur):
            cur.execute(f"SELECT {BOOK_COLUMNS} FROM books ORDER BY title ASC")
            return [Book(*row) for row in cur.fetchall()]

        return self._run("select books", select)

    def select_book(self, book_id: str) -> Optional[Book]:
        """Get a book by ID, or None when no row matches."""
        def select(cur):
            cur.execute(f"SELECT {BOOK_COLUMNS} FROM books WHERE id = %s", (book_id,))
            row = cur.fetchone()
            return Book(*row) if row else None

        return self._run("select book", select)

    def insert_book(self, book: BookInput) -> Book:
        """
        Insert a book and return the stored row.

        Args:
            book: Normalized input

        Returns:
            Book with the database-assigned id and created_at
        """
        row = book.to_row()

        def insert(cur):
            cur.execute(f"""
                INSERT INTO books (title, author, tags, cover_url)
                VALUES (%s, %s, %s::text[], %s)
                RETURNING {BOOK_COLUMNS}
            """, (row["title"], row["author"], row["tags"], row["cover_url"]))
            return Book(*cur.fetchone())

        return self._run("insert book", insert)

    def update_book(self, book_id: str, book: BookInput) -> Optional[Book]:
        """
        Update the mutable fields of a book in one statement.

        Returns:
            The updated Book, or None when no row matches `book_id`
        """
        row = book.to_row()

        def update(cur):
            cur.execute(f"""
                UPDATE books
                SET title = %s, author = %s, tags = %s::text[], cover_url = %s
                WHERE id = %s
                RETURNING {BOOK_COLUMNS}
            """, (row["title"], row["author"], row["tags"], row["cover_url"], book_id))
            updated = cur.fetchone()
            return Book(*updated) if updated else None

        return self._run("update book", update)

    def delete_book(self, book_id: str) -> int:
        """Delete a book by ID. Returns the number of rows removed."""
        def delete(cur):
            cur.execute("DELETE FROM books WHERE id = %s", (book_id,))
            return cur.rowcount

        return self._run("delete book", delete, missing=0)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
