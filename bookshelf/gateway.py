"""Record store gateway: the only path between callers and the books table.

Every operation returns a Result. Driver errors are caught here and turned
into one of the ErrorKind values; nothing raised by a store reaches the caller.
"""
import logging
from typing import Any, List, Mapping, Optional, Tuple, Union

from bookshelf.errors import ErrorKind, Result, StoreError, ValidationError
from bookshelf.models import Book, BookInput
from bookshelf.normalize import normalize_book_input
from bookshelf.staleness import LIST_VIEW, StaleViews, book_view

logger = logging.getLogger(__name__)

Input = Union[BookInput, Mapping[str, Any]]

LOAD_BOOKS_FAILED = "Failed to load books"
LOAD_BOOK_FAILED = "Failed to load book"
SAVE_FAILED = "Failed to save book"
UPDATE_FAILED = "Failed to update book"
DELETE_FAILED = "Failed to delete book"
NOT_FOUND = "Book not found"


class _GatewayBase:
    """Validation, error translation and signalling shared by both gateways."""

    def __init__(self, store, signals: Optional[StaleViews] = None):
        """
        Args:
            store: Store client handle (Database or RestStore)
            signals: Hub notified after every successful mutation
        """
        self.store = store
        self.signals = signals or StaleViews()

    @staticmethod
    def _prepare(data: Input) -> Tuple[Optional[BookInput], Optional[Result]]:
        try:
            return normalize_book_input(data), None
        except ValidationError as e:
            logger.debug(f"Rejected book input: {e}")
            return None, Result.failure(ErrorKind.VALIDATION, str(e))

    @staticmethod
    def _unavailable(message: str, error: StoreError) -> Result:
        logger.error(f"{message}: {error} (code={error.code})", exc_info=error)
        return Result.failure(ErrorKind.STORE_UNAVAILABLE, message)

    def _mutated(self, value: Any, *views: str) -> Result:
        self.signals.notify(views)
        return Result.success(value, stale=views)


class BookGateway(_GatewayBase):
    """Synchronous gateway over the PostgreSQL store."""

    def list_books(self) -> Result[List[Book]]:
        """All books ordered by title."""
        try:
            return Result.success(self.store.select_books())
        except StoreError as e:
            return self._unavailable(LOAD_BOOKS_FAILED, e)

    def get_book(self, book_id: str) -> Result[Optional[Book]]:
        """The matching book; the value is None when no row matches."""
        try:
            return Result.success(self.store.select_book(book_id))
        except StoreError as e:
            return self._unavailable(LOAD_BOOK_FAILED, e)

    def create_book(self, data: Input) -> Result[Book]:
        book_input, invalid = self._prepare(data)
        if invalid:
            return invalid

        try:
            book = self.store.insert_book(book_input)
        except StoreError as e:
            return self._unavailable(SAVE_FAILED, e)

        logger.info(f"Created book {book.id}: {book.title}")
        return self._mutated(book, LIST_VIEW)

    def update_book(self, book_id: str, data: Input) -> Result[Book]:
        book_input, invalid = self._prepare(data)
        if invalid:
            return invalid

        try:
            book = self.store.update_book(book_id, book_input)
        except StoreError as e:
            return self._unavailable(UPDATE_FAILED, e)

        if book is None:
            return Result.failure(ErrorKind.NOT_FOUND, NOT_FOUND)

        logger.info(f"Updated book {book_id}")
        return self._mutated(book, LIST_VIEW, book_view(book_id))

    def delete_book(self, book_id: str) -> Result[None]:
        """Delete a book. Deleting a missing id succeeds."""
        try:
            removed = self.store.delete_book(book_id)
        except StoreError as e:
            return self._unavailable(DELETE_FAILED, e)

        logger.info(f"Deleted book {book_id} ({removed} row(s))")
        return self._mutated(None, LIST_VIEW)


class AsyncBookGateway(_GatewayBase):
    """Async gateway over the PostgREST store.

    Each operation awaits exactly one datastore round trip.
    """

    async def list_books(self) -> Result[List[Book]]:
        try:
            return Result.success(await self.store.select_books())
        except StoreError as e:
            return self._unavailable(LOAD_BOOKS_FAILED, e)

    async def get_book(self, book_id: str) -> Result[Optional[Book]]:
        try:
            return Result.success(await self.store.select_book(book_id))
        except StoreError as e:
            return self._unavailable(LOAD_BOOK_FAILED, e)

    async def create_book(self, data: Input) -> Result[Book]:
        book_input, invalid = self._prepare(data)
        if invalid:
            return invalid

        try:
            book = await self.store.insert_book(book_input)
        except StoreError as e:
            return self._unavailable(SAVE_FAILED, e)

        logger.info(f"Created book {book.id}: {book.title}")
        return self._mutated(book, LIST_VIEW)

    async def update_book(self, book_id: str, data: Input) -> Result[Book]:
        book_input, invalid = self._prepare(data)
        if invalid:
            return invalid

        try:
            book = await self.store.update_book(book_id, book_input)
        except StoreError as e:
            return self._unavailable(UPDATE_FAILED, e)

        if book is None:
            return Result.failure(ErrorKind.NOT_FOUND, NOT_FOUND)

        logger.info(f"Updated book {book_id}")
        return self._mutated(book, LIST_VIEW, book_view(book_id))

    async def delete_book(self, book_id: str) -> Result[None]:
        try:
            removed = await self.store.delete_book(book_id)
        except StoreError as e:
            return self._unavailable(DELETE_FAILED, e)

        logger.info(f"Deleted book {book_id} ({removed} row(s))")
        return self._mutated(None, LIST_VIEW)
