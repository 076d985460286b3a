"""Async PostgREST (Supabase) store for the books table."""
import httpx
from typing import Any, Dict, List, Optional
import logging

from bookshelf.errors import StoreError
from bookshelf.models import Book, BookInput

logger = logging.getLogger(__name__)

# PostgREST: single-object request matched zero rows
NO_ROWS = "PGRST116"
# PostgreSQL: invalid input syntax (malformed uuid)
INVALID_TEXT = "22P02"

SINGLE_OBJECT = "application/vnd.pgrst.object+json"


class RestStore:
    """Async client for the `books` relation behind a PostgREST endpoint."""

    TABLE = "books"

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the REST store.

        Args:
            url: Project URL, e.g. https://xyz.supabase.co
            api_key: Anon (or service) key
            timeout: Request timeout in seconds
            transport: Optional transport override
        """
        self.client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        params: Dict[str, str],
        json: Any = None,
        single: bool = False,
        missing: Any = None
    ) -> Any:
        """
        Make one round trip and decode the response.

        Args:
            method: HTTP method
            params: PostgREST query parameters
            json: Request body
            single: Ask for a single object instead of an array
            missing: Returned when the request matched no row

        Returns:
            Decoded JSON body, None for an empty body, or `missing`

        Raises:
            StoreError: transport failure or error response
        """
        headers = {"Prefer": "return=representation"}
        if single:
            headers["Accept"] = SINGLE_OBJECT

        try:
            logger.debug(f"{method} /{self.TABLE} {params}")
            response = await self.client.request(
                method, f"/{self.TABLE}", params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"Request to datastore failed: {e}")
            raise StoreError("Datastore request failed") from e

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                logger.error(f"Unreadable datastore response: {response.text[:200]}")
                raise StoreError("Datastore returned an unreadable body") from e

        code = self._error_code(response)
        if code in (NO_ROWS, INVALID_TEXT):
            return missing

        logger.error(f"Datastore error {response.status_code} ({code}): {response.text}")
        raise StoreError(f"Datastore returned {response.status_code}", code)

    @staticmethod
    def _error_code(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("code") if isinstance(body, dict) else None

    @staticmethod
    def _book(row: Any) -> Book:
        try:
            return Book.from_dict(row)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unreadable book row: {row!r}")
            raise StoreError("Datastore returned an unreadable row") from e

    async def select_books(self) -> List[Book]:
        rows = await self._request("GET", {"select": "*", "order": "title.asc"})
        if not isinstance(rows, (list, type(None))):
            raise StoreError("Datastore returned an unreadable body")
        return [self._book(row) for row in rows or []]

    async def select_book(self, book_id: str) -> Optional[Book]:
        row = await self._request(
            "GET", {"select": "*", "id": f"eq.{book_id}"}, single=True
        )
        return self._book(row) if row else None

    async def insert_book(self, book: BookInput) -> Book:
        row = await self._request(
            "POST", {"select": "*"}, json=book.to_row(), single=True
        )
        if not row:
            raise StoreError("Insert returned no row")
        return self._book(row)

    async def update_book(self, book_id: str, book: BookInput) -> Optional[Book]:
        """Update by primary key. Returns None when no row matches."""
        row = await self._request(
            "PATCH",
            {"select": "*", "id": f"eq.{book_id}"},
            json=book.to_row(),
            single=True,
        )
        return self._book(row) if row else None

    async def delete_book(self, book_id: str) -> int:
        """Delete by primary key. Returns the number of rows removed."""
        rows = await self._request(
            "DELETE", {"id": f"eq.{book_id}"}, missing=[]
        )
        return len(rows or [])

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
