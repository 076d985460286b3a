"""Derive the displayed subset of a book list from search/filter/sort state.

Pure functions: the input list is never modified and every call recomputes
the whole view.
"""
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from bookshelf.models import Book


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class CollectionView:
    """What the user currently sees."""
    books: List[Book]
    tags: List[str]
    shown: int
    total: int

    @property
    def is_empty(self) -> bool:
        return self.shown == 0

    @property
    def empty_message(self) -> str:
        if self.total == 0:
            return "Your collection is empty. Add your first book to get started!"
        return "No books match your search criteria. Try adjusting your filters."

    @property
    def summary(self) -> str:
        noun = "book" if self.total == 1 else "books"
        return f"Showing {self.shown} of {self.total} {noun}"


def distinct_tags(books: Iterable[Book]) -> List[str]:
    """All tags used by any book, sorted."""
    tags = set()
    for book in books:
        tags.update(book.tags or [])
    return sorted(tags)


def title_sort_key(title: str) -> Tuple[str, str, str]:
    """
    Collation key approximating locale-aware comparison.

    Letters compare first without accents or case, then with accents,
    then with case (lowercase before uppercase).
    """
    folded = unicodedata.normalize("NFKD", title.casefold())
    base = "".join(c for c in folded if not unicodedata.combining(c))
    return base, folded, title.swapcase()


def derive_view(
    books: Sequence[Book],
    search_text: str = "",
    selected_tag: Optional[str] = None,
    sort_direction: Union[SortDirection, str] = SortDirection.ASC
) -> CollectionView:
    """
    Filter and sort books for display.

    Args:
        books: Full record set
        search_text: Case-insensitive substring matched against titles
        selected_tag: Exact tag to require; None or "" means no tag filter
        sort_direction: Title order, "asc" or "desc"

    Returns:
        CollectionView with the visible books, the distinct tags of the
        full set and the shown/total counts

    Raises:
        ValueError: sort_direction is not "asc" or "desc"
    """
    direction = SortDirection(sort_direction)
    visible = list(books)

    query = (search_text or "").strip().casefold()
    if query:
        visible = [book for book in visible if query in book.title.casefold()]

    if selected_tag:
        visible = [book for book in visible if selected_tag in (book.tags or [])]

    # sorted() is stable for reverse=True as well
    visible = sorted(
        visible,
        key=lambda book: title_sort_key(book.title),
        reverse=direction is SortDirection.DESC,
    )

    return CollectionView(
        books=visible,
        tags=distinct_tags(books),
        shown=len(visible),
        total=len(books),
    )
