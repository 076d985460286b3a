"""Tests for the collection view engine."""
import pytest

from bookshelf.models import Book
from bookshelf.view import SortDirection, derive_view, distinct_tags


def make_books(titles, tags=None):
    tags = tags or {}
    return [
        Book(id=str(i), title=title, author="Author", tags=tags.get(title, []))
        for i, title in enumerate(titles)
    ]


def titles(view):
    return [book.title for book in view.books]


def test_sort_ascending_ignores_case():
    """Test locale-style ordering: case does not split the alphabet."""
    books = make_books(["Banana", "apple", "Cherry"])

    view = derive_view(books, "", None, SortDirection.ASC)

    assert titles(view) == ["apple", "Banana", "Cherry"]


def test_sort_descending_is_exact_reverse():
    """Test that descending order is the reverse of ascending."""
    books = make_books(["Banana", "apple", "Cherry"])

    ascending = titles(derive_view(books, sort_direction="asc"))
    descending = titles(derive_view(books, sort_direction="desc"))

    assert descending == list(reversed(ascending))


def test_sort_places_accented_titles_with_their_letter():
    """Test that accents are a secondary difference."""
    books = make_books(["Zebra", "Émile", "Eagle", "Ezra"])

    assert titles(derive_view(books)) == ["Eagle", "Émile", "Ezra", "Zebra"]


def test_sort_is_stable_for_equal_titles():
    """Test that books with identical titles keep their input order."""
    books = make_books(["Same", "Other", "Same"])

    ids = [book.id for book in derive_view(books).books if book.title == "Same"]

    assert ids == ["0", "2"]


def test_search_is_case_insensitive_substring():
    """Test that search matches anywhere in the title regardless of case."""
    books = make_books(["Banana", "apple", "Orange"])

    view = derive_view(books, "an")

    assert titles(view) == ["Banana", "Orange"]
    assert titles(derive_view(books, "  ORANGE ")) == ["Orange"]


def test_blank_search_keeps_everything():
    """Test that whitespace-only search text is no filter."""
    books = make_books(["Banana", "apple"])

    assert derive_view(books, "   ").shown == 2


def test_tag_filter_is_exact_match():
    """Test that the tag filter is case-sensitive and exact."""
    books = make_books(
        ["Dune", "Emma", "Neuromancer"],
        tags={"Dune": ["sci-fi", "classic"], "Emma": ["Classic"], "Neuromancer": ["sci-fi"]},
    )

    assert titles(derive_view(books, selected_tag="sci-fi")) == ["Dune", "Neuromancer"]
    assert titles(derive_view(books, selected_tag="classic")) == ["Dune"]
    assert titles(derive_view(books, selected_tag="")) == ["Dune", "Emma", "Neuromancer"]


def test_unknown_tag_gives_empty_view():
    """Test that selecting a tag nobody has yields no books, not an error."""
    books = make_books(["Dune"], tags={"Dune": ["sci-fi"]})

    view = derive_view(books, selected_tag="poetry")

    assert view.books == []
    assert view.is_empty
    assert view.empty_message.startswith("No books match")


def test_filters_combine():
    """Test that search and tag filters both apply."""
    books = make_books(
        ["Dune", "Dune Messiah", "Emma"],
        tags={"Dune": ["sci-fi"], "Dune Messiah": ["sequel"], "Emma": ["sci-fi"]},
    )

    assert titles(derive_view(books, "dune", "sci-fi")) == ["Dune"]


def test_distinct_tags_sorted_over_full_set():
    """Test that the tag list ignores filters and is sorted."""
    books = make_books(
        ["Dune", "Emma"],
        tags={"Dune": ["sci-fi", "classic"], "Emma": ["classic", "Romance"]},
    )

    view = derive_view(books, "emma")

    assert view.tags == ["Romance", "classic", "sci-fi"]
    assert distinct_tags([]) == []


def test_counts_and_messages():
    """Test shown/total counts and the display strings."""
    books = make_books(["Dune", "Emma"])

    view = derive_view(books, "dune")

    assert (view.shown, view.total) == (1, 2)
    assert view.summary == "Showing 1 of 2 books"
    assert derive_view([]).empty_message.startswith("Your collection is empty")


def test_input_is_not_modified():
    """Test that deriving a view leaves the record list untouched."""
    books = make_books(["Cherry", "apple"])
    before = list(books)

    derive_view(books, "a", None, "desc")

    assert books == before


def test_unknown_sort_direction_is_rejected():
    """Test that only asc/desc are accepted."""
    with pytest.raises(ValueError):
        derive_view([], sort_direction="sideways")
