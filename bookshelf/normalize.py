"""Validate and normalize book input before it is persisted."""
from typing import Any, List, Mapping, Optional, Union

from bookshelf.errors import ValidationError
from bookshelf.models import BookInput


def normalize_tags(value: Any) -> List[str]:
    """
    Normalize tags into a list of trimmed, non-empty tokens.

    Args:
        value: Comma-separated string, sequence of strings, or None

    Returns:
        List of tags in input order (duplicates kept)
    """
    if value is None:
        return []

    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        raise ValidationError("Tags must be a comma-separated string or a list")

    tags = []
    for item in items:
        if not isinstance(item, str):
            raise ValidationError("Each tag must be text")
        item = item.strip()
        if item:
            tags.append(item)

    return tags


def normalize_cover_url(value: Any) -> Optional[str]:
    """Trim the cover URL; blank means no cover."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Cover URL must be text")
    return value.strip() or None


def _required_text(value: Any, label: str) -> str:
    if value is None:
        raise ValidationError(f"{label} is required")
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be text")
    value = value.strip()
    if not value:
        raise ValidationError(f"{label} is required")
    return value


def normalize_book_input(data: Union[BookInput, Mapping[str, Any]]) -> BookInput:
    """
    Validate and normalize create/update input.

    Args:
        data: BookInput or a mapping such as submitted form fields.
            Keys other than title/author/tags/cover_url are ignored.

    Returns:
        New BookInput with trimmed title/author, list tags and
        cover_url set to None when blank

    Raises:
        ValidationError: title or author missing or blank, or a field
            has the wrong shape
    """
    if isinstance(data, Mapping):
        data = BookInput(
            title=data.get("title"),
            author=data.get("author"),
            tags=data.get("tags"),
            cover_url=data.get("cover_url"),
        )
    elif not isinstance(data, BookInput):
        raise ValidationError("Book input must be a BookInput or a mapping")

    return BookInput(
        title=_required_text(data.title, "Title"),
        author=_required_text(data.author, "Author"),
        tags=normalize_tags(data.tags),
        cover_url=normalize_cover_url(data.cover_url),
    )
