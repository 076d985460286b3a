"""Data models for books."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union


@dataclass
class Book:
    """A persisted book record."""
    id: str
    title: str
    author: str
    tags: List[str] = field(default_factory=list)
    cover_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def tags_str(self) -> str:
        """Format tags as comma-separated string."""
        return ", ".join(self.tags)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Book":
        """Build a Book from a JSON row (PostgREST representation)."""
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        return cls(
            id=str(data["id"]),
            title=data["title"],
            author=data["author"],
            tags=list(data.get("tags") or []),
            cover_url=data.get("cover_url"),
            created_at=created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "tags": list(self.tags),
            "cover_url": self.cover_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class BookInput:
    """Fields a caller may write when creating or updating a book.

    `tags` may be a comma-separated string or an already-split sequence.
    """
    title: Optional[str] = None
    author: Optional[str] = None
    tags: Union[str, Sequence[str], None] = None
    cover_url: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        """Column values for an insert or update. Tags are always a list."""
        from bookshelf.normalize import normalize_tags

        return {
            "title": self.title,
            "author": self.author,
            "tags": normalize_tags(self.tags),
            "cover_url": self.cover_url,
        }
