"""Error kinds and the result type returned by the gateway."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """The three ways a gateway operation can fail."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STORE_UNAVAILABLE = "store_unavailable"


@dataclass(frozen=True)
class BookError:
    """Failure as seen by the caller."""
    kind: ErrorKind
    message: str


class BookshelfError(Exception):
    """Raised by Result.unwrap() for callers that prefer exceptions."""

    def __init__(self, error: BookError):
        super().__init__(error.message)
        self.error = error

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


class ValidationError(Exception):
    """Input that cannot be persisted as given."""


class StoreError(Exception):
    """Failure of a datastore round trip.

    Wraps the driver error so nothing driver-specific leaves the store layer.
    """

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ConfigError(Exception):
    """Invalid configuration detected at startup."""


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a gateway operation.

    Exactly one of `value`/`error` is meaningful: `error` is None on success.
    `stale` lists the views a successful mutation invalidated.
    """
    value: Optional[T] = None
    error: Optional[BookError] = None
    stale: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None, stale: Tuple[str, ...] = ()) -> "Result":
        return cls(value=value, stale=tuple(stale))

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result":
        return cls(error=BookError(kind, message))

    def unwrap(self) -> Optional[T]:
        """Return the value or raise BookshelfError."""
        if self.error is not None:
            raise BookshelfError(self.error)
        return self.value
