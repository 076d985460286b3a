"""Staleness signals for views a presentation layer has cached."""
import logging
from typing import Callable, Iterable, List, Tuple

logger = logging.getLogger(__name__)

LIST_VIEW = "books"

Listener = Callable[[Tuple[str, ...]], None]


def book_view(book_id: str) -> str:
    """Key of the single-record view for a book."""
    return f"{LIST_VIEW}/{book_id}"


class StaleViews:
    """Fan-out of "this view may be out of date" notifications."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Args:
            listener: Called with the tuple of stale view keys

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, views: Iterable[str]) -> None:
        views = tuple(views)
        logger.debug(f"Stale views: {', '.join(views)}")
        for listener in list(self._listeners):
            # Listener failures never propagate: the write is already committed
            try:
                listener(views)
            except Exception:
                logger.exception(f"Stale-view listener {listener!r} failed")
