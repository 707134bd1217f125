"""Cursor over a paginated candidate list."""

from typing import Generic, Optional, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_PER_PAGE = 10


class SelectionList(Generic[T]):
    """Ordered candidates with a highlighted index.

    The cursor is clamped to the list bounds and is ``None`` when the list is
    empty. ``finish`` and ``cancel`` record how the session ended.
    """

    def __init__(self, candidates: Sequence[T] = (), per_page: int = DEFAULT_PER_PAGE) -> None:
        if per_page < 1:
            raise ValueError("per_page must be positive")
        self.per_page = per_page
        self._items: list[T] = []
        self._index: Optional[int] = None
        self._finished = False
        self._canceled = False
        self.set_candidates(candidates)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> list[T]:
        return list(self._items)

    @property
    def index(self) -> Optional[int]:
        return self._index

    def set_candidates(self, candidates: Sequence[T]) -> None:
        """Replace the visible items and put the cursor back on the first one."""
        self._items = list(candidates)
        self._index = 0 if self._items else None

    def move_up(self) -> None:
        if self._index is not None and self._index > 0:
            self._index -= 1

    def move_down(self) -> None:
        if self._index is not None and self._index < len(self._items) - 1:
            self._index += 1

    def next_page(self) -> None:
        """Jump one page forward, stopping at the last item."""
        if self._index is not None:
            self._index = min(self._index + self.per_page, len(self._items) - 1)

    def prev_page(self) -> None:
        if self._index is not None:
            self._index = max(self._index - self.per_page, 0)

    def selected(self) -> Optional[T]:
        if self._index is None:
            return None
        return self._items[self._index]

    def page(self) -> list[tuple[int, T]]:
        """Items on the page holding the cursor, with their absolute index."""
        if self._index is None:
            return []
        start = (self._index // self.per_page) * self.per_page
        return list(enumerate(self._items[start : start + self.per_page], start=start))

    def finish(self) -> bool:
        """Mark the selection as confirmed. Returns False on an empty list."""
        if self._index is None:
            return False
        self._finished = True
        return True

    def cancel(self) -> None:
        self._canceled = True

    def finished(self) -> bool:
        return self._finished

    def canceled(self) -> bool:
        return self._canceled
