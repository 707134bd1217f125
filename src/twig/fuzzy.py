"""Fuzzy filtering of candidate lists."""

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def matches(query: str, text: str) -> bool:
    """Check that the characters of ``query`` appear in ``text`` in order.

    Matching ignores case. An empty query matches everything.
    """
    remaining = iter(text.lower())
    return all(char in remaining for char in query.lower())


def fuzzy_filter(query: str, candidates: Iterable[T], key: Callable[[T], str] = str) -> list[T]:
    """Return the candidates matching ``query``, keeping their original order."""
    return [candidate for candidate in candidates if matches(query, key(candidate))]
