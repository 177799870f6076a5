"""Ordered "first matching strategy wins" selection over CSS patterns."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Tuple, TypeVar

from .document import InvalidPatternError, SoupDocument

logger = logging.getLogger("rating_sorter")

T = TypeVar("T")


def first_match(
    attempts: Iterable[Tuple[str, Callable[[], T]]],
    accept: Callable[[T], bool] = bool,
) -> Optional[Tuple[str, T]]:
    """Run ``(label, attempt)`` pairs in order and return the first accepted result.

    An attempt that fails on an invalid pattern is skipped.
    """
    for label, attempt in attempts:
        try:
            result = attempt()
        except InvalidPatternError as exc:
            logger.debug("Skipping %s: %s", label, exc)
            continue
        if accept(result):
            return label, result
    return None


def _found(node: Any) -> bool:
    return node is not None


class PatternCascade:
    """Resolve nodes from a primary pattern and ranked fallbacks."""

    def __init__(self, document: SoupDocument) -> None:
        self.document = document

    def select(self, scope: Any, patterns: Iterable[str]) -> List[Any]:
        """All matches of the first pattern yielding at least one node."""
        found = first_match(
            (pattern, lambda pattern=pattern: self.document.select(scope, pattern))
            for pattern in patterns
        )
        return found[1] if found else []

    def select_one(self, scope: Any, patterns: Iterable[str]) -> Optional[Any]:
        found = first_match(
            (
                (pattern, lambda pattern=pattern: self.document.select_one(scope, pattern))
                for pattern in patterns
            ),
            accept=_found,
        )
        return found[1] if found else None

    def matches(self, node: Any, patterns: Iterable[str]) -> bool:
        found = first_match(
            (pattern, lambda pattern=pattern: self.document.matches(node, pattern))
            for pattern in patterns
        )
        return found is not None

    def contains(self, node: Any, patterns: Iterable[str]) -> bool:
        """True if ``node`` or one of its descendants matches any pattern."""
        patterns = tuple(patterns)
        return self.matches(node, patterns) or self.select_one(node, patterns) is not None
