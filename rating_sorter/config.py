"""Configuration objects and constants for the rating sorter."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Tuple


def _dedupe(patterns: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for pattern in patterns:
        if pattern not in seen:
            seen.append(pattern)
    return tuple(seen)


@dataclass(frozen=True)
class ShapePatterns:
    """Primary CSS pattern for a logical shape plus ranked fallbacks."""

    primary: str
    fallbacks: Tuple[str, ...] = ()

    def cascade(self) -> Tuple[str, ...]:
        return (self.primary, *self.fallbacks)


@dataclass(frozen=True)
class SelectorTable:
    """Logical shape name to pattern cascade."""

    inner_card: ShapePatterns
    carousel_card: ShapePatterns
    browse_card: ShapePatterns
    title: ShapePatterns
    rating: ShapePatterns
    votes: ShapePatterns
    carousel_container: ShapePatterns
    browse_container: ShapePatterns

    def container_fallbacks(self) -> Tuple[str, ...]:
        return _dedupe(
            self.carousel_container.fallbacks + self.browse_container.fallbacks
        )

    def card_fallbacks(self) -> Tuple[str, ...]:
        """Patterns tried in order to find the movable cards of a generic container."""
        return _dedupe(
            self.carousel_card.fallbacks
            + self.browse_card.fallbacks
            + self.inner_card.fallbacks
        )

    def card_query(self) -> Tuple[str, ...]:
        """Document-wide card query: all primaries at once, then fallbacks."""
        primaries = ", ".join(
            shape.primary
            for shape in (self.inner_card, self.carousel_card, self.browse_card)
        )
        return (primaries, *self.card_fallbacks())

    def relevance_patterns(self) -> Tuple[str, ...]:
        """Patterns that make an added node worth a processing pass."""
        shapes = (
            self.inner_card,
            self.carousel_card,
            self.browse_card,
            self.carousel_container,
            self.browse_container,
        )
        return _dedupe(pattern for shape in shapes for pattern in shape.cascade())


DEFAULT_SELECTORS = SelectorTable(
    inner_card=ShapePatterns(
        ".browse-card--esJdT",
        ("[class*='browse-card--']", "[class*='playable-card--']"),
    ),
    carousel_card=ShapePatterns(
        ".carousel-scroller__card--4Lrk-",
        ("[class*='carousel-scroller__card']",),
    ),
    browse_card=ShapePatterns(
        ".browse-collection-card--m2Rmp",
        ("[class*='browse-collection-card']",),
    ),
    title=ShapePatterns(
        ".browse-card__title-link--SLlRM",
        ("[class*='browse-card__title-link']", "[class*='title-link']", "h4"),
    ),
    rating=ShapePatterns(
        ".star-rating-short-static__rating--bdAfR",
        ("[class*='star-rating-short-static__rating']",),
    ),
    votes=ShapePatterns(
        ".star-rating-short-static__votes-count--h9Sun",
        ("[class*='votes-count']",),
    ),
    carousel_container=ShapePatterns(
        ".carousel-scroller__track--43f0L",
        ("[class*='carousel-scroller__track']", "[class*='scroller__track']"),
    ),
    browse_container=ShapePatterns(
        ".erc-browse-cards-collection",
        ("[class*='cards-collection']", "[role='list']", "ul"),
    ),
)


@dataclass
class ControllerConfig:
    """Timing and structural tunables for the reactive controller.

    Delays and intervals are in seconds.
    """

    max_retries: int = 5
    retry_delay: float = 0.8
    debounce_delay: float = 0.1
    sort_delay: float = 0.3
    poll_interval: float = 0.5
    poll_ticks: int = 4
    load_delay: float = 1.0
    observe_retry_delay: float = 0.1
    scroll_reset_delay: float = 0.05
    wrapper_attribute: str = "data-t"
    scroll_hints: Tuple[str, ...] = ("carousel", "scroller", "horizontal")


@dataclass
class RunConfig:
    """Top-level settings for processing saved pages from the command line."""

    output_root: Path
    settle_seconds: float = 3.0
    fragment_delay: float = 1.5
    controller: ControllerConfig = field(default_factory=ControllerConfig)
