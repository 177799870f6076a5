"""Reorder a container's cards by rating, then by vote count."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from .annotator import TitleAnnotator
from .cascade import PatternCascade
from .classifier import Classifier
from .config import ControllerConfig, SelectorTable
from .extractor import CardExtractor
from .markers import NodeMarker
from .models import ContainerKind, SortEntry

logger = logging.getLogger("rating_sorter")

Defer = Callable[..., Any]


class SortEngine:
    """One-shot, idempotent reordering of card containers.

    The rebuild only re-appends the resolved movable units; every other
    child of the container stays where it is.
    """

    def __init__(
        self,
        cascade: PatternCascade,
        selectors: SelectorTable,
        extractor: CardExtractor,
        annotator: TitleAnnotator,
        classifier: Classifier,
        config: Optional[ControllerConfig] = None,
        defer: Optional[Defer] = None,
    ) -> None:
        self.cascade = cascade
        self.document = cascade.document
        self.selectors = selectors
        self.extractor = extractor
        self.annotator = annotator
        self.classifier = classifier
        self.config = config or ControllerConfig()
        self.defer = defer
        self.processed = NodeMarker()

    def resolve_cards(self, container: Any, kind: ContainerKind) -> List[Any]:
        cards: List[Any] = []
        if kind is ContainerKind.CAROUSEL:
            cards = self.cascade.select(container, self.selectors.carousel_card.cascade())
        elif kind is ContainerKind.BROWSE:
            cards = self.cascade.select(container, self.selectors.browse_card.cascade())
        if cards:
            return cards
        # Cards missing their shape class resolve through the generic cascade.
        return self.classifier.classify_unknown(container).cards

    def data_node(self, card: Any) -> Any:
        """The nested inner card if there is one, else the card itself."""
        inner = self.cascade.select_one(card, self.selectors.inner_card.cascade())
        return inner if inner is not None else card

    def movable_unit(self, card: Any, container: Any) -> Any:
        parent = self.document.parent(card)
        if (
            parent is not None
            and parent is not container
            and self.document.has_attribute(parent, self.config.wrapper_attribute)
        ):
            return parent
        return card

    def scrolls_horizontally(self, container: Any, kind: ContainerKind) -> bool:
        if kind is ContainerKind.CAROUSEL:
            return True
        classes = " ".join(self.document.classes(container)).lower()
        return any(hint in classes for hint in self.config.scroll_hints)

    def _reset_scroll(self, container: Any) -> None:
        self.document.set_scroll_left(container, 0)

    def sort_container(self, container: Any, kind: ContainerKind) -> bool:
        if container in self.processed:
            return False

        cards = self.resolve_cards(container, kind)
        if len(cards) < 2:
            return False

        rated: List[SortEntry] = []
        unrated: List[SortEntry] = []
        for index, card in enumerate(cards):
            inner = self.data_node(card)
            data = self.extractor.extract(inner)
            self.annotator.annotate(inner)
            entry = SortEntry(card=card, data=data, index=index)
            (rated if data.is_rated else unrated).append(entry)

        if len(rated) < 2:
            logger.debug(
                "Not sorting %s container: %d rated card(s)", kind.value, len(rated)
            )
            return False

        ordered = sorted(rated, key=lambda e: (-e.data.rating, -e.data.votes, e.index))
        units = []
        seen = set()
        for entry in ordered + unrated:
            unit = self.movable_unit(entry.card, container)
            if id(unit) in seen:
                continue
            seen.add(id(unit))
            if self.document.parent(unit) is not container:
                logger.debug("Skipping card no longer inside its container")
                continue
            units.append(unit)
        if not units:
            return False

        self.document.move_to_end(container, units)
        logger.info(
            "Sorted %s container: %d rated, %d unrated",
            kind.value,
            len(rated),
            len(unrated),
        )

        if self.scrolls_horizontally(container, kind):
            if self.defer is None:
                self._reset_scroll(container)
            else:
                self.defer(self.config.scroll_reset_delay, self._reset_scroll, container)

        self.processed.add(container)
        return True
