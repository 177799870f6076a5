"""Container discovery and structural classification."""

from __future__ import annotations

import logging
from typing import Any, List

from .cascade import PatternCascade, first_match
from .config import SelectorTable
from .document import InvalidPatternError
from .models import Classification, ContainerKind, ContainerSet, UnknownContainer

logger = logging.getLogger("rating_sorter")


class Classifier:
    """Find card containers and decide how their cards are shaped."""

    def __init__(self, cascade: PatternCascade, selectors: SelectorTable) -> None:
        self.cascade = cascade
        self.document = cascade.document
        self.selectors = selectors

    def _primary(self, scope: Any, pattern: str) -> List[Any]:
        try:
            return self.document.select(scope, pattern)
        except InvalidPatternError as exc:
            logger.debug("Primary container pattern failed: %s", exc)
            return []

    def find_containers(self, scope: Any) -> ContainerSet:
        """Locate carousel and browse containers under ``scope``.

        Primary patterns win outright. Otherwise every node matched by the
        container fallbacks is bucketed by the card shapes found inside it.
        """
        selectors = self.selectors
        carousels = self._primary(scope, selectors.carousel_container.primary)
        browse = self._primary(scope, selectors.browse_container.primary)
        if carousels or browse:
            return ContainerSet(carousels=carousels, browse=browse)

        found = ContainerSet()
        seen = set()
        for pattern in selectors.container_fallbacks():
            try:
                nodes = self.document.select(scope, pattern)
            except InvalidPatternError as exc:
                logger.debug("Skipping container fallback: %s", exc)
                continue
            for node in nodes:
                if id(node) in seen:
                    continue
                seen.add(id(node))
                if self.cascade.select(node, selectors.carousel_card.cascade()):
                    found.carousels.append(node)
                elif self.cascade.select(node, selectors.browse_card.cascade()):
                    found.browse.append(node)
                else:
                    inner = self.cascade.select(node, selectors.inner_card.cascade())
                    if inner:
                        found.unknown.append(UnknownContainer(node, len(inner)))
        if found:
            logger.debug(
                "Fallback discovery: %d carousel, %d browse, %d unknown",
                len(found.carousels),
                len(found.browse),
                len(found.unknown),
            )
        return found

    def classify_unknown(self, container: Any) -> Classification:
        """Probe descendants; carousel cards win over browse cards."""
        selectors = self.selectors
        result = first_match(
            [
                (
                    ContainerKind.CAROUSEL.value,
                    lambda: self.cascade.select(container, selectors.carousel_card.cascade()),
                ),
                (
                    ContainerKind.BROWSE.value,
                    lambda: self.cascade.select(container, selectors.browse_card.cascade()),
                ),
                (
                    ContainerKind.GENERIC.value,
                    lambda: self.cascade.select(container, selectors.card_fallbacks()),
                ),
            ]
        )
        if result is None:
            return Classification(ContainerKind.GENERIC, [])
        label, cards = result
        return Classification(ContainerKind(label), cards)
