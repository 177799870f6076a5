"""Write a card's rating into its visible title, once."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .extractor import CardExtractor
from .markers import NodeMarker
from .utils import format_rating

logger = logging.getLogger("rating_sorter")


class TitleAnnotator:
    """Appends ``" (rating)"`` to card titles.

    Both the processed marker and the text containment check must pass
    before a title is touched.
    """

    def __init__(
        self,
        extractor: CardExtractor,
        processed: Optional[NodeMarker] = None,
    ) -> None:
        self.extractor = extractor
        self.document = extractor.document
        self.processed = processed if processed is not None else NodeMarker()

    def is_processed(self, card: Any) -> bool:
        return card in self.processed

    def annotate(self, card: Any) -> bool:
        if card in self.processed:
            return False

        title_node = self.extractor.title_node(card)
        if title_node is None:
            logger.debug("No title element found in card")
            return False

        data = self.extractor.extract(card)
        if not data.is_rated:
            logger.debug("No rating found for card: %s", data.title)
            return False

        suffix = f"({format_rating(data.rating)})"
        current = self.document.text(title_node)
        if suffix in current:
            return False

        original = current.strip()
        self.document.append_text(title_node, f" {suffix}")
        self.processed.add(card)
        logger.debug("Added rating %s to %r", format_rating(data.rating), original)
        return True
