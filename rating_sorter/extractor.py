"""Locate and parse the title, rating and vote count inside a card."""

from __future__ import annotations

from typing import Any, Optional

from .cascade import PatternCascade
from .config import SelectorTable
from .models import CardData
from .utils import parse_rating, parse_votes


class CardExtractor:
    """Reads card values; missing sub-elements yield zero, never an error."""

    def __init__(self, cascade: PatternCascade, selectors: SelectorTable) -> None:
        self.cascade = cascade
        self.document = cascade.document
        self.selectors = selectors

    def title_node(self, card: Any) -> Optional[Any]:
        return self.cascade.select_one(card, self.selectors.title.cascade())

    def _text(self, card: Any, patterns) -> Optional[str]:
        node = self.cascade.select_one(card, patterns)
        if node is None:
            return None
        return self.document.text(node)

    def extract(self, card: Any) -> CardData:
        title = self._text(card, self.selectors.title.cascade()) or ""
        rating = parse_rating(self._text(card, self.selectors.rating.cascade()))
        votes = parse_votes(self._text(card, self.selectors.votes.cascade()))
        return CardData(title=title.strip(), rating=rating, votes=votes)
