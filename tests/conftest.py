"""Shared fixtures: a deterministic clock and listing-page builders."""

from typing import List, Optional

import pytest
from bs4 import BeautifulSoup

from rating_sorter.config import ControllerConfig
from rating_sorter.document import SoupDocument


class FakeHandle:
    def __init__(self, when, seq, callback, args):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Minimal ``call_later`` clock advanced by hand."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._queue: List[FakeHandle] = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self.now + delay, self._seq, callback, args)
        self._seq += 1
        self._queue.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for handle in self._queue if not handle.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self._queue if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.when, h.seq))
            self._queue.remove(handle)
            self.now = handle.when
            handle.callback(*handle.args)
        self._queue = [h for h in self._queue if not h.cancelled]
        self.now = target

    def run_until_idle(self, max_steps: int = 1000) -> None:
        for _ in range(max_steps):
            live = [h for h in self._queue if not h.cancelled]
            if not live:
                return
            next_when = min(h.when for h in live)
            self.advance(max(next_when - self.now, 0.0))
        raise AssertionError("scheduler did not go idle")


def card_html(
    title: str,
    rating: Optional[str] = None,
    votes: Optional[str] = None,
    card_class: str = "browse-card--esJdT",
) -> str:
    parts = [
        f'<div class="{card_class}">',
        f'<h4><a class="browse-card__title-link--SLlRM">{title}</a></h4>',
    ]
    if rating is not None:
        parts.append(f'<span class="star-rating-short-static__rating--bdAfR">{rating}</span>')
    if votes is not None:
        parts.append(
            f'<span class="star-rating-short-static__votes-count--h9Sun">{votes}</span>'
        )
    parts.append("</div>")
    return "".join(parts)


def carousel_item_html(title, rating=None, votes=None) -> str:
    return (
        '<div class="carousel-scroller__card--4Lrk-">'
        + card_html(title, rating, votes)
        + "</div>"
    )


def browse_page(cards: List[str], container_class="erc-browse-cards-collection") -> str:
    inner = "\n".join(cards)
    return (
        "<html><body><main>"
        f'<div class="{container_class}">\n{inner}\n</div>'
        "</main></body></html>"
    )


def carousel_page(cards: List[str], track_class="carousel-scroller__track--43f0L") -> str:
    inner = "\n".join(cards)
    return (
        "<html><body>"
        f'<div class="carousel-scroller"><div class="{track_class}">\n{inner}\n</div></div>'
        "</body></html>"
    )


def titles(document: SoupDocument, scope=None) -> List[str]:
    scope = scope if scope is not None else document.soup
    return [
        node.get_text()
        for node in scope.select(".browse-card__title-link--SLlRM")
    ]


def append_silently(parent, html: str) -> None:
    """Add nodes without going through the change feed."""
    fragment = BeautifulSoup(html, "html.parser")
    for node in list(fragment.contents):
        parent.append(node.extract())


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def quiet_config():
    """Controller config without the safety-net poll."""
    return ControllerConfig(poll_ticks=0)
