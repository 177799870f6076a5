"""BeautifulSoup binding for the host tree, query engine and change feed."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence

import soupsieve
from bs4 import BeautifulSoup, NavigableString, Tag

from .markers import NodeMap

logger = logging.getLogger("rating_sorter")

AddedNodesCallback = Callable[[List[Tag]], None]


class InvalidPatternError(ValueError):
    """Raised when a CSS pattern cannot be compiled."""

    def __init__(self, pattern: str) -> None:
        super().__init__(f"Invalid pattern: {pattern!r}")
        self.pattern = pattern


def is_element(node: Any) -> bool:
    return isinstance(node, Tag)


def is_within(node: Tag, ancestor: Tag) -> bool:
    if node is ancestor:
        return True
    return any(parent is ancestor for parent in node.parents)


class Subscription:
    """Active change subscription on a subtree of a document."""

    def __init__(
        self,
        document: "SoupDocument",
        target: Tag,
        callback: AddedNodesCallback,
    ) -> None:
        self.document = document
        self.target = target
        self.callback = callback
        self.active = True

    def disconnect(self) -> None:
        if self.active:
            self.active = False
            self.document._unsubscribe(self)


class SoupDocument:
    """A parsed page exposed through the operations the pipeline needs.

    Added-node records are queued and delivered to subscribers in one batch
    per scheduler turn. Without a scheduler they are delivered immediately.
    """

    def __init__(self, soup: BeautifulSoup, scheduler: Optional[Any] = None) -> None:
        self.soup = soup
        self.scheduler = scheduler
        self._subscriptions: List[Subscription] = []
        self._pending: List[Tag] = []
        self._flush_handle: Optional[Any] = None
        self._scroll = NodeMap()

    @classmethod
    def from_html(
        cls,
        html: str,
        scheduler: Optional[Any] = None,
        parser: str = "html.parser",
    ) -> "SoupDocument":
        return cls(BeautifulSoup(html, parser), scheduler=scheduler)

    @property
    def root(self) -> Optional[Tag]:
        return self.soup.body

    # Queries

    def select(self, scope: Tag, pattern: str) -> List[Tag]:
        try:
            return list(scope.select(pattern))
        except soupsieve.SelectorSyntaxError as exc:
            raise InvalidPatternError(pattern) from exc

    def select_one(self, scope: Tag, pattern: str) -> Optional[Tag]:
        try:
            return scope.select_one(pattern)
        except soupsieve.SelectorSyntaxError as exc:
            raise InvalidPatternError(pattern) from exc

    def matches(self, node: Tag, pattern: str) -> bool:
        if not is_element(node) or isinstance(node, BeautifulSoup):
            return False
        try:
            return soupsieve.match(pattern, node)
        except soupsieve.SelectorSyntaxError as exc:
            raise InvalidPatternError(pattern) from exc

    # Node access

    @staticmethod
    def text(node: Tag) -> str:
        return node.get_text()

    @staticmethod
    def append_text(node: Tag, suffix: str) -> None:
        """Add ``suffix`` after the last visible text in ``node``.

        Child elements (links, spans) are kept; only a text node is replaced.
        """
        if node.find(True) is None:
            node.string = node.get_text().strip() + suffix
            return
        strings = [
            string
            for string in node.descendants
            if type(string) is NavigableString and string.strip()
        ]
        if not strings:
            node.append(NavigableString(suffix.strip()))
            return
        last = strings[-1]
        last.replace_with(NavigableString(last.rstrip() + suffix))

    @staticmethod
    def parent(node: Tag) -> Optional[Tag]:
        return node.parent

    @staticmethod
    def has_attribute(node: Tag, name: str) -> bool:
        return node.has_attr(name)

    @staticmethod
    def classes(node: Tag) -> List[str]:
        value = node.get("class") or []
        if isinstance(value, str):
            return value.split()
        return list(value)

    def scroll_left(self, node: Tag) -> float:
        return self._scroll.get(node, 0.0)

    def set_scroll_left(self, node: Tag, value: float) -> None:
        self._scroll[node] = value

    # Mutation

    def move_to_end(self, container: Tag, units: Sequence[Tag]) -> None:
        """Re-append ``units`` to ``container`` in the given order, as one batch."""
        for unit in units:
            unit.extract()
        for unit in units:
            container.append(unit)
        self._record(units)

    def insert_html(self, parent: Tag, html: str) -> List[Tag]:
        """Parse ``html`` and append its top-level nodes to ``parent``."""
        fragment = BeautifulSoup(html, "html.parser")
        nodes = list(fragment.contents)
        for node in nodes:
            parent.append(node.extract())
        self._record(nodes)
        return [node for node in nodes if is_element(node)]

    def serialize(self) -> str:
        return self.soup.decode()

    # Change feed

    def observe(self, target: Tag, callback: AddedNodesCallback) -> Subscription:
        subscription = Subscription(self, target, callback)
        self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        self._subscriptions = [
            sub for sub in self._subscriptions if sub is not subscription
        ]

    def _record(self, nodes: Iterable[Any]) -> None:
        if not self._subscriptions:
            return
        self._pending.extend(node for node in nodes if is_element(node))
        if self.scheduler is None:
            self.flush()
        elif self._flush_handle is None:
            self._flush_handle = self.scheduler.call_later(0, self.flush)

    def flush(self) -> None:
        """Deliver queued added-node records to subscribers."""
        self._flush_handle = None
        batch, self._pending = self._pending, []
        if not batch:
            return
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            added = [node for node in batch if is_within(node, subscription.target)]
            if added:
                logger.debug(
                    "Delivering %d added node(s) to subscriber", len(added)
                )
                subscription.callback(added)
