"""Keeps the rating pipeline in step with a mutating document."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

from .annotator import TitleAnnotator
from .cascade import PatternCascade
from .classifier import Classifier
from .config import DEFAULT_SELECTORS, ControllerConfig, SelectorTable
from .document import SoupDocument, Subscription, is_element
from .extractor import CardExtractor
from .models import ContainerKind, ControllerState, ControllerStats
from .sorter import SortEngine

logger = logging.getLogger("rating_sorter")


class RatingController:
    """Drives classify, extract, annotate and sort on a single event loop.

    All timers go through ``scheduler.call_later``; an asyncio loop is used
    when none is given.
    """

    def __init__(
        self,
        document: SoupDocument,
        config: Optional[ControllerConfig] = None,
        selectors: SelectorTable = DEFAULT_SELECTORS,
        scheduler: Optional[Any] = None,
    ) -> None:
        self.document = document
        self.config = config or ControllerConfig()
        self.selectors = selectors
        self.scheduler = scheduler

        self.cascade = PatternCascade(document)
        self.classifier = Classifier(self.cascade, selectors)
        self.extractor = CardExtractor(self.cascade, selectors)
        self.annotator = TitleAnnotator(self.extractor)
        self.sorter = SortEngine(
            self.cascade,
            selectors,
            self.extractor,
            self.annotator,
            self.classifier,
            config=self.config,
            defer=self._call_later,
        )
        self._reset()

    def _reset(self) -> None:
        self.state = ControllerState.BOOTSTRAPPING
        self.retry_count = 0
        self.poll_count = 0
        self.stats = ControllerStats()
        self.subscription: Optional[Subscription] = None
        self._retry_handle: Optional[Any] = None
        self._debounce_handle: Optional[Any] = None
        self._poll_handle: Optional[Any] = None
        self._observe_handle: Optional[Any] = None
        self._load_handle: Optional[Any] = None
        self._running = False

    @property
    def steady(self) -> bool:
        return self.state is ControllerState.STEADY

    def _call_later(self, delay: float, callback, *args) -> Any:
        if self.scheduler is None:
            self.scheduler = asyncio.get_running_loop()
        return self.scheduler.call_later(delay, callback, *args)

    # Lifecycle

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        logger.info("Initializing rating sorter")
        self.process()
        self.observe()
        if self.config.poll_ticks > 0:
            self._poll_handle = self._call_later(self.config.poll_interval, self._poll)

    def stop(self) -> None:
        if self.subscription is not None:
            self.subscription.disconnect()
        for handle in (
            self._retry_handle,
            self._debounce_handle,
            self._poll_handle,
            self._observe_handle,
            self._load_handle,
        ):
            if handle is not None:
                handle.cancel()
        self._retry_handle = None
        self._debounce_handle = None
        self._poll_handle = None
        self._observe_handle = None
        self._load_handle = None
        self._running = False

    def restart(self) -> None:
        """Stop, forget all counters and start over on the same document."""
        self.stop()
        self._reset()
        self.start()

    def notify_load(self) -> None:
        """Host finished loading; give late content one more pass."""
        logger.debug("Load event received")
        self._load_handle = self._call_later(self.config.load_delay, self.process)

    # Subscription

    def observe(self) -> None:
        self._observe_handle = None
        if not self._running:
            return
        if self.subscription is not None:
            self.subscription.disconnect()
            self.subscription = None
        root = self.document.root
        if root is None:
            logger.debug("Document root not available yet, retrying subscription")
            self._observe_handle = self._call_later(
                self.config.observe_retry_delay, self.observe
            )
            return
        self.subscription = self.document.observe(root, self.handle_added_nodes)
        logger.info("Change subscription established")

    def is_relevant(self, node: Any) -> bool:
        if not is_element(node):
            return False
        return self.cascade.contains(node, self.selectors.relevance_patterns())

    def handle_added_nodes(self, nodes: List[Any]) -> None:
        if any(self.is_relevant(node) for node in nodes):
            logger.debug("New cards detected by change subscription")
            self.schedule_process()

    def schedule_process(self) -> None:
        """Debounced pass: a pending pass is replaced, never duplicated."""
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        self._debounce_handle = self._call_later(
            self.config.debounce_delay, self._debounced_process
        )

    def _debounced_process(self) -> None:
        self._debounce_handle = None
        self.process()

    # Timers

    def _poll(self) -> None:
        self._poll_handle = None
        self.poll_count += 1
        if not self.steady:
            self.process()
        if self.steady or self.poll_count >= self.config.poll_ticks:
            logger.debug("Safety-net poll finished after %d tick(s)", self.poll_count)
            return
        self._poll_handle = self._call_later(self.config.poll_interval, self._poll)

    def _retry(self) -> None:
        self._retry_handle = None
        self.process()

    # Processing

    def _find_cards(self) -> List[Any]:
        cards = []
        seen = set()
        for card in self.cascade.select(self.document.soup, self.selectors.card_query()):
            node = self.sorter.data_node(card)
            if id(node) in seen:
                continue
            seen.add(id(node))
            cards.append(node)
        return cards

    def process(self) -> int:
        """One full pass; returns the number of newly annotated cards."""
        self.stats.passes += 1
        cards = self._find_cards()

        if not cards:
            if (
                not self.steady
                and self.retry_count < self.config.max_retries
                and self._retry_handle is None
            ):
                self.retry_count += 1
                self.stats.retries += 1
                logger.info(
                    "No cards found, retrying in %.1fs (attempt %d/%d)",
                    self.config.retry_delay,
                    self.retry_count,
                    self.config.max_retries,
                )
                self._retry_handle = self._call_later(self.config.retry_delay, self._retry)
            return 0

        if not self.steady:
            self.state = ControllerState.STEADY
            logger.info("Found %d cards to process", len(cards))

        annotated = 0
        for card in cards:
            if self.annotator.is_processed(card):
                continue
            try:
                if self.annotator.annotate(card):
                    annotated += 1
            except Exception:  # pylint: disable=broad-except
                logger.exception("Error processing card")

        if annotated:
            self.stats.cards_annotated += annotated
            logger.info("Processed %d new cards", annotated)
            self._call_later(self.config.sort_delay, self.sort_all)
        return annotated

    def sort_all(self) -> int:
        """Discover containers under the document and sort each once."""
        self.stats.sweeps += 1
        containers = self.classifier.find_containers(self.document.soup)
        work = [(node, ContainerKind.CAROUSEL) for node in containers.carousels]
        work += [(node, ContainerKind.BROWSE) for node in containers.browse]
        for unknown in containers.unknown:
            kind = self.classifier.classify_unknown(unknown.node).kind
            work.append((unknown.node, kind))

        sorted_count = 0
        for node, kind in work:
            try:
                if self.sorter.sort_container(node, kind):
                    sorted_count += 1
            except Exception:  # pylint: disable=broad-except
                logger.exception("Error sorting %s container", kind.value)

        self.stats.containers_sorted += sorted_count
        if sorted_count:
            logger.info("Sorted %d container(s)", sorted_count)
        return sorted_count
