"""High-level orchestration for annotating and sorting saved pages."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .config import DEFAULT_SELECTORS, RunConfig, SelectorTable
from .controller import RatingController
from .document import InvalidPatternError, SoupDocument
from .models import ControllerStats
from .utils import slugify

logger = logging.getLogger("rating_sorter")


@dataclass
class PageResult:
    """Outcome and timing for a processed page."""

    source_path: Path
    output_path: Path
    stats: ControllerStats
    total_seconds: float


@dataclass
class Fragment:
    """HTML injected into the page after load, as lazily rendered content."""

    html: str
    target: str


def _inject(document: SoupDocument, fragment: Fragment) -> None:
    try:
        parent = document.select_one(document.soup, fragment.target)
    except InvalidPatternError as exc:
        logger.error("Cannot inject fragment: %s", exc)
        return
    if parent is None:
        logger.warning("No node matches %s; fragment dropped", fragment.target)
        return
    added = document.insert_html(parent, fragment.html)
    logger.debug("Injected %d node(s) into %s", len(added), fragment.target)


async def annotate_html(
    html: str,
    config: RunConfig,
    fragments: Sequence[Fragment] = (),
    selectors: SelectorTable = DEFAULT_SELECTORS,
) -> Tuple[str, ControllerStats]:
    """Run the controller over ``html`` until the page settles."""
    loop = asyncio.get_running_loop()
    document = SoupDocument.from_html(html, scheduler=loop)
    controller = RatingController(
        document, config=config.controller, selectors=selectors, scheduler=loop
    )
    controller.start()
    controller.notify_load()
    for index, fragment in enumerate(fragments, start=1):
        loop.call_later(config.fragment_delay * index, _inject, document, fragment)
    try:
        await asyncio.sleep(config.settle_seconds)
    finally:
        controller.stop()
    return document.serialize(), controller.stats


def build_output_path(config: RunConfig, source: Path) -> Path:
    config.output_root.mkdir(parents=True, exist_ok=True)
    return config.output_root / f"{slugify(source.stem)}.html"


async def process_page(
    source: Path,
    config: RunConfig,
    fragments: Sequence[Fragment] = (),
) -> Optional[PageResult]:
    start = time.perf_counter()
    try:
        html = source.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Cannot read %s: %s", source, exc)
        return None

    logger.info("Processing %s", source)
    try:
        output_html, stats = await annotate_html(html, config, fragments)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected error processing %s", source)
        return None

    output_path = build_output_path(config, source)
    output_path.write_text(output_html, encoding="utf-8")
    logger.info("Saved annotated page to %s", output_path)
    return PageResult(
        source_path=source,
        output_path=output_path,
        stats=stats,
        total_seconds=time.perf_counter() - start,
    )


async def run_pages(
    sources: List[Path],
    config: RunConfig,
    fragments: Sequence[Fragment] = (),
) -> List[PageResult]:
    """Process each page sequentially; failed pages are logged and skipped."""
    results: List[PageResult] = []
    for source in sources:
        result = await process_page(source, config, fragments)
        if result:
            results.append(result)
    return results
