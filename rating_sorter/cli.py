"""Command-line entry point for the rating sorter."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import List, Sequence

from .config import ControllerConfig, RunConfig
from .runner import Fragment, run_pages

logger = logging.getLogger("rating_sorter.cli")


def _add_timing_arguments(parser: argparse.ArgumentParser) -> None:
    defaults = ControllerConfig()
    parser.add_argument(
        "--max-retries",
        type=int,
        default=defaults.max_retries,
        help="Discovery retries while no cards have been found",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=defaults.retry_delay,
        help="Seconds between discovery retries",
    )
    parser.add_argument(
        "--debounce",
        type=float,
        default=defaults.debounce_delay,
        help="Seconds to wait for a burst of changes to settle",
    )
    parser.add_argument(
        "--sort-delay",
        type=float,
        default=defaults.sort_delay,
        help="Seconds between annotating new cards and sorting containers",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=defaults.poll_interval,
        help="Seconds between safety-net checks during early load",
    )
    parser.add_argument(
        "--poll-ticks",
        type=int,
        default=defaults.poll_ticks,
        help="Number of safety-net checks (0 disables them)",
    )
    parser.add_argument(
        "--load-delay",
        type=float,
        default=defaults.load_delay,
        help="Seconds after the load event before one more pass",
    )
    parser.add_argument(
        "--observe-retry-delay",
        type=float,
        default=defaults.observe_retry_delay,
        help="Seconds between attempts to subscribe while the page has no body",
    )
    parser.add_argument(
        "--scroll-reset-delay",
        type=float,
        default=defaults.scroll_reset_delay,
        help="Seconds after sorting before a horizontal container scrolls back to the start",
    )
    parser.add_argument(
        "--scroll-hint",
        action="append",
        dest="scroll_hints",
        default=None,
        help=(
            "Class-name fragment marking a horizontally scrolling container "
            f"(repeatable, default: {', '.join(defaults.scroll_hints)})"
        ),
    )
    parser.add_argument(
        "--wrapper-attribute",
        default=defaults.wrapper_attribute,
        help="Attribute marking a card's wrapper element",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Add ratings to card titles in saved listing pages and sort cards by rating."
        ),
    )
    parser.add_argument("pages", nargs="+", type=Path, help="Saved HTML pages to process")
    parser.add_argument(
        "--output",
        default="output",
        type=Path,
        help="Directory where processed pages should be written",
    )
    parser.add_argument(
        "--settle",
        type=float,
        default=3.0,
        help="Seconds to let the page settle before writing it out",
    )
    parser.add_argument(
        "--fragment",
        action="append",
        default=[],
        type=Path,
        help="HTML file injected after load to emulate lazily rendered cards (repeatable)",
    )
    parser.add_argument(
        "--fragment-into",
        default="body",
        help="CSS pattern of the node fragments are appended to",
    )
    parser.add_argument(
        "--fragment-delay",
        type=float,
        default=1.5,
        help="Seconds between fragment injections",
    )
    _add_timing_arguments(parser)
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    argv = list(sys.argv[1:] if argv is None else argv)
    return parser.parse_args(argv)


def _load_fragments(paths: Sequence[Path], target: str) -> List[Fragment]:
    return [Fragment(html=path.read_text(encoding="utf-8"), target=target) for path in paths]


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    config = RunConfig(
        output_root=Path(args.output).resolve(),
        settle_seconds=args.settle,
        fragment_delay=args.fragment_delay,
        controller=ControllerConfig(
            max_retries=args.max_retries,
            retry_delay=args.retry_delay,
            debounce_delay=args.debounce,
            sort_delay=args.sort_delay,
            poll_interval=args.poll_interval,
            poll_ticks=args.poll_ticks,
            load_delay=args.load_delay,
            observe_retry_delay=args.observe_retry_delay,
            scroll_reset_delay=args.scroll_reset_delay,
            wrapper_attribute=args.wrapper_attribute,
            scroll_hints=tuple(args.scroll_hints or ControllerConfig().scroll_hints),
        ),
    )
    fragments = _load_fragments(args.fragment, args.fragment_into)

    overall_start = time.perf_counter()
    results = asyncio.run(run_pages(args.pages, config, fragments))
    total_elapsed = time.perf_counter() - overall_start

    successes = len(results)
    failures = len(args.pages) - successes
    logger.info(
        "Finished in %.2fs (%d/%d succeeded, %d failed)",
        total_elapsed,
        successes,
        len(args.pages),
        failures,
    )
    for result in results:
        logger.debug(
            "%s -> %s | passes: %d | annotated: %d | sorted: %d | %.2fs",
            result.source_path,
            result.output_path,
            result.stats.passes,
            result.stats.cards_annotated,
            result.stats.containers_sorted,
            result.total_seconds,
        )
    return 0 if not failures else 1


if __name__ == "__main__":
    sys.exit(main())
