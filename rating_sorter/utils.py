"""Utility helpers for parsing card text and naming output files."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from .models import Number

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
VOTES_PATTERN = re.compile(r"\(([\d.]+)([kK])?\)")
DECIMAL_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)")


def slugify(value: str, fallback: str = "page") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def _leading_decimal(text: str) -> Optional[Decimal]:
    match = DECIMAL_PREFIX.match(text)
    if not match:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def _as_number(value: Decimal) -> Number:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def parse_rating(text: Optional[str]) -> Number:
    """Parse a rating such as ``"4.6"``; unparsable text yields 0."""
    if not text:
        return 0
    value = _leading_decimal(text.strip())
    if value is None:
        return 0
    return _as_number(value)


def parse_votes(text: Optional[str]) -> Number:
    """Parse a vote count such as ``"(121.4k)"`` into 121400; otherwise 0."""
    if not text:
        return 0
    match = VOTES_PATTERN.search(text)
    if not match:
        return 0
    value = _leading_decimal(match.group(1))
    if value is None:
        return 0
    if match.group(2):
        value *= 1000
    return _as_number(value)


def format_rating(rating: Number) -> str:
    """Render a rating the way the listing shows it (``5.0`` -> ``"5"``)."""
    if isinstance(rating, float) and rating.is_integer():
        rating = int(rating)
    return str(rating)
