"""Data models used throughout the rating pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Union

Number = Union[int, float]


class ContainerKind(Enum):
    CAROUSEL = "carousel"
    BROWSE = "browse"
    GENERIC = "generic"


class ControllerState(Enum):
    BOOTSTRAPPING = "bootstrapping"
    STEADY = "steady"


@dataclass
class CardData:
    """Values extracted from one card; zero means absent."""

    title: str
    rating: Number = 0
    votes: Number = 0

    @property
    def is_rated(self) -> bool:
        return self.rating > 0


@dataclass
class UnknownContainer:
    """Container found by structural probing that matched only inner cards."""

    node: Any
    inner_card_count: int


@dataclass
class ContainerSet:
    """Result of container discovery for one scope."""

    carousels: List[Any] = field(default_factory=list)
    browse: List[Any] = field(default_factory=list)
    unknown: List[UnknownContainer] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.carousels) + len(self.browse) + len(self.unknown)


@dataclass
class Classification:
    """Kind of a structurally probed container and the cards it would move."""

    kind: ContainerKind
    cards: List[Any]


@dataclass
class SortEntry:
    """A card resolved for sorting, with its original position."""

    card: Any
    data: CardData
    index: int


@dataclass
class ControllerStats:
    """Counters reported by the controller for one page lifetime."""

    passes: int = 0
    cards_annotated: int = 0
    retries: int = 0
    sweeps: int = 0
    containers_sorted: int = 0
