"""Typed containers shared across the scanning modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .config import MatchOut, Number


class FailureReason(str, Enum):
    """Reasons carried by failed (ok=False) results."""

    FETCH_FAILURE = "ruleset unavailable"
    NO_ITEMS = "no items"
    INVALID_LIST_KIND = "invalid list kind"
    EMPTY_PATTERN = "empty pattern"
    INVALID_POINTS = "invalid points"


@dataclass(frozen=True)
class Item:
    """A worn accessory. ``name`` is what gets matched; ``id`` is its identity."""

    name: str
    id: int


@dataclass(frozen=True)
class Pattern:
    """A blacklist rule."""

    text: str
    points: Number = 0


@dataclass(frozen=True)
class Ruleset:
    """
    Whitelist/blacklist pair. Frozen: every mutation builds a new value,
    so a reader holding a reference never sees a half-applied append.
    """

    whitelist: Tuple[str, ...] = ()
    blacklist: Tuple[Pattern, ...] = ()


@dataclass(frozen=True)
class Match:
    item: Item
    matched_text: str
    score: Number

    def to_out(self) -> MatchOut:
        return MatchOut(
            item_id=self.item.id,
            item_name=self.item.name,
            matched_text=self.matched_text,
            score=self.score,
        )


@dataclass(frozen=True)
class ItemVerdict:
    """Outcome of scoring one item: its best match (if any) and that match's points."""

    score: Number = 0
    match: Optional[Match] = None


@dataclass(frozen=True)
class BatchVerdict:
    """Outcome of scoring a list of items."""

    score: Number = 0
    matches: Tuple[Match, ...] = ()


@dataclass(frozen=True)
class SubjectVerdict:
    subject_id: int
    score: Number
    matches: Tuple[Match, ...]


@dataclass(frozen=True)
class SubjectsVerdict:
    """Outcome of scoring several subjects; subjects without items are absent."""

    per_user: Tuple[SubjectVerdict, ...] = ()
    total_score: Number = 0


@dataclass(frozen=True)
class ModifyResult:
    ok: bool
    ruleset: Optional[Ruleset] = None
    reason: Optional[FailureReason] = None
