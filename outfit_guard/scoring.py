from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from .patterns import PatternError, find, matches
from .scan_types import (
    BatchVerdict,
    Item,
    ItemVerdict,
    Match,
    Number,
    Ruleset,
    SubjectVerdict,
    SubjectsVerdict,
)


# -----------------------------
# Helpers
# -----------------------------

def _safe_find(text: str, pattern: str) -> Optional[Tuple[int, int]]:
    try:
        return find(text, pattern)
    except PatternError as e:
        logger.warning("Ignoring malformed pattern: {}", e)
        return None


def _is_whitelisted(lname: str, whitelist: Iterable[str]) -> bool:
    """True if any whitelist entry matches anywhere in the (lower-cased) name."""
    for entry in whitelist:
        try:
            if matches(lname, entry.lower()):
                return True
        except PatternError as e:
            logger.warning("Ignoring malformed whitelist entry: {}", e)
    return False


def _original_case(name: str, lname: str, span: Optional[Tuple[int, int]], fallback: str) -> str:
    """
    Map a span found in ``lname`` back onto ``name``.

    Lower-casing can change the length of some non-ASCII names, in which case
    offsets no longer line up and the lower-cased pattern text is returned.
    """
    if span is None or len(name) != len(lname):
        return fallback
    start, end = span
    return name[start:end]


# -----------------------------
# Single item
# -----------------------------

def evaluate(item: Item, ruleset: Ruleset) -> ItemVerdict:
    """
    Score one item against the ruleset.

    Scans the blacklist in order and keeps the highest-points pattern that
    matches the name and is not suppressed by the whitelist. Ties keep the
    earlier pattern. Whitelist suppression is checked against the whole name,
    not against the span the blacklist pattern hit.
    """
    name = item.name or ""
    lname = name.lower()
    best: Optional[Match] = None

    for pattern in ruleset.blacklist:
        lpattern = pattern.text.lower()
        span = _safe_find(lname, lpattern)
        if span is None:
            continue
        if _is_whitelisted(lname, ruleset.whitelist):
            logger.debug("Item {} ({!r}): {!r} suppressed by whitelist", item.id, name, pattern.text)
            continue
        if best is None or pattern.points > best.score:
            best = Match(
                item=item,
                matched_text=_original_case(name, lname, span, lpattern),
                score=pattern.points,
            )

    if best is None:
        return ItemVerdict()
    logger.debug("Item {} ({!r}) flagged by {!r} for {}", item.id, name, best.matched_text, best.score)
    return ItemVerdict(score=best.score, match=best)


# -----------------------------
# Many items
# -----------------------------

def evaluate_batch(items: Sequence[Item], ruleset: Ruleset) -> BatchVerdict:
    """
    Score each item independently and concatenate the hits.

    The total is the sum of every item's best-match points; items never
    interact, so duplicates are scored twice.
    """
    best_by_index: Dict[int, Match] = {}
    total: Number = 0
    for idx, item in enumerate(items):
        verdict = evaluate(item, ruleset)
        if verdict.match is not None:
            best_by_index[idx] = verdict.match
            total += verdict.score
    return BatchVerdict(
        score=total,
        matches=tuple(best_by_index[i] for i in sorted(best_by_index)),
    )


def evaluate_subjects(
    subjects: Sequence[Tuple[int, Sequence[Item]]],
    ruleset: Ruleset,
    max_workers: int = 1,
) -> SubjectsVerdict:
    """
    Fan ``evaluate_batch`` out over ``(subject_id, items)`` pairs.

    Subjects without items produce no entry. Output order follows input order
    regardless of ``max_workers``.
    """
    present = [(sid, items) for sid, items in subjects if items]

    def _one(pair: Tuple[int, Sequence[Item]]) -> SubjectVerdict:
        sid, items = pair
        verdict = evaluate_batch(items, ruleset)
        return SubjectVerdict(subject_id=sid, score=verdict.score, matches=verdict.matches)

    if max_workers > 1 and len(present) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            per_user: List[SubjectVerdict] = list(pool.map(_one, present))
    else:
        per_user = [_one(pair) for pair in present]

    total: Number = 0
    for entry in per_user:
        total += entry.score
    return SubjectsVerdict(per_user=tuple(per_user), total_score=total)
