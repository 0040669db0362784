from __future__ import annotations

"""
Ruleset value helpers: wire-format parsing/serialization and the append
operations used to grow a ruleset at runtime.

Rulesets are frozen; every operation here returns a new :class:`Ruleset`
and leaves persisting it (e.g. back into the store) to the caller.
"""

import json
import math
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from .config import LIST_BLACKLIST, LIST_KINDS, LIST_WHITELIST
from .scan_types import FailureReason, ModifyResult, Number, Pattern, Ruleset

WIRE_WHITELIST = "whiteList"
WIRE_BLACKLIST = "blackList"


def _coerce_points(val: Any) -> Optional[Number]:
    """Return ``val`` as a finite number, or None if it is not one."""
    if val is None:
        return 0
    # bool is an int subclass but never a sensible point value
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return None
    if isinstance(val, float) and not math.isfinite(val):
        return None
    return val


def parse_ruleset(payload: Any) -> Optional[Ruleset]:
    """
    Build a Ruleset from the decoded JSON document.

    Malformed entries are skipped with a warning; a payload that is not an
    object, or carries neither list, yields None.
    """
    if not isinstance(payload, dict):
        logger.warning("Ruleset payload is not an object: {}", type(payload).__name__)
        return None
    if WIRE_WHITELIST not in payload and WIRE_BLACKLIST not in payload:
        logger.warning("Ruleset payload has neither '{}' nor '{}'", WIRE_WHITELIST, WIRE_BLACKLIST)
        return None

    whitelist: List[str] = []
    for entry in payload.get(WIRE_WHITELIST) or []:
        if isinstance(entry, str) and entry:
            whitelist.append(entry)
        else:
            logger.warning("Skipping whitelist entry {!r}", entry)

    blacklist: List[Pattern] = []
    for entry in payload.get(WIRE_BLACKLIST) or []:
        if not isinstance(entry, dict):
            logger.warning("Skipping blacklist entry {!r}", entry)
            continue
        text = entry.get("pattern")
        if not isinstance(text, str) or not text:
            logger.warning("Skipping blacklist entry without pattern: {!r}", entry)
            continue
        points = _coerce_points(entry.get("points"))
        if points is None:
            logger.warning("Skipping blacklist entry {!r}: points must be a finite number", text)
            continue
        blacklist.append(Pattern(text=text, points=points))

    return Ruleset(whitelist=tuple(whitelist), blacklist=tuple(blacklist))


def ruleset_to_json(ruleset: Ruleset) -> Dict[str, Any]:
    return {
        WIRE_WHITELIST: list(ruleset.whitelist),
        WIRE_BLACKLIST: [{"pattern": p.text, "points": p.points} for p in ruleset.blacklist],
    }


def load_ruleset_file(path: Path) -> Optional[Ruleset]:
    """Read a ruleset JSON document from disk (same shape as the remote one)."""
    if not path.exists():
        logger.warning("Ruleset file not found: {}", path)
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Failed to read ruleset file {}: {}", path, e)
        return None
    return parse_ruleset(payload)


# ---------------------------
# Append operations
# ---------------------------

def add_whitelist_entry(ruleset: Ruleset, text: str) -> Ruleset:
    return replace(ruleset, whitelist=ruleset.whitelist + (text,))


def add_blacklist_entry(ruleset: Ruleset, text: str, points: Optional[Number] = None) -> Ruleset:
    pattern = Pattern(text=text, points=points if points is not None else 0)
    return replace(ruleset, blacklist=ruleset.blacklist + (pattern,))


def modify_pattern(
    ruleset: Ruleset,
    list_kind: str,
    text: str,
    points: Optional[Number] = None,
) -> ModifyResult:
    """
    Append ``text`` to the list named by ``list_kind``.

    Returns a failed result (and no new ruleset) for an unknown list kind or
    an empty pattern, and for blacklist points that are not a finite number.
    ``points`` is ignored for the whitelist.
    """
    if list_kind not in LIST_KINDS:
        logger.warning("modify_pattern: unknown list kind {!r}", list_kind)
        return ModifyResult(ok=False, reason=FailureReason.INVALID_LIST_KIND)
    if not isinstance(text, str) or not text:
        return ModifyResult(ok=False, reason=FailureReason.EMPTY_PATTERN)

    if list_kind == LIST_BLACKLIST:
        coerced = _coerce_points(points)
        if coerced is None:
            logger.warning("modify_pattern: rejecting points {!r} for {!r}", points, text)
            return ModifyResult(ok=False, reason=FailureReason.INVALID_POINTS)
        points = coerced

    if list_kind == LIST_WHITELIST:
        updated = add_whitelist_entry(ruleset, text)
    else:
        updated = add_blacklist_entry(ruleset, text, points)
    logger.info("Added {!r} to {} ({} points)", text, list_kind, points if points is not None else 0)
    return ModifyResult(ok=True, ruleset=updated)
