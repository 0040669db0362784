# outfit_guard/patterns.py
from __future__ import annotations

"""
Matcher for the simplified pattern language used by rulesets.

Rulesets are authored with Lua-style patterns rather than regular
expressions: ``%a``/``%d``/``%w``-style classes, ``%`` escapes, ``[...]``
sets, the single-item quantifiers ``* + - ?`` and the ``^``/``$`` anchors.
Each distinct pattern is translated once into an equivalent :mod:`re`
expression and cached, so scanning a ruleset over many items only pays the
translation cost on first sight of a pattern.

Matching is NOT case-folded here; callers lower-case both sides first.
"""

import re
import string
from functools import lru_cache
from typing import List, Optional, Tuple

# ASCII bodies usable inside a regex character set
_CLASS_BODIES = {
    "a": "A-Za-z",
    "c": r"\x00-\x1f\x7f",
    "d": "0-9",
    "g": r"\x21-\x7e",
    "l": "a-z",
    "p": re.escape(string.punctuation),
    "s": r" \t\n\r\f\v",
    "u": "A-Z",
    "w": "A-Za-z0-9",
    "x": "0-9A-Fa-f",
}

_QUANTIFIERS = {"*": "*", "+": "+", "-": "*?", "?": "?"}

_ESC = "%"


class PatternError(ValueError):
    """Raised when a pattern cannot be translated (malformed or unsupported)."""


def _class_for(letter: str) -> Optional[Tuple[str, bool]]:
    """Return (set body, negated) for a ``%x`` class letter, or None if not a class."""
    body = _CLASS_BODIES.get(letter.lower())
    if body is None:
        return None
    return body, letter.isupper()


def _set_end(pattern: str, start: int) -> int:
    """
    Index of the ``]`` closing the set opened at ``pattern[start - 1]``.

    The first member is always consumed before looking for ``]``, so ``[]]``
    and ``[^]]`` are sets containing a literal ``]``.
    """
    n = len(pattern)
    j = start
    if j < n and pattern[j] == "^":
        j += 1
    while True:
        if j >= n:
            raise PatternError(f"malformed pattern (missing ']'): {pattern!r}")
        c = pattern[j]
        j += 1
        if c == _ESC:
            if j >= n:
                raise PatternError(f"malformed pattern (ends with '%'): {pattern!r}")
            j += 1
        if j < n and pattern[j] == "]":
            return j


def _translate_set(pattern: str, start: int, end: int) -> str:
    """Translate the set body ``pattern[start:end]`` (between the brackets)."""
    negated = False
    k = start
    if pattern[k] == "^":
        negated = True
        k += 1

    positive: List[str] = []
    complements: List[str] = []
    while k < end:
        c = pattern[k]
        if c == _ESC:
            letter = pattern[k + 1]
            cls = _class_for(letter)
            if cls is None:
                positive.append(re.escape(letter))
            elif cls[1]:
                complements.append(cls[0])
            else:
                positive.append(cls[0])
            k += 2
        elif k + 2 < end and pattern[k + 1] == "-":
            lo, hi = c, pattern[k + 2]
            # an inverted range matches nothing
            if lo <= hi:
                positive.append(f"{re.escape(lo)}-{re.escape(hi)}")
            k += 3
        else:
            positive.append(re.escape(c))
            k += 1

    alternatives: List[str] = []
    if positive:
        alternatives.append("[" + "".join(positive) + "]")
    alternatives.extend("[^" + body + "]" for body in complements)

    if not alternatives:
        return "." if negated else "(?!)"
    union = alternatives[0] if len(alternatives) == 1 else "(?:" + "|".join(alternatives) + ")"
    if negated:
        return f"(?:(?!{union}).)"
    return union


def _single(pattern: str, i: int) -> Tuple[str, int]:
    """Translate one single-character class starting at ``i``; return (regex, next index)."""
    c = pattern[i]
    if c == ".":
        return ".", i + 1
    if c == _ESC:
        if i + 1 >= len(pattern):
            raise PatternError(f"malformed pattern (ends with '%'): {pattern!r}")
        letter = pattern[i + 1]
        cls = _class_for(letter)
        if cls is None:
            return re.escape(letter), i + 2
        body, negated = cls
        return ("[^" if negated else "[") + body + "]", i + 2
    if c == "[":
        end = _set_end(pattern, i + 1)
        return _translate_set(pattern, i + 1, end), end + 1
    return re.escape(c), i + 1


def translate(pattern: str) -> str:
    """Translate a ruleset pattern into an equivalent :mod:`re` source string."""
    n = len(pattern)
    out: List[str] = []
    i = 0
    if pattern.startswith("^"):
        out.append(r"\A")
        i = 1

    depth = 0
    while i < n:
        c = pattern[i]
        if c == "(":
            out.append("(")
            depth += 1
            i += 1
            continue
        if c == ")":
            if depth == 0:
                raise PatternError(f"invalid pattern capture: {pattern!r}")
            out.append(")")
            depth -= 1
            i += 1
            continue
        if c == "$" and i == n - 1:
            out.append(r"\Z")
            i += 1
            continue
        if c == _ESC and i + 1 < n:
            nxt = pattern[i + 1]
            if nxt in ("b", "f"):
                raise PatternError(f"unsupported pattern item '%{nxt}': {pattern!r}")
            if nxt.isdigit():
                if nxt == "0":
                    raise PatternError(f"invalid capture index %0: {pattern!r}")
                # back-references take no quantifier
                out.append(f"(?:\\{nxt})")
                i += 2
                continue

        token, i = _single(pattern, i)
        if i < n and pattern[i] in _QUANTIFIERS:
            token += _QUANTIFIERS[pattern[i]]
            i += 1
        out.append(token)

    if depth:
        raise PatternError(f"unfinished capture: {pattern!r}")
    return "".join(out)


@lru_cache(maxsize=4096)
def compile_pattern(pattern: str) -> "re.Pattern[str]":
    try:
        return re.compile(translate(pattern), re.DOTALL)
    except re.error as e:
        raise PatternError(f"malformed pattern {pattern!r}: {e}") from e


def find(text: str, pattern: str) -> Optional[Tuple[int, int]]:
    """Span of the first occurrence of ``pattern`` in ``text``, or None."""
    m = compile_pattern(pattern).search(text)
    if m is None:
        return None
    return m.start(), m.end()


def matches(text: str, pattern: str) -> bool:
    return compile_pattern(pattern).search(text) is not None
