from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field


# ---------------------------
# Paths
# ---------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = PROJECT_ROOT / "data"
LOCAL_RULESET_PATH = DATA_DIR / "ruleset.json"


# ---------------------------
# Remote sources
# ---------------------------

# JSON document of the shape {"whiteList": [...], "blackList": [{"pattern", "points"}]}
RULESET_URL = os.getenv(
    "OUTFIT_GUARD_RULESET_URL",
    "https://raw.githubusercontent.com/outfit-guard/rulesets/main/ruleset.json",
)

AVATAR_API_BASE = os.getenv("OUTFIT_GUARD_AVATAR_API", "https://avatar.roblox.com")
ECONOMY_API_BASE = os.getenv("OUTFIT_GUARD_ECONOMY_API", "https://economy.roblox.com")


# ---------------------------
# HTTP hardening
# ---------------------------

HTTP_CONNECT_TIMEOUT = float(os.getenv("OUTFIT_GUARD_CONNECT_TIMEOUT", "3.0"))
HTTP_READ_TIMEOUT = float(os.getenv("OUTFIT_GUARD_READ_TIMEOUT", "7.0"))
HTTP_MAX_REDIRECTS = 2
HTTP_MAX_BYTES = 2_000_000  # rulesets are small; 2 MB cap

HTTP_USER_AGENT = "outfit-guard/1.0 (+https://github.com/outfit-guard/outfit-guard)"


# ---------------------------
# Concurrency knobs
# ---------------------------

# per-asset name lookups for a single user
ITEM_LOOKUP_WORKERS = int(os.getenv("OUTFIT_GUARD_ITEM_WORKERS", "4"))
# users fetched in parallel by check_subjects
SUBJECT_WORKERS = int(os.getenv("OUTFIT_GUARD_SUBJECT_WORKERS", "4"))


# ---------------------------
# Ruleset list kinds
# ---------------------------

LIST_WHITELIST = "whitelist"
LIST_BLACKLIST = "blacklist"
LIST_KINDS = (LIST_WHITELIST, LIST_BLACKLIST)


# ---------------------------
# Logging / observability
# ---------------------------

LOG_LEVEL = os.getenv("OUTFIT_GUARD_LOG_LEVEL", "INFO")


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

Number = Union[int, float]


class MatchOut(BaseModel):
    """
    One flagged item: the item, the original-case text that hit, and the points.
    """

    item_id: int
    item_name: str
    matched_text: str
    score: Number


class CheckResult(BaseModel):
    """
    Result of checking a single user.

    On failure only ``ok`` and ``reason`` are meaningful.
    """

    ok: bool
    reason: Optional[str] = None
    item_count: int = 0
    score: Number = 0
    matches: List[MatchOut] = Field(default_factory=list)


class SubjectResult(BaseModel):
    subject_id: int
    score: Number
    matches: List[MatchOut]


class BatchCheckResult(BaseModel):
    """
    Result of checking many users. Users without items are omitted from ``per_user``.
    """

    ok: bool
    reason: Optional[str] = None
    per_user: List[SubjectResult] = Field(default_factory=list)
    total_score: Number = 0


class ModifyResponse(BaseModel):
    ok: bool
    reason: Optional[str] = None


class HealthResponse(BaseModel):
    """
    Response body for GET /health.
    """

    status: str
