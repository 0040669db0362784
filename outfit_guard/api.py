from __future__ import annotations

"""
FastAPI application exposing the outfit checks.

- Check failures (no items, ruleset unavailable) come back as ``ok: false``
  bodies with HTTP 200; status codes are reserved for request validation.
- The ruleset is fetched once (on startup warmup or on first use) and kept
  in the process-wide store; POST /patterns appends to that cached copy.
"""

from typing import List, Optional, Union

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pydantic import BaseModel, Field

from .config import (
    BatchCheckResult,
    CheckResult,
    HealthResponse,
    ModifyResponse,
)
from ._singletons import get_service
from .ruleset import ruleset_to_json


# -----------------------
# FastAPI app + startup
# -----------------------

app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event() -> None:
    logger.info("Starting app warmup...")
    if get_service().store.get() is None:
        logger.warning("Ruleset unavailable at startup; will retry on first request.")
    logger.info("Warmup complete.")


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="healthy")


class BatchRequest(BaseModel):
    user_ids: List[int]


class PatternRequest(BaseModel):
    list_kind: str = Field(..., alias="list", min_length=1)
    pattern: str = Field(..., min_length=1)
    points: Optional[Union[int, float]] = None


@app.get("/check/{user_id}", response_model=CheckResult)
def check(user_id: int) -> CheckResult:
    return get_service().check_subject(user_id)


@app.post("/check", response_model=BatchCheckResult)
def check_many(req: BatchRequest) -> BatchCheckResult:
    return get_service().check_subjects(req.user_ids)


@app.post("/patterns", response_model=ModifyResponse)
def add_pattern(req: PatternRequest) -> ModifyResponse:
    return get_service().modify_pattern(req.list_kind, req.pattern, req.points)


@app.get("/ruleset")
def current_ruleset() -> dict:
    ruleset = get_service().store.get()
    if ruleset is None:
        raise HTTPException(status_code=503, detail="Ruleset unavailable")
    return ruleset_to_json(ruleset)
