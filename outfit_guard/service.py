from __future__ import annotations

"""
Public checking API.

:class:`ScanService` wires an item source and a :class:`RulesetStore` to the
scoring engine and converts every outcome into a tagged result
(``ok``/``reason``) so callers can branch without exception handling.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple

from loguru import logger

from .config import SUBJECT_WORKERS, BatchCheckResult, CheckResult, ModifyResponse, SubjectResult
from .ruleset import modify_pattern as _modify_ruleset
from .ruleset_fetch import RulesetStore
from .scan_types import FailureReason, Item, ModifyResult, Number
from .scoring import evaluate_batch, evaluate_subjects

ItemSource = Callable[[int], List[Item]]


class ScanService:
    def __init__(
        self,
        item_source: ItemSource,
        store: RulesetStore,
        subject_workers: int = SUBJECT_WORKERS,
    ):
        self.item_source = item_source
        self.store = store
        self.subject_workers = max(1, subject_workers)

    def check_subject(self, user_id: int) -> CheckResult:
        ruleset = self.store.get()
        if ruleset is None:
            return CheckResult(ok=False, reason=FailureReason.FETCH_FAILURE.value)

        items = self.item_source(user_id)
        if not items:
            return CheckResult(ok=False, reason=FailureReason.NO_ITEMS.value)

        verdict = evaluate_batch(items, ruleset)
        logger.info("User {}: {} items, score {}, {} flagged", user_id, len(items), verdict.score, len(verdict.matches))
        return CheckResult(
            ok=True,
            item_count=len(items),
            score=verdict.score,
            matches=[m.to_out() for m in verdict.matches],
        )

    def check_subjects(self, user_ids: Sequence[int]) -> BatchCheckResult:
        ruleset = self.store.get()
        if ruleset is None:
            return BatchCheckResult(ok=False, reason=FailureReason.FETCH_FAILURE.value)

        ids = list(user_ids)
        if self.subject_workers > 1 and len(ids) > 1:
            with ThreadPoolExecutor(max_workers=self.subject_workers) as pool:
                fetched = list(pool.map(self.item_source, ids))
        else:
            fetched = [self.item_source(uid) for uid in ids]

        subjects: List[Tuple[int, List[Item]]] = list(zip(ids, fetched))
        verdict = evaluate_subjects(subjects, ruleset)
        logger.info("Checked {} users ({} with items), total score {}", len(ids), len(verdict.per_user), verdict.total_score)
        return BatchCheckResult(
            ok=True,
            per_user=[
                SubjectResult(
                    subject_id=entry.subject_id,
                    score=entry.score,
                    matches=[m.to_out() for m in entry.matches],
                )
                for entry in verdict.per_user
            ],
            total_score=verdict.total_score,
        )

    def modify_pattern(self, list_kind: str, text: str, points: Optional[Number] = None) -> ModifyResponse:
        outcome: List[ModifyResult] = []

        def _change(current):
            res = _modify_ruleset(current, list_kind, text, points)
            outcome.append(res)
            return res.ruleset

        if self.store.apply(_change) is None:
            return ModifyResponse(ok=False, reason=FailureReason.FETCH_FAILURE.value)
        res = outcome[0]
        if not res.ok:
            return ModifyResponse(ok=False, reason=res.reason.value)
        return ModifyResponse(ok=True)


# ---------------------------
# Module-level convenience (process singleton)
# ---------------------------

def check_subject(user_id: int) -> CheckResult:
    from ._singletons import get_service
    return get_service().check_subject(user_id)


def check_subjects(user_ids: Sequence[int]) -> BatchCheckResult:
    from ._singletons import get_service
    return get_service().check_subjects(user_ids)


def modify_pattern(list_kind: str, text: str, points: Optional[Number] = None) -> ModifyResponse:
    from ._singletons import get_service
    return get_service().modify_pattern(list_kind, text, points)
