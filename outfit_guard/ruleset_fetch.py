from __future__ import annotations

import threading
from typing import Callable, Optional

import httpx
from loguru import logger

from .config import (
    HTTP_CONNECT_TIMEOUT,
    HTTP_READ_TIMEOUT,
    HTTP_MAX_REDIRECTS,
    HTTP_MAX_BYTES,
    HTTP_USER_AGENT,
    RULESET_URL,
)
from .ruleset import parse_ruleset
from .scan_types import Ruleset


def fetch_ruleset(url: str = RULESET_URL) -> Optional[Ruleset]:
    """
    Fetch and parse the remote ruleset document.

    Hardening:
      - httpx with timeouts and a redirect cap
      - byte cap on the body
      - any transport/JSON/shape problem -> None (never raises)
    """
    headers = {"User-Agent": HTTP_USER_AGENT}
    try:
        with httpx.Client(
            follow_redirects=True,
            timeout=httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
            max_redirects=HTTP_MAX_REDIRECTS,
        ) as client:
            r = client.get(url, headers=headers)
            if r.status_code >= 400:
                logger.warning("Ruleset fetch: HTTP {} for {}", r.status_code, url)
                return None

            if len(r.content) > HTTP_MAX_BYTES:
                logger.warning("Ruleset fetch aborted: {} bytes > {} limit", len(r.content), HTTP_MAX_BYTES)
                return None

            ruleset = parse_ruleset(r.json())
    except httpx.TimeoutException:
        logger.warning("Ruleset fetch timeout for {}", url)
        return None
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Ruleset fetch failed for {}: {}", url, e)
        return None

    if ruleset is not None:
        logger.info(
            "Loaded ruleset from {}: {} whitelist / {} blacklist entries",
            url, len(ruleset.whitelist), len(ruleset.blacklist),
        )
    return ruleset


class RulesetStore:
    """
    Fetch-once cache for the process-wide ruleset.

    The first ``get()`` calls the loader under a lock so concurrent callers
    share one fetch. A failed load is not remembered; the next ``get()``
    tries again. ``update()`` swaps in a new frozen Ruleset, so readers see
    either the old value or the new one.
    """

    def __init__(self, loader: Callable[[], Optional[Ruleset]] = fetch_ruleset):
        self._loader = loader
        self._lock = threading.Lock()
        self._ruleset: Optional[Ruleset] = None

    def get(self) -> Optional[Ruleset]:
        current = self._ruleset
        if current is not None:
            return current
        with self._lock:
            if self._ruleset is None:
                self._ruleset = self._loader()
            return self._ruleset

    def update(self, ruleset: Ruleset) -> None:
        with self._lock:
            self._ruleset = ruleset

    def apply(self, change: Callable[[Ruleset], Optional[Ruleset]]) -> Optional[Ruleset]:
        """
        Atomically replace the cached ruleset with ``change(current)``.

        ``change`` may return None to leave the ruleset untouched. Returns the
        ruleset now in the store, or None if none could be loaded.
        """
        with self._lock:
            if self._ruleset is None:
                self._ruleset = self._loader()
            if self._ruleset is None:
                return None
            updated = change(self._ruleset)
            if updated is not None:
                self._ruleset = updated
            return self._ruleset
