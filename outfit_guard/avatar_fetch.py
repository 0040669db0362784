from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import httpx
from loguru import logger

from .config import (
    AVATAR_API_BASE,
    ECONOMY_API_BASE,
    HTTP_CONNECT_TIMEOUT,
    HTTP_READ_TIMEOUT,
    HTTP_MAX_REDIRECTS,
    HTTP_USER_AGENT,
    ITEM_LOOKUP_WORKERS,
)
from .scan_types import Item


def _http_client() -> httpx.Client:
    return httpx.Client(
        headers={"User-Agent": HTTP_USER_AGENT},
        follow_redirects=True,
        timeout=httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
        max_redirects=HTTP_MAX_REDIRECTS,
    )


class AvatarClient:
    """
    Item source backed by the avatar and economy web APIs.

    ``get_items`` never raises: a failed wearing-list call yields ``[]`` and a
    failed per-asset lookup drops just that asset.
    """

    def __init__(
        self,
        avatar_base: str = AVATAR_API_BASE,
        economy_base: str = ECONOMY_API_BASE,
        workers: int = ITEM_LOOKUP_WORKERS,
    ):
        self.avatar_base = avatar_base.rstrip("/")
        self.economy_base = economy_base.rstrip("/")
        self.workers = max(1, workers)

    def _get_json(self, client: httpx.Client, url: str) -> Optional[dict]:
        try:
            r = client.get(url)
            if r.status_code >= 400:
                logger.warning("HTTP {} for {}", r.status_code, url)
                return None
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Request failed for {}: {}", url, e)
            return None
        return data if isinstance(data, dict) else None

    def get_asset_ids(self, client: httpx.Client, user_id: int) -> List[int]:
        data = self._get_json(client, f"{self.avatar_base}/v1/users/{user_id}/currently-wearing")
        if data is None:
            return []
        ids: List[int] = []
        for raw in data.get("assetIds") or []:
            try:
                ids.append(int(raw))
            except (TypeError, ValueError):
                logger.warning("Skipping non-numeric asset id {!r} for user {}", raw, user_id)
        return ids

    def get_item(self, client: httpx.Client, asset_id: int) -> Optional[Item]:
        data = self._get_json(client, f"{self.economy_base}/v2/assets/{asset_id}/details")
        name = (data or {}).get("Name")
        if not isinstance(name, str):
            logger.warning("Item lookup failed for asset {}; skipping", asset_id)
            return None
        return Item(name=name, id=asset_id)

    def get_items(self, user_id: int) -> List[Item]:
        with _http_client() as client:
            asset_ids = self.get_asset_ids(client, user_id)
            if not asset_ids:
                logger.info("User {} is wearing no resolvable assets", user_id)
                return []
            if self.workers > 1 and len(asset_ids) > 1:
                with ThreadPoolExecutor(max_workers=self.workers) as pool:
                    looked_up = list(pool.map(lambda aid: self.get_item(client, aid), asset_ids))
            else:
                looked_up = [self.get_item(client, aid) for aid in asset_ids]

        items = [it for it in looked_up if it is not None]
        logger.info("Fetched {}/{} items for user {}", len(items), len(asset_ids), user_id)
        return items
