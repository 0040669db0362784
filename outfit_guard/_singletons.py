# outfit_guard/_singletons.py
from functools import lru_cache
from .avatar_fetch import AvatarClient
from .ruleset_fetch import RulesetStore, fetch_ruleset
from .service import ScanService

@lru_cache(maxsize=1)
def get_ruleset_store():
    return RulesetStore(fetch_ruleset)

@lru_cache(maxsize=1)
def get_avatar_client():
    return AvatarClient()

@lru_cache(maxsize=1)
def get_service():
    return ScanService(get_avatar_client().get_items, get_ruleset_store())
