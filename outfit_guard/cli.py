# outfit_guard/cli.py
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from . import config
from .avatar_fetch import AvatarClient
from .ruleset import load_ruleset_file
from .ruleset_fetch import RulesetStore, fetch_ruleset
from .scan_types import Item
from .scoring import evaluate_batch
from .service import ScanService


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _store_for(ruleset_file: Optional[Path]) -> RulesetStore:
    if ruleset_file is not None:
        return RulesetStore(lambda: load_ruleset_file(ruleset_file))
    return RulesetStore(fetch_ruleset)


def _print_result(data: dict, as_json: bool) -> None:
    if as_json:
        print(json.dumps(data, indent=2))
        return
    if not data.get("ok"):
        print(f"FAILED: {data.get('reason')}")
        return
    if "per_user" in data:
        for entry in data["per_user"]:
            print(f"user {entry['subject_id']}: score {entry['score']}")
            for m in entry["matches"]:
                print(f"  {m['item_name']!r} [{m['item_id']}] -> {m['matched_text']!r} (+{m['score']})")
        print(f"total: {data['total_score']}")
        return
    print(f"items: {data.get('item_count', 0)}  score: {data['score']}")
    for m in data["matches"]:
        print(f"  {m['item_name']!r} [{m['item_id']}] -> {m['matched_text']!r} (+{m['score']})")


def cmd_check(args: argparse.Namespace) -> int:
    service = ScanService(AvatarClient().get_items, _store_for(args.ruleset_file))
    if len(args.user_ids) == 1:
        result = service.check_subject(args.user_ids[0])
    else:
        result = service.check_subjects(args.user_ids)
    _print_result(result.model_dump(), args.json)
    return 0 if result.ok else 1


def cmd_score(args: argparse.Namespace) -> int:
    ruleset = load_ruleset_file(args.ruleset_file)
    if ruleset is None:
        print("FAILED: ruleset unavailable")
        return 1
    items: List[Item] = [Item(name=n, id=i) for i, n in enumerate(args.names, start=1)]
    verdict = evaluate_batch(items, ruleset)
    data = {
        "ok": True,
        "item_count": len(items),
        "score": verdict.score,
        "matches": [m.to_out().model_dump() for m in verdict.matches],
    }
    _print_result(data, args.json)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="outfit-guard")
    ap.add_argument("--log-level", default=config.LOG_LEVEL,
                    help="loguru level for stderr output (default: %(default)s)")
    sub = ap.add_subparsers(dest="command", required=True)

    p_check = sub.add_parser("check", help="Check what one or more users are wearing")
    p_check.add_argument("user_ids", type=int, nargs="+")
    p_check.add_argument("--ruleset-file", type=Path, default=None,
                         help="Use a local ruleset JSON instead of the remote one")
    p_check.add_argument("--json", action="store_true")
    p_check.set_defaults(func=cmd_check)

    p_score = sub.add_parser("score", help="Score literal item names against a local ruleset")
    p_score.add_argument("names", nargs="+")
    p_score.add_argument("--ruleset-file", type=Path, default=config.LOCAL_RULESET_PATH)
    p_score.add_argument("--json", action="store_true")
    p_score.set_defaults(func=cmd_score)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
