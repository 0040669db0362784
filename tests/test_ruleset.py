import json

from outfit_guard.ruleset import (
    add_blacklist_entry,
    add_whitelist_entry,
    load_ruleset_file,
    modify_pattern,
    parse_ruleset,
    ruleset_to_json,
)
from outfit_guard.scan_types import FailureReason, Pattern, Ruleset


def test_parse_ruleset_wire_shape():
    payload = {
        "whiteList": ["cute bunny", "", 5],
        "blackList": [
            {"pattern": "gun", "points": 10},
            {"pattern": "knife"},
            {"pattern": "", "points": 1},
            {"pattern": "blood", "points": "lots"},
            {"pattern": "nan", "points": float("nan")},
            {"pattern": "flag", "points": True},
            "bare string",
            {"pattern": "skull", "points": 2.5},
        ],
    }
    rs = parse_ruleset(payload)
    assert rs.whitelist == ("cute bunny",)
    assert rs.blacklist == (
        Pattern("gun", 10),
        Pattern("knife", 0),
        Pattern("skull", 2.5),
    )


def test_parse_ruleset_rejects_bad_payloads():
    assert parse_ruleset([1, 2]) is None
    assert parse_ruleset({"other": []}) is None
    # one list is enough
    assert parse_ruleset({"blackList": []}) == Ruleset()


def test_ruleset_json_round_trip_shape():
    rs = Ruleset(whitelist=("a",), blacklist=(Pattern("b", 3),))
    assert ruleset_to_json(rs) == {"whiteList": ["a"], "blackList": [{"pattern": "b", "points": 3}]}
    assert parse_ruleset(ruleset_to_json(rs)) == rs


def test_load_ruleset_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({"whiteList": [], "blackList": [{"pattern": "gun", "points": 10}]}))
    assert load_ruleset_file(path).blacklist == (Pattern("gun", 10),)

    assert load_ruleset_file(tmp_path / "missing.json") is None

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    assert load_ruleset_file(broken) is None


def test_add_entries_return_new_ruleset():
    base = Ruleset()
    with_white = add_whitelist_entry(base, "Water Gun")
    with_black = add_blacklist_entry(with_white, "gun")
    assert base == Ruleset()
    assert with_white.whitelist == ("Water Gun",)
    assert with_black.blacklist == (Pattern("gun", 0),)
    assert add_blacklist_entry(base, "knife", 7).blacklist[-1].points == 7


def test_modify_pattern_dispatch():
    base = Ruleset(blacklist=(Pattern("gun", 10),))

    res = modify_pattern(base, "blacklist", "knife", 7)
    assert res.ok
    assert res.ruleset.blacklist[-1] == Pattern("knife", 7)

    res = modify_pattern(base, "whitelist", "water gun", 99)
    assert res.ok
    assert res.ruleset.whitelist == ("water gun",)
    assert res.ruleset.blacklist == base.blacklist


def test_modify_pattern_failures_leave_ruleset_alone():
    base = Ruleset()
    res = modify_pattern(base, "greylist", "gun", 1)
    assert not res.ok
    assert res.reason is FailureReason.INVALID_LIST_KIND
    assert res.ruleset is None

    res = modify_pattern(base, "blacklist", "")
    assert not res.ok
    assert res.reason is FailureReason.EMPTY_PATTERN
    assert base == Ruleset()


def test_modify_pattern_rejects_non_finite_points():
    base = Ruleset()
    for bad in (float("inf"), float("-inf"), float("nan"), True, "lots"):
        res = modify_pattern(base, "blacklist", "gun", bad)
        assert not res.ok
        assert res.reason is FailureReason.INVALID_POINTS
        assert res.ruleset is None

    # missing points still default to zero; whitelist ignores points entirely
    assert modify_pattern(base, "blacklist", "gun").ruleset.blacklist == (Pattern("gun", 0),)
    assert modify_pattern(base, "whitelist", "water gun", "lots").ok
