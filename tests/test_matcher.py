# tests/test_matcher.py

from __future__ import annotations

import pytest

from wbs_sync.sync.matcher import TaskMatcher, levenshtein_distance, match_task, similarity

PAIRS = [
    ("", ""),
    ("", "abc"),
    ("kitten", "sitting"),
    ("flaw", "lawn"),
    ("Design Review", "design review"),
    ("1.2 需求评审", "1.2 需求评审会"),
    ("Implement Login", "Design Review"),
]


@pytest.mark.parametrize(("a", "b"), PAIRS)
def test_levenshtein_is_symmetric(a: str, b: str) -> None:
    assert levenshtein_distance(a, b) == levenshtein_distance(b, a)


@pytest.mark.parametrize("s", ["", "a", "Design Review", "任务开始时"])
def test_levenshtein_identity_is_zero(s: str) -> None:
    assert levenshtein_distance(s, s) == 0


def test_levenshtein_known_values() -> None:
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("flaw", "lawn") == 2
    assert levenshtein_distance("", "abc") == 3


def test_similarity_examples() -> None:
    assert similarity("Design Review", "Design Review ") > 0.5
    assert similarity("Design Review", "Implement Login") <= 0.5
    assert similarity("ABC", "abc") == 1.0
    assert similarity("", "") == 1.0


def test_trailing_space_matches_exactly_after_trim() -> None:
    index = {"t9": "Design Review x", "t1": "Design Review"}
    assert match_task("Design Review ", index) == "t1"


def test_unrelated_name_is_unmatched() -> None:
    assert match_task("Design Review", {"t1": "Implement Login"}) is None


def test_exact_match_wins_over_earlier_fuzzy_candidate() -> None:
    index = {"a": "1.1 Kickoff meetings", "b": "1.1 Kickoff meeting"}
    assert match_task("1.1 Kickoff meeting", index) == "b"


def test_duplicate_exact_names_resolve_to_first_in_index_order() -> None:
    index = {"first": "Deploy", "second": "Deploy"}
    assert match_task("Deploy", index) == "first"


def test_fuzzy_picks_best_candidate_case_insensitive() -> None:
    index = {"x": "write tests", "y": "2.3 WRITE API DOCS", "z": "2.3 write api"}
    assert match_task("2.3 Write API docs!", index) == "y"


def test_fuzzy_tie_keeps_first_seen() -> None:
    # Both candidates are one edit away.
    index = {"p": "abcx", "q": "abcy"}
    assert match_task("abcz", index) == "p"


def test_threshold_is_strict() -> None:
    # 2 edits over 4 chars -> exactly 0.5, which is not enough.
    assert similarity("abcd", "abxy") == 0.5
    assert TaskMatcher({"t": "abxy"}).match("abcd") is None
    assert TaskMatcher({"t": "abxy"}, threshold=0.4).match("abcd") == "t"


def test_empty_index_never_matches() -> None:
    assert match_task("anything", {}) is None
