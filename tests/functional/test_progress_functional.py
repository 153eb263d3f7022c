"""Functional tests for the progress calculator.

Terminal questions are excluded from both sides of the ratio; the
denominator is the countable part of the projected path for the active flow.
"""

from __future__ import annotations

from typing import Any, Dict, List

from onboarding.logic.catalog import parse_catalog
from onboarding.logic.progress import calculate_progress


def _chain(ids: List[int], flow: str, terminal: int) -> List[Dict[str, Any]]:
    out = []
    for i, qid in enumerate(ids):
        nxt = ids[i + 1] if i + 1 < len(ids) else terminal
        out.append({"id": qid, "flow": flow, "category": f"c{qid}", "type": "text_area", "next_question": nxt})
    return out


def _nine_question_solo_catalog():
    questions = _chain([1, 2, 4], "shared", 5)
    questions.append(
        {
            "id": 5,
            "flow": "shared",
            "category": "flow_choice",
            "type": "multiple_choice",
            "options": [{"value": "just_me", "label": "Just me"}, {"value": "co_signer", "label": "Co"}],
            "next_question_map": {"just_me": 6, "co_signer": 100},
        }
    )
    questions += _chain([6, 7, 8, 9, 10], "solo", 121)
    questions += _chain([100], "co_primary", 121)
    questions.append({"id": 121, "flow": "shared", "category": "submission", "type": "final_step"})
    return parse_catalog(
        {
            "first_question": 1,
            "flow_selector": {"question": 5, "flows": {"just_me": ["solo"], "co_signer": ["co_primary"]}},
            "questions": questions,
        }
    )


def test_four_of_nine_countable_questions_is_44_percent():
    cat = _nine_question_solo_catalog()
    assert calculate_progress(cat, {"5": "just_me"}, {1, 2, 4, 5}) == 44


def test_terminal_question_never_counts():
    cat = _nine_question_solo_catalog()
    visited = {1, 2, 4, 5, 6, 7, 8, 9, 10}
    assert calculate_progress(cat, {"5": "just_me"}, visited) == 100
    assert calculate_progress(cat, {"5": "just_me"}, visited | {121}) == 100


def test_real_solo_flow_denominator(catalog):
    # 13 countable ids on the solo path (1, 2, 4, 5, 6..14)
    assert calculate_progress(catalog, {"5": "just_me"}, {1, 2, 4, 5}) == 31


def test_undetermined_flow_uses_solo_path(catalog):
    assert calculate_progress(catalog, {}, {1}) == calculate_progress(catalog, {"5": "just_me"}, {1})


def test_out_of_flow_visits_are_ignored(catalog):
    responses = {"5": "co_signer"}
    assert calculate_progress(catalog, responses, {1, 2, 4, 5}) == calculate_progress(
        catalog, responses, {1, 2, 4, 5, 6, 7, 8}
    )


def test_branch_answer_shrinks_denominator(catalog):
    # pension skips the workplace and income questions (10, 11)
    employed = calculate_progress(catalog, {"5": "just_me", "9": "employed"}, {1, 2, 4, 5, 6, 7})
    pension = calculate_progress(catalog, {"5": "just_me", "9": "pension"}, {1, 2, 4, 5, 6, 7})
    assert pension > employed
    assert pension == 55


def test_visits_off_the_rerouted_path_do_not_count(catalog):
    # employed walk up to 13, then 9 re-answered as pension: 10 and 11 drop out
    visited = {1, 2, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13}
    assert calculate_progress(catalog, {"5": "just_me", "9": "employed"}, visited) == 92
    assert calculate_progress(catalog, {"5": "just_me", "9": "pension"}, visited) == 91
    assert calculate_progress(catalog, {"5": "just_me", "9": "pension"}, set(catalog.ids())) == 100
