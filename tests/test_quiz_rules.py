from collections import Counter
from datetime import datetime, timezone

import numpy as np

from quiz_server.domain import quiz_rules
from quiz_server.models.state_models import UserState


def new_state() -> UserState:
    return UserState(id=bytes(16))


def test_next_question_starts_at_first(catalog):
    question = quiz_rules.next_question(catalog, "four", new_state())
    assert question.question == "four question 0"


def test_next_question_follows_answer_count(catalog):
    state = new_state()
    state.answers["four"] = [True, False]
    assert quiz_rules.next_question(catalog, "four", state).question == "four question 2"


def test_next_question_unknown_quiz(catalog):
    assert quiz_rules.next_question(catalog, "missing", new_state()) is None


def test_next_question_after_last(catalog):
    state = new_state()
    state.answers["two"] = [True, True]
    assert quiz_rules.next_question(catalog, "two", state) is None


def test_answer_question_matches_any_correct(catalog):
    state = new_state()
    is_correct, question = quiz_rules.answer_question(catalog, "four", state, "also right 0")
    assert is_correct
    assert question.question == "four question 0"
    assert state.answers == {"four": [True]}


def test_answer_question_is_exact_match(catalog):
    state = new_state()
    for answer in ["Right 0", "right 0 ", "wrong 0"]:
        state.answers.pop("four", None)
        is_correct, _ = quiz_rules.answer_question(catalog, "four", state, answer)
        assert not is_correct
        assert state.answers["four"] == [False]


def test_answer_question_progress_is_monotonic(catalog):
    state = new_state()
    answers = ["right 0", "nope", "right 2", "right 3"]
    for count, answer in enumerate(answers, start=1):
        assert quiz_rules.answer_question(catalog, "four", state, answer) is not None
        assert len(state.answers["four"]) == count

    assert state.answers["four"] == [True, False, True, True]
    assert quiz_rules.answer_question(catalog, "four", state, "right 4") is None
    assert state.answers["four"] == [True, False, True, True]


def test_answer_unknown_quiz_leaves_state_untouched(catalog):
    state = new_state()
    assert quiz_rules.answer_question(catalog, "missing", state, "anything") is None
    assert state.answers == {}


def test_spin_wheel_once(catalog):
    state = new_state()
    rng = np.random.default_rng(7)
    points = quiz_rules.spin_wheel(catalog, "lobby", state, rng)
    assert points in (20, 40, 60)
    assert state.wheels == {"lobby": points}

    assert quiz_rules.spin_wheel(catalog, "lobby", state, rng) is None
    assert state.wheels == {"lobby": points}


def test_spin_each_wheel_independently(catalog):
    state = new_state()
    rng = np.random.default_rng(7)
    assert quiz_rules.spin_wheel(catalog, "lobby", state, rng) is not None
    assert quiz_rules.spin_wheel(catalog, "exit", state, rng) is not None
    assert set(state.wheels) == {"lobby", "exit"}


def test_spin_unknown_wheel(catalog):
    state = new_state()
    assert quiz_rules.spin_wheel(catalog, "missing", state, np.random.default_rng(7)) is None
    assert state.wheels == {}


def test_spin_wheel_weights(catalog):
    rng = np.random.default_rng(2024)
    counts = Counter(
        quiz_rules.spin_wheel(catalog, "lobby", new_state(), rng) for _ in range(6000)
    )
    assert set(counts) == {20, 40, 60}
    assert abs(counts[20] / 6000 - 3 / 6) < 0.03
    assert abs(counts[40] / 6000 - 2 / 6) < 0.03
    assert abs(counts[60] / 6000 - 1 / 6) < 0.03


def test_points_full_quiz(catalog):
    state = new_state()
    state.answers["four"] = [True, True, False, True]
    assert quiz_rules.points(catalog, state) == 75


def test_points_denominator_is_question_count(catalog):
    state = new_state()
    state.answers["four"] = [True, True]
    assert quiz_rules.points(catalog, state) == 50


def test_points_truncate(catalog):
    state = new_state()
    # 30 * 1 / 2 = 15, 100 * 1 / 4 = 25
    state.answers["two"] = [True]
    assert quiz_rules.points(catalog, state) == 15

    other_state = new_state()
    other_state.answers["four"] = [False, True, False]
    assert quiz_rules.points(catalog, other_state) == 25


def test_points_truncates_fraction():
    from quiz_server.domain.catalog import Catalog
    from tests.conftest import make_quiz

    catalog = Catalog(quizzes=[make_quiz("three", 10, 3)])
    state = new_state()
    state.answers["three"] = [True, True, False]
    assert quiz_rules.points(catalog, state) == 6


def test_points_adds_wheels_and_skips_unknown_quizzes(catalog):
    state = new_state()
    state.answers["four"] = [True, True, True, True]
    state.answers["removed"] = [True, True]
    state.wheels = {"lobby": 20, "old wheel": 60}
    assert quiz_rules.points(catalog, state) == 180


def test_points_empty_state(catalog):
    assert quiz_rules.points(catalog, new_state()) == 0


def test_match_codes_window(catalog):
    inside = datetime(2024, 1, 15, tzinfo=timezone.utc)
    after = datetime(2024, 2, 1, tzinfo=timezone.utc)
    assert [code.code for code in quiz_rules.match_codes(catalog, ["January"], inside)] == ["January"]
    assert quiz_rules.match_codes(catalog, ["January"], after) == []


def test_match_codes_window_is_inclusive(catalog):
    code = catalog.get_code("january")
    assert quiz_rules.is_code_valid(code, code.valid_from)
    assert quiz_rules.is_code_valid(code, code.valid_to)
    assert not quiz_rules.is_code_valid(code, datetime(2023, 12, 31, 23, 59, tzinfo=timezone.utc))


def test_match_codes_normalizes_and_ignores_unknown(catalog):
    now = datetime(2024, 1, 15, tzinfo=timezone.utc)
    matched = quiz_rules.match_codes(catalog, ["  ALPHA ", "unknown", "", "al pha"], now)
    assert [code.code for code in matched] == ["alpha"]


def test_match_codes_drops_exact_duplicates(catalog):
    now = datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert len(quiz_rules.match_codes(catalog, ["beta", "beta", "beta"], now)) == 1
    # differently typed submissions are distinct strings and each count
    assert len(quiz_rules.match_codes(catalog, ["beta", "BETA"], now)) == 2


def test_code_names_sorted(catalog):
    now = datetime(2024, 1, 15, tzinfo=timezone.utc)
    matched = quiz_rules.match_codes(catalog, ["beta", "January", "alpha"], now)
    assert quiz_rules.code_names(matched) == "January alpha beta"
