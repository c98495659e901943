"""Quiz, wheel and code rules that are independent from HTTP and the CSV sink.

Rule of thumb:
- OK: lookups in the catalog, scoring, appending to the state handed in.
- Not OK: datetime.now(), global random state, file access.
"""

from datetime import datetime
from typing import Iterable, List, Tuple

import numpy as np

from quiz_server.domain.catalog import Catalog
from quiz_server.models.catalog_models import Code, QuizQuestion
from quiz_server.models.state_models import UserState

# (points, weight) for every wheel. Not configurable.
WHEEL_CHOICES = ((20, 3), (40, 2), (60, 1))
WHEEL_POINTS = np.array([points for points, _ in WHEEL_CHOICES])
WHEEL_PROBABILITIES = np.array([weight for _, weight in WHEEL_CHOICES]) / sum(
    weight for _, weight in WHEEL_CHOICES
)


def next_question(
    catalog: Catalog, quiz_name: str, user_state: UserState
) -> QuizQuestion | None:
    """Return the first unanswered question of a quiz

    Args:
        catalog (Catalog): Loaded quizzes
        quiz_name (str): Name of the quiz
        user_state (UserState): State decoded from the request token

    Returns:
        QuizQuestion | None: None if the quiz does not exist or every question has been answered
    """
    quiz = catalog.get_quiz(quiz_name)
    if quiz is None:
        return None

    index = len(user_state.answers.get(quiz_name, ()))
    if index >= len(quiz.questions):
        return None
    return quiz.questions[index]


def answer_question(
    catalog: Catalog, quiz_name: str, user_state: UserState, answer: str
) -> Tuple[bool, QuizQuestion] | None:
    """Check an answer against the next question and record the result in user_state.

    user_state is mutated in place; it must be the caller's own copy.

    Returns:
        Tuple[bool, QuizQuestion] | None: Whether the answer matched, and the question answered.
            None if there was nothing left to answer, in which case user_state is untouched.
    """
    question = next_question(catalog, quiz_name, user_state)
    if question is None:
        return None

    is_correct = any(correct == answer for correct in question.correct)
    user_state.answers.setdefault(quiz_name, []).append(is_correct)
    return is_correct, question


def spin_wheel(
    catalog: Catalog, wheel_name: str, user_state: UserState, rng: np.random.Generator
) -> int | None:
    """Draw points for a wheel once per session

    Args:
        catalog (Catalog): Loaded wheels
        wheel_name (str): Name of the wheel
        user_state (UserState): State decoded from the request token, mutated in place
        rng (np.random.Generator): Source of the weighted draw

    Returns:
        int | None: Points drawn. None if the wheel is unknown or was already spun.
    """
    if not catalog.has_wheel(wheel_name):
        return None
    if wheel_name in user_state.wheels:
        return None

    points = int(rng.choice(WHEEL_POINTS, p=WHEEL_PROBABILITIES))
    user_state.wheels[wheel_name] = points
    return points


def quiz_points(catalog: Catalog, user_state: UserState) -> int:
    total = 0
    for quiz_name, answers in user_state.answers.items():
        quiz = catalog.get_quiz(quiz_name)
        # quizzes removed from the catalog since the token was issued count for nothing
        if quiz is None:
            continue
        correct_count = sum(1 for answer in answers if answer)
        total += quiz.points * correct_count // len(quiz.questions)
    return total


def points(catalog: Catalog, user_state: UserState) -> int:
    """Total points: partial credit per quiz plus every wheel spin.

    The denominator of a quiz's share is always its full question count,
    so a half-finished quiz earns at most half its points.
    """
    return quiz_points(catalog, user_state) + sum(user_state.wheels.values())


def is_code_valid(code: Code, now: datetime) -> bool:
    return code.valid_from <= now <= code.valid_to


def match_codes(catalog: Catalog, codes: Iterable[str], now: datetime) -> List[Code]:
    """Resolve submitted code strings to catalog codes valid at `now`.

    Exact duplicates are dropped before lookup, so differently cased
    submissions of one code each count. Unknown, expired and not yet
    valid codes are ignored.
    """
    matched = []
    for submitted in sorted(set(codes)):
        code = catalog.get_code(submitted)
        if code is not None and is_code_valid(code, now):
            matched.append(code)
    return matched


def code_names(codes: Iterable[Code]) -> str:
    return " ".join(sorted(code.code for code in codes))
