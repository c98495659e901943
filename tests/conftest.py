from datetime import datetime, timezone

import numpy as np
import pytest

from quiz_server.authentication.session_codec import SessionCodec
from quiz_server.controller import QuizController
from quiz_server.domain.catalog import Catalog
from quiz_server.models.catalog_models import Code, Quiz, QuizQuestion, Wheel
from quiz_server.services.record_writer import UserWriter

SECRET_KEY = bytes(range(32))


def make_quiz(name: str, points: int, question_count: int) -> Quiz:
    return Quiz(
        name=name,
        points=points,
        questions=[
            QuizQuestion(
                question=f"{name} question {i}",
                correct=[f"right {i}", f"also right {i}"],
                incorrect=[f"wrong {i}"],
            )
            for i in range(question_count)
        ],
    )


@pytest.fixture
def catalog() -> Catalog:
    return Catalog(
        quizzes=[make_quiz("four", 100, 4), make_quiz("two", 30, 2)],
        codes=[
            Code(
                code="January",
                points=1,
                valid_from=datetime(2024, 1, 1, tzinfo=timezone.utc),
                valid_to=datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc),
            ),
            Code(
                code="alpha",
                points=5,
                valid_from=datetime(2024, 1, 1, tzinfo=timezone.utc),
                valid_to=datetime(2024, 12, 31, tzinfo=timezone.utc),
            ),
            Code(
                code="beta",
                points=7,
                valid_from=datetime(2024, 1, 1, tzinfo=timezone.utc),
                valid_to=datetime(2024, 12, 31, tzinfo=timezone.utc),
            ),
        ],
        wheels=[Wheel(name="lobby"), Wheel(name="exit")],
    )


@pytest.fixture
def codec() -> SessionCodec:
    return SessionCodec(SECRET_KEY)


@pytest.fixture
def users_csv(tmp_path):
    return tmp_path / "users.csv"


@pytest.fixture
def user_writer(users_csv):
    writer = UserWriter(users_csv)
    yield writer
    writer.close()


@pytest.fixture
def quiz_controller(codec, catalog, users_csv) -> QuizController:
    # not closed here: tests using the app close it through the lifespan
    return QuizController(codec, catalog, UserWriter(users_csv), np.random.default_rng(1234))
