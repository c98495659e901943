import logging
import secrets
from datetime import datetime, timezone
from typing import Iterable, Tuple

import numpy as np

from quiz_server.authentication.session_codec import SessionCodec
from quiz_server.domain import quiz_rules
from quiz_server.domain.catalog import Catalog
from quiz_server.models.catalog_models import QuizQuestion
from quiz_server.models.state_models import USER_ID_LENGTH, UserRecord, UserState
from quiz_server.services.record_writer import UserWriter


class QuizController:
    """Operations the HTTP layer calls. Holds no per-user state."""

    def __init__(
        self,
        codec: SessionCodec,
        catalog: Catalog,
        user_writer: UserWriter,
        rng: np.random.Generator | None = None,
    ):
        self.codec = codec
        self.catalog = catalog
        self.user_writer = user_writer
        self.rng = rng if rng is not None else np.random.default_rng()

    def create_user(self) -> UserState:
        return UserState(id=secrets.token_bytes(USER_ID_LENGTH))

    def decode_user(self, token: str) -> UserState:
        return self.codec.decode(token)

    def encode_user(self, user_state: UserState) -> str:
        return self.codec.encode(user_state)

    def next_question(self, quiz_name: str, user_state: UserState) -> QuizQuestion | None:
        return quiz_rules.next_question(self.catalog, quiz_name, user_state)

    def answer_question(
        self, quiz_name: str, user_state: UserState, answer: str
    ) -> Tuple[bool, QuizQuestion] | None:
        return quiz_rules.answer_question(self.catalog, quiz_name, user_state, answer)

    def spin_wheel(self, wheel_name: str, user_state: UserState) -> int | None:
        return quiz_rules.spin_wheel(self.catalog, wheel_name, user_state, self.rng)

    def points(self, user_state: UserState) -> int:
        return quiz_rules.points(self.catalog, user_state)

    async def register(
        self,
        codes: Iterable[str],
        email: str,
        consent: bool,
        user_state: UserState,
        now: datetime | None = None,
    ) -> int:
        """Cash out the user's points plus any valid codes

        A record is appended only when the total is positive. Calling this twice
        with the same state appends two records.

        Args:
            codes (Iterable[str]): Code strings as typed by the user
            email (str): Contact address, already validated by the caller
            consent (bool): Marketing consent flag
            user_state (UserState): State decoded from the request token
            now (datetime | None, optional): Time used for code windows and the record. Defaults to the current UTC time.

        Raises:
            WriteFailure: The record could not be appended

        Returns:
            int: Total points
        """
        if now is None:
            now = datetime.now(timezone.utc)

        base_points = self.points(user_state)
        matched_codes = quiz_rules.match_codes(self.catalog, codes, now)
        total_points = base_points + sum(code.points for code in matched_codes)

        if total_points > 0:
            record = UserRecord(
                id=user_state.id.hex(),
                email=email,
                points=total_points,
                codes=quiz_rules.code_names(matched_codes),
                consent=consent,
                time=now,
            )
            await self.user_writer.write_async(record)
            logging.info(f"Registered user {record.id} with {total_points} points")

        return total_points
