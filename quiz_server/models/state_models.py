from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field, field_serializer, field_validator

USER_ID_LENGTH = 16


class UserState(BaseModel):
    """Everything the server knows about a user. It travels inside the token."""
    id: bytes
    answers: Dict[str, List[bool]] = Field(default_factory=dict)
    wheels: Dict[str, int] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def decode_id(cls, value):
        if isinstance(value, str):
            return bytes.fromhex(value)
        return value

    @field_validator("id")
    @classmethod
    def check_id_length(cls, value: bytes) -> bytes:
        if len(value) != USER_ID_LENGTH:
            raise ValueError(f"user id must be {USER_ID_LENGTH} bytes")
        return value

    @field_serializer("id")
    def encode_id(self, value: bytes) -> str:
        return value.hex()


class UserRecord(BaseModel):
    """One redemption, as appended to the users CSV file"""
    id: str
    email: str
    points: int
    codes: str
    consent: bool
    time: datetime

    def to_row(self) -> List[str]:
        """Flatten the record into CSV fields: id, email, points, codes, consent, time"""
        return [
            self.id,
            self.email,
            str(self.points),
            self.codes,
            "true" if self.consent else "false",
            self.time.isoformat(),
        ]
