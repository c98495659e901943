import base64
import binascii
import hashlib
import hmac
import json

from pydantic import ValidationError

from quiz_server.models.state_models import UserState


class AuthError(Exception):
    """The token cannot be trusted. Callers must not reveal which subclass was raised."""


class MalformedToken(AuthError):
    pass


class InvalidSignature(AuthError):
    pass


class CorruptToken(AuthError):
    pass


def b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64decode(data: str) -> bytes:
    """Decode unpadded URL-safe base64, rejecting characters outside the alphabet"""
    try:
        raw = data.encode("ascii")
    except UnicodeEncodeError as e:
        raise MalformedToken("token is not ascii") from e
    if len(raw) % 4 == 1:
        raise MalformedToken("invalid base64 length")
    raw += b"=" * (-len(raw) % 4)
    try:
        decoded = base64.b64decode(raw, altchars=b"-_", validate=True)
    except binascii.Error as e:
        raise MalformedToken(f"invalid base64: {e}") from e
    # unused trailing bits must be zero, one token per payload
    if b64encode(decoded) != data:
        raise MalformedToken("non-canonical base64")
    return decoded


class SessionCodec:
    """Turns a UserState into a signed token and back.

    The payload is signed, not encrypted: anyone holding the token can read it.
    """

    def __init__(self, secret_key: bytes):
        self._secret_key = secret_key

    def sign(self, payload: bytes) -> bytes:
        return hmac.new(self._secret_key, payload, hashlib.sha256).digest()

    @staticmethod
    def serialize(user_state: UserState) -> bytes:
        return json.dumps(
            user_state.model_dump(mode="json"), sort_keys=True, separators=(",", ":")
        ).encode("utf-8")

    def encode(self, user_state: UserState) -> str:
        """Serialize and sign the state

        Returns:
            str: base64url(payload) + ":" + base64url(HMAC-SHA256 tag)
        """
        payload = self.serialize(user_state)
        return f"{b64encode(payload)}:{b64encode(self.sign(payload))}"

    def decode(self, token: str) -> UserState:
        """Verify a token and rebuild the state it carries

        Args:
            token (str): Token previously returned by encode

        Raises:
            MalformedToken: A part is missing or is not base64url
            InvalidSignature: The tag does not match the payload
            CorruptToken: The signature is valid but the payload is not a UserState

        Returns:
            UserState: The decoded state
        """
        payload, separator, signature = token.partition(":")
        if not separator or not payload or not signature:
            raise MalformedToken("bad authorization token")

        payload = b64decode(payload)
        signature = b64decode(signature)

        if not hmac.compare_digest(self.sign(payload), signature):
            raise InvalidSignature("invalid signature")

        try:
            return UserState.model_validate_json(payload)
        except (ValidationError, ValueError) as e:
            raise CorruptToken(f"cannot rebuild user state: {e}") from e
