import os
import secrets
import logging
from dotenv import load_dotenv

load_dotenv()

SECRET_KEY_LENGTH = 32

secret_key_hex = os.getenv("SECRET_KEY")
bind = os.getenv("BIND", "127.0.0.1:3030")
cors_origin = os.getenv("CORS_ORIGIN", "http://localhost:1313")
quiz_config_path = os.getenv("QUIZ_CONFIG", "quiz.toml")
users_csv_path = os.getenv("USERS_CSV", "users.csv")
log_level = os.getenv("LOG_LEVEL", "INFO")


def parse_secret_key(value: str | None) -> bytes:
    """Decode the HMAC secret from its hex form, or generate a fresh one.

    A generated key only lives as long as the process, so the hex is printed
    to let an operator pin it with SECRET_KEY on the next start.

    Args:
        value (str | None): Hex string of exactly 32 bytes, usually $SECRET_KEY

    Returns:
        bytes: 32-byte secret key
    """
    if value is not None:
        try:
            secret_key = bytes.fromhex(value.strip())
        except ValueError:
            logging.warning("SECRET_KEY is not valid hex, ignoring it")
        else:
            if len(secret_key) == SECRET_KEY_LENGTH:
                return secret_key
            logging.warning(
                f"SECRET_KEY must be {SECRET_KEY_LENGTH} bytes, got {len(secret_key)}, ignoring it"
            )

    secret_key = secrets.token_bytes(SECRET_KEY_LENGTH)
    print("No secret key was specified, generated a new secret key.")
    print(f"Rerun with SECRET_KEY={secret_key.hex()}")
    return secret_key


if __name__ == "__main__":
    print(bind, cors_origin, quiz_config_path, users_csv_path)
