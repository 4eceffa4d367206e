"""
Validation utilities for account fields.
"""
import re
from typing import NamedTuple

from social.errors import BadRequest

EMAIL_REGEX = re.compile(
    r"^([a-z0-9_+]([a-z0-9_+.]*[a-z0-9_+])?)@([a-z0-9]+([\-\.]{1}[a-z0-9]+)*\.[a-z]{2,6})$"
)

ACCENTED_LETTERS = frozenset("ãáàâéèêíìîõóòôúùûçÃÁÀÂÉÈÊÍÌÎÕÓÒÔÚÙÛÇ")
EXCLUDED_LETTERS = frozenset("ñÑ")

NAME_MIN_LEN = 2
NAME_MAX_LEN = 20
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 32


class ValidField(NamedTuple):
    valid: bool
    message: str = ""


def _is_accented(c: str) -> bool:
    return c in ACCENTED_LETTERS


def _is_excluded(c: str) -> bool:
    return c in EXCLUDED_LETTERS


def _is_ascii_alnum(c: str) -> bool:
    return c.isascii() and c.isalnum()


def _check_length(value: str, field: str, min_len: int, max_len: int):
    if len(value) < min_len:
        return f"{field} too short"
    if len(value) > max_len:
        return f"{field} too long"
    return None


def validate_user_name(user_name: str) -> ValidField:
    """
    Display name: 2-20 characters, letters/digits or Portuguese accented letters.
    ñ/Ñ are rejected even though they are alphanumeric.
    """
    user_name = (user_name or "").strip()
    message = ""
    for c in user_name:
        if (not c.isalnum() and not _is_accented(c)) or _is_excluded(c):
            message = "username invalid character"
            break
    message = _check_length(user_name, "username", NAME_MIN_LEN, NAME_MAX_LEN) or message
    return ValidField(not message, message)


def validate_user_at(user_at: str) -> ValidField:
    """
    Handle: 2-20 characters, ASCII letters/digits, underscore or accented letters, no ñ/Ñ.
    """
    user_at = (user_at or "").strip()
    message = ""
    for c in user_at:
        if c == "_":
            continue
        if (not _is_ascii_alnum(c) and not _is_accented(c)) or _is_excluded(c):
            message = "user_at invalid character"
            break
    message = _check_length(user_at, "user_at", NAME_MIN_LEN, NAME_MAX_LEN) or message
    return ValidField(not message, message)


def validate_email(email: str) -> ValidField:
    email = (email or "").strip()
    if not EMAIL_REGEX.match(email):
        return ValidField(False, "email invalid email")
    return ValidField(True)


def validate_password(password: str) -> ValidField:
    """
    Password: 8-32 characters, letters and digits only.
    """
    password = (password or "").strip()
    message = ""
    for c in password:
        if not c.isalnum():
            message = "password invalid character"
            break
    message = _check_length(password, "password", PASSWORD_MIN_LEN, PASSWORD_MAX_LEN) or message
    return ValidField(not message, message)


def require_valid(result: ValidField) -> None:
    """Raise BadRequest carrying the validator message when invalid."""
    if not result.valid:
        raise BadRequest(result.message)


def validate_new_user(user_name: str, user_at: str, email: str, password: str) -> None:
    """
    Run every registration check in order, raising on the first failure.
    """
    require_valid(validate_user_name(user_name))
    require_valid(validate_user_at(user_at))
    require_valid(validate_email(email))
    require_valid(validate_password(password))


def normalize_user_at(raw_user_at) -> str:
    """
    Lowercase a handle and drop a leading '@'.
    """
    if raw_user_at is None:
        return ""
    user_at = str(raw_user_at).strip().lower()
    if user_at.startswith("@"):
        user_at = user_at[1:]
    return user_at
