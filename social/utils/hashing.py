"""
Password hashing helpers.
"""
from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str) -> str:
    """Return a salted hash suitable for storage."""
    return generate_password_hash(password)


def compare_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return check_password_hash(hashed, password)
    except (ValueError, TypeError):
        return False
