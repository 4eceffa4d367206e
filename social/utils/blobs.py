"""
Icons and post images arrive as strings (data URLs) and are stored as bytes.
"""
from typing import Optional


def text_to_blob(value) -> Optional[bytes]:
    if value is None:
        return None
    value = str(value)
    if not value:
        return None
    return value.encode("utf-8")


def blob_to_text(value: Optional[bytes]) -> str:
    if not value:
        return ""
    try:
        return bytes(value).decode("utf-8")
    except UnicodeDecodeError:
        return ""
