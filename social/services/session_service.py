"""
Session tokens: signed, time-limited JWTs carried in an HTTP-only cookie.

The token payload stores the caller's identity (id, handle, email) as a JSON
string in ``sub``. Validity is signature + expiry, plus an optional check
against the revocation store when one is configured.
"""
from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from flask import current_app, request

from social.errors import ApiError, Forbidden
from social.services.revocation_service import get_revocation_service

logger = logging.getLogger(__name__)

DEFAULT_LIFETIME_DAYS = 7
DEFAULT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class Claim:
    id: int
    user_at: str
    email: str

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "Claim":
        data = json.loads(raw)
        return cls(id=int(data["id"]), user_at=str(data["user_at"]), email=str(data["email"]))


def issue_token(
    claim: Claim,
    secret: str,
    lifetime_days: int = DEFAULT_LIFETIME_DAYS,
    algorithm: str = DEFAULT_ALGORITHM,
    now: Optional[datetime] = None,
) -> str:
    """Sign a token for ``claim`` that expires ``lifetime_days`` after ``now``."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": claim.to_json(),
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(days=lifetime_days)).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    try:
        return jwt.encode(payload, secret, algorithm=algorithm)
    except (jwt.PyJWTError, TypeError, ValueError) as e:
        logger.error(f"Token signing failed: {e}", exc_info=True)
        raise ApiError("InternalServerError", 500)


def decode_token(token: str, secret: str, algorithm: str = DEFAULT_ALGORITHM) -> Optional[dict]:
    """Return the verified payload, or None when the signature or expiry check fails."""
    if not token:
        return None
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        logger.info("Session token expired")
        return None
    except jwt.InvalidTokenError:
        logger.info("Session token rejected")
        return None


def validate_token(
    token: str,
    secret: str,
    algorithm: str = DEFAULT_ALGORITHM,
    revocation=None,
) -> Optional[Claim]:
    payload = decode_token(token, secret, algorithm)
    if payload is None:
        return None

    if revocation is not None and revocation.is_revoked(payload.get("jti")):
        logger.info("Session token was revoked")
        return None

    try:
        return Claim.from_json(payload["sub"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Session token payload could not be decoded")
        return None


# Request/response helpers ------------------------------------------------

def _cookie_kwargs() -> dict:
    config = current_app.config
    return {
        "path": "/",
        "secure": config["COOKIE_SECURE"],
        "httponly": True,
        "samesite": config["COOKIE_SAMESITE"] or None,
    }


def create_session_token(claim: Claim) -> str:
    config = current_app.config
    return issue_token(
        claim,
        config["SECRET_JWT_KEY"],
        lifetime_days=config["TOKEN_LIFETIME_DAYS"],
        algorithm=config["JWT_ALGORITHM"],
    )


def set_auth_cookie(response, token: str) -> None:
    lifetime = timedelta(days=current_app.config["TOKEN_LIFETIME_DAYS"])
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        token,
        expires=datetime.now(timezone.utc) + lifetime,
        **_cookie_kwargs(),
    )


def issue_session(response, claim: Claim) -> None:
    """Sign a fresh token for ``claim`` and attach it to ``response``."""
    set_auth_cookie(response, create_session_token(claim))


def clear_auth_cookie(response) -> None:
    response.delete_cookie(current_app.config["AUTH_COOKIE_NAME"], **_cookie_kwargs())


def get_request_token() -> Optional[str]:
    return request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])


def validate_request_token(token: str) -> Optional[Claim]:
    config = current_app.config
    return validate_token(
        token,
        config["SECRET_JWT_KEY"],
        algorithm=config["JWT_ALGORITHM"],
        revocation=get_revocation_service(),
    )


def get_request_claim(required: bool = True, message: str = "Unauthorized user") -> Optional[Claim]:
    """
    Resolve the caller's claim from the session cookie.

    With ``required`` a missing or invalid cookie raises Forbidden; otherwise
    None is returned for anonymous callers.
    """
    token = get_request_token()
    claim = validate_request_token(token) if token else None
    if claim is None and required:
        raise Forbidden(message)
    return claim


def revoke_request_token() -> bool:
    """
    Revoke the token presented with this request for the rest of its lifetime.
    """
    service = get_revocation_service()
    token = get_request_token()
    if service is None or not token:
        return False

    config = current_app.config
    payload = decode_token(token, config["SECRET_JWT_KEY"], config["JWT_ALGORITHM"])
    if payload is None:
        return False
    remaining = int(payload["exp"] - datetime.now(timezone.utc).timestamp())
    return service.revoke(payload.get("jti"), remaining)
