"""
Service layer exports.
"""
from . import revocation_service, session_service
from .post_service import post_service
from .user_service import user_service

__all__ = ["post_service", "revocation_service", "session_service", "user_service"]
