"""
Account lifecycle routes: registration, login, logout, deletion and session check.
"""
import logging

from flask import Blueprint

from social.database import db_session
from social.errors import BadRequest, Forbidden
from social.services import session_service, user_service
from social.utils.hashing import hash_password
from social.utils.payloads import empty_response, get_json_body, get_str, message_response
from social.utils.validators import (
    normalize_user_at,
    require_valid,
    validate_email,
    validate_new_user,
    validate_password,
)

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/auth/validate', methods=['GET'])
def validate():
    """Report whether the session cookie holds a valid token."""
    token = session_service.get_request_token()
    if not token:
        raise Forbidden("No credentials")
    if session_service.validate_request_token(token) is None:
        raise Forbidden("Invalid JSON Web Token")
    return message_response("Authorized")


@auth_bp.route('/user/create', methods=['POST'])
def create():
    data = get_json_body()
    user_name = get_str(data, 'userName').strip()
    user_at = normalize_user_at(get_str(data, 'userAt'))
    email = get_str(data, 'email').strip().lower()
    password = get_str(data, 'password')

    validate_new_user(user_name, user_at, email, password)
    password_hash = hash_password(password)

    with db_session() as session:
        user = user_service.make_user(session, user_name, user_at, email, password_hash)
        claim = user_service.claim_for(user)

    response = message_response("User created", 201)
    session_service.issue_session(response, claim)
    return response


@auth_bp.route('/user/login', methods=['POST'])
def login():
    data = get_json_body()
    email = get_str(data, 'email').strip().lower()
    password = get_str(data, 'password')

    require_valid(validate_email(email))
    require_valid(validate_password(password))

    with db_session() as session:
        if not user_service.verify_password(session, email, password):
            logger.info("Rejected login attempt")
            raise BadRequest("Invalid credentials")
        claim = user_service.make_claim(session, email)

    response = message_response("Ok")
    session_service.issue_session(response, claim)
    return response


@auth_bp.route('/user/log-out', methods=['POST'])
def logout():
    if not session_service.get_request_token():
        raise BadRequest("No session to log out of")

    session_service.revoke_request_token()
    response = message_response("Cookie removed")
    session_service.clear_auth_cookie(response)
    return response


@auth_bp.route('/user/delete', methods=['DELETE'])
def delete():
    claim = session_service.get_request_claim()

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)
        user_service.delete_user(session, user)

    session_service.revoke_request_token()
    response = empty_response(204)
    session_service.clear_auth_cookie(response)
    return response
