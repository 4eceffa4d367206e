"""
Routes that modify the logged-in user's account and follow relations.
"""
import logging

from flask import Blueprint, current_app

from social.database import db_session
from social.errors import BadRequest, Forbidden
from social.services import session_service, user_service
from social.utils.hashing import hash_password
from social.utils.payloads import get_bool, get_json_body, get_str, message_response
from social.utils.validators import (
    normalize_user_at,
    require_valid,
    validate_email,
    validate_password,
    validate_user_at,
    validate_user_name,
)

logger = logging.getLogger(__name__)

change_bp = Blueprint('change', __name__, url_prefix='/user')


@change_bp.route('/change/password', methods=['PATCH'])
def change_password():
    claim = session_service.get_request_claim()
    data = get_json_body()
    current_password = get_str(data, 'currentPassword')
    new_password = get_str(data, 'newPassword')

    require_valid(validate_password(new_password))

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)

        if not user_service.verify_password(session, user.email, current_password):
            raise Forbidden("Current password doesn't match")
        if user_service.verify_password(session, user.email, new_password):
            raise BadRequest("New password cannot be the same as the old one")

        user_service.change_password(session, user, hash_password(new_password))

    logger.info(f"Password changed for user id={claim.id}")
    return message_response("Password changed successfully")


@change_bp.route('/change/email', methods=['PATCH'])
def change_email():
    claim = session_service.get_request_claim()
    data = get_json_body()
    email = get_str(data, 'email').strip().lower()

    require_valid(validate_email(email))

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)

        if user.email == email:
            raise BadRequest("New email cannot be the same as the old one")
        if user_service.email_exists(session, email):
            raise BadRequest("Email already exists")

        user_service.change_email(session, user, email)
        new_claim = user_service.claim_for(user)

    # The token embeds the email, so the old one no longer matches
    response = message_response("Email changed successfully")
    session_service.issue_session(response, new_claim)
    return response


@change_bp.route('/change/user-at', methods=['PATCH'])
def change_user_at():
    claim = session_service.get_request_claim()
    data = get_json_body()
    user_at = normalize_user_at(get_str(data, 'userAt'))

    require_valid(validate_user_at(user_at))

    if user_at == claim.user_at:
        raise BadRequest("New userat cannot be the same as the old one")

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)

        if user_service.user_exists(session, user_at):
            raise BadRequest("UserAt already in use")

        user_service.change_user_at(session, user, user_at)
        new_claim = user_service.claim_for(user)

    response = message_response("User_at changed successfully")
    session_service.issue_session(response, new_claim)
    return response


@change_bp.route('/change/profile', methods=['PATCH'])
def change_profile():
    claim = session_service.get_request_claim(message="forbidden")
    data = get_json_body()
    user_name = get_str(data, 'userName').strip()
    bio = get_str(data, 'bio')
    icon = get_str(data, 'icon')

    if len(bio) > current_app.config['BIO_MAX_LEN']:
        raise BadRequest("bio too long")
    require_valid(validate_user_name(user_name))

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim, message="forbidden")
        user_service.change_bio(session, user, bio)
        user_service.change_username(session, user, user_name)
        user_service.change_icon(session, user, icon)

    return message_response("Ok")


@change_bp.route('/follow', methods=['PATCH'])
def follow_user():
    """Follow (``follow: true``) or unfollow (``follow: false``) another user."""
    claim = session_service.get_request_claim(message="Unauthorized")
    data = get_json_body()
    target_user_at = normalize_user_at(get_str(data, 'userAt'))
    follow = get_bool(data, 'follow')

    if target_user_at == claim.user_at:
        raise BadRequest("You can't follow yourself")

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim, message="Unauthorized")

        target = user_service.get_user_by_user_at(session, target_user_at)
        if target is None:
            raise BadRequest("User doesn't exist")

        if follow:
            user_service.follow_user(session, target.id, user.id)
        else:
            user_service.unfollow_user(session, target.id, user.id)

    return message_response("Ok")
