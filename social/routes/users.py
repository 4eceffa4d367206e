"""
Read-only user routes: own data, public profiles, follow lists and search.
"""
from flask import Blueprint, current_app, jsonify

from social.database import db_session
from social.errors import BadRequest, Forbidden, NotFound
from social.services import session_service, user_service
from social.utils.blobs import blob_to_text
from social.utils.validators import normalize_user_at, validate_user_at

users_bp = Blueprint('users', __name__, url_prefix='/user')


def _lookup_user(session, raw_user_at):
    user_at = normalize_user_at(raw_user_at)
    if not validate_user_at(user_at).valid:
        raise NotFound("Not found")
    user = user_service.get_user_by_user_at(session, user_at)
    if user is None:
        raise NotFound("Not found")
    return user


@users_bp.route('/data', methods=['GET'])
def get_data():
    """Profile data of the logged-in user."""
    claim = session_service.get_request_claim()
    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)
        payload = user_service.client_user(user)
    return jsonify(payload), 200


@users_bp.route('/profile/<user_at>', methods=['GET'])
def get_profile_data(user_at):
    """
    Public profile. With a session cookie the response also says whether the
    caller follows this user or is this user; a bad cookie is rejected.
    """
    token = session_service.get_request_token()
    claim = None
    if token:
        claim = session_service.validate_request_token(token)
        if claim is None:
            raise Forbidden("Unauthorized user")

    with db_session() as session:
        user = _lookup_user(session, user_at)

        is_following = False
        is_himself = False
        if claim is not None:
            if not user_service.user_exists(session, claim.user_at):
                raise Forbidden("Unauthorized user")
            is_himself = claim.id == user.id
            is_following = user_service.is_following(session, user.id, claim.id)

        payload = {
            'userName': user.username,
            'userAt': user.user_at,
            'followersCount': user.followers_count,
            'followingCount': user.following_count,
            'isFollowing': is_following,
            'isHimself': is_himself,
            'bio': user.bio or "",
            'icon': blob_to_text(user.icon),
        }
    return jsonify(payload), 200


@users_bp.route('/following/<user_at>', methods=['GET'])
def get_following(user_at):
    with db_session() as session:
        user = _lookup_user(session, user_at)
        payload = [user_service.user_summary(u) for u in user_service.get_following_list(session, user)]
    return jsonify(payload), 200


@users_bp.route('/followers/<user_at>', methods=['GET'])
def get_followers(user_at):
    with db_session() as session:
        user = _lookup_user(session, user_at)
        payload = [user_service.user_summary(u) for u in user_service.get_followers_list(session, user)]
    return jsonify(payload), 200


@users_bp.route('/query/<path:text>', methods=['GET'])
def query(text):
    if not text.strip():
        raise BadRequest("Empty query")

    limit = current_app.config['QUERY_RESULT_LIMIT']
    with db_session() as session:
        payload = [user_service.user_summary(u) for u in user_service.query_like(session, text, limit)]
    return jsonify(payload), 200
