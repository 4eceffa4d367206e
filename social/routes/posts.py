"""
Post, comment and like routes.
"""
from flask import Blueprint, current_app, jsonify, request

from social.database import db_session
from social.errors import BadRequest, Forbidden, NotFound
from social.services import post_service, session_service, user_service
from social.utils.payloads import (
    INT_MAX,
    empty_response,
    get_bool,
    get_int,
    get_json_body,
    get_str,
    in_int_range,
    message_response,
)
from social.utils.validators import normalize_user_at

posts_bp = Blueprint('posts', __name__, url_prefix='/user')

MAX_PAGE_SIZE = 100


def _read_post_body():
    """
    Return (text, image) from the request, rejecting empty or oversized posts.
    """
    data = get_json_body()
    text = get_str(data, 'text').strip()
    image = get_str(data, 'image')

    if not text and not image:
        raise BadRequest("Bad request, post was empty")
    if len(text) > current_app.config['POST_TEXT_MAX_LEN']:
        raise BadRequest("post text too long")
    return text, image


def _viewer_id():
    """Id of the caller when a valid session cookie is present, else None."""
    claim = session_service.get_request_claim(required=False)
    return claim.id if claim else None


def _require_post_id(post_id):
    """Ids the posts table cannot hold do not exist."""
    if not in_int_range(post_id):
        raise NotFound("Post not found")


def _get_top_level_post(session, post_id):
    _require_post_id(post_id)
    post = post_service.get_post(session, post_id)
    if post is None or post.parent_id is not None:
        raise NotFound("Post not found")
    return post


def _get_comment(session, comment_id):
    _require_post_id(comment_id)
    comment = post_service.get_post(session, comment_id)
    if comment is None or comment.parent_id is None:
        raise NotFound("Comment not found")
    return comment


@posts_bp.route('/publish-post', methods=['POST'])
def publish_post():
    claim = session_service.get_request_claim()
    text, image = _read_post_body()

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)
        post = post_service.make_post(session, user.id, text, image)
        post_id = post.id

    return message_response("Post published", 201, postId=post_id)


@posts_bp.route('/fetch-posts', methods=['GET'])
def fetch_posts():
    default_limit = current_app.config['FEED_PAGE_SIZE']
    limit = request.args.get('limit', default_limit, type=int)
    offset = request.args.get('offset', 0, type=int)
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    offset = max(0, min(offset, INT_MAX))

    viewer_id = _viewer_id()
    with db_session() as session:
        rows = post_service.get_posts(session, limit=limit, offset=offset)
        payload = post_service.build_post_payloads(session, rows, viewer_id)
    return jsonify(payload), 200


@posts_bp.route('/fetch-post/<int:post_id>', methods=['GET'])
def fetch_post(post_id):
    _require_post_id(post_id)
    viewer_id = _viewer_id()
    with db_session() as session:
        row = post_service.get_post_row(session, post_id)
        if row is None:
            raise NotFound("Post not found")
        payload = post_service.build_post_payloads(session, [row], viewer_id)[0]
    return jsonify(payload), 200


@posts_bp.route('/fetch-user-posts/<user_at>', methods=['GET'])
def fetch_user_posts(user_at):
    viewer_id = _viewer_id()
    with db_session() as session:
        owner = user_service.get_user_by_user_at(session, normalize_user_at(user_at))
        if owner is None:
            raise NotFound("Not found")
        rows = post_service.get_user_posts(session, owner.id)
        payload = post_service.build_post_payloads(session, rows, viewer_id)
    return jsonify(payload), 200


@posts_bp.route('/fetch-post-comments/<int:post_id>', methods=['GET'])
def fetch_comments(post_id):
    viewer_id = _viewer_id()
    with db_session() as session:
        _get_top_level_post(session, post_id)
        rows = post_service.get_comments_from_post(session, post_id)
        payload = post_service.build_post_payloads(session, rows, viewer_id)
    return jsonify(payload), 200


@posts_bp.route('/like', methods=['PATCH'])
def like_post():
    claim = session_service.get_request_claim()
    data = get_json_body()
    post_id = get_int(data, 'postId')
    like = get_bool(data, 'like')

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)
        _get_top_level_post(session, post_id)
        if like:
            post_service.like_post(session, post_id, user.id)
        else:
            post_service.dislike_post(session, post_id, user.id)

    return message_response("Ok")


@posts_bp.route('/like-comment', methods=['PATCH'])
def like_comment():
    claim = session_service.get_request_claim()
    data = get_json_body()
    comment_id = get_int(data, 'commentId')
    like = get_bool(data, 'like')

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)
        _get_comment(session, comment_id)
        if like:
            post_service.like_post(session, comment_id, user.id)
        else:
            post_service.dislike_post(session, comment_id, user.id)

    return message_response("Ok")


@posts_bp.route('/comment/<int:post_id>', methods=['PATCH'])
def comment_post(post_id):
    claim = session_service.get_request_claim()
    text, image = _read_post_body()

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)
        _get_top_level_post(session, post_id)
        comment = post_service.make_post(session, user.id, text, image, parent_id=post_id)
        comment_id = comment.id

    return message_response("Comment published", 201, postId=comment_id)


@posts_bp.route('/edit-post/<int:post_id>', methods=['PATCH'])
def edit_post(post_id):
    claim = session_service.get_request_claim(message="forbidden")
    text, image = _read_post_body()

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim, message="forbidden")
        _require_post_id(post_id)
        post = post_service.get_post(session, post_id)
        if post is None:
            raise NotFound("Post not found")
        if post.owner_id != user.id:
            raise Forbidden("forbidden")
        post_service.edit_post(session, post, text, image)

    return message_response("post edited")


@posts_bp.route('/delete-post/<int:post_id>', methods=['DELETE'])
def delete_post(post_id):
    claim = session_service.get_request_claim()

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)
        post = _get_top_level_post(session, post_id)
        if post.owner_id != user.id:
            raise Forbidden("Only the owner can delete this post")
        post_service.delete_post(session, post)

    return empty_response(204)


@posts_bp.route('/delete-post-comment', methods=['DELETE'])
def delete_post_comment():
    """
    Delete a comment. Allowed for the comment's author and the parent post's owner.
    """
    claim = session_service.get_request_claim()
    data = get_json_body()
    comment_id = get_int(data, 'commentId')

    with db_session() as session:
        user = user_service.get_authorized_user(session, claim)
        comment = _get_comment(session, comment_id)
        parent = post_service.get_post(session, comment.parent_id)
        if user.id not in (comment.owner_id, parent.owner_id):
            raise Forbidden("Only the author can delete this comment")
        post_service.delete_post(session, comment)

    return empty_response(204)
