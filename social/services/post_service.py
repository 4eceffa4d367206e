"""
Post persistence: publishing, comments, likes and feed reads.
"""
from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional, Set, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from social.errors import BadRequest
from social.models import Post, PostLike, User
from social.utils.blobs import blob_to_text, text_to_blob

logger = logging.getLogger(__name__)

PostRow = Tuple[Post, User]


def now_millis() -> int:
    return int(time.time() * 1000)


def _with_owner():
    return select(Post, User).join(User, User.id == Post.owner_id)


def _rows(session: Session, statement) -> List[PostRow]:
    return [(row[0], row[1]) for row in session.execute(statement).all()]


class PostService:
    """
    Posts and their one-level comments. Like and comment counters are
    recomputed from their source tables whenever either changes.
    """

    def sync_post_counts(self, session: Session, post_ids: Iterable[int]) -> None:
        """
        Recompute like and comment counters from their source tables.
        """
        post_ids = [post_id for post_id in post_ids if post_id is not None]
        if not post_ids:
            return
        comment = aliased(Post)
        likes = (
            select(func.count())
            .select_from(PostLike)
            .where(PostLike.post_id == Post.id)
            .scalar_subquery()
        )
        comments = (
            select(func.count())
            .select_from(comment)
            .where(comment.parent_id == Post.id)
            .scalar_subquery()
        )
        session.execute(
            update(Post)
            .where(Post.id.in_(post_ids))
            .values(likes_count=likes, comments_count=comments)
            .execution_options(synchronize_session="fetch")
        )

    def make_post(
        self,
        session: Session,
        owner_id: int,
        text: Optional[str],
        image: Optional[str],
        parent_id: Optional[int] = None,
    ) -> Post:
        post = Post(
            owner_id=owner_id,
            parent_id=parent_id,
            text=text or None,
            image=text_to_blob(image),
            likes_count=0,
            comments_count=0,
            unix_time=now_millis(),
        )
        session.add(post)
        session.flush()
        if parent_id is not None:
            self.sync_post_counts(session, (parent_id,))
        logger.info(f"User id={owner_id} published post id={post.id} parent={parent_id}")
        return post

    # Reads --------------------------------------------------------------------

    def get_post(self, session: Session, post_id: int) -> Optional[Post]:
        return session.get(Post, post_id)

    def get_post_row(self, session: Session, post_id: int) -> Optional[PostRow]:
        rows = _rows(session, _with_owner().where(Post.id == post_id))
        return rows[0] if rows else None

    def get_posts(self, session: Session, limit: int = 50, offset: int = 0) -> List[PostRow]:
        """Top-level posts, newest first."""
        return _rows(
            session,
            _with_owner()
            .where(Post.parent_id.is_(None))
            .order_by(Post.unix_time.desc(), Post.id.desc())
            .limit(limit)
            .offset(offset),
        )

    def get_user_posts(self, session: Session, owner_id: int) -> List[PostRow]:
        return _rows(
            session,
            _with_owner()
            .where(Post.owner_id == owner_id, Post.parent_id.is_(None))
            .order_by(Post.unix_time.desc(), Post.id.desc()),
        )

    def get_comments_from_post(self, session: Session, post_id: int) -> List[PostRow]:
        return _rows(
            session,
            _with_owner()
            .where(Post.parent_id == post_id)
            .order_by(Post.unix_time.desc(), Post.id.desc()),
        )

    # Writes -------------------------------------------------------------------

    def edit_post(self, session: Session, post: Post, text: Optional[str], image: Optional[str]) -> None:
        post.text = text or None
        post.image = text_to_blob(image)
        session.flush()

    def delete_post(self, session: Session, post: Post) -> None:
        """
        Delete a post or comment. Comments of a deleted post go with it.
        """
        post_id, parent_id = post.id, post.parent_id
        session.execute(delete(PostLike).where(PostLike.post_id.in_(
            select(Post.id).where(Post.parent_id == post_id)
        )))
        session.execute(delete(PostLike).where(PostLike.post_id == post_id))
        session.execute(delete(Post).where(Post.parent_id == post_id))
        session.execute(delete(Post).where(Post.id == post_id))
        if parent_id is not None:
            self.sync_post_counts(session, (parent_id,))
        logger.info(f"Deleted post id={post_id}")

    # Likes --------------------------------------------------------------------

    def has_liked(self, session: Session, post_id: int, user_id: int) -> bool:
        return session.execute(
            select(PostLike.post_id).where(
                PostLike.post_id == post_id,
                PostLike.user_id == user_id,
            )
        ).first() is not None

    def liked_post_ids(self, session: Session, user_id: Optional[int], post_ids: Iterable[int]) -> Set[int]:
        post_ids = list(post_ids)
        if user_id is None or not post_ids:
            return set()
        return set(session.execute(
            select(PostLike.post_id).where(
                PostLike.user_id == user_id,
                PostLike.post_id.in_(post_ids),
            )
        ).scalars())

    def like_post(self, session: Session, post_id: int, user_id: int) -> None:
        if self.has_liked(session, post_id, user_id):
            raise BadRequest("Post already liked")

        session.add(PostLike(post_id=post_id, user_id=user_id))
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            raise BadRequest("Post already liked")

        self.sync_post_counts(session, (post_id,))

    def dislike_post(self, session: Session, post_id: int, user_id: int) -> None:
        result = session.execute(
            delete(PostLike).where(
                PostLike.post_id == post_id,
                PostLike.user_id == user_id,
            )
        )
        if result.rowcount == 0:
            raise BadRequest("Post not liked")

        self.sync_post_counts(session, (post_id,))

    # Payloads -----------------------------------------------------------------

    def post_payload(self, post: Post, owner: User, liked: bool) -> dict:
        return {
            'postId': post.id,
            'ownerId': post.owner_id,
            'userName': owner.username,
            'userAt': owner.user_at,
            'icon': blob_to_text(owner.icon),
            'text': post.text or "",
            'image': blob_to_text(post.image),
            'likesCount': post.likes_count,
            'commentsCount': post.comments_count,
            'unixTime': str(post.unix_time),
            'hasThisUserLiked': liked,
        }

    def build_post_payloads(self, session: Session, rows: List[PostRow], viewer_id: Optional[int]) -> List[dict]:
        liked = self.liked_post_ids(session, viewer_id, (post.id for post, _ in rows))
        return [self.post_payload(post, owner, post.id in liked) for post, owner in rows]


post_service = PostService()
