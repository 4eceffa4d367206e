"""
User persistence: registration, credentials, profile changes and follow relations.

Every method receives the caller's SQLAlchemy session; the caller owns the
transaction (see ``social.database.db_session``).
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from social.errors import BadRequest, Forbidden
from social.models import Follow, Post, PostLike, User
from social.services.post_service import post_service
from social.services.session_service import Claim
from social.utils.blobs import blob_to_text, text_to_blob
from social.utils.hashing import compare_password

logger = logging.getLogger(__name__)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class UserService:
    """
    Accounts and the follow graph. Counters on ``users`` are recomputed from
    the ``follows`` table in the same transaction as every change to it.
    """

    # Lookups --------------------------------------------------------------

    def user_exists(self, session: Session, user_at: str) -> bool:
        return session.execute(
            select(User.id).where(User.user_at == user_at)
        ).first() is not None

    def email_exists(self, session: Session, email: str) -> bool:
        return session.execute(
            select(User.id).where(User.email == email)
        ).first() is not None

    def get_user_by_id(self, session: Session, user_id: int) -> Optional[User]:
        return session.get(User, user_id)

    def get_user_by_email(self, session: Session, email: str) -> Optional[User]:
        return session.execute(
            select(User).where(User.email == email)
        ).scalar_one_or_none()

    def get_user_by_user_at(self, session: Session, user_at: str) -> Optional[User]:
        return session.execute(
            select(User).where(User.user_at == user_at)
        ).scalar_one_or_none()

    # Registration and credentials -------------------------------------------

    def make_user(self, session: Session, user_name: str, user_at: str, email: str, password_hash: str) -> User:
        """
        Insert a new user. Raises BadRequest when the handle or email is taken.
        """
        if self.user_exists(session, user_at):
            raise BadRequest("Username already in use")
        if self.email_exists(session, email):
            raise BadRequest("Email already in use")

        user = User(
            username=user_name,
            user_at=user_at,
            email=email,
            password=password_hash,
            followers_count=0,
            following_count=0,
        )
        session.add(user)
        try:
            session.flush()
        except IntegrityError:
            # A concurrent signup won the unique constraint between check and insert
            session.rollback()
            if self.user_exists(session, user_at):
                raise BadRequest("Username already in use")
            raise BadRequest("Email already in use")

        logger.info(f"Created user id={user.id} user_at={user.user_at}")
        return user

    def make_claim(self, session: Session, email: str) -> Claim:
        user = self.get_user_by_email(session, email)
        if user is None:
            raise Forbidden("User does not exist")
        return self.claim_for(user)

    def claim_for(self, user: User) -> Claim:
        return Claim(id=user.id, user_at=user.user_at, email=user.email)

    def verify_password(self, session: Session, email: str, password: str) -> bool:
        """
        Unknown email and wrong password are indistinguishable to the caller.
        """
        stored = session.execute(
            select(User.password).where(User.email == email)
        ).scalar_one_or_none()
        if stored is None:
            return False
        return compare_password(password, stored)

    def get_authorized_user(self, session: Session, claim: Claim, message: str = "Unauthorized user") -> User:
        """
        Return the stored user matching every field of ``claim``, else raise Forbidden.
        """
        user = self.get_user_by_email(session, claim.email)
        if user is None or user.id != claim.id or user.user_at != claim.user_at:
            logger.info(f"Stale or mismatched session claim for user id={claim.id}")
            raise Forbidden(message)
        return user

    # Account changes --------------------------------------------------------

    def change_password(self, session: Session, user: User, password_hash: str) -> None:
        user.password = password_hash
        session.flush()

    def change_email(self, session: Session, user: User, new_email: str) -> None:
        user.email = new_email
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            raise BadRequest("Email already exists")

    def change_user_at(self, session: Session, user: User, new_user_at: str) -> None:
        user.user_at = new_user_at
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            raise BadRequest("UserAt already in use")

    def change_bio(self, session: Session, user: User, bio: str) -> None:
        user.bio = bio or None
        session.flush()

    def change_username(self, session: Session, user: User, user_name: str) -> None:
        user.username = user_name
        session.flush()

    def change_icon(self, session: Session, user: User, icon: str) -> None:
        user.icon = text_to_blob(icon)
        session.flush()

    def delete_user(self, session: Session, user: User) -> None:
        """
        Delete ``user`` after undoing every relation that feeds someone else's counters.
        """
        user_id = user.id

        related_ids = set(session.execute(
            select(Follow.followed_id).where(Follow.follower_id == user_id)
        ).scalars())
        related_ids.update(session.execute(
            select(Follow.follower_id).where(Follow.followed_id == user_id)
        ).scalars())

        liked_post_ids = set(session.execute(
            select(PostLike.post_id).where(PostLike.user_id == user_id)
        ).scalars())
        commented_post_ids = set(session.execute(
            select(Post.parent_id).where(Post.owner_id == user_id, Post.parent_id.is_not(None))
        ).scalars())

        session.execute(
            delete(Follow).where(or_(Follow.follower_id == user_id, Follow.followed_id == user_id))
        )
        session.execute(delete(PostLike).where(PostLike.user_id == user_id))
        session.execute(delete(Post).where(Post.owner_id == user_id, Post.parent_id.is_not(None)))
        session.execute(delete(Post).where(Post.owner_id == user_id))
        session.execute(delete(User).where(User.id == user_id))

        self.sync_follow_counts(session, related_ids)
        post_service.sync_post_counts(session, liked_post_ids | commented_post_ids)

        logger.info(f"Deleted user id={user_id}")

    # Follow relations ---------------------------------------------------------

    def sync_follow_counts(self, session: Session, user_ids: Iterable[int]) -> None:
        """
        Recompute follower/following counters from the follows table.
        """
        user_ids = list(user_ids)
        if not user_ids:
            return
        followers = (
            select(func.count())
            .select_from(Follow)
            .where(Follow.followed_id == User.id)
            .scalar_subquery()
        )
        following = (
            select(func.count())
            .select_from(Follow)
            .where(Follow.follower_id == User.id)
            .scalar_subquery()
        )
        session.execute(
            update(User)
            .where(User.id.in_(user_ids))
            .values(followers_count=followers, following_count=following)
            .execution_options(synchronize_session="fetch")
        )

    def is_following(self, session: Session, target_id: int, follower_id: int) -> bool:
        return session.execute(
            select(Follow.follower_id).where(
                Follow.follower_id == follower_id,
                Follow.followed_id == target_id,
            )
        ).first() is not None

    def follow_user(self, session: Session, target_id: int, follower_id: int) -> None:
        """
        Record ``follower_id`` following ``target_id`` and update both counters.
        """
        if target_id == follower_id:
            raise BadRequest("You can't follow yourself")
        if self.is_following(session, target_id, follower_id):
            raise BadRequest("Already following")

        session.add(Follow(follower_id=follower_id, followed_id=target_id))
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            raise BadRequest("Already following")

        self.sync_follow_counts(session, (target_id, follower_id))

    def unfollow_user(self, session: Session, target_id: int, follower_id: int) -> None:
        result = session.execute(
            delete(Follow).where(
                Follow.follower_id == follower_id,
                Follow.followed_id == target_id,
            )
        )
        if result.rowcount == 0:
            raise BadRequest("Not following")

        self.sync_follow_counts(session, (target_id, follower_id))

    def get_following_list(self, session: Session, user: User) -> List[User]:
        return list(session.execute(
            select(User)
            .join(Follow, Follow.followed_id == User.id)
            .where(Follow.follower_id == user.id)
            .order_by(User.user_at)
        ).scalars())

    def get_followers_list(self, session: Session, user: User) -> List[User]:
        return list(session.execute(
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(Follow.followed_id == user.id)
            .order_by(User.user_at)
        ).scalars())

    def query_like(self, session: Session, text: str, limit: int = 20) -> List[User]:
        """
        Case-insensitive substring search over handles and display names.
        """
        pattern = f"%{_escape_like(text.strip())}%"
        return list(session.execute(
            select(User)
            .where(or_(
                User.user_at.ilike(pattern, escape="\\"),
                User.username.ilike(pattern, escape="\\"),
            ))
            .order_by(User.user_at)
            .limit(limit)
        ).scalars())

    # Payloads -----------------------------------------------------------------

    def user_summary(self, user: User) -> dict:
        return {
            'userAt': user.user_at,
            'userName': user.username,
            'icon': blob_to_text(user.icon),
        }

    def client_user(self, user: User) -> dict:
        return {
            'userName': user.username,
            'userAt': user.user_at,
            'followingCount': user.following_count,
            'followersCount': user.followers_count,
            'bio': user.bio or "",
            'icon': blob_to_text(user.icon),
        }


user_service = UserService()
