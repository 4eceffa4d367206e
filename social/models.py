"""
Database models for users, follow relations, posts/comments and likes.
"""
from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
)

from social.database import Base


class User(Base):
    """
    Registered account. Follower/following counts mirror the follows table.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), nullable=False)
    user_at = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)
    icon = Column(LargeBinary, nullable=True)
    followers_count = Column(Integer, nullable=False, default=0)
    following_count = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, user_at={self.user_at})>"


class Follow(Base):
    """
    One row per (follower, followed) pair.
    """

    __tablename__ = "follows"

    follower_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    followed_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    __table_args__ = (
        CheckConstraint("follower_id != followed_id", name="ck_cannot_follow_self"),
        Index("idx_follows_followed", "followed_id"),
    )


class Post(Base):
    """
    A published post. Comments are posts with ``parent_id`` set.
    """

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=True, index=True)
    text = Column(String(200), nullable=True)
    image = Column(LargeBinary, nullable=True)
    likes_count = Column(Integer, nullable=False, default=0)
    comments_count = Column(Integer, nullable=False, default=0)
    # Unix milliseconds
    unix_time = Column(BigInteger, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, owner_id={self.owner_id}, parent_id={self.parent_id})>"


class PostLike(Base):
    __tablename__ = "post_likes"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)

    __table_args__ = (
        Index("idx_post_likes_post", "post_id"),
    )
