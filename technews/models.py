from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, event, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from technews.database import Base
from technews.security import hash_password, verify_password


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    # Always a bcrypt hash; see _hash_password_on_set below.
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships: lazy="raise"; reads use explicit queries in the services
    posts: Mapped[List["Post"]] = relationship("Post", back_populates="author", lazy="raise")
    comments: Mapped[List["Comment"]] = relationship(
        "Comment", back_populates="author", lazy="raise"
    )
    voted_posts: Mapped[List["Post"]] = relationship(
        "Post", secondary="votes", viewonly=True, lazy="raise"
    )

    def check_password(self, plain_password: str) -> bool:
        return verify_password(plain_password, self.password)


@event.listens_for(User.password, "set", retval=True)
def _hash_password_on_set(target, value, oldvalue, initiator):
    """Row hook: the plaintext never reaches the flush."""
    if value is None:
        return value
    return hash_password(value)


# ---------------------------------------------------------------------------
# Post
# ---------------------------------------------------------------------------
class Post(Base):
    __tablename__ = "posts"

    __table_args__ = (
        Index("ix_posts_user_id_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    post_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    author: Mapped["User"] = relationship("User", back_populates="posts", lazy="raise")
    comments: Mapped[List["Comment"]] = relationship(
        "Comment", back_populates="post", lazy="raise"
    )


# ---------------------------------------------------------------------------
# Comment
# ---------------------------------------------------------------------------
class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    comment_text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    author: Mapped["User"] = relationship("User", back_populates="comments", lazy="raise")
    post: Mapped["Post"] = relationship("Post", back_populates="comments", lazy="raise")


# ---------------------------------------------------------------------------
# Vote: User <-> Post join, identified only by the pair
# ---------------------------------------------------------------------------
class Vote(Base):
    __tablename__ = "votes"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True, index=True
    )
