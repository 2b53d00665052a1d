"""
User service — CRUD operations for the User aggregate.

Nothing is cached: every read goes to the database.

The detail view is composed from three explicit queries instead of ORM
eager loading, each selecting only the columns the response exposes.
The password column is never selected into a serialised dict.
"""
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from technews.models import Comment, Post, User, Vote
from technews.schemas import UserCreate, UserUpdate


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    """Serialise a User ORM instance to a plain dict (password excluded)."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
    }


def _iso(value) -> str | None:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Activity queries for the detail view
# ---------------------------------------------------------------------------

async def _posts_by_author(db: AsyncSession, user_id: int) -> list[dict]:
    q = (
        select(Post.id, Post.title, Post.post_url, Post.created_at)
        .where(Post.user_id == user_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    rows = (await db.execute(q)).all()
    return [
        {
            "id": row.id,
            "title": row.title,
            "post_url": row.post_url,
            "created_at": _iso(row.created_at),
        }
        for row in rows
    ]


async def _comments_by_author(db: AsyncSession, user_id: int) -> list[dict]:
    q = (
        select(Comment.id, Comment.comment_text, Comment.created_at, Post.title)
        .join(Post, Comment.post_id == Post.id)
        .where(Comment.user_id == user_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    rows = (await db.execute(q)).all()
    return [
        {
            "id": row.id,
            "comment_text": row.comment_text,
            "created_at": _iso(row.created_at),
            "post": {"title": row.title},
        }
        for row in rows
    ]


async def _voted_post_titles(db: AsyncSession, user_id: int) -> list[dict]:
    q = (
        select(Post.title)
        .join(Vote, Vote.post_id == Post.id)
        .where(Vote.user_id == user_id)
        .order_by(Post.id)
    )
    titles = (await db.execute(q)).scalars().all()
    return [{"title": title} for title in titles]


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_users(db: AsyncSession) -> list[dict]:
    """Return every user ordered by id."""
    result = await db.execute(select(User).order_by(User.id))
    return [_user_to_dict(u) for u in result.scalars().all()]


async def get_user(db: AsyncSession, user_id: int) -> dict | None:
    """
    Return the detail dict for *user_id* with the user's posts, comments
    (each carrying its parent post's title) and the titles of the posts
    the user voted on.

    Returns None when the user does not exist.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        return None

    data = _user_to_dict(user)
    data["posts"] = await _posts_by_author(db, user_id)
    data["comments"] = await _comments_by_author(db, user_id)
    data["voted_posts"] = await _voted_post_titles(db, user_id)
    return data


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    """
    Create a new user and return the flushed ORM instance.

    The password is hashed by the ``User.password`` row hook on
    assignment.  Constraint violations (duplicate email) surface from
    ``flush`` as ``IntegrityError``.
    """
    user = User(username=data.username, email=data.email, password=data.password)
    db.add(user)
    await db.flush()
    return user


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate) -> dict | None:
    """
    Apply the fields explicitly set in *data* to the user and return the
    updated dict, or None when the user does not exist.

    Fields are assigned through the ORM one record at a time so that the
    password row hook runs for a changed password.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        return None

    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)

    await db.flush()
    return _user_to_dict(user)


async def delete_user(db: AsyncSession, user_id: int) -> int:
    """Delete the user identified by *user_id*; return the number of rows removed."""
    result = await db.execute(delete(User).where(User.id == user_id))
    return result.rowcount
