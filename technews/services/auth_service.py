"""
Auth service — credential checks and the session lifecycle.

A client is either anonymous (no live session record) or authenticated
(a record holding ``user_id``, ``username`` and ``loggedIn``).  Login
and registration move it to authenticated; logout moves it back.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from technews.dependencies import SessionContext
from technews.errors import INCORRECT_PASSWORD, UNKNOWN_EMAIL, InvalidCredentials
from technews.models import User
from technews.schemas import UserCreate
from technews.services import user_service
from technews.sessions import SessionData, sessions

logger = logging.getLogger(__name__)

LOGIN_MESSAGE = " You are now logged in!"


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """
    Return the user whose email and password match.

    Raises ``InvalidCredentials`` with a message telling an unknown email
    apart from a wrong password.  Session state is never touched here.
    """
    user = await user_service.get_user_by_email(db, email)
    if user is None:
        logger.warning("Login failed: unknown email %r", email)
        raise InvalidCredentials(UNKNOWN_EMAIL)
    if not user.check_password(password):
        logger.warning("Login failed: incorrect password for user id=%d", user.id)
        raise InvalidCredentials(INCORRECT_PASSWORD)
    return user


async def register(db: AsyncSession, data: UserCreate) -> User:
    """
    Create the user and commit it.

    The commit happens here rather than in ``get_db`` because a session
    opened right after must reference a row other connections can see.
    """
    user = await user_service.create_user(db, data)
    await db.commit()
    logger.info("Registered user id=%d username=%r", user.id, user.username)
    return user


async def discard_registration(db: AsyncSession, user: User) -> None:
    """
    Remove a just-registered user whose session could not be opened, so
    the client can retry the registration with the same email.
    """
    user_id = user.id
    await user_service.delete_user(db, user_id)
    await db.commit()
    logger.warning("Registration of user id=%d rolled back: session not opened", user_id)


async def open_session(current: SessionContext, user: User) -> str:
    """
    Bind a fresh session to *user* and return its token.

    Any session the client already presented is destroyed first so a
    token is never reused across logins.  The write is awaited, so the
    session is readable before the caller responds.
    """
    if current.token:
        await sessions.destroy(current.token)
    token = await sessions.create(
        SessionData(user_id=user.id, username=user.username, logged_in=True)
    )
    logger.info("Session opened for user id=%d", user.id)
    return token


async def close_session(current: SessionContext) -> bool:
    """
    Destroy the caller's session.

    Returns False when the caller was already anonymous; that is a
    client error, not a no-op.
    """
    if not current.logged_in:
        return False
    await sessions.destroy(current.token)
    logger.info("Session closed for user id=%d", current.data.user_id)
    return True
