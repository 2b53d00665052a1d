from fastapi import Request

from technews.config import settings
from technews.sessions import SessionData, sessions


class SessionContext:
    """
    The calling client's session as seen by one request.

    Attributes
    ----------
    token:
        Value of the session cookie, or None when the client sent none.
    data:
        The stored record for *token*, or None when the client is
        anonymous (no cookie, unknown token or expired record).
    """

    def __init__(self, token: str | None, data: SessionData | None) -> None:
        self.token = token
        self.data = data

    @property
    def logged_in(self) -> bool:
        return self.data is not None and self.data.logged_in


async def get_session_context(request: Request) -> SessionContext:
    """FastAPI dependency resolving the session cookie against the store."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return SessionContext(None, None)
    return SessionContext(token, await sessions.get(token))
