"""Per-request authentication session.

The session context is created empty (``INIT``), resolved once from the
bearer token to ``AUTHENTICATED`` or ``UNAUTHENTICATED`` and finally
``CLOSED`` at sign-out / end of request. Services that act on behalf of a
user receive it explicitly instead of reading a global current user.
"""
from dataclasses import dataclass
from enum import Enum


class SessionState(str, Enum):
    INIT = "init"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"
    CLOSED = "closed"


class SessionError(RuntimeError):
    pass


class NotAuthenticated(SessionError):
    pass


class PermissionDenied(SessionError):
    pass


@dataclass(frozen=True)
class CurrentUser:
    id: str
    email: str
    role: str  # client | provider | admin
    name: str = ""


class SessionContext:
    def __init__(self):
        self.state = SessionState.INIT
        self._user: CurrentUser | None = None

    @property
    def user(self) -> CurrentUser | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    def authenticate(self, user: CurrentUser) -> "SessionContext":
        if self.state == SessionState.CLOSED:
            raise SessionError("session is closed")
        self._user = user
        self.state = SessionState.AUTHENTICATED
        return self

    def mark_unauthenticated(self) -> "SessionContext":
        if self.state == SessionState.CLOSED:
            raise SessionError("session is closed")
        self._user = None
        self.state = SessionState.UNAUTHENTICATED
        return self

    def require_user(self) -> CurrentUser:
        if self.state != SessionState.AUTHENTICATED or self._user is None:
            raise NotAuthenticated("Not authenticated")
        return self._user

    def require_role(self, *roles: str) -> CurrentUser:
        user = self.require_user()
        if user.role not in roles:
            raise PermissionDenied("Forbidden")
        return user

    def close(self) -> None:
        self._user = None
        self.state = SessionState.CLOSED
