"""Current-user providers consumed by the analytics services."""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from firebase_admin import auth as firebase_auth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthUser:
    """Identity of the signed-in user."""
    uid: str
    email: Optional[str] = None
    email_verified: bool = False


class AuthProvider(Protocol):
    """Anything that can tell who is signed in."""

    def current_user(self) -> Optional[AuthUser]:
        ...


class SessionAuthProvider:
    """Holds the signed-in user for the lifetime of a session."""

    def __init__(self, user: Optional[AuthUser] = None):
        self._user = user

    def current_user(self) -> Optional[AuthUser]:
        return self._user

    def sign_in(self, user: AuthUser) -> None:
        self._user = user

    def sign_out(self) -> None:
        self._user = None


class FirebaseAuthProvider(SessionAuthProvider):
    """Session provider that signs users in from Firebase ID tokens."""

    def __init__(self, app=None):
        super().__init__()
        self.app = app

    def sign_in_with_token(self, id_token: str) -> AuthUser:
        """Verify an ID token and make its owner the current user.

        Raises the firebase_admin auth errors unchanged; the session keeps
        whatever user it had before.
        """
        claims = firebase_auth.verify_id_token(id_token, app=self.app)
        user = AuthUser(
            uid=claims["uid"],
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified", False)),
        )
        self.sign_in(user)
        logger.info(f"Signed in user {user.uid}")
        return user
