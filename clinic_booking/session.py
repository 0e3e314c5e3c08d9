"""Auth session for staff screens.

The session is an explicit object handed to whatever needs it (the API
client, the staff helpers, the terminal client). It is opened after a
successful login and closed on logout or when the backend answers 401.
"""
from typing import Optional

from clinic_booking.errors import PermissionDenied
from clinic_booking.logging_config import get_logger
from clinic_booking.models import User

logger = get_logger(__name__)


class AuthSession:
    """Bearer token plus the user it belongs to."""

    def __init__(self):
        self.token: Optional[str] = None
        self.user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def open(self, token: str, user: User):
        if not token:
            raise ValueError("Cannot open a session without a token")
        self.token = token
        self.user = user
        logger.info("session_opened", user_id=user.id, role=user.role)

    def close(self):
        if self.token is not None:
            logger.info("session_closed", user_id=self.user.id if self.user else None)
        self.token = None
        self.user = None

    def authorization_header(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def has_role(self, *roles: str) -> bool:
        return self.is_authenticated and self.user is not None and self.user.role in roles

    def require_role(self, *roles: str) -> User:
        """Return the current user or raise PermissionDenied."""
        if not self.is_authenticated:
            raise PermissionDenied("Login required")
        if not self.has_role(*roles):
            raise PermissionDenied(
                f"Role '{self.user.role}' cannot perform this action (needs one of {', '.join(roles)})"
            )
        return self.user

    def __enter__(self) -> "AuthSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
