"""Session context and local checks for the login / sign-up forms."""
from dataclasses import dataclass
from typing import Optional

from engine import is_blank
from tracker.engine import ValidationError

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class SessionContext:
    """The signed-in user. Passed explicitly into every dashboard call."""
    user_id: str
    email: str = ""

    def refresh(self, db) -> Optional["SessionContext"]:
        """Re-check the session with the auth service. None once signed out."""
        return db.get_current_user()


def validate_sign_in(email: str, password: str) -> None:
    if is_blank(email) or is_blank(password):
        raise ValidationError("Email and password are required")


def validate_sign_up(email: str, password: str, confirm_password: str) -> None:
    validate_sign_in(email, password)
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
