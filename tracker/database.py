"""
Database operations for the net tracker.
Wraps Supabase auth and the exams table. Every SDK failure is logged and
re-raised as ServiceError so the UI has a single remote error type.
"""
import logging
from typing import List, Optional

from supabase import Client

from db import EXAMS_TABLE, get_supabase_uncached
from tracker.auth import SessionContext
from tracker.engine import TrackerError
from tracker.models import ExamRecord, ExamResult

logger = logging.getLogger(__name__)


class ServiceError(TrackerError):
    """The auth/data service rejected or failed a request."""


class DatabaseClient:
    """Wrapper around a Supabase client with net-tracker operations."""

    def __init__(self, client: Optional[Client] = None, table: str = EXAMS_TABLE):
        self.client: Client = client if client is not None else get_supabase_uncached()
        self.table = table

    # ============= Auth =============

    def sign_up(self, email: str, password: str) -> SessionContext:
        """
        Create an account and return the signed-in session.

        When the project requires email confirmation, sign-up returns no
        session; a password sign-in is attempted straight away.
        """
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except Exception as e:
            logger.error(f"Error signing up: {e}")
            raise ServiceError(str(e)) from e

        if response.user is not None and response.session is not None:
            logger.info("Signed up user %s", response.user.id)
            return _context(response.user)
        return self.sign_in(email, password)

    def sign_in(self, email: str, password: str) -> SessionContext:
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.error(f"Error signing in: {e}")
            raise ServiceError(str(e)) from e
        if response.user is None:
            raise ServiceError("Sign-in failed. Check your email and password.")
        logger.info("Signed in user %s", response.user.id)
        return _context(response.user)

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            logger.error(f"Error signing out: {e}")
            raise ServiceError(str(e)) from e

    def get_current_user(self) -> Optional[SessionContext]:
        """The session's user, or None when nobody is signed in."""
        try:
            response = self.client.auth.get_user()
        except Exception as e:
            logger.error(f"Error fetching current user: {e}")
            raise ServiceError(str(e)) from e
        if response is None or response.user is None:
            return None
        return _context(response.user)

    # ============= Exams =============

    def insert_exam(self, ctx: SessionContext, record: ExamRecord) -> ExamResult:
        """
        Insert a shaped exam record owned by the session user.

        Args:
            ctx: Signed-in session
            record: Output of tracker.engine.shape_exam

        Returns:
            The stored row as an ExamResult
        """
        row = record.to_row(ctx.user_id)
        try:
            response = self.client.table(self.table).insert(row).execute()
        except Exception as e:
            logger.error(f"Error inserting exam {record.name!r}: {e}")
            raise ServiceError(str(e)) from e
        logger.info("Inserted %s exam %r (total_net=%.2f)", record.kind.value, record.name, record.total_net)
        data = response.data or []
        return ExamResult.from_row(data[0] if data else row)

    def list_exams(self, ctx: SessionContext) -> List[ExamResult]:
        """All exams of the session user, newest first."""
        try:
            response = (
                self.client.table(self.table)
                .select("*")
                .eq("user_id", ctx.user_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching exams: {e}")
            raise ServiceError(str(e)) from e
        rows = response.data if response.data else []
        logger.info("Fetched %d exams", len(rows))
        try:
            return [ExamResult.from_row(row) for row in rows]
        except (TypeError, ValueError) as e:
            logger.error(f"Error reading stored exam: {e}")
            raise ServiceError(f"Unreadable exam data: {e}") from e


def _context(user) -> SessionContext:
    return SessionContext(user_id=str(user.id), email=getattr(user, "email", None) or "")
