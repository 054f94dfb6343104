"""Session service for persisting practice sessions."""
import logging
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from rehearsal.models import PracticeSession, utc_now


logger = logging.getLogger(__name__)


class SessionService:
    """Get/insert/update operations on the practice session table."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create(self, session: PracticeSession) -> PracticeSession:
        """Insert a new session row."""
        with Session(self.engine) as db:
            db.add(session)
            db.commit()
            db.refresh(session)
            return session

    def get_by_id(self, session_id: str) -> Optional[PracticeSession]:
        """Get a session by ID."""
        with Session(self.engine) as db:
            return db.get(PracticeSession, session_id)

    def list_for_user(
        self,
        user_id: str,
        skip: int = 0,
        limit: int = 10,
    ) -> list[PracticeSession]:
        """List a user's sessions, newest first."""
        with Session(self.engine) as db:
            statement = (
                select(PracticeSession)
                .where(PracticeSession.user_id == user_id)
                .order_by(PracticeSession.created_at.desc())
                .offset(skip)
                .limit(limit)
            )
            return list(db.exec(statement).all())

    def count_for_user(self, user_id: str) -> int:
        """Count a user's sessions."""
        with Session(self.engine) as db:
            statement = (
                select(func.count())
                .select_from(PracticeSession)
                .where(PracticeSession.user_id == user_id)
            )
            return db.exec(statement).one()

    def update(self, session_id: str, data: dict[str, Any]) -> Optional[PracticeSession]:
        """
        Update a session with the provided fields only.

        Keys the table does not have are dropped and logged instead of
        failing the whole write.
        """
        columns = PracticeSession.model_fields
        unknown = [key for key in data if key not in columns]
        if unknown:
            logger.warning("Ignoring unknown session fields on update: %s", ", ".join(sorted(unknown)))

        with Session(self.engine) as db:
            session = db.get(PracticeSession, session_id)
            if not session:
                return None

            for key, value in data.items():
                if key in columns:
                    setattr(session, key, value)

            session.updated_at = utc_now()
            db.add(session)
            db.commit()
            db.refresh(session)
            return session
