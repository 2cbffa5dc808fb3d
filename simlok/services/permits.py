"""
Read-only collaborators: permit lookup and actor resolution.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from ..models import Submission, User


@dataclass(frozen=True)
class Actor:
    """The verifier performing a scan, as resolved from the session"""
    id: str
    profile_name: Optional[str] = None
    session_display_name: Optional[str] = None
    address: Optional[str] = None
    role: Optional[str] = None


class PermitLookup:

    def __init__(self, db):
        self._db = db

    def get(self, permit_id):
        """Fetch a permit with its documents and workers, or None."""
        stmt = (
            select(Submission)
            .where(Submission.id == permit_id)
            .options(
                selectinload(Submission.support_documents),
                selectinload(Submission.workers),
            )
        )
        return self._db.session.execute(stmt).scalars().first()


class ActorResolver:

    def __init__(self, db):
        self._db = db

    def resolve(self, actor_id, session_display_name=None):
        """Resolve a session identity to an Actor; None when the user no longer exists."""
        if not actor_id:
            return None

        user = self._db.session.get(User, str(actor_id))
        if user is None:
            return None

        return Actor(
            id=user.id,
            profile_name=user.officer_name,
            session_display_name=session_display_name,
            address=user.address,
            role=user.role,
        )
