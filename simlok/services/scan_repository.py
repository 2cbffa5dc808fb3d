"""
Persistence access for scan events.

The repository owns the clock used for ``scanned_at`` and translates a
unique-constraint violation on ``uq_qr_scan_actor_day`` into
DuplicateScanViolation so callers can tell it apart from any other write
failure.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from ..models import QrScan, Submission
from ..utils.timezone import civil_date, civil_day_bounds, get_utc_now, to_naive_utc
from ..utils.validation import escape_like
from .errors import DuplicateScanViolation

logger = logging.getLogger(__name__)

PG_UNIQUE_VIOLATION = '23505'
MYSQL_DUPLICATE_ENTRY = 1062


def is_unique_violation(error):
    """
    Whether an IntegrityError was raised by a unique constraint, judged
    from the DB-API exception underneath it.
    """
    orig = getattr(error, 'orig', None)
    if orig is None:
        return False

    # psycopg2
    if getattr(orig, 'pgcode', None) == PG_UNIQUE_VIOLATION:
        return True

    # sqlite3
    if 'UNIQUE constraint failed' in str(orig):
        return True

    # MySQL drivers put the error number first
    args = getattr(orig, 'args', ())
    return bool(args) and args[0] == MYSQL_DUPLICATE_ENTRY


@dataclass
class ScanHistoryFilters:
    submission_id: Optional[str] = None
    search: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[object] = None  # civil date, inclusive
    date_to: Optional[object] = None  # civil date, inclusive
    location: Optional[str] = None
    scanned_by: Optional[str] = None
    limit: int = 50
    offset: int = 0


class ScanRepository:
    """Reads and writes ``qr_scan`` rows through the Flask-SQLAlchemy session."""

    def __init__(self, db, tz, clock=None):
        self._db = db
        self._tz = tz
        self._clock = clock or get_utc_now

    @property
    def session(self):
        return self._db.session

    def now(self):
        """Current time from the persistence clock, timezone-aware."""
        return self._clock()

    def find_scan_in_window(self, permit_id, actor_id, start, end):
        """Most recent scan of a permit by an actor with start <= scanned_at < end (naive UTC)."""
        stmt = (
            select(QrScan)
            .where(
                QrScan.submission_id == permit_id,
                QrScan.scanned_by == actor_id,
                QrScan.scanned_at >= start,
                QrScan.scanned_at < end,
            )
            .order_by(QrScan.scanned_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def add(self, permit_id, actor_id, scanner_name, scan_location, scanned_at):
        """
        Insert and commit a scan event.

        Raises:
            DuplicateScanViolation: the (permit, actor, civil day) slot is taken
            IntegrityError / SQLAlchemyError: any other persistence failure
        """
        scan_day = civil_date(scanned_at, self._tz)
        scan = QrScan(
            submission_id=permit_id,
            scanned_by=actor_id,
            scanned_at=to_naive_utc(scanned_at),
            scan_day=scan_day,
            scanner_name=scanner_name,
            scan_location=scan_location,
        )
        self.session.add(scan)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if is_unique_violation(e):
                raise DuplicateScanViolation(permit_id, actor_id, scan_day) from e
            raise

        logger.info(f"Recorded scan {scan.id} of permit {permit_id} by {actor_id}")
        return scan

    def search(self, filters):
        """
        Scan history, newest first.

        Returns:
            (scans, total) where total ignores limit/offset
        """
        conditions = []

        if filters.scanned_by:
            conditions.append(QrScan.scanned_by == filters.scanned_by)

        if filters.submission_id:
            conditions.append(QrScan.submission_id == filters.submission_id)

        if filters.status:
            conditions.append(Submission.approval_status == filters.status)

        if filters.location:
            pattern = f"%{escape_like(filters.location)}%"
            conditions.append(QrScan.scan_location.ilike(pattern, escape='\\'))

        if filters.search:
            pattern = f"%{escape_like(filters.search)}%"
            conditions.append(or_(
                Submission.simlok_number.ilike(pattern, escape='\\'),
                Submission.vendor_name.ilike(pattern, escape='\\'),
                QrScan.scan_location.ilike(pattern, escape='\\'),
            ))

        if filters.date_from:
            start, _ = civil_day_bounds(filters.date_from, self._tz)
            conditions.append(QrScan.scanned_at >= start)

        if filters.date_to:
            _, end = civil_day_bounds(filters.date_to, self._tz)
            conditions.append(QrScan.scanned_at < end)

        base = select(QrScan).join(Submission, QrScan.submission_id == Submission.id).where(*conditions)

        total = self.session.execute(
            select(func.count()).select_from(base.subquery())
        ).scalar_one()

        scans = self.session.execute(
            base.order_by(QrScan.scanned_at.desc())
            .limit(filters.limit)
            .offset(filters.offset)
        ).scalars().unique().all()

        return scans, total
