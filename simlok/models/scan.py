"""
Scan model recording on-site permit verifications.
"""

from sqlalchemy import event
from sqlalchemy.orm import object_session
from ..core.app import db
from .user import generate_id


class ImmutableScanError(Exception):
    """Raised when code tries to modify a stored scan event."""


class QrScan(db.Model):
    """One accepted verification of a permit by a verifier"""
    __tablename__ = 'qr_scan'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    submission_id = db.Column(db.String(36), db.ForeignKey('submission.id'), nullable=False)
    scanned_by = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False)
    scanned_at = db.Column(db.DateTime, nullable=False)  # naive UTC, assigned by the repository clock
    scan_day = db.Column(db.Date, nullable=False)  # civil date of scanned_at
    scanner_name = db.Column(db.String(120), nullable=False)
    scan_location = db.Column(db.Text, nullable=True)

    # Relationships
    submission = db.relationship('Submission', lazy='joined')

    __table_args__ = (
        # One scan per verifier per permit per civil day
        db.UniqueConstraint('submission_id', 'scanned_by', 'scan_day', name='uq_qr_scan_actor_day'),
        db.Index('idx_qr_scan_lookup', 'submission_id', 'scanned_by', 'scanned_at'),
        db.Index('idx_qr_scan_scanned_at', 'scanned_at'),
    )

    def __repr__(self):
        return f"<QrScan {self.id} {self.submission_id} by {self.scanned_by} at {self.scanned_at}>"


@event.listens_for(QrScan, 'before_update')
def reject_scan_update(mapper, connection, target):
    """Scan events are append-only."""
    session = object_session(target)
    if session is not None and not session.is_modified(target, include_collections=False):
        return
    raise ImmutableScanError(f"Scan {target.id} is immutable")
