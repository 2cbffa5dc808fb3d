"""
Permit (submission) models. The verification core reads these and never
writes them.
"""

from ..core.app import db
from ..utils.timezone import get_utc_now_naive
from .enums import ApprovalStatus, ReviewStatus
from .user import generate_id


class Submission(db.Model):
    """A work-location permit request and, once approved, the issued SIMLOK"""
    __tablename__ = 'submission'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    simlok_number = db.Column(db.String(100), nullable=True)
    simlok_date = db.Column(db.DateTime, nullable=True)
    vendor_name = db.Column(db.String(200), nullable=False)
    vendor_phone = db.Column(db.String(32), nullable=True)
    officer_name = db.Column(db.String(120), nullable=True)
    job_description = db.Column(db.Text, nullable=True)
    work_location = db.Column(db.Text, nullable=True)
    work_facilities = db.Column(db.Text, nullable=True)
    working_hours = db.Column(db.String(100), nullable=True)
    holiday_working_hours = db.Column(db.String(100), nullable=True)
    worker_names = db.Column(db.Text, nullable=True)  # newline separated legacy roster
    worker_count = db.Column(db.Integer, nullable=True)
    implementation = db.Column(db.Text, nullable=True)
    based_on = db.Column(db.Text, nullable=True)
    implementation_start_date = db.Column(db.DateTime, nullable=True)
    implementation_end_date = db.Column(db.DateTime, nullable=True)
    review_status = db.Column(db.String(32), nullable=False, default=ReviewStatus.PENDING_REVIEW.value)
    approval_status = db.Column(db.String(32), nullable=False, default=ApprovalStatus.PENDING_APPROVAL.value)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=get_utc_now_naive)

    # Relationships
    support_documents = db.relationship(
        'SupportDocument', backref='submission', lazy='select',
        order_by='SupportDocument.created_at'
    )
    workers = db.relationship(
        'Worker', backref='submission', lazy='select',
        order_by='Worker.created_at'
    )

    __table_args__ = (
        db.Index('idx_submission_simlok_number', 'simlok_number'),
        db.Index('idx_submission_approval_status', 'approval_status'),
    )

    @property
    def approval(self):
        """Approval status parsed into the enum; raises ValueError on unknown values."""
        return ApprovalStatus.parse(self.approval_status)

    @property
    def review(self):
        return ReviewStatus.parse(self.review_status)

    def __repr__(self):
        return f"<Submission {self.id} {self.simlok_number or '-'} ({self.approval_status})>"


class SupportDocument(db.Model):
    """Supporting document attached to a permit (SIMJA, SIKA, HSSE pass, ...)"""
    __tablename__ = 'support_document'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    submission_id = db.Column(db.String(36), db.ForeignKey('submission.id', ondelete='CASCADE'), nullable=False)
    document_type = db.Column(db.String(32), nullable=False)
    document_number = db.Column(db.String(100), nullable=True)
    document_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=get_utc_now_naive)

    __table_args__ = (
        db.Index('idx_support_document_submission', 'submission_id', 'document_type'),
    )

    def __repr__(self):
        return f"<SupportDocument {self.document_type} {self.document_number}>"


class Worker(db.Model):
    """Named worker on a permit roster"""
    __tablename__ = 'worker_list'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    submission_id = db.Column(db.String(36), db.ForeignKey('submission.id', ondelete='CASCADE'), nullable=False)
    worker_name = db.Column(db.String(200), nullable=False)
    worker_photo = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=get_utc_now_naive)

    __table_args__ = (
        db.Index('idx_worker_list_submission', 'submission_id'),
    )

    def __repr__(self):
        return f"<Worker {self.worker_name}>"
