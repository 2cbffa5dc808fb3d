"""
QR permit verification service.

Pipeline: decode -> validity window -> permit lookup -> approval gate ->
actor resolution -> duplicate guard / scan recorder -> result assembly.
Every stage reports a typed VerificationFailure; nothing is raised across
``verify``.
"""

import logging
from dataclasses import replace
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from ..models import ApprovalStatus, UserRole
from ..utils.timezone import civil_date, get_civil_timezone, to_civil_iso
from .errors import FailureKind, VerificationFailure
from .permits import ActorResolver, PermitLookup
from .qr_codec import DecodeFailure, QrCodec
from .result_assembler import ResultAssembler
from .scan_guard import DuplicateScanGuard
from .scan_recorder import ScanRecorder
from .scan_repository import ScanRepository
from .validity import check_validity, describe_violation

logger = logging.getLogger(__name__)


class QRVerificationService:

    def __init__(self, db, codec, repository, permits, actors, tz):
        self._db = db
        self._codec = codec
        self._repository = repository
        self._permits = permits
        self._actors = actors
        self._tz = tz
        self._guard = DuplicateScanGuard(repository, ScanRecorder(repository), tz)
        self._assembler = ResultAssembler(tz)

    @property
    def codec(self):
        return self._codec

    @property
    def repository(self):
        return self._repository

    def verify(self, qr_string, actor_id, scan_location=None, session_display_name=None):
        """
        Verify a scanned permit code on behalf of ``actor_id``.

        Returns:
            VerificationResult on success, otherwise VerificationFailure
        """
        decoded = self._codec.decode(qr_string)
        if isinstance(decoded, DecodeFailure):
            logger.info(f"Rejected QR ({decoded.reason.value}): {decoded.message}")
            return VerificationFailure(FailureKind.INVALID_QR, decoded.message)

        try:
            return self._verify_payload(decoded, actor_id, scan_location, session_display_name)
        except SQLAlchemyError:
            self._db.session.rollback()
            logger.exception(f"Database error while verifying permit {decoded.permit_id}")
            return VerificationFailure(
                FailureKind.INTERNAL_ERROR,
                'An internal error occurred while verifying the permit. Please try again.'
            )

    def _verify_payload(self, payload, actor_id, scan_location, session_display_name):
        now = self._repository.now()
        violation = check_validity(payload, civil_date(now, self._tz))

        permit = self._permits.get(payload.permit_id)

        # A permit that is not approved is never accepted, whatever its window says
        if permit is not None and not self._is_approved(permit):
            return VerificationFailure(
                FailureKind.PERMIT_NOT_APPROVED,
                f"Permit has not been approved (status: {permit.approval_status})"
            )

        if violation is not None:
            return VerificationFailure(
                FailureKind.OUT_OF_VALIDITY_WINDOW,
                describe_violation(violation),
                validity=violation,
            )

        if permit is None:
            return VerificationFailure(FailureKind.PERMIT_NOT_FOUND, 'Permit not found')

        actor = self._actors.resolve(actor_id, session_display_name)
        if actor is None:
            logger.warning(f"Verification attempted by unknown actor {actor_id}")
            return VerificationFailure(
                FailureKind.INVALID_SESSION,
                'Session is no longer valid. Please log in again.'
            )

        decision = self._guard.check_and_record(permit.id, actor, scan_location, now)
        if not decision.accepted:
            previous = decision.previous_scan
            when = previous.scanned_at_display or 'earlier today'
            return VerificationFailure(
                FailureKind.DUPLICATE_SCAN,
                f"You already scanned this permit today at {when}. "
                f"A verifier can scan the same permit only once per day.",
                previous_scan=previous,
            )

        logger.info(f"Permit {permit.id} verified by {actor.id} (scan {decision.scan.id})")
        return self._assembler.assemble(permit, decision.scan)

    @staticmethod
    def _is_approved(permit):
        try:
            return permit.approval is ApprovalStatus.APPROVED
        except ValueError:
            logger.error(f"Permit {permit.id} has unrecognized approval status {permit.approval_status!r}")
            return False

    def issue_qr(self, permit):
        """Signed QR string for an approved permit."""
        if not self._is_approved(permit):
            raise ValueError(f"Permit {permit.id} is not approved")
        return self._codec.encode(
            permit.id,
            self._window_day(permit.implementation_start_date),
            self._window_day(permit.implementation_end_date),
        )

    def _window_day(self, value):
        # Stored window timestamps are naive UTC; the QR carries civil dates
        if isinstance(value, datetime):
            return civil_date(value, self._tz)
        return value

    def get_scan_history(self, filters, viewer):
        """
        Paginated scan history.

        Verifiers only ever see their own scans; other roles see everything
        matching the filters.
        """
        if viewer.role == UserRole.VERIFIER.value:
            filters = replace(filters, scanned_by=viewer.id)

        scans, total = self._repository.search(filters)
        return {
            'scans': [self.scan_to_dict(scan) for scan in scans],
            'pagination': {
                'total': total,
                'limit': filters.limit,
                'offset': filters.offset,
                'hasMore': filters.offset + len(scans) < total,
            },
        }

    def scan_to_dict(self, scan):
        permit = scan.submission
        return {
            'id': scan.id,
            'submission_id': scan.submission_id,
            'scanned_by': scan.scanned_by,
            'scanner_name': scan.scanner_name,
            'scan_location': scan.scan_location,
            'scanned_at': to_civil_iso(scan.scanned_at, self._tz),
            'submission': {
                'id': permit.id,
                'simlok_number': permit.simlok_number,
                'vendor_name': permit.vendor_name,
                'job_description': permit.job_description,
                'work_location': permit.work_location,
                'approval_status': permit.approval_status,
                'review_status': permit.review_status,
            } if permit is not None else None,
        }


def build_verification_service(config, clock=None):
    """
    Construct the service and its collaborators from app config. Built once
    per process in the app factory.
    """
    from ..core.app import db

    tz = get_civil_timezone(config['CIVIL_TIMEZONE'])
    return QRVerificationService(
        db=db,
        codec=QrCodec(config['QR_SECURITY_SALT']),
        repository=ScanRepository(db, tz, clock=clock),
        permits=PermitLookup(db),
        actors=ActorResolver(db),
        tz=tz,
    )
