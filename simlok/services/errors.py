"""
Typed verification failures.

``QRVerificationService.verify`` returns one of these instead of raising;
the HTTP layer maps ``FailureKind`` to a status code.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


class FailureKind(enum.Enum):
    """Verification failures, in the order the pipeline checks for them"""
    INVALID_QR = "INVALID_QR"
    OUT_OF_VALIDITY_WINDOW = "OUT_OF_VALIDITY_WINDOW"
    PERMIT_NOT_FOUND = "PERMIT_NOT_FOUND"
    PERMIT_NOT_APPROVED = "PERMIT_NOT_APPROVED"
    INVALID_SESSION = "INVALID_SESSION"
    DUPLICATE_SCAN = "DUPLICATE_SCAN"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ValidityReason(enum.Enum):
    NOT_YET_VALID = "NOT_YET_VALID"
    EXPIRED = "EXPIRED"
    INVALID_WINDOW = "INVALID_WINDOW"


@dataclass(frozen=True)
class ValidityViolation:
    """Why a payload's window excludes today; boundary is None for INVALID_WINDOW"""
    reason: ValidityReason
    boundary: Optional[date] = None

    def to_dict(self):
        return {
            'reason': self.reason.value,
            'boundary': self.boundary.isoformat() if self.boundary else None,
        }


@dataclass(frozen=True)
class PreviousScan:
    """The scan that already claimed today's slot for this actor and permit"""
    scan_id: Optional[str]
    scanned_at: Optional[datetime]
    scanner_name: Optional[str]
    scanned_at_display: Optional[str] = None

    def to_dict(self):
        return {
            'scan_id': self.scan_id,
            'scanned_at': self.scanned_at_display,
            'scanner_name': self.scanner_name,
        }


@dataclass(frozen=True)
class VerificationFailure:
    kind: FailureKind
    message: str
    validity: Optional[ValidityViolation] = None
    previous_scan: Optional[PreviousScan] = None

    success = False

    def to_dict(self):
        data = {
            'success': False,
            'error': self.kind.value,
            'message': self.message,
        }
        if self.validity is not None:
            data['validity'] = self.validity.to_dict()
        if self.previous_scan is not None:
            data['previous_scan'] = self.previous_scan.to_dict()
        return data


class DuplicateScanViolation(Exception):
    """
    The database refused a scan insert because the
    (submission_id, scanned_by, scan_day) slot is already taken.
    """

    def __init__(self, permit_id, actor_id, scan_day):
        super().__init__(f"Scan slot taken for permit {permit_id} by {actor_id} on {scan_day}")
        self.permit_id = permit_id
        self.actor_id = actor_id
        self.scan_day = scan_day
