"""
QR payload codec for SIMLOK permits.

Wire format::

    SL:<permit_id>:<valid_from|null>:<valid_until|null>:<signature>

Dates are YYYY-MM-DD. The signature is the first 32 hex characters of
sha256("<permit_id>|<valid_from|null>|<valid_until|null>|<salt>"), so the
validity window cannot be altered without invalidating the code.
"""

import enum
import hashlib
import hmac
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from ..utils.timezone import format_date, parse_iso_date
from ..utils.validation import validate_permit_id

logger = logging.getLogger(__name__)

QR_PREFIX = 'SL'
NULL_DATE = 'null'
SIGNATURE_LENGTH = 32
FIELD_COUNT = 5
MAX_RAW_LENGTH = 512

SIGNATURE_RE = re.compile(r'^[0-9a-f]{32}$')


class DecodeReason(enum.Enum):
    EMPTY = "EMPTY"
    MALFORMED = "MALFORMED"
    INVALID_PERMIT_ID = "INVALID_PERMIT_ID"
    INVALID_DATE = "INVALID_DATE"
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"


@dataclass(frozen=True)
class QrPayload:
    """A decoded, signature-verified QR payload"""
    permit_id: str
    issued_signature: str
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None


@dataclass(frozen=True)
class DecodeFailure:
    reason: DecodeReason
    message: str


class QrCodec:
    """Signs and verifies permit QR strings with a shared secret salt."""

    def __init__(self, salt: str):
        if not salt:
            raise ValueError("QR signing salt must not be empty")
        self._salt = salt

    def sign(self, permit_id: str, valid_from: Optional[date], valid_until: Optional[date]) -> str:
        """Signature over the permit id and validity window."""
        message = '|'.join((
            permit_id,
            format_date(valid_from) or NULL_DATE,
            format_date(valid_until) or NULL_DATE,
            self._salt,
        ))
        return hashlib.sha256(message.encode('utf-8')).hexdigest()[:SIGNATURE_LENGTH]

    def encode(self, permit_id: str, valid_from=None, valid_until=None) -> str:
        """
        Produce the QR string printed on an approved permit.

        Raises:
            ValueError: if the permit id is outside the allowed grammar
        """
        is_valid, message = validate_permit_id(permit_id)
        if not is_valid:
            raise ValueError(message)

        return ':'.join((
            QR_PREFIX,
            permit_id,
            format_date(valid_from) or NULL_DATE,
            format_date(valid_until) or NULL_DATE,
            self.sign(permit_id, valid_from, valid_until),
        ))

    def decode(self, raw) -> Union[QrPayload, DecodeFailure]:
        """
        Parse and verify an untrusted scanned string.

        Never raises: every malformed or forged input comes back as a
        DecodeFailure. The permit id grammar is checked before anything
        else touches the id.
        """
        if not isinstance(raw, str) or not raw.strip():
            return DecodeFailure(DecodeReason.EMPTY, "QR data is empty")

        raw = raw.strip()
        if len(raw) > MAX_RAW_LENGTH:
            return DecodeFailure(DecodeReason.MALFORMED, "QR data too long")

        parts = raw.split(':')
        if len(parts) != FIELD_COUNT or parts[0] != QR_PREFIX:
            return DecodeFailure(
                DecodeReason.MALFORMED,
                "Invalid QR format - please scan a valid SIMLOK QR code"
            )

        _, permit_id, raw_from, raw_until, signature = parts

        is_valid, message = validate_permit_id(permit_id)
        if not is_valid:
            logger.warning(f"Rejected QR with invalid permit id: {message}")
            return DecodeFailure(DecodeReason.INVALID_PERMIT_ID, message)

        try:
            valid_from = self._parse_date(raw_from)
            valid_until = self._parse_date(raw_until)
        except ValueError as e:
            return DecodeFailure(DecodeReason.INVALID_DATE, str(e))

        # Dates are re-rendered before signing, so only canonical forms verify
        expected = self.sign(permit_id, valid_from, valid_until)
        if not SIGNATURE_RE.fullmatch(signature) or not hmac.compare_digest(expected, signature):
            logger.warning(f"QR signature verification failed for permit {permit_id}")
            return DecodeFailure(DecodeReason.SIGNATURE_MISMATCH, "QR signature verification failed")

        return QrPayload(
            permit_id=permit_id,
            issued_signature=signature,
            valid_from=valid_from,
            valid_until=valid_until,
        )

    @staticmethod
    def _parse_date(value):
        if value == NULL_DATE:
            return None
        return parse_iso_date(value)
