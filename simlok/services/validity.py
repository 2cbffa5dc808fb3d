"""
Temporal validity of a permit QR payload.

A code may be scanned on any civil day inside [valid_from, valid_until],
both ends inclusive and both optional.
"""

from .errors import ValidityReason, ValidityViolation
from ..utils.timezone import civil_date, get_civil_timezone

DEFAULT_CIVIL_TIMEZONE = "Asia/Jakarta"


def check_validity(payload, today):
    """
    Check a decoded payload against a civil date.

    Args:
        payload: QrPayload
        today: datetime.date in the issuing organization's calendar

    Returns:
        None if scannable today, otherwise a ValidityViolation
    """
    valid_from, valid_until = payload.valid_from, payload.valid_until

    if valid_from and valid_until and valid_from > valid_until:
        return ValidityViolation(ValidityReason.INVALID_WINDOW)

    if valid_from and today < valid_from:
        return ValidityViolation(ValidityReason.NOT_YET_VALID, valid_from)

    if valid_until and today > valid_until:
        return ValidityViolation(ValidityReason.EXPIRED, valid_until)

    return None


def is_valid_now(payload, now_provider, tz=None):
    """True when the civil date of ``now_provider()`` falls inside the payload's window."""
    tz = tz or get_civil_timezone(DEFAULT_CIVIL_TIMEZONE)
    return check_validity(payload, civil_date(now_provider(), tz)) is None


def describe_violation(violation):
    """Human readable message for an out-of-window scan."""
    if violation.reason is ValidityReason.NOT_YET_VALID:
        return f"Permit is not valid yet. Implementation starts on {violation.boundary.isoformat()}"
    if violation.reason is ValidityReason.EXPIRED:
        return f"Permit has expired. Implementation ended on {violation.boundary.isoformat()}"
    return "Permit validity window is invalid"
