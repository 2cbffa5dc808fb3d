"""
Closed status and role enumerations.

Values are stored as plain strings; ``parse`` converts them back at the
storage boundary and refuses anything it does not recognize.
"""

import enum


class _ParsableEnum(enum.Enum):

    @classmethod
    def parse(cls, raw):
        """
        Convert a stored string into the enum.

        Raises:
            ValueError: for unknown values, never a silent default
        """
        if isinstance(raw, cls):
            return raw
        try:
            return cls(raw)
        except ValueError:
            raise ValueError(f"Unrecognized {cls.__name__} value: {raw!r}") from None


class UserRole(_ParsableEnum):
    """User role enumeration"""
    VENDOR = "VENDOR"
    REVIEWER = "REVIEWER"
    APPROVER = "APPROVER"
    VERIFIER = "VERIFIER"
    SUPER_ADMIN = "SUPER_ADMIN"
    VISITOR = "VISITOR"


class ApprovalStatus(_ParsableEnum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ReviewStatus(_ParsableEnum):
    PENDING_REVIEW = "PENDING_REVIEW"
    MEETS_REQUIREMENTS = "MEETS_REQUIREMENTS"
    NOT_MEETS_REQUIREMENTS = "NOT_MEETS_REQUIREMENTS"


class DocumentType(_ParsableEnum):
    """Supporting document tags shown on a verified permit"""
    SIMJA = "SIMJA"
    SIKA = "SIKA"
    HSSE_PASS = "HSSE_PASS"


# Roles allowed to verify permits on site
VERIFYING_ROLES = frozenset({UserRole.VERIFIER, UserRole.SUPER_ADMIN})
