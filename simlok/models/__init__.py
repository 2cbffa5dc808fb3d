"""
Database models for the SIMLOK verification service.
"""

from .enums import UserRole, ApprovalStatus, ReviewStatus, DocumentType
from .user import User
from .submission import Submission, SupportDocument, Worker
from .scan import QrScan, ImmutableScanError

__all__ = [
    'User', 'UserRole', 'ApprovalStatus', 'ReviewStatus', 'DocumentType',
    'Submission', 'SupportDocument', 'Worker', 'QrScan', 'ImmutableScanError',
]
