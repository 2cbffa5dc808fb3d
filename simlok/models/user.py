"""
User model for authentication and actor resolution.
"""

import uuid
import logging
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from ..core.app import db
from ..utils.timezone import get_utc_now_naive
from .enums import UserRole, VERIFYING_ROLES

logger = logging.getLogger(__name__)


def generate_id():
    return uuid.uuid4().hex


class User(UserMixin, db.Model):
    """Application user; verifiers are the actors recorded on scans"""
    __tablename__ = 'user'

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=UserRole.VENDOR.value)
    officer_name = db.Column(db.String(120), nullable=True)
    vendor_name = db.Column(db.String(200), nullable=True)
    address = db.Column(db.Text, nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime, default=get_utc_now_naive)

    def set_password(self, password):
        """Set user password hash"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check password against stored hash"""
        if not self.password_hash:
            return False

        try:
            return check_password_hash(self.password_hash, password)
        except ValueError as e:
            logger.error(f"Password check error for user {self.id}: {str(e)}")
            return False

    @property
    def user_role(self):
        return UserRole.parse(self.role)

    def can_verify(self):
        """Check if user may verify permits on site"""
        try:
            return self.user_role in VERIFYING_ROLES
        except ValueError:
            logger.warning(f"User {self.id} has unrecognized role {self.role!r}")
            return False

    def is_super_admin(self):
        return self.role == UserRole.SUPER_ADMIN.value

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
