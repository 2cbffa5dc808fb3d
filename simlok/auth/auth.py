"""
Authentication helpers: credential checks and role-based access decorators.
"""

import logging
from functools import wraps
from flask import abort
from flask_login import current_user
from sqlalchemy import select

from ..core.app import db
from ..models import User, UserRole

logger = logging.getLogger(__name__)


def authenticate(email, password):
    """
    Check credentials.
    Returns (success, message, user)
    """
    if not email or not password:
        return False, "Email and password are required", None

    email = email.strip().lower()
    user = db.session.execute(select(User).where(User.email == email)).scalars().first()

    if user is None or not user.check_password(password):
        logger.warning(f"Failed login attempt for {email}")
        return False, "Invalid email or password", None

    logger.info(f"User {email} logged in successfully")
    return True, "Login successful", user


def roles_required(*roles):
    """
    Restrict a view to logged-in users holding one of ``roles``.
    Anonymous users get 401, other roles 403.
    """
    allowed = {role.value if isinstance(role, UserRole) else role for role in roles}

    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)
            if current_user.role not in allowed:
                logger.warning(
                    f"User {current_user.id} with role {current_user.role} denied access to {f.__name__}"
                )
                abort(403)
            return f(*args, **kwargs)
        return wrapper
    return decorator
