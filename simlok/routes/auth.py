"""
Session login/logout endpoints.
"""

import logging
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from ..auth.auth import authenticate
from ..core.app import limiter
from ..core.error_handlers import error_response
from ..utils.validation import validate_json_request

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
@validate_json_request()
def login():
    data = request.get_json()
    success, message, user = authenticate(data.get('email'), data.get('password'))
    if not success:
        return error_response(message, 401)

    login_user(user)
    return jsonify({
        'success': True,
        'message': message,
        'user': {
            'id': user.id,
            'email': user.email,
            'role': user.role,
            'officer_name': user.officer_name,
        }
    }), 200


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logger.info(f"User {current_user.id} logged out")
    logout_user()
    return jsonify({'success': True, 'message': 'Logged out'}), 200
