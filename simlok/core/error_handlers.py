"""
Error handling for the SIMLOK verification API.
Every error is rendered as JSON with the request ID for correlation.
"""

import time
import logging
from flask import jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .request_tracking import get_request_id
from ..utils.timezone import get_utc_now

logger = logging.getLogger(__name__)


def error_response(message, status_code, **extra):
    """Build the standard JSON error body."""
    payload = {
        'success': False,
        'message': message,
        'error_code': status_code,
        'request_id': get_request_id()
    }
    payload.update(extra)
    return jsonify(payload), status_code


def setup_error_handlers(app):
    """Setup JSON error handlers for the application with request ID tracking"""

    @app.errorhandler(400)
    def bad_request(error):
        description = getattr(error, 'description', None)
        return error_response(description or 'Invalid request format. Please check your request and try again.', 400)

    @app.errorhandler(401)
    def unauthorized(error):
        logger.warning(f"[{get_request_id()}] 401 Unauthorized: {request.path}")
        return error_response('Authentication required. Please log in to continue.', 401)

    @app.errorhandler(403)
    def forbidden(error):
        logger.warning(f"[{get_request_id()}] 403 Forbidden: {request.path}")
        return error_response('Access forbidden. You do not have permission to access this resource.', 403)

    @app.errorhandler(404)
    def not_found(error):
        logger.info(f"[{get_request_id()}] 404 Not Found: {request.path}")
        return error_response('Resource not found.', 404)

    @app.errorhandler(429)
    def ratelimit_handler(error):
        logger.warning(f"[{get_request_id()}] Rate limit exceeded: {request.path} - {error.description}")
        return error_response('Too many requests. Please slow down and try again later.', 429)

    @app.errorhandler(500)
    def internal_server_error(error):
        request_id = get_request_id()
        logger.error(f"[{request_id}] 500 Internal Server Error: {request.path} - {str(error)}", exc_info=True)
        _rollback_session()
        return error_response('An internal server error occurred. Please try again later.', 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        """Handle any unexpected errors"""
        if isinstance(error, HTTPException):
            return error_response(error.description or error.name, error.code)

        request_id = get_request_id()
        logger.error(f"[{request_id}] Unexpected error: {request.url} - {str(error)}", exc_info=True)
        _rollback_session()
        return error_response('An unexpected error occurred. Please try again later.', 500)


def _rollback_session():
    from .app import db
    try:
        db.session.rollback()
    except SQLAlchemyError as db_error:
        logger.debug(f"[{get_request_id()}] DB rollback error during exception handling: {str(db_error)}")


def setup_health_monitoring(app):
    """Setup health monitoring endpoints"""

    @app.route('/health')
    def health_check():
        """
        Health check endpoint.

        Query Parameters:
            check_db (bool): If 'true', performs database connectivity check

        Returns:
            200: All systems healthy
            503: Database unreachable
        """
        from .app import db

        check_db = request.args.get('check_db', 'false').lower() == 'true'

        response_data = {
            'status': 'healthy',
            'message': 'Application is running normally',
            'timestamp': get_utc_now().isoformat(),
            'civil_timezone': app.config['CIVIL_TIMEZONE'],
        }

        if check_db:
            try:
                start_time = time.time()
                result = db.session.execute(text("SELECT 1")).scalar()
                query_time_ms = (time.time() - start_time) * 1000
                response_data['database'] = {
                    'connected': result == 1,
                    'query_time_ms': round(query_time_ms, 2)
                }
            except SQLAlchemyError as e:
                logger.error(f"Database health check failed: {str(e)}", exc_info=True)
                db.session.rollback()
                response_data['status'] = 'unhealthy'
                response_data['message'] = 'Database connection failed'
                response_data['database'] = {'connected': False}
                return jsonify(response_data), 503

        return jsonify(response_data), 200
