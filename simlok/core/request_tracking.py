"""
Request ID Tracking Middleware

Tracks requests across the application with unique request IDs, enabling
correlation of verification attempts with their log lines:
- Health check endpoints skip logging (reduce noise)
- Verification and auth paths keep full logging (audit trail)
- Request ID headers always added (debugging support)
"""

import uuid
import time
import logging
from flask import request, g

logger = logging.getLogger(__name__)

# Paths that should NEVER be logged (high-frequency, low-value)
NO_LOG_PATHS = {
    '/health',
    '/favicon.ico',
}

# Paths that use MINIMAL logging (errors and slow requests only)
MINIMAL_LOG_PATHS_PREFIX = (
    '/api/qr/scans',
)


def generate_request_id():
    """Generate a unique request ID (UUID4) for tracking."""
    return str(uuid.uuid4())


def get_request_id():
    """
    Get the current request ID from Flask's request context.

    Returns:
        str: The current request ID, or None if not set
    """
    return getattr(g, 'request_id', None)


def _should_log_request(path):
    """Return 'none', 'minimal' or 'full' for the given request path."""
    if path in NO_LOG_PATHS:
        return 'none'
    if any(path.startswith(prefix) for prefix in MINIMAL_LOG_PATHS_PREFIX):
        return 'minimal'
    return 'full'


def setup_request_tracking(app):
    """
    Set up request ID tracking middleware for the Flask application.

    - Generates or extracts a unique request ID for each request
    - Stores it in Flask's request context (g.request_id)
    - Adds it to response headers for client tracking (even on errors)
    - Logs request completion with timing information
    """

    @app.before_request
    def track_request_start():
        # Honour a client supplied ID for distributed tracing
        request_id = request.headers.get('X-Request-ID') or generate_request_id()

        g.request_id = request_id
        g.request_start_time = time.time()
        g.log_level = _should_log_request(request.path)

        if g.log_level == 'full':
            logger.info(
                f"[{request_id}] Request started: {request.method} {request.path}",
                extra={
                    'request_id': request_id,
                    'method': request.method,
                    'path': request.path,
                    'remote_addr': request.remote_addr,
                }
            )

    @app.after_request
    def track_request_end(response):
        request_id = getattr(g, 'request_id', None)
        start_time = getattr(g, 'request_start_time', None)
        log_level = getattr(g, 'log_level', 'full')

        if request_id:
            response.headers['X-Request-ID'] = request_id

        if start_time is None:
            return response

        duration_ms = int((time.time() - start_time) * 1000)
        response.headers['X-Response-Time'] = f"{duration_ms}ms"

        if log_level == 'none':
            return response

        message = (
            f"[{request_id}] {request.method} {request.path} "
            f"- Status: {response.status_code} - Duration: {duration_ms}ms"
        )
        extra = {
            'request_id': request_id,
            'status_code': response.status_code,
            'duration_ms': duration_ms,
        }

        if response.status_code >= 500:
            logger.error(message, extra=extra)
        elif response.status_code >= 400:
            logger.warning(message, extra=extra)
        elif log_level == 'full':
            logger.info(message, extra=extra)

        # Slow requests are worth a warning even on minimal paths
        if duration_ms > 1000:
            logger.warning(f"[{request_id}] Slow request detected: {request.path} took {duration_ms}ms")

        return response

    @app.teardown_request
    def teardown_request_tracking(exception=None):
        if exception is None:
            return
        request_id = getattr(g, 'request_id', None)
        logger.error(
            f"[{request_id}] Request failed: {request.method} {request.path} "
            f"- Exception: {type(exception).__name__}",
            extra={'request_id': request_id, 'exception_type': type(exception).__name__}
        )

    logger.info("Request tracking middleware initialized")
