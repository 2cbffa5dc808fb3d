"""
Data validation utilities for API requests.
"""

import html
import re
from functools import wraps
import bleach
from flask import request

PERMIT_ID_RE = re.compile(r'^[a-zA-Z0-9_-]+$')

MAX_PERMIT_ID_LENGTH = 128
MAX_QR_LENGTH = 512
MAX_SEARCH_LENGTH = 100
MAX_LOCATION_LENGTH = 255


def validate_permit_id(permit_id):
    """Validate permit identifier format"""
    if not permit_id or not isinstance(permit_id, str):
        return False, "Permit ID is required"

    if len(permit_id) > MAX_PERMIT_ID_LENGTH:
        return False, "Permit ID too long"

    # Allow alphanumeric characters, hyphens, and underscores
    if not PERMIT_ID_RE.fullmatch(permit_id):
        return False, "Permit ID contains invalid characters"

    return True, "Valid"


def validate_qr_string(qr_data):
    """Validate the raw scanned string before decoding"""
    if not qr_data or not isinstance(qr_data, str):
        return False, "QR data is required"

    if len(qr_data) > MAX_QR_LENGTH:
        return False, "QR data too long"

    return True, "Valid"


def sanitize_text(text, max_length=None):
    """Strip markup from free text input, returning plain text"""
    if not text:
        return ''

    # bleach escapes what it keeps; stored values are plain text
    text = html.unescape(bleach.clean(str(text), tags=[], attributes={}, strip=True)).strip()

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_search_query(query):
    """
    Sanitize a scan history search term.

    Args:
        query: Raw search query

    Returns:
        Sanitized search query, '' when nothing usable remains
    """
    if not query:
        return ''

    return sanitize_text(query.strip()[:MAX_SEARCH_LENGTH])


def escape_like(term):
    """Escape LIKE wildcards so the term matches literally (escape char '\\')."""
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def validate_json_request():
    """Decorator to validate JSON request format"""
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            from ..core.error_handlers import error_response

            if not request.is_json:
                return error_response('Request must be JSON', 400)

            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                return error_response('Invalid JSON data', 400)

            return f(*args, **kwargs)
        return wrapper
    return decorator
