"""
QR verification API routes.
"""

import logging
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user

from ..auth.auth import roles_required
from ..core.app import get_user_rate_limit_key, get_verification_service, limiter
from ..core.error_handlers import error_response
from ..models import ApprovalStatus, UserRole
from ..services.errors import FailureKind
from ..services.scan_repository import ScanHistoryFilters
from ..utils.timezone import parse_iso_date
from ..utils.validation import (
    MAX_LOCATION_LENGTH, sanitize_search_query, sanitize_text,
    validate_json_request, validate_qr_string,
)

logger = logging.getLogger(__name__)

qr_bp = Blueprint('qr', __name__)

FAILURE_STATUS = {
    FailureKind.INVALID_QR: 400,
    FailureKind.OUT_OF_VALIDITY_WINDOW: 400,
    FailureKind.PERMIT_NOT_FOUND: 404,
    FailureKind.PERMIT_NOT_APPROVED: 400,
    FailureKind.INVALID_SESSION: 401,
    FailureKind.DUPLICATE_SCAN: 409,
    FailureKind.INTERNAL_ERROR: 500,
}


def _verify_rate_limit():
    return current_app.config['QR_VERIFY_RATE_LIMIT']


@qr_bp.route('/verify', methods=['POST'])
@roles_required(UserRole.VERIFIER, UserRole.SUPER_ADMIN)
@limiter.limit(_verify_rate_limit, key_func=get_user_rate_limit_key)
@validate_json_request()
def verify_qr():
    """Verify a scanned permit QR/barcode and record the scan"""
    data = request.get_json()
    qr_data = data.get('qr_data') or data.get('qrData')

    is_valid, message = validate_qr_string(qr_data)
    if not is_valid:
        return error_response(message, 400)

    scan_location = sanitize_text(data.get('scanLocation'), max_length=MAX_LOCATION_LENGTH) or None

    service = get_verification_service(current_app)
    outcome = service.verify(
        qr_data,
        current_user.id,
        scan_location=scan_location,
        session_display_name=current_user.officer_name,
    )

    if outcome.success:
        return jsonify(outcome.to_dict()), 200

    status = FAILURE_STATUS[outcome.kind]
    logger.info(f"Verification by {current_user.id} failed: {outcome.kind.value} ({status})")
    return jsonify(outcome.to_dict()), status


@qr_bp.route('/scans', methods=['GET'])
@roles_required(UserRole.VERIFIER, UserRole.SUPER_ADMIN, UserRole.APPROVER, UserRole.REVIEWER)
def scan_history():
    """
    Scan history with filters.

    Query Parameters:
        submission_id, search, status, dateFrom, dateTo (YYYY-MM-DD, inclusive),
        location, limit (max 100), offset
    """
    try:
        filters = _parse_history_filters(request.args)
    except ValueError as e:
        return error_response(str(e), 400)

    service = get_verification_service(current_app)
    return jsonify(service.get_scan_history(filters, current_user)), 200


def _parse_history_filters(args):
    max_limit = current_app.config['SCAN_HISTORY_MAX_LIMIT']
    default_limit = current_app.config['SCAN_HISTORY_DEFAULT_LIMIT']

    limit = args.get('limit', default_limit, type=int)
    offset = args.get('offset', 0, type=int)
    if limit is None or limit < 1:
        limit = default_limit
    limit = min(limit, max_limit)
    offset = max(offset or 0, 0)

    status = args.get('status') or None
    if status:
        status = ApprovalStatus.parse(status.upper()).value

    date_from = args.get('dateFrom') or None
    date_to = args.get('dateTo') or None
    if date_from:
        date_from = parse_iso_date(date_from)
    if date_to:
        date_to = parse_iso_date(date_to)

    return ScanHistoryFilters(
        submission_id=args.get('submission_id') or args.get('submissionId') or None,
        search=sanitize_search_query(args.get('search')) or None,
        status=status,
        date_from=date_from,
        date_to=date_to,
        location=sanitize_search_query(args.get('location')) or None,
        limit=limit,
        offset=offset,
    )
