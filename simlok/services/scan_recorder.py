"""
Scan recorder: the only writer of scan events.
"""

import logging

from ..utils.validation import MAX_LOCATION_LENGTH

logger = logging.getLogger(__name__)

UNKNOWN_SCANNER = 'Unknown'
UNKNOWN_LOCATION = 'Location not available'


class ScanRecorder:

    def __init__(self, repository):
        self._repository = repository

    def record(self, permit_id, actor, location=None, at=None):
        """
        Persist a scan of ``permit_id`` by ``actor``.

        ``at`` is only ever a value taken from the repository clock; when
        omitted the clock is read here. Scanner name and location are
        captured now and never re-derived.

        Raises:
            DuplicateScanViolation: the actor already scanned this permit today
        """
        scanned_at = at or self._repository.now()

        return self._repository.add(
            permit_id=permit_id,
            actor_id=actor.id,
            scanner_name=resolve_scanner_name(actor),
            scan_location=resolve_scan_location(location, actor),
            scanned_at=scanned_at,
        )


def resolve_scanner_name(actor):
    return actor.profile_name or actor.session_display_name or UNKNOWN_SCANNER


def resolve_scan_location(location, actor):
    # Markup is stripped at the request boundary
    location = (location or '').strip()[:MAX_LOCATION_LENGTH]
    return location or actor.address or UNKNOWN_LOCATION
