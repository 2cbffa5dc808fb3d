"""
Duplicate-scan guard.

A verifier may record at most one scan of a given permit per civil day.
Different verifiers may scan the same permit on the same day.

The guard checks for an existing scan first and then inserts. Two requests
can both pass the check; the unique constraint on
(submission_id, scanned_by, scan_day) lets only one insert through, and the
loser re-reads the winner so it can report it like any other duplicate.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..utils.timezone import civil_date, civil_day_bounds, to_civil_iso
from .errors import DuplicateScanViolation, PreviousScan

logger = logging.getLogger(__name__)

# Inserts attempted per call; the second only runs if the conflicting row vanished
MAX_INSERT_ATTEMPTS = 2


@dataclass(frozen=True)
class GuardDecision:
    scan: Optional[object] = None
    previous_scan: Optional[PreviousScan] = None

    @property
    def accepted(self):
        return self.scan is not None


class DuplicateScanGuard:

    def __init__(self, repository, recorder, tz):
        self._repository = repository
        self._recorder = recorder
        self._tz = tz

    def check_and_record(self, permit_id, actor, location=None, now=None):
        """
        Accept and record the scan, or report the scan that already holds
        today's slot.

        Returns:
            GuardDecision with either ``scan`` or ``previous_scan`` set
        """
        now = now or self._repository.now()
        start, end = civil_day_bounds(civil_date(now, self._tz), self._tz)

        existing = self._repository.find_scan_in_window(permit_id, actor.id, start, end)
        if existing is not None:
            logger.warning(
                f"Duplicate scan of permit {permit_id} by {actor.id}; "
                f"already scanned at {existing.scanned_at}"
            )
            return GuardDecision(previous_scan=self._previous(existing))

        for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
            try:
                scan = self._recorder.record(permit_id, actor, location, at=now)
                return GuardDecision(scan=scan)
            except DuplicateScanViolation:
                winner = self._repository.find_scan_in_window(permit_id, actor.id, start, end)
                if winner is not None:
                    logger.warning(
                        f"Concurrent scan of permit {permit_id} by {actor.id} lost the race "
                        f"to scan {winner.id}"
                    )
                    return GuardDecision(previous_scan=self._previous(winner))
                logger.warning(
                    f"Scan slot for permit {permit_id} by {actor.id} was taken but the "
                    f"conflicting scan is not visible (attempt {attempt}/{MAX_INSERT_ATTEMPTS})"
                )

        return GuardDecision(previous_scan=PreviousScan(scan_id=None, scanned_at=None, scanner_name=None))

    def _previous(self, scan):
        return PreviousScan(
            scan_id=scan.id,
            scanned_at=scan.scanned_at,
            scanner_name=scan.scanner_name,
            scanned_at_display=to_civil_iso(scan.scanned_at, self._tz),
        )
