"""
Shapes a verified permit and its new scan into the response the scanner UI
renders. Pure projection: nothing here validates or fails.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from ..models import DocumentType
from ..utils.timezone import to_civil_iso

SUCCESS_MESSAGE = 'QR code/barcode successfully verified'


@dataclass(frozen=True)
class VerificationResult:
    scan_id: str
    scanned_at: str
    scanned_by: str
    scan_location: str
    permit: Dict[str, Any] = field(default_factory=dict)
    message: str = SUCCESS_MESSAGE

    success = True

    def to_dict(self):
        return {
            'success': True,
            'message': self.message,
            'scan_id': self.scan_id,
            'scanned_at': self.scanned_at,
            'scanned_by': self.scanned_by,
            'scan_location': self.scan_location,
            'data': {'submission': self.permit},
        }


class ResultAssembler:

    def __init__(self, tz):
        self._tz = tz

    def assemble(self, permit, scan):
        return VerificationResult(
            scan_id=scan.id,
            scanned_at=to_civil_iso(scan.scanned_at, self._tz),
            scanned_by=scan.scanner_name,
            scan_location=scan.scan_location,
            permit=self.permit_summary(permit),
        )

    def permit_summary(self, permit):
        documents = _documents_by_type(permit.support_documents or [])
        simja = documents.get(DocumentType.SIMJA.value)
        sika = documents.get(DocumentType.SIKA.value)
        hsse = documents.get(DocumentType.HSSE_PASS.value)

        return {
            'id': permit.id,
            'simlok_number': permit.simlok_number,
            'simlok_date': to_civil_iso(permit.simlok_date, self._tz),

            'vendor_name': permit.vendor_name,
            'vendor_phone': permit.vendor_phone,
            'officer_name': permit.officer_name,

            'job_description': permit.job_description,
            'work_location': permit.work_location,

            'implementation_start_date': to_civil_iso(permit.implementation_start_date, self._tz),
            'implementation_end_date': to_civil_iso(permit.implementation_end_date, self._tz),
            'implementation': permit.implementation,

            'working_hours': permit.working_hours,
            'holiday_working_hours': permit.holiday_working_hours,
            'work_facilities': permit.work_facilities,
            'based_on': permit.based_on,

            'simja_number': simja.document_number if simja else None,
            'simja_date': to_civil_iso(simja.document_date, self._tz) if simja else None,
            'sika_number': sika.document_number if sika else None,
            'sika_date': to_civil_iso(sika.document_date, self._tz) if sika else None,
            'hsse_pass_number': hsse.document_number if hsse else None,
            'hsse_pass_date': to_civil_iso(hsse.document_date, self._tz) if hsse else None,

            'worker_count': permit.worker_count,
            'workers': worker_roster(permit),

            'approval_status': permit.approval_status,
            'review_status': permit.review_status,
        }


def _documents_by_type(documents):
    # First document of each type wins
    by_type = {}
    for document in documents:
        by_type.setdefault(document.document_type, document)
    return by_type


def worker_roster(permit):
    """Workers from the worker list, else the newline separated legacy names."""
    if permit.workers:
        return [
            {'id': worker.id, 'name': worker.worker_name, 'photo': worker.worker_photo}
            for worker in permit.workers
        ]

    names = (permit.worker_names or '').split('\n')
    return [{'id': None, 'name': name.strip(), 'photo': None} for name in names if name.strip()]
