"""
SubprocessorService keeps the register of processing carried out on behalf
of clients (article 30.2), for companies acting as processors.
"""

from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.database.models import SubprocessorRecord, User
from backend.app.services.audit_service import AuditService
from backend.app.utils.system_utils.exceptions import BusinessRuleError, ResourceNotFoundError

SUBPROCESSOR_FIELDS = (
    "client_name", "client_address", "client_siret", "client_representative", "client_email",
    "subprocessor_name", "subprocessor_address", "subprocessor_email",
    "processing_categories", "has_international_transfers", "transfer_details", "security_measures",
)


class SubprocessorService:

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def list_records(self, company_id: int) -> List[SubprocessorRecord]:
        return list(self.db.scalars(
            select(SubprocessorRecord)
            .where(SubprocessorRecord.company_id == company_id)
            .order_by(SubprocessorRecord.created_at.desc(), SubprocessorRecord.id.desc())
        ))

    def get_record(self, company_id: int, record_id: int) -> SubprocessorRecord:
        record = self.db.get(SubprocessorRecord, record_id)
        if record is None or record.company_id != company_id:
            raise ResourceNotFoundError("Registre de sous-traitance introuvable")
        return record

    def create_record(self, user: User, company_id: int, data: Dict[str, Any]) -> SubprocessorRecord:
        if not (data.get("client_name") or "").strip():
            raise BusinessRuleError("Le nom du client est obligatoire")
        record = SubprocessorRecord(company_id=company_id)
        for field in SUBPROCESSOR_FIELDS:
            if data.get(field) is not None:
                setattr(record, field, data[field])
        self.db.add(record)
        self.db.flush()
        self.audit.record(user.id, company_id, "create", "subprocessor_record", record.id)
        self.db.commit()
        return record

    def update_record(self, user: User, company_id: int, record_id: int, data: Dict[str, Any]) -> SubprocessorRecord:
        record = self.get_record(company_id, record_id)
        for field in SUBPROCESSOR_FIELDS:
            if field in data and data[field] is not None:
                setattr(record, field, data[field])
        self.audit.record(user.id, company_id, "update", "subprocessor_record", record.id)
        self.db.commit()
        return record

    def delete_record(self, user: User, company_id: int, record_id: int) -> None:
        record = self.get_record(company_id, record_id)
        self.db.delete(record)
        self.audit.record(user.id, company_id, "delete", "subprocessor_record", record_id)
        self.db.commit()
