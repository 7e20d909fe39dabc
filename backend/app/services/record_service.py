"""
RecordService maintains the register of processing activities (article 30).

Besides plain CRUD it can draft a record with the LLM, decide whether a
DPIA is required from the nine CNIL criteria, ask the LLM for a second
opinion on that question and export the register as CSV.
"""

import csv
import io
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import DPIA_CRITERIA, DPIA_REQUIRED_THRESHOLD, RECORD_TYPES
from backend.app.database.models import Company, DpiaAssessment, DpiaEvaluation, ProcessingRecord, User
from backend.app.services.audit_service import AuditService
from backend.app.services.llm_service import LlmFallbackService
from backend.app.utils.helpers.text_utils import TextUtils
from backend.app.utils.logging.logger import log_info
from backend.app.utils.system_utils.exceptions import BusinessRuleError, ConflictError, ResourceNotFoundError

RECORD_FIELDS = (
    "name", "purpose", "legal_basis", "data_categories", "recipients", "retention", "security_measures",
    "transfers_outside_eu", "type", "joint_controller_info", "dpia_required", "dpia_justification",
    "data_controller_name", "data_controller_address", "data_controller_phone", "data_controller_email",
    "has_dpo", "dpo_name", "dpo_phone", "dpo_email",
) + tuple(DPIA_CRITERIA)

# Column order of the CSV export: (attribute, header).
CSV_COLUMNS = [
    ("id", "ID"),
    ("name", "Nom du traitement"),
    ("purpose", "Finalité"),
    ("legal_basis", "Base légale"),
    ("data_categories", "Catégories de données"),
    ("recipients", "Destinataires"),
    ("retention", "Durée de conservation"),
    ("security_measures", "Mesures de sécurité"),
    ("transfers_outside_eu", "Transferts hors UE"),
    ("type", "Type"),
    ("dpia_required", "AIPD requise"),
    ("created_at", "Date de création"),
]


class RecordService:
    """Processing records of a company."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def list_records(self, company_id: int) -> List[ProcessingRecord]:
        return list(self.db.scalars(
            select(ProcessingRecord)
            .where(ProcessingRecord.company_id == company_id)
            .order_by(ProcessingRecord.created_at.desc(), ProcessingRecord.id.desc())
        ))

    def get_record(self, company_id: int, record_id: int) -> ProcessingRecord:
        record = self.db.get(ProcessingRecord, record_id)
        if record is None or record.company_id != company_id:
            raise ResourceNotFoundError("Traitement introuvable")
        return record

    @staticmethod
    def _apply(record: ProcessingRecord, data: Dict[str, Any]) -> None:
        if data.get("type") is not None and data["type"] not in RECORD_TYPES:
            raise BusinessRuleError(f"Type de traitement invalide: {data['type']}")
        for field in RECORD_FIELDS:
            if field in data and data[field] is not None:
                setattr(record, field, data[field])

    def create_record(self, user: User, company_id: int, data: Dict[str, Any]) -> ProcessingRecord:
        if not (data.get("name") or "").strip() or not (data.get("purpose") or "").strip():
            raise BusinessRuleError("Le nom et la finalité du traitement sont obligatoires")
        record = ProcessingRecord(company_id=company_id, type="controller")
        self._apply(record, data)
        self.db.add(record)
        self.db.flush()
        self.audit.record(user.id, company_id, "create", "processing_record", record.id)
        self.db.commit()
        return record

    def update_record(self, user: User, company_id: int, record_id: int, data: Dict[str, Any]) -> ProcessingRecord:
        record = self.get_record(company_id, record_id)
        self._apply(record, data)
        self.audit.record(user.id, company_id, "update", "processing_record", record.id, {"fields": sorted(data)})
        self.db.commit()
        return record

    def delete_record(self, user: User, company_id: int, record_id: int) -> None:
        """
        Raises:
            ConflictError: If a DPIA assessment is attached to the record.
        """
        record = self.get_record(company_id, record_id)
        referenced = self.db.scalar(
            select(DpiaAssessment.id).where(DpiaAssessment.processing_record_id == record.id).limit(1)
        )
        if referenced is not None:
            raise ConflictError("Ce traitement est utilisé par une AIPD et ne peut pas être supprimé")
        for evaluation in self.db.scalars(select(DpiaEvaluation).where(DpiaEvaluation.record_id == record.id)):
            self.db.delete(evaluation)
        self.db.delete(record)
        self.audit.record(user.id, company_id, "delete", "processing_record", record_id)
        self.db.commit()

    async def generate_record(self, user: User, company: Company, processing_type: str, description: str) -> ProcessingRecord:
        """Draft a record with the LLM and store it."""
        if processing_type not in RECORD_TYPES:
            raise BusinessRuleError(f"Type de traitement invalide: {processing_type}")
        generated = await LlmFallbackService(self.db).generate_processing_record(company, processing_type, description)
        if not generated["name"]:
            generated["name"] = f"Traitement {processing_type}"
        if not generated["purpose"]:
            generated["purpose"] = description
        record = ProcessingRecord(company_id=company.id, type=processing_type)
        for field, value in generated.items():
            setattr(record, field, value)
        self.db.add(record)
        self.db.flush()
        self.audit.record(user.id, company.id, "generate", "processing_record", record.id)
        self.db.commit()
        log_info(f"[RECORDS] Record {record.id} generated for company {company.id}")
        return record

    @staticmethod
    def evaluate_dpia_criteria(record: ProcessingRecord) -> Dict[str, Any]:
        """
        Decide from the nine CNIL criteria whether a DPIA is required.

        Two criteria or more make it mandatory, a single one makes it
        recommended.
        """
        criteria = [label for field, label in DPIA_CRITERIA.items() if getattr(record, field)]
        count = len(criteria)
        if count >= DPIA_REQUIRED_THRESHOLD:
            justification = (
                f"AIPD obligatoire: {count} critères CNIL remplis ({', '.join(criteria)})."
            )
            risk_level = "elevé"
        elif count == 1:
            justification = (
                f"AIPD recommandée mais non obligatoire: un seul critère CNIL rempli ({criteria[0]})."
            )
            risk_level = "moyen"
        else:
            justification = "AIPD non requise: aucun critère CNIL n'est rempli."
            risk_level = "faible"
        return {
            "dpia_required": count >= DPIA_REQUIRED_THRESHOLD,
            "criteria_count": count,
            "criteria": criteria,
            "justification": justification,
            "risk_level": risk_level,
        }

    def dpia_precheck(self, user: User, company_id: int, record_id: int) -> Dict[str, Any]:
        record = self.get_record(company_id, record_id)
        result = self.evaluate_dpia_criteria(record)
        record.dpia_required = result["dpia_required"]
        record.dpia_justification = result["justification"]
        self.audit.record(user.id, company_id, "dpia_precheck", "processing_record", record.id,
                          {"criteria_count": result["criteria_count"]})
        self.db.commit()
        return result

    async def analyze_dpia(self, user: User, company_id: int, record_id: int) -> Dict[str, Any]:
        record = self.get_record(company_id, record_id)
        result = await LlmFallbackService(self.db).assess_dpia_requirement(record)
        record.dpia_required = result["dpia_required"]
        record.dpia_justification = result["justification"]
        self.audit.record(user.id, company_id, "analyze_dpia", "processing_record", record.id)
        self.db.commit()
        return {
            "dpia_required": result["dpia_required"],
            "justification": result["justification"],
            "risk_level": result["risk_level"] or "moyen",
        }

    @staticmethod
    def _csv_value(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "Oui" if value else "Non"
        if isinstance(value, list):
            return TextUtils.join_values(value)
        if hasattr(value, "isoformat"):
            return value.isoformat()
        return str(value)

    def export_csv(self, company_id: int) -> str:
        """
        Export the register as CSV.

        Returns:
            UTF-8 text starting with a BOM, ';' separated, so that spreadsheet
            software opens it with the right encoding.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, delimiter=";")
        writer.writerow([header for _, header in CSV_COLUMNS])
        for record in self.list_records(company_id):
            writer.writerow([self._csv_value(getattr(record, attr)) for attr, _ in CSV_COLUMNS])
        return "\ufeff" + buffer.getvalue()
