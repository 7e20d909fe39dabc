"""
BreachService keeps the register of personal data breaches (article 33.5).

A breach must be notified to the CNIL within 72 hours of its discovery; the
deadline is computed for every breach returned to the client. The AI analysis
applies the EDPB guidelines 9/2022 and is stored with the breach.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import BREACH_NOTIFICATION_HOURS, BREACH_STATUSES
from backend.app.database.models import DataBreach, User, utcnow
from backend.app.services.audit_service import AuditService
from backend.app.services.llm_service import LlmFallbackService
from backend.app.utils.helpers.json_helper import parse_iso_datetime
from backend.app.utils.logging.logger import log_info
from backend.app.utils.system_utils.exceptions import BusinessRuleError, ResourceNotFoundError

DATE_FIELDS = ("incident_date", "discovery_date", "notification_date", "data_subject_notification_date")
EDITABLE_FIELDS = (
    "description", "incident_date", "discovery_date", "data_categories", "affected_persons",
    "circumstances", "consequences", "measures", "comprehensive_data",
    "notification_required", "notification_justification", "data_subject_notification_required",
    "notification_date", "data_subject_notification_date", "status",
)


def notification_deadline(breach: DataBreach) -> datetime:
    start = breach.discovery_date or breach.incident_date
    return start + timedelta(hours=BREACH_NOTIFICATION_HOURS)


def serialize_breach(breach: DataBreach, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Breach as a dict with its notification deadline and whether it has passed."""
    deadline = notification_deadline(breach)
    data = breach.to_dict()
    data["notification_deadline"] = deadline.isoformat()
    data["deadline_exceeded"] = breach.notification_date is None and (now or utcnow()) > deadline
    return data


class BreachService:

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def list_breaches(self, company_id: int) -> List[DataBreach]:
        return list(self.db.scalars(
            select(DataBreach)
            .where(DataBreach.company_id == company_id)
            .order_by(DataBreach.incident_date.desc(), DataBreach.id.desc())
        ))

    def get_breach(self, company_id: int, breach_id: int) -> DataBreach:
        breach = self.db.get(DataBreach, breach_id)
        if breach is None or breach.company_id != company_id:
            raise ResourceNotFoundError("Violation introuvable")
        return breach

    @staticmethod
    def _prepare(data: Dict[str, Any]) -> Dict[str, Any]:
        prepared = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
        for field in DATE_FIELDS:
            if field in prepared:
                prepared[field] = parse_iso_datetime(prepared[field], field)
        if prepared.get("status") is not None and prepared["status"] not in BREACH_STATUSES:
            raise BusinessRuleError(f"Statut invalide: {prepared['status']}")
        if prepared.get("affected_persons") is not None and prepared["affected_persons"] < 0:
            raise BusinessRuleError("Le nombre de personnes concernées ne peut pas être négatif")
        return prepared

    @staticmethod
    def _check_dates(breach: DataBreach) -> None:
        if breach.incident_date is None:
            raise BusinessRuleError("La date de l'incident est obligatoire")
        if breach.discovery_date is not None and breach.discovery_date < breach.incident_date:
            raise BusinessRuleError("La date de découverte ne peut pas précéder la date de l'incident")

    def _build(self, company_id: int, data: Dict[str, Any]) -> DataBreach:
        prepared = self._prepare(data)
        if not (prepared.get("description") or "").strip():
            raise BusinessRuleError("La description de la violation est obligatoire")
        breach = DataBreach(company_id=company_id, status="draft")
        for field, value in prepared.items():
            if value is not None:
                setattr(breach, field, value)
        self._check_dates(breach)
        return breach

    def create_breach(self, user: User, company_id: int, data: Dict[str, Any]) -> DataBreach:
        breach = self._build(company_id, data)
        self.db.add(breach)
        self.db.flush()
        self.audit.record(user.id, company_id, "create", "data_breach", breach.id)
        self.db.commit()
        return breach

    def update_breach(self, user: User, company_id: int, breach_id: int, data: Dict[str, Any]) -> DataBreach:
        breach = self.get_breach(company_id, breach_id)
        for field, value in self._prepare(data).items():
            if value is not None:
                setattr(breach, field, value)
        self._check_dates(breach)
        self.audit.record(user.id, company_id, "update", "data_breach", breach.id)
        self.db.commit()
        return breach

    async def analyze(self, user: User, company_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Analyse a breach with the model and store it as analysed.

        The breach is validated first and nothing is stored when the model is
        unavailable.

        Returns:
            {"breach": serialized breach, "analysis": model answer}
        """
        breach = self._build(company_id, data)
        analysis = await LlmFallbackService(self.db).analyze_data_breach(
            breach.to_dict(exclude=("id", "company_id", "created_at", "updated_at", "status"))
        )
        breach.status = "analyzed"
        breach.notification_required = analysis["notification_required"]
        breach.data_subject_notification_required = analysis["data_subject_notification_required"]
        breach.notification_justification = analysis["justification"]
        breach.ai_justification = analysis["justification"]
        breach.ai_recommendation_authority = "notify" if analysis["notification_required"] else "no_notify"
        breach.ai_recommendation_data_subject = (
            "notify" if analysis["data_subject_notification_required"] else "no_notify"
        )
        breach.risk_analysis_result = analysis
        self.db.add(breach)
        self.db.flush()
        self.audit.record(user.id, company_id, "analyze", "data_breach", breach.id,
                          {"risk_level": analysis["risk_level"]})
        self.db.commit()
        log_info(f"[BREACH] Breach {breach.id} analysed, risk level {analysis['risk_level']}")
        return {"breach": serialize_breach(breach), "analysis": analysis}

    def report(self, user: User, company_id: int, breach_id: int, notify_data_subjects: bool = False) -> DataBreach:
        """Mark the breach as notified to the authority, and to the data subjects when asked."""
        breach = self.get_breach(company_id, breach_id)
        now = utcnow()
        breach.status = "reported"
        breach.notification_date = breach.notification_date or now
        if notify_data_subjects:
            breach.data_subject_notification_date = breach.data_subject_notification_date or now
        self.audit.record(user.id, company_id, "report", "data_breach", breach.id,
                          {"data_subjects": notify_data_subjects})
        self.db.commit()
        return breach
