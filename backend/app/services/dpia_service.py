"""
DpiaService manages data protection impact assessments (AIPD) and the quick
evaluations that decide whether one is needed.

AI assistance drafts one questionnaire field at a time from the context of
the company and of the assessed processing record.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.configs.cnil_security_measures import SECURITY_CATEGORIES, get_measures_by_category
from backend.app.configs.rgpd_config import DPIA_CRITERIA, DPIA_REQUIRED_THRESHOLD, DPIA_STATUSES
from backend.app.database.models import Company, DpiaAssessment, DpiaEvaluation, ProcessingRecord, User
from backend.app.services.audit_service import AuditService
from backend.app.services.context_extractor import RECORD_ID_KEYS, context_extractor
from backend.app.services.llm_service import LlmFallbackService
from backend.app.utils.helpers.json_helper import coerce_bool
from backend.app.utils.logging.logger import log_info
from backend.app.utils.system_utils.exceptions import BusinessRuleError, ResourceNotFoundError

SECTION_FIELDS = (
    "general_description", "processing_purposes", "data_controller", "data_processors",
    "applicable_referentials", "personal_data_processed", "personal_data_categories", "data_minimization",
    "retention_justification", "finalities_justification", "legal_basis_justification", "legal_basis_type",
    "data_quality_justification", "proportionality_evaluation", "rights_information", "rights_consent",
    "rights_access", "rights_rectification", "rights_opposition", "subcontracting_measures",
    "international_transfers_measures", "rights_protection_evaluation", "security_measures",
    "custom_security_measures", "risk_scenarios", "action_plan", "evaluation", "dpo_advice",
    "controller_validation", "status",
)


def score_criteria(criteria_answers: Optional[Dict[str, Any]]) -> int:
    """Number of CNIL criteria answered true."""
    answers = criteria_answers or {}
    return sum(1 for criterion in DPIA_CRITERIA if coerce_bool(answers.get(criterion)))


def recommend(score: int, cnil_list_match: bool) -> str:
    if cnil_list_match or score >= DPIA_REQUIRED_THRESHOLD:
        return "required"
    if score == 1:
        return "recommended"
    return "not_required"


class DpiaService:
    """Assessments, evaluations and AI assistance."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def _get_record(self, company_id: int, record_id: Any) -> ProcessingRecord:
        record = self.db.get(ProcessingRecord, record_id) if record_id else None
        if record is None or record.company_id != company_id:
            raise ResourceNotFoundError("Traitement introuvable")
        return record

    def list_assessments(self, company_id: int) -> List[DpiaAssessment]:
        return list(self.db.scalars(
            select(DpiaAssessment)
            .where(DpiaAssessment.company_id == company_id)
            .order_by(DpiaAssessment.updated_at.desc(), DpiaAssessment.id.desc())
        ))

    def get_assessment(self, company_id: int, dpia_id: int) -> DpiaAssessment:
        dpia = self.db.get(DpiaAssessment, dpia_id)
        if dpia is None or dpia.company_id != company_id:
            raise ResourceNotFoundError("AIPD introuvable")
        return dpia

    @staticmethod
    def _apply(dpia: DpiaAssessment, data: Dict[str, Any]) -> None:
        if data.get("status") is not None and data["status"] not in DPIA_STATUSES:
            raise BusinessRuleError(f"Statut invalide: {data['status']}")
        for field in SECTION_FIELDS:
            if field in data and data[field] is not None:
                setattr(dpia, field, data[field])
        if dpia.status == "validated" and not (
                (dpia.dpo_advice or "").strip() and (dpia.controller_validation or "").strip()):
            raise BusinessRuleError(
                "L'avis du DPO et la validation du responsable de traitement sont requis pour valider l'AIPD"
            )

    def create_assessment(self, user: User, company_id: int, data: Dict[str, Any]) -> DpiaAssessment:
        record = self._get_record(company_id, data.get("processing_record_id"))
        dpia = DpiaAssessment(company_id=company_id, processing_record_id=record.id, status="draft")
        self._apply(dpia, data)
        self.db.add(dpia)
        self.db.flush()
        self.audit.record(user.id, company_id, "create", "dpia_assessment", dpia.id,
                          {"processing_record_id": record.id})
        self.db.commit()
        return dpia

    def update_assessment(self, user: User, company_id: int, dpia_id: int, data: Dict[str, Any]) -> DpiaAssessment:
        dpia = self.get_assessment(company_id, dpia_id)
        if data.get("processing_record_id") is not None:
            dpia.processing_record_id = self._get_record(company_id, data["processing_record_id"]).id
        self._apply(dpia, data)
        self.audit.record(user.id, company_id, "update", "dpia_assessment", dpia.id, {"status": dpia.status})
        self.db.commit()
        return dpia

    def delete_assessment(self, user: User, company_id: int, dpia_id: int) -> None:
        dpia = self.get_assessment(company_id, dpia_id)
        self.db.delete(dpia)
        self.audit.record(user.id, company_id, "delete", "dpia_assessment", dpia_id)
        self.db.commit()

    async def ai_assist(self, user: User, company: Company, field: str,
                        existing_data: Optional[Dict[str, Any]] = None,
                        dpia_id: Optional[int] = None) -> Dict[str, str]:
        """
        Draft one field of the DPIA questionnaire.

        Args:
            user: Requesting user.
            company: Company owning the DPIA.
            field: Questionnaire field, e.g. "generalDescription".
            existing_data: Fields already entered by the user.
            dpia_id: Assessment being edited; its processing record is used
                when existing_data does not name one.

        Returns:
            {"response": drafted text, "field": field}
        """
        if not (field or "").strip():
            raise BusinessRuleError("Le champ à générer est obligatoire")
        existing_data = dict(existing_data or {})
        if dpia_id is not None:
            dpia = self.get_assessment(company.id, dpia_id)
            if not any(existing_data.get(key) for key in RECORD_ID_KEYS):
                existing_data["processing_record_id"] = dpia.processing_record_id

        context = context_extractor.extract_context(self.db, company.id, field, existing_data)
        context_text = context_extractor.format_context_for_ai(context)
        response = await LlmFallbackService(self.db).generate_dpia_response(field, company, context_text)
        self.audit.record(user.id, company.id, "ai_assist", "dpia_assessment", dpia_id, {"field": field})
        self.db.commit()
        return {"response": response, "field": field}

    async def risk_assessment(self, user: User, company: Company, dpia_id: int) -> DpiaAssessment:
        """Rate the three CNIL risk scenarios and store them on the assessment."""
        dpia = self.get_assessment(company.id, dpia_id)
        record = self.db.get(ProcessingRecord, dpia.processing_record_id)
        description = dpia.general_description or (record.purpose if record else "")
        data_categories = dpia.personal_data_categories or (record.data_categories if record else [])
        dpia.risk_scenarios = await LlmFallbackService(self.db).generate_risk_assessment(
            description, data_categories, company.sector, company.size
        )
        if dpia.status == "draft":
            dpia.status = "inprogress"
        self.audit.record(user.id, company.id, "risk_assessment", "dpia_assessment", dpia.id)
        self.db.commit()
        log_info(f"[DPIA] Risk scenarios rated for assessment {dpia.id}")
        return dpia

    async def assess(self, user: User, company: Company, record_id: int,
                     name: Optional[str] = None, description: Optional[str] = None) -> DpiaAssessment:
        """
        Run a complete AI assessment of a processing record and store it as a
        completed DPIA. The model's risk assessment, proposed measures and
        conclusion are kept in the `evaluation` field.
        """
        record = self._get_record(company.id, record_id)
        name = (name or "").strip() or record.name
        description = (description or "").strip() or record.purpose or ""
        result = await LlmFallbackService(self.db).assess_dpia(name, description, company)
        dpia = DpiaAssessment(
            company_id=company.id,
            processing_record_id=record.id,
            general_description=description,
            evaluation=result,
            status="completed",
        )
        self.db.add(dpia)
        self.db.flush()
        self.audit.record(user.id, company.id, "assess", "dpia_assessment", dpia.id,
                          {"processing_record_id": record.id})
        self.db.commit()
        log_info(f"[DPIA] AI assessment {dpia.id} stored for record {record.id}")
        return dpia

    @staticmethod
    def security_measures(category: Optional[str] = None) -> Dict[str, Any]:
        return {"measures": get_measures_by_category(category), "categories": list(SECURITY_CATEGORIES)}

    # Evaluations

    def list_evaluations(self, company_id: int) -> List[DpiaEvaluation]:
        return list(self.db.scalars(
            select(DpiaEvaluation)
            .where(DpiaEvaluation.company_id == company_id)
            .order_by(DpiaEvaluation.created_at.desc(), DpiaEvaluation.id.desc())
        ))

    def _get_evaluation(self, company_id: int, evaluation_id: int) -> DpiaEvaluation:
        evaluation = self.db.get(DpiaEvaluation, evaluation_id)
        if evaluation is None or evaluation.company_id != company_id:
            raise ResourceNotFoundError("Évaluation introuvable")
        return evaluation

    @staticmethod
    def _score(evaluation: DpiaEvaluation) -> None:
        evaluation.score = score_criteria(evaluation.criteria_answers)
        evaluation.recommendation = recommend(evaluation.score, bool(evaluation.cnil_list_match))

    def create_evaluation(self, user: User, company_id: int, data: Dict[str, Any]) -> DpiaEvaluation:
        record = self._get_record(company_id, data.get("record_id"))
        evaluation = DpiaEvaluation(
            company_id=company_id,
            record_id=record.id,
            justification=data.get("justification"),
            criteria_answers=dict(data.get("criteria_answers") or {}),
            cnil_list_match=bool(data.get("cnil_list_match")),
            large_scale_estimate=data.get("large_scale_estimate"),
        )
        self._score(evaluation)
        self.db.add(evaluation)
        self.db.flush()
        self.audit.record(user.id, company_id, "create", "dpia_evaluation", evaluation.id,
                          {"recommendation": evaluation.recommendation})
        self.db.commit()
        return evaluation

    def update_evaluation(self, user: User, company_id: int, evaluation_id: int, data: Dict[str, Any]) -> DpiaEvaluation:
        evaluation = self._get_evaluation(company_id, evaluation_id)
        if data.get("record_id") is not None:
            evaluation.record_id = self._get_record(company_id, data["record_id"]).id
        for field in ("justification", "large_scale_estimate"):
            if data.get(field) is not None:
                setattr(evaluation, field, data[field])
        if data.get("criteria_answers") is not None:
            evaluation.criteria_answers = dict(data["criteria_answers"])
        if data.get("cnil_list_match") is not None:
            evaluation.cnil_list_match = bool(data["cnil_list_match"])
        self._score(evaluation)
        self.audit.record(user.id, company_id, "update", "dpia_evaluation", evaluation.id,
                          {"recommendation": evaluation.recommendation})
        self.db.commit()
        return evaluation
