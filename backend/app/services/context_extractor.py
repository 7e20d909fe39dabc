"""
Context assembly for the DPIA writing assistant.

ContextExtractor gathers what the LLM should know before drafting a DPIA
field: the company, the processing record being assessed, similar records of
the same company, the state of the company's compliance work and a few
sector-specific hints. `format_context_for_ai` renders it as the French text
block pasted into the prompt.
"""

import json
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import (
    DEFAULT_SECTOR_CONTEXT,
    EXISTING_FIELD_PREVIEW,
    HIGH_RISK_DATA_KEYWORDS,
    MAX_RELATED_RECORDS,
    SECTOR_CONTEXTS,
    SIMILARITY_THRESHOLD,
)
from backend.app.database.models import (
    Company,
    ComplianceAction,
    ComplianceSnapshot,
    DataBreach,
    DataSubjectRequest,
    PrivacyPolicy,
    ProcessingRecord,
)
from backend.app.utils.helpers.text_utils import TextUtils
from backend.app.utils.logging.logger import log_info
from backend.app.utils.system_utils.exceptions import ResourceNotFoundError

# Keys of the existing DPIA data that designate the assessed record.
RECORD_ID_KEYS = ("processing_record_id", "processingRecordId")


class ContextExtractor:
    """Builds and formats the context of a DPIA assistance request."""

    def extract_context(
            self,
            db: Session,
            company_id: int,
            field: str,
            existing_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Gather the context of a DPIA field request.

        Args:
            db: Database session.
            company_id: Company owning the DPIA.
            field: The DPIA field being drafted.
            existing_data: Fields already entered; may designate the processing record.

        Returns:
            A dict with company, current_processing, related_records,
            company_context, sector_context, existing_data and field.

        Raises:
            ResourceNotFoundError: If the company does not exist.
        """
        company = db.get(Company, company_id)
        if company is None:
            raise ResourceNotFoundError("Société introuvable")
        existing_data = existing_data or {}

        records = list(db.scalars(
            select(ProcessingRecord).where(ProcessingRecord.company_id == company_id)
        ))
        current = self._find_current_record(records, existing_data)
        related = self.find_related_records(current, records) if current else []

        context = {
            "company": {
                "name": company.name,
                "sector": company.sector or "Non spécifié",
                "size": company.size or "Non spécifiée",
                "total_processing_records": len(records),
                "compliance_score": self._latest_score(db, company_id),
            },
            "current_processing": self._describe_record(current) if current else None,
            "related_records": related,
            "company_context": self._company_context(db, company_id),
            "sector_context": self.get_sector_context(company.sector),
            "existing_data": existing_data,
            "field": field,
        }
        log_info(f"[CONTEXT] Context built for company {company_id}, field '{field}', "
                 f"{len(related)} related record(s)")
        return context

    @staticmethod
    def _find_current_record(records: List[ProcessingRecord], existing_data: Dict[str, Any]) -> Optional[ProcessingRecord]:
        record_id = next((existing_data[key] for key in RECORD_ID_KEYS if existing_data.get(key)), None)
        if record_id is None:
            return None
        try:
            record_id = int(record_id)
        except (TypeError, ValueError):
            return None
        # Only records of the same company can be used.
        return next((record for record in records if record.id == record_id), None)

    @staticmethod
    def _latest_score(db: Session, company_id: int) -> Optional[int]:
        snapshot = db.scalar(
            select(ComplianceSnapshot)
            .where(ComplianceSnapshot.company_id == company_id)
            .order_by(ComplianceSnapshot.snapshot_date.desc(), ComplianceSnapshot.id.desc())
        )
        return snapshot.overall_score if snapshot else None

    def _describe_record(self, record: ProcessingRecord) -> Dict[str, Any]:
        return {
            "id": record.id,
            "name": record.name,
            "purpose": record.purpose,
            "data_categories": TextUtils.join_values(record.data_categories),
            "recipients": TextUtils.join_values(record.recipients),
            "legal_basis": record.legal_basis or "",
            "retention": record.retention or "",
            "is_international": bool(record.transfers_outside_eu),
            "security_measures": TextUtils.join_values(record.security_measures),
            "risk_level": self.assess_processing_risk(record),
        }

    @staticmethod
    def _company_context(db: Session, company_id: int) -> Dict[str, Any]:
        def count(model, *conditions) -> int:
            return db.scalar(
                select(func.count()).select_from(model).where(model.company_id == company_id, *conditions)
            )

        return {
            "has_data_breaches": count(DataBreach) > 0,
            "active_actions": count(ComplianceAction, ComplianceAction.status != "completed"),
            "subject_requests": count(DataSubjectRequest),
            "privacy_policy_exists": count(PrivacyPolicy, PrivacyPolicy.is_active.is_(True)) > 0,
        }

    @staticmethod
    def calculate_similarity(record1: ProcessingRecord, record2: ProcessingRecord) -> float:
        """
        Weighted similarity of two processing records.

        Purpose (0.4) and data categories (0.3) are compared with the Jaccard
        index of their word sets, the legal basis (0.3) by equality. A factor
        only counts when both records fill the field.

        Returns:
            A score between 0 and 1.
        """
        score = 0.0
        factors = 0.0
        if record1.purpose and record2.purpose:
            score += TextUtils.jaccard_similarity(record1.purpose, record2.purpose) * 0.4
            factors += 0.4
        categories1 = TextUtils.join_values(record1.data_categories)
        categories2 = TextUtils.join_values(record2.data_categories)
        if categories1 and categories2:
            score += TextUtils.jaccard_similarity(categories1, categories2) * 0.3
            factors += 0.3
        if record1.legal_basis and record2.legal_basis:
            score += 0.3 if record1.legal_basis == record2.legal_basis else 0.0
            factors += 0.3
        return score / factors if factors > 0 else 0.0

    def find_related_records(self, current: ProcessingRecord, records: List[ProcessingRecord]) -> List[Dict[str, Any]]:
        """Return the most similar other records of the company, best first."""
        related = []
        for record in records:
            if record.id == current.id:
                continue
            similarity = self.calculate_similarity(current, record)
            if similarity > SIMILARITY_THRESHOLD:
                related.append({
                    "name": record.name,
                    "purpose": record.purpose,
                    "data_categories": TextUtils.join_values(record.data_categories),
                    "similarity": similarity,
                })
        related.sort(key=lambda item: item["similarity"], reverse=True)
        return related[:MAX_RELATED_RECORDS]

    @staticmethod
    def assess_processing_risk(record: ProcessingRecord) -> str:
        """
        Estimate the risk level of a record: "Élevé", "Modéré" or "Faible".

        High-risk data categories weigh 3, transfers outside the EU 2, long
        category lists and a missing legal basis 1 each.
        """
        risk_score = 0
        categories = TextUtils.join_values(record.data_categories).lower()
        if any(keyword in categories for keyword in HIGH_RISK_DATA_KEYWORDS):
            risk_score += 3
        if record.transfers_outside_eu:
            risk_score += 2
        if len(categories) > 100:
            risk_score += 1
        if not record.legal_basis:
            risk_score += 1
        if risk_score >= 4:
            return "Élevé"
        if risk_score >= 2:
            return "Modéré"
        return "Faible"

    @staticmethod
    def get_sector_context(sector: Optional[str]) -> Optional[Dict[str, List[str]]]:
        if not sector:
            return None
        sector_lower = sector.lower()
        for keywords, sector_context in SECTOR_CONTEXTS:
            if any(keyword in sector_lower for keyword in keywords):
                return sector_context
        return DEFAULT_SECTOR_CONTEXT

    @staticmethod
    def _format_existing_value(value: Any) -> str:
        if isinstance(value, str):
            return TextUtils.truncate(value, EXISTING_FIELD_PREVIEW)
        return json.dumps(value, ensure_ascii=False, default=str)

    def format_context_for_ai(self, context: Dict[str, Any]) -> str:
        """
        Render a context built by `extract_context` as French prompt text.

        Returns:
            The sections separated by blank lines.
        """
        company = context["company"]
        company_lines = [
            "INFORMATIONS DE L'ENTREPRISE:",
            f"- Nom: {company['name']}",
            f"- Secteur d'activité: {company['sector']}",
            f"- Taille: {company['size']}",
            f"- Nombre total de traitements: {company['total_processing_records']}",
        ]
        if company.get("compliance_score"):
            company_lines.append(f"- Score de conformité actuel: {company['compliance_score']}%")
        sections = ["\n".join(company_lines)]

        current = context.get("current_processing")
        if current:
            sections.append("\n".join([
                "TRAITEMENT ANALYSÉ DANS CETTE AIPD:",
                f"- Nom du traitement: {current['name']}",
                f"- Finalité: {current['purpose']}",
                f"- Catégories de données: {current['data_categories']}",
                f"- Destinataires: {current['recipients'] or 'Non spécifiés'}",
                f"- Base légale: {current['legal_basis'] or 'Non spécifiée'}",
                f"- Durée de conservation: {current['retention'] or 'Non spécifiée'}",
                f"- Transferts internationaux: {'Oui' if current['is_international'] else 'Non'}",
                f"- Mesures de sécurité existantes: {current['security_measures'] or 'Non spécifiées'}",
                f"- Niveau de risque estimé: {current['risk_level']}",
            ]))

        related = context.get("related_records") or []
        if related:
            lines = [
                f"- {record['name']}: {record['purpose']} (similarité: {int(record['similarity'] * 100 + 0.5)}%)"
                for record in related
            ]
            sections.append("TRAITEMENTS SIMILAIRES DANS L'ENTREPRISE:\n" + "\n".join(lines))

        compliance = context["company_context"]
        sections.append("\n".join([
            "CONTEXTE DE CONFORMITÉ:",
            f"- Violations de données déclarées: {'Oui' if compliance['has_data_breaches'] else 'Non'}",
            f"- Actions de conformité en cours: {compliance['active_actions']}",
            f"- Demandes d'exercice de droits: {compliance['subject_requests']}",
            f"- Politique de confidentialité active: {'Oui' if compliance['privacy_policy_exists'] else 'Non'}",
        ]))

        sector_context = context.get("sector_context")
        if sector_context:
            sections.append(
                f"CONTEXTE SECTORIEL ({company['sector']}):\n"
                "Risques communs:\n"
                + "\n".join(f"- {risk}" for risk in sector_context["common_risks"])
                + "\n\nMesures recommandées:\n"
                + "\n".join(f"- {measure}" for measure in sector_context["recommended_measures"])
                + "\n\nExigences spécifiques:\n"
                + "\n".join(f"- {requirement}" for requirement in sector_context["specific_requirements"])
            )

        existing_fields = [
            f"- {key}: {self._format_existing_value(value)}"
            for key, value in (context.get("existing_data") or {}).items()
            if value and key not in RECORD_ID_KEYS
        ]
        if existing_fields:
            sections.append("DONNÉES DÉJÀ SAISIES DANS L'AIPD:\n" + "\n".join(existing_fields))

        return "\n\n".join(sections)


context_extractor = ContextExtractor()
