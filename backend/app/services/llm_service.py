"""
AI generation services of the compliance platform.

LlmService builds the French prompts of each AI feature and sends them
through the Gemini helper, which retries overloaded calls. The prompt of a
feature is the template of gemini_config.py, completed by the instructions of
the active AiPrompt of its category and the reference documents linked to it.

LlmFallbackService wraps LlmService with the behaviour expected when the model
stays unavailable: a template privacy policy, an apology from the chatbot, or
a 503 error for every other feature.
"""

import json
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.configs.gemini_config import (
    ACTION_PLAN_PROMPT,
    ACTION_PLAN_SCHEMA,
    BREACH_ANALYSIS_PROMPT,
    BREACH_ANALYSIS_SCHEMA,
    CHATBOT_PROMPT,
    CHATBOT_SYSTEM_INSTRUCTION,
    DPIA_ASSESSMENT_PROMPT,
    DPIA_ASSESSMENT_SCHEMA,
    DPIA_DEFAULT_FIELD_PROMPT,
    DPIA_FIELD_PROMPTS,
    DPIA_REQUIRED_PROMPT,
    DPIA_REQUIRED_SCHEMA,
    DPIA_RESPONSE_FOOTER,
    PRIVACY_POLICY_PROMPT,
    PROCESSING_RECORD_PROMPT,
    PROCESSING_RECORD_SCHEMA,
    RISK_ASSESSMENT_PROMPT,
    RISK_ASSESSMENT_SCHEMA,
)
from backend.app.configs.rgpd_config import (
    DEFAULT_DPIA_RISK_LEVEL,
    DPIA_RISK_LEVELS,
    DPIA_RISK_TYPES,
)
from backend.app.database.models import Company, LlmConfiguration, ProcessingRecord
from backend.app.services.rag_service import RagService
from backend.app.utils.helpers.gemini_helper import gemini_helper
from backend.app.utils.helpers.json_helper import coerce_to_schema
from backend.app.utils.helpers.text_utils import TextUtils
from backend.app.utils.logging.logger import log_info, log_warning
from backend.app.utils.system_utils.error_handling import SecurityAwareErrorHandler
from backend.app.utils.system_utils.exceptions import AIServiceUnavailableError

BREACH_UNAVAILABLE_MESSAGE = (
    "Service d'analyse temporairement indisponible. Veuillez réessayer dans quelques minutes."
)
DPIA_UNAVAILABLE_MESSAGE = (
    "Service de génération temporairement indisponible. Veuillez réessayer dans quelques minutes."
)
ANALYSIS_UNAVAILABLE_MESSAGE = (
    "Service d'analyse IA temporairement indisponible. Veuillez réessayer plus tard."
)
GENERATION_UNAVAILABLE_MESSAGE = (
    "Service de génération IA temporairement indisponible. Veuillez réessayer plus tard."
)
CHATBOT_UNAVAILABLE_MESSAGE = (
    "Je suis temporairement indisponible. Veuillez réessayer dans quelques instants "
    "ou reformuler votre question."
)

PROCESSING_RECORD_DEFAULTS = {
    "name": "",
    "purpose": "",
    "legal_basis": "",
    "data_categories": [],
    "recipients": [],
    "retention": "",
    "security_measures": [],
    "transfers_outside_eu": False,
}
BREACH_ANALYSIS_DEFAULTS = {
    "notification_required": False,
    "data_subject_notification_required": False,
    "justification": "",
    "risk_level": "moyen",
    "recommendations": [],
}
DPIA_REQUIRED_DEFAULTS = {"dpia_required": False, "justification": "", "risk_level": "moyen"}
ACTION_PLAN_DEFAULTS = {"actions": [], "overall_risk_score": 0, "summary": ""}
DPIA_ASSESSMENT_DEFAULTS = {"risk_assessment": {}, "measures": {}, "conclusion": "", "dpia_required": False}
RISK_SCENARIO_DEFAULTS = {"risk_sources": "", "threats": "", "potential_impacts": ""}

# Fields of a processing record shown to the model.
RECORD_PROMPT_FIELDS = (
    "name", "purpose", "legal_basis", "data_categories", "recipients", "retention", "transfers_outside_eu",
)


def company_summary(company: Company) -> Dict[str, Any]:
    return {
        "name": company.name,
        "sector": company.sector,
        "size": company.size,
        "address": company.address,
        "email": company.email,
    }


def record_summary(record: ProcessingRecord) -> Dict[str, Any]:
    return {field: getattr(record, field) for field in RECORD_PROMPT_FIELDS}


def _dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, default=str)


class LlmService:
    """Prompt building and parsing for every AI feature."""

    def __init__(self, db: Session):
        self.db = db
        self.rag = RagService(db)

    def _settings(self) -> Dict[str, Any]:
        active = self.db.scalar(
            select(LlmConfiguration).where(LlmConfiguration.is_active.is_(True))
        )
        return gemini_helper.resolve_settings(active)

    def _complete_prompt(self, prompt: str, category: str, with_documents: bool = True) -> str:
        """Append the active custom instructions and reference documents of a category."""
        parts = [prompt]
        custom = self.rag.active_prompt(category)
        if custom is not None and custom.prompt:
            parts.append(f"Consignes complémentaires:\n{custom.prompt}")
        if with_documents:
            documents = self.rag.format_documents(self.rag.documents_for_category(category))
            if documents:
                parts.append(documents)
        return "\n\n".join(parts)

    async def _structured(self, prompt: str, schema: Dict[str, Any], category: str,
                          operation: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await gemini_helper.generate_structured(
            self._complete_prompt(prompt, category), schema, context,
            settings=self._settings(), operation=operation,
        )

    async def _text(self, prompt: str, category: str, operation: str,
                    system_instruction: Optional[str] = None) -> str:
        text = await gemini_helper.generate_text(
            self._complete_prompt(prompt, category), system_instruction,
            settings=self._settings(), operation=operation,
        )
        if not text:
            raise AIServiceUnavailableError("Réponse vide du service IA")
        return text

    async def generate_action_plan(self, diagnostic_data: List[Dict[str, Any]], company: Company) -> Dict[str, Any]:
        prompt = ACTION_PLAN_PROMPT.format(
            diagnostic_data=_dumps(diagnostic_data), company_info=_dumps(company_summary(company))
        )
        result = await self._structured(prompt, ACTION_PLAN_SCHEMA, "diagnostic", "action_plan")
        plan = coerce_to_schema(result, ACTION_PLAN_DEFAULTS)
        plan["actions"] = [action for action in plan["actions"] if isinstance(action, dict)]
        return plan

    async def generate_processing_record(self, company: Company, processing_type: str, description: str) -> Dict[str, Any]:
        prompt = PROCESSING_RECORD_PROMPT.format(
            company=_dumps(company_summary(company)),
            processing_type=processing_type,
            description=description,
        )
        result = await self._structured(prompt, PROCESSING_RECORD_SCHEMA, "records", "processing_record")
        return coerce_to_schema(result, PROCESSING_RECORD_DEFAULTS)

    async def generate_privacy_policy(self, company: Company, records: List[ProcessingRecord]) -> str:
        prompt = PRIVACY_POLICY_PROMPT.format(
            name=company.name,
            sector=company.sector or "Non spécifié",
            records=_dumps([record_summary(record) for record in records]),
        )
        return await self._text(prompt, "policy", "privacy_policy")

    async def analyze_data_breach(self, breach_data: Dict[str, Any]) -> Dict[str, Any]:
        prompt = BREACH_ANALYSIS_PROMPT.format(breach=_dumps(breach_data))
        result = await self._structured(prompt, BREACH_ANALYSIS_SCHEMA, "breach", "breach_analysis")
        return coerce_to_schema(result, BREACH_ANALYSIS_DEFAULTS)

    async def assess_dpia_requirement(self, record: ProcessingRecord) -> Dict[str, Any]:
        prompt = DPIA_REQUIRED_PROMPT.format(record=_dumps(record.to_dict(exclude=("company_id",))))
        result = await self._structured(prompt, DPIA_REQUIRED_SCHEMA, "dpia", "dpia_requirement")
        return coerce_to_schema(result, DPIA_REQUIRED_DEFAULTS)

    async def assess_dpia(self, name: str, description: str, company: Company) -> Dict[str, Any]:
        prompt = DPIA_ASSESSMENT_PROMPT.format(
            name=name, description=description, company=_dumps(company_summary(company))
        )
        result = await self._structured(prompt, DPIA_ASSESSMENT_SCHEMA, "dpia", "dpia_assessment")
        return coerce_to_schema(result, DPIA_ASSESSMENT_DEFAULTS)

    async def generate_dpia_response(self, field: str, company: Company, context_text: str) -> str:
        """
        Draft one DPIA field.

        Args:
            field: Field identifier of the questionnaire (camelCase).
            company: Company owning the DPIA.
            context_text: Output of ContextExtractor.format_context_for_ai.
        """
        template = DPIA_FIELD_PROMPTS.get(field)
        if template is None:
            instruction = DPIA_DEFAULT_FIELD_PROMPT.format(field=field)
        else:
            instruction = template.format(
                sector=company.sector or "Non spécifié", size=company.size or "VSE/PME"
            )
        prompt = f"{context_text}\n\n{instruction}"
        documents = self.rag.format_documents(self.rag.documents_for_category("dpia"))
        if documents:
            prompt = f"{prompt}\n\n{documents}"
        prompt = f"{prompt}\n\n{DPIA_RESPONSE_FOOTER}"
        custom = self.rag.active_prompt("dpia")
        if custom is not None and custom.prompt:
            prompt = f"{prompt}\n\nConsignes complémentaires:\n{custom.prompt}"
        text = await gemini_helper.generate_text(
            prompt, settings=self._settings(), operation=f"dpia_field_{field}"
        )
        if not text:
            raise AIServiceUnavailableError("Réponse vide du service IA")
        return text

    async def generate_risk_assessment(self, description: str, data_categories: Any,
                                       sector: Optional[str], size: Optional[str]) -> Dict[str, Dict[str, str]]:
        """
        Rate the three CNIL risk scenarios of a DPIA.

        Returns:
            A dict keyed by risk type. Unknown or missing levels become "limited".
        """
        prompt = RISK_ASSESSMENT_PROMPT.format(
            description=description or "Non spécifiée",
            data_categories=TextUtils.join_values(data_categories) or "Non spécifiées",
            sector=sector or "Non spécifié",
            size=size or "Non spécifiée",
        )
        result = await self._structured(prompt, RISK_ASSESSMENT_SCHEMA, "dpia", "risk_assessment")
        return self.normalize_risk_scenarios(result)

    @staticmethod
    def normalize_risk_scenarios(result: Optional[Dict[str, Any]]) -> Dict[str, Dict[str, str]]:
        answered = {}
        for risk in (result or {}).get("risks") or []:
            if isinstance(risk, dict) and risk.get("risk_type") in DPIA_RISK_TYPES:
                answered[risk["risk_type"]] = risk
        scenarios = {}
        for risk_type in DPIA_RISK_TYPES:
            risk = answered.get(risk_type, {})
            scenario = coerce_to_schema(risk, RISK_SCENARIO_DEFAULTS)
            for scale in ("severity", "likelihood"):
                level = str(risk.get(scale, "")).strip().lower()
                scenario[scale] = level if level in DPIA_RISK_LEVELS else DEFAULT_DPIA_RISK_LEVEL
            scenarios[risk_type] = scenario
        return scenarios

    async def chatbot_response(self, message: str, company_context: Optional[Dict[str, Any]] = None) -> str:
        prompt = CHATBOT_PROMPT.format(message=message)
        if company_context:
            prompt = f"{prompt}\n\nContexte de l'entreprise: {_dumps(company_context)}"
        return await self._text(prompt, "chatbot", "chatbot", CHATBOT_SYSTEM_INSTRUCTION)


class LlmFallbackService:
    """LlmService with the degraded behaviour of each feature."""

    def __init__(self, db: Session):
        self.llm = LlmService(db)

    @staticmethod
    def build_policy_template(company: Company, records: List[ProcessingRecord]) -> str:
        """Deterministic Markdown privacy policy used when the model is unavailable."""
        company_name = company.name or "Votre Entreprise"
        company_email = company.email or "contact@entreprise.fr"
        record_blocks = []
        for record in records:
            categories = TextUtils.join_values(record.data_categories) or "Données nécessaires au traitement"
            record_blocks.append(
                f"### {record.name}\n"
                f"- **Finalité** : {record.purpose}\n"
                f"- **Base légale** : {record.legal_basis or 'Non spécifiée'}\n"
                f"- **Catégories de données** : {categories}\n"
                f"- **Durée de conservation** : {record.retention or 'Durée nécessaire aux finalités du traitement'}\n"
            )
        return f"""# POLITIQUE DE CONFIDENTIALITÉ

## 1. IDENTITÉ DU RESPONSABLE DE TRAITEMENT

**{company_name}**
Secteur d'activité : {company.sector or 'Non spécifié'}
Email : {company_email}

## 2. FINALITÉS DES TRAITEMENTS

Dans le cadre de nos activités, nous sommes amenés à traiter vos données personnelles pour les finalités suivantes :

{chr(10).join(record_blocks)}
## 3. DROITS DES PERSONNES

Conformément au RGPD, vous disposez des droits suivants :
- Droit d'accès à vos données personnelles
- Droit de rectification
- Droit à l'effacement ("droit à l'oubli")
- Droit à la limitation du traitement
- Droit à la portabilité des données
- Droit d'opposition

Pour exercer ces droits, contactez-nous à : {company_email}

## 4. SÉCURITÉ DES DONNÉES

Nous mettons en œuvre des mesures techniques et organisationnelles appropriées pour garantir la sécurité de vos données personnelles.

## 5. CONTACT

Pour toute question relative à cette politique de confidentialité ou à l'exercice de vos droits :
**{company_name}**
Email : {company_email}

---
*Document généré automatiquement - Version de base*
*Dernière mise à jour : {date.today().strftime('%d/%m/%Y')}*"""

    async def generate_privacy_policy(self, company: Company, records: List[ProcessingRecord]) -> Dict[str, str]:
        """
        Returns:
            {"content": markdown, "generated_by": "ai" | "template"}
        """
        try:
            content = await self.llm.generate_privacy_policy(company, records)
            return {"content": content, "generated_by": "ai"}
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(e, "privacy_policy_generation", str(company.id))
            log_warning("[LLM] Privacy policy generated from the base template")
            return {"content": self.build_policy_template(company, records), "generated_by": "template"}

    async def generate_action_plan(self, diagnostic_data: List[Dict[str, Any]], company: Company) -> Dict[str, Any]:
        try:
            return await self.llm.generate_action_plan(diagnostic_data, company)
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(e, "action_plan", str(company.id))
            raise AIServiceUnavailableError(ANALYSIS_UNAVAILABLE_MESSAGE) from e

    async def generate_processing_record(self, company: Company, processing_type: str, description: str) -> Dict[str, Any]:
        try:
            return await self.llm.generate_processing_record(company, processing_type, description)
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(e, "processing_record", str(company.id))
            raise AIServiceUnavailableError(GENERATION_UNAVAILABLE_MESSAGE) from e

    async def assess_dpia_requirement(self, record: ProcessingRecord) -> Dict[str, Any]:
        try:
            return await self.llm.assess_dpia_requirement(record)
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(e, "dpia_requirement", str(record.id))
            raise AIServiceUnavailableError(ANALYSIS_UNAVAILABLE_MESSAGE) from e

    async def assess_dpia(self, name: str, description: str, company: Company) -> Dict[str, Any]:
        try:
            return await self.llm.assess_dpia(name, description, company)
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(e, "dpia_assessment", str(company.id))
            raise AIServiceUnavailableError(ANALYSIS_UNAVAILABLE_MESSAGE) from e

    async def analyze_data_breach(self, breach_data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await self.llm.analyze_data_breach(breach_data)
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(e, "breach_analysis")
            raise AIServiceUnavailableError(BREACH_UNAVAILABLE_MESSAGE) from e

    async def generate_dpia_response(self, field: str, company: Company, context_text: str) -> str:
        try:
            return await self.llm.generate_dpia_response(field, company, context_text)
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(e, "dpia_generation", field)
            raise AIServiceUnavailableError(DPIA_UNAVAILABLE_MESSAGE) from e

    async def generate_risk_assessment(self, description: str, data_categories: Any,
                                       sector: Optional[str], size: Optional[str]) -> Dict[str, Dict[str, str]]:
        try:
            return await self.llm.generate_risk_assessment(description, data_categories, sector, size)
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(e, "risk_assessment")
            raise AIServiceUnavailableError(DPIA_UNAVAILABLE_MESSAGE) from e

    async def chatbot_response(self, message: str, company_context: Optional[Dict[str, Any]] = None) -> str:
        try:
            return await self.llm.chatbot_response(message, company_context)
        except Exception as e:
            SecurityAwareErrorHandler.log_processing_error(e, "chatbot")
            log_info("[LLM] Chatbot answered with the unavailability message")
            return CHATBOT_UNAVAILABLE_MESSAGE
