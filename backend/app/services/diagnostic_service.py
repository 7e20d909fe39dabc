"""
DiagnosticService runs the RGPD self-assessment questionnaire.

Each answer selects the action plan and the risk level configured on its
question for a "oui" or "non" answer. The analysis turns those plans into
compliance actions and computes a risk score capped at 100.
"""

from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import (
    ACTION_TITLE_PREFIX,
    DEFAULT_RISK_POINTS,
    MAX_RISK_SCORE,
    RISK_LEVELS,
    RISK_POINTS,
    RISK_TO_PRIORITY,
    YES_ANSWER,
    NO_ANSWER,
)
from backend.app.database.models import (
    ActionActivity,
    ComplianceAction,
    DiagnosticQuestion,
    DiagnosticResponse,
    User,
)
from backend.app.services.audit_service import AuditService
from backend.app.services.llm_service import LlmFallbackService
from backend.app.utils.logging.logger import log_info
from backend.app.utils.system_utils.exceptions import BusinessRuleError, ResourceNotFoundError

QUESTION_FIELDS = (
    "question", "category", "order", "is_active",
    "action_plan_yes", "risk_level_yes", "action_plan_no", "risk_level_no",
)
TITLE_EXCERPT_LENGTH = 50


def is_yes(response: str) -> bool:
    return (response or "").strip().lower() == YES_ANSWER


def chosen_branch(question: DiagnosticQuestion, response: str):
    """Return the (action_plan, risk_level) pair selected by an answer."""
    if is_yes(response):
        return question.action_plan_yes, question.risk_level_yes
    return question.action_plan_no, question.risk_level_no


def action_title(question: DiagnosticQuestion) -> str:
    return f"{ACTION_TITLE_PREFIX}{question.question[:TITLE_EXCERPT_LENGTH]}..."


class DiagnosticService:
    """Questions, answers and their analysis."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def list_questions(self, include_inactive: bool = False) -> List[DiagnosticQuestion]:
        query = select(DiagnosticQuestion).order_by(DiagnosticQuestion.order, DiagnosticQuestion.id)
        if not include_inactive:
            query = query.where(DiagnosticQuestion.is_active.is_(True))
        return list(self.db.scalars(query))

    def list_responses(self, company_id: int) -> List[DiagnosticResponse]:
        return list(self.db.scalars(
            select(DiagnosticResponse)
            .where(DiagnosticResponse.company_id == company_id)
            .order_by(DiagnosticResponse.question_id)
        ))

    def save_response(self, user: User, company_id: int, question_id: int, response: str) -> DiagnosticResponse:
        """
        Record the company's answer to a question, replacing a previous one.

        Raises:
            ResourceNotFoundError: If the question does not exist.
            BusinessRuleError: If the answer is neither "oui" nor "non".
        """
        normalized = (response or "").strip().lower()
        if normalized not in (YES_ANSWER, NO_ANSWER):
            raise BusinessRuleError("La réponse doit être 'oui' ou 'non'")
        question = self.db.get(DiagnosticQuestion, question_id)
        if question is None:
            raise ResourceNotFoundError("Question introuvable")

        existing = self.db.scalar(
            select(DiagnosticResponse).where(
                DiagnosticResponse.company_id == company_id,
                DiagnosticResponse.question_id == question_id,
            )
        )
        if existing is None:
            existing = DiagnosticResponse(company_id=company_id, question_id=question_id)
            self.db.add(existing)
        existing.response = normalized
        existing.score = 100 if normalized == YES_ANSWER else 0
        self.db.flush()
        self.audit.record(user.id, company_id, "answer", "diagnostic_response", existing.id,
                          {"question_id": question_id, "response": normalized})
        self.db.commit()
        return existing

    def analyze(self, user: User, company_id: int) -> Dict[str, Any]:
        """
        Turn the company's answers into compliance actions.

        Answers whose selected branch has no action plan are skipped. Actions
        already created with the same title are not duplicated.

        Returns:
            actions, overall_risk_score, risk_distribution, total_actions and summary.
        """
        responses = self.db.scalars(
            select(DiagnosticResponse)
            .where(DiagnosticResponse.company_id == company_id)
            .order_by(DiagnosticResponse.question_id)
        )
        existing_titles = set(self.db.scalars(
            select(ComplianceAction.title).where(ComplianceAction.company_id == company_id)
        ))

        actions = []
        overall_risk_score = 0
        risk_distribution = {level: 0 for level in RISK_LEVELS}
        for response in responses:
            question = response.question
            action_plan, risk_level = chosen_branch(question, response.response)
            if not action_plan or not action_plan.strip():
                continue
            overall_risk_score += RISK_POINTS.get(risk_level, DEFAULT_RISK_POINTS)
            if risk_level in risk_distribution:
                risk_distribution[risk_level] += 1
            action = {
                "title": action_title(question),
                "description": action_plan,
                "category": question.category,
                "priority": RISK_TO_PRIORITY.get(risk_level, "normal"),
                "risk_level": risk_level,
            }
            actions.append(action)
            if action["title"] in existing_titles:
                continue
            created = ComplianceAction(
                company_id=company_id,
                title=action["title"],
                description=action["description"],
                category=action["category"],
                priority=action["priority"],
                status="todo",
                created_by_id=user.id,
            )
            self.db.add(created)
            self.db.flush()
            self.db.add(ActionActivity(
                action_id=created.id,
                user_id=user.id,
                activity_type="created",
                new_value="todo",
                description="Action créée par l'analyse du diagnostic",
            ))
            existing_titles.add(action["title"])

        self.audit.record(user.id, company_id, "analyze", "diagnostic", None, {"actions": len(actions)})
        self.db.commit()
        log_info(f"[DIAGNOSTIC] Company {company_id} analysed: {len(actions)} action(s)")
        return {
            "actions": actions,
            "overall_risk_score": min(MAX_RISK_SCORE, overall_risk_score),
            "risk_distribution": risk_distribution,
            "total_actions": len(actions),
            "summary": f"Diagnostic terminé. {len(actions)} actions identifiées basées sur vos réponses.",
        }

    async def generate_ai_action_plan(self, company) -> Dict[str, Any]:
        """Ask the model for an action plan from the answers; nothing is stored."""
        diagnostic_data = [
            {
                "question": response.question.question,
                "category": response.question.category,
                "response": response.response,
            }
            for response in self.list_responses(company.id)
        ]
        if not diagnostic_data:
            raise BusinessRuleError("Aucune réponse au diagnostic")
        return await LlmFallbackService(self.db).generate_action_plan(diagnostic_data, company)

    # Administration of the questionnaire.

    def create_question(self, user: User, data: Dict[str, Any]) -> DiagnosticQuestion:
        question = DiagnosticQuestion(**{k: v for k, v in data.items() if k in QUESTION_FIELDS and v is not None})
        if question.order is None:
            last = self.db.scalar(select(DiagnosticQuestion.order).order_by(DiagnosticQuestion.order.desc()))
            question.order = (last or 0) + 1
        self.db.add(question)
        self.db.flush()
        self.audit.record(user.id, None, "create", "diagnostic_question", question.id)
        self.db.commit()
        return question

    def update_question(self, user: User, question_id: int, data: Dict[str, Any]) -> DiagnosticQuestion:
        question = self.db.get(DiagnosticQuestion, question_id)
        if question is None:
            raise ResourceNotFoundError("Question introuvable")
        for field in QUESTION_FIELDS:
            if field in data and data[field] is not None:
                setattr(question, field, data[field])
        self.audit.record(user.id, None, "update", "diagnostic_question", question.id)
        self.db.commit()
        return question

    def delete_question(self, user: User, question_id: int) -> Dict[str, Any]:
        """Delete a question, or deactivate it when companies answered it."""
        question = self.db.get(DiagnosticQuestion, question_id)
        if question is None:
            raise ResourceNotFoundError("Question introuvable")
        answered = self.db.scalar(
            select(DiagnosticResponse.id).where(DiagnosticResponse.question_id == question_id).limit(1)
        )
        if answered is not None:
            question.is_active = False
            outcome = "deactivated"
        else:
            self.db.delete(question)
            outcome = "deleted"
        self.audit.record(user.id, None, outcome, "diagnostic_question", question_id)
        self.db.commit()
        return {"id": question_id, "status": outcome}
