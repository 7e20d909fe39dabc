"""
DashboardService aggregates the compliance state of a company.

Each dashboard computation also records the day's compliance snapshot so
the score can be followed over time.
"""

from datetime import date
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import PRIORITY_RANK, RISK_SEVERITY
from backend.app.database.models import (
    ComplianceAction,
    ComplianceSnapshot,
    DataSubjectRequest,
    DiagnosticQuestion,
    DiagnosticResponse,
)
from backend.app.services.diagnostic_service import chosen_branch, is_yes
from backend.app.services.request_service import is_overdue
from backend.app.utils.logging.logger import log_debug

PRIORITY_ACTIONS_LIMIT = 5


def percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


class DashboardService:

    def __init__(self, db: Session):
        self.db = db

    def _category_scores(self, questions: List[DiagnosticQuestion],
                         responses: List[DiagnosticResponse]) -> Dict[str, Dict[str, int]]:
        by_question = {response.question_id: response for response in responses}
        scores = {}
        for question in questions:
            entry = scores.setdefault(question.category, {"total": 0, "answered": 0, "yes": 0})
            entry["total"] += 1
            response = by_question.get(question.id)
            if response is not None:
                entry["answered"] += 1
                entry["yes"] += int(is_yes(response.response))
        return {
            category: {
                "score": percent(entry["yes"], entry["answered"]),
                "total": entry["total"],
                "answered": entry["answered"],
            }
            for category, entry in scores.items()
        }

    @staticmethod
    def _risk_mapping(responses: List[DiagnosticResponse]) -> Dict[str, Dict[str, Any]]:
        """Highest risk level selected by the answers of each category."""
        mapping = {}
        for response in responses:
            question = response.question
            _, risk_level = chosen_branch(question, response.response)
            entry = mapping.setdefault(question.category, {"levels": [], "severity": None})
            if not risk_level:
                continue
            entry["levels"].append(risk_level)
            current = entry["severity"]
            if current is None or RISK_SEVERITY.get(risk_level, 0) > RISK_SEVERITY.get(current, 0):
                entry["severity"] = risk_level
        return mapping

    def _record_snapshot(self, company_id: int, overall: int, category_scores: Dict[str, Any],
                         total_questions: int, answered: int) -> None:
        today = date.today()
        snapshot = self.db.scalar(
            select(ComplianceSnapshot).where(
                ComplianceSnapshot.company_id == company_id,
                ComplianceSnapshot.snapshot_date == today,
            )
        )
        if snapshot is None:
            snapshot = ComplianceSnapshot(company_id=company_id, snapshot_date=today)
            self.db.add(snapshot)
        snapshot.overall_score = overall
        snapshot.category_scores = category_scores
        snapshot.total_questions = total_questions
        snapshot.answered_questions = answered
        self.db.commit()

    def get_dashboard(self, company_id: int) -> Dict[str, Any]:
        questions = list(self.db.scalars(
            select(DiagnosticQuestion).where(DiagnosticQuestion.is_active.is_(True)).order_by(DiagnosticQuestion.order)
        ))
        responses = list(self.db.scalars(
            select(DiagnosticResponse).where(DiagnosticResponse.company_id == company_id)
        ))
        actions = list(self.db.scalars(select(ComplianceAction).where(ComplianceAction.company_id == company_id)))
        requests = list(self.db.scalars(
            select(DataSubjectRequest).where(DataSubjectRequest.company_id == company_id)
        ))

        category_scores = self._category_scores(questions, responses)
        yes_count = sum(1 for response in responses if is_yes(response.response))
        overall = percent(yes_count, len(responses))
        open_actions = [action for action in actions if action.status != "completed"]
        priority_actions = sorted(
            open_actions,
            key=lambda action: (-PRIORITY_RANK.get(action.priority, 0), action.due_date is None, action.due_date),
        )[:PRIORITY_ACTIONS_LIMIT]

        if responses:
            self._record_snapshot(company_id, overall, category_scores, len(questions), len(responses))
        log_debug(f"[DASHBOARD] Company {company_id}: score {overall}, {len(open_actions)} open action(s)")

        return {
            "score": overall,
            "diagnostic_progress": percent(len(responses), max(len(questions), 1)),
            "total_questions": len(questions),
            "answered_questions": len(responses),
            "category_scores": category_scores,
            "risk_mapping": self._risk_mapping(responses),
            "actions": {
                "total": len(actions),
                "completed": sum(1 for action in actions if action.status == "completed"),
                "in_progress": sum(1 for action in actions if action.status == "inprogress"),
                "urgent": sum(1 for action in open_actions if action.priority == "urgent"),
            },
            "requests": {
                "pending": sum(1 for request in requests if request.status != "closed"),
                "overdue": sum(1 for request in requests if is_overdue(request)),
            },
            "priority_actions": [action.to_dict() for action in priority_actions],
        }

    def list_snapshots(self, company_id: int, limit: int = 12) -> List[ComplianceSnapshot]:
        return list(self.db.scalars(
            select(ComplianceSnapshot)
            .where(ComplianceSnapshot.company_id == company_id)
            .order_by(ComplianceSnapshot.snapshot_date.desc())
            .limit(limit)
        ))
