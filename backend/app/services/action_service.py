"""
ActionService manages the compliance action plan of a company.

Every change to an action is traced in its activity feed; comments may
mention members of the company.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import ACTION_PRIORITIES, ACTION_STATUSES
from backend.app.database.models import (
    ActionActivity,
    ActionComment,
    ComplianceAction,
    User,
    UserCompanyAccess,
    utcnow,
)
from backend.app.services.audit_service import AuditService
from backend.app.utils.helpers.json_helper import parse_iso_datetime
from backend.app.utils.logging.logger import log_info
from backend.app.utils.security.permissions import check_company_manager
from backend.app.utils.system_utils.exceptions import (
    AccessDeniedError,
    BusinessRuleError,
    ResourceNotFoundError,
)

EDITABLE_FIELDS = ("title", "description", "category", "priority", "status", "due_date", "requires_approval")


class ActionService:
    """Compliance actions, their comments and activity."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def list_actions(self, company_id: int) -> List[ComplianceAction]:
        return list(self.db.scalars(
            select(ComplianceAction)
            .where(ComplianceAction.company_id == company_id)
            .order_by(ComplianceAction.created_at.desc(), ComplianceAction.id.desc())
        ))

    def get_action(self, company_id: int, action_id: int) -> ComplianceAction:
        action = self.db.get(ComplianceAction, action_id)
        if action is None or action.company_id != company_id:
            raise ResourceNotFoundError("Action introuvable")
        return action

    def _log_activity(self, action: ComplianceAction, user: User, activity_type: str,
                      old_value: Optional[str] = None, new_value: Optional[str] = None,
                      description: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.db.add(ActionActivity(
            action_id=action.id,
            user_id=user.id,
            activity_type=activity_type,
            old_value=old_value,
            new_value=new_value,
            description=description,
            activity_metadata=metadata,
        ))

    @staticmethod
    def _validate(data: Dict[str, Any]) -> None:
        if data.get("priority") is not None and data["priority"] not in ACTION_PRIORITIES:
            raise BusinessRuleError(f"Priorité invalide: {data['priority']}")
        if data.get("status") is not None and data["status"] not in ACTION_STATUSES:
            raise BusinessRuleError(f"Statut invalide: {data['status']}")

    def create_action(self, user: User, company_id: int, data: Dict[str, Any]) -> ComplianceAction:
        self._validate(data)
        if not (data.get("title") or "").strip():
            raise BusinessRuleError("Le titre de l'action est obligatoire")
        action = ComplianceAction(
            company_id=company_id,
            title=data["title"].strip(),
            description=data.get("description"),
            category=data.get("category"),
            priority=data.get("priority") or "normal",
            status=data.get("status") or "todo",
            due_date=parse_iso_datetime(data.get("due_date"), "due_date"),
            requires_approval=bool(data.get("requires_approval")),
            created_by_id=user.id,
        )
        if action.status == "completed":
            action.completed_at = utcnow()
        self.db.add(action)
        self.db.flush()
        self._log_activity(action, user, "created", new_value=action.status, description=action.title)
        self.audit.record(user.id, company_id, "create", "compliance_action", action.id)
        self.db.commit()
        return action

    def _is_manager(self, user: User, company_id: int) -> bool:
        try:
            check_company_manager(self.db, user, company_id)
        except AccessDeniedError:
            return False
        return True

    def update_action(self, user: User, company_id: int, action_id: int, data: Dict[str, Any]) -> ComplianceAction:
        """
        Apply a partial update.

        Raises:
            AccessDeniedError: If an action requiring approval is completed by a non-manager.
        """
        self._validate(data)
        action = self.get_action(company_id, action_id)
        changes = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
        if "due_date" in changes:
            changes["due_date"] = parse_iso_datetime(changes["due_date"], "due_date")

        new_status = changes.get("status")
        requires_approval = changes.get("requires_approval", action.requires_approval)
        if (new_status == "completed" and action.status != "completed" and requires_approval
                and not self._is_manager(user, company_id)):
            raise AccessDeniedError("Cette action doit être validée par un administrateur")

        old_status = action.status
        for field, value in changes.items():
            if field in ("title", "status", "priority") and value is None:
                continue
            setattr(action, field, value)

        if new_status and new_status != old_status:
            if new_status == "completed":
                action.completed_at = utcnow()
            elif old_status == "completed":
                action.completed_at = None
            self._log_activity(action, user, "status_changed", old_value=old_status, new_value=new_status)
        elif changes:
            self._log_activity(action, user, "updated", metadata={"fields": sorted(changes)})
        self.audit.record(user.id, company_id, "update", "compliance_action", action.id, {"fields": sorted(changes)})
        self.db.commit()
        return action

    def approve_action(self, user: User, company_id: int, action_id: int) -> ComplianceAction:
        check_company_manager(self.db, user, company_id)
        action = self.get_action(company_id, action_id)
        action.approved_by_id = user.id
        action.approved_at = utcnow()
        self._log_activity(action, user, "approved")
        self.audit.record(user.id, company_id, "approve", "compliance_action", action.id)
        self.db.commit()
        log_info(f"[ACTIONS] Action {action.id} approved by user {user.id}")
        return action

    def delete_action(self, user: User, company_id: int, action_id: int) -> None:
        action = self.get_action(company_id, action_id)
        for model in (ActionComment, ActionActivity):
            for row in self.db.scalars(select(model).where(model.action_id == action.id)):
                self.db.delete(row)
        self.db.delete(action)
        self.audit.record(user.id, company_id, "delete", "compliance_action", action_id)
        self.db.commit()

    def list_comments(self, company_id: int, action_id: int) -> List[ActionComment]:
        self.get_action(company_id, action_id)
        return list(self.db.scalars(
            select(ActionComment).where(ActionComment.action_id == action_id).order_by(ActionComment.created_at)
        ))

    def add_comment(self, user: User, company_id: int, action_id: int, data: Dict[str, Any]) -> ActionComment:
        """
        Comment an action.

        Raises:
            BusinessRuleError: If the content is empty or a mentioned user is not a member of the company.
        """
        action = self.get_action(company_id, action_id)
        content = (data.get("content") or "").strip()
        if not content:
            raise BusinessRuleError("Le commentaire ne peut pas être vide")
        mentioned = sorted(set(data.get("mentioned_users") or []))
        if mentioned:
            members = set(self.db.scalars(
                select(UserCompanyAccess.user_id).where(
                    UserCompanyAccess.company_id == company_id,
                    UserCompanyAccess.status == "active",
                    UserCompanyAccess.user_id.in_(mentioned),
                )
            ))
            if len(members) != len(mentioned):
                raise BusinessRuleError("Les utilisateurs mentionnés doivent appartenir à la société")
        comment = ActionComment(
            action_id=action.id,
            user_id=user.id,
            content=content,
            mentioned_users=mentioned,
            is_internal=bool(data.get("is_internal")),
        )
        self.db.add(comment)
        self.db.flush()
        self._log_activity(action, user, "commented", metadata={"comment_id": comment.id})
        self.db.commit()
        return comment

    def list_activity(self, company_id: int, action_id: int) -> List[ActionActivity]:
        self.get_action(company_id, action_id)
        return list(self.db.scalars(
            select(ActionActivity)
            .where(ActionActivity.action_id == action_id)
            .order_by(ActionActivity.created_at.desc(), ActionActivity.id.desc())
        ))
