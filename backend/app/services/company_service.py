"""
CompanyService manages companies and the collaborators who access them.

A user owns the companies they create, within the limit of their
subscription, and may invite other users with a chosen set of module
permissions. Invitation tokens are returned by the API; sending them by email
is left to the caller.
"""

import secrets
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.configs.config_singleton import get_config
from backend.app.configs.rgpd_config import COMPANY_ROLES, PERMISSION_ALL
from backend.app.database.models import (
    Company,
    Invitation,
    Subscription,
    User,
    UserCompanyAccess,
    utcnow,
)
from backend.app.services.audit_service import AuditService
from backend.app.utils.logging.logger import log_info, log_warning
from backend.app.utils.security.permissions import (
    SUPER_ADMIN_ROLE,
    can_invite,
    check_company_manager,
    check_company_member,
    effective_permissions,
    get_active_access,
    validate_permissions,
)
from backend.app.utils.system_utils.exceptions import (
    AccessDeniedError,
    BusinessRuleError,
    ConflictError,
    ResourceNotFoundError,
)

COMPANY_FIELDS = ("name", "sector", "size", "rcs_number", "address", "phone", "email")
INVITABLE_ROLES = ("admin", "collaborator")


class CompanyService:
    """Companies, accesses and invitations."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def get_company(self, company_id: int) -> Company:
        company = self.db.get(Company, company_id)
        if company is None:
            raise ResourceNotFoundError("Société introuvable")
        return company

    def create_company(self, user: User, data: Dict[str, Any]) -> Company:
        """
        Create a company owned by the user.

        Raises:
            BusinessRuleError: Without subscription, or when the plan's company limit is reached.
        """
        subscription = self.db.scalar(
            select(Subscription)
            .where(Subscription.user_id == user.id, Subscription.status == "active")
            .order_by(Subscription.start_date.desc())
        )
        if subscription is None:
            raise BusinessRuleError("Aucun abonnement actif")
        owned = self.db.scalar(
            select(func.count()).select_from(UserCompanyAccess).where(
                UserCompanyAccess.user_id == user.id,
                UserCompanyAccess.role == "owner",
                UserCompanyAccess.status == "active",
            )
        )
        if owned >= subscription.max_companies:
            log_warning(f"[COMPANY] User {user.id} reached the limit of {subscription.max_companies} companies")
            raise BusinessRuleError(
                f"Limite de {subscription.max_companies} sociétés atteinte pour votre abonnement"
            )

        company = Company(user_id=user.id, **{k: data.get(k) for k in COMPANY_FIELDS})
        self.db.add(company)
        self.db.flush()
        self.db.add(UserCompanyAccess(
            user_id=user.id,
            company_id=company.id,
            role="owner",
            permissions=[PERMISSION_ALL],
            status="active",
        ))
        if not user.current_company_id:
            user.current_company_id = company.id
        self.audit.record(user.id, company.id, "create", "company", company.id)
        self.db.commit()
        log_info(f"[COMPANY] Company {company.id} created by user {user.id}")
        return company

    def update_company(self, user: User, company_id: int, data: Dict[str, Any]) -> Company:
        check_company_manager(self.db, user, company_id)
        company = self.get_company(company_id)
        for field in COMPANY_FIELDS:
            if field in data and data[field] is not None:
                setattr(company, field, data[field])
        self.audit.record(user.id, company_id, "update", "company", company_id)
        self.db.commit()
        return company

    def switch_company(self, user: User, company_id: int) -> Company:
        if get_active_access(self.db, user.id, company_id) is None and user.role != SUPER_ADMIN_ROLE:
            raise AccessDeniedError()
        company = self.get_company(company_id)
        user.current_company_id = company.id
        self.db.commit()
        log_info(f"[COMPANY] User {user.id} switched to company {company_id}")
        return company

    def describe_company(self, user: User, company_id: int) -> Dict[str, Any]:
        """Company data plus the caller's role and effective permissions."""
        access = check_company_member(self.db, user, company_id)
        result = self.get_company(company_id).to_dict()
        result["role"] = access.role if access else None
        result["permissions"] = sorted(effective_permissions(access))
        return result

    def list_collaborators(self, user: User, company_id: int) -> Dict[str, Any]:
        check_company_manager(self.db, user, company_id)
        rows = self.db.execute(
            select(UserCompanyAccess, User)
            .join(User, User.id == UserCompanyAccess.user_id)
            .where(UserCompanyAccess.company_id == company_id, UserCompanyAccess.status != "revoked")
            .order_by(UserCompanyAccess.created_at)
        ).all()
        collaborators = []
        for access, member in rows:
            item = access.to_dict()
            item.update({
                "username": member.username,
                "email": member.email,
                "first_name": member.first_name,
                "last_name": member.last_name,
            })
            collaborators.append(item)
        invitations = self.db.scalars(
            select(Invitation).where(
                Invitation.company_id == company_id, Invitation.status == "pending"
            ).order_by(Invitation.created_at.desc())
        )
        return {
            "collaborators": collaborators,
            "pending_invitations": [
                invitation.to_dict(exclude=("token",)) for invitation in invitations
            ],
        }

    def invite(self, user: User, company_id: int, data: Dict[str, Any]) -> Invitation:
        """
        Invite a user by email with a role and a permission list.

        Raises:
            ResourceNotFoundError: If the company does not exist.
            AccessDeniedError: If the caller may not invite.
            BusinessRuleError: On unknown permission or role.
            ConflictError: If an invitation is already pending for this email.
        """
        access = get_active_access(self.db, user.id, company_id)
        if user.role != SUPER_ADMIN_ROLE and not can_invite(access):
            raise AccessDeniedError("Vous n'avez pas le droit d'inviter des collaborateurs")
        self.get_company(company_id)
        role = data.get("role") or "collaborator"
        if role not in INVITABLE_ROLES:
            raise BusinessRuleError(f"Rôle invalide: {role}")
        permissions = validate_permissions(data.get("permissions") or [])
        email = data["email"].strip().lower()

        pending = self.db.scalar(
            select(Invitation).where(
                Invitation.company_id == company_id,
                Invitation.email == email,
                Invitation.status == "pending",
                Invitation.expires_at > utcnow(),
            )
        )
        if pending is not None:
            raise ConflictError("Une invitation est déjà en attente pour cet email")

        invitation = Invitation(
            email=email,
            company_id=company_id,
            invited_by=user.id,
            permissions=permissions,
            role=role,
            token=secrets.token_hex(32),
            expires_at=utcnow() + timedelta(days=get_config("invitation_ttl_days", 7)),
            status="pending",
        )
        self.db.add(invitation)
        self.db.flush()
        self.audit.record(user.id, company_id, "invite", "invitation", invitation.id,
                          {"email": email, "role": role, "permissions": permissions})
        self.db.commit()
        log_info(f"[COMPANY] Invitation {invitation.id} created for company {company_id}")
        return invitation

    def accept_invitation(self, user: User, token: str) -> UserCompanyAccess:
        """
        Accept an invitation addressed to the authenticated user.

        Raises:
            ResourceNotFoundError: On unknown or already used token.
            AccessDeniedError: If the invitation targets another email.
            BusinessRuleError: If the invitation expired.
        """
        invitation = self.db.scalar(select(Invitation).where(Invitation.token == token))
        if invitation is None or invitation.status != "pending":
            raise ResourceNotFoundError("Invitation introuvable")
        if invitation.email != user.email.lower():
            raise AccessDeniedError("Cette invitation est destinée à une autre adresse email")
        if invitation.expires_at <= utcnow():
            invitation.status = "expired"
            self.db.commit()
            raise BusinessRuleError("Invitation expirée")

        access = self.db.scalar(
            select(UserCompanyAccess).where(
                UserCompanyAccess.user_id == user.id,
                UserCompanyAccess.company_id == invitation.company_id,
            )
        )
        if access is None:
            access = UserCompanyAccess(user_id=user.id, company_id=invitation.company_id)
            self.db.add(access)
        if access.role != "owner":
            access.role = invitation.role
            access.permissions = list(invitation.permissions or [])
        access.invited_by = invitation.invited_by
        access.invited_at = invitation.created_at
        access.status = "active"
        invitation.status = "accepted"
        if not user.current_company_id:
            user.current_company_id = invitation.company_id
        self.db.flush()
        self.audit.record(user.id, invitation.company_id, "accept", "invitation", invitation.id)
        self.db.commit()
        log_info(f"[COMPANY] User {user.id} joined company {invitation.company_id}")
        return access

    def _get_access(self, company_id: int, access_id: int) -> UserCompanyAccess:
        access = self.db.get(UserCompanyAccess, access_id)
        if access is None or access.company_id != company_id:
            raise ResourceNotFoundError("Accès introuvable")
        return access

    def update_access(self, user: User, company_id: int, access_id: int, data: Dict[str, Any]) -> UserCompanyAccess:
        check_company_manager(self.db, user, company_id)
        access = self._get_access(company_id, access_id)
        if access.role == "owner":
            raise BusinessRuleError("L'accès du propriétaire ne peut pas être modifié")
        role: Optional[str] = data.get("role")
        if role is not None:
            if role not in COMPANY_ROLES or role == "owner":
                raise BusinessRuleError(f"Rôle invalide: {role}")
            access.role = role
        if data.get("permissions") is not None:
            access.permissions = validate_permissions(data["permissions"])
        self.audit.record(user.id, company_id, "update", "access", access.id,
                          {"role": access.role, "permissions": access.permissions})
        self.db.commit()
        return access

    def revoke_access(self, user: User, company_id: int, access_id: int) -> UserCompanyAccess:
        check_company_manager(self.db, user, company_id)
        access = self._get_access(company_id, access_id)
        if access.role == "owner":
            raise BusinessRuleError("L'accès du propriétaire ne peut pas être révoqué")
        access.status = "revoked"
        self.audit.record(user.id, company_id, "revoke", "access", access.id)
        self.db.commit()
        log_info(f"[COMPANY] Access {access.id} revoked in company {company_id}")
        return access

    def list_user_companies(self, user: User) -> List[Company]:
        return list(self.db.scalars(
            select(Company)
            .join(UserCompanyAccess, UserCompanyAccess.company_id == Company.id)
            .where(UserCompanyAccess.user_id == user.id, UserCompanyAccess.status == "active")
            .order_by(Company.name)
        ))
