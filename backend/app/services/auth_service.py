"""
AuthService handles registration, login and the user's own profile.

Every new account receives the default subscription plan, which bounds the
number of companies the user may own.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import DEFAULT_MAX_COMPANIES, DEFAULT_PLAN_NAME
from backend.app.database.models import (
    Company,
    Invoice,
    Subscription,
    User,
    UserCompanyAccess,
    utcnow,
)
from backend.app.services.audit_service import AuditService
from backend.app.utils.logging.logger import log_info, log_warning
from backend.app.utils.security.passwords import hash_password, verify_password
from backend.app.utils.security.permissions import platform_permissions
from backend.app.utils.system_utils.exceptions import (
    AuthenticationError,
    BusinessRuleError,
    ConflictError,
    ResourceNotFoundError,
)

MIN_PASSWORD_LENGTH = 6
PROFILE_FIELDS = ("first_name", "last_name", "phone_number", "email")


class AuthService:
    """User accounts and credentials."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise AuthenticationError()
        return user

    def register(self, data: Dict[str, Any]) -> User:
        """
        Create an account with the default subscription.

        Raises:
            ConflictError: If the username or the email is already taken.
        """
        username = data["username"].strip()
        email = data["email"].strip().lower()
        existing = self.db.scalar(
            select(User).where(or_(User.username == username, User.email == email))
        )
        if existing is not None:
            log_warning("[AUTH] Registration refused: username or email already used")
            raise ConflictError("Nom d'utilisateur ou email déjà utilisé")
        if len(data["password"]) < MIN_PASSWORD_LENGTH:
            raise BusinessRuleError(f"Le mot de passe doit contenir au moins {MIN_PASSWORD_LENGTH} caractères")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(data["password"]),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            phone_number=data.get("phone_number"),
        )
        self.db.add(user)
        self.db.flush()
        self.db.add(Subscription(
            user_id=user.id,
            plan_name=DEFAULT_PLAN_NAME,
            max_companies=DEFAULT_MAX_COMPANIES,
        ))
        self.audit.record(user.id, None, "register", "user", user.id)
        self.db.commit()
        log_info(f"[AUTH] User {user.id} registered")
        return user

    def authenticate(self, username: str, password: str) -> User:
        """
        Check credentials and stamp the login time.

        The username field also accepts the email address.

        Raises:
            AuthenticationError: On unknown user or wrong password.
        """
        login = (username or "").strip()
        user = self.db.scalar(
            select(User).where(or_(User.username == login, User.email == login.lower()))
        )
        if user is None or not verify_password(password, user.password_hash):
            log_warning("[AUTH] Failed login attempt")
            raise AuthenticationError("Identifiants invalides")
        user.last_login_at = utcnow()
        self.db.commit()
        log_info(f"[AUTH] User {user.id} logged in")
        return user

    def describe(self, user: User) -> Dict[str, Any]:
        """Public user data with the effective platform permissions."""
        result = user.to_public_dict()
        result["permissions"] = platform_permissions(user.role)
        return result

    def update_profile(self, user: User, data: Dict[str, Any]) -> User:
        if data.get("email"):
            email = data["email"].strip().lower()
            taken = self.db.scalar(select(User).where(User.email == email, User.id != user.id))
            if taken is not None:
                raise ConflictError("Cet email est déjà utilisé")
            data["email"] = email
        for field in PROFILE_FIELDS:
            if field in data and data[field] is not None:
                setattr(user, field, data[field])
        self.audit.record(user.id, None, "update", "user", user.id, {"fields": sorted(data)})
        self.db.commit()
        return user

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise BusinessRuleError("Mot de passe actuel incorrect")
        if len(new_password or "") < MIN_PASSWORD_LENGTH:
            raise BusinessRuleError(f"Le mot de passe doit contenir au moins {MIN_PASSWORD_LENGTH} caractères")
        user.password_hash = hash_password(new_password)
        self.audit.record(user.id, None, "change_password", "user", user.id)
        self.db.commit()
        log_info(f"[AUTH] Password changed for user {user.id}")

    def get_subscription(self, user: User) -> Optional[Subscription]:
        return self.db.scalar(
            select(Subscription)
            .where(Subscription.user_id == user.id)
            .order_by(Subscription.start_date.desc(), Subscription.id.desc())
        )

    def get_subscription_or_404(self, user: User) -> Subscription:
        subscription = self.get_subscription(user)
        if subscription is None:
            raise ResourceNotFoundError("Aucun abonnement trouvé")
        return subscription

    def list_invoices(self, user: User) -> List[Invoice]:
        return list(self.db.scalars(
            select(Invoice).where(Invoice.user_id == user.id).order_by(Invoice.issued_at.desc())
        ))

    def list_company_accesses(self, user: User) -> List[Dict[str, Any]]:
        """Active accesses of the user, each with the company name."""
        rows = self.db.execute(
            select(UserCompanyAccess, Company)
            .join(Company, Company.id == UserCompanyAccess.company_id)
            .where(UserCompanyAccess.user_id == user.id, UserCompanyAccess.status == "active")
            .order_by(Company.name)
        ).all()
        result = []
        for access, company in rows:
            item = access.to_dict()
            item["company_name"] = company.name
            item["is_current"] = company.id == user.current_company_id
            result.append(item)
        return result
