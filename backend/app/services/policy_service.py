"""
PolicyService generates and versions the privacy policy of a company.

Only one version is active at a time.
"""

from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from backend.app.database.models import Company, PrivacyPolicy, ProcessingRecord, User
from backend.app.services.audit_service import AuditService
from backend.app.services.llm_service import LlmFallbackService
from backend.app.utils.logging.logger import log_info
from backend.app.utils.system_utils.exceptions import ResourceNotFoundError


class PolicyService:

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def list_policies(self, company_id: int) -> List[PrivacyPolicy]:
        return list(self.db.scalars(
            select(PrivacyPolicy)
            .where(PrivacyPolicy.company_id == company_id)
            .order_by(PrivacyPolicy.version.desc())
        ))

    def get_active(self, company_id: int) -> PrivacyPolicy:
        policy = self.db.scalar(
            select(PrivacyPolicy).where(PrivacyPolicy.company_id == company_id, PrivacyPolicy.is_active.is_(True))
        )
        if policy is None:
            raise ResourceNotFoundError("Aucune politique de confidentialité active")
        return policy

    def _deactivate_all(self, company_id: int) -> None:
        self.db.execute(
            update(PrivacyPolicy).where(PrivacyPolicy.company_id == company_id).values(is_active=False)
        )

    async def generate(self, user: User, company: Company) -> PrivacyPolicy:
        """
        Generate a new version from the company's processing records.

        The model's answer is used when available, the base template otherwise;
        the new version becomes the active one.
        """
        records = list(self.db.scalars(
            select(ProcessingRecord).where(ProcessingRecord.company_id == company.id).order_by(ProcessingRecord.id)
        ))
        generated = await LlmFallbackService(self.db).generate_privacy_policy(company, records)
        last_version = self.db.scalar(
            select(func.max(PrivacyPolicy.version)).where(PrivacyPolicy.company_id == company.id)
        )
        self._deactivate_all(company.id)
        policy = PrivacyPolicy(
            company_id=company.id,
            content=generated["content"],
            version=(last_version or 0) + 1,
            is_active=True,
            generated_by=generated["generated_by"],
        )
        self.db.add(policy)
        self.db.flush()
        self.audit.record(user.id, company.id, "generate", "privacy_policy", policy.id,
                          {"version": policy.version, "generated_by": policy.generated_by})
        self.db.commit()
        log_info(f"[POLICY] Version {policy.version} generated for company {company.id} ({policy.generated_by})")
        return policy

    def activate(self, user: User, company_id: int, policy_id: int) -> PrivacyPolicy:
        policy = self.db.get(PrivacyPolicy, policy_id)
        if policy is None or policy.company_id != company_id:
            raise ResourceNotFoundError("Politique de confidentialité introuvable")
        self._deactivate_all(company_id)
        policy.is_active = True
        self.audit.record(user.id, company_id, "activate", "privacy_policy", policy.id)
        self.db.commit()
        self.db.refresh(policy)
        return policy
