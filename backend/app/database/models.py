"""
SQLAlchemy ORM models of the compliance platform.

Every table is scoped to a company except the platform-level ones (users,
subscriptions, questions, prompts, LLM configurations, reference documents and
learning content). Timestamps are stored as naive UTC datetimes.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Declarative base with a JSON-friendly serializer."""

    def to_dict(self, exclude: Iterable[str] = ()) -> Dict[str, Any]:
        result = {}
        for attr in self.__mapper__.column_attrs:
            if attr.key in exclude:
                continue
            value = getattr(self, attr.key)
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            result[attr.key] = value
        return result


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    phone_number: Mapped[Optional[str]] = mapped_column(String(30))
    role: Mapped[str] = mapped_column(String(20), default="user", nullable=False)
    current_company_id: Mapped[Optional[int]] = mapped_column(Integer)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    def to_public_dict(self) -> Dict[str, Any]:
        return self.to_dict(exclude=("password_hash",))


class Subscription(TimestampMixin, Base):
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    plan_name: Mapped[str] = mapped_column(String(50), nullable=False)
    max_companies: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    monthly_price: Mapped[float] = mapped_column(Float, default=0.0)
    status: Mapped[str] = mapped_column(String(20), default="active")
    start_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime)


class Invoice(Base):
    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    subscription_id: Mapped[Optional[int]] = mapped_column(ForeignKey("subscriptions.id"))
    invoice_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    issued_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime)


# ---------------------------------------------------------------------------
# Companies and collaboration
# ---------------------------------------------------------------------------

class Company(TimestampMixin, Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sector: Mapped[Optional[str]] = mapped_column(String(100))
    size: Mapped[Optional[str]] = mapped_column(String(50))
    rcs_number: Mapped[Optional[str]] = mapped_column(String(50))
    address: Mapped[Optional[str]] = mapped_column(Text)
    phone: Mapped[Optional[str]] = mapped_column(String(30))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)


class UserCompanyAccess(Base):
    __tablename__ = "user_company_access"
    __table_args__ = (UniqueConstraint("user_id", "company_id", name="uq_user_company"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    permissions: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    invited_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"))
    invited_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    user: Mapped["User"] = relationship(foreign_keys=[user_id])
    company: Mapped["Company"] = relationship()


class Invitation(Base):
    __tablename__ = "invitations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    invited_by: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    permissions: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="collaborator", nullable=False)
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


# ---------------------------------------------------------------------------
# Diagnostic and actions
# ---------------------------------------------------------------------------

class DiagnosticQuestion(Base):
    __tablename__ = "diagnostic_questions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    action_plan_yes: Mapped[Optional[str]] = mapped_column(Text)
    risk_level_yes: Mapped[Optional[str]] = mapped_column(String(20))
    action_plan_no: Mapped[Optional[str]] = mapped_column(Text)
    risk_level_no: Mapped[Optional[str]] = mapped_column(String(20))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class DiagnosticResponse(Base):
    __tablename__ = "diagnostic_responses"
    __table_args__ = (UniqueConstraint("company_id", "question_id", name="uq_company_question"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    question_id: Mapped[int] = mapped_column(ForeignKey("diagnostic_questions.id"), nullable=False)
    response: Mapped[str] = mapped_column(String(10), nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    question: Mapped["DiagnosticQuestion"] = relationship()


class ComplianceSnapshot(Base):
    __tablename__ = "compliance_snapshots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    category_scores: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    total_questions: Mapped[int] = mapped_column(Integer, default=0)
    answered_questions: Mapped[int] = mapped_column(Integer, default=0)
    snapshot_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class ComplianceAction(TimestampMixin, Base):
    __tablename__ = "compliance_actions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    priority: Mapped[str] = mapped_column(String(20), default="normal", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="todo", nullable=False)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"))
    requires_approval: Mapped[bool] = mapped_column(Boolean, default=False)
    approved_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"))
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime)


class ActionComment(Base):
    __tablename__ = "action_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    action_id: Mapped[int] = mapped_column(ForeignKey("compliance_actions.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    mentioned_users: Mapped[List[int]] = mapped_column(JSON, default=list)
    is_internal: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class ActionActivity(Base):
    __tablename__ = "action_activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    action_id: Mapped[int] = mapped_column(ForeignKey("compliance_actions.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"))
    activity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    old_value: Mapped[Optional[str]] = mapped_column(Text)
    new_value: Mapped[Optional[str]] = mapped_column(Text)
    description: Mapped[Optional[str]] = mapped_column(Text)
    activity_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column("metadata", JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

class ProcessingRecord(Base):
    __tablename__ = "processing_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    purpose: Mapped[str] = mapped_column(Text, nullable=False)
    legal_basis: Mapped[Optional[str]] = mapped_column(String(100))
    data_categories: Mapped[List[str]] = mapped_column(JSON, default=list)
    recipients: Mapped[List[str]] = mapped_column(JSON, default=list)
    retention: Mapped[Optional[str]] = mapped_column(Text)
    security_measures: Mapped[List[str]] = mapped_column(JSON, default=list)
    transfers_outside_eu: Mapped[bool] = mapped_column(Boolean, default=False)
    type: Mapped[str] = mapped_column(String(30), default="controller", nullable=False)
    joint_controller_info: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    dpia_required: Mapped[Optional[bool]] = mapped_column(Boolean)
    dpia_justification: Mapped[Optional[str]] = mapped_column(Text)
    # Criteria of the EDPB guidelines on DPIA.
    has_scoring: Mapped[bool] = mapped_column(Boolean, default=False)
    has_automated_decision: Mapped[bool] = mapped_column(Boolean, default=False)
    has_systematic_monitoring: Mapped[bool] = mapped_column(Boolean, default=False)
    has_sensitive_data: Mapped[bool] = mapped_column(Boolean, default=False)
    has_large_scale: Mapped[bool] = mapped_column(Boolean, default=False)
    has_data_combination: Mapped[bool] = mapped_column(Boolean, default=False)
    has_vulnerable_persons: Mapped[bool] = mapped_column(Boolean, default=False)
    has_innovative_technology: Mapped[bool] = mapped_column(Boolean, default=False)
    prevents_rights_exercise: Mapped[bool] = mapped_column(Boolean, default=False)
    data_controller_name: Mapped[Optional[str]] = mapped_column(String(255))
    data_controller_address: Mapped[Optional[str]] = mapped_column(Text)
    data_controller_phone: Mapped[Optional[str]] = mapped_column(String(30))
    data_controller_email: Mapped[Optional[str]] = mapped_column(String(255))
    has_dpo: Mapped[bool] = mapped_column(Boolean, default=False)
    dpo_name: Mapped[Optional[str]] = mapped_column(String(255))
    dpo_phone: Mapped[Optional[str]] = mapped_column(String(30))
    dpo_email: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class SubprocessorRecord(TimestampMixin, Base):
    __tablename__ = "subprocessor_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_address: Mapped[Optional[str]] = mapped_column(Text)
    client_siret: Mapped[Optional[str]] = mapped_column(String(20))
    client_representative: Mapped[Optional[str]] = mapped_column(String(255))
    client_email: Mapped[Optional[str]] = mapped_column(String(255))
    subprocessor_name: Mapped[Optional[str]] = mapped_column(String(255))
    subprocessor_address: Mapped[Optional[str]] = mapped_column(Text)
    subprocessor_email: Mapped[Optional[str]] = mapped_column(String(255))
    processing_categories: Mapped[List[str]] = mapped_column(JSON, default=list)
    has_international_transfers: Mapped[bool] = mapped_column(Boolean, default=False)
    transfer_details: Mapped[Optional[str]] = mapped_column(Text)
    security_measures: Mapped[List[str]] = mapped_column(JSON, default=list)


class DataSubjectRequest(Base):
    __tablename__ = "data_subject_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    requester_id: Mapped[Optional[str]] = mapped_column(String(255))
    requester_email: Mapped[str] = mapped_column(String(255), nullable=False)
    request_type: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="new", nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    identity_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    due_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    extended: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class PrivacyPolicy(Base):
    __tablename__ = "privacy_policies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    generated_by: Mapped[str] = mapped_column(String(20), default="ai")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class DataBreach(TimestampMixin, Base):
    __tablename__ = "data_breaches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    incident_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    discovery_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    data_categories: Mapped[List[str]] = mapped_column(JSON, default=list)
    affected_persons: Mapped[Optional[int]] = mapped_column(Integer)
    circumstances: Mapped[Optional[str]] = mapped_column(Text)
    consequences: Mapped[Optional[str]] = mapped_column(Text)
    measures: Mapped[Optional[str]] = mapped_column(Text)
    comprehensive_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    notification_required: Mapped[Optional[bool]] = mapped_column(Boolean)
    notification_justification: Mapped[Optional[str]] = mapped_column(Text)
    data_subject_notification_required: Mapped[Optional[bool]] = mapped_column(Boolean)
    ai_recommendation_authority: Mapped[Optional[str]] = mapped_column(String(20))
    ai_recommendation_data_subject: Mapped[Optional[str]] = mapped_column(String(20))
    ai_justification: Mapped[Optional[str]] = mapped_column(Text)
    risk_analysis_result: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    notification_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    data_subject_notification_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)


# ---------------------------------------------------------------------------
# DPIA
# ---------------------------------------------------------------------------

class DpiaAssessment(TimestampMixin, Base):
    __tablename__ = "dpia_assessments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    processing_record_id: Mapped[int] = mapped_column(ForeignKey("processing_records.id"), nullable=False)
    general_description: Mapped[Optional[str]] = mapped_column(Text)
    processing_purposes: Mapped[Optional[str]] = mapped_column(Text)
    data_controller: Mapped[Optional[str]] = mapped_column(Text)
    data_processors: Mapped[Optional[str]] = mapped_column(Text)
    applicable_referentials: Mapped[Optional[str]] = mapped_column(Text)
    personal_data_processed: Mapped[Optional[str]] = mapped_column(Text)
    personal_data_categories: Mapped[Optional[List[Any]]] = mapped_column(JSON)
    data_minimization: Mapped[Optional[str]] = mapped_column(Text)
    retention_justification: Mapped[Optional[str]] = mapped_column(Text)
    finalities_justification: Mapped[Optional[str]] = mapped_column(Text)
    legal_basis_justification: Mapped[Optional[str]] = mapped_column(Text)
    legal_basis_type: Mapped[Optional[str]] = mapped_column(String(50))
    data_quality_justification: Mapped[Optional[str]] = mapped_column(Text)
    proportionality_evaluation: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    rights_information: Mapped[Optional[str]] = mapped_column(Text)
    rights_consent: Mapped[Optional[str]] = mapped_column(Text)
    rights_access: Mapped[Optional[str]] = mapped_column(Text)
    rights_rectification: Mapped[Optional[str]] = mapped_column(Text)
    rights_opposition: Mapped[Optional[str]] = mapped_column(Text)
    subcontracting_measures: Mapped[Optional[List[Any]]] = mapped_column(JSON)
    international_transfers_measures: Mapped[Optional[List[Any]]] = mapped_column(JSON)
    rights_protection_evaluation: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    security_measures: Mapped[Optional[List[Any]]] = mapped_column(JSON)
    custom_security_measures: Mapped[Optional[List[Any]]] = mapped_column(JSON)
    risk_scenarios: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    action_plan: Mapped[Optional[List[Any]]] = mapped_column(JSON)
    evaluation: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    dpo_advice: Mapped[Optional[str]] = mapped_column(Text)
    controller_validation: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)


class DpiaEvaluation(TimestampMixin, Base):
    __tablename__ = "dpia_evaluations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), nullable=False)
    record_id: Mapped[int] = mapped_column(ForeignKey("processing_records.id"), nullable=False)
    score: Mapped[int] = mapped_column(Integer, default=0)
    recommendation: Mapped[str] = mapped_column(String(20), nullable=False)
    justification: Mapped[Optional[str]] = mapped_column(Text)
    criteria_answers: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    cnil_list_match: Mapped[bool] = mapped_column(Boolean, default=False)
    large_scale_estimate: Mapped[Optional[str]] = mapped_column(String(100))


# ---------------------------------------------------------------------------
# AI administration
# ---------------------------------------------------------------------------

class AiPrompt(TimestampMixin, Base):
    __tablename__ = "ai_prompts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class LlmConfiguration(TimestampMixin, Base):
    __tablename__ = "llm_configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    api_endpoint: Mapped[Optional[str]] = mapped_column(String(500))
    api_key_name: Mapped[str] = mapped_column(String(100), nullable=False)
    model_name: Mapped[str] = mapped_column(String(100), nullable=False)
    max_tokens: Mapped[int] = mapped_column(Integer, default=4000)
    temperature: Mapped[str] = mapped_column(String(10), default="0.7")
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    supports_json_mode: Mapped[bool] = mapped_column(Boolean, default=False)


class RagDocument(Base):
    __tablename__ = "rag_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    uploaded_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"))
    category: Mapped[str] = mapped_column(String(50), default="general")
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class PromptDocument(Base):
    __tablename__ = "prompt_documents"
    __table_args__ = (UniqueConstraint("prompt_id", "document_id", name="uq_prompt_document"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    prompt_id: Mapped[int] = mapped_column(ForeignKey("ai_prompts.id", ondelete="CASCADE"), nullable=False)
    document_id: Mapped[int] = mapped_column(ForeignKey("rag_documents.id", ondelete="CASCADE"), nullable=False)
    # Lower values are injected first.
    priority: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    document: Mapped["RagDocument"] = relationship()


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"))
    company_id: Mapped[Optional[int]] = mapped_column(ForeignKey("companies.id"))
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[Optional[int]] = mapped_column(Integer)
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


# ---------------------------------------------------------------------------
# Learning
# ---------------------------------------------------------------------------

class LearningModule(Base):
    __tablename__ = "learning_modules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    difficulty: Mapped[str] = mapped_column(String(20), default="beginner")
    content: Mapped[Optional[str]] = mapped_column(Text)
    estimated_duration: Mapped[int] = mapped_column(Integer, default=10)
    xp_reward: Mapped[int] = mapped_column(Integer, default=50)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Achievement(Base):
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    icon: Mapped[Optional[str]] = mapped_column(String(50))
    category: Mapped[Optional[str]] = mapped_column(String(50))
    criteria: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    xp_required: Mapped[int] = mapped_column(Integer, default=0)
    is_secret: Mapped[bool] = mapped_column(Boolean, default=False)
    rarity: Mapped[str] = mapped_column(String(20), default="common")


class UserProgress(Base):
    __tablename__ = "user_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, nullable=False)
    total_xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_activity_date: Mapped[Optional[date]] = mapped_column(Date)


class ModuleProgress(Base):
    __tablename__ = "module_progress"
    __table_args__ = (UniqueConstraint("user_id", "module_id", name="uq_user_module"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    module_id: Mapped[int] = mapped_column(ForeignKey("learning_modules.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="in_progress", nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=0)
    time_spent: Mapped[int] = mapped_column(Integer, default=0)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)


class UserAchievement(Base):
    __tablename__ = "user_achievements"
    __table_args__ = (UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    achievement_id: Mapped[int] = mapped_column(ForeignKey("achievements.id"), nullable=False)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
