"""
API models for the compliance endpoints.

This module contains Pydantic models for API request validation. Responses are
plain dicts built from the ORM models.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StatusResponse(BaseModel):
    """Response model for status endpoint."""
    status: str
    timestamp: float
    api_version: str


# Authentication and profile

class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=100)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=6)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


# Companies and collaboration

class CompanyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    sector: Optional[str] = None
    size: Optional[str] = None
    rcs_number: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    sector: Optional[str] = None
    size: Optional[str] = None
    rcs_number: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class InvitationCreate(BaseModel):
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    role: str = "collaborator"
    permissions: List[str] = Field(default_factory=list)


class AccessUpdate(BaseModel):
    role: Optional[str] = None
    permissions: Optional[List[str]] = None


# Diagnostic and actions

class DiagnosticAnswer(BaseModel):
    question_id: int
    response: str


class QuestionCreate(BaseModel):
    question: str = Field(min_length=1)
    category: str = Field(min_length=1)
    order: Optional[int] = None
    is_active: Optional[bool] = True
    action_plan_yes: Optional[str] = None
    risk_level_yes: Optional[str] = None
    action_plan_no: Optional[str] = None
    risk_level_no: Optional[str] = None


class QuestionUpdate(BaseModel):
    question: Optional[str] = None
    category: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None
    action_plan_yes: Optional[str] = None
    risk_level_yes: Optional[str] = None
    action_plan_no: Optional[str] = None
    risk_level_no: Optional[str] = None


class ActionCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = "normal"
    status: Optional[str] = "todo"
    due_date: Optional[str] = None
    requires_approval: bool = False


class ActionUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[str] = None
    requires_approval: Optional[bool] = None


class CommentCreate(BaseModel):
    content: str = Field(min_length=1)
    mentioned_users: List[int] = Field(default_factory=list)
    is_internal: bool = False


# Processing records

class ProcessingRecordBase(BaseModel):
    legal_basis: Optional[str] = None
    data_categories: Optional[List[str]] = None
    recipients: Optional[List[str]] = None
    retention: Optional[str] = None
    security_measures: Optional[List[str]] = None
    transfers_outside_eu: Optional[bool] = None
    type: Optional[str] = None
    joint_controller_info: Optional[Dict[str, Any]] = None
    dpia_required: Optional[bool] = None
    dpia_justification: Optional[str] = None
    has_scoring: Optional[bool] = None
    has_automated_decision: Optional[bool] = None
    has_systematic_monitoring: Optional[bool] = None
    has_sensitive_data: Optional[bool] = None
    has_large_scale: Optional[bool] = None
    has_data_combination: Optional[bool] = None
    has_vulnerable_persons: Optional[bool] = None
    has_innovative_technology: Optional[bool] = None
    prevents_rights_exercise: Optional[bool] = None
    data_controller_name: Optional[str] = None
    data_controller_address: Optional[str] = None
    data_controller_phone: Optional[str] = None
    data_controller_email: Optional[str] = None
    has_dpo: Optional[bool] = None
    dpo_name: Optional[str] = None
    dpo_phone: Optional[str] = None
    dpo_email: Optional[str] = None


class ProcessingRecordCreate(ProcessingRecordBase):
    name: str = Field(min_length=1, max_length=255)
    purpose: str = Field(min_length=1)


class ProcessingRecordUpdate(ProcessingRecordBase):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    purpose: Optional[str] = Field(default=None, min_length=1)


class RecordGenerationRequest(BaseModel):
    processing_type: str = "controller"
    description: str = Field(min_length=1)


class SubprocessorPayload(BaseModel):
    client_name: Optional[str] = None
    client_address: Optional[str] = None
    client_siret: Optional[str] = None
    client_representative: Optional[str] = None
    client_email: Optional[str] = None
    subprocessor_name: Optional[str] = None
    subprocessor_address: Optional[str] = None
    subprocessor_email: Optional[str] = None
    processing_categories: Optional[List[str]] = None
    has_international_transfers: Optional[bool] = None
    transfer_details: Optional[str] = None
    security_measures: Optional[List[str]] = None


# Data subject requests

class RequestCreate(BaseModel):
    # Extra fields such as a client-side due_date are dropped.
    model_config = ConfigDict(extra="ignore")

    requester_id: Optional[str] = None
    requester_email: str = Field(min_length=3)
    request_type: str
    status: Optional[str] = "new"
    description: Optional[str] = None
    identity_verified: bool = False


class RequestUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    requester_id: Optional[str] = None
    requester_email: Optional[str] = None
    request_type: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None
    identity_verified: Optional[bool] = None


# Breaches

class BreachPayload(BaseModel):
    description: Optional[str] = None
    incident_date: Optional[str] = None
    discovery_date: Optional[str] = None
    data_categories: Optional[List[str]] = None
    affected_persons: Optional[int] = Field(default=None, ge=0)
    circumstances: Optional[str] = None
    consequences: Optional[str] = None
    measures: Optional[str] = None
    comprehensive_data: Optional[Dict[str, Any]] = None
    notification_required: Optional[bool] = None
    notification_justification: Optional[str] = None
    data_subject_notification_required: Optional[bool] = None
    notification_date: Optional[str] = None
    data_subject_notification_date: Optional[str] = None
    status: Optional[str] = None


class BreachReportRequest(BaseModel):
    notify_data_subjects: bool = False


# DPIA

class DpiaPayload(BaseModel):
    processing_record_id: Optional[int] = None
    general_description: Optional[str] = None
    processing_purposes: Optional[str] = None
    data_controller: Optional[str] = None
    data_processors: Optional[str] = None
    applicable_referentials: Optional[str] = None
    personal_data_processed: Optional[str] = None
    personal_data_categories: Optional[List[Any]] = None
    data_minimization: Optional[str] = None
    retention_justification: Optional[str] = None
    finalities_justification: Optional[str] = None
    legal_basis_justification: Optional[str] = None
    legal_basis_type: Optional[str] = None
    data_quality_justification: Optional[str] = None
    proportionality_evaluation: Optional[Dict[str, Any]] = None
    rights_information: Optional[str] = None
    rights_consent: Optional[str] = None
    rights_access: Optional[str] = None
    rights_rectification: Optional[str] = None
    rights_opposition: Optional[str] = None
    subcontracting_measures: Optional[List[Any]] = None
    international_transfers_measures: Optional[List[Any]] = None
    rights_protection_evaluation: Optional[Dict[str, Any]] = None
    security_measures: Optional[List[Any]] = None
    custom_security_measures: Optional[List[Any]] = None
    risk_scenarios: Optional[Dict[str, Any]] = None
    action_plan: Optional[List[Any]] = None
    evaluation: Optional[Dict[str, Any]] = None
    dpo_advice: Optional[str] = None
    controller_validation: Optional[str] = None
    status: Optional[str] = None


class DpiaAssistRequest(BaseModel):
    field: str = Field(min_length=1)
    dpia_id: Optional[int] = None
    existing_data: Dict[str, Any] = Field(default_factory=dict)


class DpiaAssessRequest(BaseModel):
    processing_record_id: int
    processing_name: Optional[str] = None
    processing_description: Optional[str] = None


class DpiaEvaluationPayload(BaseModel):
    record_id: Optional[int] = None
    justification: Optional[str] = None
    criteria_answers: Optional[Dict[str, Any]] = None
    cnil_list_match: Optional[bool] = None
    large_scale_estimate: Optional[str] = None


# Chatbot and learning

class ChatbotRequest(BaseModel):
    message: str = Field(min_length=1, max_length=4000)
    company_id: Optional[int] = None


class LearningProgressUpdate(BaseModel):
    module_id: int
    progress: int = Field(ge=0, le=100)
    time_spent: int = Field(default=0, ge=0)


class LearningModuleCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    category: str = Field(min_length=1)
    difficulty: Optional[str] = "beginner"
    content: Optional[str] = None
    estimated_duration: Optional[int] = 10
    xp_reward: Optional[int] = Field(default=50, ge=0)
    is_active: Optional[bool] = True


# Administration

class PromptCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category: str
    prompt: str = Field(min_length=1)
    is_active: bool = True


class PromptUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    prompt: Optional[str] = None
    is_active: Optional[bool] = None


class PromptDocumentLink(BaseModel):
    document_id: int
    priority: int = Field(default=1, ge=0)


class LlmConfigPayload(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    name: Optional[str] = None
    provider: Optional[str] = None
    api_endpoint: Optional[str] = None
    api_key_name: Optional[str] = None
    model_name: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, gt=0)
    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    is_active: Optional[bool] = None
    supports_json_mode: Optional[bool] = None
