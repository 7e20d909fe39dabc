"""
Services package for the compliance features.

Each service wraps a database session for the duration of a request, applies
the business rules of its area and records the audit trail.
"""
from backend.app.services.action_service import ActionService
from backend.app.services.admin_service import AdminService
from backend.app.services.audit_service import AuditService
from backend.app.services.auth_service import AuthService
from backend.app.services.breach_service import BreachService
from backend.app.services.company_service import CompanyService
from backend.app.services.dashboard_service import DashboardService
from backend.app.services.diagnostic_service import DiagnosticService
from backend.app.services.dpia_service import DpiaService
from backend.app.services.learning_service import LearningService
from backend.app.services.llm_service import LlmFallbackService, LlmService
from backend.app.services.policy_service import PolicyService
from backend.app.services.rag_service import RagService
from backend.app.services.record_service import RecordService
from backend.app.services.request_service import RequestService
from backend.app.services.subprocessor_service import SubprocessorService

# Export classes
__all__ = [
    "ActionService",
    "AdminService",
    "AuditService",
    "AuthService",
    "BreachService",
    "CompanyService",
    "DashboardService",
    "DiagnosticService",
    "DpiaService",
    "LearningService",
    "LlmFallbackService",
    "LlmService",
    "PolicyService",
    "RagService",
    "RecordService",
    "RequestService",
    "SubprocessorService",
]
