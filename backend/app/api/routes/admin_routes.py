"""
Platform administration endpoints: the diagnostic questionnaire, AI prompts
and their reference documents, LLM configurations, learning modules and the
audit trail.

Every endpoint requires a platform permission derived from the user role.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import require_platform_permission
from backend.app.api.models import (
    LearningModuleCreate,
    LlmConfigPayload,
    PromptCreate,
    PromptDocumentLink,
    PromptUpdate,
    QuestionCreate,
    QuestionUpdate,
)
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.admin_service import AdminService
from backend.app.services.audit_service import AuditService
from backend.app.services.diagnostic_service import DiagnosticService
from backend.app.services.learning_service import LearningService

router = APIRouter()

# Extracted text can be large, listings only carry the metadata.
DOCUMENT_LIST_EXCLUDE = ("content",)


# Diagnostic questionnaire

@router.post("/questions")
async def create_question(request: Request, payload: QuestionCreate,
                          user: User = Depends(require_platform_permission("manage:settings")),
                          db: Session = Depends(get_db)) -> JSONResponse:
    try:
        question = DiagnosticService(db).create_question(user, payload.model_dump())
        return json_response(question.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_question", request)


@router.put("/questions/{question_id}")
async def update_question(request: Request, question_id: int, payload: QuestionUpdate,
                          user: User = Depends(require_platform_permission("manage:settings")),
                          db: Session = Depends(get_db)) -> JSONResponse:
    try:
        question = DiagnosticService(db).update_question(user, question_id, payload.model_dump(exclude_unset=True))
        return json_response(question.to_dict())
    except Exception as e:
        return error_response(e, "api_update_question", request)


@router.delete("/questions/{question_id}")
async def delete_question(request: Request, question_id: int,
                          user: User = Depends(require_platform_permission("manage:settings")),
                          db: Session = Depends(get_db)) -> JSONResponse:
    """
    Delete a question. A question companies already answered is deactivated
    instead, so that their scores are kept.
    """
    try:
        return json_response(DiagnosticService(db).delete_question(user, question_id))
    except Exception as e:
        return error_response(e, "api_delete_question", request)


# Prompts

@router.get("/prompts")
async def list_prompts(request: Request, category: Optional[str] = Query(None),
                       user: User = Depends(require_platform_permission("manage:prompts")),
                       db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([prompt.to_dict() for prompt in AdminService(db).list_prompts(category)])
    except Exception as e:
        return error_response(e, "api_list_prompts", request)


@router.post("/prompts")
async def create_prompt(request: Request, payload: PromptCreate,
                        user: User = Depends(require_platform_permission("manage:prompts")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        prompt = AdminService(db).create_prompt(user, payload.model_dump())
        return json_response(prompt.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_prompt", request)


@router.put("/prompts/{prompt_id}")
async def update_prompt(request: Request, prompt_id: int, payload: PromptUpdate,
                        user: User = Depends(require_platform_permission("manage:prompts")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        prompt = AdminService(db).update_prompt(user, prompt_id, payload.model_dump(exclude_unset=True))
        return json_response(prompt.to_dict())
    except Exception as e:
        return error_response(e, "api_update_prompt", request)


@router.get("/prompts/{prompt_id}/documents")
async def list_prompt_documents(request: Request, prompt_id: int,
                                user: User = Depends(require_platform_permission("manage:prompts")),
                                db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(AdminService(db).list_prompt_documents(prompt_id))
    except Exception as e:
        return error_response(e, "api_list_prompt_documents", request)


@router.post("/prompts/{prompt_id}/documents")
async def link_prompt_document(request: Request, prompt_id: int, payload: PromptDocumentLink,
                               user: User = Depends(require_platform_permission("manage:prompts")),
                               db: Session = Depends(get_db)) -> JSONResponse:
    try:
        link = AdminService(db).link_document(user, prompt_id, payload.document_id, payload.priority)
        return json_response(link.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_link_prompt_document", request)


@router.delete("/prompts/{prompt_id}/documents/{document_id}")
async def unlink_prompt_document(request: Request, prompt_id: int, document_id: int,
                                 user: User = Depends(require_platform_permission("manage:prompts")),
                                 db: Session = Depends(get_db)) -> JSONResponse:
    try:
        AdminService(db).unlink_document(user, prompt_id, document_id)
        return json_response({"status": "success", "prompt_id": prompt_id, "document_id": document_id})
    except Exception as e:
        return error_response(e, "api_unlink_prompt_document", request)


# LLM configurations

@router.get("/llm-configs")
async def list_llm_configs(request: Request,
                           user: User = Depends(require_platform_permission("manage:settings")),
                           db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([config.to_dict() for config in AdminService(db).list_llm_configs()])
    except Exception as e:
        return error_response(e, "api_list_llm_configs", request)


@router.post("/llm-configs")
async def create_llm_config(request: Request, payload: LlmConfigPayload,
                            user: User = Depends(require_platform_permission("manage:settings")),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        config = AdminService(db).create_llm_config(user, payload.model_dump(exclude_none=True))
        return json_response(config.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_llm_config", request)


@router.put("/llm-configs/{config_id}")
async def update_llm_config(request: Request, config_id: int, payload: LlmConfigPayload,
                            user: User = Depends(require_platform_permission("manage:settings")),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        config = AdminService(db).update_llm_config(user, config_id, payload.model_dump(exclude_unset=True))
        return json_response(config.to_dict())
    except Exception as e:
        return error_response(e, "api_update_llm_config", request)


@router.delete("/llm-configs/{config_id}")
async def delete_llm_config(request: Request, config_id: int,
                            user: User = Depends(require_platform_permission("manage:settings")),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        AdminService(db).delete_llm_config(user, config_id)
        return json_response({"status": "success", "id": config_id})
    except Exception as e:
        return error_response(e, "api_delete_llm_config", request)


# Reference documents

@router.get("/documents")
async def list_documents(request: Request, category: Optional[str] = Query(None),
                         user: User = Depends(require_platform_permission("manage:documents")),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        documents = AdminService(db).list_documents(category)
        return json_response([document.to_dict(exclude=DOCUMENT_LIST_EXCLUDE) for document in documents])
    except Exception as e:
        return error_response(e, "api_list_documents", request)


@router.post("/documents")
async def upload_document(
        request: Request,
        file: UploadFile = File(...),
        name: Optional[str] = Form(None),
        category: Optional[str] = Form(None),
        tags: Optional[str] = Form(None),
        user: User = Depends(require_platform_permission("manage:documents")),
        db: Session = Depends(get_db),
) -> JSONResponse:
    """
    Upload a PDF or plain text reference document.

    Args:
        file: The document; extension, magic bytes and size are checked.
        name: Display name, the filename when omitted.
        category: Free category label, "general" when omitted.
        tags: Comma-separated tags.
    """
    try:
        tag_list = [tag.strip() for tag in tags.split(",")] if tags else []
        document = await AdminService(db).upload_document(user, file, name, category, tag_list)
        return json_response(document.to_dict(exclude=DOCUMENT_LIST_EXCLUDE), status_code=201)
    except Exception as e:
        return error_response(e, "api_upload_document", request)


@router.get("/documents/{document_id}")
async def get_document(request: Request, document_id: int,
                       user: User = Depends(require_platform_permission("manage:documents")),
                       db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(AdminService(db).get_document(document_id).to_dict())
    except Exception as e:
        return error_response(e, "api_get_document", request)


@router.delete("/documents/{document_id}")
async def delete_document(request: Request, document_id: int,
                          user: User = Depends(require_platform_permission("manage:documents")),
                          db: Session = Depends(get_db)) -> JSONResponse:
    try:
        AdminService(db).delete_document(user, document_id)
        return json_response({"status": "success", "id": document_id})
    except Exception as e:
        return error_response(e, "api_delete_document", request)


# Learning modules and audit

@router.post("/learning/modules")
async def create_learning_module(request: Request, payload: LearningModuleCreate,
                                 user: User = Depends(require_platform_permission("manage:settings")),
                                 db: Session = Depends(get_db)) -> JSONResponse:
    try:
        module = LearningService(db).create_module(user, payload.model_dump())
        return json_response(module.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_learning_module", request)


@router.get("/audit-logs")
async def list_audit_logs(request: Request, company_id: Optional[int] = Query(None),
                          limit: int = Query(100, ge=1, le=1000),
                          user: User = Depends(require_platform_permission("view:logs")),
                          db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([entry.to_dict() for entry in AuditService(db).list_logs(company_id, limit)])
    except Exception as e:
        return error_response(e, "api_list_audit_logs", request)
