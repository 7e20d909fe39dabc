"""
AdminService manages the platform-level AI settings: prompts per feature,
LLM configurations, and the reference documents injected into prompts.
"""

from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import PROMPT_CATEGORIES
from backend.app.database.models import AiPrompt, LlmConfiguration, PromptDocument, RagDocument, User
from backend.app.document_processing.pdf_extractor import extract_document_text
from backend.app.services.audit_service import AuditService
from backend.app.utils.constant.constant import EXTENSION_TO_MIME
from backend.app.utils.logging.logger import log_info
from backend.app.utils.system_utils.exceptions import BusinessRuleError, ConflictError, ResourceNotFoundError
from backend.app.utils.validation.file_validation import read_and_validate_file

PROMPT_FIELDS = ("name", "description", "category", "prompt", "is_active")
LLM_CONFIG_FIELDS = ("name", "provider", "api_endpoint", "api_key_name", "model_name", "max_tokens",
                     "temperature", "is_active", "supports_json_mode")


class AdminService:
    """Prompts, LLM configurations and reference documents."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    # Prompts

    def list_prompts(self, category: Optional[str] = None) -> List[AiPrompt]:
        query = select(AiPrompt).order_by(AiPrompt.category, AiPrompt.id)
        if category:
            query = query.where(AiPrompt.category == category)
        return list(self.db.scalars(query))

    def get_prompt(self, prompt_id: int) -> AiPrompt:
        prompt = self.db.get(AiPrompt, prompt_id)
        if prompt is None:
            raise ResourceNotFoundError("Prompt introuvable")
        return prompt

    def _deactivate_other_prompts(self, prompt: AiPrompt) -> None:
        self.db.execute(
            update(AiPrompt)
            .where(AiPrompt.category == prompt.category, AiPrompt.id != prompt.id)
            .values(is_active=False)
        )

    @staticmethod
    def _check_category(category: Optional[str]) -> None:
        if category is not None and category not in PROMPT_CATEGORIES:
            raise BusinessRuleError(f"Catégorie de prompt invalide: {category}")

    def create_prompt(self, user: User, data: Dict[str, Any]) -> AiPrompt:
        self._check_category(data.get("category"))
        if not all((data.get(field) or "").strip() for field in ("name", "category", "prompt")):
            raise BusinessRuleError("Le nom, la catégorie et le texte du prompt sont obligatoires")
        prompt = AiPrompt(version=1, is_active=True)
        for field in PROMPT_FIELDS:
            if data.get(field) is not None:
                setattr(prompt, field, data[field])
        self.db.add(prompt)
        self.db.flush()
        if prompt.is_active:
            self._deactivate_other_prompts(prompt)
        self.audit.record(user.id, None, "create", "ai_prompt", prompt.id, {"category": prompt.category})
        self.db.commit()
        return prompt

    def update_prompt(self, user: User, prompt_id: int, data: Dict[str, Any]) -> AiPrompt:
        """Update a prompt; a new text bumps its version, activation deactivates the others."""
        self._check_category(data.get("category"))
        prompt = self.get_prompt(prompt_id)
        if data.get("prompt") is not None and data["prompt"] != prompt.prompt:
            prompt.version += 1
        for field in PROMPT_FIELDS:
            if field in data and data[field] is not None:
                setattr(prompt, field, data[field])
        self.db.flush()
        if prompt.is_active:
            self._deactivate_other_prompts(prompt)
        self.audit.record(user.id, None, "update", "ai_prompt", prompt.id, {"version": prompt.version})
        self.db.commit()
        return prompt

    def link_document(self, user: User, prompt_id: int, document_id: int, priority: int = 1) -> PromptDocument:
        prompt = self.get_prompt(prompt_id)
        document = self.get_document(document_id)
        existing = self.db.scalar(
            select(PromptDocument).where(
                PromptDocument.prompt_id == prompt.id, PromptDocument.document_id == document.id
            )
        )
        if existing is not None:
            raise ConflictError("Ce document est déjà associé au prompt")
        link = PromptDocument(prompt_id=prompt.id, document_id=document.id, priority=priority)
        self.db.add(link)
        self.db.flush()
        self.audit.record(user.id, None, "link", "prompt_document", link.id,
                          {"prompt_id": prompt.id, "document_id": document.id})
        self.db.commit()
        return link

    def list_prompt_documents(self, prompt_id: int) -> List[Dict[str, Any]]:
        self.get_prompt(prompt_id)
        links = self.db.scalars(
            select(PromptDocument).where(PromptDocument.prompt_id == prompt_id).order_by(PromptDocument.priority)
        )
        return [
            {**link.to_dict(), "document_name": link.document.name}
            for link in links
        ]

    def unlink_document(self, user: User, prompt_id: int, document_id: int) -> None:
        link = self.db.scalar(
            select(PromptDocument).where(
                PromptDocument.prompt_id == prompt_id, PromptDocument.document_id == document_id
            )
        )
        if link is None:
            raise ResourceNotFoundError("Association introuvable")
        self.db.delete(link)
        self.audit.record(user.id, None, "unlink", "prompt_document", link.id,
                          {"prompt_id": prompt_id, "document_id": document_id})
        self.db.commit()

    # LLM configurations

    def list_llm_configs(self) -> List[LlmConfiguration]:
        return list(self.db.scalars(select(LlmConfiguration).order_by(LlmConfiguration.id)))

    def _get_llm_config(self, config_id: int) -> LlmConfiguration:
        config = self.db.get(LlmConfiguration, config_id)
        if config is None:
            raise ResourceNotFoundError("Configuration introuvable")
        return config

    def _keep_single_active(self, config: LlmConfiguration) -> None:
        if config.is_active:
            self.db.execute(
                update(LlmConfiguration).where(LlmConfiguration.id != config.id).values(is_active=False)
            )

    def create_llm_config(self, user: User, data: Dict[str, Any]) -> LlmConfiguration:
        if not all((data.get(field) or "").strip() for field in ("name", "provider", "api_key_name", "model_name")):
            raise BusinessRuleError("Le nom, le fournisseur, la clé d'API et le modèle sont obligatoires")
        config = LlmConfiguration(**{k: v for k, v in data.items() if k in LLM_CONFIG_FIELDS and v is not None})
        if config.temperature is not None:
            config.temperature = str(config.temperature)
        self.db.add(config)
        self.db.flush()
        self._keep_single_active(config)
        self.audit.record(user.id, None, "create", "llm_configuration", config.id)
        self.db.commit()
        return config

    def update_llm_config(self, user: User, config_id: int, data: Dict[str, Any]) -> LlmConfiguration:
        config = self._get_llm_config(config_id)
        for field in LLM_CONFIG_FIELDS:
            if field in data and data[field] is not None:
                setattr(config, field, str(data[field]) if field == "temperature" else data[field])
        self.db.flush()
        self._keep_single_active(config)
        self.audit.record(user.id, None, "update", "llm_configuration", config.id)
        self.db.commit()
        return config

    def delete_llm_config(self, user: User, config_id: int) -> None:
        config = self._get_llm_config(config_id)
        self.db.delete(config)
        self.audit.record(user.id, None, "delete", "llm_configuration", config_id)
        self.db.commit()

    # Reference documents

    def list_documents(self, category: Optional[str] = None) -> List[RagDocument]:
        query = select(RagDocument).order_by(RagDocument.created_at.desc(), RagDocument.id.desc())
        if category:
            query = query.where(RagDocument.category == category)
        return list(self.db.scalars(query))

    def get_document(self, document_id: int) -> RagDocument:
        document = self.db.get(RagDocument, document_id)
        if document is None:
            raise ResourceNotFoundError("Document introuvable")
        return document

    async def upload_document(self, user: User, file: UploadFile, name: Optional[str] = None,
                              category: Optional[str] = None, tags: Optional[List[str]] = None) -> RagDocument:
        """
        Store an uploaded PDF or text document with its extracted text.

        Raises:
            BusinessRuleError: If the file is invalid, too large or has no text.
        """
        content, kind, filename = await read_and_validate_file(file)
        text = extract_document_text(content, kind)
        document = RagDocument(
            name=(name or "").strip() or filename,
            filename=filename,
            file_size=len(content),
            mime_type=EXTENSION_TO_MIME[f".{kind}"],
            content=text,
            uploaded_by=user.id,
            category=category or "general",
            tags=[tag for tag in (tags or []) if tag],
            is_active=True,
        )
        self.db.add(document)
        self.db.flush()
        self.audit.record(user.id, None, "upload", "rag_document", document.id,
                          {"filename": filename, "size": len(content)})
        self.db.commit()
        log_info(f"[ADMIN] Document {document.id} uploaded ({kind}, {len(text)} characters)")
        return document

    def delete_document(self, user: User, document_id: int) -> None:
        document = self.get_document(document_id)
        for link in self.db.scalars(select(PromptDocument).where(PromptDocument.document_id == document.id)):
            self.db.delete(link)
        self.db.delete(document)
        self.audit.record(user.id, None, "delete", "rag_document", document_id)
        self.db.commit()
