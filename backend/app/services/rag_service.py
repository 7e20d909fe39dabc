"""
Selection of the reference documents injected into AI prompts.

Administrators link uploaded documents to a prompt with a priority. For a
prompt category, the documents of the active prompt are returned by ascending
priority, each truncated so that a prompt stays within the model's input.
"""

from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.configs.config_singleton import get_config
from backend.app.configs.gemini_config import RAG_DOCUMENTS_HEADER, RAG_DOCUMENTS_SEPARATOR
from backend.app.database.models import AiPrompt, PromptDocument, RagDocument
from backend.app.utils.helpers.gemini_usage_manager import gemini_usage_manager
from backend.app.utils.logging.logger import log_info


class RagService:
    """Reads active prompts and their reference documents."""

    def __init__(self, db: Session):
        self.db = db

    def active_prompt(self, category: str) -> Optional[AiPrompt]:
        return self.db.scalar(
            select(AiPrompt)
            .where(AiPrompt.category == category, AiPrompt.is_active.is_(True))
            .order_by(AiPrompt.version.desc(), AiPrompt.id.desc())
        )

    def documents_for_category(self, category: str) -> List[Dict[str, str]]:
        """
        Active documents of the active prompt of a category.

        Args:
            category: Prompt category, e.g. "dpia" or "breach".

        Returns:
            A list of {"name", "content"} ordered by ascending priority.
        """
        prompt = self.active_prompt(category)
        if prompt is None:
            return []
        max_chars = get_config("rag_document_max_chars", 8000)
        links = self.db.scalars(
            select(PromptDocument)
            .join(RagDocument, RagDocument.id == PromptDocument.document_id)
            .where(PromptDocument.prompt_id == prompt.id, RagDocument.is_active.is_(True))
            .order_by(PromptDocument.priority, PromptDocument.id)
        )
        documents = [
            {
                "name": link.document.name,
                "content": gemini_usage_manager.truncate_text(link.document.content, max_chars),
            }
            for link in links
        ]
        if documents:
            log_info(f"[RAG] {len(documents)} reference document(s) selected for '{category}'")
        return documents

    @staticmethod
    def format_documents(documents: List[Dict[str, str]]) -> str:
        """Render documents as the prompt block, "" when there are none."""
        if not documents:
            return ""
        body = RAG_DOCUMENTS_SEPARATOR.join(
            f"Document: {document['name']}\n{document['content']}" for document in documents
        )
        return f"{RAG_DOCUMENTS_HEADER}\n{body}"
