"""
Default content inserted into an empty database.

Each table is only seeded when it holds no row, so administrators can edit or
remove the defaults without seeing them come back on restart.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import (
    DEFAULT_ACHIEVEMENTS,
    DEFAULT_DIAGNOSTIC_QUESTIONS,
    DEFAULT_LEARNING_MODULES,
    DEFAULT_PROMPTS,
)
from backend.app.database.models import Achievement, AiPrompt, DiagnosticQuestion, LearningModule
from backend.app.utils.logging.logger import log_info


def _is_empty(db: Session, model) -> bool:
    return db.scalar(select(func.count()).select_from(model)) == 0


def seed_defaults(db: Session) -> None:
    """Seed questions, prompts, learning modules and achievements."""
    if _is_empty(db, DiagnosticQuestion):
        for order, question in enumerate(DEFAULT_DIAGNOSTIC_QUESTIONS, start=1):
            db.add(DiagnosticQuestion(order=order, **question))
        log_info(f"[SEED] {len(DEFAULT_DIAGNOSTIC_QUESTIONS)} diagnostic questions created")
    if _is_empty(db, AiPrompt):
        for prompt in DEFAULT_PROMPTS:
            db.add(AiPrompt(**prompt))
        log_info(f"[SEED] {len(DEFAULT_PROMPTS)} AI prompts created")
    if _is_empty(db, LearningModule):
        for module in DEFAULT_LEARNING_MODULES:
            db.add(LearningModule(**module))
    if _is_empty(db, Achievement):
        for achievement in DEFAULT_ACHIEVEMENTS:
            db.add(Achievement(**achievement))
    db.commit()
