"""
LearningService runs the RGPD training modules and their gamification:
experience points, levels, daily streaks and achievements.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import XP_PER_LEVEL
from backend.app.database.models import (
    Achievement,
    LearningModule,
    ModuleProgress,
    User,
    UserAchievement,
    UserProgress,
    utcnow,
)
from backend.app.services.audit_service import AuditService
from backend.app.utils.logging.logger import log_info
from backend.app.utils.system_utils.exceptions import BusinessRuleError, ResourceNotFoundError

MODULE_FIELDS = ("title", "description", "category", "difficulty", "content", "estimated_duration",
                 "xp_reward", "is_active")


def level_for(total_xp: int) -> int:
    return 1 + total_xp // XP_PER_LEVEL


def next_streak(current: int, last_activity: Optional[date], today: date) -> int:
    """Streak after an activity today: unchanged the same day, +1 the next day, reset after a gap."""
    if last_activity == today:
        return max(current, 1)
    if last_activity == today - timedelta(days=1):
        return current + 1
    return 1


class LearningService:

    def __init__(self, db: Session):
        self.db = db

    def list_modules(self, category: Optional[str] = None) -> List[LearningModule]:
        query = select(LearningModule).where(LearningModule.is_active.is_(True)).order_by(LearningModule.id)
        if category:
            query = query.where(LearningModule.category == category)
        return list(self.db.scalars(query))

    def get_module(self, module_id: int) -> LearningModule:
        module = self.db.get(LearningModule, module_id)
        if module is None or not module.is_active:
            raise ResourceNotFoundError("Module introuvable")
        return module

    def create_module(self, user: User, data: Dict[str, Any]) -> LearningModule:
        if not (data.get("title") or "").strip() or not (data.get("category") or "").strip():
            raise BusinessRuleError("Le titre et la catégorie du module sont obligatoires")
        module = LearningModule(**{k: v for k, v in data.items() if k in MODULE_FIELDS and v is not None})
        self.db.add(module)
        self.db.flush()
        AuditService(self.db).record(user.id, None, "create", "learning_module", module.id)
        self.db.commit()
        return module

    def get_or_create_progress(self, user: User) -> UserProgress:
        progress = self.db.scalar(select(UserProgress).where(UserProgress.user_id == user.id))
        if progress is None:
            progress = UserProgress(user_id=user.id, total_xp=0, level=1, streak=0)
            self.db.add(progress)
            self.db.flush()
        return progress

    def _module_progress(self, user: User, module: LearningModule) -> ModuleProgress:
        entry = self.db.scalar(
            select(ModuleProgress).where(ModuleProgress.user_id == user.id, ModuleProgress.module_id == module.id)
        )
        if entry is None:
            entry = ModuleProgress(user_id=user.id, module_id=module.id, status="in_progress",
                                   progress=0, time_spent=0)
            self.db.add(entry)
        return entry

    @staticmethod
    def _touch_streak(progress: UserProgress) -> None:
        today = date.today()
        progress.streak = next_streak(progress.streak or 0, progress.last_activity_date, today)
        progress.last_activity_date = today

    def _award(self, user: User, module: LearningModule, entry: ModuleProgress,
               progress: UserProgress) -> List[Achievement]:
        entry.status = "completed"
        entry.progress = 100
        entry.completed_at = utcnow()
        progress.total_xp += module.xp_reward or 0
        progress.level = level_for(progress.total_xp)
        self.db.flush()
        log_info(f"[LEARNING] User {user.id} completed module {module.id} (+{module.xp_reward} XP)")
        return self._unlock_achievements(user, progress)

    def update_progress(self, user: User, module_id: int, progress_value: int, time_spent: int = 0) -> ModuleProgress:
        """
        Record progress on a module. Time spent accumulates and reaching 100%
        completes the module.
        """
        if progress_value < 0 or time_spent < 0:
            raise BusinessRuleError("La progression et le temps passé doivent être positifs")
        module = self.get_module(module_id)
        entry = self._module_progress(user, module)
        progress = self.get_or_create_progress(user)
        entry.time_spent = (entry.time_spent or 0) + time_spent
        self._touch_streak(progress)
        if entry.status != "completed":
            entry.progress = min(100, max(entry.progress or 0, progress_value))
            if entry.progress >= 100:
                self._award(user, module, entry, progress)
        self.db.commit()
        return entry

    def complete_module(self, user: User, module_id: int) -> Dict[str, Any]:
        """
        Complete a module and award its experience points.

        Returns:
            xp_awarded, total_xp, level, streak, the achievements unlocked by
            this completion and already_completed. A module already completed
            awards nothing.
        """
        module = self.get_module(module_id)
        entry = self._module_progress(user, module)
        progress = self.get_or_create_progress(user)
        already_completed = entry.status == "completed"
        unlocked = []
        if not already_completed:
            self._touch_streak(progress)
            unlocked = self._award(user, module, entry, progress)
        self.db.commit()
        return {
            "xp_awarded": 0 if already_completed else module.xp_reward or 0,
            "total_xp": progress.total_xp,
            "level": progress.level,
            "streak": progress.streak,
            "new_achievements": [achievement.to_dict() for achievement in unlocked],
            "already_completed": already_completed,
        }

    def _completed_count(self, user: User) -> int:
        return self.db.scalar(
            select(func.count()).select_from(ModuleProgress).where(
                ModuleProgress.user_id == user.id, ModuleProgress.status == "completed"
            )
        ) or 0

    @staticmethod
    def _criteria_met(criteria: Dict[str, Any], progress: UserProgress, completed: int) -> bool:
        kind = (criteria or {}).get("type")
        if kind == "modules_completed":
            return completed >= int(criteria.get("count", 1))
        if kind == "xp":
            return progress.total_xp >= int(criteria.get("amount", 0))
        if kind == "streak":
            return progress.streak >= int(criteria.get("days", 1))
        return False

    def _unlock_achievements(self, user: User, progress: UserProgress) -> List[Achievement]:
        owned = set(self.db.scalars(
            select(UserAchievement.achievement_id).where(UserAchievement.user_id == user.id)
        ))
        completed = self._completed_count(user)
        unlocked = []
        for achievement in self.db.scalars(select(Achievement).order_by(Achievement.id)):
            if achievement.id in owned:
                continue
            if progress.total_xp < (achievement.xp_required or 0):
                continue
            if self._criteria_met(achievement.criteria, progress, completed):
                self.db.add(UserAchievement(user_id=user.id, achievement_id=achievement.id))
                unlocked.append(achievement)
        return unlocked

    def get_progress(self, user: User) -> Dict[str, Any]:
        progress = self.get_or_create_progress(user)
        self.db.commit()
        achievements = self.db.execute(
            select(Achievement, UserAchievement.unlocked_at)
            .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
            .where(UserAchievement.user_id == user.id)
            .order_by(UserAchievement.unlocked_at)
        ).all()
        modules = self.db.scalars(select(ModuleProgress).where(ModuleProgress.user_id == user.id))
        return {
            "progress": progress.to_dict(),
            "achievements": [
                {**achievement.to_dict(), "unlocked_at": unlocked_at.isoformat()}
                for achievement, unlocked_at in achievements
            ],
            "modules": [entry.to_dict() for entry in modules],
        }

    def list_achievements(self, user: User) -> List[Dict[str, Any]]:
        """All achievements with an unlocked flag; secret ones only once unlocked."""
        owned = set(self.db.scalars(
            select(UserAchievement.achievement_id).where(UserAchievement.user_id == user.id)
        ))
        result = []
        for achievement in self.db.scalars(select(Achievement).order_by(Achievement.id)):
            unlocked = achievement.id in owned
            if achievement.is_secret and not unlocked:
                continue
            result.append({**achievement.to_dict(), "unlocked": unlocked})
        return result

    def leaderboard(self, limit: int = 10) -> List[Dict[str, Any]]:
        rows = self.db.execute(
            select(UserProgress, User.username)
            .join(User, User.id == UserProgress.user_id)
            .order_by(UserProgress.total_xp.desc(), UserProgress.user_id)
            .limit(max(1, min(limit, 100)))
        ).all()
        return [
            {
                "rank": rank,
                "user_id": progress.user_id,
                "username": username,
                "total_xp": progress.total_xp,
                "level": progress.level,
                "streak": progress.streak,
            }
            for rank, (progress, username) in enumerate(rows, start=1)
        ]
