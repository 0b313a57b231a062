# academy/services/gamification.py
"""
Gamification pipeline.

One event (quiz completed, module completed, activity sent) increments a
counter, unlocks any newly satisfied achievements and folds their points into
the user's xp and level. The whole read-modify-write runs under a row lock on
the user's UserGamification record, so concurrent events for the same user
are applied one after the other.
"""
import logging

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from academy.exceptions import GamificationPersistenceError, UnknownEventError
from .achievement_engine import (
    EVENT_COUNTERS,
    calculate_xp,
    check_new_achievements,
    level_name,
    resolve_level,
    xp_to_next_level,
)
from .catalog import AchievementCatalog
from .notifications import create_notification

logger = logging.getLogger(__name__)


class GamificationResult:
    """Outcome of one processed event."""

    def __init__(self, state, unlocked, xp_gained, leveled_up):
        self.state = state
        self.unlocked = unlocked
        self.xp_gained = xp_gained
        self.leveled_up = leveled_up

    @property
    def message(self) -> str:
        parts = []
        if self.unlocked:
            titles = ", ".join(achievement.title for achievement in self.unlocked)
            parts.append(f"Conquista desbloqueada: {titles}! +{self.xp_gained} XP")
        elif self.xp_gained:
            parts.append(f"Progresso registrado! +{self.xp_gained} XP")
        if self.leveled_up:
            parts.append(f"Você alcançou o nível {self.state.level}!")
        return " ".join(parts) or "Progresso registrado."


class GamificationService:
    """
    Service for processing gamification events of one user.

    catalog and notifier can be injected; by default the cached
    AchievementCatalog and create_notification are used.
    """

    def __init__(self, user, catalog=None, notifier=None):
        self.user = user
        self.catalog = catalog or AchievementCatalog()
        self.notifier = notifier or create_notification

    def get_state(self):
        from academy.models import UserGamification

        state, created = UserGamification.objects.get_or_create(user=self.user)
        if created:
            logger.info(f"Created gamification record for {self.user.email}")
        return state

    def process_event(self, event_type: str) -> GamificationResult:
        """
        Apply one event and persist the result.

        Raises:
            UnknownEventError: event_type is not a known event kind
            GamificationPersistenceError: the record could not be saved
                (the computed result is attached to the exception)
        """
        from academy.models import UserGamification

        counter = EVENT_COUNTERS.get(event_type)
        if counter is None:
            raise UnknownEventError(event_type)

        event_xp = settings.GAMIFICATION_EVENT_XP.get(event_type, 0)
        xp_per_level = settings.GAMIFICATION_XP_PER_LEVEL

        # Catalog is read outside the lock
        definitions = self.catalog.load()

        result = None
        try:
            with transaction.atomic():
                state, _ = UserGamification.objects.select_for_update().get_or_create(user=self.user)

                stats = state.counters()
                stats[counter] += 1

                newly_unlocked = check_new_achievements(stats, definitions, state.unlocked)

                previous_xp = state.xp
                previous_level = state.level
                new_xp = calculate_xp(previous_xp, newly_unlocked, event_xp=event_xp)

                unlocked = dict(state.unlocked)
                stamp = timezone.now().isoformat()
                for achievement in newly_unlocked:
                    unlocked[achievement.id] = {"date": stamp, "seen": False}

                state.stats = stats
                state.unlocked = unlocked
                state.xp = new_xp
                state.level = resolve_level(previous_level, new_xp, xp_per_level)

                result = GamificationResult(
                    state=state,
                    unlocked=newly_unlocked,
                    xp_gained=new_xp - previous_xp,
                    leveled_up=state.level > previous_level,
                )
                state.save()
        except DatabaseError as e:
            logger.error(f"Failed to save gamification for {self.user.email} ({event_type}): {e}")
            raise GamificationPersistenceError(
                "Não foi possível salvar seu progresso.", result=result
            ) from e

        logger.info(
            f"{self.user.email} {event_type}: +{result.xp_gained} XP, "
            f"{len(result.unlocked)} unlocked, level {result.state.level}"
        )

        for achievement in result.unlocked:
            self.notifier(
                user=self.user,
                notification_type="achievement_unlocked",
                title=f"Conquista desbloqueada: {achievement.title}",
                text=achievement.description or f"+{achievement.points} XP",
            )

        return result

    def mark_achievements_seen(self) -> int:
        """Flag every unseen unlock as seen. Returns how many were updated."""
        from academy.models import UserGamification

        with transaction.atomic():
            state, _ = UserGamification.objects.select_for_update().get_or_create(user=self.user)
            unseen = state.unseen_ids()
            if not unseen:
                return 0

            unlocked = dict(state.unlocked)
            for achievement_id in unseen:
                unlocked[achievement_id] = {**unlocked[achievement_id], "seen": True}
            state.unlocked = unlocked
            state.save(update_fields=["unlocked", "updated_at"])

        return len(unseen)

    def get_profile(self) -> dict:
        """Gamification summary: xp, level and the catalog merged with the user's unlocks."""
        state = self.get_state()
        xp_per_level = settings.GAMIFICATION_XP_PER_LEVEL

        achievements = []
        for achievement in self.catalog.load():
            entry = state.unlocked.get(achievement.id)
            achievements.append({
                "id": achievement.id,
                "title": achievement.title,
                "description": achievement.description,
                "points": achievement.points,
                "tier": achievement.tier,
                "image_url": achievement.image_url,
                "category": achievement.category,
                "rarity": achievement.rarity,
                "criterion": achievement.criterion,
                "unlocked": entry is not None,
                "date": entry.get("date") if entry else None,
                "seen": entry.get("seen", False) if entry else False,
            })

        return {
            "xp": state.xp,
            "level": state.level,
            "level_name": level_name(state.level),
            "xp_to_next_level": xp_to_next_level(state.xp, xp_per_level),
            "stats": state.counters(),
            "achievements": achievements,
            "unseen": state.unseen_ids(),
        }
