# academy/services/achievement_engine.py
"""
Achievement evaluation and XP/level math.

Pure functions only: nothing here touches the database. Definitions are any
objects exposing `id`, `points`, `criterion_type`, `criterion_count` and
`is_active` (Achievement model instances in practice).
"""

XP_PER_LEVEL = 100

# Gamification event -> stats counter it increments
EVENT_COUNTERS = {
    "quiz_complete": "quizzes_completed",
    "module_complete": "modules_completed",
    "activity_sent": "activities_completed",
}

# Achievement criterion type -> stats counter it is measured against
CRITERION_COUNTERS = {
    "quizzes": "quizzes_completed",
    "modules": "modules_completed",
    "activities": "activities_completed",
}

BEGINNER_LEVEL_CAP = 5


def check_new_achievements(stats: dict, definitions, unlocked: dict) -> list:
    """
    Return the definitions newly satisfied by `stats`, in catalog order.

    Already-unlocked ids, inactive definitions and non-positive targets are
    skipped. Unknown criterion types never match.
    """
    newly_unlocked = []
    seen_ids = set()

    for definition in definitions:
        achievement_id = getattr(definition, "id", None)
        if achievement_id is None or achievement_id in unlocked or achievement_id in seen_ids:
            continue
        if not getattr(definition, "is_active", True):
            continue

        target = getattr(definition, "criterion_count", None)
        if not isinstance(target, int) or isinstance(target, bool) or target <= 0:
            continue

        counter = CRITERION_COUNTERS.get(getattr(definition, "criterion_type", None))
        if counter is None:
            continue

        current = stats.get(counter, 0)
        if not isinstance(current, int):
            continue

        if current >= target:
            newly_unlocked.append(definition)
            seen_ids.add(achievement_id)

    return newly_unlocked


def calculate_xp(current_xp: int, newly_unlocked, event_xp: int = 0) -> int:
    """current xp + flat event xp + reward points of every new unlock."""
    if event_xp < 0:
        raise ValueError(f"event_xp must be non-negative, got {event_xp}")

    reward = sum(max(getattr(definition, "points", 0) or 0, 0) for definition in newly_unlocked)
    return current_xp + event_xp + reward


def level_for_xp(xp: int, xp_per_level: int = XP_PER_LEVEL) -> int:
    # xp=0 -> 1, xp=99 -> 1, xp=100 -> 2, xp=250 -> 3
    return max(xp, 0) // xp_per_level + 1


def resolve_level(previous_level: int, xp: int, xp_per_level: int = XP_PER_LEVEL) -> int:
    """Stored level never regresses."""
    return max(previous_level, level_for_xp(xp, xp_per_level))


def level_name(level: int) -> str:
    return "Iniciante" if level < BEGINNER_LEVEL_CAP else "Estudante"


def xp_to_next_level(xp: int, xp_per_level: int = XP_PER_LEVEL) -> int:
    return level_for_xp(xp, xp_per_level) * xp_per_level - max(xp, 0)
