# academy/tests/test_achievement_engine.py
"""
Tests for the achievement evaluator and XP/level math.

Definitions are unsaved Achievement instances; no database access needed.
"""

import pytest

from academy.models import Achievement, default_stats
from academy.services.achievement_engine import (
    calculate_xp,
    check_new_achievements,
    level_for_xp,
    level_name,
    resolve_level,
    xp_to_next_level,
)


def make(achievement_id, criterion_type='quizzes', count=1, points=10, status='Ativa'):
    return Achievement(
        id=achievement_id,
        title=achievement_id,
        criterion_type=criterion_type,
        criterion_count=count,
        points=points,
        status=status,
    )


def stats(**counters):
    data = default_stats()
    data.update(counters)
    return data


class TestCheckNewAchievements:
    """Tests for check_new_achievements."""

    def test_unlocks_when_counter_reaches_target(self):
        definition = make('quiz_3', count=3)

        result = check_new_achievements(stats(quizzes_completed=3), [definition], {})

        assert result == [definition]

    def test_below_target_does_not_unlock(self):
        result = check_new_achievements(stats(quizzes_completed=2), [make('quiz_3', count=3)], {})

        assert result == []

    def test_already_unlocked_never_returned(self):
        definition = make('quiz_1', count=1)
        unlocked = {'quiz_1': {'date': '2026-01-01T00:00:00', 'seen': True}}

        for quizzes in (0, 1, 50):
            assert check_new_achievements(stats(quizzes_completed=quizzes), [definition], unlocked) == []

    def test_inactive_definition_skipped(self):
        definition = make('quiz_1', count=1, status='Inativa')

        assert check_new_achievements(stats(quizzes_completed=5), [definition], {}) == []

    @pytest.mark.parametrize('target', [0, -1, -10])
    def test_non_positive_target_never_unlocks(self, target):
        definition = make('broken', count=target)

        assert check_new_achievements(stats(quizzes_completed=100), [definition], {}) == []

    def test_unknown_criterion_type_is_silently_ignored(self):
        definition = make('weird', criterion_type='logins', count=1)

        assert check_new_achievements(stats(quizzes_completed=10), [definition], {}) == []

    def test_each_criterion_reads_its_own_counter(self):
        quiz = make('q', criterion_type='quizzes', count=1)
        module = make('m', criterion_type='modules', count=1)
        activity = make('a', criterion_type='activities', count=1)

        result = check_new_achievements(stats(modules_completed=1), [quiz, module, activity], {})

        assert result == [module]

    def test_preserves_catalog_order(self):
        catalog = [make('c', count=1), make('a', count=1), make('b', count=1)]

        result = check_new_achievements(stats(quizzes_completed=1), catalog, {})

        assert [d.id for d in result] == ['c', 'a', 'b']

    def test_duplicate_ids_returned_once(self):
        definition = make('quiz_1', count=1)

        result = check_new_achievements(stats(quizzes_completed=1), [definition, definition], {})

        assert result == [definition]

    def test_missing_counter_reads_as_zero(self):
        result = check_new_achievements({}, [make('quiz_1', count=1)], {})

        assert result == []

    def test_does_not_mutate_inputs(self):
        counters = stats(quizzes_completed=3)
        unlocked = {}
        catalog = [make('quiz_3', count=3)]

        check_new_achievements(counters, catalog, unlocked)

        assert counters == stats(quizzes_completed=3)
        assert unlocked == {}
        assert len(catalog) == 1


class TestCalculateXp:
    """Tests for calculate_xp."""

    def test_sums_reward_points(self):
        unlocked = [make('a', points=20), make('b', points=15)]

        assert calculate_xp(40, unlocked) == 75

    def test_adds_flat_event_xp(self):
        assert calculate_xp(10, [make('a', points=5)], event_xp=7) == 22

    def test_no_unlocks_keeps_xp(self):
        assert calculate_xp(120, []) == 120

    def test_negative_event_xp_rejected(self):
        with pytest.raises(ValueError):
            calculate_xp(100, [], event_xp=-5)

    def test_xp_never_decreases(self):
        current = 0
        for points in (0, 10, 0, 25, 5):
            new = calculate_xp(current, [make('x', points=points)])
            assert new >= current
            current = new


class TestLevels:
    """Tests for level derivation."""

    @pytest.mark.parametrize('xp, level', [(0, 1), (99, 1), (100, 2), (250, 3), (1000, 11)])
    def test_level_formula(self, xp, level):
        assert level_for_xp(xp) == level

    def test_stored_level_never_regresses(self):
        # Downward xp correction must not lower a level already reached
        assert resolve_level(previous_level=5, xp=120) == 5

    def test_level_goes_up_with_xp(self):
        assert resolve_level(previous_level=1, xp=310) == 4

    def test_custom_xp_per_level(self):
        assert level_for_xp(100, xp_per_level=50) == 3

    @pytest.mark.parametrize('level, name', [(1, 'Iniciante'), (4, 'Iniciante'), (5, 'Estudante'), (12, 'Estudante')])
    def test_level_name(self, level, name):
        assert level_name(level) == name

    @pytest.mark.parametrize('xp, remaining', [(0, 100), (40, 60), (100, 100), (250, 50)])
    def test_xp_to_next_level(self, xp, remaining):
        assert xp_to_next_level(xp) == remaining
