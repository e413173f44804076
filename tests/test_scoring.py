"""Tests for task scoring (deterministic, never raises).

These tests verify the weighted score components, the reschedule penalty,
clamping and graceful degradation on malformed documents.
"""

import math
from datetime import timedelta

import pytest

from myndfocus.config import PrioritizationConfig
from myndfocus.engine.normalize import normalize_task
from myndfocus.engine.scoring import (
    ScoringStrategy,
    compute_display_score,
    compute_score,
    priority_component,
    score_task,
)
from myndfocus.models.task import Priority


class TestPriorityComponent:
    """Test the priority weight and its imminent-deadline boost."""

    def test_medium_priority_alone(self, sample_task_base, now):
        result = compute_score(sample_task_base, now)
        assert result.score == pytest.approx(0.525)
        assert result.breakdown["priorityComponent"] == pytest.approx(0.525)

    def test_unknown_priority_defaults_to_lowest(self, sample_task_base, now):
        result = compute_score({**sample_task_base, "priority": "Critical"}, now)
        assert result.breakdown["priorityComponent"] == pytest.approx(0.35)

    def test_missing_priority_defaults_to_lowest(self, sample_task_base, now):
        task = {k: v for k, v in sample_task_base.items() if k != "priority"}
        assert compute_score(task, now).breakdown["priorityComponent"] == pytest.approx(0.35)

    def test_lowercase_synonyms_are_accepted(self, sample_task_base, now):
        result = compute_score({**sample_task_base, "priority": "high"}, now)
        assert result.breakdown["priorityComponent"] == pytest.approx(2.0 * 0.35)

    def test_due_within_24_hours_is_boosted(self, sample_task_base, now):
        """A task due in 12 hours gets x1.5 on its priority weight; one due in 3 days does not."""
        soon = normalize_task({**sample_task_base, "scheduledFor": (now + timedelta(hours=12)).isoformat()})
        later = normalize_task({**sample_task_base, "scheduledFor": (now + timedelta(days=3)).isoformat()})

        config = PrioritizationConfig()
        assert priority_component(soon, now, config) == pytest.approx(2.25)
        assert priority_component(later, now, config) == pytest.approx(1.5)
        assert priority_component(soon, now, config) == pytest.approx(1.5 * priority_component(later, now, config))

    def test_higher_priority_never_scores_lower(self, sample_task_base, now):
        levels = [Priority.LOWEST, Priority.MEDIUM, Priority.HIGH, Priority.URGENT]
        for intervals in ([], [5], [30]):
            for subtasks in (0, 3):
                scores = [
                    compute_score(
                        {
                            **sample_task_base,
                            "priority": level.value,
                            "intervals": intervals,
                            "subtasks": [{"id": str(i), "text": "s"} for i in range(subtasks)],
                        },
                        now,
                    ).score
                    for level in levels
                ]
                assert scores == sorted(scores)


class TestOtherComponents:
    """Test interval, age, deadline and subtask components."""

    def test_shortest_interval_is_used(self, sample_task_base, now):
        result = compute_score({**sample_task_base, "intervals": [30, 10]}, now)
        assert result.breakdown["intervalComponent"] == pytest.approx(0.30 * 0.20)

    def test_legacy_interval_field(self, sample_task_base, now):
        result = compute_score({**sample_task_base, "intervals": [], "interval": 15}, now)
        assert result.breakdown["intervalComponent"] == pytest.approx(0.20 * 0.20)

    def test_intervals_take_precedence_over_legacy_interval(self, sample_task_base, now):
        result = compute_score({**sample_task_base, "intervals": [10], "interval": 5}, now)
        assert result.breakdown["intervalComponent"] == pytest.approx(0.30 * 0.20)

    def test_unmapped_interval_contributes_nothing(self, sample_task_base, now):
        result = compute_score({**sample_task_base, "intervals": [7]}, now)
        assert result.breakdown["intervalComponent"] == 0.0

    def test_age_grows_per_day(self, sample_task_base, now):
        created = (now - timedelta(days=10)).isoformat()
        result = compute_score({**sample_task_base, "createdAt": created}, now)
        assert result.breakdown["ageComponent"] == pytest.approx(10 * 0.02 * 0.10)

    def test_age_is_capped(self, sample_task_base, now):
        created = (now - timedelta(days=400)).isoformat()
        result = compute_score({**sample_task_base, "createdAt": created}, now)
        assert result.breakdown["ageComponent"] == pytest.approx(0.10)

    def test_future_creation_time_has_no_age(self, sample_task_base, now):
        created = (now + timedelta(days=2)).isoformat()
        assert compute_score({**sample_task_base, "createdAt": created}, now).breakdown["ageComponent"] == 0.0

    def test_deadline_within_a_day_is_amplified(self, sample_task_base, now):
        due = (now + timedelta(hours=12)).isoformat()
        result = compute_score({**sample_task_base, "scheduledFor": due}, now)
        assert result.breakdown["deadlineComponent"] == pytest.approx((1 - 0.5 * 0.08) * 1.5 * 0.20)

    def test_deadline_three_days_out(self, sample_task_base, now):
        due = (now + timedelta(days=3)).isoformat()
        result = compute_score({**sample_task_base, "scheduledFor": due}, now)
        assert result.breakdown["deadlineComponent"] == pytest.approx((1 - 3 * 0.08) * 0.20)

    def test_distant_deadline_contributes_nothing(self, sample_task_base, now):
        due = (now + timedelta(days=30)).isoformat()
        assert compute_score({**sample_task_base, "scheduledFor": due}, now).breakdown["deadlineComponent"] == 0.0

    def test_due_date_is_used_when_scheduled_for_missing(self, sample_task_base, now):
        due = (now + timedelta(days=3)).isoformat()
        result = compute_score({**sample_task_base, "dueDate": due}, now)
        assert result.breakdown["deadlineComponent"] == pytest.approx((1 - 3 * 0.08) * 0.20)

    def test_subtasks_add_complexity_boost(self, sample_task_base, now):
        subtasks = [{"id": "a", "text": "one"}, {"id": "b", "text": "two", "microtasks": [{"text": "m"}]}]
        result = compute_score({**sample_task_base, "subtasks": subtasks}, now)
        assert result.breakdown["subtaskComponent"] == pytest.approx(2 * 0.15 * 0.15)


class TestReschedulePenalty:
    """Test the multiplicative reschedule penalty."""

    def test_three_reschedules_scale_score(self, sample_task_base, now):
        s0 = compute_score(sample_task_base, now).score
        s3 = compute_score({**sample_task_base, "rescheduleCount": 3}, now).score
        assert s3 <= s0
        assert s3 == pytest.approx(s0 * 0.85)
        assert compute_score({**sample_task_base, "rescheduleCount": 3}, now).breakdown["reschedulePenalty"] == pytest.approx(0.15)

    def test_more_reschedules_never_increase_score(self, sample_task_base, now):
        task = {**sample_task_base, "priority": "Urgent", "intervals": [5], "subtasks": [{"text": "s"}]}
        scores = [compute_score({**task, "rescheduleCount": count}, now).score for count in range(30)]
        assert all(later <= earlier for earlier, later in zip(scores, scores[1:]))

    def test_huge_penalty_clamps_to_zero(self, sample_task_base, now):
        assert compute_score({**sample_task_base, "rescheduleCount": 40}, now).score == 0.0


class TestClampAndMalformedInput:
    """Scores stay finite and within [0, 1]; bad fields never raise."""

    def test_scores_are_clamped(self, sample_task_base, now):
        for priority in ("Lowest", "Medium", "High", "Urgent"):
            for hours in (-2000, -24, 1, 12, 72, None):
                for subtasks in (0, 10):
                    for count in (0, 2, 25):
                        task = {
                            **sample_task_base,
                            "priority": priority,
                            "intervals": [5],
                            "subtasks": [{"text": "s"}] * subtasks,
                            "rescheduleCount": count,
                            "createdAt": (now - timedelta(days=500)).isoformat(),
                        }
                        if hours is not None:
                            task["scheduledFor"] = (now + timedelta(hours=hours)).isoformat()
                        score = compute_score(task, now).score
                        assert 0.0 <= score <= 1.0

    def test_invalid_created_at_string(self, sample_task_base, now):
        result = compute_score({**sample_task_base, "createdAt": "not-a-date"}, now)
        assert math.isfinite(result.score)
        assert 0.0 <= result.score <= 1.0
        assert result.breakdown["ageComponent"] == 0.0

    def test_invalid_scheduled_for_is_ignored(self, sample_task_base, now):
        result = compute_score({**sample_task_base, "scheduledFor": "someday"}, now)
        assert result.breakdown["deadlineComponent"] == 0.0
        assert result.score == pytest.approx(0.525)

    def test_created_at_equal_to_now(self, sample_task_base, now):
        result = compute_score({**sample_task_base, "createdAt": now}, now)
        assert result.breakdown["ageComponent"] == 0.0

    def test_epoch_millisecond_timestamps(self, sample_task_base, now):
        created_ms = int((now - timedelta(days=5)).timestamp() * 1000)
        result = compute_score({**sample_task_base, "createdAt": created_ms}, now)
        assert result.breakdown["ageComponent"] == pytest.approx(5 * 0.02 * 0.10)

    def test_garbage_counters_fall_back_to_defaults(self, sample_task_base, now):
        task = {**sample_task_base, "rescheduleCount": "many", "intervals": ["x", None, -5], "subtasks": "none"}
        assert compute_score(task, now).score == pytest.approx(0.525)

    def test_non_task_input_scores_zero(self, now):
        assert compute_score(None, now).score == 0.0
        assert compute_score(42, now).score == 0.0

    def test_input_is_not_mutated(self, sample_task_base, now):
        task = {**sample_task_base, "intervals": [5]}
        snapshot = dict(task)
        compute_score(task, now)
        assert task == snapshot
        assert "score" not in task

    def test_same_input_same_score(self, sample_task_base, now):
        assert compute_score(sample_task_base, now) == compute_score(sample_task_base, now)


class TestDisplayScore:
    """Test the UI-stable display strategy."""

    def test_pinned_task_gets_pin_bonus(self, sample_task, now):
        base = compute_score(sample_task, now).score
        result = compute_display_score(sample_task, now, pinned_task_id=sample_task.id)
        assert result.score == pytest.approx(base + 1000)
        assert result.breakdown["pinBonus"] == 1000

    def test_active_timer_gets_timer_bonus(self, make_task, now):
        task = make_task(timerState={"isActive": True, "duration": 5})
        base = compute_score(task, now).score
        result = compute_display_score(task, now)
        assert result.score == pytest.approx(base + 500)
        assert result.breakdown["activeTimerBonus"] == 500

    def test_both_bonuses_stack(self, make_task, now):
        task = make_task(timerState={"isActive": True})
        result = compute_display_score(task, now, pinned_task_id=task.id)
        assert result.score == pytest.approx(compute_score(task, now).score + 1500)

    def test_other_tasks_get_no_bonus(self, sample_task, now):
        result = compute_display_score(sample_task, now, pinned_task_id="someone-else")
        assert result.score == pytest.approx(compute_score(sample_task, now).score)

    def test_score_task_dispatches_on_strategy(self, sample_task, now):
        analytical = score_task(sample_task, now, ScoringStrategy.ANALYTICAL, pinned_task_id=sample_task.id)
        display = score_task(sample_task, now, ScoringStrategy.DISPLAY, pinned_task_id=sample_task.id)
        assert analytical.score <= 1.0
        assert display.score > 1000

    def test_custom_bonus_from_config(self, sample_task, now):
        config = PrioritizationConfig(pin_bonus=10.0)
        result = compute_display_score(sample_task, now, config, pinned_task_id=sample_task.id)
        assert result.score == pytest.approx(compute_score(sample_task, now).score + 10.0)
