"""Tests for completion XP."""

import pytest

from myndfocus.engine.xp import completion_xp


class TestCompletionXp:
    """XP scales with priority and shrinks with reschedules."""

    @pytest.mark.parametrize(
        "priority,expected",
        [("Lowest", 5), ("Medium", 10), ("High", 15), ("Urgent", 15)],
    )
    def test_priority_multiplier(self, make_task, priority, expected):
        assert completion_xp(make_task(priority=priority)) == expected

    def test_each_reschedule_costs_a_point(self, make_task):
        assert completion_xp(make_task(priority="Medium", rescheduleCount=2)) == 8

    def test_reschedule_penalty_is_capped(self, make_task):
        assert completion_xp(make_task(priority="High", rescheduleCount=50)) == 11

    def test_at_least_one_xp(self, make_task):
        assert completion_xp(make_task(priority="Lowest", rescheduleCount=9)) == 1

    def test_custom_base(self, sample_task_base):
        assert completion_xp({**sample_task_base, "priority": "Urgent"}, base_xp=10) == 30
