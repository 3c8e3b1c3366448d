"""
Tests for the restore decision rules.
"""

from datetime import date, timedelta

import pytest

from profile_reset.policy.evaluator import Action, decide, days_until_due, elapsed_days


TODAY = date(2024, 1, 3)

DAY_COUNTS = [0, 1, 2, 7, 30]
OFFSETS = [-3, 0, 1, 2, 10, 400]


class TestDecisionExamples:
    """The worked examples for cleanAfterDays=1, cleanAllways=['cache']."""

    def test_two_days_elapsed_triggers_full_restore(self, policy_factory):
        policy = policy_factory(clean_after_days=1, last_clean=date(2024, 1, 1))
        assert decide(policy, force=False, today=date(2024, 1, 3)) == Action.FULL_RESTORE

    def test_same_day_is_partial_clean(self, policy_factory):
        policy = policy_factory(clean_after_days=1, last_clean=date(2024, 1, 1))
        assert decide(policy, force=False, today=date(2024, 1, 1)) == Action.PARTIAL_CLEAN

    def test_exactly_due_is_full_restore(self, policy_factory):
        policy = policy_factory(clean_after_days=2, last_clean=date(2024, 1, 1))
        assert decide(policy, force=False, today=date(2024, 1, 3)) == Action.FULL_RESTORE

    def test_one_day_short_is_partial_clean(self, policy_factory):
        policy = policy_factory(clean_after_days=3, last_clean=date(2024, 1, 1))
        assert decide(policy, force=False, today=date(2024, 1, 3)) == Action.PARTIAL_CLEAN

    def test_skip_user_wins_over_zero_days(self, policy_factory):
        policy = policy_factory(clean_after_days=0, skip_user=True)
        assert decide(policy, force=False, today=TODAY) == Action.SKIP

    def test_force_overrides_skip_user(self, policy_factory):
        policy = policy_factory(skip_user=True)
        assert decide(policy, force=True, today=TODAY) == Action.FULL_RESTORE

    def test_force_restores_even_when_not_due(self, policy_factory):
        policy = policy_factory(clean_after_days=30, last_clean=TODAY)
        assert decide(policy, force=True, today=TODAY) == Action.FULL_RESTORE


class TestDecisionProperties:
    """Properties that hold across every combination of inputs."""

    @pytest.mark.parametrize("days", DAY_COUNTS)
    @pytest.mark.parametrize("offset", OFFSETS)
    def test_skip_user_without_force_always_skips(self, policy_factory, days, offset):
        policy = policy_factory(
            clean_after_days=days, skip_user=True, last_clean=TODAY - timedelta(days=offset)
        )
        assert decide(policy, force=False, today=TODAY) == Action.SKIP

    @pytest.mark.parametrize("days", DAY_COUNTS)
    @pytest.mark.parametrize("offset", OFFSETS)
    @pytest.mark.parametrize("skip", [True, False])
    def test_force_never_skips(self, policy_factory, days, offset, skip):
        policy = policy_factory(
            clean_after_days=days, skip_user=skip, last_clean=TODAY - timedelta(days=offset)
        )
        assert decide(policy, force=True, today=TODAY) != Action.SKIP

    @pytest.mark.parametrize("offset", OFFSETS)
    def test_zero_days_always_full_restore(self, policy_factory, offset):
        policy = policy_factory(clean_after_days=0, last_clean=TODAY - timedelta(days=offset))
        assert decide(policy, force=False, today=TODAY) == Action.FULL_RESTORE

    def test_decide_does_not_mutate_policy(self, policy_factory):
        policy = policy_factory(clean_after_days=1, last_clean=date(2024, 1, 1))
        before = policy.to_dict()
        decide(policy, force=True, today=TODAY)
        assert policy.to_dict() == before


class TestScheduleHelpers:

    def test_elapsed_days_is_calendar_difference(self, policy_factory):
        policy = policy_factory(last_clean=date(2023, 12, 31))
        assert elapsed_days(policy, date(2024, 1, 1)) == 1

    def test_future_last_clean_is_not_due(self, policy_factory):
        policy = policy_factory(clean_after_days=1, last_clean=TODAY + timedelta(days=5))
        assert decide(policy, force=False, today=TODAY) == Action.PARTIAL_CLEAN
        assert days_until_due(policy, TODAY) == 6

    def test_days_until_due(self, policy_factory):
        policy = policy_factory(clean_after_days=7, last_clean=date(2024, 1, 1))
        assert days_until_due(policy, TODAY) == 5
        assert days_until_due(policy, date(2024, 1, 8)) == 0
        assert days_until_due(policy, date(2024, 2, 1)) == 0

    def test_days_until_due_zero_days(self, policy_factory):
        assert days_until_due(policy_factory(clean_after_days=0), TODAY) == 0
