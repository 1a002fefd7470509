"""Tests for progress-tiered reminder messages."""
import random

import pytest

from hydration.reminders.messages import (
    MESSAGE_POOLS,
    MessageTier,
    generate_message,
    progress_ratio,
    tier_for,
)


class TestTierFor:
    @pytest.mark.parametrize("ratio,tier", [
        (0.0, MessageTier.LOW),
        (0.2499, MessageTier.LOW),
        (0.25, MessageTier.MEDIUM),
        (0.74, MessageTier.MEDIUM),
        (0.75, MessageTier.HIGH),
        (0.99, MessageTier.HIGH),
        (1.0, MessageTier.COMPLETED),
        (3.5, MessageTier.COMPLETED),
    ])
    def test_inclusive_lower_bounds(self, ratio, tier):
        assert tier_for(ratio) == tier


class TestProgressRatio:
    def test_ratio(self):
        assert progress_ratio(500, 2000) == pytest.approx(0.25)

    def test_zero_goal_rejected(self):
        with pytest.raises(ValueError):
            progress_ratio(500, 0)

    def test_negative_intake_treated_as_zero(self):
        assert progress_ratio(-100, 2000) == 0.0


class TestGenerateMessage:
    def test_every_pool_has_at_least_three_messages(self):
        for tier in MessageTier:
            pool = MESSAGE_POOLS[tier]
            assert len(pool) >= 3
            assert all(pool)

    def test_goal_met_always_completed_tier(self):
        """2000 ml against a 2000 ml goal only ever yields completed-tier text."""
        ratio = progress_ratio(2000, 2000)
        for seed in range(50):
            message = generate_message(ratio, random.Random(seed))
            assert message in MESSAGE_POOLS[MessageTier.COMPLETED]

    @pytest.mark.parametrize("ratio", [0.0, 0.3, 0.8, 1.0, 12.0])
    def test_always_non_empty(self, ratio):
        assert generate_message(ratio)

    def test_seeded_source_is_deterministic(self):
        assert generate_message(0.5, random.Random(3)) == generate_message(0.5, random.Random(3))

    def test_uses_injected_source(self):
        class LastChoice:
            def choice(self, pool):
                return pool[-1]

        assert generate_message(0.1, LastChoice()) == MESSAGE_POOLS[MessageTier.LOW][-1]
