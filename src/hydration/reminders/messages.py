"""
Motivational reminder text chosen from today's progress toward the goal.

Tiers use inclusive lower bounds on progress = intake / goal:

    [0, 0.25)     low
    [0.25, 0.75)  medium
    [0.75, 1.0)   high
    >= 1.0        completed   (over-achievement stays here)

The pick within a tier is uniformly random. Pass a seeded random.Random
to make it deterministic.
"""
import random
from enum import Enum
from typing import Dict, Optional, Tuple


class MessageTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    COMPLETED = "completed"


MESSAGE_POOLS: Dict[MessageTier, Tuple[str, ...]] = {
    MessageTier.LOW: (
        "💧 Time for some water! You haven't really started hydrating today.",
        "🌟 A fresh start: one glass of water is all it takes.",
        "💪 Stay energized and remember to drink some water!",
    ),
    MessageTier.MEDIUM: (
        "👍 Good progress! Keep the water habit going.",
        "💧 You're getting closer to your goal, have another glass!",
        "🎯 You're halfway there, keep it up!",
    ),
    MessageTier.HIGH: (
        "🔥 Great day so far! Just a little more to hit your goal.",
        "🏆 You've been hydrating well today, keep going!",
        "💯 Final stretch, you're almost at your goal!",
    ),
    MessageTier.COMPLETED: (
        "🎉 Congratulations! You've reached today's water goal.",
        "✨ Goal achieved! Sip as you need, no need to overdo it.",
        "👑 You're today's hydration champion!",
    ),
}


def progress_ratio(today_intake: float, daily_goal: float) -> float:
    """Intake divided by goal. The goal must be positive."""
    if daily_goal <= 0:
        raise ValueError(f"daily_goal must be positive, got {daily_goal}")
    return max(today_intake, 0.0) / daily_goal


def tier_for(ratio: float) -> MessageTier:
    """Map a progress ratio to its message tier."""
    if ratio >= 1.0:
        return MessageTier.COMPLETED
    if ratio >= 0.75:
        return MessageTier.HIGH
    if ratio >= 0.25:
        return MessageTier.MEDIUM
    return MessageTier.LOW


def generate_message(ratio: float, rng: Optional[random.Random] = None) -> str:
    """
    Pick a reminder message for the given progress ratio.

    Args:
        ratio: today's intake / daily goal (0 and values > 1 are valid).
        rng: random source; defaults to the module-level generator.

    Returns:
        A non-empty message string from the ratio's tier.
    """
    pool = MESSAGE_POOLS[tier_for(ratio)]
    return (rng or random).choice(pool)
