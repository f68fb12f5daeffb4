from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class GamificationProfile:
    """Per-learner XP aggregate.  Level is derived, never stored."""

    learner_id: UUID
    xp: int = 0


@dataclass(frozen=True, slots=True)
class Streak:
    learner_id: UUID
    current_streak: int = 0
    longest_streak: int = 0
    last_activity_date: date | None = None


@dataclass(frozen=True, slots=True)
class StreakUpdate:
    current_streak: int
    longest_streak: int
    streak_increased: bool
    last_activity_date: date | None


@dataclass(frozen=True, slots=True)
class XpAward:
    reason: str
    base_amount: int
    streak_bonus: int
    total_awarded: int
    new_total: int
    new_level: int


@dataclass(frozen=True, slots=True)
class Badge:
    """Catalog entry.  `xp_required` is None for event-triggered badges."""

    id: UUID
    name: str
    description: str = ""
    icon: str = "award"
    xp_required: int | None = None

    @staticmethod
    def new(
        *,
        name: str,
        description: str = "",
        icon: str = "award",
        xp_required: int | None = None,
    ) -> Badge:
        return Badge(
            id=uuid4(),
            name=name,
            description=description,
            icon=icon,
            xp_required=xp_required,
        )


@dataclass(frozen=True, slots=True)
class BadgeGrant:
    learner_id: UUID
    badge_id: UUID
    earned_at: int


@dataclass(frozen=True, slots=True)
class BadgeGrantResult:
    badge_name: str
    granted: bool


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    learner_id: UUID
    xp: int
    level: int
