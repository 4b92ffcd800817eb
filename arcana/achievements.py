"""Achievement progress calculator.

Deciding *when* an achievement unlocks happens once, on an event, in the
storage layer. This module only renders progress toward a threshold against
already-decided unlocks, so every function here is pure and safe to call on
every profile render.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set

from pydantic import BaseModel

from .models import HistoryEntry, UserProgressionSnapshot
from .spreads import SpreadCatalog, default_catalog, normalize_spread_id

log = logging.getLogger("arcana.achievements")


class AchievementKind(str, Enum):
    READING_COUNT = "reading_count"
    SPREAD = "spread"
    ALL_SPREADS = "all_spreads"
    STREAK = "streak"
    ACTION = "action"


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    name: str
    description: str
    reward: int
    kind: AchievementKind
    target: int = 1
    spread: Optional[str] = None


ACHIEVEMENTS: List[AchievementDefinition] = [
    AchievementDefinition("first_reading", "First Steps", "Complete your first reading", 3, AchievementKind.READING_COUNT, 1),
    AchievementDefinition("five_readings", "Seeker", "Complete 5 readings", 5, AchievementKind.READING_COUNT, 5),
    AchievementDefinition("ten_readings", "Adept", "Complete 10 readings", 10, AchievementKind.READING_COUNT, 10),
    AchievementDefinition("oracle", "Oracle", "Complete 25 readings", 15, AchievementKind.READING_COUNT, 25),
    AchievementDefinition("celtic_master", "Celtic Master", "Complete a Celtic Cross reading", 5, AchievementKind.SPREAD, spread="celtic_cross"),
    AchievementDefinition("all_spreads", "Spread Explorer", "Try all spread types", 10, AchievementKind.ALL_SPREADS),
    AchievementDefinition("week_streak", "Devoted", "Login 7 days in a row", 10, AchievementKind.STREAK, 7),
    AchievementDefinition("true_believer", "True Believer", "Login 30 days in a row", 20, AchievementKind.STREAK, 30),
    AchievementDefinition("lunar_cycle", "Lunar Cycle", "Complete readings in 4 different weeks", 10, AchievementKind.ACTION),
    AchievementDefinition("question_seeker", "Question Seeker", "Ask a follow-up question", 2, AchievementKind.ACTION),
    AchievementDefinition("full_moon_reader", "Full Moon Reader", "Complete a reading during a full moon", 5, AchievementKind.ACTION),
    AchievementDefinition("share_reading", "Sharing is Caring", "Share a reading", 3, AchievementKind.ACTION),
]

ACHIEVEMENTS_BY_ID: Dict[str, AchievementDefinition] = {a.id: a for a in ACHIEVEMENTS}


class AchievementProgress(BaseModel):
    current: int
    target: int


class AchievementStatus(BaseModel):
    id: str
    name: str
    description: str
    reward: int
    kind: AchievementKind
    is_unlocked: bool
    progress: AchievementProgress


def _spread_catalog(catalog: Optional[SpreadCatalog]) -> SpreadCatalog:
    return catalog if catalog is not None else default_catalog().active()


def calculate_spreads_used(
    readings: Iterable[HistoryEntry], catalog: Optional[SpreadCatalog] = None
) -> Set[str]:
    """Distinct catalog spread ids played; unknown and legacy codes are skipped."""
    catalog = _spread_catalog(catalog)
    used: Set[str] = set()
    for reading in readings:
        if not reading.spread_type:
            continue
        spread_id = normalize_spread_id(reading.spread_type)
        if spread_id in catalog:
            used.add(spread_id)
    return used


def calculate_achievement_progress(
    achievement_id: str,
    snapshot: UserProgressionSnapshot,
    catalog: Optional[SpreadCatalog] = None,
) -> AchievementProgress:
    achievement = ACHIEVEMENTS_BY_ID.get(achievement_id)
    if achievement is None:
        log.warning("unknown achievement id=%s", achievement_id)
        return AchievementProgress(current=0, target=1)

    kind = achievement.kind
    if kind is AchievementKind.READING_COUNT:
        return AchievementProgress(
            current=min(snapshot.total_readings, achievement.target), target=achievement.target
        )

    if kind is AchievementKind.SPREAD:
        used = calculate_spreads_used(snapshot.reading_history, catalog)
        return AchievementProgress(current=1 if achievement.spread in used else 0, target=1)

    if kind is AchievementKind.ALL_SPREADS:
        catalog = _spread_catalog(catalog)
        used = calculate_spreads_used(snapshot.reading_history, catalog)
        return AchievementProgress(current=len(used), target=len(catalog))

    if kind is AchievementKind.STREAK:
        return AchievementProgress(
            current=min(snapshot.login_streak, achievement.target), target=achievement.target
        )

    return AchievementProgress(
        current=1 if achievement.id in snapshot.unlocked_achievement_ids else 0, target=1
    )


def get_achievements_with_progress(
    snapshot: UserProgressionSnapshot, catalog: Optional[SpreadCatalog] = None
) -> List[AchievementStatus]:
    return [
        AchievementStatus(
            id=a.id,
            name=a.name,
            description=a.description,
            reward=a.reward,
            kind=a.kind,
            is_unlocked=a.id in snapshot.unlocked_achievement_ids,
            progress=calculate_achievement_progress(a.id, snapshot, catalog),
        )
        for a in ACHIEVEMENTS
    ]
