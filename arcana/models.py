from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, Field

from .errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InterpretationStyle(str, Enum):
    CLASSIC = "classic"
    SPIRITUAL = "spiritual"
    PSYCHO_EMOTIONAL = "psycho_emotional"
    NUMEROLOGY = "numerology"
    ELEMENTAL = "elemental"

    @property
    def code(self) -> str:
        return self.value.upper()

    @property
    def is_advanced(self) -> bool:
        return self is not InterpretationStyle.CLASSIC

    @classmethod
    def parse(cls, raw: Optional[str]) -> "InterpretationStyle":
        if not raw:
            return cls.CLASSIC
        try:
            return cls(raw.strip().lower())
        except ValueError:
            raise ValidationError("interpretationStyle", f"Invalid interpretation style: {raw}")


class CardPosition(BaseModel):
    card_id: str
    position: int
    is_reversed: bool = False


class FollowUpQuestion(BaseModel):
    id: str
    question: str
    answer: str
    created_at: datetime = Field(default_factory=utcnow)


class HistoryEntry(BaseModel):
    """One past reading as seen by the progress calculator."""
    reading_id: Optional[str] = None
    spread_type: Optional[str] = None
    created_at: Optional[datetime] = None


class UserProgressionSnapshot(BaseModel):
    total_readings: int = 0
    login_streak: int = 0
    unlocked_achievement_ids: Set[str] = Field(default_factory=set)
    reading_history: List[HistoryEntry] = Field(default_factory=list)
