"""The Reading entity: one draw-and-interpret transaction.

Two construction paths:

- ``Reading.create`` for new readings; validates card count, positions,
  interpretation and question length, and locks in the spread's current cost.
- ``Reading.from_persistence`` for stored rows; trusts every field so that
  tightening a rule later never makes old data unloadable.

After construction the entity only changes through its mutators, each of
which enforces its own constraint.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

from . import config
from .credits import CreditAmount
from .errors import ValidationError
from .models import CardPosition, FollowUpQuestion, InterpretationStyle, utcnow
from .spreads import SpreadDefinition, normalize_spread_id


def _card(raw: Union[CardPosition, Dict[str, Any]]) -> CardPosition:
    if isinstance(raw, CardPosition):
        return raw
    return CardPosition.model_construct(**raw)


def _follow_up(raw: Union[FollowUpQuestion, Dict[str, Any]]) -> FollowUpQuestion:
    if isinstance(raw, FollowUpQuestion):
        return raw
    return FollowUpQuestion.model_construct(**raw)


def _style(raw: Union[InterpretationStyle, str]) -> Union[InterpretationStyle, str]:
    if isinstance(raw, InterpretationStyle):
        return raw
    try:
        return InterpretationStyle(str(raw).lower())
    except ValueError:
        return raw


class Reading:
    def __init__(
        self,
        *,
        id: Optional[str],
        user_id: str,
        spread_type: str,
        interpretation_style: Union[InterpretationStyle, str],
        question: Optional[str],
        cards: Sequence[CardPosition],
        interpretation: str,
        summary: Optional[str],
        user_reflection: Optional[str],
        themes: Sequence[str],
        credit_cost: CreditAmount,
        created_at: datetime,
        follow_ups: Optional[Sequence[FollowUpQuestion]] = None,
    ):
        self._id = id
        self._user_id = user_id
        self._spread_type = spread_type
        self._interpretation_style = interpretation_style
        self._question = question
        self._cards = list(cards)
        self._interpretation = interpretation
        self._summary = summary
        self._user_reflection = user_reflection
        self._themes = list(themes)
        self._credit_cost = credit_cost
        self._created_at = created_at
        self._follow_ups = list(follow_ups or [])

    @classmethod
    def create(
        cls,
        *,
        user_id: str,
        spread: SpreadDefinition,
        cards: Sequence[CardPosition],
        interpretation: str,
        interpretation_style: InterpretationStyle = InterpretationStyle.CLASSIC,
        question: Optional[str] = None,
    ) -> "Reading":
        if len(cards) != spread.card_count:
            raise ValidationError(
                "cards",
                f"Expected {spread.card_count} cards for {spread.name}, got {len(cards)}",
            )

        positions = sorted(c.position for c in cards)
        if positions != list(range(spread.card_count)):
            raise ValidationError(
                "cards",
                f"Card positions must be unique and run from 0 to {spread.card_count - 1}",
            )

        if not interpretation or not interpretation.strip():
            raise ValidationError("interpretation", "Interpretation cannot be empty")

        if question and len(question) > config.MAX_QUESTION_LENGTH:
            raise ValidationError(
                "question", f"Question cannot exceed {config.MAX_QUESTION_LENGTH} characters"
            )

        return cls(
            id=None,
            user_id=user_id,
            spread_type=spread.identifier,
            interpretation_style=interpretation_style,
            question=question or None,
            cards=cards,
            interpretation=interpretation,
            summary=None,
            user_reflection=None,
            themes=[],
            credit_cost=CreditAmount.of(spread.cost_value),
            created_at=utcnow(),
        )

    @classmethod
    def from_persistence(cls, props: Dict[str, Any]) -> "Reading":
        return cls(
            id=props["id"],
            user_id=props["user_id"],
            spread_type=normalize_spread_id(props["spread_type"]),
            interpretation_style=_style(props["interpretation_style"]),
            question=props.get("question"),
            cards=[_card(c) for c in props.get("cards") or []],
            interpretation=props["interpretation"],
            summary=props.get("summary"),
            user_reflection=props.get("user_reflection"),
            themes=props.get("themes") or [],
            credit_cost=CreditAmount.from_trusted(props["credit_cost"]),
            created_at=props["created_at"],
            follow_ups=[_follow_up(f) for f in props.get("follow_ups") or []],
        )

    @property
    def id(self) -> Optional[str]:
        return self._id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def spread_type(self) -> str:
        return self._spread_type

    @property
    def interpretation_style(self) -> Union[InterpretationStyle, str]:
        return self._interpretation_style

    @property
    def question(self) -> Optional[str]:
        return self._question

    @property
    def cards(self) -> List[CardPosition]:
        return list(self._cards)

    @property
    def interpretation(self) -> str:
        return self._interpretation

    @property
    def summary(self) -> Optional[str]:
        return self._summary

    @property
    def user_reflection(self) -> Optional[str]:
        return self._user_reflection

    @property
    def themes(self) -> List[str]:
        return list(self._themes)

    @property
    def credit_cost(self) -> CreditAmount:
        return self._credit_cost

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def follow_ups(self) -> List[FollowUpQuestion]:
        return list(self._follow_ups)

    def belongs_to(self, user_id: str) -> bool:
        return self._user_id == user_id

    def has_summary(self) -> bool:
        return bool(self._summary)

    def has_reflection(self) -> bool:
        return bool(self._user_reflection)

    def set_reflection(self, reflection: str) -> None:
        if len(reflection) > config.MAX_REFLECTION_LENGTH:
            raise ValidationError(
                "userReflection",
                f"Reflection cannot exceed {config.MAX_REFLECTION_LENGTH} characters",
            )
        self._user_reflection = reflection

    def set_summary(self, summary: Optional[str]) -> None:
        self._summary = summary

    def set_themes(self, themes: Sequence[str]) -> None:
        self._themes = list(themes)

    def add_follow_up(self, follow_up: FollowUpQuestion) -> None:
        self._follow_ups.append(follow_up)

    def get_follow_up_count(self) -> int:
        return len(self._follow_ups)

    def to_persistence(self) -> Dict[str, Any]:
        """Plain-data projection handed to the persistence collaborator."""
        style = self._interpretation_style
        return {
            "id": self._id,
            "user_id": self._user_id,
            "spread_type": self._spread_type.upper(),
            "interpretation_style": style.code if isinstance(style, InterpretationStyle) else style,
            "question": self._question,
            "cards": [c.model_dump() for c in self._cards],
            "interpretation": self._interpretation,
            "summary": self._summary,
            "user_reflection": self._user_reflection,
            "themes": list(self._themes),
            "credit_cost": self._credit_cost.value,
            "created_at": self._created_at,
        }

    def __repr__(self) -> str:
        return f"Reading(id={self._id!r}, user_id={self._user_id!r}, spread_type={self._spread_type!r})"
