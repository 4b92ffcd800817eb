"""FastAPI routes for reading transactions."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from arcana import transactions
from arcana.models import CardPosition, FollowUpQuestion
from arcana.reading import Reading
from arcana.readings_storage import ledger_db, readings_db

# Initialize database on import
readings_db.init_db()
ledger_db.init_db()

router = APIRouter(prefix="/readings", tags=["readings"])


class ReadingStartRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=100)
    spread_id: str = Field(..., description="Spread identifier: 'single', 'three_card', etc.")
    interpretation: str = Field(..., description="Interpretation text produced for the drawn cards")
    question: Optional[str] = Field(None, description="The user's question, if any")
    style: Optional[str] = Field(None, description="Interpretation style; defaults to 'classic'")
    extended_question: bool = Field(False, description="User accepted the extended-question surcharge")
    cards: Optional[List[CardPosition]] = Field(None, description="Cards already drawn; drawn server-side if omitted")
    seed: Optional[str] = Field(None, description="Optional seed for deterministic drawing")


class ReadingResponse(BaseModel):
    id: str
    user_id: str
    spread_type: str
    interpretation_style: str
    question: Optional[str] = None
    cards: List[CardPosition]
    interpretation: str
    summary: Optional[str] = None
    user_reflection: Optional[str] = None
    themes: List[str] = Field(default_factory=list)
    credit_cost: int
    created_at: datetime
    follow_ups: List[FollowUpQuestion] = Field(default_factory=list)
    balance: Optional[int] = None


class ReflectionRequest(BaseModel):
    user_id: str
    reflection: str


class FollowUpRequest(BaseModel):
    user_id: str
    question: str
    answer: str


class ShareRequest(BaseModel):
    user_id: str


def reading_response(reading: Reading, balance: Optional[int] = None) -> ReadingResponse:
    row: Dict[str, Any] = reading.to_persistence()
    row["spread_type"] = reading.spread_type
    row["follow_ups"] = reading.follow_ups
    row["balance"] = balance
    return ReadingResponse(**row)


@router.post("", response_model=ReadingResponse)
def start_reading(req: ReadingStartRequest) -> ReadingResponse:
    """Charge for and record a new reading."""
    reading = transactions.start_reading(
        user_id=req.user_id,
        spread_id=req.spread_id,
        interpretation=req.interpretation,
        question=req.question,
        style=req.style,
        extended_question=req.extended_question,
        cards=req.cards,
        seed=req.seed,
    )
    return reading_response(reading, ledger_db.get_balance(req.user_id).value)


@router.get("/{reading_id}", response_model=ReadingResponse)
def get_reading(reading_id: str, user_id: str) -> ReadingResponse:
    return reading_response(transactions.load_owned_reading(user_id, reading_id))


@router.put("/{reading_id}/reflection", response_model=ReadingResponse)
def save_reflection(reading_id: str, req: ReflectionRequest) -> ReadingResponse:
    reading = transactions.save_reflection(
        user_id=req.user_id, reading_id=reading_id, reflection=req.reflection
    )
    return reading_response(reading)


@router.post("/{reading_id}/follow-ups", response_model=FollowUpQuestion)
def add_follow_up(reading_id: str, req: FollowUpRequest) -> FollowUpQuestion:
    return transactions.ask_follow_up(
        user_id=req.user_id, reading_id=reading_id, question=req.question, answer=req.answer
    )


@router.post("/{reading_id}/share")
def share_reading(reading_id: str, req: ShareRequest) -> Dict[str, Any]:
    newly_unlocked = transactions.share_reading(user_id=req.user_id, reading_id=reading_id)
    return {"ok": True, "achievement_unlocked": newly_unlocked}
