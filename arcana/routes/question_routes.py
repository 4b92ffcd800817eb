from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..credits import CreditAmount
from ..errors import SummarizationError
from ..question_policy import DEFAULT_POLICY, QuestionTier
from ..spreads import default_catalog
from ..summarizer import summarize_question

log = logging.getLogger("arcana.question")
router = APIRouter(prefix="/question", tags=["question"])


class AssessRequest(BaseModel):
    text: str = Field(..., max_length=10000)
    spread_id: Optional[str] = None
    extended_authorized: bool = False


class AssessResponse(BaseModel):
    tier: QuestionTier
    length: int
    free_limit: int
    hard_limit: int
    outcome: str
    message: Optional[str] = None
    remedies: List[str] = Field(default_factory=list)
    extended_cost: Optional[int] = None


class SummarizeRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=DEFAULT_POLICY.hard_limit)
    language: Literal["en", "fr"] = "en"


class SummarizeResponse(BaseModel):
    summary: str
    tier: QuestionTier


@router.post("/assess", response_model=AssessResponse)
def assess(req: AssessRequest) -> AssessResponse:
    policy = DEFAULT_POLICY
    state = policy.load(req.text)
    if req.extended_authorized and state.tier is QuestionTier.EXTENDED:
        state = replace(state, extended_authorized=True)
    decision = policy.submit(state)

    extended_cost = None
    if req.spread_id and state.tier is QuestionTier.EXTENDED:
        spread = default_catalog().from_identifier(req.spread_id)
        extended_cost = policy.extended_cost(CreditAmount.of(spread.cost_value)).value

    return AssessResponse(
        tier=state.tier,
        length=len(req.text),
        free_limit=policy.free_limit,
        hard_limit=policy.hard_limit,
        outcome=decision.outcome.value,
        message=decision.message,
        remedies=[r.value for r in decision.remedies],
        extended_cost=extended_cost,
    )


@router.post("/summarize", response_model=SummarizeResponse)
async def summarize(req: SummarizeRequest) -> SummarizeResponse:
    try:
        summary = await summarize_question(req.text, req.language)
    except SummarizationError as e:
        log.warning("question/summarize failed: %s", e)
        raise HTTPException(status_code=502, detail="Failed to summarize question")
    return SummarizeResponse(summary=summary, tier=DEFAULT_POLICY.classify(summary))
