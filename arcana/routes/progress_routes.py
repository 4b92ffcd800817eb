"""FastAPI routes for the spread catalog and achievement progress.

Endpoints:
- GET /spreads
- GET /users/{user_id}/achievements
- PUT /users/{user_id}/login-streak
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter
from pydantic import BaseModel, Field

from .. import transactions
from ..achievements import AchievementStatus
from ..spreads import default_catalog

router = APIRouter(tags=["progress"])


@router.get("/spreads")
def spreads() -> Dict[str, Any]:
    return {
        "spreads": [
            {
                "id": s.identifier,
                "name": s.name,
                "card_count": s.card_count,
                "cost": s.cost_value,
                "description": s.description,
            }
            for s in default_catalog().active()
        ]
    }


@router.get("/users/{user_id}/achievements", response_model=List[AchievementStatus])
def achievements(user_id: str) -> List[AchievementStatus]:
    return transactions.get_progress(user_id)


class LoginStreakRequest(BaseModel):
    login_streak: int = Field(..., ge=0, description="Consecutive days the user has logged in")


@router.put("/users/{user_id}/login-streak")
def login_streak(user_id: str, req: LoginStreakRequest) -> Dict[str, Any]:
    unlocked = transactions.record_login_streak(user_id, req.login_streak)
    return {"login_streak": req.login_streak, "unlocked": unlocked}
