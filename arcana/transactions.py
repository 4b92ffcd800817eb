"""Reading transactions: the flows that touch balances.

Starting a reading runs, in order: resolve the spread, gate the question
length, quote the cost, check the balance, draw cards, construct the Reading,
debit, persist. A persistence failure after the debit is refunded.
"""

from __future__ import annotations

import logging
import secrets
import sqlite3
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

from . import config
from .achievements import ACHIEVEMENTS, ACHIEVEMENTS_BY_ID, AchievementKind, AchievementStatus, get_achievements_with_progress
from .credits import CreditAmount
from .errors import InsufficientCreditsError, ReadingNotFoundError, ValidationError
from .models import CardPosition, FollowUpQuestion, InterpretationStyle, UserProgressionSnapshot
from .question_policy import DEFAULT_POLICY, QuestionLengthPolicy, QuestionTier
from .reading import Reading
from .readings_storage import ledger_db, readings_db
from .spreads import SpreadCatalog, SpreadDefinition, default_catalog, normalize_spread_id
from .utils.rng import draw_positions, full_deck

log = logging.getLogger("arcana.transactions")


@dataclass(frozen=True)
class CostQuote:
    base: CreditAmount
    style_surcharge: CreditAmount
    extended_surcharge: CreditAmount

    @property
    def total(self) -> CreditAmount:
        return self.base.add(self.style_surcharge).add(self.extended_surcharge)


def quote_reading_cost(
    spread: SpreadDefinition, style: InterpretationStyle, extended_question: bool
) -> CostQuote:
    return CostQuote(
        base=spread.cost,
        style_surcharge=CreditAmount.of(config.ADVANCED_STYLE_SURCHARGE if style.is_advanced else 0),
        extended_surcharge=CreditAmount.of(config.EXTENDED_QUESTION_SURCHARGE if extended_question else 0),
    )


def ensure_sufficient(user_id: str, cost: CreditAmount) -> CreditAmount:
    """Advisory pre-flight check against a balance snapshot. The debit itself re-checks."""
    balance = ledger_db.get_balance(user_id)
    if not balance.gte(cost):
        raise InsufficientCreditsError(required=cost.value, available=balance.value)
    return balance


def _gate_question(question: Optional[str], extended_question: bool,
                   policy: QuestionLengthPolicy) -> bool:
    tier = policy.classify(question or "")
    if tier is QuestionTier.EXCEEDED:
        raise ValidationError("question", f"Question cannot exceed {policy.hard_limit} characters")
    if tier is QuestionTier.EXTENDED and not extended_question:
        raise ValidationError(
            "question",
            f"Questions over {policy.free_limit} characters must be shortened or sent as extended",
        )
    return tier is QuestionTier.EXTENDED


def start_reading(
    *,
    user_id: str,
    spread_id: str,
    interpretation: str,
    question: Optional[str] = None,
    style: Optional[str] = None,
    extended_question: bool = False,
    cards: Optional[Sequence[CardPosition]] = None,
    seed: Optional[str] = None,
    catalog: Optional[SpreadCatalog] = None,
    policy: QuestionLengthPolicy = DEFAULT_POLICY,
) -> Reading:
    catalog = catalog or default_catalog()
    spread = catalog.from_identifier(spread_id)
    interpretation_style = InterpretationStyle.parse(style)
    is_extended = _gate_question(question, extended_question, policy)

    quote = quote_reading_cost(spread, interpretation_style, is_extended)
    ensure_sufficient(user_id, quote.total)

    if cards is None:
        cards = draw_positions(full_deck(), spread.card_count, seed or secrets.token_urlsafe(16), salt=user_id)

    reading = Reading.create(
        user_id=user_id,
        spread=spread,
        cards=list(cards),
        interpretation=interpretation,
        interpretation_style=interpretation_style,
        question=question,
    )

    tx_id = ledger_db.debit_credits(user_id, quote.total, "READING", f"{spread.name} reading")
    try:
        saved = readings_db.save_reading(reading)
    except sqlite3.Error:
        log.exception("saving reading failed, refunding %s to user=%s tx=%s", quote.total, user_id, tx_id)
        ledger_db.refund_credits(user_id, quote.total, "Reading creation failed", reference=tx_id)
        raise

    log.info("reading created id=%s user=%s spread=%s charged=%s", saved.id, user_id, spread.identifier, quote.total)
    _record_reading_unlocks(user_id, spread, catalog)
    return saved


def _unlock(user_id: str, achievement_id: str) -> bool:
    return ledger_db.unlock_achievement(user_id, achievement_id, ACHIEVEMENTS_BY_ID[achievement_id].reward)


def _record_reading_unlocks(user_id: str, spread: SpreadDefinition, catalog: SpreadCatalog) -> List[str]:
    """Event-driven unlock decisions after a new reading. Failures here never undo the reading."""
    unlocked: List[str] = []
    try:
        total = readings_db.count_readings(user_id)
        history = {normalize_spread_id(h.spread_type) for h in readings_db.list_history(user_id) if h.spread_type}
        active = {s.identifier for s in catalog.active()}
        streak = ledger_db.get_login_streak(user_id)

        for a in ACHIEVEMENTS:
            due = (
                (a.kind is AchievementKind.READING_COUNT and total >= a.target)
                or (a.kind is AchievementKind.SPREAD and a.spread == spread.identifier)
                or (a.kind is AchievementKind.ALL_SPREADS and active <= history)
                or (a.kind is AchievementKind.STREAK and streak >= a.target)
            )
            if due and _unlock(user_id, a.id):
                unlocked.append(a.id)
    except sqlite3.Error:
        log.warning("achievement check failed for user=%s", user_id, exc_info=True)

    if unlocked:
        log.info("achievements unlocked user=%s ids=%s", user_id, unlocked)
    return unlocked


def record_login_streak(user_id: str, streak: int) -> List[str]:
    """Store the user's current login streak and unlock any streak achievement it reaches."""
    if isinstance(streak, bool) or not isinstance(streak, int) or streak < 0:
        raise ValidationError("loginStreak", "Login streak must be a non-negative integer")

    ledger_db.set_login_streak(user_id, streak)
    unlocked = [
        a.id for a in ACHIEVEMENTS
        if a.kind is AchievementKind.STREAK and streak >= a.target and _unlock(user_id, a.id)
    ]
    if unlocked:
        log.info("achievements unlocked user=%s ids=%s", user_id, unlocked)
    return unlocked


def load_owned_reading(user_id: str, reading_id: str) -> Reading:
    reading = readings_db.get_reading(reading_id)
    if reading is None or not reading.belongs_to(user_id):
        raise ReadingNotFoundError(reading_id)
    return reading


def ask_follow_up(*, user_id: str, reading_id: str, question: str, answer: str) -> FollowUpQuestion:
    if not question or not question.strip():
        raise ValidationError("question", "Question is required")
    if len(question) > config.MAX_QUESTION_LENGTH:
        raise ValidationError("question", f"Question must be {config.MAX_QUESTION_LENGTH} characters or less")

    reading = load_owned_reading(user_id, reading_id)
    cost = CreditAmount.of(config.FOLLOW_UP_COST)
    ensure_sufficient(user_id, cost)

    tx_id = ledger_db.debit_credits(user_id, cost, "QUESTION", "Follow-up question")
    follow_up = FollowUpQuestion(id=str(uuid.uuid4()), question=question, answer=answer)
    try:
        readings_db.add_follow_up(reading.id, follow_up)
    except sqlite3.Error:
        log.exception("saving follow-up failed, refunding %s to user=%s tx=%s", cost, user_id, tx_id)
        ledger_db.refund_credits(user_id, cost, "Follow-up creation failed", reference=tx_id)
        raise
    reading.add_follow_up(follow_up)

    if _unlock(user_id, "question_seeker"):
        log.info("achievements unlocked user=%s ids=%s", user_id, ["question_seeker"])
    return follow_up


def save_reflection(*, user_id: str, reading_id: str, reflection: str) -> Reading:
    reading = load_owned_reading(user_id, reading_id)
    reading.set_reflection(reflection)
    readings_db.update_reading(reading)
    return reading


def share_reading(*, user_id: str, reading_id: str) -> bool:
    """Mark a reading as shared. Returns True the first time the user shares anything."""
    load_owned_reading(user_id, reading_id)
    return _unlock(user_id, "share_reading")


def load_snapshot(user_id: str) -> UserProgressionSnapshot:
    return UserProgressionSnapshot(
        total_readings=readings_db.count_readings(user_id),
        login_streak=ledger_db.get_login_streak(user_id),
        unlocked_achievement_ids=ledger_db.get_unlocked_achievements(user_id),
        reading_history=readings_db.list_history(user_id),
    )


def get_progress(user_id: str, catalog: Optional[SpreadCatalog] = None) -> List[AchievementStatus]:
    return get_achievements_with_progress(load_snapshot(user_id), catalog)
