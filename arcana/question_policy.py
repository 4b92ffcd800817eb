"""Question length gate: a small state machine for one compose-and-submit interaction.

Tiers by length::

    empty -> ok (<= free limit) -> extended (<= hard limit) -> exceeded

An ``extended`` question can only be submitted after one of three remedies:
shorten it through the summarizer (free), authorize the extended tier by
paying a flat surcharge on top of the spread's cost, or edit it by hand.
Any edit clears a prior authorization, since it was granted for one exact text.

``QuestionLengthPolicy`` holds the pure transitions. ``QuestionSession`` wraps
one interaction and owns the single asynchronous edge: the shortening call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple

from . import config
from .credits import CreditAmount
from .errors import InsufficientCreditsError, SummarizationError

log = logging.getLogger("arcana.question_policy")


class QuestionTier(str, Enum):
    EMPTY = "empty"
    OK = "ok"
    EXTENDED = "extended"
    EXCEEDED = "exceeded"


class SubmitOutcome(str, Enum):
    ACCEPTED = "accepted"
    MISSING_QUESTION = "missing_question"
    NEEDS_REMEDIATION = "needs_remediation"
    TOO_LONG = "too_long"
    PENDING = "pending"


class Remedy(str, Enum):
    SHORTEN = "shorten"
    PAY = "pay"
    EDIT = "edit"


@dataclass(frozen=True)
class QuestionLengthState:
    text: str = ""
    tier: QuestionTier = QuestionTier.EMPTY
    extended_authorized: bool = False


@dataclass(frozen=True)
class SubmitDecision:
    outcome: SubmitOutcome
    message: Optional[str] = None
    remedies: Tuple[Remedy, ...] = ()
    surcharge: int = 0

    @property
    def accepted(self) -> bool:
        return self.outcome is SubmitOutcome.ACCEPTED


class QuestionLengthPolicy:
    def __init__(
        self,
        free_limit: int = config.QUESTION_FREE_LIMIT,
        hard_limit: int = config.QUESTION_HARD_LIMIT,
        surcharge: int = config.EXTENDED_QUESTION_SURCHARGE,
    ):
        if free_limit > hard_limit:
            raise ValueError("free_limit cannot exceed hard_limit")
        self.free_limit = free_limit
        self.hard_limit = hard_limit
        self.surcharge = surcharge

    def classify(self, text: str) -> QuestionTier:
        if not text.strip():
            return QuestionTier.EMPTY
        if len(text) <= self.free_limit:
            return QuestionTier.OK
        if len(text) <= self.hard_limit:
            return QuestionTier.EXTENDED
        return QuestionTier.EXCEEDED

    def load(self, text: str) -> QuestionLengthState:
        """Non-interactive input (paste from an API, restored drafts). No hard-limit clamp."""
        return QuestionLengthState(text=text, tier=self.classify(text))

    def edit(self, state: QuestionLengthState, text: str) -> QuestionLengthState:
        """Interactive edit. Text beyond the hard limit is rejected outright."""
        if len(text) > self.hard_limit:
            return state
        return QuestionLengthState(text=text, tier=self.classify(text))

    def cancel(self, state: QuestionLengthState) -> QuestionLengthState:
        return state

    def apply_summary(self, state: QuestionLengthState, summary: str) -> QuestionLengthState:
        return QuestionLengthState(text=summary, tier=self.classify(summary))

    def extended_cost(self, base_cost: CreditAmount) -> CreditAmount:
        return base_cost.add(CreditAmount.of(self.surcharge))

    def authorize_extended(
        self, state: QuestionLengthState, base_cost: CreditAmount, balance: CreditAmount
    ) -> QuestionLengthState:
        if state.tier is not QuestionTier.EXTENDED:
            return state
        total = self.extended_cost(base_cost)
        if not balance.gte(total):
            raise InsufficientCreditsError(required=total.value, available=balance.value)
        return replace(state, extended_authorized=True)

    def submit(self, state: QuestionLengthState) -> SubmitDecision:
        if state.tier is QuestionTier.EMPTY:
            return SubmitDecision(
                SubmitOutcome.MISSING_QUESTION,
                "Please write or choose your question before shuffling the cards.",
            )
        if state.tier is QuestionTier.EXCEEDED:
            return SubmitDecision(
                SubmitOutcome.TOO_LONG,
                f"Question too long ({len(state.text)}/{self.hard_limit} characters). Please shorten it.",
            )
        if state.tier is QuestionTier.EXTENDED:
            if not state.extended_authorized:
                return SubmitDecision(
                    SubmitOutcome.NEEDS_REMEDIATION,
                    f"Your question is longer than {self.free_limit} characters.",
                    remedies=(Remedy.SHORTEN, Remedy.PAY, Remedy.EDIT),
                )
            return SubmitDecision(SubmitOutcome.ACCEPTED, surcharge=self.surcharge)
        return SubmitDecision(SubmitOutcome.ACCEPTED)


DEFAULT_POLICY = QuestionLengthPolicy()

Summarize = Callable[[str, str], Awaitable[str]]


class QuestionSession:
    """One compose-and-submit interaction around a single question field."""

    SUMMARIZE_FAILED = "Failed to summarize question. Please try again."

    def __init__(
        self,
        summarize: Summarize,
        language: str = "en",
        policy: QuestionLengthPolicy = DEFAULT_POLICY,
    ):
        self.policy = policy
        self.language = language
        self.state = QuestionLengthState()
        self.error: Optional[str] = None
        self.pending = False
        self.active = True
        self._summarize = summarize

    @property
    def text(self) -> str:
        return self.state.text

    def edit(self, text: str) -> QuestionLengthState:
        self.state = self.policy.edit(self.state, text)
        self.error = None
        return self.state

    def load(self, text: str) -> QuestionLengthState:
        self.state = self.policy.load(text)
        self.error = None
        return self.state

    def submit(self) -> SubmitDecision:
        if self.pending:
            return SubmitDecision(SubmitOutcome.PENDING, "Your question is being shortened.")
        return self.policy.submit(self.state)

    def pay(self, base_cost: CreditAmount, balance: CreditAmount) -> QuestionLengthState:
        self.state = self.policy.authorize_extended(self.state, base_cost, balance)
        return self.state

    def deactivate(self) -> None:
        self.active = False

    async def shorten(self) -> bool:
        """Replace the question with a summary. Returns True if the summary was applied.

        Shortening is only offered for an ``extended`` question.
        """
        if self.pending or not self.active or self.state.tier is not QuestionTier.EXTENDED:
            return False

        requested = self.state.text
        self.pending = True
        self.error = None
        try:
            summary = await self._summarize(requested, self.language)
        except SummarizationError as e:
            log.warning("question summarization failed: %s", e)
            if self.active:
                self.error = self.SUMMARIZE_FAILED
            return False
        finally:
            self.pending = False

        if not self.active or self.state.text != requested:
            log.info("discarding stale summary (active=%s)", self.active)
            return False

        self.state = self.policy.apply_summary(self.state, summary)
        return True
