"""Tests for reading persistence and the credit ledger."""

import pytest

from arcana.credits import CreditAmount
from arcana.errors import InsufficientCreditsError
from arcana.models import FollowUpQuestion
from arcana.reading import Reading
from arcana.readings_storage import ledger_db, readings_db
from arcana.spreads import default_catalog

from conftest import make_cards


def _new_reading(user_id="user-1", spread_id="three_card", question="What now?"):
    spread = default_catalog().from_identifier(spread_id)
    return Reading.create(
        user_id=user_id,
        spread=spread,
        cards=make_cards(spread.card_count),
        interpretation="Change is coming.",
        question=question,
    )


class TestReadingPersistence:
    def test_save_and_get_reading(self, temp_db):
        saved = readings_db.save_reading(_new_reading())
        assert saved.id

        retrieved = readings_db.get_reading(saved.id)
        assert retrieved is not None
        assert retrieved.id == saved.id
        assert retrieved.user_id == "user-1"
        assert retrieved.spread_type == "three_card"
        assert retrieved.question == "What now?"
        assert retrieved.cards == saved.cards
        assert retrieved.credit_cost.value == 3
        assert retrieved.follow_ups == []

    def test_get_missing_reading(self, temp_db):
        assert readings_db.get_reading("nope") is None

    def test_save_twice_rejected(self, temp_db):
        saved = readings_db.save_reading(_new_reading())
        with pytest.raises(ValueError):
            readings_db.save_reading(saved)

    def test_update_annotations(self, temp_db):
        saved = readings_db.save_reading(_new_reading())
        saved.set_reflection("It resonated.")
        saved.set_summary("Change.")
        saved.set_themes(["change", "hope"])
        readings_db.update_reading(saved)

        retrieved = readings_db.get_reading(saved.id)
        assert retrieved.user_reflection == "It resonated."
        assert retrieved.summary == "Change."
        assert retrieved.themes == ["change", "hope"]

    def test_follow_ups_persist_in_order(self, temp_db):
        saved = readings_db.save_reading(_new_reading())
        readings_db.add_follow_up(saved.id, FollowUpQuestion(id="f1", question="When?", answer="Soon."))
        readings_db.add_follow_up(saved.id, FollowUpQuestion(id="f2", question="Where?", answer="Here."))

        retrieved = readings_db.get_reading(saved.id)
        assert retrieved.get_follow_up_count() == 2
        assert [f.id for f in retrieved.follow_ups] == ["f1", "f2"]

    def test_history_and_count(self, temp_db):
        readings_db.save_reading(_new_reading(spread_id="single"))
        readings_db.save_reading(_new_reading(spread_id="celtic_cross"))
        readings_db.save_reading(_new_reading(user_id="user-2"))

        history = readings_db.list_history("user-1")
        assert sorted(h.spread_type for h in history) == ["CELTIC_CROSS", "SINGLE"]
        assert readings_db.count_readings("user-1") == 2
        assert readings_db.count_readings("user-3") == 0


class TestLedger:
    def test_unknown_account_has_zero_balance(self, temp_db):
        assert ledger_db.get_balance("ghost").is_zero()

    def test_grant_and_debit(self, fund):
        assert fund("user-1", 5).value == 5
        ledger_db.debit_credits("user-1", CreditAmount.of(3), "READING", "Three Card reading")
        assert ledger_db.get_balance("user-1").value == 2

        types = [t["type"] for t in ledger_db.get_transactions("user-1")]
        assert sorted(types) == ["BONUS", "READING"]

    def test_debit_never_goes_negative(self, fund):
        fund("user-1", 2)
        with pytest.raises(InsufficientCreditsError) as exc:
            ledger_db.debit_credits("user-1", CreditAmount.of(3), "READING")
        assert exc.value.required == 3
        assert exc.value.available == 2
        assert ledger_db.get_balance("user-1").value == 2
        assert len(ledger_db.get_transactions("user-1")) == 1

    def test_debit_without_account(self, temp_db):
        with pytest.raises(InsufficientCreditsError) as exc:
            ledger_db.debit_credits("ghost", CreditAmount.of(1), "QUESTION")
        assert exc.value.available == 0

    def test_refund_references_debit(self, fund):
        fund("user-1", 4)
        tx_id = ledger_db.debit_credits("user-1", CreditAmount.of(4), "READING")
        ledger_db.refund_credits("user-1", CreditAmount.of(4), "Reading creation failed", reference=tx_id)

        assert ledger_db.get_balance("user-1").value == 4
        refund = [t for t in ledger_db.get_transactions("user-1") if t["type"] == "REFUND"][0]
        assert refund["reference"] == tx_id
        assert refund["amount"] == 4

    def test_unlock_is_idempotent(self, temp_db):
        assert ledger_db.unlock_achievement("user-1", "first_reading") is True
        assert ledger_db.unlock_achievement("user-1", "first_reading") is False
        assert ledger_db.get_unlocked_achievements("user-1") == {"first_reading"}

    def test_login_streak(self, temp_db):
        assert ledger_db.get_login_streak("user-1") == 0
        ledger_db.set_login_streak("user-1", 8)
        assert ledger_db.get_login_streak("user-1") == 8

    def test_unlock_credits_reward_once(self, fund):
        fund("user-1", 1)
        assert ledger_db.unlock_achievement("user-1", "share_reading", reward=3) is True
        assert ledger_db.unlock_achievement("user-1", "share_reading", reward=3) is False

        assert ledger_db.get_balance("user-1").value == 4
        rewards = [t for t in ledger_db.get_transactions("user-1") if t["type"] == "ACHIEVEMENT"]
        assert len(rewards) == 1
        assert rewards[0]["reference"] == "share_reading"

    def test_reward_opens_account(self, temp_db):
        ledger_db.unlock_achievement("newcomer", "week_streak", reward=10)
        assert ledger_db.get_balance("newcomer").value == 10
