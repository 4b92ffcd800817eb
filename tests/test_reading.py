"""Tests for the Reading entity."""

from datetime import datetime, timezone

import pytest

from arcana.errors import ValidationError
from arcana.models import CardPosition, FollowUpQuestion, InterpretationStyle
from arcana.reading import Reading
from arcana.spreads import default_catalog

from conftest import make_cards


def _create(spread_id="three_card", cards=None, interpretation="The tower falls, the star rises.", question="Will it work?"):
    spread = default_catalog().from_identifier(spread_id)
    return Reading.create(
        user_id="user-1",
        spread=spread,
        cards=make_cards(spread.card_count) if cards is None else cards,
        interpretation=interpretation,
        question=question,
    )


class TestCreate:
    @pytest.mark.parametrize("spread", default_catalog().all(), ids=lambda s: s.identifier)
    def test_exact_card_count_succeeds(self, spread):
        reading = _create(spread.identifier)
        assert len(reading.cards) == spread.card_count
        assert reading.credit_cost.value == spread.cost_value

    @pytest.mark.parametrize("spread", default_catalog().all(), ids=lambda s: s.identifier)
    @pytest.mark.parametrize("delta", [-1, 1])
    def test_wrong_card_count_fails_on_cards(self, spread, delta):
        with pytest.raises(ValidationError) as exc:
            _create(spread.identifier, cards=make_cards(spread.card_count + delta))
        assert exc.value.field == "cards"

    def test_positions_must_be_contiguous(self):
        cards = [CardPosition(card_id=f"c{i}", position=p) for i, p in enumerate([0, 1, 3])]
        with pytest.raises(ValidationError) as exc:
            _create(cards=cards)
        assert exc.value.field == "cards"

    def test_positions_must_be_unique(self):
        cards = [CardPosition(card_id=f"c{i}", position=p) for i, p in enumerate([0, 1, 1])]
        with pytest.raises(ValidationError) as exc:
            _create(cards=cards)
        assert exc.value.field == "cards"

    @pytest.mark.parametrize("interpretation", ["", " ", "\n\t  "])
    def test_blank_interpretation_fails(self, interpretation):
        with pytest.raises(ValidationError) as exc:
            _create(interpretation=interpretation)
        assert exc.value.field == "interpretation"

    def test_question_length_limit(self):
        assert _create(question="q" * 1000).question == "q" * 1000
        with pytest.raises(ValidationError) as exc:
            _create(question="q" * 1001)
        assert exc.value.field == "question"

    def test_new_reading_defaults(self):
        reading = _create(question="")
        assert reading.id is None
        assert reading.question is None
        assert reading.summary is None
        assert reading.user_reflection is None
        assert reading.themes == []
        assert reading.follow_ups == []
        assert reading.interpretation_style is InterpretationStyle.CLASSIC
        assert reading.spread_type == "three_card"

    def test_cards_are_copied(self):
        reading = _create()
        reading.cards.append(CardPosition(card_id="x", position=9))
        assert len(reading.cards) == 3


class TestFromPersistence:
    def _row(self, **overrides):
        row = {
            "id": "r-1",
            "user_id": "user-1",
            "spread_type": "THREE_CARD",
            "interpretation_style": "SPIRITUAL",
            "question": "x" * 1500,
            "cards": [{"card_id": "a", "position": 0, "is_reversed": False}],
            "interpretation": "",
            "summary": None,
            "user_reflection": None,
            "themes": ["change"],
            "credit_cost": 2,
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        row.update(overrides)
        return row

    def test_loads_rows_that_no_longer_validate(self):
        reading = Reading.from_persistence(self._row())
        assert reading.id == "r-1"
        assert len(reading.cards) == 1
        assert reading.interpretation == ""
        assert reading.credit_cost.value == 2
        assert reading.spread_type == "three_card"
        assert reading.interpretation_style is InterpretationStyle.SPIRITUAL

    def test_cost_is_not_recomputed_from_catalog(self):
        reading = Reading.from_persistence(self._row(credit_cost=1))
        assert reading.credit_cost.value == 1

    def test_round_trip_projection(self):
        reading = Reading.from_persistence(self._row(interpretation="ok"))
        row = reading.to_persistence()
        assert row["spread_type"] == "THREE_CARD"
        assert row["interpretation_style"] == "SPIRITUAL"
        assert row["credit_cost"] == 2
        assert row["cards"] == [{"card_id": "a", "position": 0, "is_reversed": False}]


class TestMutators:
    def test_reflection(self):
        reading = _create()
        assert not reading.has_reflection()
        reading.set_reflection("This felt true.")
        assert reading.has_reflection()
        assert reading.user_reflection == "This felt true."

    def test_oversized_reflection_keeps_previous(self):
        reading = _create()
        reading.set_reflection("first")
        with pytest.raises(ValidationError) as exc:
            reading.set_reflection("r" * 1001)
        assert exc.value.field == "userReflection"
        assert reading.user_reflection == "first"

    def test_summary_and_themes_replace(self):
        reading = _create()
        reading.set_summary("Short version")
        reading.set_themes(["growth", "patience"])
        reading.set_themes(["release"])
        assert reading.has_summary()
        assert reading.themes == ["release"]

    def test_follow_ups_append(self):
        reading = _create()
        for i in range(3):
            reading.add_follow_up(FollowUpQuestion(id=f"f{i}", question="and then?", answer="wait"))
        assert reading.get_follow_up_count() == 3
        assert [f.id for f in reading.follow_ups] == ["f0", "f1", "f2"]

    def test_belongs_to(self):
        reading = _create()
        assert reading.belongs_to("user-1")
        assert not reading.belongs_to("user-2")
