import pytest

import arcana.readings_storage.ledger_db as ledger_module
import arcana.readings_storage.readings_db as readings_module
from arcana.credits import CreditAmount
from arcana.models import CardPosition
from arcana.spreads import SpreadCatalog, SpreadDefinition


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """Point both storage modules at a fresh database file."""
    db_path = str(tmp_path / "arcana_test.db")
    monkeypatch.setattr(readings_module, "DB_PATH", db_path)
    monkeypatch.setattr(ledger_module, "DB_PATH", db_path)
    readings_module.init_db()
    ledger_module.init_db()
    return db_path


@pytest.fixture
def fund(temp_db):
    def _fund(user_id: str, amount: int):
        return ledger_module.grant_credits(user_id, CreditAmount.of(amount), "BONUS", "test funding")
    return _fund


@pytest.fixture
def five_spread_catalog():
    return SpreadCatalog([
        SpreadDefinition("single", "Single Card", 1, 1),
        SpreadDefinition("three_card", "Three Card", 3, 3),
        SpreadDefinition("five_card", "Five Card", 5, 5),
        SpreadDefinition("horseshoe", "Horseshoe Spread", 7, 7),
        SpreadDefinition("celtic_cross", "Celtic Cross", 10, 10),
    ])


def make_cards(count: int):
    return [CardPosition(card_id=f"major_{i:02d}", position=i, is_reversed=i % 2 == 1) for i in range(count)]
