import json

import pytest

from arcana.errors import InvalidSpreadTypeError
from arcana.spreads import SpreadCatalogError, default_catalog, load_catalog


def test_default_catalog_entries():
    catalog = default_catalog()
    assert len(catalog) == 8
    three = catalog.from_identifier("three_card")
    assert three.card_count == 3
    assert three.cost_value == 3
    assert three.cost.value == 3
    assert three.code == "THREE_CARD"


@pytest.mark.parametrize("raw", ["THREE_CARD", "three-card", "Three Card", " three_card "])
def test_lookup_normalizes_identifier(raw):
    assert default_catalog().from_identifier(raw).identifier == "three_card"


def test_unknown_spread_raises():
    with pytest.raises(InvalidSpreadTypeError) as exc:
        default_catalog().from_identifier("pentagram")
    assert exc.value.value == "pentagram"
    assert "celtic_cross" in exc.value.valid


def test_active_catalog_excludes_legacy_spreads():
    active = default_catalog().active()
    assert [s.identifier for s in active] == ["single", "three_card", "five_card", "horseshoe", "celtic_cross"]
    assert "love" not in active
    assert "love" in default_catalog()


def test_load_catalog_rejects_bad_entries(tmp_path):
    path = tmp_path / "spreads.json"
    path.write_text(json.dumps({"spreads": [{"id": "single", "card_count": 0, "cost": 1}]}), encoding="utf-8")
    with pytest.raises(SpreadCatalogError, match="invalid card_count"):
        load_catalog(path)


def test_load_catalog_rejects_duplicates(tmp_path):
    entry = {"id": "single", "card_count": 1, "cost": 1}
    path = tmp_path / "spreads.json"
    path.write_text(json.dumps({"spreads": [entry, entry]}), encoding="utf-8")
    with pytest.raises(SpreadCatalogError, match="Duplicate"):
        load_catalog(path)


def test_load_catalog_missing_file(tmp_path):
    with pytest.raises(SpreadCatalogError, match="not found"):
        load_catalog(tmp_path / "nope.json")
