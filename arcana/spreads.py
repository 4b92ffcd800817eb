"""Spread catalog loader + helpers.

- Loads the spread table from arcana/data/spreads.json
- Provides: load_catalog(path), default_catalog(), SpreadCatalog.from_identifier(id)

The catalog is built once and handed to consumers; it is never mutated.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Optional

from . import config
from .credits import CreditAmount
from .errors import InvalidSpreadTypeError


class SpreadCatalogError(RuntimeError):
    pass


def normalize_spread_id(raw: str) -> str:
    """'THREE_CARD', 'three-card' and 'Three Card' all map to 'three_card'."""
    return raw.strip().lower().replace("-", "_").replace(" ", "_")


@dataclass(frozen=True)
class SpreadDefinition:
    identifier: str
    name: str
    card_count: int
    cost_value: int
    description: str = ""
    active: bool = True

    @property
    def code(self) -> str:
        """Upper-case form used in persisted rows."""
        return self.identifier.upper()

    @property
    def cost(self) -> CreditAmount:
        return CreditAmount.of(self.cost_value)

    def __str__(self) -> str:
        return self.identifier


class SpreadCatalog:
    def __init__(self, spreads: Iterable[SpreadDefinition]):
        table: Dict[str, SpreadDefinition] = {}
        for spread in spreads:
            if spread.identifier in table:
                raise SpreadCatalogError(f"Duplicate spread id: {spread.identifier}")
            table[spread.identifier] = spread
        self._spreads = MappingProxyType(table)

    def from_identifier(self, identifier: str) -> SpreadDefinition:
        key = normalize_spread_id(identifier or "")
        spread = self._spreads.get(key)
        if spread is None:
            raise InvalidSpreadTypeError(identifier, self.identifiers())
        return spread

    def identifiers(self) -> List[str]:
        return list(self._spreads)

    def all(self) -> List[SpreadDefinition]:
        return list(self._spreads.values())

    def active(self) -> "SpreadCatalog":
        return SpreadCatalog(s for s in self._spreads.values() if s.active)

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and normalize_spread_id(identifier) in self._spreads

    def __iter__(self) -> Iterator[SpreadDefinition]:
        return iter(self._spreads.values())

    def __len__(self) -> int:
        return len(self._spreads)


def _parse_spread(raw: Dict[str, Any]) -> SpreadDefinition:
    try:
        spread = SpreadDefinition(
            identifier=normalize_spread_id(raw["id"]),
            name=raw.get("name") or raw["id"],
            card_count=raw["card_count"],
            cost_value=raw["cost"],
            description=raw.get("description", ""),
            active=bool(raw.get("active", True)),
        )
    except KeyError as e:
        raise SpreadCatalogError(f"Spread entry missing field {e}: {raw}") from e

    if not isinstance(spread.card_count, int) or spread.card_count < 1:
        raise SpreadCatalogError(f"Spread {spread.identifier} has invalid card_count {spread.card_count}")
    if not isinstance(spread.cost_value, int) or spread.cost_value < 0:
        raise SpreadCatalogError(f"Spread {spread.identifier} has invalid cost {spread.cost_value}")
    return spread


def load_catalog(path) -> SpreadCatalog:
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise SpreadCatalogError(f"Spread data file not found at: {path}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SpreadCatalogError(f"Invalid JSON in {path}: {e}") from e

    if "spreads" not in data or not isinstance(data["spreads"], list) or not data["spreads"]:
        raise SpreadCatalogError("Spread data must contain a non-empty 'spreads' list.")
    return SpreadCatalog(_parse_spread(s) for s in data["spreads"])


_CATALOG_CACHE: Optional[SpreadCatalog] = None


def default_catalog() -> SpreadCatalog:
    global _CATALOG_CACHE
    if _CATALOG_CACHE is None:
        _CATALOG_CACHE = load_catalog(config.SPREADS_PATH)
    return _CATALOG_CACHE
