from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple, Union


@dataclass(frozen=True)
class CoinRow:
    """d100 row of a loot bucket; coin values are dice expressions keyed by coin code."""

    range_min: int
    range_max: int
    coins: Tuple[Tuple[str, str], ...] = ()

    def contains(self, roll: int) -> bool:
        return self.range_min <= roll <= self.range_max


@dataclass(frozen=True)
class ValuableDraw:
    type: str
    qty: str = ""


@dataclass(frozen=True)
class MagicItemDraw:
    table: str
    qty: str = ""


@dataclass(frozen=True)
class LootBucket:
    cr_min: float = 0
    cr_max: float = 100
    rows: Tuple[CoinRow, ...] = ()
    gems: Tuple[ValuableDraw, ...] = ()
    art_objects: Tuple[ValuableDraw, ...] = ()
    magic_items: Tuple[MagicItemDraw, ...] = ()
    name: str = ""

    def covers(self, cr: float) -> bool:
        return self.cr_min <= cr <= self.cr_max

    def row_for_roll(self, roll: int) -> CoinRow | None:
        for row in self.rows:
            if row.contains(roll):
                return row
        return None


@dataclass(frozen=True)
class ItemRow:
    range_min: int
    range_max: int
    item: str | None = None
    choose_from: Tuple[str, ...] = ()
    choose_matching: Tuple[Tuple[str, str], ...] = ()

    def contains(self, roll: int) -> bool:
        return self.range_min <= roll <= self.range_max


@dataclass(frozen=True)
class ItemListTable:
    """Sub-table whose d100 roll is scaled onto a plain item list."""

    key: str
    items: Tuple[str, ...] = ()
    type: str = ""


@dataclass(frozen=True)
class ItemRangeTable:
    """Sub-table of explicit d100 rows."""

    key: str
    rows: Tuple[ItemRow, ...] = ()
    type: str = ""

    def row_for_roll(self, roll: int) -> ItemRow | None:
        for row in self.rows:
            if row.contains(roll):
                return row
        return None


ItemTable = Union[ItemListTable, ItemRangeTable]


@dataclass(frozen=True)
class LootDataset:
    individual: Tuple[LootBucket, ...] = ()
    hoard: Tuple[LootBucket, ...] = ()
    gems: Tuple[ItemTable, ...] = ()
    art_objects: Tuple[ItemTable, ...] = ()
    magic_items: Tuple[ItemTable, ...] = ()
    metadata: Dict[str, str] = field(default_factory=dict)
