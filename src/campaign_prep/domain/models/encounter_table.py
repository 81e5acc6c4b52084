from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple


class SelectorType(str, Enum):
    TERRAIN = "terrain"
    TRAVEL = "travel"


@dataclass(frozen=True)
class MonsterSuggestion:
    name: str
    count: str = "1"
    source: str = ""
    notes: str | None = None


@dataclass(frozen=True)
class EncounterTableEntry:
    range_min: int
    range_max: int
    text: str
    cr_bucket: str
    encounter_type: str = ""
    monster_suggestions: Tuple[MonsterSuggestion, ...] = ()
    needs_homebrew: bool = False
    notes: str | None = None

    def contains(self, roll: int) -> bool:
        return self.range_min <= roll <= self.range_max


@dataclass(frozen=True)
class EncounterTable:
    id: str
    title: str
    selectors: Dict[str, str] = field(default_factory=dict)
    entries: Tuple[EncounterTableEntry, ...] = ()

    def index_for_roll(self, roll: int) -> int | None:
        for index, entry in enumerate(self.entries):
            if entry.contains(roll):
                return index
        return None


@dataclass(frozen=True)
class TableMatch:
    table: EncounterTable
    selector_type: SelectorType
    selector_value: str
    fallback: bool = False


@dataclass(frozen=True)
class EncounterTableRegistry:
    terrain_tables: Dict[str, EncounterTable] = field(default_factory=dict)
    travel_tables: Dict[str, EncounterTable] = field(default_factory=dict)
    default_terrain: str = "forest"
