from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable

from campaign_prep.domain.models.encounter_table import (
    EncounterTable,
    EncounterTableEntry,
    EncounterTableRegistry,
    MonsterSuggestion,
    SelectorType,
)

logger = logging.getLogger(__name__)

TABLE_FILE_SUFFIX = ".table.json"
DEFAULT_TERRAIN = "forest"
D100_MIN = 1
D100_MAX = 100


def default_tables_dir() -> Path:
    return Path(__file__).resolve().parent / "data" / "encounter_tables"


def _parse_monster(raw: dict, table_id: str) -> MonsterSuggestion:
    name = str(raw.get("name") or "").strip()
    if not name:
        raise ValueError(f"Encounter table {table_id}: monster suggestion without a name")
    notes = raw.get("notes")
    return MonsterSuggestion(
        name=name,
        count=str(raw.get("count") or "1"),
        source=str(raw.get("source") or ""),
        notes=str(notes) if notes else None,
    )


def _parse_entry(raw: dict, table_id: str) -> EncounterTableEntry:
    bounds = raw.get("range")
    if not isinstance(bounds, (list, tuple)) or len(bounds) != 2:
        raise ValueError(f"Encounter table {table_id}: entry range must be [min, max]")
    range_min, range_max = int(bounds[0]), int(bounds[1])
    if range_min > range_max or range_min < D100_MIN or range_max > D100_MAX:
        raise ValueError(f"Encounter table {table_id}: invalid range {range_min}-{range_max}")
    cr_bucket = str(raw.get("cr_bucket") or "").strip()
    if not cr_bucket.startswith("cr:"):
        raise ValueError(f"Encounter table {table_id}: entry {range_min}-{range_max} has no cr bucket")
    text_value = str(raw.get("text") or "").strip()
    if not text_value:
        raise ValueError(f"Encounter table {table_id}: entry {range_min}-{range_max} has no text")
    notes = raw.get("notes")
    return EncounterTableEntry(
        range_min=range_min,
        range_max=range_max,
        text=text_value,
        cr_bucket=cr_bucket,
        encounter_type=str(raw.get("encounter_type") or ""),
        monster_suggestions=tuple(
            _parse_monster(monster, table_id) for monster in raw.get("monster_suggestions") or []
        ),
        needs_homebrew=bool(raw.get("needs_homebrew", False)),
        notes=str(notes) if notes else None,
    )


def _validate_coverage(table_id: str, entries: Iterable[EncounterTableEntry]) -> None:
    expected = D100_MIN
    for entry in sorted(entries, key=lambda row: row.range_min):
        if entry.range_min != expected:
            raise ValueError(
                f"Encounter table {table_id}: expected a row starting at {expected}, found {entry.range_min}"
            )
        expected = entry.range_max + 1
    if expected != D100_MAX + 1:
        raise ValueError(f"Encounter table {table_id}: rows stop at {expected - 1}, expected {D100_MAX}")


def parse_encounter_table(payload: dict) -> EncounterTable:
    table_id = str(payload.get("id") or "").strip()
    if not table_id:
        raise ValueError("Encounter table without an id")
    selectors = payload.get("selectors") or {}
    if not isinstance(selectors, dict) or not selectors:
        raise ValueError(f"Encounter table {table_id}: missing selectors")
    unknown = [key for key in selectors if key not in {item.value for item in SelectorType}]
    if unknown:
        raise ValueError(f"Encounter table {table_id}: unknown selector(s) {', '.join(unknown)}")

    entries = tuple(_parse_entry(raw, table_id) for raw in payload.get("entries") or [])
    if not entries:
        raise ValueError(f"Encounter table {table_id}: no entries")
    _validate_coverage(table_id, entries)

    return EncounterTable(
        id=table_id,
        title=str(payload.get("title") or table_id),
        selectors={str(key): str(value).strip().lower() for key, value in selectors.items()},
        entries=tuple(sorted(entries, key=lambda row: row.range_min)),
    )


def build_registry(tables: Iterable[EncounterTable], default_terrain: str = DEFAULT_TERRAIN) -> EncounterTableRegistry:
    terrain_tables: Dict[str, EncounterTable] = {}
    travel_tables: Dict[str, EncounterTable] = {}
    for table in tables:
        terrain_key = table.selectors.get(SelectorType.TERRAIN.value)
        travel_key = table.selectors.get(SelectorType.TRAVEL.value)
        if terrain_key:
            if terrain_key in terrain_tables:
                raise ValueError(f"Duplicate terrain table for '{terrain_key}': {table.id}")
            terrain_tables[terrain_key] = table
        if travel_key:
            if travel_key in travel_tables:
                raise ValueError(f"Duplicate travel table for '{travel_key}': {table.id}")
            travel_tables[travel_key] = table
    return EncounterTableRegistry(
        terrain_tables=terrain_tables,
        travel_tables=travel_tables,
        default_terrain=default_terrain,
    )


def load_encounter_table_registry(directory: Path | None = None) -> EncounterTableRegistry:
    """Load every ``*.table.json`` file under ``directory`` into a registry.

    Broken table files are a packaging error and raise ``ValueError``.
    """
    resolved = Path(directory) if directory is not None else default_tables_dir()
    tables = []
    for path in sorted(resolved.glob(f"*{TABLE_FILE_SUFFIX}"), key=lambda row: row.name):
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Encounter table file {path.name} is not valid JSON: {exc}") from exc
        tables.append(parse_encounter_table(payload))
    registry = build_registry(tables)
    logger.debug(
        "Loaded %s terrain and %s travel encounter tables from %s",
        len(registry.terrain_tables),
        len(registry.travel_tables),
        resolved,
    )
    return registry
