from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from campaign_prep.domain.models.loot import (
    CoinRow,
    ItemListTable,
    ItemRangeTable,
    ItemRow,
    ItemTable,
    LootBucket,
    LootDataset,
    MagicItemDraw,
    ValuableDraw,
)

logger = logging.getLogger(__name__)


def default_loot_path() -> Path:
    return Path(__file__).resolve().parent / "data" / "loot_tables.json"


def _as_list(raw: Any) -> list:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"expected a list, got {type(raw).__name__}")
    return raw


def _as_number(raw: Any, default: float) -> float:
    if raw is None:
        return default
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"expected a number, got {raw!r}")
    return raw


def _parse_coin_row(raw: dict) -> CoinRow:
    coins = raw.get("coins") or {}
    return CoinRow(
        range_min=int(raw["min"]),
        range_max=int(raw["max"]),
        coins=tuple((str(coin), str(value)) for coin, value in coins.items() if value is not None),
    )


def _parse_bucket(raw: dict) -> LootBucket:
    return LootBucket(
        cr_min=_as_number(raw.get("crMin"), 0),
        cr_max=_as_number(raw.get("crMax"), 100),
        rows=tuple(_parse_coin_row(row) for row in _as_list(raw.get("table"))),
        gems=tuple(
            ValuableDraw(type=str(entry.get("type") or ""), qty=str(entry.get("qty") or ""))
            for entry in _as_list(raw.get("gems"))
        ),
        art_objects=tuple(
            ValuableDraw(type=str(entry.get("type") or ""), qty=str(entry.get("qty") or ""))
            for entry in _as_list(raw.get("artObjects"))
        ),
        magic_items=tuple(
            MagicItemDraw(table=str(entry.get("table") or ""), qty=str(entry.get("qty") or ""))
            for entry in _as_list(raw.get("magicItems"))
        ),
        name=str(raw.get("name") or ""),
    )


def _parse_item_row(raw: dict) -> ItemRow:
    choose = raw.get("choose") or {}
    group = choose.get("fromGroup")
    if group is None:
        group = choose.get("fromGeneric")
    matching = choose.get("fromMatching") or {}
    return ItemRow(
        range_min=int(raw["min"]),
        range_max=int(raw["max"]),
        item=str(raw["item"]) if raw.get("item") else None,
        choose_from=tuple(str(choice) for choice in _as_list(group)),
        choose_matching=tuple((str(key), str(value)) for key, value in matching.items()),
    )


def _parse_valuable_table(raw: dict) -> ItemTable:
    key = str(raw["type"])
    rows = _as_list(raw.get("table"))
    if rows and isinstance(rows[0], str):
        return ItemListTable(key=key, items=tuple(str(item) for item in rows), type=key)
    return ItemRangeTable(key=key, rows=tuple(_parse_item_row(row) for row in rows), type=key)


def _parse_magic_table(raw: dict) -> ItemTable:
    if "items" in raw:
        return ItemListTable(
            key=str(raw.get("table") or ""),
            items=tuple(str(item) for item in _as_list(raw.get("items"))),
            type=str(raw.get("tableName") or ""),
        )
    return ItemRangeTable(
        key=str(raw.get("name") or ""),
        rows=tuple(_parse_item_row(row) for row in _as_list(raw.get("table"))),
        type=str(raw.get("type") or ""),
    )


def parse_loot_dataset(payload: Any) -> Optional[LootDataset]:
    """Build a dataset from decoded JSON; anything malformed yields ``None``."""
    if not isinstance(payload, dict):
        return None
    try:
        metadata = payload.get("metadata") or {}
        return LootDataset(
            individual=tuple(_parse_bucket(bucket) for bucket in _as_list(payload.get("individual"))),
            hoard=tuple(_parse_bucket(bucket) for bucket in _as_list(payload.get("hoard"))),
            gems=tuple(_parse_valuable_table(table) for table in _as_list(payload.get("gems"))),
            art_objects=tuple(_parse_valuable_table(table) for table in _as_list(payload.get("artObjects"))),
            magic_items=tuple(_parse_magic_table(table) for table in _as_list(payload.get("magicItems"))),
            metadata={str(key): str(value) for key, value in dict(metadata).items()},
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        logger.debug("Rejected malformed loot dataset: %s", exc)
        return None


def load_loot_dataset(path: Path | str | None = None) -> Optional[LootDataset]:
    """Read the loot dataset from ``path``, ``PREP_LOOT_DATA_PATH`` or the bundled file."""
    env_path = os.getenv("PREP_LOOT_DATA_PATH")
    resolved = Path(path) if path is not None else Path(env_path) if env_path else default_loot_path()
    try:
        payload = json.loads(resolved.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.debug("Could not read loot dataset %s: %s", resolved, exc)
        return None
    return parse_loot_dataset(payload)
