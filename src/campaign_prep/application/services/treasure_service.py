from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Sequence

from campaign_prep.application.dtos import ExplainStep, TreasureSuggestion
from campaign_prep.application.services.dice import evaluate_dice, roll_d100
from campaign_prep.application.services.seed_policy import Rng, Seed, pick_index, resolve_rng
from campaign_prep.domain.models.loot import (
    ItemListTable,
    ItemRangeTable,
    ItemTable,
    LootBucket,
    LootDataset,
)

logger = logging.getLogger(__name__)

LOOT_MODES = ("individual", "hoard")

NO_MONSTERS_WARNING = "No monsters provided; returning empty treasure."
NO_SEED_WARNING = "No seed provided; treasure rolls are non-deterministic."

_COIN_LINE = re.compile(r"^(\S+)\s+([a-zA-Z]+)$")


@dataclass(frozen=True)
class TreasureMonster:
    name: str
    cr: float


@dataclass
class LootDraw:
    coins: List[str] = field(default_factory=list)
    valuables: List[str] = field(default_factory=list)
    magic_items: List[str] = field(default_factory=list)


def _scaled_index(roll: int, length: int) -> int:
    index = int((roll - 1) / 100 * length)
    return min(max(index, 0), length - 1)


def _select_bucket(buckets: Sequence[LootBucket], cr: float) -> LootBucket | None:
    for bucket in buckets:
        if bucket.covers(cr):
            return bucket
    return buckets[0] if buckets else None


def draw_valuables(tables: Sequence[ItemTable], table_type: str, qty: str, rng: Rng) -> list[str]:
    total = evaluate_dice(qty or "1", rng)
    table = next((entry for entry in tables if str(entry.key) == str(table_type)), None)
    if table is None:
        return []
    results: list[str] = []
    if isinstance(table, ItemListTable):
        if not table.items:
            return results
        for _ in range(total):
            item = table.items[_scaled_index(roll_d100(rng), len(table.items))]
            if item:
                results.append(item)
        return results
    for _ in range(total):
        row = table.row_for_roll(roll_d100(rng))
        if row is not None and row.item:
            results.append(row.item)
    return results


def _magic_table_matches(table: ItemTable, table_name: str) -> bool:
    if isinstance(table, ItemListTable):
        return table.key == table_name
    return (
        table_name == table.key
        or table_name == f"Magic Item Table {table.type}"
        or table_name.endswith(f" {table.type}")
    )


def draw_magic_items(tables: Sequence[ItemTable], table_name: str, qty: str, rng: Rng) -> list[str]:
    total = evaluate_dice(qty or "1", rng)
    table = next((entry for entry in tables if _magic_table_matches(entry, table_name)), None)
    if table is None:
        return []
    results: list[str] = []
    for _ in range(total):
        roll = roll_d100(rng)
        if isinstance(table, ItemListTable):
            if table.items:
                item = table.items[_scaled_index(roll, len(table.items))]
                if item:
                    results.append(item)
            continue
        row = table.row_for_roll(roll)
        if row is None:
            continue
        if row.item:
            results.append(row.item)
            continue
        if row.choose_from:
            results.append(row.choose_from[pick_index(len(row.choose_from), rng)])
            continue
        if row.choose_matching:
            matching = json.dumps(dict(row.choose_matching), separators=(",", ":"))
            results.append(f"Magic item matching {matching}")
    return results


def generate_loot(dataset: LootDataset, cr: float, mode: str, rng: Rng) -> LootDraw | None:
    buckets = dataset.individual if mode == "individual" else dataset.hoard
    bucket = _select_bucket(buckets, cr)
    if bucket is None:
        return None
    row = bucket.row_for_roll(roll_d100(rng))
    draw = LootDraw()
    if row is not None:
        draw.coins = [f"{value} {coin}" for coin, value in row.coins]
    if mode == "hoard":
        for valuable in bucket.gems:
            draw.valuables.extend(draw_valuables(dataset.gems, valuable.type, valuable.qty, rng))
        for valuable in bucket.art_objects:
            draw.valuables.extend(draw_valuables(dataset.art_objects, valuable.type, valuable.qty, rng))
        for magic in bucket.magic_items:
            draw.magic_items.extend(draw_magic_items(dataset.magic_items, magic.table, magic.qty, rng))
    return draw


def sum_coins(coin_lines: Sequence[str], rng: Rng) -> dict[str, int]:
    totals: dict[str, int] = {}
    for line in coin_lines:
        match = _COIN_LINE.match(line.strip())
        if not match:
            continue
        amount = evaluate_dice(match.group(1), rng)
        coin = match.group(2).lower()
        totals[coin] = totals.get(coin, 0) + amount
    return totals


def _format_cr(cr: float) -> str:
    return str(int(cr)) if float(cr).is_integer() else str(cr)


def build_treasure_suggestion(
    monsters: Sequence[TreasureMonster],
    loot_type: str,
    loot_data: LootDataset,
    seed: Seed | None = None,
    rng: Rng | None = None,
) -> TreasureSuggestion:
    warnings: list[str] = []
    explain: list[ExplainStep] = []
    deterministic = True
    if rng is None:
        rng, deterministic = resolve_rng(seed)

    if not monsters:
        warnings.append(NO_MONSTERS_WARNING)

    crs = [monster.cr for monster in monsters]
    coin_lines: list[str] = []
    valuables: list[str] = []
    items: list[str] = []

    if loot_type == "individual":
        for monster in monsters:
            draw = generate_loot(loot_data, monster.cr, "individual", rng)
            if draw is None:
                continue
            coin_lines.extend(draw.coins)
            valuables.extend(draw.valuables)
            items.extend(draw.magic_items)
        explain.append(ExplainStep("roll", f"Rolled individual treasure for {len(monsters)} monster(s)."))
    else:
        max_cr = max(crs) if crs else 0
        draw = generate_loot(loot_data, max_cr, "hoard", rng)
        if draw is not None:
            coin_lines.extend(draw.coins)
            valuables.extend(draw.valuables)
            items.extend(draw.magic_items)
        explain.append(ExplainStep("roll", f"Rolled hoard treasure for CR {_format_cr(max_cr)}."))

    if not deterministic:
        warnings.append(NO_SEED_WARNING)

    coins = sum_coins(coin_lines, rng)
    logger.debug("Treasure (%s): %s coin line(s), %s valuable(s), %s item(s)", loot_type, len(coin_lines), len(valuables), len(items))
    return TreasureSuggestion(
        coins=coins,
        valuables=valuables,
        items=items,
        explain=explain,
        inputs_used={"lootType": loot_type, "crs": crs, "seed": seed},
        warnings=warnings,
    )
