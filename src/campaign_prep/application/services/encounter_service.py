from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from campaign_prep.application.dtos import (
    EncounterPlan,
    EncounterPrep,
    EncounterSuggestion,
    ExplainStep,
    MonsterSuggestionView,
    PartyConfig,
)
from campaign_prep.application.services.balance_tables import (
    clamp_party_level,
    clamp_party_size,
    get_encounter_budget,
    normalize_difficulty,
    resolve_cr_buckets,
)
from campaign_prep.application.services.dice import roll_d100
from campaign_prep.application.services.encounter_tables import resolve_encounter_table
from campaign_prep.application.services.seed_policy import Rng, Seed, pick_index, resolve_rng
from campaign_prep.domain.models.document import Tag
from campaign_prep.domain.models.encounter_table import (
    EncounterTable,
    EncounterTableEntry,
    EncounterTableRegistry,
    TableMatch,
)

logger = logging.getLogger(__name__)

DEFAULT_ENCOUNTER_LIMIT = 6
MAX_ROLL_ATTEMPTS = 12

CREATURE_NAMESPACES = ("creature", "creature_type")
TERRAIN_NAMESPACES = ("terrain", "ecosystem")
TRAVEL_NAMESPACES = ("travel",)
CR_NAMESPACES = ("cr",)

MATCH_RULES = (
    "Travel tags pick a travel table before terrain tags pick a terrain table.",
    "Explicit CR tags override the party-level CR buckets.",
    "Creature tags match entry text or monster suggestion names.",
)

NO_SEED_WARNING = "No seed provided; encounter rolls are non-deterministic."
NO_TABLES_WARNING = "No encounter tables are available."
BUCKET_FALLBACK_WARNING = "No entries matched the CR buckets; using the full table."
CREATURE_FALLBACK_WARNING = "No entries matched creature tags; showing full CR bucket."
FALLBACK_PICK_WARNING = "Rolls fell outside filtered entries; using fallback pick."
HOMEBREW_WARNING = "Some suggestions need homebrew stat blocks."
EMPTY_RESULTS_WARNING = "No encounter suggestions could be drawn."

BudgetFn = Callable[..., int]

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_match_text(value: str) -> str:
    return _NON_ALNUM.sub(" ", str(value or "").lower()).strip()


def includes_normalized(haystack: str, needle: str) -> bool:
    hay = normalize_match_text(haystack)
    ned = normalize_match_text(needle)
    if not hay or not ned:
        return False
    return ned in hay


def _unique(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        cleaned = str(value or "").strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


@dataclass(frozen=True)
class EncounterTagSets:
    creature: tuple[str, ...] = ()
    terrain: tuple[str, ...] = ()
    travel: tuple[str, ...] = ()
    cr: tuple[str, ...] = ()


def partition_tags(tags: Sequence[Tag]) -> EncounterTagSets:
    def _values(namespaces: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(_unique(tag.value for tag in tags if tag.namespace.strip().lower() in namespaces))

    return EncounterTagSets(
        creature=_values(CREATURE_NAMESPACES),
        terrain=_values(TERRAIN_NAMESPACES),
        travel=_values(TRAVEL_NAMESPACES),
        cr=_values(CR_NAMESPACES),
    )


def creature_matches(entry: EncounterTableEntry, creature_tags: Sequence[str]) -> list[str]:
    matched = []
    for tag in creature_tags:
        if includes_normalized(entry.text, tag) or any(
            includes_normalized(monster.name, tag) for monster in entry.monster_suggestions
        ):
            matched.append(tag)
    return matched


def normalize_party(party: PartyConfig) -> PartyConfig:
    return PartyConfig(
        size=clamp_party_size(party.size),
        level=clamp_party_level(party.level),
        difficulty=normalize_difficulty(party.difficulty),
    )


class EncounterService:
    def __init__(
        self,
        registry: EncounterTableRegistry,
        budget_fn: BudgetFn | None = None,
        default_limit: int = DEFAULT_ENCOUNTER_LIMIT,
    ) -> None:
        self.registry = registry
        self.budget_fn = budget_fn or get_encounter_budget
        self.default_limit = default_limit

    def _budget(self, party: PartyConfig) -> int:
        return int(
            self.budget_fn(
                party_size=party.size,
                party_level=party.level,
                difficulty=party.difficulty,
            )
        )

    @staticmethod
    def _filter_entries(
        table: EncounterTable,
        cr_buckets: Sequence[str],
        creature_tags: Sequence[str],
        warnings: list[str],
    ) -> list[int]:
        entries = table.entries
        all_indexes = list(range(len(entries)))
        bucket_pool = [index for index in all_indexes if entries[index].cr_bucket in cr_buckets]
        if not bucket_pool:
            warnings.append(BUCKET_FALLBACK_WARNING)
            bucket_pool = all_indexes

        if not creature_tags:
            return bucket_pool
        creature_pool = [index for index in bucket_pool if creature_matches(entries[index], creature_tags)]
        if not creature_pool:
            warnings.append(CREATURE_FALLBACK_WARNING)
            return bucket_pool
        return creature_pool

    def _sample(
        self,
        table: EncounterTable,
        candidates: list[int],
        limit: int,
        rng: Rng,
        rolls: list[int],
        warnings: list[str],
    ) -> list[tuple[int, int]]:
        """Return (entry index, roll) picks; every d100 roll is appended to ``rolls``."""
        eligible = set(candidates)
        used: set[int] = set()
        picks: list[tuple[int, int]] = []

        for _ in range(min(limit, len(candidates))):
            chosen: int | None = None
            last_roll = 0
            for _attempt in range(MAX_ROLL_ATTEMPTS):
                last_roll = roll_d100(rng)
                rolls.append(last_roll)
                index = table.index_for_roll(last_roll)
                if index is None or index not in eligible or index in used:
                    continue
                chosen = index
                break

            if chosen is None:
                unused = [index for index in candidates if index not in used]
                if not unused:
                    break
                chosen = unused[pick_index(len(unused), rng)]
                if FALLBACK_PICK_WARNING not in warnings:
                    warnings.append(FALLBACK_PICK_WARNING)
                logger.debug("Fallback pick %s after %s rejected rolls", chosen, MAX_ROLL_ATTEMPTS)

            used.add(chosen)
            picks.append((chosen, last_roll))
        return picks

    @staticmethod
    def _build_suggestion(
        match: TableMatch,
        entry: EncounterTableEntry,
        roll: int,
        tag_sets: EncounterTagSets,
        cr_buckets: Sequence[str],
    ) -> EncounterSuggestion:
        return EncounterSuggestion(
            table_id=match.table.id,
            table_title=match.table.title,
            roll=roll,
            range=(entry.range_min, entry.range_max),
            text=entry.text,
            encounter_type=entry.encounter_type,
            cr_bucket=entry.cr_bucket,
            monster_suggestions=[
                MonsterSuggestionView(
                    name=monster.name,
                    count=monster.count,
                    source=monster.source,
                    notes=monster.notes,
                )
                for monster in entry.monster_suggestions
            ],
            needs_homebrew=entry.needs_homebrew,
            matched_tags={
                "creature": creature_matches(entry, tag_sets.creature),
                "terrain": list(tag_sets.terrain),
                "travel": list(tag_sets.travel),
                "cr": list(cr_buckets),
            },
        )

    def suggest_encounter(
        self,
        tags: Sequence[Tag],
        party: PartyConfig,
        seed: Seed | None = None,
        limit: int | None = None,
        rng: Rng | None = None,
    ) -> EncounterPrep:
        """Roll ranked encounter suggestions for a tag set and party.

        ``rng`` overrides the seed-derived generator so callers can inject a stub.
        """
        warnings: list[str] = []
        explain: list[ExplainStep] = []
        limit = self.default_limit if limit is None else max(0, int(limit))
        party = normalize_party(party)

        if rng is None:
            rng, deterministic = resolve_rng(seed)
            if not deterministic:
                warnings.append(NO_SEED_WARNING)

        tag_sets = partition_tags(tags)
        cr_buckets = resolve_cr_buckets(tag_sets.cr, party.level, party.difficulty)
        budget = self._budget(party)
        rolls: list[int] = []

        logic = {
            "tableId": None,
            "tableTitle": None,
            "selectorType": None,
            "selectorValue": None,
            "fallbackTable": False,
            "creatureTags": list(tag_sets.creature),
            "terrainTags": list(tag_sets.terrain),
            "travelTags": list(tag_sets.travel),
            "crTags": list(tag_sets.cr),
            "crBuckets": list(cr_buckets),
            "matchRules": list(MATCH_RULES),
            "limit": limit,
            "maxRollAttempts": MAX_ROLL_ATTEMPTS,
        }
        inputs_used = {
            "tags": [f"{tag.namespace}:{tag.value}" for tag in tags],
            "party": party.to_dict(),
            "seed": seed,
            "limit": limit,
        }

        match = resolve_encounter_table(self.registry, tag_sets.terrain, tag_sets.travel, rng)
        if match is None:
            warnings.append(NO_TABLES_WARNING)
            return EncounterPrep(
                logic=logic,
                results=[],
                explain=explain,
                warnings=warnings,
                inputs_used=inputs_used,
                encounter_plan=EncounterPlan(budget=budget, rolls=rolls, cr_buckets=list(cr_buckets)),
            )

        logic.update(
            {
                "tableId": match.table.id,
                "tableTitle": match.table.title,
                "selectorType": match.selector_type.value,
                "selectorValue": match.selector_value,
                "fallbackTable": match.fallback,
            }
        )
        if match.fallback:
            warnings.append(
                f"No terrain or travel tag matched an encounter table; using default {match.selector_value} table."
            )
            explain.append(
                ExplainStep("table", f"Fell back to {match.table.title} ({match.table.id}).")
            )
        else:
            explain.append(
                ExplainStep(
                    "table",
                    f"Selected {match.table.title} ({match.table.id}) from "
                    f"{match.selector_type.value} tag '{match.selector_value}'.",
                )
            )

        if tag_sets.cr:
            explain.append(ExplainStep("crBuckets", f"Used explicit CR tags: {', '.join(cr_buckets)}."))
        else:
            explain.append(
                ExplainStep(
                    "crBuckets",
                    f"Derived from party level {party.level} ({party.difficulty}): {', '.join(cr_buckets)}.",
                )
            )

        candidates = self._filter_entries(match.table, cr_buckets, tag_sets.creature, warnings)
        explain.append(
            ExplainStep(
                "filter",
                f"{len(candidates)} of {len(match.table.entries)} entries eligible after CR and creature filters.",
            )
        )

        picks = self._sample(match.table, candidates, limit, rng, rolls, warnings)
        results = [
            self._build_suggestion(match, match.table.entries[index], roll, tag_sets, cr_buckets)
            for index, roll in picks
        ]
        explain.append(
            ExplainStep("roll", f"Rolled d100 {len(rolls)} time(s) for {len(results)} suggestion(s).")
        )
        explain.append(
            ExplainStep(
                "budget",
                f"XP budget {budget} for {party.size} level-{party.level} character(s) at {party.difficulty} difficulty.",
            )
        )

        if not results:
            warnings.append(EMPTY_RESULTS_WARNING)
        if any(row.needs_homebrew for row in results):
            warnings.append(HOMEBREW_WARNING)

        logger.debug(
            "Encounter suggestions from %s: %s result(s), %s roll(s)", match.table.id, len(results), len(rolls)
        )
        return EncounterPrep(
            logic=logic,
            results=results,
            explain=explain,
            warnings=warnings,
            inputs_used=inputs_used,
            encounter_plan=EncounterPlan(budget=budget, rolls=rolls, cr_buckets=list(cr_buckets)),
        )
