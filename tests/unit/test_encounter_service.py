import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from campaign_prep.application.dtos import PartyConfig
from campaign_prep.application.services.encounter_service import (
    BUCKET_FALLBACK_WARNING,
    CREATURE_FALLBACK_WARNING,
    EMPTY_RESULTS_WARNING,
    FALLBACK_PICK_WARNING,
    HOMEBREW_WARNING,
    MAX_ROLL_ATTEMPTS,
    NO_SEED_WARNING,
    NO_TABLES_WARNING,
    EncounterService,
    includes_normalized,
    partition_tags,
)
from campaign_prep.domain.models.document import Tag
from campaign_prep.domain.models.encounter_table import (
    EncounterTable,
    EncounterTableEntry,
    EncounterTableRegistry,
    MonsterSuggestion,
)
from campaign_prep.infrastructure.encounter_table_loader import load_encounter_table_registry


def _tag(namespace: str, value: str) -> Tag:
    return Tag(doc_id="doc-1", namespace=namespace, value=value)


def _sequence_rng(values):
    remaining = list(values)

    def _next() -> float:
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]

    return _next


def _two_band_registry(needs_homebrew: bool = False) -> EncounterTableRegistry:
    table = EncounterTable(
        id="glade_d100",
        title="Glade (d100)",
        selectors={"terrain": "forest"},
        entries=(
            EncounterTableEntry(
                range_min=1,
                range_max=50,
                text="Sprites dance in a ring of mushrooms.",
                cr_bucket="cr:0-1",
                monster_suggestions=(MonsterSuggestion(name="Sprite", count="1d4"),),
                needs_homebrew=needs_homebrew,
            ),
            EncounterTableEntry(
                range_min=51,
                range_max=100,
                text="A bear guards its cubs.",
                cr_bucket="cr:2-4",
                monster_suggestions=(MonsterSuggestion(name="Brown Bear"),),
            ),
        ),
    )
    return EncounterTableRegistry(terrain_tables={"forest": table})


class EncounterServiceScenarioTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.registry = load_encounter_table_registry()

    def setUp(self) -> None:
        self.service = EncounterService(self.registry)
        self.party = PartyConfig(size=4, level=3, difficulty="medium")

    def test_forest_scenario_uses_explicit_bucket(self) -> None:
        prep = self.service.suggest_encounter(
            [_tag("terrain", "forest"), _tag("cr", "0-1")],
            self.party,
            seed="forest-seed",
        )

        self.assertEqual(["cr:0-1"], prep.encounter_plan.cr_buckets)
        self.assertEqual("forest_encounters_d100", prep.logic["tableId"])
        self.assertGreaterEqual(len(prep.results), 1)
        self.assertGreater(prep.encounter_plan.budget, 0)
        self.assertTrue(all(row.cr_bucket == "cr:0-1" for row in prep.results))
        self.assertGreaterEqual(len(prep.encounter_plan.rolls), len(prep.results))
        self.assertNotIn(NO_SEED_WARNING, prep.warnings)

    def test_same_seed_reproduces_output(self) -> None:
        tags = [_tag("terrain", "swamp"), _tag("creature", "lizardfolk")]
        first = self.service.suggest_encounter(tags, self.party, seed="repeatable").to_dict()
        second = self.service.suggest_encounter(tags, self.party, seed="repeatable").to_dict()
        self.assertEqual(first, second)

    def test_missing_seed_is_flagged(self) -> None:
        prep = self.service.suggest_encounter([_tag("terrain", "forest")], self.party)
        self.assertIn(NO_SEED_WARNING, prep.warnings)

    def test_results_are_distinct_entries(self) -> None:
        prep = self.service.suggest_encounter([_tag("terrain", "forest")], PartyConfig(level=3), seed="distinct")
        ranges = [row.range for row in prep.results]
        self.assertEqual(len(ranges), len(set(ranges)))

    def test_creature_tag_narrows_pool(self) -> None:
        prep = self.service.suggest_encounter(
            [_tag("terrain", "forest"), _tag("creature", "goblin"), _tag("cr", "0-1")],
            self.party,
            seed="goblins",
        )
        self.assertEqual(1, len(prep.results))
        self.assertIn("Goblin", prep.results[0].text)
        self.assertEqual(["goblin"], prep.results[0].matched_tags["creature"])
        self.assertNotIn(CREATURE_FALLBACK_WARNING, prep.warnings)

    def test_unmatched_creature_tag_falls_back_to_bucket(self) -> None:
        prep = self.service.suggest_encounter(
            [_tag("terrain", "forest"), _tag("creature", "kraken"), _tag("cr", "0-1")],
            self.party,
            seed="no-kraken",
        )
        self.assertIn(CREATURE_FALLBACK_WARNING, prep.warnings)
        self.assertTrue(prep.results)
        self.assertTrue(all(row.cr_bucket == "cr:0-1" for row in prep.results))

    def test_travel_tag_beats_terrain_tag(self) -> None:
        prep = self.service.suggest_encounter(
            [_tag("terrain", "forest"), _tag("travel", "road")],
            self.party,
            seed="road-trip",
        )
        self.assertEqual("travel_road_d100", prep.logic["tableId"])
        self.assertEqual("travel", prep.logic["selectorType"])
        self.assertFalse(prep.logic["fallbackTable"])

    def test_wilderness_travel_tag_is_ignored(self) -> None:
        prep = self.service.suggest_encounter(
            [_tag("travel", "wilderness"), _tag("ecosystem", "desert")],
            self.party,
            seed="dunes",
        )
        self.assertEqual("desert_encounters_d100", prep.logic["tableId"])
        self.assertEqual(["desert"], prep.logic["terrainTags"])

    def test_no_matching_table_uses_default_forest(self) -> None:
        prep = self.service.suggest_encounter([_tag("terrain", "moon")], self.party, seed="lost")
        self.assertEqual("forest_encounters_d100", prep.logic["tableId"])
        self.assertTrue(prep.logic["fallbackTable"])
        self.assertTrue(any("default forest table" in warning for warning in prep.warnings))

    def test_inputs_and_explain_are_reported(self) -> None:
        prep = self.service.suggest_encounter([_tag("terrain", "arctic")], self.party, seed=7, limit=2)
        payload = prep.to_dict()
        self.assertEqual(["terrain:arctic"], payload["inputsUsed"]["tags"])
        self.assertEqual(7, payload["inputsUsed"]["seed"])
        self.assertEqual(2, payload["logic"]["limit"])
        self.assertLessEqual(len(payload["results"]), 2)
        self.assertEqual(
            ["table", "crBuckets", "filter", "roll", "budget"],
            [row["step"] for row in payload["explain"]],
        )


class EncounterServiceSamplingTests(unittest.TestCase):
    def test_rejected_roll_is_recorded_before_the_hit(self) -> None:
        service = EncounterService(_two_band_registry())
        rng = _sequence_rng([0.0, 0.6, 0.1])
        prep = service.suggest_encounter(
            [_tag("terrain", "forest"), _tag("cr", "0-1")],
            PartyConfig(),
            rng=rng,
        )
        self.assertEqual([61, 11], prep.encounter_plan.rolls)
        self.assertEqual(1, len(prep.results))
        self.assertEqual(11, prep.results[0].roll)
        self.assertEqual((1, 50), prep.results[0].range)
        self.assertEqual([], prep.warnings)

    def test_exhausted_attempts_use_fallback_pick(self) -> None:
        service = EncounterService(_two_band_registry())
        prep = service.suggest_encounter(
            [_tag("terrain", "forest"), _tag("cr", "0-1")],
            PartyConfig(),
            rng=lambda: 0.9,
        )
        self.assertEqual(MAX_ROLL_ATTEMPTS, len(prep.encounter_plan.rolls))
        self.assertEqual(1, len(prep.results))
        self.assertEqual("cr:0-1", prep.results[0].cr_bucket)
        self.assertIn(FALLBACK_PICK_WARNING, prep.warnings)

    def test_bucket_without_entries_uses_whole_table(self) -> None:
        service = EncounterService(_two_band_registry())
        prep = service.suggest_encounter(
            [_tag("terrain", "forest"), _tag("cr", "21+")],
            PartyConfig(),
            rng=_sequence_rng([0.0, 0.1, 0.7]),
        )
        self.assertIn(BUCKET_FALLBACK_WARNING, prep.warnings)
        self.assertEqual(2, len(prep.results))

    def test_homebrew_entries_are_flagged(self) -> None:
        service = EncounterService(_two_band_registry(needs_homebrew=True))
        prep = service.suggest_encounter(
            [_tag("terrain", "forest"), _tag("cr", "0-1")],
            PartyConfig(),
            rng=_sequence_rng([0.0, 0.2]),
        )
        self.assertIn(HOMEBREW_WARNING, prep.warnings)

    def test_zero_limit_returns_no_results(self) -> None:
        service = EncounterService(_two_band_registry())
        prep = service.suggest_encounter([_tag("terrain", "forest")], PartyConfig(), seed="none", limit=0)
        self.assertEqual([], prep.results)
        self.assertIn(EMPTY_RESULTS_WARNING, prep.warnings)

    def test_empty_registry_reports_missing_tables(self) -> None:
        service = EncounterService(EncounterTableRegistry())
        prep = service.suggest_encounter([_tag("terrain", "forest")], PartyConfig(), seed="none")
        self.assertEqual([], prep.results)
        self.assertIn(NO_TABLES_WARNING, prep.warnings)
        self.assertIsNone(prep.logic["tableId"])

    def test_budget_function_is_injectable(self) -> None:
        calls = []

        def _budget(**kwargs) -> int:
            calls.append(kwargs)
            return 1234

        service = EncounterService(_two_band_registry(), budget_fn=_budget)
        prep = service.suggest_encounter(
            [_tag("terrain", "forest")],
            PartyConfig(size=99, level=0, difficulty="impossible"),
            seed="budget",
        )
        self.assertEqual(1234, prep.encounter_plan.budget)
        self.assertEqual([{"party_size": 10, "party_level": 1, "difficulty": "medium"}], calls)


class EncounterTagTests(unittest.TestCase):
    def test_partition_lowercases_and_deduplicates(self) -> None:
        tag_sets = partition_tags(
            [
                _tag("Terrain", "Forest"),
                _tag("terrain", "forest"),
                _tag("creature_type", "Undead"),
                _tag("travel", "road"),
                _tag("cr", "2-4"),
                _tag("npc", "ignored"),
            ]
        )
        self.assertEqual(("forest",), tag_sets.terrain)
        self.assertEqual(("undead",), tag_sets.creature)
        self.assertEqual(("road",), tag_sets.travel)
        self.assertEqual(("2-4",), tag_sets.cr)

    def test_normalized_matching_ignores_punctuation(self) -> None:
        self.assertTrue(includes_normalized("Goblin scouts, armed!", "goblin-scouts"))
        self.assertFalse(includes_normalized("Wolves", ""))


if __name__ == "__main__":
    unittest.main()
