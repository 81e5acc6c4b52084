import sys
from pathlib import Path
import unittest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from campaign_prep.application.services.balance_tables import (
    CR_BUCKETS,
    XP_THRESHOLDS,
    clamp_party_level,
    clamp_party_size,
    get_encounter_budget,
    normalize_difficulty,
    resolve_cr_buckets,
)


class BalanceTablesTests(unittest.TestCase):
    def test_medium_difficulty_uses_base_bucket_only(self) -> None:
        self.assertEqual(["cr:0-1"], resolve_cr_buckets([], 1, "medium"))
        self.assertEqual(["cr:2-4"], resolve_cr_buckets([], 3, "medium"))
        self.assertEqual(["cr:5-10"], resolve_cr_buckets([], 10, "medium"))
        self.assertEqual(["cr:17-20"], resolve_cr_buckets([], 20, "medium"))

    def test_difficulty_shift_adds_neighbour_bucket(self) -> None:
        self.assertEqual(["cr:0-1", "cr:2-4"], resolve_cr_buckets([], 3, "easy"))
        self.assertEqual(["cr:5-10", "cr:2-4"], resolve_cr_buckets([], 3, "hard"))
        self.assertEqual(["cr:11-16", "cr:2-4"], resolve_cr_buckets([], 3, "deadly"))

    def test_shift_is_clamped_to_known_buckets(self) -> None:
        self.assertEqual(["cr:0-1"], resolve_cr_buckets([], 1, "easy"))
        self.assertEqual(["cr:21+", "cr:17-20"], resolve_cr_buckets([], 20, "deadly"))

    def test_explicit_cr_tags_win(self) -> None:
        self.assertEqual(["cr:5-10"], resolve_cr_buckets(["5-10"], 1, "deadly"))

    def test_every_level_and_difficulty_maps_to_known_buckets(self) -> None:
        known = {f"cr:{bucket}" for bucket in CR_BUCKETS}
        for level in range(1, 21):
            for difficulty in ("easy", "medium", "hard", "deadly"):
                buckets = resolve_cr_buckets([], level, difficulty)
                self.assertTrue(buckets)
                self.assertTrue(set(buckets) <= known)

    def test_budget_scales_with_party_size(self) -> None:
        self.assertEqual(4 * 150, get_encounter_budget(4, 3, "medium"))
        self.assertEqual(1 * 100, get_encounter_budget(1, 1, "deadly"))

    def test_party_values_are_clamped(self) -> None:
        self.assertEqual(1, clamp_party_size(0))
        self.assertEqual(10, clamp_party_size(99))
        self.assertEqual(1, clamp_party_level(-3))
        self.assertEqual(20, clamp_party_level(25))
        self.assertEqual(10 * XP_THRESHOLDS[20][3], get_encounter_budget(50, 40, "deadly"))

    def test_unknown_difficulty_is_medium(self) -> None:
        self.assertEqual("medium", normalize_difficulty("nightmare"))
        self.assertEqual("hard", normalize_difficulty(" Hard "))


if __name__ == "__main__":
    unittest.main()
