from __future__ import annotations

from typing import Iterable


CR_BUCKETS = ("0-1", "2-4", "5-10", "11-16", "17-20", "21+")
CR_BUCKET_PREFIX = "cr:"

# (max party level, bucket index); levels above the last breakpoint use the top bucket
LEVEL_BUCKET_BREAKPOINTS = (
    (1, 0),
    (4, 1),
    (10, 2),
    (16, 3),
    (20, 4),
)

DIFFICULTIES = ("easy", "medium", "hard", "deadly")
DEFAULT_DIFFICULTY = "medium"

DIFFICULTY_BUCKET_DELTA = {
    "easy": -1,
    "medium": 0,
    "hard": 1,
    "deadly": 2,
}

PARTY_SIZE_MIN = 1
PARTY_SIZE_MAX = 10
PARTY_LEVEL_MIN = 1
PARTY_LEVEL_MAX = 20

# per-character XP thresholds: level -> (easy, medium, hard, deadly)
XP_THRESHOLDS = {
    1: (25, 50, 75, 100),
    2: (50, 100, 150, 200),
    3: (75, 150, 225, 400),
    4: (125, 250, 375, 500),
    5: (250, 500, 750, 1100),
    6: (300, 600, 900, 1400),
    7: (350, 750, 1100, 1700),
    8: (450, 900, 1400, 2100),
    9: (550, 1100, 1600, 2400),
    10: (600, 1200, 1900, 2800),
    11: (800, 1600, 2400, 3600),
    12: (1000, 2000, 3000, 4500),
    13: (1100, 2200, 3400, 5100),
    14: (1250, 2500, 3800, 5700),
    15: (1400, 2800, 4300, 6400),
    16: (1600, 3200, 4800, 7200),
    17: (2000, 3900, 5900, 8800),
    18: (2100, 4200, 6300, 9500),
    19: (2400, 4900, 7300, 10900),
    20: (2800, 5700, 8500, 12700),
}


def normalize_difficulty(difficulty: str | None) -> str:
    key = str(difficulty or "").strip().lower()
    return key if key in DIFFICULTY_BUCKET_DELTA else DEFAULT_DIFFICULTY


def clamp_party_size(size: int) -> int:
    try:
        value = int(size)
    except (TypeError, ValueError):
        value = PARTY_SIZE_MIN
    return max(PARTY_SIZE_MIN, min(PARTY_SIZE_MAX, value))


def clamp_party_level(level: int) -> int:
    try:
        value = int(level)
    except (TypeError, ValueError):
        value = PARTY_LEVEL_MIN
    return max(PARTY_LEVEL_MIN, min(PARTY_LEVEL_MAX, value))


def base_bucket_index(party_level: int) -> int:
    for max_level, index in LEVEL_BUCKET_BREAKPOINTS:
        if party_level <= max_level:
            return index
    return len(CR_BUCKETS) - 1


def bucket_label(index: int) -> str:
    return f"{CR_BUCKET_PREFIX}{CR_BUCKETS[index]}"


def resolve_cr_buckets(cr_tags: Iterable[str], party_level: int, difficulty: str) -> list[str]:
    """Explicit CR tags win verbatim; otherwise derive from party level and difficulty."""
    explicit = [f"{CR_BUCKET_PREFIX}{tag}" for tag in cr_tags if str(tag).strip()]
    if explicit:
        return explicit

    base = base_bucket_index(party_level)
    delta = DIFFICULTY_BUCKET_DELTA[normalize_difficulty(difficulty)]
    shifted = max(0, min(len(CR_BUCKETS) - 1, base + delta))
    # shifted bucket first, base bucket second
    return [bucket_label(index) for index in dict.fromkeys((shifted, base))]


def get_encounter_budget(party_size: int, party_level: int, difficulty: str) -> int:
    thresholds = XP_THRESHOLDS[clamp_party_level(party_level)]
    per_character = thresholds[DIFFICULTIES.index(normalize_difficulty(difficulty))]
    return per_character * clamp_party_size(party_size)
