from __future__ import annotations

import re

from campaign_prep.application.services.seed_policy import Rng, roll_die

_DICE_PATTERN = re.compile(r"(\d*)d(\d+)(?:\s*([+-])\s*(\d+))?", re.IGNORECASE)


def evaluate_dice(expression: str, rng: Rng) -> int:
    """Evaluate ``[N]dM[+/-K]`` or a bare integer.

    Anything else evaluates to 0; malformed expressions never raise.
    """
    text = str(expression or "").strip()
    match = _DICE_PATTERN.search(text)
    if not match:
        try:
            return int(text)
        except ValueError:
            return 0

    count = int(match.group(1)) if match.group(1) else 1
    sides = int(match.group(2))
    if sides <= 0:
        return 0
    modifier = 0
    if match.group(3):
        modifier = int(match.group(4))
        if match.group(3) == "-":
            modifier = -modifier

    total = 0
    for _ in range(count):
        total += roll_die(sides, rng)
    return total + modifier


def roll_d100(rng: Rng) -> int:
    return roll_die(100, rng)
