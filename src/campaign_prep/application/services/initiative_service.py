from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from campaign_prep.application.dtos import ExplainStep, InitiativeEntry, InitiativeOrder
from campaign_prep.application.services.seed_policy import Rng, Seed, resolve_rng, roll_die

NO_SEED_WARNING = "No seed provided; initiative rolls are non-deterministic."
NO_COMBATANTS_WARNING = "No combatants provided."
SHARED_ROLL_WARNING = "Shared initiative roll applied to multiple monsters."


@dataclass(frozen=True)
class InitiativePlayer:
    name: str
    initiative_roll: int | None = None
    dex_mod: int | None = 0


@dataclass(frozen=True)
class InitiativeMonster:
    name: str
    dex_mod: int | None
    count: int = 1
    initiative_roll: int | None = None


def initiative_sort_key(entry: InitiativeEntry) -> tuple[int, int, str]:
    return (-entry.initiative, -entry.dex_mod, entry.name)


def build_initiative_order(
    players: Sequence[InitiativePlayer],
    monsters: Sequence[InitiativeMonster],
    seed: Seed | None = None,
    rng: Rng | None = None,
) -> InitiativeOrder:
    """Roll and sort initiative: total desc, then dex mod desc, then name asc."""
    warnings: list[str] = []
    deterministic = True
    if rng is None:
        rng, deterministic = resolve_rng(seed)

    entries: list[InitiativeEntry] = []
    rolled_count = 0
    provided_count = 0
    reused_monster_rolls = 0

    for player in players:
        dex_mod = int(player.dex_mod or 0)
        if player.initiative_roll is not None:
            roll = int(player.initiative_roll)
            source = "provided"
            provided_count += 1
        else:
            roll = roll_die(20, rng)
            source = "rolled"
            rolled_count += 1
        entries.append(
            InitiativeEntry(
                name=player.name,
                initiative=roll + dex_mod,
                roll=roll,
                dex_mod=dex_mod,
                source=source,
                kind="player",
            )
        )

    for monster in monsters:
        count = max(1, int(monster.count or 1))
        dex_mod = int(monster.dex_mod or 0)
        if count > 1 and monster.initiative_roll is not None:
            reused_monster_rolls += count
        for index in range(count):
            if monster.initiative_roll is not None:
                roll = int(monster.initiative_roll)
                source = "provided"
                provided_count += 1
            else:
                roll = roll_die(20, rng)
                source = "rolled"
                rolled_count += 1
            suffix = f" #{index + 1}" if count > 1 else ""
            entries.append(
                InitiativeEntry(
                    name=f"{monster.name}{suffix}",
                    initiative=roll + dex_mod,
                    roll=roll,
                    dex_mod=dex_mod,
                    source=source,
                    kind="monster",
                )
            )

    ordered = sorted(entries, key=initiative_sort_key)

    if not deterministic and rolled_count > 0:
        warnings.append(NO_SEED_WARNING)
    if not entries:
        warnings.append(NO_COMBATANTS_WARNING)
    if reused_monster_rolls > 1:
        warnings.append(SHARED_ROLL_WARNING)

    return InitiativeOrder(
        initiative_order=ordered,
        explain=[
            ExplainStep(
                "roll",
                f"Used {provided_count} provided roll(s) and rolled {rolled_count} initiative(s).",
            ),
            ExplainStep("sort", "Sorted by initiative desc, dex mod desc, name asc."),
        ],
        warnings=warnings,
    )
