from __future__ import annotations

import logging
from typing import Sequence

from campaign_prep.application.services.seed_policy import Rng, pick_index
from campaign_prep.domain.models.encounter_table import (
    EncounterTableRegistry,
    SelectorType,
    TableMatch,
)

logger = logging.getLogger(__name__)

EXCLUDED_TRAVEL_TAG = "wilderness"


def resolve_encounter_table(
    registry: EncounterTableRegistry,
    terrain_tags: Sequence[str],
    travel_tags: Sequence[str],
    rng: Rng,
) -> TableMatch | None:
    """Travel tables beat terrain tables; the default terrain table is the last resort."""

    travel_options = [
        tag.lower()
        for tag in travel_tags
        if tag.lower() != EXCLUDED_TRAVEL_TAG and tag.lower() in registry.travel_tables
    ]
    if travel_options:
        pick = travel_options[pick_index(len(travel_options), rng)]
        logger.debug("Selected travel table %s from %s", pick, travel_options)
        return TableMatch(
            table=registry.travel_tables[pick],
            selector_type=SelectorType.TRAVEL,
            selector_value=pick,
        )

    terrain_options = [tag.lower() for tag in terrain_tags if tag.lower() in registry.terrain_tables]
    if terrain_options:
        pick = terrain_options[pick_index(len(terrain_options), rng)]
        logger.debug("Selected terrain table %s from %s", pick, terrain_options)
        return TableMatch(
            table=registry.terrain_tables[pick],
            selector_type=SelectorType.TERRAIN,
            selector_value=pick,
        )

    fallback = registry.terrain_tables.get(registry.default_terrain)
    if fallback is None:
        return None
    logger.debug("No table matched tags; falling back to %s", registry.default_terrain)
    return TableMatch(
        table=fallback,
        selector_type=SelectorType.TERRAIN,
        selector_value=registry.default_terrain,
        fallback=True,
    )
