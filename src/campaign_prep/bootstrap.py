import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from campaign_prep.application.dtos import PartyConfig
from campaign_prep.application.services.encounter_service import DEFAULT_ENCOUNTER_LIMIT, EncounterService
from campaign_prep.application.services.prep_helpers_service import PrepHelpersService
from campaign_prep.application.services.world_context_service import WorldContextService
from campaign_prep.domain.models.document import Document, Edge, Folder, Tag
from campaign_prep.domain.models.loot import LootDataset
from campaign_prep.domain.repositories import VaultRepository
from campaign_prep.infrastructure.encounter_table_loader import load_encounter_table_registry
from campaign_prep.infrastructure.inmemory.inmemory_vault_repo import InMemoryVaultRepository
from campaign_prep.infrastructure.loot_loader import load_loot_dataset

logger = logging.getLogger(__name__)

DEMO_WORKSPACE_ID = "ws-demo"


@dataclass
class PrepServices:
    vault_repo: VaultRepository
    world_context: WorldContextService
    encounters: EncounterService
    prep_helpers: PrepHelpersService
    loot_data: Optional[LootDataset]
    party: PartyConfig = field(default_factory=PartyConfig)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def default_party() -> PartyConfig:
    return PartyConfig(
        size=_env_int("PREP_PARTY_SIZE", 4),
        level=_env_int("PREP_PARTY_LEVEL", 1),
        difficulty=os.getenv("PREP_PARTY_DIFFICULTY", "medium").strip().lower() or "medium",
    )


def build_demo_vault() -> InMemoryVaultRepository:
    """A small campaign workspace so the CLI works without a database."""
    ws = DEMO_WORKSPACE_ID
    folders = [
        Folder(id="f-places", name="Places", workspace_id=ws),
        Folder(id="f-regions", name="Regions", workspace_id=ws, parent_folder_id="f-places"),
        Folder(id="f-factions", name="Factions", workspace_id=ws),
        Folder(id="f-people", name="Notable Figures", workspace_id=ws),
        Folder(id="f-religions", name="Religions", workspace_id=ws),
    ]
    documents = [
        Document(
            id="doc-thornwood",
            title="Thornwood",
            workspace_id=ws,
            folder_id="f-regions",
            updated_at=1767225600000,
            body=(
                "---\nchange_summary: Goblin raids moved closer to the river road.\n---\n"
                "An old forest of briar and oak. The [[Red Fang Clan]] raids the road "
                "while [[Mother Ysolde|the hedge witch]] watches. @terrain:forest"
            ),
        ),
        Document(
            id="doc-red-fang",
            title="Red Fang Clan",
            workspace_id=ws,
            folder_id="f-factions",
            updated_at=1767139200000,
            body="Goblin raiders who answer to a bugbear chief.",
        ),
        Document(
            id="doc-ysolde",
            title="Mother Ysolde",
            workspace_id=ws,
            folder_id="f-people",
            updated_at=1767052800000,
            body="A hedge witch who trades cures for secrets.",
        ),
        Document(
            id="doc-dawn",
            title="Church of the Dawn",
            workspace_id=ws,
            folder_id="f-religions",
            updated_at=1766966400000,
            body="Keeps a shrine at the edge of the Thornwood.",
        ),
        Document(
            id="doc-mill",
            title="Briar Mill",
            workspace_id=ws,
            folder_id="f-regions",
            sort_index=1,
            updated_at=1766880000000,
            body="A watermill on the Thornwood's southern edge.",
        ),
        Document(
            id="doc-places-index",
            title="Places Index",
            workspace_id=ws,
            folder_id="f-places",
            updated_at=1767312000000,
            body="<!-- WB:INDEX_START -->\n- [[Thornwood]]\n<!-- WB:INDEX_END -->",
        ),
    ]
    tags = [
        Tag("doc-thornwood", "terrain", "forest"),
        Tag("doc-thornwood", "creature", "goblin"),
        Tag("doc-thornwood", "type", "region"),
        Tag("doc-red-fang", "creature", "goblin"),
        Tag("doc-red-fang", "location", "thornwood"),
        Tag("doc-dawn", "location", "thornwood"),
        Tag("doc-mill", "terrain", "forest"),
    ]
    edges = [
        Edge("doc-thornwood", "doc-red-fang", "Red Fang Clan"),
        Edge("doc-thornwood", "doc-ysolde", "Mother Ysolde"),
        Edge("doc-dawn", "doc-thornwood", "Thornwood"),
        Edge("doc-places-index", "doc-thornwood", "Thornwood"),
    ]
    return InMemoryVaultRepository(documents=documents, folders=folders, tags=tags, edges=edges)


def create_vault_repository() -> VaultRepository:
    if os.getenv("PREP_DATABASE_URL"):
        from campaign_prep.infrastructure.db.sql.repos import SqlVaultRepository

        return SqlVaultRepository()
    return build_demo_vault()


def create_prep_services(vault_repo: Optional[VaultRepository] = None) -> PrepServices:
    repo = vault_repo or create_vault_repository()
    encounters = EncounterService(
        load_encounter_table_registry(),
        default_limit=_env_int("PREP_ENCOUNTER_LIMIT", DEFAULT_ENCOUNTER_LIMIT),
    )
    loot_data = load_loot_dataset()
    if loot_data is None:
        logger.warning("Loot dataset unavailable; treasure suggestions are disabled.")
    return PrepServices(
        vault_repo=repo,
        world_context=WorldContextService(repo),
        encounters=encounters,
        prep_helpers=PrepHelpersService(encounters),
        loot_data=loot_data,
        party=default_party(),
    )
