import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

# Ensure the src directory is on sys.path when running as a script
_SRC_DIR = Path(__file__).resolve().parents[1]
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from campaign_prep.application.dtos import PartyConfig
from campaign_prep.application.mappers.world_context_mapper import world_context_to_dict
from campaign_prep.application.services.initiative_service import (
    InitiativeMonster,
    InitiativePlayer,
    build_initiative_order,
)
from campaign_prep.application.services.treasure_service import (
    LOOT_MODES,
    TreasureMonster,
    build_treasure_suggestion,
)
from campaign_prep.bootstrap import create_prep_services
from campaign_prep.domain.models.document import Tag
from campaign_prep.infrastructure.loot_loader import load_loot_dataset

logger = logging.getLogger("campaign_prep")


def _parse_tag(raw: str) -> Tag:
    namespace, sep, value = raw.partition(":")
    if not sep or not namespace.strip() or not value.strip():
        raise argparse.ArgumentTypeError(f"expected ns:value, got {raw!r}")
    return Tag(doc_id="", namespace=namespace.strip().lower(), value=value.strip().lower())


def _parse_player(raw: str) -> InitiativePlayer:
    parts = raw.split(":")
    try:
        roll = int(parts[1]) if len(parts) > 1 and parts[1] != "" else None
        dex_mod = int(parts[2]) if len(parts) > 2 and parts[2] != "" else 0
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected NAME[:ROLL[:DEX]], got {raw!r}") from exc
    return InitiativePlayer(name=parts[0], initiative_roll=roll, dex_mod=dex_mod)


def _parse_monster(raw: str) -> InitiativeMonster:
    parts = raw.split(":")
    if len(parts) < 2:
        raise argparse.ArgumentTypeError(f"expected NAME:DEX[:COUNT[:ROLL]], got {raw!r}")
    try:
        dex_mod = int(parts[1])
        count = int(parts[2]) if len(parts) > 2 and parts[2] != "" else 1
        roll = int(parts[3]) if len(parts) > 3 and parts[3] != "" else None
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected NAME:DEX[:COUNT[:ROLL]], got {raw!r}") from exc
    return InitiativeMonster(name=parts[0], dex_mod=dex_mod, count=count, initiative_roll=roll)


def _party_from_args(args: argparse.Namespace, default: PartyConfig) -> PartyConfig:
    return PartyConfig(
        size=args.party_size if args.party_size is not None else default.size,
        level=args.party_level if args.party_level is not None else default.level,
        difficulty=args.difficulty or default.difficulty,
    )


def _add_party_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--party-size", type=int, default=None)
    parser.add_argument("--party-level", type=int, default=None)
    parser.add_argument("--difficulty", choices=("easy", "medium", "hard", "deadly"), default=None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="campaign_prep", description="Session prep helpers for a campaign vault.")
    commands = parser.add_subparsers(dest="command", required=True)

    context = commands.add_parser("context", help="Show the world context around a document.")
    context.add_argument("doc_id")

    prep = commands.add_parser("prep", help="Encounter, involvement and recency helpers for a document.")
    prep.add_argument("doc_id")
    prep.add_argument("--since", type=int, default=None, help="Only changes at or after this epoch-ms time.")
    prep.add_argument("--seed", default=None)
    _add_party_arguments(prep)

    encounter = commands.add_parser("encounter", help="Roll encounter suggestions for a tag set.")
    encounter.add_argument("--tag", dest="tags", type=_parse_tag, action="append", default=[])
    encounter.add_argument("--seed", default=None)
    encounter.add_argument("--limit", type=int, default=None)
    _add_party_arguments(encounter)

    initiative = commands.add_parser("initiative", help="Roll and sort initiative.")
    initiative.add_argument("--player", dest="players", type=_parse_player, action="append", default=[])
    initiative.add_argument("--monster", dest="monsters", type=_parse_monster, action="append", default=[])
    initiative.add_argument("--seed", default=None)

    treasure = commands.add_parser("treasure", help="Roll treasure for defeated monsters.")
    treasure.add_argument("--cr", dest="crs", type=float, action="append", default=[])
    treasure.add_argument("--mode", choices=LOOT_MODES, default="individual")
    treasure.add_argument("--seed", default=None)
    treasure.add_argument("--loot-data", default=None, help="Path to an alternative loot dataset JSON file.")

    init_db = commands.add_parser("init-db", help="Create the vault tables on the configured database.")
    init_db.add_argument("--database-url", default=None, help="Overrides PREP_DATABASE_URL.")
    return parser


def run(argv=None) -> dict:
    args = build_parser().parse_args(argv)

    if args.command == "init-db":
        from campaign_prep.infrastructure.db.sql.schema import initialize_database

        return initialize_database(args.database_url)

    if args.command == "initiative":
        return build_initiative_order(args.players, args.monsters, seed=args.seed).to_dict()

    if args.command == "treasure":
        loot_data = load_loot_dataset(args.loot_data)
        if loot_data is None:
            raise ValueError("Loot dataset is missing or malformed.")
        monsters = [TreasureMonster(name=f"Monster {index + 1}", cr=cr) for index, cr in enumerate(args.crs)]
        return build_treasure_suggestion(monsters, args.mode, loot_data, seed=args.seed).to_dict()

    services = create_prep_services()

    if args.command == "encounter":
        party = _party_from_args(args, services.party)
        return services.encounters.suggest_encounter(args.tags, party, seed=args.seed, limit=args.limit).to_dict()

    snapshot = services.world_context.build_world_context_sync(args.doc_id)
    if snapshot is None:
        raise LookupError(f"Document {args.doc_id} not found.")
    if args.command == "context":
        return world_context_to_dict(snapshot)

    folders = services.vault_repo.get_folders_by_workspace(snapshot.current_doc.workspace_id)
    helpers = services.prep_helpers.build_prep_helpers(
        snapshot,
        folders,
        _party_from_args(args, services.party),
        since=args.since,
        encounter_seed=args.seed,
    )
    return helpers.to_dict()


def main(argv=None) -> int:
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("PREP_LOG_LEVEL", "WARNING").upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        payload = run(argv)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except (LookupError, OSError, SQLAlchemyError, ValueError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Reason: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
