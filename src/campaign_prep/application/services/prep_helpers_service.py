from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Sequence

from campaign_prep.application.dtos import (
    InvolvedEntry,
    InvolvedPrep,
    PartyConfig,
    PrepHelpers,
    RecentChange,
    RecentPrep,
)
from campaign_prep.application.services.encounter_service import EncounterService
from campaign_prep.application.services.seed_policy import Seed
from campaign_prep.domain.models.document import Document, Folder
from campaign_prep.domain.models.world_context import WorldContextSnapshot
from campaign_prep.domain.services.vault_text import first_content_line, split_front_matter

INVOLVED_LIMIT = 10
RECENT_LIMIT = 8
CHANGE_TEXT_LIMIT = 160
CHANGE_SUMMARY_FIELD = "change_summary"

INVOLVED_TYPES = ("Faction", "Religion", "Figure")


def collect_folder_path(folder_id: str | None, folder_map: Dict[str, Folder]) -> List[str]:
    names: List[str] = []
    seen: set[str] = set()
    current = folder_map.get(folder_id) if folder_id else None
    while current is not None and current.id not in seen:
        seen.add(current.id)
        names.insert(0, current.name)
        current = folder_map.get(current.parent_folder_id) if current.parent_folder_id else None
    return [name.lower() for name in names]


def classify_anchor_type(doc: Document, folder_map: Dict[str, Folder]) -> str:
    path = collect_folder_path(doc.folder_id, folder_map)
    if "factions" in path:
        return "Faction"
    if "religions" in path:
        return "Religion"
    if "notable figures" in path or "people" in path:
        return "Figure"
    if "regions" in path or "places" in path or "locations" in path:
        return "Region"
    return "Other"


def format_timestamp(value_ms: int) -> str:
    moment = datetime.fromtimestamp(value_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def change_text(doc: Document) -> str:
    fields, _ = split_front_matter(doc.body or "")
    summary = fields.get(CHANGE_SUMMARY_FIELD, "").strip()
    text = summary or first_content_line(doc.body or "")
    return text[:CHANGE_TEXT_LIMIT]


def build_whos_involved(
    context: WorldContextSnapshot,
    folders: Sequence[Folder],
    limit: int = INVOLVED_LIMIT,
) -> InvolvedPrep:
    folder_map = {folder.id: folder for folder in folders}
    involvement: Dict[str, InvolvedEntry] = {}

    def _add(doc: Document, source: str) -> None:
        doc_type = classify_anchor_type(doc, folder_map)
        if doc_type not in INVOLVED_TYPES:
            return
        existing = involvement.get(doc.id)
        if existing is not None:
            if source not in existing.sources:
                existing.sources = sorted([*existing.sources, source])
            return
        involvement[doc.id] = InvolvedEntry(id=doc.id, title=doc.title, type=doc_type, sources=[source])

    for doc in context.linked_docs:
        _add(doc, "linked")
    for doc in context.backlinks:
        _add(doc, "backlink")
    for doc in context.location_tagged_docs:
        _add(doc, "locationTag")

    results = sorted(involvement.values(), key=lambda entry: (entry.type, entry.title.casefold(), entry.title))
    return InvolvedPrep(
        logic={
            "sources": ["linkedDocs", "backlinks", "locationTaggedDocs"],
            "includedTypes": list(INVOLVED_TYPES),
            "limit": limit,
        },
        results=results[:limit],
    )


def build_recent_changes(
    context: WorldContextSnapshot,
    since: int | None = None,
    limit: int = RECENT_LIMIT,
) -> RecentPrep:
    current_id = context.current_doc.id
    linked_ids = {doc.id for doc in context.linked_docs}
    backlink_ids = {doc.id for doc in context.backlinks}
    location_ids = {doc.id for doc in context.location_tagged_docs}
    related_ids = {current_id} | linked_ids | backlink_ids | location_ids

    candidates = [
        doc for doc in context.recently_updated_docs if since is None or doc.updated_at >= since
    ]
    related = [doc for doc in candidates if doc.id in related_ids]
    others = [doc for doc in candidates if doc.id not in related_ids]

    def _reason(doc: Document) -> str:
        if doc.id == current_id:
            return "currentDoc"
        if doc.id in linked_ids:
            return "linked"
        if doc.id in backlink_ids:
            return "backlink"
        if doc.id in location_ids:
            return "locationTag"
        return "recentCampaignUpdate"

    results = [
        RecentChange(
            id=doc.id,
            title=doc.title,
            updated_at=format_timestamp(doc.updated_at),
            reason=_reason(doc),
            change=change_text(doc),
        )
        for doc in [*related, *others][:limit]
    ]
    return RecentPrep(
        logic={
            "sources": ["recentlyUpdatedDocs", "linkedDocs", "backlinks", "locationTaggedDocs"],
            "limit": limit,
            "since": since,
            "ordering": "updatedAt desc, related docs first",
        },
        results=results,
    )


class PrepHelpersService:
    def __init__(self, encounter_service: EncounterService) -> None:
        self.encounter_service = encounter_service

    def build_prep_helpers(
        self,
        context: WorldContextSnapshot | None,
        folders: Sequence[Folder],
        party: PartyConfig,
        since: int | None = None,
        encounter_seed: Seed | None = None,
    ) -> PrepHelpers | None:
        if context is None:
            return None
        seed = encounter_seed if encounter_seed is not None else context.current_doc.id
        return PrepHelpers(
            suggest_encounter=self.encounter_service.suggest_encounter(
                tags=context.current_doc.tags,
                party=party,
                seed=seed,
            ),
            whos_involved=build_whos_involved(context, folders),
            what_changed_recently=build_recent_changes(context, since=since),
        )
