from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from campaign_prep.domain.models.document import Document, Folder, Tag


@dataclass(frozen=True)
class CurrentDocSummary:
    id: str
    title: str
    tags: Tuple[Tag, ...]
    excerpt: str
    folder_id: str | None
    workspace_id: str


@dataclass(frozen=True)
class TagDocGroup:
    namespace: str
    value: str
    docs: Tuple[Document, ...] = ()


@dataclass(frozen=True)
class FolderContext:
    folder: Folder | None = None
    siblings: Tuple[Document, ...] = ()


@dataclass(frozen=True)
class WorldContextSnapshot:
    """Bounded neighbourhood of one document, taken at call time."""

    current_doc: CurrentDocSummary
    linked_docs: Tuple[Document, ...] = ()
    backlinks: Tuple[Document, ...] = ()
    related_docs_by_tag: Tuple[TagDocGroup, ...] = ()
    recently_updated_docs: Tuple[Document, ...] = ()
    folder_context: FolderContext = field(default_factory=FolderContext)
    location_tagged_docs: Tuple[Document, ...] = ()
    location_context_tags: Tuple[str, ...] = ()
    doc_tags_by_id: Dict[str, Tuple[Tag, ...]] = field(default_factory=dict)
