from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable, List, Sequence, TypeVar

from campaign_prep.domain.models.document import Document, Tag
from campaign_prep.domain.models.world_context import (
    CurrentDocSummary,
    FolderContext,
    TagDocGroup,
    WorldContextSnapshot,
)
from campaign_prep.domain.repositories import VaultRepository
from campaign_prep.domain.services.vault_text import (
    EXCERPT_LIMIT,
    build_excerpt,
    is_visible,
    slugify_title,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECENT_LIMIT = 12
SIBLING_LIMIT = 12
CORRELATION_NAMESPACES = ("terrain", "creature_type", "ecosystem", "creature")
LOCATION_NAMESPACE = "location"
TYPE_NAMESPACE = "type"
LOCATION_TYPES = frozenset({"location", "settlement", "region", "landmark", "dungeon"})


def title_sort_key(doc: Document) -> tuple[str, str, str]:
    return (doc.title.casefold(), doc.title, doc.id)


def sort_by_title(docs: Iterable[Document]) -> List[Document]:
    return sorted(docs, key=title_sort_key)


def _unique_ids(ids: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for doc_id in ids:
        if doc_id not in seen:
            seen.append(doc_id)
    return seen


def _unique_docs(docs: Iterable[Document]) -> List[Document]:
    by_id: dict[str, Document] = {}
    for doc in docs:
        by_id.setdefault(doc.id, doc)
    return list(by_id.values())


class WorldContextService:
    """Walks the document graph around one page and returns an immutable snapshot.

    Store reads are blocking calls on the repository; independent reads for one
    snapshot run concurrently in worker threads and are awaited together.
    """

    def __init__(
        self,
        vault_repo: VaultRepository,
        recent_limit: int = RECENT_LIMIT,
        sibling_limit: int = SIBLING_LIMIT,
        excerpt_limit: int = EXCERPT_LIMIT,
    ) -> None:
        self.vault_repo = vault_repo
        self.recent_limit = recent_limit
        self.sibling_limit = sibling_limit
        self.excerpt_limit = excerpt_limit

    @staticmethod
    async def _read(fn: Callable[..., T], *args: Any) -> T:
        return await asyncio.to_thread(fn, *args)

    async def _visible_docs(self, doc_ids: Sequence[str], exclude_id: str) -> List[Document]:
        if not doc_ids:
            return []
        docs = await self._read(self.vault_repo.get_documents_by_ids, list(doc_ids))
        return [doc for doc in docs if is_visible(doc) and doc.id != exclude_id]

    async def _docs_with_tag(
        self,
        namespace: str,
        value: str,
        workspace_id: str,
        exclude_id: str,
    ) -> List[Document]:
        tags = await self._read(self.vault_repo.get_tags_by_namespace_value, namespace, value)
        docs = await self._visible_docs(_unique_ids(tag.doc_id for tag in tags), exclude_id)
        return [doc for doc in docs if doc.workspace_id == workspace_id]

    @staticmethod
    def _location_values(current: Document, tags: Sequence[Tag]) -> List[str]:
        values = _unique_ids(tag.value for tag in tags if tag.namespace == LOCATION_NAMESPACE)
        if any(tag.namespace == TYPE_NAMESPACE and tag.value in LOCATION_TYPES for tag in tags):
            slug = slugify_title(current.title)
            if slug and slug not in values:
                values.append(slug)
        return values

    async def _no_folder(self) -> None:
        return None

    async def build_world_context(self, doc_id: str) -> WorldContextSnapshot | None:
        current = await self._read(self.vault_repo.get_document, doc_id)
        if current is None or current.is_deleted:
            return None

        workspace_id = current.workspace_id
        tags, outgoing, incoming, workspace_docs, folder = await asyncio.gather(
            self._read(self.vault_repo.get_tags_for_document, doc_id),
            self._read(self.vault_repo.get_outgoing_edges, doc_id),
            self._read(self.vault_repo.get_incoming_edges, doc_id),
            self._read(self.vault_repo.get_documents_by_workspace, workspace_id),
            self._read(self.vault_repo.get_folder, current.folder_id) if current.folder_id else self._no_folder(),
        )

        correlation_tags = list(
            {
                tag.key: tag
                for tag in tags
                if tag.namespace in CORRELATION_NAMESPACES
            }.values()
        )
        location_values = self._location_values(current, tags)

        linked_raw, backlinks_raw, groups_raw, location_raw = await asyncio.gather(
            self._visible_docs(_unique_ids(edge.to_doc_id for edge in outgoing), doc_id),
            self._visible_docs(_unique_ids(edge.from_doc_id for edge in incoming), doc_id),
            asyncio.gather(
                *(
                    self._docs_with_tag(tag.namespace, tag.value, workspace_id, doc_id)
                    for tag in correlation_tags
                )
            ),
            asyncio.gather(
                *(
                    self._docs_with_tag(LOCATION_NAMESPACE, value, workspace_id, doc_id)
                    for value in location_values
                )
            ),
        )

        linked_docs = sort_by_title(linked_raw)
        backlinks = sort_by_title(backlinks_raw)
        related_docs_by_tag = tuple(
            TagDocGroup(namespace=tag.namespace, value=tag.value, docs=tuple(sort_by_title(docs)))
            for tag, docs in zip(correlation_tags, groups_raw)
        )
        location_tagged_docs = sort_by_title(_unique_docs(doc for docs in location_raw for doc in docs))

        visible_workspace_docs = [doc for doc in workspace_docs if is_visible(doc)]
        recently_updated = sorted(visible_workspace_docs, key=lambda doc: -doc.updated_at)[: self.recent_limit]
        siblings = sorted(
            (
                doc
                for doc in visible_workspace_docs
                if doc.id != doc_id and doc.folder_id == current.folder_id
            ),
            key=lambda doc: (doc.sort_index, doc.title.casefold(), doc.title, doc.id),
        )[: self.sibling_limit]
        if folder is not None and folder.deleted_at is not None:
            folder = None

        involved_ids = _unique_ids(
            doc.id for doc in [*linked_docs, *backlinks, *location_tagged_docs]
        )
        involved_tags = (
            await self._read(self.vault_repo.get_tags_for_documents, involved_ids) if involved_ids else []
        )
        doc_tags_by_id: dict[str, tuple[Tag, ...]] = {}
        for tag in involved_tags:
            doc_tags_by_id[tag.doc_id] = doc_tags_by_id.get(tag.doc_id, ()) + (tag,)

        logger.debug(
            "World context for %s: %s linked, %s backlinks, %s tag groups, %s recent",
            doc_id,
            len(linked_docs),
            len(backlinks),
            len(related_docs_by_tag),
            len(recently_updated),
        )
        return WorldContextSnapshot(
            current_doc=CurrentDocSummary(
                id=current.id,
                title=current.title,
                tags=tuple(tags),
                excerpt=build_excerpt(current.body or "", self.excerpt_limit),
                folder_id=current.folder_id,
                workspace_id=workspace_id,
            ),
            linked_docs=tuple(linked_docs),
            backlinks=tuple(backlinks),
            related_docs_by_tag=related_docs_by_tag,
            recently_updated_docs=tuple(recently_updated),
            folder_context=FolderContext(folder=folder, siblings=tuple(siblings)),
            location_tagged_docs=tuple(location_tagged_docs),
            location_context_tags=tuple(location_values),
            doc_tags_by_id=doc_tags_by_id,
        )

    def build_world_context_sync(self, doc_id: str) -> WorldContextSnapshot | None:
        """Blocking wrapper for callers outside an event loop."""
        return asyncio.run(self.build_world_context(doc_id))
