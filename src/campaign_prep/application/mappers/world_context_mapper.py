from __future__ import annotations

from typing import Any, Dict, Sequence

from campaign_prep.domain.models.document import Document, Folder, Tag
from campaign_prep.domain.models.world_context import WorldContextSnapshot


def to_tag_row(tag: Tag) -> Dict[str, str]:
    return {"namespace": tag.namespace, "value": tag.value}


def to_doc_row(doc: Document) -> Dict[str, Any]:
    return {
        "id": doc.id,
        "title": doc.title,
        "folderId": doc.folder_id,
        "updatedAt": doc.updated_at,
    }


def to_folder_row(folder: Folder | None) -> Dict[str, Any] | None:
    if folder is None:
        return None
    return {"id": folder.id, "name": folder.name, "parentFolderId": folder.parent_folder_id}


def _doc_rows(docs: Sequence[Document]) -> list[Dict[str, Any]]:
    return [to_doc_row(doc) for doc in docs]


def world_context_to_dict(snapshot: WorldContextSnapshot) -> Dict[str, Any]:
    current = snapshot.current_doc
    return {
        "currentDoc": {
            "id": current.id,
            "title": current.title,
            "tags": [to_tag_row(tag) for tag in current.tags],
            "excerpt": current.excerpt,
            "folderId": current.folder_id,
            "workspaceId": current.workspace_id,
        },
        "linkedDocs": _doc_rows(snapshot.linked_docs),
        "backlinks": _doc_rows(snapshot.backlinks),
        "relatedDocsByTag": [
            {"namespace": group.namespace, "value": group.value, "docs": _doc_rows(group.docs)}
            for group in snapshot.related_docs_by_tag
        ],
        "recentlyUpdatedDocs": _doc_rows(snapshot.recently_updated_docs),
        "folderContext": {
            "folder": to_folder_row(snapshot.folder_context.folder),
            "siblings": _doc_rows(snapshot.folder_context.siblings),
        },
        "locationTaggedDocs": _doc_rows(snapshot.location_tagged_docs),
        "locationContextTags": list(snapshot.location_context_tags),
        "docTagsById": {
            doc_id: [to_tag_row(tag) for tag in tags] for doc_id, tags in snapshot.doc_tags_by_id.items()
        },
    }
