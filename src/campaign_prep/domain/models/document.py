from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Folder:
    id: str
    name: str
    workspace_id: str
    parent_folder_id: str | None = None
    deleted_at: int | None = None


@dataclass(frozen=True)
class Document:
    id: str
    title: str
    workspace_id: str
    body: str = ""
    folder_id: str | None = None
    updated_at: int = 0
    sort_index: int = 0
    deleted_at: int | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(frozen=True)
class Tag:
    doc_id: str
    namespace: str
    value: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.namespace, self.value)


@dataclass(frozen=True)
class Edge:
    from_doc_id: str
    to_doc_id: str
    link_text: str = ""
