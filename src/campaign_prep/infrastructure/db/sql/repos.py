from typing import List, Optional, Sequence

from sqlalchemy import bindparam, text

from campaign_prep.domain.models.document import Document, Edge, Folder, Tag
from campaign_prep.domain.repositories import VaultRepository
from .connection import SessionLocal

_DOC_COLUMNS = "doc_id, workspace_id, folder_id, title, body, updated_at, sort_index, deleted_at"
_FOLDER_COLUMNS = "folder_id, workspace_id, parent_folder_id, name, deleted_at"


def _row_to_document(row) -> Document:
    return Document(
        id=str(row.doc_id),
        title=str(row.title or ""),
        workspace_id=str(row.workspace_id),
        body=str(row.body or ""),
        folder_id=str(row.folder_id) if row.folder_id is not None else None,
        updated_at=int(row.updated_at or 0),
        sort_index=int(row.sort_index or 0),
        deleted_at=int(row.deleted_at) if row.deleted_at is not None else None,
    )


def _row_to_folder(row) -> Folder:
    return Folder(
        id=str(row.folder_id),
        name=str(row.name or ""),
        workspace_id=str(row.workspace_id),
        parent_folder_id=str(row.parent_folder_id) if row.parent_folder_id is not None else None,
        deleted_at=int(row.deleted_at) if row.deleted_at is not None else None,
    )


def _row_to_tag(row) -> Tag:
    return Tag(doc_id=str(row.doc_id), namespace=str(row.namespace), value=str(row.value))


def _row_to_edge(row) -> Edge:
    return Edge(from_doc_id=str(row.from_doc_id), to_doc_id=str(row.to_doc_id), link_text=str(row.link_text or ""))


class SqlVaultRepository(VaultRepository):
    def get_document(self, doc_id: str) -> Optional[Document]:
        with SessionLocal() as session:
            row = session.execute(
                text(f"SELECT {_DOC_COLUMNS} FROM doc WHERE doc_id = :doc_id"),
                {"doc_id": doc_id},
            ).first()
            return _row_to_document(row) if row else None

    def get_tags_for_document(self, doc_id: str) -> List[Tag]:
        with SessionLocal() as session:
            rows = session.execute(
                text(
                    """
                    SELECT doc_id, namespace, value
                    FROM tag
                    WHERE doc_id = :doc_id
                    ORDER BY namespace, value
                    """
                ),
                {"doc_id": doc_id},
            ).all()
            return [_row_to_tag(row) for row in rows]

    def get_tags_for_documents(self, doc_ids: Sequence[str]) -> List[Tag]:
        if not doc_ids:
            return []
        with SessionLocal() as session:
            rows = session.execute(
                text(
                    """
                    SELECT doc_id, namespace, value
                    FROM tag
                    WHERE doc_id IN :ids
                    ORDER BY doc_id, namespace, value
                    """
                ).bindparams(bindparam("ids", expanding=True)),
                {"ids": list(doc_ids)},
            ).all()
            return [_row_to_tag(row) for row in rows]

    def get_outgoing_edges(self, doc_id: str) -> List[Edge]:
        with SessionLocal() as session:
            rows = session.execute(
                text("SELECT from_doc_id, to_doc_id, link_text FROM edge WHERE from_doc_id = :doc_id"),
                {"doc_id": doc_id},
            ).all()
            return [_row_to_edge(row) for row in rows]

    def get_incoming_edges(self, doc_id: str) -> List[Edge]:
        with SessionLocal() as session:
            rows = session.execute(
                text("SELECT from_doc_id, to_doc_id, link_text FROM edge WHERE to_doc_id = :doc_id"),
                {"doc_id": doc_id},
            ).all()
            return [_row_to_edge(row) for row in rows]

    def get_documents_by_ids(self, doc_ids: Sequence[str]) -> List[Document]:
        if not doc_ids:
            return []
        with SessionLocal() as session:
            rows = session.execute(
                text(f"SELECT {_DOC_COLUMNS} FROM doc WHERE doc_id IN :ids").bindparams(
                    bindparam("ids", expanding=True)
                ),
                {"ids": list(doc_ids)},
            ).all()
            return [_row_to_document(row) for row in rows]

    def get_documents_by_workspace(self, workspace_id: str) -> List[Document]:
        with SessionLocal() as session:
            rows = session.execute(
                text(f"SELECT {_DOC_COLUMNS} FROM doc WHERE workspace_id = :workspace_id"),
                {"workspace_id": workspace_id},
            ).all()
            return [_row_to_document(row) for row in rows]

    def get_tags_by_namespace_value(self, namespace: str, value: str) -> List[Tag]:
        with SessionLocal() as session:
            rows = session.execute(
                text(
                    """
                    SELECT doc_id, namespace, value
                    FROM tag
                    WHERE namespace = :namespace AND value = :value
                    ORDER BY doc_id
                    """
                ),
                {"namespace": namespace, "value": value},
            ).all()
            return [_row_to_tag(row) for row in rows]

    def get_folder(self, folder_id: str) -> Optional[Folder]:
        with SessionLocal() as session:
            row = session.execute(
                text(f"SELECT {_FOLDER_COLUMNS} FROM folder WHERE folder_id = :folder_id"),
                {"folder_id": folder_id},
            ).first()
            return _row_to_folder(row) if row else None

    def get_folders_by_workspace(self, workspace_id: str) -> List[Folder]:
        with SessionLocal() as session:
            rows = session.execute(
                text(f"SELECT {_FOLDER_COLUMNS} FROM folder WHERE workspace_id = :workspace_id ORDER BY name"),
                {"workspace_id": workspace_id},
            ).all()
            return [_row_to_folder(row) for row in rows]
