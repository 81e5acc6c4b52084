from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from campaign_prep.domain.models.document import Document, Edge, Folder, Tag
from campaign_prep.domain.repositories import VaultRepository


class InMemoryVaultRepository(VaultRepository):
    """Documents in an id-keyed arena; edges and tags in adjacency indices."""

    def __init__(
        self,
        documents: Optional[Iterable[Document]] = None,
        folders: Optional[Iterable[Folder]] = None,
        tags: Optional[Iterable[Tag]] = None,
        edges: Optional[Iterable[Edge]] = None,
    ):
        self._documents: Dict[str, Document] = {}
        self._folders: Dict[str, Folder] = {}
        self._tags_by_doc: Dict[str, List[Tag]] = {}
        self._tags_by_key: Dict[Tuple[str, str], List[Tag]] = {}
        self._edges_by_source: Dict[str, List[Edge]] = {}
        self._edges_by_target: Dict[str, List[Edge]] = {}

        for document in documents or []:
            self.add_document(document)
        for folder in folders or []:
            self.add_folder(folder)
        for tag in tags or []:
            self.add_tag(tag)
        for edge in edges or []:
            self.add_edge(edge)

    def add_document(self, document: Document) -> None:
        self._documents[document.id] = document

    def add_folder(self, folder: Folder) -> None:
        self._folders[folder.id] = folder

    def add_tag(self, tag: Tag) -> None:
        existing = self._tags_by_doc.setdefault(tag.doc_id, [])
        if tag in existing:
            return
        existing.append(tag)
        self._tags_by_key.setdefault(tag.key, []).append(tag)

    def add_edge(self, edge: Edge) -> None:
        self._edges_by_source.setdefault(edge.from_doc_id, []).append(edge)
        self._edges_by_target.setdefault(edge.to_doc_id, []).append(edge)

    def get_document(self, doc_id: str) -> Optional[Document]:
        return self._documents.get(doc_id)

    def get_tags_for_document(self, doc_id: str) -> List[Tag]:
        return list(self._tags_by_doc.get(doc_id, []))

    def get_outgoing_edges(self, doc_id: str) -> List[Edge]:
        return list(self._edges_by_source.get(doc_id, []))

    def get_incoming_edges(self, doc_id: str) -> List[Edge]:
        return list(self._edges_by_target.get(doc_id, []))

    def get_documents_by_ids(self, doc_ids: Sequence[str]) -> List[Document]:
        return [self._documents[doc_id] for doc_id in doc_ids if doc_id in self._documents]

    def get_documents_by_workspace(self, workspace_id: str) -> List[Document]:
        return [doc for doc in self._documents.values() if doc.workspace_id == workspace_id]

    def get_tags_by_namespace_value(self, namespace: str, value: str) -> List[Tag]:
        return list(self._tags_by_key.get((namespace, value), []))

    def get_folder(self, folder_id: str) -> Optional[Folder]:
        return self._folders.get(folder_id)

    def get_folders_by_workspace(self, workspace_id: str) -> List[Folder]:
        return [folder for folder in self._folders.values() if folder.workspace_id == workspace_id]
