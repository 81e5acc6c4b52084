from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from campaign_prep.domain.models.document import Document, Edge, Folder, Tag


class VaultRepository(ABC):
    """Read side of the document/tag/edge store. Misses return None or an empty list."""

    @abstractmethod
    def get_document(self, doc_id: str) -> Optional[Document]:
        raise NotImplementedError

    @abstractmethod
    def get_tags_for_document(self, doc_id: str) -> List[Tag]:
        raise NotImplementedError

    @abstractmethod
    def get_outgoing_edges(self, doc_id: str) -> List[Edge]:
        raise NotImplementedError

    @abstractmethod
    def get_incoming_edges(self, doc_id: str) -> List[Edge]:
        raise NotImplementedError

    @abstractmethod
    def get_documents_by_ids(self, doc_ids: Sequence[str]) -> List[Document]:
        raise NotImplementedError

    @abstractmethod
    def get_documents_by_workspace(self, workspace_id: str) -> List[Document]:
        raise NotImplementedError

    @abstractmethod
    def get_tags_by_namespace_value(self, namespace: str, value: str) -> List[Tag]:
        raise NotImplementedError

    @abstractmethod
    def get_folder(self, folder_id: str) -> Optional[Folder]:
        raise NotImplementedError

    @abstractmethod
    def get_folders_by_workspace(self, workspace_id: str) -> List[Folder]:
        raise NotImplementedError

    def get_tags_for_documents(self, doc_ids: Sequence[str]) -> List[Tag]:
        """Convenience batch read; stores with a cheaper bulk query may override."""
        tags: List[Tag] = []
        for doc_id in doc_ids:
            tags.extend(self.get_tags_for_document(doc_id))
        return tags
