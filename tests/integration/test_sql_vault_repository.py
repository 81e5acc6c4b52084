import sys
from pathlib import Path
import tempfile
import unittest
from unittest import mock

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from campaign_prep.application.services.world_context_service import WorldContextService
from campaign_prep.infrastructure.db.sql import repos as sql_repos
from campaign_prep.infrastructure.db.sql.repos import SqlVaultRepository
from campaign_prep.infrastructure.db.sql.schema import create_schema


def _seed_rows(engine) -> None:
    with engine.begin() as conn:
        conn.execute(
            text(
                """
                INSERT INTO folder (folder_id, workspace_id, parent_folder_id, name, deleted_at)
                VALUES ('f-1', 'ws-1', NULL, 'Regions', NULL), ('f-2', 'ws-1', 'f-1', 'Coast', NULL)
                """
            )
        )
        conn.execute(
            text(
                """
                INSERT INTO doc (doc_id, workspace_id, folder_id, title, body, updated_at, sort_index, deleted_at)
                VALUES
                    ('d-1', 'ws-1', 'f-1', 'Saltmarsh', 'A fishing town. [[Sea Hag]]', 300, 0, NULL),
                    ('d-2', 'ws-1', 'f-1', 'Sea Hag', 'Lives in the reeds.', 200, 1, NULL),
                    ('d-3', 'ws-1', 'f-1', 'Old Pier', 'Collapsed.', 100, 2, 150),
                    ('d-4', 'ws-2', NULL, 'Elsewhere', '', 50, 0, NULL)
                """
            )
        )
        conn.execute(
            text(
                """
                INSERT INTO tag (doc_id, namespace, value)
                VALUES
                    ('d-1', 'terrain', 'coastal'),
                    ('d-2', 'terrain', 'coastal'),
                    ('d-3', 'terrain', 'coastal'),
                    ('d-4', 'terrain', 'coastal'),
                    ('d-2', 'creature', 'hag')
                """
            )
        )
        conn.execute(
            text(
                """
                INSERT INTO edge (from_doc_id, to_doc_id, link_text)
                VALUES ('d-1', 'd-2', 'Sea Hag'), ('d-3', 'd-1', 'Saltmarsh')
                """
            )
        )


class SqlVaultRepositoryIntegrationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp_dir = tempfile.TemporaryDirectory()
        db_path = Path(self.tmp_dir.name) / "vault.db"
        self.engine = create_engine(f"sqlite:///{db_path}", future=True)
        create_schema(self.engine)
        _seed_rows(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)
        self.session_patcher = mock.patch.object(sql_repos, "SessionLocal", self.SessionLocal)
        self.session_patcher.start()
        self.repo = SqlVaultRepository()

    def tearDown(self) -> None:
        self.session_patcher.stop()
        self.engine.dispose()
        self.tmp_dir.cleanup()

    def test_document_round_trip(self) -> None:
        doc = self.repo.get_document("d-3")
        self.assertEqual("Old Pier", doc.title)
        self.assertEqual(150, doc.deleted_at)
        self.assertTrue(doc.is_deleted)
        self.assertIsNone(self.repo.get_document("missing"))

    def test_edges_are_read_in_both_directions(self) -> None:
        self.assertEqual(["d-2"], [edge.to_doc_id for edge in self.repo.get_outgoing_edges("d-1")])
        self.assertEqual(["d-3"], [edge.from_doc_id for edge in self.repo.get_incoming_edges("d-1")])

    def test_bulk_reads_use_expanding_parameters(self) -> None:
        docs = self.repo.get_documents_by_ids(["d-1", "d-2", "missing"])
        self.assertEqual({"d-1", "d-2"}, {doc.id for doc in docs})
        self.assertEqual([], self.repo.get_documents_by_ids([]))
        tags = self.repo.get_tags_for_documents(["d-1", "d-2"])
        self.assertEqual(3, len(tags))

    def test_tag_and_folder_lookups(self) -> None:
        tagged = self.repo.get_tags_by_namespace_value("terrain", "coastal")
        self.assertEqual(["d-1", "d-2", "d-3", "d-4"], [tag.doc_id for tag in tagged])
        self.assertEqual("f-1", self.repo.get_folder("f-2").parent_folder_id)
        self.assertEqual(["Coast", "Regions"], [folder.name for folder in self.repo.get_folders_by_workspace("ws-1")])

    def test_world_context_over_sql_store(self) -> None:
        snapshot = WorldContextService(self.repo).build_world_context_sync("d-1")
        self.assertEqual(["Sea Hag"], [doc.title for doc in snapshot.linked_docs])
        self.assertEqual([], list(snapshot.backlinks))
        group = snapshot.related_docs_by_tag[0]
        self.assertEqual(["d-2"], [doc.id for doc in group.docs])
        self.assertEqual(["d-2"], [doc.id for doc in snapshot.folder_context.siblings])
        self.assertEqual("A fishing town. Sea Hag", snapshot.current_doc.excerpt)


if __name__ == "__main__":
    unittest.main()
