import sys
from pathlib import Path
import importlib
import os
import unittest
from unittest import mock

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from campaign_prep.bootstrap import create_prep_services, create_vault_repository
from campaign_prep.infrastructure.db.sql import connection
from campaign_prep.infrastructure.db.sql.repos import SqlVaultRepository
from campaign_prep.infrastructure.inmemory.inmemory_vault_repo import InMemoryVaultRepository


class BootstrapTests(unittest.TestCase):
    def test_demo_vault_without_database_url(self) -> None:
        self.assertIsInstance(create_vault_repository(), InMemoryVaultRepository)

    def test_sql_store_when_database_url_is_set(self) -> None:
        with mock.patch.dict(os.environ, {"PREP_DATABASE_URL": "sqlite://"}):
            self.assertIsInstance(create_vault_repository(), SqlVaultRepository)

    def test_unconfigured_connection_stays_in_memory(self) -> None:
        reloaded = importlib.reload(connection)
        try:
            self.assertEqual("sqlite://", reloaded.DATABASE_URL)
        finally:
            reloaded.engine.dispose()

    def test_environment_overrides_party_and_limit(self) -> None:
        env = {"PREP_PARTY_SIZE": "5", "PREP_PARTY_LEVEL": "7", "PREP_ENCOUNTER_LIMIT": "oops"}
        with mock.patch.dict(os.environ, env):
            services = create_prep_services()
        self.assertEqual((5, 7, "medium"), (services.party.size, services.party.level, services.party.difficulty))
        self.assertIsNotNone(services.loot_data)


if __name__ == "__main__":
    unittest.main()
