import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def isolated_prep_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PREP_DATABASE_URL",
        "PREP_LOOT_DATA_PATH",
        "PREP_ENCOUNTER_LIMIT",
        "PREP_PARTY_SIZE",
        "PREP_PARTY_LEVEL",
        "PREP_PARTY_DIFFICULTY",
    ):
        monkeypatch.delenv(name, raising=False)
