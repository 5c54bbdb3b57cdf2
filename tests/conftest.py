"""
Shared fixtures.
Every test gets its own data dir so default vaults and nonce counters never
touch the real ~/.ledgercloak.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from ledgercloak.config import get_settings


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    data_dir = tmp_path / "ledgercloak-data"
    monkeypatch.setenv("LEDGERCLOAK_DATA_DIR", str(data_dir))
    get_settings.cache_clear()
    yield data_dir
    get_settings.cache_clear()
