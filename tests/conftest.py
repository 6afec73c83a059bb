# File: tests/conftest.py
# Shared pytest fixtures: the shop schema snapshot and output configuration.

from pathlib import Path
from typing import Any, Dict

import pytest

from sequelize_model_generator.config import build_config, ResolvedConfig
from sequelize_model_generator.domain.schema import DatabaseInfo
from sequelize_model_generator.introspection import build_database, load_snapshot


# --- Constants ---
TESTS_DIR = Path(__file__).parent
FIXTURES_DIR = TESTS_DIR / "fixtures"
SHOP_SCHEMA_PATH = FIXTURES_DIR / "shop_schema.yaml"


@pytest.fixture(scope="session")
def shop_snapshot_path() -> Path:
    return SHOP_SCHEMA_PATH


@pytest.fixture
def shop_database() -> DatabaseInfo:
    """Schema graph of the shop fixture."""
    return build_database(load_snapshot(SHOP_SCHEMA_PATH), source=str(SHOP_SCHEMA_PATH))


@pytest.fixture
def output_overrides(tmp_path: Path) -> Dict[str, Any]:
    """Config values pointing the generator at the fixture and a temporary folder."""
    return {
        "database": {"snapshot": str(SHOP_SCHEMA_PATH)},
        "output": {"folder": str(tmp_path / "model"), "log": True},
    }


@pytest.fixture
def output_config(output_overrides: Dict[str, Any]) -> ResolvedConfig:
    return build_config(output_overrides)
