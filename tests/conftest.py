from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from schemarecon.adapters.memory import InMemorySchemaStore
from schemarecon.adapters.sqlalchemy import SqlAlchemySchemaStore
from schemarecon.config import engine as engine_config
from schemarecon.config import logging as logging_config
from schemarecon.config import storage as storage_config
from tests.helpers.schemas import orders_entity, users_entity

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in (
        engine_config.COMPARE_THRESHOLD_ENV,
        engine_config.COMPARE_STRATEGY_ENV,
        engine_config.RESOLVE_STRATEGY_ENV,
        engine_config.PREFER_SOURCE_ENV,
        engine_config.APPLY_TIMEOUT_ENV,
        storage_config.DATABASE_URI_ENV,
        logging_config.LOG_LEVEL_ENV,
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv(storage_config.DATA_DIR_ENV, str(tmp_path / "data"))


@pytest.fixture
def memory_store() -> InMemorySchemaStore:
    return InMemorySchemaStore([users_entity(), orders_entity()])


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # file-backed: store calls run on worker threads
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'store.db'}", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_store(sqlite_engine: Engine) -> SqlAlchemySchemaStore:
    return SqlAlchemySchemaStore(sqlite_engine)
