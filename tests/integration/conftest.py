import os
from collections.abc import AsyncGenerator
from pathlib import Path
from uuid import UUID

import pytest
import pytest_asyncio

from itera_worker.config.settings import Settings
from itera_worker.database.connection import close_pool, get_connection, init_pool
from itera_worker.database.models import DocumentRecord, NewDocument
from itera_worker.database.repositories.document_repository import DocumentRepository

SCHEMA = Path(__file__).with_name("schema.sql")


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "itera_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest_asyncio.fixture
async def integration_pool(test_settings: Settings) -> AsyncGenerator[None, None]:
    try:
        await init_pool(test_settings)
    except Exception as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    try:
        async with get_connection() as conn:
            await conn.execute(SCHEMA.read_text())
            await conn.commit()
        yield
    finally:
        await close_pool()


@pytest_asyncio.fixture
async def integration_cleanup(integration_pool: None) -> AsyncGenerator[list[UUID], None]:
    """Collect document ids to delete (with their export rows) after the test."""
    cleanup: list[UUID] = []
    yield cleanup
    if not cleanup:
        return
    async with get_connection() as conn:
        await conn.execute("DELETE FROM documents WHERE id = ANY(%s)", (cleanup,))
        await conn.commit()


@pytest_asyncio.fixture
async def seed_document(integration_cleanup: list[UUID]) -> DocumentRecord:
    record = await DocumentRepository().add(
        NewDocument(
            file_name="balanco.pdf",
            content=b"%PDF-1.4 test",
            cnpj="12.345.678/0001-99",
            source="integration",
            description="seeded by tests",
        )
    )
    integration_cleanup.append(record.id)
    return record
