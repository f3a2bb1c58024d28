import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from docworker.config.settings import Settings
from docworker.database.connection import build_conninfo, close_pool, get_connection, init_pool
from docworker.database.models import DocumentRecord, JobRecord
from docworker.database.repositories.documents_repository import DocumentsRepository
from docworker.database.repositories.job_repository import JobRepository
from docworker.storage.local_adapter import LocalStorageAdapter

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "docworker" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "docworker_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        with psycopg.connect(build_conninfo(test_settings), connect_timeout=3) as conn:
            conn.execute(SCHEMA_PATH.read_text())
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to point at one")
    init_pool(test_settings)
    try:
        yield
    finally:
        close_pool()


@pytest.fixture(autouse=True)
def clean_tables(integration_pool: None) -> None:
    with get_connection() as conn:
        conn.execute(
            """
            TRUNCATE processing_jobs, extracted_fields, classifications, ocr_texts, documents
            RESTART IDENTITY CASCADE
            """
        )
        conn.commit()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorageAdapter:
    return LocalStorageAdapter(tmp_path)


@pytest.fixture
def seed_document() -> DocumentRecord:
    return DocumentsRepository().create_document(
        filename="invoice.pdf",
        storage_path="documents/1700000000000_invoice.pdf",
        mime_type="application/pdf",
        size_bytes=1024,
    )


@pytest.fixture
def seed_job(seed_document: DocumentRecord) -> JobRecord:
    return JobRepository().create_job(seed_document.id)


def _fetch_one(query: str, params: tuple[Any, ...]) -> tuple[Any, ...] | None:
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(query, params)
            return cur.fetchone()


@pytest.fixture
def fetch_one() -> Callable[[str, tuple[Any, ...]], tuple[Any, ...] | None]:
    return _fetch_one
