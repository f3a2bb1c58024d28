from datetime import datetime, timezone
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from docworker.database.connection import get_connection
from docworker.database.models import DocumentRecord, DocumentStatus, DocumentSummary
from docworker.processor.exceptions import DocumentNotFoundError, PersistenceError

_DOCUMENT_COLUMNS = (
    "id, filename, storage_path, mime_type, status, document_type, "
    "structured_result, created_at, processed_at"
)


def _row_to_document(row: dict[str, Any]) -> DocumentRecord:
    return DocumentRecord(
        id=row["id"],
        filename=row["filename"],
        storage_path=row["storage_path"],
        mime_type=row["mime_type"],
        status=row["status"],
        document_type=row["document_type"],
        structured_result=row["structured_result"],
        created_at=row["created_at"],
        processed_at=row["processed_at"],
    )


class DocumentsRepository:
    """Database operations for the documents table."""

    def find_by_id(self, document_id: int) -> DocumentRecord:
        """Find a document by ID.

        Raises:
            DocumentNotFoundError: if no document with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = %s",
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return _row_to_document(row)

    def create_document(
        self,
        filename: str,
        storage_path: str,
        mime_type: str,
        size_bytes: int,
    ) -> DocumentRecord:
        """Insert a freshly uploaded document in the ``uploaded`` state."""
        metadata = {
            "size": size_bytes,
            "uploaded_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO documents
                            (filename, storage_path, mime_type, status, metadata)
                        VALUES (%s, %s, %s, %s, %s)
                        RETURNING {_DOCUMENT_COLUMNS}
                        """,
                        (
                            filename,
                            storage_path,
                            mime_type,
                            DocumentStatus.UPLOADED.value,
                            Jsonb(metadata),
                        ),
                    )
                    row = cur.fetchone()
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to create document '{filename}': {exc}") from exc

        if row is None:
            raise PersistenceError(f"Failed to create document '{filename}'")
        return _row_to_document(row)

    def list_recent(self, status: str | None = None, limit: int = 50) -> list[DocumentSummary]:
        """List documents newest first, each with its latest job's status and progress.

        Raises:
            ValueError: if *status* is not a document status or *limit* is not positive.
        """
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        where = ""
        params: tuple[Any, ...] = (limit,)
        if status is not None:
            where = "WHERE d.status = %s"
            params = (DocumentStatus(status).value, limit)

        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT d.id, d.filename, d.status, d.document_type, d.created_at,
                           j.status AS job_status, j.progress AS job_progress
                    FROM documents d
                    LEFT JOIN LATERAL (
                        SELECT status, progress
                        FROM processing_jobs
                        WHERE document_id = d.id
                        ORDER BY created_at DESC, id DESC
                        LIMIT 1
                    ) j ON TRUE
                    {where}
                    ORDER BY d.created_at DESC, d.id DESC
                    LIMIT %s
                    """,
                    params,
                )
                rows = cur.fetchall()

        return [
            DocumentSummary(
                id=row["id"],
                filename=row["filename"],
                status=row["status"],
                document_type=row["document_type"],
                created_at=row["created_at"],
                job_status=row["job_status"],
                job_progress=row["job_progress"],
            )
            for row in rows
        ]
