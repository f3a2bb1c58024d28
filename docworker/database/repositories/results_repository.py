from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from docworker.classification.models import ClassificationResult
from docworker.database.connection import get_connection
from docworker.database.models import (
    ClassificationRecord,
    DocumentStatus,
    ExtractedFieldRecord,
    OcrTextRecord,
)
from docworker.fields.models import ExtractedField
from docworker.processor.exceptions import DocumentNotFoundError, PersistenceError


class ResultsRepository:
    """Writes pipeline output: OCR text, classification, fields and the document summary."""

    def save(
        self,
        document_id: int,
        ocr_text: str,
        classification: ClassificationResult,
        fields: list[ExtractedField],
        structured_result: dict[str, Any],
    ) -> None:
        """Persist one run's results in a single transaction.

        The document only becomes ``processed`` together with its
        classification row, so a processed document always has one.

        Raises:
            DocumentNotFoundError: if the document row vanished.
            PersistenceError: on any database failure; nothing is committed.
        """
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO ocr_texts (document_id, page_number, text, raw)
                        VALUES (%s, 1, %s, NULL)
                        """,
                        (document_id, ocr_text),
                    )
                    cur.execute(
                        """
                        INSERT INTO classifications (document_id, label, confidence, model)
                        VALUES (%s, %s, %s, %s)
                        """,
                        (
                            document_id,
                            classification.type.value,
                            classification.confidence,
                            classification.model,
                        ),
                    )
                    if fields:
                        cur.executemany(
                            """
                            INSERT INTO extracted_fields
                                (document_id, field_name, field_value, confidence, normalized)
                            VALUES (%s, %s, %s, %s, %s)
                            """,
                            [self._field_params(document_id, f) for f in fields],
                        )
                    cur.execute(
                        """
                        UPDATE documents
                        SET status = %s, document_type = %s,
                            structured_result = %s, processed_at = NOW()
                        WHERE id = %s
                        """,
                        (
                            DocumentStatus.PROCESSED.value,
                            classification.type.value,
                            Jsonb(structured_result),
                            document_id,
                        ),
                    )
                    if cur.rowcount == 0:
                        conn.rollback()
                        raise DocumentNotFoundError(f"Document {document_id} not found")
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to persist results for document {document_id}: {exc}"
            ) from exc

    def latest_classification(self, document_id: int) -> ClassificationRecord | None:
        """Most recent classification row for a document."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, document_id, label, confidence, model, created_at
                    FROM classifications
                    WHERE document_id = %s
                    ORDER BY created_at DESC, id DESC
                    LIMIT 1
                    """,
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return ClassificationRecord(
            id=row["id"],
            document_id=row["document_id"],
            label=row["label"],
            confidence=row["confidence"],
            model=row["model"],
            created_at=row["created_at"],
        )

    def fields_for(self, document_id: int) -> list[ExtractedFieldRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, document_id, field_name, field_value, confidence, normalized
                    FROM extracted_fields
                    WHERE document_id = %s
                    ORDER BY id
                    """,
                    (document_id,),
                )
                rows = cur.fetchall()

        return [
            ExtractedFieldRecord(
                id=row["id"],
                document_id=row["document_id"],
                field_name=row["field_name"],
                field_value=row["field_value"],
                confidence=row["confidence"],
                normalized=row["normalized"],
            )
            for row in rows
        ]

    def ocr_text_for(self, document_id: int) -> OcrTextRecord | None:
        """Most recently stored OCR text of a document."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, document_id, page_number, text
                    FROM ocr_texts
                    WHERE document_id = %s
                    ORDER BY id DESC
                    LIMIT 1
                    """,
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return OcrTextRecord(
            id=row["id"],
            document_id=row["document_id"],
            page_number=row["page_number"],
            text=row["text"],
        )

    def _field_params(
        self, document_id: int, field: ExtractedField
    ) -> tuple[Any, ...]:
        normalized = field.normalized_payload()
        return (
            document_id,
            field.name,
            field.value,
            field.confidence,
            Jsonb(normalized) if normalized is not None else None,
        )
