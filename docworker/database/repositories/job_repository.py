from typing import Any

import psycopg
from psycopg.rows import dict_row

from docworker.database.connection import get_connection
from docworker.database.models import JobOutcome, JobRecord, JobStatus
from docworker.logging.logger import Log
from docworker.processor.exceptions import PersistenceError

_JOB_COLUMNS = (
    "id, document_id, status, progress, attempt, error, created_at, started_at, finished_at"
)


def _row_to_job(row: dict[str, Any]) -> JobRecord:
    return JobRecord(
        id=row["id"],
        document_id=row["document_id"],
        status=row["status"],
        progress=row["progress"],
        attempt=row["attempt"],
        error=row["error"],
        created_at=row["created_at"],
        started_at=row["started_at"],
        finished_at=row["finished_at"],
    )


class JobRepository:
    """Database operations for the processing_jobs table.

    Claiming relies solely on a conditional single-row UPDATE guarded by
    ``status = 'pending'``. Any number of worker processes may call
    :meth:`claim_next_job` concurrently; at most one of them sees the row
    affected for a given job. Every claim bumps ``attempt``; progress and
    terminal writes carry the attempt they belong to, so a run that outlived
    a stale reclaim cannot overwrite the attempt that replaced it.
    """

    def __init__(self, claim_batch_size: int = 5) -> None:
        self._claim_batch_size = max(1, claim_batch_size)

    def claim_next_job(self, conn: psycopg.Connection[Any]) -> JobRecord | None:
        """Claim the oldest pending job, or return None if none could be claimed.

        Candidates are tried in creation order. A candidate whose conditional
        update affects zero rows was taken by another worker; the next one is
        tried. If every candidate is lost the caller should simply re-poll.
        """
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id
                FROM processing_jobs
                WHERE status = 'pending'
                ORDER BY created_at, id
                LIMIT %s
                """,
                (self._claim_batch_size,),
            )
            candidates = [row["id"] for row in cur.fetchall()]
        conn.commit()

        for job_id in candidates:
            job = self._try_claim(conn, job_id)
            if job is not None:
                Log.info(f"Claimed job {job.id} for document {job.document_id}")
                return job
            Log.debug(f"Job {job_id} was claimed by another worker")
        return None

    def _try_claim(self, conn: psycopg.Connection[Any], job_id: int) -> JobRecord | None:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                UPDATE processing_jobs
                SET status = 'running', started_at = NOW(), progress = 0,
                    attempt = attempt + 1, error = NULL, finished_at = NULL
                WHERE id = %s AND status = 'pending'
                RETURNING {_JOB_COLUMNS}
                """,
                (job_id,),
            )
            row = cur.fetchone()
        conn.commit()
        if row is None:
            return None
        return _row_to_job(row)

    def update_progress(self, job_id: int, attempt: int, progress: int) -> None:
        """Record a progress checkpoint. Never lowers progress; failures are non-fatal.

        Only the attempt that currently holds the job moves its progress; a
        checkpoint from a superseded attempt is dropped.
        """
        if not 0 <= progress <= 100:
            raise ValueError(f"progress must be within 0..100, got {progress}")
        try:
            with get_connection() as conn:
                cur = conn.execute(
                    """
                    UPDATE processing_jobs
                    SET progress = GREATEST(progress, %s)
                    WHERE id = %s AND status = 'running' AND attempt = %s
                    """,
                    (progress, job_id, attempt),
                )
                conn.commit()
        except psycopg.Error as exc:
            Log.warning(f"Could not record progress {progress} for job {job_id}: {exc}")
            return
        if cur.rowcount == 0:
            Log.debug(
                f"Progress {progress} dropped: job {job_id} attempt {attempt} is no longer running"
            )

    def finish(self, job_id: int, attempt: int, outcome: JobOutcome) -> bool:
        """Write the single terminal state of an attempt.

        Returns False without writing when the attempt no longer holds the
        job, e.g. after it was reclaimed as stale and claimed again.
        """
        if outcome.status is JobStatus.DONE:
            written = self._write(
                """
                UPDATE processing_jobs
                SET status = 'done', progress = 100, error = NULL,
                    finished_at = NOW()
                WHERE id = %s AND status = 'running' AND attempt = %s
                """,
                (job_id, attempt),
            )
        elif outcome.status is JobStatus.FAILED:
            if not outcome.error:
                raise ValueError("a failed outcome requires an error message")
            written = self._write(
                """
                UPDATE processing_jobs
                SET status = 'failed', error = %s, finished_at = NOW()
                WHERE id = %s AND status = 'running' AND attempt = %s
                """,
                (outcome.error, job_id, attempt),
            )
        else:
            raise ValueError(f"'{outcome.status.value}' is not a terminal job status")

        if not written:
            Log.warning(
                f"Job {job_id} attempt {attempt} was superseded; "
                f"'{outcome.status.value}' not recorded"
            )
        return written

    def mark_done(self, job_id: int, attempt: int) -> bool:
        return self.finish(job_id, attempt, JobOutcome.done())

    def mark_failed(self, job_id: int, attempt: int, error: str) -> bool:
        return self.finish(job_id, attempt, JobOutcome.failed(error))

    def create_job(self, document_id: int) -> JobRecord:
        """Insert a new pending job for a document."""
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO processing_jobs (document_id, status, progress)
                        VALUES (%s, 'pending', 0)
                        RETURNING {_JOB_COLUMNS}
                        """,
                        (document_id,),
                    )
                    row = cur.fetchone()
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to create job for document {document_id}: {exc}") from exc
        if row is None:
            raise PersistenceError(f"Failed to create job for document {document_id}")
        return _row_to_job(row)

    def reset_failed_jobs(self) -> list[int]:
        """Move every failed job back to pending so it is picked up again."""
        return self._write_returning_ids(
            """
            UPDATE processing_jobs
            SET status = 'pending', progress = 0, error = NULL,
                started_at = NULL, finished_at = NULL
            WHERE status = 'failed'
            RETURNING id
            """,
            (),
        )

    def reclaim_stale_jobs(self, timeout_seconds: int) -> list[int]:
        """Return running jobs older than the timeout to pending.

        A job stays running forever if its worker dies mid-attempt; this is
        the only path that makes it claimable again.
        """
        return self._write_returning_ids(
            """
            UPDATE processing_jobs
            SET status = 'pending', progress = 0, started_at = NULL
            WHERE status = 'running'
              AND started_at < NOW() - make_interval(secs => %s)
            RETURNING id
            """,
            (timeout_seconds,),
        )

    def find_by_id(self, job_id: int) -> JobRecord | None:
        """Find a job by ID."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM processing_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _row_to_job(row)

    def latest_for_document(self, document_id: int) -> JobRecord | None:
        """Newest job created for a document."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_JOB_COLUMNS} FROM processing_jobs
                    WHERE document_id = %s
                    ORDER BY created_at DESC, id DESC
                    LIMIT 1
                    """,
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _row_to_job(row)

    def _write(self, query: str, params: tuple[Any, ...]) -> bool:
        """Run a single-row update; True when a row was affected."""
        try:
            with get_connection() as conn:
                cur = conn.execute(query, params)
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Job update failed: {exc}") from exc
        return cur.rowcount > 0

    def _write_returning_ids(self, query: str, params: tuple[Any, ...]) -> list[int]:
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    ids = [row[0] for row in cur.fetchall()]
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Job update failed: {exc}") from exc
        return ids
