"""Operator commands for the document worker.

    docworker run              start the polling worker
    docworker submit FILE      upload a file and queue it
    docworker status JOB_ID    show a job's state
    docworker list             list recent documents with their job state
    docworker show DOC_ID      show a document with its results
    docworker reset-jobs       requeue every failed job
    docworker reclaim-stale    requeue jobs stuck in running
"""

import mimetypes
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer

from docworker.config.settings import Settings
from docworker.database.connection import close_pool, init_pool
from docworker.database.models import DocumentStatus
from docworker.database.repositories.documents_repository import DocumentsRepository
from docworker.database.repositories.job_repository import JobRepository
from docworker.database.repositories.results_repository import ResultsRepository
from docworker.intake.exceptions import UnsupportedContentTypeError
from docworker.intake.intake import DocumentIntake
from docworker.logging.logger import Log
from docworker.main import run_worker
from docworker.processor.exceptions import DocumentNotFoundError
from docworker.storage.exceptions import StorageError
from docworker.storage.factory import StorageFactory

app = typer.Typer(help="Asynchronous document processing worker")


def _settings() -> Settings:
    settings = Settings()
    Log.configure(settings.log_level)
    return settings


@contextmanager
def _database(settings: Settings) -> Iterator[None]:
    init_pool(settings)
    try:
        yield
    finally:
        close_pool()


@app.command("run")
def run(
    max_jobs: Optional[int] = typer.Option(
        None, "--max-jobs", help="Stop after handling this many jobs."
    ),
) -> None:
    """Poll the queue and process jobs until stopped."""
    run_worker(_settings(), max_jobs=max_jobs)


@app.command("submit")
def submit(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    content_type: Optional[str] = typer.Option(
        None, "--content-type", help="Override the type guessed from the file name."
    ),
) -> None:
    """Upload a file and create a pending job for it."""
    settings = _settings()
    mime = content_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    storage = StorageFactory.create(settings)
    try:
        with _database(settings):
            intake = DocumentIntake(storage, DocumentsRepository(), JobRepository())
            result = intake.submit(path.name, path.read_bytes(), mime)
    except UnsupportedContentTypeError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    finally:
        storage.close()
    typer.echo(f"document_id={result.document_id} job_id={result.job_id}")


@app.command("status")
def status(job_id: int = typer.Argument(...)) -> None:
    """Show status, progress and error of a job."""
    settings = _settings()
    with _database(settings):
        job = JobRepository().find_by_id(job_id)
    if job is None:
        typer.echo(f"Job {job_id} not found", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"job {job.id} document={job.document_id} status={job.status} progress={job.progress}")
    if job.error:
        typer.echo(f"error: {job.error}")


@app.command("list")
def list_documents(
    status: Optional[DocumentStatus] = typer.Option(
        None, "--status", case_sensitive=False, help="Only documents in this state."
    ),
    limit: int = typer.Option(50, "--limit", min=1, help="Maximum number of documents."),
) -> None:
    """List the most recent documents, newest first, with their latest job."""
    settings = _settings()
    with _database(settings):
        documents = DocumentsRepository().list_recent(
            status=status.value if status is not None else None, limit=limit
        )
    if not documents:
        typer.echo("No documents found")
        return
    for doc in documents:
        job = f"{doc.job_status} {doc.job_progress}%" if doc.job_status else "no job"
        typer.echo(
            f"{doc.id}\t{doc.status}\t{doc.document_type or '-'}\t{job}\t{doc.filename}"
        )


@app.command("show")
def show(document_id: int = typer.Argument(...)) -> None:
    """Show a document, its latest job, classification and fields."""
    settings = _settings()
    with _database(settings):
        try:
            document = DocumentsRepository().find_by_id(document_id)
        except DocumentNotFoundError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc
        job = JobRepository().latest_for_document(document_id)
        results = ResultsRepository()
        classification = results.latest_classification(document_id)
        fields = results.fields_for(document_id)

    typer.echo(f"document {document.id} {document.filename} status={document.status}")
    if job is not None:
        typer.echo(f"job {job.id} status={job.status} progress={job.progress}")
    if classification is not None:
        typer.echo(f"type={classification.label} confidence={classification.confidence:.1f}")
    for field in fields:
        typer.echo(f"  {field.field_name}: {field.field_value} ({field.confidence:.0f})")

    storage = StorageFactory.create(settings)
    try:
        url = storage.signed_url(document.storage_path, settings.signed_url_ttl_seconds)
    except StorageError as exc:
        url = f"unavailable ({exc})"
    finally:
        storage.close()
    typer.echo(f"url: {url}")


@app.command("reset-jobs")
def reset_jobs() -> None:
    """Move every failed job back to pending so it is retried."""
    settings = _settings()
    with _database(settings):
        reset = JobRepository().reset_failed_jobs()
    typer.echo(f"Jobs reset: {len(reset)}")


@app.command("reclaim-stale")
def reclaim_stale(
    timeout_seconds: Optional[int] = typer.Option(
        None, "--timeout", help="Age in seconds after which a running job is stale."
    ),
) -> None:
    """Move running jobs older than the timeout back to pending."""
    settings = _settings()
    timeout = timeout_seconds if timeout_seconds is not None else settings.stale_job_timeout_seconds
    if timeout <= 0:
        typer.echo("Stale timeout must be positive", err=True)
        raise typer.Exit(code=2)
    with _database(settings):
        reclaimed = JobRepository().reclaim_stale_jobs(timeout)
    typer.echo(f"Jobs reclaimed: {len(reclaimed)}")


if __name__ == "__main__":
    app()
