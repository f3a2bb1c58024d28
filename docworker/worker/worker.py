import threading
import time

from docworker.config.settings import Settings
from docworker.database.connection import get_connection
from docworker.database.models import JobRecord
from docworker.database.repositories.job_repository import JobRepository
from docworker.logging.logger import Log
from docworker.worker.job_runner import JobRunner


class Worker:
    """Poll loop: reclaim stale -> claim -> run, or wait.

    Jobs are processed one at a time. Waiting goes through a stop event so
    :meth:`stop` ends the loop without sitting out the remaining interval.
    """

    HEARTBEAT_EVERY = 20

    def __init__(
        self,
        job_repo: JobRepository,
        job_runner: JobRunner,
        settings: Settings,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._job_repo = job_repo
        self._job_runner = job_runner
        self._settings = settings
        self._stop_event = stop_event or threading.Event()
        self._last_stale_check: float | None = None

    def stop(self) -> None:
        """Ask the loop to finish after the current job."""
        self._stop_event.set()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    def run(self, max_jobs: int | None = None) -> int:
        """Main poll loop. Runs until stopped or interrupted.

        If max_jobs is set, stop after handling that many jobs (for testing).
        Returns the number of jobs handled.
        """
        Log.info("Worker started, polling for jobs")
        jobs_done = 0
        empty_polls = 0
        try:
            while not self.stopping:
                if max_jobs is not None and jobs_done >= max_jobs:
                    break
                try:
                    handled = self._poll_once()
                except Exception as exc:
                    Log.warning(
                        f"Worker error, retrying in {self._settings.error_backoff_seconds}s: {exc}"
                    )
                    self._wait(self._settings.error_backoff_seconds)
                    continue

                if handled:
                    jobs_done += 1
                    continue

                empty_polls += 1
                if empty_polls % self.HEARTBEAT_EVERY == 0:
                    Log.info(f"Still checking for jobs... (checked {empty_polls} times)")
                else:
                    Log.debug("No jobs available, sleeping")
                self._wait(self._settings.job_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker interrupted")
        Log.info(f"Worker shutting down gracefully after {jobs_done} jobs")
        return jobs_done

    def _poll_once(self) -> bool:
        self._reclaim_stale_jobs()
        job = self._claim_job()
        if job is None:
            return False
        self._job_runner.run(job)
        return True

    def _claim_job(self) -> JobRecord | None:
        with get_connection() as conn:
            return self._job_repo.claim_next_job(conn)

    def _reclaim_stale_jobs(self) -> None:
        """Return jobs abandoned in ``running`` to the queue, at most once per check interval."""
        timeout = self._settings.stale_job_timeout_seconds
        if timeout <= 0:
            return
        now = time.monotonic()
        if (
            self._last_stale_check is not None
            and now - self._last_stale_check < self._settings.stale_check_interval_seconds
        ):
            return
        self._last_stale_check = now
        reclaimed = self._job_repo.reclaim_stale_jobs(timeout)
        if reclaimed:
            Log.warning(f"Reclaimed {len(reclaimed)} stale running jobs: {reclaimed}")

    def _wait(self, seconds: float) -> None:
        self._stop_event.wait(seconds)
