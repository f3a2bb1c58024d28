import signal
from types import FrameType

from docworker.config.settings import Settings
from docworker.database.connection import close_pool, init_pool
from docworker.database.repositories.job_repository import JobRepository
from docworker.logging.logger import Log
from docworker.processor.processor import build_processor
from docworker.worker.job_runner import JobRunner
from docworker.worker.worker import Worker


def install_signal_handlers(worker: Worker) -> None:
    """Stop the worker loop on SIGINT/SIGTERM instead of killing it mid-job."""

    def _handle(signum: int, _frame: FrameType | None) -> None:
        Log.info(f"Received signal {signal.Signals(signum).name}, stopping worker")
        worker.stop()

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)


def run_worker(settings: Settings, max_jobs: int | None = None) -> int:
    """Initialize pool -> build dependencies -> run the worker loop."""
    init_pool(settings)
    processor = None
    try:
        job_repo = JobRepository(settings.claim_batch_size)
        processor = build_processor(settings, job_repo)
        job_runner = JobRunner(processor, job_repo)
        worker = Worker(job_repo, job_runner, settings)
        install_signal_handlers(worker)
        return worker.run(max_jobs=max_jobs)
    finally:
        if processor is not None:
            processor.close()
        close_pool()


def main() -> None:
    """Entry point for the worker process."""
    settings = Settings()
    Log.configure(settings.log_level)
    run_worker(settings)


if __name__ == "__main__":
    main()
