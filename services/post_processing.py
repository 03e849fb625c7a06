"""
Appointment sheet generation that runs after a reservation is committed.

Each task walks one reservation through PENDING -> PROCESSING -> READY on a
worker thread. Nothing is retried and nothing is persisted about in-flight
tasks: if the process dies mid-task the row stays PROCESSING.
"""
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor

from sqlalchemy import update

from models import db
from models.reservation import Reservation, STATUS_PENDING, STATUS_PROCESSING, STATUS_READY

logger = logging.getLogger(__name__)


class DocumentJobRunner:
    """Flask extension owning the worker pool for post-processing tasks."""

    def __init__(self, app=None):
        self.app = None
        self._executor: ThreadPoolExecutor | None = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.shutdown(wait=False)
        self.app = app
        self._executor = ThreadPoolExecutor(
            max_workers=app.config.get("DOCUMENT_WORKERS", 4),
            thread_name_prefix="document_job",
        )
        app.extensions["document_jobs"] = self

    def enqueue(self, attention_code: str) -> Future:
        if self._executor is None:
            raise RuntimeError("DocumentJobRunner is not initialised")
        # bind the task to the app that queued it, init_app may run again before it executes
        return self._executor.submit(self._run, self.app, attention_code)

    def shutdown(self, wait: bool = True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    @staticmethod
    def _run(app, attention_code: str) -> None:
        delay = app.config.get("DOCUMENT_PROCESSING_DELAY_SECONDS", 3)
        with app.app_context():
            try:
                if not advance(attention_code, STATUS_PENDING, STATUS_PROCESSING):
                    return
                time.sleep(delay)
                if not advance(attention_code, STATUS_PROCESSING, STATUS_READY):
                    return
                logger.info("Appointment sheet ready for %s", attention_code)
            except Exception:
                db.session.rollback()
                logger.exception("Appointment sheet generation failed for %s", attention_code)


def advance(attention_code: str, from_status: str, to_status: str) -> bool:
    """
    Move one reservation a single step forward and commit.

    Returns False when the row is gone or not in from_status; the status
    never goes backwards and never skips a step.
    """
    result = db.session.execute(
        update(Reservation)
        .where(
            Reservation.attention_code == attention_code,
            Reservation.processing_status == from_status,
        )
        .values(processing_status=to_status)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    if result.rowcount != 1:
        logger.warning(
            "Reservation %s not in %s, leaving it as is", attention_code, from_status
        )
        return False
    return True


jobs = DocumentJobRunner()
