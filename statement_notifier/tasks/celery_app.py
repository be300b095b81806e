"""Celery application and periodic statement check task."""

import uuid
from typing import Any, Dict

from celery import Celery

from statement_notifier.config.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CELERY_TASK_SERIALIZER,
    CELERY_RESULT_SERIALIZER,
    CELERY_ACCEPT_CONTENT,
    CELERY_TIMEZONE,
    CHECK_INTERVAL_MINUTES,
    Settings,
    ensure_directories,
)
from statement_notifier.fetcher.document_fetcher import FetchError, UnauthorizedError
from statement_notifier.fetcher.session import SessionAcquisitionError
from statement_notifier.notifier.webhook import NotificationError
from statement_notifier.pdf_processor.extractor import TextExtractionError
from statement_notifier.processor import NoTransactionsError, StatementProcessor
from statement_notifier.storage.state_store import StateStoreError
from statement_notifier.utils.logger import ProcessingLogger, setup_logger
from statement_notifier.utils.validators import ValidationError

ensure_directories()

celery_app = Celery(
    "statement_notifier",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    task_serializer=CELERY_TASK_SERIALIZER,
    result_serializer=CELERY_RESULT_SERIALIZER,
    accept_content=CELERY_ACCEPT_CONTENT,
    timezone=CELERY_TIMEZONE,
)

celery_app.conf.update(
    task_routes={
        "check_statements": {"queue": "statements"},
    },
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

logger = setup_logger("celery_tasks")


def _failure(task_id: str, error: Exception, retries: int) -> Dict[str, Any]:
    return {
        "success": False,
        "error": str(error),
        "error_type": type(error).__name__,
        "task_id": task_id,
        "retries": retries,
    }


@celery_app.task(bind=True, name="check_statements")
def check_statements(self) -> Dict[str, Any]:
    """Download the latest statement and notify about new transactions.

    Transport and webhook failures are retried with backoff; rejected
    sessions and unreadable or empty statements are reported as failures.

    Returns:
        Dictionary with the run summary.
    """
    task_id = self.request.id or str(uuid.uuid4())
    settings = Settings.from_env()
    processing_logger = ProcessingLogger(task_id, logs_dir=settings.logs_dir)
    processing_logger.log_start(settings.account_id)

    try:
        processor = StatementProcessor.from_settings(settings)
        result = processor.run()

    except (UnauthorizedError, SessionAcquisitionError, NoTransactionsError,
            TextExtractionError, ValidationError, StateStoreError) as e:
        processing_logger.log_error(e, "statement check")
        return _failure(task_id, e, self.request.retries)

    except (FetchError, NotificationError) as e:
        processing_logger.log_error(e, "statement check")

        if self.request.retries < settings.max_retries:
            attempt = self.request.retries + 1
            processing_logger.log_progress(f"Retrying task (attempt {attempt}/{settings.max_retries})")
            raise self.retry(
                countdown=settings.get_retry_delay(attempt),
                exc=e,
                max_retries=settings.max_retries,
            )

        return _failure(task_id, e, self.request.retries)

    processing_logger.log_completion(result["new_transactions"])
    return {"success": True, "task_id": task_id, **result}


celery_app.conf.beat_schedule = {
    "check-statements": {
        "task": "check_statements",
        "schedule": CHECK_INTERVAL_MINUTES * 60.0,
    },
}
