"""Celery application configuration.

Runs the audit retry queue: audit records that could not be written inside
the request transaction are re-inserted here.

Usage:
    # Start worker
    celery -A solardesk.celery_app worker -l INFO
"""

from celery import Celery

from .config import get_settings

settings = get_settings()

celery_app = Celery(
    "solardesk",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["solardesk.audit.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    broker_connection_retry_on_startup=True,
)
