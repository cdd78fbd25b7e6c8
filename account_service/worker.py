"""Celery application for background jobs.

Run a worker with ``celery -A account_service.worker worker``.
"""

from celery import Celery

from account_service.config import get_settings

settings = get_settings()

celery_app = Celery(
    "account_service",
    broker=settings.REDIS_URL,
    include=["account_service.services.mail"],
)
celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    accept_content=["json"],
)
