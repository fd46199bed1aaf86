# marketplace/worker/celery_app.py
"""
Celery application configuration for the marketplace offers service.
"""
from celery import Celery
from celery.signals import worker_ready
import logging
from marketplace.core.config import settings

logger = logging.getLogger(__name__)

# Create Celery app
celery_app = Celery(
    "marketplace_offers",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "marketplace.worker.tasks.search_index",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_time_limit=3600,  # 1 hour time limit per task
    task_soft_time_limit=3300,  # 55 minutes soft time limit
    # Queue configuration
    task_routes={
        "search_index:sync_offers": {"queue": "search_index"},
        "search_index:reindex_offers": {"queue": "search_index_bulk"},
    },
    # Define queues
    task_queues={
        "celery": {
            "exchange": "celery",
            "routing_key": "celery",
        },
        "search_index": {
            "exchange": "search_index",
            "routing_key": "search_index.high",
            "priority": 10,  # Higher priority
        },
        "search_index_bulk": {
            "exchange": "search_index",
            "routing_key": "search_index.bulk",
            "priority": 5,  # Lower priority
        },
    },
)

# Load beat schedule from scheduler module
from marketplace.worker.schedulers import get_beat_schedule

celery_app.conf.beat_schedule = get_beat_schedule()


@worker_ready.connect
def at_worker_ready(sender, **kwargs):
    """Log when worker is ready."""
    logger.info("Celery worker is ready.")


if __name__ == "__main__":
    celery_app.start()
