# marketplace/worker/schedulers.py
"""
Scheduled task definitions for Celery Beat.
"""
from celery.schedules import crontab


def get_beat_schedule():
    """
    Celery Beat schedule.

    Returns:
        Dict of scheduled tasks
    """
    return {
        # Rebuild the offer index nightly so drift from failed syncs is repaired
        "reindex-offers": {
            "task": "search_index:reindex_offers",
            "schedule": crontab(hour=3, minute=0),
            "options": {"expires": 3600},
        },
    }
