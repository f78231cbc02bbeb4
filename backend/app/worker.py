"""
Celery Worker Configuration.

Handles the catalog-wide batch runs:
- ABC recalculation
- Pricing recommendation regeneration
- Elasticity recalculation
- Alert regeneration
"""

from celery import Celery
from app.config import settings

# Initialize Celery
celery_app = Celery(
    "pricing_intelligence_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
)

# Registers app.tasks
celery_app.autodiscover_tasks(['app'])
