"""
Async Tasks for Celery.

Each task runs one batch job end to end with its own session.
Runs of the same job should not overlap; the recommendation swap
is transactional but two concurrent runs still race on the result.
"""

import logging

from app.worker import celery_app
from app.models.database import session_scope
from app.services import AbcService, AlertService, ElasticityService, RecommendationService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="app.tasks.calculate_abc_async")
def calculate_abc_async(self, regenerate_recommendations: bool = True):
    """
    Recalculate ABC categories, then (by default) the recommendations
    that depend on them.
    """
    try:
        with session_scope() as db:
            stats = AbcService(db).run()

            result = {"stats": stats, "status": "completed"}
            if regenerate_recommendations:
                saved, _ = RecommendationService(db).regenerate()
                result["recommendations_generated"] = saved
            return result
    except Exception as e:
        logger.error(f"Error in async ABC calculation: {e}")
        raise


@celery_app.task(bind=True, name="app.tasks.generate_recommendations_async")
def generate_recommendations_async(self, period_days: int = None):
    """Regenerate all NEW pricing recommendations."""
    try:
        with session_scope() as db:
            saved, replaced = RecommendationService(db).regenerate(period_days)
            return {
                "recommendations_generated": saved,
                "recommendations_replaced": replaced,
                "status": "completed"
            }
    except Exception as e:
        logger.error(f"Error in async recommendation run: {e}")
        raise


@celery_app.task(bind=True, name="app.tasks.calculate_elasticity_async")
def calculate_elasticity_async(self, product_id: int = None, period_days: int = None):
    """Recalculate elasticity for one product or the whole catalog."""
    try:
        with session_scope() as db:
            processed = ElasticityService(db).calculate(product_id, period_days)
            return {"products_processed": processed, "status": "completed"}
    except Exception as e:
        logger.error(f"Error in async elasticity calculation: {e}")
        raise


@celery_app.task(bind=True, name="app.tasks.generate_alerts_async")
def generate_alerts_async(self):
    """Regenerate all unread pricing alerts."""
    try:
        with session_scope() as db:
            count = AlertService(db).regenerate()
            return {"alerts_generated": count, "status": "completed"}
    except Exception as e:
        logger.error(f"Error in async alert run: {e}")
        raise
