from app.services.recommendations.recommendations import RecommendationService

__all__ = ["RecommendationService"]
