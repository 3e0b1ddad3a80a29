"""
Gemini-backed generation services.
"""

from nest_planner.services.base import BaseGenerationService, ServiceConfig
from nest_planner.services.grounding import GroundedQueryService
from nest_planner.services.image_edit import ImageEditService
from nest_planner.services.insights import ActivityDetailService, QuickTipService
from nest_planner.services.itinerary import ItineraryGenerationService, compute_day_count
from nest_planner.services.media import MediaGenerationService
from nest_planner.services.suggestions import StructuredSuggestionService

__all__ = [
    "ActivityDetailService",
    "BaseGenerationService",
    "GroundedQueryService",
    "ImageEditService",
    "ItineraryGenerationService",
    "MediaGenerationService",
    "QuickTipService",
    "ServiceConfig",
    "StructuredSuggestionService",
    "compute_day_count",
]
