"""
Event entry point for the NEST planner.

Routes events by their "action" field to the generation services and the
trip orchestrator, returning JSON-serializable results.
"""

from typing import Any

from nest_planner.config import initialize_config
from nest_planner.data.repository import InMemoryTripRepository, TripRepository
from nest_planner.models import MediaAsset, SuggestionRequest
from nest_planner.orchestrator import TripOrchestrator, TripRequest
from nest_planner.services.grounding import GroundedQueryService
from nest_planner.services.image_edit import ImageEditService
from nest_planner.services.insights import ActivityDetailService, QuickTipService
from nest_planner.services.suggestions import StructuredSuggestionService
from nest_planner.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)

# Demo-mode store; deployments inject the hosted backend via set_repository()
_repository: TripRepository = InMemoryTripRepository()
_initialized = False


def set_repository(repository: TripRepository) -> None:
    global _repository
    _repository = repository


def route_event(event: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """Parse event and extract action + parameters."""
    action = event.get("action", "unknown")
    params: dict[str, Any] = {}

    user_id = event.get("userId", "")
    if user_id:
        params["user_id"] = user_id

    params["destination"] = event.get("destination", "")
    params["preferences"] = event.get("preferences") or ""
    params["trip"] = event.get("trip", {})
    params["date"] = event.get("date", "")
    params["day_number"] = event.get("dayNumber", 1)
    params["existing_titles"] = event.get("existingTitles", [])
    params["title"] = event.get("title", "")
    params["location"] = event.get("location", "")
    params["query"] = event.get("query", "")
    params["image"] = event.get("image", "")
    params["instruction"] = event.get("instruction", "")

    return action, params


async def _handle_create_trip(params: dict[str, Any]) -> dict[str, Any]:
    trip = params["trip"]
    request = TripRequest(
        user_id=params.get("user_id", ""),
        destination=trip.get("destination", ""),
        start_date=trip.get("startDate"),
        end_date=trip.get("endDate"),
        title=trip.get("title", ""),
        preferences=trip.get("preferences", ""),
        ai_mode=bool(trip.get("aiMode", False)),
    )
    result = await TripOrchestrator(_repository).create_trip(request)
    return {
        "status": "ok",
        "data": {
            "trip": result.trip.model_dump(mode="json"),
            "days": [d.model_dump(mode="json") for d in result.days],
            "failedStages": result.failed_stages,
        },
    }


async def _handle_suggest_activities(params: dict[str, Any]) -> dict[str, Any]:
    request = SuggestionRequest(
        destination=params["destination"],
        date=params["date"],
        day_number=params["day_number"],
        preferences=params["preferences"] or None,
        excluded_titles=params["existing_titles"],
    )
    suggestions = await StructuredSuggestionService().suggest_activities(request)
    return {"status": "ok", "data": [s.model_dump(mode="json") for s in suggestions]}


async def _handle_activity_details(params: dict[str, Any]) -> dict[str, Any]:
    detail = await ActivityDetailService().lookup(
        params["title"], params["location"] or params["destination"]
    )
    return {"status": "ok", "data": detail.model_dump(mode="json", by_alias=True)}


async def _handle_quick_tip(params: dict[str, Any]) -> dict[str, Any]:
    tip = await QuickTipService().quick_tip(params["destination"])
    return {"status": "ok", "data": tip}


async def _handle_live_info(params: dict[str, Any]) -> dict[str, Any]:
    query = params["query"]
    if params["destination"]:
        query += f" in {params['destination']}"
    answer = await GroundedQueryService().answer_grounded(query)
    return {"status": "ok", "data": answer.model_dump(mode="json")}


async def _handle_edit_image(params: dict[str, Any]) -> dict[str, Any]:
    edited = await ImageEditService().edit_image(
        MediaAsset.from_url(params["image"]), params["instruction"]
    )
    return {"status": "ok", "data": edited.to_data_uri() if edited else None}


# Action handlers map
_HANDLERS = {
    "create_trip": _handle_create_trip,
    "suggest_activities": _handle_suggest_activities,
    "activity_details": _handle_activity_details,
    "quick_tip": _handle_quick_tip,
    "live_info": _handle_live_info,
    "edit_image": _handle_edit_image,
}


async def async_handler(event: dict[str, Any]) -> dict[str, Any]:
    """Main async handler."""
    action, params = route_event(event)

    handler_fn = _HANDLERS.get(action)
    if not handler_fn:
        return {"status": "error", "error": f"Unknown action: {action}"}

    try:
        return await handler_fn(params)
    except Exception as e:
        logger.error(f"Error handling {action}: {e}")
        return {
            "status": "error",
            "error": str(e),
            "errorType": type(e).__name__,
        }


def _initialize() -> None:
    """Load configuration and install log sinks once per process."""
    global _initialized
    if _initialized:
        return
    app_config = initialize_config()
    setup_logging(app_config.system.log_level, app_config.system.log_file)
    _initialized = True


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Lambda entry point (sync wrapper)."""
    import asyncio

    _initialize()
    return asyncio.run(async_handler(event))
