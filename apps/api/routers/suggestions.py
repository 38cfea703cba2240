"""Location suggestion endpoints."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from apps.api.deps import get_suggestion_workflow
from apps.api.errors import unwrap
from apps.api.schemas import LocationOut, NotificationOut, PageMeta
from core.auth import caller_auth
from services.suggestions import LocationSuggestionWorkflow

router = APIRouter(prefix="/suggestions", tags=["suggestions"])


class ResolveIn(BaseModel):
    """Optional notification to mark read together with the decision."""

    notification_id: int | None = None


class SuggestionOut(LocationOut):
    matched_interests: int


class SuggestionPage(PageMeta):
    items: list[SuggestionOut]


class DecisionOut(BaseModel):
    location_id: int
    status: str
    notification_marked_read: bool | None = None


@router.get("")
async def get_suggestions(
    page: int = Query(1),
    page_size: int = Query(20),
    workflow: LocationSuggestionWorkflow = Depends(get_suggestion_workflow),
    caller_id: int = Depends(caller_auth),
) -> SuggestionPage:
    """
    Locations matching the caller's interests in the caller's region.

    Raises:
        HTTPException: 400 on page < 1 or page_size outside [1, 100]
    """
    result = unwrap(await workflow.get_suggestions(caller_id, page, page_size))
    return SuggestionPage(
        items=[
            SuggestionOut(**LocationOut.from_model(item.location).model_dump(), matched_interests=item.matched_tokens)
            for item in result.items
        ],
        page=result.page,
        page_size=result.page_size,
        total_count=result.total_count,
        total_pages=result.total_pages,
        has_previous=result.has_previous,
        has_next=result.has_next,
    )


@router.post("/{location_id}")
async def suggest_location(
    location_id: int,
    workflow: LocationSuggestionWorkflow = Depends(get_suggestion_workflow),
    caller_id: int = Depends(caller_auth),
) -> NotificationOut:
    """Open a pending suggestion for the caller and notify them."""
    notification = unwrap(await workflow.suggest(caller_id, location_id))
    return NotificationOut.from_model(notification)


@router.post("/{location_id}/accept")
async def accept_suggestion(
    location_id: int,
    body: ResolveIn | None = None,
    workflow: LocationSuggestionWorkflow = Depends(get_suggestion_workflow),
    caller_id: int = Depends(caller_auth),
) -> DecisionOut:
    """
    Accept a suggested location and save it as a favorite.

    ``notification_marked_read`` is False when the given notification could
    not be marked read (unknown or owned by another user); the decision stands.

    Raises:
        HTTPException: 404 if unknown, 409 if already accepted or rejected
    """
    notification_id = body.notification_id if body else None
    decision = unwrap(await workflow.accept(location_id, caller_id, notification_id))
    return DecisionOut(
        location_id=decision.suggestion.location_id,
        status=decision.suggestion.status,
        notification_marked_read=decision.notification_marked_read,
    )


@router.post("/{location_id}/reject")
async def reject_suggestion(
    location_id: int,
    body: ResolveIn | None = None,
    workflow: LocationSuggestionWorkflow = Depends(get_suggestion_workflow),
    caller_id: int = Depends(caller_auth),
) -> DecisionOut:
    """
    Reject a suggested location.

    Raises:
        HTTPException: 404 if unknown, 409 if already accepted or rejected
    """
    notification_id = body.notification_id if body else None
    decision = unwrap(await workflow.reject(location_id, caller_id, notification_id))
    return DecisionOut(
        location_id=decision.suggestion.location_id,
        status=decision.suggestion.status,
        notification_marked_read=decision.notification_marked_read,
    )
