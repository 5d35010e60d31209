# Event listing/detail/creation API + newEvent SSE stream
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campuslink.auth import get_current_user_id
from campuslink.crud.event_crud import create_event, get_event_with_organizer, list_events_nearby
from campuslink.crud.event_query import EventListQuery, parse_radius
from campuslink.database import get_db
from campuslink.errors import ApiError
from campuslink.realtime.broadcast import NEW_EVENT, EventBroadcaster, get_broadcaster, stream_events
from campuslink.schemas.event import (
    EventCreate,
    EventCreatedResponse,
    EventDetailOut,
    EventDetailResponse,
    EventListResponse,
    EventNearbyOut,
    EventOut,
)
from campuslink.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("", response_model=EventListResponse)
def get_events(
    lat: Optional[float] = Query(None, description="Caller latitude (degrees)"),
    lng: Optional[float] = Query(None, description="Caller longitude (degrees)"),
    radius: Optional[str] = Query(None, description="Max distance in km; omit or 'Worldwide' for no cap"),
    type: Optional[str] = Query(None, description="Exact event type"),
    db: Session = Depends(get_db),
) -> EventListResponse:
    """Events around (lat, lng), nearest first, each with its distance in km."""
    if lat is None or lng is None:
        raise HTTPException(status_code=400, detail="Latitude and longitude required")
    try:
        radius_km = parse_radius(radius)
    except ValueError:
        raise HTTPException(status_code=400, detail="Radius must be a positive number")

    query = EventListQuery(lat, lng).within_radius(radius_km).of_type(type)
    try:
        rows = list_events_nearby(db, query)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Get events error")
        raise ApiError(500, "Failed to fetch events", error=str(e))

    data = [EventNearbyOut.model_validate(dict(row)) for row in rows]
    return EventListResponse(success=True, count=len(data), data=data)


@router.get("/stream")
async def get_event_stream():
    """SSE: one `newEvent` frame per created event, plus periodic heartbeats."""
    return StreamingResponse(
        stream_events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/{event_id}", response_model=EventDetailResponse)
def get_event(event_id: int, db: Session = Depends(get_db)) -> EventDetailResponse:
    """Single event with organizer name/email. 404 when absent."""
    try:
        found = get_event_with_organizer(db, event_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Get event error")
        raise ApiError(500, "Failed to fetch event", error=str(e))

    if found is None:
        raise HTTPException(status_code=404, detail="Event not found")

    event, organizer_name, organizer_email = found
    detail = EventDetailOut.model_validate(
        {
            **EventOut.model_validate(event).model_dump(),
            "organizer_name": organizer_name,
            "organizer_email": organizer_email,
        }
    )
    return EventDetailResponse(success=True, data=detail)


@router.post("", response_model=EventCreatedResponse, status_code=201)
async def post_event(
    body: EventCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    broadcaster: Optional[EventBroadcaster] = Depends(get_broadcaster),
) -> EventCreatedResponse:
    """
    Create an event organized by the caller.

    The response record is built inside the transaction and commit is the
    last database call, so a 500 always means nothing was stored. After
    commit the record is broadcast as `newEvent` when a broadcaster is
    available; broadcast failure or timeout is logged only.
    """
    try:
        event = create_event(db, user_id, body)
        created = EventOut.model_validate(event)
        db.commit()  # transaction owned by the router
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Create event error")
        raise ApiError(500, "Failed to create event", error=str(e))

    if broadcaster is not None:
        payload = EventCreatedResponse(success=True, message="New event created!", data=created)
        if await broadcaster.publish(NEW_EVENT, payload.model_dump(mode="json")):
            logger.info("Broadcasting new event: %s", created.title)

    return EventCreatedResponse(success=True, message="Event created successfully", data=created)
