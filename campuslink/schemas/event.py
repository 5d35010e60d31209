# Event API request/response schemas

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventCreate(BaseModel):
    """Event creation request. organizer_id comes from the caller's token, not the body."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    type: str = Field(..., min_length=1, max_length=50)
    start_at: datetime
    end_at: Optional[datetime] = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    city: Optional[str] = Field(default=None, max_length=120)
    max_participants: Optional[int] = Field(default=None, ge=1)


class EventOut(BaseModel):
    """Stored event columns."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    type: str
    start_at: datetime
    end_at: Optional[datetime] = None
    latitude: float
    longitude: float
    city: Optional[str] = None
    organizer_id: Optional[int] = None
    max_participants: Optional[int] = None
    created_at: Optional[datetime] = None


class EventNearbyOut(EventOut):
    """Listing row: organizer display name + km from the requested point."""

    organizer_name: Optional[str] = None
    distance: float


class EventDetailOut(EventOut):
    """GET /events/{id} row."""

    organizer_name: Optional[str] = None
    organizer_email: Optional[str] = None


class EventListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[EventNearbyOut]


class EventDetailResponse(BaseModel):
    success: bool = True
    data: EventDetailOut


class EventCreatedResponse(BaseModel):
    """Create response. The newEvent broadcast carries the same shape."""

    success: bool = True
    message: str
    data: EventOut
