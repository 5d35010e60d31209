# Event CRUD: nearby listing (raw SQL), single fetch with organizer, insert

from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.orm import Session

from campuslink.crud.event_query import EventListQuery
from campuslink.models.event import Event
from campuslink.models.user import User
from campuslink.schemas.event import EventCreate


def list_events_nearby(db: Session, query: EventListQuery) -> List[Mapping[str, Any]]:
    """Run the built statement. Rows carry every events column + organizer_name + distance."""
    sql, _ = query.render()
    result = db.execute(text(sql), query.bindings())
    return list(result.mappings().all())


def get_event_with_organizer(
    db: Session, event_id: int
) -> Optional[Tuple[Event, Optional[str], Optional[str]]]:
    """
    (event, organizer full_name, organizer email) or None.

    Outer join: a missing organizer row gives None for both names.
    """
    row = (
        db.query(Event, User.full_name, User.email)
        .outerjoin(User, Event.organizer_id == User.id)
        .filter(Event.id == event_id)
        .first()
    )
    if row is None:
        return None
    event, full_name, email = row
    return event, full_name, email


def create_event(db: Session, organizer_id: int, body: EventCreate) -> Event:
    """
    Insert a new event; on return the row is flushed and reloaded, so id and
    server defaults (created_at) are populated while the transaction is still open.

    ⚠️ Does not commit or roll back. The caller (router) owns the transaction.
    """
    event = Event(
        title=body.title,
        description=body.description,
        type=body.type,
        start_at=body.start_at,
        end_at=body.end_at,
        latitude=body.latitude,
        longitude=body.longitude,
        city=body.city,
        organizer_id=organizer_id,
        max_participants=body.max_participants,
    )
    db.add(event)
    db.flush()
    db.refresh(event)
    return event
