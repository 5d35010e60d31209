# Event listing query: great-circle distance column + optional radius/type predicates

import math
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

EARTH_RADIUS_KM = 6371.0

# legacy "no distance cap" value still sent by older clients
UNBOUNDED_RADIUS_SENTINEL = "worldwide"

# Spherical law of cosines, degrees in, km out. :p1/:p2 are always the caller's lat/lng.
# acos argument clamped to [-1, 1]: rounding on coincident points can push it past 1.
DISTANCE_SQL = (
    f"({EARTH_RADIUS_KM:g} * acos(LEAST(1.0, GREATEST(-1.0, "
    "cos(radians(:p1)) * cos(radians(e.latitude)) * "
    "cos(radians(e.longitude) - radians(:p2)) + "
    "sin(radians(:p1)) * sin(radians(e.latitude))"
    "))))"
)

_SELECT_SQL = (
    "SELECT e.*, u.full_name AS organizer_name, "
    f"{DISTANCE_SQL} AS distance "
    "FROM events e "
    "LEFT JOIN users u ON e.organizer_id = u.id "
    "WHERE 1=1"
)

_ORDER_SQL = "ORDER BY distance ASC"


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Same formula as DISTANCE_SQL, evaluated in Python."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dlam = math.radians(lng2) - math.radians(lng1)
    cos_angle = math.cos(phi1) * math.cos(phi2) * math.cos(dlam) + math.sin(phi1) * math.sin(phi2)
    return EARTH_RADIUS_KM * math.acos(max(-1.0, min(1.0, cos_angle)))


def parse_radius(raw: Optional[str]) -> Optional[float]:
    """
    Query-string radius → km upper bound, or None for "no cap".

    Absent, blank, and the legacy "Worldwide" sentinel all mean unbounded.
    Anything else must be a positive finite number (ValueError otherwise).
    """
    if raw is None:
        return None
    value = raw.strip()
    if not value or value.lower() == UNBOUNDED_RADIUS_SENTINEL:
        return None
    radius = float(value)
    if not math.isfinite(radius) or radius <= 0:
        raise ValueError(f"radius must be a positive number, got {raw!r}")
    return radius


@dataclass(frozen=True)
class Predicate:
    """One WHERE clause and the value bound to its single placeholder."""

    template: str  # contains "{param}" where the placeholder goes
    value: Any


@dataclass(frozen=True)
class EventListQuery:
    """
    Immutable builder for the nearby-events statement.

    Each filter method returns a new builder with one more (clause, value)
    pair. Placeholders are numbered only in render(), from the position the
    value takes in the parameter list, so the two cannot disagree.

    >>> sql, params = EventListQuery(40.0, -73.0).within_radius(100).of_type("hackathon").render()
    >>> params
    [40.0, -73.0, 100.0, 'hackathon']
    """

    lat: float
    lng: float
    predicates: Tuple[Predicate, ...] = ()

    def _with(self, template: str, value: Any) -> "EventListQuery":
        return replace(self, predicates=self.predicates + (Predicate(template, value),))

    def within_radius(self, radius_km: Optional[float]) -> "EventListQuery":
        """Keep events whose computed distance is <= radius_km. None = no cap."""
        if radius_km is None:
            return self
        return self._with(f"{DISTANCE_SQL} <= {{param}}", float(radius_km))

    def of_type(self, event_type: Optional[str]) -> "EventListQuery":
        """Exact match on events.type. None/empty = any type."""
        if not event_type:
            return self
        return self._with("e.type = {param}", event_type)

    def render(self) -> Tuple[str, List[Any]]:
        params: List[Any] = [float(self.lat), float(self.lng)]
        parts = [_SELECT_SQL]
        for predicate in self.predicates:
            params.append(predicate.value)
            parts.append("AND " + predicate.template.format(param=f":p{len(params)}"))
        parts.append(_ORDER_SQL)
        return " ".join(parts), params

    def bindings(self) -> Dict[str, Any]:
        """Parameter list as the {"p1": ..., "p2": ...} mapping text() expects."""
        _, params = self.render()
        return {f"p{i}": value for i, value in enumerate(params, start=1)}
