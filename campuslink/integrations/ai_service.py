# AI service integration: ranked teammate recommendations around the caller

import os
from typing import List, Optional

import httpx
from pydantic import ValidationError

from campuslink.schemas.recommendation import Recommendation
from campuslink.utils.logger import get_logger

logger = get_logger(__name__)

AI_SERVICE_URL = os.getenv("AI_SERVICE_URL", "http://localhost:5000")
AI_SERVICE_TIMEOUT_SEC = float(os.getenv("AI_SERVICE_TIMEOUT_SEC", "30"))
TEAM_RECOMMENDATIONS_PATH = "/api/ai/team-recommendations"

# search radius choices offered by the team builder (km)
RADIUS_OPTIONS_KM = (50, 100, 250, 500, 1000)
DEFAULT_RADIUS_KM = 500

DEFAULT_ERROR_MESSAGE = "Failed to generate recommendations"


class RecommendationError(Exception):
    """Recommendation request failed. message is safe to show to the user."""

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or DEFAULT_ERROR_MESSAGE
        self.status_code = status_code
        super().__init__(self.message)


def _server_message(resp: httpx.Response) -> Optional[str]:
    """`message` field of an error body, if the body is a JSON object."""
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return None


async def get_team_recommendations(
    radius_km: int,
    token: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[Recommendation]:
    """
    Ask the AI service for teammates within radius_km of the caller.

    radius_km must be one of RADIUS_OPTIONS_KM. Non-2xx answers and transport
    failures raise RecommendationError; a body without `data` yields [].
    """
    if radius_km not in RADIUS_OPTIONS_KM:
        raise ValueError(f"radius_km must be one of {RADIUS_OPTIONS_KM}, got {radius_km}")

    url = f"{AI_SERVICE_URL.rstrip('/')}{TEAM_RECOMMENDATIONS_PATH}"
    headers = {"Authorization": f"Bearer {token}"} if token else {}

    try:
        async with httpx.AsyncClient(timeout=AI_SERVICE_TIMEOUT_SEC, transport=transport) as client:
            resp = await client.get(url, params={"radius": radius_km}, headers=headers)
    except httpx.HTTPError as exc:
        logger.warning("AI service unreachable: %s", exc)
        raise RecommendationError() from exc

    if resp.status_code >= 400:
        logger.warning("AI service error: HTTP %s", resp.status_code)
        raise RecommendationError(_server_message(resp), status_code=resp.status_code)

    try:
        body = resp.json()
    except ValueError as exc:
        raise RecommendationError() from exc
    data = body.get("data") if isinstance(body, dict) else None
    try:
        return [Recommendation.model_validate(item) for item in (data or [])]
    except ValidationError as exc:
        logger.warning("AI service returned malformed recommendations: %s", exc)
        raise RecommendationError() from exc
