# Team builder page: radius setting, generate action, recommendation cards
# State machine: idle → loading → success | error, driven only by explicit generate() calls.

import asyncio
import functools
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from campuslink.integrations.ai_service import (
    DEFAULT_ERROR_MESSAGE,
    DEFAULT_RADIUS_KM,
    RADIUS_OPTIONS_KM,
    RecommendationError,
    get_team_recommendations,
)
from campuslink.schemas.recommendation import Recommendation
from campuslink.utils.logger import get_logger

logger = get_logger(__name__)

MAX_SKILLS_SHOWN = 3
GENERATE_LABEL = "Generate Team Recommendations"
LOADING_LABEL = "Analyzing..."

Fetch = Callable[[int], Awaitable[List[Recommendation]]]


class PageState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class RecommendationCard:
    """Display values for one teammate card, placeholders already applied."""

    initial: str
    name: str
    distance_label: Optional[str]
    match_label: str
    reasoning: str
    skills: List[str] = field(default_factory=list)


def build_card(rec: Recommendation) -> RecommendationCard:
    name = rec.full_name or ""
    skills = [s.strip() for s in (rec.complementary_skills or "").split(",")]
    return RecommendationCard(
        initial=name[:1] or "?",
        name=name or "Unknown",
        # zero/absent distance is not shown
        distance_label=f"{rec.distance_km:g} km away" if rec.distance_km else None,
        match_label=f"{rec.score or 0:g}% Match",
        reasoning=rec.reasoning or "Good potential teammate",
        skills=[s for s in skills if s][:MAX_SKILLS_SHOWN],
    )


@dataclass(frozen=True)
class TeamBuilderView:
    state: PageState
    radius: int
    radius_options: tuple
    button_label: str
    button_disabled: bool
    error: str
    cards: List[RecommendationCard]
    show_empty_state: bool


class TeamBuilderPage:
    """
    Holds the page state and runs recommendation requests.

    Every generate() call is one asyncio task tagged with a generation
    number. cancel() (or any later generation) makes older results stale,
    and stale results never touch the page state.
    """

    def __init__(self, fetch: Optional[Fetch] = None, token: Optional[str] = None):
        self._fetch = fetch or functools.partial(get_team_recommendations, token=token)
        self.radius: int = DEFAULT_RADIUS_KM
        self.recommendations: List[Recommendation] = []
        self.loading = False
        self.error = ""
        self._succeeded = False
        self._generation = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> PageState:
        if self.loading:
            return PageState.LOADING
        if self.error:
            return PageState.ERROR
        if self._succeeded:
            return PageState.SUCCESS
        return PageState.IDLE

    def set_radius(self, radius_km: int) -> None:
        radius_km = int(radius_km)
        if radius_km not in RADIUS_OPTIONS_KM:
            raise ValueError(f"radius must be one of {RADIUS_OPTIONS_KM}")
        self.radius = radius_km

    async def generate(self) -> bool:
        """
        Fetch recommendations for the current radius.

        Returns True when this call's result was applied. While a request is
        in flight the call is a no-op (the button is disabled).
        """
        if self.loading:
            return False

        self._generation += 1
        generation = self._generation
        self.loading = True
        self.error = ""
        task = asyncio.ensure_future(self._fetch(self.radius))
        self._task = task

        try:
            results = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                return False  # superseded through cancel()
            raise
        except RecommendationError as exc:
            if generation == self._generation:
                self.error = exc.message
            return False
        except Exception:
            logger.exception("Team recommendation request failed")
            if generation == self._generation:
                self.error = DEFAULT_ERROR_MESSAGE
            return False
        finally:
            if generation == self._generation:
                self.loading = False
                self._task = None

        if generation != self._generation:
            return False
        self.recommendations = list(results)
        self._succeeded = True
        return True

    def cancel(self) -> None:
        """Abandon the in-flight request; its result, if any, is discarded."""
        if self._task is None:
            return
        self._generation += 1
        self._task.cancel()
        self._task = None
        self.loading = False

    def render(self) -> TeamBuilderView:
        cards = [build_card(rec) for rec in self.recommendations]
        return TeamBuilderView(
            state=self.state,
            radius=self.radius,
            radius_options=RADIUS_OPTIONS_KM,
            button_label=LOADING_LABEL if self.loading else GENERATE_LABEL,
            button_disabled=self.loading,
            error=self.error,
            cards=cards,
            show_empty_state=not self.loading and not cards and not self.error,
        )
