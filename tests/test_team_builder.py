import asyncio

import pytest

from campuslink.integrations.ai_service import DEFAULT_ERROR_MESSAGE, RecommendationError
from campuslink.schemas.recommendation import Recommendation
from campuslink.team_builder.page import (
    GENERATE_LABEL,
    LOADING_LABEL,
    PageState,
    TeamBuilderPage,
    build_card,
)

GRACE = Recommendation(
    full_name="Grace Hopper",
    distance_km=12.5,
    score=92,
    reasoning="Strong compiler background",
    complementary_skills="COBOL, Compilers , Leadership, Navy",
)


def _returning(results, calls=None):
    async def fetch(radius_km):
        if calls is not None:
            calls.append(radius_km)
        return results

    return fetch


def _raising(exc):
    async def fetch(radius_km):
        raise exc

    return fetch


def test_initial_state_is_idle_with_empty_state_shown():
    page = TeamBuilderPage(fetch=_returning([]))
    view = page.render()

    assert page.state is PageState.IDLE
    assert view.radius == 500
    assert view.radius_options == (50, 100, 250, 500, 1000)
    assert view.button_label == GENERATE_LABEL
    assert view.button_disabled is False
    assert view.show_empty_state is True


def test_set_radius_accepts_only_offered_values():
    page = TeamBuilderPage(fetch=_returning([]))

    page.set_radius("250")
    assert page.radius == 250

    with pytest.raises(ValueError):
        page.set_radius(300)
    assert page.radius == 250


def test_generate_success_populates_cards():
    calls = []
    page = TeamBuilderPage(fetch=_returning([GRACE], calls))
    page.set_radius(100)

    applied = asyncio.run(page.generate())

    assert applied is True
    assert calls == [100]
    assert page.state is PageState.SUCCESS
    view = page.render()
    assert [card.name for card in view.cards] == ["Grace Hopper"]
    assert view.show_empty_state is False
    assert view.error == ""


def test_empty_success_renders_empty_state_not_error():
    page = TeamBuilderPage(fetch=_returning([]))

    asyncio.run(page.generate())

    view = page.render()
    assert page.state is PageState.SUCCESS
    assert view.error == ""
    assert view.cards == []
    assert view.show_empty_state is True


def test_button_disabled_while_loading_and_second_trigger_ignored():
    calls = []

    async def scenario():
        gate = asyncio.Event()

        async def fetch(radius_km):
            calls.append(radius_km)
            await gate.wait()
            return [GRACE]

        page = TeamBuilderPage(fetch=fetch)
        first = asyncio.create_task(page.generate())
        await asyncio.sleep(0)

        view = page.render()
        second = await page.generate()
        gate.set()
        return page, view, await first, second

    page, loading_view, first, second = asyncio.run(scenario())

    assert loading_view.state is PageState.LOADING
    assert loading_view.button_disabled is True
    assert loading_view.button_label == LOADING_LABEL
    assert loading_view.show_empty_state is False
    assert first is True
    assert second is False
    assert calls == [500]
    assert page.loading is False


def test_failure_shows_server_message_and_keeps_previous_list():
    page = TeamBuilderPage(fetch=_returning([GRACE]))
    asyncio.run(page.generate())

    page._fetch = _raising(RecommendationError("Complete your profile first"))
    applied = asyncio.run(page.generate())

    assert applied is False
    assert page.state is PageState.ERROR
    assert page.error == "Complete your profile first"
    assert page.loading is False
    assert [r.full_name for r in page.recommendations] == ["Grace Hopper"]
    assert page.render().show_empty_state is False


def test_unexpected_failure_uses_generic_message():
    page = TeamBuilderPage(fetch=_raising(RuntimeError("boom")))

    asyncio.run(page.generate())

    assert page.error == DEFAULT_ERROR_MESSAGE
    assert page.loading is False


def test_next_success_clears_previous_error():
    page = TeamBuilderPage(fetch=_raising(RecommendationError()))
    asyncio.run(page.generate())
    assert page.state is PageState.ERROR

    page._fetch = _returning([GRACE])
    asyncio.run(page.generate())

    assert page.state is PageState.SUCCESS
    assert page.error == ""


def test_cancelled_request_result_is_discarded():
    async def scenario():
        gate = asyncio.Event()
        calls = []

        async def slow():
            await gate.wait()
            return [Recommendation(full_name="Stale Result")]

        async def fast():
            return [GRACE]

        def fetch(radius_km):
            calls.append(radius_km)
            return slow() if len(calls) == 1 else fast()

        page = TeamBuilderPage(fetch=fetch)
        first = asyncio.create_task(page.generate())
        await asyncio.sleep(0)

        page.cancel()
        cancelled_view = page.render()

        second = await page.generate()
        gate.set()
        return page, cancelled_view, await first, second

    page, cancelled_view, first, second = asyncio.run(scenario())

    assert cancelled_view.state is PageState.IDLE
    assert cancelled_view.button_disabled is False
    assert first is False
    assert second is True
    assert [r.full_name for r in page.recommendations] == ["Grace Hopper"]
    assert page.loading is False


def test_cancel_without_request_is_noop():
    page = TeamBuilderPage(fetch=_returning([]))

    page.cancel()

    assert page.state is PageState.IDLE


def test_card_formats_recommendation():
    card = build_card(GRACE)

    assert card.initial == "G"
    assert card.name == "Grace Hopper"
    assert card.distance_label == "12.5 km away"
    assert card.match_label == "92% Match"
    assert card.reasoning == "Strong compiler background"
    assert card.skills == ["COBOL", "Compilers", "Leadership"]


def test_card_placeholders_for_missing_fields():
    card = build_card(Recommendation())

    assert card.initial == "?"
    assert card.name == "Unknown"
    assert card.distance_label is None
    assert card.match_label == "0% Match"
    assert card.reasoning == "Good potential teammate"
    assert card.skills == []


def test_card_skips_blank_skills():
    card = build_card(Recommendation(full_name="Linus", complementary_skills=" , C, ,Git"))

    assert card.skills == ["C", "Git"]
