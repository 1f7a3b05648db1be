import asyncio
import json

import httpx
import pytest
import respx
from httpx import Response

from complaint_engine.classifier import (
    ClassificationOrigin,
    ClassificationResult,
    ClassificationSession,
    CompositeClassifier,
    LocalClassifier,
    RemoteClassifier,
)
from complaint_engine.models import Category, Sentiment

API_URL = "http://groq.test/openai/v1/chat/completions"


def _completion(content):
    return {"choices": [{"message": {"content": content}}]}


@pytest.fixture
def remote():
    return RemoteClassifier(api_key="test-key", model="test-model", api_url=API_URL, timeout=1.0)


def test_canteen_complaint_is_neutral_hygiene():
    result = LocalClassifier().classify("The food in the canteen is dirty and the staff was unhygienic")
    assert result.category == Category.CANTEEN_HYGIENE
    assert result.sentiment == Sentiment.NEUTRAL
    assert result.origin == ClassificationOrigin.LOCAL


def test_local_classification_is_deterministic():
    classifier = LocalClassifier()
    text = "The wifi is terrible and the hostel room light is broken"
    assert classifier.classify(text) == classifier.classify(text)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("The exam schedule changed", Sentiment.NEUTRAL),
        ("I am frustrated with the slow portal", Sentiment.FRUSTRATED),
        # two angry keywords only reach -4
        ("This is terrible and unacceptable", Sentiment.ANGRY),
        # one angry keyword alone is -2
        ("The projector is broken", Sentiment.FRUSTRATED),
        ("", Sentiment.NEUTRAL),
    ],
)
def test_sentiment_thresholds(text, expected):
    assert LocalClassifier().analyze_sentiment(text) == expected


def test_category_rules_follow_priority_order():
    classifier = LocalClassifier()
    # "senior" (ragging) outranks "hostel" (infrastructure)
    assert classifier.suggest_category("A senior is threatening me at the hostel") == Category.RAGGING
    assert classifier.suggest_category("Harassment and ragging near the gate") == Category.SEXUAL_HARASSMENT
    assert classifier.suggest_category("Nothing matches here") == Category.OTHER


def test_caller_category_wins_over_suggestion():
    result = LocalClassifier().classify("The canteen food is dirty", Category.STUDENT_AFFAIRS)
    assert result.category == Category.STUDENT_AFFAIRS
    assert result.category_origin == ClassificationOrigin.CALLER


@pytest.mark.asyncio
async def test_remote_success(remote):
    verdict = json.dumps({"sentiment": "SATISFIED", "category": "Infrastructure"})
    async with respx.mock(base_url="http://groq.test") as respx_mock:
        route = respx_mock.post("/openai/v1/chat/completions").mock(
            return_value=Response(200, json=_completion(verdict))
        )

        result = await remote.classify("The new fans work great")

        assert route.called
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer test-key"
        body = json.loads(request.content)
        assert body["model"] == "test-model"
        assert body["response_format"] == {"type": "json_object"}
    assert result == (Sentiment.SATISFIED, Category.INFRASTRUCTURE)
    await remote.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        Response(500, json={"error": "boom"}),
        Response(200, json=_completion("not json at all")),
        Response(200, json=_completion(json.dumps({"sentiment": "HAPPY", "category": "Infrastructure"}))),
        Response(200, json=_completion(json.dumps({"sentiment": "ANGRY", "category": "Parking"}))),
        Response(200, json={"choices": []}),
    ],
)
async def test_remote_unusable_responses_return_none(remote, response):
    async with respx.mock(base_url="http://groq.test") as respx_mock:
        respx_mock.post("/openai/v1/chat/completions").mock(return_value=response)
        assert await remote.classify("Water supply is down") is None
    await remote.aclose()


@pytest.mark.asyncio
async def test_remote_network_error_returns_none(remote):
    async with respx.mock(base_url="http://groq.test") as respx_mock:
        respx_mock.post("/openai/v1/chat/completions").mock(side_effect=httpx.ConnectError("refused"))
        assert await remote.classify("Water supply is down") is None
    await remote.aclose()


@pytest.mark.asyncio
async def test_remote_without_key_makes_no_request():
    remote = RemoteClassifier(api_key=None, model="m", api_url=API_URL)
    async with respx.mock(base_url="http://groq.test", assert_all_called=False) as respx_mock:
        route = respx_mock.post("/openai/v1/chat/completions").mock(return_value=Response(200))
        assert await remote.classify("anything at all") is None
        assert not route.called


@pytest.mark.asyncio
async def test_composite_tags_remote_origin(remote):
    verdict = json.dumps({"sentiment": "ANGRY", "category": "Ragging"})
    composite = CompositeClassifier(remote=remote)
    async with respx.mock(base_url="http://groq.test") as respx_mock:
        respx_mock.post("/openai/v1/chat/completions").mock(return_value=Response(200, json=_completion(verdict)))
        result = await composite.classify("Seniors keep bothering us", Category.OTHER)

    assert result.origin == ClassificationOrigin.REMOTE
    assert result.sentiment == Sentiment.ANGRY
    assert result.category == Category.OTHER
    assert result.category_origin == ClassificationOrigin.CALLER
    await remote.aclose()


@pytest.mark.asyncio
async def test_composite_falls_back_to_local(remote):
    composite = CompositeClassifier(remote=remote)
    async with respx.mock(base_url="http://groq.test") as respx_mock:
        respx_mock.post("/openai/v1/chat/completions").mock(return_value=Response(503))
        result = await composite.classify("The food in the canteen is dirty and the staff was unhygienic")

    assert result.origin == ClassificationOrigin.LOCAL
    assert result.category == Category.CANTEEN_HYGIENE
    await remote.aclose()


class _SlowThenFast:
    """Classifier whose first call finishes after the second one."""

    def __init__(self):
        self.calls = []

    async def classify(self, text, category=None):
        self.calls.append(text)
        if len(self.calls) == 1:
            await asyncio.sleep(0.05)
            sentiment = Sentiment.ANGRY
        else:
            sentiment = Sentiment.NEUTRAL
        return ClassificationResult(
            sentiment=sentiment,
            category=Category.OTHER,
            origin=ClassificationOrigin.LOCAL,
            category_origin=ClassificationOrigin.LOCAL,
        )


@pytest.mark.asyncio
async def test_session_skips_short_text():
    session = ClassificationSession(CompositeClassifier(), debounce=0, min_length=10)
    session.schedule("too short")
    assert await session.wait() is None
    assert session.latest is None


@pytest.mark.asyncio
async def test_session_keeps_only_latest_result():
    classifier = _SlowThenFast()
    session = ClassificationSession(classifier, debounce=0, min_length=5)

    first = asyncio.create_task(session._run(1, "first long enough text", None))
    session.generation = 1
    await asyncio.sleep(0)
    session.generation = 2
    second = await session._run(2, "second long enough text", None)
    stale = await first

    assert stale is None
    assert second.sentiment == Sentiment.NEUTRAL
    assert session.latest.sentiment == Sentiment.NEUTRAL


@pytest.mark.asyncio
async def test_session_schedule_cancels_previous_task():
    session = ClassificationSession(CompositeClassifier(), debounce=0.05, min_length=5)
    first = session.schedule("The canteen food is dirty")
    session.schedule("The wifi in the hostel is slow")
    result = await session.wait()

    assert first.cancelled()
    assert result.category == Category.INFRASTRUCTURE
    assert session.generation == 2


@pytest.mark.asyncio
async def test_session_submit_superseded_by_newer_text():
    session = ClassificationSession(CompositeClassifier(), debounce=0.05, min_length=5)
    older = asyncio.create_task(session.submit("The canteen food is dirty"))
    await asyncio.sleep(0)
    newer = await session.submit("The wifi in the hostel is slow")

    assert await older is None
    assert newer.category == Category.INFRASTRUCTURE
    assert session.latest == newer
