"""Sentiment and category classification for complaint text.

Two implementations compose via fallback:

- `RemoteClassifier` asks a hosted chat-completion service (Groq's
  OpenAI-compatible endpoint) for a strict JSON verdict. Any failure returns
  ``None``; nothing is raised to the caller.
- `LocalClassifier` is a deterministic keyword scorer that is total over any
  string input.

`CompositeClassifier` tries the remote path first and tags every result with
the origin of the verdict. `ClassificationSession` debounces re-classification
while the user is typing and drops results that a newer input superseded.
"""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel

from .errors import ClassifierUnavailable
from .models import Category, Sentiment
from .observability import classifications_total

logger = logging.getLogger(__name__)


class ClassificationOrigin(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"
    # Category chosen explicitly by the submitter
    CALLER = "caller"


class ClassificationResult(BaseModel):
    sentiment: Sentiment
    category: Category
    origin: ClassificationOrigin
    category_origin: ClassificationOrigin


ANGRY_KEYWORDS = ("terrible", "worst", "horrible", "unacceptable", "disgusted", "angry", "broken", "outage")
FRUSTRATED_KEYWORDS = ("disappointed", "annoying", "frustrated", "slow", "fail", "wait", "stuck")

# Checked in order; the first rule with a matching keyword wins
CATEGORY_RULES: List[Tuple[Category, Tuple[str, ...]]] = [
    (Category.SEXUAL_HARASSMENT, ("sexual", "harassment", "touch", "inappropriate", "unsafe", "abuse", "molest")),
    (Category.RAGGING, ("ragging", "bully", "senior", "force", "threat")),
    (Category.DISCRIMINATION, ("caste", "religion", "gender", "discriminat", "bias")),
    (Category.ACADEMIC_ISSUES, ("grade", "exam", "class", "faculty", "teacher", "attendance", "lecture", "syllabus")),
    (Category.INFRASTRUCTURE, ("fan", "light", "water", "wifi", "internet", "room", "hostel", "broken", "electricity")),
    (Category.CANTEEN_HYGIENE, ("food", "mess", "canteen", "hygiene", "clean", "dirty", "washroom", "toilet", "water")),
    (Category.STUDENT_AFFAIRS, ("election", "discipline", "event", "fee", "scholarship", "library")),
]


class LocalClassifier:
    """Keyword scoring. Pure: the same text always yields the same verdict."""

    def analyze_sentiment(self, text: str) -> Sentiment:
        lower = (text or "").lower()
        score = 0
        for word in ANGRY_KEYWORDS:
            if word in lower:
                score -= 2
        for word in FRUSTRATED_KEYWORDS:
            if word in lower:
                score -= 1

        if score < -3:
            return Sentiment.ANGRY
        if score < 0:
            return Sentiment.FRUSTRATED
        return Sentiment.NEUTRAL

    def suggest_category(self, text: str) -> Category:
        lower = (text or "").lower()
        for category, keywords in CATEGORY_RULES:
            if any(kw in lower for kw in keywords):
                return category
        return Category.OTHER

    def classify(self, text: str, category: Optional[Category] = None) -> ClassificationResult:
        return ClassificationResult(
            sentiment=self.analyze_sentiment(text),
            category=category or self.suggest_category(text),
            origin=ClassificationOrigin.LOCAL,
            category_origin=ClassificationOrigin.CALLER if category else ClassificationOrigin.LOCAL,
        )


SYSTEM_PROMPT = (
    "You are an AI assistant for a Customer Complaint System.\n"
    "Analyze the user's complaint and extract:\n"
    "1. Sentiment: strictly one of {sentiments}.\n"
    "2. Category: strictly one of {categories}.\n\n"
    "Return ONLY a valid JSON object with keys \"sentiment\" and \"category\". "
    "Do not add any markdown formatting."
).format(
    sentiments=", ".join(f'"{s.value}"' for s in Sentiment),
    categories=", ".join(f'"{c.value}"' for c in Category),
)


class RemoteClassifier:
    """Client for an OpenAI-compatible chat-completions endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        api_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.api_url = api_url
        self._timeout = httpx.Timeout(timeout, connect=min(timeout, 5.0))
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _payload(self, text: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ],
            "temperature": 0.1,
            "response_format": {"type": "json_object"},
        }

    async def _request(self, text: str) -> Tuple[Sentiment, Category]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            resp = await self._get_client().post(self.api_url, json=self._payload(text), headers=headers)
        except httpx.HTTPError as exc:
            raise ClassifierUnavailable(f"request failed: {exc}") from exc

        if not resp.is_success:
            raise ClassifierUnavailable(f"status {resp.status_code}")

        try:
            content = resp.json()["choices"][0]["message"]["content"]
            verdict = json.loads(content)
            return Sentiment(verdict["sentiment"]), Category(verdict["category"])
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ClassifierUnavailable(f"unusable response: {exc}") from exc

    async def classify(self, text: str) -> Optional[Tuple[Sentiment, Category]]:
        """Return ``(sentiment, category)`` or ``None`` when unavailable."""
        if not self.enabled:
            return None
        try:
            return await self._request(text)
        except ClassifierUnavailable as exc:
            logger.warning("Remote classification unavailable, using local fallback: %s", exc)
            return None


class CompositeClassifier:
    """Remote verdict when available, local keywords otherwise."""

    def __init__(self, remote: Optional[RemoteClassifier] = None, local: Optional[LocalClassifier] = None):
        self.remote = remote
        self.local = local or LocalClassifier()

    async def classify(self, text: str, category: Optional[Category] = None) -> ClassificationResult:
        verdict = await self.remote.classify(text) if self.remote is not None else None
        if verdict is None:
            result = self.local.classify(text, category)
        else:
            sentiment, suggested = verdict
            result = ClassificationResult(
                sentiment=sentiment,
                category=category or suggested,
                origin=ClassificationOrigin.REMOTE,
                category_origin=ClassificationOrigin.CALLER if category else ClassificationOrigin.REMOTE,
            )
        classifications_total.labels(origin=result.origin.value).inc()
        return result


class ClassificationSession:
    """Debounced, generation-keyed classification of a text being edited.

    Every `schedule` call bumps the generation and cancels the previous task.
    A result is only published if its generation is still current when it
    arrives, so a slow response for old text can never replace a newer one.
    """

    def __init__(self, classifier: CompositeClassifier, debounce: float = 0.5, min_length: int = 10):
        self.classifier = classifier
        self.debounce = debounce
        self.min_length = min_length
        self.generation = 0
        self.latest: Optional[ClassificationResult] = None
        self._task: Optional[asyncio.Task] = None

    def schedule(self, text: str, category: Optional[Category] = None) -> asyncio.Task:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.generation += 1
        self._task = asyncio.create_task(self._run(self.generation, text, category))
        return self._task

    async def _run(self, generation: int, text: str, category: Optional[Category]) -> Optional[ClassificationResult]:
        if self.debounce > 0:
            await asyncio.sleep(self.debounce)
        if len(text) <= self.min_length:
            return None
        result = await self.classifier.classify(text, category)
        if generation != self.generation:
            logger.debug("Dropping stale classification (generation %s < %s)", generation, self.generation)
            return None
        self.latest = result
        return result

    async def submit(self, text: str, category: Optional[Category] = None) -> Optional[ClassificationResult]:
        """Schedule `text` and wait for it; ``None`` if a newer text superseded it."""
        task = self.schedule(text, category)
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled():
                return None
            raise

    async def wait(self) -> Optional[ClassificationResult]:
        """Wait for the current task; a cancelled task yields ``None``."""
        task = self._task
        if task is None:
            return None
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled():
                return None
            raise


__all__ = [
    "ClassificationOrigin",
    "ClassificationResult",
    "LocalClassifier",
    "RemoteClassifier",
    "CompositeClassifier",
    "ClassificationSession",
]
