"""
External short-answer grading client.

Handles HTTP communication with an optional grading service that scores
free-text answers. The engine never depends on it: any failure surfaces as
GradingProviderError and the short-answer evaluator falls back to local
keyword/concept scoring.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from loguru import logger

from strandlab.errors import GradingProviderError

if TYPE_CHECKING:
    from strandlab.questions.models import ShortAnswerQuestion


@dataclass
class GradeRequest:
    """Request payload for the grading service."""

    question_id: str
    level: int
    text: str
    prompt: str = ""
    required_keywords: list[str] = field(default_factory=list)
    required_concepts: list[str] = field(default_factory=list)

    @classmethod
    def for_question(cls, question: ShortAnswerQuestion, text: str) -> GradeRequest:
        criteria = question.evaluation_criteria
        return cls(
            question_id=question.id,
            level=question.level,
            text=text,
            prompt=question.question,
            required_keywords=list(criteria.required_keywords),
            required_concepts=list(criteria.required_concepts),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert request to API payload format."""
        return {
            "question_id": self.question_id,
            "level": self.level,
            "text": self.text,
            "prompt": self.prompt,
            "required_keywords": self.required_keywords,
            "required_concepts": self.required_concepts,
        }


@dataclass
class GradeResult:
    """Result payload from the grading service."""

    question_id: str
    score: float
    feedback: str = ""
    meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GradeResult:
        """Parse result from API response."""
        if "score" not in data:
            raise GradingProviderError("Grader response is missing 'score'")
        try:
            score = float(data["score"])
        except (TypeError, ValueError) as e:
            raise GradingProviderError(f"Grader returned a non-numeric score: {data['score']!r}") from e
        if not math.isfinite(score):
            raise GradingProviderError(f"Grader returned a non-finite score: {data['score']!r}")
        return cls(
            question_id=data.get("question_id", ""),
            score=score,
            feedback=data.get("feedback", "") or "",
            meta=data.get("meta", {}) or {},
        )


class ShortAnswerGrader(Protocol):
    """Anything that can grade a short answer asynchronously."""

    async def grade(self, question: ShortAnswerQuestion, text: str) -> GradeResult:
        ...


class GradingClient:
    """HTTP client for the external grading service."""

    def __init__(
        self,
        api_url: str,
        timeout_ms: int = 10000,
        retry_attempts: int = 2,
        backoff_base: float = 1.0,
    ):
        """
        Initialize grading client.

        Args:
            api_url: Base URL for the grading API
            timeout_ms: Request timeout in milliseconds
            retry_attempts: Number of attempts before giving up
            backoff_base: Seconds to wait before the first retry, doubled each time
        """
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_ms / 1000.0
        self.retry_attempts = retry_attempts
        self.backoff_base = backoff_base
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            follow_redirects=True,
        )

    @classmethod
    def from_settings(cls, settings) -> GradingClient | None:
        """Build a client from settings, or None when no grader is configured."""
        if not settings.has_grader_configured():
            return None
        config = settings.get_grader_config()
        return cls(
            api_url=config["api_url"],
            timeout_ms=config["timeout_ms"],
            retry_attempts=config["retry_attempts"],
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def _backoff(self, attempt: int) -> None:
        if attempt < self.retry_attempts - 1:
            await asyncio.sleep(self.backoff_base * (2 ** attempt))

    async def grade(self, question: ShortAnswerQuestion, text: str) -> GradeResult:
        """
        Grade one answer with retry logic.

        Raises:
            GradingProviderError: On 4xx responses, malformed payloads, or
                once all retries are exhausted
        """
        request = GradeRequest.for_question(question, text)
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            try:
                response = await self.client.post(
                    f"{self.api_url}/grade",
                    json=request.to_dict(),
                )
                response.raise_for_status()
                return GradeResult.from_dict(response.json())

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(
                    f"Grader timeout on attempt {attempt + 1}/{self.retry_attempts}"
                )
                await self._backoff(attempt)

            except httpx.HTTPStatusError as e:
                last_error = e
                if e.response.status_code >= 500:
                    logger.warning(
                        f"Grader server error {e.response.status_code} on attempt "
                        f"{attempt + 1}/{self.retry_attempts}"
                    )
                    await self._backoff(attempt)
                else:
                    # Don't retry on 4xx client errors
                    logger.error(f"Grader client error: {e.response.status_code}")
                    raise GradingProviderError(
                        f"Grader rejected request with status {e.response.status_code}"
                    ) from e

            except httpx.RequestError as e:
                last_error = e
                logger.warning(
                    f"Grader request error on attempt {attempt + 1}/{self.retry_attempts}: {e}"
                )
                await self._backoff(attempt)

            except ValueError as e:
                # response.json() on a non-JSON body
                raise GradingProviderError(f"Grader returned invalid JSON: {e}") from e

        error_msg = f"Grading failed after {self.retry_attempts} attempts"
        logger.error(f"{error_msg}: {last_error}")
        raise GradingProviderError(error_msg) from last_error
