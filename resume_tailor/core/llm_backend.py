"""AI capability set implemented on top of a chat provider.

Each operation renders a prompt, sends one chat request through
:func:`retry_with_backoff`, then decodes the answer into its result schema.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Type, TypeVar

from pydantic import BaseModel

from resume_tailor.domain import AIServiceUnavailable, MatchScore
from resume_tailor.domain.errors import InvalidMatchScore, MalformedOutputError
from resume_tailor.providers import ChatProvider, GenerationConfig, Message, create_provider

from . import prompts
from .config import TailorConfig
from .json_extract import decode_json
from .observability import PipelineObserver
from .ports import (
    AnalyzeJobRequest,
    BulletSelection,
    GenerateSummaryRequest,
    JobAnalysis,
    ScoreMatchRequest,
    ScoreResult,
    SelectBulletsRequest,
    SummaryResult,
    TailorBulletRequest,
    TailoredBulletResult,
)
from .retry import MaxRetriesExceeded, PermanentError, RetryConfig, retry_with_backoff

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

ANALYZE_TEMPERATURE = 0.3
SELECT_TEMPERATURE = 0.3
TAILOR_TEMPERATURE = 0.7
SUMMARY_TEMPERATURE = 0.8
SCORE_TEMPERATURE = 0.2


class LLMTailoringBackend:
    """Implements the AI port with any :class:`ChatProvider`.

    Analysis-type calls (job analysis, selection, scoring) use
    ``analysis_model``; writing calls (tailoring, summary) use
    ``generation_model``. Either may be ``None`` to fall back to the
    provider's default model.
    """

    def __init__(
        self,
        provider: ChatProvider,
        analysis_model: Optional[str] = None,
        generation_model: Optional[str] = None,
        retry: Optional[RetryConfig] = None,
        max_tokens: int = 4096,
        json_mode: bool = False,
        observer: Optional[PipelineObserver] = None,
    ) -> None:
        self.provider = provider
        self.analysis_model = analysis_model
        self.generation_model = generation_model
        self.retry = retry or RetryConfig()
        self.max_tokens = max_tokens
        self.json_mode = json_mode
        self.observer = observer

    @classmethod
    def from_config(cls, config: TailorConfig, observer: Optional[PipelineObserver] = None) -> "LLMTailoringBackend":
        provider = create_provider(
            config.provider,
            config.api_key,
            config.generation_model,
            api_base=config.api_base,
            timeout=config.timeout,
        )
        return cls(
            provider,
            analysis_model=config.analysis_model,
            generation_model=config.generation_model,
            retry=config.retry,
            max_tokens=config.max_tokens,
            json_mode=config.json_mode,
            observer=observer,
        )

    # -- AI port -------------------------------------------------------------

    async def analyze_job(self, request: AnalyzeJobRequest) -> JobAnalysis:
        prompt = prompts.analyze_job_prompt(request.job_description, request.target_language)
        return await self._ask("analyze_job", prompt, JobAnalysis, self.analysis_model, ANALYZE_TEMPERATURE)

    async def select_bullets(self, request: SelectBulletsRequest) -> BulletSelection:
        prompt = prompts.select_bullets_prompt(
            request.job_analysis, request.available_bullets, request.max_bullets, request.target_language
        )
        return await self._ask("select_bullets", prompt, BulletSelection, self.analysis_model, SELECT_TEMPERATURE)

    async def tailor_bullet(self, request: TailorBulletRequest) -> TailoredBulletResult:
        prompt = prompts.tailor_bullet_prompt(
            request.bullet, request.job_analysis, request.target_language, request.style
        )
        result = await self._ask(
            "tailor_bullet", prompt, TailoredBulletResult, self.generation_model, TAILOR_TEMPERATURE
        )
        return result.model_copy(update={"original_id": request.bullet.id})

    async def generate_summary(self, request: GenerateSummaryRequest) -> SummaryResult:
        prompt = prompts.summary_prompt(
            request.user, request.job_analysis, request.selected_bullets, request.target_language
        )
        return await self._ask("generate_summary", prompt, SummaryResult, self.generation_model, SUMMARY_TEMPERATURE)

    async def score_match(self, request: ScoreMatchRequest) -> MatchScore:
        prompt = prompts.score_match_prompt(request.job_analysis, request.resume, request.user_skills)
        result = await self._ask("score_match", prompt, ScoreResult, self.analysis_model, SCORE_TEMPERATURE)
        try:
            score = MatchScore.clamped(result.score)
        except InvalidMatchScore as exc:
            raise MalformedOutputError("AI returned a non-numeric score", details={"operation": "score_match"}) from exc
        if score.value != result.score:
            logger.warning("Match score %s out of range or fractional, using %d", result.score, score.value)
        return score

    async def close(self) -> None:
        await self.provider.close()

    # -- helpers -------------------------------------------------------------

    async def _ask(
        self,
        operation: str,
        prompt: str,
        schema: Type[M],
        model: Optional[str],
        temperature: float,
    ) -> M:
        text = await self._complete(operation, prompt, model, temperature)
        try:
            return decode_json(text, schema)
        except MalformedOutputError as exc:
            exc.details.setdefault("operation", operation)
            logger.warning("Malformed %s output (%s)", operation, exc.code)
            raise

    async def _complete(self, operation: str, prompt: str, model: Optional[str], temperature: float) -> str:
        config = GenerationConfig(
            system_prompt=prompts.SYSTEM_PROMPT,
            max_tokens=self.max_tokens,
            temperature=temperature,
            model=model,
            json_mode=self.json_mode,
        )
        messages = [Message.user(prompt)]
        attempts = 0

        async def _call():
            nonlocal attempts
            attempts += 1
            return await self.provider.generate(messages, config)

        start = time.perf_counter()
        try:
            response = await retry_with_backoff(_call, self.retry)
        except MaxRetriesExceeded as exc:
            raise AIServiceUnavailable(
                f"{operation} failed after {exc.attempts} attempts",
                details={"operation": operation, "attempts": exc.attempts},
            ) from exc
        except PermanentError as exc:
            raise AIServiceUnavailable(
                f"{operation} failed with a non-retryable backend error",
                details={"operation": operation, "attempts": attempts},
            ) from exc

        if self.observer is not None:
            usage = response.usage or {}
            self.observer.log_llm_request(
                operation,
                response.model or model or "",
                (time.perf_counter() - start) * 1000,
                attempts=attempts,
                tokens=usage.get("total_tokens"),
            )
        return response.text
