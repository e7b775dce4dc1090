"""Resume tailoring use case.

Sequences the five AI operations against one resume:

    analyze job -> select bullets -> tailor each bullet -> summary -> score

All mutation of the resume happens after the last backend call returns, so a
failed run leaves the aggregate exactly as it was.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from resume_tailor.domain import (
    GENERATION_STATES,
    Bullet,
    Experience,
    ExperienceType,
    InvalidStatusTransition,
    MatchScore,
    NoBulletsAvailable,
    Resume,
    ResumeAnalysis,
    ResumeContent,
    ResumeStatus,
    Skill,
    TailoredBullet,
    TailoredExperience,
    User,
    ValidationError,
)
from resume_tailor.domain.value_objects import mentions_term, normalize_terms

from .observability import PipelineObserver
from .ports import (
    AIProvider,
    AnalyzeJobRequest,
    GenerateSummaryRequest,
    JobAnalysis,
    ScoreMatchRequest,
    SelectBulletsRequest,
    TailorBulletRequest,
    TailoredBulletResult,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_BULLETS = 15
DEFAULT_STYLE = "professional"


@dataclass
class TailorOptions:
    """Caller-facing knobs for one tailoring run."""

    max_bullets: int = DEFAULT_MAX_BULLETS
    max_bullets_per_experience: Optional[int] = None
    included_experience_types: List[ExperienceType] = field(default_factory=list)
    skills_to_highlight: List[str] = field(default_factory=list)
    style: str = DEFAULT_STYLE
    tailor_concurrency: int = 4

    def __post_init__(self) -> None:
        if not isinstance(self.max_bullets, int) or self.max_bullets < 1:
            raise ValidationError("max_bullets must be at least 1", field="max_bullets")
        if self.max_bullets_per_experience is not None and self.max_bullets_per_experience < 1:
            raise ValidationError(
                "max_bullets_per_experience must be at least 1", field="max_bullets_per_experience"
            )
        if self.tailor_concurrency < 1:
            raise ValidationError("tailor_concurrency must be at least 1", field="tailor_concurrency")
        self.included_experience_types = [ExperienceType.parse(t) for t in self.included_experience_types]
        self.skills_to_highlight = normalize_terms(self.skills_to_highlight)
        self.style = (self.style or DEFAULT_STYLE).strip() or DEFAULT_STYLE


@dataclass
class TailoringOutcome:
    resume: Resume
    analysis: JobAnalysis
    reasoning: str = ""
    dropped_bullet_ids: List[str] = field(default_factory=list)
    timings_ms: Dict[str, float] = field(default_factory=dict)


class ResumeOrchestrator:
    """Runs the tailoring pipeline against an :class:`AIProvider`."""

    def __init__(self, ai: AIProvider, observer: Optional[PipelineObserver] = None) -> None:
        self.ai = ai
        self.observer = observer

    async def tailor_resume(
        self,
        resume: Resume,
        candidate_bullets: Sequence[Bullet],
        experiences: Sequence[Experience],
        skills: Sequence[Skill],
        user: User,
        options: Optional[TailorOptions] = None,
    ) -> TailoringOutcome:
        options = options or TailorOptions()
        timings: Dict[str, float] = {}

        if resume.status not in GENERATION_STATES:
            raise InvalidStatusTransition(
                f"cannot tailor a resume in status {resume.status.value}",
                details={"from": resume.status.value, "to": ResumeStatus.GENERATED.value},
            )
        if not candidate_bullets:
            raise NoBulletsAvailable()

        experiences_by_id = {exp.id: exp for exp in experiences}
        candidates = self._filter_candidates(candidate_bullets, experiences_by_id, options)
        if not candidates:
            raise NoBulletsAvailable("no bullets match the requested experience types")
        language = resume.target_language

        analysis = await self._step(
            "analyze_job",
            timings,
            self.ai.analyze_job(AnalyzeJobRequest(job_description=resume.job_description, target_language=language)),
        )

        selection = await self._step(
            "select_bullets",
            timings,
            self.ai.select_bullets(
                SelectBulletsRequest(
                    job_analysis=analysis,
                    available_bullets=list(candidates),
                    max_bullets=options.max_bullets,
                    target_language=language,
                )
            ),
        )
        selected, dropped = self._apply_selection(selection.selected_bullet_ids, candidates, options)
        if not selected:
            raise NoBulletsAvailable("AI selection returned no usable bullets")

        tailored = await self._step(
            "tailor_bullets",
            timings,
            self._tailor_all(selected, analysis, language, options),
        )
        tailored_bullets = [
            TailoredBullet(
                bullet_id=bullet.id,
                original_content=bullet.content,
                tailored_content=result.tailored_content,
                keywords=list(result.keywords),
            )
            for bullet, result in zip(selected, tailored)
        ]

        summary = await self._step(
            "generate_summary",
            timings,
            self.ai.generate_summary(
                GenerateSummaryRequest(
                    user=user,
                    job_analysis=analysis,
                    selected_bullets=tailored_bullets,
                    target_language=language,
                )
            ),
        )

        content = ResumeContent(
            summary=summary.summary,
            experiences=self._group_by_experience(selected, tailored_bullets, experiences_by_id),
            skills=self._surface_skills(skills, options.skills_to_highlight),
        )
        score: MatchScore = await self._step(
            "score_match",
            timings,
            self.ai.score_match(ScoreMatchRequest(job_analysis=analysis, resume=content, user_skills=list(skills))),
        )
        content.analysis = self._analyze_coverage(analysis, content)

        # Every backend call succeeded; commit to the aggregate.
        resume.set_job_details(
            title=analysis.title if not resume.job_title else None,
            company=analysis.company if not resume.company_name else None,
        )
        resume.select_bullets([bullet.id for bullet in selected])
        resume.set_generated_content(content)
        resume.set_score(score)

        logger.info(
            "Tailored resume %s: %d bullets, score %d",
            resume.id,
            len(selected),
            score.value,
        )
        return TailoringOutcome(
            resume=resume,
            analysis=analysis,
            reasoning=selection.reasoning,
            dropped_bullet_ids=dropped,
            timings_ms=timings,
        )

    # -- steps ---------------------------------------------------------------

    async def _step(self, name: str, timings: Dict[str, float], awaitable):
        if self.observer is not None:
            self.observer.log_step_start(name)
        start = time.perf_counter()
        try:
            result = await awaitable
        except Exception as exc:
            duration = (time.perf_counter() - start) * 1000
            timings[name] = duration
            if self.observer is not None:
                self.observer.log_step_end(name, duration, success=False)
                self.observer.log_error(name, exc)
            raise
        duration = (time.perf_counter() - start) * 1000
        timings[name] = duration
        if self.observer is not None:
            self.observer.log_step_end(name, duration)
        return result

    def _filter_candidates(
        self,
        bullets: Sequence[Bullet],
        experiences_by_id: Dict[str, Experience],
        options: TailorOptions,
    ) -> List[Bullet]:
        allowed_types = set(options.included_experience_types)
        result: List[Bullet] = []
        seen = set()
        for bullet in bullets:
            if bullet.id in seen:
                continue
            experience = experiences_by_id.get(bullet.experience_id)
            if experience is None:
                logger.warning("Skipping bullet %s with unknown experience %s", bullet.id, bullet.experience_id)
                continue
            if allowed_types and experience.type not in allowed_types:
                continue
            seen.add(bullet.id)
            result.append(bullet)
        return result

    def _apply_selection(
        self,
        selected_ids: Sequence[str],
        candidates: Sequence[Bullet],
        options: TailorOptions,
    ):
        """Intersect the backend's ids with the candidate set and apply caps.

        Returns the selected bullets in selection order and the ids that were
        dropped because they were not candidates.
        """
        by_id = {bullet.id: bullet for bullet in candidates}
        per_experience: Dict[str, int] = {}
        selected: List[Bullet] = []
        dropped: List[str] = []
        seen = set()

        for bullet_id in selected_ids:
            if bullet_id in seen:
                continue
            seen.add(bullet_id)
            bullet = by_id.get(bullet_id)
            if bullet is None:
                dropped.append(bullet_id)
                continue
            if len(selected) >= options.max_bullets:
                break
            count = per_experience.get(bullet.experience_id, 0)
            if options.max_bullets_per_experience is not None and count >= options.max_bullets_per_experience:
                continue
            per_experience[bullet.experience_id] = count + 1
            selected.append(bullet)

        if dropped:
            logger.warning("Dropped %d bullet ids not in the candidate set: %s", len(dropped), dropped)
        return selected, dropped

    async def _tailor_all(
        self,
        bullets: List[Bullet],
        analysis: JobAnalysis,
        language,
        options: TailorOptions,
    ) -> List[TailoredBulletResult]:
        semaphore = asyncio.Semaphore(options.tailor_concurrency)

        async def _one(bullet: Bullet) -> TailoredBulletResult:
            async with semaphore:
                return await self.ai.tailor_bullet(
                    TailorBulletRequest(
                        bullet=bullet,
                        job_analysis=analysis,
                        target_language=language,
                        style=options.style,
                    )
                )

        tasks = [asyncio.ensure_future(_one(bullet)) for bullet in bullets]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    def _group_by_experience(
        self,
        bullets: List[Bullet],
        tailored: List[TailoredBullet],
        experiences_by_id: Dict[str, Experience],
    ) -> List[TailoredExperience]:
        groups: Dict[str, List[TailoredBullet]] = {}
        for bullet, result in zip(bullets, tailored):
            groups.setdefault(bullet.experience_id, []).append(result)

        ordered = sorted((experiences_by_id[exp_id] for exp_id in groups), key=lambda exp: exp.sort_key())
        return [
            TailoredExperience(
                experience_id=exp.id,
                title=exp.title,
                organization=exp.organization,
                start_date=str(exp.start_date),
                end_date=exp.end_date_label(),
                is_current=exp.is_current,
                bullets=groups[exp.id],
            )
            for exp in ordered
        ]

    def _surface_skills(self, skills: Sequence[Skill], highlight: List[str]) -> List[str]:
        highlighted = [s.name for s in skills if s.is_highlighted]
        rest = [s.name for s in sorted(skills, key=lambda s: -s.proficiency_level.value) if not s.is_highlighted]
        return normalize_terms(list(highlight) + highlighted + rest)

    def _analyze_coverage(self, analysis: JobAnalysis, content: ResumeContent) -> ResumeAnalysis:
        """Keyword coverage of the generated content, computed locally."""
        haystack = " ".join(
            [content.summary] + [b.tailored_content for b in content.tailored_bullets()] + content.skills
        )
        terms = analysis.all_terms()
        matched = [t for t in terms if mentions_term(haystack, t)]
        missing = [t for t in terms if t not in matched]

        required_missing = [s for s in analysis.required_skills if s in missing]
        recommendations = [f"Add evidence of {skill} if you have it" for skill in required_missing]
        strengths = [s for s in analysis.required_skills if s in matched]
        return ResumeAnalysis(
            matched_keywords=matched,
            missing_keywords=missing,
            recommendations=recommendations,
            strength_areas=strengths,
            improvement_areas=required_missing,
        )
