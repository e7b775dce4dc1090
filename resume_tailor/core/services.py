"""Application services: the persistence-facing entry points."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from resume_tailor.domain import (
    AIServiceUnavailable,
    Bullet,
    BulletNotFound,
    DomainError,
    EmptyJobDescription,
    ExperienceNotFound,
    InvalidAuthToken,
    JobParserUnavailable,
    PDFServiceUnavailable,
    Resume,
    ResumeContent,
    ResumeNotFound,
    ResumeNotReady,
    ResumeStatus,
    TailoredBullet,
    TailoredExperience,
    TargetLanguage,
    User,
    UserNotFound,
)
from resume_tailor.domain.bullet import HIGH_IMPACT_THRESHOLD

from .orchestrator import ResumeOrchestrator, TailoringOutcome, TailorOptions
from .ports import (
    AIProvider,
    AnalyzeJobRequest,
    BulletRepository,
    ExperienceRepository,
    FileStorage,
    JobParser,
    ListOptions,
    PDFRenderer,
    ResumeRepository,
    ScoreMatchRequest,
    SkillRepository,
    TokenVerifier,
    UserRepository,
)
from .resume_html import render_resume_html

logger = logging.getLogger(__name__)

DEFAULT_HIGH_IMPACT_LIMIT = 20
DEFAULT_TEMPLATE = "default"


@dataclass
class ParsedJob:
    """A job posting fetched from a URL and reduced to markdown."""

    url: str
    title: str
    description: str


def _title_from_markdown(text: str) -> str:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("#"):
            return stripped.lstrip("#").strip()
    return ""


class ResumeService:
    """Resume lifecycle: create, tailor, move through statuses, render, delete."""

    def __init__(
        self,
        resumes: ResumeRepository,
        users: UserRepository,
        experiences: ExperienceRepository,
        bullets: BulletRepository,
        skills: SkillRepository,
        orchestrator: ResumeOrchestrator,
        job_parser: Optional[JobParser] = None,
        pdf_renderer: Optional[PDFRenderer] = None,
        file_storage: Optional[FileStorage] = None,
    ) -> None:
        self.resumes = resumes
        self.users = users
        self.experiences = experiences
        self.bullets = bullets
        self.skills = skills
        self.orchestrator = orchestrator
        self.job_parser = job_parser
        self.pdf_renderer = pdf_renderer
        self.file_storage = file_storage

    async def create_resume(
        self,
        user_id: str,
        job_description: str,
        *,
        job_title: Optional[str] = None,
        company_name: Optional[str] = None,
        job_url: Optional[str] = None,
        target_language: Union[str, TargetLanguage, None] = None,
    ) -> Resume:
        user = await self._get_user(user_id)

        resume = Resume.create(
            user_id=user_id,
            job_description=job_description,
            target_language=target_language or user.preferred_language,
        )
        resume.set_job_details(title=job_title, company=company_name, url=job_url)
        await self.resumes.create_resume(resume)
        logger.info("Created resume %s for user %s", resume.id, user_id)
        return resume

    async def parse_job_url(self, url: str) -> ParsedJob:
        """Fetch a job posting through the job parser and keep its markdown."""
        if self.job_parser is None:
            raise JobParserUnavailable("no job parser configured")
        try:
            text = await self.job_parser.parse_url(url)
        except DomainError:
            raise
        except Exception as exc:
            logger.warning("Job parser failed for %s: %s", url, type(exc).__name__)
            raise JobParserUnavailable(details={"url": url}) from exc

        description = (text or "").strip()
        if not description:
            raise EmptyJobDescription(details={"url": url})
        return ParsedJob(url=url, title=_title_from_markdown(description), description=description)

    async def create_resume_from_url(
        self,
        user_id: str,
        url: str,
        target_language: Union[str, TargetLanguage, None] = None,
    ) -> Resume:
        job = await self.parse_job_url(url)
        return await self.create_resume(
            user_id,
            job.description,
            job_title=job.title or None,
            job_url=job.url,
            target_language=target_language,
        )

    async def get_resume(self, resume_id: str) -> Resume:
        resume = await self.resumes.get_resume(resume_id)
        if resume is None:
            raise ResumeNotFound(details={"resume_id": resume_id})
        return resume

    async def list_resumes(
        self,
        user_id: str,
        status: Union[str, ResumeStatus, None] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Resume]:
        parsed = ResumeStatus.parse(status) if status is not None else None
        return await self.resumes.list_resumes(user_id, parsed, ListOptions(limit=limit, offset=offset))

    async def tailor_resume(self, resume_id: str, options: Optional[TailorOptions] = None) -> TailoringOutcome:
        """Run the tailoring pipeline and persist the result.

        The orchestrator works on a snapshot; storage is written only when the
        whole run succeeds.
        """
        resume = await self.get_resume(resume_id)
        user = await self._get_user(resume.user_id)

        experiences = await self.experiences.list_experiences(resume.user_id)
        bullets = await self.bullets.list_bullets_by_user(resume.user_id)
        skills = await self.skills.list_skills(resume.user_id)

        outcome = await self.orchestrator.tailor_resume(
            resume.snapshot(),
            bullets,
            experiences,
            skills,
            user,
            options,
        )
        await self.resumes.update_resume(outcome.resume)
        return outcome

    async def generate_pdf(self, resume_id: str, template_name: str = DEFAULT_TEMPLATE) -> Resume:
        """Render the generated content to PDF, store it and record its URL.

        A ``generated`` resume moves to ``reviewed``; storage is left untouched
        when rendering or upload fails.
        """
        if self.pdf_renderer is None or self.file_storage is None:
            raise PDFServiceUnavailable("PDF rendering is not configured")

        resume = await self.get_resume(resume_id)
        if not resume.can_generate_pdf():
            raise ResumeNotReady(details={"resume_id": resume_id, "status": resume.status.value})
        user = await self._get_user(resume.user_id)

        document = render_resume_html(user, resume)
        key = f"resumes/{resume.user_id}/{resume.id}.pdf"
        try:
            pdf = await self.pdf_renderer.render(document, {"template": template_name or DEFAULT_TEMPLATE})
            url = await self.file_storage.store(key, pdf, "application/pdf")
        except DomainError:
            raise
        except Exception as exc:
            logger.warning("PDF generation failed for resume %s: %s", resume_id, type(exc).__name__)
            raise PDFServiceUnavailable(details={"resume_id": resume_id}) from exc

        resume.set_pdf_url(url)
        if resume.status is ResumeStatus.GENERATED:
            resume.transition_status(ResumeStatus.REVIEWED)
        await self.resumes.update_resume(resume)
        logger.info("Stored PDF for resume %s at %s", resume.id, key)
        return resume

    async def update_resume_status(
        self,
        resume_id: str,
        new_status: Union[str, ResumeStatus],
        notes: Optional[str] = None,
    ) -> Resume:
        resume = await self.get_resume(resume_id)
        resume.transition_status(new_status)
        if notes is not None:
            resume.set_notes(notes)
        await self.resumes.update_resume(resume)
        return resume

    async def update_notes(self, resume_id: str, notes: Optional[str]) -> Resume:
        resume = await self.get_resume(resume_id)
        resume.set_notes(notes)
        await self.resumes.update_resume(resume)
        return resume

    async def delete_resume(self, resume_id: str) -> None:
        if not await self.resumes.delete_resume(resume_id):
            raise ResumeNotFound(details={"resume_id": resume_id})

    async def _get_user(self, user_id: str) -> User:
        user = await self.users.get_user(user_id)
        if user is None:
            raise UserNotFound(details={"user_id": user_id})
        return user


class BulletService:
    """Bullet library management, including AI impact scoring."""

    def __init__(
        self,
        bullets: BulletRepository,
        experiences: ExperienceRepository,
        resumes: ResumeRepository,
        ai: Optional[AIProvider] = None,
    ) -> None:
        self.bullets = bullets
        self.experiences = experiences
        self.resumes = resumes
        self.ai = ai

    async def create_bullet(
        self,
        experience_id: str,
        content: str,
        impact_score: Optional[int] = None,
        keywords: Optional[List[str]] = None,
        display_order: int = 0,
    ) -> Bullet:
        if await self.experiences.get_experience(experience_id) is None:
            raise ExperienceNotFound(details={"experience_id": experience_id})

        fields: Dict[str, Any] = {"keywords": keywords or [], "display_order": display_order}
        if impact_score is not None:
            fields["impact_score"] = impact_score
        bullet = Bullet.create(experience_id=experience_id, content=content, **fields)
        await self.bullets.create_bullet(bullet)
        return bullet

    async def get_bullet(self, bullet_id: str) -> Bullet:
        bullet = await self.bullets.get_bullet(bullet_id)
        if bullet is None:
            raise BulletNotFound(details={"bullet_id": bullet_id})
        return bullet

    async def list_bullets_by_experience(self, experience_id: str) -> List[Bullet]:
        return await self.bullets.list_bullets_by_experience(experience_id)

    async def list_bullets_by_user(self, user_id: str) -> List[Bullet]:
        return await self.bullets.list_bullets_by_user(user_id)

    async def update_bullet(
        self,
        bullet_id: str,
        content: Optional[str] = None,
        impact_score: Optional[int] = None,
        keywords: Optional[List[str]] = None,
        display_order: Optional[int] = None,
    ) -> Bullet:
        """Apply the given fields; ``None`` leaves a field unchanged."""
        bullet = await self.get_bullet(bullet_id)
        if content is not None:
            bullet.update_content(content)
        if impact_score is not None:
            bullet.set_impact_score(impact_score)
        if keywords is not None:
            bullet.set_keywords(keywords)
        if display_order is not None:
            bullet.display_order = display_order
        bullet.validate()
        await self.bullets.update_bullet(bullet)
        return bullet

    async def search_bullets(self, user_id: str, keywords: List[str]) -> List[Bullet]:
        return await self.bullets.search_bullets(user_id, keywords)

    async def get_high_impact_bullets(
        self,
        user_id: str,
        min_score: int = HIGH_IMPACT_THRESHOLD,
        limit: int = DEFAULT_HIGH_IMPACT_LIMIT,
    ) -> List[Bullet]:
        return await self.bullets.list_high_impact_bullets(
            user_id, min_score or HIGH_IMPACT_THRESHOLD, limit or DEFAULT_HIGH_IMPACT_LIMIT
        )

    async def analyze_bullet_impact(self, bullet_id: str, job_description: str) -> Bullet:
        """Score one bullet against a job and store the score and the job's keywords."""
        if self.ai is None:
            raise AIServiceUnavailable("no AI provider configured")
        if not (job_description or "").strip():
            raise EmptyJobDescription()
        bullet = await self.get_bullet(bullet_id)

        analysis = await self.ai.analyze_job(AnalyzeJobRequest(job_description=job_description))
        single_bullet = ResumeContent(
            summary="",
            experiences=[
                TailoredExperience(
                    experience_id=bullet.experience_id,
                    title="",
                    organization="",
                    start_date="",
                    bullets=[TailoredBullet(bullet.id, bullet.content, bullet.content, list(bullet.keywords))],
                )
            ],
        )
        score = await self.ai.score_match(ScoreMatchRequest(job_analysis=analysis, resume=single_bullet))

        bullet.set_impact_score(score.value)
        bullet.set_keywords(analysis.keywords)
        await self.bullets.update_bullet(bullet)
        logger.info("Bullet %s impact scored %d", bullet.id, score.value)
        return bullet

    async def delete_bullet(self, bullet_id: str) -> int:
        """Delete a bullet; returns how many resumes had it selected."""
        bullet = await self.get_bullet(bullet_id)
        experience = await self.experiences.get_experience(bullet.experience_id)

        touched = 0
        if experience is not None:
            offset = 0
            page = 100
            while True:
                batch = await self.resumes.list_resumes(
                    experience.user_id, None, ListOptions(limit=page, offset=offset)
                )
                for resume in batch:
                    if resume.remove_selected_bullet(bullet_id):
                        await self.resumes.update_resume(resume)
                        touched += 1
                if len(batch) < page:
                    break
                offset += page

        await self.bullets.delete_bullet(bullet_id)
        logger.info("Deleted bullet %s (removed from %d resumes)", bullet_id, touched)
        return touched


class UserService:
    """Keeps local users in step with the identity provider's claims."""

    def __init__(self, users: UserRepository, verifier: TokenVerifier) -> None:
        self.users = users
        self.verifier = verifier

    async def sync_user(self, token: str) -> Tuple[User, bool]:
        """Verify *token* and create or refresh the matching user.

        Returns the user and whether it was created by this call.
        """
        try:
            claims = await self.verifier.verify(token)
        except DomainError:
            raise
        except Exception as exc:
            raise InvalidAuthToken() from exc

        subject = str(claims.get("sub") or claims.get("user_id") or "").strip()
        if not subject:
            raise InvalidAuthToken("token has no subject claim")
        email = claims.get("email") or None
        name = claims.get("name") or None

        user = await self.users.get_user(subject)
        if user is None:
            user = User(id=subject, name=name, email=email)
            await self.users.create_user(user)
            logger.info("Created user %s from token claims", subject)
            return user, True

        changed = False
        if email and email != user.email:
            user.set_email(email)
            changed = True
        if name and name != user.name:
            user.set_name(name)
            changed = True
        if changed:
            await self.users.update_user(user)
        return user, False

    async def get_user(self, user_id: str) -> User:
        user = await self.users.get_user(user_id)
        if user is None:
            raise UserNotFound(details={"user_id": user_id})
        return user
