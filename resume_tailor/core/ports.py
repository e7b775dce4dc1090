"""Ports the tailoring core depends on.

The orchestrator only ever talks to these protocols: the AI capability set,
the repositories, and the narrow collaborator contracts (PDF rendering, job
URL parsing, token verification, file storage). Result types coming back from
the AI backend are pydantic models so that untrusted model output is parsed
into a known shape before any domain object is touched.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import Protocol

from resume_tailor.domain import (
    Bullet,
    Experience,
    MatchScore,
    Resume,
    ResumeContent,
    ResumeStatus,
    Skill,
    TailoredBullet,
    TargetLanguage,
    User,
)
from resume_tailor.domain.value_objects import normalize_terms

# ---------------------------------------------------------------------------
# AI result schemas (parsed from model output)
# ---------------------------------------------------------------------------


class _ModelOutput(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class JobAnalysis(_ModelOutput):
    """Structured reading of a job description. Ephemeral, never persisted."""

    title: str = ""
    company: str = ""
    required_skills: List[str] = Field(default_factory=list)
    preferred_skills: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    seniority_level: str = ""
    years_experience: Optional[int] = Field(default=None, ge=0)
    summary: str = ""

    @field_validator("title", "company", "seniority_level", "summary", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("years_experience", mode="before")
    @classmethod
    def _loose_years(cls, value: Any) -> Any:
        # Models answer "5+", "3-5 years" or "several"; keep the leading number or drop it.
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return int(value) if math.isfinite(value) and value >= 0 else None
        match = re.match(r"\s*(\d+)", str(value))
        return int(match.group(1)) if match else None

    @field_validator("required_skills", "preferred_skills", "keywords", mode="before")
    @classmethod
    def _clean_terms(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, list):
            return normalize_terms(str(item) for item in value if item is not None)
        return value

    def all_terms(self) -> List[str]:
        """Required skills, preferred skills and keywords, de-duplicated."""
        return normalize_terms(self.required_skills + self.preferred_skills + self.keywords)


class BulletSelection(_ModelOutput):
    selected_bullet_ids: List[str] = Field(default_factory=list)
    reasoning: str = ""

    @field_validator("selected_bullet_ids", mode="before")
    @classmethod
    def _ids_as_strings(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item).strip() for item in value if item is not None and str(item).strip()]
        return value

    @field_validator("reasoning", mode="before")
    @classmethod
    def _none_reasoning(cls, value: Any) -> Any:
        return "" if value is None else value


class TailoredBulletResult(_ModelOutput):
    """A rewritten bullet. ``original_id`` is filled in from the request."""

    original_id: str = ""
    tailored_content: str = Field(min_length=1)
    keywords: List[str] = Field(default_factory=list)

    @field_validator("keywords", mode="before")
    @classmethod
    def _clean_keywords(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return normalize_terms(str(item) for item in value if item is not None)
        return value


class SummaryResult(_ModelOutput):
    summary: str = Field(min_length=1)


class MatchBreakdown(_ModelOutput):
    skills: Optional[float] = None
    experience: Optional[float] = None
    seniority: Optional[float] = None
    keywords: Optional[float] = None


class ScoreResult(_ModelOutput):
    """Raw scoring answer; turned into a :class:`MatchScore` by the backend."""

    score: float
    breakdown: Optional[MatchBreakdown] = None
    explanation: str = ""

    @field_validator("explanation", mode="before")
    @classmethod
    def _none_explanation(cls, value: Any) -> Any:
        return "" if value is None else value


# ---------------------------------------------------------------------------
# AI requests
# ---------------------------------------------------------------------------


@dataclass
class AnalyzeJobRequest:
    job_description: str
    target_language: TargetLanguage = TargetLanguage.EN


@dataclass
class SelectBulletsRequest:
    job_analysis: JobAnalysis
    available_bullets: List[Bullet]
    max_bullets: int = 15
    target_language: TargetLanguage = TargetLanguage.EN


@dataclass
class TailorBulletRequest:
    bullet: Bullet
    job_analysis: JobAnalysis
    target_language: TargetLanguage = TargetLanguage.EN
    style: str = "professional"


@dataclass
class GenerateSummaryRequest:
    user: User
    job_analysis: JobAnalysis
    selected_bullets: List[TailoredBullet] = field(default_factory=list)
    target_language: TargetLanguage = TargetLanguage.EN


@dataclass
class ScoreMatchRequest:
    job_analysis: JobAnalysis
    resume: ResumeContent
    user_skills: List[Skill] = field(default_factory=list)


# ---------------------------------------------------------------------------
# AI capability set
# ---------------------------------------------------------------------------


@runtime_checkable
class AIProvider(Protocol):
    """The five AI operations the orchestrator sequences."""

    async def analyze_job(self, request: AnalyzeJobRequest) -> JobAnalysis: ...

    async def select_bullets(self, request: SelectBulletsRequest) -> BulletSelection: ...

    async def tailor_bullet(self, request: TailorBulletRequest) -> TailoredBulletResult: ...

    async def generate_summary(self, request: GenerateSummaryRequest) -> SummaryResult: ...

    async def score_match(self, request: ScoreMatchRequest) -> MatchScore: ...

    async def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Persistence boundary
# ---------------------------------------------------------------------------


@dataclass
class ListOptions:
    limit: int = 50
    offset: int = 0


@runtime_checkable
class UserRepository(Protocol):
    async def create_user(self, user: User) -> None: ...
    async def get_user(self, user_id: str) -> Optional[User]: ...
    async def update_user(self, user: User) -> None: ...


@runtime_checkable
class ExperienceRepository(Protocol):
    async def create_experience(self, experience: Experience) -> None: ...
    async def get_experience(self, experience_id: str) -> Optional[Experience]: ...
    async def list_experiences(self, user_id: str) -> List[Experience]: ...
    async def update_experience(self, experience: Experience) -> None: ...
    async def delete_experience(self, experience_id: str) -> bool: ...


@runtime_checkable
class BulletRepository(Protocol):
    async def create_bullet(self, bullet: Bullet) -> None: ...
    async def get_bullet(self, bullet_id: str) -> Optional[Bullet]: ...
    async def list_bullets_by_experience(self, experience_id: str) -> List[Bullet]: ...
    async def list_bullets_by_ids(self, bullet_ids: List[str]) -> List[Bullet]: ...
    async def list_bullets_by_user(self, user_id: str) -> List[Bullet]: ...
    async def search_bullets(self, user_id: str, keywords: List[str]) -> List[Bullet]: ...
    async def list_high_impact_bullets(self, user_id: str, min_score: int, limit: int) -> List[Bullet]: ...
    async def update_bullet(self, bullet: Bullet) -> None: ...
    async def delete_bullet(self, bullet_id: str) -> bool: ...


@runtime_checkable
class SkillRepository(Protocol):
    async def create_skill(self, skill: Skill) -> None: ...
    async def list_skills(self, user_id: str) -> List[Skill]: ...
    async def update_skill(self, skill: Skill) -> None: ...
    async def delete_skill(self, skill_id: str) -> bool: ...


@runtime_checkable
class ResumeRepository(Protocol):
    async def create_resume(self, resume: Resume) -> None: ...
    async def get_resume(self, resume_id: str) -> Optional[Resume]: ...
    async def list_resumes(
        self,
        user_id: str,
        status: Optional[ResumeStatus] = None,
        options: Optional[ListOptions] = None,
    ) -> List[Resume]: ...
    async def update_resume(self, resume: Resume) -> None: ...
    async def delete_resume(self, resume_id: str) -> bool: ...


# ---------------------------------------------------------------------------
# Collaborators outside the tailoring core
# ---------------------------------------------------------------------------


@runtime_checkable
class PDFRenderer(Protocol):
    async def render(self, html: str, options: Optional[Dict[str, Any]] = None) -> bytes: ...


@runtime_checkable
class JobParser(Protocol):
    async def parse_url(self, url: str) -> str: ...


@runtime_checkable
class TokenVerifier(Protocol):
    async def verify(self, token: str) -> Dict[str, Any]: ...


@runtime_checkable
class FileStorage(Protocol):
    async def store(self, key: str, content: bytes, content_type: str = "application/pdf") -> str: ...
