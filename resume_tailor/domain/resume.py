"""Resume aggregate and the tailored content it carries."""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .errors import EmptyJobDescription, InvalidStatusTransition, ValidationErrors
from .status import GENERATION_STATES, TRANSITIONS, ResumeStatus
from .value_objects import MatchScore, TargetLanguage, new_id, utcnow

# ---------------------------------------------------------------------------
# Generated content
# ---------------------------------------------------------------------------


@dataclass
class TailoredBullet:
    bullet_id: str
    original_content: str
    tailored_content: str
    keywords: List[str] = field(default_factory=list)


@dataclass
class TailoredExperience:
    experience_id: str
    title: str
    organization: str
    start_date: str
    end_date: Optional[str] = None
    is_current: bool = False
    bullets: List[TailoredBullet] = field(default_factory=list)


@dataclass
class ResumeAnalysis:
    matched_keywords: List[str] = field(default_factory=list)
    missing_keywords: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    strength_areas: List[str] = field(default_factory=list)
    improvement_areas: List[str] = field(default_factory=list)


@dataclass
class ResumeContent:
    """Assembled output of one tailoring run."""

    summary: str
    experiences: List[TailoredExperience] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    analysis: Optional[ResumeAnalysis] = None

    def tailored_bullets(self) -> List[TailoredBullet]:
        return [b for exp in self.experiences for b in exp.bullets]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResumeContent":
        experiences = [
            TailoredExperience(
                **{k: v for k, v in exp.items() if k != "bullets"},
                bullets=[TailoredBullet(**b) for b in exp.get("bullets", [])],
            )
            for exp in data.get("experiences", [])
        ]
        analysis = data.get("analysis")
        return cls(
            summary=data.get("summary", ""),
            experiences=experiences,
            skills=list(data.get("skills", [])),
            analysis=ResumeAnalysis(**analysis) if analysis else None,
        )


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


@dataclass
class Resume:
    """A resume tailored to one job application.

    ``job_description`` is a snapshot taken at creation and cannot be
    reassigned afterwards.
    """

    user_id: str
    job_description: str
    id: str = field(default_factory=new_id)
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    job_url: Optional[str] = None
    target_language: TargetLanguage = TargetLanguage.EN
    selected_bullets: List[str] = field(default_factory=list)
    generated_content: Optional[ResumeContent] = None
    pdf_url: Optional[str] = None
    score: MatchScore = field(default_factory=MatchScore.default)
    notes: Optional[str] = None
    status: ResumeStatus = ResumeStatus.DRAFT
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.target_language = TargetLanguage.parse(self.target_language)
        self.status = ResumeStatus.parse(self.status)
        if not isinstance(self.score, MatchScore):
            self.score = MatchScore(self.score)

    @classmethod
    def create(
        cls,
        user_id: str,
        job_description: str,
        target_language: Union[TargetLanguage, str] = TargetLanguage.EN,
        **kwargs: Any,
    ) -> "Resume":
        """New draft resume for a job description."""
        resume = cls(user_id=user_id, job_description=job_description, target_language=target_language, **kwargs)
        resume.validate()
        return resume

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "job_description":
            if "job_description" in self.__dict__:
                raise AttributeError("job_description is immutable once the resume is created")
            if not isinstance(value, str) or not value.strip():
                raise EmptyJobDescription()
        super().__setattr__(name, value)

    # -- validation ----------------------------------------------------------

    def validate(self) -> None:
        errors = ValidationErrors()
        if not self.user_id:
            errors.add_field_error("user_id", "user ID is required")
        if not self.job_description.strip():
            errors.add(EmptyJobDescription())
        errors.raise_if_any()

    # -- mutations -----------------------------------------------------------

    def set_job_details(
        self,
        title: Optional[str] = None,
        company: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        if title:
            self.job_title = title
        if company:
            self.company_name = company
        if url:
            self.job_url = url
        self._touch()

    def select_bullets(self, bullet_ids: List[str]) -> None:
        self.selected_bullets = list(dict.fromkeys(bullet_ids))
        self._touch()

    def add_selected_bullet(self, bullet_id: str) -> None:
        if bullet_id in self.selected_bullets:
            return
        self.selected_bullets.append(bullet_id)
        self._touch()

    def remove_selected_bullet(self, bullet_id: str) -> bool:
        if bullet_id not in self.selected_bullets:
            return False
        self.selected_bullets.remove(bullet_id)
        self._touch()
        return True

    def set_generated_content(self, content: ResumeContent) -> None:
        """Store generated content; implicitly moves the resume to ``generated``."""
        if self.status not in GENERATION_STATES:
            raise InvalidStatusTransition(
                f"cannot generate content while resume is {self.status.value}",
                details={"from": self.status.value, "to": ResumeStatus.GENERATED.value},
            )
        self.generated_content = content
        self.status = ResumeStatus.GENERATED
        self._touch()

    def set_score(self, score: Union[int, MatchScore]) -> None:
        self.score = score if isinstance(score, MatchScore) else MatchScore(score)
        self._touch()

    def set_pdf_url(self, url: str) -> None:
        self.pdf_url = url
        self._touch()

    def set_notes(self, notes: Optional[str]) -> None:
        self.notes = notes
        self._touch()

    def transition_status(self, new_status: Union[str, ResumeStatus]) -> None:
        target = ResumeStatus.parse(new_status)
        if target not in TRANSITIONS[self.status]:
            raise InvalidStatusTransition(
                f"cannot move resume from {self.status.value} to {target.value}",
                details={"from": self.status.value, "to": target.value},
            )
        self.status = target
        self._touch()

    # -- queries -------------------------------------------------------------

    def is_draft(self) -> bool:
        return self.status is ResumeStatus.DRAFT

    def is_generated(self) -> bool:
        return self.status in (ResumeStatus.GENERATED, ResumeStatus.REVIEWED)

    def is_submitted(self) -> bool:
        return self.status in (
            ResumeStatus.SUBMITTED,
            ResumeStatus.INTERVIEW,
            ResumeStatus.REJECTED,
            ResumeStatus.ACCEPTED,
        )

    def can_generate_pdf(self) -> bool:
        return self.generated_content is not None and self.is_generated()

    def job_display_name(self) -> str:
        if self.job_title and self.company_name:
            return f"{self.job_title} at {self.company_name}"
        if self.job_title:
            return self.job_title
        if self.company_name:
            return f"Position at {self.company_name}"
        return "Untitled Resume"

    def snapshot(self) -> "Resume":
        """Independent deep copy, used to stage changes before committing them."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "job_description": self.job_description,
            "job_title": self.job_title,
            "company_name": self.company_name,
            "job_url": self.job_url,
            "target_language": self.target_language.value,
            "selected_bullets": list(self.selected_bullets),
            "generated_content": self.generated_content.to_dict() if self.generated_content else None,
            "pdf_url": self.pdf_url,
            "score": int(self.score),
            "notes": self.notes,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def _touch(self) -> None:
        self.updated_at = utcnow()
