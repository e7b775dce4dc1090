"""Shared fakes for core tests: a scripted chat provider and a deterministic AI port."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import pytest

from resume_tailor.core.ports import (
    AnalyzeJobRequest,
    BulletSelection,
    GenerateSummaryRequest,
    JobAnalysis,
    ScoreMatchRequest,
    SelectBulletsRequest,
    SummaryResult,
    TailorBulletRequest,
    TailoredBulletResult,
)
from resume_tailor.domain import Bullet, Experience, MatchScore, Skill, User
from resume_tailor.providers import GenerationConfig, LLMResponse, Message

KNOWN_TERMS = ("Go", "Kubernetes", "PostgreSQL", "Photoshop", "Python")


class RateLimitError(Exception):
    """Mimics an SDK status error carrying an HTTP status code."""

    def __init__(self, status_code: int = 429, message: str = "Error code: 429 - rate limit reached"):
        super().__init__(message)
        self.status_code = status_code


def _terms_in(text: str) -> List[str]:
    return [t for t in KNOWN_TERMS if re.search(rf"\b{re.escape(t)}\b", text)]


# ---------------------------------------------------------------------------
# Chat provider that answers the tailoring prompts with canned JSON
# ---------------------------------------------------------------------------


class ScriptedChatProvider:
    """Answers each tailoring prompt; can fail a number of times first.

    ``failures`` is a list of exceptions raised, in order, before any answer.
    With ``always_fail`` set, every call raises ``always_fail()``.
    """

    def __init__(
        self,
        failures: Optional[List[Exception]] = None,
        always_fail: Optional[Callable[[], Exception]] = None,
        score: Any = 82,
        wrap: Callable[[str], str] = lambda body: f"Here you go:\n```json\n{body}\n```",
        extra_ids: Optional[List[str]] = None,
    ):
        self.failures = list(failures or [])
        self.always_fail = always_fail
        self.score = score
        self.wrap = wrap
        self.extra_ids = list(extra_ids or [])
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    async def generate(self, messages: List[Message], config: GenerationConfig) -> LLMResponse:
        prompt = messages[-1].text
        self.calls.append({"prompt": prompt, "model": config.model, "temperature": config.temperature})
        if self.always_fail is not None:
            raise self.always_fail()
        if self.failures:
            raise self.failures.pop(0)
        return LLMResponse(text=self.wrap(json.dumps(self._answer(prompt))), usage={"total_tokens": 10})

    async def close(self) -> None:
        self.closed = True

    def _answer(self, prompt: str) -> Dict[str, Any]:
        if prompt.startswith("Analyze the following job description"):
            description = prompt.split("Job Description:", 1)[1].split("Write free-text", 1)[0]
            terms = _terms_in(description)
            return {
                "title": "Senior Go Engineer" if "Go" in terms else "Engineer",
                "company": "Acme",
                "required_skills": terms,
                "preferred_skills": None,
                "keywords": terms,
                "seniority_level": "senior",
                "years_experience": None,
                "summary": "Backend role.",
            }
        if prompt.startswith("Select the most relevant"):
            required = prompt.split("- Required Skills:", 1)[1].split("\n", 1)[0]
            wanted = set(_terms_in(required))
            ids = []
            for line in prompt.split("AVAILABLE BULLETS:", 1)[1].splitlines():
                match = re.match(r"\d+\. \[ID: ([^\]]+)\] (.*)", line)
                if match and wanted.intersection(_terms_in(match.group(2))):
                    ids.append(match.group(1))
            return {"selected_bullet_ids": self.extra_ids + ids, "reasoning": "skill overlap"}
        if prompt.startswith("Optimize one experience bullet"):
            original = prompt.split("ORIGINAL BULLET:\n", 1)[1].split("\n", 1)[0]
            return {"tailored_content": f"**Delivered** {original}", "keywords": _terms_in(original)}
        if prompt.startswith("Generate a professional summary"):
            return {"summary": "Backend engineer with **Go** and **PostgreSQL** experience."}
        if prompt.startswith("Score how well"):
            return {"score": self.score, "breakdown": {"skills": 90}, "explanation": "good fit"}
        raise AssertionError(f"unexpected prompt: {prompt[:60]}")


# ---------------------------------------------------------------------------
# Deterministic AI port (no prompts, no JSON)
# ---------------------------------------------------------------------------


class FakeAI:
    """In-process implementation of the AI port."""

    def __init__(self, extra_ids: Optional[List[str]] = None, score: int = 75, select_all: bool = False):
        self.extra_ids = list(extra_ids or [])
        self.score = score
        self.select_all = select_all
        self.calls: List[str] = []
        self.tailored_order: List[str] = []

    async def analyze_job(self, request: AnalyzeJobRequest) -> JobAnalysis:
        self.calls.append("analyze_job")
        terms = _terms_in(request.job_description)
        return JobAnalysis(title="Engineer", company="Acme", required_skills=terms, keywords=terms)

    async def select_bullets(self, request: SelectBulletsRequest) -> BulletSelection:
        self.calls.append("select_bullets")
        wanted = set(request.job_analysis.required_skills)
        ids = [
            b.id
            for b in request.available_bullets
            if self.select_all or wanted.intersection(_terms_in(b.content))
        ]
        return BulletSelection(selected_bullet_ids=self.extra_ids + ids, reasoning="overlap")

    async def tailor_bullet(self, request: TailorBulletRequest) -> TailoredBulletResult:
        self.calls.append("tailor_bullet")
        self.tailored_order.append(request.bullet.id)
        return TailoredBulletResult(
            original_id=request.bullet.id,
            tailored_content=f"Tailored: {request.bullet.content}",
            keywords=_terms_in(request.bullet.content),
        )

    async def generate_summary(self, request: GenerateSummaryRequest) -> SummaryResult:
        self.calls.append("generate_summary")
        return SummaryResult(summary=f"{len(request.selected_bullets)} achievements for {request.job_analysis.title}")

    async def score_match(self, request: ScoreMatchRequest) -> MatchScore:
        self.calls.append("score_match")
        return MatchScore(self.score)

    async def close(self) -> None:
        return None


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------


@dataclass
class Library:
    user: User
    backend_job: Experience
    design_job: Experience
    side_project: Experience
    go_bullet: Bullet
    photoshop_bullet: Bullet
    python_bullet: Bullet
    kubernetes_bullet: Bullet
    skills: List[Skill]

    @property
    def experiences(self) -> List[Experience]:
        return [self.backend_job, self.design_job, self.side_project]

    @property
    def bullets(self) -> List[Bullet]:
        return [self.go_bullet, self.photoshop_bullet, self.python_bullet, self.kubernetes_bullet]


def build_library() -> Library:
    user = User(id="u1", name="Ana Souza", headline="Backend Engineer")
    backend_job = Experience(
        id="exp-backend",
        user_id=user.id,
        type="work",
        title="Backend Engineer",
        organization="Acme",
        start_date="2021-03-01",
        is_current=True,
    )
    design_job = Experience(
        id="exp-design",
        user_id=user.id,
        type="work",
        title="Designer",
        organization="Studio",
        start_date="2016-01-01",
        end_date="2019-12-31",
    )
    side_project = Experience(
        id="exp-side",
        user_id=user.id,
        type="side_project",
        title="Maintainer",
        organization="OSS",
        start_date="2019-01-01",
    )
    go_bullet = Bullet(
        id="b-go",
        experience_id=backend_job.id,
        content="Built Go services on PostgreSQL handling 5k requests per second",
        impact_score=85,
    )
    photoshop_bullet = Bullet(
        id="b-ps",
        experience_id=design_job.id,
        content="Designed marketing banners in Photoshop",
    )
    python_bullet = Bullet(
        id="b-py",
        experience_id=backend_job.id,
        content="Automated reports with Python",
    )
    kubernetes_bullet = Bullet(
        id="b-k8s",
        experience_id=side_project.id,
        content="Maintained Kubernetes operators for PostgreSQL clusters",
    )
    skills = [
        Skill(user_id=user.id, name="Photoshop", proficiency_level=60),
        Skill(user_id=user.id, name="Go", proficiency_level=90),
        Skill(user_id=user.id, name="PostgreSQL", proficiency_level=80, is_highlighted=True),
    ]
    return Library(
        user=user,
        backend_job=backend_job,
        design_job=design_job,
        side_project=side_project,
        go_bullet=go_bullet,
        photoshop_bullet=photoshop_bullet,
        python_bullet=python_bullet,
        kubernetes_bullet=kubernetes_bullet,
        skills=skills,
    )


async def seed_store(store, library: Library) -> None:
    await store.create_user(library.user)
    for experience in library.experiences:
        await store.create_experience(experience)
    for bullet in library.bullets:
        await store.create_bullet(bullet)
    for skill in library.skills:
        await store.create_skill(skill)


@pytest.fixture
def library() -> Library:
    return build_library()


@pytest.fixture
def make_provider():
    return ScriptedChatProvider


@pytest.fixture
def make_fake_ai():
    return FakeAI


@pytest.fixture
def rate_limit_error():
    return RateLimitError


@pytest.fixture
def seed():
    return seed_store
