"""Bullet: one atomic, independently selectable achievement statement."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Union

from .errors import EmptyBulletContent, ValidationErrors
from .value_objects import ImpactScore, new_id, normalize_terms, utcnow

HIGH_IMPACT_THRESHOLD = 70
LOW_IMPACT_THRESHOLD = 40


@dataclass
class Bullet:
    """A single achievement or responsibility belonging to an Experience.

    Attributes:
        experience_id: Owning experience
        content: Free text, never empty
        impact_score: 0-100 strength rating (default 50)
        keywords: Ordered, de-duplicated keyword set
        metadata: Free-form map
        display_order: Position inside the experience
    """

    experience_id: str
    content: str
    id: str = field(default_factory=new_id)
    impact_score: ImpactScore = field(default_factory=ImpactScore.default)
    keywords: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    display_order: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.content = _require_content(self.content)
        if not isinstance(self.impact_score, ImpactScore):
            self.impact_score = ImpactScore(self.impact_score)
        self.keywords = normalize_terms(self.keywords)

    @classmethod
    def create(cls, experience_id: str, content: str, **kwargs: Any) -> "Bullet":
        bullet = cls(experience_id=experience_id, content=content, **kwargs)
        bullet.validate()
        return bullet

    def validate(self) -> None:
        errors = ValidationErrors()
        if not self.experience_id:
            errors.add_field_error("experience_id", "experience ID is required")
        if not (self.content or "").strip():
            errors.add_field_error("content", "content is required")
        errors.raise_if_any()

    def update_content(self, content: str) -> None:
        self.content = _require_content(content)
        self._touch()

    def set_impact_score(self, score: Union[int, ImpactScore]) -> None:
        self.impact_score = score if isinstance(score, ImpactScore) else ImpactScore(score)
        self._touch()

    def set_keywords(self, keywords: List[str]) -> None:
        self.keywords = normalize_terms(keywords)
        self._touch()

    def add_keyword(self, keyword: str) -> None:
        if self.has_keyword(keyword):
            return
        self.keywords = normalize_terms([*self.keywords, keyword])
        self._touch()

    def has_keyword(self, keyword: str) -> bool:
        needle = (keyword or "").strip().lower()
        return any(k.lower() == needle for k in self.keywords)

    def is_high_impact(self) -> bool:
        return int(self.impact_score) >= HIGH_IMPACT_THRESHOLD

    def is_low_impact(self) -> bool:
        return int(self.impact_score) < LOW_IMPACT_THRESHOLD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "experience_id": self.experience_id,
            "content": self.content,
            "impact_score": int(self.impact_score),
            "keywords": list(self.keywords),
            "metadata": dict(self.metadata),
            "display_order": self.display_order,
        }

    def _touch(self) -> None:
        self.updated_at = utcnow()


def _require_content(content: str) -> str:
    text = content.strip() if isinstance(content, str) else ""
    if not text:
        raise EmptyBulletContent()
    return text
