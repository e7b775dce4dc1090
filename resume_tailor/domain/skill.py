"""Skills and spoken languages: scoring inputs, never mutated by the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from .errors import EmptySkillName, ValidationError, ValidationErrors
from .value_objects import LanguageProficiency, ProficiencyLevel, new_id, utcnow

EXPERT_THRESHOLD = 80
BEGINNER_THRESHOLD = 30


@dataclass
class Skill:
    user_id: str
    name: str
    id: str = field(default_factory=new_id)
    category: Optional[str] = None
    proficiency_level: ProficiencyLevel = field(default_factory=ProficiencyLevel.default)
    years_of_experience: Optional[float] = None
    is_highlighted: bool = False
    display_order: int = 0
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.name = (self.name or "").strip()
        if not self.name:
            raise EmptySkillName()
        if not isinstance(self.proficiency_level, ProficiencyLevel):
            self.proficiency_level = ProficiencyLevel(self.proficiency_level)

    def validate(self) -> None:
        errors = ValidationErrors()
        if not self.user_id:
            errors.add_field_error("user_id", "user ID is required")
        if self.years_of_experience is not None and self.years_of_experience < 0:
            errors.add_field_error("years_of_experience", "cannot be negative")
        errors.raise_if_any()

    def set_proficiency(self, level: Union[int, ProficiencyLevel]) -> None:
        self.proficiency_level = level if isinstance(level, ProficiencyLevel) else ProficiencyLevel(level)

    def set_category(self, category: str) -> None:
        self.category = category or None

    def set_years_of_experience(self, years: float) -> None:
        self.years_of_experience = years if years and years > 0 else None

    def highlight(self) -> None:
        self.is_highlighted = True

    def unhighlight(self) -> None:
        self.is_highlighted = False

    def is_expert(self) -> bool:
        return int(self.proficiency_level) >= EXPERT_THRESHOLD

    def is_beginner(self) -> bool:
        return int(self.proficiency_level) < BEGINNER_THRESHOLD


@dataclass
class SpokenLanguage:
    user_id: str
    language: str
    proficiency: LanguageProficiency
    id: str = field(default_factory=new_id)
    display_order: int = 0
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.language = (self.language or "").strip()
        if not self.language:
            raise ValidationError("language is required", field="language")
        self.proficiency = LanguageProficiency.parse(self.proficiency)

    def is_native(self) -> bool:
        return self.proficiency is LanguageProficiency.NATIVE

    def is_fluent(self) -> bool:
        return self.proficiency in (LanguageProficiency.NATIVE, LanguageProficiency.FLUENT)
