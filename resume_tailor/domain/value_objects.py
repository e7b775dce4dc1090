"""Bounded value objects and enumerations used across the domain.

Scores are frozen dataclasses validated on construction, so an out-of-range
instance cannot exist.
"""

from __future__ import annotations

import math
import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import ClassVar, Iterable, List, Type, Union

from .errors import (
    InvalidDateFormat,
    InvalidExperienceType,
    InvalidImpactScore,
    InvalidLanguageProficiency,
    InvalidMatchScore,
    InvalidProficiencyLevel,
    InvalidTargetLanguage,
    ValidationError,
)

SCORE_MIN = 0
SCORE_MAX = 100

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def normalize_terms(items: Iterable[str]) -> List[str]:
    """Strip, drop blanks and de-duplicate case-insensitively, keeping order."""
    seen = set()
    result: List[str] = []
    for item in items or []:
        if not isinstance(item, str):
            continue
        term = item.strip()
        if not term or term.lower() in seen:
            continue
        seen.add(term.lower())
        result.append(term)
    return result


def mentions_term(text: str, term: str) -> bool:
    """Case-insensitive whole-term match; "Go" does not match "Good", "C++" matches "C++"."""
    term = (term or "").strip()
    if not term:
        return False
    pattern = rf"(?<![\w+#]){re.escape(term)}(?![\w+#])"
    return re.search(pattern, text or "", re.IGNORECASE) is not None


# ---------------------------------------------------------------------------
# Bounded scores
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class BoundedScore:
    """Integer in [0, 100]."""

    value: int

    error_type: ClassVar[Type[ValidationError]] = ValidationError

    def __post_init__(self) -> None:
        value = self.value
        if isinstance(value, bool) or not isinstance(value, int):
            raise self.error_type(f"must be an integer between {SCORE_MIN} and {SCORE_MAX}, got {value!r}")
        if value < SCORE_MIN or value > SCORE_MAX:
            raise self.error_type(f"must be between {SCORE_MIN} and {SCORE_MAX}, got {value}")

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, order=True)
class ImpactScore(BoundedScore):
    """Perceived strength of a bullet."""

    error_type: ClassVar[Type[ValidationError]] = InvalidImpactScore

    @classmethod
    def default(cls) -> "ImpactScore":
        return cls(50)


@dataclass(frozen=True, order=True)
class ProficiencyLevel(BoundedScore):
    error_type: ClassVar[Type[ValidationError]] = InvalidProficiencyLevel

    @classmethod
    def default(cls) -> "ProficiencyLevel":
        return cls(50)


@dataclass(frozen=True, order=True)
class MatchScore(BoundedScore):
    """How well an assembled resume fits one job."""

    error_type: ClassVar[Type[ValidationError]] = InvalidMatchScore

    @classmethod
    def default(cls) -> "MatchScore":
        return cls(0)

    @classmethod
    def clamped(cls, raw: Union[int, float]) -> "MatchScore":
        """Round and clamp a numeric model answer into range."""
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not math.isfinite(raw):
            raise InvalidMatchScore(f"score must be numeric, got {raw!r}")
        return cls(int(max(SCORE_MIN, min(SCORE_MAX, round(raw)))))


# ---------------------------------------------------------------------------
# Date
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class Date:
    """A calendar date without time of day. ``date.min`` is the zero value."""

    value: date = date.min

    @classmethod
    def of(cls, year: int, month: int, day: int) -> "Date":
        try:
            return cls(date(year, month, day))
        except ValueError as exc:
            raise InvalidDateFormat(str(exc)) from exc

    @classmethod
    def zero(cls) -> "Date":
        return cls()

    @classmethod
    def parse(cls, text: str) -> "Date":
        if not isinstance(text, str) or not _DATE_RE.match(text.strip()):
            raise InvalidDateFormat(details={"value": str(text)})
        try:
            return cls(date.fromisoformat(text.strip()))
        except ValueError as exc:
            raise InvalidDateFormat(details={"value": text}) from exc

    @classmethod
    def coerce(cls, value: Union["Date", date, str]) -> "Date":
        if isinstance(value, Date):
            return value
        if isinstance(value, datetime):
            return cls(value.date())
        if isinstance(value, date):
            return cls(value)
        return cls.parse(value)

    def is_zero(self) -> bool:
        return self.value == date.min

    def before(self, other: "Date") -> bool:
        return self.value < other.value

    def after(self, other: "Date") -> bool:
        return self.value > other.value

    def __str__(self) -> str:
        return self.value.strftime("%Y-%m-%d") if not self.is_zero() else ""


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ExperienceType(str, Enum):
    WORK = "work"
    EDUCATION = "education"
    CERTIFICATION = "certification"
    PROJECT = "project"
    FREELANCE = "freelance"
    VOLUNTEER = "volunteer"
    OPEN_SOURCE = "open_source"
    HACKATHON = "hackathon"
    SIDE_PROJECT = "side_project"
    EVENT_ORGANIZATION = "event_organization"
    PUBLICATION = "publication"
    AWARD = "award"

    @classmethod
    def parse(cls, value: Union[str, "ExperienceType"]) -> "ExperienceType":
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidExperienceType(details={"value": str(value)}) from exc


class LanguageProficiency(str, Enum):
    NATIVE = "native"
    FLUENT = "fluent"
    ADVANCED = "advanced"
    INTERMEDIATE = "intermediate"
    BASIC = "basic"

    @classmethod
    def parse(cls, value: Union[str, "LanguageProficiency"]) -> "LanguageProficiency":
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidLanguageProficiency(details={"value": str(value)}) from exc


class TargetLanguage(str, Enum):
    """Output language of generated resume text."""

    EN = "en"
    PT_BR = "pt-br"

    @classmethod
    def parse(cls, value: Union[str, "TargetLanguage"]) -> "TargetLanguage":
        if isinstance(value, str):
            value = value.strip().lower()
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidTargetLanguage(details={"value": str(value)}) from exc

    @property
    def display_name(self) -> str:
        return {"en": "English", "pt-br": "Brazilian Portuguese"}[self.value]
