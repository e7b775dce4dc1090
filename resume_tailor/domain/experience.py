"""Experience: a work/education/project entry that owns bullets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .bullet import Bullet
from .errors import CurrentWithEndDate, InvalidDateRange, ValidationErrors
from .value_objects import Date, ExperienceType, new_id, utcnow


@dataclass
class Experience:
    user_id: str
    type: ExperienceType
    title: str
    organization: str
    start_date: Date
    id: str = field(default_factory=new_id)
    location: Optional[str] = None
    end_date: Optional[Date] = None
    is_current: bool = False
    description: Optional[str] = None
    url: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    display_order: int = 0
    bullets: List[Bullet] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.type = ExperienceType.parse(self.type)
        self.start_date = Date.coerce(self.start_date)
        if self.end_date is not None:
            self.end_date = Date.coerce(self.end_date)
        if self._has_end_date() and self.end_date.before(self.start_date):
            raise InvalidDateRange()
        if self.is_current and self._has_end_date():
            raise CurrentWithEndDate()

    @classmethod
    def create(
        cls,
        user_id: str,
        type: Union[ExperienceType, str],
        title: str,
        organization: str,
        start_date: Union[Date, str],
        **kwargs: Any,
    ) -> "Experience":
        """Build and fully validate a new experience."""
        experience = cls(
            user_id=user_id,
            type=type,
            title=title,
            organization=organization,
            start_date=start_date,
            **kwargs,
        )
        experience.validate()
        return experience

    def validate(self) -> None:
        """Collect every field problem into a single ValidationErrors."""
        errors = ValidationErrors()
        if not self.user_id:
            errors.add_field_error("user_id", "user ID is required")
        if not (self.title or "").strip():
            errors.add_field_error("title", "title is required")
        if not (self.organization or "").strip():
            errors.add_field_error("organization", "organization is required")
        if self.start_date.is_zero():
            errors.add_field_error("start_date", "start date is required")
        if self._has_end_date() and self.end_date.before(self.start_date):
            errors.add(InvalidDateRange())
        if self.is_current and self._has_end_date():
            errors.add(CurrentWithEndDate())
        errors.raise_if_any()

    def set_end_date(self, end_date: Optional[Union[Date, str]]) -> None:
        """Set (or clear) the end date; a set end date ends the experience."""
        parsed = Date.coerce(end_date) if end_date is not None else None
        if parsed is not None and not parsed.is_zero() and parsed.before(self.start_date):
            raise InvalidDateRange()
        self.end_date = parsed
        if parsed is not None and not parsed.is_zero():
            self.is_current = False
        self._touch()

    def mark_as_current(self) -> None:
        self.is_current = True
        self.end_date = None
        self._touch()

    def add_bullet(self, bullet: Bullet) -> None:
        bullet.experience_id = self.id
        self.bullets.append(bullet)
        self._touch()

    def duration_months(self) -> int:
        """Length in whole months, or -1 while ongoing."""
        if self.is_current or not self._has_end_date():
            return -1
        start, end = self.start_date.value, self.end_date.value
        months = (end.year - start.year) * 12 + (end.month - start.month)
        return max(months, 0)

    def end_date_label(self) -> Optional[str]:
        return str(self.end_date) if self._has_end_date() else None

    def sort_key(self):
        """Display order first, then most recent start date."""
        return (self.display_order, -self.start_date.value.toordinal())

    def _has_end_date(self) -> bool:
        return self.end_date is not None and not self.end_date.is_zero()

    def _touch(self) -> None:
        self.updated_at = utcnow()
