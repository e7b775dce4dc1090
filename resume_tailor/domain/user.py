"""Profile data the summary step writes from."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .value_objects import TargetLanguage, new_id, utcnow


@dataclass
class User:
    id: str = field(default_factory=new_id)
    name: Optional[str] = None
    email: Optional[str] = None
    headline: Optional[str] = None
    summary: Optional[str] = None
    location: Optional[str] = None
    preferred_language: TargetLanguage = TargetLanguage.EN
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.preferred_language = TargetLanguage.parse(self.preferred_language)

    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.email:
            return self.email
        return "Professional"

    def set_name(self, name: Optional[str]) -> None:
        self.name = (name or "").strip() or None
        self._touch()

    def set_email(self, email: Optional[str]) -> None:
        self.email = (email or "").strip() or None
        self._touch()

    def _touch(self) -> None:
        self.updated_at = utcnow()
