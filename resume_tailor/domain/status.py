"""Resume lifecycle states and the single table of legal transitions."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Union

from .errors import InvalidResumeStatus


class ResumeStatus(str, Enum):
    DRAFT = "draft"
    GENERATED = "generated"
    REVIEWED = "reviewed"
    SUBMITTED = "submitted"
    INTERVIEW = "interview"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: Union[str, "ResumeStatus"]) -> "ResumeStatus":
        if isinstance(value, str):
            value = value.strip().lower()
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidResumeStatus(details={"value": str(value)}) from exc

    def is_terminal(self) -> bool:
        return not TRANSITIONS[self]


TRANSITIONS: Dict[ResumeStatus, FrozenSet[ResumeStatus]] = {
    ResumeStatus.DRAFT: frozenset({ResumeStatus.GENERATED}),
    ResumeStatus.GENERATED: frozenset({ResumeStatus.REVIEWED, ResumeStatus.DRAFT}),
    ResumeStatus.REVIEWED: frozenset({ResumeStatus.SUBMITTED, ResumeStatus.GENERATED}),
    ResumeStatus.SUBMITTED: frozenset({ResumeStatus.INTERVIEW, ResumeStatus.REJECTED}),
    ResumeStatus.INTERVIEW: frozenset({ResumeStatus.ACCEPTED, ResumeStatus.REJECTED}),
    ResumeStatus.ACCEPTED: frozenset(),
    ResumeStatus.REJECTED: frozenset(),
}

# States from which the tailoring pipeline may (re)generate content.
GENERATION_STATES: FrozenSet[ResumeStatus] = frozenset({ResumeStatus.DRAFT, ResumeStatus.GENERATED})


def allowed_transitions(current: Union[str, ResumeStatus]) -> FrozenSet[ResumeStatus]:
    return TRANSITIONS[ResumeStatus.parse(current)]


def can_transition(current: Union[str, ResumeStatus], target: Union[str, ResumeStatus]) -> bool:
    return ResumeStatus.parse(target) in allowed_transitions(current)
