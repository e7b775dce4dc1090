"""Pure domain layer: value objects, entities, resume state machine, errors.

Nothing in here imports from other ``resume_tailor`` sub-packages.
"""

from .bullet import Bullet
from .errors import (
    GENERIC_FAILURE_MESSAGE,
    AIServiceUnavailable,
    BulletNotFound,
    CurrentWithEndDate,
    DomainError,
    EmptyBulletContent,
    EmptyJobDescription,
    EmptySkillName,
    ErrorKind,
    ExperienceNotFound,
    ExternalServiceError,
    InvalidDateFormat,
    InvalidAuthToken,
    InvalidDateRange,
    InvalidExperienceType,
    InvalidImpactScore,
    InvalidLanguageProficiency,
    InvalidMatchScore,
    InvalidProficiencyLevel,
    InvalidResumeStatus,
    InvalidStatusTransition,
    InvalidTargetLanguage,
    JobParserUnavailable,
    MalformedOutputError,
    NoBulletsAvailable,
    NotFoundError,
    PDFServiceUnavailable,
    ResumeNotFound,
    ResumeNotReady,
    StateError,
    UserNotFound,
    ValidationError,
    ValidationErrors,
)
from .experience import Experience
from .resume import Resume, ResumeAnalysis, ResumeContent, TailoredBullet, TailoredExperience
from .skill import Skill, SpokenLanguage
from .status import GENERATION_STATES, TRANSITIONS, ResumeStatus, allowed_transitions, can_transition
from .user import User
from .value_objects import (
    Date,
    ExperienceType,
    ImpactScore,
    LanguageProficiency,
    MatchScore,
    ProficiencyLevel,
    TargetLanguage,
)

__all__ = [
    "AIServiceUnavailable",
    "Bullet",
    "BulletNotFound",
    "CurrentWithEndDate",
    "Date",
    "DomainError",
    "EmptyBulletContent",
    "EmptyJobDescription",
    "EmptySkillName",
    "ErrorKind",
    "Experience",
    "ExperienceNotFound",
    "ExperienceType",
    "ExternalServiceError",
    "GENERATION_STATES",
    "GENERIC_FAILURE_MESSAGE",
    "ImpactScore",
    "InvalidDateFormat",
    "InvalidAuthToken",
    "InvalidDateRange",
    "InvalidExperienceType",
    "InvalidImpactScore",
    "InvalidLanguageProficiency",
    "InvalidMatchScore",
    "InvalidProficiencyLevel",
    "InvalidResumeStatus",
    "InvalidStatusTransition",
    "InvalidTargetLanguage",
    "JobParserUnavailable",
    "LanguageProficiency",
    "MalformedOutputError",
    "MatchScore",
    "NoBulletsAvailable",
    "NotFoundError",
    "PDFServiceUnavailable",
    "ProficiencyLevel",
    "Resume",
    "ResumeAnalysis",
    "ResumeContent",
    "ResumeNotFound",
    "ResumeNotReady",
    "ResumeStatus",
    "Skill",
    "SpokenLanguage",
    "StateError",
    "TRANSITIONS",
    "TailoredBullet",
    "TailoredExperience",
    "TargetLanguage",
    "User",
    "UserNotFound",
    "ValidationError",
    "ValidationErrors",
    "allowed_transitions",
    "can_transition",
]
