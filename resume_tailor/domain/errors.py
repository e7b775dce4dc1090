"""Error taxonomy shared by every layer.

Every error raised on purpose by the package derives from :class:`DomainError`
and carries a stable ``code`` (for logs and metrics) and a ``kind`` that tells a
caller how to react:

* ``validation`` -- malformed input, never retryable.
* ``not_found`` / ``state`` -- missing aggregate or illegal transition.
* ``service_unavailable`` -- a backend kept failing after internal retries.
* ``malformed_output`` -- the backend answered but the answer could not be
  coerced into the expected structure.

Backend-specific error text is kept out of :attr:`DomainError.public_message`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

GENERIC_FAILURE_MESSAGE = "could not generate tailored resume, please retry"


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STATE = "state"
    SERVICE_UNAVAILABLE = "service_unavailable"
    MALFORMED_OUTPUT = "malformed_output"


class DomainError(Exception):
    """Base class with code/field/details mapping."""

    kind: ErrorKind = ErrorKind.VALIDATION
    default_code: str = "DOMAIN_ERROR"
    default_message: str = "domain error"
    default_field: Optional[str] = None
    retryable: bool = False

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.field = field if field is not None else self.default_field
        self.details = details or {}
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message

    @property
    def public_message(self) -> str:
        """Message that is safe to show to an end user."""
        return str(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "kind": self.kind.value,
                "message": self.public_message,
                "details": self.details,
            }
        }


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(DomainError):
    kind = ErrorKind.VALIDATION
    default_code = "VALIDATION_ERROR"
    default_message = "validation error"


class InvalidImpactScore(ValidationError):
    default_code = "INVALID_IMPACT_SCORE"
    default_message = "impact score must be between 0 and 100"
    default_field = "impact_score"


class InvalidProficiencyLevel(ValidationError):
    default_code = "INVALID_PROFICIENCY_LEVEL"
    default_message = "proficiency level must be between 0 and 100"
    default_field = "proficiency_level"


class InvalidMatchScore(ValidationError):
    default_code = "INVALID_MATCH_SCORE"
    default_message = "match score must be between 0 and 100"
    default_field = "score"


class InvalidDateFormat(ValidationError):
    default_code = "INVALID_DATE_FORMAT"
    default_message = "invalid date format, expected YYYY-MM-DD"


class InvalidDateRange(ValidationError):
    default_code = "INVALID_DATE_RANGE"
    default_message = "end date must be after start date"
    default_field = "end_date"


class CurrentWithEndDate(ValidationError):
    default_code = "CURRENT_WITH_END_DATE"
    default_message = "current experience cannot have an end date"
    default_field = "is_current"


class InvalidExperienceType(ValidationError):
    default_code = "INVALID_EXPERIENCE_TYPE"
    default_message = "invalid experience type"
    default_field = "type"


class EmptyBulletContent(ValidationError):
    default_code = "EMPTY_BULLET_CONTENT"
    default_message = "bullet content cannot be empty"
    default_field = "content"


class EmptySkillName(ValidationError):
    default_code = "EMPTY_SKILL_NAME"
    default_message = "skill name cannot be empty"
    default_field = "name"


class InvalidLanguageProficiency(ValidationError):
    default_code = "INVALID_LANGUAGE_PROFICIENCY"
    default_message = "invalid language proficiency level"
    default_field = "proficiency"


class EmptyJobDescription(ValidationError):
    default_code = "EMPTY_JOB_DESCRIPTION"
    default_message = "job description cannot be empty"
    default_field = "job_description"


class InvalidTargetLanguage(ValidationError):
    default_code = "INVALID_TARGET_LANGUAGE"
    default_message = "target language must be 'en' or 'pt-br'"
    default_field = "target_language"


class ValidationErrors(ValidationError):
    """Collects several field errors and raises them as one."""

    default_code = "VALIDATION_ERRORS"

    def __init__(self, errors: Optional[List[ValidationError]] = None) -> None:
        self.errors: List[ValidationError] = list(errors or [])
        super().__init__(self._combined_message())
        if self.errors:
            self._refresh()

    def _combined_message(self) -> str:
        if not self.errors:
            return "no validation errors"
        if len(self.errors) == 1:
            return str(self.errors[0])
        return "multiple validation errors: " + "; ".join(str(e) for e in self.errors)

    def add(self, error: ValidationError) -> None:
        self.errors.append(error)
        self._refresh()

    def add_field_error(self, field: str, message: str) -> None:
        self.add(ValidationError(message, field=field))

    def has_errors(self) -> bool:
        return bool(self.errors)

    def raise_if_any(self) -> None:
        if self.errors:
            raise self

    def _refresh(self) -> None:
        self.message = self._combined_message()
        self.details = {"fields": {e.field or "_": e.message for e in self.errors}}
        self.args = (self.message,)


# ---------------------------------------------------------------------------
# Not found / state
# ---------------------------------------------------------------------------


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    default_code = "NOT_FOUND"
    default_message = "resource not found"


class ResumeNotFound(NotFoundError):
    default_code = "RESUME_NOT_FOUND"
    default_message = "resume not found"


class BulletNotFound(NotFoundError):
    default_code = "BULLET_NOT_FOUND"
    default_message = "bullet not found"


class ExperienceNotFound(NotFoundError):
    default_code = "EXPERIENCE_NOT_FOUND"
    default_message = "experience not found"


class UserNotFound(NotFoundError):
    default_code = "USER_NOT_FOUND"
    default_message = "user not found"


class StateError(DomainError):
    kind = ErrorKind.STATE
    default_code = "INVALID_STATE"
    default_message = "operation not allowed in the current state"


class InvalidResumeStatus(StateError):
    default_code = "INVALID_RESUME_STATUS"
    default_message = "invalid resume status"
    default_field = "status"


class InvalidStatusTransition(StateError):
    default_code = "INVALID_STATUS_TRANSITION"
    default_message = "invalid status transition"
    default_field = "status"


class NoBulletsAvailable(StateError):
    default_code = "NO_BULLETS_AVAILABLE"
    default_message = "no bullets available for resume generation"


class ResumeNotReady(StateError):
    default_code = "RESUME_NOT_READY"
    default_message = "resume has no generated content to render"


class InvalidAuthToken(ValidationError):
    default_code = "INVALID_AUTH_TOKEN"
    default_message = "authentication token could not be verified"
    default_field = "token"


# ---------------------------------------------------------------------------
# External services
# ---------------------------------------------------------------------------


class ExternalServiceError(DomainError):
    kind = ErrorKind.SERVICE_UNAVAILABLE
    default_code = "SERVICE_UNAVAILABLE"
    default_message = "external service is unavailable"
    retryable = True

    @property
    def public_message(self) -> str:
        return GENERIC_FAILURE_MESSAGE


class AIServiceUnavailable(ExternalServiceError):
    default_code = "AI_SERVICE_UNAVAILABLE"
    default_message = "AI service is unavailable"


class PDFServiceUnavailable(ExternalServiceError):
    default_code = "PDF_SERVICE_UNAVAILABLE"
    default_message = "PDF service is unavailable"


class JobParserUnavailable(ExternalServiceError):
    default_code = "JOB_PARSER_UNAVAILABLE"
    default_message = "job parser service is unavailable"


class MalformedOutputError(DomainError):
    """The backend answered, but not with something we can decode."""

    kind = ErrorKind.MALFORMED_OUTPUT
    default_code = "AI_MALFORMED_OUTPUT"
    default_message = "AI response could not be parsed"

    def __init__(self, message: Optional[str] = None, *, raw: str = "", **kwargs: Any) -> None:
        self.raw = raw
        super().__init__(message, **kwargs)

    @property
    def public_message(self) -> str:
        return GENERIC_FAILURE_MESSAGE
