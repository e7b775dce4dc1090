"""Tolerant JSON extraction for free-text model answers.

Models wrap JSON in prose, reasoning and several fenced blocks. The answer is
assumed to be the *last* fenced block; without fences, the outermost
``{ ... }`` slice is used.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from resume_tailor.domain.errors import MalformedOutputError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_FENCE_RE = re.compile(r"```[ \t]*([A-Za-z0-9_-]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)


def fenced_blocks(raw: str) -> List[str]:
    """Bodies of every fenced code block, in order, fences stripped."""
    return [match.group(2).strip() for match in _FENCE_RE.finditer(raw or "")]


def brace_slice(raw: str) -> str:
    """Substring from the first ``{`` to the last ``}`` inclusive, or ``""``."""
    raw = raw or ""
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return ""
    return raw[start : end + 1]


def extract_json(raw: str) -> str:
    """Return the JSON candidate text from a raw model response.

    Raises:
        MalformedOutputError: no fenced block and no brace pair found.
    """
    blocks = fenced_blocks(raw)
    if blocks:
        return blocks[-1]

    candidate = brace_slice(raw)
    if candidate:
        return candidate

    raise MalformedOutputError("no JSON object found in AI response", raw=raw or "")


def parse_json(raw: str) -> Any:
    """Extract and parse JSON, falling back to the outer brace slice when the
    last fenced block is not valid JSON."""
    candidate = extract_json(raw)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as first_error:
        fallback = brace_slice(raw)
        if fallback and fallback != candidate:
            try:
                return json.loads(fallback)
            except json.JSONDecodeError:
                pass
        logger.debug("Unparseable AI response: %s", raw[:500] if raw else "")
        raise MalformedOutputError(
            "AI response is not valid JSON",
            raw=raw or "",
            details={"position": first_error.pos},
        ) from first_error


def decode_json(raw: str, model: Type[M]) -> M:
    """Extract, parse and validate a model answer against a pydantic schema."""
    data = parse_json(raw)
    if not isinstance(data, dict):
        raise MalformedOutputError(
            f"expected a JSON object for {model.__name__}, got {type(data).__name__}",
            raw=raw or "",
        )
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise MalformedOutputError(
            f"AI response does not match {model.__name__}",
            raw=raw or "",
            details={"errors": [".".join(str(p) for p in err["loc"]) for err in exc.errors()]},
        ) from exc
