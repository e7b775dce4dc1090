"""Observability for tailoring runs - logging and per-step metrics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure the package logger once; later calls only adjust the level."""
    root = logging.getLogger("resume_tailor")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
    root.setLevel(logging.INFO if verbose else logging.WARNING)
    return root


@dataclass
class PipelineEvent:
    """A single event in a tailoring run."""

    timestamp: datetime
    event_type: str  # "step_start", "step_end", "llm_request", "error"
    data: Dict[str, Any]
    duration_ms: Optional[float] = None
    tokens_used: Optional[int] = None


class PipelineObserver:
    """
    Collects events for one or more tailoring runs.

    Backend error text is never recorded; errors are reduced to their code
    and exception type.
    """

    def __init__(self, run_id: Optional[str] = None, verbose: bool = False):
        self.events: List[PipelineEvent] = []
        self.logger = logging.getLogger("resume_tailor.pipeline")
        self.run_id = run_id
        self.verbose = verbose

    def _prefix(self) -> str:
        return f"[{self.run_id}] " if self.run_id else ""

    def log_step_start(self, step: str) -> None:
        self.events.append(PipelineEvent(timestamp=datetime.now(), event_type="step_start", data={"step": step}))
        self.logger.info("%sStep %s started", self._prefix(), step)

    def log_step_end(self, step: str, duration_ms: float, success: bool = True) -> None:
        self.events.append(
            PipelineEvent(
                timestamp=datetime.now(),
                event_type="step_end",
                data={"step": step, "success": success},
                duration_ms=duration_ms,
            )
        )
        status = "completed" if success else "failed"
        self.logger.info("%sStep %s %s (%.2fms)", self._prefix(), step, status, duration_ms)

    def log_llm_request(
        self,
        operation: str,
        model: str,
        duration_ms: float,
        attempts: int = 1,
        tokens: Optional[int] = None,
    ) -> None:
        """
        Log one backend operation, including its retries.

        Args:
            operation: AI operation name (e.g. "analyze_job")
            model: Model used for the request
            duration_ms: Wall time across all attempts
            attempts: Number of attempts made
            tokens: Total tokens reported by the provider, when known
        """
        self.events.append(
            PipelineEvent(
                timestamp=datetime.now(),
                event_type="llm_request",
                data={"operation": operation, "model": model, "attempts": attempts},
                duration_ms=duration_ms,
                tokens_used=tokens,
            )
        )
        self.logger.info(
            "%sLLM: %s | %s | attempts=%d | tokens=%s | %.2fms",
            self._prefix(),
            operation,
            model or "default",
            attempts,
            tokens if tokens is not None else "?",
            duration_ms,
        )

    def log_error(self, step: str, error: BaseException) -> None:
        code = str(getattr(error, "code", None) or "UNEXPECTED_ERROR")
        self.events.append(
            PipelineEvent(
                timestamp=datetime.now(),
                event_type="error",
                data={"step": step, "code": code, "error_type": type(error).__name__},
            )
        )
        self.logger.error("%sError in %s: %s (%s)", self._prefix(), step, code, type(error).__name__)

    def get_run_stats(self) -> Dict[str, Any]:
        """Aggregated statistics across recorded events."""
        llm_requests = [e for e in self.events if e.event_type == "llm_request"]
        steps = [e for e in self.events if e.event_type == "step_end"]
        errors = [e for e in self.events if e.event_type == "error"]
        return {
            "event_count": len(self.events),
            "llm_requests": len(llm_requests),
            "retries": sum(max(e.data.get("attempts", 1) - 1, 0) for e in llm_requests),
            "total_tokens": sum(e.tokens_used or 0 for e in llm_requests),
            "steps": {e.data["step"]: e.duration_ms for e in steps},
            "errors": [e.data["code"] for e in errors],
        }

    def summary(self) -> str:
        stats = self.get_run_stats()
        lines = [
            f"LLM requests: {stats['llm_requests']} (retries: {stats['retries']})",
            f"Total tokens: {stats['total_tokens']:,}",
        ]
        for step, duration in stats["steps"].items():
            lines.append(f"  {step}: {duration or 0:.2f}ms")
        if stats["errors"]:
            lines.append(f"Errors: {', '.join(stats['errors'])}")
        return "\n".join(lines)

    def clear(self) -> None:
        self.events.clear()
