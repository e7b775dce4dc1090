"""Tailoring core: ports, resilient AI backend, orchestrator and services."""

from .config import TailorConfig, load_config, load_raw_config, validate_config
from .llm_backend import LLMTailoringBackend
from .memory_store import InMemoryStore
from .observability import PipelineEvent, PipelineObserver, setup_logging
from .orchestrator import ResumeOrchestrator, TailoringOutcome, TailorOptions
from .ports import AIProvider, BulletSelection, JobAnalysis, SummaryResult, TailoredBulletResult
from .retry import MaxRetriesExceeded, PermanentError, RetryConfig, TransientError, retry_with_backoff
from .services import BulletService, ResumeService

__all__ = [
    "AIProvider",
    "BulletSelection",
    "BulletService",
    "InMemoryStore",
    "JobAnalysis",
    "LLMTailoringBackend",
    "MaxRetriesExceeded",
    "PermanentError",
    "PipelineEvent",
    "PipelineObserver",
    "ResumeOrchestrator",
    "ResumeService",
    "RetryConfig",
    "SummaryResult",
    "TailorConfig",
    "TailorOptions",
    "TailoredBulletResult",
    "TailoringOutcome",
    "TransientError",
    "load_config",
    "load_raw_config",
    "retry_with_backoff",
    "setup_logging",
    "validate_config",
]
