"""Configuration loading and startup validation.

``config/config.yaml`` holds the defaults; ``config/config.local.yaml`` (not
committed) is deep-merged over it and usually carries the API key. A few
``RESUME_TAILOR_*`` environment variables override the merged values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from resume_tailor.providers import PROVIDER_DEFAULTS

from .orchestrator import TailorOptions
from .retry import RetryConfig

REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = "config/config.local.yaml"

ENV_PROVIDER = "RESUME_TAILOR_PROVIDER"
ENV_MODEL = "RESUME_TAILOR_MODEL"
ENV_API_BASE = "RESUME_TAILOR_API_BASE"
ENV_MAX_RETRIES = "RESUME_TAILOR_MAX_RETRIES"


# ---------------------------------------------------------------------------
# Raw YAML
# ---------------------------------------------------------------------------


def _resolve(candidate: str) -> Path:
    path = Path(candidate)
    if path.exists():
        return path
    alt = REPO_ROOT / candidate
    if alt.exists():
        return alt
    return path


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must be a mapping: {path}")
    return data


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        base_value = merged.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            merged[key] = deep_merge(base_value, value)
        else:
            merged[key] = value
    return merged


def load_raw_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load the raw configuration mapping.

    With the default path, ``config/config.yaml`` is loaded first and
    ``config/config.local.yaml`` is overlaid on it. Any other path is loaded
    as-is.
    """
    target = _resolve(config_path)

    if Path(config_path).name == "config.local.yaml":
        base = _load_yaml(_resolve("config/config.yaml"))
        merged = deep_merge(base, _load_yaml(target))
        if not merged:
            raise FileNotFoundError(f"Config file not found: {config_path} (also missing fallback config/config.yaml)")
        return merged

    data = _load_yaml(target)
    if not data:
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return data


def apply_env_overrides(raw: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    result = dict(raw)
    if env.get(ENV_PROVIDER):
        result["provider"] = env[ENV_PROVIDER]
    if env.get(ENV_MODEL):
        models = dict(result.get("models") or {})
        models["analysis"] = env[ENV_MODEL]
        models["generation"] = env[ENV_MODEL]
        result["models"] = models
    if env.get(ENV_API_BASE):
        result["api_base"] = env[ENV_API_BASE]
    if env.get(ENV_MAX_RETRIES):
        retry = dict(result.get("retry") or {})
        try:
            retry["max_retries"] = int(env[ENV_MAX_RETRIES])
        except ValueError:
            retry["max_retries"] = env[ENV_MAX_RETRIES]  # reported by validate_config
        result["retry"] = retry
    return result


# ---------------------------------------------------------------------------
# Typed config
# ---------------------------------------------------------------------------


@dataclass
class TailorConfig:
    provider: str = "groq"
    api_key: str = ""
    api_base: str = ""
    analysis_model: str = "llama-3.3-70b-versatile"
    generation_model: str = "llama-3.3-70b-versatile"
    max_tokens: int = 4096
    timeout: float = 60.0
    json_mode: bool = False
    retry: RetryConfig = field(default_factory=RetryConfig)
    tailoring: TailorOptions = field(default_factory=TailorOptions)
    verbose: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TailorConfig":
        defaults = cls()
        models = data.get("models") or {}
        retry = data.get("retry") or {}
        tailoring = data.get("tailoring") or {}
        return cls(
            provider=str(data.get("provider", defaults.provider)).lower(),
            api_key=data.get("api_key", "") or "",
            api_base=data.get("api_base", "") or "",
            analysis_model=models.get("analysis", defaults.analysis_model),
            generation_model=models.get("generation", models.get("analysis", defaults.generation_model)),
            max_tokens=int(data.get("max_tokens", defaults.max_tokens)),
            timeout=float(data.get("timeout", defaults.timeout)),
            json_mode=bool(data.get("json_mode", False)),
            retry=RetryConfig(
                max_retries=int(retry.get("max_retries", 3)),
                base_delay=float(retry.get("base_delay", 1.0)),
                max_delay=float(retry.get("max_delay", 60.0)),
                jitter_factor=float(retry.get("jitter_factor", 0.0)),
            ),
            tailoring=TailorOptions(
                max_bullets=int(tailoring.get("max_bullets", 15)),
                max_bullets_per_experience=tailoring.get("max_bullets_per_experience"),
                included_experience_types=list(tailoring.get("included_experience_types") or []),
                style=tailoring.get("style", "professional"),
                tailor_concurrency=int(tailoring.get("concurrency", 4)),
            ),
            verbose=bool(data.get("verbose", False)),
        )


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> TailorConfig:
    """Load YAML, apply environment overrides and build a :class:`TailorConfig`."""
    return TailorConfig.from_dict(apply_env_overrides(load_raw_config(config_path)))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ConfigIssue:
    """A single configuration issue."""

    field: str
    message: str
    severity: Severity


def validate_config(raw_config: Dict[str, Any]) -> List[ConfigIssue]:
    """Validate a raw configuration mapping; an empty list means valid."""
    issues: List[ConfigIssue] = []

    provider = raw_config.get("provider", "groq")
    if not isinstance(provider, str) or not provider:
        issues.append(ConfigIssue("provider", "provider must be a non-empty string", Severity.ERROR))
        provider = "groq"
    provider = provider.lower()

    if provider not in PROVIDER_DEFAULTS:
        issues.append(
            ConfigIssue(
                "provider",
                f"Unknown provider '{provider}'. Expected one of: {', '.join(PROVIDER_DEFAULTS.keys())}",
                Severity.WARNING,
            )
        )

    env_key = PROVIDER_DEFAULTS.get(provider, {}).get("env_key", "")
    if not _resolve_api_key_value(raw_config.get("api_key", "") or "", env_key):
        message = (
            f"{env_key} not set. Set the env var or add api_key to config/config.local.yaml"
            if env_key
            else "API key not set. Set the env var or add api_key to config/config.local.yaml"
        )
        issues.append(ConfigIssue("api_key", message, Severity.ERROR))

    models = raw_config.get("models") or {}
    if not isinstance(models, dict):
        issues.append(ConfigIssue("models", "models must be a mapping", Severity.ERROR))
        models = {}
    for name in ("analysis", "generation"):
        value = models.get(name)
        if value is not None and (not isinstance(value, str) or not value):
            issues.append(ConfigIssue(f"models.{name}", "model must be a non-empty string", Severity.ERROR))
    if not models.get("analysis"):
        issues.append(ConfigIssue("models.analysis", "no analysis model configured, using default", Severity.WARNING))

    max_tokens = raw_config.get("max_tokens", 4096)
    if not isinstance(max_tokens, int) or isinstance(max_tokens, bool) or max_tokens <= 0:
        issues.append(
            ConfigIssue("max_tokens", f"max_tokens must be a positive integer, got {max_tokens}", Severity.ERROR)
        )

    retry = raw_config.get("retry") or {}
    max_retries = retry.get("max_retries", 3)
    if not isinstance(max_retries, int) or isinstance(max_retries, bool) or max_retries < 0:
        issues.append(
            ConfigIssue(
                "retry.max_retries", f"max_retries must be a non-negative integer, got {max_retries!r}", Severity.ERROR
            )
        )
    for name in ("base_delay", "max_delay"):
        value = retry.get(name, 1.0)
        if not isinstance(value, (int, float)) or value < 0:
            issues.append(ConfigIssue(f"retry.{name}", f"{name} must be a non-negative number", Severity.ERROR))

    tailoring = raw_config.get("tailoring") or {}
    max_bullets = tailoring.get("max_bullets", 15)
    if not isinstance(max_bullets, int) or isinstance(max_bullets, bool) or max_bullets < 1:
        issues.append(
            ConfigIssue("tailoring.max_bullets", f"max_bullets must be at least 1, got {max_bullets!r}", Severity.ERROR)
        )
    concurrency = tailoring.get("concurrency", 4)
    if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency < 1:
        issues.append(
            ConfigIssue("tailoring.concurrency", f"concurrency must be at least 1, got {concurrency!r}", Severity.ERROR)
        )

    return issues


def _resolve_api_key_value(config_api_key: str, env_key: str = "") -> str:
    """Resolve the API key from env or config without side effects."""
    if env_key:
        env_value = os.environ.get(env_key, "")
        if env_value:
            return env_value

    if not config_api_key:
        return ""

    if not config_api_key.startswith("${"):
        return config_api_key

    if config_api_key.endswith("}"):
        return os.environ.get(config_api_key[2:-1], "")

    return ""


def has_errors(issues: List[ConfigIssue]) -> bool:
    """Check if any issues are errors (not just warnings)."""
    return any(issue.severity == Severity.ERROR for issue in issues)
