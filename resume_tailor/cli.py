"""CLI - Command line interface for resume-tailor."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from .core.config import (
    DEFAULT_CONFIG_PATH,
    Severity,
    TailorConfig,
    apply_env_overrides,
    load_config,
    load_raw_config,
    validate_config,
)
from .core.llm_backend import LLMTailoringBackend
from .core.memory_store import InMemoryStore
from .core.observability import PipelineObserver, setup_logging
from .core.orchestrator import ResumeOrchestrator, TailoringOutcome, TailorOptions
from .core.services import ResumeService
from .domain import Bullet, DomainError, Experience, Skill, User

console = Console()


# ---------------------------------------------------------------------------
# Library loading
# ---------------------------------------------------------------------------


async def load_library(store: InMemoryStore, data: Dict[str, Any]) -> User:
    """Populate the store from a library document and return its user.

    Expected shape::

        {"user": {...}, "experiences": [{..., "bullets": [{...}]}], "skills": [{...}]}
    """
    user_data = dict(data.get("user") or {})
    user = User(**{k: v for k, v in user_data.items() if k in _USER_FIELDS})
    await store.create_user(user)

    for index, exp_data in enumerate(data.get("experiences") or []):
        exp_data = dict(exp_data)
        bullets_data = exp_data.pop("bullets", []) or []
        exp_data.setdefault("display_order", index)
        experience = Experience.create(
            user_id=user.id,
            **{k: v for k, v in exp_data.items() if k in _EXPERIENCE_FIELDS},
        )
        for order, bullet_data in enumerate(bullets_data):
            if isinstance(bullet_data, str):
                bullet_data = {"content": bullet_data}
            bullet_data = dict(bullet_data)
            bullet_data.setdefault("display_order", order)
            experience.add_bullet(
                Bullet.create(
                    experience_id=experience.id,
                    **{k: v for k, v in bullet_data.items() if k in _BULLET_FIELDS},
                )
            )
        await store.create_experience(experience)

    for order, skill_data in enumerate(data.get("skills") or []):
        if isinstance(skill_data, str):
            skill_data = {"name": skill_data}
        skill_data = dict(skill_data)
        skill_data.setdefault("display_order", order)
        await store.create_skill(Skill(user_id=user.id, **{k: v for k, v in skill_data.items() if k in _SKILL_FIELDS}))

    return user


_USER_FIELDS = {"id", "name", "email", "headline", "summary", "location", "preferred_language"}
_EXPERIENCE_FIELDS = {
    "id",
    "type",
    "title",
    "organization",
    "start_date",
    "location",
    "end_date",
    "is_current",
    "description",
    "url",
    "metadata",
    "display_order",
}
_BULLET_FIELDS = {"id", "content", "impact_score", "keywords", "metadata", "display_order"}
_SKILL_FIELDS = {
    "id",
    "name",
    "category",
    "proficiency_level",
    "years_of_experience",
    "is_highlighted",
    "display_order",
}


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render_outcome(outcome: TailoringOutcome, show_stats: Optional[str] = None) -> None:
    resume = outcome.resume
    content = resume.generated_content

    console.print(Panel(f"{resume.job_display_name()}  |  match score: {resume.score}/100", title="Tailored resume"))
    if content is None:
        return

    console.print(Markdown(f"## Summary\n\n{content.summary}"))
    for exp in content.experiences:
        period = f"{exp.start_date} - {'present' if exp.is_current else (exp.end_date or '')}"
        lines = "\n".join(f"- {b.tailored_content}" for b in exp.bullets)
        console.print(Markdown(f"### {exp.title} - {exp.organization}\n*{period}*\n\n{lines}"))

    if content.skills:
        console.print(Markdown("**Skills:** " + ", ".join(content.skills)))

    if content.analysis is not None:
        table = Table(title="Keyword coverage")
        table.add_column("Matched", style="green")
        table.add_column("Missing", style="red")
        matched, missing = content.analysis.matched_keywords, content.analysis.missing_keywords
        for i in range(max(len(matched), len(missing))):
            table.add_row(matched[i] if i < len(matched) else "", missing[i] if i < len(missing) else "")
        console.print(table)

    if outcome.dropped_bullet_ids:
        console.print(f"Ignored {len(outcome.dropped_bullet_ids)} unknown bullet ids from the model.", style="yellow")
    if show_stats:
        console.print(Panel(show_stats, title="Run stats"), style="dim")


def _split(value: Optional[str]) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def run_tailor(args: argparse.Namespace, config: TailorConfig) -> TailoringOutcome:
    library = json.loads(Path(args.library).read_text(encoding="utf-8"))
    job_description = Path(args.job).read_text(encoding="utf-8")

    defaults = config.tailoring
    options = TailorOptions(
        max_bullets=args.max_bullets or defaults.max_bullets,
        max_bullets_per_experience=args.max_per_experience or defaults.max_bullets_per_experience,
        included_experience_types=_split(args.types) or list(defaults.included_experience_types),
        skills_to_highlight=_split(args.highlight),
        style=args.style or defaults.style,
        tailor_concurrency=defaults.tailor_concurrency,
    )

    observer = PipelineObserver(verbose=config.verbose)
    backend = LLMTailoringBackend.from_config(config, observer=observer)
    store = InMemoryStore()
    service = ResumeService(
        resumes=store,
        users=store,
        experiences=store,
        bullets=store,
        skills=store,
        orchestrator=ResumeOrchestrator(backend, observer=observer),
    )
    try:
        user = await load_library(store, library)
        resume = await service.create_resume(
            user.id,
            job_description,
            job_url=args.job_url,
            target_language=args.language,
        )
        outcome = await service.tailor_resume(resume.id, options)
    finally:
        await backend.close()

    if args.json:
        print(json.dumps(outcome.resume.to_dict(), indent=2, ensure_ascii=False))
    else:
        render_outcome(outcome, observer.summary() if config.verbose else None)
    return outcome


def check_config(config_path: str) -> int:
    try:
        raw = apply_env_overrides(load_raw_config(config_path))
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"Config error: {exc}", style="red")
        return 1

    issues = validate_config(raw)
    if not issues:
        console.print("Configuration OK", style="green")
        return 0
    for issue in issues:
        style = "red" if issue.severity == Severity.ERROR else "yellow"
        console.print(f"[{issue.severity.value}] {issue.field}: {issue.message}", style=style, markup=False)
    return 1 if any(i.severity == Severity.ERROR for i in issues) else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resume-tailor",
        description="Tailor a resume bullet library to a job description",
    )
    parser.add_argument("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Path to configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log pipeline steps and LLM calls")
    sub = parser.add_subparsers(dest="command", required=True)

    tailor = sub.add_parser("tailor", help="Generate a tailored resume")
    tailor.add_argument("--library", "-l", required=True, help="JSON file with user, experiences, bullets and skills")
    tailor.add_argument("--job", "-j", required=True, help="Text file with the job description")
    tailor.add_argument("--job-url", help="Job posting URL, stored on the resume")
    tailor.add_argument("--max-bullets", type=int, help="Maximum bullets to select")
    tailor.add_argument("--max-per-experience", type=int, help="Maximum bullets per experience")
    tailor.add_argument("--types", help="Comma-separated experience types to include (e.g. work,project)")
    tailor.add_argument("--highlight", help="Comma-separated skills to list first")
    tailor.add_argument("--style", help="Writing style for rewritten bullets")
    tailor.add_argument("--language", help="Output language: en or pt-br (default: user's preference)")
    tailor.add_argument("--json", action="store_true", help="Print the resume as JSON")

    sub.add_parser("check-config", help="Validate the configuration and exit")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.command == "check-config":
        return check_config(args.config)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError, DomainError) as exc:
        console.print(f"Config error: {exc}", style="red")
        return 1
    config.verbose = config.verbose or args.verbose
    setup_logging(config.verbose)

    try:
        asyncio.run(run_tailor(args, config))
    except DomainError as exc:
        console.print(f"{exc.public_message} [{exc.code}]", style="red", markup=False)
        return 1
    except (OSError, ValueError) as exc:
        console.print(f"Input error: {exc}", style="red", markup=False)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
