"""Render a generated resume as a standalone HTML document for PDF rendering."""

from __future__ import annotations

import html
from typing import List, Optional

import markdown as md_lib

from resume_tailor.domain import Resume, ResumeNotReady, User

RESUME_CSS = """
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .resume-container { max-width: 800px; margin: 0 auto; padding: 40px; }
        h1 { font-size: 1.8em; margin-bottom: 0.2em; }
        h2 { font-size: 1.1em; margin-top: 1.4em; border-bottom: 2px solid #333; }
        h3 { font-size: 1em; margin-top: 0.8em; }
        p { margin-bottom: 0.6em; }
        ul { margin-left: 1.5em; }
        li { margin-bottom: 0.3em; font-size: 0.95em; }
"""

SECTION_TITLES = {
    "en": {
        "summary": "Professional Summary",
        "experience": "Experience",
        "skills": "Skills",
        "present": "Present",
    },
    "pt-br": {
        "summary": "Resumo Profissional",
        "experience": "Experiência",
        "skills": "Competências",
        "present": "Atual",
    },
}


def _text(value: Optional[str]) -> str:
    return html.escape(value or "", quote=False)


def resume_markdown(user: User, resume: Resume) -> str:
    """Markdown body of the resume; bold markers from the tailoring step are kept."""
    content = resume.generated_content
    if content is None:
        raise ResumeNotReady(details={"resume_id": resume.id})
    titles = SECTION_TITLES[resume.target_language.value]

    lines: List[str] = [f"# {_text(user.display_name())}", ""]
    if user.headline:
        lines += [_text(user.headline), ""]
    contact = " | ".join(_text(v) for v in (user.email, user.location) if v)
    if contact:
        lines += [contact, ""]

    lines += [f"## {titles['summary']}", "", _text(content.summary), ""]

    lines += [f"## {titles['experience']}", ""]
    for exp in content.experiences:
        end = titles["present"] if exp.is_current else (exp.end_date or "")
        period = f"{exp.start_date} - {end}" if end else exp.start_date
        lines += [f"### {_text(exp.title)}, {_text(exp.organization)}", "", f"*{period}*", ""]
        lines += [f"- {_text(b.tailored_content)}" for b in exp.bullets]
        lines.append("")

    if content.skills:
        lines += [f"## {titles['skills']}", "", ", ".join(_text(s) for s in content.skills), ""]
    return "\n".join(lines)


def render_resume_html(user: User, resume: Resume, css: Optional[str] = None) -> str:
    body = md_lib.markdown(resume_markdown(user, resume), extensions=["tables"])
    styles = css if css is not None else RESUME_CSS
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{resume.target_language.value}">\n'
        "<head>\n"
        '    <meta charset="UTF-8">\n'
        '    <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"    <title>Resume - {html.escape(user.display_name())}</title>\n"
        "    <style>\n"
        f"{styles}\n"
        "    </style>\n"
        "</head>\n"
        "<body>\n"
        '    <div class="resume-container">\n'
        f"{body}\n"
        "    </div>\n"
        "</body>\n"
        "</html>"
    )
