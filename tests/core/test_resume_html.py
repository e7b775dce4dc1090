"""HTML rendering of generated resumes."""

import pytest

from resume_tailor.core.resume_html import render_resume_html, resume_markdown
from resume_tailor.domain import (
    Resume,
    ResumeContent,
    ResumeNotReady,
    TailoredBullet,
    TailoredExperience,
    User,
)


def _generated(language="en"):
    resume = Resume.create(user_id="u1", job_description="Go role", target_language=language)
    resume.set_generated_content(
        ResumeContent(
            summary="Backend engineer with **Go** experience",
            experiences=[
                TailoredExperience(
                    experience_id="exp-1",
                    title="Backend Engineer",
                    organization="Smith & Sons",
                    start_date="2021-03-01",
                    is_current=True,
                    bullets=[
                        TailoredBullet("b1", "Built APIs", "Built <b>fast</b> APIs in **Go**"),
                    ],
                ),
                TailoredExperience(
                    experience_id="exp-2",
                    title="Intern",
                    organization="Acme",
                    start_date="2019-01-01",
                    end_date="2019-06-30",
                ),
            ],
            skills=["Go", "PostgreSQL"],
        )
    )
    return resume


@pytest.fixture
def user():
    return User(id="u1", name="Ana Souza", email="ana@example.com", location="Recife", headline="Engineer")


def test_document_has_every_section(user):
    page = render_resume_html(user, _generated())

    assert page.startswith("<!DOCTYPE html>")
    assert '<html lang="en">' in page
    assert "<title>Resume - Ana Souza</title>" in page
    assert "<h1>Ana Souza</h1>" in page
    assert "ana@example.com | Recife" in page
    assert "<h2>Professional Summary</h2>" in page
    assert "<strong>Go</strong>" in page
    assert "<em>2021-03-01 - Present</em>" in page
    assert "<em>2019-01-01 - 2019-06-30</em>" in page
    assert "<h2>Skills</h2>" in page
    assert "Go, PostgreSQL" in page


def test_user_text_is_escaped(user):
    page = render_resume_html(user, _generated())
    assert "<b>fast</b>" not in page
    assert "&lt;b&gt;fast&lt;/b&gt;" in page
    assert "Smith &amp; Sons" in page


def test_portuguese_section_titles(user):
    page = render_resume_html(user, _generated("pt-br"))
    assert '<html lang="pt-br">' in page
    assert "<h2>Resumo Profissional</h2>" in page
    assert "<h2>Experiência</h2>" in page
    assert "2021-03-01 - Atual" in page


def test_custom_css(user):
    page = render_resume_html(user, _generated(), css="body { color: red; }")
    assert "body { color: red; }" in page
    assert "resume-container { max-width" not in page


def test_draft_is_not_ready(user):
    draft = Resume.create(user_id="u1", job_description="Go role")
    with pytest.raises(ResumeNotReady):
        resume_markdown(user, draft)
