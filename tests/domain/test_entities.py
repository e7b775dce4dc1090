"""Tests for Bullet, Experience, Skill, User and Resume entities."""

import pytest

from resume_tailor.domain import (
    Bullet,
    CurrentWithEndDate,
    Date,
    EmptyBulletContent,
    EmptyJobDescription,
    Experience,
    ExperienceType,
    ImpactScore,
    InvalidDateRange,
    InvalidImpactScore,
    Resume,
    ResumeContent,
    ResumeStatus,
    Skill,
    SpokenLanguage,
    TailoredBullet,
    TailoredExperience,
    TargetLanguage,
    User,
    ValidationErrors,
)
from resume_tailor.domain.errors import EmptySkillName


def _experience(**overrides) -> Experience:
    data = dict(
        user_id="u1",
        type="work",
        title="Backend Engineer",
        organization="Acme",
        start_date="2020-01-01",
    )
    data.update(overrides)
    return Experience(**data)


class TestBullet:
    def test_defaults(self):
        bullet = Bullet(experience_id="e1", content="  Built an API  ")
        assert bullet.content == "Built an API"
        assert bullet.impact_score == ImpactScore(50)
        assert bullet.keywords == []
        assert bullet.id

    @pytest.mark.parametrize("content", ["", "   ", None])
    def test_empty_content_rejected(self, content):
        with pytest.raises(EmptyBulletContent):
            Bullet(experience_id="e1", content=content)

    def test_update_content_rejects_blank(self):
        bullet = Bullet(experience_id="e1", content="Built an API")
        with pytest.raises(EmptyBulletContent):
            bullet.update_content("  ")
        assert bullet.content == "Built an API"

    def test_impact_score_coerced_and_validated(self):
        bullet = Bullet(experience_id="e1", content="x", impact_score=80)
        assert bullet.is_high_impact()
        with pytest.raises(InvalidImpactScore):
            bullet.set_impact_score(120)
        assert bullet.impact_score.value == 80
        bullet.set_impact_score(20)
        assert bullet.is_low_impact()

    def test_keywords(self):
        bullet = Bullet(experience_id="e1", content="x", keywords=["Go", "go", " SQL "])
        assert bullet.keywords == ["Go", "SQL"]
        bullet.add_keyword("Kubernetes")
        bullet.add_keyword("kubernetes")
        assert bullet.keywords == ["Go", "SQL", "Kubernetes"]
        assert bullet.has_keyword("sql")
        assert not bullet.has_keyword("Rust")

    def test_set_keywords_replaces(self):
        bullet = Bullet(experience_id="e1", content="x", keywords=["Go"])
        bullet.set_keywords(["SQL", "sql", ""])
        assert bullet.keywords == ["SQL"]


class TestExperience:
    def test_coerces_type_and_dates(self):
        exp = _experience(end_date="2021-01-01")
        assert exp.type is ExperienceType.WORK
        assert exp.start_date == Date.of(2020, 1, 1)
        assert exp.end_date == Date.of(2021, 1, 1)
        assert exp.duration_months() == 12

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidDateRange):
            _experience(end_date="2019-12-31")

    def test_current_with_end_date_rejected(self):
        with pytest.raises(CurrentWithEndDate):
            _experience(end_date="2021-01-01", is_current=True)

    def test_set_end_date_clears_current(self):
        exp = _experience(is_current=True)
        exp.set_end_date("2022-06-01")
        assert not exp.is_current
        assert exp.end_date_label() == "2022-06-01"

    def test_set_end_date_before_start_rejected(self):
        exp = _experience()
        with pytest.raises(InvalidDateRange):
            exp.set_end_date("2010-01-01")
        assert exp.end_date is None

    def test_mark_as_current_clears_end_date(self):
        exp = _experience(end_date="2021-01-01")
        exp.mark_as_current()
        assert exp.is_current
        assert exp.end_date is None
        assert exp.duration_months() == -1

    def test_validate_collects_errors(self):
        exp = _experience(title="", organization="")
        with pytest.raises(ValidationErrors) as exc_info:
            exp.validate()
        fields = {e.field for e in exc_info.value.errors}
        assert {"title", "organization"} <= fields

    def test_add_bullet_reparents(self):
        exp = _experience()
        bullet = Bullet(experience_id="other", content="x")
        exp.add_bullet(bullet)
        assert bullet.experience_id == exp.id
        assert exp.bullets == [bullet]

    def test_sort_key_orders_by_display_order_then_recency(self):
        older = _experience(start_date="2018-01-01")
        newer = _experience(start_date="2022-01-01")
        pinned = _experience(start_date="2010-01-01", display_order=-1)
        ordered = sorted([older, newer, pinned], key=lambda e: e.sort_key())
        assert ordered == [pinned, newer, older]


class TestSkillAndLanguage:
    def test_skill_requires_name(self):
        with pytest.raises(EmptySkillName):
            Skill(user_id="u1", name="  ")

    def test_skill_proficiency(self):
        skill = Skill(user_id="u1", name="Go", proficiency_level=85)
        assert skill.is_expert()
        skill.set_proficiency(10)
        assert skill.is_beginner()

    def test_skill_mutators(self):
        skill = Skill(user_id="u1", name="Go", category="backend", years_of_experience=3)
        skill.set_category("")
        assert skill.category is None
        skill.set_years_of_experience(0)
        assert skill.years_of_experience is None
        skill.set_years_of_experience(4.5)
        assert skill.years_of_experience == 4.5
        skill.highlight()
        assert skill.is_highlighted
        skill.unhighlight()
        assert not skill.is_highlighted

    def test_spoken_language(self):
        lang = SpokenLanguage(user_id="u1", language="Portuguese", proficiency="native")
        assert lang.is_native()
        assert lang.is_fluent()


class TestUser:
    def test_display_name_fallbacks(self):
        assert User(name="Ana").display_name() == "Ana"
        assert User(email="ana@example.com").display_name() == "ana@example.com"
        assert User().display_name() == "Professional"

    def test_preferred_language_parsed(self):
        assert User(preferred_language="pt-br").preferred_language is TargetLanguage.PT_BR


class TestResume:
    def test_new_resume_is_draft(self):
        resume = Resume(user_id="u1", job_description="Go engineer")
        assert resume.status is ResumeStatus.DRAFT
        assert resume.score.value == 0
        assert resume.is_draft()

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_job_description_rejected(self, text):
        with pytest.raises(EmptyJobDescription):
            Resume(user_id="u1", job_description=text)

    def test_job_description_is_immutable(self):
        resume = Resume(user_id="u1", job_description="Go engineer")
        with pytest.raises(AttributeError):
            resume.job_description = "Something else"
        assert resume.job_description == "Go engineer"

    def test_set_job_details_ignores_empty_values(self):
        resume = Resume(user_id="u1", job_description="Go engineer", job_title="Engineer")
        resume.set_job_details(title="", company="Acme")
        assert resume.job_title == "Engineer"
        assert resume.company_name == "Acme"
        assert resume.job_display_name() == "Engineer at Acme"

    def test_selected_bullets_deduplicated(self):
        resume = Resume(user_id="u1", job_description="Go engineer")
        resume.select_bullets(["b1", "b2", "b1"])
        assert resume.selected_bullets == ["b1", "b2"]
        resume.add_selected_bullet("b2")
        assert resume.selected_bullets == ["b1", "b2"]
        assert resume.remove_selected_bullet("b1")
        assert not resume.remove_selected_bullet("missing")
        assert resume.selected_bullets == ["b2"]

    def test_snapshot_is_independent(self):
        resume = Resume(user_id="u1", job_description="Go engineer")
        copy = resume.snapshot()
        copy.select_bullets(["b1"])
        copy.set_score(70)
        assert resume.selected_bullets == []
        assert resume.score.value == 0
        assert copy.job_description == "Go engineer"

    def test_content_round_trip_through_dict(self):
        content = ResumeContent(
            summary="Engineer",
            experiences=[
                TailoredExperience(
                    experience_id="e1",
                    title="Dev",
                    organization="Acme",
                    start_date="2020-01-01",
                    bullets=[TailoredBullet("b1", "orig", "new", ["Go"])],
                )
            ],
            skills=["Go"],
        )
        assert ResumeContent.from_dict(content.to_dict()) == content
        assert [b.bullet_id for b in content.tailored_bullets()] == ["b1"]

    def test_pdf_requires_generated_content(self):
        resume = Resume(user_id="u1", job_description="Go engineer")
        assert not resume.can_generate_pdf()
        resume.set_generated_content(ResumeContent(summary="Engineer"))
        assert resume.can_generate_pdf()
        resume.set_pdf_url("https://files.example.com/r.pdf")
        assert resume.pdf_url == "https://files.example.com/r.pdf"

    def test_submitted_states(self):
        resume = Resume(user_id="u1", job_description="Go engineer")
        resume.set_generated_content(ResumeContent(summary="Engineer"))
        assert not resume.is_submitted()
        resume.transition_status("reviewed")
        resume.transition_status("submitted")
        assert resume.is_submitted()
        assert not resume.can_generate_pdf()
        resume.transition_status(ResumeStatus.INTERVIEW)
        assert resume.is_submitted()

    def test_to_dict_serializes_enums(self):
        resume = Resume(user_id="u1", job_description="Go engineer", target_language="pt-br")
        data = resume.to_dict()
        assert data["status"] == "draft"
        assert data["target_language"] == "pt-br"
        assert data["score"] == 0


class TestFactories:
    """create() builds the entity and runs full validation."""

    def test_bullet_create(self):
        bullet = Bullet.create("e1", "Cut deploy time by 40%", impact_score=75)
        assert bullet.experience_id == "e1"
        assert bullet.is_high_impact()

    def test_bullet_create_requires_experience(self):
        with pytest.raises(ValidationErrors):
            Bullet.create("", "Cut deploy time by 40%")

    def test_experience_create_collects_errors(self):
        with pytest.raises(ValidationErrors) as exc_info:
            Experience.create("u1", "project", " ", "", "2020-01-01")
        assert {e.field for e in exc_info.value.errors} >= {"title", "organization"}

    def test_experience_create(self):
        exp = Experience.create("u1", "project", "Maintainer", "OSS", "2020-01-01", is_current=True)
        assert exp.type is ExperienceType.PROJECT
        assert exp.is_current

    def test_resume_create(self):
        resume = Resume.create("u1", "Go engineer", target_language="pt-br")
        assert resume.is_draft()
        assert resume.target_language is TargetLanguage.PT_BR

    def test_resume_create_requires_user(self):
        with pytest.raises(ValidationErrors):
            Resume.create("", "Go engineer")
