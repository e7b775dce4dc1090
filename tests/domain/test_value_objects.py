"""Tests for bounded scores, dates and enumerations."""

from datetime import date

import pytest

from resume_tailor.domain import (
    Date,
    ExperienceType,
    ImpactScore,
    InvalidDateFormat,
    InvalidImpactScore,
    InvalidMatchScore,
    InvalidProficiencyLevel,
    MatchScore,
    ProficiencyLevel,
    TargetLanguage,
    ValidationError,
)
from resume_tailor.domain.errors import InvalidExperienceType, InvalidTargetLanguage
from resume_tailor.domain.value_objects import mentions_term, normalize_terms


class TestBoundedScores:
    """Scores exist only inside [0, 100]."""

    @pytest.mark.parametrize("score_type", [ImpactScore, ProficiencyLevel, MatchScore])
    @pytest.mark.parametrize("value", [0, 1, 50, 99, 100])
    def test_in_range_round_trips(self, score_type, value):
        score = score_type(value)
        assert score.value == value
        assert int(score) == value

    @pytest.mark.parametrize(
        "score_type,error",
        [
            (ImpactScore, InvalidImpactScore),
            (ProficiencyLevel, InvalidProficiencyLevel),
            (MatchScore, InvalidMatchScore),
        ],
    )
    @pytest.mark.parametrize("value", [-1, 101, -100, 1000])
    def test_out_of_range_rejected(self, score_type, error, value):
        with pytest.raises(error):
            score_type(value)

    def test_errors_are_validation_kind(self):
        with pytest.raises(ValidationError) as exc_info:
            ImpactScore(150)
        assert exc_info.value.kind.value == "validation"

    @pytest.mark.parametrize("value", [True, 50.5, "50", None])
    def test_non_integers_rejected(self, value):
        with pytest.raises(InvalidImpactScore):
            ImpactScore(value)

    def test_defaults(self):
        assert ImpactScore.default().value == 50
        assert ProficiencyLevel.default().value == 50
        assert MatchScore.default().value == 0

    def test_scores_are_immutable(self):
        score = MatchScore(10)
        with pytest.raises(AttributeError):
            score.value = 20

    def test_scores_compare_by_value(self):
        assert MatchScore(10) < MatchScore(20)
        assert ImpactScore(70) == ImpactScore(70)

    @pytest.mark.parametrize("raw,expected", [(85, 85), (85.4, 85), (150, 100), (-3, 0), (99.6, 100)])
    def test_match_score_clamped(self, raw, expected):
        assert MatchScore.clamped(raw).value == expected

    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), "85", None])
    def test_match_score_clamped_rejects_non_numbers(self, raw):
        with pytest.raises(InvalidMatchScore):
            MatchScore.clamped(raw)


class TestDate:
    """Tests for the calendar Date value object."""

    def test_parse_valid(self):
        parsed = Date.parse("2023-04-05")
        assert parsed.value == date(2023, 4, 5)
        assert str(parsed) == "2023-04-05"

    @pytest.mark.parametrize("text", ["2023/04/05", "05-04-2023", "2023-4-5", "", "2023-02-30", "yesterday"])
    def test_parse_invalid(self, text):
        with pytest.raises(InvalidDateFormat):
            Date.parse(text)

    def test_zero_value(self):
        zero = Date.zero()
        assert zero.is_zero()
        assert str(zero) == ""
        assert not Date.of(2020, 1, 1).is_zero()

    def test_before_after(self):
        early, late = Date.of(2020, 1, 1), Date.of(2021, 6, 1)
        assert early.before(late)
        assert late.after(early)
        assert not early.after(early)
        assert not early.before(early)

    def test_coerce(self):
        assert Date.coerce("2020-01-02") == Date.of(2020, 1, 2)
        assert Date.coerce(date(2020, 1, 2)) == Date.of(2020, 1, 2)
        existing = Date.of(2020, 1, 2)
        assert Date.coerce(existing) is existing


class TestEnumerations:
    def test_experience_type_parse(self):
        assert ExperienceType.parse("open_source") is ExperienceType.OPEN_SOURCE
        with pytest.raises(InvalidExperienceType):
            ExperienceType.parse("internship")

    def test_target_language(self):
        assert TargetLanguage.parse("PT-BR") is TargetLanguage.PT_BR
        assert TargetLanguage.EN.display_name == "English"
        assert TargetLanguage.PT_BR.display_name == "Brazilian Portuguese"
        with pytest.raises(InvalidTargetLanguage):
            TargetLanguage.parse("fr")


def test_normalize_terms_strips_and_dedupes_case_insensitively():
    assert normalize_terms([" Go ", "go", "", "PostgreSQL", "postgresql", "Kubernetes"]) == [
        "Go",
        "PostgreSQL",
        "Kubernetes",
    ]


@pytest.mark.parametrize(
    "text,term,expected",
    [
        ("Good communicator", "Go", False),
        ("Built Go services.", "go", True),
        ("ran the team", "R", False),
        ("Statistics in R, SQL", "R", True),
        ("JavaScript and TypeScript", "Java", False),
        ("Modern C++ codebase", "C++", True),
        ("Shipped C# tools", "C", False),
        ("Node.js APIs", "Node.js", True),
        ("anything", "  ", False),
    ],
)
def test_mentions_term_matches_whole_terms(text, term, expected):
    assert mentions_term(text, term) is expected
