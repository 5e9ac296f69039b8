"""Unit tests for the heuristic quality scorer."""

import pytest

from folioscribe.quality.scorer import (
    QualityScorer,
    length_coefficient,
    score,
    score_band,
    split_sentences,
)


EN_STRONG = (
    "Over 3 months I explored and analyzed customer churn data. "
    "I learned to design experiments carefully. "
    "This connects to my career interest in data science."
)

KO_STRONG = "3개월간 데이터를 분석하고 연구했다. 이를 통해 크게 성장했다. 진로에 대한 관심이 생겼다."


class TestChecks:
    """Test the six pass/fail checks."""

    def test_empty_string_scores_zero(self):
        """Test the empty string fails every check without raising."""
        report = QualityScorer("en").score("")

        assert report.passed == 0
        assert report.total == 6
        assert report.score == 0
        assert report.sentence_count == 0
        assert len(report.suggestions) == 6

    def test_none_treated_as_empty(self):
        """Test None is scored like the empty string."""
        assert QualityScorer("ko").score(None).score == 0

    def test_strong_english_text(self):
        """Test a text meeting every English check scores 100."""
        report = QualityScorer("en").score(EN_STRONG, max_length=len(EN_STRONG))

        assert {name: check.passed for name, check in report.checks.items()} == {
            "length": True,
            "specificity": True,
            "keywords": True,
            "avoidance": True,
            "growth": True,
            "connection": True,
        }
        assert report.score == 100
        assert report.band == "good"
        assert report.suggestions == []

    def test_strong_korean_text(self):
        """Test a text meeting every Korean check scores 100."""
        report = QualityScorer("ko").score(KO_STRONG, max_length=len(KO_STRONG))

        assert report.passed == 6
        assert report.score == 100

    def test_vague_phrases_fail_avoidance(self):
        """Test filler phrases fail the avoidance check."""
        ko = QualityScorer("ko").score("열심히 노력했습니다.")
        en = QualityScorer("en").score("I worked hard and did my best.")

        assert not ko.checks["avoidance"].passed
        assert not en.checks["avoidance"].passed

    def test_single_keyword_not_enough(self):
        """Test the keyword check needs two distinct hits."""
        report = QualityScorer("en").score("I analyzed the results.")

        assert not report.checks["keywords"].passed

    def test_length_window(self):
        """Test the length check passes only within 70-100% of the target."""
        scorer = QualityScorer("en")

        assert not scorer.score("x" * 69, max_length=100).checks["length"].passed
        assert scorer.score("x" * 70, max_length=100).checks["length"].passed
        assert scorer.score("x" * 100, max_length=100).checks["length"].passed
        assert not scorer.score("x" * 101, max_length=100).checks["length"].passed

    def test_section_default_lengths(self):
        """Test the target length follows the section type."""
        report = QualityScorer("en").score("x" * 250, section_type="project")

        assert report.checks["length"].passed
        assert report.section_type == "project"

    def test_partial_score_rounds(self):
        """Test five of six checks score 83."""
        text = EN_STRONG + " It was excellent."

        report = QualityScorer("en").score(text, max_length=len(text))

        assert report.passed == 5
        assert report.score == 83

    def test_unsupported_locale(self):
        """Test unknown locales are rejected."""
        with pytest.raises(ValueError):
            QualityScorer("fr")

    def test_module_helper(self):
        """Test the module-level score() helper."""
        assert score(EN_STRONG, max_length=len(EN_STRONG), locale="en").score == 100


class TestNaturalness:
    """Test the sentence-length variation signal."""

    def test_uniform_sentences(self):
        """Test identical sentence lengths read as too uniform."""
        report = QualityScorer("en").score("abc. abc. abc.")

        assert report.coefficient == 0.0
        assert not report.natural
        assert report.naturalness == "too uniform"

    def test_varied_sentences(self):
        """Test varied sentence lengths read as natural."""
        report = QualityScorer("en").score("Hi. This is a much longer sentence that keeps going for a while.")

        assert report.coefficient > 0.3
        assert report.natural

    def test_split_sentences(self):
        """Test sentence splitting on terminal punctuation."""
        assert split_sentences("One. Two! Three?  ") == ["One", "Two", "Three"]
        assert split_sentences("") == []

    def test_coefficient_of_empty(self):
        """Test no sentences gives a zero coefficient."""
        assert length_coefficient([]) == 0.0


class TestBands:
    """Test display bands."""

    @pytest.mark.parametrize("value,band", [(100, "good"), (80, "good"), (79, "fair"), (60, "fair"), (59, "poor"), (0, "poor")])
    def test_score_band(self, value, band):
        """Test band boundaries."""
        assert score_band(value) == band
