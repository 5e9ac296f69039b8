"""Heuristic text-quality scorer.

Six independent pass/fail checks plus a sentence-length variation signal.
Everything here is deterministic and total: any string, including the
empty one, produces a report and nothing raises.

The naturalness signal is a rough proxy for human-like writing rhythm
(coefficient of variation of sentence lengths). It is not a classifier and
must not be presented as a guarantee about who wrote the text.
"""

import math
import re
from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, Field


Locale = Literal["ko", "en"]

NATURALNESS_THRESHOLD = 0.3

# Target lengths per section when the caller gives none
SECTION_MAX_LENGTHS = {
    "general": 500,
    "about": 400,
    "project": 300,
    "experience": 200,
}


@dataclass(frozen=True)
class TermSet:
    """Fixed term lists for one locale."""

    specificity: re.Pattern
    keywords: re.Pattern
    avoidance: re.Pattern
    growth: re.Pattern
    connection: re.Pattern
    suggestions: dict[str, str]


TERM_SETS: dict[str, TermSet] = {
    "ko": TermSet(
        specificity=re.compile(r"월|주|회|\d"),
        keywords=re.compile(r"탐구|분석|연구|설계|발표|토론|실험|조사|개발|제작"),
        avoidance=re.compile(r"열심히|노력|최선|훌륭|뛰어난|우수한"),
        growth=re.compile(r"깨닫|배우|성장|발전|향상"),
        # ASCII word before 과 so that ordinary Korean nouns ending in 과 do not count
        connection=re.compile(r"진로|관심|흥미|[A-Za-z0-9_]+과|학과|분야"),
        suggestions={
            "specificity": '구체적인 숫자나 기간을 추가하세요 (예: "3개월간", "5회", "10권")',
            "keywords": "구체적 동사를 사용하세요 (탐구, 분석, 연구, 설계 등)",
            "avoidance": '추상적 표현("열심히", "노력")을 구체적 서술로 바꾸세요',
            "growth": "활동을 통한 배움이나 변화를 추가하세요",
            "connection": "진로나 관심 분야와의 연결고리를 언급하세요",
            "length": "목표 분량(최대 길이의 70~100%)에 맞춰 작성하세요",
        },
    ),
    "en": TermSet(
        specificity=re.compile(r"\b(?:weeks?|months?|years?|days?|hours?|times|sessions?)\b|\d", re.IGNORECASE),
        keywords=re.compile(
            r"\b(?:explor|analy[sz]|research|design|present|discuss|experiment|investigat|develop|produc)\w*",
            re.IGNORECASE,
        ),
        avoidance=re.compile(
            r"\b(?:worked hard|hard work|did my best|best effort|tried hard|excellent|outstanding|amazing)\b",
            re.IGNORECASE,
        ),
        growth=re.compile(r"\b(?:learn|realiz|realis|grew|grow|improv|gained)\w*", re.IGNORECASE),
        connection=re.compile(
            r"\b(?:career|interest|passion|aspir)\w*|\b\w+[- ](?:major|field)\b",
            re.IGNORECASE,
        ),
        suggestions={
            "specificity": 'Add concrete numbers or durations (e.g. "for 3 months", "5 sessions")',
            "keywords": "Use concrete action verbs (explore, analyze, research, design, ...)",
            "avoidance": 'Replace vague phrases ("worked hard", "excellent") with specifics',
            "growth": "Describe what you learned or how you changed",
            "connection": "Link the activity to your career goal or field of interest",
            "length": "Aim for 70-100% of the target length",
        },
    ),
}


class QualityCheck(BaseModel):
    """Result of one heuristic check."""

    name: str
    passed: bool
    detail: str = ""


class QualityReport(BaseModel):
    """Full scorer output for one text."""

    checks: dict[str, QualityCheck]
    passed: int
    total: int
    score: int = Field(..., ge=0, le=100)
    sentence_count: int
    word_count: int
    coefficient: float
    natural: bool
    naturalness: str
    section_type: str
    suggestions: list[str] = Field(default_factory=list)

    @property
    def band(self) -> str:
        return score_band(self.score)


def score_band(score: int) -> str:
    """Map a 0..100 score onto good/fair/poor display bands."""
    if score >= 80:
        return "good"
    if score >= 60:
        return "fair"
    return "poor"


def split_sentences(text: str) -> list[str]:
    """Split on ., ! and ? boundaries, dropping empty fragments."""
    parts = re.split(r"[.!?]+(?:\s+|$)", text)
    return [part for part in (p.strip() for p in parts) if part]


def length_coefficient(sentences: list[str]) -> float:
    """Coefficient of variation (stddev / mean) of sentence character lengths."""
    if not sentences:
        return 0.0
    lengths = [len(s) for s in sentences]
    mean = sum(lengths) / len(lengths)
    if mean == 0:
        return 0.0
    variance = sum((length - mean) ** 2 for length in lengths) / len(lengths)
    return math.sqrt(variance) / mean


def _length_detail(length: int, max_length: int) -> str:
    if length < max_length * 0.5:
        return "too short"
    if length < max_length * 0.7:
        return "a little short"
    if length > max_length:
        return f"{length - max_length} over"
    return "within range"


class QualityScorer:
    """Scores free text against a fixed writing checklist."""

    def __init__(self, locale: Locale = "ko"):
        if locale not in TERM_SETS:
            raise ValueError(f"Unsupported locale: {locale}")
        self.locale = locale
        self.terms = TERM_SETS[locale]

    def score(
        self,
        text: Optional[str],
        max_length: Optional[int] = None,
        section_type: str = "general",
    ) -> QualityReport:
        """Score ``text``.

        Args:
            text: Text to score; None is treated as empty
            max_length: Target maximum length; defaults per section type
            section_type: Section kind ("about", "project", "experience", "general")

        Returns:
            QualityReport with score in 0..100
        """
        text = text or ""
        if max_length is None:
            max_length = SECTION_MAX_LENGTHS.get(section_type, SECTION_MAX_LENGTHS["general"])
        length = len(text)
        terms = self.terms

        results = {
            "length": (
                max_length > 0 and max_length * 0.7 <= length <= max_length,
                f"{length}/{max_length} ({_length_detail(length, max_length)})" if max_length > 0 else f"{length}",
            ),
            "specificity": (bool(terms.specificity.search(text)), "numbers or durations present"),
            "keywords": (len(terms.keywords.findall(text)) >= 2, "at least two concrete action verbs"),
            "avoidance": (
                bool(text) and terms.avoidance.search(text) is None,
                "no vague filler phrases",
            ),
            "growth": (bool(terms.growth.search(text)), "learning or change described"),
            "connection": (bool(terms.connection.search(text)), "linked to career or field"),
        }

        checks = {
            name: QualityCheck(name=name, passed=passed, detail=detail)
            for name, (passed, detail) in results.items()
        }
        passed = sum(1 for check in checks.values() if check.passed)
        total = len(checks)

        sentences = split_sentences(text)
        coefficient = length_coefficient(sentences)
        natural = coefficient > NATURALNESS_THRESHOLD

        suggestions = [
            terms.suggestions[name] for name, check in checks.items() if not check.passed
        ]

        return QualityReport(
            checks=checks,
            passed=passed,
            total=total,
            score=round(100 * passed / total),
            sentence_count=len(sentences),
            word_count=len(text.split()),
            coefficient=coefficient,
            natural=natural,
            naturalness="natural" if natural else "too uniform",
            section_type=section_type,
            suggestions=suggestions,
        )


def score(
    text: Optional[str],
    max_length: Optional[int] = None,
    section_type: str = "general",
    locale: Locale = "ko",
) -> QualityReport:
    """Convenience wrapper around QualityScorer(locale).score(...)."""
    return QualityScorer(locale).score(text, max_length, section_type)
