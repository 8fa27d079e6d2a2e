# Agree/disagree tallies for boolean survey answers
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Sequence

_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class AnswerTally:
    question_id: int
    question_text: str
    agree_count: int
    disagree_count: int
    agree_pct: float
    disagree_pct: float

    @property
    def total(self) -> int:
        return self.agree_count + self.disagree_count


@dataclass(frozen=True)
class SurveyTallyReport:
    survey_title: str
    total_respondents: int
    per_question: tuple[AnswerTally, ...]


@dataclass(frozen=True)
class SurveyStatistics:
    total_responden: int
    total_pertanyaan: int
    total_setuju: int
    total_tidak_setuju: int
    setuju_percentage: float
    tidak_setuju_percentage: float


def percentage(part: int, total: int) -> float:
    """Return ``100 * part / total`` rounded half away from zero to 2 places.

    Decimal arithmetic keeps exact half-way values (e.g. 1/32 -> 3.125) from
    being nudged by binary float representation before rounding.
    """
    if total <= 0:
        return 0.0
    raw = Decimal(100 * part) / Decimal(total)
    return float(raw.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def tally_question(question_id: int, question_text: str, answers: Iterable[bool]) -> AnswerTally:
    agree = disagree = 0
    for value in answers:
        if value:
            agree += 1
        else:
            disagree += 1
    total = agree + disagree
    return AnswerTally(
        question_id=question_id,
        question_text=question_text,
        agree_count=agree,
        disagree_count=disagree,
        agree_pct=percentage(agree, total),
        disagree_pct=percentage(disagree, total),
    )


def build_report(
    title: str,
    questions: Sequence[tuple[int, str]],
    answers_by_question: Mapping[int, Sequence[bool]],
    respondent_count: int,
) -> SurveyTallyReport:
    """Tally every question of a survey.

    Args:
        title (str): Survey title.
        questions (Sequence[tuple[int, str]]): (id, text) pairs in creation order.
        answers_by_question (Mapping[int, Sequence[bool]]): Boolean answers keyed by question id.
            Questions without an entry tally as zero.
        respondent_count (int): Number of responses submitted for the survey.

    Returns:
        SurveyTallyReport: Per-question tallies in the same order as ``questions``.
    """
    per_question = tuple(
        tally_question(qid, text, answers_by_question.get(qid, ()))
        for qid, text in questions
    )
    return SurveyTallyReport(
        survey_title=title,
        total_respondents=respondent_count,
        per_question=per_question,
    )


def survey_statistics(report: SurveyTallyReport) -> SurveyStatistics:
    """Sum per-question counts into survey-level totals.

    A respondent contributes one unit per question answered, so
    ``total_setuju + total_tidak_setuju`` may exceed ``total_responden``.
    """
    agree = sum(t.agree_count for t in report.per_question)
    disagree = sum(t.disagree_count for t in report.per_question)
    total = agree + disagree
    return SurveyStatistics(
        total_responden=report.total_respondents,
        total_pertanyaan=len(report.per_question),
        total_setuju=agree,
        total_tidak_setuju=disagree,
        setuju_percentage=percentage(agree, total),
        tidak_setuju_percentage=percentage(disagree, total),
    )
