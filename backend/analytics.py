# Survey analytics: load tallies, run the narrative pipeline, persist snapshots
from __future__ import annotations
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gemini_client import GeminiClient
from models import Answer, Question, Survey, SurveyAnalytics, SurveyResponse
from narrative_parser import NarrativeResult, parse_narrative, unavailable_narrative
from prompt_builder import build_survey_prompt
from tally import SurveyStatistics, SurveyTallyReport, build_report

logger = logging.getLogger(__name__)


@dataclass
class SurveyTallyInput:
    """Read-only snapshot of a survey used to build its tally report."""
    survey: Survey
    questions: list[tuple[int, str]]
    answers_by_question: dict[int, list[bool]] = field(default_factory=dict)
    respondent_count: int = 0

    @property
    def title(self) -> str:
        return self.survey.title

    def to_report(self) -> SurveyTallyReport:
        return build_report(self.title, self.questions, self.answers_by_question, self.respondent_count)


def load_survey_tally_input(db: Session, survey_id: int) -> Optional[SurveyTallyInput]:
    """Load a survey with its ordered questions and boolean answers.

    Args:
        db (Session): DB session.
        survey_id (int): Survey ID.

    Returns:
        SurveyTallyInput | None: None if the survey does not exist.
    """
    survey = db.get(Survey, survey_id)
    if not survey:
        return None

    qs = db.execute(
        select(Question.id, Question.question_text)
        .where(Question.survey_id == survey_id)
        .order_by(Question.id)  # creation order, not the display `order`
    ).all()

    rows = db.execute(
        select(Answer.question_id, Answer.answer)
        .join(SurveyResponse, Answer.response_id == SurveyResponse.id)
        .where(SurveyResponse.survey_id == survey_id)
        .order_by(Answer.id)
    ).all()
    answers: dict[int, list[bool]] = defaultdict(list)
    for question_id, value in rows:
        answers[question_id].append(bool(value))

    respondents = db.execute(
        select(func.count()).select_from(SurveyResponse).where(SurveyResponse.survey_id == survey_id)
    ).scalar_one()

    return SurveyTallyInput(
        survey=survey,
        questions=[(qid, text) for qid, text in qs],
        answers_by_question=dict(answers),
        respondent_count=respondents,
    )


def analyze_survey(report: SurveyTallyReport, client: GeminiClient) -> NarrativeResult:
    """Generate the summary/insight narrative for a tally report.

    The only I/O is the single Gemini call; a failed call yields the fixed
    "unable to generate" pair instead of being parsed.
    """
    prompt = build_survey_prompt(report)
    outcome = client.generate(prompt)
    if not outcome.ok:
        logger.warning("Narrative generation failed for survey %r: %s", report.survey_title, outcome.error)
        return unavailable_narrative()
    return parse_narrative(outcome.text)


def upsert_analytics_snapshot(
    db: Session,
    survey_id: int,
    stats: SurveyStatistics,
    narrative: Optional[NarrativeResult] = None,
) -> SurveyAnalytics:
    """Create or overwrite the single analytics row for a survey.

    Narrative columns are only touched when ``narrative`` is given. Concurrent
    callers are not serialised; the last commit wins.
    """
    # a concurrent insert for the same survey trips the unique key; retry as update
    for attempt in range(2):
        row = db.execute(
            select(SurveyAnalytics).where(SurveyAnalytics.survey_id == survey_id)
        ).scalar_one_or_none()
        if row is None:
            row = SurveyAnalytics(survey_id=survey_id)
            db.add(row)

        row.total_responden = stats.total_responden
        row.total_pertanyaan = stats.total_pertanyaan
        row.total_setuju = stats.total_setuju
        row.total_tidak_setuju = stats.total_tidak_setuju
        row.setuju_percentage = stats.setuju_percentage
        row.tidak_setuju_percentage = stats.tidak_setuju_percentage
        if narrative is not None:
            row.gemini_summary = narrative.summary
            row.gemini_insight = narrative.insight
        row.generated_at = datetime.now(timezone.utc)

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt:
                raise
            continue
        db.refresh(row)
        return row
