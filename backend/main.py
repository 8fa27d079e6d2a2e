import os, logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import List, Optional
from fastapi import FastAPI, Depends, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from dotenv import load_dotenv
from db import Base, engine, get_db
from models import Survey, Question, SurveyResponse, Answer, SurveyAnalytics
from schemas import *
from security import verify_admin

import pandas as pd
from gemini_client import GeminiClient
from analytics import analyze_survey, load_survey_tally_input, upsert_analytics_snapshot
from tally import build_report, survey_statistics

load_dotenv()

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=os.getenv("LOG_LEVEL", "INFO"),
)
# httpx logs full request URLs at INFO, and the Gemini key travels in the query string
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

# Built once per process and shared by every analytics request
narrative_client = GeminiClient.from_env()

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    narrative_client.close()

app = FastAPI(title="Survey Analytics API", lifespan=lifespan)

origins = os.getenv("ORIGINS", "http://localhost:8081").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Base.metadata.create_all(bind=engine)

def get_narrative_client() -> GeminiClient:
    """Dependency returning the process-wide Gemini client."""
    return narrative_client

# Helper functions
def _get_or_404(db: Session, model, pk: int, label: str):
    """Fetch a row by primary key or raise 404 "<label> not found"."""
    row = db.get(model, pk)
    if not row:
        raise HTTPException(404, f"{label} not found")
    return row

def _ordered_questions(db: Session, survey_id: int) -> list[Question]:
    return db.execute(
        select(Question).where(Question.survey_id == survey_id).order_by(Question.order, Question.id)
    ).scalars().all()

def _apply_updates(row, payload) -> None:
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(row, key, value)

@app.get("/health")
def health():
    """Basic readiness probe.

    Returns:
        dict: {"ok": True, "gemini_configured": bool}
    """
    return {"ok": True, "gemini_configured": narrative_client.configured}

# ------------------------
# Surveys
# ------------------------
@app.get("/surveys", response_model=List[SurveyOut])
def list_surveys(active: Optional[bool] = None, db: Session = Depends(get_db)):
    """List surveys, optionally filtered by ``is_active``."""
    q = select(Survey).order_by(Survey.id)
    if active is not None:
        q = q.where(Survey.is_active == active)
    return db.execute(q).scalars().all()

@app.post("/surveys", response_model=SurveyOut, status_code=201, dependencies=[Depends(verify_admin)])
def create_survey(payload: SurveyCreate, db: Session = Depends(get_db)):
    """Create a survey.

    Args:
        payload (SurveyCreate): Title (required), description, created_by, is_active.
        db (Session): DB session.

    Returns:
        SurveyOut: The created survey.

    Raises:
        HTTPException: 400 if the title is blank.
    """
    title = (payload.title or "").strip()
    if not title:
        raise HTTPException(status_code=400, detail="Title is required")
    survey = Survey(
        title=title,
        description=(payload.description or "").strip() or None,
        created_by=payload.created_by,
        is_active=payload.is_active,
    )
    db.add(survey)
    db.commit()
    db.refresh(survey)
    return survey

@app.get("/surveys/{survey_id}", response_model=SurveyDetail)
def survey_detail(survey_id: int, db: Session = Depends(get_db)):
    """Get a survey with its ordered questions and response count.

    Raises:
        HTTPException: 404 if survey not found.
    """
    s = _get_or_404(db, Survey, survey_id, "Survey")
    count = db.execute(
        select(func.count()).select_from(SurveyResponse).where(SurveyResponse.survey_id == survey_id)
    ).scalar_one()
    return {
        **SurveyOut.model_validate(s).model_dump(),
        "questions": _ordered_questions(db, survey_id),
        "response_count": count,
    }

@app.put("/surveys/{survey_id}", response_model=SurveyOut, dependencies=[Depends(verify_admin)])
def update_survey(survey_id: int, payload: SurveyUpdate, db: Session = Depends(get_db)):
    """Partially update title, description or is_active.

    Raises:
        HTTPException: 404 if survey not found; 400 if the new title is blank.
    """
    s = _get_or_404(db, Survey, survey_id, "Survey")
    if payload.title is not None and not payload.title.strip():
        raise HTTPException(400, "Title is required")
    _apply_updates(s, payload)
    if payload.title is not None:
        s.title = payload.title.strip()
    db.commit()
    db.refresh(s)
    return s

@app.delete("/surveys/{survey_id}", dependencies=[Depends(verify_admin)])
def delete_survey(survey_id: int, db: Session = Depends(get_db)):
    """Delete a survey together with its questions, responses, answers and analytics.

    Returns:
        dict: {"success": True, "message": ...}

    Raises:
        HTTPException: 404 if survey not found.
    """
    s = _get_or_404(db, Survey, survey_id, "Survey")
    logger.info(
        "Deleting survey %s (%r): %d questions, %d responses",
        s.id, s.title, len(s.questions), len(s.responses),
    )
    db.delete(s)
    db.commit()
    return {"success": True, "message": "Survey deleted successfully"}

# ------------------------
# Questions
# ------------------------
@app.get("/questions", response_model=List[QuestionOut])
def list_questions(survey_id: Optional[int] = None, db: Session = Depends(get_db)):
    """List questions, optionally for one survey, in display order."""
    q = select(Question).order_by(Question.survey_id, Question.order, Question.id)
    if survey_id is not None:
        q = q.where(Question.survey_id == survey_id)
    return db.execute(q).scalars().all()

@app.post("/questions", response_model=QuestionOut, status_code=201, dependencies=[Depends(verify_admin)])
def create_question(payload: QuestionCreate, db: Session = Depends(get_db)):
    """Add a question to a survey.

    Raises:
        HTTPException: 404 if survey not found; 400 if the text is blank.
    """
    _get_or_404(db, Survey, payload.survey_id, "Survey")
    text = (payload.question_text or "").strip()
    if not text:
        raise HTTPException(400, "Question text is required")
    row = Question(survey_id=payload.survey_id, question_text=text, order=payload.order)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row

@app.get("/questions/{question_id}", response_model=QuestionOut)
def get_question(question_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, Question, question_id, "Question")

@app.put("/questions/{question_id}", response_model=QuestionOut, dependencies=[Depends(verify_admin)])
def update_question(question_id: int, payload: QuestionUpdate, db: Session = Depends(get_db)):
    row = _get_or_404(db, Question, question_id, "Question")
    if payload.question_text is not None and not payload.question_text.strip():
        raise HTTPException(400, "Question text is required")
    _apply_updates(row, payload)
    db.commit()
    db.refresh(row)
    return row

@app.delete("/questions/{question_id}", dependencies=[Depends(verify_admin)])
def delete_question(question_id: int, db: Session = Depends(get_db)):
    """Delete a question and its answers (via FK cascade)."""
    row = _get_or_404(db, Question, question_id, "Question")
    db.delete(row)
    db.commit()
    return {"success": True, "message": "Question deleted successfully"}

# ------------------------
# Responses
# ------------------------
@app.get("/responses", response_model=List[ResponseOut])
def list_responses(survey_id: Optional[int] = None, user_id: Optional[int] = None, db: Session = Depends(get_db)):
    """List responses, filtered by survey and/or user."""
    q = select(SurveyResponse).order_by(SurveyResponse.id)
    if survey_id is not None:
        q = q.where(SurveyResponse.survey_id == survey_id)
    if user_id is not None:
        q = q.where(SurveyResponse.user_id == user_id)
    return db.execute(q).scalars().all()

@app.post("/responses", response_model=ResponseOut, status_code=201)
def create_response(payload: ResponseCreate, db: Session = Depends(get_db)):
    """Open a response (one respondent's submission) for a survey.

    Raises:
        HTTPException: 404 if survey not found; 403 if the survey is inactive.
    """
    s = _get_or_404(db, Survey, payload.survey_id, "Survey")
    if not s.is_active:
        raise HTTPException(403, "Survey is not accepting responses")
    row = SurveyResponse(survey_id=s.id, user_id=payload.user_id)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row

@app.get("/responses/{response_id}", response_model=ResponseDetail)
def get_response(response_id: int, db: Session = Depends(get_db)):
    row = _get_or_404(db, SurveyResponse, response_id, "Response")
    return {**ResponseOut.model_validate(row).model_dump(), "answers": row.answers}

@app.delete("/responses/{response_id}")
def delete_response(response_id: int, db: Session = Depends(get_db)):
    row = _get_or_404(db, SurveyResponse, response_id, "Response")
    db.delete(row)
    db.commit()
    return {"success": True, "message": "Response deleted successfully"}

# ------------------------
# Answers
# ------------------------
@app.get("/answers", response_model=List[AnswerOut])
def list_answers(response_id: Optional[int] = None, db: Session = Depends(get_db)):
    q = select(Answer).order_by(Answer.id)
    if response_id is not None:
        q = q.where(Answer.response_id == response_id)
    return db.execute(q).scalars().all()

@app.post("/answers", response_model=AnswerOut, status_code=201)
def create_answer(payload: AnswerCreate, db: Session = Depends(get_db)):
    """Record a boolean (agree/disagree) answer.

    Raises:
        HTTPException: 404 if response or question missing; 400 if the question
            belongs to another survey; 409 if this question was already answered
            in the response.
    """
    resp = _get_or_404(db, SurveyResponse, payload.response_id, "Response")
    q = _get_or_404(db, Question, payload.question_id, "Question")
    if q.survey_id != resp.survey_id:
        raise HTTPException(400, "Question does not belong to the response's survey")
    row = Answer(response_id=resp.id, question_id=q.id, answer=payload.answer)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(409, "Question already answered in this response")
    db.refresh(row)
    return row

@app.get("/answers/{answer_id}", response_model=AnswerOut)
def get_answer(answer_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, Answer, answer_id, "Answer")

@app.put("/answers/{answer_id}", response_model=AnswerOut)
def update_answer(answer_id: int, payload: AnswerUpdate, db: Session = Depends(get_db)):
    row = _get_or_404(db, Answer, answer_id, "Answer")
    row.answer = payload.answer
    db.commit()
    db.refresh(row)
    return row

@app.delete("/answers/{answer_id}")
def delete_answer(answer_id: int, db: Session = Depends(get_db)):
    row = _get_or_404(db, Answer, answer_id, "Answer")
    db.delete(row)
    db.commit()
    return {"success": True, "message": "Answer deleted successfully"}

# ------------------------
# Analytics
# ------------------------
@app.get("/surveys/{survey_id}/analytics", response_model=SurveyAnalyticsReport, dependencies=[Depends(verify_admin)])
def survey_analytics(
    survey_id: int,
    db: Session = Depends(get_db),
    client: GeminiClient = Depends(get_narrative_client),
):
    """Live statistics for a survey plus a Gemini summary/insight.

    Gemini is only called when at least one response exists; generation
    problems degrade into fallback text and never change the status code.
    The computed result is stored as the survey's analytics snapshot.

    Raises:
        HTTPException: 404 if survey not found.
    """
    data = load_survey_tally_input(db, survey_id)
    if data is None:
        raise HTTPException(404, "Survey not found")

    report = data.to_report()
    stats = survey_statistics(report)
    narrative = analyze_survey(report, client) if report.total_respondents > 0 else None
    upsert_analytics_snapshot(db, survey_id, stats, narrative)

    s = data.survey
    return {
        "survey": {"id": s.id, "title": s.title, "description": s.description, "is_active": s.is_active},
        "statistics": asdict(stats),
        "questions_stats": [
            {
                "question_id": t.question_id,
                "question_text": t.question_text,
                "setuju": t.agree_count,
                "tidak_setuju": t.disagree_count,
                "setuju_percentage": t.agree_pct,
                "tidak_setuju_percentage": t.disagree_pct,
            }
            for t in report.per_question
        ],
        "gemini_analysis": narrative.to_dict() if narrative else None,
    }

@app.post("/surveys/{survey_id}/generate-analytics", response_model=AnalyticsOut, dependencies=[Depends(verify_admin)])
def generate_analytics(survey_id: int, db: Session = Depends(get_db)):
    """Recompute and store the tally-only snapshot (stored narrative is kept as is).

    Raises:
        HTTPException: 404 if survey not found.
    """
    data = load_survey_tally_input(db, survey_id)
    if data is None:
        raise HTTPException(404, "Survey not found")
    stats = survey_statistics(data.to_report())
    return upsert_analytics_snapshot(db, survey_id, stats)

@app.get("/survey-analytics", response_model=List[AnalyticsOut], dependencies=[Depends(verify_admin)])
def list_analytics(db: Session = Depends(get_db)):
    return db.execute(select(SurveyAnalytics).order_by(SurveyAnalytics.id)).scalars().all()

@app.post("/survey-analytics", response_model=AnalyticsOut, status_code=201, dependencies=[Depends(verify_admin)])
def create_analytics(payload: AnalyticsCreate, db: Session = Depends(get_db)):
    """Store a snapshot manually.

    Raises:
        HTTPException: 404 if survey not found; 422 if the survey already has one.
    """
    _get_or_404(db, Survey, payload.survey_id, "Survey")
    existing = db.execute(
        select(SurveyAnalytics).where(SurveyAnalytics.survey_id == payload.survey_id)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(422, "Analytics already exists for this survey")
    row = SurveyAnalytics(**payload.model_dump(exclude_none=True))
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(422, "Analytics already exists for this survey")
    db.refresh(row)
    return row

@app.get("/survey-analytics/{analytics_id}", response_model=AnalyticsOut, dependencies=[Depends(verify_admin)])
def get_analytics(analytics_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, SurveyAnalytics, analytics_id, "Analytics")

@app.put("/survey-analytics/{analytics_id}", response_model=AnalyticsOut, dependencies=[Depends(verify_admin)])
def update_analytics(analytics_id: int, payload: AnalyticsUpdate, db: Session = Depends(get_db)):
    row = _get_or_404(db, SurveyAnalytics, analytics_id, "Analytics")
    _apply_updates(row, payload)
    db.commit()
    db.refresh(row)
    return row

@app.delete("/survey-analytics/{analytics_id}", dependencies=[Depends(verify_admin)])
def delete_analytics(analytics_id: int, db: Session = Depends(get_db)):
    row = _get_or_404(db, SurveyAnalytics, analytics_id, "Analytics")
    db.delete(row)
    db.commit()
    return {"message": "Analytics deleted successfully"}

# ------------------------
# Gemini diagnostics
# ------------------------
DEFAULT_TEST_PROMPT = "Halo Gemini! Tolong perkenalkan dirimu dalam bahasa Indonesia."

SAMPLE_SURVEY = {
    "title": "Survei Kepuasan Pelayanan Kampus",
    "total_responden": 50,
    "questions": [
        (1, "Apakah Anda puas dengan fasilitas perpustakaan?", 42, 8),
        (2, "Apakah dosen mengajar dengan baik dan profesional?", 45, 5),
        (3, "Apakah lingkungan kampus nyaman dan bersih?", 38, 12),
    ],
}

def _run_test_prompt(prompt: str, client: GeminiClient):
    outcome = client.generate(prompt)
    if not outcome.ok:
        return JSONResponse(status_code=500, content={
            "success": False,
            "message": "Gemini API returned no usable response",
            "prompt": prompt,
            "error": outcome.error,
        })
    return {"success": True, "message": "Gemini API is working!", "prompt": prompt, "response": outcome.text}

@app.get("/test/gemini", dependencies=[Depends(verify_admin)])
def gemini_probe(prompt: Optional[str] = None, client: GeminiClient = Depends(get_narrative_client)):
    """Send a single prompt to Gemini to check connectivity."""
    return _run_test_prompt(prompt or DEFAULT_TEST_PROMPT, client)

@app.post("/test/gemini", dependencies=[Depends(verify_admin)])
def gemini_probe_post(body: Optional[GeminiTestRequest] = None, client: GeminiClient = Depends(get_narrative_client)):
    return _run_test_prompt((body.prompt if body else None) or DEFAULT_TEST_PROMPT, client)

@app.get("/test/gemini/survey", dependencies=[Depends(verify_admin)])
def gemini_survey_probe(client: GeminiClient = Depends(get_narrative_client)):
    """Run the full narrative pipeline on a fixed sample survey."""
    report = build_report(
        SAMPLE_SURVEY["title"],
        [(qid, text) for qid, text, _, _ in SAMPLE_SURVEY["questions"]],
        {qid: [True] * agree + [False] * disagree for qid, _, agree, disagree in SAMPLE_SURVEY["questions"]},
        SAMPLE_SURVEY["total_responden"],
    )
    analysis = analyze_survey(report, client)
    return {
        "success": True,
        "message": "Survey analysis completed",
        "sample_data": {
            "title": report.survey_title,
            "total_responden": report.total_respondents,
            "questions": [asdict(t) for t in report.per_question],
        },
        "analysis": analysis.to_dict(),
    }

# ------------------------
# Export
# ------------------------
@app.get("/surveys/{survey_id}/export.csv", dependencies=[Depends(verify_admin)])
def export_csv(survey_id: int, db: Session = Depends(get_db)):
    """Export a survey's answers as CSV (sorted by response, then question order).

    Returns:
        Response: text/csv attachment `survey_<id>_answers.csv`.

    Raises:
        HTTPException: 404 if survey not found.
    """
    _get_or_404(db, Survey, survey_id, "Survey")
    q = select(SurveyResponse.id.label("response_id"), SurveyResponse.user_id, SurveyResponse.submitted_at,
               Question.order, Question.question_text.label("question"),
               Answer.answer).join(Answer, Answer.response_id == SurveyResponse.id).join(Question, Question.id == Answer.question_id).where(SurveyResponse.survey_id == survey_id).order_by(SurveyResponse.id, Question.order, Question.id)
    df = pd.read_sql(q, db.bind)
    csv_bytes = df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv",
                    headers={"Content-Disposition": f"attachment; filename=survey_{survey_id}_answers.csv"})
