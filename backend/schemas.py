# schemas.py
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

# ---- surveys ----
class SurveyCreate(BaseModel):
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    created_by: Optional[int] = None
    is_active: bool = True

class SurveyUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None

class SurveyOut(BaseModel):
    id: int
    title: str
    description: Optional[str]
    created_by: Optional[int] = None
    is_active: bool
    created_at: Optional[datetime] = None
    class Config:
        from_attributes = True

# ---- questions ----
class QuestionCreate(BaseModel):
    survey_id: int
    question_text: str
    order: int = 0

class QuestionUpdate(BaseModel):
    question_text: Optional[str] = None
    order: Optional[int] = None

class QuestionOut(BaseModel):
    id: int
    survey_id: int
    question_text: str
    order: int
    class Config:
        from_attributes = True

class SurveyDetail(SurveyOut):
    questions: List[QuestionOut] = []
    response_count: int = 0

# ---- responses / answers ----
class ResponseCreate(BaseModel):
    survey_id: int
    user_id: Optional[int] = None

class ResponseOut(BaseModel):
    id: int
    survey_id: int
    user_id: Optional[int]
    submitted_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class AnswerCreate(BaseModel):
    response_id: int
    question_id: int
    answer: bool

class AnswerUpdate(BaseModel):
    answer: bool

class AnswerOut(BaseModel):
    id: int
    response_id: int
    question_id: int
    answer: bool
    class Config:
        from_attributes = True

class ResponseDetail(ResponseOut):
    answers: List[AnswerOut] = []

# ---- analytics snapshot ----
class AnalyticsCreate(BaseModel):
    survey_id: int
    total_responden: int = Field(..., ge=0)
    total_pertanyaan: int = Field(..., ge=0)
    total_setuju: int = Field(..., ge=0)
    total_tidak_setuju: int = Field(..., ge=0)
    setuju_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    tidak_setuju_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    gemini_summary: Optional[str] = None
    gemini_insight: Optional[str] = None
    generated_at: Optional[datetime] = None

class AnalyticsUpdate(BaseModel):
    total_responden: Optional[int] = Field(default=None, ge=0)
    total_pertanyaan: Optional[int] = Field(default=None, ge=0)
    total_setuju: Optional[int] = Field(default=None, ge=0)
    total_tidak_setuju: Optional[int] = Field(default=None, ge=0)
    setuju_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    tidak_setuju_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    gemini_summary: Optional[str] = None
    gemini_insight: Optional[str] = None
    generated_at: Optional[datetime] = None

class AnalyticsOut(BaseModel):
    id: int
    survey_id: int
    total_responden: int
    total_pertanyaan: int
    total_setuju: int
    total_tidak_setuju: int
    setuju_percentage: Optional[float]
    tidak_setuju_percentage: Optional[float]
    gemini_summary: Optional[str]
    gemini_insight: Optional[str]
    generated_at: Optional[datetime]
    class Config:
        from_attributes = True

# ---- live analytics report ----
class SurveyBrief(BaseModel):
    id: int
    title: str
    description: Optional[str]
    is_active: bool

class StatisticsOut(BaseModel):
    total_responden: int
    total_pertanyaan: int
    total_setuju: int
    total_tidak_setuju: int
    setuju_percentage: float
    tidak_setuju_percentage: float

class QuestionStatOut(BaseModel):
    question_id: int
    question_text: str
    setuju: int
    tidak_setuju: int
    setuju_percentage: float
    tidak_setuju_percentage: float

class NarrativeOut(BaseModel):
    summary: str
    insight: str

class SurveyAnalyticsReport(BaseModel):
    survey: SurveyBrief
    statistics: StatisticsOut
    questions_stats: List[QuestionStatOut]
    gemini_analysis: Optional[NarrativeOut] = None

class GeminiTestRequest(BaseModel):
    prompt: Optional[str] = None
