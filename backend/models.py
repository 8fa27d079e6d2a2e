from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, Float, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from db import Base

class Survey(Base):
    __tablename__ = "surveys"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # opaque user identity supplied by the auth layer
    created_by = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    questions = relationship("Question", back_populates="survey", cascade="all, delete-orphan")
    responses = relationship("SurveyResponse", back_populates="survey", cascade="all, delete-orphan")
    analytics = relationship("SurveyAnalytics", uselist=False, back_populates="survey", cascade="all, delete-orphan")

class Question(Base):
    __tablename__ = "questions"
    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("surveys.id", ondelete="CASCADE"), index=True, nullable=False)
    question_text = Column(Text, nullable=False)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    survey = relationship("Survey", back_populates="questions")
    answers = relationship("Answer", back_populates="question", cascade="all, delete-orphan")

class SurveyResponse(Base):
    __tablename__ = "responses"
    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("surveys.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(Integer, nullable=True, index=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())
    survey = relationship("Survey", back_populates="responses")
    answers = relationship("Answer", back_populates="response", cascade="all, delete-orphan")

class Answer(Base):
    __tablename__ = "answers"
    __table_args__ = (UniqueConstraint("response_id", "question_id", name="uq_answer_response_question"),)
    id = Column(Integer, primary_key=True, index=True)
    response_id = Column(Integer, ForeignKey("responses.id", ondelete="CASCADE"), index=True, nullable=False)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), index=True, nullable=False)
    answer = Column(Boolean, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    response = relationship("SurveyResponse", back_populates="answers")
    question = relationship("Question", back_populates="answers")

class SurveyAnalytics(Base):
    """Cached analytics snapshot, one row per survey."""
    __tablename__ = "survey_analytics"
    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("surveys.id", ondelete="CASCADE"), unique=True, nullable=False)
    total_responden = Column(Integer, nullable=False, default=0)
    total_pertanyaan = Column(Integer, nullable=False, default=0)
    total_setuju = Column(Integer, nullable=False, default=0)
    total_tidak_setuju = Column(Integer, nullable=False, default=0)
    setuju_percentage = Column(Float, nullable=True)
    tidak_setuju_percentage = Column(Float, nullable=True)
    gemini_summary = Column(Text, nullable=True)
    gemini_insight = Column(Text, nullable=True)
    generated_at = Column(DateTime(timezone=True), server_default=func.now())
    survey = relationship("Survey", back_populates="analytics")
