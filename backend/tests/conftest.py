import os, tempfile
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app, get_narrative_client
from db import Base, get_db, enable_sqlite_foreign_keys
from security import verify_admin
from gemini_client import GenerationResult

HDR = {"X-API-Key": "test-key"}

GOOD_OUTPUT = "**SUMMARY:** Hasil uji.\n\n**INSIGHT:** Saran uji."

@pytest.fixture(scope="session")
def tmp_db_path():
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    return path

@pytest.fixture(scope="session")
def test_engine(tmp_db_path):
    url = f"sqlite:///{tmp_db_path}"
    engine = create_engine(url, connect_args={"check_same_thread": False})
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    return engine

@pytest.fixture(scope="session")
def TestingSessionLocal(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

@pytest.fixture(scope="session", autouse=True)
def override_di(TestingSessionLocal):
    def _get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()
    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[verify_admin] = lambda: None

class FakeNarrativeClient:
    """Stands in for GeminiClient; records prompts instead of calling the API."""
    configured = True

    def __init__(self, outcome: GenerationResult):
        self.outcome = outcome
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        return self.outcome

@pytest.fixture
def narrative():
    fake = FakeNarrativeClient(GenerationResult.success(GOOD_OUTPUT))
    app.dependency_overrides[get_narrative_client] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_narrative_client, None)

@pytest.fixture
def client(narrative):
    return TestClient(app)

@pytest.fixture
def make_survey(client):
    """Create a survey, its questions and one response per answer row.

    Each row lists one bool per question; None leaves that question unanswered.
    """
    def _make(title, questions, rows=()):
        sid = client.post("/surveys", json={"title": title}, headers=HDR).json()["id"]
        qids = [
            client.post("/questions", json={"survey_id": sid, "question_text": text, "order": i}, headers=HDR).json()["id"]
            for i, text in enumerate(questions)
        ]
        for user_id, row in enumerate(rows, start=1):
            rid = client.post("/responses", json={"survey_id": sid, "user_id": user_id}).json()["id"]
            for qid, value in zip(qids, row):
                if value is None:
                    continue
                r = client.post("/answers", json={"response_id": rid, "question_id": qid, "answer": value})
                assert r.status_code == 201, r.text
        return sid, qids
    return _make
