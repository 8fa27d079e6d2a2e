# backend/tests/test_public.py
HDR = {"X-API-Key": "test-key"}

def _make_survey(client, title="Public Flow", questions=("Q1", "Q2")):
    sid = client.post("/surveys", json={"title": title}, headers=HDR).json()["id"]
    qids = [
        client.post("/questions", json={"survey_id": sid, "question_text": q, "order": i}, headers=HDR).json()["id"]
        for i, q in enumerate(questions)
    ]
    return sid, qids

def test_response_answer_crud(client):
    sid, (q1, q2) = _make_survey(client)

    r = client.post("/responses", json={"survey_id": sid, "user_id": 42})
    assert r.status_code == 201
    rid = r.json()["id"]
    assert r.json()["user_id"] == 42

    a = client.post("/answers", json={"response_id": rid, "question_id": q1, "answer": True})
    assert a.status_code == 201
    aid = a.json()["id"]
    client.post("/answers", json={"response_id": rid, "question_id": q2, "answer": False})

    # flip the answer
    a2 = client.put(f"/answers/{aid}", json={"answer": False}).json()
    assert a2["answer"] is False

    detail = client.get(f"/responses/{rid}").json()
    assert detail["survey_id"] == sid
    assert sorted(x["question_id"] for x in detail["answers"]) == [q1, q2]

    assert [x["id"] for x in client.get("/responses", params={"user_id": 42}).json()] == [rid]
    assert client.get(f"/surveys/{sid}").json()["response_count"] == 1

    assert client.delete(f"/answers/{aid}").status_code == 200
    assert len(client.get("/answers", params={"response_id": rid}).json()) == 1

    assert client.delete(f"/responses/{rid}").status_code == 200
    assert client.get("/answers", params={"response_id": rid}).json() == []

def test_duplicate_answer_is_409(client):
    sid, (q1, _) = _make_survey(client, "Duplikat")
    rid = client.post("/responses", json={"survey_id": sid}).json()["id"]
    assert client.post("/answers", json={"response_id": rid, "question_id": q1, "answer": True}).status_code == 201
    r = client.post("/answers", json={"response_id": rid, "question_id": q1, "answer": False})
    assert r.status_code == 409

def test_answer_for_other_survey_question_is_400(client):
    sid_a, _ = _make_survey(client, "A")
    _, (qb, _) = _make_survey(client, "B")
    rid = client.post("/responses", json={"survey_id": sid_a}).json()["id"]
    r = client.post("/answers", json={"response_id": rid, "question_id": qb, "answer": True})
    assert r.status_code == 400

def test_inactive_survey_rejects_responses(client):
    sid = client.post("/surveys", json={"title": "Tutup", "is_active": False}, headers=HDR).json()["id"]
    assert client.post("/responses", json={"survey_id": sid}).status_code == 403

def test_missing_references(client):
    assert client.post("/responses", json={"survey_id": 999999}).status_code == 404
    assert client.post("/answers", json={"response_id": 999999, "question_id": 1, "answer": True}).status_code == 404
    assert client.get("/responses/999999").status_code == 404
