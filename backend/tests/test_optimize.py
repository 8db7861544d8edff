from fastapi.testclient import TestClient

from conftest import FakeAIService, make_score
from kryptohire.optimizer import build_optimization_prompt, weak_areas


def _use_fake(monkeypatch, fake):
    from kryptohire.api import routes_optimize
    monkeypatch.setattr(routes_optimize, "get_ai_service", lambda *a, **k: fake)


def _optimize(client, headers, base_id, job_id, **extra):
    body = {"base_resume_id": base_id, "job_id": job_id}
    body.update(extra)
    return client.post("/api/v1/optimize", json=body, headers=headers)


def test_optimize_stops_when_target_reached_first_pass(client, auth_headers, base_resume, job, monkeypatch):
    fake = FakeAIService(scores=[make_score(90)])
    _use_fake(monkeypatch, fake)

    r = _optimize(client, auth_headers, base_resume["id"], job["id"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["target_achieved"] is True
    assert data["iterations"] == 1
    assert data["optimization_history"][0]["changes"] == ["Target score achieved"]
    assert data["optimization_history"][0]["score"] == 90
    assert data["resume"]["is_base_resume"] is False
    # tailor, one scoring pass, then the final scoring
    assert [c[0] for c in fake.calls] == ["tailor", "score", "score"]


def test_optimize_iterates_until_target(client, auth_headers, base_resume, job, monkeypatch):
    fake = FakeAIService(scores=[make_score(60, sub=70), make_score(75), make_score(90), make_score(92)])
    _use_fake(monkeypatch, fake)

    r = _optimize(client, auth_headers, base_resume["id"], job["id"], target_score=85, max_iterations=5)
    data = r.json()["data"]
    history = data["optimization_history"]

    assert data["target_achieved"] is True
    assert data["iterations"] == 3
    assert [h["score"] for h in history] == [60, 75, 90]
    assert history[0]["changes"] == ["Quantified achievement in pass 1"]
    assert history[1]["changes"] == ["Quantified achievement in pass 2"]
    assert history[2]["changes"] == ["Target score achieved"]
    assert data["score"]["overallScore"]["score"] == 92
    # the saved resume carries the last optimized content
    assert data["resume"]["work_experience"][0]["description"] == ["Cut latency 20% on AWS"]

    stored = client.get(f"/api/v1/resumes/{data['resume']['id']}", headers=auth_headers).json()["data"]["resume"]
    assert stored["work_experience"][0]["description"] == ["Cut latency 20% on AWS"]


def test_optimize_exhausts_iterations(client, auth_headers, base_resume, job, monkeypatch):
    fake = FakeAIService(scores=[make_score(50)])
    _use_fake(monkeypatch, fake)

    r = _optimize(client, auth_headers, base_resume["id"], job["id"], target_score=95, max_iterations=2)
    data = r.json()["data"]
    assert data["target_achieved"] is False
    assert data["iterations"] == 2
    assert all(h["changes"] != ["Target score achieved"] for h in data["optimization_history"])
    assert [c[0] for c in fake.calls] == ["tailor", "score", "optimize", "score", "optimize", "score"]


def test_optimize_validates_bounds(client, auth_headers, base_resume, job, fake_ai):
    r = _optimize(client, auth_headers, base_resume["id"], job["id"], max_iterations=11)
    assert r.status_code == 400
    r = _optimize(client, auth_headers, base_resume["id"], job["id"], target_score=101)
    assert r.status_code == 400
    assert fake_ai.calls == []


def test_optimize_requires_base_resume(client, auth_headers, base_resume, job, fake_ai):
    tailored = client.post(
        "/api/v1/resumes/tailor",
        json={"base_resume_id": base_resume["id"], "job_id": job["id"]},
        headers=auth_headers,
    ).json()["data"]["resume"]
    r = _optimize(client, auth_headers, tailored["id"], job["id"])
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "NOT_FOUND"
    assert "base resume" in r.json()["error"]["message"]


def test_optimize_aborts_on_ai_failure(client, auth_headers, base_resume, job, monkeypatch):
    _use_fake(monkeypatch, FakeAIService(score_error=RuntimeError("all models failed")))
    quiet = TestClient(client.app, raise_server_exceptions=False)

    r = _optimize(quiet, auth_headers, base_resume["id"], job["id"])
    assert r.status_code == 500
    assert r.json()["error"]["code"] == "INTERNAL_ERROR"


def test_weak_areas_and_prompt():
    score = make_score(60, sub=70)
    areas, suggestions = weak_areas(score)
    assert areas == [
        "Contact Information", "Detail Level", "Active Voice Usage", "Quantified Achievements",
        "Skills Relevance", "Experience Alignment", "Education Fit",
        "Keyword Match", "Requirements Match", "Company Fit",
    ]
    assert "Missing keywords: terraform" in suggestions
    assert "Gaps: No on-call experience" in suggestions
    assert suggestions[-2:] == ["Add metrics", "Mention Kubernetes"]

    prompt = build_optimization_prompt(score, {"name": "R"}, {"company_name": "Globex"})
    assert "CURRENT SCORE: 60.0/100" in prompt
    assert "1. Contact Information" in prompt
    assert '"company_name": "Globex"' in prompt


def test_prompt_without_weak_areas():
    prompt = build_optimization_prompt(make_score(82, sub=85, tailored=False), {}, {})
    assert "None identified" in prompt


def test_chat_optimize_applies_changes(client, auth_headers, base_resume, fake_ai):
    r = client.post(
        "/api/v1/optimize/chat",
        json={"resume_id": base_resume["id"], "message": "Make my bullets punchier"},
        headers=auth_headers,
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["message"] == "Rewrote your experience bullet."
    assert data["changes_applied"] == [{"section": "work_experience", "description": "Stronger verb"}]
    assert data["resume"]["work_experience"][0]["description"] == ["Led migration to Kubernetes"]
    assert data["resume"]["is_base_resume"] is True
    assert fake_ai.calls == [("chat", "Make my bullets punchier")]
