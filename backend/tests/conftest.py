import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure backend package is importable
backend_root = Path(__file__).resolve().parents[1]
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from kryptohire.schemas import (  # noqa: E402
    ChatOptimizedResume,
    JobListing,
    OptimizedResume,
    ResumeContent,
    ResumeScore,
)

SERVER_KEYS = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "ANTHROPIC_API_KEY",
    "OPENROUTER_API_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "STRIPE_PRO_PRICE_ID",
)


@pytest.fixture
def session_factory(tmp_path, monkeypatch):
    """Isolated SQLite DB under tmp_path, wired into the app's db module."""
    monkeypatch.setenv("CORS_ORIGINS", "*")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    # Avoid accidental usage of real API keys during tests
    for key in SERVER_KEYS:
        monkeypatch.setenv(key, "")

    from kryptohire import db
    # Ensure models are registered on Base before create_all
    import kryptohire.models  # noqa: F401

    test_db_path = tmp_path / "test.db"
    engine = create_engine(
        f"sqlite:///{test_db_path}", connect_args={"check_same_thread": False}
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Ensure the app uses this engine when main.py imports it
    db.engine = engine
    db.Base.metadata.create_all(bind=engine)
    return TestingSessionLocal


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """Provide a FastAPI TestClient backed by the isolated SQLite DB."""
    from kryptohire import db
    from kryptohire.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[db.get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Create an account and return (auth headers, login payload)."""
    def _signup(email="alice@example.com", password="s3cret-pass"):
        r = client.post("/api/v1/auth/signup", json={"email": email, "password": password})
        assert r.status_code == 201, r.text
        data = r.json()["data"]
        return {"Authorization": f"Bearer {data['access_token']}"}, data
    return _signup


@pytest.fixture
def auth_headers(signup):
    headers, _ = signup()
    return headers


@pytest.fixture
def base_resume(client, auth_headers):
    body = {
        "name": "Backend Engineer",
        "importOption": "import-resume",
        "selectedContent": {
            "first_name": "Alice",
            "last_name": "Smith",
            "email": "alice@example.com",
            "work_experience": [{
                "position": "Software Engineer",
                "company": "Acme",
                "date": "2022 - Present",
                "description": ["Built APIs with FastAPI"],
                "technologies": ["Python"],
            }],
            "education": [{"school": "State University", "degree": "B.S.", "field": "Computer Science"}],
            "skills": [{"category": "Languages", "items": ["Python", "SQL"]}],
            "projects": [],
        },
    }
    r = client.post("/api/v1/resumes", json=body, headers=auth_headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]["resume"]


@pytest.fixture
def job(client, auth_headers):
    body = {
        "company_name": "Globex",
        "position_title": "Platform Engineer",
        "description": "Build Python services on AWS with Docker and Kubernetes.",
        "keywords": ["python", "aws", "kubernetes"],
        "work_location": "remote",
        "employment_type": "full_time",
    }
    r = client.post("/api/v1/jobs", json=body, headers=auth_headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]["job"]


def make_score(overall: float, sub: float = 90, tailored: bool = True) -> ResumeScore:
    metric = {"score": sub, "reason": f"scored {sub}"}
    data = {
        "overallScore": {"score": overall, "reason": "overall"},
        "completeness": {"contactInformation": metric, "detailLevel": metric},
        "impactScore": {"activeVoiceUsage": metric, "quantifiedAchievements": metric},
        "roleMatch": {"skillsRelevance": metric, "experienceAlignment": metric, "educationFit": metric},
        "miscellaneous": {"keywordOptimization": {"score": 70, "reason": "ok"}},
        "overallImprovements": ["Add metrics"],
        "jobSpecificImprovements": ["Mention Kubernetes"] if tailored else [],
        "isTailoredResume": tailored,
    }
    if tailored:
        data["jobAlignment"] = {
            "keywordMatch": dict(metric, missingKeywords=["terraform"]),
            "requirementsMatch": dict(metric, gapAnalysis=["No on-call experience"]),
            "companyFit": metric,
        }
    return ResumeScore.model_validate(data)


def make_content(summary: str = "Tailored summary", bullet: str = "Shipped Python services on AWS") -> ResumeContent:
    return ResumeContent.model_validate({
        "target_role": "Platform Engineer",
        "professional_summary": summary,
        "work_experience": [{
            "position": "Software Engineer",
            "company": "Acme",
            "date": "2022 - Present",
            "description": [bullet],
            "technologies": ["Python", "AWS"],
        }],
        "education": [{"school": "State University", "degree": "B.S.", "field": "Computer Science"}],
        "skills": [{"category": "Cloud", "items": ["AWS", "Kubernetes"]}],
        "projects": [],
    })


class FakeAIService:
    """Deterministic stand-in for AIService; scores are served in order from `scores`."""

    def __init__(self, scores=None, score_error=None):
        self.scores = list(scores or [make_score(88)])
        self.score_error = score_error
        self.calls = []

    async def tailor_resume(self, resume, job):
        self.calls.append(("tailor", resume["id"], job["id"]))
        return make_content()

    async def format_job_listing(self, listing):
        self.calls.append(("format_job", listing))
        return JobListing(
            company_name="Initech",
            position_title="Data Engineer",
            description="• Build pipelines\nOwn the Spark and Airflow stack.",
            location="Austin, TX",
            keywords=["spark", "airflow"],
            work_location="hybrid",
            employment_type="full_time",
        )

    async def score_resume(self, resume, job=None):
        self.calls.append(("score", resume["id"], job["id"] if job else None))
        if self.score_error:
            raise self.score_error
        if len(self.scores) > 1:
            return self.scores.pop(0)
        return self.scores[0]

    async def optimize_resume(self, prompt):
        n = sum(1 for c in self.calls if c[0] == "optimize") + 1
        self.calls.append(("optimize", prompt))
        return OptimizedResume(
            content=make_content(bullet=f"Cut latency {n * 10}% on AWS"),
            changes_made=[f"Quantified achievement in pass {n}"],
        )

    async def chat_optimize(self, resume, message, job=None):
        self.calls.append(("chat", message))
        return ChatOptimizedResume.model_validate({
            "content": make_content(bullet="Led migration to Kubernetes").model_dump(),
            "message": "Rewrote your experience bullet.",
            "changes_applied": [{"section": "work_experience", "description": "Stronger verb"}],
        })

    async def generate_cover_letter(self, resume, job, tone="professional", length="medium"):
        self.calls.append(("cover_letter", tone, length))
        return f"Dear {job['company_name']} team, I am excited to apply."

    async def import_resume_text(self, text):
        self.calls.append(("import_text", text))
        return make_content(summary="Imported summary")

    async def select_profile_content(self, profile, target_role):
        self.calls.append(("select_profile", target_role))
        # keep the first job and every degree, as the selector would
        return ResumeContent.model_validate({
            "work_experience": profile["work_experience"][:1],
            "education": profile["education"],
        })

    async def generate_work_experience_points(self, experience, target_role="", num_points=3, existing=None):
        self.calls.append(("work_points", experience["position"], num_points))
        return [f"**Built** feature {i + 1} at {experience['company']}" for i in range(num_points)]

    async def improve_work_experience_point(self, point, instruction=None):
        self.calls.append(("work_improve", point, instruction))
        return f"**Improved** {point}"

    async def generate_project_points(self, project, target_role="", num_points=3, existing=None):
        self.calls.append(("project_points", project["name"], num_points))
        return [f"**Shipped** {project['name']} part {i + 1}" for i in range(num_points)]

    async def improve_project_point(self, point, instruction=None):
        self.calls.append(("project_improve", point, instruction))
        return f"**Improved** {point}"


@pytest.fixture
def fake_ai(monkeypatch):
    """Route every AI call in the API modules to one FakeAIService."""
    from kryptohire.api import routes_ai, routes_cover_letters, routes_jobs, routes_optimize, routes_resumes

    fake = FakeAIService()
    for module in (routes_resumes, routes_jobs, routes_optimize, routes_cover_letters, routes_ai):
        monkeypatch.setattr(module, "get_ai_service", lambda *args, **kwargs: fake)
    return fake
