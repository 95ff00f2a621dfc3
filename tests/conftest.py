# tests/conftest.py
import os

# BD en memoria para toda la suite; debe fijarse antes de importar tourapi
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"

from datetime import datetime, timedelta, timezone  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tourapi.core.security import create_access_token  # noqa: E402
from tourapi.db.base import Base  # noqa: E402
from tourapi.db.session import SessionLocal, engine  # noqa: E402
from tourapi.main import app  # noqa: E402
from tourapi.models.survey import Survey, SurveyQuestion, SurveyQuestionOption  # noqa: E402
from tourapi.models.tour import Activity, Tour  # noqa: E402
from tourapi.models.user import User  # noqa: E402
from tourapi.schemas.auth import Caller  # noqa: E402

UTC = timezone.utc


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    with TestClient(app) as c:
        yield c


# -------------------- usuarios -------------------- #

@pytest.fixture
def make_user(db):
    def _make(role="User", first_name="Ana", last_name="Pérez", email=None):
        user = User(
            id=uuid4(),
            email=email or f"{uuid4().hex[:8]}@example.com",
            password_hash="x",
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def traveler(make_user):
    return make_user(role="User", first_name="Lucía", last_name="Gómez")


@pytest.fixture
def guide(make_user):
    return make_user(role="Guide", first_name="Marco", last_name="Ruiz")


@pytest.fixture
def admin(make_user):
    return make_user(role="Admin", first_name="Sara", last_name="Díaz")


@pytest.fixture
def caller_for():
    def _caller(user):
        return Caller(user_id=user.id, role=user.role, email=user.email)
    return _caller


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": user.id, "email": user.email, "role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _headers


# -------------------- tours -------------------- #

@pytest.fixture
def make_tour(db):
    def _make(end_date=None, start_date=None, post_tour_access_days=30, status="Draft"):
        end_date = end_date or datetime.now(UTC) + timedelta(days=10)
        start_date = start_date or end_date - timedelta(days=5)
        tour = Tour(
            name="Tour Industrial",
            start_date=start_date,
            end_date=end_date,
            status=status,
            post_tour_access_days=post_tour_access_days,
        )
        db.add(tour)
        db.commit()
        db.refresh(tour)
        return tour
    return _make


@pytest.fixture
def make_activity(db):
    def _make(tour, type="CompanyVisit", title="Visita a planta"):
        start = tour.start_date
        activity = Activity(
            tour_id=tour.id,
            type=type,
            title=title,
            start_time=start,
            end_time=start + timedelta(hours=2),
        )
        db.add(activity)
        db.commit()
        db.refresh(activity)
        return activity
    return _make


# -------------------- encuestas -------------------- #

@pytest.fixture
def make_survey(db):
    """
    questions: lista de (question_type, texto, [opciones]) en orden.
    Devuelve la encuesta con .questions cargadas.
    """
    def _make(questions, status="ACTIVE", public=False, expires_at=None):
        survey = Survey(title="Feedback del tour", type="CUSTOM", status=status)
        if public:
            survey.public_access_token = uuid4()
            survey.allow_public_access = True
            survey.public_access_created_at = datetime.now(UTC)
            survey.public_access_expires_at = expires_at or datetime.now(UTC) + timedelta(days=30)
        for idx, (qtype, text, options) in enumerate(questions):
            q = SurveyQuestion(question_text=text, question_type=qtype, order_index=idx)
            q.options = [
                SurveyQuestionOption(option_text=o, order_index=i) for i, o in enumerate(options or [])
            ]
            survey.questions.append(q)
        db.add(survey)
        db.commit()
        db.refresh(survey)
        return survey
    return _make
