import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

test_db_url = os.environ.get("TEST_DATABASE_URL") or "sqlite:///./test.db"
os.environ["DATABASE_URL"] = test_db_url
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["TESTING"] = "true"
os.environ.pop("REDIS_URL", None)
os.environ.pop("SENDGRID_API_KEY", None)

import uuid
import pytest
from fastapi.testclient import TestClient

from app.core.cache import cache
from app.core.constants import PurchaseStatusEnum, QuestionTypeEnum, RoleEnum
from app.core.database import Base, SessionLocal, engine
from app.core.security import create_access_token
from app.crud.course import course as crud_course
from app.crud.purchase import purchase as crud_purchase
from app.crud.user import user as crud_user
from app.models.exam import Exam
from app.models.question import Question
from app.schemas.user import CurrentUser
from app.utils import deps as deps_utils
from app.utils.events import event_bus
import main


@pytest.fixture(scope="session")
def database_engine():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if test_db_url.startswith("sqlite:///./") and os.path.exists("./test.db"):
        os.remove("./test.db")

@pytest.fixture(scope="function")
def db_session(database_engine):
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        # Services commit, so tables are emptied rather than rolled back.
        with database_engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())

@pytest.fixture(autouse=True)
def _isolate_process_state():
    cache.clear()
    event_bus.clear()
    yield
    cache.clear()
    event_bus.clear()

@pytest.fixture(scope="function")
def client(db_session):
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db_session):
    def _user_factory(email=None, full_name="Test Candidate", role=RoleEnum.CANDIDATE, is_active=True):
        return crud_user.create(db_session, obj_in={
            "email": email or f"candidate-{uuid.uuid4().hex[:8]}@test.com",
            "full_name": full_name,
            "role": role,
            "is_active": is_active,
        })
    return _user_factory

@pytest.fixture
def current_user_for():
    def _current_user_for(user):
        return CurrentUser.model_validate(user)
    return _current_user_for

@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return _auth_headers

@pytest.fixture
def course_factory(db_session):
    def _course_factory(title="Business Ethics Fundamentals", slug=None):
        return crud_course.create(db_session, obj_in={
            "slug": slug or f"course-{uuid.uuid4().hex[:8]}",
            "title": title,
            "is_active": True,
        })
    return _course_factory

@pytest.fixture
def purchase_factory(db_session):
    def _purchase_factory(user, course, status=PurchaseStatusEnum.COMPLETED):
        return crud_purchase.create(db_session, obj_in={
            "user_id": user.id,
            "course_id": course.id,
            "status": status,
            "amount_paid": 4900,
            "currency": "usd",
        })
    return _purchase_factory

def default_questions(slug):
    return [
        {
            "key": f"{slug}-q1",
            "question_text": "Which principle requires disclosing conflicts of interest?",
            "question_type": QuestionTypeEnum.MULTIPLE_CHOICE,
            "options": ["Confidentiality", "Transparency", "Efficiency", "Loyalty"],
            "correct_answer": 1,
            "points": 1,
            "explanation": "Transparency covers disclosure.",
        },
        {
            "key": f"{slug}-q2",
            "question_text": "A code of ethics applies to senior management.",
            "question_type": QuestionTypeEnum.TRUE_FALSE,
            "options": ["True", "False"],
            "correct_answer": 0,
            "points": 1,
            "explanation": None,
        },
    ]

@pytest.fixture
def exam_factory(db_session):
    def _exam_factory(course, questions=None, passing_score=80, max_attempts=2,
                      time_limit_minutes=90, shuffle_questions=False, is_published=True):
        exam = Exam(
            course_id=course.id,
            title=f"{course.title} Certification Exam",
            passing_score=passing_score,
            max_attempts=max_attempts,
            time_limit_minutes=time_limit_minutes,
            shuffle_questions=shuffle_questions,
            is_published=is_published,
        )
        db_session.add(exam)
        db_session.flush()
        for position, q in enumerate(questions if questions is not None else default_questions(course.slug)):
            db_session.add(Question(exam_id=exam.id, position=position, **q))
        db_session.commit()
        db_session.refresh(exam)
        return exam
    return _exam_factory

@pytest.fixture
def exam_setup(user_factory, course_factory, purchase_factory, exam_factory):
    """A purchased course with a published 2-question, 80%-passing, 2-attempt exam."""
    def _exam_setup(purchased=True, **exam_kwargs):
        user = user_factory()
        course = course_factory()
        exam = exam_factory(course, **exam_kwargs)
        if purchased:
            purchase_factory(user, course)
        return user, course, exam
    return _exam_setup

@pytest.fixture
def admin_user(user_factory):
    return user_factory(email=f"admin-{uuid.uuid4().hex[:8]}@test.com", full_name="Exam Admin", role=RoleEnum.ADMIN)
