import os

os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest

from cbt.database import Base, SessionLocal, engine, init_db
from cbt.models import AssessmentImport
from cbt.services import assessment_service
from tests.helpers import SAMPLE_ASSESSMENT, FakeBackend, RecordingRewards


@pytest.fixture()
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def rewards() -> RecordingRewards:
    return RecordingRewards()


@pytest.fixture()
def db_session():
    Base.metadata.drop_all(bind=engine)
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def seeded_assessment(db_session):
    payload = AssessmentImport.model_validate(SAMPLE_ASSESSMENT)
    return assessment_service.import_assessment(db_session, payload)
