# tests/conftest.py
"""
Pytest configuration: in-memory SQLite database, app with get_db overridden,
and user / token fixtures for each role.
"""

import os

# Set the environment BEFORE any gym_scheduler imports
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["SCHEDULE_TIMEZONE"] = "UTC"
os.environ["MAX_SCHEDULES_PER_DAY"] = "5"
os.environ["DEFAULT_MAX_TRAINEES"] = "10"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gym_scheduler import auth
from gym_scheduler.database import Base, build_engine, get_db
from gym_scheduler.main import app
from gym_scheduler.models import ClassSchedule, User, UserRole, utc_now

# Minimum bcrypt cost keeps the suite fast
auth.pwd_context.update(bcrypt__rounds=4)

TEST_PASSWORD = "Password123!"

test_engine = build_engine("sqlite://", poolclass=StaticPool)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


# ============================================================================
# Helpers
# ============================================================================


def future_slot(days: int = 1, hour: int = 9, minute: int = 0) -> datetime:
    """Naive UTC datetime ``days`` from today at ``hour:minute``."""
    return (utc_now() + timedelta(days=days)).replace(hour=hour, minute=minute, second=0, microsecond=0)


def make_user(db: Session, email: str, role: UserRole, name: str = None) -> User:
    user = User(
        email=email,
        name=name or email.split("@")[0],
        password=auth.get_password_hash(TEST_PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_schedule(db: Session, trainer: User, start: datetime, max_trainees: int = 10) -> ClassSchedule:
    """Insert a schedule directly, bypassing admission (e.g. for past classes)."""
    schedule = ClassSchedule(
        trainer_id=trainer.id,
        start_time=start,
        end_time=start + timedelta(hours=2),
        max_trainees=max_trainees,
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    return schedule


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {auth.create_user_token(user)}"}


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def db():
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db: Session):
    def override_get_db():
        try:
            yield db
        finally:
            # Same as closing a real request session: drop anything uncommitted
            db.rollback()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db: Session) -> User:
    return make_user(db, "admin@example.com", UserRole.ADMIN, "Admin")


@pytest.fixture
def trainer(db: Session) -> User:
    return make_user(db, "t1@example.com", UserRole.TRAINER, "T1")


@pytest.fixture
def other_trainer(db: Session) -> User:
    return make_user(db, "t2@example.com", UserRole.TRAINER, "T2")


@pytest.fixture
def trainee(db: Session) -> User:
    return make_user(db, "trainee@example.com", UserRole.TRAINEE, "Trainee")


@pytest.fixture
def other_trainee(db: Session) -> User:
    return make_user(db, "trainee2@example.com", UserRole.TRAINEE, "Trainee Two")


@pytest.fixture
def admin_headers(admin: User) -> dict:
    return headers_for(admin)


@pytest.fixture
def trainer_headers(trainer: User) -> dict:
    return headers_for(trainer)


@pytest.fixture
def trainee_headers(trainee: User) -> dict:
    return headers_for(trainee)
