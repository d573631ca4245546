"""
Shared fixtures.

Every test gets its own file-backed SQLite database so that thread-based race
tests open real, independent connections against the same data.
"""

from datetime import date, time, timedelta
from decimal import Decimal
from typing import Callable, Dict, Iterator

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from mentorhub.api.dependencies.database import get_db
from mentorhub.auth import create_access_token
from mentorhub.core.config import settings
from mentorhub.core.enums import RoleName
from mentorhub.database import Base, create_app_engine
from mentorhub.main import app
import mentorhub.models  # noqa: F401
from mentorhub.models.availability import TimeSlot
from mentorhub.models.booking import RecordedSession
from mentorhub.models.platform import Platform
from mentorhub.models.user import User, Wallet

# A Monday far enough ahead that slots are always in the future.
NEXT_MONDAY = date.today() + timedelta(days=(7 - date.today().weekday()) % 7 or 7)


@pytest.fixture
def engine(tmp_path) -> Iterator[Engine]:
    test_engine = create_app_engine(f"sqlite:///{tmp_path / 'mentorhub_test.db'}")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def make_user(db) -> Callable[..., User]:
    counter = {"n": 0}

    def _make_user(
        role: RoleName = RoleName.STUDENT,
        balance: Decimal | str | None = "0.00",
        **overrides,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=overrides.pop("email", f"user{counter['n']}@example.com"),
            full_name=overrides.pop("full_name", f"User {counter['n']}"),
            role=role.value,
            **overrides,
        )
        db.add(user)
        db.flush()
        if balance is not None:
            db.add(Wallet(user_id=user.id, balance=Decimal(str(balance))))
        db.commit()
        return user

    return _make_user


@pytest.fixture
def test_student(make_user) -> User:
    return make_user(balance="500.00", full_name="Sarah Student")


@pytest.fixture
def test_mentor(make_user) -> User:
    return make_user(
        role=RoleName.ADMIN,
        balance=None,
        full_name="Morgan Mentor",
        is_mentor=True,
        mentor_rate=Decimal("500.00"),
        mentor_bio="Ten years of backend mentoring",
    )


@pytest.fixture
def test_admin(test_mentor) -> User:
    return test_mentor


@pytest.fixture
def paid_platform(db) -> Platform:
    platform = Platform(name="Backend Track", price=Decimal("400.00"), is_paid=True)
    db.add(platform)
    db.commit()
    return platform


@pytest.fixture
def free_platform(db) -> Platform:
    platform = Platform(name="Open Library", price=Decimal("0.00"), is_paid=False)
    db.add(platform)
    db.commit()
    return platform


@pytest.fixture
def recorded_session(db) -> RecordedSession:
    session = RecordedSession(
        title="System design walkthrough",
        video_link="https://videos.example.com/system-design",
        price=Decimal("120.00"),
    )
    db.add(session)
    db.commit()
    return session


@pytest.fixture
def make_slot(db) -> Callable[..., TimeSlot]:
    def _make_slot(
        slot_date: date = NEXT_MONDAY,
        start: time = time(10, 0),
        end: time = time(11, 0),
        **overrides,
    ) -> TimeSlot:
        slot = TimeSlot(date=slot_date, start_time=start, end_time=end, **overrides)
        db.add(slot)
        db.commit()
        return slot

    return _make_slot


@pytest.fixture
def free_slot(make_slot) -> TimeSlot:
    return make_slot()


@pytest.fixture
def wallet_balance(session_factory) -> Callable[[str], Decimal]:
    """Balance read through a fresh session, independent of the test's session state."""

    def _balance(user_id: str) -> Decimal:
        with session_factory() as session:
            wallet = session.query(Wallet).filter(Wallet.user_id == user_id).one()
            return Decimal(wallet.balance)

    return _balance


@pytest.fixture
def restore_settings() -> Iterator[Callable[..., None]]:
    """Temporarily override attributes on the settings singleton."""
    original: Dict[str, object] = {}

    def _override(**values: object) -> None:
        for key, value in values.items():
            original.setdefault(key, getattr(settings, key))
            setattr(settings, key, value)

    yield _override

    for key, value in original.items():
        setattr(settings, key, value)


@pytest.fixture
def client(session_factory) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # No context manager: the lifespan would create the schema on the default engine.
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers_for(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers(test_student) -> Dict[str, str]:
    return auth_headers_for(test_student)


@pytest.fixture
def admin_headers(test_admin) -> Dict[str, str]:
    return auth_headers_for(test_admin)
