"""테스트 인프라: 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure: In-memory SQLite DB, session, and httpx client fixtures.
Each test gets a fresh aiosqlite engine with the full schema. The engine hooks
below let SQLite honour SAVEPOINTs, which the audit and notification writers use.
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

# 앱 임포트 전에 설정: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-testing"
os.environ["AXIOM_API_TOKEN"] = ""
os.environ["AXIOM_DATASET"] = ""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import *  # noqa: F401,F403 (register all models with metadata)
from app.models.issue import Issue, IssueCategory, IssuePriority, IssueStatus
from app.models.user import User, UserRole
from app.utils.jwt import create_access_token

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 매 테스트마다 스키마를 새로 만듭니다."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite 트랜잭션 처리 우회: let SQLAlchemy emit BEGIN so SAVEPOINT works
    @event.listens_for(eng.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트: DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
async def _create_user(
    db: AsyncSession,
    email: str,
    full_name: str,
    role: UserRole,
    **extra: Any,
) -> User:
    user = User(email=email, full_name=full_name, role=role, **extra)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> User:
    """관리자 사용자를 생성합니다."""
    return await _create_user(db, "admin@hostel.test", "Test Admin", UserRole.admin)


@pytest_asyncio.fixture
async def caretaker_user(db: AsyncSession) -> User:
    """관리인 사용자를 생성합니다."""
    return await _create_user(
        db, "caretaker@hostel.test", "Test Caretaker", UserRole.caretaker, hostel_name="Block A"
    )


@pytest_asyncio.fixture
async def student_user(db: AsyncSession) -> User:
    """학생 사용자를 생성합니다."""
    return await _create_user(
        db, "student@hostel.test", "Test Student", UserRole.student,
        hostel_name="Block A", room_number="203",
    )


@pytest_asyncio.fixture
async def other_student(db: AsyncSession) -> User:
    return await _create_user(
        db, "student2@hostel.test", "Second Student", UserRole.student,
        hostel_name="Block A", room_number="204",
    )


@pytest_asyncio.fixture
async def third_student(db: AsyncSession) -> User:
    return await _create_user(
        db, "student3@hostel.test", "Third Student", UserRole.student,
        hostel_name="Block A", room_number="205",
    )


IssueFactory = Callable[..., Awaitable[Issue]]


@pytest.fixture
def make_issue(db: AsyncSession) -> IssueFactory:
    """이슈 생성 팩토리. created_at은 호출 순서대로 증가합니다."""
    base_time = datetime(2026, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    async def _make(reporter: User, **overrides: Any) -> Issue:
        counter["n"] += 1
        data: dict[str, Any] = {
            "title": f"Issue {counter['n']}",
            "description": "Water leaking from the ceiling",
            "category": IssueCategory.maintenance,
            "priority": IssuePriority.medium,
            "status": IssueStatus.pending,
            "hostel_name": "Block A",
            "images": [],
            "notes": None,
            "reported_by": reporter.id,
            "created_at": base_time + timedelta(minutes=counter["n"]),
        }
        data.update(overrides)
        issue = Issue(**data)
        db.add(issue)
        await db.commit()
        await db.refresh(issue)
        return issue

    return _make


def make_token(user: User) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({"sub": str(user.id), "role": user.role.value})


@pytest.fixture
def admin_token(admin_user: User) -> str:
    return make_token(admin_user)


@pytest.fixture
def caretaker_token(caretaker_user: User) -> str:
    return make_token(caretaker_user)


@pytest.fixture
def student_token(student_user: User) -> str:
    return make_token(student_user)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
