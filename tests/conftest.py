"""테스트 인프라 — 테스트 DB, 세션, httpx 클라이언트 및 조직 데이터 픽스처.

Test infrastructure — Test database, session, and httpx client fixtures.
Defaults to a throwaway SQLite file through aiosqlite; set
TEST_DATABASE_URL to a postgresql+asyncpg URL to run against PostgreSQL.
Schema is applied once per session, data is wiped after each test.
"""

import os
from collections.abc import AsyncGenerator
from datetime import date, timedelta
from pathlib import Path

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///./test_competency_review.db")
# app.database가 같은 DB를 보도록 import 전에 설정 (Point the app engine at the test DB before import)
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import delete, text  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.database import Base, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models import *  # noqa: F401,F403,E402 — register all models with metadata
from app.utils.jwt import create_access_token  # noqa: E402

_IS_SQLITE = TEST_DATABASE_URL.startswith("sqlite")
_schema_created = False


@pytest.fixture(scope="session", autouse=True)
def test_database_file():
    """SQLite 파일 DB는 세션 종료 후 삭제합니다."""
    yield
    if _IS_SQLITE:
        path = Path(TEST_DATABASE_URL.split("///", 1)[1])
        path.unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진. 첫 호출 시 스키마를 새로 만듭니다."""
    global _schema_created
    eng = create_async_engine(TEST_DATABASE_URL, echo=False, pool_pre_ping=True)

    if not _schema_created:
        async with eng.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
        _schema_created = True

    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        yield session
        try:
            await session.commit()
        except Exception:
            await session.rollback()

    # 테스트 후 모든 데이터 정리
    async with factory() as cleanup:
        tables = list(reversed(Base.metadata.sorted_tables))
        if _IS_SQLITE:
            for table in tables:
                await cleanup.execute(delete(table))
        else:
            await cleanup.execute(text(f"TRUNCATE {', '.join(t.name for t in tables)} CASCADE"))
        await cleanup.commit()


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 디렉터리 (역할, 밴드, 팀, 사용자)
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def roles(db: AsyncSession):
    """디렉터리 역할 4개를 생성합니다 (이름 대소문자는 디렉터리 그대로)."""
    from app.models.user import Role
    result = {}
    for name in ["Admin", "HR", "Leader", "Employee"]:
        role = Role(name=name)
        db.add(role)
        result[name.upper()] = role
    await db.flush()
    return result


@pytest_asyncio.fixture
async def bands(db: AsyncSession):
    """커리어 밴드 B1(요구 역량 있음), B2(요구 역량 없음)."""
    from app.models.user import CareerBand
    result = {}
    for band_name, title in [("B1", "Associate"), ("B2", "Professional")]:
        band = CareerBand(band_name=band_name, title=title)
        db.add(band)
        result[band_name] = band
    await db.flush()
    return result


@pytest_asyncio.fixture
async def competencies(db: AsyncSession):
    """역량 3개 — Core 그룹 2개(Communication, Teamwork) + 그룹 없는 Problem Solving."""
    from app.models.competency import Competency, CompetencyGroup, CompetencyLevel
    core = CompetencyGroup(name="Core")
    db.add(core)
    await db.flush()

    result = {}
    for name, group_id in [("Communication", core.id), ("Teamwork", core.id), ("Problem Solving", None)]:
        competency = Competency(name=name, group_id=group_id)
        db.add(competency)
        await db.flush()
        for number in range(1, 6):
            db.add(CompetencyLevel(
                competency_id=competency.id,
                level_number=number,
                behavioral_indicator=f"{name} level {number}",
            ))
        result[name] = competency
    await db.flush()
    return result


@pytest_asyncio.fixture
async def requirements(db: AsyncSession, bands, competencies):
    """B1 요구 수준: Communication 3, Teamwork 2, Problem Solving 3."""
    from app.models.competency import CompetencyRequirement
    levels = {"Communication": 3, "Teamwork": 2, "Problem Solving": 3}
    for name, level in levels.items():
        db.add(CompetencyRequirement(
            career_band_id=bands["B1"].id,
            competency_id=competencies[name].id,
            required_level=level,
        ))
    await db.flush()
    return levels


async def _make_user(db: AsyncSession, full_name: str, role, email: str | None = None, team=None, band=None):
    from app.models.user import User
    user = User(
        full_name=full_name,
        email=email,
        role_id=role.id,
        team_id=team.id if team is not None else None,
        career_band_id=band.id if band is not None else None,
    )
    db.add(user)
    await db.flush()
    return user


@pytest_asyncio.fixture
async def team(db: AsyncSession):
    from app.models.user import Team
    t = Team(name="Platform")
    db.add(t)
    await db.flush()
    return t


@pytest_asyncio.fixture
async def other_team(db: AsyncSession):
    from app.models.user import Team
    t = Team(name="Sales")
    db.add(t)
    await db.flush()
    return t


@pytest_asyncio.fixture
async def leader_user(db: AsyncSession, roles, team):
    """Platform 팀장 (커리어 밴드 없음 → 일괄 배정 대상 아님)."""
    user = await _make_user(db, "Lena Leader", roles["LEADER"], "lena@example.com", team=team)
    team.leader_id = user.id
    await db.flush()
    return user


@pytest_asyncio.fixture
async def employee_user(db: AsyncSession, roles, team, bands, leader_user):
    return await _make_user(db, "Eve Employee", roles["EMPLOYEE"], "eve@example.com", team=team, band=bands["B1"])


@pytest_asyncio.fixture
async def peer_user(db: AsyncSession, roles, team, bands, leader_user):
    """같은 팀의 다른 직원."""
    return await _make_user(db, "Paul Peer", roles["EMPLOYEE"], None, team=team, band=bands["B1"])


@pytest_asyncio.fixture
async def outsider_user(db: AsyncSession, roles, other_team, bands):
    """다른 팀, 요구 역량이 없는 밴드(B2)."""
    return await _make_user(db, "Oscar Outsider", roles["EMPLOYEE"], None, team=other_team, band=bands["B2"])


@pytest_asyncio.fixture
async def hr_user(db: AsyncSession, roles):
    return await _make_user(db, "Hana HR", roles["HR"], "hana@example.com")


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession, roles):
    return await _make_user(db, "Adam Admin", roles["ADMIN"])


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 평가 주기
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def draft_cycle(db: AsyncSession):
    from app.models.assessment import AssessmentCycle, CycleStatus
    today = date.today()
    cycle = AssessmentCycle(
        name="2026 H2",
        start_date=today,
        end_date=today + timedelta(days=30),
        status=CycleStatus.DRAFT.value,
    )
    db.add(cycle)
    await db.flush()
    return cycle


@pytest_asyncio.fixture
async def active_cycle(db: AsyncSession, draft_cycle):
    from app.models.assessment import CycleStatus
    draft_cycle.status = CycleStatus.ACTIVE.value
    await db.flush()
    return draft_cycle


@pytest_asyncio.fixture
async def assessment(db: AsyncSession, active_cycle, employee_user, requirements):
    """직원의 SELF_ASSESSING 평가 (요구 수준 스냅샷 포함)."""
    from app.services.cycle_service import cycle_service
    from app.repositories.competency_repository import requirement_repository
    reqs = await requirement_repository.get_for_band(db, employee_user.career_band_id)
    created, _ = await cycle_service._create_assessment(db, active_cycle, employee_user, reqs)
    return created


def make_token(user, role_name: str) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({"sub": str(user.id), "role": role_name})


@pytest.fixture
def hr_token(hr_user) -> str:
    return make_token(hr_user, "HR")


@pytest.fixture
def admin_token(admin_user) -> str:
    return make_token(admin_user, "Admin")


@pytest.fixture
def leader_token(leader_user) -> str:
    return make_token(leader_user, "Leader")


@pytest.fixture
def employee_token(employee_user) -> str:
    return make_token(employee_user, "Employee")


@pytest.fixture
def peer_token(peer_user) -> str:
    return make_token(peer_user, "Employee")


@pytest.fixture
def outsider_token(outsider_user) -> str:
    return make_token(outsider_user, "Employee")


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
