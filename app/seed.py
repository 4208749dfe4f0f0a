"""초기 데이터 시드 스크립트 — 역할, 커리어 밴드, 역량 카탈로그, 요구 매트릭스.

Seed script — Bootstraps roles, career bands, a starter competency catalog
(each competency with five behavioral levels), the requirement matrix and
one HR account.

Usage:
    python -m app.seed

Creates:
    - 4개 역할: ADMIN, HR, LEADER, EMPLOYEE
    - 3개 커리어 밴드: B1 Associate, B2 Professional, B3 Senior
    - 2개 역량 그룹 + 4개 역량 (각 5단계)
    - 밴드 × 역량 요구 수준
    - HR 계정 1개 (hr@example.com)
"""

import asyncio

from sqlalchemy import select

from app.database import async_session, engine, Base
from app.models import (
    CareerBand,
    Competency,
    CompetencyGroup,
    CompetencyLevel,
    CompetencyRequirement,
    Role,
    User,
)
from app.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

ROLES: list[str] = ["ADMIN", "HR", "LEADER", "EMPLOYEE"]

BANDS: list[tuple[str, str]] = [
    ("B1", "Associate"),
    ("B2", "Professional"),
    ("B3", "Senior Professional"),
]

# 그룹 → 역량 → 5단계 행동 지표 (Group → competency → five level indicators)
CATALOG: dict[str, dict[str, list[str]]] = {
    "Core": {
        "Communication": [
            "Shares information when asked",
            "Communicates clearly within the team",
            "Adapts the message to the audience",
            "Facilitates difficult conversations",
            "Shapes communication across the organization",
        ],
        "Collaboration": [
            "Participates in team activities",
            "Supports teammates proactively",
            "Builds working relationships across teams",
            "Resolves conflicts between groups",
            "Creates a collaborative culture",
        ],
    },
    "Technical": {
        "Problem Solving": [
            "Solves routine problems with guidance",
            "Solves routine problems independently",
            "Analyses complex problems and proposes options",
            "Anticipates problems and prevents them",
            "Defines the approach for problems no one has solved",
        ],
        "Domain Knowledge": [
            "Knows the basic terminology",
            "Applies standard practices",
            "Understands the domain in depth",
            "Is the go-to person for the domain",
            "Is recognised as an authority outside the company",
        ],
    },
}

# 밴드별 요구 수준 (Required level per band, same order as BANDS)
REQUIREMENTS: dict[str, list[int]] = {
    "Communication": [2, 3, 4],
    "Collaboration": [2, 3, 4],
    "Problem Solving": [2, 3, 4],
    "Domain Knowledge": [1, 3, 4],
}


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Idempotent: 역할이 이미 있으면 건너뜁니다 (Skips if roles already exist).
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        result = await db.execute(select(Role).limit(1))
        if result.scalar_one_or_none():
            logger.info("Already seeded. Skipping.")
            return

        roles: dict[str, Role] = {}
        for name in ROLES:
            roles[name] = Role(name=name)
            db.add(roles[name])

        bands: list[CareerBand] = []
        for band_name, title in BANDS:
            band = CareerBand(band_name=band_name, title=title)
            db.add(band)
            bands.append(band)
        await db.flush()

        for group_name, competencies in CATALOG.items():
            group = CompetencyGroup(name=group_name)
            db.add(group)
            await db.flush()
            for competency_name, indicators in competencies.items():
                competency = Competency(group_id=group.id, name=competency_name)
                db.add(competency)
                await db.flush()
                for number, indicator in enumerate(indicators, start=1):
                    db.add(CompetencyLevel(
                        competency_id=competency.id,
                        level_number=number,
                        behavioral_indicator=indicator,
                    ))
                for band, level in zip(bands, REQUIREMENTS[competency_name]):
                    db.add(CompetencyRequirement(
                        career_band_id=band.id,
                        competency_id=competency.id,
                        required_level=level,
                    ))

        hr = User(
            email="hr@example.com",
            full_name="HR Administrator",
            role_id=roles["HR"].id,
            is_active=True,
        )
        db.add(hr)

        await db.commit()
        logger.info("Seeded %d roles, %d bands, HR user=%s", len(roles), len(bands), hr.id)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(seed())
