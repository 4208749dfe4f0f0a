"""Permission 서비스 — 역할 해석 및 권한 판정.

Permission Service — Resolves free-text role names into a closed enum once,
at the authentication boundary, and answers the scoping questions the
assessment engine asks ("may this caller review org-wide?", "does this
caller lead the subject's team?").
"""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.user_repository import user_repository
from app.utils.exceptions import ForbiddenError


class RoleName(str, Enum):
    """역할 열거형 — Closed set of roles relevant to the assessment engine."""

    ADMIN = "ADMIN"
    HR = "HR"
    LEADER = "LEADER"
    EMPLOYEE = "EMPLOYEE"


def resolve_role(name: str | None) -> RoleName:
    """역할 이름 → RoleName (대소문자 무시, 알 수 없는 이름은 EMPLOYEE).

    Map a directory role name to ``RoleName``. Matching ignores case and
    surrounding whitespace; unknown names such as "Dev" map to EMPLOYEE.
    """
    if not name:
        return RoleName.EMPLOYEE
    try:
        return RoleName(name.strip().upper())
    except ValueError:
        return RoleName.EMPLOYEE


@dataclass(frozen=True)
class Principal:
    """인증된 호출자 — Authenticated caller.

    Attributes:
        user_id: 사용자 ID (Caller user id)
        role: 해석된 역할 (Resolved role)
        team_id: 소속 팀 (Caller's own team)
        led_team_ids: 팀장으로 있는 팀 목록 (Teams whose leader_id is the caller)
    """

    user_id: UUID
    role: RoleName
    team_id: UUID | None = None
    led_team_ids: frozenset[UUID] = field(default_factory=frozenset)

    @property
    def can_review_org_wide(self) -> bool:
        """HR/Admin — 팀 범위 검사를 우회 (Bypasses leader scoping)."""
        return self.role in (RoleName.ADMIN, RoleName.HR)

    @property
    def can_review_team(self) -> bool:
        return self.can_review_org_wide or bool(self.led_team_ids)

    def leads(self, team_id: UUID | None) -> bool:
        return team_id is not None and team_id in self.led_team_ids

    def is_subject(self, user_id: UUID) -> bool:
        return self.user_id == user_id


class PermissionService:

    async def build_principal(self, db: AsyncSession, user: User) -> Principal:
        """사용자 → Principal (팀장 여부는 Team.leader_id 기준).

        Build the principal for a loaded user. Team leadership comes from
        ``Team.leader_id`` and is independent of the role name.
        """
        led_team_ids = await user_repository.get_led_team_ids(db, user.id)
        return Principal(
            user_id=user.id,
            role=resolve_role(user.role.name if user.role is not None else None),
            team_id=user.team_id,
            led_team_ids=frozenset(led_team_ids),
        )

    def require_org_wide(self, principal: Principal) -> None:
        if not principal.can_review_org_wide:
            raise ForbiddenError("HR or Admin role required")

    def can_read_user(self, principal: Principal, subject: User) -> bool:
        """대상자 본인, 대상자의 팀장, HR/Admin만 조회 가능."""
        return (
            principal.is_subject(subject.id)
            or principal.can_review_org_wide
            or principal.leads(subject.team_id)
        )

    def can_review(self, principal: Principal, subject: User) -> bool:
        """팀장/최종 점수 작성 권한 — 본인 평가는 역할과 무관하게 불가.

        Whether the caller may write leader or final scores for ``subject``:
        the subject's team leader or HR/Admin, but never the subject.
        """
        if principal.is_subject(subject.id):
            return False
        return principal.can_review_org_wide or principal.leads(subject.team_id)

    def resolve_team_scope(self, principal: Principal, team_id: UUID | None) -> UUID:
        """팀 범위 결정 — 팀장은 자신의 팀, HR/Admin은 임의 팀.

        Resolve which team a team-scoped read targets. Leaders default to
        (and are restricted to) the teams they lead; HR/Admin must name one
        unless they lead a team themselves.
        """
        if not principal.can_review_team:
            raise ForbiddenError("You are not a team leader")
        if team_id is not None:
            if principal.can_review_org_wide or principal.leads(team_id):
                return team_id
            raise ForbiddenError("You do not lead this team")
        if principal.led_team_ids:
            return sorted(principal.led_team_ids, key=str)[0]
        raise ForbiddenError("You are not a team leader")


# 싱글턴 인스턴스 — Singleton instance
permission_service: PermissionService = PermissionService()
