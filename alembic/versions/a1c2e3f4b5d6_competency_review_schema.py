"""competency_review_schema

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-17 09:00:00.000000

역량 평가 스키마 생성: 디렉터리(roles, teams, career_bands, users),
역량 카탈로그/요구 매트릭스, 평가 주기/평가/점수, 개발 계획, 알림.
Create the competency review schema: directory tables, competency catalog
and requirement matrix, cycles/assessments/details, IDPs, notifications.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = 'a1c2e3f4b5d6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- 디렉터리 (Directory) ---
    op.create_table(
        'roles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    # teams.leader_id는 FK 없음 — users ↔ teams 순환 참조 방지
    # leader_id carries no FK to avoid a users <-> teams DDL cycle
    op.create_table(
        'teams',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('leader_id', UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_teams_leader_id', 'teams', ['leader_id'])

    op.create_table(
        'career_bands',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('band_name', sa.String(50), nullable=False, unique=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('role_id', UUID(as_uuid=True), sa.ForeignKey('roles.id'), nullable=False),
        sa.Column('team_id', UUID(as_uuid=True), sa.ForeignKey('teams.id', ondelete='SET NULL'), nullable=True),
        sa.Column('career_band_id', UUID(as_uuid=True), sa.ForeignKey('career_bands.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- 역량 카탈로그 / 요구 매트릭스 (Catalog and requirement matrix) ---
    op.create_table(
        'competency_groups',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'competencies',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('group_id', UUID(as_uuid=True), sa.ForeignKey('competency_groups.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'competency_levels',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('competency_id', UUID(as_uuid=True), sa.ForeignKey('competencies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('level_number', sa.Integer(), nullable=False),
        sa.Column('behavioral_indicator', sa.Text(), nullable=False),
        sa.UniqueConstraint('competency_id', 'level_number', name='uq_competency_level_number'),
        sa.CheckConstraint('level_number BETWEEN 1 AND 5', name='ck_competency_level_range'),
    )
    op.create_table(
        'competency_requirements',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('career_band_id', UUID(as_uuid=True), sa.ForeignKey('career_bands.id', ondelete='CASCADE'), nullable=False),
        sa.Column('competency_id', UUID(as_uuid=True), sa.ForeignKey('competencies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('required_level', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('career_band_id', 'competency_id', name='uq_requirement_band_competency'),
        sa.CheckConstraint('required_level BETWEEN 1 AND 5', name='ck_requirement_level_range'),
    )

    # --- 평가 (Assessments) ---
    op.create_table(
        'assessment_cycles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), server_default='DRAFT', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'assessments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('cycle_id', UUID(as_uuid=True), sa.ForeignKey('assessment_cycles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(30), server_default='SELF_ASSESSING', nullable=False),
        sa.Column('self_score_avg', sa.Float(), nullable=True),
        sa.Column('leader_score_avg', sa.Float(), nullable=True),
        sa.Column('final_score_avg', sa.Float(), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('self_submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('leader_submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('finalized_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        # 사용자당 주기별 평가 1개 — One assessment per user per cycle
        sa.UniqueConstraint('user_id', 'cycle_id', name='uq_assessment_user_cycle'),
    )
    op.create_index('ix_assessments_user_id', 'assessments', ['user_id'])
    op.create_index('ix_assessments_cycle_id', 'assessments', ['cycle_id'])

    op.create_table(
        'assessment_details',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('assessment_id', UUID(as_uuid=True), sa.ForeignKey('assessments.id', ondelete='CASCADE'), nullable=False),
        sa.Column('competency_id', UUID(as_uuid=True), sa.ForeignKey('competencies.id'), nullable=False),
        sa.Column('required_level', sa.Integer(), nullable=True),
        sa.Column('self_score', sa.Integer(), nullable=True),
        sa.Column('leader_score', sa.Integer(), nullable=True),
        sa.Column('final_score', sa.Integer(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.UniqueConstraint('assessment_id', 'competency_id', name='uq_detail_assessment_competency'),
    )
    op.create_index('ix_assessment_details_assessment_id', 'assessment_details', ['assessment_id'])

    # --- 개발 계획 (Development plans) ---
    op.create_table(
        'development_plans',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('assessment_id', UUID(as_uuid=True), sa.ForeignKey('assessments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('goal', sa.Text(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(20), server_default='IN_PROGRESS', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_development_plans_user_id', 'development_plans', ['user_id'])

    op.create_table(
        'development_activities',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('plan_id', UUID(as_uuid=True), sa.ForeignKey('development_plans.id', ondelete='CASCADE'), nullable=False),
        sa.Column('competency_id', UUID(as_uuid=True), sa.ForeignKey('competencies.id'), nullable=False),
        sa.Column('activity_type', sa.String(30), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('evidence', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), server_default='PENDING', nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
    )
    op.create_index('ix_development_activities_plan_id', 'development_activities', ['plan_id'])

    # --- 알림 (Notifications) ---
    op.create_table(
        'notifications',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('template_code', sa.String(50), nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('reference_type', sa.String(50), nullable=True),
        sa.Column('reference_id', UUID(as_uuid=True), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('email_status', sa.String(20), server_default='QUEUED', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('development_activities')
    op.drop_table('development_plans')
    op.drop_table('assessment_details')
    op.drop_table('assessments')
    op.drop_table('assessment_cycles')
    op.drop_table('competency_requirements')
    op.drop_table('competency_levels')
    op.drop_table('competencies')
    op.drop_table('competency_groups')
    op.drop_table('users')
    op.drop_table('career_bands')
    op.drop_table('teams')
    op.drop_table('roles')
