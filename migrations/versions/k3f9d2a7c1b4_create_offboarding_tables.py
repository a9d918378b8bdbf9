"""create offboarding tables

Revision ID: k3f9d2a7c1b4
Revises:
Create Date: 2026-01-15

オフボーディング機能のテーブル作成
- organizations / users: テナントとユーザープロフィール
- projects / tasks / task_assignees: 引き継ぎ対象の作業データ
- time_entries / expenses / photos: 影響範囲とアーカイブの集計対象
- offboarding_records: オフボーディング記録（進行中は1ユーザー1件まで）
- user_data_archives: コンプライアンス用アーカイブ（7年保存）
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'k3f9d2a7c1b4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """オフボーディング関連テーブルを作成"""

    op.execute("""
        CREATE TYPE userrole AS ENUM (
            'owner',
            'pm',
            'employee',
            'contractor',
            'sub',
            'client'
        )
    """)

    op.execute("""
        CREATE TYPE offboardingstatus AS ENUM (
            'pending',
            'in_progress',
            'completed',
            'failed'
        )
    """)

    user_role = postgresql.ENUM(
        'owner', 'pm', 'employee', 'contractor', 'sub', 'client',
        name='userrole',
        create_type=False
    )
    offboarding_status = postgresql.ENUM(
        'pending', 'in_progress', 'completed', 'failed',
        name='offboardingstatus',
        create_type=False
    )

    op.create_table(
        'organizations',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('display_name', sa.String(length=255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('trade', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('deactivated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_users_organization_id', 'users', ['organization_id'])
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_is_active', 'users', ['is_active'])

    op.create_table(
        'projects',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('project_manager_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['project_manager_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_projects_organization_id', 'projects', ['organization_id'])
    op.create_index('ix_projects_project_manager_id', 'projects', ['project_manager_id'])

    op.create_table(
        'tasks',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_tasks_organization_id', 'tasks', ['organization_id'])
    op.create_index('ix_tasks_project_id', 'tasks', ['project_id'])

    op.create_table(
        'task_assignees',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('task_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        sa.ForeignKeyConstraint(['task_id'], ['tasks.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('task_id', 'user_id', name='uq_task_assignees_task_user')
    )
    op.create_index('ix_task_assignees_task_id', 'task_assignees', ['task_id'])
    op.create_index('ix_task_assignees_user_id', 'task_assignees', ['user_id'])

    op.create_table(
        'time_entries',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('project_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('hours', sa.Numeric(precision=6, scale=2), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['project_id'], ['projects.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_time_entries_organization_id', 'time_entries', ['organization_id'])
    op.create_index('ix_time_entries_user_id', 'time_entries', ['user_id'])

    op.create_table(
        'expenses',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('submitted_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['submitted_by'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_expenses_organization_id', 'expenses', ['organization_id'])
    op.create_index('ix_expenses_submitted_by', 'expenses', ['submitted_by'])

    op.create_table(
        'photos',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('uploaded_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('url', sa.String(length=1024), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['uploaded_by'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_photos_organization_id', 'photos', ['organization_id'])
    op.create_index('ix_photos_uploaded_by', 'photos', ['uploaded_by'])

    op.create_table(
        'offboarding_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_name', sa.String(length=255), nullable=False),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('user_role', user_role, nullable=False),
        sa.Column('status', offboarding_status, server_default='pending', nullable=False),
        sa.Column('options', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  comment='OffboardingOptionsのスナップショット（作成後は不変）'),
        sa.Column('initiated_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('initiated_by_name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('restorable_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('restored_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('restored_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('report', postgresql.JSONB(astext_type=sa.Text()), nullable=True,
                  comment='OffboardingReport（アクションログを含む）'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_offboarding_records_organization_id', 'offboarding_records', ['organization_id'])
    op.create_index('ix_offboarding_records_user_id', 'offboarding_records', ['user_id'])
    op.create_index('ix_offboarding_records_status', 'offboarding_records', ['status'])

    # 同一ユーザーに対して進行中のオフボーディングは1件まで
    op.execute("""
        CREATE UNIQUE INDEX uq_offboarding_records_active_user
        ON offboarding_records (organization_id, user_id)
        WHERE status IN ('pending', 'in_progress')
    """)

    op.create_table(
        'user_data_archives',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False,
                  comment='元のユーザーID（参照整合性なし）'),
        sa.Column('user_name', sa.String(length=255), nullable=False),
        sa.Column('user_email', sa.String(length=255), nullable=False),
        sa.Column('profile_snapshot', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  comment='アーカイブ時点のプロフィール（一部項目）'),
        sa.Column('activity_summary', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  comment='タスク・プロジェクト・作業時間・経費・写真の件数'),
        sa.Column('archived_collections', postgresql.JSONB(astext_type=sa.Text()), nullable=False,
                  comment='コレクションごとのドキュメント件数'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('retain_until', sa.DateTime(timezone=True), nullable=False,
                  comment='保存期限（作成日時 + 7年）'),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_user_data_archives_organization_id', 'user_data_archives', ['organization_id'])
    op.create_index('ix_user_data_archives_user_id', 'user_data_archives', ['user_id'])
    op.create_index('ix_user_data_archives_retain_until', 'user_data_archives', ['retain_until'])
    op.create_index('idx_user_data_archives_org_user', 'user_data_archives', ['organization_id', 'user_id'])


def downgrade() -> None:
    """オフボーディング関連テーブルを削除"""
    op.drop_table('user_data_archives')
    op.execute('DROP INDEX IF EXISTS uq_offboarding_records_active_user')
    op.drop_table('offboarding_records')
    op.drop_table('photos')
    op.drop_table('expenses')
    op.drop_table('time_entries')
    op.drop_table('task_assignees')
    op.drop_table('tasks')
    op.drop_table('projects')
    op.drop_table('users')
    op.drop_table('organizations')

    op.execute('DROP TYPE IF EXISTS offboardingstatus')
    op.execute('DROP TYPE IF EXISTS userrole')
