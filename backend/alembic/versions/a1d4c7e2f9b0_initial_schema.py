"""Initial schema (users, workspaces, projects, statuses, labels, issues, comments, activities)

Revision ID: a1d4c7e2f9b0
Revises:
Create Date: 2026-10-19T09:12:44.318207
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = 'a1d4c7e2f9b0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('external_id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False, server_default=''),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_external_id', 'users', ['external_id'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'])

    # --- workspaces ---
    op.create_table(
        'workspaces',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('identifier', sa.String(), nullable=False),
        sa.Column('created_by', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_workspaces_identifier', 'workspaces', ['identifier'], unique=True)
    op.create_index('ix_workspaces_created_by', 'workspaces', ['created_by'])

    op.create_table(
        'workspace_members',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), sa.ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('role', sa.Enum('ADMIN', 'MEMBER', name='memberrole'), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('workspace_id', 'user_id', name='uq_member_workspace_user'),
    )
    op.create_index('ix_workspace_members_workspace_id', 'workspace_members', ['workspace_id'])
    op.create_index('ix_workspace_members_user_id', 'workspace_members', ['user_id'])

    op.create_table(
        'workspace_sequences',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), sa.ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('workspace_id', 'name', name='uq_sequence_workspace_name'),
    )

    # --- projects ---
    op.create_table(
        'projects',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), sa.ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('identifier', sa.String(), nullable=False),
        sa.Column('created_by', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('color', sa.String(), nullable=True),
        sa.Column('icon', sa.String(), nullable=True),
        sa.Column('archived', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('workspace_id', 'identifier', name='uq_project_workspace_identifier'),
    )
    op.create_index('ix_projects_workspace_id', 'projects', ['workspace_id'])

    # --- statuses & labels ---
    op.create_table(
        'statuses',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), sa.ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', sa.Enum('TRIAGE', 'TODO', 'DOING', 'REVIEW', 'DONE', name='statustype'), nullable=False),
        sa.Column('color', sa.String(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_statuses_workspace_id', 'statuses', ['workspace_id'])
    op.create_index('idx_status_workspace_pos', 'statuses', ['workspace_id', 'position'])

    op.create_table(
        'labels',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), sa.ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('color', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_labels_workspace_id', 'labels', ['workspace_id'])
    op.create_index('idx_label_workspace_name', 'labels', ['workspace_id', 'name'])

    # --- issues ---
    op.create_table(
        'issues',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('workspace_id', sa.String(), sa.ForeignKey('workspaces.id', ondelete='CASCADE'), nullable=False),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status_id', sa.String(), sa.ForeignKey('statuses.id'), nullable=False),
        sa.Column('priority', sa.Enum('NONE', 'URGENT', 'HIGH', 'MEDIUM', 'LOW', name='issuepriority'), nullable=False),
        sa.Column('project_id', sa.String(), sa.ForeignKey('projects.id'), nullable=True),
        sa.Column('assignee_id', sa.String(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_by', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('estimate', sa.Float(), nullable=True),
        sa.Column('archived', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('workspace_id', 'number', name='uq_issue_workspace_number'),
    )
    op.create_index('ix_issues_workspace_id', 'issues', ['workspace_id'])
    op.create_index('ix_issues_status_id', 'issues', ['status_id'])
    op.create_index('ix_issues_project_id', 'issues', ['project_id'])
    op.create_index('ix_issues_assignee_id', 'issues', ['assignee_id'])
    op.create_index('ix_issues_created_by', 'issues', ['created_by'])
    op.create_index('idx_issue_workspace_updated', 'issues', ['workspace_id', 'updated_at'])

    op.create_table(
        'issue_labels',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('issue_id', sa.String(), sa.ForeignKey('issues.id'), nullable=False),
        sa.Column('label_id', sa.String(), sa.ForeignKey('labels.id'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('issue_id', 'label_id', name='uq_issue_label'),
    )
    op.create_index('ix_issue_labels_issue_id', 'issue_labels', ['issue_id'])
    op.create_index('ix_issue_labels_label_id', 'issue_labels', ['label_id'])

    # --- comments & activities ---
    op.create_table(
        'comments',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('issue_id', sa.String(), sa.ForeignKey('issues.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('parent_id', sa.String(), sa.ForeignKey('comments.id'), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_comments_issue_id', 'comments', ['issue_id'])
    op.create_index('ix_comments_user_id', 'comments', ['user_id'])
    op.create_index('ix_comments_parent_id', 'comments', ['parent_id'])

    op.create_table(
        'activities',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('issue_id', sa.String(), sa.ForeignKey('issues.id'), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('type', sa.Enum('CREATED', 'UPDATED', 'COMMENTED', name='activitytype'), nullable=False),
        sa.Column('field', sa.String(), nullable=True),
        sa.Column('old_value', sa.Text(), nullable=True),
        sa.Column('new_value', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ordinal', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_activities_issue_id', 'activities', ['issue_id'])
    op.create_index('ix_activities_user_id', 'activities', ['user_id'])
    op.create_index('idx_activity_issue_time', 'activities', ['issue_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('activities')
    op.drop_table('comments')
    op.drop_table('issue_labels')
    op.drop_table('issues')
    op.drop_table('labels')
    op.drop_table('statuses')
    op.drop_table('projects')
    op.drop_table('workspace_sequences')
    op.drop_table('workspace_members')
    op.drop_table('workspaces')
    op.drop_table('users')
    op.execute("DROP TYPE IF EXISTS activitytype")
    op.execute("DROP TYPE IF EXISTS issuepriority")
    op.execute("DROP TYPE IF EXISTS statustype")
    op.execute("DROP TYPE IF EXISTS memberrole")
