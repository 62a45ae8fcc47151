"""Initial schema - family structure, blocks, connections, flags, conversations

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Families
    op.create_table(
        'families',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('household_type', sa.String(50), nullable=False, server_default='single'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Adult profiles: one per (account, family, role)
    op.create_table(
        'adult_profiles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('family_id', sa.Uuid(), sa.ForeignKey('families.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'family_id', 'role', name='uq_adult_profiles_user_family_role'),
    )
    op.create_index('ix_adult_profiles_family_role', 'adult_profiles', ['family_id', 'role'])

    # Child profiles (no backing account)
    op.create_table(
        'child_profiles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'child_family_memberships',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('child_profile_id', sa.Uuid(), sa.ForeignKey('child_profiles.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('family_id', sa.Uuid(), sa.ForeignKey('families.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('child_profile_id', 'family_id', name='uq_child_family_memberships_pair'),
    )

    # Blocks
    op.create_table(
        'blocked_contacts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('blocker_child_id', sa.Uuid(), sa.ForeignKey('child_profiles.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('blocked_adult_profile_id', sa.Uuid(), sa.ForeignKey('adult_profiles.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('blocked_child_profile_id', sa.Uuid(), sa.ForeignKey('child_profiles.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('target_key', sa.String(80), nullable=False),
        sa.Column('blocked_by_kind', sa.String(50), nullable=False),
        sa.Column('blocked_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('parent_notified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('unblocked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('unblocked_by_parent_id', sa.Uuid(), sa.ForeignKey('adult_profiles.id', ondelete='SET NULL'), nullable=True),
        sa.CheckConstraint(
            "(blocked_adult_profile_id IS NOT NULL AND blocked_child_profile_id IS NULL) OR "
            "(blocked_adult_profile_id IS NULL AND blocked_child_profile_id IS NOT NULL)",
            name='ck_blocked_contacts_one_target',
        ),
        sa.UniqueConstraint('blocker_child_id', 'target_key', name='uq_blocked_contacts_blocker_target'),
    )
    op.create_index('ix_blocked_contacts_active', 'blocked_contacts', ['blocker_child_id', 'unblocked_at'])

    # Child-to-child connections
    op.create_table(
        'child_connections',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('requester_child_id', sa.Uuid(), sa.ForeignKey('child_profiles.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('requester_family_id', sa.Uuid(), sa.ForeignKey('families.id', ondelete='CASCADE'), nullable=False),
        sa.Column('target_child_id', sa.Uuid(), sa.ForeignKey('child_profiles.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('target_family_id', sa.Uuid(), sa.ForeignKey('families.id', ondelete='CASCADE'), nullable=False),
        sa.Column('pair_key', sa.String(80), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending', index=True),
        sa.Column('requested_by_child', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('approved_by_parent_id', sa.Uuid(), sa.ForeignKey('adult_profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('requester_child_id != target_child_id', name='ck_child_connections_not_self'),
    )
    # At most one live connection per unordered pair
    op.create_index(
        'uq_child_connections_live_pair',
        'child_connections',
        ['pair_key'],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'approved')"),
        sqlite_where=sa.text("status IN ('pending', 'approved')"),
    )
    op.create_index('ix_child_connections_pair_status', 'child_connections', ['pair_key', 'status'])

    # Feature flags
    op.create_table(
        'family_feature_flags',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('family_id', sa.Uuid(), sa.ForeignKey('families.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('family_id', 'key', name='uq_family_feature_flags_family_key'),
    )

    # Conversations
    op.create_table(
        'conversations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('type', sa.String(50), nullable=False, server_default='one_to_one'),
        sa.Column('pair_key', sa.String(255), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'conversation_participants',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('conversation_id', sa.Uuid(), sa.ForeignKey('conversations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('participant_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('kind', sa.String(50), nullable=False),
        sa.UniqueConstraint('conversation_id', 'participant_id', name='uq_conversation_participants_member'),
    )

    # Messages and call records
    op.create_table(
        'messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('conversation_id', sa.Uuid(), sa.ForeignKey('conversations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sender_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('sender_kind', sa.String(50), nullable=False),
        sa.Column('receiver_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('receiver_kind', sa.String(50), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_messages_conversation_created', 'messages', ['conversation_id', 'created_at'])

    op.create_table(
        'call_records',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('conversation_id', sa.Uuid(), sa.ForeignKey('conversations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('caller_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('caller_kind', sa.String(50), nullable=False),
        sa.Column('callee_id', sa.Uuid(), nullable=False, index=True),
        sa.Column('callee_kind', sa.String(50), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='ringing'),
        sa.Column('signaling', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_call_records_conversation_created', 'call_records', ['conversation_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('call_records')
    op.drop_table('messages')
    op.drop_table('conversation_participants')
    op.drop_table('conversations')
    op.drop_table('family_feature_flags')
    op.drop_table('child_connections')
    op.drop_table('blocked_contacts')
    op.drop_table('child_family_memberships')
    op.drop_table('child_profiles')
    op.drop_table('adult_profiles')
    op.drop_table('families')
