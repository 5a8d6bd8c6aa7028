"""create storytime tables

Revision ID: 4c1e8a2f9b3d
Revises:
Create Date: 2026-10-19 09:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c1e8a2f9b3d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'auth_tokens',
        sa.Column('token', sa.String(length=128), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('token'),
    )
    op.create_index('idx_auth_tokens_user_id', 'auth_tokens', ['user_id'])

    op.create_table(
        'child_profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('grade', sa.String(length=50), nullable=True),
        sa.Column('reading_level', sa.String(length=20), nullable=True),
        sa.Column('interests', sa.JSON(), nullable=False),
        sa.Column('favorite_themes', sa.JSON(), nullable=False),
        sa.Column('content_safety', sa.String(length=20), nullable=False),
        sa.Column('preferred_art_style', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_child_profiles_user_id', 'child_profiles', ['user_id'])
    op.create_index('idx_child_profiles_user_active', 'child_profiles', ['user_id', 'is_active'])

    op.create_table(
        'stories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('child_profile_id', sa.String(length=36), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('theme', sa.String(length=100), nullable=True),
        sa.Column('reading_level', sa.String(length=50), nullable=True),
        sa.Column('word_count', sa.Integer(), nullable=False),
        sa.Column('generation_prompt', sa.Text(), nullable=True),
        sa.Column('illustrations', sa.JSON(), nullable=False),
        sa.Column('is_favorite', sa.Boolean(), nullable=False),
        sa.Column('last_read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['child_profile_id'], ['child_profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_stories_user_id', 'stories', ['user_id'])
    op.create_index('idx_stories_child_profile_id', 'stories', ['child_profile_id'])
    op.create_index('idx_stories_created_at', 'stories', ['created_at'])

    op.create_table(
        'generation_requests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('child_profile_id', sa.String(length=36), nullable=True),
        sa.Column('theme', sa.String(length=100), nullable=True),
        sa.Column('story_length', sa.String(length=20), nullable=False),
        sa.Column('custom_word_count', sa.Integer(), nullable=True),
        sa.Column('reading_level', sa.String(length=20), nullable=True),
        sa.Column('custom_prompt', sa.Text(), nullable=True),
        sa.Column('story_about', sa.String(length=20), nullable=False),
        sa.Column('custom_character_name', sa.String(length=100), nullable=True),
        sa.Column('include_illustrations', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('story_id', sa.String(length=36), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['child_profile_id'], ['child_profiles.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['story_id'], ['stories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_generation_requests_user_id', 'generation_requests', ['user_id'])
    op.create_index('idx_generation_requests_status', 'generation_requests', ['status'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_generation_requests_status', table_name='generation_requests')
    op.drop_index('idx_generation_requests_user_id', table_name='generation_requests')
    op.drop_table('generation_requests')

    op.drop_index('idx_stories_created_at', table_name='stories')
    op.drop_index('idx_stories_child_profile_id', table_name='stories')
    op.drop_index('idx_stories_user_id', table_name='stories')
    op.drop_table('stories')

    op.drop_index('idx_child_profiles_user_active', table_name='child_profiles')
    op.drop_index('idx_child_profiles_user_id', table_name='child_profiles')
    op.drop_table('child_profiles')

    op.drop_index('idx_auth_tokens_user_id', table_name='auth_tokens')
    op.drop_table('auth_tokens')

    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
