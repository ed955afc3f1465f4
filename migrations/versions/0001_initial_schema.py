"""initial schema: users, habits, urges

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

auth_provider = sa.Enum('local', 'google', name='auth_provider')
habit_type = sa.Enum('standard', 'custom', name='habit_type')
urge_outcome = sa.Enum('resisted', 'gave_in', 'delayed', name='urge_outcome')


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=True),
        sa.Column('oauth_id', sa.String(length=255), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('profile_picture', sa.String(length=1024), nullable=True),
        sa.Column('auth_provider', auth_provider, nullable=False, server_default='local'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('oauth_id', name='uq_users_oauth_id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'habits',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', habit_type, nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_habits_type', 'habits', ['type'])
    op.create_index('ix_habits_user_id', 'habits', ['user_id'])
    # One habit per name in each scope
    op.create_index(
        'uq_habits_standard_name', 'habits', ['name'], unique=True,
        postgresql_where=sa.text('user_id IS NULL'),
    )
    op.create_index(
        'uq_habits_custom_user_name', 'habits', ['user_id', 'name'], unique=True,
        postgresql_where=sa.text('user_id IS NOT NULL'),
    )

    op.create_table(
        'urges',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('habit_id', sa.Uuid(), sa.ForeignKey('habits.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('outcome', urge_outcome, nullable=False),
        sa.Column('trigger', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_urges_user_id', 'urges', ['user_id'])
    op.create_index('ix_urges_habit_id', 'urges', ['habit_id'])
    op.create_index('ix_urges_created_at', 'urges', ['created_at'])


def downgrade():
    op.drop_index('ix_urges_created_at', table_name='urges')
    op.drop_index('ix_urges_habit_id', table_name='urges')
    op.drop_index('ix_urges_user_id', table_name='urges')
    op.drop_table('urges')

    op.drop_index('uq_habits_custom_user_name', table_name='habits')
    op.drop_index('uq_habits_standard_name', table_name='habits')
    op.drop_index('ix_habits_user_id', table_name='habits')
    op.drop_index('ix_habits_type', table_name='habits')
    op.drop_table('habits')

    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    bind = op.get_bind()
    urge_outcome.drop(bind, checkfirst=True)
    habit_type.drop(bind, checkfirst=True)
    auth_provider.drop(bind, checkfirst=True)
