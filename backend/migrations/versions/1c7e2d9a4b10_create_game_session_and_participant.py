"""create game_session and participant tables

Revision ID: 1c7e2d9a4b10
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1c7e2d9a4b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'game_session' not in existing_tables:
        op.create_table(
            'game_session',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('session_id', sa.String(length=16), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('board_state', sa.Text(), nullable=False),
            sa.Column('current_player', sa.String(length=1), nullable=False),
            sa.Column('outcome', sa.String(length=16), nullable=False),
            sa.Column('version', sa.Integer(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_game_session_session_id', 'game_session', ['session_id'], unique=True)

    if 'participant' not in existing_tables:
        op.create_table(
            'participant',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('game_session_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=64), nullable=False),
            sa.Column('slot', sa.String(length=1), nullable=True),
            sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(['game_session_id'], ['game_session.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('game_session_id', 'name', name='uq_participant_session_name'),
        )


def downgrade():
    op.drop_table('participant')
    op.drop_index('ix_game_session_session_id', table_name='game_session')
    op.drop_table('game_session')
