"""add version and updated_at to match; sport to booking; invited_at to player

Revision ID: a7d4c1e9b263
Revises: 3b7c9e1d2a40
Create Date: 2026-10-02 09:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a7d4c1e9b263'
down_revision = '3b7c9e1d2a40'
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    match_cols = {c['name'] for c in insp.get_columns('match')}
    with op.batch_alter_table('match') as batch_op:
        if 'version' not in match_cols:
            batch_op.add_column(sa.Column('version', sa.Integer(), nullable=False, server_default='1'))
        if 'updated_at' not in match_cols:
            batch_op.add_column(sa.Column('updated_at', sa.DateTime(), nullable=True))

    # Backfill before tightening to NOT NULL, as the model declares it
    match_table = sa.table('match', sa.column('updated_at', sa.DateTime()), sa.column('created_at', sa.DateTime()))
    op.execute(
        match_table.update()
        .where(match_table.c.updated_at.is_(None))
        .values(updated_at=match_table.c.created_at)
    )
    with op.batch_alter_table('match') as batch_op:
        batch_op.alter_column('updated_at', existing_type=sa.DateTime(), nullable=False)

    booking_cols = {c['name'] for c in insp.get_columns('booking')}
    if 'sport' not in booking_cols:
        with op.batch_alter_table('booking') as batch_op:
            batch_op.add_column(sa.Column('sport', sa.String(length=32), nullable=True))

    player_cols = {c['name'] for c in insp.get_columns('player')}
    if 'invited_at' not in player_cols:
        with op.batch_alter_table('player') as batch_op:
            batch_op.add_column(sa.Column('invited_at', sa.DateTime(), nullable=True))


def downgrade():
    with op.batch_alter_table('player') as batch_op:
        batch_op.drop_column('invited_at')
    with op.batch_alter_table('booking') as batch_op:
        batch_op.drop_column('sport')
    with op.batch_alter_table('match') as batch_op:
        batch_op.drop_column('updated_at')
        batch_op.drop_column('version')
