"""create scores table

Revision ID: 5b7e2d9c1a40
Revises:
Create Date: 2026-10-17 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b7e2d9c1a40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    # Older deployments created the table at boot without migrations
    indexes = set()
    if 'scores' not in insp.get_table_names():
        op.create_table(
            'scores',
            sa.Column('token', sa.Text(), nullable=False),
            sa.Column('name', sa.Text(), nullable=True),
            sa.Column('best_score', sa.Integer(), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('token'),
        )
    else:
        indexes = {ix['name'] for ix in insp.get_indexes('scores')}
    if 'ix_scores_rank' not in indexes:
        op.create_index(
            'ix_scores_rank',
            'scores',
            [sa.text('best_score DESC'), sa.text('updated_at ASC')],
        )


def downgrade():
    op.drop_index('ix_scores_rank', table_name='scores')
    op.drop_table('scores')
