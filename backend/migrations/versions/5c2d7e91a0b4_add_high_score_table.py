"""add high_score table

Revision ID: 5c2d7e91a0b4
Revises:
Create Date: 2025-09-10 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d7e91a0b4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'high_score' in insp.get_table_names():
        return
    op.create_table(
        'high_score',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('high_score') as batch_op:
        batch_op.create_index(batch_op.f('ix_high_score_key'), ['key'], unique=True)


def downgrade():
    with op.batch_alter_table('high_score') as batch_op:
        batch_op.drop_index(batch_op.f('ix_high_score_key'))
    op.drop_table('high_score')
