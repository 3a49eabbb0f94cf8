"""record the participant ids and winner hashed by each draw

Revision ID: 0002_record_draw_inputs
Revises: 0001_initial_schema
Create Date: 2026-10-19 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002_record_draw_inputs"
down_revision: Union[str, None] = "0001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("challenges") as batch_op:
        batch_op.add_column(sa.Column("draw_participants", sa.JSON(), nullable=True))
        batch_op.add_column(
            sa.Column("draw_winner_public_id", sa.String(length=32), nullable=True)
        )


def downgrade() -> None:
    with op.batch_alter_table("challenges") as batch_op:
        batch_op.drop_column("draw_winner_public_id")
        batch_op.drop_column("draw_participants")
