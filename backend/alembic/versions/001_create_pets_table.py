"""Create pets table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `pets` table, one row per shelter pet record.
How:   Mirrors petshelter/models/pet.py; created_at gets a DESC index for the
       newest-first listing.

Rollback: downgrade() drops the table (all pet records are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "pets",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("species", sa.String(100), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("personality", sa.Text(), nullable=False),
        sa.Column(
            "mood",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'happy'"),
        ),
        sa.Column("image_path", sa.String(255), nullable=True),
        sa.Column(
            "adopted",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("adopted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        # Stored values only; the API derives the mood on read
        sa.CheckConstraint("age >= 0", name="ck_pets_age_non_negative"),
        sa.CheckConstraint(
            "mood IN ('happy', 'sad', 'calm', 'playful', 'excited')",
            name="ck_pets_mood_label",
        ),
    )

    op.create_index(
        "idx_pets_created_at",
        "pets",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_pets_created_at", table_name="pets")
    op.drop_table("pets")
