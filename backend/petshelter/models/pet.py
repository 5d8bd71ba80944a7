"""
Shelter Pets Backend: Pet SQLAlchemy Model
===========================================

What:  ORM model representing the `pets` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads it for migrations.
Who:   Used by SqlAlchemyPetRepository and by Alembic.

Table Design:
    - UUID primary key assigned on insert (opaque to clients)
    - image_path: relative path under STORAGE_ROOT, NULL when no image
    - mood: the stored label; for available pets it is refreshed on every
      read, for adopted pets it is pinned to 'happy'
    - adopted / adopted_at: one-way adoption flag and its timestamp
    - created_at: UTC, set once on insert and never updated

    Index on created_at DESC serves the default "newest first" listing.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from petshelter.database import Base


class Pet(Base):
    """
    One shelter pet record.

    Lifecycle:
        1. Created by POST /pets (adopted = False, mood defaults to 'happy')
        2. Edited by PUT /pets/{id} (adoption fields are never touched)
        3. Adopted once by PATCH /pets/{id}/adopt (adopted_at set, mood pinned)
        4. Deleted by DELETE /pets/{id} (stored image reclaimed)
    """

    __tablename__ = "pets"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    species: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    personality: Mapped[str] = mapped_column(Text, nullable=False)

    # One of Mood's values, always lowercase
    mood: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="happy",
        server_default=text("'happy'"),
    )

    image_path: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        default=None,
    )

    adopted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    adopted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        Index("idx_pets_created_at", created_at.desc()),
        CheckConstraint("age >= 0", name="ck_pets_age_non_negative"),
        CheckConstraint(
            "mood IN ('happy', 'sad', 'calm', 'playful', 'excited')",
            name="ck_pets_mood_label",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Pet(id={self.id}, name='{self.name}', "
            f"adopted={self.adopted}, created_at='{self.created_at}')>"
        )
