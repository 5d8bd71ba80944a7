"""
Shelter Pets Backend: Pet Repository
=====================================

What:  Abstract storage contract for pet records plus its SQLAlchemy implementation.
Who:   PetService is the only caller; it receives a repository in its
       constructor instead of reaching for a global database handle.

Contract:
    - add() assigns the identifier and returns the stored record
    - get() returns None (not an exception) for a missing id
    - list_newest_first() orders by created_at descending
    - save() persists changes made to a record returned by get()
    - delete() removes the record; returns False if it was already gone

Implementations let store exceptions propagate; PetService wraps them in
DatabaseError.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from petshelter.models.pet import Pet


class PetRepository(ABC):
    """Abstract per-record storage for Pet rows."""

    @abstractmethod
    async def add(self, pet: Pet) -> Pet:
        ...

    @abstractmethod
    async def get(self, pet_id: UUID) -> Optional[Pet]:
        ...

    @abstractmethod
    async def list_newest_first(self) -> List[Pet]:
        ...

    @abstractmethod
    async def save(self, pet: Pet) -> Pet:
        ...

    @abstractmethod
    async def delete(self, pet_id: UUID) -> bool:
        ...


class SqlAlchemyPetRepository(PetRepository):
    """
    PetRepository backed by an AsyncSession.

    Writes are flushed, not committed: the commit (or rollback) belongs to
    `get_db_session`, which owns the request's transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, pet: Pet) -> Pet:
        self.session.add(pet)
        await self.session.flush()  # Assigns defaults without committing
        return pet

    async def get(self, pet_id: UUID) -> Optional[Pet]:
        result = await self.session.execute(select(Pet).where(Pet.id == pet_id))
        return result.scalar_one_or_none()

    async def list_newest_first(self) -> List[Pet]:
        # Query plan: idx_pets_created_at range scan, no sort step
        result = await self.session.execute(select(Pet).order_by(desc(Pet.created_at)))
        return list(result.scalars().all())

    async def save(self, pet: Pet) -> Pet:
        await self.session.flush()
        return pet

    async def delete(self, pet_id: UUID) -> bool:
        result = await self.session.execute(delete(Pet).where(Pet.id == pet_id))
        await self.session.flush()
        return result.rowcount > 0
