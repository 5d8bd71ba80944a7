"""
Shelter Pets Backend: Pet Service (Business Logic)
===================================================

What:  CRUD and adoption operations over pet records, applying mood
       derivation to every record it returns.
How:   Composes a PetRepository (persistence), a FileService (images) and a
       clock. All three are constructor arguments, so tests run the service
       against an in-memory repository and a fixed clock.
Who:   Built per request by routes/pets.py; raises typed errors from
       petshelter.exceptions that main.py maps to status codes.

Read rule:
    Every returned record carries the mood derived from its created_at and
    the current time; adopted records carry the pinned 'happy'. The derived
    value is returned, not written back.

Adoption state machine:
    available ──adopt()──▶ adopted        (no transition out of adopted)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from petshelter.exceptions import (
    AlreadyAdoptedError,
    DatabaseError,
    NotFoundError,
    ShelterError,
)
from petshelter.models.pet import Pet
from petshelter.repositories.pet_repository import PetRepository
from petshelter.schemas.pet import PetCreate, PetResponse, PetUpdate
from petshelter.services.file_service import FileService, file_service
from petshelter.services.mood import Mood, as_utc, derive_mood, normalize_mood

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ImageUpload:
    """An uploaded image as received by the route."""
    filename: str
    content: bytes
    content_length: Optional[int] = None


class PetService:
    """
    Business logic layer for pet records.

    Responsibilities:
        - create_pet() / update_pet(): validated writes, optional image
        - list_pets() / get_pet() / filter_by_mood(): reads with mood refresh
        - adopt_pet(): one-way adoption
        - delete_pet() / remove_image(): removal with image reclamation

    Error Handling Strategy:
        Application errors (NotFoundError, AlreadyAdoptedError,
        ValidationError, FileStorageError) propagate unchanged. Store
        failures are wrapped in DatabaseError so no driver detail reaches
        the client. Image reclamation never raises.
    """

    def __init__(
        self,
        repository: PetRepository,
        files: Optional[FileService] = None,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self.files = files or file_service
        self.clock = clock or utc_now

    # ── Helpers ───────────────────────────────────────────────────────────

    def to_response(self, pet: Pet, now: Optional[datetime] = None) -> PetResponse:
        """Serialize a record with its current mood."""
        now = now or self.clock()
        return PetResponse(
            id=pet.id,
            name=pet.name,
            species=pet.species,
            age=pet.age,
            personality=pet.personality,
            mood=derive_mood(pet.created_at, pet.adopted, now),
            image=self.files.public_url(pet.image_path),
            adopted=pet.adopted,
            created_at=as_utc(pet.created_at),
            adopted_at=as_utc(pet.adopted_at) if pet.adopted_at else None,
        )

    @staticmethod
    def _parse_id(pet_id: Union[str, UUID]) -> UUID:
        # An id that is not even a UUID cannot resolve to a record
        if isinstance(pet_id, UUID):
            return pet_id
        try:
            return UUID(str(pet_id))
        except ValueError:
            raise NotFoundError(resource="pet", resource_id=str(pet_id))

    async def _load(self, pet_id: Union[str, UUID]) -> Pet:
        uid = self._parse_id(pet_id)
        pet = await self.repository.get(uid)
        if pet is None:
            raise NotFoundError(resource="pet", resource_id=str(uid))
        return pet

    @staticmethod
    def _store_error(operation: str, exc: Exception, pet_id=None) -> DatabaseError:
        logger.error("Database error during %s (pet=%s): %s", operation, pet_id, str(exc))
        return DatabaseError(
            message=f"Could not {operation}. Please try again.",
            context={"operation": operation, "pet_id": str(pet_id) if pet_id else None,
                     "error_type": type(exc).__name__},
        )

    # ── Operations ────────────────────────────────────────────────────────

    async def create_pet(
        self,
        data: PetCreate,
        image: Optional[ImageUpload] = None,
    ) -> PetResponse:
        """
        Create a pet record.

        Workflow:
            1. Validate and store the image, if one was uploaded
            2. Insert the record with created_at = now
            3. If the insert fails, reclaim the freshly stored image

        Raises:
            ValidationError: invalid image (field validation happens in PetCreate)
            DatabaseError:   the insert failed
        """
        image_path: Optional[str] = None
        if image is not None:
            image_path = await self.files.validate_and_store(
                filename=image.filename,
                content=image.content,
                content_length=image.content_length,
            )

        now = self.clock()
        pet = Pet(
            name=data.name,
            species=data.species,
            age=data.age,
            personality=data.personality,
            mood=data.mood.value,
            image_path=image_path,
            adopted=False,
            created_at=now,
            adopted_at=None,
        )

        try:
            pet = await self.repository.add(pet)
        except SQLAlchemyError as e:
            await self.files.cleanup_file(image_path)
            raise self._store_error("create the pet", e)

        logger.info("Pet created: %s (%s, %s)", pet.id, pet.name, pet.species)
        return self.to_response(pet, now)

    async def list_pets(self) -> List[PetResponse]:
        """All pets, newest first, each with its current mood."""
        try:
            pets = await self.repository.list_newest_first()
        except SQLAlchemyError as e:
            raise self._store_error("retrieve pets", e)

        now = self.clock()
        return [self.to_response(pet, now) for pet in pets]

    async def get_pet(self, pet_id: Union[str, UUID]) -> PetResponse:
        """
        One pet with its current mood.

        Raises:
            NotFoundError: no pet with this id (→ 404)
            DatabaseError: query execution failed (→ 500)
        """
        try:
            pet = await self._load(pet_id)
        except SQLAlchemyError as e:
            raise self._store_error("retrieve the pet", e, pet_id)
        return self.to_response(pet)

    async def update_pet(
        self,
        pet_id: Union[str, UUID],
        changes: PetUpdate,
        image: Optional[ImageUpload] = None,
    ) -> PetResponse:
        """
        Apply a partial update.

        Only the fields present in `changes` are written; adoption fields and
        mood are never touched here. A new image replaces the old one, whose
        file is reclaimed once the record points at the new file.
        """
        new_image_path: Optional[str] = None
        try:
            pet = await self._load(pet_id)

            if image is not None:
                new_image_path = await self.files.validate_and_store(
                    filename=image.filename,
                    content=image.content,
                    content_length=image.content_length,
                )

            for field, value in changes.changes().items():
                setattr(pet, field, value)

            old_image_path = pet.image_path
            if new_image_path is not None:
                pet.image_path = new_image_path

            pet = await self.repository.save(pet)

        except ShelterError:
            await self.files.cleanup_file(new_image_path)
            raise
        except SQLAlchemyError as e:
            await self.files.cleanup_file(new_image_path)
            raise self._store_error("update the pet", e, pet_id)

        if new_image_path is not None and old_image_path != new_image_path:
            await self.files.cleanup_file(old_image_path)

        logger.info("Pet updated: %s (fields=%s)", pet.id, sorted(changes.changes()))
        return self.to_response(pet)

    async def adopt_pet(self, pet_id: Union[str, UUID]) -> PetResponse:
        """
        Mark a pet as adopted: adopted=True, adopted_at=now, mood='happy'.

        Raises:
            NotFoundError:       no pet with this id
            AlreadyAdoptedError: the pet was adopted before; nothing is changed
        """
        try:
            pet = await self._load(pet_id)
            if pet.adopted:
                raise AlreadyAdoptedError(pet_id=str(pet.id))

            now = self.clock()
            pet.adopted = True
            pet.adopted_at = now
            pet.mood = Mood.HAPPY.value
            pet = await self.repository.save(pet)
        except SQLAlchemyError as e:
            raise self._store_error("adopt the pet", e, pet_id)

        logger.info("Pet adopted: %s (%s)", pet.id, pet.name)
        return self.to_response(pet, now)

    async def delete_pet(self, pet_id: Union[str, UUID]) -> UUID:
        """
        Delete a pet and reclaim its image.

        Not idempotent: deleting the same id twice raises NotFoundError.
        """
        try:
            pet = await self._load(pet_id)
            image_path = pet.image_path
            if not await self.repository.delete(pet.id):
                raise NotFoundError(resource="pet", resource_id=str(pet.id))
        except SQLAlchemyError as e:
            raise self._store_error("delete the pet", e, pet_id)

        await self.files.cleanup_file(image_path)
        logger.info("Pet deleted: %s", pet.id)
        return pet.id

    async def filter_by_mood(self, mood: str) -> List[PetResponse]:
        """
        Pets whose current mood equals `mood` (case-insensitive).

        Unknown labels return an empty list rather than an error.
        """
        wanted = normalize_mood(mood)
        if wanted is None:
            logger.debug("Filter by unknown mood '%s' → empty result", mood)
            return []
        return [pet for pet in await self.list_pets() if pet.mood == wanted]

    async def remove_image(self, pet_id: Union[str, UUID]) -> PetResponse:
        """Detach a pet's image and reclaim the file. No-op without an image."""
        try:
            pet = await self._load(pet_id)
            image_path = pet.image_path
            if image_path is None:
                return self.to_response(pet)
            pet.image_path = None
            pet = await self.repository.save(pet)
        except SQLAlchemyError as e:
            raise self._store_error("remove the image", e, pet_id)

        await self.files.cleanup_file(image_path)
        logger.info("Image removed from pet %s", pet.id)
        return self.to_response(pet)
