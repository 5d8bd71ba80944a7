"""
Shelter Pets Backend: Pet Service Unit Tests
=============================================

What:  PetService against the in-memory repository and a fake clock.
How:   No database, no HTTP; images go to a temporary storage root.

What we test:
    ✅ create defaults, validation and image storage
    ✅ mood refresh on read, including the Rex scenario
    ✅ partial update semantics and adoption-field protection
    ✅ adopt once, then AlreadyAdoptedError with the record untouched
    ✅ delete + image reclamation, second delete → NotFoundError
    ✅ filter by mood
    ✅ store failures surface as DatabaseError
"""

from pathlib import Path
from uuid import uuid4

import pytest
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import OperationalError

from petshelter.exceptions import (
    AlreadyAdoptedError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from petshelter.schemas.pet import PetCreate, PetUpdate
from petshelter.services.mood import Mood
from petshelter.services.pet_service import ImageUpload


def _image(content: bytes, filename: str = "rex.jpg") -> ImageUpload:
    return ImageUpload(filename=filename, content=content, content_length=len(content))


class TestCreatePet:

    @pytest.mark.asyncio
    async def test_create_defaults(self, pet_service, rex_data, clock):
        pet = await pet_service.create_pet(PetCreate(**rex_data))

        assert pet.name == "Rex"
        assert pet.mood == Mood.HAPPY
        assert pet.adopted is False
        assert pet.adopted_at is None
        assert pet.image is None
        assert pet.created_at == clock.now

    @pytest.mark.asyncio
    async def test_create_with_image(self, pet_service, files, rex_data, sample_image_bytes):
        pet = await pet_service.create_pet(PetCreate(**rex_data), image=_image(sample_image_bytes))

        assert pet.image.startswith("/uploads/")
        relative = pet.image[len("/uploads/"):]
        assert files.resolve(relative).read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_create_with_bad_image_stores_nothing(self, pet_service, repository, rex_data):
        with pytest.raises(ValidationError):
            await pet_service.create_pet(
                PetCreate(**rex_data), image=_image(b"%PDF-1.4", filename="rex.pdf")
            )
        assert repository.pets == {}

    @pytest.mark.asyncio
    async def test_create_store_failure_reclaims_image(
        self, pet_service, repository, temp_storage, rex_data, sample_image_bytes
    ):
        repository.fail_with = OperationalError("INSERT", {}, Exception("db down"))

        with pytest.raises(DatabaseError):
            await pet_service.create_pet(PetCreate(**rex_data), image=_image(sample_image_bytes))

        assert [p for p in Path(temp_storage).rglob("*") if p.is_file()] == []

    @pytest.mark.parametrize("missing", ["name", "species", "age", "personality"])
    def test_required_fields(self, rex_data, missing):
        data = dict(rex_data)
        del data[missing]
        with pytest.raises(SchemaValidationError):
            PetCreate(**data)

    def test_negative_age_rejected(self, rex_data):
        with pytest.raises(SchemaValidationError):
            PetCreate(**{**rex_data, "age": -1})

    def test_blank_name_rejected(self, rex_data):
        with pytest.raises(SchemaValidationError):
            PetCreate(**{**rex_data, "name": "   "})

    def test_mood_is_normalized(self, rex_data):
        assert PetCreate(**{**rex_data, "mood": "Playful"}).mood == Mood.PLAYFUL

    def test_unknown_mood_rejected(self, rex_data):
        with pytest.raises(SchemaValidationError):
            PetCreate(**{**rex_data, "mood": "grumpy"})

    @pytest.mark.parametrize("age", [True, False, "2", 2.5])
    def test_age_must_be_an_integer(self, rex_data, age):
        with pytest.raises(SchemaValidationError):
            PetCreate(**{**rex_data, "age": age})

    def test_update_age_must_be_an_integer(self):
        with pytest.raises(SchemaValidationError):
            PetUpdate(age=True)


class TestReadPets:

    @pytest.mark.asyncio
    async def test_rex_scenario(self, pet_service, rex_data, clock):
        created = await pet_service.create_pet(PetCreate(**rex_data))
        assert created.mood == Mood.HAPPY

        clock.advance(days=2)
        assert (await pet_service.get_pet(created.id)).mood == Mood.EXCITED

        adopted = await pet_service.adopt_pet(created.id)
        assert adopted.mood == Mood.HAPPY
        assert adopted.adopted is True

        clock.advance(days=30)
        fetched = await pet_service.get_pet(created.id)
        assert fetched.mood == Mood.HAPPY
        assert fetched.adopted is True

    @pytest.mark.asyncio
    async def test_list_newest_first_with_refreshed_moods(self, pet_service, rex_data, clock):
        old = await pet_service.create_pet(PetCreate(**{**rex_data, "name": "Old"}))
        clock.advance(days=5)
        new = await pet_service.create_pet(PetCreate(**{**rex_data, "name": "New"}))

        pets = await pet_service.list_pets()

        assert [p.id for p in pets] == [new.id, old.id]
        assert pets[0].mood == Mood.HAPPY
        assert pets[1].mood == Mood.SAD

    @pytest.mark.asyncio
    async def test_stored_mood_is_not_returned_for_available_pets(self, pet_service, rex_data, clock):
        pet = await pet_service.create_pet(PetCreate(**{**rex_data, "mood": "calm"}))
        clock.advance(days=1)
        assert (await pet_service.get_pet(pet.id)).mood == Mood.EXCITED

    @pytest.mark.asyncio
    async def test_get_unknown_id(self, pet_service):
        with pytest.raises(NotFoundError):
            await pet_service.get_pet(uuid4())

    @pytest.mark.asyncio
    async def test_get_malformed_id(self, pet_service):
        with pytest.raises(NotFoundError):
            await pet_service.get_pet("not-a-uuid")

    @pytest.mark.asyncio
    async def test_list_store_failure(self, pet_service, repository):
        repository.fail_with = OperationalError("SELECT", {}, Exception("db down"))
        with pytest.raises(DatabaseError):
            await pet_service.list_pets()


class TestUpdatePet:

    @pytest.mark.asyncio
    async def test_partial_update(self, pet_service, rex_data):
        pet = await pet_service.create_pet(PetCreate(**rex_data))

        updated = await pet_service.update_pet(pet.id, PetUpdate(name="Rexy"))

        assert updated.name == "Rexy"
        assert updated.species == "dog"
        assert updated.age == 2

    @pytest.mark.asyncio
    async def test_age_zero_is_applied(self, pet_service, rex_data):
        pet = await pet_service.create_pet(PetCreate(**rex_data))
        updated = await pet_service.update_pet(pet.id, PetUpdate(age=0))
        assert updated.age == 0

    @pytest.mark.asyncio
    async def test_adoption_fields_are_ignored(self, pet_service, rex_data):
        pet = await pet_service.create_pet(PetCreate(**rex_data))

        changes = PetUpdate.model_validate(
            {"personality": "playful", "adopted": True, "adopted_at": "2024-01-01T00:00:00Z",
             "mood": "sad"}
        )
        updated = await pet_service.update_pet(pet.id, changes)

        assert updated.personality == "playful"
        assert updated.adopted is False
        assert updated.adopted_at is None
        assert updated.mood == Mood.HAPPY

    @pytest.mark.asyncio
    async def test_update_keeps_adoption(self, pet_service, rex_data):
        pet = await pet_service.create_pet(PetCreate(**rex_data))
        adopted = await pet_service.adopt_pet(pet.id)

        updated = await pet_service.update_pet(
            pet.id, PetUpdate.model_validate({"age": 3, "adopted": False})
        )

        assert updated.adopted is True
        assert updated.adopted_at == adopted.adopted_at

    def test_explicit_null_rejected(self):
        with pytest.raises(SchemaValidationError):
            PetUpdate.model_validate({"name": None})
        with pytest.raises(SchemaValidationError):
            PetUpdate.model_validate({"age": None})

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, pet_service):
        with pytest.raises(NotFoundError):
            await pet_service.update_pet(uuid4(), PetUpdate(name="Ghost"))

    @pytest.mark.asyncio
    async def test_replacing_image_reclaims_old_file(
        self, pet_service, files, rex_data, sample_image_bytes
    ):
        pet = await pet_service.create_pet(PetCreate(**rex_data), image=_image(sample_image_bytes))
        old_file = files.resolve(pet.image[len("/uploads/"):])

        updated = await pet_service.update_pet(pet.id, PetUpdate(), image=_image(sample_image_bytes))

        assert updated.image != pet.image
        assert not old_file.exists()
        assert files.resolve(updated.image[len("/uploads/"):]).exists()

    @pytest.mark.asyncio
    async def test_remove_image(self, pet_service, files, rex_data, sample_image_bytes):
        pet = await pet_service.create_pet(PetCreate(**rex_data), image=_image(sample_image_bytes))
        stored = files.resolve(pet.image[len("/uploads/"):])

        updated = await pet_service.remove_image(pet.id)

        assert updated.image is None
        assert not stored.exists()

    @pytest.mark.asyncio
    async def test_remove_image_without_image(self, pet_service, rex_data):
        pet = await pet_service.create_pet(PetCreate(**rex_data))
        assert (await pet_service.remove_image(pet.id)).image is None


class TestAdoptPet:

    @pytest.mark.asyncio
    async def test_adopt_sets_flag_timestamp_and_mood(self, pet_service, repository, rex_data, clock):
        pet = await pet_service.create_pet(PetCreate(**rex_data))
        clock.advance(days=6)

        adopted = await pet_service.adopt_pet(pet.id)

        assert adopted.adopted is True
        assert adopted.adopted_at == clock.now
        assert adopted.mood == Mood.HAPPY
        assert repository.pets[pet.id].mood == "happy"

    @pytest.mark.asyncio
    async def test_adopt_twice_fails_without_change(self, pet_service, rex_data, clock):
        pet = await pet_service.create_pet(PetCreate(**rex_data))
        first = await pet_service.adopt_pet(pet.id)
        clock.advance(days=1)

        with pytest.raises(AlreadyAdoptedError):
            await pet_service.adopt_pet(pet.id)

        again = await pet_service.get_pet(pet.id)
        assert again.adopted_at == first.adopted_at
        assert again.adopted is True

    @pytest.mark.asyncio
    async def test_adopt_unknown_id(self, pet_service):
        with pytest.raises(NotFoundError):
            await pet_service.adopt_pet(uuid4())


class TestDeletePet:

    @pytest.mark.asyncio
    async def test_delete_then_get(self, pet_service, rex_data):
        pet = await pet_service.create_pet(PetCreate(**rex_data))

        assert await pet_service.delete_pet(pet.id) == pet.id

        with pytest.raises(NotFoundError):
            await pet_service.get_pet(pet.id)

    @pytest.mark.asyncio
    async def test_second_delete_fails(self, pet_service, rex_data):
        pet = await pet_service.create_pet(PetCreate(**rex_data))
        await pet_service.delete_pet(pet.id)

        with pytest.raises(NotFoundError):
            await pet_service.delete_pet(pet.id)

    @pytest.mark.asyncio
    async def test_delete_reclaims_image(self, pet_service, files, rex_data, sample_image_bytes):
        pet = await pet_service.create_pet(PetCreate(**rex_data), image=_image(sample_image_bytes))
        stored = files.resolve(pet.image[len("/uploads/"):])

        await pet_service.delete_pet(pet.id)

        assert not stored.exists()

    @pytest.mark.asyncio
    async def test_delete_with_missing_file_succeeds(
        self, pet_service, files, rex_data, sample_image_bytes
    ):
        pet = await pet_service.create_pet(PetCreate(**rex_data), image=_image(sample_image_bytes))
        files.resolve(pet.image[len("/uploads/"):]).unlink()

        assert await pet_service.delete_pet(pet.id) == pet.id


class TestFilterByMood:

    @pytest.mark.asyncio
    async def test_filter_uses_current_mood(self, pet_service, rex_data, clock):
        waiting = await pet_service.create_pet(PetCreate(**{**rex_data, "name": "Waiting"}))
        adopted = await pet_service.create_pet(PetCreate(**{**rex_data, "name": "Lucky"}))
        await pet_service.adopt_pet(adopted.id)
        clock.advance(days=5)
        fresh = await pet_service.create_pet(PetCreate(**{**rex_data, "name": "Fresh"}))

        happy = await pet_service.filter_by_mood("happy")
        sad = await pet_service.filter_by_mood("SAD")

        assert {p.id for p in happy} == {adopted.id, fresh.id}
        assert [p.id for p in sad] == [waiting.id]

    @pytest.mark.asyncio
    async def test_calm_excludes_refreshed_records(self, pet_service, rex_data, clock):
        calm = await pet_service.create_pet(PetCreate(**{**rex_data, "mood": "calm"}))
        await pet_service.adopt_pet(calm.id)

        assert await pet_service.filter_by_mood("calm") == []

    @pytest.mark.asyncio
    async def test_unknown_mood_is_empty(self, pet_service, rex_data):
        await pet_service.create_pet(PetCreate(**rex_data))
        assert await pet_service.filter_by_mood("grumpy") == []
