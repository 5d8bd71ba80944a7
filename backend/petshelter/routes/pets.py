"""
Shelter Pets Backend: Pet Route Handlers
=========================================

What:  HTTP surface for pet records under /pets.
How:   Each handler resolves a PetService through `get_pet_service`, calls one
       service operation, and returns its response model. Failures are raised
       as typed exceptions and formatted by the handlers in main.py.

Routes:
    POST   /pets                 create (+ image)       201 / 400
    GET    /pets                 list (newest first)    200
    GET    /pets/filter/{mood}   filter by mood         200
    GET    /pets/{pet_id}        fetch                  200 / 404
    PUT    /pets/{pet_id}        partial update         200 / 400 / 404
    PATCH  /pets/{pet_id}/adopt  adopt                  200 / 400 / 404
    DELETE /pets/{pet_id}        delete                 200 / 404
    PUT    /pets/{pet_id}/image  upload/replace image   200 / 400 / 404
    DELETE /pets/{pet_id}/image  remove image           200 / 404
"""

import logging
import re
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import FormData
from starlette.datastructures import UploadFile as StarletteUploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from petshelter.database import get_db_session
from petshelter.repositories.pet_repository import SqlAlchemyPetRepository
from petshelter.schemas.pet import (
    DeleteResponse,
    ErrorResponse,
    PetCreate,
    PetResponse,
    PetUpdate,
)
from petshelter.services.pet_service import ImageUpload, PetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pets", tags=["Pets"])


def get_pet_service(db: AsyncSession = Depends(get_db_session)) -> PetService:
    """
    Build a PetService around the request's database session.

    Tests replace this dependency through `app.dependency_overrides`.
    """
    return PetService(repository=SqlAlchemyPetRepository(db))


_NOT_FOUND = {404: {"description": "Pet not found", "model": ErrorResponse}}
_BAD_REQUEST = {400: {"description": "Invalid input", "model": ErrorResponse}}
_SERVER_ERROR = {500: {"description": "Store error", "model": ErrorResponse}}

_INTEGER = re.compile(r"-?\d+")
_FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _create_body_schema() -> dict:
    schema = PetCreate.model_json_schema(ref_template="#/components/schemas/{model}")
    schema.pop("$defs", None)
    return schema


@router.post(
    "",
    status_code=201,
    response_model=PetResponse,
    responses={**_BAD_REQUEST, **_SERVER_ERROR},
    summary="Add a pet",
    description=(
        "Accepts a JSON body, or form data with the same fields as "
        "form values plus an optional `image` file (PNG, JPEG or GIF)."
    ),
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": _create_body_schema(),
                },
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "required": ["name", "species", "age", "personality"],
                        "properties": {
                            "name": {"type": "string"},
                            "species": {"type": "string"},
                            "age": {"type": "integer", "minimum": 0},
                            "personality": {"type": "string"},
                            "mood": {"type": "string"},
                            "image": {"type": "string", "format": "binary"},
                        },
                    },
                },
            },
        },
    },
)
async def create_pet(
    request: Request,
    service: PetService = Depends(get_pet_service),
) -> PetResponse:
    """Create a pet record, optionally with its image. Mood defaults to 'happy'."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        try:
            data, image = await _create_from_form(form)
        finally:
            await form.close()
    else:
        data, image = await _create_from_json(request), None
    return await service.create_pet(data, image=image)


async def _create_from_json(request: Request) -> PetCreate:
    try:
        body = await request.json()
    except ValueError:
        raise RequestValidationError(
            [{"loc": ("body",), "msg": "Body must be valid JSON", "type": "json_invalid"}]
        )
    return _validate_create(body)


async def _create_from_form(form: FormData) -> Tuple[PetCreate, Optional[ImageUpload]]:
    fields = {
        key: value
        for key, value in form.items()
        if key != "image" and isinstance(value, str)
    }
    # Form values arrive as text; only a plain integer literal becomes an age
    age = fields.get("age")
    if age is not None and _INTEGER.fullmatch(age.strip()):
        fields["age"] = int(age)
    data = _validate_create(fields)

    upload = form.get("image")
    if not isinstance(upload, StarletteUploadFile) or not upload.filename:
        return data, None
    content = await upload.read()
    logger.info(
        "Received image for new pet: filename=%s, size=%d bytes",
        upload.filename,
        len(content),
    )
    return data, ImageUpload(
        filename=upload.filename,
        content=content,
        content_length=upload.size,
    )


def _validate_create(payload) -> PetCreate:
    try:
        return PetCreate.model_validate(payload)
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors(), body=payload)


@router.get(
    "",
    response_model=List[PetResponse],
    responses={**_SERVER_ERROR},
    summary="List all pets",
    description="All pets, newest first. Available pets carry their current derived mood.",
)
async def list_pets(
    response: Response,
    service: PetService = Depends(get_pet_service),
) -> List[PetResponse]:
    pets = await service.list_pets()
    response.headers["X-Total-Count"] = str(len(pets))
    return pets


@router.get(
    "/filter/{mood}",
    response_model=List[PetResponse],
    responses={**_SERVER_ERROR},
    summary="List pets by current mood",
    description="Case-insensitive. Unknown moods return an empty list.",
)
async def filter_pets_by_mood(
    mood: str,
    response: Response,
    service: PetService = Depends(get_pet_service),
) -> List[PetResponse]:
    pets = await service.filter_by_mood(mood)
    response.headers["X-Total-Count"] = str(len(pets))
    return pets


@router.get(
    "/{pet_id}",
    response_model=PetResponse,
    responses={**_NOT_FOUND, **_SERVER_ERROR},
    summary="Get a pet by ID",
)
async def get_pet(
    pet_id: str,
    service: PetService = Depends(get_pet_service),
) -> PetResponse:
    return await service.get_pet(pet_id)


@router.put(
    "/{pet_id}",
    response_model=PetResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Update a pet's profile",
    description=(
        "Partial update: only the fields present in the body are changed. "
        "`adopted`, `adopted_at` and `mood` are ignored; use PATCH /pets/{id}/adopt."
    ),
)
async def update_pet(
    pet_id: str,
    changes: PetUpdate,
    service: PetService = Depends(get_pet_service),
) -> PetResponse:
    return await service.update_pet(pet_id, changes)


@router.patch(
    "/{pet_id}/adopt",
    response_model=PetResponse,
    responses={
        400: {"description": "Pet is already adopted", "model": ErrorResponse},
        **_NOT_FOUND,
        **_SERVER_ERROR,
    },
    summary="Adopt a pet",
)
async def adopt_pet(
    pet_id: str,
    service: PetService = Depends(get_pet_service),
) -> PetResponse:
    return await service.adopt_pet(pet_id)


@router.delete(
    "/{pet_id}",
    response_model=DeleteResponse,
    responses={**_NOT_FOUND, **_SERVER_ERROR},
    summary="Delete a pet",
)
async def delete_pet(
    pet_id: str,
    service: PetService = Depends(get_pet_service),
) -> DeleteResponse:
    deleted_id = await service.delete_pet(pet_id)
    return DeleteResponse(id=deleted_id)


@router.put(
    "/{pet_id}/image",
    response_model=PetResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND, **_SERVER_ERROR},
    summary="Upload or replace a pet's image",
    description="Multipart upload (field `image`: PNG, JPEG or GIF). The previous image is deleted.",
)
async def upload_pet_image(
    pet_id: str,
    image: UploadFile = File(..., description="Pet image (PNG, JPG, JPEG or GIF)"),
    service: PetService = Depends(get_pet_service),
) -> PetResponse:
    content = await image.read()
    logger.info(
        "Received image for pet %s: filename=%s, size=%d bytes",
        pet_id,
        image.filename or "unknown",
        len(content),
    )
    try:
        return await service.update_pet(
            pet_id,
            PetUpdate(),
            image=ImageUpload(
                filename=image.filename or "upload.jpg",
                content=content,
                content_length=image.size,
            ),
        )
    finally:
        await image.close()


@router.delete(
    "/{pet_id}/image",
    response_model=PetResponse,
    responses={**_NOT_FOUND, **_SERVER_ERROR},
    summary="Remove a pet's image",
)
async def remove_pet_image(
    pet_id: str,
    service: PetService = Depends(get_pet_service),
) -> PetResponse:
    return await service.remove_image(pet_id)
