"""
Shelter Pets Backend: Stored Image Route
=========================================

What:  Serves pet images from STORAGE_ROOT at /uploads/{path}.
How:   FileService.resolve() rejects paths that escape the storage root;
       FileResponse streams the file with a content type guessed from its name.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from petshelter.exceptions import NotFoundError
from petshelter.schemas.pet import ErrorResponse
from petshelter.services.file_service import file_service

router = APIRouter(tags=["Uploads"])


@router.get(
    "/uploads/{file_path:path}",
    summary="Serve an uploaded pet image",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_upload(file_path: str) -> FileResponse:
    full_path = file_service.resolve(file_path)

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    # Stored names are UUIDs, so a file's content never changes
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
