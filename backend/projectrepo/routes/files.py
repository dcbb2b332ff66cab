"""
ProjectRepo Backend - Stored File Route
========================================

What:  Serves stored report PDFs by reference (`/api/files/<ref>`).
Who:   Download redirects and the draft/final links in project detail.

Security:
    - The reference is resolved inside STORAGE_ROOT; "../" escapes are refused
    - Only files written by FileService exist under the root
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from projectrepo.dependencies import get_file_service
from projectrepo.schemas.common import ErrorResponse
from projectrepo.services.file_service import FileService

router = APIRouter(prefix="/api", tags=["Files"])


@router.get(
    "/files/{file_path:path}",
    summary="Serve a stored report",
    responses={
        200: {"description": "PDF file"},
        400: {"description": "Invalid path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_file(file_path: str, files: FileService = Depends(get_file_service)) -> FileResponse:
    full_path = files.resolve(file_path)
    return FileResponse(
        path=str(full_path),
        media_type="application/pdf",
        filename=full_path.name,
        headers={"Cache-Control": "private, max-age=3600"},
    )
