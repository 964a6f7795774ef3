"""
Material endpoints for API v1.

Uploads are ``multipart/form-data`` with a ``name`` field and a
``file`` field (10 MB by default, see ``MAX_UPLOAD_BYTES``).
Downloads stream the stored blob with the material's name.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from fastapi.responses import FileResponse

from event_manager_api.app.core.security import get_current_user
from event_manager_api.app.core.storage import get_file_store
from event_manager_api.app.schemas.material import MaterialRead
from event_manager_api.app.services.material_service import MaterialService, download_name


router = APIRouter()


@router.get("/events/{event_id}/materials", response_model=List[MaterialRead])
async def list_materials(
    event_id: int,
    current_user: dict = Depends(get_current_user),
) -> List[MaterialRead]:
    return await MaterialService.list_materials(event_id, current_user)


@router.post(
    "/events/{event_id}/materials",
    response_model=MaterialRead,
    status_code=status.HTTP_201_CREATED,
)
async def upload_material(
    event_id: int,
    name: str = Form(""),
    file: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
    store=Depends(get_file_store),
) -> MaterialRead:
    """Upload a file and attach it to an event."""
    try:
        return await MaterialService.create_material(event_id, name, file, current_user, store)
    finally:
        if file is not None:
            await file.close()


@router.delete("/materials/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_material(
    material_id: int,
    current_user: dict = Depends(get_current_user),
    store=Depends(get_file_store),
) -> Response:
    """Delete the stored file and the material record."""
    await MaterialService.delete_material(material_id, current_user, store)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/materials/{material_id}/download")
async def download_material(
    material_id: int,
    current_user: dict = Depends(get_current_user),
    store=Depends(get_file_store),
) -> FileResponse:
    """Download a material.  Allowed for the event owner and its participants."""
    material, path = await MaterialService.get_download(material_id, current_user, store)
    return FileResponse(
        path,
        media_type=material.file_type or "application/octet-stream",
        filename=download_name(material),
    )
