from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from wardrobe.api.deps import get_media_store
from wardrobe.services.media import IDENTITY_SUBDIR, UPLOADS_ROOT, MediaStore


router = APIRouter()


@router.get("/{file_path:path}")
async def serve_upload(file_path: str, media: MediaStore = Depends(get_media_store)) -> FileResponse:
    """
    Serve a stored upload.
    Only files below APP_STORAGE_DIR/uploads are reachable; identity documents are never cached.
    """
    rel = f"/{UPLOADS_ROOT}/{file_path.lstrip('/')}"
    try:
        abs_path = media.resolve(rel)
    except ValueError as e:
        raise HTTPException(status_code=403, detail="Forbidden path") from e

    if not abs_path.is_file():
        raise HTTPException(status_code=404, detail="Not found")

    if file_path.lstrip("/").startswith(f"{IDENTITY_SUBDIR}/"):
        headers = {"Cache-Control": "no-store", "Pragma": "no-cache", "Expires": "0"}
    else:
        headers = {"Cache-Control": "public, max-age=86400"}
    return FileResponse(
        path=str(abs_path),
        filename=Path(rel).name,
        content_disposition_type="inline",
        headers=headers,
    )
