from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from ..core.errors import NotFound
from ..core.gate import AuthResult
from ..crud.gallery import (
    create_gallery_image,
    delete_gallery_image,
    get_gallery_image,
    list_gallery_images,
    update_gallery_image,
    validate_gallery_image,
)
from ..db.session import get_db
from ..deps.auth import get_storage, require_admin
from ..models.gallery import GalleryImage
from ..schemas.gallery import GalleryImageIn, GalleryImageOut, UploadOut
from ..services.storage import StorageClient, object_path_for

router = APIRouter(prefix="/api/gallery", tags=["gallery"])


def _require_image(db: Session, image_id: int) -> GalleryImage:
    image = get_gallery_image(db, image_id)
    if not image:
        raise NotFound("Gallery image not found")
    return image


@router.get("", response_model=list[GalleryImageOut])
def api_list_gallery(category: str | None = Query(default=None), db: Session = Depends(get_db)):
    return list_gallery_images(db, category=category)


@router.post("", response_model=GalleryImageOut, status_code=201, dependencies=[Depends(require_admin)])
def api_create_gallery_image(payload: GalleryImageIn, db: Session = Depends(get_db)):
    return create_gallery_image(db, payload.model_dump(exclude_unset=True))


@router.post("/upload", response_model=UploadOut, status_code=201)
async def api_upload_gallery_file(
    file: UploadFile = File(...),
    auth: AuthResult = Depends(require_admin),
    storage: StorageClient = Depends(get_storage),
):
    path = object_path_for(file.filename or "image")
    content = await file.read()
    access_token = auth.session.access_token if auth.session else None
    image_url = await storage.upload(path, content, file.content_type, access_token=access_token)
    return UploadOut(image_url=image_url, path=path)


@router.get("/{image_id}", response_model=GalleryImageOut)
def api_get_gallery_image(image_id: int, db: Session = Depends(get_db)):
    return _require_image(db, image_id)


@router.put("/{image_id}", response_model=GalleryImageOut, dependencies=[Depends(require_admin)])
def api_update_gallery_image(image_id: int, payload: GalleryImageIn, db: Session = Depends(get_db)):
    data = payload.model_dump(exclude_unset=True)
    validate_gallery_image(data)
    return update_gallery_image(db, _require_image(db, image_id), data)


@router.delete("/{image_id}", dependencies=[Depends(require_admin)])
def api_delete_gallery_image(image_id: int, db: Session = Depends(get_db)):
    delete_gallery_image(db, _require_image(db, image_id))
    return {"success": True}
