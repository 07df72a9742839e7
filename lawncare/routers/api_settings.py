from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..crud.site_settings import save_site_settings, site_settings_or_default
from ..db.session import get_db
from ..deps.auth import require_admin
from ..schemas.site_settings import SiteSettingsIn, SiteSettingsOut

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=SiteSettingsOut)
def api_get_settings(db: Session = Depends(get_db)):
    return site_settings_or_default(db)


@router.put("", response_model=SiteSettingsOut, dependencies=[Depends(require_admin)])
def api_save_settings(payload: SiteSettingsIn, db: Session = Depends(get_db)):
    return save_site_settings(db, payload.model_dump(exclude_unset=True))
