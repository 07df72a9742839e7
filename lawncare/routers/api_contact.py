from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import NotFound, ValidationError
from ..crud.contact import create_submission, delete_submission, get_submission, list_submissions, mark_read
from ..db.session import get_db
from ..deps.auth import require_admin
from ..models.contact import ContactSubmission
from ..schemas.contact import ContactCreated, ContactIn, ContactOut, ContactUpdate

router = APIRouter(prefix="/api/contact", tags=["contact"])


def _require_submission(db: Session, submission_id: int) -> ContactSubmission:
    submission = get_submission(db, submission_id)
    if not submission:
        raise NotFound("Contact submission not found")
    return submission


@router.get("", response_model=list[ContactOut], dependencies=[Depends(require_admin)])
def api_list_submissions(db: Session = Depends(get_db)):
    return list_submissions(db)


@router.post("", response_model=ContactCreated, status_code=201)
def api_submit_contact(payload: ContactIn, db: Session = Depends(get_db)):
    submission = create_submission(db, payload.model_dump(exclude_unset=True))
    return ContactCreated(id=submission.id)


@router.put("", response_model=ContactOut, dependencies=[Depends(require_admin)])
def api_mark_submission_read(payload: ContactUpdate, db: Session = Depends(get_db)):
    if payload.id is None:
        raise ValidationError("Submission ID is required")
    return mark_read(db, _require_submission(db, payload.id), payload.read)


@router.get("/{submission_id}", response_model=ContactOut, dependencies=[Depends(require_admin)])
def api_get_submission(submission_id: int, db: Session = Depends(get_db)):
    return _require_submission(db, submission_id)


@router.put("/{submission_id}", response_model=ContactOut, dependencies=[Depends(require_admin)])
def api_update_submission(submission_id: int, payload: ContactUpdate, db: Session = Depends(get_db)):
    return mark_read(db, _require_submission(db, submission_id), payload.read)


@router.delete("/{submission_id}", dependencies=[Depends(require_admin)])
def api_delete_submission(submission_id: int, db: Session = Depends(get_db)):
    delete_submission(db, _require_submission(db, submission_id))
    return {"success": True}
