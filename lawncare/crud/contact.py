"""CRUD helpers for contact-form submissions."""

from __future__ import annotations

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..core.errors import ValidationError, require_fields
from ..models.contact import ContactSubmission
from ._time import utcnow

REQUIRED_FIELDS = ("name", "email", "message")
REQUIRED_MESSAGE = "Name, email, and message are required"


def list_submissions(db: Session) -> list[ContactSubmission]:
    stmt = select(ContactSubmission).order_by(desc(ContactSubmission.created_at), desc(ContactSubmission.id))
    return list(db.execute(stmt).scalars().all())


def get_submission(db: Session, submission_id: int) -> ContactSubmission | None:
    return db.get(ContactSubmission, submission_id)


def create_submission(db: Session, payload: dict) -> ContactSubmission:
    require_fields(payload, REQUIRED_FIELDS, REQUIRED_MESSAGE)
    submission = ContactSubmission(
        name=payload["name"].strip(),
        email=payload["email"].strip(),
        phone=(payload.get("phone") or "").strip(),
        service=(payload.get("service") or "").strip(),
        message=payload["message"].strip(),
        created_at=utcnow(),
        read=False,
    )
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def mark_read(db: Session, submission: ContactSubmission, read: bool | None = True) -> ContactSubmission:
    """Flip the read flag on. Already-read submissions are left untouched."""

    if read is False:
        raise ValidationError("Submissions cannot be marked unread")
    if not submission.read:
        submission.read = True
        db.commit()
        db.refresh(submission)
    return submission


def delete_submission(db: Session, submission: ContactSubmission) -> None:
    db.delete(submission)
    db.commit()


def count_unread(db: Session) -> int:
    stmt = select(func.count()).select_from(ContactSubmission).where(ContactSubmission.read.is_(False))
    return db.scalar(stmt) or 0
