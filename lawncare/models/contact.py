from __future__ import annotations

from sqlalchemy import Boolean, Column, Integer, Text

from ..db.session import Base


class ContactSubmission(Base):
    """Message left through the public contact form."""

    __tablename__ = "contact_submissions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text, nullable=False, default="")
    service = Column(Text, nullable=False, default="")
    message = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False, index=True)
    read = Column(Boolean, nullable=False, default=False)


__all__ = ["ContactSubmission"]
