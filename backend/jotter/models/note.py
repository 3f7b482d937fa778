"""
Jotter Backend — Note SQLAlchemy Model
========================================

What:  ORM model representing the `notes` table.
Why:   Maps Python objects to database rows for type-safe database operations.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by NoteService for CRUD statements and by Alembic for schema management.

Table Design Rationale:
    - Integer primary key assigned by the store (SERIAL / AUTOINCREMENT)
    - user_id: the identity provider's account id; set once from the session,
      never from request data, and part of every WHERE clause
    - created_at / updated_at: UTC with timezone; updated_at is rewritten on
      every successful update and drives list ordering

    Index on (user_id, updated_at DESC):
        Serves the only list query there is: one user's notes, newest edit first.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from jotter.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A personal note owned by exactly one user.

    Lifecycle:
        1. Created by POST /notes with the caller's user_id
        2. title/content/updated_at rewritten by PUT /notes
        3. Removed by DELETE /notes
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    # Owner. Identity provider ids are opaque strings (Firebase localId is 28 chars)
    user_id: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="Account id of the owner, taken from the session",
    )

    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_notes_user_updated_at", user_id, updated_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, user_id='{self.user_id}', updated_at='{self.updated_at}')>"
