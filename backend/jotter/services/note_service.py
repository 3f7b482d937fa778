"""
Jotter Backend — Note Service (Notes Store Adapter)
=====================================================

What:  List/create/update/delete of one user's notes.
Why:   Keeps SQL and error translation out of the route handlers.
How:   Each operation is ONE parameterized statement followed by a commit,
       relying on the database's own atomicity for that statement.
Who:   Called by the /notes route handlers with the session guard's user id.

Ownership Predicate:
    Every statement that touches an existing row filters on BOTH Note.id and
    Note.user_id. A row owned by another user therefore behaves exactly like
    a row that does not exist: zero rows matched, NotFoundError, 404.

Error Handling Strategy:
    NotFoundError propagates as-is. Anything else raised while talking to the
    database is logged with detail and re-raised as DatabaseError, whose
    message is generic.
"""

import logging
from typing import List

from sqlalchemy import delete, desc, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from jotter.exceptions import DatabaseError, NotFoundError
from jotter.models.note import Note, utcnow
from jotter.schemas.note import NoteResponse

logger = logging.getLogger(__name__)


class NoteService:
    """
    Stateless store adapter. Receives the request's session on every call.

    Responsibilities:
        - list_notes():  caller's notes, most recently updated first
        - create_note(): insert owned by the caller, returns the stored row
        - update_note(): rewrite title/content of an owned note, bump updated_at
        - delete_note(): remove an owned note
    """

    async def list_notes(self, db: AsyncSession, user_id: str) -> List[NoteResponse]:
        """
        Query plan:
            SELECT * FROM notes WHERE user_id = :user_id
            ORDER BY updated_at DESC, id DESC
            → idx_notes_user_updated_at
        """
        try:
            result = await db.execute(
                select(Note)
                .where(Note.user_id == user_id)
                .order_by(desc(Note.updated_at), desc(Note.id))
            )
            notes = list(result.scalars().all())
        except Exception as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to fetch notes",
                context={"error_type": type(e).__name__},
            )

        return [NoteResponse.model_validate(note) for note in notes]

    async def create_note(
        self,
        db: AsyncSession,
        user_id: str,
        title: str,
        content: str,
    ) -> NoteResponse:
        """
        Insert a note owned by user_id and return it with its assigned id.

        Raises:
            DatabaseError: Insert or commit failed (→ 500)
        """
        now = utcnow()
        try:
            result = await db.execute(
                insert(Note)
                .values(
                    user_id=user_id,
                    title=title,
                    content=content,
                    created_at=now,
                    updated_at=now,
                )
                .returning(Note)
            )
            note = result.scalar_one()
            await db.commit()
        except Exception as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to create note",
                context={"error_type": type(e).__name__},
            )

        logger.info("Note %s created", note.id)
        return NoteResponse.model_validate(note)

    async def update_note(
        self,
        db: AsyncSession,
        user_id: str,
        note_id: int,
        title: str,
        content: str,
    ) -> NoteResponse:
        """
        Rewrite title and content of note_id if, and only if, user_id owns it.

        Query plan:
            UPDATE notes SET title = :t, content = :c, updated_at = :now
            WHERE id = :id AND user_id = :user_id
            RETURNING *

        Raises:
            NotFoundError: No row matched (absent, or owned by someone else)
            DatabaseError: Statement or commit failed
        """
        try:
            result = await db.execute(
                update(Note)
                .where(Note.id == note_id, Note.user_id == user_id)
                .values(title=title, content=content, updated_at=utcnow())
                .returning(Note)
                .execution_options(synchronize_session=False)
            )
            note = result.scalar_one_or_none()
            if note is None:
                raise NotFoundError(resource="note", resource_id=str(note_id))
            await db.commit()
        except NotFoundError:
            raise
        except Exception as e:
            logger.error("Database error updating note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to update note",
                context={"note_id": note_id, "error_type": type(e).__name__},
            )

        logger.info("Note %s updated", note.id)
        return NoteResponse.model_validate(note)

    async def delete_note(self, db: AsyncSession, user_id: str, note_id: int) -> None:
        """
        Delete note_id if, and only if, user_id owns it.

        Raises:
            NotFoundError: No row matched
            DatabaseError: Statement or commit failed
        """
        try:
            result = await db.execute(
                delete(Note)
                .where(Note.id == note_id, Note.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="note", resource_id=str(note_id))
            await db.commit()
        except NotFoundError:
            raise
        except Exception as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Failed to delete note",
                context={"note_id": note_id, "error_type": type(e).__name__},
            )

        logger.info("Note %s deleted", note_id)


# ── Singleton Instance ────────────────────────────────────────────────────
# NoteService holds no state; the session arrives with each call
note_service = NoteService()
