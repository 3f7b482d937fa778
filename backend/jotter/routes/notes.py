"""
Jotter Backend — Notes Route Handlers
=======================================

What:  GET/POST/PUT/DELETE /notes for the authenticated user's notes.
How:   require_user (session guard) → NoteService → JSON.
Who:   Called by the frontend notes list and editor.

Every handler declares the session dependency first. FastAPI resolves it
before the body and before the database session, so an unauthenticated
request is answered 401 without a query being issued.

Status codes:
    GET     200 list (possibly empty)
    POST    201 created note
    PUT     200 updated note | 404 not found or not owned
    DELETE  204 empty        | 404 not found or not owned
    any     401 no valid session | 500 store failure
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from jotter.database import get_db_session
from jotter.dependencies import CurrentUser
from jotter.schemas.note import (
    ErrorResponse,
    NoteCreate,
    NoteDelete,
    NoteResponse,
    NoteUpdate,
)
from jotter.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])

_unauthorized = {401: {"description": "Missing, invalid or expired session", "model": ErrorResponse}}
_server_error = {500: {"description": "Server error", "model": ErrorResponse}}
_not_found = {404: {"description": "Note not found", "model": ErrorResponse}}


@router.get(
    "/notes",
    response_model=List[NoteResponse],
    responses={**_unauthorized, **_server_error},
    summary="List my notes",
    description="Returns all of the caller's notes, most recently updated first.",
)
async def list_notes(
    user_id: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteResponse]:
    return await note_service.list_notes(db=db, user_id=user_id)


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteResponse,
    responses={**_unauthorized, **_server_error},
    summary="Create a note",
)
async def create_note(
    user_id: CurrentUser,
    body: NoteCreate,
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.create_note(
        db=db,
        user_id=user_id,
        title=body.title,
        content=body.content,
    )


@router.put(
    "/notes",
    response_model=NoteResponse,
    responses={**_unauthorized, **_not_found, **_server_error},
    summary="Update a note",
    description="Replaces title and content of one of the caller's notes and refreshes updated_at.",
)
async def update_note(
    user_id: CurrentUser,
    body: NoteUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> NoteResponse:
    return await note_service.update_note(
        db=db,
        user_id=user_id,
        note_id=body.id,
        title=body.title,
        content=body.content,
    )


@router.delete(
    "/notes",
    status_code=204,
    response_class=Response,
    responses={**_unauthorized, **_not_found, **_server_error},
    summary="Delete a note",
)
async def delete_note(
    user_id: CurrentUser,
    body: NoteDelete,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_service.delete_note(db=db, user_id=user_id, note_id=body.id)
    return Response(status_code=204)
