"""
Video interview REST endpoints.

Thin wrappers over the active ``RecordingSessionController``: every action
returns the session snapshot so the client can re-render from one payload.
Guarded actions that do not apply in the current state return
``accepted: false`` instead of an error.
"""

from typing import Literal

from fastapi import APIRouter, Response
from fastapi.responses import FileResponse
from pydantic import BaseModel

from byc.core.exceptions import ArtifactNotFoundError, BycError
from byc.core.models import (
    ActionResponse,
    ErrorResponse,
    Question,
    SessionSnapshot,
    SubmitResponse,
)
from byc.services.interview import manager
from byc.services.interview.controller import NEXT_ROUTE
from byc.services.interview.questions import get_questions

router = APIRouter(
    prefix="/interview",
    tags=["interview"],
    responses={
        404: {"model": ErrorResponse, "description": "No active session or recording"},
        409: {"model": ErrorResponse, "description": "Session state conflict"},
    },
)


class SessionCreate(BaseModel):
    """POST /interview/session request body (optional)."""

    provider: Literal["local", "synthetic"] | None = None


def _action(accepted: bool) -> ActionResponse:
    return ActionResponse(accepted=accepted, session=manager.require_session().snapshot())


@router.get("/questions", response_model=list[Question])
async def list_questions():
    """Return the interview prompts in order."""
    return list(get_questions())


@router.post("/session", response_model=SessionSnapshot)
async def create_session(body: SessionCreate | None = None):
    """Start a session and request the camera and microphone."""
    provider = body.provider if body else None
    controller = await manager.start_session(provider=provider)
    return controller.snapshot()


@router.get("/session", response_model=SessionSnapshot)
async def get_session_state():
    """Current snapshot of the active session."""
    return manager.require_session().snapshot()


@router.delete("/session", status_code=204)
async def end_session():
    """Leave the interview: stop timers, release the device and recordings."""
    manager.require_session()
    await manager.end_session()
    return Response(status_code=204)


@router.post("/session/countdown", response_model=ActionResponse)
async def start_countdown():
    return _action(manager.require_session().start_countdown())


@router.post("/session/stop", response_model=ActionResponse)
async def stop_recording():
    return _action(await manager.require_session().stop_recording())


@router.post("/session/review", response_model=ActionResponse)
async def review_recording():
    return _action(manager.require_session().review())


@router.post("/session/rerecord", response_model=ActionResponse)
async def re_record():
    return _action(await manager.require_session().re_record())


@router.post("/session/advance", response_model=ActionResponse)
async def advance():
    return _action(manager.require_session().advance())


@router.post(
    "/session/submit",
    response_model=SubmitResponse,
    responses={503: {"model": ErrorResponse, "description": "Progress could not be saved"}},
)
async def submit_session():
    """Submit once every question is recorded; 409 otherwise.

    503 when progress could not be saved; the session stays active for a retry.
    """
    record, snapshot = await manager.submit_session()
    return SubmitResponse(
        completion=record,
        overall_progress=100,
        next_route=manager.last_route() or NEXT_ROUTE,
        session=snapshot,
    )


@router.get("/session/preview")
async def preview_frame():
    """Latest live camera frame as JPEG (404 while reviewing or without video)."""
    frame = manager.require_session().preview_frame()
    if frame is None:
        raise BycError(
            detail="No live preview available",
            code="PREVIEW_UNAVAILABLE",
            status_code=404,
        )
    return Response(content=frame, media_type="image/jpeg")


@router.get("/session/artifacts/{question_index}/{kind}")
async def get_artifact_track(question_index: int, kind: str):
    """Serve one track of a stored recording for playback."""
    controller = manager.require_session()
    if not 0 <= question_index < len(controller.questions):
        raise ArtifactNotFoundError(question_index)

    artifact = controller.artifact_for(question_index)
    path = artifact.files.get(kind)
    if path is None or not path.is_file():
        raise ArtifactNotFoundError(question_index, kind)

    return FileResponse(
        path=path,
        media_type=artifact.media_types[kind],
        filename=f"question-{question_index + 1}-{kind}{path.suffix}",
    )
