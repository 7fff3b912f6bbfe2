"""
FastAPI routes for the member directory.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
)
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import ValidationError

from memberlink.dependencies import (
    get_directory_command_service,
    get_discord_oauth_client,
    get_interaction_verifier,
    get_upload_service,
    get_verification_service,
)
from memberlink.schemas import Interaction
from memberlink.services import (
    InteractionSignatureError,
    InvalidUploadError,
    UploadRejectedError,
    VerificationError,
)
from memberlink.services.directory_views import UPLOAD_FORM, render_verified_page
from memberlink.services.verification import client_origin

router = APIRouter()
public_router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth/discord/authorize")
async def start_discord_oauth_flow(
    oauth_client: Annotated[Any, Depends(get_discord_oauth_client)],
) -> RedirectResponse:
    """Send the browser to the Discord consent screen."""
    return RedirectResponse(
        url=oauth_client.build_authorization_url(),
        status_code=HTTPStatus.TEMPORARY_REDIRECT,
    )


@public_router.get("/callback", response_class=HTMLResponse)
@router.get("/auth/discord/callback", response_class=HTMLResponse)
async def handle_discord_oauth_callback(
    request: Request,
    service: Annotated[Any, Depends(get_verification_service)],
    code: Optional[str] = Query(default=None, description="Authorization code from Discord."),
) -> HTMLResponse:
    """Complete the OAuth exchange and record the verified identity."""
    if not code:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail="No code provided.")

    origin = client_origin(
        request.headers.get("x-forwarded-for"),
        request.client.host if request.client else None,
    )
    try:
        record = await service.complete(code=code, origin_address=origin)
    except VerificationError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc

    return HTMLResponse(content=render_verified_page(record))


@public_router.get("/upload", response_class=HTMLResponse)
async def show_upload_form() -> HTMLResponse:
    return HTMLResponse(content=UPLOAD_FORM)


@public_router.post("/upload")
async def upload_directory(
    service: Annotated[Any, Depends(get_upload_service)],
    file: UploadFile = File(..., description="Replacement users.json."),
    secret: Optional[str] = Form(default=None, alias="pass"),
) -> dict:
    """Replace the directory file after backing up the current one."""
    content = await file.read()
    try:
        backup = service.replace(secret=secret, content=content)
    except UploadRejectedError as exc:
        raise HTTPException(status_code=HTTPStatus.FORBIDDEN, detail=str(exc)) from exc
    except InvalidUploadError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc
    except OSError as exc:
        logger.exception("Directory upload failed")
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Failed to save the uploaded file.",
        ) from exc

    return {"status": "updated", "backup": backup.name if backup else None}


@router.post("/integrations/discord/interactions")
async def handle_discord_interaction(
    request: Request,
    background_tasks: BackgroundTasks,
    verifier: Annotated[Any, Depends(get_interaction_verifier)],
    commands: Annotated[Any, Depends(get_directory_command_service)],
) -> JSONResponse:
    """Receive a signed Discord interaction and answer it."""
    body = await request.body()
    if verifier is None:
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED,
            detail="Interaction verification is not configured.",
        )
    try:
        verifier.verify(
            signature=request.headers.get("x-signature-ed25519"),
            timestamp=request.headers.get("x-signature-timestamp"),
            body=body,
        )
    except InteractionSignatureError as exc:
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail=str(exc)) from exc

    try:
        interaction = Interaction.model_validate_json(body)
    except ValidationError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="Malformed interaction payload."
        ) from exc

    outcome = await commands.handle(interaction)
    if outcome.followup is not None:
        background_tasks.add_task(outcome.followup)
    return JSONResponse(content=outcome.response)


__all__ = ["public_router", "router"]
