"""Renders router: accept a before-image and return the rendered after-image URL.

Thin HTTP layer over `RenderOrchestrationService`:
validate -> upload before -> submit -> poll -> upload after -> upsert project.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ..deps import get_project_store, get_render_service
from ..exceptions import JobFailedError, UpstreamError, ValidationError
from ..models import ErrorResponse, RenderRequest, RenderResponse
from ..services.firestore import FirestoreService
from ..services.orchestration.render_service import RenderOrchestrationService

router = APIRouter(tags=["renders"])
logger = logging.getLogger(__name__)


def _error(message: str, error_type: str) -> JSONResponse:
    body = ErrorResponse(error=message, errorType=error_type)
    return JSONResponse(status_code=500, content=body.model_dump())


@router.post(
    "/renders",
    response_model=RenderResponse,
    responses={500: {"model": ErrorResponse}},
)
async def create_render(
    http_request: Request,
    service: RenderOrchestrationService = Depends(get_render_service),
):
    """Render a before-image and return `{imageUrl}`; any failure is a 500 `{error}`."""
    try:
        try:
            payload = await http_request.json()
        except ValueError as exc:
            raise ValidationError("Request body is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        try:
            request = RenderRequest.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid request fields: {exc.error_count()} error(s)") from exc
        result = await service.process_render_request(request)
    except ValidationError as exc:
        logger.warning("Render request rejected: %s", exc)
        return _error(str(exc), "validation")
    except JobFailedError as exc:
        logger.error("Render job failed: %s", exc)
        return _error(str(exc), "job_failed")
    except UpstreamError as exc:
        logger.error("Upstream failure (%s): %s", exc.system, exc)
        return _error(str(exc), "upstream")
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unexpected render error")
        return _error(str(exc) or "Unexpected internal error", "internal")

    return RenderResponse(imageUrl=result.image_url)


@router.get("/projects/{project_id}")
async def get_project(project_id: str, store: FirestoreService = Depends(get_project_store)) -> dict:
    """Return the stored project record."""
    doc = store.get_project(project_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Project not found")
    doc.pop("updatedAt", None)
    return doc
