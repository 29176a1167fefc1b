"""Pydantic models for API requests, render jobs and persisted projects."""
from __future__ import annotations

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class RenderRequest(BaseModel):
    """Inbound render request.

    Every field is optional at the model level; required fields are checked by
    the orchestrator so a missing field is reported the same way as any other
    validation failure, before anything is uploaded.
    """

    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    base64: Optional[str] = Field(default=None, description="Before-image, base64 or data URL")
    environment: Optional[str] = None
    projectName: Optional[str] = Field(default=None, description="Project identifier and filename stem")
    text: Optional[str] = None
    user: Optional[str] = None

    architecturalStyle: Optional[str] = None
    weather: Optional[str] = None
    additionalOptions: Optional[Any] = None
    hours: Optional[Any] = None

    neg: Optional[str] = Field(default=None, description="Negative prompt override")
    seed: Optional[int] = None
    sampler_name: Optional[str] = None
    cfg_scale: Optional[float] = None
    steps: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    model: Optional[str] = None


class RenderResponse(BaseModel):
    """Successful render response."""

    imageUrl: str


class ErrorResponse(BaseModel):
    """Failure response; errorType lets callers tell validation from upstream failures."""

    error: str
    errorType: str


class JobStatus(BaseModel):
    """Observable state of a remote render job as reported by /status/{id}."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    status: Optional[str] = None
    output: Optional[Any] = None

    @property
    def first_image(self) -> Optional[str]:
        # output shape is worker-defined; only {"images": [...]} carries a result
        if not isinstance(self.output, dict):
            return None
        images = self.output.get("images") or []
        if isinstance(images, list) and images and isinstance(images[0], str):
            return images[0]
        return None


class ProjectRecord(BaseModel):
    """Project document persisted once both images are stored."""

    id: str
    projectName: str
    text: str
    environment: str
    imageUrlBefore: str
    imageUrlAfter: str
    user: str
    jobId: str
    architecturalStyle: Optional[str] = None
    weather: Optional[str] = None
    additionalOptions: Optional[Any] = None
    hours: Optional[Any] = None
    status: str = "visible"

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
