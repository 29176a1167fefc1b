"""RunPod serverless client: submit img2img jobs and check their status.

Async implementation using httpx so the FastAPI event loop is not blocked
while waiting on the render endpoint. Calls are made once; the only
repetition happens in the orchestrator's bounded poll loop.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import StatusCheckError, UpstreamError
from ..models import JobStatus

logger = logging.getLogger(__name__)

RENDER_SYSTEM = "render service"


@dataclass
class SubmitResult:
    job_id: str
    status: Optional[str] = None


class RunPodClient:
    """Bearer-authenticated client for ``{base_url}/run`` and ``{base_url}/status/{id}``."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        t = httpx.Timeout(self.timeout, connect=5.0)
        return httpx.AsyncClient(timeout=t, transport=self._transport)

    async def submit(self, payload: Dict[str, Any]) -> SubmitResult:
        """POST the job payload and return the service-assigned job id."""
        url = f"{self.base_url}/run"
        try:
            async with self._client() as client:
                resp = await client.post(url, headers=self._headers(), json=payload)
        except httpx.HTTPError as exc:
            logger.error("RunPod submit request failed: %s", exc)
            raise UpstreamError(RENDER_SYSTEM, f"failed to start render job: {exc}") from exc

        if resp.status_code != 200:
            raise UpstreamError(
                RENDER_SYSTEM,
                f"failed to start render job: HTTP {resp.status_code} {resp.reason_phrase}",
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(RENDER_SYSTEM, "failed to start render job: response is not JSON") from exc

        job_id = data.get("id") if isinstance(data, dict) else None
        if not job_id:
            raise UpstreamError(RENDER_SYSTEM, "failed to start render job: response has no job id")
        status = data.get("status")
        if status is not None and not isinstance(status, str):
            raise UpstreamError(RENDER_SYSTEM, f"failed to start render job: malformed status {status!r}")
        return SubmitResult(job_id=str(job_id), status=status)

    async def get_status(self, job_id: str) -> JobStatus:
        """GET the job status.

        Raises StatusCheckError when the status could not be obtained; a job
        that reports FAILED is returned normally.
        """
        url = f"{self.base_url}/status/{job_id}"
        try:
            async with self._client() as client:
                resp = await client.get(url, headers={"Authorization": f"Bearer {self.token}"})
            resp.raise_for_status()
            return JobStatus.model_validate(resp.json())
        except httpx.HTTPError as exc:
            raise StatusCheckError(job_id, str(exc)) from exc
        except (ValueError, PydanticValidationError) as exc:
            raise StatusCheckError(job_id, f"malformed status response: {exc}") from exc
