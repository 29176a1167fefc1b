from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple

from ...config import Settings
from ...exceptions import JobFailedError, StatusCheckError, UpstreamError, ValidationError
from ...models import JobStatus, ProjectRecord, RenderRequest
from ...pipeline.payload import RenderDefaults, RenderParameters, build_job_payload
from ...services.firestore import FirestoreService
from ...services.gcs import GCSService, image_key
from ...services.render_client import RENDER_SYSTEM, RunPodClient, SubmitResult
from ...utils.images import clean_base64, decode_base64_image
from .polling import STATUS_IN_QUEUE, PollState, next_poll_state

logger = logging.getLogger(__name__)

STORAGE_SYSTEM = "object storage"
METADATA_SYSTEM = "metadata store"
IMAGE_CONTENT_TYPE = "image/jpeg"

REQUIRED_FIELDS = ("base64", "environment", "projectName", "text", "user")

# Firestore document id limits; the project name is also the document id
MAX_PROJECT_ID_BYTES = 1500


def _project_id_problem(project: str) -> Optional[str]:
    if "/" in project:
        return "must not contain '/'"
    if project in (".", ".."):
        return "must not be '.' or '..'"
    if project.startswith("__") and project.endswith("__") and len(project) >= 4:
        return "must not match __.*__"
    if len(project.encode("utf-8")) > MAX_PROJECT_ID_BYTES:
        return f"must be at most {MAX_PROJECT_ID_BYTES} bytes"
    return None


@dataclass
class RenderResult:
    image_url: str
    before_url: str
    job_id: str


@dataclass
class _ValidatedRequest:
    request: RenderRequest
    project_name: str
    image_b64: str
    image_bytes: bytes


class RenderOrchestrationService:
    """Drives one render request from input to a stored, addressable result.

    validate -> upload before -> submit -> poll -> fetch result -> upload after
    -> upsert project -> respond. Every step after validation has an external
    side effect; failures abort the remaining steps and nothing is rolled back.
    """

    def __init__(
        self,
        render_client: RunPodClient,
        object_store: GCSService,
        metadata_store: FirestoreService,
        defaults: RenderDefaults,
        *,
        poll_interval: float = 5.0,
        max_attempts: int = 20,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._render = render_client
        self._storage = object_store
        self._store = metadata_store
        self._defaults = defaults
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "RenderOrchestrationService":
        return cls(
            RunPodClient(
                settings.RENDER_API_URL,
                settings.RENDER_API_TOKEN,
                timeout=settings.RENDER_HTTP_TIMEOUT,
            ),
            GCSService(settings.GCS_BUCKET, public_base_url=settings.STORAGE_PUBLIC_BASE_URL),
            FirestoreService(
                collection=settings.PROJECTS_COLLECTION,
                project=settings.GCP_PROJECT,
                database=settings.FIRESTORE_DATABASE_ID,
            ),
            RenderDefaults.from_settings(settings),
            poll_interval=settings.POLL_INTERVAL_SECONDS,
            max_attempts=settings.POLL_MAX_ATTEMPTS,
        )

    async def process_render_request(self, request: RenderRequest) -> RenderResult:
        validated = self._validate(request)
        project = validated.project_name
        # Completed side effects, in order; reported if a later step fails
        done: List[str] = []

        try:
            before_url = self._upload(image_key("before", project), validated.image_bytes)
            done.append(f"before-upload:{before_url}")

            submitted = await self._submit(validated)
            job_id = submitted.job_id
            done.append(f"job-submitted:{job_id}")

            result = await self._wait_for_result(job_id, submitted.status or STATUS_IN_QUEUE)
            after_bytes = self._decode_result_image(job_id, result)

            after_url = self._upload(image_key("after", project), after_bytes)
            done.append(f"after-upload:{after_url}")

            self._persist(validated, job_id, before_url, after_url)
            done.append(f"record-upserted:{project}")
        except (UpstreamError, JobFailedError) as exc:
            if done:
                logger.error("[%s] aborted after side effects %s: %s", project, done, exc)
            raise

        logger.info("[%s] render complete: job=%s after=%s", project, job_id, after_url)
        return RenderResult(image_url=after_url, before_url=before_url, job_id=job_id)

    # --- Steps ---
    def _validate(self, request: RenderRequest) -> _ValidatedRequest:
        missing = [
            name for name in REQUIRED_FIELDS
            if not isinstance(getattr(request, name), str) or not getattr(request, name).strip()
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        project = request.projectName.strip()
        problem = _project_id_problem(project)
        if problem:
            raise ValidationError(f"Invalid projectName {project!r}: {problem}")

        cleaned = clean_base64(request.base64)
        try:
            image_bytes = decode_base64_image(cleaned)
        except ValueError as exc:
            raise ValidationError(f"Invalid base64 image: {exc}") from exc

        return _ValidatedRequest(
            request=request,
            project_name=project,
            image_b64=cleaned,
            image_bytes=image_bytes,
        )

    def _upload(self, key: str, data: bytes) -> str:
        try:
            return self._storage.put(key, data, content_type=IMAGE_CONTENT_TYPE)
        except Exception as exc:  # noqa: BLE001 any storage failure aborts the request
            logger.error("GCS upload failed for %s: %s", key, exc)
            raise UpstreamError(STORAGE_SYSTEM, f"upload of {key} failed: {exc}") from exc

    async def _submit(self, validated: _ValidatedRequest) -> SubmitResult:
        params = RenderParameters.resolve(validated.request, self._defaults)
        payload = build_job_payload(validated.image_b64, params)
        task_uid = f"task_{validated.project_name}_{int(self._clock() * 1000)}"

        submitted = await self._render.submit(payload)
        logger.info("[%s] submitted render job %s (task %s)", validated.project_name, submitted.job_id, task_uid)
        return submitted

    async def _wait_for_result(self, job_id: str, initial_status: str) -> JobStatus:
        _, last = await self.poll_until_terminal(job_id, initial_status)
        # Reuse the completing poll when it already carries the image
        if last is not None and last.first_image:
            return last
        return await self._render.get_status(job_id)

    async def poll_until_terminal(self, job_id: str, initial_status: Optional[str]) -> Tuple[str, Optional[JobStatus]]:
        """Poll until COMPLETED; return the final status and the last status payload.

        Raises JobFailedError for FAILED/unknown statuses or an exhausted
        budget. A status check that errors consumes an attempt; if it was the
        last attempt the StatusCheckError is raised instead.
        """
        status = initial_status
        attempt = 0
        last: Optional[JobStatus] = None
        last_error: Optional[StatusCheckError] = None
        state = next_poll_state(status, attempt, self.max_attempts)

        while not state.is_terminal:
            await self._sleep(self.poll_interval)
            attempt += 1
            try:
                last = await self._render.get_status(job_id)
                status = last.status
                last_error = None
            except StatusCheckError as exc:
                logger.warning("[%s] status check %d/%d failed: %s", job_id, attempt, self.max_attempts, exc)
                last_error = exc
            state = next_poll_state(status, attempt, self.max_attempts)
            logger.debug("[%s] poll %d: status=%s state=%s", job_id, attempt, status, state.value)

        if state is PollState.BUDGET_EXHAUSTED and last_error is not None:
            raise last_error
        if state is not PollState.COMPLETED:
            logger.error("[%s] job ended in state %s (status=%s, attempts=%d)", job_id, state.value, status, attempt)
            raise JobFailedError(job_id, status)
        return status, last

    def _decode_result_image(self, job_id: str, result: JobStatus) -> bytes:
        image = result.first_image
        if not image:
            raise UpstreamError(RENDER_SYSTEM, f"result missing expected image for job {job_id}")
        try:
            return decode_base64_image(clean_base64(image))
        except ValueError as exc:
            raise UpstreamError(RENDER_SYSTEM, f"result image for job {job_id} is not valid base64") from exc

    def _persist(self, validated: _ValidatedRequest, job_id: str, before_url: str, after_url: str) -> None:
        req = validated.request
        record = ProjectRecord(
            id=validated.project_name,
            projectName=validated.project_name,
            text=req.text,
            environment=req.environment,
            imageUrlBefore=before_url,
            imageUrlAfter=after_url,
            user=req.user,
            jobId=job_id,
            architecturalStyle=req.architecturalStyle,
            weather=req.weather,
            additionalOptions=req.additionalOptions,
            hours=req.hours,
        )
        try:
            self._store.upsert(record)
        except Exception as exc:  # noqa: BLE001
            logger.error("[%s] Firestore upsert failed: %s", validated.project_name, exc)
            raise UpstreamError(METADATA_SYSTEM, f"failed to save project record: {exc}") from exc
