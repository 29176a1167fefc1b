import base64
from typing import Dict, List, Optional

import pytest

from speedrender.exceptions import StatusCheckError
from speedrender.models import JobStatus
from speedrender.pipeline.payload import RenderDefaults
from speedrender.services.orchestration.render_service import RenderOrchestrationService
from speedrender.services.render_client import SubmitResult

BEFORE_BYTES = b"\xff\xd8before-image"
AFTER_BYTES = b"\xff\xd8after-image"
BEFORE_B64 = base64.b64encode(BEFORE_BYTES).decode()
AFTER_B64 = base64.b64encode(AFTER_BYTES).decode()


class FakeRenderClient:
    """Scripted render service: each get_status call consumes one scripted entry.

    Entries are status strings, JobStatus objects, or exceptions to raise.
    """

    def __init__(self, statuses: List, submit_status: Optional[str] = "IN_QUEUE", job_id: str = "job-123"):
        self.statuses = list(statuses)
        self.submit_status = submit_status
        self.job_id = job_id
        self.submitted: List[Dict] = []
        self.status_calls = 0

    async def submit(self, payload: Dict) -> SubmitResult:
        self.submitted.append(payload)
        return SubmitResult(job_id=self.job_id, status=self.submit_status)

    async def get_status(self, job_id: str) -> JobStatus:
        self.status_calls += 1
        entry = self.statuses.pop(0) if self.statuses else "IN_PROGRESS"
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, JobStatus):
            return entry
        output = {"images": [AFTER_B64]} if entry == "COMPLETED" else None
        return JobStatus(id=job_id, status=entry, output=output)


class FakeStorage:
    def __init__(self, fail_on: Optional[str] = None):
        self.objects: Dict[str, bytes] = {}
        self.puts: List[tuple] = []
        self.fail_on = fail_on

    def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        if self.fail_on and key.startswith(self.fail_on):
            raise RuntimeError("bucket unavailable")
        self.puts.append((key, data, content_type))
        self.objects[key] = data
        return f"https://storage.example.com/renders/{key}"


class FakeProjectStore:
    def __init__(self, fail: bool = False):
        self.docs: Dict[str, Dict] = {}
        self.upserts: List = []
        self.fail = fail

    def upsert(self, record) -> None:
        if self.fail:
            raise RuntimeError("firestore unavailable")
        self.upserts.append(record)
        self.docs[record.id] = record.to_document()


async def no_sleep(seconds: float) -> None:
    return None


def status_error(job_id: str = "job-123") -> StatusCheckError:
    return StatusCheckError(job_id, "connection reset")


@pytest.fixture
def defaults() -> RenderDefaults:
    return RenderDefaults(
        prompt="render prompt",
        negative_prompt="ugly",
        seed=42,
        steps=25,
        cfg_scale=7.0,
        denoising_strength=0.45,
        image_cfg_scale=1.5,
    )


@pytest.fixture
def make_service(defaults):
    def _make(render=None, storage=None, store=None, max_attempts=20, sleep=no_sleep):
        render = render or FakeRenderClient(["COMPLETED"])
        storage = storage or FakeStorage()
        store = store or FakeProjectStore()
        service = RenderOrchestrationService(
            render,
            storage,
            store,
            defaults,
            poll_interval=5.0,
            max_attempts=max_attempts,
            sleep=sleep,
            clock=lambda: 1700000000.0,
        )
        return service, render, storage, store

    return _make


@pytest.fixture
def valid_payload() -> Dict:
    return {
        "base64": "data:image/jpeg;base64," + BEFORE_B64,
        "environment": "interior",
        "projectName": "casa-azul",
        "text": "Living room refresh",
        "user": "user-1",
        "architecturalStyle": "modern",
        "weather": "sunny",
        "additionalOptions": ["plants"],
        "hours": "afternoon",
    }
