from __future__ import annotations

"""Domain-specific exceptions for the render pipeline.

Routers should catch these and translate them to HTTP responses. Each one
aborts the remaining pipeline steps; nothing already stored is rolled back.
"""


class ValidationError(Exception):
    """Malformed or incomplete render request; raised before any side effect."""


class UpstreamError(Exception):
    """Failure from object storage, the metadata store, or the render service."""

    def __init__(self, system: str, message: str) -> None:
        self.system = system
        self.message = message
        super().__init__(f"{system}: {message}")


class StatusCheckError(UpstreamError):
    """Could not find out the job status (network/protocol failure).

    Not the same as a job that reports FAILED; see JobFailedError.
    """

    def __init__(self, job_id: str, message: str) -> None:
        self.job_id = job_id
        super().__init__("render service", f"status check failed for job {job_id}: {message}")


class JobFailedError(Exception):
    """Job ended in a non-COMPLETED status or never finished within the poll budget."""

    def __init__(self, job_id: str, status: str | None) -> None:
        self.job_id = job_id
        self.status = status
        super().__init__(f"Render job {job_id} failed with status: {status}")
