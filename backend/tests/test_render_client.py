import asyncio
import json

import httpx
import pytest

from speedrender.exceptions import StatusCheckError, UpstreamError
from speedrender.services.render_client import RunPodClient


def _client(handler) -> RunPodClient:
    return RunPodClient("https://api.runpod.test/v2/endpoint/", "secret-token", transport=httpx.MockTransport(handler))


def test_submit_posts_payload_with_bearer_token():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "job-1", "status": "IN_QUEUE"})

    result = asyncio.run(_client(handler).submit({"input": {"endpoint": "img2img"}}))

    assert result.job_id == "job-1"
    assert result.status == "IN_QUEUE"
    assert seen["url"] == "https://api.runpod.test/v2/endpoint/run"
    assert seen["auth"] == "Bearer secret-token"
    assert seen["body"] == {"input": {"endpoint": "img2img"}}


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(202, json={"id": "job-1"}),
        httpx.Response(200, json={"status": "IN_QUEUE"}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"id": "j", "status": ["IN_QUEUE"]}),
    ],
)
def test_submit_failures_are_upstream_errors(response):
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(_client(lambda request: response).submit({}))
    assert exc_info.value.system == "render service"
    assert not isinstance(exc_info.value, StatusCheckError)


def test_submit_network_error_is_upstream_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamError):
        asyncio.run(_client(handler).submit({}))


def test_get_status_returns_job_status():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert str(request.url) == "https://api.runpod.test/v2/endpoint/status/job-1"
        assert request.headers["Authorization"] == "Bearer secret-token"
        return httpx.Response(200, json={"id": "job-1", "status": "COMPLETED", "output": {"images": ["aGk="]}})

    status = asyncio.run(_client(handler).get_status("job-1"))

    assert status.status == "COMPLETED"
    assert status.first_image == "aGk="


def test_get_status_reports_failed_job_normally():
    status = asyncio.run(
        _client(lambda request: httpx.Response(200, json={"id": "job-1", "status": "FAILED"})).get_status("job-1")
    )
    assert status.status == "FAILED"
    assert status.first_image is None


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(503, text="unavailable"),
        lambda request: httpx.Response(200, text="<html>"),
        lambda request: httpx.Response(200, json=["unexpected"]),
    ],
)
def test_get_status_failures_are_status_check_errors(handler):
    with pytest.raises(StatusCheckError) as exc_info:
        asyncio.run(_client(handler).get_status("job-9"))
    assert exc_info.value.job_id == "job-9"
    assert "job-9" in str(exc_info.value)


def test_get_status_timeout_is_status_check_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(StatusCheckError):
        asyncio.run(_client(handler).get_status("job-1"))
