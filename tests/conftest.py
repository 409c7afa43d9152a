"""Shared fixtures: a scripted upstream behind httpx.MockTransport and an app wired to it."""

import inspect
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from results_proxy.batch import BatchOrchestrator
from results_proxy.config import Settings
from results_proxy.fetcher import ResultFetcher, build_client
from results_proxy.main import app, get_orchestrator


def student_record(reg_no: str, **extra: Any) -> Dict[str, Any]:
    record = {
        "redg_no": reg_no,
        "name": f"STUDENT {reg_no[-3:]}",
        "father_name": "FATHER",
        "mother_name": "MOTHER",
        "sgpa": "8.12",
        "theorySubjects": [{"code": "101", "name": "Mathematics", "grade": "A"}],
    }
    record.update(extra)
    return record


def envelope(status: int = 200, data: Optional[dict] = None, message: Optional[str] = None) -> dict:
    body: Dict[str, Any] = {"status": status}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


class FakeUpstream:
    """Answers upstream requests per registration number; unknown numbers are not found."""

    def __init__(self):
        self.replies: Dict[str, Callable[[httpx.Request], Any]] = {}
        self.requests: List[httpx.Request] = []

    def found(self, reg_no: str, **extra: Any) -> Dict[str, Any]:
        record = student_record(reg_no, **extra)
        self.replies[reg_no] = lambda request: httpx.Response(
            200, json=envelope(data=record)
        )
        return record

    def reply(self, reg_no: str, handler: Callable[[httpx.Request], Any]) -> None:
        self.replies[reg_no] = handler

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.replies.get(request.url.params["redg_no"])
        if handler is None:
            return httpx.Response(200, json=envelope(404, message="No Record Found !!!"))
        response = handler(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    @property
    def queried(self) -> List[str]:
        return [request.url.params["redg_no"] for request in self.requests]


@pytest.fixture
def test_settings():
    return Settings(
        fetch_timeout_ms=200,
        default_batch_size=5,
        max_batch_size=120,
        cache_control="s-maxage=300, stale-while-revalidate=600",
    )


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
async def fetcher(upstream, test_settings):
    client = build_client(test_settings, transport=httpx.MockTransport(upstream))
    yield ResultFetcher(client, test_settings)
    await client.aclose()


@pytest.fixture
def orchestrator(fetcher, test_settings):
    return BatchOrchestrator(fetcher, test_settings)


@pytest.fixture
def api(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()
