"""Single-key lookup against the upstream results service.

Every call resolves to a FetchOutcome; nothing raised while talking to the
upstream escapes `ResultFetcher.fetch`, so one bad key cannot disturb the
rest of a concurrent batch.
"""

import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from .config import Settings
from .errors import (
    TransportError,
    UpstreamDataError,
    UpstreamHttpError,
    UpstreamNotFound,
)
from .models import FetchOutcome, OutcomeKind

logger = logging.getLogger(__name__)

ENVELOPE_OK = 200
ENVELOPE_NOT_FOUND = 404

# Same character set JavaScript's encodeURIComponent leaves alone.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def build_client(
    settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """Shared upstream client; one connection slot per candidate in a full batch."""
    return httpx.AsyncClient(
        timeout=settings.fetch_timeout,
        limits=httpx.Limits(max_connections=settings.max_batch_size),
        follow_redirects=True,
        transport=transport,
    )


class ResultFetcher:
    """Issues one bounded GET per registration number and classifies the reply."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings):
        self.client = client
        self.settings = settings

    def build_url(self, reg_no: str, year: int, semester: str, exam_held: str) -> str:
        return (
            f"{self.settings.upstream_base_url}?year={year}&redg_no={reg_no}"
            f"&semester={semester}&exam_held={encode_component(exam_held)}"
        )

    def build_headers(self, year: int, semester: str, exam_held: str) -> Dict[str, str]:
        return {
            "Accept": "application/json, text/plain, */*",
            "User-Agent": self.settings.upstream_user_agent,
            "Referer": (
                f"{self.settings.upstream_referer_base}?semester={semester}"
                f"&session={year}&exam_held={encode_component(exam_held)}"
            ),
        }

    async def fetch(
        self, reg_no: str, year: int, semester: str, exam_held: str
    ) -> FetchOutcome:
        try:
            data = await asyncio.wait_for(
                self._request(reg_no, year, semester, exam_held),
                timeout=self.settings.fetch_timeout,
            )
        except asyncio.TimeoutError:
            outcome = FetchOutcome.error(reg_no, "Request timed out")
        except TransportError as exc:
            outcome = FetchOutcome.error(reg_no, exc.message)
        except UpstreamNotFound as exc:
            outcome = FetchOutcome.not_found(reg_no, exc.message)
        except (UpstreamHttpError, UpstreamDataError) as exc:
            outcome = FetchOutcome.failed(reg_no, exc.message)
        else:
            outcome = FetchOutcome.success(reg_no, data)

        self._log(outcome)
        return outcome

    async def _request(
        self, reg_no: str, year: int, semester: str, exam_held: str
    ) -> Dict[str, Any]:
        url = self.build_url(reg_no, year, semester, exam_held)
        try:
            response = await self.client.get(
                url,
                headers=self.build_headers(year, semester, exam_held),
                timeout=self.settings.fetch_timeout,
            )
        except httpx.TimeoutException as exc:
            raise TransportError("Request timed out") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Fetch error: {exc}") from exc
        return self.classify(response)

    @staticmethod
    def classify(response: httpx.Response) -> Dict[str, Any]:
        """Return the upstream `data` record or raise the matching upstream error."""
        if not response.is_success:
            raise UpstreamHttpError(response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamDataError("Upstream data error: response is not JSON") from exc
        if not isinstance(payload, dict):
            raise UpstreamDataError("Upstream data error: unexpected payload")

        status = payload.get("status")
        message = payload.get("message")
        if status == ENVELOPE_NOT_FOUND:
            raise UpstreamNotFound(message or "Record not found.")
        data = payload.get("data")
        if status != ENVELOPE_OK or not data:
            raise UpstreamDataError(
                f"Upstream data error: {message or f'Status {status}'}"
            )
        if not isinstance(data, dict):
            raise UpstreamDataError("Upstream data error: unexpected data record")
        return data

    @staticmethod
    def _log(outcome: FetchOutcome) -> None:
        extra = {"reg_no": outcome.reg_no, "outcome": outcome.kind.value}
        if outcome.kind == OutcomeKind.SUCCESS:
            logger.debug(f"[{outcome.reg_no}] result fetched", extra=extra)
        elif outcome.kind == OutcomeKind.NOT_FOUND:
            logger.info(f"[{outcome.reg_no}] record not found", extra=extra)
        elif outcome.kind == OutcomeKind.FAILED:
            logger.warning(f"[{outcome.reg_no}] {outcome.reason}", extra=extra)
        else:
            logger.error(f"[{outcome.reg_no}] {outcome.reason}", extra=extra)
