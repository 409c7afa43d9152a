"""Error hierarchy for the results proxy.

Only ValidationError and ResponseCompositionError ever reach a client. The
upstream errors are raised while classifying a single fetch and are turned
into a FetchOutcome before the fetcher returns.
"""

from typing import Any, Dict, Optional


class ResultsProxyError(Exception):
    """Base exception for all results proxy errors."""

    code = "RESULTS_PROXY_ERROR"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(ResultsProxyError):
    """Bad or missing request parameter. Raised before any network call."""

    code = "VALIDATION_ERROR"
    http_status = 400

    def __init__(self, message: str, example: Optional[str] = None):
        super().__init__(message)
        self.example = example

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        if self.example:
            body["example"] = self.example
        return body


class ResponseCompositionError(ResultsProxyError):
    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(self, message: str, details: str):
        super().__init__(message)
        self.details = details

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.details}


class UpstreamError(ResultsProxyError):
    """Failure talking to the upstream results service for one key."""

    code = "UPSTREAM_ERROR"


class UpstreamHttpError(UpstreamError):
    code = "UPSTREAM_HTTP_ERROR"

    def __init__(self, status_code: int):
        super().__init__(f"Upstream HTTP error: {status_code}")
        self.status_code = status_code


class UpstreamNotFound(UpstreamError):
    code = "UPSTREAM_NOT_FOUND"


class UpstreamDataError(UpstreamError):
    code = "UPSTREAM_DATA_ERROR"


class TransportError(UpstreamError):
    code = "TRANSPORT_ERROR"
