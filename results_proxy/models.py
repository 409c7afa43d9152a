from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    ERROR = "error"


class FetchOutcome(BaseModel):
    """Classified result of querying the upstream for one registration number."""

    kind: OutcomeKind
    reg_no: str
    data: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, reg_no: str, data: Dict[str, Any]) -> "FetchOutcome":
        return cls(kind=OutcomeKind.SUCCESS, reg_no=reg_no, data=data)

    @classmethod
    def not_found(cls, reg_no: str, reason: str) -> "FetchOutcome":
        return cls(kind=OutcomeKind.NOT_FOUND, reg_no=reg_no, reason=reason)

    @classmethod
    def failed(cls, reg_no: str, reason: str) -> "FetchOutcome":
        return cls(kind=OutcomeKind.FAILED, reg_no=reg_no, reason=reason)

    @classmethod
    def error(cls, reg_no: str, reason: str) -> "FetchOutcome":
        return cls(kind=OutcomeKind.ERROR, reg_no=reg_no, reason=reason)


class BatchResult(BaseModel):
    """Outcomes of one batch, in the order the keys were generated."""

    outcomes: List[FetchOutcome]

    def _count(self, kind: OutcomeKind) -> int:
        return sum(1 for outcome in self.outcomes if outcome.kind == kind)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return self._count(OutcomeKind.SUCCESS)

    @property
    def not_found(self) -> int:
        return self._count(OutcomeKind.NOT_FOUND)

    @property
    def failed(self) -> int:
        return self._count(OutcomeKind.FAILED) + self._count(OutcomeKind.ERROR)

    def counts(self) -> Dict[str, int]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "not_found": self.not_found,
            "failed": self.failed,
        }


class ExamQuery(BaseModel):
    """Validated inbound request, ready for candidate generation."""

    prefix: str
    year: int
    semester: str
    exam_held: str
    start_suffix: Optional[int] = None
    batch_size: Optional[int] = None


class ExamDetails(BaseModel):
    year: int
    semester: str
    held: str


class ItemResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reg_no: str = Field(alias="regNo")
    status: str
    data: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None


class AggregateResponse(BaseModel):
    count: int
    total_attempted: int
    extracted_prefix: str
    exam_details: ExamDetails
    results: List[Dict[str, Any]]
