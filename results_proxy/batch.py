import asyncio
import logging
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from .candidates import (
    PREFIX_LENGTH,
    explicit_range_keys,
    split_registration,
    term_range_keys,
)
from .config import Settings
from .fetcher import ResultFetcher
from .models import BatchResult, ExamQuery, FetchOutcome, ItemResponse, OutcomeKind

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_NOT_FOUND = "Record not found"
STATUS_TEMPORARY_ERROR = "Error fetching result (temporary)"


def redact(data: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Copy of `data` without the given top-level fields."""
    dropped = set(fields)
    return {key: value for key, value in data.items() if key not in dropped}


class BatchOrchestrator:
    """Fans one request out to a fetch per candidate and reduces the outcomes."""

    def __init__(self, fetcher: ResultFetcher, settings: Settings):
        self.fetcher = fetcher
        self.settings = settings

    def plan(self, query: ExamQuery) -> Tuple[str, List[str]]:
        """Resolve the 8-digit prefix and the ordered candidate keys for a query."""
        max_size = self.settings.max_batch_size
        if len(query.prefix) > PREFIX_LENGTH:
            prefix, start = split_registration(query.prefix)
            count = query.batch_size or self.settings.default_batch_size
            return prefix, explicit_range_keys(prefix, start, count, max_size)

        prefix = query.prefix
        if query.start_suffix is None and query.batch_size is None:
            return prefix, term_range_keys(prefix, self.settings.term_ranges, max_size)

        start = query.start_suffix
        if start is None:
            start = self.settings.term_ranges[0][0]
        count = query.batch_size or self.settings.default_batch_size
        return prefix, explicit_range_keys(prefix, start, count, max_size)

    async def run(self, keys: Sequence[str], query: ExamQuery) -> BatchResult:
        logger.info(
            f"Batch fetch start: {keys[0] if keys else '-'}..{keys[-1] if keys else '-'}, "
            f"sem {query.semester}, year {query.year}, held {query.exam_held}",
            extra={"batch_size": len(keys)},
        )
        settled = await asyncio.gather(
            *(
                self.fetcher.fetch(key, query.year, query.semester, query.exam_held)
                for key in keys
            ),
            return_exceptions=True,
        )

        outcomes: List[FetchOutcome] = []
        for key, result in zip(keys, settled):
            if isinstance(result, BaseException):
                logger.error(f"[{key}] fetch task failed: {result!r}", extra={"reg_no": key})
                outcomes.append(FetchOutcome.error(key, "Fetch task failed"))
            else:
                outcomes.append(result)

        batch = BatchResult(outcomes=outcomes)
        logger.info(f"Batch fetch done: {batch.counts()}", extra={"batch_size": len(keys)})
        return batch

    @staticmethod
    def successes(batch: BatchResult, redacted_fields: Iterable[str] = ()) -> List[Dict[str, Any]]:
        """Aggregate mode: only the data records of successful lookups."""
        fields = list(redacted_fields)
        return [
            redact(outcome.data or {}, fields)
            for outcome in batch.outcomes
            if outcome.kind == OutcomeKind.SUCCESS
        ]

    @staticmethod
    def item_responses(
        batch: BatchResult, redacted_fields: Iterable[str] = ()
    ) -> List[ItemResponse]:
        """Per-item mode: one record per attempted key, in input order."""
        fields = list(redacted_fields)
        items: List[ItemResponse] = []
        for outcome in batch.outcomes:
            if outcome.kind == OutcomeKind.SUCCESS:
                items.append(
                    ItemResponse(
                        reg_no=outcome.reg_no,
                        status=STATUS_SUCCESS,
                        data=redact(outcome.data or {}, fields),
                    )
                )
            elif outcome.kind == OutcomeKind.NOT_FOUND:
                items.append(ItemResponse(reg_no=outcome.reg_no, status=STATUS_NOT_FOUND))
            else:
                items.append(
                    ItemResponse(
                        reg_no=outcome.reg_no,
                        status=STATUS_TEMPORARY_ERROR,
                        reason=outcome.reason,
                    )
                )
        return items
