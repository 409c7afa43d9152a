import re
from typing import Optional

from .candidates import MAX_SUFFIX
from .errors import ValidationError
from .models import ExamQuery

SEMESTERS = {"I": 1, "II": 2, "III": 3, "IV": 4, "V": 5, "VI": 6, "VII": 7, "VIII": 8}

REG_NO_PATTERN = re.compile(r"[0-9]{11}")
PREFIX_PATTERN = re.compile(r"[0-9]{8}|[0-9]{11}")

ITEM_EXAMPLE = "/api/result?reg_no=22104134001&year=2024&semester=III&exam_held=Nov%2F2024"
BATCH_EXAMPLE = "/api/results?prefix=22104134&year=2024&semester=III&exam_held=Nov%2F2024"


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        return None


def _common_fields(
    year: Optional[str], semester: Optional[str], exam_held: Optional[str], example: str
) -> tuple:
    parsed_year = _parse_int(year) if year else None
    if parsed_year is None:
        raise ValidationError('Missing or invalid "year" parameter.', example)

    if not semester or not semester.strip():
        raise ValidationError('Missing required "semester" parameter.', example)
    normalized = semester.strip().upper()
    if normalized not in SEMESTERS:
        raise ValidationError(
            f'Unrecognized "semester" value {semester!r} (use Roman numerals I-VIII).',
            example,
        )

    if not exam_held or not exam_held.strip():
        raise ValidationError('Missing required "exam_held" parameter.', example)

    return parsed_year, normalized, exam_held.strip()


def validate_item_query(
    reg_no: Optional[str],
    year: Optional[str],
    semester: Optional[str],
    exam_held: Optional[str],
) -> ExamQuery:
    """Validate a per-item lookup: a full 11-digit registration number is required."""
    if not reg_no or not REG_NO_PATTERN.fullmatch(reg_no):
        raise ValidationError(
            'Invalid parameter. Use "reg_no" query parameter with a full '
            "11-digit registration number.",
            ITEM_EXAMPLE,
        )
    parsed_year, normalized, held = _common_fields(year, semester, exam_held, ITEM_EXAMPLE)
    return ExamQuery(prefix=reg_no, year=parsed_year, semester=normalized, exam_held=held)


def validate_batch_query(
    prefix: Optional[str],
    year: Optional[str],
    semester: Optional[str],
    exam_held: Optional[str],
    start_suffix: Optional[str],
    batch_size: Optional[str],
    max_batch_size: int,
) -> ExamQuery:
    """Validate an aggregate lookup by 8-digit prefix or 11-digit registration number.

    A batch size above `max_batch_size` is clamped rather than rejected.
    """
    if not prefix or not PREFIX_PATTERN.fullmatch(prefix):
        raise ValidationError(
            'Invalid parameter. Use "prefix" with an 8-digit prefix or a full '
            "11-digit registration number.",
            BATCH_EXAMPLE,
        )
    parsed_year, normalized, held = _common_fields(year, semester, exam_held, BATCH_EXAMPLE)

    start = None
    if start_suffix is not None and start_suffix != "":
        start = _parse_int(start_suffix)
        if start is None or not 0 <= start <= MAX_SUFFIX:
            raise ValidationError(
                f'Invalid "start_suffix" parameter (use an integer 0-{MAX_SUFFIX}).',
                BATCH_EXAMPLE,
            )

    size = None
    if batch_size is not None and batch_size != "":
        size = _parse_int(batch_size)
        if size is None or size < 1:
            raise ValidationError(
                'Invalid "batch_size" parameter (use a positive integer).',
                BATCH_EXAMPLE,
            )
        size = min(size, max_batch_size)

    return ExamQuery(
        prefix=prefix,
        year=parsed_year,
        semester=normalized,
        exam_held=held,
        start_suffix=start,
        batch_size=size,
    )
