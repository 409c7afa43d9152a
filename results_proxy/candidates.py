from typing import Iterable, List, Sequence, Tuple

PREFIX_LENGTH = 8
SUFFIX_LENGTH = 3
MAX_SUFFIX = 999
UNPADDED_FROM = 900


def format_suffix(number: int) -> str:
    """Lateral-entry suffixes (900 and up) are used as-is, the rest are zero-padded."""
    if number >= UNPADDED_FROM:
        return str(number)
    return str(number).zfill(SUFFIX_LENGTH)


def build_keys(prefix: str, suffixes: Iterable[int]) -> List[str]:
    return [f"{prefix}{format_suffix(number)}" for number in suffixes]


def split_registration(reg_no: str) -> Tuple[str, int]:
    """Split a full registration number into its prefix and numeric suffix."""
    if len(reg_no) != PREFIX_LENGTH + SUFFIX_LENGTH or not reg_no.isdigit():
        raise ValueError(f"Not a full registration number: {reg_no!r}")
    return reg_no[:-SUFFIX_LENGTH], int(reg_no[-SUFFIX_LENGTH:])


def term_range_keys(
    prefix: str, term_ranges: Sequence[Tuple[int, int]], max_size: int
) -> List[str]:
    """Keys for every suffix in the configured term ranges, bounds inclusive."""
    suffixes: List[int] = []
    for start, end in term_ranges:
        suffixes.extend(range(start, end + 1))
    if not suffixes or len(suffixes) > max_size:
        raise ValueError(
            f"Term ranges yield {len(suffixes)} candidates, allowed 1-{max_size}"
        )
    return build_keys(prefix, suffixes)


def explicit_range_keys(prefix: str, start: int, count: int, max_size: int) -> List[str]:
    """`count` consecutive keys from `start`, stopping early at suffix 999."""
    if not 1 <= count <= max_size:
        raise ValueError(f"Batch size {count} outside allowed range 1-{max_size}")
    if not 0 <= start <= MAX_SUFFIX:
        raise ValueError(f"Start suffix {start} outside allowed range 0-{MAX_SUFFIX}")
    end = min(start + count - 1, MAX_SUFFIX)
    return build_keys(prefix, range(start, end + 1))
