"""
Parser for the "skip these instances" field, e.g. ``"1-4, 7, 9"``.

Tokens are comma separated; each one is a part number or an ``a-b`` range.
Part numbers start at 1 and may not exceed the number of grid cells. A range
may end past the last cell (it is clamped), but it may not start past it.
"""
import re
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from utils.errors import ErrorType, ReplicatorError

INTEGER_PATTERN = re.compile(r'^[+-]?\d+$')


def _to_int(text: str) -> Optional[int]:
    if INTEGER_PATTERN.match(text):
        return int(text)
    return None


def _split_tokens(text: Optional[str]) -> List[str]:
    if not text or not text.strip():
        return []
    return [part.strip() for part in text.split(',') if part.strip()]


def _check_range(token: str, max_parts: int) -> Tuple[List[int], Optional[str]]:
    pieces = token.split('-')
    if len(pieces) != 2:
        return [], f"Invalid range format: {token}"

    start_text, end_text = (piece.strip() for piece in pieces)
    if not start_text or not end_text:
        return [], f"Invalid range: {token}"

    start, end = _to_int(start_text), _to_int(end_text)
    if start is None or end is None:
        return [], f"Invalid numbers in range: {token}"
    if start < 1:
        return [], f"Range start must be >= 1: {token}"
    if end < start:
        return [], f"Range end must be >= start: {token}"
    if start > max_parts:
        return [], f"Range start exceeds total parts ({max_parts}): {token}"

    return list(range(start, min(end, max_parts) + 1)), None


def _check_single(token: str, max_parts: int) -> Tuple[List[int], Optional[str]]:
    number = _to_int(token)
    if number is None:
        return [], f"Invalid number: {token}"
    if number < 1:
        return [], f"Instance must be >= 1: {token}"
    if number > max_parts:
        return [], f"Instance exceeds total parts ({max_parts}): {token}"
    return [number], None


def iter_skip_tokens(text: Optional[str], max_parts: int) -> Iterator[Tuple[str, List[int], Optional[str]]]:
    """Yield ``(token, part_numbers, error_message)`` for every token in order."""
    for token in _split_tokens(text):
        if '-' in token:
            numbers, message = _check_range(token, max_parts)
        else:
            numbers, message = _check_single(token, max_parts)
        yield token, numbers, message


def parse_skip_spec(text: Optional[str], max_parts: int) -> Tuple[Set[int], Optional[ReplicatorError]]:
    """
    Parse a skip specification into a set of part numbers.

    Part numbers from every valid token are collected even when another token
    is invalid. The returned error is the first one found; when it is not
    None the caller must not apply the set at all.
    """
    skip_set: Set[int] = set()
    first_error = None

    for token, numbers, message in iter_skip_tokens(text, max_parts):
        if message is not None:
            if first_error is None:
                first_error = ReplicatorError(message, ErrorType.SKIP_SPEC, token=token)
            continue
        skip_set.update(numbers)

    return skip_set, first_error


def validate_skip_spec(text: Optional[str], max_parts: int) -> Optional[str]:
    """Return the first error message for display, or None when the input is valid."""
    for _token, _numbers, message in iter_skip_tokens(text, max_parts):
        if message is not None:
            return message
    return None


def format_skip_set(skip_set: Iterable[int]) -> str:
    return ', '.join(str(n) for n in sorted(skip_set))
