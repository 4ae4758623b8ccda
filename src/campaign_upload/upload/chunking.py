"""Splitting a payload into multipart byte ranges."""

from typing import NamedTuple

# S3 rejects non-final parts below 5MB
MIN_PART_SIZE = 5 * 1024 * 1024
DEFAULT_PART_SIZE = MIN_PART_SIZE


class PartRange(NamedTuple):
    """Half-open byte range [start, end) of one part."""

    part_number: int  # 1-based
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


def total_parts(size: int, part_size: int) -> int:
    """Number of parts needed to cover ``size`` bytes."""
    _check_sizes(size, part_size)
    return -(-size // part_size)


def part_range(index: int, size: int, part_size: int) -> PartRange:
    """Byte range of the part at 0-based ``index``.

    Every part but the last is exactly ``part_size`` long.
    """
    count = total_parts(size, part_size)
    if index < 0 or index >= count:
        raise ValueError(f"Part index {index} out of range for {count} parts")

    start = index * part_size
    end = min(start + part_size, size)
    return PartRange(part_number=index + 1, start=start, end=end)


def plan_parts(size: int, part_size: int = DEFAULT_PART_SIZE, enforce_minimum: bool = True) -> list[PartRange]:
    """Ordered byte ranges covering the whole payload.

    Args:
        size: Payload size in bytes
        part_size: Size of every non-final part
        enforce_minimum: Reject part sizes below MIN_PART_SIZE. Disable when
            the part size was dictated by the backend.

    Returns:
        One PartRange per part, in part-number order
    """
    if enforce_minimum and part_size < MIN_PART_SIZE:
        raise ValueError(f"Part size {part_size} is below the {MIN_PART_SIZE} byte minimum")

    return [part_range(i, size, part_size) for i in range(total_parts(size, part_size))]


def _check_sizes(size: int, part_size: int) -> None:
    if size < 0:
        raise ValueError(f"Payload size must be non-negative, got {size}")
    if part_size <= 0:
        raise ValueError(f"Part size must be positive, got {part_size}")
