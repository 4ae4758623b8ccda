"""Progress aggregation for uploads.

Multipart uploads spend 0-90% on parts and reserve the last 10% for the
complete call.
"""

import logging
import math
from typing import Optional

from campaign_upload.models.upload import ProgressCallback

logger = logging.getLogger(__name__)

PARTS_PROGRESS_SHARE = 90


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def part_progress(completed: int, total: int) -> int:
    """Overall progress after ``completed`` of ``total`` parts."""
    if total <= 0:
        raise ValueError(f"Total parts must be positive, got {total}")
    completed = max(0, min(completed, total))
    return _round_half_up(completed / total * PARTS_PROGRESS_SHARE)


def scaled_progress(done: int, total: int) -> int:
    """Byte-level progress scaled to 0-100."""
    if total <= 0:
        return 100
    return _round_half_up(min(done, total) / total * 100)


class ProgressReporter:
    """Forwards progress to a caller callback, never going backwards."""

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self.last: Optional[int] = None

    def report(self, value: int) -> None:
        value = max(0, min(100, value))
        if self.last is not None and value <= self.last:
            return
        self.last = value

        if self._callback is None:
            return
        try:
            self._callback(value)
        except Exception as e:
            # A broken progress display must not abort the transfer
            logger.warning(
                "Progress callback raised",
                extra={"progress": value, "error": str(e)},
            )

    def complete(self) -> None:
        self.report(100)
