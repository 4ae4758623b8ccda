"""Uniform access to the bytes being uploaded."""

import mimetypes
import os
from pathlib import Path
from typing import BinaryIO, Optional, Union

DEFAULT_CONTENT_TYPE = "application/octet-stream"

PayloadSource = Union[bytes, bytearray, memoryview, BinaryIO, str, os.PathLike]


class UploadPayload:
    """Random-access view over in-memory bytes, a seekable file, or a path.

    Parts are read one range at a time so large files are never loaded
    whole into memory.
    """

    def __init__(self, source: PayloadSource):
        self._data: Optional[bytes] = None
        self._file: Optional[BinaryIO] = None
        self._path: Optional[Path] = None

        if isinstance(source, (bytes, bytearray, memoryview)):
            self._data = bytes(source)
            self.size = len(self._data)
        elif isinstance(source, (str, os.PathLike)):
            self._path = Path(source)
            self.size = self._path.stat().st_size
        elif hasattr(source, "read") and hasattr(source, "seek"):
            self._file = source
            self._file.seek(0, os.SEEK_END)
            self.size = self._file.tell()
            self._file.seek(0)
        else:
            raise TypeError(f"Unsupported payload type: {type(source).__name__}")

    def read_range(self, start: int, end: int) -> bytes:
        """Return bytes in the half-open range [start, end)."""
        if start < 0 or end < start or end > self.size:
            raise ValueError(f"Invalid byte range [{start}, {end}) for payload of {self.size} bytes")

        if self._data is not None:
            return self._data[start:end]

        if self._path is not None:
            with open(self._path, "rb") as f:
                f.seek(start)
                return f.read(end - start)

        self._file.seek(start)
        return self._file.read(end - start)

    def read_all(self) -> bytes:
        return self.read_range(0, self.size)


def guess_content_type(filename: str) -> str:
    """Guess a MIME type from the filename, defaulting to octet-stream."""
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_CONTENT_TYPE
