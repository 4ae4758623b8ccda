"""Exceptions raised inside the upload pipeline.

They never reach callers of ``upload_file``; the selector turns them into
a failed ``UploadResult`` whose ``error`` is the exception message.
"""


class UploadError(Exception):
    """Base exception for upload failures."""
    pass


class InitiationError(UploadError):
    """Exception raised when the backend refuses to start a multipart upload."""
    pass


class PartUploadError(UploadError):
    """Exception raised when a part could not be written to storage."""
    pass


class PartVerificationError(UploadError):
    """Exception raised when the relay cannot confirm a part's ETag."""
    pass


class CompletionError(UploadError):
    """Exception raised when the backend rejects the final part manifest."""
    pass


class ProtocolViolationError(UploadError):
    """Exception raised when the backend breaks a promise of the protocol."""
    pass


class MalformedResponseError(UploadError):
    """Exception raised when an endpoint returns an unparseable body."""
    pass
