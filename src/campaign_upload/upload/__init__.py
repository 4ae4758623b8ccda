"""
Upload pipeline.

Chooses between a single direct request and S3 multipart upload with
presigned URLs, verifies every part through the backend relay, and
aborts the storage-side upload on failure.
"""

from campaign_upload.upload.exceptions import UploadError
from campaign_upload.upload.multipart import MultipartUpload, UploadState
from campaign_upload.upload.selector import upload_file

__all__ = [
    "MultipartUpload",
    "UploadError",
    "UploadState",
    "upload_file",
]
