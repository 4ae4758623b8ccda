"""Chunked upload client for the campaign website backend.

Small files go up in a single request; large files use S3 multipart
upload with presigned URLs and a backend relay for part ETags.
"""

from campaign_upload.models.upload import UploadConfig, UploadOptions, UploadResult
from campaign_upload.profiles import get_profile
from campaign_upload.upload.selector import upload_file

__all__ = [
    "UploadConfig",
    "UploadOptions",
    "UploadResult",
    "get_profile",
    "upload_file",
]
