"""Public upload entry point.

Payloads under the multipart threshold go out in a single request; the
rest use S3 multipart upload through presigned URLs, which keeps large
bodies away from size-limited serverless handlers.
"""

import logging
from typing import Optional

import httpx

from campaign_upload.core.config import Settings, settings as default_settings
from campaign_upload.models.upload import UploadConfig, UploadOptions, UploadResult
from campaign_upload.upload.direct import upload_direct
from campaign_upload.upload.multipart import MultipartUpload
from campaign_upload.upload.payload import PayloadSource, UploadPayload, guess_content_type

logger = logging.getLogger(__name__)


def build_client(settings: Settings) -> httpx.AsyncClient:
    """HTTP client with the configured base URL, timeout and User-Agent."""
    return httpx.AsyncClient(
        base_url=settings.UPLOAD_BASE_URL,
        timeout=settings.REQUEST_TIMEOUT,
        headers={"User-Agent": f"{settings.SERVICE_NAME}/{settings.SERVICE_VERSION}"},
    )


async def upload_file(
    payload: PayloadSource,
    filename: str,
    config: UploadConfig,
    options: Optional[UploadOptions] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
) -> UploadResult:
    """
    Upload a payload, choosing direct or multipart upload by size.

    Args:
        payload: Bytes, a seekable binary file, or a filesystem path
        filename: Name of the file as stored by the backend
        config: Backend routes of the upload profile
        options: Progress callback, extra form fields and content type
        client: HTTP client to reuse; one is built from settings otherwise
        settings: Overrides the module settings

    Returns:
        UploadResult. Failures are reported through ``success`` and
        ``error``; this function does not raise.
    """
    options = options or UploadOptions()
    settings = settings or default_settings

    if not filename:
        return UploadResult.failed("Filename is required")

    owns_client = client is None
    if owns_client:
        client = build_client(settings)

    try:
        source = UploadPayload(payload)
        content_type = options.content_type or guess_content_type(filename)

        if source.size < settings.multipart_threshold_bytes:
            return await upload_direct(
                client,
                source,
                filename,
                config.direct_endpoint,
                on_progress=options.on_progress,
                extra_fields=options.extra_fields,
                content_type=content_type,
            )

        upload = MultipartUpload(
            client,
            source,
            filename,
            config,
            on_progress=options.on_progress,
            content_type=content_type,
            part_size=settings.part_size_bytes,
            concurrency=settings.PART_CONCURRENCY,
            read_storage_etag=settings.READ_STORAGE_ETAG,
        )
        return await upload.run()

    except Exception as e:
        logger.error(
            "Upload error",
            exc_info=True,
            extra={"upload_filename": filename, "error": str(e)},
        )
        return UploadResult.failed(str(e) or "Upload failed")

    finally:
        if owns_client:
            await client.aclose()
