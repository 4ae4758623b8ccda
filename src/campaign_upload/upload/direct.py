"""Single-request upload for small payloads."""

import logging
from typing import AsyncIterator, Dict, Optional

import httpx

from campaign_upload.models.upload import DirectUploadResponse, ProgressCallback, UploadResult
from campaign_upload.upload.payload import UploadPayload, guess_content_type
from campaign_upload.upload.progress import ProgressReporter, scaled_progress

logger = logging.getLogger(__name__)


class _ProgressStream(httpx.AsyncByteStream):
    """Request body wrapper that reports bytes handed to the transport."""

    def __init__(self, stream: httpx.AsyncByteStream, total: int, reporter: ProgressReporter):
        self._stream = stream
        self._total = total
        self._reporter = reporter

    async def __aiter__(self) -> AsyncIterator[bytes]:
        sent = 0
        async for chunk in self._stream:
            sent += len(chunk)
            self._reporter.report(scaled_progress(sent, self._total))
            yield chunk


async def upload_direct(
    client: httpx.AsyncClient,
    payload: UploadPayload,
    filename: str,
    endpoint: str,
    on_progress: Optional[ProgressCallback] = None,
    extra_fields: Optional[Dict[str, str]] = None,
    content_type: Optional[str] = None,
) -> UploadResult:
    """
    Upload the whole payload as one multipart/form-data POST.

    The file goes in the ``file`` form field, alongside any extra fields
    (e.g. a target folder).

    Args:
        client: HTTP client used for the request
        payload: Bytes to upload
        filename: Name sent with the file field
        endpoint: Direct upload route
        on_progress: Called with 0-100 as the body is sent
        extra_fields: Additional form fields
        content_type: MIME type of the file field

    Returns:
        UploadResult; transport, HTTP and parse failures come back as
        failed results rather than exceptions
    """
    content_type = content_type or guess_content_type(filename)
    reporter = ProgressReporter(on_progress)

    request = client.build_request(
        "POST",
        endpoint,
        data=extra_fields or None,
        files={"file": (filename, payload.read_all(), content_type)},
    )
    total = int(request.headers.get("Content-Length") or payload.size)
    request.stream = _ProgressStream(request.stream, total, reporter)

    logger.info(
        "Starting direct upload",
        extra={"upload_filename": filename, "file_size": payload.size, "endpoint": endpoint},
    )

    try:
        response = await client.send(request)
    except httpx.TransportError as e:
        logger.error(
            "Network error during direct upload",
            extra={"upload_filename": filename, "endpoint": endpoint, "error": str(e)},
        )
        return UploadResult.failed("Network error during upload")

    if not response.is_success:
        logger.warning(
            "Direct upload rejected",
            extra={"upload_filename": filename, "status_code": response.status_code},
        )
        return UploadResult.failed(f"HTTP {response.status_code}: {response.reason_phrase}")

    try:
        body = DirectUploadResponse.model_validate(response.json())
    except ValueError:
        logger.warning(
            "Direct upload returned an invalid body",
            extra={"upload_filename": filename, "status_code": response.status_code},
        )
        return UploadResult.failed("Invalid response from server")

    if not body.success:
        return UploadResult.failed(body.error or "Upload failed")

    logger.info(
        "Direct upload complete",
        extra={"upload_filename": filename, "s3_key": body.s3_key},
    )

    return UploadResult.ok(
        url=body.public_url,
        s3_key=body.s3_key,
        filename=body.filename,
        file_type=body.file_type,
        file_size=body.file_size if body.file_size is not None else payload.size,
    )
