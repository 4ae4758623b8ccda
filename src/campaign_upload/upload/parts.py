"""Transfer of a single multipart part.

A part is written straight to storage with its presigned URL, then the
verify relay is asked for the part's ETag. Browsers cannot read the ETag
header of a cross-origin storage response, so the relay looks it up
server-side.
"""

import logging

import httpx

from campaign_upload.models.upload import CompletedPart, UploadSession, VerifyPartResponse
from campaign_upload.upload.backend import call_backend
from campaign_upload.upload.chunking import PartRange
from campaign_upload.upload.exceptions import (
    PartUploadError,
    PartVerificationError,
    ProtocolViolationError,
)
from campaign_upload.upload.payload import UploadPayload

logger = logging.getLogger(__name__)


def normalize_etag(etag: str) -> str:
    """Strip the quotes S3 wraps ETags in."""
    return etag.replace('"', "")


async def put_part(
    client: httpx.AsyncClient,
    session: UploadSession,
    payload: UploadPayload,
    part: PartRange,
    content_type: str,
) -> httpx.Response:
    """Write one byte range to its presigned URL."""
    signed_url = session.url_for(part.part_number)
    if not signed_url:
        raise ProtocolViolationError(f"No presigned URL for part {part.part_number}")

    data = payload.read_range(part.start, part.end)

    try:
        response = await client.put(
            signed_url,
            content=data,
            headers={"Content-Type": content_type},
        )
    except httpx.TransportError as e:
        raise PartUploadError(f"Failed to upload part {part.part_number} to S3: {e}") from e

    if not response.is_success:
        raise PartUploadError(f"Failed to upload part {part.part_number} to S3: {response.status_code}")

    return response


async def verify_part(
    client: httpx.AsyncClient,
    session: UploadSession,
    part_number: int,
    verify_endpoint: str,
) -> str:
    """Ask the relay for the ETag of an uploaded part."""
    body = await call_backend(
        client,
        "POST",
        verify_endpoint,
        {**session.identifiers(), "partNumber": part_number},
        VerifyPartResponse,
        PartVerificationError,
        f"Failed to verify part {part_number}",
    )

    if body.part_number != part_number:
        raise PartVerificationError(
            f"Failed to verify part {part_number}: relay returned part {body.part_number}"
        )
    if not body.etag or not normalize_etag(body.etag):
        raise PartVerificationError(f"Failed to verify part {part_number}: no ETag returned")

    return body.etag


async def transfer_part(
    client: httpx.AsyncClient,
    session: UploadSession,
    payload: UploadPayload,
    part: PartRange,
    verify_endpoint: str,
    content_type: str,
    read_storage_etag: bool = False,
) -> CompletedPart:
    """
    Upload one part and obtain its ETag.

    Args:
        client: HTTP client
        session: Multipart session returned by initiate
        payload: Full upload payload
        part: Byte range to send
        verify_endpoint: ETag relay route
        content_type: MIME type sent with the part
        read_storage_etag: Use the ETag header of the storage response when
            present, skipping the relay. Only valid outside browsers.

    Returns:
        CompletedPart for the complete manifest

    Raises:
        ProtocolViolationError: Initiate gave no URL for this part
        PartUploadError: Storage write failed
        PartVerificationError: Relay could not confirm the part
    """
    logger.debug(
        "Uploading part",
        extra={
            "upload_id": session.upload_id,
            "part_number": part.part_number,
            "part_bytes": part.length,
        },
    )

    response = await put_part(client, session, payload, part, content_type)

    etag = response.headers.get("ETag") if read_storage_etag else None
    if etag and normalize_etag(etag):
        logger.debug(
            "Using ETag from storage response",
            extra={"upload_id": session.upload_id, "part_number": part.part_number},
        )
    else:
        etag = await verify_part(client, session, part.part_number, verify_endpoint)

    return CompletedPart(part_number=part.part_number, etag=normalize_etag(etag))
