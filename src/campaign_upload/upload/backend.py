"""JSON calls to the upload backend routes."""

import logging
from typing import Any, Dict, Type, TypeVar

import httpx
from pydantic import ValidationError

from campaign_upload.models.upload import BackendResponse
from campaign_upload.upload.exceptions import MalformedResponseError, UploadError

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BackendResponse)


async def call_backend(
    client: httpx.AsyncClient,
    method: str,
    endpoint: str,
    payload: Dict[str, Any],
    response_model: Type[ResponseT],
    error_cls: Type[UploadError],
    default_error: str,
) -> ResponseT:
    """
    Send a JSON request and return the validated, successful body.

    Args:
        client: HTTP client
        method: HTTP method
        endpoint: Backend route
        payload: JSON body
        response_model: Model the body must validate against
        error_cls: Exception raised for transport, HTTP and ``success: false`` failures
        default_error: Message used when the backend gives none

    Returns:
        Parsed response with ``success`` true

    Raises:
        error_cls: Request failed or backend reported failure
        MalformedResponseError: Body is not JSON or does not match the model
    """
    try:
        response = await client.request(method, endpoint, json=payload)
    except httpx.TransportError as e:
        raise error_cls(f"{default_error}: {e}") from e

    try:
        data = response.json()
    except ValueError:
        data = None

    if not response.is_success:
        message = data.get("error") if isinstance(data, dict) else None
        logger.debug(
            "Backend call rejected",
            extra={"endpoint": endpoint, "status_code": response.status_code, "error": message},
        )
        raise error_cls(message or default_error)

    if data is None:
        raise MalformedResponseError(f"{default_error}: invalid response from server")

    try:
        body = response_model.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"{default_error}: invalid response from server") from e

    if not body.success:
        raise error_cls(body.error or default_error)

    return body
