"""Pytest configuration and shared fixtures."""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from campaign_upload.core.config import Settings
from campaign_upload.models.upload import UploadConfig

MiB = 1024 * 1024

BASE_URL = "https://site.test"
STORAGE_HOST = "storage.test"


class FakeBackend:
    """In-memory stand-in for the upload routes and S3 presigned URLs.

    Every request is recorded. Individual steps can be made to fail by
    setting the override attributes before the upload runs.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.upload_id = "upload-abc"
        self.s3_key = "media/2026/server-name.bin"
        self.stored_parts: Dict[int, bytes] = {}
        self.part_content_types: Dict[int, str] = {}

        # Overrides
        self.direct_response: Optional[httpx.Response] = None
        self.initiate_response: Optional[httpx.Response] = None
        self.initiate_urls: Optional[Callable[[int], List[dict]]] = None
        self.part_status: Dict[int, int] = {}
        self.verify_body: Dict[int, Dict[str, Any]] = {}
        self.complete_response: Optional[httpx.Response] = None
        self.abort_status = 200
        self.abort_raises = False
        self.storage_etag_header = True

    # Request log helpers

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def json_bodies(self, method: str, path: str) -> List[dict]:
        return [json.loads(r.content) for r in self.calls(method, path)]

    def storage_puts(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == STORAGE_HOST]

    # Routing

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.url.host == STORAGE_HOST:
            return self._storage_put(request)
        if path == "/upload" and request.method == "POST":
            return self._direct(request)
        if path == "/multipart/initiate":
            return self._initiate(request)
        if path == "/multipart/part":
            return self._verify(request)
        if path == "/multipart/complete" and request.method == "POST":
            return self._complete(request)
        if path == "/multipart/complete" and request.method == "DELETE":
            return self._abort(request)
        return httpx.Response(404, json={"success": False, "error": "Not found"})

    def _direct(self, request: httpx.Request) -> httpx.Response:
        if self.direct_response is not None:
            return self.direct_response
        return httpx.Response(
            200,
            json={
                "success": True,
                "cloudFrontUrl": "https://cdn.test/media/small.txt",
                "s3Key": "media/small.txt",
                "filename": "small.txt",
                "fileType": "text/plain",
                "fileSize": 12,
            },
        )

    def _initiate(self, request: httpx.Request) -> httpx.Response:
        if self.initiate_response is not None:
            return self.initiate_response

        body = json.loads(request.content)
        part_size = body["partSize"]
        total = -(-body["fileSize"] // part_size)
        if self.initiate_urls is not None:
            urls = self.initiate_urls(total)
        else:
            urls = [
                {"partNumber": n, "signedUrl": f"https://{STORAGE_HOST}/bucket/{self.s3_key}?partNumber={n}"}
                for n in range(1, total + 1)
            ]
        return httpx.Response(
            200,
            json={
                "success": True,
                "uploadId": self.upload_id,
                "s3Key": self.s3_key,
                "totalParts": total,
                "partSize": part_size,
                "filename": "server-name.bin",
                "originalFilename": body["filename"],
                "fileType": body["fileType"],
                "type": "document",
                "urls": urls,
            },
        )

    def _storage_put(self, request: httpx.Request) -> httpx.Response:
        part_number = int(request.url.params["partNumber"])
        status = self.part_status.get(part_number, 200)
        if status >= 300:
            return httpx.Response(status)

        self.stored_parts[part_number] = request.content
        self.part_content_types[part_number] = request.headers.get("Content-Type")
        headers = {"ETag": f'"etag-{part_number}"'} if self.storage_etag_header else {}
        return httpx.Response(status, headers=headers)

    def _verify(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        part_number = body["partNumber"]

        if part_number in self.verify_body:
            return httpx.Response(200, json=self.verify_body[part_number])
        if part_number not in self.stored_parts:
            return httpx.Response(
                404,
                json={"success": False, "error": f"Part {part_number} not found. It may not have been uploaded yet."},
            )
        return httpx.Response(
            200,
            json={"success": True, "partNumber": part_number, "etag": f'"etag-{part_number}"'},
        )

    def _complete(self, request: httpx.Request) -> httpx.Response:
        if self.complete_response is not None:
            return self.complete_response
        body = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "success": True,
                "url": f"https://cdn.test/{body['s3Key']}",
                "s3Key": body["s3Key"],
                "filename": body.get("filename"),
                "fileType": body.get("fileType"),
            },
        )

    def _abort(self, request: httpx.Request) -> httpx.Response:
        if self.abort_raises:
            raise httpx.ConnectError("abort connection refused", request=request)
        return httpx.Response(self.abort_status, json={"success": self.abort_status < 300})


@pytest.fixture
def backend() -> FakeBackend:
    """Fresh fake backend per test."""
    return FakeBackend()


@pytest.fixture
def client(backend):
    """Async HTTP client routed to the fake backend."""
    return httpx.AsyncClient(transport=httpx.MockTransport(backend.handler), base_url=BASE_URL)


@pytest.fixture
def upload_config() -> UploadConfig:
    return UploadConfig(
        direct_endpoint="/upload",
        initiate_endpoint="/multipart/initiate",
        verify_endpoint="/multipart/part",
        complete_endpoint="/multipart/complete",
    )


@pytest.fixture
def test_settings() -> Settings:
    """Settings independent of the environment and any .env file."""
    return Settings(
        _env_file=None,
        ENV="test",
        UPLOAD_BASE_URL=BASE_URL,
        MULTIPART_THRESHOLD_MB=1,
        PART_SIZE_MB=5,
        PART_CONCURRENCY=1,
        READ_STORAGE_ETAG=False,
    )


def make_payload(size: int) -> bytes:
    """Deterministic, non-repeating-per-part payload of ``size`` bytes."""
    block = bytes(range(256))
    return (block * (size // 256 + 1))[:size]
