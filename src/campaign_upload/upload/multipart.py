"""Multipart upload state machine.

INITIATING -> TRANSFERRING_PARTS -> COMPLETING -> DONE, with
ABORTING -> FAILED reachable on any error once a session exists.
"""

import asyncio
import logging
from enum import Enum
from typing import List, Optional

import httpx

from campaign_upload.core.logging import upload_id_context
from campaign_upload.models.upload import (
    CompletedPart,
    CompleteResponse,
    InitiateResponse,
    ProgressCallback,
    UploadConfig,
    UploadResult,
    UploadSession,
)
from campaign_upload.upload.backend import call_backend
from campaign_upload.upload.chunking import (
    DEFAULT_PART_SIZE,
    MIN_PART_SIZE,
    PartRange,
    plan_parts,
    total_parts,
)
from campaign_upload.upload.exceptions import (
    CompletionError,
    InitiationError,
    ProtocolViolationError,
)
from campaign_upload.upload.parts import transfer_part
from campaign_upload.upload.payload import UploadPayload, guess_content_type
from campaign_upload.upload.progress import ProgressReporter, part_progress

logger = logging.getLogger(__name__)


class UploadState(str, Enum):
    """Multipart upload lifecycle state."""

    INITIATING = "initiating"
    TRANSFERRING_PARTS = "transferring_parts"
    COMPLETING = "completing"
    DONE = "done"
    ABORTING = "aborting"
    FAILED = "failed"


class MultipartUpload:
    """One multipart upload from initiate to complete or abort.

    Instances are single-use; all per-upload state lives on the instance.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        payload: UploadPayload,
        filename: str,
        config: UploadConfig,
        on_progress: Optional[ProgressCallback] = None,
        content_type: Optional[str] = None,
        part_size: int = DEFAULT_PART_SIZE,
        concurrency: int = 1,
        read_storage_etag: bool = False,
    ):
        if concurrency < 1:
            raise ValueError(f"Concurrency must be at least 1, got {concurrency}")
        if part_size < MIN_PART_SIZE:
            raise ValueError(f"Part size {part_size} is below the {MIN_PART_SIZE} byte minimum")

        self.client = client
        self.payload = payload
        self.filename = filename
        self.config = config
        self.content_type = content_type or guess_content_type(filename)
        self.part_size = part_size
        self.concurrency = concurrency
        self.read_storage_etag = read_storage_etag

        self.state: Optional[UploadState] = None
        self.session: Optional[UploadSession] = None
        self._reporter = ProgressReporter(on_progress)
        self._parts_done = 0

    async def run(self) -> UploadResult:
        """Drive the upload to completion.

        Raises:
            UploadError: Any step failed. When a session existed it has
                already been aborted.
        """
        try:
            self.session = await self._initiate()
        except Exception:
            self._set_state(UploadState.FAILED)
            raise

        token = upload_id_context.set(self.session.upload_id)
        try:
            try:
                parts = await self._transfer_parts()
                result = await self._complete(parts)
            except Exception as e:
                await self._abort(e)
                self._set_state(UploadState.FAILED)
                raise

            self._set_state(UploadState.DONE)
            return result
        finally:
            upload_id_context.reset(token)

    def _set_state(self, state: UploadState) -> None:
        logger.debug(
            "Multipart upload state change",
            extra={"from_state": self.state, "to_state": state, "upload_filename": self.filename},
        )
        self.state = state

    async def _initiate(self) -> UploadSession:
        self._set_state(UploadState.INITIATING)

        body = await call_backend(
            self.client,
            "POST",
            self.config.initiate_endpoint,
            {
                "filename": self.filename,
                "fileType": self.content_type,
                "fileSize": self.payload.size,
                "partSize": self.part_size,
            },
            InitiateResponse,
            InitiationError,
            "Failed to initiate upload",
        )
        session = UploadSession.from_initiate(body)

        logger.info(
            "Multipart upload initiated",
            extra={
                "upload_id": session.upload_id,
                "s3_key": session.s3_key,
                "total_parts": session.total_parts,
                "part_size": session.part_size,
                "file_size": self.payload.size,
            },
        )
        return session

    async def _transfer_parts(self) -> List[CompletedPart]:
        self._set_state(UploadState.TRANSFERRING_PARTS)
        session = self.session

        expected = total_parts(self.payload.size, session.part_size)
        if session.total_parts != expected:
            raise ProtocolViolationError(
                f"Backend announced {session.total_parts} parts, "
                f"expected {expected} for {self.payload.size} bytes"
            )

        plan = plan_parts(self.payload.size, session.part_size, enforce_minimum=False)

        if self.concurrency == 1:
            completed = []
            for part in plan:
                completed.append(await self._transfer_one(part))
            return completed

        return await self._transfer_concurrently(plan)

    async def _transfer_one(self, part: PartRange) -> CompletedPart:
        completed = await transfer_part(
            self.client,
            self.session,
            self.payload,
            part,
            self.config.verify_endpoint,
            self.content_type,
            read_storage_etag=self.read_storage_etag,
        )
        self._parts_done += 1
        self._reporter.report(part_progress(self._parts_done, self.session.total_parts))
        return completed

    async def _transfer_concurrently(self, plan: List[PartRange]) -> List[CompletedPart]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def worker(part: PartRange) -> CompletedPart:
            async with semaphore:
                return await self._transfer_one(part)

        tasks = [asyncio.create_task(worker(part)) for part in plan]
        try:
            completed = await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return sorted(completed, key=lambda p: p.part_number)

    def _check_manifest(self, parts: List[CompletedPart]) -> None:
        numbers = [part.part_number for part in parts]
        if numbers != list(range(1, self.session.total_parts + 1)):
            raise ProtocolViolationError(
                f"Incomplete part manifest: got parts {numbers} for {self.session.total_parts} parts"
            )

    async def _complete(self, parts: List[CompletedPart]) -> UploadResult:
        self._set_state(UploadState.COMPLETING)
        self._check_manifest(parts)
        session = self.session

        manifest = {
            **session.identifiers(),
            "parts": [part.model_dump(by_alias=True) for part in parts],
            "filename": session.filename,
            "originalFilename": session.original_filename or self.filename,
            "fileType": session.file_type or self.content_type,
            "type": session.type,
            "fileSize": self.payload.size,
        }
        # Fields initiate did not return are left out, not sent as null
        manifest = {key: value for key, value in manifest.items() if value is not None}

        body = await call_backend(
            self.client,
            "POST",
            self.config.complete_endpoint,
            manifest,
            CompleteResponse,
            CompletionError,
            "Failed to complete upload",
        )

        self._reporter.complete()

        logger.info(
            "Multipart upload complete",
            extra={"upload_id": session.upload_id, "s3_key": body.s3_key or session.s3_key},
        )

        return UploadResult.ok(
            url=body.public_url,
            s3_key=body.s3_key or session.s3_key,
            filename=body.filename or session.filename,
            file_type=body.file_type or session.file_type or self.content_type,
            file_size=self.payload.size,
        )

    async def _abort(self, error: Exception) -> None:
        """Best-effort release of the storage-side upload; never raises."""
        self._set_state(UploadState.ABORTING)
        session = self.session

        logger.error(
            "Multipart upload failed, aborting",
            extra={"upload_id": session.upload_id, "s3_key": session.s3_key, "error": str(error)},
        )

        try:
            response = await self.client.request(
                "DELETE",
                self.config.complete_endpoint,
                json=session.identifiers(),
            )
        except Exception as abort_error:
            logger.warning(
                "Failed to abort multipart upload",
                extra={"upload_id": session.upload_id, "error": str(abort_error)},
            )
            return

        if not response.is_success:
            logger.warning(
                "Failed to abort multipart upload",
                extra={"upload_id": session.upload_id, "status_code": response.status_code},
            )
            return

        logger.info("Multipart upload aborted", extra={"upload_id": session.upload_id})
