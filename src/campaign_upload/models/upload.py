"""Upload data models.

Backend payloads use camelCase on the wire; the models here expose
snake_case attributes and map them through pydantic aliases.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

ProgressCallback = Callable[[int], None]


class _WireModel(BaseModel):
    """Base for models exchanged with the upload backend."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class UploadConfig(BaseModel):
    """The four backend routes of one upload profile.

    Endpoints are absolute URLs or paths resolved against the client's
    base URL. Profiles differ only in routes; the protocol is identical.
    """

    model_config = ConfigDict(frozen=True)

    direct_endpoint: str = Field(..., min_length=1, description="Single-shot upload route")
    initiate_endpoint: str = Field(..., min_length=1, description="Multipart initiate route")
    verify_endpoint: str = Field(..., min_length=1, description="Per-part ETag relay route")
    complete_endpoint: str = Field(..., min_length=1, description="Multipart complete/abort route")


@dataclass
class UploadOptions:
    """Per-call options for an upload."""

    on_progress: Optional[ProgressCallback] = None
    extra_fields: Optional[Dict[str, str]] = None  # Sent as form fields on direct uploads only
    content_type: Optional[str] = None  # Guessed from the filename when omitted


class PresignedPartURL(_WireModel):
    """Single-use URL for writing one part straight to storage."""

    part_number: int = Field(..., ge=1)
    signed_url: Optional[str] = None


class CompletedPart(BaseModel):
    """A transferred part and the ETag storage assigned to it."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    part_number: int = Field(..., ge=1, alias="PartNumber")
    etag: str = Field(..., min_length=1, alias="ETag")


class UploadResult(_WireModel):
    """Terminal outcome of an upload call."""

    success: bool
    url: Optional[str] = None
    s3_key: Optional[str] = None
    filename: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _success_xor_error(self) -> "UploadResult":
        if self.success and self.error is not None:
            raise ValueError("Successful result cannot carry an error")
        if not self.success:
            if not self.error:
                raise ValueError("Failed result requires an error message")
            stored = [
                name
                for name in ("url", "s3_key", "filename", "file_type", "file_size")
                if getattr(self, name) is not None
            ]
            if stored:
                raise ValueError(f"Failed result cannot carry {', '.join(stored)}")
        return self

    @classmethod
    def ok(
        cls,
        url: Optional[str],
        s3_key: Optional[str],
        filename: Optional[str],
        file_type: Optional[str],
        file_size: Optional[int],
    ) -> "UploadResult":
        return cls(
            success=True,
            url=url,
            s3_key=s3_key,
            filename=filename,
            file_type=file_type,
            file_size=file_size,
        )

    @classmethod
    def failed(cls, error: str) -> "UploadResult":
        return cls(success=False, error=error or "Upload failed")

    def to_wire(self) -> dict:
        """Serialise with backend field names, dropping unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class BackendResponse(_WireModel):
    """Envelope shared by every backend JSON response."""

    success: bool
    error: Optional[str] = None


class _StoredObjectResponse(BackendResponse):
    url: Optional[str] = None
    cloud_front_url: Optional[str] = None
    s3_url: Optional[str] = None
    s3_key: Optional[str] = None
    filename: Optional[str] = None
    file_type: Optional[str] = None

    @property
    def public_url(self) -> Optional[str]:
        """Preferred public URL: plain url, then CDN, then raw S3."""
        return self.url or self.cloud_front_url or self.s3_url


class DirectUploadResponse(_StoredObjectResponse):
    """Response of the single-shot upload route."""

    file_size: Optional[int] = None


class CompleteResponse(_StoredObjectResponse):
    """Response of the multipart complete route."""


class InitiateResponse(BackendResponse):
    """Response of the multipart initiate route."""

    upload_id: Optional[str] = None
    s3_key: Optional[str] = None
    total_parts: Optional[int] = Field(None, ge=1)
    part_size: Optional[int] = Field(None, ge=1)
    filename: Optional[str] = None
    original_filename: Optional[str] = None
    file_type: Optional[str] = None
    type: Optional[str] = None
    urls: List[PresignedPartURL] = Field(default_factory=list)

    @model_validator(mode="after")
    def _require_session_fields(self) -> "InitiateResponse":
        if self.success:
            missing = [
                name
                for name in ("upload_id", "s3_key", "total_parts", "part_size")
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"Missing session fields: {', '.join(missing)}")
        return self


class VerifyPartResponse(BackendResponse):
    """Response of the per-part verify relay."""

    part_number: Optional[int] = None
    etag: Optional[str] = None


@dataclass
class UploadSession:
    """Identifiers of one multipart upload, alive between initiate and complete/abort."""

    upload_id: str
    s3_key: str
    part_size: int
    total_parts: int
    filename: Optional[str]
    original_filename: Optional[str]
    file_type: Optional[str]
    type: Optional[str]
    urls: List[PresignedPartURL]

    @classmethod
    def from_initiate(cls, response: InitiateResponse) -> "UploadSession":
        return cls(
            upload_id=response.upload_id,
            s3_key=response.s3_key,
            part_size=response.part_size,
            total_parts=response.total_parts,
            filename=response.filename,
            original_filename=response.original_filename,
            file_type=response.file_type,
            type=response.type,
            urls=list(response.urls),
        )

    def url_for(self, part_number: int) -> Optional[str]:
        """Presigned URL for a part, or None when initiate did not provide one."""
        for entry in self.urls:
            if entry.part_number == part_number and entry.signed_url:
                return entry.signed_url
        return None

    def identifiers(self) -> Dict[str, str]:
        """Session identifiers as sent to the verify and abort routes."""
        return {"uploadId": self.upload_id, "s3Key": self.s3_key}
