"""Upload profiles for each section of the campaign site.

Every profile speaks the same protocol; only the backend routes differ.
"""

from typing import Dict, Optional

from campaign_upload.models.upload import UploadConfig, UploadOptions, UploadResult
from campaign_upload.upload.payload import PayloadSource
from campaign_upload.upload.selector import upload_file


def _routes(prefix: str) -> UploadConfig:
    return UploadConfig(
        direct_endpoint=f"{prefix}/upload",
        initiate_endpoint=f"{prefix}/upload/multipart/initiate",
        verify_endpoint=f"{prefix}/upload/multipart/part",
        complete_endpoint=f"{prefix}/upload/multipart/complete",
    )


# Media library (admin)
MEDIA = _routes("/api/media")
# Complaint attachments (public)
COMPLAINTS = _routes("/api/complaints")
# Emergency reports (public, anonymous)
EMERGENCY = _routes("/api/emergency")
# Volunteer photos (public)
VOLUNTEER = _routes("/api/volunteer-hub")
CHALLENGES = _routes("/api/challenges")
TESTIMONIALS = _routes("/api/testimonials")
ELECTION_2026 = _routes("/api/election-2026")

PROFILES: Dict[str, UploadConfig] = {
    "media": MEDIA,
    "complaints": COMPLAINTS,
    "emergency": EMERGENCY,
    "volunteer": VOLUNTEER,
    "challenges": CHALLENGES,
    "testimonials": TESTIMONIALS,
    "election-2026": ELECTION_2026,
}


def get_profile(name: str) -> UploadConfig:
    """Look up a profile by name."""
    try:
        return PROFILES[name]
    except KeyError:
        known = ", ".join(sorted(PROFILES))
        raise KeyError(f"Unknown upload profile '{name}'. Known profiles: {known}") from None


async def upload_media_file(
    payload: PayloadSource, filename: str, options: Optional[UploadOptions] = None, **kwargs
) -> UploadResult:
    return await upload_file(payload, filename, MEDIA, options, **kwargs)


async def upload_complaint_file(
    payload: PayloadSource, filename: str, options: Optional[UploadOptions] = None, **kwargs
) -> UploadResult:
    return await upload_file(payload, filename, COMPLAINTS, options, **kwargs)


async def upload_emergency_file(
    payload: PayloadSource, filename: str, options: Optional[UploadOptions] = None, **kwargs
) -> UploadResult:
    return await upload_file(payload, filename, EMERGENCY, options, **kwargs)


async def upload_volunteer_photo(
    payload: PayloadSource, filename: str, options: Optional[UploadOptions] = None, **kwargs
) -> UploadResult:
    return await upload_file(payload, filename, VOLUNTEER, options, **kwargs)
