"""上传与发布模块"""

from .coordinator import ReleaseCoordinator, ReleaseOutcome, package_number
from .http import HttpArchiveUploader, ReleaseApiClient
from .models import (
    ArchiveUploader,
    Deployment,
    Release,
    ReleaseApi,
    ReleasePackage,
    UploadResult,
)

__all__ = [
    "ReleaseCoordinator",
    "ReleaseOutcome",
    "package_number",
    "HttpArchiveUploader",
    "ReleaseApiClient",
    "ArchiveUploader",
    "ReleaseApi",
    "Release",
    "ReleasePackage",
    "Deployment",
    "UploadResult",
]
