"""
发布系统数据模型与能力接口

协调器只依赖这里定义的窄接口，具体传输由适配器实现，测试中可替换为假实现。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol


@dataclass(frozen=True)
class UploadResult:
    """上传结果"""
    success: bool
    status_code: Optional[int] = None
    detail: str = ""


@dataclass(frozen=True)
class Release:
    """发布"""
    application: str
    number: str
    id: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class ReleasePackage:
    """发布包"""
    release: Release
    number: str
    variables: Mapping[str, str] = field(default_factory=dict)
    id: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Deployment:
    """部署"""
    package: ReleasePackage
    id: Optional[int] = None
    status: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


class ArchiveUploader(Protocol):
    """归档上传能力"""

    def upload(self, data: bytes) -> UploadResult:
        ...


class ReleaseApi(Protocol):
    """发布系统能力"""

    def get_release(self, application: str, release_name: str) -> Release:
        ...

    def create_release_package(
        self, release: Release, package_number: str, variables: Mapping[str, str]
    ) -> ReleasePackage:
        ...

    def publish_package(self, package: ReleasePackage) -> Deployment:
        ...
