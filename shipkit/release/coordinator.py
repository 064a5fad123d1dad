"""
上传与发布协调器

只在构建服务器触发且规范分支恰好是 release/master/develop 时运行。四个步骤依次执行，
后一步依赖前一步成功，本层不做重试：

1. 上传归档；
2. 查找（不创建）发布；
3. 登记发布包，包号为 ``{patch}.{branch}``；
4. 非 master 分支触发部署。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..build.branch import canonical_branch, is_upload_branch
from ..build.build_context import BuildContext
from ..errors import ReleaseApiFailed, ShipkitError, UploadFailed
from ..utils import format_size
from ..utils.logging import info, success, LogStage
from .models import ArchiveUploader, Deployment, Release, ReleaseApi, ReleasePackage

# 只登记、不自动部署的分支
NO_AUTO_DEPLOY_BRANCH = "master"


@dataclass(frozen=True)
class ReleaseOutcome:
    """协调结果"""
    branch: str
    release: Release
    package: ReleasePackage
    deployment: Optional[Deployment] = None


def package_number(context: BuildContext) -> str:
    """发布包号：{patch}.{规范分支}"""
    return f"{context.version.patch}.{canonical_branch(context.branch)}"


class ReleaseCoordinator:
    """上传与发布协调器"""

    def __init__(
        self,
        uploader: ArchiveUploader,
        release_api: ReleaseApi,
        application: str,
        package_variable: str = "PackageVersion",
    ):
        self.uploader = uploader
        self.release_api = release_api
        self.application = application
        self.package_variable = package_variable

    @staticmethod
    def should_run(context: BuildContext) -> bool:
        """是否需要上传和登记发布"""
        return context.by_build_server and is_upload_branch(context.branch)

    def run(self, context: BuildContext, archive_path: Path) -> Optional[ReleaseOutcome]:
        """执行上传与发布

        Returns:
            ReleaseOutcome: 结果；不满足运行条件时返回 None

        Raises:
            UploadFailed: 上传失败
            ReleaseApiFailed: 发布系统调用失败
        """
        branch = canonical_branch(context.branch)
        if not self.should_run(context):
            reason = "developer build" if context.by_developer else f"branch '{branch}' is not release/master/develop"
            info(f"跳过上传与发布: {reason}", stage=LogStage.UPLOAD)
            return None

        self.upload(Path(archive_path))
        release = self._get_release(branch)
        package = self._create_package(release, context)

        deployment = None
        if branch != NO_AUTO_DEPLOY_BRANCH:
            deployment = self._publish(package)
        else:
            info(f"{NO_AUTO_DEPLOY_BRANCH} 分支只登记发布包，不自动部署", stage=LogStage.RELEASE)

        return ReleaseOutcome(branch=branch, release=release, package=package, deployment=deployment)

    def upload(self, archive_path: Path) -> None:
        """上传归档，HTTP 201 以外的结果都视为失败"""
        data = archive_path.read_bytes()
        info(f"上传归档: {archive_path.name} ({format_size(len(data))})", stage=LogStage.UPLOAD)

        try:
            result = self.uploader.upload(data)
        except ShipkitError:
            raise
        except Exception as e:
            raise UploadFailed(f"Upload of '{archive_path.name}' failed: {e}", config_path="upload.endpoint") from e

        if not result.success:
            raise UploadFailed(
                f"Upload of '{archive_path.name}' failed with status {result.status_code}: {result.detail}",
                config_path="upload.endpoint",
            )
        success(f"归档上传成功: {archive_path.name}", stage=LogStage.UPLOAD)

    def _get_release(self, branch: str) -> Release:
        try:
            release = self.release_api.get_release(self.application, branch)
        except ShipkitError:
            raise
        except Exception as e:
            raise ReleaseApiFailed(
                f"Looking up release '{branch}' of application '{self.application}' failed: {e}",
                config_path="release.application",
            ) from e
        info(f"发布: {release.application} {release.number}", stage=LogStage.RELEASE)
        return release

    def _create_package(self, release: Release, context: BuildContext) -> ReleasePackage:
        number = package_number(context)
        variables = {self.package_variable: context.version.full_version}
        try:
            package = self.release_api.create_release_package(release, number, variables)
        except ShipkitError:
            raise
        except Exception as e:
            raise ReleaseApiFailed(
                f"Creating package '{number}' in release '{release.number}' failed: {e}",
                config_path="release.application",
            ) from e
        success(f"已登记发布包: {release.number} #{package.number}", stage=LogStage.RELEASE)
        return package

    def _publish(self, package: ReleasePackage) -> Deployment:
        try:
            deployment = self.release_api.publish_package(package)
        except ShipkitError:
            raise
        except Exception as e:
            raise ReleaseApiFailed(
                f"Deploying package '{package.number}' of release '{package.release.number}' failed: {e}",
                config_path="release.application",
            ) from e
        success(f"已触发部署: {package.release.number} #{package.number}", stage=LogStage.RELEASE)
        return deployment
