"""
构建器主类

负责整个流水线的协调：版本解析 -> 构建上下文 -> 发布判定 -> 包组装 -> 上传与发布，
严格按顺序执行。
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from ..config.schema import PipelineConfig
from ..errors import ShipkitError
from ..release.coordinator import ReleaseCoordinator, ReleaseOutcome
from ..release.http import HttpArchiveUploader, ReleaseApiClient
from ..utils.logging import info, success, warning, error, LogStage
from .assembler import PackageAssembler
from .build_context import (
    BuildContext,
    ProgressCallback,
    ServerConnection,
    create_build_context,
    is_build_server,
)
from .package_spec import PackageSpec
from .version import VersionInfo

CoordinatorFactory = Callable[[BuildContext], ReleaseCoordinator]


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    archive_path: Optional[Path] = None
    version: Optional[VersionInfo] = None
    publish: bool = False
    release_name: str = ""
    outcome: Optional[ReleaseOutcome] = None
    build_time: Optional[float] = None
    error: Optional[str] = None
    exception: Optional[ShipkitError] = None

    @property
    def uploaded(self) -> bool:
        return self.outcome is not None


def create_coordinator(context: BuildContext) -> ReleaseCoordinator:
    """根据上下文中的配置和凭据创建基于 HTTP 的协调器"""
    upload = context.config.upload
    release = context.config.release

    uploader = HttpArchiveUploader(
        upload.endpoint,
        context.get_credential(upload.credential_id, "upload.credential_id"),
        timeout=upload.timeout,
    )
    api_credential = context.get_credential(release.credential_id, "release.credential_id")
    release_api = ReleaseApiClient(release.api_url, api_credential.password, timeout=release.timeout)
    return ReleaseCoordinator(uploader, release_api, release.application, release.package_variable)


class Builder:
    """流水线构建器

    提供统一的构建入口，失败时返回 success=False 的 BuildResult。
    """

    def __init__(
        self,
        assembler: Optional[PackageAssembler] = None,
        coordinator_factory: CoordinatorFactory = create_coordinator,
        attribution: Callable[[], bool] = is_build_server,
    ):
        """初始化构建器

        Args:
            assembler: 包组装器
            coordinator_factory: 由上下文创建上传与发布协调器
            attribution: 判断是否由构建服务器触发的谓词
        """
        self.assembler = assembler or PackageAssembler()
        self.coordinator_factory = coordinator_factory
        self.attribution = attribution

    def build(
        self,
        config: PipelineConfig,
        branch: str,
        build_root: Union[str, Path] = ".",
        environment: Optional[str] = None,
        server: Optional[ServerConnection] = None,
        credentials: Optional[Mapping[str, Any]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildResult:
        """执行完整流水线

        Args:
            config: 流水线配置
            branch: 当前分支
            build_root: 构建根目录
            environment: 环境名称
            server: 构建服务器连接参数
            credentials: 已解析的凭据（标识 -> 凭据）
            progress_callback: 进度回调函数

        Returns:
            BuildResult: 构建结果
        """
        start_time = time.time()
        context: Optional[BuildContext] = None

        try:
            context = create_build_context(
                config,
                branch,
                build_root,
                environment=environment,
                server=server,
                attribution=self.attribution,
                credentials=credentials,
            )

            spec = PackageSpec.from_context(context)
            state = self.assembler.assemble(spec, context.output_dir, progress_callback)
            outcome = self.release(context, state.archive_path)

        except ShipkitError as e:
            error(f"构建失败: {e}", stage=LogStage.DONE)
            return BuildResult(
                success=False,
                version=context.version if context else None,
                publish=context.publish if context else False,
                release_name=context.release_name if context else "",
                build_time=time.time() - start_time,
                error=str(e),
                exception=e,
            )

        build_time = time.time() - start_time
        success(f"构建完成: {state.archive_path} ({build_time:.1f}秒)", stage=LogStage.DONE)
        return BuildResult(
            success=True,
            archive_path=state.archive_path,
            version=context.version,
            publish=context.publish,
            release_name=context.release_name,
            outcome=outcome,
            build_time=build_time,
        )

    def release(self, context: BuildContext, archive_path: Path) -> Optional[ReleaseOutcome]:
        """满足条件时上传归档并登记发布"""
        if not ReleaseCoordinator.should_run(context):
            info("当前构建不需要上传与发布", stage=LogStage.UPLOAD)
            return None

        if context.config.upload is None:
            warning("未配置 upload，跳过上传与发布", stage=LogStage.UPLOAD)
            return None

        coordinator = self.coordinator_factory(context)
        return coordinator.run(context, archive_path)
