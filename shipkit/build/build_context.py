"""
构建上下文模块

每次构建调用只创建一次 BuildContext，之后只读；唯一例外是凭据表，
调用方在执行任务之前向其中登记凭据。
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from ..config.schema import PipelineConfig
from ..errors import BuildError, MissingConfiguration
from ..utils import ensure_directory
from ..utils.logging import debug, info, LogStage
from .branch import classify_branch
from .version import VersionInfo, resolve_version

# 任一变量取非关闭值即视为由构建服务器触发
BUILD_SERVER_ENV_VARS = ("TEAMCITY_VERSION", "JENKINS_URL", "TF_BUILD", "GITLAB_CI", "GITHUB_ACTIONS", "CI")

# 显式关闭的取值
_FALSE_VALUES = ("", "0", "false", "no", "off")

# 进度回调类型
ProgressCallback = Callable[[str, int, int, str], None]


@dataclass(frozen=True)
class Credential:
    """已解析的凭据，API key 保存在 password 中"""
    username: str = ""
    password: str = ""

    def __repr__(self) -> str:
        return f"Credential(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class ServerConnection:
    """构建服务器连接参数，只在构建服务器上运行时需要"""
    url: str
    build_number: str


@dataclass(frozen=True)
class BuildContext:
    """构建上下文"""
    environment: str
    build_root: Path
    output_dir: Path
    version: VersionInfo
    config: PipelineConfig
    publish: bool
    release_name: str
    branch: str
    by_build_server: bool
    build_id: str
    server: Optional[ServerConnection] = None
    credentials: Dict[str, Any] = field(default_factory=dict)

    @property
    def by_developer(self) -> bool:
        return not self.by_build_server

    def register_credential(self, credential_id: str, credential: Any) -> None:
        """登记凭据，同一标识只能登记一次"""
        if credential_id in self.credentials:
            raise BuildError(f"Credential '{credential_id}' is already registered")
        self.credentials[credential_id] = credential

    def get_credential(self, credential_id: str, config_path: str = "credential_id") -> Any:
        """按标识取凭据

        Raises:
            MissingConfiguration: 凭据未登记
        """
        if not credential_id:
            raise MissingConfiguration(f"CredentialID is mandatory ('{config_path}')", config_path=config_path)
        try:
            return self.credentials[credential_id]
        except KeyError:
            raise MissingConfiguration(
                f"Credential '{credential_id}' referenced by '{config_path}' is mandatory but was not supplied",
                config_path=config_path,
            ) from None


def is_build_server(environ: Optional[Mapping[str, str]] = None) -> bool:
    """根据环境变量判断是否由构建服务器触发"""
    environ = os.environ if environ is None else environ
    return any(
        environ.get(name, "").strip().lower() not in _FALSE_VALUES
        for name in BUILD_SERVER_ENV_VARS
    )


def _local_build_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")


def create_build_context(
    config: PipelineConfig,
    branch: str,
    build_root: Union[str, Path],
    environment: Optional[str] = None,
    server: Optional[ServerConnection] = None,
    attribution: Callable[[], bool] = is_build_server,
    credentials: Optional[Mapping[str, Any]] = None,
) -> BuildContext:
    """创建构建上下文

    依次完成：判定触发方、解析版本、发布判定、创建输出目录。

    Args:
        config: 已校验的流水线配置
        branch: 当前分支名
        build_root: 构建根目录
        environment: 环境名称，默认取配置或 "Development"
        server: 构建服务器连接参数
        attribution: 判断是否由构建服务器触发的谓词
        credentials: 预先登记的凭据

    Returns:
        BuildContext: 构建上下文

    Raises:
        MissingConfiguration: 构建服务器触发却没有连接参数
        MissingVersion / InvalidVersion: 版本解析失败
        InvalidBuildNumber: 构建号无法用作预发布标识
    """
    build_root = Path(build_root).resolve()
    by_build_server = bool(attribution())

    if by_build_server and server is None:
        raise MissingConfiguration(
            "Build server connection parameters (server url, build number) are mandatory "
            "when the build is run by a build server",
            config_path="server",
        )

    build_id = server.build_number if server else _local_build_id()
    debug(f"触发方: {'build server' if by_build_server else 'developer'} build_id={build_id}", stage=LogStage.CONTEXT)

    version = resolve_version(
        config.version,
        branch,
        rules=[(rule.pattern, rule.label) for rule in config.prerelease],
        build_id=build_id,
        fallback_file=build_root / config.version_file,
    )

    decision = classify_branch(
        branch,
        patterns=config.publish.branches,
        release_name=config.publish.release_name,
        by_build_server=by_build_server,
    )

    output_dir = ensure_directory(build_root / config.output_dir)

    context = BuildContext(
        environment=environment or config.environment or "Development",
        build_root=build_root,
        output_dir=output_dir,
        version=version,
        config=config,
        publish=decision.publish,
        release_name=decision.release_name,
        branch=decision.branch,
        by_build_server=by_build_server,
        build_id=build_id,
        server=server,
        credentials=dict(credentials or {}),
    )

    info(
        f"构建上下文: 环境={context.environment} 版本={version.full_version} "
        f"publish={context.publish} 输出目录={output_dir}",
        stage=LogStage.CONTEXT,
    )
    return context
