"""
打包输入

PackageSpec 描述要组装的部署包，AssemblyState 保存一次组装过程中各步骤共享的数据。
"""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

from ..config.schema import CompressionAlgorithm, PipelineConfig
from ..errors import ConfigError
from .version import VersionInfo

if TYPE_CHECKING:
    from .build_context import BuildContext, ProgressCallback
    from .mirror import MirrorResult
    from .staging import StagingArea


@dataclass(frozen=True)
class PackageSource:
    """一个源路径及其包含模式

    skip 为相对于源路径的目录，整棵子树不参与镜像（例如位于源路径内的输出目录）。
    """
    path: Path
    include: Sequence[str] = ("*",)
    target: PurePosixPath = PurePosixPath(".")
    skip: Sequence[str] = ()


@dataclass(frozen=True)
class PlatformSource:
    """平台子树"""
    path: Path
    target: PurePosixPath
    exclude_components: Sequence[str] = ()
    setup_docs: str = ""
    skip: Sequence[str] = ()


@dataclass(frozen=True)
class PackageSpec:
    """部署包描述"""
    name: str
    version: VersionInfo
    sources: Sequence[PackageSource]
    title: str = ""
    description: str = ""
    exclude: Sequence[str] = ()
    platform: Optional[PlatformSource] = None
    algorithm: CompressionAlgorithm = CompressionAlgorithm.ZIP
    level: int = 6
    extension: str = "upack"

    def __post_init__(self):
        targets = [s.target for s in self.sources]
        if self.platform is not None:
            targets.append(self.platform.target)
        _check_disjoint(targets)

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        version: VersionInfo,
        build_root: Path,
        output_dir: Optional[Path] = None,
    ) -> 'PackageSpec':
        """从配置创建，相对路径以 build_root 为基准

        output_dir 位于某个源路径内时，从该源路径中跳过，避免上一次的归档被打进新包。
        """
        package = config.package
        sources = []
        for source in package.sources:
            path = _resolve(build_root, source.path)
            sources.append(PackageSource(
                path=path,
                include=tuple(source.include),
                target=_default_target(build_root, path, source.target),
                skip=_nested_output(path, output_dir, f"package.sources[{len(sources)}].path"),
            ))

        platform = None
        if package.platform is not None:
            platform_path = _resolve(build_root, package.platform.path)
            platform = PlatformSource(
                path=platform_path,
                target=PurePosixPath(package.platform.target or platform_path.name),
                exclude_components=tuple(package.platform.exclude_components),
                setup_docs=package.platform.setup_docs,
                skip=_nested_output(platform_path, output_dir, "package.platform.path"),
            )

        return cls(
            name=package.name,
            version=version,
            sources=tuple(sources),
            title=config.get_title(),
            description=package.description,
            exclude=tuple(package.exclude),
            platform=platform,
            algorithm=config.compression.algo,
            level=config.compression.level,
            extension=config.compression.extension,
        )

    @classmethod
    def from_context(cls, context: 'BuildContext') -> 'PackageSpec':
        return cls.from_config(context.config, context.version, context.build_root, context.output_dir)


@dataclass
class AssemblyState:
    """一次组装过程的共享数据"""
    spec: PackageSpec
    output_dir: Path
    staging: 'StagingArea'
    progress_callback: Optional['ProgressCallback'] = None

    mirror_results: List['MirrorResult'] = field(default_factory=list)
    manifest_path: Optional[Path] = None
    archive_path: Optional[Path] = None
    stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0.0,
        'end_time': 0.0,
        'total_files': 0,
        'total_size': 0,
        'compressed_size': 0,
    })

    def report(self, stage: str, current: int, message: str = "") -> None:
        if self.progress_callback:
            self.progress_callback(stage, current, 100, message)


def _resolve(build_root: Path, path: str) -> Path:
    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = build_root / candidate
    return candidate


def _default_target(build_root: Path, path: Path, target: Optional[str]) -> PurePosixPath:
    if target is not None:
        return PurePosixPath(Path(target).as_posix())
    try:
        relative = path.relative_to(build_root)
    except ValueError:
        return PurePosixPath(path.name)
    return PurePosixPath(relative.as_posix())


def _nested_output(path: Path, output_dir: Optional[Path], config_path: str) -> Tuple[str, ...]:
    """output_dir 相对于 path 的位置，不在 path 内时返回空"""
    if output_dir is None:
        return ()
    try:
        relative = output_dir.resolve().relative_to(path.resolve())
    except ValueError:
        return ()
    if not relative.parts:
        raise ConfigError(
            f"Output directory '{output_dir}' cannot be the package source '{path}'",
            config_path=config_path,
        )
    return (relative.as_posix(),)


def _check_disjoint(targets: List[PurePosixPath]) -> None:
    """各镜像的目标目录不能相同或互相嵌套，否则破坏性同步会互相删除文件"""
    for i, first in enumerate(targets):
        for second in targets[i + 1:]:
            if first == second or first in second.parents or second in first.parents:
                raise ConfigError(
                    f"Package targets '{first}' and '{second}' overlap; each source needs its own target directory",
                    config_path="package.sources",
                )
