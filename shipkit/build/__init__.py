"""构建服务模块

提供版本解析、发布判定、包组装和流水线协调功能。
"""

from .version import VersionInfo, parse_version, resolve_version
from .branch import PublishDecision, canonical_branch, classify_branch, is_upload_branch, strip_remote_prefix
from .build_context import BuildContext, Credential, ServerConnection, create_build_context, is_build_server
from .collector import FORCED_EXCLUDES, FileCollector, FileInfo, PathFilter
from .compressor import (
    Compressor,
    CompressorFactory,
    CompressionError,
    ZipCompressor,
    ZstdCompressor,
)
from .manifest import MANIFEST_FILENAME, PackageManifest
from .mirror import MirrorResult, PlatformFilter, mirror_tree
from .staging import StagingArea
from .package_spec import AssemblyState, PackageSource, PackageSpec, PlatformSource
from .assembler import PackageAssembler
from .builder import Builder, BuildResult

__all__ = [
    # 版本与分支
    "VersionInfo",
    "parse_version",
    "resolve_version",
    "PublishDecision",
    "canonical_branch",
    "classify_branch",
    "is_upload_branch",
    "strip_remote_prefix",

    # 构建上下文
    "BuildContext",
    "Credential",
    "ServerConnection",
    "create_build_context",
    "is_build_server",

    # 文件收集与镜像
    "FORCED_EXCLUDES",
    "FileCollector",
    "FileInfo",
    "PathFilter",
    "MirrorResult",
    "PlatformFilter",
    "mirror_tree",

    # 压缩相关
    "Compressor",
    "CompressorFactory",
    "CompressionError",
    "ZipCompressor",
    "ZstdCompressor",

    # 组装
    "MANIFEST_FILENAME",
    "PackageManifest",
    "StagingArea",
    "AssemblyState",
    "PackageSource",
    "PackageSpec",
    "PlatformSource",
    "PackageAssembler",

    # 主构建器
    "Builder",
    "BuildResult",
]
