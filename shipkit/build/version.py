"""
版本解析

把原始版本号、当前分支和预发布规则解析成唯一的 VersionInfo，
并一次性派生出各种版本表示。
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Tuple

from ..errors import InvalidBuildNumber, InvalidVersion, MissingVersion
from ..utils.logging import debug, info, LogStage

# SemVer 2.0 语法
SEMVER_PATTERN = re.compile(
    r'^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)'
    r'(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)'
    r'(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?'
    r'(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$'
)

_NON_ALNUM = re.compile(r'[^0-9A-Za-z]')
_ILLEGAL_IDENTIFIER = re.compile(r'[^0-9A-Za-z-]')


@dataclass(frozen=True)
class VersionInfo:
    """解析后的版本信息

    四种表示在构造时由同一个 (major, minor, patch, prerelease) 派生，之后不可变。
    """
    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None
    build_metadata: Optional[str] = None

    numeric_version: str = field(init=False)
    release_version: str = field(init=False)
    full_version: str = field(init=False)
    legacy_version: str = field(init=False)

    def __post_init__(self):
        for name in ('major', 'minor', 'patch'):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

        numeric = f"{self.major}.{self.minor}.{self.patch}"
        release = f"{numeric}-{self.prerelease}" if self.prerelease else numeric
        full = f"{release}+{self.build_metadata}" if self.build_metadata else release

        legacy = numeric
        if self.prerelease:
            stripped = _NON_ALNUM.sub('', self.prerelease)
            if stripped:
                legacy = f"{numeric}-{stripped}"

        object.__setattr__(self, 'numeric_version', numeric)
        object.__setattr__(self, 'release_version', release)
        object.__setattr__(self, 'full_version', full)
        object.__setattr__(self, 'legacy_version', legacy)

    def __str__(self) -> str:
        return self.full_version

    def with_prerelease(self, prerelease: Optional[str]) -> 'VersionInfo':
        """返回替换了预发布标签的新版本"""
        return VersionInfo(self.major, self.minor, self.patch, prerelease, self.build_metadata)

    def to_dict(self) -> dict:
        return {
            'numeric': self.numeric_version,
            'release': self.release_version,
            'full': self.full_version,
            'legacy': self.legacy_version,
        }


def parse_version(raw: Any, config_path: str = "version") -> VersionInfo:
    """把原始值解析为 VersionInfo

    Args:
        raw: 原始版本值，非字符串会先转为字符串
        config_path: 出错时报告的配置项

    Raises:
        InvalidVersion: 不符合 major.minor.patch[-prerelease][+build]
    """
    token = str(raw).strip()
    match = SEMVER_PATTERN.match(token)
    if not match:
        raise InvalidVersion(
            f"'{token}' is not a valid version "
            f"(expected major.minor.patch[-prerelease][+build], configured at '{config_path}')",
            config_path=config_path,
        )

    return VersionInfo(
        major=int(match.group('major')),
        minor=int(match.group('minor')),
        patch=int(match.group('patch')),
        prerelease=match.group('prerelease'),
        build_metadata=match.group('build'),
    )


def read_version_file(path: Path) -> Optional[str]:
    """读取版本文件的第一行非空内容，文件不存在时返回 None"""
    if not path.is_file():
        return None
    for line in path.read_text(encoding='utf-8').splitlines():
        if line.strip():
            return line.strip()
    return None


def normalize_build_id(build_id: Any, config_path: str = "build_number") -> str:
    """把构建号规整为合法的预发布标识

    非法字符替换为 '-'，纯数字去掉前导零。

    Raises:
        InvalidBuildNumber: 规整后不含任何字母或数字
    """
    raw = str(build_id).strip()
    token = _ILLEGAL_IDENTIFIER.sub('-', raw)
    if token.isdigit():
        token = token.lstrip('0') or '0'
    if not token.strip('-'):
        raise InvalidBuildNumber(
            f"Build number '{raw}' cannot be used in a prerelease label "
            f"(configured at '{config_path}' / --build-number)",
            config_path=config_path,
        )
    return token


def resolve_version(
    raw_version: Any,
    branch: str,
    rules: Iterable[Tuple[str, str]] = (),
    build_id: str = "0",
    fallback_file: Optional[Path] = None,
    config_path: str = "version",
) -> VersionInfo:
    """解析最终版本

    按声明顺序遍历预发布规则，每条匹配分支名的规则都会覆盖当前标签为
    ``{label}.{build_id}``，因此最后一条匹配的规则生效。

    Args:
        raw_version: 原始版本值（可为 None）
        branch: 当前分支名
        rules: 有序的 (正则, 标签) 列表
        build_id: 当前运行的构建标识
        fallback_file: 未配置版本号时读取的版本文件
        config_path: 出错时报告的配置项

    Returns:
        VersionInfo: 最终版本

    Raises:
        MissingVersion: 没有版本号也没有回退来源
        InvalidVersion: 版本号无法解析
        InvalidBuildNumber: 匹配到规则但构建号无法用作标识
    """
    if raw_version is None or (isinstance(raw_version, str) and not raw_version.strip()):
        fallback = read_version_file(fallback_file) if fallback_file else None
        if fallback is None:
            source = f" or file '{fallback_file}'" if fallback_file else ""
            raise MissingVersion(
                f"Configuration property '{config_path}'{source} is mandatory: no version available",
                config_path=config_path,
            )
        debug(f"使用版本文件: {fallback_file}", stage=LogStage.VERSION)
        raw_version = fallback

    version = parse_version(raw_version, config_path)

    prerelease = version.prerelease
    for pattern, label in rules:
        if re.search(pattern, branch):
            prerelease = f"{label}.{normalize_build_id(build_id)}"
            debug(f"预发布规则匹配: {pattern} -> {prerelease}", stage=LogStage.VERSION)

    if prerelease != version.prerelease:
        # 重新派生，确保新标签仍是合法版本
        candidate = version.with_prerelease(prerelease)
        version = parse_version(candidate.full_version, config_path)

    info(f"版本: {version.full_version} (分支: {branch})", stage=LogStage.VERSION)
    return version
