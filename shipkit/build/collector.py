"""
文件收集器

按包含/排除规则扫描目录，返回排序后的文件列表。
obj、.git、.hg 目录始终被排除，不受用户配置影响。
"""

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Sequence

# 任何路径片段等于这些名称时都会被排除
FORCED_EXCLUDES = frozenset({"obj", ".git", ".hg"})


@dataclass
class FileInfo:
    """文件信息"""
    path: Path  # 绝对路径
    relative_path: Path  # 相对于扫描根目录的路径
    size: int  # 文件大小（字节）

    @property
    def archive_name(self) -> str:
        """归档中使用的正斜杠路径"""
        return PurePosixPath(*self.relative_path.parts).as_posix()


def match_pattern(path: str, pattern: str) -> bool:
    """匹配单个 glob 模式

    Args:
        path: 正斜杠分隔的相对路径
        pattern: glob 模式

    Returns:
        bool: 是否匹配
    """
    pattern = pattern.replace('\\', '/')

    # 直接 glob 匹配
    if fnmatch.fnmatchcase(path, pattern):
        return True

    # 目录模式匹配（以 / 结尾）
    if pattern.endswith('/'):
        dir_pattern = pattern.rstrip('/')
        if fnmatch.fnmatchcase(path, dir_pattern):
            return True
        if path.startswith(dir_pattern + '/'):
            return True

    # 不含分隔符的模式匹配文件名本身
    if '/' not in pattern.rstrip('/'):
        return fnmatch.fnmatchcase(path.rsplit('/', 1)[-1], pattern.rstrip('/'))

    # 路径片段匹配（包含路径分隔符）
    path_parts = path.split('/')
    pattern_parts = pattern.rstrip('/').split('/')
    for i in range(len(path_parts) - len(pattern_parts) + 1):
        if all(
            fnmatch.fnmatchcase(path_parts[i + j], pattern_parts[j])
            for j in range(len(pattern_parts))
        ):
            return True

    return False


class PathFilter:
    """包含/排除过滤器

    文件被选中当且仅当：匹配至少一个包含模式，自身及所有上级目录都不匹配排除模式，
    不位于 skip_paths 指定的子树内，且路径中没有强制排除的片段。
    skip_paths 是相对于扫描根目录的固定路径，不做模式匹配。
    """

    def __init__(
        self,
        include: Optional[Sequence[str]] = None,
        exclude: Optional[Sequence[str]] = None,
        forced_excludes: Iterable[str] = FORCED_EXCLUDES,
        skip_paths: Iterable[str] = (),
    ):
        self.include = list(include) if include else ["*"]
        self.exclude = list(exclude or [])
        self.forced_excludes = frozenset(forced_excludes)
        self.skip_paths = tuple(p.strip('/') for p in skip_paths)

    def is_forced_excluded(self, relative_path: str) -> bool:
        if any(part in self.forced_excludes for part in relative_path.split('/')):
            return True
        return any(
            relative_path == skipped or relative_path.startswith(skipped + '/')
            for skipped in self.skip_paths
        )

    def is_excluded(self, relative_path: str) -> bool:
        """路径或其任一上级目录是否被排除"""
        if self.is_forced_excluded(relative_path):
            return True
        if not self.exclude:
            return False

        parts = relative_path.split('/')
        for i in range(1, len(parts) + 1):
            candidate = '/'.join(parts[:i])
            for pattern in self.exclude:
                if match_pattern(candidate, pattern):
                    return True
        return False

    def is_included(self, relative_path: str) -> bool:
        return any(match_pattern(relative_path, pattern) for pattern in self.include)

    def accepts(self, relative_path: str) -> bool:
        """文件是否应出现在目标目录中"""
        return self.is_included(relative_path) and not self.is_excluded(relative_path)


class FileCollector:
    """文件收集器

    负责扫描目录并应用过滤规则。
    """

    def __init__(self):
        self.collected_files: List[FileInfo] = []
        self.total_size: int = 0

    def collect_files(self, root: Path, path_filter: Optional[PathFilter] = None) -> List[FileInfo]:
        """收集 root 下满足过滤条件的文件

        Args:
            root: 扫描根目录（或单个文件）
            path_filter: 过滤器，None 表示收集全部文件

        Returns:
            List[FileInfo]: 按相对路径排序的文件列表

        Raises:
            FileNotFoundError: root 不存在
        """
        root = Path(root)
        self.collected_files = []
        self.total_size = 0

        if not root.exists():
            raise FileNotFoundError(f"输入路径不存在: {root}")

        if root.is_file():
            self._add(root, Path(root.name))
            return self.collected_files

        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            current = Path(dirpath)
            rel_dir = current.relative_to(root)

            # 被排除的目录不再向下遍历
            if path_filter is not None:
                dirnames[:] = [
                    d for d in dirnames
                    if not path_filter.is_excluded(_posix(rel_dir / d))
                ]
            dirnames.sort()

            for filename in sorted(filenames):
                relative_path = rel_dir / filename
                if path_filter is None or path_filter.accepts(_posix(relative_path)):
                    self._add(current / filename, relative_path)

        self.collected_files.sort(key=lambda f: f.archive_name)
        return self.collected_files

    def _add(self, file_path: Path, relative_path: Path) -> None:
        stat = file_path.stat()
        self.collected_files.append(FileInfo(
            path=file_path.resolve(),
            relative_path=relative_path,
            size=stat.st_size,
        ))
        self.total_size += stat.st_size


def _posix(path: Path) -> str:
    return PurePosixPath(*path.parts).as_posix() if path.parts else ""


def _raise(error: OSError) -> None:
    raise error
