"""
目录镜像

把源目录按过滤规则同步到目标目录。同步是破坏性的：目标中不再满足过滤条件的文件
和因此变空的目录都会被删除，未变化的文件不会重复复制，重复执行结果一致。
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Set

from ..utils import ensure_directory
from ..utils.logging import debug, LogStage
from .collector import FORCED_EXCLUDES, FileCollector, PathFilter


@dataclass
class MirrorResult:
    """一次镜像的统计"""
    source: Path
    destination: Path
    copied: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    total_size: int = 0

    @property
    def file_count(self) -> int:
        return len(self.copied) + len(self.unchanged)


class PlatformFilter(PathFilter):
    """平台子树过滤器

    排除根目录下指定名称的组件子目录，以及直接位于根目录的文件（不递归）。
    """

    def __init__(self, exclude_components: Sequence[str] = (), skip_paths: Sequence[str] = ()):
        super().__init__(include=["*"], exclude=[], skip_paths=skip_paths)
        self.exclude_components = frozenset(exclude_components)

    def is_excluded(self, relative_path: str) -> bool:
        if self.is_forced_excluded(relative_path):
            return True
        return relative_path.split('/', 1)[0] in self.exclude_components

    def accepts(self, relative_path: str) -> bool:
        if '/' not in relative_path:
            return False
        return not self.is_excluded(relative_path)


def mirror_tree(source: Path, destination: Path, path_filter: Optional[PathFilter] = None) -> MirrorResult:
    """把 source 镜像到 destination

    Args:
        source: 源目录或文件
        destination: 目标目录
        path_filter: 过滤器，默认只应用强制排除

    Returns:
        MirrorResult: 镜像统计
    """
    source = Path(source)
    destination = Path(destination)
    if path_filter is None:
        path_filter = PathFilter(forced_excludes=FORCED_EXCLUDES)

    collector = FileCollector()
    files = collector.collect_files(source, path_filter)
    selected: Set[str] = {f.archive_name for f in files}

    result = MirrorResult(source=source, destination=destination, total_size=collector.total_size)
    ensure_directory(destination)

    # 先删除目标中多余的内容
    _remove_stale(destination, selected, result)

    for file_info in files:
        target = destination / file_info.relative_path
        if _is_unchanged(file_info.path, target):
            result.unchanged.append(file_info.archive_name)
            continue
        if target.is_dir():
            shutil.rmtree(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(file_info.path, target)
        result.copied.append(file_info.archive_name)

    debug(
        f"镜像 {source} -> {destination}: 复制 {len(result.copied)}, "
        f"未变 {len(result.unchanged)}, 删除 {len(result.removed)}",
        stage=LogStage.MIRROR,
    )
    return result


def _is_unchanged(source: Path, target: Path) -> bool:
    if not target.is_file() or target.is_symlink():
        return False
    src_stat = source.stat()
    dst_stat = target.stat()
    return src_stat.st_size == dst_stat.st_size and src_stat.st_mtime_ns == dst_stat.st_mtime_ns


def _remove_stale(destination: Path, selected: Set[str], result: MirrorResult) -> None:
    """删除不在 selected 中的文件以及不再包含选中文件的目录"""
    keep_dirs: Set[str] = set()
    for name in selected:
        parts = name.split('/')
        for i in range(1, len(parts)):
            keep_dirs.add('/'.join(parts[:i]))

    # 深度优先，先处理子项再处理父目录
    for path in sorted(destination.rglob('*'), key=lambda p: len(p.parts), reverse=True):
        rel = path.relative_to(destination).as_posix()
        if path.is_dir() and not path.is_symlink():
            if rel in keep_dirs:
                continue
            shutil.rmtree(path)
            result.removed.append(rel + '/')
        elif rel not in selected:
            path.unlink()
            result.removed.append(rel)
