"""
源路径镜像步骤

逐个镜像源路径（串行执行，前一个完成后才开始下一个）。
"""

import shutil

from ...utils import format_size
from ...utils.logging import info, debug, LogStage
from ..collector import PathFilter
from ..mirror import MirrorResult, mirror_tree
from ..package_spec import AssemblyState, PackageSource
from .build_step import BuildStep


class SourceMirrorStep(BuildStep):
    """源路径镜像步骤"""

    def __init__(self):
        super().__init__("mirror", "镜像源路径")

    def get_progress_range(self) -> tuple[int, int]:
        return (30, 70)

    def execute(self, state: AssemblyState) -> None:
        spec = state.spec
        start, end = self.get_progress_range()
        count = len(spec.sources)

        for index, source in enumerate(spec.sources):
            state.report("镜像源路径", start + int(index / count * (end - start)), f"镜像: {source.path}")

            path_filter = PathFilter(include=source.include, exclude=spec.exclude, skip_paths=source.skip)
            if source.path.is_file():
                result = self._copy_file(source, path_filter, state)
            else:
                result = mirror_tree(source.path, state.staging.package_dir / source.target, path_filter)

            state.mirror_results.append(result)
            state.stats['total_files'] += result.file_count
            state.stats['total_size'] += result.total_size
            info(
                f"镜像: {source.path} -> {source.target} "
                f"({result.file_count} 个文件, {format_size(result.total_size)})",
                stage=LogStage.MIRROR,
            )

        state.report("镜像源路径", end, f"{count} 个源路径已镜像")

    def _copy_file(self, source: PackageSource, path_filter: PathFilter, state: AssemblyState) -> MirrorResult:
        """单个文件作为源时直接复制到目标位置"""
        destination = state.staging.package_dir / source.target
        result = MirrorResult(source=source.path, destination=destination)
        if not path_filter.accepts(source.path.name):
            debug(f"文件被过滤: {source.path}", stage=LogStage.MIRROR)
            return result

        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source.path, destination)
        result.copied.append(source.target.as_posix())
        result.total_size = source.path.stat().st_size
        return result
