"""
平台子树镜像步骤

把平台目录镜像到包内，排除组件子目录和平台根目录下的文件。
"""

from ...utils import format_size
from ...utils.logging import info, LogStage
from ..mirror import PlatformFilter, mirror_tree
from ..package_spec import AssemblyState
from .build_step import BuildStep


class PlatformMirrorStep(BuildStep):
    """平台子树镜像步骤"""

    def __init__(self):
        super().__init__("platform", "镜像平台目录")

    def get_progress_range(self) -> tuple[int, int]:
        return (5, 30)

    def execute(self, state: AssemblyState) -> None:
        platform = state.spec.platform
        start, end = self.get_progress_range()

        if platform is None:
            state.report("镜像平台目录", end, "未配置平台目录")
            return

        state.report("镜像平台目录", start, str(platform.path))
        destination = state.staging.package_dir / platform.target
        result = mirror_tree(
            platform.path,
            destination,
            PlatformFilter(platform.exclude_components, skip_paths=platform.skip),
        )
        state.mirror_results.append(result)
        state.stats['total_files'] += result.file_count
        state.stats['total_size'] += result.total_size

        state.report("镜像平台目录", end, f"{result.file_count} 个文件")
        info(
            f"平台目录: {platform.path} -> {platform.target} "
            f"({result.file_count} 个文件, {format_size(result.total_size)})",
            stage=LogStage.MIRROR,
        )
