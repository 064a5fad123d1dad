"""
源路径检查步骤

在复制任何文件之前确认所有源路径和平台目录都存在，任何一项缺失都立即失败。
"""

from ...errors import MissingPath, MissingPlatformDependency
from ...utils.logging import info, debug, LogStage
from ..package_spec import AssemblyState
from .build_step import BuildStep


class SourceCheckStep(BuildStep):
    """源路径检查步骤"""

    requires_staging = False

    def __init__(self):
        super().__init__("check", "检查源路径")

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 5)

    def execute(self, state: AssemblyState) -> None:
        spec = state.spec

        for index, source in enumerate(spec.sources):
            if not source.path.exists():
                raise MissingPath(
                    f"Source path '{source.path}' configured at 'package.sources[{index}].path' does not exist",
                    config_path=f"package.sources[{index}].path",
                )
            debug(f"源路径: {source.path} -> {source.target}", stage=LogStage.STAGE)

        platform = spec.platform
        if platform is not None and not platform.path.is_dir():
            raise MissingPlatformDependency(
                f"Platform directory '{platform.path}' is missing. "
                f"Install it as described in the setup documentation: {platform.setup_docs}",
                config_path="package.platform.path",
            )

        state.report("检查源路径", self.get_progress_range()[1], f"{len(spec.sources)} 个源路径")
        info(f"源路径检查通过: {len(spec.sources)} 个", stage=LogStage.STAGE)
