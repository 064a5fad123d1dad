"""
包组装器

使用管道模式协调组装步骤：先做不写文件的检查，再在独占的暂存区中镜像、写清单、压缩。
暂存区在任何情况下都会被删除。
"""

import time
from pathlib import Path
from typing import List, Optional

from ..errors import BuildError, ShipkitError
from ..utils import format_size
from ..utils.logging import info, success, error, LogStage
from .build_context import ProgressCallback
from .package_spec import AssemblyState, PackageSpec
from .staging import StagingArea
from .steps import (
    BuildStep,
    CompressionStep,
    ManifestStep,
    PlatformMirrorStep,
    SourceCheckStep,
    SourceMirrorStep,
)


class PackageAssembler:
    """包组装器"""

    def __init__(self, staging_base: Optional[Path] = None):
        """初始化组装器

        Args:
            staging_base: 暂存区所在的父目录，默认使用系统临时目录
        """
        self.staging_base = staging_base
        self._steps: List[BuildStep] = [
            SourceCheckStep(),
            PlatformMirrorStep(),
            SourceMirrorStep(),
            ManifestStep(),
            CompressionStep(),
        ]

    def get_steps(self) -> List[BuildStep]:
        """获取所有组装步骤"""
        return self._steps.copy()

    def assemble(
        self,
        spec: PackageSpec,
        output_dir: Path,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> AssemblyState:
        """组装部署包

        Args:
            spec: 部署包描述
            output_dir: 归档输出目录
            progress_callback: 进度回调函数

        Returns:
            AssemblyState: 组装结果，archive_path 为归档位置

        Raises:
            MissingPath / MissingPlatformDependency: 输入缺失，未复制任何文件
            BuildError: 其他组装失败
        """
        state = AssemblyState(
            spec=spec,
            output_dir=Path(output_dir),
            staging=StagingArea(spec.name, base_dir=self.staging_base),
            progress_callback=progress_callback,
        )
        state.stats['start_time'] = time.time()
        info(f"开始组装部署包: {spec.name} {spec.version.full_version}", stage=LogStage.STAGE)

        try:
            for step in self._steps:
                if not step.requires_staging:
                    info(f"执行步骤: {step.description}", stage=LogStage.STAGE)
                    step.execute(state)

            with state.staging:
                for step in self._steps:
                    if step.requires_staging:
                        info(f"执行步骤: {step.description}", stage=LogStage.STAGE)
                        step.execute(state)

        except ShipkitError as e:
            error(f"组装失败: {e}", stage=LogStage.STAGE)
            raise
        except OSError as e:
            error(f"组装失败: {e}", stage=LogStage.STAGE)
            raise BuildError(f"Package assembly failed: {e}") from e
        finally:
            state.stats['end_time'] = time.time()

        elapsed = state.stats['end_time'] - state.stats['start_time']
        success(f"部署包组装完成: {state.archive_path}", stage=LogStage.DONE)
        info(f"  文件数量: {state.stats['total_files']}")
        info(f"  原始大小: {format_size(state.stats['total_size'])}")
        info(f"  压缩大小: {format_size(state.stats['compressed_size'])}")
        info(f"  用时: {elapsed:.1f}秒")
        return state
