"""
归档压缩步骤

把整个暂存区压缩为 {name}.{version}.{extension}。先写入临时文件，成功后再改名，
失败时不留下半成品归档。
"""

from pathlib import Path
from typing import Optional

from ...utils import ensure_directory, format_size, sanitize_filename
from ...utils.logging import info, success, debug, LogStage
from ...errors import BuildError
from ..collector import FileCollector
from ..compressor import CompressorFactory
from ..package_spec import AssemblyState, PackageSpec
from .build_step import BuildStep


def archive_filename(spec: PackageSpec) -> str:
    """归档文件名，版本号中的非法字符替换为 '-'"""
    return f"{spec.name}.{sanitize_filename(spec.version.full_version)}.{spec.extension}"


class CompressionStep(BuildStep):
    """归档压缩步骤"""

    def __init__(self):
        super().__init__("compress", "压缩部署包")

    def get_progress_range(self) -> tuple[int, int]:
        return (75, 100)

    def execute(self, state: AssemblyState) -> None:
        if state.manifest_path is None:
            raise BuildError("Package manifest was not written before compression")

        spec = state.spec
        start, end = self.get_progress_range()
        files = FileCollector().collect_files(state.staging.root)

        compressor = CompressorFactory.create_compressor(spec.algorithm, spec.level)
        archive_path = ensure_directory(state.output_dir) / archive_filename(spec)
        partial_path = archive_path.with_name(archive_path.name + ".partial")

        info(f"压缩部署包 - 算法: {compressor.get_algorithm().value}, 级别: {spec.level}", stage=LogStage.COMPRESS)

        def compress_progress(current: int, total: int, current_file: Optional[str] = None) -> None:
            if total > 0:
                progress = start + int(current / total * (end - start))
                state.report("压缩部署包", progress, f"压缩: {Path(current_file).name}" if current_file else "")

        try:
            with open(partial_path, 'wb') as output:
                compressed_size = compressor.compress_files(files, output, compress_progress)
            partial_path.replace(archive_path)
        finally:
            if partial_path.exists():
                partial_path.unlink()

        state.archive_path = archive_path
        state.stats['compressed_size'] = compressed_size

        state.report("压缩部署包", end, f"归档大小: {format_size(compressed_size)}")
        debug(f"归档条目数={len(files)}", stage=LogStage.COMPRESS)
        success(f"部署包: {archive_path} ({format_size(compressed_size)})", stage=LogStage.COMPRESS)
