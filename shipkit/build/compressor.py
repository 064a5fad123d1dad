"""
压缩器抽象接口和实现

提供统一的压缩接口，支持 Zip（upack 默认格式）和 Zstd 算法。
两种实现都输出可复现的字节流：条目按路径排序，时间戳和权限固定。
"""

import shutil
import zipfile
from abc import ABC, abstractmethod
from typing import BinaryIO, List, Optional, Protocol

import zstandard as zstd

from ..config.schema import CompressionAlgorithm
from ..errors import ShipkitError
from .collector import FileInfo

# 归档中统一使用的时间戳（zip 支持的最早时间）
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
FIXED_MTIME = 0
FILE_MODE = 0o644

_CHUNK_SIZE = 64 * 1024


class CompressionError(ShipkitError):
    """压缩相关错误"""
    pass


class ProgressCallback(Protocol):
    """进度回调协议"""

    def __call__(self, current: int, total: int, current_file: Optional[str] = None) -> None:
        ...


class Compressor(ABC):
    """压缩器抽象基类"""

    @abstractmethod
    def compress_files(
        self,
        files: List[FileInfo],
        output_stream: BinaryIO,
        progress_callback: Optional[ProgressCallback] = None
    ) -> int:
        """压缩文件到流

        Args:
            files: 要压缩的文件列表
            output_stream: 输出流
            progress_callback: 进度回调

        Returns:
            int: 写入的字节数

        Raises:
            CompressionError: 压缩失败
        """

    @abstractmethod
    def get_algorithm(self) -> CompressionAlgorithm:
        """获取压缩算法"""


def _ordered(files: List[FileInfo]) -> List[FileInfo]:
    return sorted(files, key=lambda f: f.archive_name)


class ZipCompressor(Compressor):
    """Zip 压缩器"""

    def __init__(self, level: int = 6):
        self.level = min(9, max(1, level))

    def get_algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.ZIP

    def compress_files(
        self,
        files: List[FileInfo],
        output_stream: BinaryIO,
        progress_callback: Optional[ProgressCallback] = None
    ) -> int:
        """使用 Zip 压缩文件"""
        ordered = _ordered(files)
        total_bytes = sum(f.size for f in ordered)
        processed_bytes = 0
        start = output_stream.tell()

        try:
            with zipfile.ZipFile(output_stream, 'w', zipfile.ZIP_DEFLATED) as zf:
                for file_info in ordered:
                    if progress_callback:
                        progress_callback(processed_bytes, total_bytes, file_info.archive_name)

                    zinfo = zipfile.ZipInfo(file_info.archive_name, date_time=FIXED_DATE_TIME)
                    zinfo.compress_type = zipfile.ZIP_DEFLATED
                    zinfo.create_system = 3
                    zinfo.external_attr = FILE_MODE << 16
                    zf.writestr(zinfo, file_info.path.read_bytes(), compresslevel=self.level)
                    processed_bytes += file_info.size
        except OSError as e:
            raise CompressionError(f"Zip compression failed: {e}") from e

        if progress_callback:
            progress_callback(total_bytes, total_bytes, None)
        return output_stream.tell() - start


class ZstdCompressor(Compressor):
    """Zstd 压缩器

    条目格式：[path_len:4][path:utf8][size:8][mtime:8][flags:1][data]，flags 恒为 0
    """

    def __init__(self, level: int = 10):
        self.level = level
        self._cctx = zstd.ZstdCompressor(level=level)

    def get_algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.ZSTD

    def compress_files(
        self,
        files: List[FileInfo],
        output_stream: BinaryIO,
        progress_callback: Optional[ProgressCallback] = None
    ) -> int:
        """使用 Zstd 压缩文件"""
        ordered = _ordered(files)
        total_bytes = sum(f.size for f in ordered)
        processed_bytes = 0
        start = output_stream.tell()

        try:
            with self._cctx.stream_writer(output_stream, closefd=False) as writer:
                for file_info in ordered:
                    if progress_callback:
                        progress_callback(processed_bytes, total_bytes, file_info.archive_name)

                    self._write_file_header(writer, file_info)
                    with open(file_info.path, 'rb') as f:
                        shutil.copyfileobj(f, writer, _CHUNK_SIZE)
                    processed_bytes += file_info.size
        except (OSError, zstd.ZstdError) as e:
            raise CompressionError(f"Zstd compression failed: {e}") from e

        if progress_callback:
            progress_callback(total_bytes, total_bytes, None)
        return output_stream.tell() - start

    def _write_file_header(self, writer: BinaryIO, file_info: FileInfo) -> None:
        path_bytes = file_info.archive_name.encode('utf-8')
        writer.write(len(path_bytes).to_bytes(4, 'little'))
        writer.write(path_bytes)
        writer.write(file_info.size.to_bytes(8, 'little'))
        writer.write(FIXED_MTIME.to_bytes(8, 'little'))
        writer.write(b'\x00')


class CompressorFactory:
    """压缩器工厂"""

    @staticmethod
    def create_compressor(algorithm: CompressionAlgorithm, level: int = 6) -> Compressor:
        """创建压缩器

        Raises:
            CompressionError: 不支持的算法
        """
        if algorithm == CompressionAlgorithm.ZIP:
            return ZipCompressor(level)
        if algorithm == CompressionAlgorithm.ZSTD:
            return ZstdCompressor(level)
        raise CompressionError(f"Unsupported compression algorithm: {algorithm}")

    @staticmethod
    def get_available_algorithms() -> List[CompressionAlgorithm]:
        """获取可用的压缩算法列表"""
        return [CompressionAlgorithm.ZIP, CompressionAlgorithm.ZSTD]
