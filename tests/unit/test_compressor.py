"""
压缩器单元测试

测试 Zip/Zstd 压缩器的可复现输出、条目格式和工厂方法。
"""

import io
import os
import zipfile
from pathlib import Path

import pytest

from shipkit.build.collector import FileCollector
from shipkit.build.compressor import (
    FIXED_DATE_TIME,
    CompressionError,
    CompressorFactory,
    ZipCompressor,
    ZstdCompressor,
)
from shipkit.config.schema import CompressionAlgorithm

from archives import read_zstd_entries


@pytest.fixture
def source_dir(tmp_path):
    root = tmp_path / "src"
    (root / "sub").mkdir(parents=True)
    (root / "b.txt").write_text("second file\n" * 50, encoding="utf-8")
    (root / "a.txt").write_text("first file\n" * 50, encoding="utf-8")
    (root / "sub" / "c.bin").write_bytes(bytes(range(256)) * 4)
    return root


def compress(compressor, root: Path) -> bytes:
    files = FileCollector().collect_files(root)
    return compress_list(compressor, files)


def compress_list(compressor, files) -> bytes:
    buffer = io.BytesIO()
    compressor.compress_files(files, buffer)
    return buffer.getvalue()


class TestZipCompressor:
    """ZipCompressor 测试"""

    def test_entries_sorted_with_fixed_metadata(self, source_dir):
        data = compress(ZipCompressor(), source_dir)

        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            infos = zf.infolist()
            assert [i.filename for i in infos] == ["a.txt", "b.txt", "sub/c.bin"]
            assert all(i.date_time == FIXED_DATE_TIME for i in infos)
            assert all(i.external_attr >> 16 == 0o644 for i in infos)
            assert zf.read("sub/c.bin") == (source_dir / "sub" / "c.bin").read_bytes()

    def test_reproducible(self, source_dir):
        """相同内容在不同时间压缩得到相同字节"""
        first = compress(ZipCompressor(), source_dir)
        for path in source_dir.rglob("*.txt"):
            os.utime(path, (1_700_000_000, 1_700_000_000))
        second = compress(ZipCompressor(), source_dir)

        assert first == second

    def test_progress_callback(self, source_dir):
        calls = []
        files = FileCollector().collect_files(source_dir)
        ZipCompressor().compress_files(files, io.BytesIO(), lambda current, total, name=None: calls.append(name))

        assert calls[:3] == ["a.txt", "b.txt", "sub/c.bin"]
        assert calls[-1] is None

    def test_empty_file_list(self):
        data = compress_list(ZipCompressor(), [])

        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.namelist() == []

    def test_unreadable_file(self, source_dir):
        """源文件读取失败时报告 CompressionError"""
        files = FileCollector().collect_files(source_dir)
        (source_dir / "a.txt").unlink()

        with pytest.raises(CompressionError, match="Zip compression failed"):
            ZipCompressor().compress_files(files, io.BytesIO())


class TestZstdCompressor:
    """ZstdCompressor 测试"""

    def test_reproducible(self, source_dir):
        first = compress(ZstdCompressor(level=3), source_dir)
        os.utime(source_dir / "a.txt", (1_700_000_000, 1_700_000_000))
        second = compress(ZstdCompressor(level=3), source_dir)

        assert first == second

    def test_entries(self, source_dir):
        """条目按路径排序，内容完整"""
        entries = read_zstd_entries(compress(ZstdCompressor(level=3), source_dir))

        assert list(entries) == ["a.txt", "b.txt", "sub/c.bin"]
        assert entries["a.txt"] == (source_dir / "a.txt").read_bytes()
        assert entries["sub/c.bin"] == (source_dir / "sub" / "c.bin").read_bytes()


class TestCompressorFactory:
    """CompressorFactory 测试"""

    def test_create(self):
        zip_compressor = CompressorFactory.create_compressor(CompressionAlgorithm.ZIP, 12)
        assert isinstance(zip_compressor, ZipCompressor)
        assert zip_compressor.level == 9

        zstd_compressor = CompressorFactory.create_compressor(CompressionAlgorithm.ZSTD, 12)
        assert isinstance(zstd_compressor, ZstdCompressor)
        assert zstd_compressor.get_algorithm() == CompressionAlgorithm.ZSTD

    def test_unsupported(self):
        with pytest.raises(CompressionError):
            CompressorFactory.create_compressor("rar")

    def test_available(self):
        assert CompressorFactory.get_available_algorithms() == [CompressionAlgorithm.ZIP, CompressionAlgorithm.ZSTD]
