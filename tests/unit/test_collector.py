"""
文件收集器单元测试

测试文件收集、包含/排除规则、强制排除等核心功能。
"""

from pathlib import Path

import pytest

from shipkit.build.collector import FileCollector, FileInfo, PathFilter, match_pattern


def make_tree(root: Path, files):
    for name in files:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"content of {name}", encoding="utf-8")


class TestFileInfo:
    """FileInfo 测试"""

    def test_archive_name(self):
        """归档名使用正斜杠"""
        file_info = FileInfo(
            path=Path("/build/bin/sub/file.dll"),
            relative_path=Path("sub") / "file.dll",
            size=1024,
        )

        assert file_info.archive_name == "sub/file.dll"


class TestMatchPattern:
    """match_pattern 测试"""

    @pytest.mark.parametrize("path,pattern,expected", [
        ("a.dll", "*.dll", True),
        ("sub/b.dll", "*.dll", True),
        ("sub/b.DLL", "*.dll", False),
        ("sub/b.txt", "*.dll", False),
        ("sub", "sub/", True),
        ("sub/x.dll", "sub/", True),
        ("other/sub/x.dll", "sub/x.dll", True),
        ("temp", "temp", True),
        ("x/temp", "temp", True),
    ])
    def test_patterns(self, path, pattern, expected):
        assert match_pattern(path, pattern) is expected


class TestPathFilter:
    """PathFilter 测试"""

    def test_include(self):
        path_filter = PathFilter(include=["*.dll"])

        assert path_filter.accepts("a.dll")
        assert path_filter.accepts("sub/b.dll")
        assert not path_filter.accepts("a.txt")

    def test_default_include_everything(self):
        assert PathFilter().accepts("any/file.txt")

    def test_forced_excludes(self):
        """obj、.git、.hg 始终被排除"""
        path_filter = PathFilter(include=["*"])

        assert not path_filter.accepts("obj/a.dll")
        assert not path_filter.accepts("sub/.git/config")
        assert not path_filter.accepts(".hg/store")
        assert path_filter.accepts("object/a.dll")

    def test_exclude_ancestor(self):
        """上级目录被排除时其下所有文件都被排除"""
        path_filter = PathFilter(include=["*.dll"], exclude=["temp", "*.pdb"])

        assert not path_filter.accepts("temp/a.dll")
        assert not path_filter.accepts("x/temp/a.dll")
        assert not path_filter.accepts("a.pdb")
        assert path_filter.accepts("x/a.dll")

    def test_exclude_directory_pattern(self):
        path_filter = PathFilter(exclude=["sub/"])
        assert path_filter.is_excluded("sub/x.dll")
        assert not path_filter.is_excluded("subway/x.dll")

    def test_skip_paths_anchored(self):
        """skip_paths 只跳过根目录下的固定子树"""
        path_filter = PathFilter(skip_paths=["artifacts"])

        assert path_filter.is_excluded("artifacts")
        assert not path_filter.accepts("artifacts/App.1.2.3.upack")
        assert path_filter.accepts("lib/artifacts/a.dll")
        assert path_filter.accepts("artifacts2/a.dll")


class TestFileCollector:
    """FileCollector 测试"""

    def test_collect_sorted(self, tmp_path):
        """收集结果按相对路径排序"""
        make_tree(tmp_path, ["b.dll", "a.dll", "sub/c.dll", "sub/readme.txt"])

        files = FileCollector().collect_files(tmp_path, PathFilter(include=["*.dll"]))

        assert [f.archive_name for f in files] == ["a.dll", "b.dll", "sub/c.dll"]

    def test_prunes_excluded_directories(self, tmp_path):
        make_tree(tmp_path, ["a.dll", "obj/Debug/a.dll", ".git/HEAD", "lib/x/.hg/y.dll", "lib/x/z.dll"])

        files = FileCollector().collect_files(tmp_path, PathFilter())

        assert [f.archive_name for f in files] == ["a.dll", "lib/x/z.dll"]

    def test_no_filter_collects_everything(self, tmp_path):
        make_tree(tmp_path, ["obj/a", "b"])
        collector = FileCollector()

        files = collector.collect_files(tmp_path)

        assert [f.archive_name for f in files] == ["b", "obj/a"]
        assert collector.total_size == sum(f.size for f in files)

    def test_single_file(self, tmp_path):
        make_tree(tmp_path, ["app.exe"])
        files = FileCollector().collect_files(tmp_path / "app.exe")

        assert len(files) == 1
        assert files[0].archive_name == "app.exe"

    def test_missing_root(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileCollector().collect_files(tmp_path / "missing")
