"""
目录镜像单元测试

测试破坏性同步、增量复制和平台过滤器。
"""

import os
from pathlib import Path

from shipkit.build.collector import PathFilter
from shipkit.build.mirror import PlatformFilter, mirror_tree


def make_tree(root: Path, files):
    for name in files:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"content of {name}", encoding="utf-8")


def tree_files(root: Path):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


class TestMirrorTree:
    """mirror_tree 测试"""

    def test_copies_selected_files(self, tmp_path):
        source = tmp_path / "src"
        make_tree(source, ["a.dll", "a.txt", "sub/b.dll", "obj/c.dll"])
        destination = tmp_path / "dst"

        result = mirror_tree(source, destination, PathFilter(include=["*.dll"]))

        assert tree_files(destination) == ["a.dll", "sub/b.dll"]
        assert sorted(result.copied) == ["a.dll", "sub/b.dll"]
        assert result.file_count == 2
        assert (destination / "sub" / "b.dll").read_bytes() == (source / "sub" / "b.dll").read_bytes()

    def test_second_run_copies_nothing(self, tmp_path):
        """未变化的文件不重复复制"""
        source = tmp_path / "src"
        make_tree(source, ["a.dll", "sub/b.dll"])
        destination = tmp_path / "dst"

        mirror_tree(source, destination)
        result = mirror_tree(source, destination)

        assert result.copied == []
        assert sorted(result.unchanged) == ["a.dll", "sub/b.dll"]
        assert result.removed == []

    def test_changed_file_copied(self, tmp_path):
        source = tmp_path / "src"
        make_tree(source, ["a.dll"])
        destination = tmp_path / "dst"
        mirror_tree(source, destination)

        (source / "a.dll").write_text("a much longer replacement content", encoding="utf-8")
        result = mirror_tree(source, destination)

        assert result.copied == ["a.dll"]
        assert (destination / "a.dll").read_text(encoding="utf-8") == "a much longer replacement content"

    def test_same_size_edit_within_second_copied(self, tmp_path):
        """大小不变且在同一秒内修改的文件也会重新复制"""
        source = tmp_path / "src"
        make_tree(source, ["a.dll"])
        destination = tmp_path / "dst"
        base_ns = 1_600_000_000 * 10**9
        os.utime(source / "a.dll", ns=(base_ns, base_ns + 100_000_000))
        mirror_tree(source, destination)

        (source / "a.dll").write_text("CONTENT OF A.DLL", encoding="utf-8")
        os.utime(source / "a.dll", ns=(base_ns, base_ns + 900_000_000))
        result = mirror_tree(source, destination)

        assert result.copied == ["a.dll"]
        assert (destination / "a.dll").read_text(encoding="utf-8") == "CONTENT OF A.DLL"

    def test_removes_stale_entries(self, tmp_path):
        """目标中多余的文件和目录被删除"""
        source = tmp_path / "src"
        make_tree(source, ["a.dll"])
        destination = tmp_path / "dst"
        make_tree(destination, ["old.dll", "gone/deep/x.dll"])

        result = mirror_tree(source, destination)

        assert tree_files(destination) == ["a.dll"]
        assert not (destination / "gone").exists()
        assert "old.dll" in result.removed

    def test_removes_files_no_longer_selected(self, tmp_path):
        source = tmp_path / "src"
        make_tree(source, ["a.dll", "docs/readme.txt"])
        destination = tmp_path / "dst"

        mirror_tree(source, destination)
        mirror_tree(source, destination, PathFilter(include=["*.dll"]))

        assert tree_files(destination) == ["a.dll"]
        assert not (destination / "docs").exists()

    def test_mtime_preserved(self, tmp_path):
        source = tmp_path / "src"
        make_tree(source, ["a.dll"])
        os.utime(source / "a.dll", (1_600_000_000, 1_600_000_000))

        mirror_tree(source, tmp_path / "dst")

        assert int((tmp_path / "dst" / "a.dll").stat().st_mtime) == 1_600_000_000


class TestPlatformFilter:
    """PlatformFilter 测试"""

    def test_filter_rules(self):
        path_filter = PlatformFilter(["docs", "sdk"])

        assert not path_filter.accepts("readme.txt")
        assert not path_filter.accepts("docs/index.html")
        assert not path_filter.accepts("sdk/include/a.h")
        assert not path_filter.accepts("bin/obj/a.dll")
        assert path_filter.accepts("bin/core.dll")
        assert path_filter.accepts("lib/docs/notes.txt")

    def test_mirror_platform(self, tmp_path):
        """平台根目录下的文件和组件目录不被镜像"""
        platform = tmp_path / "platform"
        make_tree(platform, ["license.txt", "bin/core.dll", "docs/index.html", "samples/a.cs", "lib/x/y.dll"])
        destination = tmp_path / "dst"

        mirror_tree(platform, destination, PlatformFilter(["docs", "samples", "sdk"]))

        assert tree_files(destination) == ["bin/core.dll", "lib/x/y.dll"]
