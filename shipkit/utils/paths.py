"""
路径工具

提供路径处理相关的工具函数。
"""

import re
import tempfile
from pathlib import Path
from typing import Optional, Union

# 在 Windows 或 POSIX 上不能出现在文件名中的字符（含控制字符）
_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def ensure_directory(path: Union[str, Path]) -> Path:
    """确保目录存在（已存在时不报错）

    Args:
        path: 目录路径

    Returns:
        Path: 目录路径
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_temp_dir(prefix: str = "shipkit_", base_dir: Optional[Path] = None) -> Path:
    """创建唯一的临时目录

    Args:
        prefix: 目录前缀
        base_dir: 临时目录的父目录，默认使用系统临时目录

    Returns:
        Path: 新建的临时目录路径
    """
    return Path(tempfile.mkdtemp(prefix=prefix, dir=str(base_dir) if base_dir else None))


def sanitize_filename(name: str, replacement: str = "-") -> str:
    """把文件名中的非法字符替换为 replacement"""
    return _ILLEGAL_FILENAME_CHARS.sub(replacement, name)


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"
