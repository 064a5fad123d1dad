"""
暂存区

打包期间使用的临时目录。根目录名包含每次运行唯一的标记，退出时无条件删除，
包括出错和中断（KeyboardInterrupt）的情况。
"""

import shutil
import uuid
from pathlib import Path
from typing import Optional

from ..utils import get_temp_dir
from ..utils.logging import debug, warning, LogStage

PACKAGE_DIRNAME = "package"


class StagingArea:
    """暂存区上下文管理器

    用法::

        with StagingArea("App") as staging:
            target = staging.package_dir / "bin"
    """

    def __init__(self, name: str = "package", base_dir: Optional[Path] = None):
        self.name = name
        self.base_dir = base_dir
        self.token = uuid.uuid4().hex
        self._root: Optional[Path] = None

    @property
    def root(self) -> Path:
        if self._root is None:
            raise RuntimeError("StagingArea is not active")
        return self._root

    @property
    def package_dir(self) -> Path:
        return self.root / PACKAGE_DIRNAME

    def __enter__(self) -> 'StagingArea':
        self._root = get_temp_dir(prefix=f"shipkit_{self.name}_{self.token}_", base_dir=self.base_dir)
        try:
            self.package_dir.mkdir()
        except BaseException:
            self.cleanup()
            raise
        debug(f"创建暂存区: {self._root}", stage=LogStage.STAGE)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        """删除暂存区，可重复调用

        删除失败只记录警告，不覆盖正在传播的异常。
        """
        if self._root is None:
            return
        root, self._root = self._root, None
        try:
            shutil.rmtree(root)
        except OSError as e:
            warning(f"删除暂存区失败: {root}: {e}", stage=LogStage.STAGE)
        else:
            debug(f"已删除暂存区: {root}", stage=LogStage.STAGE)
