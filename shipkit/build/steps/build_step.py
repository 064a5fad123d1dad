"""
构建步骤基类模块

定义组装步骤的抽象接口。
"""

from abc import ABC, abstractmethod

from ..package_spec import AssemblyState


class BuildStep(ABC):
    """构建步骤抽象基类"""

    # 为 False 的步骤在创建暂存区之前执行，不得写任何文件
    requires_staging = True

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    @abstractmethod
    def execute(self, state: AssemblyState) -> None:
        """执行构建步骤"""

    @abstractmethod
    def get_progress_range(self) -> tuple[int, int]:
        """获取此步骤的进度范围 (start_percent, end_percent)"""
