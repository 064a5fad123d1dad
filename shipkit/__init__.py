"""
shipkit - 构建流水线引擎

解析版本号、判定发布资格、组装可复现的部署包，并协调上传与发布登记。
"""

__version__ = "0.1.0"
__author__ = "Project Team"
__license__ = "MIT"

from .config.schema import PipelineConfig
from .build.builder import Builder, BuildResult

__all__ = ["PipelineConfig", "Builder", "BuildResult", "__version__"]
