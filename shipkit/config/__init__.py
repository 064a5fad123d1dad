"""配置和 Schema 模块

提供 YAML 配置文件的加载、验证和保存功能。
"""

from .schema import PipelineConfig
from .loader import (
    ConfigLoader,
    ConfigValidationError,
    ValidationResult,
    load_config,
    validate_config,
    save_config,
    config_loader,
)
from ..errors import ConfigError, MissingConfiguration

__all__ = [
    # 主要类
    "PipelineConfig",
    "ConfigLoader",
    "ValidationResult",

    # 异常类
    "ConfigError",
    "ConfigValidationError",
    "MissingConfiguration",

    # 便捷函数
    "load_config",
    "validate_config",
    "save_config",

    # 单例
    "config_loader",
]
