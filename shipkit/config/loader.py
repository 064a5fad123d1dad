"""
配置加载器

负责从 YAML 文件加载配置并进行验证。缺少必填项时报告 MissingConfiguration，
其余校验错误汇总为 ConfigValidationError。
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..errors import ConfigError, MissingConfiguration
from .schema import PipelineConfig


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """格式化错误信息为人类可读的格式"""
        formatted = []
        for error in self.errors:
            loc = format_location(error.get('loc', ()))
            msg = error.get('msg', '未知错误')
            input_val = error.get('input', '')

            if loc:
                formatted.append(f"字段 '{loc}': {msg}")
                if input_val not in ('', None) and not isinstance(input_val, dict):
                    formatted.append(f"  输入值: {input_val}")
            else:
                formatted.append(f"根级别: {msg}")

        return "\n".join(formatted)

    def format_errors_json(self) -> str:
        """格式化错误信息为 JSON 格式"""
        return json.dumps(self.errors, ensure_ascii=False, indent=2, default=str)


@dataclass
class ValidationResult:
    """配置验证结果"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    config: Optional[PipelineConfig] = None


def format_location(loc) -> str:
    """把 pydantic 的错误位置转为 'package -> sources -> 0 -> path' 形式"""
    return " -> ".join(str(item) for item in loc)


class ConfigLoader:
    """配置加载器"""

    def __init__(self):
        self.yaml = YAML()
        self.yaml.preserve_quotes = True
        self.yaml.width = 4096

    def load_from_file(self, config_path: Union[str, Path]) -> PipelineConfig:
        """从文件加载配置

        Args:
            config_path: 配置文件路径

        Returns:
            PipelineConfig: 验证后的配置实例

        Raises:
            ConfigError: 配置加载或验证错误
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        if not config_path.is_file():
            raise ConfigError(f"Configuration path is not a file: {config_path}")

        if config_path.suffix.lower() not in ['.yaml', '.yml']:
            raise ConfigError(f"Configuration file must be .yaml or .yml: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                raw_data = self.yaml.load(f)
        except YAMLError as e:
            raise ConfigError(f"YAML parse error in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}") from e

        if raw_data is None:
            raise ConfigError(f"Configuration file is empty: {config_path}")

        if not isinstance(raw_data, dict):
            raise ConfigError("Configuration root must be a mapping")

        return self.load_from_dict(_to_plain(raw_data))

    def load_from_dict(self, data: Dict[str, Any]) -> PipelineConfig:
        """从字典加载配置

        Args:
            data: 配置数据字典

        Returns:
            PipelineConfig: 验证后的配置实例

        Raises:
            MissingConfiguration: 缺少必填项
            ConfigValidationError: 其他校验错误
        """
        try:
            return PipelineConfig.from_dict(data)
        except ValidationError as e:
            errors = list(e.errors())
            missing = [error for error in errors if error.get('type') == 'missing']
            if missing:
                loc = format_location(missing[0].get('loc', ()))
                raise MissingConfiguration(
                    f"Configuration property '{loc}' is mandatory",
                    config_path=loc,
                ) from e
            raise ConfigValidationError("Configuration validation failed", errors) from e

    def save_to_file(self, config: PipelineConfig, output_path: Union[str, Path]) -> None:
        """保存配置到文件"""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                self.yaml.dump(config.to_dict(), f)
        except OSError as e:
            raise ConfigError(f"Cannot write configuration file {output_path}: {e}") from e


def _to_plain(value: Any) -> Any:
    """把 ruamel 的 CommentedMap/CommentedSeq 转成普通 dict/list，保持键顺序"""
    if isinstance(value, dict):
        return {str(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_plain(item) for item in value]
    if isinstance(value, str):
        return str(value)
    return value


# 全局加载器实例
config_loader = ConfigLoader()


def load_config(config_path: Union[str, Path]) -> PipelineConfig:
    """便捷函数：加载配置文件"""
    return config_loader.load_from_file(config_path)


def validate_config(config_or_path: Union[PipelineConfig, str, Path]) -> ValidationResult:
    """验证配置并返回详细结果"""
    if isinstance(config_or_path, PipelineConfig):
        return ValidationResult(is_valid=True, config=config_or_path)

    try:
        config = load_config(config_or_path)
    except ConfigValidationError as e:
        return ValidationResult(is_valid=False, errors=e.format_errors().splitlines())
    except ConfigError as e:
        return ValidationResult(is_valid=False, errors=[str(e)])

    return ValidationResult(is_valid=True, config=config)


def save_config(config: PipelineConfig, output_path: Union[str, Path]) -> None:
    """便捷函数：保存配置文件"""
    config_loader.save_to_file(config, output_path)
