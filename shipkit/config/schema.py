"""
配置 Schema 定义

使用 Pydantic 定义严格的流水线配置模型。必填项不可省略，其余字段都有明确的默认值，
配置只在加载时校验一次，消费方不再做零散的键检查。
"""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# 默认允许发布的分支模式（整串匹配）
DEFAULT_PUBLISH_BRANCHES = ["develop", "release", "release/.*", "master"]

# 平台目录中默认不打包的组件子目录
DEFAULT_PLATFORM_EXCLUDED_COMPONENTS = ["docs", "samples", "sdk"]

DEFAULT_SETUP_DOCS = "https://shipkit.readthedocs.io/en/latest/setup.html#platform"


class CompressionAlgorithm(str, Enum):
    """压缩算法枚举"""
    ZIP = "zip"
    ZSTD = "zstd"


class PrereleaseRuleModel(BaseModel):
    """预发布规则：分支匹配 pattern 时使用 label 作为预发布标签"""
    pattern: str = Field(..., description="分支名正则表达式", min_length=1)
    label: str = Field(..., description="预发布标签", min_length=1)

    @field_validator('pattern')
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"无效的正则表达式 '{v}': {e}")
        return v

    @field_validator('label')
    @classmethod
    def validate_label(cls, v: str) -> str:
        if not re.fullmatch(r'[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*', v):
            raise ValueError(f"预发布标签只能包含字母、数字、'-' 和 '.': {v}")
        return v


class PublishModel(BaseModel):
    """发布判定配置"""
    branches: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PUBLISH_BRANCHES),
        description="允许发布的分支模式（正则，整串匹配）"
    )
    release_name: Optional[str] = Field(None, description="显式指定的发布名称")

    @field_validator('branches')
    @classmethod
    def validate_branches(cls, v: List[str]) -> List[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"无效的分支模式 '{pattern}': {e}")
        return v


class SourceModel(BaseModel):
    """打包源路径"""
    path: str = Field(..., description="源路径（相对于构建根目录）", min_length=1)
    include: List[str] = Field(default_factory=lambda: ["*"], description="包含模式列表", min_length=1)
    target: Optional[str] = Field(None, description="包内目标目录，默认与 path 相同")

    @field_validator('path', mode='before')
    @classmethod
    def coerce_path(cls, v: Any) -> Any:
        if isinstance(v, Path):
            return str(v)
        return v

    @field_validator('target')
    @classmethod
    def validate_target(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        target = Path(v)
        if target.is_absolute() or ".." in target.parts:
            raise ValueError(f"目标目录必须是包内相对路径: {v}")
        return v


class PlatformModel(BaseModel):
    """平台子树配置"""
    path: str = Field(..., description="平台目录位置", min_length=1)
    target: Optional[str] = Field(None, description="包内目标目录，默认使用平台目录名")
    exclude_components: List[str] = Field(
        default_factory=lambda: list(DEFAULT_PLATFORM_EXCLUDED_COMPONENTS),
        description="不打包的组件子目录"
    )
    setup_docs: str = Field(DEFAULT_SETUP_DOCS, description="平台安装文档链接")


class PackageModel(BaseModel):
    """部署包配置"""
    name: str = Field(..., description="包名称", min_length=1, max_length=100)
    title: Optional[str] = Field(None, description="包标题，默认与名称相同")
    description: str = Field("", description="包描述")
    sources: List[SourceModel] = Field(..., description="源路径列表", min_length=1)
    exclude: List[str] = Field(default_factory=list, description="排除模式列表")
    platform: Optional[PlatformModel] = Field(None, description="平台子树")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not re.fullmatch(r'[A-Za-z0-9._-]+', v):
            raise ValueError(f"包名称只能包含字母、数字、'.'、'_' 和 '-': {v}")
        return v


class CompressionModel(BaseModel):
    """压缩配置"""
    algo: CompressionAlgorithm = Field(CompressionAlgorithm.ZIP, description="压缩算法")
    level: int = Field(6, description="压缩级别", ge=1, le=22)
    extension: str = Field("upack", description="归档扩展名", min_length=1)

    @model_validator(mode='after')
    def validate_compression_level(self) -> 'CompressionModel':
        """验证压缩级别对算法的适用性"""
        if self.algo == CompressionAlgorithm.ZIP and not 1 <= self.level <= 9:
            raise ValueError("Zip 压缩级别必须在 1-9 之间")
        return self


class UploadModel(BaseModel):
    """归档上传配置"""
    endpoint: str = Field(..., description="上传地址（PUT）", min_length=1)
    credential_id: str = Field(..., description="上传凭据标识", min_length=1)
    timeout: float = Field(300.0, description="超时时间（秒）", gt=0)


class ReleaseModel(BaseModel):
    """发布系统配置"""
    api_url: str = Field(..., description="发布系统地址", min_length=1)
    application: str = Field(..., description="应用名称", min_length=1)
    credential_id: str = Field(..., description="API 凭据标识", min_length=1)
    package_variable: str = Field("PackageVersion", description="绑定完整版本号的包变量名")
    timeout: float = Field(60.0, description="超时时间（秒）", gt=0)


class PipelineConfig(BaseModel):
    """流水线主配置模型

    整个配置文件的根模型。
    """

    version: Optional[str] = Field(None, description="版本号（SemVer）")
    version_file: str = Field("VERSION", description="未配置 version 时读取的版本文件")
    environment: Optional[str] = Field(None, description="环境名称")
    prerelease: List[PrereleaseRuleModel] = Field(default_factory=list, description="预发布规则（按顺序，后匹配者优先）")
    publish: PublishModel = Field(default_factory=PublishModel, description="发布判定")
    output_dir: str = Field("artifacts", description="输出目录（相对于构建根目录）")
    package: PackageModel = Field(..., description="部署包")
    compression: CompressionModel = Field(default_factory=CompressionModel, description="压缩配置")
    upload: Optional[UploadModel] = Field(None, description="归档上传")
    release: Optional[ReleaseModel] = Field(None, description="发布系统")

    model_config = {
        "extra": "forbid",
        "str_strip_whitespace": True,
    }

    @field_validator('version', mode='before')
    @classmethod
    def coerce_version(cls, v: Any) -> Any:
        """YAML 可能把版本号解析成日期或数字，统一转为字符串"""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (date, datetime, int, float)):
            return str(v)
        return v

    @field_validator('prerelease', mode='before')
    @classmethod
    def coerce_prerelease(cls, v: Any) -> Any:
        """支持 {pattern: label} 映射写法，保持声明顺序"""
        if isinstance(v, dict):
            return [{'pattern': k, 'label': label} for k, label in v.items()]
        return v

    @model_validator(mode='after')
    def validate_release_section(self) -> 'PipelineConfig':
        if self.upload is not None and self.release is None:
            raise ValueError("配置了 upload 时必须同时配置 release")
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PipelineConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """转换为可写入 YAML 的字典"""
        return self.model_dump(mode='json', exclude_none=True)

    def get_title(self) -> str:
        """获取包标题"""
        return self.package.title or self.package.name
