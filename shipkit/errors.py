"""
错误分类

流水线各阶段共享的异常体系。所有异常都是致命的，向上传播给调用者。
"""

from typing import Optional


class ShipkitError(Exception):
    """shipkit 异常基类"""

    def __init__(self, message: str, config_path: Optional[str] = None):
        super().__init__(message)
        self.config_path = config_path


class BuildError(ShipkitError):
    """构建阶段的非预期错误"""
    pass


class InvalidVersion(ShipkitError):
    """版本号无法解析"""
    pass


class ConfigError(ShipkitError):
    """配置错误基类"""
    pass


class MissingConfiguration(ConfigError):
    """缺少必填配置项"""
    pass


class MissingVersion(MissingConfiguration):
    """既没有版本号也没有可用的回退来源"""
    pass


class MissingPath(ShipkitError):
    """请求打包的源路径不存在"""
    pass


class MissingPlatformDependency(ShipkitError):
    """平台目录缺失"""
    pass


class UploadFailed(ShipkitError):
    """归档上传失败"""
    pass


class ReleaseApiFailed(ShipkitError):
    """发布系统 API 调用失败"""
    pass


class InvalidBuildNumber(ShipkitError):
    """构建号无法用作预发布标识"""
    pass
