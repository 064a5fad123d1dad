"""
分支分类

两个相互独立的分支变换：
- 发布判定：去掉远程前缀后的完整分支名与发布模式整串匹配，决定 publish 和发布名称；
- 上传规范化：再把 release/master/develop 的子路径去掉，只有这三个分支才会上传。
"""

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from ..config.schema import DEFAULT_PUBLISH_BRANCHES
from ..utils.logging import debug, info, LogStage

# 需要上传并登记发布的规范分支
CANONICAL_BRANCHES = ("release", "master", "develop")

_REMOTE_PREFIXES = ("refs/heads/", "refs/remotes/")
_ORIGIN_PREFIX = "origin/"


@dataclass(frozen=True)
class PublishDecision:
    """发布判定结果"""
    branch: str
    publish: bool
    release_name: str = ""


def strip_remote_prefix(branch: str) -> str:
    """去掉 refs/heads/、refs/remotes/ 以及 origin/ 前缀"""
    name = branch.strip()
    for prefix in _REMOTE_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix):]
            break
    if name.startswith(_ORIGIN_PREFIX):
        name = name[len(_ORIGIN_PREFIX):]
    return name


def canonical_branch(branch: str) -> str:
    """上传用的规范分支名

    release/2.0 -> release，origin/develop -> develop，其他分支只去掉远程前缀。
    """
    name = strip_remote_prefix(branch)
    head = name.split("/", 1)[0]
    if head in CANONICAL_BRANCHES:
        return head
    return name


def is_upload_branch(branch: str) -> bool:
    """分支规范化后是否恰好是 release/master/develop"""
    return canonical_branch(branch) in CANONICAL_BRANCHES


def build_publish_pattern(patterns: Sequence[str]) -> re.Pattern:
    """把模式列表合成一个整串匹配的正则"""
    return re.compile("|".join(f"(?:{p})" for p in patterns))


def classify_branch(
    branch: str,
    patterns: Optional[Sequence[str]] = None,
    release_name: Optional[str] = None,
    by_build_server: bool = True,
) -> PublishDecision:
    """判定当前分支是否允许发布

    Args:
        branch: 分支名（可带远程前缀）
        patterns: 发布模式列表，None 时使用默认模式
        release_name: 显式配置的发布名称
        by_build_server: 是否由构建服务器触发；开发者本地构建永远不发布

    Returns:
        PublishDecision: 判定结果
    """
    name = strip_remote_prefix(branch)
    explicit = release_name or ""

    if not by_build_server:
        debug("开发者构建，不参与发布判定", stage=LogStage.PUBLISH)
        return PublishDecision(branch=name, publish=False, release_name=explicit)

    if patterns is None:
        patterns = DEFAULT_PUBLISH_BRANCHES

    publish = bool(patterns) and build_publish_pattern(patterns).fullmatch(name) is not None
    if publish and not explicit:
        explicit = name

    info(f"分支 '{name}' 发布判定: publish={publish} release='{explicit}'", stage=LogStage.PUBLISH)
    return PublishDecision(branch=name, publish=publish, release_name=explicit)
