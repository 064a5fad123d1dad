"""组装步骤"""

from .build_step import BuildStep
from .source_check_step import SourceCheckStep
from .platform_mirror_step import PlatformMirrorStep
from .source_mirror_step import SourceMirrorStep
from .manifest_step import ManifestStep
from .compression_step import CompressionStep

__all__ = [
    "BuildStep",
    "SourceCheckStep",
    "PlatformMirrorStep",
    "SourceMirrorStep",
    "ManifestStep",
    "CompressionStep",
]
