"""
清单写入步骤
"""

from ...utils.logging import info, LogStage
from ..manifest import PackageManifest
from ..package_spec import AssemblyState
from .build_step import BuildStep


class ManifestStep(BuildStep):
    """清单写入步骤"""

    def __init__(self):
        super().__init__("manifest", "写入包清单")

    def get_progress_range(self) -> tuple[int, int]:
        return (70, 75)

    def execute(self, state: AssemblyState) -> None:
        spec = state.spec
        manifest = PackageManifest(
            name=spec.name,
            version=spec.version.full_version,
            title=spec.title or spec.name,
            description=spec.description,
        )
        state.manifest_path = manifest.write(state.staging.root)
        state.report("写入包清单", self.get_progress_range()[1], state.manifest_path.name)
        info(f"包清单: {manifest.name} {manifest.version}", stage=LogStage.MANIFEST)
