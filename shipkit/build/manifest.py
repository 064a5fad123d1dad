"""
包清单

在暂存区根目录写入 upack.json（name、version、title、description）。
清单总是被打包，不参与过滤。
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

MANIFEST_FILENAME = "upack.json"


@dataclass(frozen=True)
class PackageManifest:
    """包清单"""
    name: str
    version: str
    title: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'version': self.version,
            'title': self.title,
            'description': self.description,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2) + "\n"

    def write(self, directory: Path) -> Path:
        """写入 directory/upack.json，返回文件路径"""
        path = Path(directory) / MANIFEST_FILENAME
        # 固定换行符，保证各平台输出一致
        path.write_bytes(self.to_json().encode('utf-8'))
        return path

    @classmethod
    def read(cls, path: Path) -> 'PackageManifest':
        data = json.loads(Path(path).read_text(encoding='utf-8'))
        return cls(
            name=data['name'],
            version=data['version'],
            title=data.get('title', data['name']),
            description=data.get('description', ''),
        )
