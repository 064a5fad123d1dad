"""
Version 命令实现

只解析版本和发布判定，不组装部署包。
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ...build.branch import canonical_branch, classify_branch, is_upload_branch
from ...build.build_context import is_build_server
from ...build.version import resolve_version
from ...config import load_config, ConfigError
from ...errors import InvalidBuildNumber, InvalidVersion


console = Console()


def version_command(
    config: str = typer.Option("shipkit.yaml", "--config", "-c", help="配置文件路径"),
    branch: str = typer.Option(..., "--branch", "-b", envvar="SHIPKIT_BRANCH", help="当前分支"),
    build_number: str = typer.Option("0", "--build-number", envvar="SHIPKIT_BUILD_NUMBER", help="构建号"),
    build_server: Optional[bool] = typer.Option(None, "--build-server/--developer", help="指定触发方"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON"),
) -> None:
    """显示解析后的版本和发布判定"""
    config_path = Path(config)
    by_build_server = is_build_server() if build_server is None else build_server

    try:
        config_obj = load_config(config_path)
        version = resolve_version(
            config_obj.version,
            branch,
            rules=[(rule.pattern, rule.label) for rule in config_obj.prerelease],
            build_id=build_number,
            fallback_file=config_path.resolve().parent / config_obj.version_file,
        )
    except (ConfigError, InvalidVersion, InvalidBuildNumber) as e:
        console.print(f"[red]错误[/red]: {e}", markup=False)
        raise typer.Exit(1)

    decision = classify_branch(
        branch,
        patterns=config_obj.publish.branches,
        release_name=config_obj.publish.release_name,
        by_build_server=by_build_server,
    )

    data = {
        **version.to_dict(),
        'publish': decision.publish,
        'release_name': decision.release_name,
        'upload_branch': canonical_branch(branch) if is_upload_branch(branch) else None,
    }

    if json_output:
        console.print_json(json.dumps(data))
        return

    table = Table(title="版本信息")
    table.add_column("项目", style="cyan")
    table.add_column("值", style="green")
    for key, value in data.items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)
