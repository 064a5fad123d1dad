"""
Validate 命令实现

验证配置文件的命令。
"""

import json
from pathlib import Path

import typer
from rich.console import Console

from ...config import validate_config


console = Console()


def validate_command(
    config: str = typer.Option("shipkit.yaml", "--config", "-c", help="配置文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式的错误信息"),
) -> None:
    """验证配置文件

    示例:
        shipkit validate -c shipkit.yaml
        shipkit validate -c shipkit.yaml --json
    """
    config_path = Path(config)
    result = validate_config(config_path)

    if json_output:
        console.print_json(json.dumps({
            "file": str(config_path),
            "valid": result.is_valid,
            "errors": result.errors,
        }, ensure_ascii=False))
    elif result.is_valid:
        console.print(f"[green]✓ 配置文件验证通过[/green]: {config_path}")
    else:
        console.print(f"[red]✗ 配置文件验证失败[/red]: {config_path}")
        for message in result.errors:
            console.print(f"  • {message}", markup=False)

    if not result.is_valid:
        raise typer.Exit(1)
