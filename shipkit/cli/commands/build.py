"""
Build 命令实现

执行完整流水线：解析版本、组装部署包、按条件上传并登记发布。
"""

import traceback
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console

from ...build.build_context import Credential, ServerConnection, is_build_server
from ...build.builder import Builder
from ...config import load_config, ConfigError, ConfigValidationError
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()


def parse_credentials(values: List[str]) -> Dict[str, Credential]:
    """解析 ID=USER:PASSWORD 或 ID=API_KEY 形式的凭据参数"""
    credentials: Dict[str, Credential] = {}
    for value in values:
        credential_id, sep, secret = value.partition("=")
        if not sep or not credential_id.strip():
            raise typer.BadParameter(f"凭据格式应为 ID=USER:PASSWORD 或 ID=API_KEY: {value}")
        username, colon, password = secret.partition(":")
        if colon:
            credentials[credential_id.strip()] = Credential(username=username, password=password)
        else:
            credentials[credential_id.strip()] = Credential(password=secret)
    return credentials


def build_command(
    config: str = typer.Option("shipkit.yaml", "--config", "-c", help="配置文件路径"),
    branch: str = typer.Option(..., "--branch", "-b", envvar="SHIPKIT_BRANCH", help="当前分支"),
    build_root: Optional[str] = typer.Option(None, "--build-root", help="构建根目录，默认为配置文件所在目录"),
    environment: Optional[str] = typer.Option(None, "--environment", "-e", help="环境名称"),
    server_url: Optional[str] = typer.Option(None, "--server-url", envvar="SHIPKIT_SERVER_URL", help="构建服务器地址"),
    build_number: Optional[str] = typer.Option(None, "--build-number", envvar="SHIPKIT_BUILD_NUMBER", help="构建号"),
    credential: List[str] = typer.Option([], "--credential", help="凭据 ID=USER:PASSWORD，可重复"),
    build_server: Optional[bool] = typer.Option(
        None, "--build-server/--developer", help="指定触发方，默认根据 CI 环境变量判断"
    ),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """构建部署包

    示例:
        shipkit build -c shipkit.yaml -b develop
        shipkit build -b release/2.0 --build-server --server-url https://ci --build-number 42 --credential Feed=ci:secret
    """
    set_log_level(OutputLevel.DEBUG if verbose else OutputLevel.INFO)
    if log_file:
        set_log_file(log_file)

    config_path = Path(config)
    root = Path(build_root) if build_root else config_path.resolve().parent

    server = None
    if server_url or build_number:
        if not (server_url and build_number):
            console.print("[red]--server-url 和 --build-number 必须同时提供[/red]")
            raise typer.Exit(1)
        server = ServerConnection(url=server_url, build_number=build_number)

    attribution = is_build_server if build_server is None else (lambda: build_server)

    try:
        console.print(f"[cyan]正在加载配置文件[/cyan]: {config_path}")
        config_obj = load_config(config_path)
        credentials = parse_credentials(credential)
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors(), markup=False)
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {e}", markup=False)
        raise typer.Exit(1)

    builder = Builder(attribution=attribution)

    def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
        if verbose and total > 0:
            console.print(f"[blue]{stage}[/blue]: {message} ({current / total * 100:.0f}%)", markup=False)

    try:
        result = builder.build(
            config_obj,
            branch,
            root,
            environment=environment,
            server=server,
            credentials=credentials,
            progress_callback=progress_callback,
        )
    except Exception as e:
        console.print(f"[red]✗ 构建过程中发生意外错误[/red]: {e}")
        if log_file:
            console.print(f"[yellow]详细错误信息:[/yellow]\n{traceback.format_exc()}")
        raise typer.Exit(1)

    if not result.success:
        console.print(f"[red]✗ 构建失败[/red]: {result.error}")
        raise typer.Exit(1)

    console.print(f"[green]✓ 部署包[/green]: {result.archive_path}")
    console.print(f"[blue]版本[/blue]: {result.version.full_version}")
    console.print(f"[blue]发布[/blue]: {'是' if result.publish else '否'} {result.release_name}")
    if result.outcome is not None:
        console.print(f"[blue]发布包[/blue]: {result.outcome.release.number} #{result.outcome.package.number}")
