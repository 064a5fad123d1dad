"""
shipkit CLI 主入口

提供命令行接口，支持 build/version/validate/example 等命令。
"""

import sys
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..utils import configure_logging, OutputLevel
from .commands import build, validate, version


# 创建主应用
app = typer.Typer(
    name="shipkit",
    help="shipkit - 版本解析、部署包组装与发布协调",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"shipkit v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    show_version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="启用详细输出"),
) -> None:
    """shipkit - 版本解析、部署包组装与发布协调

    使用 --help 查看可用命令的详细信息。
    """
    configure_logging(level=OutputLevel.DEBUG if verbose else OutputLevel.INFO)


# 注册子命令
app.command("build", help="构建部署包")(build.build_command)
app.command("version", help="显示解析后的版本")(version.version_command)
app.command("validate", help="验证配置文件")(validate.validate_command)


@app.command("info")
def info_command() -> None:
    """显示系统信息"""
    from ..build.compressor import CompressorFactory

    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("版本", style="green")
    table.add_row("shipkit", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    console.print(table)

    algorithms = ", ".join(algo.value for algo in CompressorFactory.get_available_algorithms())
    console.print(f"支持的压缩算法: [green]{algorithms}[/green]")


@app.command("example")
def example_command(
    output: str = typer.Option("shipkit.yaml", "--output", "-o", help="输出配置文件路径")
) -> None:
    """生成示例配置文件"""
    from ..config import save_config, ConfigError
    from ..config.schema import PackageModel, PipelineConfig, PrereleaseRuleModel, SourceModel

    config = PipelineConfig(
        version="1.0.0",
        prerelease=[PrereleaseRuleModel(pattern="^feature/", label="alpha")],
        package=PackageModel(
            name="App",
            description="示例部署包",
            sources=[SourceModel(path="bin", include=["*.dll", "*.exe", "*.config"])],
            exclude=["*.pdb"],
        ),
    )

    try:
        save_config(config, output)
    except ConfigError as e:
        console.print(f"[red]生成示例配置失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例配置文件已生成: [green]{output}[/green]")
    console.print("请根据需要修改配置文件，然后运行:")
    console.print(f"  [cyan]shipkit build -c {output} -b develop[/cyan]")


if __name__ == "__main__":
    app()
