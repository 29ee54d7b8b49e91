"""chrooter 命令行接口

用法: chrooter [--config PATH] [--dry-run] EXECUTABLE CHROOT
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from chrooter import __version__
from chrooter.core.config import get_config, init_config
from chrooter.core.exceptions import ChrooterError
from chrooter.core.orchestrator import Orchestrator
from chrooter.utils.logger import setup_logging


def _echo_progress(source: Path, destination: Path) -> None:
    click.echo(f"Copying {source} -> {destination}")


@click.command()
@click.version_option(version=__version__)
@click.argument("executable")
@click.argument("chroot")
@click.option("--config", "-c", "config_path", default=None,
              type=click.Path(exists=True, dir_okay=False), help="配置文件路径")
@click.option("--dry-run", is_flag=True, help="只显示计划，不复制文件")
def main(executable: str, chroot: str, config_path: str | None, dry_run: bool) -> None:
    """把 EXECUTABLE 及其动态库依赖、动态加载器安装到 CHROOT 目录树"""
    setup_logging(
        level=os.getenv("CHROOTER_LOG_LEVEL", "INFO"),
        json_output=os.getenv("CHROOTER_LOG_JSON", "") == "1",
    )
    try:
        cfg = init_config(config_path) if config_path else get_config()
        orchestrator = Orchestrator(
            config=cfg, progress=_echo_progress,
        )
        report = orchestrator.run(executable, chroot, dry_run=dry_run)
    except ChrooterError as e:
        click.echo(f"错误 [{e.code}]: {e}")
        raise SystemExit(1) from e

    if dry_run:
        for f in report.installed:
            click.echo(f"  [{f.kind.value:10s}] {f.source} -> {f.destination}")
        click.echo(f"计划安装 {len(report.installed)} 个文件（未复制）")
    else:
        click.echo(f"已安装 {len(report.installed)} 个文件到 {chroot}")
