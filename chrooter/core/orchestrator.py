"""安装编排器 - 校验参数 → 运行依赖工具 → 解析 → 分类 → 安装

单次完整流程，无重试；任何错误都会终止运行并原样抛出，
失败阶段与错误记录在 report 上。已复制的文件不回滚。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from chrooter.core.config import Config, get_config
from chrooter.core.exceptions import (
    ChrooterError,
    InvalidChrootError,
    InvalidExecutableError,
)
from chrooter.core.installer import InstalledFile, Installer, ProgressCallback
from chrooter.core.placement import PlacementTask, classify
from chrooter.core.report import DependencyReport, parse_report
from chrooter.utils.shell import CommandExecutor, run_dependency_tool

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    VALIDATING_ARGS = "validating_args"
    VALIDATING_EXECUTABLE = "validating_executable"
    VALIDATING_TARGET_DIR = "validating_target_dir"
    RUNNING_DEPENDENCY_TOOL = "running_dependency_tool"
    PARSING_REPORT = "parsing_report"
    CLASSIFYING_AND_INSTALLING = "classifying_and_installing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class InstallReport:
    """一次安装运行的报告"""

    executable: str
    chroot: str
    dry_run: bool = False
    stage: Stage = Stage.VALIDATING_ARGS
    failed_stage: Stage | None = None
    error: ChrooterError | None = None
    history: list[Stage] = field(default_factory=list)
    dependencies: DependencyReport | None = None
    tasks: list[PlacementTask] = field(default_factory=list)
    installed: list[InstalledFile] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.stage is Stage.DONE


class Orchestrator:
    """chroot 依赖安装编排器"""

    def __init__(
        self,
        config: Config | None = None,
        executor: CommandExecutor | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.config = config or get_config()
        self.executor = executor
        self.progress = progress
        self.report: InstallReport | None = None

    @staticmethod
    def _enter(report: InstallReport, stage: Stage) -> None:
        report.stage = stage
        report.history.append(stage)
        logger.debug("阶段: %s", stage.value, extra={"stage": stage.value})

    def run(self, executable: str, chroot: str, *, dry_run: bool = False) -> InstallReport:
        """执行完整流程，失败时抛出 ChrooterError"""
        report = self.report = InstallReport(executable=executable, chroot=chroot, dry_run=dry_run)
        try:
            self._run(report)
        except ChrooterError as e:
            report.failed_stage = report.stage
            report.error = e
            self._enter(report, Stage.FAILED)
            logger.error(
                "安装失败 [%s] (阶段 %s): %s", e.code, report.failed_stage.value, e,
                extra={"stage": report.failed_stage.value, "code": e.code},
            )
            raise
        return report

    def _run(self, report: InstallReport) -> None:
        cfg = self.config
        self._enter(report, Stage.VALIDATING_ARGS)

        self._enter(report, Stage.VALIDATING_EXECUTABLE)
        try:
            is_file = Path(report.executable).is_file()
        except OSError as e:
            raise InvalidExecutableError(report.executable) from e
        if not is_file:
            raise InvalidExecutableError(report.executable)

        self._enter(report, Stage.VALIDATING_TARGET_DIR)
        try:
            is_dir = Path(report.chroot).is_dir()
        except OSError as e:
            raise InvalidChrootError(report.chroot) from e
        if not is_dir:
            raise InvalidChrootError(report.chroot)

        self._enter(report, Stage.RUNNING_DEPENDENCY_TOOL)
        output = run_dependency_tool(
            report.executable, command=cfg.tool_command, executor=self.executor,
        )

        self._enter(report, Stage.PARSING_REPORT)
        report.dependencies = parse_report(
            output, loader_marker=cfg.loader_marker, vdso_marker=cfg.vdso_marker,
        )

        self._enter(report, Stage.CLASSIFYING_AND_INSTALLING)
        report.tasks = classify(
            report.dependencies, report.executable,
            lib_dir=cfg.lib_dir, bin_dir=cfg.bin_dir,
        )
        installer = Installer(
            report.chroot, max_workers=cfg.max_workers, progress=self.progress,
        )
        if report.dry_run:
            report.installed = installer.plan_all(report.tasks)
        else:
            report.installed = installer.install_all(report.tasks)

        self._enter(report, Stage.DONE)
        logger.info(
            "%s %d 个文件到 %s",
            "计划安装" if report.dry_run else "已安装",
            len(report.installed), report.chroot,
        )
