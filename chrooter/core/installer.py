"""安装器 - 将放置任务复制到 chroot 目录树

每个任务依次执行:
  1. 规范化源路径（解析符号链接、相对片段）
  2. 校验为普通文件
  3. 计算目标目录并创建（含中间目录，已存在视为成功）
  4. 以报告中的文件名复制内容及权限位，覆盖已有文件

任务之间目标文件互不相交，max_workers > 1 时并行执行；
目录创建使用 mkdir(parents=True, exist_ok=True)，并发创建同一目录是安全的。
失败不回滚已复制的文件，重新运行即可覆盖。
"""

from __future__ import annotations

import logging
import shutil
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from chrooter.core.exceptions import (
    CanonicalizeError,
    CopyError,
    DirectoryCreateError,
    NotAFileError,
)
from chrooter.core.placement import FixedRelativeDir, PlacementTask, TaskKind

logger = logging.getLogger(__name__)

# 复制前的进度回调: (源路径, 目标路径)
ProgressCallback = Callable[[Path, Path], None]


@dataclass(frozen=True)
class InstalledFile:
    """单个已安装（或计划安装）文件"""

    source: Path
    destination: Path
    kind: TaskKind


class Installer:
    """把 PlacementTask 安装到 chroot 根目录下"""

    def __init__(
        self,
        root: str | Path,
        max_workers: int = 1,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.root = Path(root)
        self.max_workers = max(1, max_workers)
        self.progress = progress

    @staticmethod
    def canonicalize(source: str) -> Path:
        """规范化源路径并确认为普通文件"""
        try:
            canonical = Path(source).resolve(strict=True)
        except (OSError, RuntimeError) as e:
            # RuntimeError: 旧版本 Python 对符号链接循环的报错方式
            raise CanonicalizeError(source, e) from e
        if not canonical.is_file():
            raise NotAFileError(canonical)
        return canonical

    def destination_dir(self, task: PlacementTask, canonical: Path) -> Path:
        if isinstance(task.policy, FixedRelativeDir):
            return self.root / task.policy.path
        return self.root / task.policy.resolve(canonical)

    def plan(self, task: PlacementTask) -> InstalledFile:
        """计算目标路径，不产生文件系统副作用"""
        canonical = self.canonicalize(task.source)
        dest_dir = self.destination_dir(task, canonical)
        # 使用报告中的文件名，保留 soname 符号链接的名字
        return InstalledFile(canonical, dest_dir / Path(task.source).name, task.kind)

    def install(self, task: PlacementTask) -> InstalledFile:
        """安装单个任务"""
        planned = self.plan(task)
        dest_dir = planned.destination.parent
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateError(dest_dir, e) from e

        logger.info(
            "复制 %s -> %s", planned.source, planned.destination,
            extra={"source": planned.source, "destination": planned.destination},
        )
        if self.progress is not None:
            self.progress(planned.source, planned.destination)
        try:
            shutil.copy(planned.source, planned.destination)
        except OSError as e:
            raise CopyError(planned.source, planned.destination, e) from e
        return planned

    def install_all(self, tasks: list[PlacementTask]) -> list[InstalledFile]:
        """按顺序（或并行）安装全部任务，返回结果顺序与任务一致

        顺序模式下遇到第一个错误立即中止；并行模式下等待已提交任务结束后
        抛出按任务顺序的第一个错误。
        """
        if self.max_workers == 1 or len(tasks) <= 1:
            return [self.install(t) for t in tasks]

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures: list[Future[InstalledFile]] = [
                pool.submit(self.install, t) for t in tasks
            ]
        return [f.result() for f in futures]

    def plan_all(self, tasks: list[PlacementTask]) -> list[InstalledFile]:
        return [self.plan(t) for t in tasks]
