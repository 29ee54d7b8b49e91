"""放置策略分类器

为每个需要复制的文件指定目标目录策略:
- 普通共享库 → 固定相对目录（默认 lib64/x86_64，避开 chroot 自身架构的库）
- 主可执行文件 → 固定相对目录（默认 usr/bin）
- 动态加载器 → 加载器规范路径的父目录（去掉根前缀），
  因为加载器路径写死在可执行文件中，不能重定位
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

from chrooter.core.report import DependencyReport

DEFAULT_LIB_DIR = "lib64/x86_64"
DEFAULT_BIN_DIR = "usr/bin"


class TaskKind(str, Enum):
    LIBRARY = "library"
    EXECUTABLE = "executable"
    LOADER = "loader"


@dataclass(frozen=True)
class FixedRelativeDir:
    """固定的相对目录"""

    path: str


@dataclass(frozen=True)
class LoaderExactDir:
    """加载器自身规范化后的父目录（相对文件系统根）"""

    def resolve(self, canonical: Path) -> Path:
        parent = canonical.parent
        return parent.relative_to(parent.anchor)


PlacementPolicy = Union[FixedRelativeDir, LoaderExactDir]


@dataclass(frozen=True)
class PlacementTask:
    """待安装文件及其放置策略"""

    source: str
    policy: PlacementPolicy
    kind: TaskKind


def classify(
    report: DependencyReport,
    executable: str,
    *,
    lib_dir: str = DEFAULT_LIB_DIR,
    bin_dir: str = DEFAULT_BIN_DIR,
) -> list[PlacementTask]:
    """生成放置任务列表，顺序: 共享库 → 主程序 → 加载器"""
    tasks = [
        PlacementTask(lib, FixedRelativeDir(lib_dir), TaskKind.LIBRARY)
        for lib in report.libraries
    ]
    tasks.append(PlacementTask(executable, FixedRelativeDir(bin_dir), TaskKind.EXECUTABLE))
    if report.loader is not None:
        tasks.append(PlacementTask(report.loader, LoaderExactDir(), TaskKind.LOADER))
    return tasks
