"""依赖报告解析器

将 ldd 风格的文本报告转换为结构化依赖集合。报告格式不是严格语法，
每行按以下形态之一识别，其余行一律忽略：

  已解析库:   "        libm.so.6 => /lib64/libm.so.6 (0x00007f257b923000)"
  VDSO:       "        linux-vdso.so.1 (0x00007ffd6b5e8000)"
  动态加载器: "        /lib64/ld-linux-x86-64.so.2 (0x00007f257bb0e000)"

已知限制: 加载器通过固定子串识别（默认 "ld-linux"）。若加载器以
"name => path" 形态出现，会被当作普通库处理，最终报 MissingLoaderError。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from chrooter.core.exceptions import (
    DuplicateLoaderError,
    MissingLoaderError,
    UnexpectedFormatError,
)

logger = logging.getLogger(__name__)

RESOLVED_SEPARATOR = " => "
ADDRESS_MARKER = " (0x"
DEFAULT_LOADER_MARKER = "ld-linux"
DEFAULT_VDSO_MARKER = "linux-vdso.so"


# =========================================================================
# 行类型（标签联合）
# =========================================================================

@dataclass(frozen=True)
class ResolvedLine:
    """已解析的共享库映射行"""

    path: str


@dataclass(frozen=True)
class VdsoLine:
    """内核提供的虚拟共享对象，不存在对应文件"""


@dataclass(frozen=True)
class LoaderLine:
    """动态加载器行"""

    path: str


@dataclass(frozen=True)
class IgnoredLine:
    """表头、空行或无法识别的行"""


ReportLine = Union[ResolvedLine, VdsoLine, LoaderLine, IgnoredLine]


@dataclass
class DependencyReport:
    """解析结果: 必需的共享库列表 + 动态加载器路径"""

    libraries: list[str] = field(default_factory=list)
    loader: str | None = None


# =========================================================================
# 解析
# =========================================================================

def _strip_address(text: str, line: str) -> str:
    """截掉最后一个 " (0x" 及其后内容"""
    head, sep, _ = text.rpartition(ADDRESS_MARKER)
    head = head.strip()
    if not sep or not head:
        raise UnexpectedFormatError(line)
    return head


def classify_line(
    line: str,
    *,
    loader_marker: str = DEFAULT_LOADER_MARKER,
    vdso_marker: str = DEFAULT_VDSO_MARKER,
) -> ReportLine:
    """识别单行报告的形态

    优先级: 已解析库 > VDSO > 加载器 > 忽略。

    Raises:
        UnexpectedFormatError: 行命中已知形态但缺少必要片段
    """
    if RESOLVED_SEPARATOR in line:
        _, _, resolved = line.partition(RESOLVED_SEPARATOR)
        return ResolvedLine(_strip_address(resolved, line))
    if vdso_marker in line:
        return VdsoLine()
    if loader_marker in line:
        return LoaderLine(_strip_address(line, line))
    return IgnoredLine()


def parse_report(
    text: str,
    *,
    loader_marker: str = DEFAULT_LOADER_MARKER,
    vdso_marker: str = DEFAULT_VDSO_MARKER,
) -> DependencyReport:
    """解析完整报告文本

    Raises:
        UnexpectedFormatError: 某行形态不完整
        DuplicateLoaderError: 出现第二个加载器行
        MissingLoaderError: 没有加载器行（多半是静态链接）
    """
    report = DependencyReport()
    for line in text.splitlines():
        kind = classify_line(
            line, loader_marker=loader_marker, vdso_marker=vdso_marker,
        )
        if isinstance(kind, ResolvedLine):
            report.libraries.append(kind.path)
        elif isinstance(kind, LoaderLine):
            if report.loader is not None:
                raise DuplicateLoaderError(report.loader, kind.path)
            report.loader = kind.path
        elif isinstance(kind, IgnoredLine) and line.strip():
            logger.debug("忽略报告行: %r", line)

    if report.loader is None:
        raise MissingLoaderError()

    logger.info("解析到 %d 个共享库, 加载器: %s", len(report.libraries), report.loader)
    return report
