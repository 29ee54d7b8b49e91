"""子进程执行工具: 依赖列举工具调用

通过 CommandExecutor 协议抽象子进程执行，方便测试替换。
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

from chrooter.core.exceptions import (
    ToolExitError,
    ToolLaunchError,
    ToolOutputDecodeError,
)

logger = logging.getLogger(__name__)


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）

    returncode 为 None 表示进程被信号终止。
    """

    returncode: int | None
    stdout: bytes
    stderr: bytes = b""

    @property
    def success(self) -> bool:
        return self.returncode == 0


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议: 抽象子进程调用

    测试时可注入 fake 实现，无需 patch subprocess。
    启动失败时应抛出 OSError。
    """

    def execute(self, args: list[str]) -> CommandResult:
        """执行命令并返回结果（完整缓冲输出）"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(self, args: list[str]) -> CommandResult:
        r = subprocess.run(args, capture_output=True, check=False)
        returncode: int | None = r.returncode
        if r.returncode < 0:
            returncode = None
        return CommandResult(returncode=returncode, stdout=r.stdout, stderr=r.stderr)


_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor


# =========================================================================
# 依赖工具
# =========================================================================

def run_dependency_tool(
    executable: str,
    command: list[str] | None = None,
    executor: CommandExecutor | None = None,
) -> str:
    """对可执行文件运行依赖列举工具，返回解码后的标准输出

    Args:
        executable: 目标可执行文件路径，作为唯一附加参数
        command: 工具命令前缀，默认 ["ldd"]
        executor: 命令执行器，默认使用全局执行器

    Raises:
        ToolLaunchError: 工具无法启动
        ToolExitError: 工具返回非零状态或被信号终止
        ToolOutputDecodeError: 标准输出不是合法 UTF-8
    """
    args = [*(command or ["ldd"]), executable]
    executor = executor or get_executor()
    logger.info("运行依赖工具: %s", " ".join(args))
    try:
        result = executor.execute(args)
    except OSError as e:
        raise ToolLaunchError(args, e) from e

    if not result.success:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise ToolExitError(result.returncode, stderr)

    try:
        return result.stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ToolOutputDecodeError(e) from e
