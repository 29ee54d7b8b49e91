"""共享 fixture: 伪造的宿主文件系统 + 伪造的依赖工具

整体结构:

  tmp_path/
  ├── host/                      宿主系统（被复制的一方）
  │   ├── lib/x86_64-linux-gnu/  真实库文件 libc-2.31.so, libm-2.31.so
  │   ├── lib64/                 libc.so.6 -> ../lib/..., ld-linux-x86-64.so.2
  │   └── opt/qemu-x86_64        主程序
  └── chroot/                    目标目录树

FakeExecutor 返回按 host 路径生成的 ldd 报告，无需真实子进程。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from chrooter.core.config import reset_config
from chrooter.utils.shell import CommandResult, LocalExecutor, set_executor


class FakeExecutor:
    """记录调用参数并返回预置结果的命令执行器"""

    def __init__(self, result: CommandResult | None = None, error: OSError | None = None) -> None:
        self.result = result or CommandResult(returncode=0, stdout=b"")
        self.error = error
        self.calls: list[list[str]] = []

    def execute(self, args: list[str]) -> CommandResult:
        self.calls.append(list(args))
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class HostSystem:
    """tmp_path 下伪造的宿主系统"""

    root: Path
    chroot: Path
    executable: Path
    loader: Path
    libraries: dict[str, Path] = field(default_factory=dict)

    def ldd_output(self) -> str:
        lines = ["\tlinux-vdso.so.1 (0x00007ffd6b5e8000)"]
        for name, path in self.libraries.items():
            lines.append(f"\t{name} => {path} (0x00007f257b923000)")
        lines.append(f"\t{self.loader} (0x00007f257bb0e000)")
        return "\n".join(lines) + "\n"

    def executor(self) -> FakeExecutor:
        return FakeExecutor(CommandResult(returncode=0, stdout=self.ldd_output().encode()))


def _write(path: Path, content: bytes, mode: int = 0o644) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    path.chmod(mode)
    return path


@pytest.fixture
def host(tmp_path: Path) -> HostSystem:
    root = tmp_path / "host"
    real_libs = root / "lib" / "x86_64-linux-gnu"
    _write(real_libs / "libc-2.31.so", b"\x7fELF libc")
    _write(real_libs / "libm-2.31.so", b"\x7fELF libm")

    lib64 = root / "lib64"
    lib64.mkdir(parents=True)
    (lib64 / "libc.so.6").symlink_to(real_libs / "libc-2.31.so")
    (lib64 / "libm.so.6").symlink_to(real_libs / "libm-2.31.so")
    loader = _write(lib64 / "ld-linux-x86-64.so.2", b"\x7fELF loader", 0o755)

    executable = _write(root / "opt" / "qemu-x86_64", b"\x7fELF qemu", 0o755)
    chroot = tmp_path / "chroot"
    chroot.mkdir()

    return HostSystem(
        root=root,
        chroot=chroot,
        executable=executable,
        loader=loader,
        libraries={
            "libc.so.6": lib64 / "libc.so.6",
            "libm.so.6": lib64 / "libm.so.6",
        },
    )


@pytest.fixture(autouse=True)
def _isolate_globals():
    """每个用例结束后恢复全局配置与执行器"""
    yield
    reset_config()
    set_executor(LocalExecutor())


@pytest.fixture
def make_executor():
    """FakeExecutor 工厂"""
    return FakeExecutor
