"""命令行接口测试"""

from __future__ import annotations

from pathlib import Path

import yaml
from click.testing import CliRunner

from chrooter.cli import main
from chrooter.utils.logger import reset_logging
from chrooter.utils.shell import CommandResult, set_executor


def _invoke(args: list[str]):
    try:
        return CliRunner().invoke(main, args)
    finally:
        reset_logging()


class TestCli:
    def test_install(self, host) -> None:
        set_executor(host.executor())
        result = _invoke([str(host.executable), str(host.chroot)])
        assert result.exit_code == 0, result.output
        assert result.output.count("Copying ") == 4
        assert "已安装 4 个文件" in result.output
        assert (host.chroot / "usr/bin/qemu-x86_64").is_file()

    def test_dry_run(self, host) -> None:
        set_executor(host.executor())
        result = _invoke(["--dry-run", str(host.executable), str(host.chroot)])
        assert result.exit_code == 0, result.output
        assert "计划安装 4 个文件" in result.output
        assert "[loader" in result.output
        assert list(host.chroot.iterdir()) == []

    def test_config_file(self, host, tmp_path: Path) -> None:
        cfg = tmp_path / "chrooter.yml"
        cfg.write_text(yaml.dump({"lib_dir": "opt/x86/lib"}), encoding="utf-8")
        set_executor(host.executor())
        result = _invoke(["-c", str(cfg), str(host.executable), str(host.chroot)])
        assert result.exit_code == 0, result.output
        assert (host.chroot / "opt/x86/lib/libc.so.6").is_file()

    def test_wrong_argument_count(self) -> None:
        result = _invoke(["only-one"])
        assert result.exit_code != 0
        assert "Usage" in result.output

    def test_invalid_executable(self, host) -> None:
        result = _invoke([str(host.root / "nope"), str(host.chroot)])
        assert result.exit_code == 1
        assert "错误 [INVALID_EXECUTABLE]" in result.output

    def test_missing_loader(self, host, make_executor) -> None:
        set_executor(make_executor(CommandResult(returncode=0, stdout=b"\tstatically linked\n")))
        result = _invoke([str(host.executable), str(host.chroot)])
        assert result.exit_code == 1
        assert "错误 [MISSING_LOADER]" in result.output

    def test_non_string_marker_in_config(self, host, tmp_path: Path) -> None:
        cfg = tmp_path / "chrooter.yml"
        cfg.write_text(yaml.dump({"loader_marker": 5}), encoding="utf-8")
        set_executor(host.executor())
        result = _invoke(["-c", str(cfg), str(host.executable), str(host.chroot)])
        assert result.exit_code == 1
        assert "错误 [CONFIG_ERROR]" in result.output
        assert list(host.chroot.iterdir()) == []
