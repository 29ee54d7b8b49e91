"""集中配置管理

默认值即 chroot 布局约定：普通库放入 lib64/x86_64，主程序放入 usr/bin，
依赖工具为 ldd。支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath

import yaml

from chrooter.core.exceptions import ConfigError
from chrooter.core.placement import DEFAULT_BIN_DIR, DEFAULT_LIB_DIR
from chrooter.core.report import DEFAULT_LOADER_MARKER, DEFAULT_VDSO_MARKER
from chrooter.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """chroot 安装配置"""

    # 依赖工具，可执行文件路径作为唯一附加参数追加在末尾
    tool_command: list[str] = field(default_factory=lambda: ["ldd"])

    # 目录（相对 chroot 根）
    lib_dir: str = DEFAULT_LIB_DIR
    bin_dir: str = DEFAULT_BIN_DIR

    # 报告行识别子串
    loader_marker: str = DEFAULT_LOADER_MARKER
    vdso_marker: str = DEFAULT_VDSO_MARKER

    # 安装并行度，1 表示顺序执行
    max_workers: int = 1

    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.tool_command, str):
            self.tool_command = self.tool_command.split()
        self.validate()

    def validate(self) -> None:
        """校验配置取值，无效时抛 ConfigError"""
        if not isinstance(self.tool_command, list) or not self.tool_command or not all(
            isinstance(a, str) and a for a in self.tool_command
        ):
            raise ConfigError(f"tool_command 无效: {self.tool_command!r}")
        for name in ("lib_dir", "bin_dir"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip("/"):
                raise ConfigError(f"{name} 不能为空")
            if PurePosixPath(value).is_absolute():
                raise ConfigError(f"{name} 必须是相对路径: {value}")
            if ".." in PurePosixPath(value).parts:
                raise ConfigError(f"{name} 不能包含 ..: {value}")
        for name in ("loader_marker", "vdso_marker"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise ConfigError(f"{name} 必须是非空字符串: {value!r}")
        if (
            isinstance(self.max_workers, bool)
            or not isinstance(self.max_workers, int)
            or self.max_workers < 1
        ):
            raise ConfigError(f"max_workers 必须 >= 1: {self.max_workers!r}")

    @classmethod
    def from_file(cls, path: str) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (yaml.YAMLError, ValueError, OSError) as e:
            raise ConfigError(f"无法加载配置文件 {path}: {e}") from e
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()} - {"extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        if extra:
            logger.debug("配置中的未知字段: %s", ", ".join(map(str, extra)))
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置文件 {path} 字段无效: {e}") from e
        cfg.extra = extra
        return cfg


_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current


def reset_config() -> None:
    """恢复默认配置（测试用）"""
    global _current  # noqa: PLW0603
    _current = None
