"""统一异常体系

所有业务异常继承 ChrooterError，每类异常携带稳定的 code，
CLI 层据此输出一行诊断信息并以非零状态退出。
"""

from __future__ import annotations

from pathlib import Path


class ChrooterError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(ChrooterError):
    """配置文件内容无效"""

    code = "CONFIG_ERROR"


# =========================================================================
# 参数校验
# =========================================================================

class ValidationError(ChrooterError):
    """输入参数校验失败"""

    code = "VALIDATION_ERROR"


class InvalidExecutableError(ValidationError):
    """可执行文件路径不是普通文件"""

    code = "INVALID_EXECUTABLE"

    def __init__(self, path: str | Path) -> None:
        super().__init__(f"可执行文件无效（不是普通文件）: {path}")
        self.path = Path(path)


class InvalidChrootError(ValidationError):
    """chroot 路径不是已存在的目录"""

    code = "INVALID_CHROOT"

    def __init__(self, path: str | Path) -> None:
        super().__init__(f"chroot 目录无效（不是目录）: {path}")
        self.path = Path(path)


# =========================================================================
# 依赖工具（ldd）调用
# =========================================================================

class DependencyToolError(ChrooterError):
    """依赖列举工具执行失败"""

    code = "DEPENDENCY_TOOL_ERROR"


class ToolLaunchError(DependencyToolError):
    """无法启动依赖列举工具"""

    code = "TOOL_LAUNCH_FAILED"

    def __init__(self, command: list[str], error: OSError) -> None:
        super().__init__(f"无法启动依赖工具 {' '.join(command)}: {error}")
        self.command = command
        self.error = error


class ToolExitError(DependencyToolError):
    """依赖列举工具返回非零状态（被信号终止时 returncode 为 None）"""

    code = "TOOL_EXIT_FAILED"

    def __init__(self, returncode: int | None, stderr: str = "") -> None:
        rc = "被信号终止" if returncode is None else f"rc={returncode}"
        message = f"依赖工具执行失败 ({rc})"
        if stderr:
            message += f": {stderr[:500]}"
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ToolOutputDecodeError(DependencyToolError):
    """依赖工具的标准输出不是合法 UTF-8"""

    code = "TOOL_OUTPUT_NOT_UTF8"

    def __init__(self, error: UnicodeDecodeError) -> None:
        super().__init__(f"依赖工具输出不是合法 UTF-8: {error}")
        self.error = error


# =========================================================================
# 依赖报告解析
# =========================================================================

class ReportParseError(ChrooterError):
    """依赖报告解析失败"""

    code = "REPORT_PARSE_ERROR"


class UnexpectedFormatError(ReportParseError):
    """行形态与已知模式不符"""

    code = "UNEXPECTED_FORMAT"

    def __init__(self, line: str) -> None:
        super().__init__(f"无法解析依赖报告行: {line.strip()!r}")
        self.line = line


class DuplicateLoaderError(ReportParseError):
    """报告中出现多于一个动态加载器"""

    code = "DUPLICATE_LOADER"

    def __init__(self, first: str, second: str) -> None:
        super().__init__(f"依赖报告中出现两个动态加载器: {first}, {second}")
        self.first = first
        self.second = second


class MissingLoaderError(ReportParseError):
    """报告中没有动态加载器，目标很可能是静态链接的"""

    code = "MISSING_LOADER"

    def __init__(self) -> None:
        super().__init__("未找到动态加载器，可执行文件是否为静态链接？")


# =========================================================================
# 安装（解析路径 + 复制）
# =========================================================================

class InstallError(ChrooterError):
    """依赖文件安装到 chroot 失败"""

    code = "INSTALL_ERROR"


class CanonicalizeError(InstallError):
    """路径规范化失败（断链、权限等）"""

    code = "CANONICALIZE_FAILED"

    def __init__(self, path: str | Path, error: Exception) -> None:
        super().__init__(f"无法解析依赖路径 {path}: {error}")
        self.path = Path(path)
        self.error = error


class NotAFileError(InstallError):
    """规范化后的依赖路径不是普通文件"""

    code = "NOT_A_FILE"

    def __init__(self, path: str | Path) -> None:
        super().__init__(f"依赖不是有效的普通文件: {path}")
        self.path = Path(path)


class DirectoryCreateError(InstallError):
    """在 chroot 中创建目标目录失败"""

    code = "DIRECTORY_CREATE_FAILED"

    def __init__(self, path: str | Path, error: OSError) -> None:
        super().__init__(f"创建目录失败 {path}: {error}")
        self.path = Path(path)
        self.error = error


class CopyError(InstallError):
    """复制依赖到 chroot 失败"""

    code = "COPY_FAILED"

    def __init__(self, source: str | Path, destination: str | Path, error: OSError) -> None:
        super().__init__(f"复制失败 {source} -> {destination}: {error}")
        self.source = Path(source)
        self.destination = Path(destination)
        self.error = error
