"""chrooter - 将外架构可执行文件及其动态库依赖安装到 chroot 目录树"""

__version__ = "0.1.0"
