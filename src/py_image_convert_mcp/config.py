"""统一配置管理模块。

提供应用程序的全局配置管理，包括默认值、环境变量支持等。
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ConversionDefaults:
    """转换相关的默认配置"""

    # 质量设置（0.0-1.0）
    DEFAULT_QUALITY: float = 0.8

    # 按目标大小压缩：起始质量、步长、下限与最大尝试次数（单位为十分之一）
    TARGET_START_TENTHS: int = 8
    TARGET_STEP_TENTHS: int = 1
    TARGET_FLOOR_TENTHS: int = 1
    TARGET_MAX_ITERATIONS: int = 10

    # 编码参数
    JPEG_MAX_QUALITY: int = 95  # Pillow 建议不超过 95
    PNG_COMPRESS_LEVEL: int = 6
    WEBP_METHOD: int = 4
    OPTIMIZE: bool = True


@dataclass(frozen=True)
class ProcessingDefaults:
    """处理相关的默认配置"""

    # 并发设置，1 表示严格顺序处理
    MAX_WORKERS: int = 1

    # 超过该数量的任务切换为进程池
    PROCESS_POOL_THRESHOLD: int = 20


@dataclass(frozen=True)
class LoggingDefaults:
    """日志相关的默认配置"""

    # 日志级别
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # 文件日志
    ENABLE_FILE_LOGGING: bool = False
    LOG_FILE_PATH: str = "py_image_convert.log"
    LOG_FILE_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB
    LOG_FILE_BACKUP_COUNT: int = 5


class AppConfig:
    """应用程序配置管理器

    支持环境变量覆盖默认配置
    """

    def __init__(self):
        self.conversion = ConversionDefaults()
        self.processing = ProcessingDefaults()
        self.logging = LoggingDefaults()

        # 从环境变量加载配置
        self._load_from_env()

    def _load_from_env(self):
        """从环境变量加载配置"""
        # 转换配置
        if quality := os.getenv("PICONV_DEFAULT_QUALITY"):
            object.__setattr__(self.conversion, "DEFAULT_QUALITY", float(quality))

        if max_iterations := os.getenv("PICONV_TARGET_MAX_ITERATIONS"):
            object.__setattr__(
                self.conversion, "TARGET_MAX_ITERATIONS", int(max_iterations)
            )

        if png_level := os.getenv("PICONV_PNG_COMPRESS_LEVEL"):
            object.__setattr__(self.conversion, "PNG_COMPRESS_LEVEL", int(png_level))

        if max_workers := os.getenv("PICONV_MAX_WORKERS"):
            object.__setattr__(self.processing, "MAX_WORKERS", int(max_workers))

        # 日志配置
        if log_level := os.getenv("PICONV_LOG_LEVEL"):
            object.__setattr__(self.logging, "LOG_LEVEL", log_level.upper())

        if enable_file_log := os.getenv("PICONV_ENABLE_FILE_LOGGING"):
            object.__setattr__(
                self.logging,
                "ENABLE_FILE_LOGGING",
                enable_file_log.lower() in ("true", "1", "yes"),
            )

        if log_file := os.getenv("PICONV_LOG_FILE_PATH"):
            object.__setattr__(self.logging, "LOG_FILE_PATH", log_file)

    def get_executor_type(self, task_count: int) -> str:
        """根据任务数量选择执行器类型"""
        if task_count > self.processing.PROCESS_POOL_THRESHOLD:
            return "process"
        return "thread"  # 内存中的编解码会释放 GIL，少量任务用线程池即可


# 全局配置实例
config = AppConfig()


def get_config() -> AppConfig:
    """获取全局配置实例"""
    return config


def reset_config():
    """重置配置（主要用于测试）"""
    global config
    config = AppConfig()
