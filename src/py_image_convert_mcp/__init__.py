"""图像格式转换库。

基于 Pillow 的内存图像转换流水线：解码、等比缩放、背景填充与重新编码，
并提供批量转换和按目标大小压缩。
"""

__version__ = "0.1.0"
__author__ = "crper"
__description__ = "图像格式转换库，基于 Pillow"

# 核心功能导出
from .converter import ImageConverter
from .core.pipeline import ImagePipeline
from .engine.batch import BatchRunner
from .engine.size_target import SizeTargetingCompressor
from .exceptions import ConversionError, DecodeError, EncodeError, InvalidRequest
from .models import (
    BatchProgress,
    BatchReport,
    ConversionRequest,
    ErrorKind,
    Failure,
    ImageAsset,
    ImageEncoding,
    SizeTargetResult,
    Success,
)


__all__ = [
    "BatchProgress",
    "BatchReport",
    "BatchRunner",
    "ConversionError",
    "ConversionRequest",
    "DecodeError",
    "EncodeError",
    "ErrorKind",
    "Failure",
    "ImageAsset",
    "ImageConverter",
    "ImageEncoding",
    "ImagePipeline",
    "InvalidRequest",
    "SizeTargetResult",
    "SizeTargetingCompressor",
    "Success",
    "get_version",
]


def get_version() -> str:
    """获取版本号。"""
    return __version__
