"""数据模型包。

定义图像转换相关的数据结构和模型。
"""

from .asset import ImageAsset, ImageInfo
from .constants import (
    OUTPUT_ENCODINGS,
    ImageEncoding,
    QualityDefaults,
    ValidationLimits,
    get_extension,
    suggest_output_encoding,
    supports_transparency,
)
from .outcome import (
    BatchProgress,
    BatchReport,
    ConversionOutcome,
    ErrorKind,
    Failure,
    SizeTargetResult,
    Success,
)
from .request import ConversionRequest, RequestValidator


__all__ = [
    "OUTPUT_ENCODINGS",
    "BatchProgress",
    "BatchReport",
    "ConversionOutcome",
    "ConversionRequest",
    "ErrorKind",
    "Failure",
    "ImageAsset",
    "ImageEncoding",
    "ImageInfo",
    "QualityDefaults",
    "RequestValidator",
    "SizeTargetResult",
    "Success",
    "ValidationLimits",
    "get_extension",
    "suggest_output_encoding",
    "supports_transparency",
]
