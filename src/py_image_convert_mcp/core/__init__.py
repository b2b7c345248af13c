"""核心模块包。

单张图像的解码、缩放、绘制与重新编码。
"""

from .formats import EncodingProcessor
from .geometry import compute_target_size
from .pipeline import ImagePipeline, convert_image


__all__ = [
    "EncodingProcessor",
    "ImagePipeline",
    "compute_target_size",
    "convert_image",
]
