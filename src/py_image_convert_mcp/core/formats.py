"""编码处理器模块。

负责把解码后的图像绘制到目标尺寸的画布上，并按目标编码序列化。
"""

import logging
from io import BytesIO
from typing import Any

from PIL import Image

from ..config import ConversionDefaults, get_config
from ..models.constants import ImageEncoding
from ..models.request import ConversionRequest, RequestValidator


logger = logging.getLogger(__name__)

# 画布缺省底色：不支持透明度的编码在未指定背景色时，透明区域落为黑色
DEFAULT_MATTE: tuple[int, int, int] = (0, 0, 0)


def has_alpha(img: Image.Image) -> bool:
    """图像是否带有透明信息"""
    return img.mode in ("RGBA", "LA", "PA", "RGBa", "La") or (
        img.mode == "P" and "transparency" in img.info
    )


def normalize_mode(img: Image.Image) -> Image.Image:
    """统一转换为 RGB 或 RGBA，相当于把图像读入画布"""
    if has_alpha(img):
        return img if img.mode == "RGBA" else img.convert("RGBA")
    return img if img.mode == "RGB" else img.convert("RGB")


class EncodingProcessor:
    """编码处理器：画布准备与保存参数"""

    def __init__(self, defaults: ConversionDefaults | None = None) -> None:
        self.defaults = defaults or get_config().conversion

    def render(
        self, img: Image.Image, size: tuple[int, int], request: ConversionRequest
    ) -> Image.Image:
        """把 RGB/RGBA 源图绘制到目标尺寸的新画布上

        Args:
            img: 已归一化模式的源图
            size: 目标宽高
            request: 转换请求

        Returns:
            Image.Image: 新画布，调用方负责关闭
        """
        if img.size != size:
            # LANCZOS 对 RGBA 会在预乘透明度后重采样
            drawn = img.resize(size, Image.Resampling.LANCZOS)
        else:
            drawn = img.copy()

        if request.encoding.supports_alpha:
            return drawn

        try:
            matte = (
                RequestValidator.parse_color(request.background_color)
                if request.background_color is not None
                else DEFAULT_MATTE
            )

            surface = Image.new("RGB", size, matte)
            if drawn.mode == "RGBA":
                surface.paste(drawn, mask=drawn.getchannel("A"))
            else:
                surface.paste(drawn)
            return surface
        finally:
            drawn.close()

    def encode(self, surface: Image.Image, request: ConversionRequest) -> bytes:
        """把画布序列化为目标编码"""
        params = self.get_save_parameters(request.encoding, request.quality)
        buffer = BytesIO()
        surface.save(buffer, format=request.encoding.pillow_format, **params)
        logger.debug(f"{request.encoding.value} 编码参数: {params}")
        return buffer.getvalue()

    def get_save_parameters(
        self, encoding: ImageEncoding, quality: float
    ) -> dict[str, Any]:
        """获取保存参数

        Args:
            encoding: 目标编码
            quality: 质量因子 0.0-1.0

        Returns:
            dict[str, Any]: 传给 Image.save 的参数（不含 format）
        """
        match encoding:
            case ImageEncoding.JPEG:
                return self._get_jpeg_params(quality)
            case ImageEncoding.WEBP:
                return self._get_webp_params(quality)
            case ImageEncoding.PNG:
                return self._get_png_params()
            case ImageEncoding.GIF:
                return {"optimize": self.defaults.OPTIMIZE}
            case ImageEncoding.BMP:
                return {}

    def _get_jpeg_params(self, quality: float) -> dict[str, Any]:
        """JPEG 参数

        Pillow 文档建议 quality 不超过 95，100 会禁用部分压缩算法。
        """
        jpeg_quality = max(1, min(self.defaults.JPEG_MAX_QUALITY, round(quality * 100)))
        return {
            "quality": jpeg_quality,
            "optimize": self.defaults.OPTIMIZE,
            # 低质量时使用 4:2:0 子采样以获得更小体积
            "subsampling": 2 if jpeg_quality < 85 else 1,
        }

    def _get_webp_params(self, quality: float) -> dict[str, Any]:
        """WebP 有损参数"""
        webp_quality = max(0, min(100, round(quality * 100)))
        return {
            "quality": webp_quality,
            "method": self.defaults.WEBP_METHOD,
            "alpha_quality": 100,
        }

    def _get_png_params(self) -> dict[str, Any]:
        """PNG 无损参数，质量因子不影响输出"""
        return {
            "optimize": self.defaults.OPTIMIZE,
            "compress_level": self.defaults.PNG_COMPRESS_LEVEL,
        }
