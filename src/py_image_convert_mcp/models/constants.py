"""图像编码相关常量定义。

以封闭枚举描述受支持的栅格编码，所有按编码分派的逻辑都使用完整的 match。
"""

from enum import Enum
from typing import Final


class ImageEncoding(str, Enum):
    """受支持的栅格编码"""

    JPEG = "JPEG"
    PNG = "PNG"
    WEBP = "WEBP"
    GIF = "GIF"
    BMP = "BMP"

    @classmethod
    def parse(cls, value: "str | ImageEncoding") -> "ImageEncoding":
        """解析格式名称、扩展名或 MIME 类型

        Args:
            value: 如 "jpg"、".png"、"image/webp"、"WEBP"

        Returns:
            ImageEncoding: 对应的编码

        Raises:
            InvalidRequest: 无法识别的编码
        """
        if isinstance(value, ImageEncoding):
            return value

        from ..exceptions import InvalidRequest

        if not value or not str(value).strip():
            raise InvalidRequest("编码不能为空")

        token = str(value).strip().upper()
        if token.startswith("IMAGE/"):
            token = token.removeprefix("IMAGE/")
        token = token.lstrip(".")
        token = ENCODING_ALIASES.get(token, token)

        try:
            return cls(token)
        except ValueError as e:
            available = ", ".join(member.value for member in cls)
            raise InvalidRequest(f"不支持的编码: {value}。可用编码: {available}") from e

    @property
    def supports_alpha(self) -> bool:
        """该编码能否保存透明通道"""
        match self:
            case ImageEncoding.PNG | ImageEncoding.WEBP | ImageEncoding.GIF:
                return True
            case ImageEncoding.JPEG | ImageEncoding.BMP:
                return False

    @property
    def is_lossy(self) -> bool:
        """质量参数是否影响输出"""
        match self:
            case ImageEncoding.JPEG | ImageEncoding.WEBP:
                return True
            case ImageEncoding.PNG | ImageEncoding.GIF | ImageEncoding.BMP:
                return False

    @property
    def extension(self) -> str:
        """首选扩展名（含点号）"""
        match self:
            case ImageEncoding.JPEG:
                return ".jpg"
            case ImageEncoding.PNG:
                return ".png"
            case ImageEncoding.WEBP:
                return ".webp"
            case ImageEncoding.GIF:
                return ".gif"
            case ImageEncoding.BMP:
                return ".bmp"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value.lower()}"

    @property
    def pillow_format(self) -> str:
        """传给 Pillow save() 的格式名"""
        return self.value


# 用户友好的别名
ENCODING_ALIASES: Final[dict[str, str]] = {
    "JPG": "JPEG",
    "JPE": "JPEG",
    "JFIF": "JPEG",
    "DIB": "BMP",
}

# 可作为输出目标的编码（与浏览器 canvas 的 toBlob 能力一致）
OUTPUT_ENCODINGS: Final[frozenset[ImageEncoding]] = frozenset(
    {ImageEncoding.JPEG, ImageEncoding.PNG, ImageEncoding.WEBP}
)


class QualityDefaults:
    """质量相关默认值"""

    DEFAULT: Final[float] = 0.8
    MIN_QUALITY: Final[float] = 0.0
    MAX_QUALITY: Final[float] = 1.0


class ValidationLimits:
    """验证相关限制"""

    # 图像尺寸限制
    MAX_DIMENSION: Final[int] = 50000

    # 最大批量处理文件数
    MAX_BATCH_FILES: Final[int] = 1000


def supports_transparency(encoding: str | ImageEncoding) -> bool:
    """检查编码是否支持透明度"""
    return ImageEncoding.parse(encoding).supports_alpha


def get_extension(encoding: str | ImageEncoding) -> str:
    """获取编码的首选扩展名"""
    return ImageEncoding.parse(encoding).extension


def suggest_output_encoding(
    encoding: str | ImageEncoding, has_transparency: bool = False
) -> ImageEncoding:
    """根据输入编码推荐输出编码

    有透明度时保留 PNG；PNG/BMP 转 JPEG 以减小体积；GIF 转 PNG 保持画质；
    WebP 保持不变。
    """
    if has_transparency:
        return ImageEncoding.PNG

    match ImageEncoding.parse(encoding):
        case ImageEncoding.PNG | ImageEncoding.BMP:
            return ImageEncoding.JPEG
        case ImageEncoding.GIF:
            return ImageEncoding.PNG
        case ImageEncoding.WEBP:
            return ImageEncoding.WEBP
        case ImageEncoding.JPEG:
            return ImageEncoding.JPEG
