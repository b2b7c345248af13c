"""转换请求模型。

定义单次转换的目标编码、质量和尺寸约束。
"""

import math

from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import OUTPUT_ENCODINGS, ImageEncoding, QualityDefaults, ValidationLimits


class ConversionRequest(BaseModel):
    """转换请求

    模型只负责类型转换，取值范围由 RequestValidator 在转换开始前检查，
    因此越界的请求也能被构造并以 InvalidRequest 失败结果返回。
    """

    model_config = ConfigDict(frozen=True)

    encoding: ImageEncoding = Field(description="目标编码")
    quality: float = Field(QualityDefaults.DEFAULT, description="质量因子 0.0-1.0")
    max_width: int | None = Field(None, description="最大宽度（像素）")
    max_height: int | None = Field(None, description="最大高度（像素）")
    background_color: str | None = Field(
        None, description="背景色，仅在目标编码不支持透明度时使用"
    )

    @field_validator("encoding", mode="before")
    @classmethod
    def parse_encoding(cls, v: object) -> object:
        if isinstance(v, str) and not isinstance(v, ImageEncoding):
            from ..exceptions import InvalidRequest

            # 交给 ImageEncoding.parse 处理别名；无法识别时保留原值由 pydantic 报错
            try:
                return ImageEncoding.parse(v)
            except InvalidRequest:
                return v
        return v

    @property
    def should_resize(self) -> bool:
        """是否设置了尺寸约束"""
        return self.max_width is not None or self.max_height is not None

    @property
    def needs_background_fill(self) -> bool:
        """目标编码不支持透明度且指定了背景色"""
        return self.background_color is not None and not self.encoding.supports_alpha


class RequestValidator:
    """转换请求的验证器集合"""

    @staticmethod
    def validate(request: ConversionRequest) -> None:
        """验证请求参数

        Raises:
            InvalidRequest: 任一参数不合法
        """
        RequestValidator.validate_quality(request.quality)
        RequestValidator.validate_dimensions(request.max_width, request.max_height)
        RequestValidator.validate_target(request.encoding)
        if request.background_color is not None:
            RequestValidator.parse_color(request.background_color)

    @staticmethod
    def validate_quality(quality: float) -> float:
        """验证质量因子"""
        from ..exceptions import InvalidRequest

        if math.isnan(quality) or not (
            QualityDefaults.MIN_QUALITY <= quality <= QualityDefaults.MAX_QUALITY
        ):
            raise InvalidRequest(f"质量因子必须在 0.0-1.0 之间，得到: {quality}")
        return quality

    @staticmethod
    def validate_dimensions(
        width: int | None, height: int | None
    ) -> tuple[int | None, int | None]:
        """验证尺寸约束"""
        from ..exceptions import InvalidRequest

        for label, value in (("最大宽度", width), ("最大高度", height)):
            if value is None:
                continue
            if value <= 0:
                raise InvalidRequest(f"{label}必须大于 0，得到: {value}")
            if value > ValidationLimits.MAX_DIMENSION:
                raise InvalidRequest(
                    f"{label}超过限制 {ValidationLimits.MAX_DIMENSION}，得到: {value}"
                )
        return width, height

    @staticmethod
    def validate_target(encoding: ImageEncoding) -> ImageEncoding:
        """验证目标编码可以输出"""
        from ..exceptions import InvalidRequest

        if encoding not in OUTPUT_ENCODINGS:
            available = ", ".join(sorted(e.value for e in OUTPUT_ENCODINGS))
            raise InvalidRequest(f"不支持输出为 {encoding.value}。可用编码: {available}")
        return encoding

    @staticmethod
    def parse_color(value: str) -> tuple[int, int, int]:
        """将颜色字符串解析为 RGB 三元组，支持 HEX 与 CSS 颜色名"""
        from ..exceptions import InvalidRequest

        try:
            rgb = ImageColor.getrgb(value.strip())
        except (ValueError, AttributeError) as e:
            raise InvalidRequest(f"无法解析颜色值: {value}") from e
        return rgb[0], rgb[1], rgb[2]
