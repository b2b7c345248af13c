"""图像转换器接口。

基于转换流水线的简洁用户接口，组合单张转换、批量转换与按目标大小压缩。
"""

import threading
from collections.abc import Sequence

from pydantic import ValidationError as PydanticValidationError

from .config import get_config
from .core.pipeline import ImagePipeline
from .engine.batch import BatchRunner, ProgressCallback
from .engine.size_target import SizeTargetingCompressor
from .exceptions import ErrorHandler, InvalidRequest
from .models import (
    BatchReport,
    ConversionOutcome,
    ConversionRequest,
    ImageAsset,
    ImageEncoding,
    ImageInfo,
    SizeTargetResult,
    suggest_output_encoding,
)
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()


class ImageConverter:
    """图像转换器。

    提供单张转换、批量转换、按目标大小压缩和图像信息读取。
    所有方法只处理内存中的数据。
    """

    def __init__(
        self,
        max_workers: int | None = None,
        force_executor_type: str | None = None,
    ):
        """初始化转换器。

        Args:
            max_workers: 批量处理时的最大并发数，1 为顺序处理
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
        """
        self.pipeline = ImagePipeline()
        self.batch_runner = BatchRunner(
            pipeline=self.pipeline,
            max_workers=max_workers,
            force_executor_type=force_executor_type,
        )
        self.size_compressor = SizeTargetingCompressor(pipeline=self.pipeline)

        logger.debug("初始化图像转换器")

    @staticmethod
    def build_request(
        format: str | ImageEncoding,
        quality: float | None = None,
        max_width: int | None = None,
        max_height: int | None = None,
        background_color: str | None = None,
    ) -> ConversionRequest:
        """构建转换请求

        Raises:
            InvalidRequest: 编码无法识别或参数类型错误
        """
        if quality is None:
            quality = get_config().conversion.DEFAULT_QUALITY
        try:
            return ConversionRequest(
                encoding=ImageEncoding.parse(format),
                quality=quality,
                max_width=max_width,
                max_height=max_height,
                background_color=background_color,
            )
        except PydanticValidationError as e:
            details = "; ".join(
                MessageFormatter.validation_error(
                    ".".join(str(p) for p in err["loc"]), err.get("input"), err["msg"]
                )
                for err in e.errors()
            )
            raise InvalidRequest(details) from e

    def convert(
        self,
        asset: ImageAsset,
        format: str | ImageEncoding,
        quality: float | None = None,
        max_width: int | None = None,
        max_height: int | None = None,
        background_color: str | None = None,
    ) -> ConversionOutcome:
        """转换单个资产。

        Examples:
            >>> converter = ImageConverter()
            >>> outcome = converter.convert(asset, "webp", quality=0.7)
            >>> print(outcome.output_name if outcome.is_success else outcome.message)
        """
        try:
            request = self.build_request(
                format, quality, max_width, max_height, background_color
            )
        except InvalidRequest as e:
            return ErrorHandler.to_failure(e, asset.name, "请求构建")
        return self.pipeline.convert(asset, request)

    def convert_many(
        self,
        assets: Sequence[ImageAsset],
        format: str | ImageEncoding,
        quality: float | None = None,
        max_width: int | None = None,
        max_height: int | None = None,
        background_color: str | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BatchReport:
        """批量转换，返回按输入顺序排列的报告

        Raises:
            InvalidRequest: 编码无法识别或参数类型错误
        """
        request = self.build_request(
            format, quality, max_width, max_height, background_color
        )
        return self.batch_runner.run_report(assets, request, on_progress, cancel_event)

    def resize(
        self,
        asset: ImageAsset,
        max_width: int | None = None,
        max_height: int | None = None,
        quality: float = 0.8,
    ) -> ConversionOutcome:
        """保持原编码缩放"""
        return self.pipeline.resize(asset, max_width, max_height, quality)

    def compress_to_target(
        self,
        asset: ImageAsset,
        target_bytes: int,
        max_iterations: int | None = None,
        background_color: str | None = None,
    ) -> SizeTargetResult:
        """按目标大小压缩为 JPEG（尽力而为）"""
        return self.size_compressor.search(
            asset, target_bytes, max_iterations, background_color
        )

    def get_info(self, asset: ImageAsset) -> ImageInfo:
        """读取图像信息"""
        return self.pipeline.inspect(asset)

    def suggest_format(self, asset: ImageAsset) -> ImageEncoding:
        """根据输入推荐输出编码"""
        info = self.pipeline.inspect(asset)
        return suggest_output_encoding(asset.encoding, info.has_transparency)
