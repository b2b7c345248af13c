"""按目标大小压缩模块。

逐步降低 JPEG 质量，尽量让输出不超过目标字节数。
"""

from ..config import ConversionDefaults, get_config
from ..core.pipeline import ImagePipeline
from ..exceptions import InvalidRequest, error_for_failure
from ..models.asset import ImageAsset
from ..models.constants import ImageEncoding
from ..models.outcome import Failure, SizeTargetResult
from ..models.request import ConversionRequest
from ..utils.logging_helpers import get_logger


logger = get_logger()


class SizeTargetingCompressor:
    """按目标大小压缩器

    尽力而为：无法达到目标时返回质量 0.1 的结果，而不是报错。
    质量以十分之一为单位递减，避免浮点累积误差。
    """

    def __init__(
        self,
        pipeline: ImagePipeline | None = None,
        defaults: ConversionDefaults | None = None,
    ) -> None:
        self.pipeline = pipeline or ImagePipeline()
        self.defaults = defaults or get_config().conversion

    def compress_to_target(
        self,
        asset: ImageAsset,
        target_bytes: int,
        max_iterations: int | None = None,
        background_color: str | None = None,
    ) -> ImageAsset:
        """压缩到目标大小以内（尽力而为）

        Args:
            asset: 输入图像
            target_bytes: 目标字节数
            max_iterations: 最多尝试次数，默认 10
            background_color: 透明区域的背景色

        Returns:
            ImageAsset: JPEG 输出，可能仍大于目标

        Raises:
            InvalidRequest: 目标大小或尝试次数不合法
            DecodeError: 输入无法解码
        """
        return self.search(asset, target_bytes, max_iterations, background_color).asset

    def search(
        self,
        asset: ImageAsset,
        target_bytes: int,
        max_iterations: int | None = None,
        background_color: str | None = None,
    ) -> SizeTargetResult:
        """搜索满足目标大小的质量，返回详细结果"""
        if max_iterations is None:
            max_iterations = self.defaults.TARGET_MAX_ITERATIONS
        if target_bytes <= 0:
            raise InvalidRequest(f"目标大小必须大于 0，得到: {target_bytes}", asset.name)
        if max_iterations < 1:
            raise InvalidRequest(
                f"最大尝试次数必须至少为 1，得到: {max_iterations}", asset.name
            )

        tenths = self.defaults.TARGET_START_TENTHS
        floor = self.defaults.TARGET_FLOOR_TENTHS
        attempts = 0

        while attempts < max_iterations:
            output = self._attempt(asset, tenths, background_color)
            attempts += 1
            logger.debug(
                f"{asset.name}: 质量 {tenths / 10} → {output.size} 字节"
                f"（目标 {target_bytes}）"
            )
            if output.size <= target_bytes:
                return SizeTargetResult(
                    asset=output,
                    quality_used=tenths / 10,
                    attempts=attempts,
                    target_met=True,
                )

            tenths -= self.defaults.TARGET_STEP_TENTHS
            if tenths <= floor:
                break

        # 最终以最低质量兜底，不论是否达到目标
        output = self._attempt(asset, floor, background_color)
        attempts += 1
        target_met = output.size <= target_bytes
        if not target_met:
            logger.info(
                f"{asset.name}: 最低质量仍为 {output.size} 字节，未达到目标 {target_bytes}"
            )

        return SizeTargetResult(
            asset=output,
            quality_used=floor / 10,
            attempts=attempts,
            target_met=target_met,
        )

    def _attempt(
        self, asset: ImageAsset, tenths: int, background_color: str | None
    ) -> ImageAsset:
        """以指定质量转换一次，失败时抛出对应的转换异常"""
        request = ConversionRequest(
            encoding=ImageEncoding.JPEG,
            quality=tenths / 10,
            background_color=background_color,
        )
        outcome = self.pipeline.convert(asset, request)
        if isinstance(outcome, Failure):
            raise error_for_failure(outcome)
        return outcome.asset
