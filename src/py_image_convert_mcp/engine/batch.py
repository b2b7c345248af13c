"""批量转换器模块。

对一组输入资产应用同一个转换请求，单项失败不会中断整个批次。
"""

import threading
from collections.abc import Callable, Sequence

from ..config import get_config
from ..core.pipeline import ImagePipeline
from ..exceptions import ErrorHandler, InvalidRequest
from ..models.asset import ImageAsset
from ..models.outcome import BatchProgress, BatchReport, ConversionOutcome
from ..models.request import ConversionRequest
from ..utils.logging_helpers import get_logger
from .concurrent_executor import ConcurrentExecutor


logger = get_logger()

ProgressCallback = Callable[[BatchProgress], None]


class BatchRunner:
    """批量图像转换器

    默认严格按顺序逐项处理；max_workers > 1 时在独立画布上并行处理，
    结果仍按输入顺序返回，进度计数单调递增。
    """

    def __init__(
        self,
        pipeline: ImagePipeline | None = None,
        max_workers: int | None = None,
        force_executor_type: str | None = None,
    ):
        """初始化批量转换器

        Args:
            pipeline: 单张图像流水线；并行模式下每个工作单元另建流水线，
                只沿用其编码参数
            max_workers: 最大并发数，默认读取配置（1 为顺序处理）
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
        """
        self.pipeline = pipeline or ImagePipeline()
        if max_workers is None:
            max_workers = get_config().processing.MAX_WORKERS
        self.max_workers = max_workers
        if self.max_workers <= 0:
            raise InvalidRequest("max_workers 必须大于 0")

        if force_executor_type not in {None, "thread", "process"}:
            raise InvalidRequest("force_executor_type 必须是 'thread', 'process' 或 None")
        self.concurrent_executor = ConcurrentExecutor(
            self.max_workers, force_executor_type, self.pipeline.processor.defaults
        )

    def run(
        self,
        inputs: Sequence[ImageAsset],
        request: ConversionRequest,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[ConversionOutcome]:
        """批量转换

        Args:
            inputs: 输入资产，按顺序处理
            request: 应用于每一项的转换请求
            on_progress: 每处理完一项（无论成败）调用一次
            cancel_event: 取消信号，每项开始前检查；剩余项返回 Cancelled 失败

        Returns:
            list[ConversionOutcome]: 与 inputs 一一对应的结果
        """
        inputs = list(inputs)
        total = len(inputs)
        logger.info(f"开始批量转换: {total} 个文件 → {request.encoding.value}")

        if self.max_workers > 1 and total > 1:
            outcomes = self._run_concurrent(inputs, request, on_progress, cancel_event)
        else:
            outcomes = self._run_sequential(inputs, request, on_progress, cancel_event)

        succeeded = sum(1 for o in outcomes if o.is_success)
        logger.info(f"批量转换结束: 成功 {succeeded}/{total}")
        return outcomes

    def run_report(
        self,
        inputs: Sequence[ImageAsset],
        request: ConversionRequest,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BatchReport:
        """批量转换并返回汇总报告"""
        return BatchReport(outcomes=self.run(inputs, request, on_progress, cancel_event))

    def _run_sequential(
        self,
        inputs: list[ImageAsset],
        request: ConversionRequest,
        on_progress: ProgressCallback | None,
        cancel_event: threading.Event | None,
    ) -> list[ConversionOutcome]:
        """逐项处理，一项完全结束后才开始下一项"""
        total = len(inputs)
        outcomes: list[ConversionOutcome] = []

        for index, asset in enumerate(inputs):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"批量转换已取消，剩余 {total - index} 项未处理")
                outcomes.extend(ErrorHandler.cancelled(a.name) for a in inputs[index:])
                break

            outcomes.append(self.pipeline.convert(asset, request))
            _emit_progress(on_progress, index + 1, total, asset.name)

        return outcomes

    def _run_concurrent(
        self,
        inputs: list[ImageAsset],
        request: ConversionRequest,
        on_progress: ProgressCallback | None,
        cancel_event: threading.Event | None,
    ) -> list[ConversionOutcome]:
        """并行处理，进度在调用线程中按完成顺序发出"""
        total = len(inputs)
        completed = 0

        def on_completed(index: int, _outcome: ConversionOutcome) -> None:
            nonlocal completed
            completed += 1
            _emit_progress(on_progress, completed, total, inputs[index].name)

        if cancel_event is not None and cancel_event.is_set():
            return [ErrorHandler.cancelled(a.name) for a in inputs]

        return self.concurrent_executor.execute(
            inputs, request, on_completed, cancel_event
        )


def _emit_progress(
    callback: ProgressCallback | None, completed: int, total: int, label: str
) -> None:
    if not callback:
        return
    try:
        callback(
            BatchProgress(items_completed=completed, items_total=total, current_label=label)
        )
    except Exception:
        # 回调异常不中断批次
        logger.exception(f"进度回调异常: {label}")
