"""并发执行器模块。

在多个独立画布上并行转换，结果按输入顺序落位。
"""

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import (
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)

from ..config import ConversionDefaults, get_config
from ..core.pipeline import convert_image
from ..exceptions import ErrorHandler
from ..models.asset import ImageAsset
from ..models.outcome import ConversionOutcome
from ..models.request import ConversionRequest


logger = logging.getLogger(__name__)

# 每完成一项时回调：(输入下标, 结果)
CompletionCallback = Callable[[int, ConversionOutcome], None]


class ConcurrentExecutor:
    """通用并发执行器

    每个工作线程/进程各自解码、绘制和编码，不共享画布。
    """

    def __init__(
        self,
        max_workers: int = 4,
        force_executor_type: str | None = None,
        defaults: ConversionDefaults | None = None,
    ):
        """初始化并发执行器

        Args:
            max_workers: 最大并发数
            force_executor_type: 强制指定执行器类型 ('thread'/'process'/None为自动选择)
            defaults: 传给每个工作流水线的编码参数，默认读取全局配置
        """
        self.max_workers = max_workers
        self.force_executor_type = force_executor_type
        self.defaults = defaults

    def execute(
        self,
        inputs: Sequence[ImageAsset],
        request: ConversionRequest,
        on_completed: CompletionCallback,
        cancel_event: threading.Event | None = None,
    ) -> list[ConversionOutcome]:
        """并发执行转换任务

        Args:
            inputs: 输入资产列表
            request: 转换请求
            on_completed: 每完成一项时在调用线程中回调
            cancel_event: 取消信号，设置后尚未开始的任务不再执行

        Returns:
            list[ConversionOutcome]: 与输入顺序一致的结果列表
        """
        if not inputs:
            return []

        slots: list[ConversionOutcome | None] = [None] * len(inputs)
        executor_class = self._choose_executor(len(inputs))

        with executor_class(max_workers=self.max_workers) as executor:
            future_to_index: dict[Future[ConversionOutcome], int] = {
                executor.submit(convert_image, asset, request, self.defaults): index
                for index, asset in enumerate(inputs)
            }
            self._collect_results(
                future_to_index, inputs, slots, on_completed, cancel_event
            )

        return [
            slot if slot is not None else ErrorHandler.cancelled(inputs[i].name)
            for i, slot in enumerate(slots)
        ]

    def _collect_results(
        self,
        future_to_index: dict[Future[ConversionOutcome], int],
        inputs: Sequence[ImageAsset],
        slots: list[ConversionOutcome | None],
        on_completed: CompletionCallback,
        cancel_event: threading.Event | None,
    ) -> None:
        """收集任务执行结果，写入对应下标"""
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            name = inputs[index].name

            if future.cancelled():
                slots[index] = ErrorHandler.cancelled(name)
                continue

            try:
                outcome = future.result()
            except Exception as e:
                # 工作进程崩溃等情况，只影响当前项
                outcome = ErrorHandler.to_failure(e, name, "并发任务处理")

            slots[index] = outcome
            if outcome.is_success:
                logger.debug(f"处理成功: {name}")
            else:
                logger.warning(f"处理失败: {name} - {outcome.message}")
            on_completed(index, outcome)

            if cancel_event is not None and cancel_event.is_set():
                self._cancel_pending(future_to_index)

    @staticmethod
    def _cancel_pending(future_to_index: dict[Future[ConversionOutcome], int]) -> None:
        for pending in future_to_index:
            if not pending.done():
                pending.cancel()

    def _choose_executor(self, task_count: int) -> type:
        """根据任务数量选择执行器

        Returns:
            执行器类 (ThreadPoolExecutor 或 ProcessPoolExecutor)
        """
        # 如果用户强制指定了执行器类型
        if self.force_executor_type == "thread":
            return ThreadPoolExecutor
        if self.force_executor_type == "process":
            return ProcessPoolExecutor

        if get_config().get_executor_type(task_count) == "process":
            logger.debug(f"使用ProcessPoolExecutor: 任务数={task_count}")
            return ProcessPoolExecutor

        logger.debug(f"使用ThreadPoolExecutor: 任务数={task_count}")
        return ThreadPoolExecutor
