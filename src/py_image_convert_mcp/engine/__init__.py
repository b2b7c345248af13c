"""图像转换处理引擎模块。

包含批量处理与按目标大小压缩等基于流水线的处理逻辑。
"""

from .batch import BatchRunner
from .concurrent_executor import ConcurrentExecutor
from .size_target import SizeTargetingCompressor


__all__ = [
    "BatchRunner",
    "ConcurrentExecutor",
    "SizeTargetingCompressor",
]
