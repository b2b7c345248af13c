"""转换结果模型。

定义单个转换结果、批量进度与批量报告的数据结构。
"""

from enum import Enum
from typing import Annotated, Literal

from humanize import naturalsize
from pydantic import BaseModel, ConfigDict, Field

from .asset import ImageAsset


class ErrorKind(str, Enum):
    """失败原因分类"""

    DECODE_ERROR = "DecodeError"  # 输入无法解码为栅格图像
    ENCODE_ERROR = "EncodeError"  # 画布无法按目标编码序列化
    INVALID_REQUEST = "InvalidRequest"  # 请求参数不合法
    CANCELLED = "Cancelled"  # 批量任务取消后未处理的项


class Success(BaseModel):
    """转换成功"""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    asset: ImageAsset = Field(description="输出资产")
    output_name: str = Field(description="输出文件名")
    width: int = Field(description="输出宽度")
    height: int = Field(description="输出高度")
    original_width: int = Field(description="原始宽度")
    original_height: int = Field(description="原始高度")

    @property
    def is_success(self) -> bool:
        return True

    @property
    def was_resized(self) -> bool:
        return (self.width, self.height) != (self.original_width, self.original_height)


class Failure(BaseModel):
    """转换失败"""

    model_config = ConfigDict(frozen=True)

    status: Literal["failure"] = "failure"
    input_name: str = Field(description="输入名称")
    reason: ErrorKind = Field(description="失败分类")
    message: str = Field(description="可读的失败原因")

    @property
    def is_success(self) -> bool:
        return False


ConversionOutcome = Annotated[Success | Failure, Field(discriminator="status")]


class BatchProgress(BaseModel):
    """批量处理进度，每处理完一项发出一次"""

    model_config = ConfigDict(frozen=True)

    items_completed: int = Field(description="已完成数量")
    items_total: int = Field(description="总数量")
    current_label: str = Field(description="当前项名称")

    @property
    def fraction(self) -> float:
        if self.items_total == 0:
            return 1.0
        return self.items_completed / self.items_total


class BatchReport(BaseModel):
    """批量转换报告"""

    outcomes: list[ConversionOutcome] = Field(description="按输入顺序排列的结果")

    def get_successful_items(self) -> list[Success]:
        return [o for o in self.outcomes if isinstance(o, Success)]

    def get_failed_items(self) -> list[Failure]:
        return [o for o in self.outcomes if isinstance(o, Failure)]

    def get_total_count(self) -> int:
        return len(self.outcomes)

    def get_success_count(self) -> int:
        return len(self.get_successful_items())

    def get_failure_count(self) -> int:
        return len(self.get_failed_items())

    def get_success_rate(self) -> float:
        """成功率（百分比）"""
        total = self.get_total_count()
        if total == 0:
            return 0.0
        return (self.get_success_count() / total) * 100

    def get_total_output_size(self) -> int:
        return sum(o.asset.size for o in self.get_successful_items())

    def get_summary(self) -> str:
        """批量转换摘要"""
        total = self.get_total_count()
        successful = self.get_success_count()
        output_size = naturalsize(self.get_total_output_size(), binary=True)

        return (
            f"转换 {successful}/{total} 个文件 "
            f"(成功率 {self.get_success_rate():.1f}%), "
            f"输出共 {output_size}"
        )


class SizeTargetResult(BaseModel):
    """按目标大小压缩的结果"""

    asset: ImageAsset = Field(description="最终输出资产")
    quality_used: float = Field(description="最终使用的质量因子")
    attempts: int = Field(description="转换次数（含最终兜底转换）")
    target_met: bool = Field(description="是否达到目标大小")
