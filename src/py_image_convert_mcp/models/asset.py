"""图像资产模型。

定义在转换流水线中流转的二进制图像及其元数据。
"""

from pathlib import Path

from humanize import naturalsize
from pydantic import BaseModel, ConfigDict, Field, computed_field

from .constants import ImageEncoding


class ImageAsset(BaseModel):
    """不可变的图像二进制数据及元数据

    name 仅用于生成输出文件名。
    """

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(description="图像二进制数据", repr=False)
    encoding: ImageEncoding = Field(description="声明的编码")
    name: str = Field(description="来源名称")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def size(self) -> int:
        """字节长度"""
        return len(self.data)

    def is_valid_candidate(self) -> bool:
        """快速预检：非空数据。真正的校验仍然是解码。"""
        return self.size > 0

    @classmethod
    def from_path(cls, path: str | Path) -> "ImageAsset":
        """从文件读取资产，按扩展名推断编码

        Raises:
            InvalidRequest: 扩展名不是受支持的编码
            OSError: 读取文件失败
        """
        path = Path(path)
        encoding = ImageEncoding.parse(path.suffix)
        return cls(data=path.read_bytes(), encoding=encoding, name=path.name)


class ImageInfo(BaseModel):
    """图像基本信息"""

    name: str = Field(description="来源名称")
    encoding: ImageEncoding = Field(description="声明的编码")
    width: int = Field(description="宽度")
    height: int = Field(description="高度")
    size: int = Field(description="字节长度")
    has_transparency: bool = Field(False, description="是否包含透明度")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def aspect_ratio(self) -> float:
        """宽高比"""
        return self.width / self.height if self.height else 0.0

    @property
    def size_human(self) -> str:
        return naturalsize(self.size, binary=True)
