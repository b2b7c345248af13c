"""文件命名工具模块。

提供统一的输出文件命名与路径生成功能。
"""

from pathlib import Path, PurePath

from ..models.constants import ImageEncoding


class FileNamingStrategy:
    """文件命名策略类"""

    @staticmethod
    def generate_output_name(input_name: str, encoding: ImageEncoding) -> str:
        """生成输出文件名：保留基础名，替换扩展名

        Args:
            input_name: 输入名称，可以带目录
            encoding: 目标编码

        Returns:
            str: 生成的文件名（不含路径）
        """
        stem = PurePath(input_name).stem if input_name else ""
        if not stem or stem.startswith("."):
            # 类似 ".png" 的名称没有基础名
            stem = stem.lstrip(".") or "image"
        return f"{stem}{encoding.extension}"


class PathResolver:
    """路径解析器"""

    @staticmethod
    def resolve_unique(output_dir: Path, file_name: str) -> Path:
        """在输出目录中返回不冲突的路径，冲突时追加序号"""
        candidate = output_dir / file_name
        if not candidate.exists():
            return candidate

        stem, suffix = candidate.stem, candidate.suffix
        index = 1
        while True:
            candidate = output_dir / f"{stem}_{index}{suffix}"
            if not candidate.exists():
                return candidate
            index += 1


def derive_output_name(input_name: str, encoding: ImageEncoding) -> str:
    """便捷函数：按目标编码生成输出文件名"""
    return FileNamingStrategy.generate_output_name(input_name, encoding)
