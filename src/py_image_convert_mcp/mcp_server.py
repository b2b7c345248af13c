"""图像转换 MCP 服务器。

外层适配器：读取输入文件、调用转换核心、把成功的结果写成
<basename>.<ext> 文件，并返回 JSON 结果。核心本身不访问文件系统。
"""

from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from .converter import ImageConverter
from .exceptions import ConversionError
from .models import BatchProgress, Failure, ImageAsset, Success, ValidationLimits
from .utils.logging_helpers import get_logger, setup_logging
from .utils.message_formatter import MessageFormatter
from .utils.naming_helpers import PathResolver


# MCP 服务器响应类型定义
MCPConversionResponse = dict[str, Any]
MCPImageInfoResponse = dict[str, Any]


class MCPResponseBuilder:
    """MCP 服务器响应构建器，专门用于构建符合 MCP 协议的响应格式。"""

    @staticmethod
    def error(
        message: str,
        error_type: str = "general",
        details: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """构建错误结果。

        Args:
            message: 错误消息
            error_type: 错误类型
            details: 额外的错误详情

        Returns:
            dict: 标准化的错误响应
        """
        result = {
            "success": False,
            "error": message,
            "error_type": error_type,
        }

        if details:
            result["details"] = details

        return result

    @staticmethod
    def validation_error(message: str, field: str | None = None) -> dict[str, Any]:
        """构建验证错误结果。"""
        details = {"field": field} if field else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="validation",
            details=details,
        )

    @staticmethod
    def file_error(message: str, file_path: str | None = None) -> dict[str, Any]:
        """构建文件相关错误结果。"""
        details = {"file_path": file_path} if file_path else None
        return MCPResponseBuilder.error(
            message=message,
            error_type="file",
            details=details,
        )

    @staticmethod
    def conversion_error(error: ConversionError) -> dict[str, Any]:
        """构建转换错误结果，error_type 为 ErrorKind 名称。"""
        details = {"input_name": error.input_name} if error.input_name else None
        return MCPResponseBuilder.error(
            message=error.message,
            error_type=error.kind.value,
            details=details,
        )


logger = get_logger(__name__)

# 创建MCP应用
mcp: FastMCP[Any] = FastMCP("图像格式转换服务")

# 全局转换器实例
converter = ImageConverter()


@mcp.tool()
def convert_images(
    input_paths: list[str] | str,
    format: str = "JPEG",
    quality: float | None = None,
    max_width: int | None = None,
    max_height: int | None = None,
    background_color: str | None = None,
    output_dir: str | None = None,
) -> MCPConversionResponse:
    """批量转换图像格式。

    按输入顺序逐个处理，单个文件失败不影响其他文件。

    Args:
        input_paths: 输入文件路径，单个或列表
        format: 输出编码 JPEG/PNG/WEBP
        quality: 质量因子 0.0-1.0（默认 0.8，PNG 忽略）
        max_width: 最大宽度（像素），保持宽高比
        max_height: 最大高度（像素），保持宽高比
        background_color: 输出不支持透明度时的背景色，如 "#ffffff"
        output_dir: 输出目录（默认与输入文件相同）

    Returns:
        dict: 与输入顺序一致的逐项结果和汇总
    """
    paths = [input_paths] if isinstance(input_paths, str) else list(input_paths)
    if not paths:
        return MCPResponseBuilder.validation_error("没有输入文件", "input_paths")
    if len(paths) > ValidationLimits.MAX_BATCH_FILES:
        return MCPResponseBuilder.validation_error(
            f"文件数量超过限制 {ValidationLimits.MAX_BATCH_FILES}: {len(paths)}",
            "input_paths",
        )

    try:
        request = converter.build_request(
            format, quality, max_width, max_height, background_color
        )
    except ConversionError as e:
        return MCPResponseBuilder.validation_error(e.message, "request")

    entries: list[dict[str, Any] | None] = []
    assets: list[ImageAsset] = []
    asset_paths: list[Path] = []
    for raw_path in paths:
        path = Path(raw_path)
        try:
            assets.append(ImageAsset.from_path(path))
            asset_paths.append(path)
            entries.append(None)
        except (OSError, ConversionError) as e:
            logger.warning(MessageFormatter.operation_failed("读取文件", path, e))
            entries.append(
                MCPResponseBuilder.file_error(
                    MessageFormatter.operation_failed("读取文件", path, e), str(path)
                )
            )

    def log_progress(progress: BatchProgress) -> None:
        logger.info(
            f"[{progress.items_completed}/{progress.items_total}] "
            f"{progress.fraction:.0%} {progress.current_label}"
        )

    report = converter.batch_runner.run_report(assets, request, log_progress)

    results = iter(zip(asset_paths, report.outcomes, strict=True))
    for index, entry in enumerate(entries):
        if entry is not None:
            continue
        source_path, outcome = next(results)
        entries[index] = _write_outcome(source_path, outcome, output_dir)

    written = [e for e in entries if e is not None and e.get("success")]
    return {
        "success": bool(written),
        "total_files": len(paths),
        "successful_files": len(written),
        "failed_files": len(paths) - len(written),
        "quality_applied": request.encoding.is_lossy,
        "summary": report.get_summary(),
        "results": entries,
    }


def _write_outcome(
    source_path: Path, outcome: Success | Failure, output_dir: str | None
) -> dict[str, Any]:
    """把单个转换结果写入磁盘并格式化为响应"""
    if isinstance(outcome, Failure):
        return {
            "success": False,
            "input_path": str(source_path),
            "error": outcome.message,
            "error_type": outcome.reason.value,
        }

    target_dir = Path(output_dir) if output_dir else source_path.parent
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        destination = PathResolver.resolve_unique(target_dir, outcome.output_name)
        destination.write_bytes(outcome.asset.data)
    except OSError as e:
        logger.error(MessageFormatter.operation_failed("写入文件", target_dir, e))
        return MCPResponseBuilder.file_error(
            MessageFormatter.operation_failed("写入文件", target_dir, e),
            str(source_path),
        )

    return {
        "success": True,
        "input_path": str(source_path),
        "output_path": str(destination),
        "format": outcome.asset.encoding.value,
        "width": outcome.width,
        "height": outcome.height,
        "was_resized": outcome.was_resized,
        "size": outcome.asset.size,
    }


@mcp.tool()
def compress_to_size(
    input_path: str,
    target_kb: float,
    max_iterations: int = 10,
    output_path: str | None = None,
    background_color: str | None = None,
) -> MCPConversionResponse:
    """把图像压缩为不超过目标大小的 JPEG（尽力而为）。

    从质量 0.8 开始每次降低 0.1；仍无法达到目标时返回质量 0.1 的结果。

    Args:
        input_path: 输入文件路径
        target_kb: 目标大小（KB）
        max_iterations: 最多尝试次数
        output_path: 输出文件路径（默认与输入同目录，扩展名 .jpg）
        background_color: 透明区域的背景色

    Returns:
        dict: 输出路径、大小、使用的质量以及是否达到目标
    """
    path = Path(input_path)
    if not path.exists():
        return MCPResponseBuilder.file_error(MessageFormatter.file_not_found(input_path))

    try:
        asset = ImageAsset.from_path(path)
        result = converter.compress_to_target(
            asset, int(target_kb * 1024), max_iterations, background_color
        )
    except ConversionError as e:
        return MCPResponseBuilder.conversion_error(e)
    except OSError as e:
        return MCPResponseBuilder.file_error(
            MessageFormatter.operation_failed("读取文件", input_path, e), input_path
        )

    if output_path:
        destination = Path(output_path)
    else:
        destination = PathResolver.resolve_unique(path.parent, result.asset.name)

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(result.asset.data)
    except OSError as e:
        return MCPResponseBuilder.file_error(
            MessageFormatter.operation_failed("写入文件", destination, e), str(destination)
        )

    return {
        "success": True,
        "input_path": input_path,
        "output_path": str(destination),
        "original_size": asset.size,
        "compressed_size": result.asset.size,
        "quality_used": result.quality_used,
        "attempts": result.attempts,
        "target_met": result.target_met,
    }


@mcp.tool()
def get_image_info(input_path: str) -> MCPImageInfoResponse:
    """获取图片的基本信息。

    Args:
        input_path: 输入图像文件路径

    Returns:
        dict: 宽高、宽高比、大小、编码、透明度以及推荐的输出编码
    """
    path = Path(input_path)
    if not path.exists():
        return MCPResponseBuilder.file_error(MessageFormatter.file_not_found(input_path))

    try:
        asset = ImageAsset.from_path(path)
        info = converter.get_info(asset)
        suggested = converter.suggest_format(asset)
    except ConversionError as e:
        return MCPResponseBuilder.conversion_error(e)
    except OSError as e:
        return MCPResponseBuilder.file_error(
            MessageFormatter.operation_failed("读取文件", input_path, e), input_path
        )

    return {
        "success": True,
        "name": info.name,
        "format": info.encoding.value,
        "mime_type": info.encoding.mime_type,
        "width": info.width,
        "height": info.height,
        "aspect_ratio": info.aspect_ratio,
        "size": info.size,
        "size_human": info.size_human,
        "has_transparency": info.has_transparency,
        "suggested_format": suggested.value,
    }


# ============================================================================
# 应用入口
# ============================================================================


def main() -> None:
    """启动 MCP 服务器"""
    setup_logging()
    logger.info("启动图像格式转换 MCP 服务器")
    mcp.run()


if __name__ == "__main__":
    main()
