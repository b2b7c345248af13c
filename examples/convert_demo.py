#!/usr/bin/env python3
"""图像格式转换演示脚本。

展示 py_image_convert_mcp 库的核心功能，包括：
- 单张转换（缩放、背景填充）
- 带进度回调的批量转换
- 按目标大小压缩
"""

from io import BytesIO

from PIL import Image, ImageDraw

from py_image_convert_mcp import BatchProgress, ImageAsset, ImageConverter, ImageEncoding


def create_demo_asset(name: str, size: tuple[int, int], transparent: bool) -> ImageAsset:
    """在内存中生成演示图像"""
    mode = "RGBA" if transparent else "RGB"
    background = (0, 0, 0, 0) if transparent else "white"
    img = Image.new(mode, size, color=background)
    draw = ImageDraw.Draw(img)
    width, height = size
    for i in range(12):
        x, y = (i * width) // 12, (i * height) // 12
        draw.ellipse(
            [x, y, x + width // 4, y + height // 4],
            fill=(255 - i * 20, 80 + i * 10, i * 20, 255),
        )

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return ImageAsset(data=buffer.getvalue(), encoding=ImageEncoding.PNG, name=name)


def demo_single(converter: ImageConverter) -> None:
    print("\n🖼️ 单张转换")
    asset = create_demo_asset("logo.png", (1600, 1200), transparent=True)
    info = converter.get_info(asset)
    print(f"  输入: {info.width}x{info.height}, {info.size_human}, 透明={info.has_transparency}")

    outcome = converter.convert(
        asset, "jpeg", quality=0.85, max_width=800, background_color="#ffffff"
    )
    if outcome.is_success:
        print(
            f"  ✅ {outcome.output_name}: {outcome.width}x{outcome.height}, "
            f"{outcome.asset.size} 字节"
        )
    else:
        print(f"  ❌ {outcome.reason.value}: {outcome.message}")


def demo_batch(converter: ImageConverter) -> None:
    print("\n📦 批量转换")
    assets = [
        create_demo_asset(f"frame_{i}.png", (400 + i * 100, 300), transparent=False)
        for i in range(4)
    ]
    assets.insert(
        2, ImageAsset(data=b"broken", encoding=ImageEncoding.PNG, name="broken.png")
    )

    def on_progress(progress: BatchProgress) -> None:
        print(
            f"  [{progress.items_completed}/{progress.items_total}] "
            f"{progress.current_label}"
        )

    report = converter.convert_many(assets, "webp", quality=0.7, on_progress=on_progress)
    for failure in report.get_failed_items():
        print(f"  ❌ {failure.input_name}: {failure.reason.value}")
    print(f"  {report.get_summary()}")


def demo_size_target(converter: ImageConverter) -> None:
    print("\n🎯 按目标大小压缩")
    asset = create_demo_asset("poster.png", (2000, 1500), transparent=False)
    result = converter.compress_to_target(asset, target_bytes=40 * 1024)
    status = "达到目标" if result.target_met else "未达到目标"
    print(
        f"  {result.asset.name}: {result.asset.size} 字节, 质量 {result.quality_used}, "
        f"尝试 {result.attempts} 次, {status}"
    )


def main() -> None:
    converter = ImageConverter()
    demo_single(converter)
    demo_batch(converter)
    demo_size_target(converter)


if __name__ == "__main__":
    main()
