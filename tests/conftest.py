"""测试配置文件。

提供测试所需的fixtures和配置。测试图片全部在内存中生成。
"""

from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

from py_image_convert_mcp.config import reset_config
from py_image_convert_mcp.models import ImageAsset, ImageEncoding


def encode_image(img: Image.Image, encoding: ImageEncoding, **params) -> bytes:
    """把 Pillow 图像编码为字节"""
    buffer = BytesIO()
    img.save(buffer, format=encoding.pillow_format, **params)
    return buffer.getvalue()


def make_asset(
    size: tuple[int, int] = (100, 80),
    encoding: ImageEncoding = ImageEncoding.PNG,
    name: str | None = None,
    mode: str = "RGB",
    color: tuple[int, ...] | str = "white",
) -> ImageAsset:
    """生成带有图案的测试资产"""
    img = Image.new(mode, size, color=color)
    draw = ImageDraw.Draw(img)
    width, height = size
    for i in range(10):
        x, y = (i * width) // 10, (i * height) // 10
        fill = (i * 25 % 256, i * 40 % 256, i * 60 % 256)
        if mode == "RGBA":
            fill = (*fill, 255)
        draw.rectangle([x, y, x + width // 8, y + height // 8], fill=fill)

    name = name or f"sample{encoding.extension}"
    return ImageAsset(data=encode_image(img, encoding), encoding=encoding, name=name)


def make_noise_asset(size: tuple[int, int] = (400, 300), name: str = "noise.png") -> ImageAsset:
    """生成难以压缩的噪声图"""
    img = Image.effect_noise(size, 80).convert("RGB")
    return ImageAsset(
        data=encode_image(img, ImageEncoding.PNG), encoding=ImageEncoding.PNG, name=name
    )


def open_asset(asset: ImageAsset) -> Image.Image:
    """解码资产，调用方负责关闭"""
    img = Image.open(BytesIO(asset.data))
    img.load()
    return img


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """每个测试使用不受环境变量影响的全局配置"""
    for key in (
        "PICONV_DEFAULT_QUALITY",
        "PICONV_TARGET_MAX_ITERATIONS",
        "PICONV_PNG_COMPRESS_LEVEL",
        "PICONV_MAX_WORKERS",
        "PICONV_LOG_LEVEL",
        "PICONV_ENABLE_FILE_LOGGING",
        "PICONV_LOG_FILE_PATH",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def png_asset() -> ImageAsset:
    """不透明 PNG"""
    return make_asset((100, 80), ImageEncoding.PNG, "photo.png")


@pytest.fixture
def transparent_asset() -> ImageAsset:
    """完全透明背景上有一个不透明方块的 PNG"""
    img = Image.new("RGBA", (40, 40), color=(0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.rectangle([10, 10, 29, 29], fill=(0, 0, 255, 255))
    return ImageAsset(
        data=encode_image(img, ImageEncoding.PNG),
        encoding=ImageEncoding.PNG,
        name="logo.png",
    )


@pytest.fixture
def large_jpeg_asset() -> ImageAsset:
    """4000x3000 JPEG"""
    return make_asset((4000, 3000), ImageEncoding.JPEG, "big.jpg")


@pytest.fixture
def corrupt_asset() -> ImageAsset:
    """扩展名声明为 PNG 但内容无法解码"""
    return ImageAsset(
        data=b"\x89PNG\r\n\x1a\n this is not an image",
        encoding=ImageEncoding.PNG,
        name="broken.png",
    )


@pytest.fixture
def sample_files(tmp_path: Path) -> dict[str, Path]:
    """写入磁盘的测试图片"""
    files = {}
    for key, asset in {
        "photo": make_asset((120, 90), ImageEncoding.PNG, "photo.png"),
        "jpeg": make_asset((200, 100), ImageEncoding.JPEG, "scene.jpg"),
    }.items():
        path = tmp_path / asset.name
        path.write_bytes(asset.data)
        files[key] = path

    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image at all")
    files["broken"] = broken
    return files
