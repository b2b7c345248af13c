"""图像转换流水线模块。

解码 → 按约束缩放 → 绘制到画布 → 按目标编码重新编码。
每次调用都在内存中完成，不访问文件系统或网络，也不保留跨调用状态。
"""

from contextlib import ExitStack
from io import BytesIO

from PIL import Image, ImageOps

from ..exceptions import DecodeError, ErrorHandler, decode_errors, encode_errors
from ..config import ConversionDefaults
from ..models.asset import ImageAsset, ImageInfo
from ..models.constants import OUTPUT_ENCODINGS, ImageEncoding
from ..models.outcome import ConversionOutcome, Success
from ..models.request import ConversionRequest, RequestValidator
from ..utils.logging_helpers import get_logger
from ..utils.message_formatter import MessageFormatter
from ..utils.naming_helpers import derive_output_name
from .formats import EncodingProcessor, has_alpha, normalize_mode
from .geometry import compute_target_size


logger = get_logger()


class ImagePipeline:
    """单张图像的转换流水线

    convert() 永远返回 Success 或 Failure，不会抛出异常。
    """

    def __init__(self, processor: EncodingProcessor | None = None) -> None:
        self.processor = processor or EncodingProcessor()

    def convert(
        self, asset: ImageAsset, request: ConversionRequest
    ) -> ConversionOutcome:
        """把一个资产按请求转换为新的资产

        Args:
            asset: 输入图像
            request: 转换请求

        Returns:
            ConversionOutcome: Success 或带有 ErrorKind 的 Failure
        """
        try:
            # 请求不合法时不进行任何解码
            RequestValidator.validate(request)
            return self._convert(asset, request)
        except Exception as e:
            return ErrorHandler.to_failure(e, asset.name, "图像转换")

    def resize(
        self,
        asset: ImageAsset,
        max_width: int | None,
        max_height: int | None,
        quality: float = 0.8,
    ) -> ConversionOutcome:
        """保持原编码的缩放

        GIF、BMP 等无法输出的编码改为 PNG。
        """
        encoding = (
            asset.encoding if asset.encoding in OUTPUT_ENCODINGS else ImageEncoding.PNG
        )
        request = ConversionRequest(
            encoding=encoding,
            quality=quality,
            max_width=max_width,
            max_height=max_height,
        )
        return self.convert(asset, request)

    def inspect(self, asset: ImageAsset) -> ImageInfo:
        """读取图像基本信息

        Raises:
            DecodeError: 数据无法解码
        """
        if not asset.is_valid_candidate():
            raise DecodeError("图像数据为空", asset.name)

        with decode_errors(asset.name), Image.open(BytesIO(asset.data)) as img:
            width, height = img.size
            # 与解码后显示的方向保持一致
            orientation = img.getexif().get(0x0112, 1)
            if orientation in (5, 6, 7, 8):
                width, height = height, width
            return ImageInfo(
                name=asset.name,
                encoding=asset.encoding,
                width=width,
                height=height,
                size=asset.size,
                has_transparency=has_alpha(img),
            )

    def _convert(self, asset: ImageAsset, request: ConversionRequest) -> Success:
        """执行转换，失败时抛出 ConversionError"""
        if not asset.is_valid_candidate():
            raise DecodeError("图像数据为空", asset.name)

        with ExitStack() as stack:
            source = self._decode(asset, stack)
            original_size = source.size

            target_size = (
                compute_target_size(*original_size, request.max_width, request.max_height)
                if request.should_resize
                else original_size
            )

            with encode_errors(asset.name, request.encoding.value):
                surface = _owned(
                    stack, self.processor.render(source, target_size, request)
                )
                data = self.processor.encode(surface, request)

        output_name = derive_output_name(asset.name, request.encoding)
        result = ImageAsset(data=data, encoding=request.encoding, name=output_name)
        logger.debug(
            MessageFormatter.converted(
                asset.name, output_name, f"{original_size} → {target_size}"
            )
        )

        return Success(
            asset=result,
            output_name=output_name,
            width=target_size[0],
            height=target_size[1],
            original_width=original_size[0],
            original_height=original_size[1],
        )

    def _decode(self, asset: ImageAsset, stack: ExitStack) -> Image.Image:
        """解码为 RGB/RGBA 图像，所有中间对象注册到 stack 中释放"""
        with decode_errors(asset.name):
            img = _owned(stack, Image.open(BytesIO(asset.data)))
            img.load()

            # 按 EXIF 方向校正，与浏览器显示一致
            transposed = ImageOps.exif_transpose(img)
            if transposed is not None and transposed is not img:
                img = _owned(stack, transposed)

            normalized = normalize_mode(img)
            if normalized is not img:
                img = _owned(stack, normalized)

            if img.width <= 0 or img.height <= 0:
                raise DecodeError("图像尺寸无效", asset.name)
            return img


def _owned(stack: ExitStack, img: Image.Image) -> Image.Image:
    """登记图像，在 stack 退出时关闭并释放像素内存"""
    stack.callback(img.close)
    return img


def convert_image(
    asset: ImageAsset,
    request: ConversionRequest,
    defaults: ConversionDefaults | None = None,
) -> ConversionOutcome:
    """模块级转换函数，可被进程池序列化调用

    每次调用新建流水线；defaults 为调用方流水线的编码参数。
    """
    return ImagePipeline(EncodingProcessor(defaults)).convert(asset, request)
