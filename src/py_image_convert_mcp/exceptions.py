"""图像转换异常处理模块。

定义统一的异常类型，以及把 Pillow 异常映射为转换错误、
把转换错误转为失败结果的处理机制。
"""

from collections.abc import Iterator
from contextlib import contextmanager

from PIL.Image import DecompressionBombError, UnidentifiedImageError

from .models.outcome import ErrorKind, Failure
from .utils.logging_helpers import get_logger
from .utils.message_formatter import MessageFormatter


logger = get_logger()


# 统一的异常类型
class ConversionError(Exception):
    """转换相关错误基类"""

    kind: ErrorKind = ErrorKind.ENCODE_ERROR

    def __init__(self, message: str, input_name: str | None = None):
        super().__init__(message)
        self.message = message
        self.input_name = input_name


class DecodeError(ConversionError):
    """输入无法解码为栅格图像"""

    kind = ErrorKind.DECODE_ERROR


class EncodeError(ConversionError):
    """画布无法序列化为目标编码"""

    kind = ErrorKind.ENCODE_ERROR


class InvalidRequest(ConversionError):
    """请求参数不合法"""

    kind = ErrorKind.INVALID_REQUEST


def error_for_failure(failure: Failure) -> ConversionError:
    """把失败结果还原为对应的异常，供需要抛出异常的调用方使用"""
    match failure.reason:
        case ErrorKind.DECODE_ERROR:
            return DecodeError(failure.message, failure.input_name)
        case ErrorKind.INVALID_REQUEST:
            return InvalidRequest(failure.message, failure.input_name)
        case ErrorKind.ENCODE_ERROR:
            return EncodeError(failure.message, failure.input_name)
        case ErrorKind.CANCELLED:
            return ConversionError(failure.message, failure.input_name)


@contextmanager
def decode_errors(input_name: str | None = None) -> Iterator[None]:
    """把解码阶段的 Pillow 异常映射为 DecodeError"""
    try:
        yield
    except UnidentifiedImageError as e:
        raise DecodeError(f"无法识别图像格式: {e}", input_name) from e
    except DecompressionBombError as e:
        raise DecodeError(f"图像像素过多，可能存在安全风险: {e}", input_name) from e
    except (OSError, SyntaxError, ValueError, EOFError) as e:
        raise DecodeError(f"图像数据损坏: {e}", input_name) from e


@contextmanager
def encode_errors(input_name: str | None = None, encoding: str = "") -> Iterator[None]:
    """把编码阶段的 Pillow 异常映射为 EncodeError"""
    try:
        yield
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(f"无法编码为 {encoding}: {e}", input_name) from e


class ErrorHandler:
    """统一错误处理器

    提供标准化的错误日志记录和失败结果构建。
    """

    @staticmethod
    def _log_error(
        operation: str, name: str, error: Exception, level: str = "error"
    ) -> None:
        """标准化的错误日志记录

        Args:
            operation: 操作名称（如"解码"、"编码"等）
            name: 相关资产名称
            error: 异常对象
            level: 日志级别 ("error", "warning", "debug")
        """
        log_msg = MessageFormatter.format_error(operation, name, error)
        getattr(logger, level, logger.error)(log_msg)

    @staticmethod
    def to_failure(
        error: Exception, input_name: str, operation: str = "图像转换"
    ) -> Failure:
        """把异常转换为失败结果，按异常类型选择日志级别"""
        match error:
            case InvalidRequest() as ir:
                ErrorHandler._log_error("参数验证", input_name, ir, "warning")
                return Failure(
                    input_name=input_name,
                    reason=ir.kind,
                    message=ir.message,
                )
            case ConversionError() as ce:
                ErrorHandler._log_error(operation, input_name, ce, "warning")
                return Failure(
                    input_name=input_name, reason=ce.kind, message=ce.message
                )
            case _:
                # 未预期的异常：记录堆栈，归类为编码失败
                logger.exception(
                    MessageFormatter.format_error(operation, input_name, error)
                )
                return Failure(
                    input_name=input_name,
                    reason=ErrorKind.ENCODE_ERROR,
                    message=f"{operation}: {error}",
                )

    @staticmethod
    def cancelled(input_name: str) -> Failure:
        """批量任务取消后未处理项的结果"""
        logger.debug(f"已取消: {input_name}")
        return Failure(
            input_name=input_name,
            reason=ErrorKind.CANCELLED,
            message=MessageFormatter.cancelled(input_name),
        )
