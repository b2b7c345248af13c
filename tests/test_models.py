"""数据模型、配置与工具函数测试。"""

from pathlib import Path

import pytest
from pydantic import TypeAdapter, ValidationError

from py_image_convert_mcp.config import get_config, reset_config
from py_image_convert_mcp.exceptions import (
    ConversionError,
    DecodeError,
    ErrorHandler,
    InvalidRequest,
    error_for_failure,
)
from py_image_convert_mcp.models import (
    OUTPUT_ENCODINGS,
    BatchReport,
    ConversionOutcome,
    ConversionRequest,
    ErrorKind,
    Failure,
    ImageAsset,
    ImageEncoding,
    RequestValidator,
    get_extension,
    suggest_output_encoding,
    supports_transparency,
)
from py_image_convert_mcp.utils.naming_helpers import PathResolver, derive_output_name


class TestImageEncoding:
    """编码枚举测试"""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("jpg", ImageEncoding.JPEG),
            (".JPEG", ImageEncoding.JPEG),
            ("jfif", ImageEncoding.JPEG),
            ("image/webp", ImageEncoding.WEBP),
            ("Png", ImageEncoding.PNG),
            ("dib", ImageEncoding.BMP),
            (ImageEncoding.GIF, ImageEncoding.GIF),
        ],
    )
    def test_parse(self, raw, expected):
        assert ImageEncoding.parse(raw) == expected

    @pytest.mark.parametrize("raw", ["tiff", "", "   ", "image/"])
    def test_parse_unknown(self, raw):
        with pytest.raises(InvalidRequest):
            ImageEncoding.parse(raw)

    def test_properties(self):
        assert ImageEncoding.JPEG.extension == ".jpg"
        assert ImageEncoding.WEBP.mime_type == "image/webp"
        assert ImageEncoding.JPEG.is_lossy
        assert not ImageEncoding.PNG.is_lossy
        assert supports_transparency("png")
        assert not supports_transparency("jpg")
        assert get_extension("webp") == ".webp"

    def test_output_encodings(self):
        assert OUTPUT_ENCODINGS == {
            ImageEncoding.JPEG,
            ImageEncoding.PNG,
            ImageEncoding.WEBP,
        }

    @pytest.mark.parametrize(
        "source,transparent,expected",
        [
            ("png", False, ImageEncoding.JPEG),
            ("bmp", False, ImageEncoding.JPEG),
            ("gif", False, ImageEncoding.PNG),
            ("webp", False, ImageEncoding.WEBP),
            ("jpeg", False, ImageEncoding.JPEG),
            ("webp", True, ImageEncoding.PNG),
        ],
    )
    def test_suggest_output_encoding(self, source, transparent, expected):
        assert suggest_output_encoding(source, transparent) == expected


class TestConversionRequest:
    """转换请求测试"""

    def test_defaults(self):
        request = ConversionRequest(encoding="jpg")
        assert request.encoding == ImageEncoding.JPEG
        assert request.quality == 0.8
        assert not request.should_resize
        assert not request.needs_background_fill

    def test_background_fill_only_without_alpha(self):
        assert ConversionRequest(encoding="jpeg", background_color="#fff").needs_background_fill
        assert not ConversionRequest(
            encoding="png", background_color="#fff"
        ).needs_background_fill

    def test_unknown_encoding_rejected_by_model(self):
        with pytest.raises(ValidationError):
            ConversionRequest(encoding="tiff")

    def test_request_is_frozen(self):
        request = ConversionRequest(encoding="png")
        with pytest.raises(ValidationError):
            request.quality = 0.5

    def test_parse_color(self):
        assert RequestValidator.parse_color("#ff0000") == (255, 0, 0)
        assert RequestValidator.parse_color("white") == (255, 255, 255)
        assert RequestValidator.parse_color("#00ff0080") == (0, 255, 0)
        with pytest.raises(InvalidRequest):
            RequestValidator.parse_color("rainbow")

    def test_validate_accepts_boundaries(self):
        RequestValidator.validate(ConversionRequest(encoding="webp", quality=0.0))
        RequestValidator.validate(ConversionRequest(encoding="webp", quality=1.0))


class TestOutcomes:
    """结果模型测试"""

    def test_discriminated_union(self):
        adapter = TypeAdapter(ConversionOutcome)
        outcome = adapter.validate_python(
            {
                "status": "failure",
                "input_name": "a.png",
                "reason": "DecodeError",
                "message": "broken",
            }
        )
        assert isinstance(outcome, Failure)
        assert outcome.reason == ErrorKind.DECODE_ERROR

    def test_empty_report(self):
        report = BatchReport(outcomes=[])
        assert report.get_success_rate() == 0.0
        assert report.get_total_output_size() == 0

    @pytest.mark.parametrize(
        "reason,expected",
        [
            (ErrorKind.DECODE_ERROR, DecodeError),
            (ErrorKind.INVALID_REQUEST, InvalidRequest),
            (ErrorKind.CANCELLED, ConversionError),
        ],
    )
    def test_error_for_failure(self, reason, expected):
        failure = Failure(input_name="x.png", reason=reason, message="m")
        error = error_for_failure(failure)
        assert type(error) is expected
        assert error.input_name == "x.png"

    def test_unexpected_exception_becomes_encode_error(self):
        failure = ErrorHandler.to_failure(RuntimeError("boom"), "x.png")
        assert failure.reason == ErrorKind.ENCODE_ERROR
        assert "boom" in failure.message


class TestAssetAndNaming:
    """资产与命名测试"""

    def test_from_path(self, sample_files):
        asset = ImageAsset.from_path(sample_files["jpeg"])
        assert asset.encoding == ImageEncoding.JPEG
        assert asset.name == "scene.jpg"
        assert asset.size == sample_files["jpeg"].stat().st_size

    def test_from_path_unknown_suffix(self, tmp_path: Path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(InvalidRequest):
            ImageAsset.from_path(path)

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("photo.png", "photo.webp"),
            ("dir/sub/photo.jpeg", "photo.webp"),
            ("archive.tar.png", "archive.tar.webp"),
            ("", "image.webp"),
        ],
    )
    def test_derive_output_name(self, name, expected):
        assert derive_output_name(name, ImageEncoding.WEBP) == expected

    def test_resolve_unique(self, tmp_path: Path):
        (tmp_path / "a.jpg").write_bytes(b"1")
        (tmp_path / "a_1.jpg").write_bytes(b"2")
        assert PathResolver.resolve_unique(tmp_path, "a.jpg") == tmp_path / "a_2.jpg"
        assert PathResolver.resolve_unique(tmp_path, "b.jpg") == tmp_path / "b.jpg"


class TestConfig:
    """配置测试"""

    def test_defaults(self):
        config = get_config()
        assert config.conversion.DEFAULT_QUALITY == 0.8
        assert config.conversion.TARGET_MAX_ITERATIONS == 10
        assert config.processing.MAX_WORKERS == 1

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PICONV_DEFAULT_QUALITY", "0.6")
        monkeypatch.setenv("PICONV_LOG_LEVEL", "debug")
        monkeypatch.setenv("PICONV_ENABLE_FILE_LOGGING", "yes")
        reset_config()

        config = get_config()
        assert config.conversion.DEFAULT_QUALITY == 0.6
        assert config.logging.LOG_LEVEL == "DEBUG"
        assert config.logging.ENABLE_FILE_LOGGING

    def test_executor_type_threshold(self):
        config = get_config()
        threshold = config.processing.PROCESS_POOL_THRESHOLD
        assert config.get_executor_type(threshold) == "thread"
        assert config.get_executor_type(threshold + 1) == "process"
