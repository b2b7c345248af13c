"""批量转换测试。"""

import threading

import pytest

from py_image_convert_mcp.config import ConversionDefaults
from py_image_convert_mcp.core.formats import EncodingProcessor
from py_image_convert_mcp.core.pipeline import ImagePipeline
from py_image_convert_mcp.engine.batch import BatchRunner
from py_image_convert_mcp.exceptions import InvalidRequest
from py_image_convert_mcp.models import (
    BatchProgress,
    ConversionRequest,
    ErrorKind,
    Failure,
    ImageEncoding,
    Success,
)
from tests.conftest import make_asset


@pytest.fixture
def request_jpeg() -> ConversionRequest:
    return ConversionRequest(encoding=ImageEncoding.JPEG, max_width=50)


@pytest.fixture
def mixed_inputs(png_asset, corrupt_asset):
    """成功、失败、成功"""
    second = make_asset((60, 60), ImageEncoding.WEBP, "second.webp")
    return [png_asset, corrupt_asset, second]


class TestSequentialBatch:
    """顺序批量处理测试"""

    def test_outcomes_follow_input_order(self, mixed_inputs, request_jpeg):
        outcomes = BatchRunner().run(mixed_inputs, request_jpeg)

        assert [type(o) for o in outcomes] == [Success, Failure, Success]
        assert outcomes[0].output_name == "photo.jpg"
        assert outcomes[1].reason == ErrorKind.DECODE_ERROR
        assert outcomes[1].input_name == "broken.png"
        assert outcomes[2].output_name == "second.jpg"

    def test_progress_called_once_per_item(self, mixed_inputs, request_jpeg):
        """失败项同样计入进度"""
        events: list[BatchProgress] = []
        BatchRunner().run(mixed_inputs, request_jpeg, events.append)

        assert [e.items_completed for e in events] == [1, 2, 3]
        assert all(e.items_total == 3 for e in events)
        assert [e.current_label for e in events] == [
            "photo.png",
            "broken.png",
            "second.webp",
        ]
        assert events[-1].fraction == 1.0

    def test_empty_batch(self, request_jpeg):
        events: list[BatchProgress] = []
        assert BatchRunner().run([], request_jpeg, events.append) == []
        assert events == []

    def test_invalid_request_fails_every_item(self, mixed_inputs):
        request = ConversionRequest(encoding="jpeg", quality=2.0)
        outcomes = BatchRunner().run(mixed_inputs, request)

        assert all(isinstance(o, Failure) for o in outcomes)
        assert {o.reason for o in outcomes} == {ErrorKind.INVALID_REQUEST}

    def test_callback_exception_does_not_abort(self, mixed_inputs, request_jpeg):
        def broken_callback(progress: BatchProgress) -> None:
            raise RuntimeError("callback failure")

        outcomes = BatchRunner().run(mixed_inputs, request_jpeg, broken_callback)
        assert len(outcomes) == 3
        assert outcomes[2].is_success

    def test_report_summary(self, mixed_inputs, request_jpeg):
        report = BatchRunner().run_report(mixed_inputs, request_jpeg)

        assert report.get_total_count() == 3
        assert report.get_success_count() == 2
        assert report.get_failure_count() == 1
        assert report.get_total_output_size() > 0
        assert "2/3" in report.get_summary()


class TestCancellation:
    """取消测试"""

    def test_cancel_after_first_item(self, request_jpeg):
        inputs = [make_asset((40, 40), name=f"img{i}.png") for i in range(4)]
        cancel_event = threading.Event()
        events: list[BatchProgress] = []

        def on_progress(progress: BatchProgress) -> None:
            events.append(progress)
            cancel_event.set()

        outcomes = BatchRunner().run(inputs, request_jpeg, on_progress, cancel_event)

        assert len(outcomes) == 4
        assert outcomes[0].is_success
        assert all(o.reason == ErrorKind.CANCELLED for o in outcomes[1:])
        assert [o.input_name for o in outcomes[1:]] == ["img1.png", "img2.png", "img3.png"]
        assert len(events) == 1

    def test_cancelled_before_start(self, mixed_inputs, request_jpeg):
        cancel_event = threading.Event()
        cancel_event.set()
        events: list[BatchProgress] = []

        outcomes = BatchRunner().run(
            mixed_inputs, request_jpeg, events.append, cancel_event
        )

        assert all(o.reason == ErrorKind.CANCELLED for o in outcomes)
        assert events == []


class TestConcurrentBatch:
    """并行批量处理测试"""

    def test_thread_pool_preserves_order(self, request_jpeg):
        inputs = [
            make_asset((80 + i * 10, 60), name=f"frame{i}.png") for i in range(6)
        ]
        events: list[BatchProgress] = []
        runner = BatchRunner(max_workers=3, force_executor_type="thread")

        outcomes = runner.run(inputs, request_jpeg, events.append)

        assert [o.output_name for o in outcomes] == [f"frame{i}.jpg" for i in range(6)]
        assert [e.items_completed for e in events] == [1, 2, 3, 4, 5, 6]
        assert sorted(e.current_label for e in events) == sorted(a.name for a in inputs)

    def test_thread_pool_isolates_failures(self, mixed_inputs, request_jpeg):
        runner = BatchRunner(max_workers=2, force_executor_type="thread")
        outcomes = runner.run(mixed_inputs, request_jpeg)

        assert [type(o) for o in outcomes] == [Success, Failure, Success]

    def test_parallel_workers_use_pipeline_encoding_parameters(self, request_jpeg):
        """并行模式沿用传入流水线的编码参数"""
        low_quality = ConversionDefaults(JPEG_MAX_QUALITY=10)
        pipeline = ImagePipeline(EncodingProcessor(low_quality))
        inputs = [make_asset((120, 90), name=f"shot{i}.png") for i in range(3)]
        request = request_jpeg.model_copy(update={"quality": 0.9})

        sequential = BatchRunner(pipeline=pipeline).run(inputs, request)
        parallel = BatchRunner(
            pipeline=pipeline, max_workers=3, force_executor_type="thread"
        ).run(inputs, request)
        default = BatchRunner(max_workers=3, force_executor_type="thread").run(
            inputs, request
        )

        assert [o.asset.data for o in parallel] == [o.asset.data for o in sequential]
        assert parallel[0].asset.data != default[0].asset.data

    def test_max_workers_from_config(self, monkeypatch):
        from py_image_convert_mcp.config import reset_config

        monkeypatch.setenv("PICONV_MAX_WORKERS", "3")
        reset_config()
        assert BatchRunner().max_workers == 3


class TestBatchRunnerValidation:
    """参数验证测试"""

    def test_rejects_non_positive_workers(self):
        with pytest.raises(InvalidRequest):
            BatchRunner(max_workers=0)

    def test_rejects_unknown_executor(self):
        with pytest.raises(InvalidRequest):
            BatchRunner(max_workers=2, force_executor_type="fiber")
