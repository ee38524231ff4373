"""Unit tests for the onnxruntime adapter."""

import asyncio
from unittest.mock import Mock, patch

import numpy as np
import pytest

from livedetect.pipeline.errors import LiveInitError
from livedetect.yolo.engine import OnnxInferenceEngine, warm_up


def _session(input_shape, output_shape):
    model_input = Mock()
    model_input.name = "images"
    model_input.shape = input_shape
    model_output = Mock()
    model_output.shape = output_shape
    session = Mock()
    session.get_inputs.return_value = [model_input]
    session.get_outputs.return_value = [model_output]
    if all(isinstance(dim, int) for dim in output_shape):
        session.run.return_value = [np.zeros(output_shape, dtype=np.float32)]
    return session


class TestOnnxInferenceEngine:
    """Tests for shape discovery and layout handling."""

    def test_nchw_model(self):
        """Test that NHWC tensors are transposed for an NCHW model."""
        session = _session([1, 3, 32, 48], [1, 6, 100])
        engine = OnnxInferenceEngine(session)

        result = asyncio.run(engine.infer(np.zeros((1, 32, 48, 3), dtype=np.float32)))

        assert engine.input_size == (32, 48)
        assert engine.num_classes == 2
        assert not engine.channels_last
        feed = session.run.call_args.args[1]
        assert feed["images"].shape == (1, 3, 32, 48)
        assert result.shape == (1, 6, 100)

    def test_nhwc_model(self):
        session = _session([1, 64, 64, 3], [1, 84, 8400])
        engine = OnnxInferenceEngine(session)

        engine.run(np.zeros((1, 64, 64, 3), dtype=np.float32))

        assert engine.channels_last
        assert engine.num_classes == 80
        assert session.run.call_args.args[1]["images"].shape == (1, 64, 64, 3)

    def test_dynamic_output_rejected(self):
        with pytest.raises(LiveInitError, match="dynamic output shape"):
            OnnxInferenceEngine(_session([1, 3, 64, 64], [1, "channels", "anchors"]))

    def test_unexpected_output_rank_rejected(self):
        with pytest.raises(LiveInitError):
            OnnxInferenceEngine(_session([1, 3, 64, 64], [1, 84]))

    def test_load_failure_wrapped(self):
        with patch(
            "livedetect.yolo.engine.ort.InferenceSession",
            side_effect=RuntimeError("bad model"),
        ):
            with pytest.raises(LiveInitError, match="missing.onnx"):
                OnnxInferenceEngine.from_path("missing.onnx")


class TestWarmUp:
    def test_warm_up_runs_ones_tensor(self, engine):
        elapsed = asyncio.run(warm_up(engine))

        assert elapsed >= 0.0
        assert engine.tensors == [(1, 64, 64, 3)]
