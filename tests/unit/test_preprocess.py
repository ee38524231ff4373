"""Unit tests for frame preprocessing."""

import numpy as np
import pytest

from livedetect.yolo.core.preprocess import infer_input_size, pad_to_square, preprocess


class TestPadToSquare:
    """Tests for bottom/right square padding."""

    def test_landscape_frame_padded_at_bottom(self):
        """Test that a wide frame grows downward only."""
        frame = np.full((4, 6, 3), 7, dtype=np.uint8)

        padded = pad_to_square(frame)

        assert padded.shape == (6, 6, 3)
        assert np.array_equal(padded[:4, :6], frame)
        assert not padded[4:].any()

    def test_portrait_frame_padded_at_right(self):
        """Test that a tall frame grows to the right only."""
        frame = np.full((6, 4, 3), 9, dtype=np.uint8)

        padded = pad_to_square(frame)

        assert padded.shape == (6, 6, 3)
        assert np.array_equal(padded[:, :4], frame)
        assert not padded[:, 4:].any()

    def test_square_frame_unchanged(self):
        """Test that a square frame needs no padding."""
        frame = np.arange(27, dtype=np.uint8).reshape(3, 3, 3)

        assert np.array_equal(pad_to_square(frame), frame)


class TestPreprocess:
    """Tests for the tensor produced from a frame."""

    def test_tensor_shape_and_range(self):
        """Test the batch dimension, dtype and normalization."""
        rng = np.random.default_rng(0)
        frame = rng.integers(0, 256, size=(48, 64, 3), dtype=np.uint8)

        tensor, _ = preprocess(frame, 32, 32)

        assert tensor.shape == (1, 32, 32, 3)
        assert tensor.dtype == np.float32
        assert tensor.min() >= 0.0
        assert tensor.max() <= 1.0

    def test_ratios_use_longest_side(self):
        """Test padded-side over original-side ratios."""
        frame = np.zeros((480, 640, 3), dtype=np.uint8)

        _, ratios = preprocess(frame, 64, 64)

        assert ratios.x_ratio == pytest.approx(1.0)
        assert ratios.y_ratio == pytest.approx(640 / 480)

    def test_source_frame_not_mutated(self):
        """Test that preprocessing leaves the borrowed frame intact."""
        rng = np.random.default_rng(1)
        frame = rng.integers(0, 256, size=(30, 50, 3), dtype=np.uint8)
        before = frame.copy()

        preprocess(frame, 16, 16)

        assert np.array_equal(frame, before)

    def test_bgr_converted_to_rgb(self):
        """Test that a pure blue BGR frame lands in the last RGB channel."""
        frame = np.zeros((4, 4, 3), dtype=np.uint8)
        frame[..., 0] = 255

        tensor, _ = preprocess(frame, 8, 8)

        assert np.allclose(tensor[0, ..., 2], 1.0)
        assert np.allclose(tensor[0, ..., 0], 0.0)

    def test_channel_swap_can_be_disabled(self):
        """Test that swap_rb=False keeps BGR order."""
        frame = np.zeros((4, 4, 3), dtype=np.uint8)
        frame[..., 0] = 255

        tensor, _ = preprocess(frame, 8, 8, swap_rb=False)

        assert np.allclose(tensor[0, ..., 0], 1.0)

    def test_padding_region_is_black(self):
        """Test that the padded bottom band stays zero after resizing."""
        frame = np.full((16, 32, 3), 255, dtype=np.uint8)

        tensor, _ = preprocess(frame, 32, 32)

        assert np.allclose(tensor[0, :14], 1.0)
        assert np.allclose(tensor[0, 18:], 0.0)

    def test_grayscale_frame_accepted(self):
        """Test that single-channel frames are expanded to three channels."""
        frame = np.full((10, 10), 128, dtype=np.uint8)

        tensor, _ = preprocess(frame, 8, 8)

        assert tensor.shape == (1, 8, 8, 3)

    def test_empty_frame_rejected(self):
        """Test that a frame with no pixels raises ValueError."""
        with pytest.raises(ValueError, match="empty frame"):
            preprocess(np.zeros((0, 10, 3), dtype=np.uint8), 8, 8)


class TestInferInputSize:
    """Tests for model input size discovery."""

    def test_nhwc_shape(self):
        assert infer_input_size([1, 320, 416, 3]) == (320, 416)

    def test_nchw_shape(self):
        assert infer_input_size([1, 3, 480, 640]) == (480, 640)

    def test_dynamic_shape_defaults(self):
        """Test that symbolic dimensions fall back to 640x640."""
        assert infer_input_size(["batch", 3, "height", "width"]) == (640, 640)
        assert infer_input_size(None) == (640, 640)
