"""Inference engine contract and an onnxruntime adapter."""

from __future__ import annotations

import asyncio
import time
from typing import Protocol

import numpy as np
import onnxruntime as ort
from loguru import logger

from livedetect.pipeline.errors import LiveInitError
from livedetect.yolo.core.preprocess import infer_input_size


class InferenceEngine(Protocol):
    """Opaque detector: ``(1, H, W, 3)`` tensor in, ``(1, 4+C, N)`` tensor out."""

    @property
    def input_size(self) -> tuple[int, int]:
        """Model input ``(height, width)``."""
        ...

    @property
    def num_classes(self) -> int:
        """Number of class score channels ``C``."""
        ...

    async def infer(self, tensor: np.ndarray) -> np.ndarray:
        """Run the detector on a normalized NHWC tensor."""
        ...


class OnnxInferenceEngine:
    """Run an ONNX detector through onnxruntime off the event loop.

    Input layout (NHWC or NCHW) and the class count are discovered from the
    session once, at construction.
    """

    def __init__(self, session: ort.InferenceSession) -> None:
        self.session = session
        model_input = session.get_inputs()[0]
        self.input_name = model_input.name
        self.input_shape = list(model_input.shape)
        self.channels_last = bool(self.input_shape) and self.input_shape[-1] == 3
        self._input_size = infer_input_size(self.input_shape)

        output_shape = list(session.get_outputs()[0].shape)
        self._num_classes = _classes_from_output_shape(output_shape)
        logger.debug(
            "Model input {} {} ({}), output {} -> {} classes",
            self.input_name,
            self.input_shape,
            "NHWC" if self.channels_last else "NCHW",
            output_shape,
            self._num_classes,
        )

    @classmethod
    def from_path(cls, model_path: str, gpu: int = 0) -> OnnxInferenceEngine:
        """Load a model, preferring CUDA and falling back to CPU."""
        providers = [
            (
                "CUDAExecutionProvider",
                {"device_id": gpu, "arena_extend_strategy": "kNextPowerOfTwo"},
            ),
            "CPUExecutionProvider",
        ]
        available = set(ort.get_available_providers())
        providers = [
            p for p in providers if (p[0] if isinstance(p, tuple) else p) in available
        ]

        logger.info("Loading model: {}", model_path)
        try:
            session = ort.InferenceSession(model_path, providers=providers)
        except Exception as exc:
            logger.error("Failed to load model: {}", exc)
            message = f"Failed to load model {model_path}"
            raise LiveInitError(message) from exc

        logger.success("Model loaded using: {}", session.get_providers()[0])
        return cls(session)

    @property
    def input_size(self) -> tuple[int, int]:
        return self._input_size

    @property
    def num_classes(self) -> int:
        return self._num_classes

    def run(self, tensor: np.ndarray) -> np.ndarray:
        blob = tensor if self.channels_last else tensor.transpose(0, 3, 1, 2)
        outputs = self.session.run(None, {self.input_name: np.ascontiguousarray(blob)})
        return np.asarray(outputs[0])

    async def infer(self, tensor: np.ndarray) -> np.ndarray:
        return await asyncio.to_thread(self.run, tensor)


def _classes_from_output_shape(shape: list[object]) -> int:
    # YOLOv8 exports (1, 4+C, N); N is the much larger axis.
    if len(shape) != 3:
        message = f"Unsupported detector output shape {shape}"
        raise LiveInitError(message)
    dims = [d for d in shape[1:] if isinstance(d, int)]
    if not dims:
        message = f"Cannot infer class count from dynamic output shape {shape}"
        raise LiveInitError(message)
    return min(dims) - 4


async def warm_up(engine: InferenceEngine) -> float:
    """Push one all-ones tensor through the engine; return the latency in ms."""
    height, width = engine.input_size
    dummy = np.ones((1, height, width, 3), dtype=np.float32)
    start = time.perf_counter()
    result = await engine.infer(dummy)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "Warm-up inference: {:.1f} ms, output {}", elapsed_ms, np.shape(result)
    )
    del result, dummy
    return elapsed_ms
