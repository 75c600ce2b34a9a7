"""Shared fixtures for the imfx test-suite."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator

import numpy as np
import pytest
from PIL import Image


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Drop handlers installed by ``setup_logging`` so they never outlive a test."""
    yield
    logger = logging.getLogger("imfx")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def solid() -> Callable[..., np.ndarray]:
    """Factory for single-colour ``uint8`` images."""

    def _solid(width: int, height: int, value: int = 0, channels: int = 4) -> np.ndarray:
        return np.full((height, width, channels), value, dtype=np.uint8)

    return _solid


@pytest.fixture
def gradient() -> Callable[..., np.ndarray]:
    """Factory for deterministic, non-uniform RGBA images."""

    def _gradient(width: int, height: int) -> np.ndarray:
        ys, xs = np.mgrid[0:height, 0:width]
        image = np.empty((height, width, 4), dtype=np.uint8)
        image[..., 0] = (xs * 7) % 256
        image[..., 1] = (ys * 5) % 256
        image[..., 2] = (xs + ys) % 256
        image[..., 3] = 255
        return image

    return _gradient


@pytest.fixture
def image_file(tmp_path: Path) -> Callable[[str, np.ndarray], Path]:
    """Write an array to ``tmp_path`` as PNG and return its path."""

    def _write(name: str, array: np.ndarray) -> Path:
        path = tmp_path / name
        Image.fromarray(array).save(path, format="PNG")
        return path

    return _write
