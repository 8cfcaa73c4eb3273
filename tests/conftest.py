from __future__ import annotations

import io
from typing import Callable

import pytest
from PIL import Image


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def split_gray_png(width: int, height: int, left: int, right: int) -> bytes:
    """PNG whose left half (x < width / 2) has gray level ``left``."""
    image = Image.new("RGB", (width, height), (right, right, right))
    split = (width + 1) // 2
    image.paste((left, left, left), (0, 0, split, height))
    return encode_png(image)


def solid_png(width: int, height: int, color: tuple[int, int, int]) -> bytes:
    return encode_png(Image.new("RGB", (width, height), color))


@pytest.fixture
def split_image() -> Callable[..., bytes]:
    return split_gray_png


@pytest.fixture
def solid_image() -> Callable[..., bytes]:
    return solid_png
