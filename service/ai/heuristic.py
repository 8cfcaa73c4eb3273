from __future__ import annotations

import io
import logging
import random
from dataclasses import dataclass, field

from PIL import Image, ImageOps, ImageStat

from .types import (
    DANGER_LUMINANCE_THRESHOLD,
    SOURCE_LOCAL,
    AnalysisResult,
    Classifier,
    DecodeError,
)

logger = logging.getLogger(__name__)

# ITU-R 601 luma weights.
_LUMA_WEIGHTS = (0.299, 0.587, 0.114)

MAX_SIDE = 512
SLOPE_ANGLE_RANGE = (20, 79)


def downscale_size(width: int, height: int, max_side: int = MAX_SIDE) -> tuple[int, int]:
    """Return the raster size used for analysis.

    The longer side is capped at ``max_side``; images are never upscaled.
    Scaled sizes are floored, with a floor of one pixel.
    """
    if width <= 0 or height <= 0:
        raise ValueError("image dimensions must be positive")
    longest = max(width, height)
    if longest <= max_side:
        return width, height
    return max(1, width * max_side // longest), max(1, height * max_side // longest)


def load_raster(image_bytes: bytes, max_side: int = MAX_SIDE) -> Image.Image:
    """Decode ``image_bytes`` into an RGB raster no larger than ``max_side``."""
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
        image = ImageOps.exif_transpose(image)
        image = image.convert("RGB")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Unable to decode image: {exc}") from exc

    size = downscale_size(image.width, image.height, max_side)
    if size != image.size:
        image = image.resize(size, Image.Resampling.BILINEAR)
    return image


def _luminance_sum(image: Image.Image) -> float:
    if image.width == 0 or image.height == 0:
        return 0.0
    band_sums = ImageStat.Stat(image).sum
    return sum(weight * total for weight, total in zip(_LUMA_WEIGHTS, band_sums))


@dataclass
class LuminanceHeuristic(Classifier):
    """Offline rockfall heuristic based on raster luminance.

    Dark scenes are flagged as dangerous and the darker half of the frame
    determines the escape direction. The slope angle is a synthetic value
    drawn uniformly from ``SLOPE_ANGLE_RANGE``; nothing in the image is
    measured to produce it.
    """

    threshold: float = DANGER_LUMINANCE_THRESHOLD
    max_side: int = MAX_SIDE
    rng: random.Random = field(default_factory=random.Random)

    def analyze(self, image_bytes: bytes, force: bool = False) -> AnalysisResult:
        image = load_raster(image_bytes, self.max_side)
        width, height = image.size
        count = width * height

        split = (width + 1) // 2
        total = _luminance_sum(image)
        left_total = _luminance_sum(image.crop((0, 0, split, height)))
        right_total = _luminance_sum(image.crop((split, 0, width, height)))

        mean = total / count
        left_mean = left_total / (count / 2)
        right_mean = right_total / (count / 2)

        danger = mean < self.threshold
        confidence = min(1.0, abs(mean - 128) / 128)
        direction = "left" if left_mean < right_mean else "right"
        slope_angle = self.rng.randint(*SLOPE_ANGLE_RANGE)

        logger.debug(
            "Local analysis size=%dx%d mean=%.2f left=%.2f right=%.2f danger=%s",
            width,
            height,
            mean,
            left_mean,
            right_mean,
            danger,
        )
        return AnalysisResult(
            danger=danger,
            direction=direction,
            confidence=confidence,
            slope_angle=slope_angle,
            source=SOURCE_LOCAL,
        )


def analyze_locally(image_bytes: bytes, rng: random.Random | None = None) -> AnalysisResult:
    heuristic = LuminanceHeuristic(rng=rng) if rng is not None else LuminanceHeuristic()
    return heuristic.analyze(image_bytes)


__all__ = [
    "LuminanceHeuristic",
    "MAX_SIDE",
    "SLOPE_ANGLE_RANGE",
    "analyze_locally",
    "downscale_size",
    "load_raster",
]
