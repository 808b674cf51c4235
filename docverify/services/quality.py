# docverify/services/quality.py
import logging

import numpy as np

from docverify.config import settings
from docverify.schemas import QualityReport
from docverify.utils.file_handler import DocumentImage

logger = logging.getLogger("services.quality")


def _measure(doc: DocumentImage) -> QualityReport:
    width, height = doc.width, doc.height

    resolution_valid = width >= settings.MIN_WIDTH and height >= settings.MIN_HEIGHT

    aspect_ratio = width / height
    aspect_ratio_valid = settings.MIN_ASPECT_RATIO <= aspect_ratio <= settings.MAX_ASPECT_RATIO

    # per-channel statistics over R, G, B
    pixels = doc.rgb.reshape(-1, doc.rgb.shape[2]).astype(np.float64)
    channel_means = pixels.mean(axis=0)
    channel_stds = pixels.std(axis=0)

    brightness = float(channel_means.mean())
    brightness_valid = settings.MIN_BRIGHTNESS < brightness < settings.MAX_BRIGHTNESS

    sharpness = min(float(channel_stds.mean()) / settings.SHARPNESS_STDEV_NORM, 1.0)

    quality_score = (
        (settings.QUALITY_WEIGHT_RESOLUTION if resolution_valid else 0.0)
        + (settings.QUALITY_WEIGHT_ASPECT_RATIO if aspect_ratio_valid else 0.0)
        + (settings.QUALITY_WEIGHT_BRIGHTNESS if brightness_valid else 0.0)
        + sharpness * settings.QUALITY_WEIGHT_SHARPNESS
    )

    return QualityReport(
        width=width,
        height=height,
        format=doc.format,
        aspect_ratio=round(aspect_ratio, 2),
        resolution_valid=resolution_valid,
        aspect_ratio_valid=aspect_ratio_valid,
        brightness=round(brightness, 1),
        brightness_valid=brightness_valid,
        sharpness=round(sharpness, 2),
        quality_score=round(min(quality_score, 1.0), 2),
    )


def analyze_quality(doc: DocumentImage) -> QualityReport:
    """
    Resolution, aspect ratio, brightness and a stdev-based sharpness proxy.
    Never raises: an internal failure yields a low (non-zero) degraded score.
    """
    try:
        return _measure(doc)
    except Exception as e:
        logger.exception("Image quality analysis failed")
        return QualityReport(
            width=doc.width,
            height=doc.height,
            format=doc.format,
            quality_score=settings.QUALITY_FALLBACK_SCORE,
            status="degraded",
            error=str(e),
        )
