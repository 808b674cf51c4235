# docverify/services/preprocess.py
"""
Image preprocessing for OCR (Tesseract).
- Grayscale conversion
- Contrast normalisation (min-max stretch to 0..255)
- Sharpening (3x3 unsharp kernel)
- Fixed-threshold binarisation

Everything happens in memory; the binarised image is handed straight to the
OCR engine and dropped afterwards.
"""
from typing import Optional
import logging

import cv2
import numpy as np
from PIL import Image

from docverify.config import settings

logger = logging.getLogger("preprocess")

_SHARPEN_KERNEL = np.array(
    [[0, -1, 0],
     [-1, 5, -1],
     [0, -1, 0]],
    dtype=np.float32,
)


def _to_gray(img: np.ndarray) -> np.ndarray:
    if img.ndim == 2:
        return img
    return cv2.cvtColor(img, cv2.COLOR_RGB2GRAY)


def preprocess_for_ocr(
    img: np.ndarray,
    normalize: bool = True,
    sharpen: bool = True,
    threshold: Optional[int] = None,
) -> Image.Image:
    """
    Full preprocessing pipeline for OCR.
    Args:
        img: RGB (H, W, 3) or grayscale (H, W) uint8 array
        normalize: stretch the histogram to the full 0..255 range
        sharpen: apply a 3x3 sharpening kernel to crisp up glyph edges
        threshold: binarisation cut-off; defaults to settings.OCR_BINARIZE_THRESHOLD
    Returns:
        PIL.Image in mode "L" containing only 0 and 255 values
    """
    gray = _to_gray(img)

    if normalize:
        try:
            gray = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)
        except cv2.error:
            logger.exception("Contrast normalisation failed; continuing without it")

    if sharpen:
        try:
            gray = cv2.filter2D(gray, -1, _SHARPEN_KERNEL)
        except cv2.error:
            logger.exception("Sharpening failed; continuing without it")

    cut = settings.OCR_BINARIZE_THRESHOLD if threshold is None else threshold
    _, binary = cv2.threshold(gray, cut, 255, cv2.THRESH_BINARY)
    return Image.fromarray(binary)
