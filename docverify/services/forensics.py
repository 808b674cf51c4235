# docverify/services/forensics.py
"""
Tamper detection on the grayscale document image.

Four independent detectors, each comparing a per-cell statistic across a
grid laid over the image:

copy_paste          4x4 grid, pixel variance per cell. Pasted regions come
                    from a different source and carry different noise, so
                    the spread of cell variances grows.
blur                3x3 grid, Laplacian variance per cell. A retouched area
                    is often smoother (or sharper) than its surroundings.
sharpness_mismatch  Whole-image edge map, averaged per 3x3 cell.
double_jpeg         JPEG only. Re-encode at quality 95 and compare byte
                    sizes; an image already saved at a high quality barely
                    changes, which points at a second save.

A detector that fails is reported as not tampered with a zero score and a
"degraded" status; it never stops the other three. The image is flagged as
tampered when at least TAMPER_MIN_INDICATORS detectors agree.
"""

import io
import logging
from typing import Callable, Dict

import numpy as np
from PIL import Image

from docverify.config import settings
from docverify.schemas import ForensicIndicator, ForensicIndicators, ForensicsReport
from docverify.utils.file_handler import DocumentImage
from docverify.utils.imaging import (
    coefficient_of_variation,
    edge_map,
    grid_cells,
    laplacian_variance,
)

logger = logging.getLogger("services.forensics")

Detector = Callable[[DocumentImage], ForensicIndicator]


def detect_copy_paste(doc: DocumentImage) -> ForensicIndicator:
    grid = settings.COPY_PASTE_GRID
    h, w = doc.gray.shape
    if h // grid < settings.COPY_PASTE_MIN_CELL or w // grid < settings.COPY_PASTE_MIN_CELL:
        return ForensicIndicator(details={"reason": "Image too small for grid analysis", "noise_variances": []})

    variances = [float(cell.astype(np.float64).var()) for cell in grid_cells(doc.gray, grid)]
    spread = float(np.std(variances))
    inconsistency = min(spread / settings.COPY_PASTE_NORM, 1.0)

    return ForensicIndicator(
        tampered=inconsistency > settings.COPY_PASTE_THRESHOLD,
        score=round(inconsistency, 2),
        details={"noise_variances": [round(v, 2) for v in variances]},
    )


def detect_blur_inconsistency(doc: DocumentImage) -> ForensicIndicator:
    cells = grid_cells(doc.gray, settings.BLUR_GRID)
    if not cells:
        logger.warning("Image too small for blur detection")
        return ForensicIndicator(details={"reason": "Image too small for grid analysis", "blur_scores": []})

    blur_scores = [laplacian_variance(cell) for cell in cells]
    cv = coefficient_of_variation(blur_scores)

    return ForensicIndicator(
        tampered=cv > settings.BLUR_CV_THRESHOLD,
        score=round(cv, 2),
        details={"blur_scores": [round(s, 2) for s in blur_scores]},
    )


def detect_sharpness_mismatch(doc: DocumentImage) -> ForensicIndicator:
    edges = edge_map(doc.gray)
    edge_strength = float(edges.mean())

    cells = grid_cells(edges, settings.SHARPNESS_GRID)
    if not cells:
        return ForensicIndicator(details={"reason": "Image too small for grid analysis",
                                          "edge_strength": round(edge_strength, 2)})

    cell_means = [float(cell.mean()) for cell in cells]
    mismatch = coefficient_of_variation(cell_means)

    return ForensicIndicator(
        tampered=mismatch > settings.SHARPNESS_CV_THRESHOLD,
        score=round(mismatch, 2),
        details={
            "edge_strength": round(edge_strength, 2),
            "cell_sharpness": [round(m, 2) for m in cell_means],
        },
    )


def detect_double_jpeg(doc: DocumentImage) -> ForensicIndicator:
    if doc.format != "JPEG":
        return ForensicIndicator(details={"reason": "Not a JPEG image"})

    original_size = len(doc.raw)
    buf = io.BytesIO()
    Image.fromarray(np.asarray(doc.rgb)).save(buf, format="JPEG", quality=settings.JPEG_RECOMPRESS_QUALITY)
    recompressed_size = buf.tell()

    delta = abs(original_size - recompressed_size) / original_size

    return ForensicIndicator(
        tampered=delta < settings.DOUBLE_JPEG_DELTA_THRESHOLD,
        score=round(delta, 3),
        details={"original_size": original_size, "recompressed_size": recompressed_size},
    )


DETECTORS: Dict[str, Detector] = {
    "copy_paste": detect_copy_paste,
    "blur": detect_blur_inconsistency,
    "sharpness_mismatch": detect_sharpness_mismatch,
    "double_jpeg": detect_double_jpeg,
}


def _run_detector(name: str, doc: DocumentImage) -> ForensicIndicator:
    try:
        return DETECTORS[name](doc)
    except Exception as e:
        logger.exception("%s detection failed", name)
        return ForensicIndicator(tampered=False, score=0.0, status="degraded", error=str(e))


def analyze_forensics(doc: DocumentImage) -> ForensicsReport:
    """Run all four detectors and combine them into a tamper score."""
    logger.info("Starting forensic analysis: %s", doc.filename or "<upload>")

    results = {name: _run_detector(name, doc) for name in DETECTORS}
    tampered_count = sum(1 for r in results.values() if r.tampered)
    degraded = [name for name, r in results.items() if r.degraded]

    report = ForensicsReport(
        tampered=tampered_count >= settings.TAMPER_MIN_INDICATORS,
        tamper_score=round(tampered_count / len(DETECTORS), 2),
        indicators=ForensicIndicators(**results),
        tampered_count=tampered_count,
        status="degraded" if degraded else "ok",
        error=f"Detectors failed: {', '.join(degraded)}" if degraded else None,
    )
    logger.info("Forensics complete - tampered=%s score=%.2f", report.tampered, report.tamper_score)
    return report
