# docverify/utils/file_handler.py
import io
import logging
from dataclasses import dataclass, field
from typing import Optional

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from docverify.config import settings

logger = logging.getLogger("file_handler")


class DocumentInputError(ValueError):
    """The upload cannot be verified at all (as opposed to a risky verdict)."""


class UnsupportedDocumentError(DocumentInputError):
    pass


class UnreadableDocumentError(DocumentInputError):
    pass


@dataclass(frozen=True)
class DocumentImage:
    """
    One decoded document photograph, scoped to a single verification.
    `raw` keeps the uploaded bytes (needed for compression forensics and
    metadata); the pixel arrays are read-only so analyzers can share them
    across threads.
    """
    raw: bytes
    format: str
    width: int
    height: int
    rgb: np.ndarray = field(repr=False)
    gray: np.ndarray = field(repr=False)
    filename: str = ""

    def open(self) -> Image.Image:
        """Re-open the original encoded image (fresh PIL object per caller)."""
        return Image.open(io.BytesIO(self.raw))


def load_document_image(raw: bytes, filename: Optional[str] = None) -> DocumentImage:
    """
    Decode uploaded bytes into a DocumentImage.
    Raises UnreadableDocumentError for empty/corrupt input and
    UnsupportedDocumentError for decodable but unsupported formats.
    """
    if not raw:
        raise UnreadableDocumentError("Empty document upload")

    try:
        with Image.open(io.BytesIO(raw)) as pil_img:
            fmt = (pil_img.format or "").upper()
            if fmt not in settings.SUPPORTED_IMAGE_FORMATS:
                raise UnsupportedDocumentError(f"Unsupported image format: {fmt or 'unknown'}")
            pil_img.load()
            rgb = np.array(pil_img.convert("RGB"), dtype=np.uint8)
    except UnidentifiedImageError:
        raise UnreadableDocumentError(f"Unsupported or corrupted image: {filename or '<upload>'}")
    except (OSError, SyntaxError) as e:
        logger.warning("Failed to decode %s: %s", filename, e)
        raise UnreadableDocumentError(f"Unable to read image: {e}")

    if rgb.ndim != 3 or rgb.shape[0] == 0 or rgb.shape[1] == 0:
        raise UnreadableDocumentError("Decoded image has no pixels")

    gray = cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY)
    rgb.setflags(write=False)
    gray.setflags(write=False)

    height, width = gray.shape
    # MPO is how Pillow reports multi-picture JPEGs from phone cameras
    return DocumentImage(
        raw=raw,
        format="JPEG" if fmt == "MPO" else fmt,
        width=int(width),
        height=int(height),
        rgb=rgb,
        gray=gray,
        filename=filename or "",
    )
