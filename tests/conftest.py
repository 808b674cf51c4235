import io

import numpy as np
import pytest
from PIL import ExifTags, Image

from docverify.services.ocr import Recognition
from docverify.utils.file_handler import load_document_image

ID_CARD_TEXT = (
    "REPUBLIC IDENTITY CARD\n"
    "Name: JOHN DOE\n"
    "ID No: AB1234567\n"
    "DOB: 15/03/1990\n"
    "Sex: M\n"
    "Expiry: 01/01/2035\n"
    "Address: 221B baker street marylebone\n"
    "london nw1 6xe\n"
    "\n"
)


class FakeEngine:
    """Stands in for Tesseract: returns a fixed transcript."""

    def __init__(self, text="", confidence=0.0):
        self.text = text
        self.confidence = confidence
        self.calls = 0

    def recognize(self, image):
        self.calls += 1
        words = [{"text": w, "conf": self.confidence * 100} for w in self.text.split()]
        return Recognition(
            text=self.text,
            confidence=self.confidence,
            words=words,
            lines=len([ln for ln in self.text.splitlines() if ln.strip()]),
        )


class BrokenEngine:
    def recognize(self, image):
        raise RuntimeError("tesseract is not installed or it's not in your PATH")


@pytest.fixture
def fake_engine():
    return FakeEngine


@pytest.fixture
def broken_engine():
    return BrokenEngine()


@pytest.fixture
def id_card_text():
    return ID_CARD_TEXT


def _encode(arr, fmt="PNG", **save_kwargs):
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format=fmt, **save_kwargs)
    return buf.getvalue()


def _noise(h, w, seed=7):
    rng = np.random.default_rng(seed)
    gray = rng.integers(0, 256, size=(h, w), dtype=np.uint8)
    return np.stack([gray, gray, gray], axis=-1)


@pytest.fixture
def encode():
    return _encode


@pytest.fixture
def noise():
    return _noise


@pytest.fixture
def camera_exif():
    exif = Image.Exif()
    exif[ExifTags.Base.Make] = "Canon"
    exif[ExifTags.Base.Model] = "Canon EOS 90D"
    exif[ExifTags.Base.DateTime] = "2024:05:01 10:30:00"
    return exif


@pytest.fixture
def blank_png():
    """300x200 white image, no metadata."""
    return _encode(np.full((200, 300, 3), 255, dtype=np.uint8), "PNG")


@pytest.fixture
def camera_jpeg(camera_exif):
    """1200x800 evenly textured photo with camera EXIF, saved once at quality 75."""
    return _encode(_noise(800, 1200), "JPEG", quality=75, exif=camera_exif)


@pytest.fixture
def spliced_gray():
    """Left half noisy, right half flat: a crude paste of foreign content."""
    arr = np.full((400, 400, 3), 128, dtype=np.uint8)
    arr[:, :200] = _noise(400, 200)
    return arr


@pytest.fixture
def load():
    return load_document_image
