import numpy as np
import pytest

from docverify.config import settings
from docverify.services import quality as quality_mod
from docverify.services import template as template_mod
from docverify.services.quality import analyze_quality
from docverify.services.template import validate_template
from docverify.utils.file_handler import (
    UnreadableDocumentError,
    UnsupportedDocumentError,
    load_document_image,
)


# -------- loading --------
def test_load_document_image_reads_png(blank_png):
    doc = load_document_image(blank_png, "card.png")
    assert doc.format == "PNG"
    assert (doc.width, doc.height) == (300, 200)
    assert doc.gray.shape == (200, 300)
    assert doc.rgb.flags.writeable is False


def test_load_document_image_rejects_corrupt_bytes():
    with pytest.raises(UnreadableDocumentError):
        load_document_image(b"definitely-not-a-real-png", "broken.png")


def test_load_document_image_rejects_empty_upload():
    with pytest.raises(UnreadableDocumentError):
        load_document_image(b"", "empty.png")


def test_load_document_image_rejects_unsupported_format(encode):
    gif = encode(np.zeros((20, 20, 3), dtype=np.uint8), "GIF")
    with pytest.raises(UnsupportedDocumentError):
        load_document_image(gif, "anim.gif")


# -------- quality --------
def test_quality_of_blank_small_image(blank_png):
    report = analyze_quality(load_document_image(blank_png))

    assert report.resolution_valid is False
    assert report.aspect_ratio == 1.5
    assert report.aspect_ratio_valid is True
    assert report.brightness_valid is False  # pure white
    assert report.sharpness == 0.0
    assert report.quality_score == 0.3
    assert report.status == "ok"


def test_quality_of_well_formed_photo(camera_jpeg):
    report = analyze_quality(load_document_image(camera_jpeg))

    assert (report.width, report.height) == (1200, 800)
    assert report.format == "JPEG"
    assert report.resolution_valid is True
    assert report.brightness_valid is True
    assert report.sharpness == 1.0
    assert report.quality_score == 1.0


def test_quality_degrades_instead_of_raising(blank_png, monkeypatch):
    def boom(doc):
        raise RuntimeError("stats blew up")

    monkeypatch.setattr(quality_mod, "_measure", boom)
    report = analyze_quality(load_document_image(blank_png))

    assert report.status == "degraded"
    assert report.quality_score == 0.3
    assert "stats blew up" in report.error



def test_quality_weights_come_from_settings(blank_png, monkeypatch):
    # only the aspect ratio check passes on the small blank card
    monkeypatch.setattr(settings, "QUALITY_WEIGHT_ASPECT_RATIO", 0.5)
    assert analyze_quality(load_document_image(blank_png)).quality_score == 0.5


# -------- template --------
def test_template_blank_image_has_no_structure(blank_png):
    report = validate_template(load_document_image(blank_png))

    assert report.format_valid is True
    assert report.edge_density == 0.0
    assert report.has_structure is False
    assert report.template_score == 0.5


def test_template_structured_card(encode):
    # white card with dark text-like bars every few rows
    arr = np.full((400, 640, 3), 255, dtype=np.uint8)
    for top in range(20, 380, 6):
        arr[top:top + 2, 40:600] = 0
    report = validate_template(load_document_image(encode(arr)))

    assert report.has_structure is True
    assert 0.1 < report.edge_density < 0.5
    assert report.template_score == 0.8


def test_template_degrades_instead_of_raising(blank_png, monkeypatch):
    def boom(gray):
        raise RuntimeError("filter failed")

    monkeypatch.setattr(template_mod, "edge_map", boom)
    report = validate_template(load_document_image(blank_png))

    assert report.status == "degraded"
    assert report.format_valid is False
    assert report.template_score == 0.3
