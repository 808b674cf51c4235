import threading

import pytest

from docverify.schemas import DocumentType, Recommendation, RiskLevel
from docverify.services import forensics, pipeline
from docverify.services.pipeline import VerificationTimeoutError, verify, verify_bytes
from docverify.utils.file_handler import UnreadableDocumentError, load_document_image


def _boom(doc):
    raise RuntimeError("detector crashed")


def test_blank_image_without_text_is_rejected(blank_png, fake_engine):
    report = verify_bytes(blank_png, "blank.png", "ID_CARD", engine=fake_engine("", 0.0))
    verdict = report.verdict

    assert verdict.risk_score >= 90
    assert verdict.risk_level == RiskLevel.CRITICAL
    assert verdict.recommendation == Recommendation.REJECT
    assert report.ocr.confidence == 0.0
    assert "Very low OCR confidence" in verdict.penalties
    assert "Name not found or invalid" in verdict.penalties
    assert "ID number not found" in verdict.penalties


def test_ocr_engine_failure_still_yields_verdict(blank_png, broken_engine):
    report = verify_bytes(blank_png, "blank.png", engine=broken_engine)

    assert report.ocr.status == "degraded"
    assert report.verdict.recommendation == Recommendation.REJECT
    assert "ocr" in report.verdict.degraded


def test_genuine_camera_photo_is_approved(camera_jpeg, fake_engine, id_card_text):
    engine = fake_engine(id_card_text, 0.93)
    report = verify_bytes(camera_jpeg, "id_front.jpg", DocumentType.ID_CARD, engine=engine)
    verdict = report.verdict

    assert engine.calls == 1
    assert report.fields.id_number.valid is True
    assert report.fields.expiry.expired is False
    assert report.forensics.tampered is False
    assert report.metadata.has_camera_metadata is True
    assert verdict.risk_level == RiskLevel.LOW
    assert verdict.recommendation == Recommendation.APPROVE
    assert verdict.validation_passed is True
    assert verdict.degraded == []


def test_unknown_document_type_falls_back_to_id_card(blank_png, fake_engine):
    report = verify_bytes(blank_png, "x.png", "VOTER_CARD", engine=fake_engine())
    assert report.document_type == DocumentType.ID_CARD


def test_failed_detectors_degrade_but_do_not_abort(camera_jpeg, fake_engine, id_card_text, monkeypatch):
    for name in ("blur", "sharpness_mismatch", "double_jpeg"):
        monkeypatch.setitem(forensics.DETECTORS, name, _boom)

    report = verify_bytes(camera_jpeg, "id_front.jpg", engine=fake_engine(id_card_text, 0.93))

    assert report.forensics.status == "degraded"
    assert "forensics" in report.verdict.degraded
    assert report.verdict.recommendation == Recommendation.APPROVE


def test_slow_analyzer_times_out(blank_png, fake_engine, monkeypatch):
    release = threading.Event()

    def stuck(doc):
        release.wait(5)
        raise RuntimeError("should not be awaited")

    monkeypatch.setattr(pipeline, "analyze_forensics", stuck)
    doc = load_document_image(blank_png, "slow.png")
    try:
        with pytest.raises(VerificationTimeoutError, match="forensics"):
            verify(doc, engine=fake_engine(), timeout=0.1)
    finally:
        release.set()


def test_undecodable_upload_raises_before_analysis(fake_engine):
    engine = fake_engine("Name: X")
    with pytest.raises(UnreadableDocumentError):
        verify_bytes(b"\x00\x01garbage", "id.jpg", engine=engine)
    assert engine.calls == 0


def test_stuck_analyzers_leave_room_for_later_requests(blank_png, fake_engine, monkeypatch):
    release = threading.Event()

    def stuck(doc):
        release.wait(10)
        raise RuntimeError("released")

    doc = load_document_image(blank_png, "busy.png")
    try:
        monkeypatch.setattr(pipeline, "analyze_forensics", stuck)
        # each timed-out request leaves one worker blocked
        for _ in range(5):
            with pytest.raises(VerificationTimeoutError):
                verify(doc, engine=fake_engine(), timeout=0.1)

        monkeypatch.undo()
        report = verify(doc, engine=fake_engine(), timeout=10)
        assert report.forensics.status == "ok"
    finally:
        release.set()
