# docverify/services/risk.py
"""
Risk aggregation: structured reports in, verdict out.

Nothing here touches pixels or I/O, so every rule can be exercised with
hand-built reports. Points are additive and clamped to 0..100; certain binary
signals (tampering, screenshot, editing software) force a REJECT whatever the
total.
"""
import logging
from typing import List, Optional, Tuple

from docverify.config import settings
from docverify.schemas import (
    FieldValidationReport,
    ForensicsReport,
    MetadataReport,
    OcrResult,
    QualityReport,
    Recommendation,
    RiskLevel,
    TemplateReport,
    VerificationVerdict,
)

logger = logging.getLogger("services.risk")

_LEVEL_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]


def validation_score(
    quality: QualityReport,
    template: TemplateReport,
    fields: FieldValidationReport,
) -> float:
    """
    Mean of: image quality and template (each weighted by VALIDATION_IMAGE_WEIGHT), ID format,
    DOB sanity (missing ID/DOB count as 0), and expiry (only when read).
    Capped at 1.
    """
    scores: List[float] = [
        quality.quality_score * settings.VALIDATION_IMAGE_WEIGHT,
        template.template_score * settings.VALIDATION_IMAGE_WEIGHT,
        1.0 if fields.id_number and fields.id_number.valid else 0.0,
        1.0 if fields.dob and fields.dob.valid else 0.0,
    ]
    if fields.expiry is not None:
        scores.append(1.0 if fields.expiry.valid and not fields.expiry.expired else 0.0)

    avg = sum(scores) / len(scores)
    return round(min(1.0, avg), 2)


def is_poor_quality(quality: QualityReport) -> bool:
    return quality.quality_score < settings.MIN_GOOD_QUALITY_SCORE


def is_invalid_template(template: TemplateReport) -> bool:
    return not (template.format_valid and template.has_structure)


def risk_points(
    ocr: OcrResult,
    quality: QualityReport,
    template: TemplateReport,
    fields: FieldValidationReport,
    forensics: ForensicsReport,
    metadata: MetadataReport,
) -> Tuple[int, List[str], float]:
    """Return (clamped score, penalty reasons, validation score)."""
    score = 0
    penalties: List[str] = []

    # OCR confidence
    conf = ocr.confidence or 0.0
    if conf < settings.OCR_CONF_VERY_LOW:
        score += settings.RISK_POINTS_OCR_VERY_LOW
        penalties.append("Very low OCR confidence")
    elif conf < settings.OCR_CONF_LOW:
        score += settings.RISK_POINTS_OCR_LOW
        penalties.append("Low OCR confidence")
    elif conf < settings.OCR_CONF_FAIR:
        score += settings.RISK_POINTS_OCR_FAIR

    # critical fields
    extracted = ocr.fields
    if not extracted.name or len(extracted.name) < settings.MIN_NAME_LENGTH:
        score += settings.RISK_POINTS_NO_NAME
        penalties.append("Name not found or invalid")
    if not extracted.id_number or len(extracted.id_number) < settings.MIN_ID_LENGTH:
        score += settings.RISK_POINTS_NO_ID
        penalties.append("ID number not found")
    if not extracted.date_of_birth:
        score += settings.RISK_POINTS_NO_DOB
        penalties.append("Date of birth missing")

    # document validation
    vscore = validation_score(quality, template, fields)
    if vscore < settings.VALIDATION_POOR:
        score += settings.RISK_POINTS_VALIDATION_POOR
        penalties.append("Poor document validation")
    elif vscore < settings.VALIDATION_LOW:
        score += settings.RISK_POINTS_VALIDATION_LOW
        penalties.append("Low validation score")
    elif vscore < settings.VALIDATION_FAIR:
        score += settings.RISK_POINTS_VALIDATION_FAIR

    if is_poor_quality(quality):
        score += settings.RISK_POINTS_POOR_QUALITY
        penalties.append("Poor image quality")

    if is_invalid_template(template):
        score += settings.RISK_POINTS_INVALID_TEMPLATE
        penalties.append("Document template invalid")

    # forensics
    if forensics.tampered:
        score += settings.RISK_POINTS_TAMPERED
        penalties.append("Tampering detected")
    tamper_pct = forensics.tamper_score * 100
    if tamper_pct > settings.TAMPER_PCT_HIGH:
        score += settings.RISK_POINTS_TAMPER_HIGH
        penalties.append("High tampering score")
    elif tamper_pct > settings.TAMPER_PCT_MEDIUM:
        score += settings.RISK_POINTS_TAMPER_MEDIUM

    # metadata
    if metadata.has_editing_software:
        score += settings.RISK_POINTS_EDITING_SOFTWARE
        penalties.append("Editing software detected")
    if metadata.is_screenshot:
        score += settings.RISK_POINTS_SCREENSHOT
        penalties.append("Screenshot detected")
    if not metadata.has_camera_metadata:
        score += settings.RISK_POINTS_NO_CAMERA
        penalties.append("Missing camera metadata")

    return max(0, min(100, int(round(score)))), penalties, vscore


def risk_level_for(score: int) -> RiskLevel:
    if score >= settings.RISK_CRITICAL:
        return RiskLevel.CRITICAL
    if score >= settings.RISK_HIGH:
        return RiskLevel.HIGH
    if score >= settings.RISK_MEDIUM:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def recommendation_for(score: int) -> Recommendation:
    if score >= settings.REJECT_AT:
        return Recommendation.REJECT
    if score >= settings.REVIEW_AT:
        return Recommendation.REVIEW
    return Recommendation.APPROVE


def decide(
    score: int,
    forensics: Optional[ForensicsReport] = None,
    metadata: Optional[MetadataReport] = None,
) -> Tuple[RiskLevel, Recommendation, bool]:
    """
    Map a score to (level, recommendation, forced). Tampering, a screenshot or
    editing software force REJECT and lift the level to at least HIGH.
    """
    level = risk_level_for(score)
    recommendation = recommendation_for(score)

    forced = bool(
        (forensics is not None and forensics.tampered)
        or (metadata is not None and (metadata.is_screenshot or metadata.has_editing_software))
    )
    if forced:
        recommendation = Recommendation.REJECT
        if _LEVEL_ORDER.index(level) < _LEVEL_ORDER.index(RiskLevel.HIGH):
            level = RiskLevel.HIGH
    return level, recommendation, forced


def assess_risk(
    ocr: OcrResult,
    quality: QualityReport,
    template: TemplateReport,
    fields: FieldValidationReport,
    forensics: ForensicsReport,
    metadata: MetadataReport,
) -> VerificationVerdict:
    """Combine every sub-report into the final, immutable verdict."""
    score, penalties, vscore = risk_points(ocr, quality, template, fields, forensics, metadata)
    level, recommendation, forced = decide(score, forensics, metadata)

    degraded = [
        name for name, report in (
            ("ocr", ocr),
            ("quality", quality),
            ("template", template),
            ("forensics", forensics),
            ("metadata", metadata),
        )
        if report.degraded
    ]

    logger.info(
        "Risk calculation: score=%d level=%s recommendation=%s forced=%s penalties=%s",
        score, level.value, recommendation.value, forced, ", ".join(penalties) or "None",
    )
    return VerificationVerdict(
        risk_score=score,
        risk_level=level,
        recommendation=recommendation,
        validation_score=vscore,
        validation_passed=vscore >= settings.VALIDATION_PASS,
        forced_reject=forced,
        penalties=penalties,
        degraded=degraded,
    )
