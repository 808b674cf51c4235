# docverify/schemas.py
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any, Literal

# "ok" -> the analyzer ran; "degraded" -> it failed and a conservative default was used
RunStatus = Literal["ok", "degraded"]


class DocumentType(str, Enum):
    ID_CARD = "ID_CARD"
    PASSPORT = "PASSPORT"
    DRIVING_LICENSE = "DRIVING_LICENSE"
    AADHAR = "AADHAR"
    PAN = "PAN"

    @classmethod
    def parse(cls, value: Optional[str]) -> "DocumentType":
        """Map a raw tag to a document type; unknown tags fall back to ID_CARD."""
        if isinstance(value, cls):
            return value
        key = (value or "").strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            return cls.ID_CARD


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Recommendation(str, Enum):
    APPROVE = "APPROVE"
    REVIEW = "REVIEW"
    REJECT = "REJECT"


class MetadataRisk(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AnalyzerReport(BaseModel):
    status: RunStatus = "ok"
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.status == "degraded"


# --------------------------
# OCR
# --------------------------
class ExtractedFields(BaseModel):
    name: Optional[str] = None
    id_number: Optional[str] = None
    date_of_birth: Optional[str] = None
    expiry_date: Optional[str] = None
    issue_date: Optional[str] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    document_type: Optional[str] = None


class OcrResult(AnalyzerReport):
    text: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    word_count: int = 0
    line_count: int = 0
    fields: ExtractedFields = Field(default_factory=ExtractedFields)
    completeness: float = Field(default=0.0, ge=0.0, le=1.0)


# --------------------------
# Image quality / template
# --------------------------
class QualityReport(AnalyzerReport):
    width: int
    height: int
    format: Optional[str] = None
    aspect_ratio: float = 0.0
    resolution_valid: bool = False
    aspect_ratio_valid: bool = False
    brightness: Optional[float] = None
    brightness_valid: bool = False
    sharpness: float = Field(default=0.0, ge=0.0, le=1.0)
    quality_score: float = Field(default=0.0, ge=0.0, le=1.0)


class TemplateReport(AnalyzerReport):
    format_valid: bool = False
    template_score: float = Field(default=0.0, ge=0.0, le=1.0)
    edge_density: Optional[float] = None
    has_structure: bool = False


# --------------------------
# Field validation
# --------------------------
class IdNumberCheck(BaseModel):
    value: str
    valid: bool
    document_type: DocumentType


class DobCheck(BaseModel):
    value: str
    valid: bool
    reason: Optional[str] = None


class ExpiryCheck(BaseModel):
    value: str
    valid: bool
    expired: bool
    days_remaining: Optional[int] = None
    reason: Optional[str] = None


class AgeCheck(BaseModel):
    valid: bool
    age: Optional[int] = None
    reason: Optional[str] = None


class FieldValidationReport(BaseModel):
    id_number: Optional[IdNumberCheck] = None
    dob: Optional[DobCheck] = None
    expiry: Optional[ExpiryCheck] = None
    age: Optional[AgeCheck] = None


# --------------------------
# Forensics
# --------------------------
class ForensicIndicator(AnalyzerReport):
    tampered: bool = False
    score: float = 0.0
    details: Dict[str, Any] = Field(default_factory=dict)


class ForensicIndicators(BaseModel):
    copy_paste: ForensicIndicator
    blur: ForensicIndicator
    sharpness_mismatch: ForensicIndicator
    double_jpeg: ForensicIndicator


class ForensicsReport(AnalyzerReport):
    tampered: bool = False
    tamper_score: float = Field(default=0.0, ge=0.0, le=1.0)
    indicators: ForensicIndicators
    tampered_count: int = Field(default=0, ge=0, le=4)


# --------------------------
# Metadata
# --------------------------
class EditingSoftwareHit(BaseModel):
    software: str
    field: str  # "Software" | "Creator/History"


class CameraDetails(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    has_date_time: bool = False
    has_gps: bool = False
    score: float = Field(default=0.0, ge=0.0, le=1.0)


class MetadataReport(AnalyzerReport):
    metadata_risk: MetadataRisk = MetadataRisk.MEDIUM
    has_editing_software: bool = False
    editing_software: Optional[EditingSoftwareHit] = None
    is_screenshot: bool = False
    screenshot_reasons: List[str] = Field(default_factory=list)
    has_camera_metadata: bool = False
    camera_details: Optional[CameraDetails] = None
    risk_factors: List[str] = Field(default_factory=list)
    risk_score: int = 0
    details: Dict[str, Any] = Field(default_factory=dict)


# --------------------------
# Verdict
# --------------------------
class VerificationVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    recommendation: Recommendation
    validation_score: float = Field(default=0.0, ge=0.0, le=1.0)
    validation_passed: bool = False
    forced_reject: bool = False
    penalties: List[str] = Field(default_factory=list)
    degraded: List[str] = Field(default_factory=list)


class VerificationReport(BaseModel):
    document_type: DocumentType
    filename: Optional[str] = None
    verdict: VerificationVerdict
    ocr: OcrResult
    quality: QualityReport
    template: TemplateReport
    fields: FieldValidationReport
    forensics: ForensicsReport
    metadata: MetadataReport
