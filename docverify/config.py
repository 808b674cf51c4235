# docverify/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional


class Settings(BaseSettings):
    """
    Global project configuration loaded from environment variables (.env file).
    Besides upload limits and OCR paths, every numeric threshold used by the
    analyzers and the risk aggregator lives here so the scoring policy can be
    audited (and overridden) in one place.
    """

    # === App Info ===
    APP_NAME: str = "Document Verification API"
    APP_VERSION: str = "0.1.0"

    # === Uploads ===
    MAX_FILE_MB: int = 10
    ALLOWED_MIME_TYPES: List[str] = Field(
        default_factory=lambda: [
            "image/jpeg",
            "image/jpg",
            "image/png",
            "image/webp",
            "image/tiff",
            "image/bmp",
        ]
    )
    SUPPORTED_IMAGE_FORMATS: List[str] = Field(
        default_factory=lambda: ["JPEG", "PNG", "WEBP", "TIFF", "BMP", "MPO"]
    )

    # === OCR ===
    # Example Windows path:
    #   TESSERACT_CMD="C:\\Program Files\\Tesseract-OCR\\tesseract.exe"
    TESSERACT_CMD: Optional[str] = os.getenv("TESSERACT_CMD")
    OCR_LANG: str = "eng"
    OCR_BINARIZE_THRESHOLD: int = 128

    # === Pipeline ===
    # five analyzer tasks per verification, room for four verifications at once;
    # analyzers still running after a timeout hold their worker until they return
    MAX_WORKERS: int = 20
    # None -> wait for every analyzer
    VERIFY_TIMEOUT_SECONDS: Optional[float] = 60.0

    # === Image quality ===
    MIN_WIDTH: int = 600
    MIN_HEIGHT: int = 400
    MIN_ASPECT_RATIO: float = 1.4
    MAX_ASPECT_RATIO: float = 2.0
    MIN_BRIGHTNESS: float = 30.0
    MAX_BRIGHTNESS: float = 225.0
    SHARPNESS_STDEV_NORM: float = 50.0
    QUALITY_WEIGHT_RESOLUTION: float = 0.3
    QUALITY_WEIGHT_ASPECT_RATIO: float = 0.3
    QUALITY_WEIGHT_BRIGHTNESS: float = 0.2
    QUALITY_WEIGHT_SHARPNESS: float = 0.2
    QUALITY_FALLBACK_SCORE: float = 0.3

    # === Template ===
    EDGE_DENSITY_MIN: float = 0.1
    EDGE_DENSITY_MAX: float = 0.5
    TEMPLATE_SCORE_STRUCTURED: float = 0.8
    TEMPLATE_SCORE_UNSTRUCTURED: float = 0.5
    TEMPLATE_FALLBACK_SCORE: float = 0.3

    # === Field validation ===
    MIN_AGE_YEARS: int = 18
    MAX_AGE_YEARS: int = 150

    # === Forensics ===
    COPY_PASTE_GRID: int = 4
    COPY_PASTE_MIN_CELL: int = 10
    COPY_PASTE_NORM: float = 1000.0
    COPY_PASTE_THRESHOLD: float = 0.3
    BLUR_GRID: int = 3
    BLUR_CV_THRESHOLD: float = 0.5
    SHARPNESS_GRID: int = 3
    SHARPNESS_CV_THRESHOLD: float = 0.4
    JPEG_RECOMPRESS_QUALITY: int = 95
    DOUBLE_JPEG_DELTA_THRESHOLD: float = 0.05
    TAMPER_MIN_INDICATORS: int = 2

    # === Metadata ===
    EDITING_SOFTWARE_KEYWORDS: List[str] = Field(
        default_factory=lambda: [
            "photoshop",
            "gimp",
            "paint.net",
            "pixlr",
            "canva",
            "lightroom",
            "snapseed",
            "vsco",
            "picsart",
            "adobe",
        ]
    )
    SCREENSHOT_SOFTWARE_TOKENS: List[str] = Field(
        default_factory=lambda: ["screenshot", "screen capture"]
    )
    SCREENSHOT_FILENAME_TOKENS: List[str] = Field(
        default_factory=lambda: ["screenshot", "screen_", "scr_"]
    )
    META_EDITING_POINTS: int = 40
    META_SCREENSHOT_POINTS: int = 50
    META_NO_CAMERA_POINTS: int = 30
    META_HIGH_RISK: int = 70
    META_MEDIUM_RISK: int = 40
    META_FALLBACK_RISK_SCORE: int = 50

    # === Risk aggregation ===
    OCR_CONF_VERY_LOW: float = 0.5
    OCR_CONF_LOW: float = 0.7
    OCR_CONF_FAIR: float = 0.85
    VALIDATION_POOR: float = 0.4
    VALIDATION_LOW: float = 0.6
    VALIDATION_FAIR: float = 0.8
    VALIDATION_PASS: float = 0.7
    # quality and template scores count this much in the validation mean
    VALIDATION_IMAGE_WEIGHT: float = 1.5
    MIN_GOOD_QUALITY_SCORE: float = 0.6
    MIN_NAME_LENGTH: int = 3
    MIN_ID_LENGTH: int = 5
    RISK_CRITICAL: int = 60
    RISK_HIGH: int = 40
    RISK_MEDIUM: int = 25
    REJECT_AT: int = 50
    REVIEW_AT: int = 25
    # points added per failed rule
    RISK_POINTS_OCR_VERY_LOW: int = 40
    RISK_POINTS_OCR_LOW: int = 25
    RISK_POINTS_OCR_FAIR: int = 10
    RISK_POINTS_NO_NAME: int = 30
    RISK_POINTS_NO_ID: int = 30
    RISK_POINTS_NO_DOB: int = 20
    RISK_POINTS_VALIDATION_POOR: int = 35
    RISK_POINTS_VALIDATION_LOW: int = 20
    RISK_POINTS_VALIDATION_FAIR: int = 10
    RISK_POINTS_POOR_QUALITY: int = 25
    RISK_POINTS_INVALID_TEMPLATE: int = 30
    RISK_POINTS_TAMPERED: int = 50
    RISK_POINTS_TAMPER_HIGH: int = 40
    RISK_POINTS_TAMPER_MEDIUM: int = 20
    RISK_POINTS_EDITING_SOFTWARE: int = 35
    RISK_POINTS_SCREENSHOT: int = 45
    RISK_POINTS_NO_CAMERA: int = 15
    # tamper_score as a percentage
    TAMPER_PCT_HIGH: float = 60.0
    TAMPER_PCT_MEDIUM: float = 40.0

    # === CORS (Frontend integration) ===
    CORS_ALLOW_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Create a global settings instance
settings = Settings()
