# docverify/services/metadata.py
import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from PIL import ExifTags

from docverify.config import settings
from docverify.schemas import CameraDetails, EditingSoftwareHit, MetadataReport, MetadataRisk
from docverify.utils.file_handler import DocumentImage

logger = logging.getLogger("services.metadata")

# PNG text chunks that carry authoring tools
_PNG_TEXT_KEYS = ("Software", "Creator", "Author", "Comment", "Description")
# local names in Pillow's parsed XMP tree (namespaces stripped)
_XMP_CREATOR_KEYS = ("CreatorTool", "creator")
_XMP_HISTORY_KEYS = ("softwareAgent", "History")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).replace("\x00", "").strip()
    return text or None


def _xmp_strings(node: Any) -> List[str]:
    if isinstance(node, dict):
        return [s for value in node.values() for s in _xmp_strings(value)]
    if isinstance(node, list):
        return [s for item in node for s in _xmp_strings(item)]
    text = _clean(node)
    return [text] if text else []


def _xmp_values(node: Any, keys: Tuple[str, ...]) -> List[str]:
    """All text found under any of `keys`, searched at every depth of an Image.getxmp() tree."""
    found: List[str] = []
    if isinstance(node, dict):
        for key, value in node.items():
            if key in keys:
                found.extend(_xmp_strings(value))
            else:
                found.extend(_xmp_values(value, keys))
    elif isinstance(node, list):
        for item in node:
            found.extend(_xmp_values(item, keys))
    return found


def extract_metadata(doc: DocumentImage) -> Dict[str, Any]:
    """
    Pull capture metadata from EXIF, XMP and PNG text chunks.
    Raises if the encoded image cannot be re-opened; the caller turns that
    into a cautious default.
    """
    with doc.open() as img:
        info = dict(img.info)
        exif = img.getexif()
        exif_ifd = exif.get_ifd(ExifTags.IFD.Exif) if exif else {}
        gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo) if exif else {}
        # BMP has no XMP support in Pillow
        xmp = img.getxmp() if hasattr(img, "getxmp") else {}

    software = _clean(exif.get(ExifTags.Base.Software)) or _clean(info.get("Software"))
    date_time = (
        _clean(exif_ifd.get(ExifTags.Base.DateTimeOriginal))
        or _clean(exif_ifd.get(ExifTags.Base.DateTimeDigitized))
        or _clean(exif.get(ExifTags.Base.DateTime))
    )

    creator_parts = _xmp_values(xmp, _XMP_CREATOR_KEYS)
    creator_parts += [v for v in (_clean(exif.get(ExifTags.Base.Artist)),) if v]
    creator_parts += [v for v in (_clean(info.get(k)) for k in _PNG_TEXT_KEYS if k != "Software") if v]
    history_parts = _xmp_values(xmp, _XMP_HISTORY_KEYS)

    latitude = gps_ifd.get(ExifTags.GPS.GPSLatitude) if gps_ifd else None
    longitude = gps_ifd.get(ExifTags.GPS.GPSLongitude) if gps_ifd else None

    return {
        "make": _clean(exif.get(ExifTags.Base.Make)),
        "model": _clean(exif.get(ExifTags.Base.Model)),
        "software": software,
        "date_time": date_time,
        "gps": {
            "latitude": _clean(latitude),
            "longitude": _clean(longitude),
        },
        "creator": " ".join(creator_parts) or None,
        "history": " ".join(history_parts) or None,
        "orientation": exif.get(ExifTags.Base.Orientation) if exif else None,
        "width": doc.width,
        "height": doc.height,
    }


def detect_editing_software(metadata: Dict[str, Any]) -> Optional[EditingSoftwareHit]:
    software = (metadata.get("software") or "").lower()
    creator = (metadata.get("creator") or "").lower()
    history = (metadata.get("history") or "").lower()
    combined = f"{software} {creator} {history}"

    for keyword in settings.EDITING_SOFTWARE_KEYWORDS:
        if keyword in combined:
            return EditingSoftwareHit(
                software=keyword,
                field="Software" if keyword in software else "Creator/History",
            )
    return None


def detect_screenshot(metadata: Dict[str, Any], filename: str) -> Dict[str, Union[bool, List[str]]]:
    """
    Screenshot if the software tag says so or the filename looks like one.
    Missing camera make/model is noted as a reason but is not enough on its own.
    """
    is_screenshot = False
    reasons: List[str] = []

    software = (metadata.get("software") or "").lower()
    if any(token in software for token in settings.SCREENSHOT_SOFTWARE_TOKENS):
        is_screenshot = True
        reasons.append("Software field indicates screenshot")

    if not metadata.get("make") and not metadata.get("model"):
        reasons.append("Missing camera metadata")

    name = (filename or "").lower()
    if any(token in name for token in settings.SCREENSHOT_FILENAME_TOKENS):
        is_screenshot = True
        reasons.append("Filename suggests screenshot")

    return {"is_screenshot": is_screenshot, "reasons": reasons}


def camera_details(metadata: Dict[str, Any]) -> CameraDetails:
    has_make = bool(metadata.get("make"))
    has_model = bool(metadata.get("model"))
    has_date_time = bool(metadata.get("date_time"))
    gps = metadata.get("gps") or {}
    return CameraDetails(
        make=metadata.get("make"),
        model=metadata.get("model"),
        has_date_time=has_date_time,
        has_gps=bool(gps.get("latitude") and gps.get("longitude")),
        score=round((0.4 if has_make else 0) + (0.4 if has_model else 0) + (0.2 if has_date_time else 0), 2),
    )


def analyze_metadata(doc: DocumentImage) -> MetadataReport:
    try:
        metadata = extract_metadata(doc)
    except Exception as e:
        logger.exception("Metadata analysis failed")
        return MetadataReport(
            metadata_risk=MetadataRisk.MEDIUM,
            risk_score=settings.META_FALLBACK_RISK_SCORE,
            risk_factors=["Analysis failed - defaulting to medium risk"],
            status="degraded",
            error=str(e),
        )

    editing = detect_editing_software(metadata)
    screenshot = detect_screenshot(metadata, doc.filename)
    camera = camera_details(metadata)
    has_camera = bool(camera.make or camera.model)

    risk_score = 0
    risk_factors: List[str] = []
    if editing:
        risk_score += settings.META_EDITING_POINTS
        risk_factors.append(f"Editing software detected: {editing.software}")
    if screenshot["is_screenshot"]:
        risk_score += settings.META_SCREENSHOT_POINTS
        risk_factors.append("Image appears to be a screenshot")
    if not has_camera:
        risk_score += settings.META_NO_CAMERA_POINTS
        risk_factors.append("Missing camera metadata")

    if risk_score >= settings.META_HIGH_RISK:
        risk = MetadataRisk.HIGH
    elif risk_score >= settings.META_MEDIUM_RISK:
        risk = MetadataRisk.MEDIUM
    else:
        risk = MetadataRisk.LOW

    logger.info("Metadata analysis complete - risk=%s (%d)", risk.value, risk_score)
    return MetadataReport(
        metadata_risk=risk,
        has_editing_software=editing is not None,
        editing_software=editing,
        is_screenshot=bool(screenshot["is_screenshot"]),
        screenshot_reasons=list(screenshot["reasons"]),
        has_camera_metadata=has_camera,
        camera_details=camera,
        risk_factors=risk_factors,
        risk_score=risk_score,
        details=metadata,
    )
