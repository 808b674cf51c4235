# docverify/services/ocr.py
import logging
from typing import List, Dict, Any, Optional, Protocol

from PIL import Image
import pytesseract
from pytesseract import Output
from pydantic import BaseModel, Field

from docverify.config import settings
from docverify.schemas import DocumentType, OcrResult
from docverify.services.heuristics import extract_fields, completeness
from docverify.services.preprocess import preprocess_for_ocr
from docverify.utils.file_handler import DocumentImage

logger = logging.getLogger("ocr_engine")

# Ensure pytesseract finds the tesseract exe if provided
if settings.TESSERACT_CMD:
    pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD


class Recognition(BaseModel):
    """What any OCR backend must hand back: transcript plus a 0..1 confidence."""
    text: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    words: List[Dict[str, Any]] = Field(default_factory=list)
    lines: int = 0


class OcrEngine(Protocol):
    def recognize(self, image: Image.Image) -> Recognition:
        ...


# --------------------------
# Tesseract backend
# --------------------------
class TesseractEngine:
    """pytesseract-backed engine; confidence is the mean word confidence / 100."""

    def __init__(self, lang: Optional[str] = None):
        self.lang = lang or settings.OCR_LANG

    def recognize(self, image: Image.Image) -> Recognition:
        data = pytesseract.image_to_data(image, lang=self.lang, output_type=Output.DICT)

        rows: List[Dict[str, Any]] = []
        line_keys = set()
        for i in range(len(data.get("text", []))):
            txt = (data["text"][i] or "").strip()
            try:
                conf_val = float(data["conf"][i])
            except (TypeError, ValueError):
                conf_val = -1.0

            if txt == "" or conf_val < 0:
                continue

            rows.append({
                "text": txt,
                "conf": conf_val,
                "left": int(data.get("left", [0])[i]),
                "top": int(data.get("top", [0])[i]),
                "width": int(data.get("width", [0])[i]),
                "height": int(data.get("height", [0])[i]),
            })
            line_keys.add((data["block_num"][i], data["par_num"][i], data["line_num"][i]))

        text = _rows_to_text(data)
        confidence = sum(r["conf"] for r in rows) / (100.0 * len(rows)) if rows else 0.0
        return Recognition(
            text=text,
            confidence=max(0.0, min(1.0, confidence)),
            words=rows,
            lines=len(line_keys),
        )


def _rows_to_text(data: Dict[str, List[Any]]) -> str:
    """Rebuild the transcript from image_to_data output, one OCR line per text line."""
    lines: Dict[tuple, List[str]] = {}
    order: List[tuple] = []
    for i, raw in enumerate(data.get("text", [])):
        txt = (raw or "").strip()
        if not txt:
            continue
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        if key not in lines:
            lines[key] = []
            order.append(key)
        lines[key].append(txt)

    out: List[str] = []
    prev_block = None
    for key in order:
        # blank line between blocks so multi-line captures (address) can stop there
        if prev_block is not None and key[0] != prev_block:
            out.append("")
        out.append(" ".join(lines[key]))
        prev_block = key[0]
    return "\n".join(out)


def default_engine() -> OcrEngine:
    return TesseractEngine()


# --------------------------
# Public OCR entrypoint
# --------------------------
def run_ocr(
    doc: DocumentImage,
    document_type: DocumentType = DocumentType.ID_CARD,
    engine: Optional[OcrEngine] = None,
) -> OcrResult:
    """
    Preprocess -> recognize -> extract fields.
    Never raises: a recognition failure returns empty fields and confidence 0.
    """
    engine = engine or default_engine()
    doc_type = DocumentType.parse(document_type)

    try:
        prepared = preprocess_for_ocr(doc.rgb)
        recognition = engine.recognize(prepared)
    except Exception as e:
        logger.exception("OCR failed: %s", e)
        return OcrResult(
            fields=extract_fields("", doc_type),
            status="degraded",
            error=str(e),
        )

    text = recognition.text or ""
    fields = extract_fields(text, doc_type)
    result = OcrResult(
        text=text,
        confidence=round(recognition.confidence, 2),
        word_count=len(recognition.words) or len(text.split()),
        line_count=recognition.lines or len([ln for ln in text.splitlines() if ln.strip()]),
        fields=fields,
        completeness=completeness(fields),
    )
    logger.info(
        "OCR completed: confidence=%.2f words=%d completeness=%.2f",
        result.confidence, result.word_count, result.completeness,
    )
    return result
