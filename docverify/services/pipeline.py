# docverify/services/pipeline.py
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Optional, Tuple

from docverify.config import settings
from docverify.schemas import DocumentType, FieldValidationReport, OcrResult, VerificationReport
from docverify.services.forensics import analyze_forensics
from docverify.services.metadata import analyze_metadata
from docverify.services.ocr import OcrEngine, run_ocr
from docverify.services.quality import analyze_quality
from docverify.services.risk import assess_risk
from docverify.services.template import validate_template
from docverify.services.validator import validate_fields
from docverify.utils.file_handler import DocumentImage, load_document_image

logger = logging.getLogger("services.pipeline")


class VerificationTimeoutError(RuntimeError):
    """The analyzers did not finish in time; the verification did not run to completion."""


# --------------------------
# Shared worker pool
# --------------------------
_executor = ThreadPoolExecutor(max_workers=settings.MAX_WORKERS, thread_name_prefix="docverify")


def _extract_and_validate(
    doc: DocumentImage,
    document_type: DocumentType,
    engine: Optional[OcrEngine],
) -> Tuple[OcrResult, FieldValidationReport]:
    ocr = run_ocr(doc, document_type, engine)
    return ocr, validate_fields(ocr.fields, document_type)


def verify(
    doc: DocumentImage,
    document_type=DocumentType.ID_CARD,
    engine: Optional[OcrEngine] = None,
    timeout: Optional[float] = None,
) -> VerificationReport:
    """
    Fan out the independent analyzers (quality, template, forensics,
    metadata, and the OCR -> field validation chain), wait for all of them,
    then aggregate. Analyzer failures come back as degraded reports; only a
    timeout aborts the verification.
    """
    doc_type = DocumentType.parse(document_type)
    logger.info("Starting document verification: %s (%s)", doc.filename or "<upload>", doc_type.value)

    futures = {
        "quality": _executor.submit(analyze_quality, doc),
        "template": _executor.submit(validate_template, doc),
        "forensics": _executor.submit(analyze_forensics, doc),
        "metadata": _executor.submit(analyze_metadata, doc),
        "ocr": _executor.submit(_extract_and_validate, doc, doc_type, engine),
    }

    done, pending = wait(futures.values(), timeout=timeout)
    if pending:
        # only queued tasks can be cancelled; running ones finish in the background
        for fut in pending:
            fut.cancel()
        unfinished = [name for name, fut in futures.items() if fut in pending]
        logger.error("Verification timed out after %ss waiting on %s", timeout, ", ".join(unfinished))
        raise VerificationTimeoutError(f"Verification timed out waiting on: {', '.join(unfinished)}")

    quality = futures["quality"].result()
    template = futures["template"].result()
    forensics = futures["forensics"].result()
    metadata = futures["metadata"].result()
    ocr, fields = futures["ocr"].result()

    verdict = assess_risk(ocr, quality, template, fields, forensics, metadata)
    logger.info(
        "Verification complete: score=%d level=%s recommendation=%s",
        verdict.risk_score, verdict.risk_level.value, verdict.recommendation.value,
    )
    return VerificationReport(
        document_type=doc_type,
        filename=doc.filename or None,
        verdict=verdict,
        ocr=ocr,
        quality=quality,
        template=template,
        fields=fields,
        forensics=forensics,
        metadata=metadata,
    )


def verify_bytes(
    raw: bytes,
    filename: Optional[str] = None,
    document_type=DocumentType.ID_CARD,
    engine: Optional[OcrEngine] = None,
    timeout: Optional[float] = None,
) -> VerificationReport:
    """Decode then verify. Decode problems raise DocumentInputError before any analyzer runs."""
    doc = load_document_image(raw, filename)
    return verify(doc, document_type, engine=engine, timeout=timeout)
