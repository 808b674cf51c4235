# docverify/routers/verify.py
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from docverify.config import settings
from docverify.schemas import DocumentType, VerificationReport
from docverify.services.ocr import OcrEngine, default_engine
from docverify.services.pipeline import VerificationTimeoutError, verify_bytes
from docverify.utils.file_handler import UnsupportedDocumentError, DocumentInputError

logger = logging.getLogger("router.verify")
router = APIRouter()

# -------------------
# Helpers
# -------------------


def get_ocr_engine() -> OcrEngine:
    return default_engine()


def _validate_filetype(file: UploadFile) -> None:
    if file.content_type not in settings.ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=415, detail=f"Unsupported media type: {file.content_type}"
        )


# -------------------
# Endpoint
# -------------------

@router.post("/verify", response_model=VerificationReport)
async def verify_endpoint(
    file: UploadFile = File(...),
    document_type: str = Form(DocumentType.ID_CARD.value),
    engine: OcrEngine = Depends(get_ocr_engine),
) -> VerificationReport:
    """
    Run the full authenticity pipeline on one document photo.
    A REJECT recommendation is a normal 200 response; 4xx/5xx mean the
    verification itself could not run and the case needs manual review.
    """
    _validate_filetype(file)
    raw = await file.read()
    if len(raw) > settings.MAX_FILE_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"File too large. Max {settings.MAX_FILE_MB} MB allowed.")

    try:
        return await run_in_threadpool(
            verify_bytes,
            raw,
            file.filename,
            DocumentType.parse(document_type),
            engine,
            settings.VERIFY_TIMEOUT_SECONDS,
        )
    except UnsupportedDocumentError as e:
        raise HTTPException(status_code=415, detail=str(e))
    except DocumentInputError as e:
        logger.warning("Rejected unreadable upload %s: %s", file.filename, e)
        raise HTTPException(status_code=422, detail=f"Failed to parse file: {e}")
    except VerificationTimeoutError as e:
        logger.error("Verification timed out for %s", file.filename)
        raise HTTPException(status_code=504, detail=f"{e}; manual review required")
