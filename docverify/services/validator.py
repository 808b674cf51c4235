# docverify/services/validator.py
import math
import re
from datetime import datetime, timezone
from typing import Optional

from docverify.config import settings
from docverify.schemas import (
    AgeCheck,
    DobCheck,
    DocumentType,
    ExpiryCheck,
    ExtractedFields,
    FieldValidationReport,
    IdNumberCheck,
)

ID_PATTERNS = {
    DocumentType.ID_CARD: re.compile(r"^[A-Z]{2}[0-9]{6,12}$", re.I),  # AB123456789
    DocumentType.PASSPORT: re.compile(r"^[A-Z][0-9]{7,9}$", re.I),  # A1234567
    DocumentType.DRIVING_LICENSE: re.compile(r"^[A-Z0-9]{8,15}$", re.I),
    DocumentType.AADHAR: re.compile(r"^[0-9]{12}$"),  # India Aadhaar
    DocumentType.PAN: re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$", re.I),  # India PAN
}

_DAY_SECONDS = 86400.0
_YEAR_DAYS = 365.25


def _now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return now if now.tzinfo else now.replace(tzinfo=timezone.utc)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a normalized YYYY-MM-DD string as midnight UTC; None if it doesn't parse."""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def validate_id_number(id_number: str, document_type=DocumentType.ID_CARD) -> bool:
    pattern = ID_PATTERNS[DocumentType.parse(document_type)]
    return bool(pattern.match(id_number or ""))


def validate_date(value: str, now: Optional[datetime] = None) -> DobCheck:
    """Date of birth sanity: parseable, not in the future, not older than MAX_AGE_YEARS."""
    current = _now(now)
    parsed = parse_date(value)
    if parsed is None:
        return DobCheck(value=value, valid=False, reason="Invalid date format")
    if parsed > current:
        return DobCheck(value=value, valid=False, reason="Date cannot be in future")
    try:
        oldest = current.replace(year=current.year - settings.MAX_AGE_YEARS)
    except ValueError:
        # Feb 29 -> Feb 28
        oldest = current.replace(year=current.year - settings.MAX_AGE_YEARS, day=28)
    if parsed < oldest:
        return DobCheck(value=value, valid=False, reason="Date too old")
    return DobCheck(value=value, valid=True)


def validate_expiry_date(value: str, now: Optional[datetime] = None) -> ExpiryCheck:
    current = _now(now)
    expiry = parse_date(value)
    if expiry is None:
        return ExpiryCheck(value=value, valid=False, expired=True, reason="Invalid expiry date")

    delta = (expiry - current).total_seconds()
    return ExpiryCheck(
        value=value,
        valid=True,
        expired=expiry < current,
        days_remaining=math.ceil(delta / _DAY_SECONDS),
    )


def validate_age_consistency(
    dob: str,
    issue_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AgeCheck:
    """Age at the issue date (or now, when no issue date was read) must be 18..150."""
    birth = parse_date(dob)
    if birth is None:
        return AgeCheck(valid=False, reason="Invalid date of birth")

    reference = parse_date(issue_date) or _now(now)
    age_years = (reference - birth).total_seconds() / (_DAY_SECONDS * _YEAR_DAYS)

    if age_years < settings.MIN_AGE_YEARS:
        return AgeCheck(valid=False, age=math.floor(age_years), reason="Age below minimum requirement")
    if age_years > settings.MAX_AGE_YEARS:
        return AgeCheck(valid=False, age=math.floor(age_years), reason="Age exceeds maximum")
    return AgeCheck(valid=True, age=math.floor(age_years))


def validate_fields(
    fields: ExtractedFields,
    document_type=DocumentType.ID_CARD,
    now: Optional[datetime] = None,
) -> FieldValidationReport:
    """
    Run every check whose input field was extracted. A missing field produces
    no sub-record; that is not a failure here (the risk aggregator penalises
    missing fields separately).
    """
    doc_type = DocumentType.parse(document_type)
    report = FieldValidationReport()

    if fields.id_number:
        report.id_number = IdNumberCheck(
            value=fields.id_number,
            valid=validate_id_number(fields.id_number, doc_type),
            document_type=doc_type,
        )

    if fields.date_of_birth:
        report.dob = validate_date(fields.date_of_birth, now)
        report.age = validate_age_consistency(fields.date_of_birth, fields.issue_date, now)

    if fields.expiry_date:
        report.expiry = validate_expiry_date(fields.expiry_date, now)

    return report
