# docverify/services/heuristics.py
"""
Regex heuristics that turn an OCR transcript into identity fields.

This module:
- Extracts name, ID number, date of birth, expiry/issue dates, gender and address
- Normalizes dates to YYYY-MM-DD (day-first unless the first group is > 31)
- Computes completeness over the core fields (name, id number, date of birth)

Notes:
- Keep heuristics conservative (prefer None over a wrong value).
- Every pattern is case-insensitive; values are returned as found, trimmed.
"""

import re
from typing import Optional

from docverify.schemas import DocumentType, ExtractedFields

# -------------------------
# Precompiled regex patterns
# -------------------------
_DATE = r"(\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}|\d{4}[/\-.]\d{1,2}[/\-.]\d{1,2})"
_SEP = r"\s*[:\-]?\s*"

# label and value must share a line; tried in order so "Holder Name:" resolves via "name"
_NAME_VALUE = r"[ \t]*[:\-]?[ \t]*([A-Za-z][A-Za-z .'\-]*[A-Za-z.])"
NAME_PATTERNS = [
    re.compile(r"\bname\b" + _NAME_VALUE, re.I),
    re.compile(r"\bholder\b" + _NAME_VALUE, re.I),
    re.compile(r"\bfull\s+name\b" + _NAME_VALUE, re.I),
]

ID_PATTERNS = [
    # labelled: "ID No: AB1234567", "Card # X12345678", "Identification Number 123456789"
    re.compile(
        r"\b(?:id|identification|card)\b(?:\s*(?:no\.?|number|#))?\s*[:#\-]?\s*((?=[A-Z0-9]*\d)[A-Z0-9]{6,20})\b",
        re.I,
    ),
    re.compile(r"(?:\bnumber\b|\bno\b\.?|#)\s*[:#\-]?\s*((?=[A-Z0-9]*\d)[A-Z0-9]{6,20})\b", re.I),
    # 12-digit national numbers printed in groups of four
    re.compile(r"\b(\d{4}\s\d{4}\s\d{4})\b"),
    re.compile(r"\b([A-Z]{2}\d{6,15})\b", re.I),
]

DOB_PAT = re.compile(
    r"(?:\bdob\b|\bd\.o\.b\.?|date\s+of\s+birth|\bborn\b|\bbirth\s*date\b)" + _SEP + _DATE,
    re.I,
)
EXPIRY_PAT = re.compile(
    r"(?:\bexpiry(?:\s+date)?\b|\bexpires\b|\bvalid\s+(?:until|till|upto)\b|\bexpiration\b|"
    r"date\s+of\s+expiry|\bexp\b\.?)" + _SEP + _DATE,
    re.I,
)
ISSUE_PAT = re.compile(
    r"(?:date\s+of\s+issue|\bissued?\s+(?:on|date)\b|\bissue\s+date\b|\bdoi\b)" + _SEP + _DATE,
    re.I,
)

MALE_PAT = re.compile(r"\b(male|m)\b", re.I)
FEMALE_PAT = re.compile(r"\b(female|f)\b", re.I)
FEMALE_WORD = re.compile(r"female", re.I)

# stops at a blank line or at a line that starts with a capital letter (next label)
ADDRESS_PAT = re.compile(
    r"\baddress\b\s*[:\-]?\s*([\s\S]{20,150}?)(?=\n\s*\n|(?-i:\n[A-Z])|$)",
    re.I,
)

DATE_PARTS = re.compile(r"[/\-.]")

CORE_FIELDS = ("name", "id_number", "date_of_birth")


# -------------------------
# Utility helpers
# -------------------------
def _expand_year(year: str) -> str:
    if len(year) == 2:
        return ("19" if int(year) > 50 else "20") + year
    return year


def normalize_date(s: Optional[str]) -> Optional[str]:
    """
    Normalize D/M/Y or Y/M/D (separators / - .) to YYYY-MM-DD.
    Day-first is assumed whenever the first group is <= 31, so month-first
    inputs such as 01/02/2020 are read as 1 February. Two-digit years map to
    19xx above 50, else 20xx. Anything else is returned unchanged.
    """
    if not s:
        return s
    val = s.strip()
    parts = DATE_PARTS.split(val)
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return val

    first, second, third = parts
    if int(first) <= 31:
        return f"{_expand_year(third)}-{second.zfill(2)}-{first.zfill(2)}"
    return f"{_expand_year(first)}-{second.zfill(2)}-{third.zfill(2)}"


def _search(pattern: re.Pattern, text: str) -> Optional[str]:
    m = pattern.search(text)
    return m.group(1).strip() if m else None


# -------------------------
# Field extractors
# -------------------------
def extract_name(text: str) -> Optional[str]:
    for pattern in NAME_PATTERNS:
        name = _search(pattern, text)
        if name:
            name = re.sub(r"\s+", " ", name).strip(" .-")
            if name:
                return name
    return None


def extract_id_number(text: str) -> Optional[str]:
    for pattern in ID_PATTERNS:
        found = _search(pattern, text)
        if found:
            return re.sub(r"\s+", "", found).upper()
    return None


def extract_gender(text: str) -> Optional[str]:
    if MALE_PAT.search(text) and not FEMALE_WORD.search(text):
        return "Male"
    if FEMALE_PAT.search(text):
        return "Female"
    return None


def extract_address(text: str) -> Optional[str]:
    raw = _search(ADDRESS_PAT, text)
    if not raw:
        return None
    return re.sub(r"\s+", " ", raw).strip() or None


def extract_fields(ocr_text: str, document_type: DocumentType = DocumentType.ID_CARD) -> ExtractedFields:
    """
    Extract identity fields from an OCR transcript.
    Fields that cannot be found are left as None.
    """
    text = ocr_text or ""
    return ExtractedFields(
        name=extract_name(text),
        id_number=extract_id_number(text),
        date_of_birth=normalize_date(_search(DOB_PAT, text)),
        expiry_date=normalize_date(_search(EXPIRY_PAT, text)),
        issue_date=normalize_date(_search(ISSUE_PAT, text)),
        gender=extract_gender(text),
        address=extract_address(text),
        document_type=DocumentType.parse(document_type).value,
    )


def completeness(fields: ExtractedFields) -> float:
    """Fraction of the core fields (name, id number, date of birth) that were found."""
    found = sum(1 for key in CORE_FIELDS if getattr(fields, key))
    return round(found / len(CORE_FIELDS), 2)
