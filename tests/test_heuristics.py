import pytest

from docverify.schemas import DocumentType, ExtractedFields
from docverify.services.heuristics import (
    completeness,
    extract_address,
    extract_fields,
    extract_gender,
    extract_id_number,
    extract_name,
    normalize_date,
)


# -------- normalize_date --------
@pytest.mark.parametrize("raw, expected", [
    ("15/03/1990", "1990-03-15"),
    ("5-3-1990", "1990-03-05"),
    ("15.03.1990", "1990-03-15"),
    ("15/03/90", "1990-03-15"),
    ("15/03/20", "2020-03-15"),
    ("1990/3/5", "1990-03-05"),
])
def test_normalize_date_formats(raw, expected):
    assert normalize_date(raw) == expected


def test_normalize_date_is_idempotent_on_iso():
    assert normalize_date("1990-03-15") == "1990-03-15"
    assert normalize_date("2030-12-31") == "2030-12-31"
    assert normalize_date(normalize_date("15/03/1990")) == "1990-03-15"


def test_normalize_date_reads_ambiguous_dates_day_first():
    # 01/02/2020 could be Jan 2nd (month-first) but is read as 1 February
    assert normalize_date("01/02/2020") == "2020-02-01"


def test_normalize_date_leaves_garbage_alone():
    assert normalize_date("sometime in may") == "sometime in may"
    assert normalize_date(None) is None


# -------- individual extractors --------
def test_extract_name_same_line_only():
    assert extract_name("Name: JANE Q PUBLIC\nDOB: 01/01/1980") == "JANE Q PUBLIC"
    assert extract_name("Holder Name - Ravi Kumar") == "Ravi Kumar"
    assert extract_name("Card Holder: Maria Lopez") == "Maria Lopez"
    assert extract_name("no label here") is None


def test_extract_id_number_prefers_labelled_value():
    assert extract_id_number("ID No: ab1234567") == "AB1234567"
    assert extract_id_number("Passport Number: K1234567") == "K1234567"


def test_extract_id_number_ignores_words_after_label():
    # "identification" must not be read as "id" + "entification"
    assert extract_id_number("Identification document\nXY99887766") == "XY99887766"


def test_extract_id_number_grouped_national_number():
    assert extract_id_number("Aadhaar\n1234 5678 9012\nVID") == "123456789012"


def test_extract_id_number_fallback_pattern():
    assert extract_id_number("something XY12345678 else") == "XY12345678"
    assert extract_id_number("nothing useful") is None


@pytest.mark.parametrize("text, expected", [
    ("Sex: M", "Male"),
    ("Gender: Male", "Male"),
    ("Gender: Female", "Female"),
    ("Sex: F", "Female"),
    ("Male / Female", "Female"),
    ("no gender printed", None),
])
def test_extract_gender(text, expected):
    assert extract_gender(text) == expected


def test_extract_address_stops_at_capitalised_line():
    text = "Address: 12 rose lane, springfield district\nDOB: 01/01/1980"
    assert extract_address(text) == "12 rose lane, springfield district"


def test_extract_address_spans_lines_until_blank_line():
    text = "ADDRESS:\n12 rose lane\nspringfield district 4\n\nSignature"
    assert extract_address(text) == "12 rose lane springfield district 4"


def test_extract_address_too_short_is_ignored():
    assert extract_address("Address: 1 A St\nNext") is None


# -------- full extraction --------
def test_extract_fields_from_id_card(id_card_text):
    fields = extract_fields(id_card_text, DocumentType.ID_CARD)

    assert fields.name == "JOHN DOE"
    assert fields.id_number == "AB1234567"
    assert fields.date_of_birth == "1990-03-15"
    assert fields.expiry_date == "2035-01-01"
    assert fields.gender == "Male"
    assert fields.address.startswith("221B baker street")
    assert fields.document_type == "ID_CARD"
    assert fields.issue_date is None


def test_extract_fields_empty_text_leaves_fields_absent():
    fields = extract_fields("", "PASSPORT")
    assert fields.name is None
    assert fields.id_number is None
    assert fields.date_of_birth is None
    assert fields.document_type == "PASSPORT"


def test_extract_fields_issue_date():
    fields = extract_fields("Date of Issue: 10/06/2015")
    assert fields.issue_date == "2015-06-10"


def test_completeness_counts_core_fields():
    assert completeness(ExtractedFields()) == 0.0
    assert completeness(ExtractedFields(name="A B", id_number="X")) == 0.67
    assert completeness(ExtractedFields(name="A B", id_number="X", date_of_birth="1990-01-01")) == 1.0


@pytest.mark.parametrize("dob, expiry, expected_dob, expected_expiry", [
    ("15/03/1990", "31/12/2030", "1990-03-15", "2030-12-31"),
    ("1990-03-15", "2030-12-31", "1990-03-15", "2030-12-31"),
    ("1990.03.15", "2030.12.31", "1990-03-15", "2030-12-31"),
    ("1990/3/5", "2030/1/9", "1990-03-05", "2030-01-09"),
    ("15-03-90", "31-12-30", "1990-03-15", "2030-12-31"),
])
def test_extract_fields_dates_in_printed_formats(dob, expiry, expected_dob, expected_expiry):
    fields = extract_fields(f"Name: JANE ROE\nDOB: {dob}\nExpiry: {expiry}\n")
    assert fields.date_of_birth == expected_dob
    assert fields.expiry_date == expected_expiry
