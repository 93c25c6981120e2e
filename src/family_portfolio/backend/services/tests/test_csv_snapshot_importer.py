# src/family_portfolio/backend/services/tests/test_csv_snapshot_importer.py

from datetime import date

from family_portfolio.backend.services.csv_snapshot_importer import (
    EXPORT_HEADERS,
    accepted_snapshots,
    export_snapshots_csv,
    parse_snapshot_csv,
    summarize_import,
)
from family_portfolio.backend.services.models import Snapshot


SAMPLE_CSV = (
    "Date,Value,InvestmentChange,Notes\n"
    '2024-01-15,10000,5000,"Initial deposit"\n'
    '15/02/2024,10500,0,"Monthly update"\n'
)


def test_sample_csv_with_header():
    results = parse_snapshot_csv(SAMPLE_CSV)

    assert [r.accepted for r in results] == [True, True]
    assert [r.row_number for r in results] == [2, 3]

    first, second = accepted_snapshots(results)
    assert first == Snapshot(date=date(2024, 1, 15), value=10000, investment_change=5000, notes="Initial deposit")
    assert second.date == date(2024, 2, 15)
    assert second.value == 10500
    assert second.investment_change == 0
    assert second.notes == "Monthly update"


def test_rejected_rows_keep_reason_and_raw_line():
    text = SAMPLE_CSV + "2024-03-15,0,0,zero\nnot-a-date,100,0,bad\n2024-04-15,-5,0,\n"

    results = parse_snapshot_csv(text)
    summary = summarize_import(results)

    assert summary.succeeded == 2
    assert summary.failed == 3
    assert summary.errors == [
        "Row 4: value must be greater than zero",
        "Row 5: unreadable date 'not-a-date'",
        "Row 6: value must be greater than zero",
    ]

    rejected = [r for r in results if not r.accepted]
    assert rejected[1].raw_line == "not-a-date,100,0,bad"
    assert rejected[1].record is None


def test_quoted_notes_with_commas_and_escaped_quotes():
    text = 'Date,Value\n2024-01-15,100,0,"Bought ""VWCE"", rebalanced"\n'

    (result,) = parse_snapshot_csv(text)

    assert result.record.notes == 'Bought "VWCE", rebalanced'


def test_unquoted_extra_fields_are_joined_into_notes():
    (result,) = parse_snapshot_csv("2024-01-15,100,0,a,b")
    assert result.record.notes == "a,b"

    # 각 필드는 trim 후 쉼표로 합친다 (따옴표로 감싸면 공백 유지)
    (spaced,) = parse_snapshot_csv('2024-01-15, 100, 0, a, b')
    (quoted,) = parse_snapshot_csv('2024-01-15,100,0,"a, b"')
    assert spaced.record.notes == "a,b"
    assert spaced.record.value == 100
    assert quoted.record.notes == "a, b"


def test_without_header_first_line_is_data():
    results = parse_snapshot_csv("2024-01-15,100,0,first\n2024-02-15,110,0,second")

    assert len(results) == 2
    assert results[0].row_number == 1


def test_blank_lines_are_skipped_but_row_numbers_stay_physical():
    text = "Date,Value,InvestmentChange,Notes\n\n,,,\n   \n2024-01-15,100,0,x\n"

    (result,) = parse_snapshot_csv(text)

    assert result.row_number == 5


def test_crlf_line_endings():
    results = parse_snapshot_csv("Date,Value\r\n2024-01-15,100,0,x\r\n2024-02-15,110,0,y\r\n")

    assert [r.record.notes for r in results] == ["x", "y"]


def test_numbers_with_thousands_separator_and_bad_change():
    text = '2024-01-15,"1,234.5",abc,\n2024-02-15,2000,-250.5,'

    first, second = accepted_snapshots(parse_snapshot_csv(text))

    assert first.value == 1234.5
    # 읽을 수 없는 원금 증감은 0
    assert first.investment_change == 0
    assert second.investment_change == -250.5


def test_missing_fields_default_to_zero_and_empty_notes():
    (result,) = parse_snapshot_csv("2024-01-15,100")

    assert result.record.investment_change == 0
    assert result.record.notes == ""


def test_empty_text():
    assert parse_snapshot_csv("") == []
    assert parse_snapshot_csv("Date,Value,InvestmentChange,Notes\n") == []
    assert summarize_import([]).failed == 0


def test_export_is_oldest_first_and_readable_again():
    snapshots = [
        Snapshot(date=date(2024, 2, 1), value=10500.5, investment_change=0, notes='Monthly, "x"'),
        Snapshot(date=date(2024, 1, 15), value=10000, investment_change=5000, notes="Initial"),
    ]

    text = export_snapshots_csv(snapshots)
    lines = text.split("\n")

    assert lines[0] == ",".join(EXPORT_HEADERS)
    assert lines[1] == '2024-01-15,10000,5000,"Initial"'
    assert lines[2] == '2024-02-01,10500.5,0,"Monthly, ""x"""'

    reparsed = accepted_snapshots(parse_snapshot_csv(text))
    assert reparsed == [snapshots[1], snapshots[0]]
