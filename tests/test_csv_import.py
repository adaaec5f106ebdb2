"""
Unit tests for the CSV import parser.
"""

import pytest

from flashvote.utils.csv_import import CsvFormatError, first_value, parse_csv


def test_parses_rows_keyed_by_header():
    parsed = parse_csv("name, city\nAlpha, Springfield\n\nBeta,Shelbyville\n")
    assert parsed.headers == ["name", "city"]
    assert [r.row for r in parsed.rows] == [1, 2]
    assert parsed.rows[0].data == {"name": "Alpha", "city": "Springfield"}


def test_quoted_commas_and_escapes():
    parsed = parse_csv('name,address\n"Smith, Jones & Co","12 \\"Main\\" St"\n')
    assert parsed.rows[0].data == {"name": "Smith, Jones & Co", "address": '12 "Main" St'}


def test_quoted_headers_are_unquoted():
    parsed = parse_csv('"item_slug","name"\nclassic,Classic\n', required=(("item_slug",), ("name",)))
    assert parsed.headers == ["item_slug", "name"]


def test_missing_required_headers_rejects_file():
    with pytest.raises(CsvFormatError, match="Missing required fields: item_slug, name"):
        parse_csv("category\nbeef\n", required=(("item_slug",), ("name",)))


def test_header_alias_satisfies_requirement():
    parsed = parse_csv("locationName,zip\nAlpha,62701\n", required=(("name", "locationName"),))
    assert first_value(parsed.rows[0].data, "locationName", "name") == "Alpha"


def test_empty_file():
    with pytest.raises(CsvFormatError, match="CSV file is empty"):
        parse_csv("   \n\n")


def test_wrong_value_count_is_a_row_error():
    parsed = parse_csv("a,b\n1,2\n1,2,3\n4,5\n")
    assert [r.row for r in parsed.rows] == [1, 3]
    assert parsed.errors == [(2, "Expected 2 values but got 3")]


def test_first_value_skips_empty():
    assert first_value({"zip": "", "zip_code": "62701"}, "zip", "zip_code") == "62701"
    assert first_value({}, "zip") == ""
