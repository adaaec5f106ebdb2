"""
CSV parsing for bulk item/location import.

The header row is checked first: a file missing a required column is
rejected as a whole before any row is looked at. After that, rows are
independent; a malformed row is reported and the rest still parse.
"""

import csv
from dataclasses import dataclass, field
from typing import Sequence


class CsvFormatError(ValueError):
    """The file as a whole is unusable (empty, or missing required headers)."""


@dataclass
class CsvRow:
    row: int  # 1-based data row number, header excluded
    data: dict[str, str]


@dataclass
class ParsedCsv:
    headers: list[str]
    rows: list[CsvRow] = field(default_factory=list)
    errors: list[tuple[int, str]] = field(default_factory=list)


def _clean(value: str) -> str:
    return value.strip().strip("\"'")


def parse_csv(text: str, required: Sequence[Sequence[str]] = ()) -> ParsedCsv:
    """
    Parse CSV text into header-keyed rows.

    `required` is a list of header groups; each group is satisfied when any
    one of its names is present (e.g. ("name", "locationName")).
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise CsvFormatError("CSV file is empty")

    reader = csv.reader(lines, skipinitialspace=True, escapechar="\\")
    headers = [_clean(h) for h in next(reader)]

    missing = [group[0] for group in required if not any(name in headers for name in group)]
    if missing:
        raise CsvFormatError(f"Missing required fields: {', '.join(missing)}")

    parsed = ParsedCsv(headers=headers)
    for index, values in enumerate(reader, start=1):
        if len(values) != len(headers):
            parsed.errors.append(
                (index, f"Expected {len(headers)} values but got {len(values)}")
            )
            continue
        parsed.rows.append(CsvRow(row=index, data=dict(zip(headers, (_clean(v) for v in values)))))

    return parsed


def first_value(data: dict[str, str], *names: str) -> str:
    """Return the first non-empty value among the column aliases."""
    for name in names:
        value = data.get(name)
        if value:
            return value
    return ""
