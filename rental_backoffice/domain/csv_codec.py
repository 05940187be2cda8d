"""
CSV Codec - Record Export/Import
=================================

Serializes records to comma-separated text and parses it back.

ENCODING:
- Header row comes from the field names of the FIRST record. Records are
  assumed homogeneous: extra fields on later records are dropped, missing
  ones are written as empty.
- A value containing a comma or a quote is wrapped in quotes and its inner
  quotes are doubled.

DECODING:
- Header tokens have their quote characters removed and are trimmed.
- Data lines go through a quote-aware scanner. Every value comes back as a
  string, so a round trip turns numbers into their text form.
- Embedded newlines are not supported: a line is always one record.
- Blank lines are skipped, so in a single-column file a record whose only
  value is empty encodes to a blank line and does not come back.
"""

import logging
from typing import Any, List, Sequence

from ..errors import EmptyFile
from .models import Record

logger = logging.getLogger(__name__)

QUOTE = '"'
SEPARATOR = ","


def _stringify(value: Any) -> str:
    """Convert a scalar to its CSV text form."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _escape(value: Any) -> str:
    text = _stringify(value)
    if SEPARATOR in text or QUOTE in text:
        return QUOTE + text.replace(QUOTE, QUOTE * 2) + QUOTE
    return text


def encode(records: Sequence[Record]) -> str:
    """
    Encode records as CSV text.

    Returns an empty string for an empty sequence (no header is emitted).
    """
    if not records:
        return ""

    headers = list(records[0].keys())
    lines = [SEPARATOR.join(headers)]
    for record in records:
        lines.append(SEPARATOR.join(_escape(record.get(header)) for header in headers))
    return "\n".join(lines)


def parse_line(line: str) -> List[str]:
    """Split one CSV line into trimmed fields, honouring quoted regions."""
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]
        if char == QUOTE:
            if in_quotes and i + 1 < len(line) and line[i + 1] == QUOTE:
                # Escaped quote inside a quoted region
                current.append(QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == SEPARATOR and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return fields


def parse_header(line: str) -> List[str]:
    return [token.strip().replace(QUOTE, "") for token in line.split(SEPARATOR)]


def decode(text: str) -> List[Record]:
    """
    Decode CSV text into records keyed by the header row.

    Raises:
        EmptyFile: fewer than two non-blank lines (header + one data row).
    """
    lines = [line for line in text.split("\n") if line.strip()]
    if len(lines) < 2:
        raise EmptyFile("CSV file must contain at least a header row and one data row")

    headers = parse_header(lines[0])
    records: List[Record] = []

    for line in lines[1:]:
        values = parse_line(line)
        record = {}
        for index, header in enumerate(headers):
            record[header] = values[index] if index < len(values) else ""
        records.append(record)

    logger.debug(f"Decoded {len(records)} CSV rows with {len(headers)} columns")
    return records
