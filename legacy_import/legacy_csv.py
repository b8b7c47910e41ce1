"""Reading and writing semicolon-delimited CSV text.

**Legacy input (``parse_csv``):**
- One record per ``\\n``-terminated line, fields separated by ``;``
- Optional UTF-8 BOM before the header, optional ``"`` around each field
- ``NULL``/``null`` cells mean empty

The legacy exporter never escapes separators, so fields are split
positionally: a value containing ``;`` shifts the columns after it. Reading
the exports with a quote-aware CSV reader would realign some rows and
misalign others, so that is deliberately not done here.

**Normalized output (``to_csv``):**
- Header row first, ``;`` separator, ``\\n`` between rows
- A value is wrapped in double quotes (inner quotes doubled) only when it
  contains ``;``, ``"`` or a newline

``read_export`` reads that output back with pandas, which honours the quoting.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .data_models import ParsedCsv

LOG = logging.getLogger(__name__)

SEPARATOR = ";"
BOM = "\ufeff"
NULL_MARKERS = {"NULL", "null"}
_NEEDS_QUOTING = (SEPARATOR, '"', "\n")
# Unicode whitespace plus the BOM, which str.strip() keeps.
_EDGE_SPACE = re.compile(r"\A[\s\ufeff]+|[\s\ufeff]+\Z")


def trim(value: str) -> str:
    return _EDGE_SPACE.sub("", value)


def clean_cell(value: str) -> str:
    """Normalize one raw legacy cell.

    Strips one layer of wrapping double quotes, maps ``NULL``/``null`` to an
    empty string, then trims whitespace.
    """
    if value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    if value in NULL_MARKERS:
        value = ""
    return trim(value)


def parse_csv(content: str) -> ParsedCsv:
    """Parse a legacy semicolon-delimited export.

    Parameters
    ----------
    content : str
        Whole file text. The first non-blank line is the header.

    Returns
    -------
    ParsedCsv
        Headers and one dict per remaining non-blank line. Rows shorter than
        the header get empty strings for the missing columns; extra fields
        beyond the header are ignored.

    Raises
    ------
    TypeError
        If content is not a string.
    """
    if not isinstance(content, str):
        raise TypeError(
            f"CSV content must be str, got {type(content).__name__}"
        )

    lines = [line for line in content.split("\n") if trim(line)]
    if not lines:
        return ParsedCsv(headers=[], rows=[])

    header_line = lines[0]
    if header_line.startswith(BOM):
        header_line = header_line[1:]

    headers = [trim(header) for header in header_line.split(SEPARATOR)]
    rows: List[Dict[str, str]] = []

    for line in lines[1:]:
        values = line.split(SEPARATOR)
        row: Dict[str, str] = {}
        for index, header in enumerate(headers):
            raw = values[index] if index < len(values) else ""
            row[header] = clean_cell(raw)
        rows.append(row)

    LOG.debug("Parsed %d rows with %d columns", len(rows), len(headers))
    return ParsedCsv(headers=headers, rows=rows)


def escape_field(value: Any) -> str:
    """Render a cell for ``to_csv``; None and NaN become empty strings."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    text = str(value)
    if any(marker in text for marker in _NEEDS_QUOTING):
        text = '"' + text.replace('"', '""') + '"'
    return text


def _as_mapping(record: Any) -> Mapping[str, Any]:
    if is_dataclass(record) and not isinstance(record, type):
        return asdict(record)
    return record


def to_csv(
    records: Iterable[Any], headers: Optional[Sequence[str]] = None
) -> str:
    """Serialize flat records to semicolon-delimited text.

    Parameters
    ----------
    records : Iterable[Any]
        Mappings or dataclass instances (e.g. PatientRecord).
    headers : Sequence[str], optional
        Column order. Defaults to the keys of the first record. Keys missing
        from a record serialize as empty cells.

    Returns
    -------
    str
        Header line followed by one line per record, joined with ``\\n`` and
        without a trailing newline. Empty string when there are no records.
    """
    rows = [_as_mapping(record) for record in records]
    if not rows:
        return ""

    columns = list(headers) if headers is not None else list(rows[0].keys())
    frame = pd.DataFrame(
        [[row.get(column) for column in columns] for row in rows],
        columns=columns,
        dtype=object,
    )
    rendered = frame.map(escape_field)

    lines = [SEPARATOR.join(columns)]
    lines.extend(
        SEPARATOR.join(values) for values in rendered.itertuples(index=False)
    )
    return "\n".join(lines)


def read_export(content: str) -> List[Dict[str, str]]:
    """Read text produced by ``to_csv`` back into row dicts.

    Unlike ``parse_csv`` this honours quoting, so values containing
    separators, quotes or newlines come back exactly as written. A leading
    BOM (added when exports are written to disk) is ignored.

    Parameters
    ----------
    content : str
        Normalized export text.

    Returns
    -------
    List[Dict[str, str]]
        One dict per data row; every value is a string.
    """
    if content.startswith(BOM):
        content = content[1:]
    if not content.strip():
        return []

    df = pd.read_csv(
        io.StringIO(content),
        sep=SEPARATOR,
        dtype=str,
        keep_default_na=False,
        quoting=csv.QUOTE_MINIMAL,
    )
    return df.to_dict(orient="records")
