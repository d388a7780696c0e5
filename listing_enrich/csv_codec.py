"""
CSV codec for listing tables

Reads and writes the simple comma/double-quote format produced by the listing
exports. One record per non-blank line; multi-line quoted fields are NOT
supported.

Known boundary: the inside-quotes flag is not reset between fields, so an
unbalanced quote in one field swallows every following comma on that line.
"""
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .logging_utils import setup_logger

logger = setup_logger(__name__)

WRITE_RETRIES = 5
WRITE_RETRY_SLEEP_S = 2.0


@dataclass
class ListingTable:
    """Ordered header list plus ordered rows (column -> string value)"""
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def ensure_column(self, name: str) -> bool:
        """Append a column (empty for every row) if missing. Returns True if added."""
        if name in self.headers:
            return False
        self.headers.append(name)
        for row in self.rows:
            row.setdefault(name, "")
        return True

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.headers, dtype="object").fillna("")


def _strip_outer_quotes(value: str) -> str:
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def _split_line(line: str, unescape: bool) -> List[str]:
    def finish(chars: List[str]) -> str:
        value = "".join(chars).strip()
        # header cells lose one layer of surrounding quotes; data quotes are literal
        return value if unescape else _strip_outer_quotes(value)

    fields = []
    current = []
    in_quotes = False
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == '"':
            if unescape and in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append(finish(current))
            current = []
        else:
            current.append(ch)
        i += 1
    fields.append(finish(current))
    return fields


def parse_header(line: str) -> List[str]:
    """Header fields: split and trimmed, no "" unescaping"""
    return _split_line(line, unescape=False)


def parse_line(line: str) -> List[str]:
    """Data fields: split, trimmed, "" collapsed to a literal quote inside quoted values"""
    return _split_line(line, unescape=True)


def parse_table(text: str) -> ListingTable:
    """
    Parse CSV text into a ListingTable

    Args:
        text: Full file contents

    Returns:
        ListingTable; empty if fewer than two non-blank lines exist
    """
    lines = [ln for ln in text.split("\n") if ln.strip()]
    if len(lines) < 2:
        return ListingTable()

    headers = parse_header(lines[0])
    rows = []
    for ln in lines[1:]:
        values = parse_line(ln)
        # zip drops extras; missing trailing values default to ""
        row = {h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)}
        rows.append(row)

    return ListingTable(headers=headers, rows=rows)


def read_table(path) -> ListingTable:
    """Read and parse a UTF-8 CSV file"""
    path = Path(path)
    logger.info(f"Reading CSV file: {path}")
    table = parse_table(path.read_text(encoding="utf-8"))
    logger.info(f"Loaded {len(table)} rows, columns: {table.headers}")
    return table


def format_value(value: Optional[str]) -> str:
    if value is None:
        return ""
    s = str(value)
    if "," in s or '"' in s or "\n" in s:
        return '"' + s.replace('"', '""') + '"'
    return s


def serialize_table(headers: List[str], rows: List[Dict[str, str]]) -> str:
    lines = [",".join(format_value(h) for h in headers)]
    for row in rows:
        lines.append(",".join(format_value(row.get(h, "")) for h in headers))
    return "\n".join(lines)


def write_table(headers: List[str], rows: List[Dict[str, str]], path,
                retries: int = WRITE_RETRIES, retry_sleep_s: float = WRITE_RETRY_SLEEP_S) -> None:
    """
    Write rows as the complete content of `path` (full overwrite).

    Content goes to `<path>.tmp` first and is moved into place with os.replace.
    A locked destination (PermissionError) is retried.
    """
    path = Path(path)
    content = serialize_table(headers, rows)
    tmp_path = path.with_name(path.name + ".tmp")

    try:
        for attempt in range(1, retries + 1):
            try:
                tmp_path.write_text(content, encoding="utf-8")
                os.replace(tmp_path, path)
                logger.info(f"Written {len(rows)} rows to {path}")
                return
            except PermissionError as e:
                if attempt >= retries:
                    raise PermissionError(
                        f"Failed to write CSV after {retries} attempts. "
                        f"Close {path} if it is open in another program. Error: {e}"
                    ) from e
                logger.warning(f"File is locked, retrying in {retry_sleep_s:g}s... (attempt {attempt}/{retries})")
                time.sleep(retry_sleep_s)
    finally:
        # no-op after a successful replace
        tmp_path.unlink(missing_ok=True)
