"""CSV table files, lock files and primary key sequences."""

from __future__ import annotations

from pathlib import Path

from csvdbserver.schema import Schema

_UTF8_BOM = b"\xef\xbb\xbf"
_QUOTE = '"'
_SEPARATOR = ","


class QueryError(Exception):
    """Raised when a query cannot be carried out."""


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == _QUOTE and text[-1] == _QUOTE:
        return text[1:-1].replace(_QUOTE * 2, _QUOTE)
    return text


def _quote_if_needed(text: str) -> str:
    if _SEPARATOR in text or " " in text or "\n" in text:
        return _QUOTE + text.replace(_QUOTE, _QUOTE * 2) + _QUOTE
    return text


class CsvDocument:
    """A CSV file whose first row holds the column names."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        raw = self.path.read_bytes()
        self._has_bom = raw.startswith(_UTF8_BOM)
        if self._has_bom:
            raw = raw[len(_UTF8_BOM):]
        self._rows: list[list[str]] = []
        self._has_cr = False
        self._parse(raw.decode("utf-8", errors="surrogateescape"))
        self._columns = self._column_map()

    def _parse(self, text: str) -> None:
        row: list[str] = []
        cell = ""
        quoted = False
        carriage_returns = 0
        line_feeds = 0
        for char in text:
            if char == _QUOTE:
                if not cell or cell[0] == _QUOTE:
                    quoted = not quoted
                cell += char
            elif char == _SEPARATOR:
                if quoted:
                    cell += char
                else:
                    row.append(_unquote(cell))
                    cell = ""
            elif char == "\r":
                carriage_returns += 1
            elif char == "\n":
                line_feeds += 1
                row.append(_unquote(cell))
                self._rows.append(row)
                row, cell, quoted = [], "", False
            else:
                cell += char
        if row or cell:
            row.append(_unquote(cell))
            self._rows.append(row)
        self._has_cr = carriage_returns > line_feeds // 2

    def _column_map(self) -> dict[str, int]:
        if not self._rows:
            return {}
        return {name: index for index, name in enumerate(self._rows[0])}

    def row_count(self) -> int:
        """Number of data rows, not counting the header."""
        return max(len(self._rows) - 1, 0)

    def column_count(self) -> int:
        """Number of columns in the header row."""
        return len(self._rows[0]) if self._rows else 0

    def column_index(self, name: str) -> int | None:
        """Index of the named column, or None if there is no such column."""
        return self._columns.get(name)

    def _data_row(self, index: int) -> list[str]:
        if index < 0 or index + 1 >= len(self._rows):
            raise IndexError(f"row index {index} out of range")
        return self._rows[index + 1]

    def cell(self, column: int | str, row: int) -> str:
        """Value of one cell, the column given by index or by name."""
        if isinstance(column, str):
            index = self.column_index(column)
            if index is None:
                raise KeyError(f"column not found: {column}")
            column = index
        data = self._data_row(row)
        if column < 0 or column >= len(data):
            raise IndexError(f"column index {column} out of range")
        return data[column]

    def row(self, index: int) -> list[str]:
        """All cells of one data row."""
        return list(self._data_row(index))

    def remove_row(self, index: int) -> None:
        """Remove one data row."""
        self._data_row(index)
        del self._rows[index + 1]

    def save(self, path: str | Path | None = None) -> None:
        """Write the document back, to its own path unless another is given."""
        if path is not None:
            self.path = Path(path)
        line_end = "\r\n" if self._has_cr else "\n"
        text = "".join(
            _SEPARATOR.join(_quote_if_needed(cell) for cell in row) + line_end for row in self._rows
        )
        data = text.encode("utf-8", errors="surrogateescape")
        self.path.write_bytes((_UTF8_BOM if self._has_bom else b"") + data)


def _lock_path(schema: Schema, table_name: str) -> Path:
    return schema.table_dir(table_name) / f"{table_name}_lock.txt"


def _pk_path(schema: Schema, table_name: str) -> Path:
    return schema.table_dir(table_name) / f"{table_name}_pk_sequence.txt"


def is_locked(schema: Schema, table_name: str) -> bool:
    """Whether the table is locked; an unreadable lock file counts as locked."""
    try:
        content = _lock_path(schema, table_name).read_text(encoding="utf-8")
    except OSError:
        return True
    tokens = content.split()
    return bool(tokens) and tokens[0] == "locked"


def lock_table(schema: Schema, table_name: str) -> None:
    """Mark the table as locked."""
    _lock_path(schema, table_name).write_text("locked", encoding="utf-8")


def unlock_table(schema: Schema, table_name: str) -> None:
    """Mark the table as unlocked."""
    _lock_path(schema, table_name).write_text("unlocked", encoding="utf-8")


def csv_file_count(schema: Schema, table_name: str) -> int:
    """Number of consecutively numbered CSV files of a table, from 1."""
    count = 0
    while schema.csv_path(table_name, count + 1).is_file():
        count += 1
    return count


def copy_first_row(source: str | Path, target: str | Path) -> None:
    """Write the first word of the source file as the only line of the target."""
    tokens = Path(source).read_text(encoding="utf-8").split()
    first = tokens[0] if tokens else ""
    with open(target, "w", encoding="utf-8", newline="") as handle:
        handle.write(first + "\n")


def read_primary_key(schema: Schema, table_name: str) -> int:
    """Current value of the table's primary key sequence."""
    try:
        content = _pk_path(schema, table_name).read_text(encoding="utf-8")
    except OSError as error:
        raise QueryError("Error while reading key file") from error
    tokens = content.split()
    try:
        return int(tokens[0])
    except (IndexError, ValueError) as error:
        raise QueryError("Error while reading key file") from error


def write_primary_key(schema: Schema, table_name: str, value: int) -> None:
    """Store a new value of the table's primary key sequence."""
    _pk_path(schema, table_name).write_text(str(value), encoding="utf-8")