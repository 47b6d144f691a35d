"""INSERT, DELETE and SELECT carried out on the CSV files of a schema."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from csvdbserver.conditions import clean_string, evaluate
from csvdbserver.schema import Schema, Table
from csvdbserver.storage import (
    CsvDocument,
    QueryError,
    copy_first_row,
    csv_file_count,
    write_primary_key,
)


def extract_quoted(text: str) -> list[str]:
    """Non-empty values enclosed in single quotes, in order of appearance."""
    values: list[str] = []
    inside = False
    current = ""
    for char in text:
        if char == "'":
            inside = not inside
            if not inside and current:
                values.append(current)
                current = ""
        elif inside:
            current += char
    return values


def _target_file(schema: Schema, table_name: str) -> Path:
    number = 1
    while True:
        path = schema.csv_path(table_name, number)
        try:
            path.touch(exist_ok=True)
        except OSError as error:
            raise QueryError(f"Error while reading file at {path}") from error
        if CsvDocument(path).row_count() < schema.tuples_limit:
            return path
        number += 1


def insert_values(schema: Schema, table_name: str, values_text: str, current_key: int) -> int:
    """Append one row of quoted values to the table and return the next key.

    The row goes into the first CSV file still under the schema's row limit;
    a new file gets the header of the first file.  Missing trailing values
    are written as ``NULL``.
    """
    path = _target_file(schema, table_name)
    if CsvDocument(path).row_count() == 0:
        copy_first_row(schema.csv_path(table_name, 1), path)

    values = extract_quoted(values_text)
    value_count = len(values) + 1

    header_tokens = path.read_text(encoding="utf-8").split()
    header = header_tokens[0] if header_tokens else ""
    column_count = header.count(",") + 1

    if column_count < value_count:
        raise QueryError("Error while inserting data: more values than columns")

    body = ",".join(values + ["NULL"] * (column_count - value_count))
    with open(path, "a", encoding="utf-8", newline="") as handle:
        handle.write(f"{current_key},{body}" + ("\n" if body else ""))

    next_key = current_key + 1
    write_primary_key(schema, table_name, next_key)
    return next_key


def _cell(document: CsvDocument, column: int | str, row: int) -> str:
    try:
        return document.cell(column, row)
    except KeyError as error:
        raise QueryError(f"column not found: {column}") from error


def delete_values(schema: Schema, table_name: str, column: str, values_text: str) -> int:
    """Remove rows whose column equals one of the quoted values.

    Returns the number of rows removed.  The values are consumed while
    walking the table's files, so later files see only those not yet used.
    """
    pending = iter(extract_quoted(values_text))
    removed = 0
    for number in range(1, csv_file_count(schema, table_name) + 1):
        path = schema.csv_path(table_name, number)
        document = CsvDocument(path)
        for value in pending:
            row = 0
            while row < document.row_count():
                if _cell(document, column, row) == value:
                    document.remove_row(row)
                    document.save(path)
                    removed += 1
                else:
                    row += 1
    if not removed:
        raise QueryError("Value does not exist")
    return removed


def _first_two_tables(schema: Schema) -> tuple[Table, Table]:
    if len(schema.tables) < 2:
        raise QueryError("Two tables are required")
    return schema.tables[0], schema.tables[1]


def _documents(schema: Schema, table: Table):
    for number in range(1, csv_file_count(schema, table.name) + 1):
        yield CsvDocument(schema.csv_path(table.name, number))


def _required_column(document: CsvDocument, name: str) -> int:
    index = document.column_index(name)
    if index is None:
        raise QueryError(f"Column wasn't found: {name}")
    return index


def cross_join(schema: Schema, columns: Sequence[str]) -> list[str]:
    """Pair every row of the first table with every row of the second.

    ``columns`` names the column shown for the first and the second table.
    Each line shows the key and that column of both rows.
    """
    first_table, second_table = _first_two_tables(schema)
    first_column = clean_string(columns[0])
    second_column = clean_string(columns[-1])
    lines: list[str] = []
    for first in _documents(schema, first_table):
        first_index = _required_column(first, first_column)
        for row_first in range(first.row_count()):
            for second in _documents(schema, second_table):
                second_index = _required_column(second, second_column)
                for row_second in range(second.row_count()):
                    lines.append(
                        f"{first.cell(0, row_first)}: {first.cell(first_index, row_first)}  |   "
                        f"{second.cell(0, row_second)}: {second.cell(second_index, row_second)}"
                    )
    return lines


def select_with_where(schema: Schema, condition: str, tables: Sequence[str]) -> list[str]:
    """Whole rows of both tables for every row pair meeting the condition."""
    first_table, second_table = _first_two_tables(schema)
    lines: list[str] = []
    for first in _documents(schema, first_table):
        for row_first in range(first.row_count()):
            for second in _documents(schema, second_table):
                for row_second in range(second.row_count()):
                    if not evaluate(schema, condition, tables, row_first, row_second):
                        continue
                    left = "".join(
                        first.cell(col, row_first) + " " for col in range(first.column_count())
                    )
                    right = "".join(
                        second.cell(col, row_second) + "  " for col in range(second.column_count())
                    )
                    lines.append(left + "| " + right)
    return lines