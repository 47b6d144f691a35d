"""Parsing and evaluation of WHERE conditions over two tables."""

from __future__ import annotations

from collections.abc import Sequence

from csvdbserver.schema import Schema
from csvdbserver.storage import CsvDocument, QueryError, csv_file_count

_QUOTES = ("'", '"')


def clean_string(text: str) -> str:
    """Drop a trailing comma, surrounding quotes and outer spaces or tabs."""
    cleaned = text
    if cleaned.endswith(","):
        cleaned = cleaned[:-1]
    if cleaned and cleaned[0] in _QUOTES and cleaned[-1] in _QUOTES:
        cleaned = cleaned[1:-1]
    return cleaned.strip(" \t")


def find_dot(text: str) -> bool:
    """Whether the text contains a dot, as in ``table.column``."""
    return "." in text


def split_point(word: str) -> tuple[str, str]:
    """Split ``table.column`` at its first dot into table and column names."""
    table, dot, column = word.partition(".")
    if not dot:
        raise QueryError(f"Incorrect format: {word}")
    return table, column


def column_value(
    schema: Schema,
    tables: Sequence[str],
    column_name: str,
    row_first: int,
    row_second: int,
) -> str:
    """Value of ``table.column`` in the current row of the first or second table.

    ``tables`` holds the first and the second table named in the query; the
    row index used depends on which of them the column belongs to.  Only the
    first CSV file of the table is read.
    """
    table_name, column = split_point(column_name)
    if csv_file_count(schema, table_name) == 0:
        return ""
    document = CsvDocument(schema.csv_path(table_name, 1))
    index = document.column_index(column)
    if index is None:
        print(f"Column wasn't found: {column}")
        return ""
    if table_name == tables[0]:
        return document.cell(index, row_first)
    if table_name == tables[-1]:
        return document.cell(index, row_second)
    return ""


def _operand(
    schema: Schema, text: str, tables: Sequence[str], row_first: int, row_second: int
) -> str:
    if not find_dot(text):
        return clean_string(text)
    return column_value(schema, tables, text, row_first, row_second)


def evaluate(
    schema: Schema,
    condition: str,
    tables: Sequence[str],
    row_first: int,
    row_second: int,
) -> bool:
    """Evaluate a condition built from ``=``, ``AND`` and ``OR`` for one row pair.

    ``OR`` binds loosest, then ``AND``; both sides are always evaluated.
    A condition without ``=`` is false.
    """
    cleaned = clean_string(condition)

    position = cleaned.find("OR")
    if position != -1:
        left = evaluate(schema, cleaned[:position], tables, row_first, row_second)
        right = evaluate(schema, cleaned[position + 2:], tables, row_first, row_second)
        return left or right

    position = cleaned.find("AND")
    if position != -1:
        left = evaluate(schema, cleaned[:position], tables, row_first, row_second)
        right = evaluate(schema, cleaned[position + 3:], tables, row_first, row_second)
        return left and right

    position = cleaned.find("=")
    if position != -1:
        left = clean_string(cleaned[:position])
        right = clean_string(cleaned[position + 1:])
        left_value = _operand(schema, left, tables, row_first, row_second)
        right_value = _operand(schema, right, tables, row_first, row_second)
        return clean_string(left_value) == clean_string(right_value)

    return False