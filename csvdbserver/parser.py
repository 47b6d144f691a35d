"""Parsing of INSERT, DELETE and SELECT commands and their execution."""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager

from csvdbserver.conditions import clean_string, find_dot, split_point
from csvdbserver.operations import cross_join, delete_values, insert_values, select_with_where
from csvdbserver.schema import Schema
from csvdbserver.storage import QueryError, is_locked, lock_table, read_primary_key, unlock_table

_WORD = re.compile(r"\S+")
_FORMAT_ERROR = "Incorrect data format: expected table1.column1"


class _Words:
    """Reads a command word by word, with access to the rest of the line."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def next(self) -> str | None:
        match = _WORD.search(self._text, self._pos)
        if match is None:
            self._pos = len(self._text)
            return None
        self._pos = match.end()
        return match.group()

    def rest_of_line(self) -> str:
        end = self._text.find("\n", self._pos)
        if end == -1:
            end = len(self._text)
        rest = self._text[self._pos:end]
        self._pos = end
        return rest


@contextmanager
def _table_locked(schema: Schema, table_name: str) -> Iterator[None]:
    lock_table(schema, table_name)
    try:
        yield
    finally:
        unlock_table(schema, table_name)


def _start(command: str) -> _Words:
    words = _Words(command)
    if words.next() is None:
        raise QueryError("Command is not complete")
    return words


def _table_column(words: _Words) -> tuple[str, str]:
    word = words.next()
    if word is None:
        raise QueryError("Data expected")
    if not find_dot(word):
        raise QueryError(_FORMAT_ERROR)
    return split_point(word)


def _expect_keyword(words: _Words, keyword: str, message: str) -> None:
    word = words.next()
    if word is None or clean_string(word) != keyword:
        raise QueryError(message)


def _has_where(words: _Words) -> bool:
    # One word may stand between the table names and WHERE.
    for _ in range(2):
        word = words.next()
        if word is None:
            return False
        if clean_string(word) == "WHERE":
            return True
    return False


def run_select(schema: Schema, command: str) -> list[str]:
    """Run ``SELECT t1.c1, t2.c2 FROM t1, t2 [WHERE ...]`` and return its lines."""
    words = _start(command)
    first_table, first_column = _table_column(words)
    second_table, second_column = _table_column(words)
    _expect_keyword(words, "FROM", "Expected 'FROM' keyword")

    tables = (first_table, second_table)
    for message in (
        "Expected table name after 'FROM'",
        "Expected second table name after 'FROM'",
    ):
        name = words.next()
        if name is None:
            raise QueryError(message)
        if clean_string(name) not in tables:
            raise QueryError("Incorrect table in query")

    if _has_where(words):
        condition = words.rest_of_line()
        if not condition.strip():
            raise QueryError("Expected conditions after WHERE")
        return select_with_where(schema, condition, tables)
    return cross_join(schema, (first_column, second_column))


def run_delete(schema: Schema, command: str) -> int:
    """Run ``DELETE FROM t WHERE t.c = 'v' ...`` and return the rows removed."""
    words = _start(command)
    _expect_keyword(words, "FROM", "Incorrect command")
    table_name = words.next()
    if table_name is None:
        raise QueryError("Expected table name after 'FROM'")
    if not schema.has_table(table_name):
        raise QueryError("Table does not exist")
    if is_locked(schema, table_name):
        raise QueryError("Table is locked")
    _expect_keyword(words, "WHERE", "Expected 'WHERE' clause")

    word = words.next()
    if word is None:
        raise QueryError("Expected condition after 'WHERE'")
    if not find_dot(word):
        raise QueryError(_FORMAT_ERROR)
    condition_table, column = split_point(word)
    if condition_table != table_name:
        raise QueryError("Incorrect table in query")
    if words.next() != "=":
        raise QueryError("Incorrect command")

    values = words.rest_of_line()
    if not values.strip():
        raise QueryError("Expected conditions")
    with _table_locked(schema, table_name):
        return delete_values(schema, table_name, column, values)


def run_insert(schema: Schema, command: str) -> int:
    """Run ``INSERT INTO t VALUES ('a', 'b')`` and return the next primary key."""
    words = _start(command)
    _expect_keyword(words, "INTO", "Incorrect command")
    table_name = words.next()
    if table_name is None:
        raise QueryError("Expected table name")
    if not schema.has_table(table_name):
        raise QueryError("Table does not exist")
    _expect_keyword(words, "VALUES", "Incorrect command")
    if is_locked(schema, table_name):
        raise QueryError("Table is locked")

    current_key = read_primary_key(schema, table_name)
    values = words.rest_of_line()
    if not values.strip():
        raise QueryError("Expected conditions")
    with _table_locked(schema, table_name):
        return insert_values(schema, table_name, values, current_key)


def execute(schema: Schema, command: str) -> list[str]:
    """Dispatch a command by its keyword; return the lines it produces."""
    if "INSERT" in command:
        run_insert(schema, command)
        return []
    if "SELECT" in command:
        return run_select(schema, command)
    if "DELETE" in command:
        run_delete(schema, command)
        return []
    raise QueryError("Unknown command")