import pytest

from csvdbserver.parser import execute, run_delete, run_insert, run_select
from csvdbserver.schema import Schema, Table, create_directories_and_files
from csvdbserver.storage import (
    CsvDocument,
    QueryError,
    csv_file_count,
    is_locked,
    lock_table,
    read_primary_key,
)


@pytest.fixture
def schema(tmp_path):
    db = Schema(
        name="db",
        tuples_limit=2,
        tables=[Table("table1", ["column1", "column2"]), Table("table2", ["column1", "column2"])],
        base_dir=tmp_path,
    )
    create_directories_and_files(db)
    return db


def test_insert_writes_row_and_advances_key(schema):
    assert run_insert(schema, "INSERT INTO table1 VALUES ('a', 'b')") == 2
    document = CsvDocument(schema.csv_path("table1", 1))
    assert document.row(0) == ["1", "a", "b"]
    assert read_primary_key(schema, "table1") == 2
    assert is_locked(schema, "table1") is False


def test_insert_fills_missing_values_with_null(schema):
    run_insert(schema, "INSERT INTO table1 VALUES ('x')")
    assert CsvDocument(schema.csv_path("table1", 1)).row(0) == ["1", "x", "NULL"]


def test_insert_spills_into_new_file(schema):
    run_insert(schema, "INSERT INTO table1 VALUES ('a', 'b')")
    run_insert(schema, "INSERT INTO table1 VALUES ('c', 'd')")
    run_insert(schema, "INSERT INTO table1 VALUES ('e', 'f')")
    assert csv_file_count(schema, "table1") == 2
    assert CsvDocument(schema.csv_path("table1", 2)).row(0) == ["3", "e", "f"]


@pytest.mark.parametrize(
    "command, message",
    [
        ("", "Command is not complete"),
        ("INSERT table1 VALUES ('a')", "Incorrect command"),
        ("INSERT INTO", "Expected table name"),
        ("INSERT INTO nowhere VALUES ('a')", "Table does not exist"),
        ("INSERT INTO table1 ('a')", "Incorrect command"),
        ("INSERT INTO table1 VALUES", "Expected conditions"),
    ],
)
def test_insert_errors(schema, command, message):
    with pytest.raises(QueryError, match=message):
        run_insert(schema, command)


def test_insert_into_locked_table(schema):
    lock_table(schema, "table1")
    with pytest.raises(QueryError, match="Table is locked"):
        run_insert(schema, "INSERT INTO table1 VALUES ('a')")


def test_insert_too_many_values_unlocks(schema):
    with pytest.raises(QueryError, match="more values than columns"):
        run_insert(schema, "INSERT INTO table1 VALUES ('a', 'b', 'c')")
    assert is_locked(schema, "table1") is False


def test_delete_removes_matching_rows(schema):
    run_insert(schema, "INSERT INTO table1 VALUES ('a', 'b')")
    run_insert(schema, "INSERT INTO table1 VALUES ('c', 'd')")
    assert run_delete(schema, "DELETE FROM table1 WHERE table1.column1 = 'a'") == 1
    document = CsvDocument(schema.csv_path("table1", 1))
    assert document.row_count() == 1
    assert document.row(0) == ["2", "c", "d"]
    assert is_locked(schema, "table1") is False


def test_delete_missing_value_unlocks(schema):
    with pytest.raises(QueryError, match="Value does not exist"):
        run_delete(schema, "DELETE FROM table1 WHERE table1.column1 = 'zzz'")
    assert is_locked(schema, "table1") is False


@pytest.mark.parametrize(
    "command, message",
    [
        ("DELETE table1", "Incorrect command"),
        ("DELETE FROM", "Expected table name after 'FROM'"),
        ("DELETE FROM nowhere WHERE nowhere.c = 'a'", "Table does not exist"),
        ("DELETE FROM table1 table1.column1 = 'a'", "Expected 'WHERE' clause"),
        ("DELETE FROM table1 WHERE", "Expected condition after 'WHERE'"),
        ("DELETE FROM table1 WHERE column1 = 'a'", "Incorrect data format"),
        ("DELETE FROM table1 WHERE table2.column1 = 'a'", "Incorrect table in query"),
        ("DELETE FROM table1 WHERE table1.column1 == 'a'", "Incorrect command"),
        ("DELETE FROM table1 WHERE table1.column1 =", "Expected conditions"),
    ],
)
def test_delete_errors(schema, command, message):
    with pytest.raises(QueryError, match=message):
        run_delete(schema, command)


def test_delete_from_locked_table(schema):
    lock_table(schema, "table1")
    with pytest.raises(QueryError, match="Table is locked"):
        run_delete(schema, "DELETE FROM table1 WHERE table1.column1 = 'a'")


@pytest.fixture
def filled(schema):
    run_insert(schema, "INSERT INTO table1 VALUES ('a', 'b')")
    run_insert(schema, "INSERT INTO table2 VALUES ('c', 'd')")
    return schema


def test_select_cross_join(filled):
    lines = run_select(filled, "SELECT table1.column1, table2.column2 FROM table1, table2")
    assert lines == ["1: a  |   1: d"]


def test_select_with_where_match(filled):
    lines = run_select(
        filled,
        "SELECT table1.column1, table2.column1 FROM table1, table2 WHERE table1.column1 = 'a'",
    )
    assert lines == ["1 a b | 1  c  d  "]


def test_select_with_where_after_extra_word(filled):
    direct = run_select(
        filled, "SELECT table1.column1 table2.column1 FROM table1 table2 WHERE table1.column1 = 'a'"
    )
    skipped = run_select(
        filled,
        "SELECT table1.column1 table2.column1 FROM table1 table2 x WHERE table1.column1 = 'a'",
    )
    assert skipped == direct
    assert len(direct) == 1


def test_select_with_where_no_match(filled):
    lines = run_select(
        filled,
        "SELECT table1.column1, table2.column1 FROM table1, table2 WHERE table1.column1 = 'zzz'",
    )
    assert lines == []


@pytest.mark.parametrize(
    "command, message",
    [
        ("", "Command is not complete"),
        ("SELECT", "Data expected"),
        ("SELECT column1 table2.column1", "Incorrect data format"),
        ("SELECT table1.column1", "Data expected"),
        ("SELECT table1.column1 table2.column1 table1", "Expected 'FROM' keyword"),
        ("SELECT table1.column1 table2.column1 FROM", "Expected table name after 'FROM'"),
        ("SELECT table1.column1 table2.column1 FROM table3 table2", "Incorrect table in query"),
        ("SELECT table1.column1 table2.column1 FROM table1", "Expected second table name"),
        ("SELECT table1.column1 table2.column1 FROM table1 table2 WHERE", "Expected conditions"),
    ],
)
def test_select_errors(schema, command, message):
    with pytest.raises(QueryError, match=message):
        run_select(schema, command)


def test_execute_dispatches(schema):
    assert execute(schema, "INSERT INTO table1 VALUES ('a', 'b')\n") == []
    assert execute(schema, "INSERT INTO table2 VALUES ('c', 'd')\n") == []
    lines = execute(schema, "SELECT table1.column1, table2.column2 FROM table1, table2\n")
    assert len(lines) == 1
    assert execute(schema, "DELETE FROM table1 WHERE table1.column1 = 'a'\n") == []
    assert CsvDocument(schema.csv_path("table1", 1)).row_count() == 0


def test_execute_unknown_command(schema):
    with pytest.raises(QueryError, match="Unknown command"):
        execute(schema, "UPDATE table1")