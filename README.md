# csvdbserver

A small database server that stores every table as a set of CSV files on
disk and understands a minimal SQL dialect: `INSERT`, `DELETE` and a
two-table `SELECT` with an optional `WHERE` clause. Clients connect over
TCP and send one command per message.

## The schema

The server reads a JSON schema description, `schema.json` by default:

```json
{
  "name": "my_schema",
  "tuples_limit": 1000,
  "structure": {
    "table1": ["column1", "column2"],
    "table2": ["column1", "column2"]
  }
}
```

Tables are kept in the order of their names. At start-up the server
creates a directory named after the schema, with one subdirectory per
table, and writes fresh files for every table into it:

- `<table>_1.csv`: a header row made of `<table>_pk` and the column names.
  When a file holds `tuples_limit` rows, new rows go to `<table>_2.csv`,
  then `<table>_3.csv`, and so on; each new file starts with the header
  of the first one.
- `<table>_pk_sequence.txt`: the next primary key. It starts at `1`.
- `<table>_lock.txt`: either `locked` or `unlocked`. A table is locked
  while an `INSERT` or `DELETE` changes it, and a command on a locked
  table is refused. A lock file that cannot be read counts as locked.

## Running the server

```
pip install .
csvdbserver
```

Options:

- `--schema PATH`: the schema description (default `schema.json`).
- `--base-dir DIR`: the directory that holds the schema directory
  (default `.`).
- `--host HOST`: the address to listen on (default `0.0.0.0`).
- `--port PORT`: the port to listen on (default `7432`).

Each client is served on its own thread; commands are run one at a time.
Every message received is echoed back to the client. A message containing
`exit` closes the connection. Output of `SELECT` is printed on the
server's standard output, and errors (an unknown table, a locked table, a
malformed command, a value that is not there) on its standard error.

## Commands

Insert a row. The primary key is assigned automatically. Values are taken
from single quotes. Missing trailing values are written as `NULL`;
supplying more values than the table has columns is an error.

```
INSERT INTO table1 VALUES ('a', 'b')
```

Delete every row whose column equals one of the quoted values:

```
DELETE FROM table1 WHERE table1.column1 = 'a'
```

Select from two tables. The rows come from the first two tables of the
schema. Without `WHERE`, every pair of rows is printed with the key and
the named column of each. With `WHERE`, the full rows of both tables are
printed for each pair that meets the condition. A condition compares
`table.column` references and quoted literals with `=`, combined with
`AND` and `OR`; `OR` binds loosest.

```
SELECT table1.column1, table2.column1 FROM table1, table2
SELECT table1.column1, table2.column1 FROM table1, table2 WHERE table1.column1 = table2.column1
```

## Using it from Python

```python
from csvdbserver.schema import load_schema, create_directories_and_files
from csvdbserver.parser import execute

schema = load_schema("schema.json", ".")
create_directories_and_files(schema)
execute(schema, "INSERT INTO table1 VALUES ('a', 'b')")
lines = execute(schema, "SELECT table1.column1, table2.column1 FROM table1, table2")
```

`execute` returns the output lines of a `SELECT` and an empty list for
the other commands; it raises `csvdbserver.storage.QueryError` when a
command cannot be carried out. `csvdbserver.parser.run_insert` returns the
next primary key and `run_delete` the number of rows removed.
`csvdbserver.server.serve(schema, host, port)` runs the server loop on a
schema you have already loaded.

## What it does not do

There is no client program: connect with any TCP tool and type commands.
There are no `CREATE`, `UPDATE` or `DROP` commands; tables come only from
the schema file, and starting the server recreates their files empty.
`SELECT` works on exactly two tables, and `DELETE` matches on one column
only.

## Running the tests

```
pip install .[test]
pytest
```