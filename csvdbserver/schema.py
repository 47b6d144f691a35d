"""Database schema description and creation of the on-disk table layout."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class Table:
    """One table of the schema: its name and its column names, in order."""

    name: str
    columns: list[str] = field(default_factory=list)


@dataclass
class Schema:
    """A named schema holding its tables and the per-file row limit."""

    name: str
    tuples_limit: int
    tables: list[Table] = field(default_factory=list)
    base_dir: Path = field(default_factory=lambda: Path("."))

    def __post_init__(self) -> None:
        self.base_dir = Path(self.base_dir)

    def has_table(self, name: str) -> bool:
        """Return True if the schema defines a table with this name."""
        return any(table.name == name for table in self.tables)

    def table_dir(self, table_name: str) -> Path:
        """Directory that holds the files of one table."""
        return self.base_dir / self.name / table_name

    def csv_path(self, table_name: str, index: int) -> Path:
        """Path of the numbered CSV file of a table, counting from 1."""
        return self.table_dir(table_name) / f"{table_name}_{index}.csv"


def load_schema(path: str | Path, base_dir: str | Path | None = None) -> Schema:
    """Read a schema description from a JSON file.

    Tables come in the order of their names, as the schema object's keys
    are kept sorted.
    """
    with open(path, encoding="utf-8") as handle:
        document = json.load(handle)

    structure = document["structure"]
    tables = [Table(name, [str(column) for column in structure[name]]) for name in sorted(structure)]
    return Schema(
        name=document["name"],
        tuples_limit=int(document["tuples_limit"]),
        tables=tables,
        base_dir=Path(base_dir) if base_dir is not None else Path("."),
    )


def create_csv_file(table_dir: str | Path, table: Table) -> Path:
    """Write the first CSV file of a table holding only its header row."""
    csv_path = Path(table_dir) / f"{table.name}_1.csv"
    header = ",".join([f"{table.name}_pk", *table.columns])
    with open(csv_path, "w", encoding="utf-8", newline="") as handle:
        handle.write(header + "\n")
    return csv_path


def create_primary_key_file(table_dir: str | Path, table_name: str) -> Path:
    """Write the primary key sequence file, starting at 1."""
    pk_path = Path(table_dir) / f"{table_name}_pk_sequence.txt"
    pk_path.write_text("1", encoding="utf-8")
    return pk_path


def create_lock_file(table_dir: str | Path, table_name: str) -> Path:
    """Write the lock file of a table in the unlocked state."""
    lock_path = Path(table_dir) / f"{table_name}_lock.txt"
    lock_path.write_text("unlocked", encoding="utf-8")
    return lock_path


def create_directories_and_files(schema: Schema) -> None:
    """Create the schema directory and fresh files for every table."""
    schema_dir = schema.base_dir / schema.name
    schema_dir.mkdir(parents=True, exist_ok=True)
    for table in schema.tables:
        table_dir = schema.table_dir(table.name)
        table_dir.mkdir(exist_ok=True)
        create_csv_file(table_dir, table)
        create_primary_key_file(table_dir, table.name)
        create_lock_file(table_dir, table.name)