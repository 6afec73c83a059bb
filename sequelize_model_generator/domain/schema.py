"""
Read-only schema graph used by the mapping engine.

The engine depends only on the Protocol interfaces defined here. Any
introspection collaborator can provide its own implementation; the frozen
dataclasses below are the in-memory implementation built from schema
snapshots.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Protocol, Sequence, Tuple, runtime_checkable


class Schema(Protocol):
    """A database schema (namespace) holding tables."""

    @property
    def name(self) -> str: ...

    @property
    def tables(self) -> Sequence["Table"]: ...


class Column(Protocol):
    """A table column and the facts the engine needs about it."""

    @property
    def name(self) -> str: ...

    @property
    def table(self) -> "Table": ...

    @property
    def type(self) -> str: ...

    @property
    def length(self) -> Optional[int]: ...

    @property
    def precision(self) -> Optional[int]: ...

    @property
    def scale(self) -> Optional[int]: ...

    @property
    def enum_values(self) -> Sequence[str]: ...

    @property
    def primary_key(self) -> bool: ...

    @property
    def auto_increment(self) -> bool: ...

    @property
    def allow_null(self) -> bool: ...

    @property
    def unique(self) -> bool: ...

    @property
    def default(self) -> Optional[str]: ...

    @property
    def comment(self) -> Optional[str]: ...

    @property
    def foreign_key_constraint(self) -> Optional["ForeignKeyConstraint"]: ...

    @property
    def on_update(self) -> Optional[str]: ...

    @property
    def on_delete(self) -> Optional[str]: ...


class ForeignKeyConstraint(Protocol):
    """A foreign key from `table` to `referenced_table`."""

    @property
    def name(self) -> str: ...

    @property
    def table(self) -> "Table": ...

    @property
    def columns(self) -> Sequence[Column]: ...

    @property
    def referenced_table(self) -> "Table": ...

    @property
    def referenced_columns(self) -> Sequence[str]: ...

    @property
    def on_update(self) -> Optional[str]: ...

    @property
    def on_delete(self) -> Optional[str]: ...


@runtime_checkable
class JunctionRelation(Protocol):
    """
    A many-to-many path from `table` to `target` through a junction table.

    `constraint` is the junction's foreign key to `table`, and
    `through_constraint` is the junction's foreign key to `target`.
    """

    @property
    def name(self) -> str: ...

    @property
    def table(self) -> "Table": ...

    @property
    def through(self) -> "Table": ...

    @property
    def target(self) -> "Table": ...

    @property
    def constraint(self) -> ForeignKeyConstraint: ...

    @property
    def through_constraint(self) -> ForeignKeyConstraint: ...

    @property
    def on_update(self) -> Optional[str]: ...

    @property
    def on_delete(self) -> Optional[str]: ...


class Table(Protocol):
    """A table with its columns and relations."""

    @property
    def name(self) -> str: ...

    @property
    def schema(self) -> Schema: ...

    @property
    def description(self) -> Optional[str]: ...

    @property
    def columns(self) -> Sequence[Column]: ...

    @property
    def foreign_key_constraints(self) -> Sequence[ForeignKeyConstraint]: ...

    @property
    def has_manies(self) -> Sequence[ForeignKeyConstraint]: ...

    @property
    def has_many_throughs(self) -> Sequence[JunctionRelation]: ...


class Database(Protocol):
    """The set of schemas selected for generation."""

    @property
    def schemas(self) -> Sequence[Schema]: ...


# =============================================================================
# IN-MEMORY IMPLEMENTATION
# =============================================================================

def link(obj: object, name: str, value: object) -> None:
    """Set a back-reference on a frozen graph node while the graph is built."""
    object.__setattr__(obj, name, value)


@dataclass(frozen=True, eq=False)
class SchemaInfo:
    name: str
    tables: Tuple["TableInfo", ...] = field(default=(), repr=False)

    def get_table(self, name: str) -> Optional["TableInfo"]:
        for table in self.tables:
            if table.name == name:
                return table
        return None


@dataclass(frozen=True, eq=False)
class ColumnInfo:
    name: str
    type: str
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    enum_values: Tuple[str, ...] = ()
    primary_key: bool = False
    auto_increment: bool = False
    allow_null: bool = True
    unique: bool = False
    default: Optional[str] = None
    comment: Optional[str] = None
    table: "TableInfo" = field(init=False, repr=False)
    foreign_key_constraint: Optional["ForeignKeyInfo"] = field(init=False, default=None, repr=False)

    @property
    def on_update(self) -> Optional[str]:
        if self.foreign_key_constraint is None:
            return None
        return self.foreign_key_constraint.on_update

    @property
    def on_delete(self) -> Optional[str]:
        if self.foreign_key_constraint is None:
            return None
        return self.foreign_key_constraint.on_delete


@dataclass(frozen=True, eq=False)
class ForeignKeyInfo:
    name: str
    table: "TableInfo" = field(repr=False)
    columns: Tuple[ColumnInfo, ...] = field(repr=False)
    referenced_table: "TableInfo" = field(repr=False)
    referenced_columns: Tuple[str, ...] = ()
    on_update: Optional[str] = None
    on_delete: Optional[str] = None


@dataclass(frozen=True, eq=False)
class JunctionInfo:
    table: "TableInfo" = field(repr=False)
    through: "TableInfo" = field(repr=False)
    constraint: ForeignKeyInfo = field(repr=False)
    through_constraint: ForeignKeyInfo = field(repr=False)

    @property
    def name(self) -> str:
        return self.constraint.name

    @property
    def target(self) -> "TableInfo":
        return self.through_constraint.referenced_table

    @property
    def on_update(self) -> Optional[str]:
        return self.constraint.on_update

    @property
    def on_delete(self) -> Optional[str]:
        return self.constraint.on_delete


@dataclass(frozen=True, eq=False)
class TableInfo:
    name: str
    description: Optional[str] = None
    columns: Tuple[ColumnInfo, ...] = field(default=(), repr=False)
    schema: SchemaInfo = field(init=False, repr=False)
    foreign_key_constraints: Tuple[ForeignKeyInfo, ...] = field(init=False, default=(), repr=False)
    has_manies: Tuple[ForeignKeyInfo, ...] = field(init=False, default=(), repr=False)
    has_many_throughs: Tuple[JunctionInfo, ...] = field(init=False, default=(), repr=False)

    @property
    def qualified_name(self) -> str:
        return f"{self.schema.name}.{self.name}"

    def get_column(self, name: str) -> Optional[ColumnInfo]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    @property
    def primary_key_columns(self) -> Tuple[ColumnInfo, ...]:
        return tuple(column for column in self.columns if column.primary_key)


@dataclass(frozen=True)
class DatabaseInfo:
    """
    The schema graph handed to the walker.

    `schemas` holds the schemas selected for generation. Tables in other
    schemas may still be reachable through foreign keys.
    """

    schemas: Tuple[SchemaInfo, ...] = ()

    def get_schema(self, name: str) -> Optional[SchemaInfo]:
        for schema in self.schemas:
            if schema.name == name:
                return schema
        return None

    def get_table(self, schema: str, name: str) -> Optional[TableInfo]:
        found = self.get_schema(schema)
        return found.get_table(name) if found else None

    def iter_tables(self) -> Iterator[TableInfo]:
        for schema in self.schemas:
            yield from schema.tables

    def restrict(self, names: Iterable[str]) -> "DatabaseInfo":
        """Return a graph exposing only the named schemas, in the given order."""
        selected = []
        for name in names:
            schema = self.get_schema(name)
            if schema is not None:
                selected.append(schema)
        return DatabaseInfo(schemas=tuple(selected))


def derive_junctions(table: TableInfo) -> Iterator[JunctionInfo]:
    """
    Yield the many-to-many paths a junction table provides.

    A table counts as a junction when it has exactly two outgoing foreign keys.
    One path is yielded for each side, owned by the table that side references.
    """
    if len(table.foreign_key_constraints) != 2:
        return
    first, second = table.foreign_key_constraints
    yield JunctionInfo(table=first.referenced_table, through=table,
                       constraint=first, through_constraint=second)
    yield JunctionInfo(table=second.referenced_table, through=table,
                       constraint=second, through_constraint=first)
