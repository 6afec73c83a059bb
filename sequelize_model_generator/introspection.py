"""
Schema introspection from snapshot files.

A snapshot is a YAML or JSON document describing schemas, tables, columns and
foreign keys. It is validated with pydantic and turned into the read-only
schema graph the mapping engine walks.
"""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .config import ResolvedConfig, format_validation_errors
from .domain.schema import (
    ColumnInfo,
    DatabaseInfo,
    ForeignKeyInfo,
    SchemaInfo,
    TableInfo,
    derive_junctions,
    link,
)
from .exceptions import SchemaIntrospectionError

logger = logging.getLogger(__name__)


# --- Pydantic Models for the Snapshot Format ---

class SnapshotModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class ColumnSnapshot(SnapshotModel):
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, description="Database type, e.g. 'character varying(50)'.")
    primary_key: bool = False
    auto_increment: bool = False
    allow_null: bool = True
    unique: bool = False
    default: Optional[str] = Field(
        default=None, description="Default expression as the database reports it."
    )
    comment: Optional[str] = None
    length: Optional[int] = Field(default=None, ge=0)
    precision: Optional[int] = Field(default=None, ge=0)
    scale: Optional[int] = Field(default=None, ge=0)
    enum_values: List[str] = Field(default_factory=list)

    @field_validator("default", mode="before")
    @classmethod
    def stringify_default(cls, v: Any) -> Optional[str]:
        """YAML may parse bare defaults as numbers or booleans."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, bool):
            return "true" if v else "false"
        return str(v)


class ReferenceSnapshot(SnapshotModel):
    table: str = Field(..., min_length=1)
    schema_name: Optional[str] = Field(default=None, alias="schema")
    columns: List[str] = Field(default_factory=list)


class ForeignKeySnapshot(SnapshotModel):
    name: Optional[str] = None
    columns: List[str] = Field(..., min_length=1)
    references: ReferenceSnapshot
    on_update: Optional[str] = None
    on_delete: Optional[str] = None

    @field_validator("columns", mode="before")
    @classmethod
    def wrap_single_column(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v


class TableSnapshot(SnapshotModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    columns: List[ColumnSnapshot] = Field(default_factory=list)
    foreign_keys: List[ForeignKeySnapshot] = Field(default_factory=list)


class SchemaSnapshot(SnapshotModel):
    name: str = Field(..., min_length=1)
    tables: List[TableSnapshot] = Field(default_factory=list)


class DatabaseSnapshot(SnapshotModel):
    schemas: List[SchemaSnapshot] = Field(default_factory=list)


# --- Graph construction ---

def parse_snapshot(data: Mapping[str, Any], source: Optional[str] = None) -> DatabaseSnapshot:
    """
    Validate raw snapshot data.

    Raises:
        SchemaIntrospectionError: If the data does not match the snapshot format
    """
    try:
        return DatabaseSnapshot.model_validate(data)
    except ValidationError as e:
        context = {"errors": "; ".join(format_validation_errors(e))}
        if source:
            context["snapshot"] = source
        raise SchemaIntrospectionError("Invalid schema snapshot", context=context) from e


def _build_table(schema: SchemaInfo, snapshot: TableSnapshot) -> TableInfo:
    columns = tuple(
        ColumnInfo(
            name=column.name,
            type=column.type,
            length=column.length,
            precision=column.precision,
            scale=column.scale,
            enum_values=tuple(column.enum_values),
            primary_key=column.primary_key,
            auto_increment=column.auto_increment,
            allow_null=column.allow_null,
            unique=column.unique,
            default=column.default,
            comment=column.comment,
        )
        for column in snapshot.columns
    )
    table = TableInfo(name=snapshot.name, description=snapshot.description, columns=columns)
    link(table, "schema", schema)
    for column in columns:
        link(column, "table", table)
    return table


def _resolve_columns(table: TableInfo, names: Sequence[str], constraint: str) -> Tuple[ColumnInfo, ...]:
    columns = []
    for name in names:
        column = table.get_column(name)
        if column is None:
            raise SchemaIntrospectionError(
                f"Foreign key '{constraint}' uses unknown column '{name}'",
                table=table.qualified_name,
                column=name,
            )
        columns.append(column)
    return tuple(columns)


def build_database(data: Union[Mapping[str, Any], DatabaseSnapshot],
                   source: Optional[str] = None) -> DatabaseInfo:
    """
    Build the schema graph from snapshot data.

    Unnamed foreign keys are named ``<referenced_table>_<table>``. Incoming
    foreign keys and junction paths are indexed on every table.

    Args:
        data: Raw snapshot mapping or an already validated snapshot
        source: Snapshot file name, used in error reports

    Returns:
        A graph exposing every schema of the snapshot

    Raises:
        SchemaIntrospectionError: If a foreign key references an unknown table
            or column
    """
    snapshot = data if isinstance(data, DatabaseSnapshot) else parse_snapshot(data, source)

    schemas: List[SchemaInfo] = []
    tables: Dict[Tuple[str, str], Tuple[TableInfo, TableSnapshot]] = {}
    for schema_snapshot in snapshot.schemas:
        schema = SchemaInfo(name=schema_snapshot.name)
        built = []
        for table_snapshot in schema_snapshot.tables:
            key = (schema.name, table_snapshot.name)
            if key in tables:
                raise SchemaIntrospectionError(
                    f"Table '{schema.name}.{table_snapshot.name}' is defined twice",
                    table=f"{schema.name}.{table_snapshot.name}",
                )
            table = _build_table(schema, table_snapshot)
            tables[key] = (table, table_snapshot)
            built.append(table)
        link(schema, "tables", tuple(built))
        schemas.append(schema)

    outgoing: Dict[TableInfo, List[ForeignKeyInfo]] = defaultdict(list)
    incoming: Dict[TableInfo, List[ForeignKeyInfo]] = defaultdict(list)
    for (schema_name, _), (table, table_snapshot) in tables.items():
        for fk in table_snapshot.foreign_keys:
            target_key = (fk.references.schema_name or schema_name, fk.references.table)
            if target_key not in tables:
                raise SchemaIntrospectionError(
                    f"Foreign key on '{table.qualified_name}' references unknown table "
                    f"'{target_key[0]}.{target_key[1]}'",
                    table=table.qualified_name,
                )
            target = tables[target_key][0]
            name = fk.name or f"{target.name}_{table.name}"

            referenced = list(fk.references.columns)
            if not referenced:
                referenced = [column.name for column in target.primary_key_columns]
            _resolve_columns(target, referenced, name)

            constraint = ForeignKeyInfo(
                name=name,
                table=table,
                columns=_resolve_columns(table, fk.columns, name),
                referenced_table=target,
                referenced_columns=tuple(referenced),
                on_update=fk.on_update,
                on_delete=fk.on_delete,
            )
            for column in constraint.columns:
                # A column keeps the first constraint it belongs to
                if column.foreign_key_constraint is None:
                    link(column, "foreign_key_constraint", constraint)
            outgoing[table].append(constraint)
            incoming[target].append(constraint)

    for table, _ in tables.values():
        link(table, "foreign_key_constraints", tuple(outgoing[table]))
        link(table, "has_manies", tuple(incoming[table]))

    junctions = defaultdict(list)
    for table, _ in tables.values():
        for junction in derive_junctions(table):
            junctions[junction.table].append(junction)
    for table, _ in tables.values():
        link(table, "has_many_throughs", tuple(junctions[table]))

    logger.debug(
        f"Built schema graph with {len(schemas)} schemas and {len(tables)} tables"
    )
    return DatabaseInfo(schemas=tuple(schemas))


def load_snapshot(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML or JSON snapshot file.

    Raises:
        SchemaIntrospectionError: If the file is missing or unparseable
    """
    snapshot_file = Path(path)
    if not snapshot_file.is_file():
        raise SchemaIntrospectionError(
            f"Schema snapshot not found at {path}",
            context={"snapshot": str(path)},
        )
    try:
        with open(snapshot_file, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SchemaIntrospectionError(
            f"Error parsing schema snapshot {path}: {e}",
            context={"snapshot": str(path)},
        ) from e
    except OSError as e:
        raise SchemaIntrospectionError(
            f"Error reading schema snapshot {path}: {e}",
            context={"snapshot": str(path)},
        ) from e

    if not isinstance(content, dict):
        raise SchemaIntrospectionError(
            f"Schema snapshot {path} must contain a mapping with a 'schemas' list",
            context={"snapshot": str(path)},
        )
    return content


class SnapshotIntrospector:
    """Schema introspector reading the file named by database.snapshot."""

    required_config_keys: Tuple[str, ...] = ("database.snapshot",)

    def introspect(self, config: ResolvedConfig) -> DatabaseInfo:
        """
        Load the snapshot and restrict it to the schemas in database.schema.

        Tables in other schemas stay reachable through foreign keys but are not
        generated.
        """
        path = config.get("database.snapshot")
        logger.info(f"Reading schema snapshot from {path}")
        database = build_database(load_snapshot(path), source=str(path))

        selected = config.get("database.schema")
        for name in selected:
            if database.get_schema(name) is None:
                logger.warning(f"Schema '{name}' not found in snapshot {path}")
        restricted = database.restrict(selected)
        logger.info(
            f"Found {sum(len(schema.tables) for schema in restricted.schemas)} tables "
            f"in schema(s): {', '.join(schema.name for schema in restricted.schemas) or 'none'}"
        )
        return restricted
