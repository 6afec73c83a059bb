"""
Attribute extraction for columns, associations and table options.

Each function returns a plain dict with the keys the model template expects.
None values are dropped and strings stay unquoted; quoting for JavaScript
output happens in filter_attributes when the template context is built.
"""

import re
from typing import Any, Dict, Mapping, Optional, Union

from ..config import ResolvedConfig, thaw
from ..constants import DESCRIPTION_SOURCE, RelationTypes
from .models import Code, Quoted, quote, filter_attributes
from .naming import (
    belongs_to_many_name,
    belongs_to_name,
    camelize,
    has_many_name,
    model_name,
    single_column,
)
from .schema import Column, ForeignKeyConstraint, JunctionRelation, Table
from .type_mapping import type_expression

__all__ = [
    "Code",
    "Quoted",
    "quote",
    "filter_attributes",
    "clear_default_value",
    "merge_defaults",
    "column_details",
    "has_many_details",
    "belongs_to_details",
    "belongs_to_many_details",
    "table_options",
]

# 'text'::character varying; a doubled quote inside the literal escapes it
QUOTED_DEFAULT_PATTERN = re.compile(
    r"""^(?:'(?P<single>(?:[^']|'')*)'|"(?P<double>[^"]*)")(?:::[\w\s."\[\]]+)?$""",
    re.DOTALL,
)


def _compact(obj: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in obj.items() if value is not None}


def clear_default_value(text: Optional[str]) -> Optional[str]:
    """
    Extract a literal from a quoted SQL default.

    Only quoted literals are supported; function calls and expressions give no
    default rather than a guessed one. A trailing type cast is ignored.

    Example:
        >>> clear_default_value("'No ''value'' given'")
        "No 'value' given"
        >>> clear_default_value("now()") is None
        True
    """
    if not text or text[0] not in ("'", '"'):
        return None
    match = QUOTED_DEFAULT_PATTERN.match(text)
    if not match:
        return None
    body = match.group("single") if match.group("single") is not None else match.group("double")
    return body.replace("''", "'")


def merge_defaults(*sources: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Merge mappings where the first source defining a key wins.

    Example:
        >>> merge_defaults({"a": 1}, {"a": 2, "b": 2})
        {'a': 1, 'b': 2}
    """
    merged: Dict[str, Any] = {}
    for source in sources:
        if not source:
            continue
        for key, value in source.items():
            if key not in merged:
                merged[key] = value
    return merged


def column_details(column: Column, config: ResolvedConfig) -> Dict[str, Any]:
    """
    Describe a column as a model attribute.

    Args:
        column: The column to describe
        config: Resolved configuration

    Returns:
        Attribute description; ``type`` is a Code value
    """
    table = column.table.name
    constraint = column.foreign_key_constraint

    auto_increment = None
    if column.auto_increment and config.resolve(table, "generate.columnAutoIncrement"):
        auto_increment = True

    default_value = None
    if column.default is not None and config.resolve(table, "generate.columnDefault"):
        default_value = clear_default_value(column.default)

    references = None
    references_key = None
    if constraint is not None:
        single_column(constraint)
        references = constraint.referenced_table.name
        references_key = constraint.referenced_columns[0]

    details = _compact({
        "source": DESCRIPTION_SOURCE,
        "accessorName": (
            camelize(column.name)
            if config.resolve(table, "generate.columnAccessorCamelCase")
            else column.name
        ),
        "name": column.name,
        "primaryKey": column.primary_key,
        "autoIncrement": auto_increment,
        "allowNull": column.allow_null,
        "defaultValue": default_value,
        "unique": column.unique,
        "comment": column.comment if config.resolve(table, "generate.columnDescription") else None,
        "references": references,
        "referencesKey": references_key,
        "onUpdate": column.on_update,
        "onDelete": column.on_delete,
    })
    details["type"] = type_expression(column, config.resolve(table, "generate.dataTypeVariable"))
    return details


def has_many_details(relation: Union[ForeignKeyConstraint, JunctionRelation],
                     config: ResolvedConfig) -> Dict[str, Any]:
    """Describe an incoming foreign key or a junction path as a hasMany association."""
    through = None
    if isinstance(relation, JunctionRelation):
        target = relation.target
        foreign_key = single_column(relation.constraint).name
        through = relation.through.name
    else:
        target = relation.table
        foreign_key = single_column(relation).name

    return _compact({
        "type": RelationTypes.HAS_MANY,
        "source": DESCRIPTION_SOURCE,
        "name": relation.name,
        "model": model_name(target, config),
        "as": has_many_name(relation, config),
        "targetSchema": target.schema.name,
        "targetTable": target.name,
        "foreignKey": foreign_key,
        "onDelete": relation.on_delete,
        "onUpdate": relation.on_update,
        "through": through,
    })


def belongs_to_details(constraint: ForeignKeyConstraint, config: ResolvedConfig) -> Dict[str, Any]:
    """Describe an outgoing foreign key as a belongsTo association."""
    target = constraint.referenced_table
    return _compact({
        "type": RelationTypes.BELONGS_TO,
        "source": DESCRIPTION_SOURCE,
        "name": constraint.name,
        "model": model_name(target, config),
        "as": belongs_to_name(constraint, config),
        "targetSchema": target.schema.name,
        "targetTable": target.name,
        "foreignKey": single_column(constraint).name,
        "onDelete": constraint.on_delete,
        "onUpdate": constraint.on_update,
    })


def belongs_to_many_details(junction: JunctionRelation, config: ResolvedConfig) -> Dict[str, Any]:
    """Describe a junction path as a belongsToMany association."""
    target = junction.target
    return _compact({
        "type": RelationTypes.BELONGS_TO_MANY,
        "source": DESCRIPTION_SOURCE,
        "name": junction.name,
        "model": model_name(target, config),
        "as": belongs_to_many_name(junction, config),
        "targetSchema": target.schema.name,
        "targetTable": target.name,
        "foreignKey": single_column(junction.constraint).name,
        "otherKey": single_column(junction.through_constraint).name,
        "onDelete": junction.on_delete,
        "onUpdate": junction.on_update,
        "through": junction.through.name,
    })


def table_options(table: Table, config: ResolvedConfig) -> Dict[str, Any]:
    """
    Options passed to ``sequelize.define`` for a table.

    Per-table options win over general options, which win over the computed
    ones (model name, table name, schema and description).
    """
    specific = config.get_path(("tableOptionsOverride", table.name), {})
    general = config.get("tableOptions", {})
    computed = {
        "modelName": model_name(table, config),
        "tableName": table.name,
        "schema": table.schema.name,
        "comment": (
            table.description
            if config.resolve(table.name, "generate.tableDescription")
            else None
        ),
    }
    return _compact(merge_defaults(thaw(specific), thaw(general), computed))
