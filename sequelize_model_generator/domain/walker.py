"""
Schema walker: turns the schema graph into model descriptions.

The walk is synchronous and yields one ModelDescription per retained table, in
schema order and then table order.
"""

import logging
from typing import Iterator

from ..config import ResolvedConfig
from ..exceptions import NamingCollisionError
from .attributes import (
    belongs_to_details,
    belongs_to_many_details,
    column_details,
    has_many_details,
    table_options,
)
from .models import ModelDescription
from .naming import file_name, find_name_collisions, model_name
from .schema import Database, Table

logger = logging.getLogger(__name__)

SKIP_TABLE = "table"
SKIP_RELATION = "relation"


def should_skip(table: Table, config: ResolvedConfig, detail: str = SKIP_TABLE) -> bool:
    """
    Check whether a table is on the skip list, by bare or schema qualified name.

    Args:
        table: The table to check
        config: Resolved configuration
        detail: "table" when the table itself is being generated, "relation"
            when it is the far end of a relation; only changes the log message

    Returns:
        True if the table, or relations touching it, must be left out
    """
    skip_list = config.get("generate.skipTable")
    qualified_name = f"{table.schema.name}.{table.name}"
    if table.name not in skip_list and qualified_name not in skip_list:
        return False

    if config.get("output.log"):
        if detail == SKIP_TABLE:
            logger.info(
                f"(Skipped table) File '{file_name(table, config)}' is skipped "
                f"for model '{model_name(table, config)}'"
            )
        else:
            logger.info(
                f"(Skipped relation) Relation is skipped for model '{model_name(table, config)}'"
            )
    return True


def describe_table(table: Table, config: ResolvedConfig) -> ModelDescription:
    """
    Build the model description of a single table.

    Relations are collected in the order hasMany, hasMany through a junction,
    then belongsTo. Junction paths feed hasMany when generate.hasManyThrough is
    set and belongsToMany when generate.belongsToMany is set.

    Raises:
        UnsupportedSchemaError: If a relation uses a composite foreign key
        NamingCollisionError: If two relations get the same association name
    """
    description = ModelDescription(
        table_name=table.name,
        schema=table.schema.name,
        model_name=model_name(table, config),
        file_name=file_name(table, config),
        base_file_name=table.name,
        table_options=table_options(table, config),
    )

    for column in table.columns:
        description.columns.append(column_details(column, config))

    for constraint in table.has_manies:
        if should_skip(constraint.table, config, SKIP_RELATION):
            continue
        description.has_manies.append(has_many_details(constraint, config))

    for junction in table.has_many_throughs:
        if (should_skip(junction.target, config, SKIP_RELATION)
                or should_skip(junction.through, config, SKIP_RELATION)):
            continue
        if config.resolve(table.name, "generate.hasManyThrough"):
            description.has_manies.append(has_many_details(junction, config))
        if config.resolve(table.name, "generate.belongsToMany"):
            description.belongs_to_manies.append(belongs_to_many_details(junction, config))

    for constraint in table.foreign_key_constraints:
        if should_skip(constraint.referenced_table, config, SKIP_RELATION):
            continue
        description.belongs_tos.append(belongs_to_details(constraint, config))

    description.relations = (
        description.has_manies + description.belongs_tos + description.belongs_to_manies
    )

    collisions = find_name_collisions(description.relations)
    if collisions:
        raise NamingCollisionError(table.name, collisions)

    logger.debug(
        f"Described table '{description.qualified_name}': {len(description.columns)} columns, "
        f"{len(description.relations)} relations"
    )
    return description


def walk(database: Database, config: ResolvedConfig) -> Iterator[ModelDescription]:
    """Yield a ModelDescription for every table that is not skip-listed."""
    for schema in database.schemas:
        for table in schema.tables:
            if should_skip(table, config, SKIP_TABLE):
                continue
            yield describe_table(table, config)
