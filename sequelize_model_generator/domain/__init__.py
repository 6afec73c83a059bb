"""
Domain module for the Sequelize model generator.

This module contains the schema-to-model mapping engine: the read-only schema
graph, naming rules, attribute extraction and the schema walker. It has no
knowledge of files, templates or the command line.
"""

from .models import (
    Code,
    Quoted,
    quote,
    filter_attributes,
    ModelDescription,
)

from .schema import (
    Schema,
    Table,
    Column,
    ForeignKeyConstraint,
    JunctionRelation,
    Database,
    SchemaInfo,
    TableInfo,
    ColumnInfo,
    ForeignKeyInfo,
    JunctionInfo,
    DatabaseInfo,
)

from .naming import (
    camelize,
    singularize,
    pluralize,
    single_column,
    belongs_to_name,
    has_many_name,
    belongs_to_many_name,
    model_name,
    file_name,
    find_name_collisions,
)

from .attributes import (
    clear_default_value,
    merge_defaults,
    column_details,
    has_many_details,
    belongs_to_details,
    belongs_to_many_details,
    table_options,
)

from .type_mapping import type_expression

from .walker import (
    should_skip,
    describe_table,
    walk,
)

__all__ = [
    # Output models
    'Code',
    'Quoted',
    'quote',
    'filter_attributes',
    'ModelDescription',

    # Schema graph
    'Schema',
    'Table',
    'Column',
    'ForeignKeyConstraint',
    'JunctionRelation',
    'Database',
    'SchemaInfo',
    'TableInfo',
    'ColumnInfo',
    'ForeignKeyInfo',
    'JunctionInfo',
    'DatabaseInfo',

    # Naming
    'camelize',
    'singularize',
    'pluralize',
    'single_column',
    'belongs_to_name',
    'has_many_name',
    'belongs_to_many_name',
    'model_name',
    'file_name',
    'find_name_collisions',

    # Attributes
    'clear_default_value',
    'merge_defaults',
    'column_details',
    'has_many_details',
    'belongs_to_details',
    'belongs_to_many_details',
    'table_options',
    'type_expression',

    # Walker
    'should_skip',
    'describe_table',
    'walk',
]
