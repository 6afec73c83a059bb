"""
Naming convention utilities for the Sequelize model generator.

This module derives model names, file names and association names from schema
facts. All functions are pure: the same schema element and configuration always
produce the same name.
"""

import re
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Any, Tuple, Union
import inflect

from ..config import ResolvedConfig
from ..constants import (
    IRREGULAR_NOUNS,
    UNCOUNTABLE_NOUNS,
    SINGULAR_ENDINGS,
    FOREIGN_KEY_SUFFIX,
    FileExtensions,
)
from ..exceptions import UnsupportedSchemaError
from .schema import Column, ForeignKeyConstraint, JunctionRelation, Table


# Initialize inflect engine for pluralization
p = inflect.engine()

# Irregular nouns are looked up before inflect's rules are applied
IRREGULAR_SINGULARS = {plural: singular for singular, plural in IRREGULAR_NOUNS.items()}

# Last word of a snake_case or camelCase identifier
LAST_WORD_PATTERN = re.compile(r"([A-Z]?[a-z0-9]+|[A-Z]+)$")
FOREIGN_KEY_SUFFIX_PATTERN = re.compile(re.escape(FOREIGN_KEY_SUFFIX) + r"$", re.IGNORECASE)


def camelize(word: str, uppercase_first_letter: bool = False) -> str:
    """
    Convert snake_case to camelCase.

    Args:
        word: The identifier to convert
        uppercase_first_letter: Produce PascalCase instead of camelCase

    Returns:
        The identifier without underscores, each later word capitalized

    Example:
        >>> camelize("order_products")
        'orderProducts'
        >>> camelize("order_products", uppercase_first_letter=True)
        'OrderProducts'
    """
    if not isinstance(word, str):
        raise TypeError(f"Expected string, got {type(word).__name__}")

    head, *rest = word.split("_")
    joined = head + "".join(part[:1].upper() + part[1:] for part in rest)
    first = joined[:1].upper() if uppercase_first_letter else joined[:1].lower()
    return first + joined[1:]


def _split_last_word(word: str) -> Tuple[str, str]:
    match = LAST_WORD_PATTERN.search(word)
    if not match:
        return word, ""
    return word[:match.start()], match.group(1)


def _match_case(original: str, inflected: str) -> str:
    if original.isupper() and len(original) > 1:
        return inflected.upper()
    if original[:1].isupper():
        return inflected[:1].upper() + inflected[1:]
    return inflected


def _is_plural(tail: str) -> bool:
    lowered = tail.lower()
    if lowered in UNCOUNTABLE_NOUNS or lowered in IRREGULAR_NOUNS:
        return False
    # inflect truncates singular nouns such as "address" to "addres"
    if lowered.endswith(SINGULAR_ENDINGS):
        return False
    # inflect returns False if the word is already singular
    return bool(p.singular_noun(tail))


def singularize(word: str) -> str:
    """
    Return the singular form of an identifier.

    Only the last word is inflected, so compound identifiers keep their prefix.

    Example:
        >>> singularize("line_items")
        'line_item'
        >>> singularize("home_address")
        'home_address'
    """
    head, tail = _split_last_word(word)
    if not tail:
        return word
    lowered = tail.lower()
    if lowered in IRREGULAR_SINGULARS:
        return head + _match_case(tail, IRREGULAR_SINGULARS[lowered])
    if not _is_plural(tail):
        return word
    return head + _match_case(tail, p.singular_noun(tail))


def pluralize(word: str) -> str:
    """
    Return the plural form of an identifier.

    Plural and uncountable input is returned unchanged.

    Example:
        >>> pluralize("order_product")
        'order_products'
        >>> pluralize("orders")
        'orders'
    """
    head, tail = _split_last_word(word)
    if not tail:
        return word
    lowered = tail.lower()
    if lowered in IRREGULAR_NOUNS:
        return head + _match_case(tail, IRREGULAR_NOUNS[lowered])
    if lowered in IRREGULAR_SINGULARS or lowered in UNCOUNTABLE_NOUNS or _is_plural(tail):
        return word
    return head + _match_case(tail, p.plural_noun(tail))


def single_column(constraint: ForeignKeyConstraint) -> Column:
    """
    Return the only column of a foreign key constraint.

    Raises:
        UnsupportedSchemaError: If the constraint spans several columns
    """
    columns = list(constraint.columns)
    if len(columns) != 1 or len(constraint.referenced_columns) != 1:
        raise UnsupportedSchemaError(
            f"Foreign key '{constraint.name}' on table '{constraint.table.name}' "
            f"spans {len(columns)} columns; only single-column keys are supported",
            table=constraint.table.name,
            constraint=constraint.name,
            columns=[column.name for column in columns],
        )
    return columns[0]


def belongs_to_name(constraint: ForeignKeyConstraint, config: ResolvedConfig) -> str:
    """
    Derive the belongsTo association name for a foreign key.

    A column named ``<base>_id`` gives ``<base>``. Any other column is prefixed
    with generate.prefixForBelongsTo so the association does not shadow the
    column attribute.

    Args:
        constraint: The foreign key, seen from the table holding it
        config: Resolved configuration

    Returns:
        The singular association name

    Example:
        >>> belongs_to_name(orders_customer_fk, config)  # column customer_id
        'customer'
    """
    column = single_column(constraint).name
    table = constraint.table.name
    camel_case = config.resolve(table, "generate.relationAccessorCamelCase")

    base = FOREIGN_KEY_SUFFIX_PATTERN.sub("", column)
    if base != column and base:
        name = base
    else:
        separator = "" if camel_case else "_"
        name = f"{config.resolve(table, 'generate.prefixForBelongsTo')}{separator}{column}"

    if camel_case:
        name = camelize(name)
    return singularize(name)


def has_many_name(relation: Union[ForeignKeyConstraint, JunctionRelation],
                  config: ResolvedConfig) -> str:
    """
    Derive the hasMany association name, seen from the referenced table.

    Args:
        relation: An incoming foreign key, or a junction path
        config: Resolved configuration

    Returns:
        The plural association name

    Example:
        >>> has_many_name(customers_orders_fk, config)  # constraint customers_orders
        'orders'
    """
    if isinstance(relation, JunctionRelation):
        return pluralize(belongs_to_name(relation.through_constraint, config))

    owner = relation.referenced_table.name
    name = pluralize(relation.name)

    if config.resolve(owner, "generate.stripFirstTableFromHasMany"):
        stripped = re.sub(rf"^{re.escape(owner)}[_-]?", "", name, flags=re.IGNORECASE)
        # A constraint named exactly like the table keeps its name
        if stripped:
            name = stripped

    if config.resolve(owner, "generate.relationAccessorCamelCase"):
        name = camelize(name)
    return name


def belongs_to_many_name(junction: JunctionRelation, config: ResolvedConfig) -> str:
    """Plural of the belongsTo name of the junction's far-side foreign key."""
    return pluralize(belongs_to_name(junction.through_constraint, config))


def model_name(table: Table, config: ResolvedConfig) -> str:
    """
    Derive the model name registered with Sequelize.

    Example:
        >>> model_name(order_products, config)
        'public.orderProducts'
    """
    schema_name = table.schema.name
    table_name = table.name
    if config.resolve(table.name, "generate.modelCamelCase"):
        schema_name = camelize(schema_name)
        table_name = camelize(table_name)

    if config.resolve(table.name, "generate.useSchemaName"):
        return f"{schema_name}.{table_name}"
    return table_name


def file_name(table: Table, config: ResolvedConfig) -> str:
    """File name of the generated definition, e.g. ``public_orders.js``."""
    if config.resolve(table.name, "generate.useSchemaName"):
        return f"{table.schema.name}_{table.name}{FileExtensions.JAVASCRIPT}"
    return f"{table.name}{FileExtensions.JAVASCRIPT}"


def find_name_collisions(relations: Iterable[Mapping[str, Any]]) -> Dict[str, List[str]]:
    """
    Find association names used by more than one relation of a table.

    Args:
        relations: Relation descriptions with ``as``, ``type`` and ``name`` keys

    Returns:
        Mapping of each duplicated association name to the relations using it
    """
    by_name: Dict[str, List[str]] = defaultdict(list)
    for relation in relations:
        by_name[relation["as"]].append(f"{relation['type']} {relation['name']}")
    return {name: users for name, users in by_name.items() if len(users) > 1}
